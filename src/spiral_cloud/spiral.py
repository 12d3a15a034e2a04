"""Archimedean spiral used to search outward from a glyph's starting point."""

from __future__ import annotations

import math
from dataclasses import dataclass

Point = tuple[float, float]

TWO_PI = 2.0 * math.pi


def spiral_point(position: float, radius: float) -> Point:
    """Map a scalar spiral position to an ``(x, y)`` offset.

    A single scalar drives both rotation and growth, so every step outward
    also lands on a different bearing instead of re-testing the same ring.
    ``spiral_point(0, r)`` is ``(0, 0)``.
    """

    mult = position / TWO_PI * radius
    angle = position % TWO_PI
    return (mult * math.sin(angle), mult * math.cos(angle))


@dataclass
class SpiralCursor:
    """Advancing position along the spiral for one glyph placement."""

    increment: float
    radius: float
    direction: int = 1
    position: float = 0.0
    steps: int = 0

    def advance(self) -> Point:
        self.position += self.direction * self.increment
        self.steps += 1
        return self.offset()

    def offset(self) -> Point:
        return spiral_point(self.position, self.radius)


__all__ = ["Point", "SpiralCursor", "spiral_point"]
