"""Glyph descriptors and the randomness that seeds them.

Glyphs are center-anchored: ``(x, y)`` is the middle of the text, not its top
left corner, and every bounding-box computation has to account for that.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Sequence, Tuple

from .config import ANGLE_JUMBLE, ANGLE_SHATTER, ANGLE_TETRIS, CloudConfig
from .words import Word, highest_weight

if TYPE_CHECKING:  # pragma: no cover
    from .surface import RenderingSurface

Bounds = Tuple[float, float, float, float]

PLACEHOLDER_COLOR = "#000000"
PLACEMENT_OPACITY = 0.5


@dataclass
class Glyph:
    """A word's rendered representation: position, size, angle and colour."""

    word: Word
    index: int
    x: float
    y: float
    font_size: float
    width: float
    height: float
    angle: float = 0.0
    color: str = PLACEHOLDER_COLOR
    opacity: float = 1.0
    shape: str = "text"
    settled: bool = False
    trace: List[Tuple[float, float]] = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.word.text

    @property
    def extents(self) -> Tuple[float, float]:
        """Width/height of the axis-aligned box around the rotated glyph."""

        if not self.angle % 180:
            return self.width, self.height
        theta = math.radians(self.angle)
        cos_t = abs(math.cos(theta))
        sin_t = abs(math.sin(theta))
        return (
            self.width * cos_t + self.height * sin_t,
            self.width * sin_t + self.height * cos_t,
        )

    def bounds(self) -> Bounds:
        w, h = self.extents
        return (self.x - w / 2.0, self.y - h / 2.0, self.x + w / 2.0, self.y + h / 2.0)

    def move_to(self, x: float, y: float) -> None:
        if self.settled:
            raise RuntimeError(f"glyph {self.text!r} is already settled")
        self.x = x
        self.y = y

    def to_dict(self) -> dict[str, object]:
        return {
            "text": self.text,
            "weight": self.word.weight,
            "index": self.index,
            "x": self.x,
            "y": self.y,
            "angle": self.angle,
            "font_size": self.font_size,
            "width": self.width,
            "height": self.height,
            "color": self.color,
            "opacity": self.opacity,
            "shape": self.shape,
        }


def standard_normal(rng: random.Random) -> float:
    """Sum of three uniforms on [-1, 1); bell-shaped and capped at +/-3."""
    return (rng.random() * 2 - 1) + (rng.random() * 2 - 1) + (rng.random() * 2 - 1)


def normal_jitter(rng: random.Random, mean: float, stdev: float) -> int:
    return round(standard_normal(rng) * stdev + mean)


def pick_angle(rng: random.Random, mode: int) -> float:
    if mode == ANGLE_TETRIS:
        return float(math.floor(rng.random() * 1.2 + 0.9) * 90 - 90)
    if mode == ANGLE_JUMBLE:
        return float(normal_jitter(rng, 0, 7))
    if mode == ANGLE_SHATTER:
        return rng.random() * 60 - 30
    return 0.0


@dataclass(frozen=True)
class ColorBias:
    red: float = 0.0
    green: float = 0.0
    blue: float = 0.0

    @classmethod
    def draw(cls, rng: random.Random, brightness: int) -> "ColorBias":
        return cls(
            red=rng.random() * brightness,
            green=rng.random() * brightness,
            blue=rng.random() * brightness,
        )


def biased_color(rng: random.Random, bias: ColorBias, brightness: int) -> str:
    """Random ``#rrggbb`` with each channel in ``[bias, brightness]``."""

    top = min(brightness, 255)
    channels = []
    for value in (bias.red, bias.green, bias.blue):
        low = min(math.floor(value), top)
        channels.append(rng.randint(low, top))
    return "#" + "".join(f"{channel:02x}" for channel in channels)


def font_size_for(word: Word, highest: int, config: CloudConfig) -> int:
    return math.floor(config.word_scale_offset + config.word_scale * word.weight / max(highest, 1))


def make_glyphs(
    words: Sequence[Word],
    config: CloudConfig,
    surface: "RenderingSurface",
    rng: random.Random,
    bias: ColorBias,
) -> List[Glyph]:
    """Build unplaced glyphs with jittered starting points around the canvas center."""

    width, height = config.canvas_size
    highest = highest_weight(words)
    glyphs: List[Glyph] = []

    for index, word in enumerate(words):
        if config.debug > 0:
            side = max(config.word_scale * word.weight / 100.0, 1.0)
            glyphs.append(
                Glyph(
                    word=word,
                    index=index,
                    x=float(rng.randint(math.floor(width / 4), math.floor(width * 3 / 4))),
                    y=height / 2.0,
                    font_size=side,
                    width=side,
                    height=side,
                    color=biased_color(rng, ColorBias(), config.text_brightness),
                    opacity=0.8,
                    shape="rect",
                )
            )
            continue

        angle = pick_angle(rng, config.text_angle)
        x = float(normal_jitter(rng, width / 2.0, width / 20.0))
        y = float(normal_jitter(rng, height / 2.0, width / 30.0))
        size = font_size_for(word, highest, config)
        text_w, text_h = surface.measure(word.text, size)
        if config.cuddle:
            color, opacity = PLACEHOLDER_COLOR, PLACEMENT_OPACITY
        else:
            color, opacity = biased_color(rng, bias, config.text_brightness), 1.0

        glyphs.append(
            Glyph(
                word=word,
                index=index,
                x=x,
                y=y,
                font_size=size,
                width=text_w,
                height=text_h,
                angle=angle,
                color=color,
                opacity=opacity,
            )
        )
    return glyphs


def recolor(glyphs: Sequence[Glyph], rng: random.Random, bias: ColorBias, brightness: int) -> None:
    """Give glyphs their final colour once pixel placement no longer needs the grey."""

    for glyph in glyphs:
        glyph.opacity = 1.0
        glyph.color = biased_color(rng, bias, brightness)


__all__ = [
    "Bounds",
    "ColorBias",
    "Glyph",
    "biased_color",
    "font_size_for",
    "make_glyphs",
    "normal_jitter",
    "pick_angle",
    "recolor",
    "standard_normal",
]
