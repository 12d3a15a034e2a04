"""Options bundle for a cloud layout run.

Every numeric option is clamped at construction time instead of rejected, so a
host UI can pass raw slider values straight through.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

DEFAULT_CANVAS_SIZE: tuple[int, int] = (800, 800)
WORD_PADDING = 8
SANITY_LIMIT = 1000
SECTION_WEIGHTS: tuple[int, ...] = (1, 1, 1, 95, 1, 1)

ANGLE_HORIZONTAL = 1
ANGLE_TETRIS = 2
ANGLE_JUMBLE = 3
ANGLE_SHATTER = 4

_OPTION_ALIASES = {
    "text_scale": "word_scale",
    "text_scale_offset": "word_scale_offset",
}


def _clamp(value: float, low: float, high: float | None = None) -> float:
    value = max(value, low)
    if high is not None:
        value = min(value, high)
    return value


@dataclass(frozen=True, slots=True)
class CloudConfig:
    """Immutable layout options (see ``from_options`` for the loose form)."""

    width: int = DEFAULT_CANVAS_SIZE[0]
    height: int = DEFAULT_CANVAS_SIZE[1]
    max_words: int = 200
    text_brightness: int = 150
    word_scale: float = 100.0
    word_scale_offset: float = 6.0
    text_angle: int = ANGLE_HORIZONTAL
    spread: float = 25.0
    cuddle: bool = False
    debug: int = 0
    padding: int = WORD_PADDING
    font_path: Path | None = None
    seed: int | None = None

    def __post_init__(self) -> None:
        set_ = object.__setattr__
        set_(self, "width", int(self.width))
        set_(self, "height", int(self.height))
        if self.width <= 0 or self.height <= 0:
            raise ValueError("canvas size must be positive in both dimensions")

        set_(self, "max_words", int(_clamp(int(self.max_words), 0)))
        set_(self, "text_brightness", int(_clamp(int(self.text_brightness), 0, 255)))
        set_(self, "word_scale", float(_clamp(float(self.word_scale), 0.0)))
        set_(self, "word_scale_offset", float(_clamp(float(self.word_scale_offset), 0.0)))
        set_(self, "text_angle", int(_clamp(int(self.text_angle), ANGLE_HORIZONTAL, ANGLE_SHATTER)))
        set_(self, "spread", float(_clamp(float(self.spread), 1.0, 100.0)))
        set_(self, "cuddle", bool(self.cuddle))
        set_(self, "debug", int(_clamp(int(self.debug), 0, 3)))
        set_(self, "padding", int(_clamp(int(self.padding), 0)))
        if self.font_path is not None:
            set_(self, "font_path", Path(self.font_path))

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None, **overrides: Any) -> "CloudConfig":
        """Build a config from plugin-style option names, ignoring unknown keys."""

        known = {f.name for f in fields(cls)}
        merged: dict[str, Any] = {}
        for source in (options or {}, overrides):
            for key, value in source.items():
                key = _OPTION_ALIASES.get(key, key)
                if key in known and value is not None:
                    merged[key] = value
        return cls(**merged)

    @property
    def canvas_size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def spiral_increment(self) -> float:
        """Scalar step along the spiral per collision; pixel mode packs tighter."""
        return 0.5 + (4 if self.cuddle else 1) * self.spread / 100.0

    @property
    def spiral_radius(self) -> float:
        return 1.0 + (10 if self.cuddle else 1) * self.spread / 100.0


__all__ = [
    "ANGLE_HORIZONTAL",
    "ANGLE_JUMBLE",
    "ANGLE_SHATTER",
    "ANGLE_TETRIS",
    "CloudConfig",
    "DEFAULT_CANVAS_SIZE",
    "SANITY_LIMIT",
    "SECTION_WEIGHTS",
    "WORD_PADDING",
]
