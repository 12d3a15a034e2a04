"""Rendering surfaces with pluggable backends.

A surface owns the composed cloud image. Placement only needs four things from
it: text metrics, a scratch mask of a candidate glyph, read-back of a region of
composed RGBA pixels, and a way to add glyphs to the composition. The Pillow
backend rasterizes real text; the headless backend stamps filled rectangles
from estimated metrics so geometry can be exercised without any fonts.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict, List, Protocol, Tuple, runtime_checkable

import numpy as np

try:  # Pillow is the baseline rasterizer.
    from PIL import Image, ImageDraw, ImageFont
except ImportError as exc:  # pragma: no cover - import guard
    raise ImportError(
        "Pillow is required for text rendering. "
        "Install it via `pip install Pillow`."
    ) from exc

from .glyphs import Glyph

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255, 255)
GLYPH_WIDTH_FACTOR = 0.55


@runtime_checkable
class RenderingSurface(Protocol):
    """Protocol implemented by concrete backends (Pillow, headless, ...)."""

    name: str

    @property
    def size(self) -> Tuple[int, int]:
        """``(width, height)`` of the composed canvas."""

    def measure(self, text: str, font_size: float) -> Tuple[float, float]:
        """Unrotated ``(width, height)`` of ``text`` at ``font_size``."""

    def add_glyph(self, glyph: Glyph) -> None:
        """Compose ``glyph`` on top of everything already on the surface."""

    def remove_glyph(self, glyph: Glyph) -> None:
        """Take ``glyph`` out of the composition."""

    def clear(self) -> None:
        """Drop every glyph and reset to the background."""

    def render_mask(self, glyph: Glyph, padding: float = 0) -> np.ndarray:
        """Render ``glyph`` alone, inflated by ``padding``, as an ``(h, w, 4)`` buffer."""

    def read_region(self, x: int, y: int, width: int, height: int) -> np.ndarray:
        """Return composed RGBA pixels; areas outside the canvas read as ``0``."""

    def flush(self) -> None:
        """Recompose every glyph from scratch (after colours change)."""

    def dispose_scratch(self) -> None:
        """Release buffers only needed while placing."""


def parse_color(color: str) -> Tuple[int, int, int]:
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected a #rrggbb colour, got {color!r}")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def buffer_origin(glyph: Glyph, shape: Tuple[int, ...]) -> Tuple[int, int]:
    """Top-left pixel of a buffer of ``shape`` centred on the glyph."""

    height, width = shape[0], shape[1]
    return math.floor(glyph.x - width / 2.0), math.floor(glyph.y - height / 2.0)


def crop_region(pixels: np.ndarray, x: int, y: int, width: int, height: int) -> np.ndarray:
    out = np.zeros((height, width, pixels.shape[2]), dtype=pixels.dtype)
    src_h, src_w = pixels.shape[:2]
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + width, src_w), min(y + height, src_h)
    if x0 < x1 and y0 < y1:
        out[y0 - y : y1 - y, x0 - x : x1 - x] = pixels[y0:y1, x0:x1]
    return out


def colorize(coverage: np.ndarray, color: str, opacity: float) -> np.ndarray:
    """Turn an 8-bit coverage mask into an RGBA layer."""

    red, green, blue = parse_color(color)
    layer = np.zeros(coverage.shape + (4,), dtype=np.uint8)
    layer[..., 0] = red
    layer[..., 1] = green
    layer[..., 2] = blue
    layer[..., 3] = np.rint(coverage.astype(np.float64) * opacity).astype(np.uint8)
    return layer


def alpha_over(target: np.ndarray, layer: np.ndarray, x: int, y: int) -> None:
    """Composite ``layer`` onto ``target`` in place at ``(x, y)``, clipped."""

    tgt_h, tgt_w = target.shape[:2]
    lay_h, lay_w = layer.shape[:2]
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + lay_w, tgt_w), min(y + lay_h, tgt_h)
    if x0 >= x1 or y0 >= y1:
        return

    src = layer[y0 - y : y1 - y, x0 - x : x1 - x].astype(np.float64)
    dst = target[y0:y1, x0:x1].astype(np.float64)
    src_a = src[..., 3:4] / 255.0
    dst_a = dst[..., 3:4] / 255.0
    out_a = src_a + dst_a * (1.0 - src_a)
    safe_a = np.where(out_a > 0.0, out_a, 1.0)
    out_rgb = (src[..., :3] * src_a + dst[..., :3] * dst_a * (1.0 - src_a)) / safe_a

    target[y0:y1, x0:x1, :3] = np.clip(np.rint(out_rgb), 0, 255).astype(np.uint8)
    target[y0:y1, x0:x1, 3] = np.clip(np.rint(out_a[..., 0] * 255.0), 0, 255).astype(np.uint8)


class _BufferSurface:
    """Shared numpy composition for backends that differ only in rasterization."""

    name = "buffer"

    def __init__(self, size: Tuple[int, int]) -> None:
        width, height = size
        if width <= 0 or height <= 0:
            raise ValueError("canvas size must be positive in both dimensions")
        self.width = int(width)
        self.height = int(height)
        self._glyphs: List[Glyph] = []
        self._pixels = self._blank()
        self._scratch: Dict[tuple, np.ndarray] = {}

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def glyphs(self) -> List[Glyph]:
        return list(self._glyphs)

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    def _blank(self) -> np.ndarray:
        pixels = np.empty((self.height, self.width, 4), dtype=np.uint8)
        pixels[...] = BACKGROUND
        return pixels

    def measure(self, text: str, font_size: float) -> Tuple[float, float]:
        raise NotImplementedError

    def _coverage(self, glyph: Glyph, padding: float) -> np.ndarray:
        raise NotImplementedError

    def coverage(self, glyph: Glyph, padding: float = 0) -> np.ndarray:
        key = (glyph.index, glyph.text, glyph.shape, glyph.font_size, glyph.angle, padding)
        cached = self._scratch.get(key)
        if cached is None:
            cached = self._coverage(glyph, padding)
            self._scratch[key] = cached
        return cached

    def _stamp(self, glyph: Glyph) -> None:
        layer = colorize(self.coverage(glyph), glyph.color, glyph.opacity)
        x, y = buffer_origin(glyph, layer.shape)
        alpha_over(self._pixels, layer, x, y)

    def add_glyph(self, glyph: Glyph) -> None:
        self._glyphs.append(glyph)
        self._stamp(glyph)

    def remove_glyph(self, glyph: Glyph) -> None:
        self._glyphs = [other for other in self._glyphs if other is not glyph]
        self.flush()

    def clear(self) -> None:
        self._glyphs = []
        self._pixels = self._blank()
        self._scratch.clear()

    def render_mask(self, glyph: Glyph, padding: float = 0) -> np.ndarray:
        return colorize(self.coverage(glyph, padding), "#000000", glyph.opacity)

    def read_region(self, x: int, y: int, width: int, height: int) -> np.ndarray:
        return crop_region(self._pixels, int(x), int(y), int(width), int(height))

    def flush(self) -> None:
        self._pixels = self._blank()
        for glyph in self._glyphs:
            self._stamp(glyph)

    def dispose_scratch(self) -> None:
        self._scratch.clear()


def _rect_coverage(width: float, height: float, angle: float) -> np.ndarray:
    image = Image.new("L", (max(math.ceil(width), 1), max(math.ceil(height), 1)), 255)
    if angle % 360:
        image = image.rotate(-angle, expand=True, resample=Image.Resampling.BICUBIC, fillcolor=0)
    return np.array(image, dtype=np.uint8)


class PillowSurface(_BufferSurface):
    """Default surface that uses Pillow's FreeType bindings to rasterize text."""

    name = "pillow"

    def __init__(self, size: Tuple[int, int], *, font_path: Path | str | None = None) -> None:
        super().__init__(size)
        self.font_path = Path(font_path) if font_path is not None else None
        self._fonts: Dict[int, ImageFont.FreeTypeFont | ImageFont.ImageFont] = {}
        # Fail early (OSError) when the configured font cannot be opened.
        self._font(12)

    def _font(self, font_size: float):
        size = max(1, int(round(font_size)))
        font = self._fonts.get(size)
        if font is None:
            if self.font_path is not None:
                font = ImageFont.truetype(str(self.font_path), size)
            else:
                font = ImageFont.load_default(size=size)
            self._fonts[size] = font
        return font

    def measure(self, text: str, font_size: float) -> Tuple[float, float]:
        left, top, right, bottom = self._font(font_size).getbbox(text)
        return float(right - left), float(bottom - top)

    def _coverage(self, glyph: Glyph, padding: float) -> np.ndarray:
        if glyph.shape == "rect":
            return _rect_coverage(glyph.width + padding, glyph.height + padding, glyph.angle)

        font = self._font(glyph.font_size + padding)
        left, top, right, bottom = font.getbbox(glyph.text)
        image = Image.new("L", (max(right - left, 1), max(bottom - top, 1)), 0)
        ImageDraw.Draw(image).text((-left, -top), glyph.text, font=font, fill=255)
        if glyph.angle % 360:
            image = image.rotate(-glyph.angle, expand=True, resample=Image.Resampling.BICUBIC, fillcolor=0)
        return np.array(image, dtype=np.uint8)


class HeadlessSurface(_BufferSurface):
    """Software surface that treats every glyph as its filled bounding box."""

    name = "headless"

    def __init__(self, size: Tuple[int, int], *, glyph_width_factor: float = GLYPH_WIDTH_FACTOR) -> None:
        super().__init__(size)
        self.glyph_width_factor = glyph_width_factor

    def measure(self, text: str, font_size: float) -> Tuple[float, float]:
        glyphs = max(len(text), 1)
        return glyphs * font_size * self.glyph_width_factor, float(font_size)

    def _coverage(self, glyph: Glyph, padding: float) -> np.ndarray:
        if glyph.shape == "rect" or not glyph.font_size:
            width, height = glyph.width + padding, glyph.height + padding
        else:
            width, height = self.measure(glyph.text, glyph.font_size + padding)
        if not glyph.angle % 180:
            return np.full((max(math.ceil(height), 1), max(math.ceil(width), 1)), 255, dtype=np.uint8)
        return _rect_coverage(width, height, glyph.angle)


def get_surface(
    preferred: str | None = None,
    *,
    size: Tuple[int, int],
    font_path: Path | str | None = None,
) -> RenderingSurface:
    """Return the best available surface, preferring real text over the headless stand-in."""

    normalized = (preferred or "").strip().lower()
    supported = {"", "pillow", "headless"}
    if normalized not in supported:
        raise ValueError(f"Unknown surface backend '{preferred}'")

    def candidate_order() -> list[str]:
        if normalized:
            return [normalized]
        return ["pillow", "headless"]

    last_error: Exception | None = None
    for name in candidate_order():
        try:
            if name == "pillow":
                return PillowSurface(size, font_path=font_path)
            if name == "headless":
                return HeadlessSurface(size)
        except OSError as exc:
            last_error = exc
            if normalized:
                raise
            logger.warning("Surface backend %r unavailable: %s", name, exc)
            continue

    raise RuntimeError("No rendering surface backend is available") from last_error


__all__ = [
    "HeadlessSurface",
    "PillowSurface",
    "RenderingSurface",
    "alpha_over",
    "buffer_origin",
    "crop_region",
    "get_surface",
    "parse_color",
]
