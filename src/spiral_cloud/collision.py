"""Collision predicates for the two placement strategies.

The box strategy guarantees that glyph bounding boxes never intersect. The
pixel strategy only guarantees that a candidate's padded footprint does not
cover opaque foreground already on the surface, which lets words nest inside
each other's letter shapes. The two are not interchangeable.
"""

from __future__ import annotations

from typing import Iterator

import numpy as np

from .glyphs import Bounds, Glyph

OPAQUE_ALPHA = (254, 255)
BACKGROUND_RED = 255


def rectangles_intersect(a: Bounds, b: Bounds) -> bool:
    """Separating-axis test on ``(x1, y1, x2, y2)`` boxes; touching counts."""

    ax1, ay1, ax2, ay2 = a
    bx1, by1, bx2, by2 = b
    if ax2 < bx1:  # a is left of b
        return False
    if ax1 > bx2:  # a is right of b
        return False
    if ay2 < by1:  # a is above b
        return False
    if ay1 > by2:  # a is below b
        return False
    return True


def glyphs_intersect(a: Glyph, b: Glyph) -> bool:
    return rectangles_intersect(a.bounds(), b.bounds())


def middle_out_rows(height: int) -> Iterator[int]:
    """Yield ``mid, mid-1, mid+1, mid-2, ...`` covering every row once."""

    if height <= 0:
        return
    mid = height // 2
    yield mid
    for step in range(1, height):
        below = mid - step
        above = mid + step
        if below < 0 and above >= height:
            return
        if below >= 0:
            yield below
        if above < height:
            yield above


def occupied_pixels(region: np.ndarray) -> np.ndarray:
    """Composed pixels holding foreground: opaque and not background white."""

    alpha = region[..., 3]
    return ((alpha == OPAQUE_ALPHA[0]) | (alpha == OPAQUE_ALPHA[1])) & (region[..., 0] != BACKGROUND_RED)


def candidate_coverage(mask: np.ndarray) -> np.ndarray:
    """Pixels the candidate's own (black, translucent) rendering touches."""
    return (mask[..., 3] != 0) & (mask[..., 0] == 0)


def pixel_collides(region: np.ndarray, mask: np.ndarray) -> bool:
    """True if any covered candidate pixel lands on existing foreground.

    Rows are scanned from the middle outward, since glyphs most often meet
    near their vertical centre, and the scan stops at the first hit.
    """

    if region.shape != mask.shape:
        raise ValueError(f"region shape {region.shape} does not match mask shape {mask.shape}")

    hits = occupied_pixels(region)
    covered = candidate_coverage(mask)
    for row in middle_out_rows(region.shape[0]):
        if np.any(hits[row] & covered[row]):
            return True
    return False


__all__ = [
    "candidate_coverage",
    "glyphs_intersect",
    "middle_out_rows",
    "occupied_pixels",
    "pixel_collides",
    "rectangles_intersect",
]
