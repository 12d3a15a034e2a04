"""Spiral search that moves each glyph to a collision-free spot."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence

from .collision import glyphs_intersect, pixel_collides
from .config import SANITY_LIMIT, CloudConfig
from .glyphs import Glyph
from .spiral import SpiralCursor
from .surface import RenderingSurface, buffer_origin

logger = logging.getLogger(__name__)


@dataclass
class PlacementReport:
    """What happened while placing one glyph."""

    text: str
    strategy: str
    attempts: int = 0
    sanity_breaks: int = 0

    @property
    def degraded(self) -> bool:
        return self.sanity_breaks > 0


class Placer:
    """Places glyphs one at a time against the glyphs placed before them.

    Earlier glyphs are never moved; only the glyph being placed walks out
    along its spiral. The spiral's rotation sense flips for every new glyph
    to break up visible banding across the cloud.
    """

    def __init__(
        self,
        config: CloudConfig,
        surface: RenderingSurface,
        *,
        sanity_limit: int = SANITY_LIMIT,
    ) -> None:
        self.config = config
        self.surface = surface
        self.sanity_limit = sanity_limit
        self.direction = 1
        self.reports: List[PlacementReport] = []

    @property
    def strategy(self) -> str:
        return "pixel" if self.config.cuddle else "box"

    @property
    def warnings(self) -> List[str]:
        return [
            f"Sanity break placing {report.text!r} after {report.attempts} spiral steps"
            for report in self.reports
            if report.degraded
        ]

    def _cursor(self) -> SpiralCursor:
        self.direction = -1 if self.direction == 1 else 1
        return SpiralCursor(
            increment=self.config.spiral_increment,
            radius=self.config.spiral_radius,
            direction=self.direction,
        )

    def place(self, glyph: Glyph, placed: Sequence[Glyph]) -> Glyph:
        """Move ``glyph`` clear of ``placed``, add it to the surface and settle it."""

        if self.config.cuddle:
            report = self._place_pixel(glyph, placed)
        else:
            report = self._place_box(glyph, placed)
        self.surface.add_glyph(glyph)
        glyph.settled = True
        self.reports.append(report)
        logger.debug(
            "Placed %r at (%.1f, %.1f) after %d spiral steps",
            glyph.text,
            glyph.x,
            glyph.y,
            report.attempts,
        )
        return glyph

    def _sanity_break(self, glyph: Glyph, cursor: SpiralCursor, report: PlacementReport) -> None:
        report.sanity_breaks += 1
        logger.warning(
            "Sanity break! %r spread=%s spiral_radius=%s spiral_increment=%s",
            glyph.text,
            self.config.spread,
            cursor.radius,
            cursor.increment,
        )

    def _place_box(self, glyph: Glyph, placed: Sequence[Glyph]) -> PlacementReport:
        report = PlacementReport(text=glyph.text, strategy="box")
        cursor = self._cursor()
        x_orig, y_orig = glyph.x, glyph.y
        trace = self.config.debug >= 3

        # Moving the glyph can hit something that already tested clean, so
        # any move restarts the scan from the first placed glyph.
        rescan = True
        while rescan:
            rescan = False
            for other in placed:
                if other is glyph:
                    continue
                sane = 0
                while glyphs_intersect(glyph, other):
                    dx, dy = cursor.advance()
                    glyph.move_to(x_orig + dx, y_orig + dy)
                    if trace:
                        glyph.trace.append((glyph.x, glyph.y))
                    rescan = True
                    sane += 1
                    if sane > self.sanity_limit:
                        self._sanity_break(glyph, cursor, report)
                        break

        report.attempts = cursor.steps
        return report

    def _place_pixel(self, glyph: Glyph, placed: Sequence[Glyph]) -> PlacementReport:
        report = PlacementReport(text=glyph.text, strategy="pixel")
        if not placed:
            return report

        cursor = self._cursor()
        x_orig, y_orig = glyph.x, glyph.y
        trace = self.config.debug >= 3
        mask = self.surface.render_mask(glyph, self.config.padding)
        height, width = mask.shape[:2]

        while True:
            x, y = buffer_origin(glyph, mask.shape)
            region = self.surface.read_region(x, y, width, height)
            if not pixel_collides(region, mask):
                break
            if cursor.steps >= self.sanity_limit:
                self._sanity_break(glyph, cursor, report)
                break
            dx, dy = cursor.advance()
            glyph.move_to(float(math.floor(x_orig + dx)), float(math.floor(y_orig + dy)))
            if trace:
                glyph.trace.append((glyph.x, glyph.y))

        report.attempts = cursor.steps
        return report


__all__ = ["PlacementReport", "Placer"]
