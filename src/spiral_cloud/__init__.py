"""spiral_cloud package."""

from .api import generate_cloud, write_layout_json
from .collision import glyphs_intersect, pixel_collides, rectangles_intersect
from .config import CloudConfig
from .glyphs import Glyph
from .placement import Placer
from .scheduler import CloudState, LayoutResult, StepScheduler, StepStatus
from .spiral import SpiralCursor, spiral_point
from .surface import HeadlessSurface, PillowSurface, RenderingSurface, get_surface
from .words import Word, filter_words

__all__ = [
	"CloudConfig",
	"Word",
	"filter_words",
	"spiral_point",
	"SpiralCursor",
	"Glyph",
	"rectangles_intersect",
	"glyphs_intersect",
	"pixel_collides",
	"Placer",
	"CloudState",
	"StepStatus",
	"StepScheduler",
	"LayoutResult",
	"RenderingSurface",
	"PillowSurface",
	"HeadlessSurface",
	"get_surface",
	"generate_cloud",
	"write_layout_json",
]
__version__ = "0.1.0"
