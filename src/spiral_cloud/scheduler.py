"""Cooperative state machine that drives a cloud layout one step at a time.

Each call to :meth:`StepScheduler.step` does one unit of work (a top-level
stage, or a single glyph placement) and then hands control back, so a host
loop can redraw, poll input or cancel between steps.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .config import SECTION_WEIGHTS, CloudConfig
from .glyphs import ColorBias, Glyph, make_glyphs, recolor
from .placement import Placer
from .surface import RenderingSurface, get_surface
from .words import Word, coerce_words, filter_words

logger = logging.getLogger(__name__)

EVENT_STARTED = "render-started"
EVENT_PROGRESS = "progress"
EVENT_FINISHED = "render-finished"

Listener = Callable[[str, Any], None]


class CloudState(enum.IntEnum):
    START = 0
    PROCESS_WORDS = 1
    MAKE_TEXTS = 2
    PLACE_WORDS = 3
    RENDER = 4
    FINISH = 5
    STOP = 6


class StepStatus(enum.Enum):
    RUNNING = "running"
    DONE = "done"


class ProgressTracker:
    """Weighted progress across the pipeline sections, reported only upward."""

    def __init__(self, weights: Sequence[int] = SECTION_WEIGHTS, emit: Optional[Callable[[float], None]] = None) -> None:
        self.weights = tuple(weights)
        self._emit = emit
        self.reset()

    def reset(self) -> None:
        self.sections = [0.0] * len(self.weights)
        self.value = 0.0
        self.history: List[float] = []

    def set(self, section: int, percent: float) -> None:
        """Record ``percent`` for 1-based ``section`` and emit if overall progress rose."""

        self.sections[section - 1] = percent
        total = sum(done * weight / 100.0 for done, weight in zip(self.sections, self.weights))
        if total > self.value:
            self.value = total
            self.history.append(total)
            if self._emit is not None:
                self._emit(total)


@dataclass
class EngineState:
    """Mutable per-run data; everything immutable lives in ``CloudConfig``."""

    state: CloudState = CloudState.START
    word_index: int = 0
    words: List[Word] = field(default_factory=list)
    filtered: List[Word] = field(default_factory=list)
    glyphs: List[Glyph] = field(default_factory=list)
    placed: List[Glyph] = field(default_factory=list)
    bias: ColorBias = field(default_factory=ColorBias)
    warnings: List[str] = field(default_factory=list)
    cancelled: bool = False
    started_at: float = 0.0


@dataclass(frozen=True)
class LayoutResult:
    """Finalised glyphs in placement (and draw) order, plus run diagnostics."""

    glyphs: Tuple[Glyph, ...]
    config: CloudConfig
    surface: str
    progress: Tuple[float, ...] = ()
    warnings: Tuple[str, ...] = ()
    cancelled: bool = False

    def __len__(self) -> int:
        return len(self.glyphs)

    @property
    def complete(self) -> bool:
        return not self.cancelled and bool(self.progress) and self.progress[-1] >= 100.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "surface": self.surface,
            "canvas_size": list(self.config.canvas_size),
            "strategy": "pixel" if self.config.cuddle else "box",
            "cancelled": self.cancelled,
            "warnings": list(self.warnings),
            "glyphs": [glyph.to_dict() for glyph in self.glyphs],
        }


class StepScheduler:
    """Drive START -> ... -> STOP, yielding after every stage and every glyph."""

    def __init__(
        self,
        words: Sequence[Word | Mapping[str, Any]] = (),
        config: CloudConfig | None = None,
        *,
        surface: RenderingSurface | None = None,
        rng: random.Random | None = None,
        listener: Listener | None = None,
    ) -> None:
        self.config = config or CloudConfig()
        self.surface = surface or get_surface(size=self.config.canvas_size, font_path=self.config.font_path)
        self.rng = rng or random.Random(self.config.seed)
        self.listener = listener
        self.progress = ProgressTracker(emit=self._emit_progress)
        self.engine = EngineState(words=coerce_words(words))
        self.placer = Placer(self.config, self.surface)
        self.result: LayoutResult | None = None
        self._cancel_requested = False
        self._stepping = False

    # -- transitions -----------------------------------------------------

    @property
    def state(self) -> CloudState:
        return self.engine.state

    @property
    def done(self) -> bool:
        return self.engine.state is CloudState.STOP and self.result is not None

    def reset(self, words: Sequence[Word | Mapping[str, Any]] | None = None) -> None:
        """Prepare a fresh run, optionally with new words, on a cleared surface."""

        if self._stepping:
            raise RuntimeError("cannot reset while a step is running")
        source = self.engine.words if words is None else coerce_words(words)
        self.engine = EngineState(words=list(source))
        self.placer = Placer(self.config, self.surface)
        self.progress.reset()
        self.surface.clear()
        self.result = None
        self._cancel_requested = False

    def cancel(self) -> None:
        """Stop at the next suspension point; scratch buffers are still released."""
        self._cancel_requested = True

    def _next_state(self) -> None:
        self.engine.state = CloudState(self.engine.state + 1)

    def _emit(self, event: str, payload: Any = None) -> None:
        if self.listener is not None:
            self.listener(event, payload)

    def _emit_progress(self, percent: float) -> None:
        self._emit(EVENT_PROGRESS, percent)

    # -- stepping --------------------------------------------------------

    def step(self) -> StepStatus:
        if self._stepping:
            raise RuntimeError("StepScheduler.step() is not re-entrant")
        if self.done:
            return StepStatus.DONE

        self._stepping = True
        try:
            if self._cancel_requested and not self.engine.cancelled:
                self._cancel()
            self._run_state()
        finally:
            self._stepping = False
        return StepStatus.DONE if self.done else StepStatus.RUNNING

    def _cancel(self) -> None:
        logger.debug("Cancelled in state %s at word %d", self.engine.state.name, self.engine.word_index)
        engine = self.engine
        engine.cancelled = True
        if engine.state >= CloudState.FINISH:
            return
        # Pixel-mode glyphs still carry their translucent placement colour.
        if self.config.cuddle and engine.placed:
            if engine.state <= CloudState.PLACE_WORDS:
                recolor(engine.placed, self.rng, engine.bias, self.config.text_brightness)
            self.surface.flush()
        engine.state = CloudState.FINISH

    def _run_state(self) -> None:
        engine = self.engine
        state = engine.state
        logger.debug("%s (%.1f ms)", state.name, self._elapsed_ms())

        if state is CloudState.START:
            self.progress.reset()
            engine.started_at = time.perf_counter()
            engine.bias = ColorBias.draw(self.rng, self.config.text_brightness)
            self.progress.set(1, 100)
            self._emit(EVENT_STARTED)
        elif state is CloudState.PROCESS_WORDS:
            engine.filtered = filter_words(engine.words, self.config.max_words)
            self.progress.set(2, 100)
        elif state is CloudState.MAKE_TEXTS:
            engine.glyphs = make_glyphs(engine.filtered, self.config, self.surface, self.rng, engine.bias)
            engine.word_index = 0
            self.progress.set(3, 100)
        elif state is CloudState.PLACE_WORDS:
            if self._place_next():
                return
        elif state is CloudState.RENDER:
            self.progress.set(4, 100)
            self.surface.flush()
            self.progress.set(5, 100)
        elif state is CloudState.FINISH:
            self.surface.dispose_scratch()
            self.progress.set(6, 100)
        elif state is CloudState.STOP:
            self._stop()
            return

        self._next_state()

    def _place_next(self) -> bool:
        """Place one glyph; return True while more glyphs are waiting."""

        engine = self.engine
        total = len(engine.glyphs)
        if engine.word_index < total:
            index = engine.word_index
            glyph = self.placer.place(engine.glyphs[index], engine.placed)
            engine.placed.append(glyph)
            self.progress.set(4, 100 * index / total)
            engine.word_index += 1
            if engine.word_index < total:
                return True

        if self.config.cuddle and engine.glyphs:
            recolor(engine.glyphs, self.rng, engine.bias, self.config.text_brightness)
        return False

    def _stop(self) -> None:
        engine = self.engine
        engine.warnings = self.placer.warnings
        self.result = LayoutResult(
            glyphs=tuple(engine.placed),
            config=self.config,
            surface=self.surface.name,
            progress=tuple(self.progress.history),
            warnings=tuple(engine.warnings),
            cancelled=engine.cancelled,
        )
        logger.debug("Done: %d glyphs in %.1f ms", len(engine.placed), self._elapsed_ms())
        self._emit(EVENT_FINISHED, self.result)

    def _elapsed_ms(self) -> float:
        if not self.engine.started_at:
            return 0.0
        return (time.perf_counter() - self.engine.started_at) * 1000.0

    # -- drivers ---------------------------------------------------------

    def __iter__(self) -> Iterator[CloudState]:
        """Step until done, yielding the state just executed at every suspension point."""

        while not self.done:
            current = self.engine.state
            self.step()
            yield current

    def run(self) -> LayoutResult | None:
        for _ in self:
            pass
        return self.result

    async def run_async(self) -> LayoutResult | None:
        """Like :meth:`run` but gives the event loop a turn between steps."""

        while not self.done:
            self.step()
            await asyncio.sleep(0)
        return self.result


__all__ = [
    "CloudState",
    "EVENT_FINISHED",
    "EVENT_PROGRESS",
    "EVENT_STARTED",
    "EngineState",
    "LayoutResult",
    "ProgressTracker",
    "StepScheduler",
    "StepStatus",
]
