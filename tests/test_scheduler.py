from __future__ import annotations

import asyncio
import itertools
import math
import random
from typing import Any

import pytest

from spiral_cloud import CloudConfig, CloudState, HeadlessSurface, StepScheduler, StepStatus, glyphs_intersect
from spiral_cloud.config import ANGLE_JUMBLE, ANGLE_SHATTER, ANGLE_TETRIS
from spiral_cloud.surface import parse_color

WORDS = [
    {"word": "did", "size": 9},
    {"word": "today", "size": 13},
    {"word": "tonight", "size": 4},
    {"word": "story", "size": 3},
]


def _scheduler(words: Any = WORDS, listener: Any = None, **options: Any) -> StepScheduler:
    options.setdefault("width", 400)
    options.setdefault("height", 400)
    options.setdefault("seed", 7)
    config = CloudConfig(**options)
    return StepScheduler(words, config, surface=HeadlessSurface(config.canvas_size), listener=listener)


def test_states_run_in_order_with_one_step_per_glyph() -> None:
    scheduler = _scheduler()
    visited = list(scheduler)
    assert visited == [
        CloudState.START,
        CloudState.PROCESS_WORDS,
        CloudState.MAKE_TEXTS,
        CloudState.PLACE_WORDS,
        CloudState.PLACE_WORDS,
        CloudState.PLACE_WORDS,
        CloudState.PLACE_WORDS,
        CloudState.RENDER,
        CloudState.FINISH,
        CloudState.STOP,
    ]
    assert scheduler.done
    assert [glyph.text for glyph in scheduler.result.glyphs] == ["today", "did", "tonight", "story"]


def test_step_reports_running_until_done() -> None:
    scheduler = _scheduler()
    statuses = []
    while True:
        status = scheduler.step()
        statuses.append(status)
        if status is StepStatus.DONE:
            break
    assert statuses[:-1] == [StepStatus.RUNNING] * (len(statuses) - 1)
    assert scheduler.step() is StepStatus.DONE


def test_events_and_progress_are_monotonic_and_end_at_100() -> None:
    events: list[tuple[str, Any]] = []
    result = _scheduler(listener=lambda name, payload: events.append((name, payload))).run()

    names = [name for name, _ in events]
    assert names[0] == "render-started"
    assert names[-1] == "render-finished"
    assert events[-1][1] is result

    progress = [payload for name, payload in events if name == "progress"]
    assert progress == list(result.progress)
    assert all(b > a for a, b in zip(progress, progress[1:]))
    assert progress[-1] == pytest.approx(100.0)
    assert result.complete


def test_box_layout_has_no_overlaps() -> None:
    words = [{"word": f"word{i}", "size": 30 - i} for i in range(25)]
    result = _scheduler(words).run()
    assert len(result) == 25
    for a, b in itertools.combinations(result.glyphs, 2):
        assert not glyphs_intersect(a, b)


def test_seeded_runs_are_reproducible() -> None:
    first = _scheduler(seed=1234).run()
    second = _scheduler(seed=1234).run()
    assert [(g.x, g.y, g.color) for g in first.glyphs] == [(g.x, g.y, g.color) for g in second.glyphs]


def test_injected_rng_drives_the_layout() -> None:
    config = CloudConfig(width=400, height=400)
    layouts = []
    for _ in range(2):
        scheduler = StepScheduler(WORDS, config, surface=HeadlessSurface(config.canvas_size), rng=random.Random(99))
        layouts.append([(g.x, g.y) for g in scheduler.run().glyphs])
    assert layouts[0] == layouts[1]


def test_empty_input_gives_empty_layout() -> None:
    result = _scheduler([]).run()
    assert len(result) == 0
    assert result.progress[-1] == pytest.approx(100.0)
    assert result.warnings == ()


def test_max_words_limits_the_layout() -> None:
    result = _scheduler(max_words=2).run()
    assert [glyph.text for glyph in result.glyphs] == ["today", "did"]


def test_cuddle_run_recolours_glyphs_at_the_end() -> None:
    scheduler = _scheduler(cuddle=True, text_brightness=200)
    seen_opacity = []
    for state in scheduler:
        if state is CloudState.PLACE_WORDS and scheduler.state is CloudState.PLACE_WORDS:
            seen_opacity.append(scheduler.engine.placed[-1].opacity)
    assert seen_opacity and all(opacity == 0.5 for opacity in seen_opacity)
    assert all(glyph.opacity == 1.0 for glyph in scheduler.result.glyphs)
    for glyph in scheduler.result.glyphs:
        assert all(int(glyph.color[i : i + 2], 16) <= 200 for i in (1, 3, 5))


def test_cancel_stops_at_next_suspension_point() -> None:
    words = [{"word": f"word{i}", "size": 30 - i} for i in range(10)]
    events: list[str] = []
    scheduler = _scheduler(words, listener=lambda name, payload: events.append(name))
    for state in scheduler:
        if state is CloudState.PLACE_WORDS:
            scheduler.cancel()
            break

    result = scheduler.run()
    assert result.cancelled
    assert not result.complete
    assert len(result) == 1
    assert events[-1] == "render-finished"


def test_cancelled_cuddle_run_still_recolours_placed_glyphs() -> None:
    words = [{"word": f"word{i}", "size": 30 - i} for i in range(8)]
    scheduler = _scheduler(words, cuddle=True, text_brightness=200, word_scale=30)
    placed = 0
    for state in scheduler:
        if state is CloudState.PLACE_WORDS:
            placed += 1
            if placed == 3:
                scheduler.cancel()
                break

    result = scheduler.run()
    assert result.cancelled
    assert len(result) == 3

    bias = scheduler.engine.bias
    for glyph in result.glyphs:
        assert glyph.opacity == 1.0
        red, green, blue = parse_color(glyph.color)
        assert math.floor(bias.red) <= red <= 200
        assert math.floor(bias.green) <= green <= 200
        assert math.floor(bias.blue) <= blue <= 200

    # The composed surface shows the final colours, not the grey placeholders.
    pixels = scheduler.surface.pixels
    for glyph in result.glyphs:
        x, y = int(glyph.x), int(glyph.y)
        if 0 <= x < pixels.shape[1] and 0 <= y < pixels.shape[0]:
            assert tuple(pixels[y, x, :3]) == parse_color(glyph.color)


@pytest.mark.parametrize("mode", [ANGLE_TETRIS, ANGLE_JUMBLE, ANGLE_SHATTER])
def test_rotated_box_layout_has_no_overlaps(mode: int) -> None:
    words = [{"word": f"word{i}", "size": 30 - i} for i in range(12)]
    result = _scheduler(words, text_angle=mode, word_scale=40).run()
    assert len(result) == 12
    if mode != ANGLE_TETRIS:
        assert any(glyph.angle != 0 for glyph in result.glyphs)
    for a, b in itertools.combinations(result.glyphs, 2):
        assert not glyphs_intersect(a, b), (a.text, b.text)


def test_step_is_not_reentrant() -> None:
    holder: dict[str, StepScheduler] = {}

    def listener(name: str, payload: Any) -> None:
        if name == "render-started":
            holder["scheduler"].step()

    holder["scheduler"] = _scheduler(listener=listener)
    with pytest.raises(RuntimeError):
        holder["scheduler"].step()


def test_reset_allows_a_second_run() -> None:
    scheduler = _scheduler()
    first = scheduler.run()
    scheduler.reset(WORDS[:2])
    assert scheduler.state is CloudState.START
    second = scheduler.run()
    assert len(first) == 4
    assert [glyph.text for glyph in second.glyphs] == ["today", "did"]


def test_run_async_yields_between_steps() -> None:
    ticks = 0

    async def ticker() -> None:
        nonlocal ticks
        while True:
            ticks += 1
            await asyncio.sleep(0)

    async def main() -> Any:
        task = asyncio.create_task(ticker())
        result = await _scheduler().run_async()
        task.cancel()
        return result

    result = asyncio.run(main())
    assert len(result) == 4
    assert ticks > 5


def test_debug_mode_lays_out_placeholder_squares() -> None:
    result = _scheduler(debug=1).run()
    assert all(glyph.shape == "rect" for glyph in result.glyphs)
    today = result.glyphs[0]
    assert today.width == today.height == pytest.approx(13.0)
