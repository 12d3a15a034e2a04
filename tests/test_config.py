from __future__ import annotations

from pathlib import Path

import pytest

from spiral_cloud import CloudConfig


def test_defaults_match_plugin_settings() -> None:
    config = CloudConfig()
    assert config.canvas_size == (800, 800)
    assert config.max_words == 200
    assert config.text_brightness == 150
    assert config.word_scale == 100.0
    assert config.word_scale_offset == 6.0
    assert config.spread == 25.0
    assert config.padding == 8
    assert config.cuddle is False


def test_numeric_options_are_clamped() -> None:
    config = CloudConfig(
        spread=500,
        text_brightness=999,
        debug=9,
        text_angle=0,
        max_words=-4,
        word_scale=-1,
        padding=-2,
    )
    assert config.spread == 100.0
    assert config.text_brightness == 255
    assert config.debug == 3
    assert config.text_angle == 1
    assert config.max_words == 0
    assert config.word_scale == 0.0
    assert config.padding == 0

    assert CloudConfig(spread=0).spread == 1.0


def test_from_options_accepts_aliases_and_ignores_unknown_keys() -> None:
    config = CloudConfig.from_options(
        {"text_scale": 80, "text_scale_offset": 3, "controls": {}, "cuddle": 1},
        spread=None,
        font_path="fonts/Example.ttf",
    )
    assert config.word_scale == 80.0
    assert config.word_scale_offset == 3.0
    assert config.cuddle is True
    assert config.spread == 25.0
    assert config.font_path == Path("fonts/Example.ttf")


def test_config_is_immutable() -> None:
    config = CloudConfig()
    with pytest.raises(Exception):
        config.spread = 10  # type: ignore[misc]


@pytest.mark.parametrize("size", [(0, 100), (100, -1)])
def test_non_positive_canvas_is_rejected(size: tuple[int, int]) -> None:
    with pytest.raises(ValueError):
        CloudConfig(width=size[0], height=size[1])


def test_fractional_canvas_that_truncates_to_zero_is_rejected() -> None:
    with pytest.raises(ValueError):
        CloudConfig(width=0.5, height=100)
    assert CloudConfig(width=10.9, height=20.2).canvas_size == (10, 20)
