"""High-level APIs for one-shot cloud layout workflows."""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Any, Mapping, Sequence

from .config import CloudConfig
from .scheduler import LayoutResult, Listener, StepScheduler
from .surface import RenderingSurface, get_surface
from .words import Word


def generate_cloud(
    words: Sequence[Word | Mapping[str, Any]],
    config: CloudConfig | Mapping[str, Any] | None = None,
    *,
    surface: RenderingSurface | None = None,
    backend: str | None = None,
    rng: random.Random | None = None,
    listener: Listener | None = None,
) -> LayoutResult:
    """Lay out ``words`` synchronously and return the finished layout.

    Parameters
    ----------
    words:
        ``Word`` objects or ``{"word": ..., "size": ...}`` mappings.
    config:
        A :class:`CloudConfig` or a mapping of plugin-style option names.
    surface:
        Optional surface to draw on. When ``None`` one is created for the
        config's canvas using ``backend``.
    backend:
        ``"pillow"`` or ``"headless"``; ``None`` picks the best available.
    rng:
        Random source for jitter, angles and colours. Defaults to
        ``random.Random(config.seed)``.
    listener:
        ``callback(event, payload)`` receiving ``render-started``,
        ``progress`` and ``render-finished``.
    """

    if not isinstance(config, CloudConfig):
        config = CloudConfig.from_options(config)
    if surface is None:
        surface = get_surface(backend, size=config.canvas_size, font_path=config.font_path)

    scheduler = StepScheduler(words, config, surface=surface, rng=rng, listener=listener)
    result = scheduler.run()
    if result is None:  # pragma: no cover - run() always reaches STOP
        raise RuntimeError("layout did not finish")
    return result


def write_layout_json(result: LayoutResult, path: Path | str) -> Path:
    """Write the layout summary next to any other run artifacts and return its path."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(result.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    return target


__all__ = ["LayoutResult", "generate_cloud", "write_layout_json"]
