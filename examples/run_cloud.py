"""CLI helper to lay out a word cloud from a JSON word list."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from spiral_cloud import CloudConfig, generate_cloud, write_layout_json

logger = logging.getLogger("run_cloud")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "words",
        type=Path,
        help="JSON file: a list of {word, size} entries, or {\"words\": [...], \"options\": {...}}.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("output") / "layout.json",
        help="Where to write the layout summary (default: output/layout.json).",
    )
    parser.add_argument(
        "--backend",
        choices=("pillow", "headless"),
        default=None,
        help="Rendering surface backend (default: best available).",
    )
    parser.add_argument("--max-words", type=int, default=None, help="Keep only the N heaviest words.")
    parser.add_argument("--spread", type=float, default=None, help="Spiral spread, 1-100.")
    parser.add_argument("--angle", type=int, default=None, help="Angle mode: 1 flat, 2 tetris, 3 jumble, 4 shatter.")
    parser.add_argument("--cuddle", action="store_true", help="Pack words pixel-tight instead of by bounding box.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible layout.")
    parser.add_argument("--font", type=Path, default=None, help="TrueType font for the Pillow backend.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: INFO).",
    )
    return parser.parse_args(argv)


def load_words(path: Path) -> tuple[list[dict[str, Any]], dict[str, Any]]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, list):
        return payload, {}
    return list(payload["words"]), dict(payload.get("options", {}))


def build_config(args: argparse.Namespace, options: dict[str, Any]) -> CloudConfig:
    overrides = {
        "max_words": args.max_words,
        "spread": args.spread,
        "text_angle": args.angle,
        "seed": args.seed,
        "font_path": args.font,
    }
    if args.cuddle:
        overrides["cuddle"] = True
    return CloudConfig.from_options(options, **overrides)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    words, options = load_words(args.words)
    config = build_config(args, options)

    def on_event(event: str, payload: Any) -> None:
        if event == "progress":
            logger.debug("progress %.1f%%", payload)
        else:
            logger.info(event)

    result = generate_cloud(words, config, backend=args.backend, listener=on_event)
    path = write_layout_json(result, args.output)
    logger.info("Placed %d of %d words on %s -> %s", len(result), len(words), result.surface, path)
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
