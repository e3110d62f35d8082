"""Command line entry point: compose the signal envelope for a briefing file."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from geosignals.config.settings import RealOnlyPolicy, get_settings
from geosignals.pipelines.orchestration import compose_signals
from geosignals.shared.models import Briefing

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compose geo signals for a business briefing.")
    parser.add_argument("briefing", type=Path, help="Path to the briefing JSON file.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--real-only",
        dest="real_only",
        action="store_true",
        default=None,
        help="Forbid derived data (overrides GEOSIGNALS_REAL_ONLY).",
    )
    mode.add_argument(
        "--no-real-only",
        dest="real_only",
        action="store_false",
        help="Allow derived data (overrides GEOSIGNALS_REAL_ONLY).",
    )
    parser.add_argument("--output", type=Path, default=None, help="Write the envelope here.")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def load_briefing(path: Path) -> Briefing:
    payload = json.loads(path.read_text(encoding="utf-8"))
    return Briefing.model_validate(payload)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        briefing = load_briefing(args.briefing)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not read briefing %s: %s", args.briefing, exc)
        return 2
    except ValidationError as exc:
        logger.error("Invalid briefing %s: %s", args.briefing, exc)
        return 2

    settings = get_settings()
    if args.real_only is None:
        policy = RealOnlyPolicy.from_settings(settings)
    else:
        policy = RealOnlyPolicy(enabled=args.real_only)

    envelope = compose_signals(briefing, policy=policy, settings=settings)
    text = json.dumps(envelope.to_payload(), indent=2, ensure_ascii=False)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info("Envelope written to %s", args.output)
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
