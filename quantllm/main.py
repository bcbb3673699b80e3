"""QuantLLM: command-line entry point.

Runs the analysis pipeline on a JSON candle file or on a synthetic
random-walk series and prints the narrative (or a JSON report).
"""

import argparse
import json
import logging
import pathlib
import sys
from dataclasses import asdict
from typing import Optional

from quantllm.config import load_config
from quantllm.pipeline import run_pipeline_sync
from quantllm.strategy.models import Candle, PipelineResult
from quantllm.strategy.synthetic import make_synthetic_series

logger = logging.getLogger("quantllm")

_CANDLE_FIELDS = ("time", "open", "high", "low", "close", "volume")


def load_candles(path: str | pathlib.Path) -> list[Candle]:
    """Read a JSON array of ``{time, open, high, low, close, volume}`` objects.

    Raises ``ValueError`` naming the first malformed entry.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON array of candles")

    candles: list[Candle] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"{path}: candle {i} is not an object")
        missing = [k for k in _CANDLE_FIELDS if k not in item]
        if missing:
            raise ValueError(f"{path}: candle {i} missing {', '.join(missing)}")
        try:
            candles.append(Candle(
                time=int(item["time"]),
                open=float(item["open"]),
                high=float(item["high"]),
                low=float(item["low"]),
                close=float(item["close"]),
                volume=float(item["volume"]),
            ))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{path}: candle {i} has a non-numeric field ({exc})") from None
    return candles


def result_to_dict(result: PipelineResult) -> dict:
    """JSON-ready view of a pipeline result (candles omitted)."""
    ctx = result.context

    def _opt(value):
        return asdict(value) if value is not None else None

    return {
        "narrative": result.narrative,
        "data": {
            "indicator": _opt(ctx.indicator),
            "pattern": _opt(ctx.pattern),
            "trend": _opt(ctx.trend),
            "risk": _opt(ctx.risk),
            "visuals": result.visuals.to_dict() if result.visuals is not None else None,
            "signals": [asdict(s) for s in result.signals],
        },
        "errors": result.error_tags,
    }


def _run_cli(argv: Optional[list[str]] = None) -> int:
    """Parse CLI arguments, run one analysis and print it."""
    parser = argparse.ArgumentParser(description="QuantLLM market-state analysis")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--candles", help="Path to a JSON candle file")
    source.add_argument(
        "--synthetic",
        type=int,
        default=120,
        help="Number of synthetic candles when no file is given (default: 120)",
    )
    parser.add_argument("--seed", type=int, help="Seed for the synthetic series")
    parser.add_argument("--json", action="store_true", help="Print a JSON report")
    parser.add_argument("--env", help="Path to a .env file")
    args = parser.parse_args(argv)

    config = load_config(env_path=args.env)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.candles:
        candles = load_candles(args.candles)
        logger.info("Loaded %d candles from %s", len(candles), args.candles)
    else:
        candles = make_synthetic_series(args.synthetic, 1.0, seed=args.seed)
        logger.info("Generated %d synthetic candles", len(candles))

    result = run_pipeline_sync(candles, config=config)
    for err in result.errors:
        logger.warning("Stage error: %s", err.tag)

    if args.json:
        print(json.dumps(result_to_dict(result), indent=2, ensure_ascii=False))
    else:
        print(result.narrative)
        for s in result.signals:
            print(f"  {s.type} @ #{s.index} (score={s.score:.2f}): {s.reason}")
    return 0


if __name__ == "__main__":
    sys.exit(_run_cli())
