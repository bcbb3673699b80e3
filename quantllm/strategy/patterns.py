"""Candlestick pattern stage: two-candle engulfing and doji detection.

Rules, checked in this order on the last candle pair:
    1. **Doji**: last body <= 0.1 % of the last close (strength 0.4).
       Short-circuits the engulfing checks.
    2. **Bullish engulfing**: bullish candle whose body covers the
       previous bearish body.
    3. **Bearish engulfing**: the mirror image.
    4. Otherwise **None**.

Engulfing strength is the body-size ratio ``last / prev``, capped at 1.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Optional, Protocol

from quantllm.strategy.models import Candle, PatternResult

logger = logging.getLogger("quantllm.patterns")

DOJI_BODY_RATIO = 0.001
DOJI_STRENGTH = 0.4
_EPSILON = 1e-9  # guards a zero-size previous body
MAX_SUMMARY_CHARS = 200

_NO_PATTERN = PatternResult(pattern="None", strength=0.0)

_PROMPTS: dict[str, str] = {
    "Doji": "Explain what a Doji means succinctly for a trader (1 sentence).",
    "BullishEngulfing": (
        "Explain the trade significance of a bullish engulfing pattern "
        "succinctly (1 sentence)."
    ),
    "BearishEngulfing": (
        "Explain the trade significance of a bearish engulfing pattern "
        "succinctly (1 sentence)."
    ),
}


def _body_engulfs(outer: Candle, inner: Candle) -> bool:
    """True if *outer*'s body range contains *inner*'s body range."""
    return (
        min(outer.open, outer.close) <= min(inner.open, inner.close)
        and max(outer.open, outer.close) >= max(inner.open, inner.close)
    )


def classify_pair(prev: Candle, last: Candle) -> PatternResult:
    """Classify the pattern formed by *last* following *prev*."""
    prev_body = abs(prev.close - prev.open)
    last_body = abs(last.close - last.open)

    if last_body <= DOJI_BODY_RATIO * last.close:
        return PatternResult(pattern="Doji", strength=DOJI_STRENGTH)

    engulfs = _body_engulfs(last, prev)
    if not engulfs:
        return _NO_PATTERN

    strength = min(1.0, last_body / (prev_body + _EPSILON))
    if last.close > last.open and prev.close < prev.open:
        return PatternResult(pattern="BullishEngulfing", strength=strength)
    if last.close < last.open and prev.close > prev.open:
        return PatternResult(pattern="BearishEngulfing", strength=strength)
    return _NO_PATTERN


def compute_pattern(candles: Sequence[Candle]) -> PatternResult:
    """Classify the most recent two candles; earlier history is ignored."""
    if len(candles) < 2:
        return _NO_PATTERN
    return classify_pair(candles[-2], candles[-1])


def describe_pattern(pattern: str) -> str:
    """Human-readable meaning of a pattern name."""
    if pattern == "BullishEngulfing":
        return "Bullish reversal signal: large green candle engulfs previous red candle"
    if pattern == "BearishEngulfing":
        return "Bearish reversal signal: large red candle engulfs previous green candle"
    if pattern == "Doji":
        return "Indecision signal: open and close prices are nearly equal"
    return "No significant pattern detected"


# ── Optional text enrichment ─────────────────────────────────────────────


class TextGenerator(Protocol):
    """Anything that turns a prompt into a short piece of text."""

    async def generate(self, prompt: str) -> str:
        ...


async def enrich_pattern(
    result: PatternResult,
    client: Optional[TextGenerator],
) -> PatternResult:
    """Attach a one-sentence ``ai_summary`` to *result*, best effort.

    Pattern name and strength are never changed.  Any failure of the
    text service returns *result* untouched.
    """
    prompt = _PROMPTS.get(result.pattern)
    if client is None or prompt is None:
        return result

    try:
        summary = await client.generate(prompt)
    except Exception as exc:
        logger.debug("Pattern summary unavailable (keeping bare pattern): %s", exc)
        return result

    summary = " ".join((summary or "").split())
    if not summary:
        return result
    return replace(result, ai_summary=summary[:MAX_SUMMARY_CHARS])
