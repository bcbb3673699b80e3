"""Trend detection: EMA(12)/EMA(26) direction with a 0.1 % deadband."""

from collections.abc import Sequence

from quantllm.strategy.indicators import ema
from quantllm.strategy.models import Candle, TrendResult

EMA_FAST = 12
EMA_SLOW = 26
DEADBAND = 0.001
# EMA gap (as a fraction of the slow EMA) that saturates strength at 1.0
FULL_STRENGTH_GAP = 0.01
# relative EMA gap treated as float noise on a flat series
_FLAT_TOLERANCE = 1e-12


def classify_trend(ema_fast: float, ema_slow: float) -> str:
    """Return "Up", "Down" or "Sideways" for an EMA pair."""
    if ema_fast > ema_slow * (1 + DEADBAND):
        return "Up"
    if ema_fast < ema_slow * (1 - DEADBAND):
        return "Down"
    return "Sideways"


def compute_trend(candles: Sequence[Candle]) -> TrendResult:
    """Classify trend direction and strength from closing prices.

    Args:
        candles: Candle history, oldest-first.

    Returns:
        ``TrendResult`` with direction "Up", "Down" or "Sideways".

    Rules:
        - **Up**: EMA(12) > EMA(26) × 1.001.
        - **Down**: EMA(12) < EMA(26) × 0.999.
        - **Sideways**: inside the deadband.
        - **strength**: |EMA gap| / (1 % of EMA(26)), capped at 1.
    """
    if not candles:
        return TrendResult(trend="Sideways", ema_fast=0.0, ema_slow=0.0, strength=0.0)

    closes = [c.close for c in candles]
    fast = ema(closes, EMA_FAST)
    slow = ema(closes, EMA_SLOW)

    if slow == 0 or abs(fast - slow) <= _FLAT_TOLERANCE * abs(slow):
        strength = 0.0
    else:
        strength = min(1.0, abs(fast - slow) / (abs(slow) * FULL_STRENGTH_GAP))

    return TrendResult(
        trend=classify_trend(fast, slow),
        ema_fast=fast,
        ema_slow=slow,
        strength=strength,
    )
