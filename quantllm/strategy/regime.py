"""Indicator stage: RSI(14) reading with an EMA-confirmed regime.

Regime rule (applied uniformly):
    - **Bullish**: RSI > 50 AND EMA(12) > EMA(26).
    - **Bearish**: RSI < 50 AND EMA(12) < EMA(26).
    - **Neutral**: everything else (momentum and trend disagree, or RSI
      sits exactly on the midline).
"""

from collections.abc import Sequence

from quantllm.strategy.indicators import RSI_NEUTRAL, ema, rsi
from quantllm.strategy.models import Candle, IndicatorResult

RSI_PERIOD = 14
EMA_FAST = 12
EMA_SLOW = 26
OVERBOUGHT = 70.0
OVERSOLD = 30.0


def classify_regime(rsi_value: float, ema_fast: float, ema_slow: float) -> str:
    """Combine RSI position and EMA cross into a regime label."""
    if rsi_value > 50 and ema_fast > ema_slow:
        return "Bullish"
    if rsi_value < 50 and ema_fast < ema_slow:
        return "Bearish"
    return "Neutral"


def compute_indicator(candles: Sequence[Candle]) -> IndicatorResult:
    """Compute the RSI regime of *candles* (oldest-first).

    With fewer than 2 candles the result is neutral: RSI 50, no
    overbought/oversold flag, zero confidence.
    """
    if len(candles) < 2:
        return IndicatorResult(
            rsi=RSI_NEUTRAL,
            regime="Neutral",
            overbought=False,
            oversold=False,
            confidence=0.0,
        )

    closes = [c.close for c in candles]
    rsi_value = rsi(closes, RSI_PERIOD)
    fast = ema(closes, EMA_FAST)
    slow = ema(closes, EMA_SLOW)

    return IndicatorResult(
        rsi=rsi_value,
        regime=classify_regime(rsi_value, fast, slow),
        overbought=rsi_value >= OVERBOUGHT,
        oversold=rsi_value <= OVERSOLD,
        confidence=min(1.0, abs(rsi_value - 50.0) / 50.0),
    )
