"""Signal synthesis: pure functions, no I/O.

Rebuilds full-length RSI and EMA series plus the pattern events of every
consecutive candle pair, then scans for BUY/SELL events with a fixed
rule table.  Evaluated per index from ``WARMUP`` onwards, first match
wins, at most one signal per index:

* **BUY**: EMA(12) > EMA(26) × 1.001, 55 < RSI < 70, and a bullish
  engulfing pattern at the index or the one before it.
* **SELL**: EMA(12) < EMA(26) × 0.999, 30 < RSI < 45, and a bearish
  engulfing pattern at the index or the one before it.

Score is ``0.5 + min(0.5, strength × 0.5)`` for both directions.
"""

from collections.abc import Sequence
from typing import Optional

from quantllm.strategy.indicators import ema_series, rsi_series
from quantllm.strategy.models import (
    Candle,
    PatternEvent,
    SignalEvent,
    VisualSeries,
)
from quantllm.strategy.patterns import classify_pair
from quantllm.strategy.regime import EMA_FAST, EMA_SLOW, OVERBOUGHT, OVERSOLD, RSI_PERIOD
from quantllm.strategy.trend import DEADBAND

# No signal before the slow EMA has a full seed window.
WARMUP = EMA_SLOW

BUY_RSI_BAND = (55.0, 70.0)
SELL_RSI_BAND = (30.0, 45.0)

BUY_REASON = "Uptrend + RSI>55 + Bullish Engulfing"
SELL_REASON = "Downtrend + RSI<45 + Bearish Engulfing"


def detect_pattern_events(candles: Sequence[Candle]) -> list[PatternEvent]:
    """Apply the pattern rules to every consecutive candle pair.

    The event for pair ``(i-1, i)`` is stored at index ``i``.  Pairs
    without a pattern produce no event.
    """
    events: list[PatternEvent] = []
    for i in range(1, len(candles)):
        result = classify_pair(candles[i - 1], candles[i])
        if result.pattern != "None":
            events.append(
                PatternEvent(index=i, pattern=result.pattern, strength=result.strength)
            )
    return events


def _score(strength: float) -> float:
    return 0.5 + min(0.5, strength * 0.5)


def _find_event(
    by_index: dict[int, PatternEvent], i: int, pattern: str
) -> Optional[PatternEvent]:
    """Event of type *pattern* at index *i*, else at ``i - 1``."""
    for j in (i, i - 1):
        event = by_index.get(j)
        if event is not None and event.pattern == pattern:
            return event
    return None


def scan_signals(
    candles: Sequence[Candle],
    rsi_values: Sequence[float],
    ema_fast: Sequence[float],
    ema_slow: Sequence[float],
    pattern_events: Sequence[PatternEvent],
) -> list[SignalEvent]:
    """Evaluate the rule table at every index from ``WARMUP`` to the end.

    All series must be aligned with *candles*.  Returns signals ordered
    by index.
    """
    by_index = {e.index: e for e in pattern_events}
    signals: list[SignalEvent] = []

    for i in range(WARMUP, len(candles)):
        r = rsi_values[i]
        up = ema_fast[i] > ema_slow[i] * (1 + DEADBAND)
        down = ema_fast[i] < ema_slow[i] * (1 - DEADBAND)

        if up and BUY_RSI_BAND[0] < r < BUY_RSI_BAND[1]:
            event = _find_event(by_index, i, "BullishEngulfing")
            if event is not None:
                signals.append(SignalEvent(
                    index=i,
                    time=candles[i].time,
                    type="BUY",
                    score=_score(event.strength),
                    reason=BUY_REASON,
                ))
                continue

        if down and SELL_RSI_BAND[0] < r < SELL_RSI_BAND[1]:
            event = _find_event(by_index, i, "BearishEngulfing")
            if event is not None:
                signals.append(SignalEvent(
                    index=i,
                    time=candles[i].time,
                    type="SELL",
                    score=_score(event.strength),
                    reason=SELL_REASON,
                ))

    return signals


def compute_visuals_and_signals(
    candles: Sequence[Candle],
) -> tuple[VisualSeries, list[SignalEvent]]:
    """Build the charting series and the signal list from raw candles."""
    closes = [c.close for c in candles]
    rsi_values = rsi_series(closes, RSI_PERIOD)
    fast = ema_series(closes, EMA_FAST)
    slow = ema_series(closes, EMA_SLOW)
    events = detect_pattern_events(candles)
    signals = scan_signals(candles, rsi_values, fast, slow, events)

    visuals = VisualSeries(
        times=tuple(c.time for c in candles),
        price=tuple(closes),
        rsi=tuple(rsi_values),
        ema_fast=tuple(fast),
        ema_slow=tuple(slow),
        pattern_events=tuple(events),
        signals=tuple(signals),
        overbought=OVERBOUGHT,
        oversold=OVERSOLD,
    )
    return visuals, signals
