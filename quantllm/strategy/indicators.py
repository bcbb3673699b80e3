"""Technical indicators: RSI and EMA over a close series. Pure functions, no I/O."""

from collections.abc import Sequence

# Returned by ``rsi`` until there are ``period + 1`` closes to seed it.
RSI_NEUTRAL = 50.0


def ema(closes: Sequence[float], period: int) -> float:
    """Return the Exponential Moving Average at the last close.

    Uses the standard EMA formula:
        ``EMA_today = close × k + EMA_yesterday × (1 - k)``
    where ``k = 2 / (period + 1)``.

    The first EMA value is seeded with the SMA of the first *period*
    closes.  With fewer than *period* closes the SMA of whatever is
    available is returned.

    Raises ``ValueError`` if *closes* is empty or *period* < 1.
    """
    if period < 1:
        raise ValueError(f"EMA period must be >= 1, got {period}")
    if not closes:
        raise ValueError(f"Need at least 1 close for EMA({period}), got 0")

    if len(closes) < period:
        return sum(closes) / len(closes)

    k = 2.0 / (period + 1)
    value = sum(closes[:period]) / period
    for close in closes[period:]:
        value = close * k + value * (1 - k)
    return value


def rsi(closes: Sequence[float], period: int = 14) -> float:
    """Return Wilder's Relative Strength Index at the last close.

    Algorithm (Wilder-smoothed):
        1. delta = close[i] - close[i-1]
        2. Separate gains (positive) and losses (|negative|).
        3. Seed average gain/loss = SMA of first *period* deltas.
        4. Subsequent: avg = (prev_avg × (period-1) + current) / period
        5. RS = avg_gain / avg_loss
        6. RSI = 100 - 100 / (1 + RS)

    Returns ``RSI_NEUTRAL`` (50.0) when fewer than ``period + 1`` closes
    are given.  A zero average loss gives 100.0, or 50.0 when the average
    gain is zero as well (perfectly flat series).
    """
    if period < 1:
        raise ValueError(f"RSI period must be >= 1, got {period}")
    if len(closes) < period + 1:
        return RSI_NEUTRAL

    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(d, 0.0) for d in deltas]
    losses = [abs(min(d, 0.0)) for d in deltas]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else RSI_NEUTRAL
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


# ── Historical series ────────────────────────────────────────────────────
# Each point is recomputed from the prefix ending at that index, so the
# series agrees exactly with calling ``rsi``/``ema`` on a truncated input.


def rsi_series(closes: Sequence[float], period: int = 14) -> list[float]:
    """RSI at every index, one value per close."""
    return [rsi(closes[: i + 1], period) for i in range(len(closes))]


def ema_series(closes: Sequence[float], period: int) -> list[float]:
    """EMA at every index, one value per close."""
    return [ema(closes[: i + 1], period) for i in range(len(closes))]
