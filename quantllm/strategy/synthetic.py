"""Synthetic OHLCV series for demos and tests."""

import random
from typing import Optional

from quantllm.strategy.models import Candle

DEFAULT_START_TIME = 1_704_067_200  # 2024-01-01T00:00:00Z


def make_synthetic_series(
    n: int = 120,
    start: float = 1.0,
    seed: Optional[int] = None,
    interval: int = 3600,
    start_time: int = DEFAULT_START_TIME,
    volatility: float = 0.002,
) -> list[Candle]:
    """Generate *n* random-walk candles starting at price *start*.

    Each bar opens at the previous close; the close moves by a Gaussian
    step of ``volatility × price``.  Wicks extend a random fraction of
    the step beyond the body.  The same *seed* always yields the same
    series.

    Raises ``ValueError`` for a negative *n* or non-positive *start*.
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    if start <= 0:
        raise ValueError(f"start must be positive, got {start}")

    rng = random.Random(seed)
    candles: list[Candle] = []
    price = start
    for i in range(n):
        open_ = price
        close = max(open_ + rng.gauss(0.0, volatility * open_), open_ * 0.5)
        wick = abs(rng.gauss(0.0, volatility * open_ * 0.5))
        candles.append(Candle(
            time=start_time + i * interval,
            open=open_,
            high=max(open_, close) + wick,
            low=max(min(open_, close) - wick, 0.0),
            close=close,
            volume=float(rng.randint(100, 10_000)),
        ))
        price = close
    return candles
