"""Risk fusion: combines indicator, pattern and trend into risk parameters.

Pure math, no I/O.

Each upstream result casts a signed, weighted direction vote:

    ============  ==========================  ===========
    Source        Vote (+1 / -1 / 0)          Weight
    ============  ==========================  ===========
    indicator     Bullish / Bearish / other   confidence
    trend         Up / Down / Sideways        strength
    pattern       Bull / Bear engulfing       strength
    ============  ==========================  ===========

    rho           = mean of the three weighted votes, in [-1, 1]
    r_multiplier  = 1 + |rho|                          in [1, 2]
    take_profit   = BASE_TAKE_PROFIT_R × r_multiplier  in [1.5, 3] R

More agreement between the sources means a larger |rho| and therefore a
larger multiplier and a more distant take-profit target.
"""

from typing import Optional

from quantllm.strategy.models import (
    IndicatorResult,
    PatternResult,
    RiskResult,
    TrendResult,
)

BASE_TAKE_PROFIT_R = 1.5
STRONG_ALIGNMENT = 0.5
MODERATE_ALIGNMENT = 0.2

_INDICATOR_VOTES = {"Bullish": 1, "Bearish": -1}
_TREND_VOTES = {"Up": 1, "Down": -1}
_PATTERN_VOTES = {"BullishEngulfing": 1, "BearishEngulfing": -1}


def _commentary(rho: float) -> str:
    side = "bullish" if rho > 0 else "bearish"
    if abs(rho) >= STRONG_ALIGNMENT:
        return f"Strong {side} alignment"
    if abs(rho) >= MODERATE_ALIGNMENT:
        return f"Moderate {side} bias"
    return "Mixed signals - keep size small"


def compute_risk(
    indicator: Optional[IndicatorResult],
    pattern: Optional[PatternResult],
    trend: Optional[TrendResult],
) -> Optional[RiskResult]:
    """Fuse the three upstream analyses into a ``RiskResult``.

    Returns ``None`` if any input is missing.
    """
    if indicator is None or pattern is None or trend is None:
        return None

    votes = (
        _INDICATOR_VOTES.get(indicator.regime, 0) * indicator.confidence,
        _TREND_VOTES.get(trend.trend, 0) * trend.strength,
        _PATTERN_VOTES.get(pattern.pattern, 0) * pattern.strength,
    )
    rho = max(-1.0, min(1.0, sum(votes) / len(votes)))
    r_multiplier = 1.0 + abs(rho)

    return RiskResult(
        rho=rho,
        r_multiplier=r_multiplier,
        take_profit=BASE_TAKE_PROFIT_R * r_multiplier,
        commentary=_commentary(rho),
    )
