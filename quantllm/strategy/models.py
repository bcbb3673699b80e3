"""Analysis data models: typed representations of stage inputs and outputs."""

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, Optional, TypeVar


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar. ``time`` is epoch seconds."""

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float


Regime = Literal["Bullish", "Bearish", "Neutral"]
PatternName = Literal["BullishEngulfing", "BearishEngulfing", "Doji", "None"]
TrendDirection = Literal["Up", "Down", "Sideways"]
SignalType = Literal["BUY", "SELL"]


@dataclass(frozen=True)
class IndicatorResult:
    """RSI reading and the regime derived from it."""

    rsi: float
    regime: Regime
    overbought: bool
    oversold: bool
    confidence: float  # 0..1, distance from the 50 midline


@dataclass(frozen=True)
class PatternResult:
    """Candlestick pattern of the most recent candle pair."""

    pattern: PatternName
    strength: float
    ai_summary: Optional[str] = None


@dataclass(frozen=True)
class TrendResult:
    """EMA(12)/EMA(26) trend snapshot."""

    trend: TrendDirection
    ema_fast: float
    ema_slow: float
    strength: float


@dataclass(frozen=True)
class RiskResult:
    """Risk parameters fused from indicator, pattern and trend."""

    rho: float
    r_multiplier: float
    take_profit: float  # in R-multiples
    commentary: str


@dataclass(frozen=True)
class AnalysisContext:
    """Partial-result carrier for one pipeline run.

    Any stage field may be ``None`` when that stage failed or was gated
    off.  Consumers must check presence explicitly.
    """

    candles: tuple[Candle, ...]
    indicator: Optional[IndicatorResult] = None
    pattern: Optional[PatternResult] = None
    trend: Optional[TrendResult] = None
    risk: Optional[RiskResult] = None

    @property
    def is_complete(self) -> bool:
        return (
            self.indicator is not None
            and self.pattern is not None
            and self.trend is not None
            and self.risk is not None
        )


@dataclass(frozen=True)
class PatternEvent:
    """A pattern detected on the candle pair ending at ``index``."""

    index: int
    pattern: PatternName
    strength: float


@dataclass(frozen=True)
class SignalEvent:
    """A BUY/SELL signal at a candle position."""

    index: int
    time: int
    type: SignalType
    score: float
    reason: str


@dataclass(frozen=True)
class VisualSeries:
    """Per-candle aligned series for charting.

    ``price``, ``rsi``, ``ema_fast`` and ``ema_slow`` each hold one value
    per candle, in candle order.
    """

    times: tuple[int, ...]
    price: tuple[float, ...]
    rsi: tuple[float, ...]
    ema_fast: tuple[float, ...]
    ema_slow: tuple[float, ...]
    pattern_events: tuple[PatternEvent, ...]
    signals: tuple[SignalEvent, ...]
    overbought: float = 70.0
    oversold: float = 30.0

    def to_dict(self) -> dict[str, Any]:
        """Return the nested JSON-ready shape consumed by chart front-ends."""
        return {
            "price": list(self.price),
            "indicator": {
                "rsi": list(self.rsi),
                "overbought": self.overbought,
                "oversold": self.oversold,
            },
            "trend": {"ema12": list(self.ema_fast), "ema26": list(self.ema_slow)},
            "pattern": {
                "events": [
                    {"index": e.index, "pattern": e.pattern, "strength": e.strength}
                    for e in self.pattern_events
                ]
            },
            "combined": {
                "signals": [
                    {
                        "index": s.index,
                        "time": s.time,
                        "type": s.type,
                        "score": s.score,
                        "reason": s.reason,
                    }
                    for s in self.signals
                ]
            },
            "times": list(self.times),
        }


# ── Stage results ────────────────────────────────────────────────────────

T = TypeVar("T")


@dataclass(frozen=True)
class StageError:
    """A failure recorded at a stage boundary."""

    stage: str
    message: str

    @property
    def tag(self) -> str:
        return f"{self.stage}:{self.message}"

    def __str__(self) -> str:
        return self.tag


@dataclass(frozen=True)
class StageOutcome(Generic[T]):
    """Either a stage value or the ``StageError`` that replaced it."""

    value: Optional[T] = None
    error: Optional[StageError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PipelineResult:
    """Terminal state of one pipeline run."""

    context: AnalysisContext
    narrative: str
    visuals: Optional[VisualSeries]
    signals: list[SignalEvent] = field(default_factory=list)
    errors: list[StageError] = field(default_factory=list)

    @property
    def error_tags(self) -> list[str]:
        """Errors as ``"<stage>:<message>"`` strings."""
        return [e.tag for e in self.errors]
