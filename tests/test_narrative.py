"""Tests for the narrative renderer."""

import pytest

from quantllm.narrative import INCOMPLETE_NARRATIVE, NO_DATA_NARRATIVE, render_narrative
from quantllm.strategy.models import (
    AnalysisContext,
    Candle,
    IndicatorResult,
    PatternResult,
    RiskResult,
    TrendResult,
)

_CANDLES = (
    Candle(time=1_704_067_200 - 3600, open=1.0, high=1.01, low=0.99, close=1.0, volume=1.0),
    Candle(time=1_704_067_200, open=1.0, high=1.02, low=0.99, close=1.015, volume=1.0),
)
_INDICATOR = IndicatorResult(rsi=65.04, regime="Bullish", overbought=False, oversold=False, confidence=0.3)
_PATTERN = PatternResult(pattern="BullishEngulfing", strength=1.0)
_TREND = TrendResult(trend="Up", ema_fast=1.0123456, ema_slow=1.0056789, strength=0.66)
_RISK = RiskResult(rho=0.653333, r_multiplier=1.653333, take_profit=2.48, commentary="Strong bullish alignment")


def _ctx(**overrides) -> AnalysisContext:
    fields = dict(candles=_CANDLES, indicator=_INDICATOR, pattern=_PATTERN, trend=_TREND, risk=_RISK)
    fields.update(overrides)
    return AnalysisContext(**fields)


class TestNarrative:
    def test_full_report(self):
        text = render_narrative(_ctx())
        assert text.split("\n") == [
            "Time: 2024-01-01T00:00:00Z",
            "📈 Indicator: RSI=65.0 (Bullish); confidence=0.30",
            "🕯️ Pattern: BullishEngulfing (strength=1.00)",
            "📊 Trend: Up (EMA12=1.01235, EMA26=1.00568, strength=0.66)",
            "🛡️ Risk: ρ=0.65333, r=1.65 ⇒ take-profit R=2.48000 (Strong bullish alignment)",
        ]

    def test_flags_and_markers(self):
        bearish = IndicatorResult(rsi=22.0, regime="Bearish", overbought=False, oversold=True, confidence=0.56)
        text = render_narrative(_ctx(indicator=bearish))
        assert "📉 Indicator: RSI=22.0 (Bearish, Oversold); confidence=0.56" in text

        hot = IndicatorResult(rsi=75.0, regime="Neutral", overbought=True, oversold=False, confidence=0.5)
        text = render_narrative(_ctx(indicator=hot))
        assert "➖ Indicator: RSI=75.0 (Neutral, Overbought)" in text

    def test_summary_appended_to_pattern_line(self):
        pattern = PatternResult(pattern="Doji", strength=0.4, ai_summary="Market is undecided.")
        lines = render_narrative(_ctx(pattern=pattern)).split("\n")
        assert lines[2] == "🕯️ Pattern: Doji (strength=0.40) - Market is undecided."

    @pytest.mark.parametrize("missing", ["indicator", "pattern", "trend", "risk"])
    def test_incomplete(self, missing):
        assert render_narrative(_ctx(**{missing: None})) == INCOMPLETE_NARRATIVE

    def test_no_candles(self):
        assert render_narrative(_ctx(candles=())) == NO_DATA_NARRATIVE
