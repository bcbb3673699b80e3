"""Narrative renderer: one human-readable line per analysis stage."""

from datetime import datetime, timezone

from quantllm.strategy.models import AnalysisContext

INCOMPLETE_NARRATIVE = "Incomplete analysis - missing stage outputs"
NO_DATA_NARRATIVE = "No candle data available"

_REGIME_MARKERS = {"Bullish": "📈", "Bearish": "📉"}


def _format_time(epoch_seconds: int) -> str:
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def render_narrative(ctx: AnalysisContext) -> str:
    """Format the analysis as text, in the fixed order time, indicator,
    pattern, trend, risk.

    Returns ``INCOMPLETE_NARRATIVE`` when any of the four stage results
    is missing.
    """
    if not ctx.is_complete:
        return INCOMPLETE_NARRATIVE
    if not ctx.candles:
        return NO_DATA_NARRATIVE

    ind, pat, tr, risk = ctx.indicator, ctx.pattern, ctx.trend, ctx.risk
    last = ctx.candles[-1]

    flags = ""
    if ind.overbought:
        flags += ", Overbought"
    if ind.oversold:
        flags += ", Oversold"

    lines = [
        f"Time: {_format_time(last.time)}",
        f"{_REGIME_MARKERS.get(ind.regime, '➖')} Indicator: RSI={ind.rsi:.1f} "
        f"({ind.regime}{flags}); confidence={ind.confidence:.2f}",
        f"🕯️ Pattern: {pat.pattern} (strength={pat.strength:.2f})",
        f"📊 Trend: {tr.trend} (EMA12={tr.ema_fast:.5f}, EMA26={tr.ema_slow:.5f}, "
        f"strength={tr.strength:.2f})",
        f"🛡️ Risk: ρ={risk.rho:.5f}, r={risk.r_multiplier:.2f} ⇒ "
        f"take-profit R={risk.take_profit:.5f} ({risk.commentary})",
    ]
    if pat.ai_summary:
        lines[2] += f" - {pat.ai_summary}"
    return "\n".join(lines)
