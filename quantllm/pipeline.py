"""QuantLLM: analysis pipeline (orchestration).

Stage flow for one run:

    indicator ─┐
    pattern  ──┼─► risk ─► signals ─► narrative
    trend    ──┘

Indicator, pattern and trend run concurrently on the same immutable
candle tuple.  A failing stage is recorded as a ``StageError`` and its
context field stays ``None``; risk only runs when all three succeeded.
Signal synthesis always runs on the raw candles.  Only malformed input
raises.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Optional, TypeVar

from quantllm.config import Config
from quantllm.enrichment.gemini_client import GeminiClient
from quantllm.narrative import render_narrative
from quantllm.risk.fusion import compute_risk
from quantllm.strategy.models import (
    AnalysisContext,
    Candle,
    PatternResult,
    PipelineResult,
    SignalEvent,
    StageError,
    StageOutcome,
    VisualSeries,
)
from quantllm.strategy.patterns import TextGenerator, compute_pattern, enrich_pattern
from quantllm.strategy.regime import compute_indicator
from quantllm.strategy.signals import compute_visuals_and_signals
from quantllm.strategy.trend import compute_trend

logger = logging.getLogger("quantllm.pipeline")

T = TypeVar("T")


async def _run_stage(name: str, work: Callable[[], Awaitable[T]]) -> StageOutcome[T]:
    """Await *work* and turn any exception into a ``StageError``."""
    try:
        return StageOutcome(value=await work())
    except Exception as exc:
        logger.warning("Stage '%s' failed: %s", name, exc)
        return StageOutcome(error=StageError(stage=name, message=str(exc) or type(exc).__name__))


def _validate(candles: Sequence[Candle]) -> tuple[Candle, ...]:
    if not isinstance(candles, (list, tuple)):
        raise TypeError(
            f"candles must be a list or tuple of Candle, got {type(candles).__name__}"
        )
    for i, c in enumerate(candles):
        if not isinstance(c, Candle):
            raise TypeError(f"candles[{i}] is {type(c).__name__}, expected Candle")
    return tuple(candles)


def _default_client(config: Optional[Config]) -> Optional[TextGenerator]:
    if config is None or not config.enrichment_enabled:
        return None
    return GeminiClient(config)


async def run_pipeline(
    candles: Sequence[Candle],
    config: Optional[Config] = None,
    client: Optional[TextGenerator] = None,
) -> PipelineResult:
    """Run the full analysis on *candles* (oldest-first).

    Args:
        candles: OHLCV bars as a list or tuple of ``Candle``.
        config: Optional configuration.  Pattern summaries are requested
            only when ``config.enrichment_enabled``.
        client: Text generator used for pattern summaries.  Defaults to a
            ``GeminiClient`` built from *config* when enrichment is on.

    Returns:
        ``PipelineResult`` with context, narrative, visuals, signals and
        the errors of any failed stages.

    Raises:
        TypeError: *candles* is not a sequence of ``Candle``.
    """
    series = _validate(candles)
    enrich = config is not None and config.enrichment_enabled
    if enrich and client is None:
        client = _default_client(config)

    async def _pattern() -> PatternResult:
        result = await asyncio.to_thread(compute_pattern, series)
        if enrich:
            result = await enrich_pattern(result, client)
        return result

    # ── Fan-out ──
    ind_out, pat_out, tr_out = await asyncio.gather(
        _run_stage("indicator", lambda: asyncio.to_thread(compute_indicator, series)),
        _run_stage("pattern", _pattern),
        _run_stage("trend", lambda: asyncio.to_thread(compute_trend, series)),
    )
    errors: list[StageError] = [
        o.error for o in (ind_out, pat_out, tr_out) if o.error is not None
    ]

    # ── Fan-in gate ──
    risk = None
    if ind_out.ok and pat_out.ok and tr_out.ok:

        async def _risk():
            return compute_risk(ind_out.value, pat_out.value, tr_out.value)

        risk_out = await _run_stage("risk", _risk)
        if risk_out.error is not None:
            errors.append(risk_out.error)
        risk = risk_out.value

    context = AnalysisContext(
        candles=series,
        indicator=ind_out.value,
        pattern=pat_out.value,
        trend=tr_out.value,
        risk=risk,
    )

    # ── Signals ──
    visuals: Optional[VisualSeries] = None
    signals: list[SignalEvent] = []
    sig_out = await _run_stage(
        "signals", lambda: asyncio.to_thread(compute_visuals_and_signals, series)
    )
    if sig_out.error is not None:
        errors.append(sig_out.error)
    else:
        visuals, signals = sig_out.value

    narrative = render_narrative(context)
    logger.debug(
        "Pipeline run on %d candles: %d signal(s), %d error(s)",
        len(series), len(signals), len(errors),
    )
    return PipelineResult(
        context=context,
        narrative=narrative,
        visuals=visuals,
        signals=signals,
        errors=errors,
    )


def run_pipeline_sync(
    candles: Sequence[Candle],
    config: Optional[Config] = None,
    client: Optional[TextGenerator] = None,
) -> PipelineResult:
    """Blocking wrapper around :func:`run_pipeline` for scripts and the CLI."""
    return asyncio.run(run_pipeline(candles, config=config, client=client))
