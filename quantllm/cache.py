"""Single-flight analysis cache.

Keeps the latest ``PipelineResult`` per candle fingerprint and makes sure
at most one pipeline run is in flight for any fingerprint: concurrent
callers with the same candles await the same task.

Data structure:
- fingerprint -> asyncio.Task (in flight)
- fingerprint -> PipelineResult (completed, bounded LRU)
"""

import asyncio
import hashlib
import logging
from collections import OrderedDict
from collections.abc import Sequence
from typing import Optional

from quantllm.config import Config
from quantllm.pipeline import run_pipeline
from quantllm.strategy.models import Candle, PipelineResult
from quantllm.strategy.patterns import TextGenerator

logger = logging.getLogger("quantllm.cache")


def fingerprint(candles: Sequence[Candle]) -> str:
    """SHA-256 over every candle field, in order."""
    digest = hashlib.sha256()
    for c in candles:
        digest.update(
            f"{c.time}|{c.open!r}|{c.high!r}|{c.low!r}|{c.close!r}|{c.volume!r};".encode()
        )
    return digest.hexdigest()


class AnalysisCache:
    """Latest-result cache with an in-flight guard per fingerprint.

    Args:
        max_entries: Completed results kept before the oldest is evicted.
            Defaults to ``config.cache_size`` (16 without a config).
        config: Passed through to every pipeline run.
        client: Text generator passed through to every pipeline run.
    """

    def __init__(
        self,
        max_entries: Optional[int] = None,
        config: Optional[Config] = None,
        client: Optional[TextGenerator] = None,
    ) -> None:
        if max_entries is None:
            max_entries = config.cache_size if config is not None else 16
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self._max_entries = max_entries
        self._config = config
        self._client = client
        self._results: OrderedDict[str, PipelineResult] = OrderedDict()
        self._in_flight: dict[str, asyncio.Task] = {}

    # ── Public API ───────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._results)

    @property
    def in_flight(self) -> int:
        """Number of pipeline runs currently executing."""
        return len(self._in_flight)

    def latest(self, key: str) -> Optional[PipelineResult]:
        """Completed result for *key*, if cached."""
        return self._results.get(key)

    async def get_or_run(self, candles: Sequence[Candle]) -> PipelineResult:
        """Return the cached result for *candles*, running the pipeline once
        if needed.

        A failed run is not cached; its exception reaches every waiter.
        """
        key = fingerprint(candles)

        cached = self._results.get(key)
        if cached is not None:
            self._results.move_to_end(key)
            return cached

        task = self._in_flight.get(key)
        if task is None:
            logger.debug("Cache miss for %s, starting pipeline run", key[:12])
            task = asyncio.ensure_future(self._run(key, candles))
            self._in_flight[key] = task
        return await asyncio.shield(task)

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop the result for *key*, or every cached result."""
        if key is None:
            self._results.clear()
        else:
            self._results.pop(key, None)

    # ── Internals ────────────────────────────────────────────────────────

    async def _run(self, key: str, candles: Sequence[Candle]) -> PipelineResult:
        try:
            result = await run_pipeline(candles, config=self._config, client=self._client)
        finally:
            self._in_flight.pop(key, None)

        self._results[key] = result
        self._results.move_to_end(key)
        while len(self._results) > self._max_entries:
            evicted, _ = self._results.popitem(last=False)
            logger.debug("Evicted cached analysis %s", evicted[:12])
        return result
