"""Gemini REST text-generation async client.

Used only for the optional one-sentence pattern summaries.  Nothing in
the analysis depends on it being reachable.
"""

import asyncio
import logging
from typing import Optional

import httpx

from quantllm.config import Config

logger = logging.getLogger("quantllm.enrichment")

# Retry settings
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds; doubles each attempt
_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}


class EnrichmentError(Exception):
    """The text service answered, but not with usable text."""


class GeminiClient:
    """Async client wrapping the Gemini ``generateContent`` endpoint."""

    def __init__(self, config: Config) -> None:
        self._api_key = config.gemini_api_key
        self._url = (
            f"{config.gemini_base_url.rstrip('/')}/v1beta/models/"
            f"{config.gemini_model}:generateContent"
        )
        self._timeout = config.enrichment_timeout

    # ── Retry helper ─────────────────────────────────────────────────────

    async def _post_with_retry(self, payload: dict) -> httpx.Response:
        """POST *payload* with exponential-backoff retry.

        Retries on transient server errors (502, 503, 504) and rate-limits
        (429).  Non-retryable errors are raised immediately.
        """
        last_exc: Optional[Exception] = None

        for attempt in range(_MAX_RETRIES):
            try:
                async with httpx.AsyncClient() as client:
                    resp = await client.post(
                        self._url,
                        params={"key": self._api_key},
                        json=payload,
                        timeout=self._timeout,
                    )

                if resp.status_code in _RETRYABLE_STATUS_CODES:
                    delay = _RETRY_BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        "Gemini returned %d, retry %d/%d in %.1fs",
                        resp.status_code, attempt + 1, _MAX_RETRIES, delay,
                    )
                    last_exc = httpx.HTTPStatusError(
                        f"Server error '{resp.status_code}'",
                        request=resp.request,
                        response=resp,
                    )
                    if attempt < _MAX_RETRIES - 1:
                        await asyncio.sleep(delay)
                    continue

                resp.raise_for_status()
                return resp

            except httpx.TransportError as exc:
                delay = _RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning(
                    "Gemini transport error (%s), retry %d/%d in %.1fs",
                    exc, attempt + 1, _MAX_RETRIES, delay,
                )
                last_exc = exc
                if attempt < _MAX_RETRIES - 1:
                    await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]

    # ── Text generation ──────────────────────────────────────────────────

    async def generate(self, prompt: str) -> str:
        """Return the model's text answer to *prompt*.

        Raises:
            httpx.HTTPError: Request failed after retries.
            EnrichmentError: Response carried no text candidate.
        """
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        resp = await self._post_with_retry(payload)

        data = resp.json()
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            raise EnrichmentError("Gemini response has no text candidate") from None

        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        if not text.strip():
            raise EnrichmentError("Gemini returned empty text")
        return text.strip()
