"""Tests for the Gemini text client with mocked HTTP responses."""

import asyncio

import httpx
import pytest

from quantllm.config import Config
from quantllm.enrichment.gemini_client import EnrichmentError, GeminiClient


def _make_config() -> Config:
    return Config(
        pattern_ai=True,
        gemini_api_key="test-key",
        gemini_model="gemini-test",
        gemini_base_url="https://gemini.example/",
        enrichment_timeout=3.0,
        log_level="INFO",
        cache_size=4,
    )


MOCK_GENERATE_RESPONSE = {
    "candidates": [
        {
            "content": {
                "parts": [{"text": "A bullish engulfing shows buyers "}, {"text": "taking control."}],
                "role": "model",
            }
        }
    ]
}


@pytest.fixture
def no_sleep(monkeypatch):
    async def _instant(delay):
        return None

    monkeypatch.setattr(asyncio, "sleep", _instant)


@pytest.mark.asyncio
async def test_generate_parses_text(monkeypatch):
    captured = {}

    async def _mock_post(self, url, *, params=None, json=None, timeout=None):
        captured.update(url=url, params=params, json=json, timeout=timeout)
        return httpx.Response(200, json=MOCK_GENERATE_RESPONSE, request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.AsyncClient, "post", _mock_post)

    text = await GeminiClient(_make_config()).generate("Explain engulfing")
    assert text == "A bullish engulfing shows buyers taking control."
    assert captured["url"] == "https://gemini.example/v1beta/models/gemini-test:generateContent"
    assert captured["params"] == {"key": "test-key"}
    assert captured["json"] == {"contents": [{"parts": [{"text": "Explain engulfing"}]}]}
    assert captured["timeout"] == 3.0


@pytest.mark.asyncio
async def test_missing_candidate_raises(monkeypatch):
    async def _mock_post(self, url, *, params=None, json=None, timeout=None):
        return httpx.Response(200, json={"candidates": []}, request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.AsyncClient, "post", _mock_post)

    with pytest.raises(EnrichmentError):
        await GeminiClient(_make_config()).generate("hi")


@pytest.mark.asyncio
async def test_empty_text_raises(monkeypatch):
    body = {"candidates": [{"content": {"parts": [{"text": "  "}]}}]}

    async def _mock_post(self, url, *, params=None, json=None, timeout=None):
        return httpx.Response(200, json=body, request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.AsyncClient, "post", _mock_post)

    with pytest.raises(EnrichmentError, match="empty"):
        await GeminiClient(_make_config()).generate("hi")


@pytest.mark.asyncio
async def test_retries_then_succeeds(monkeypatch, no_sleep):
    calls = {"n": 0}

    async def _mock_post(self, url, *, params=None, json=None, timeout=None):
        calls["n"] += 1
        request = httpx.Request("POST", url)
        if calls["n"] < 3:
            return httpx.Response(503, request=request)
        return httpx.Response(200, json=MOCK_GENERATE_RESPONSE, request=request)

    monkeypatch.setattr(httpx.AsyncClient, "post", _mock_post)

    text = await GeminiClient(_make_config()).generate("hi")
    assert calls["n"] == 3
    assert text.endswith("taking control.")


@pytest.mark.asyncio
async def test_retries_exhausted(monkeypatch, no_sleep):
    calls = {"n": 0}

    async def _mock_post(self, url, *, params=None, json=None, timeout=None):
        calls["n"] += 1
        return httpx.Response(429, request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.AsyncClient, "post", _mock_post)

    with pytest.raises(httpx.HTTPStatusError):
        await GeminiClient(_make_config()).generate("hi")
    assert calls["n"] == 3


@pytest.mark.asyncio
async def test_transport_error_retried(monkeypatch, no_sleep):
    calls = {"n": 0}

    async def _mock_post(self, url, *, params=None, json=None, timeout=None):
        calls["n"] += 1
        raise httpx.ConnectError("refused", request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.AsyncClient, "post", _mock_post)

    with pytest.raises(httpx.ConnectError):
        await GeminiClient(_make_config()).generate("hi")
    assert calls["n"] == 3


@pytest.mark.asyncio
async def test_client_error_not_retried(monkeypatch, no_sleep):
    calls = {"n": 0}

    async def _mock_post(self, url, *, params=None, json=None, timeout=None):
        calls["n"] += 1
        return httpx.Response(403, request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.AsyncClient, "post", _mock_post)

    with pytest.raises(httpx.HTTPStatusError):
        await GeminiClient(_make_config()).generate("hi")
    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_no_sleep_after_final_attempt(monkeypatch):
    delays = []

    async def _record(delay):
        delays.append(delay)

    async def _mock_post(self, url, *, params=None, json=None, timeout=None):
        return httpx.Response(503, request=httpx.Request("POST", url))

    monkeypatch.setattr(asyncio, "sleep", _record)
    monkeypatch.setattr(httpx.AsyncClient, "post", _mock_post)

    with pytest.raises(httpx.HTTPStatusError):
        await GeminiClient(_make_config()).generate("hi")
    assert delays == [1.0, 2.0]
