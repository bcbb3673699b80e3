"""QuantLLM: application configuration.

Loads .env variables into a typed config object.
Every variable is optional; malformed values fail fast on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    pattern_ai: bool
    gemini_api_key: str
    gemini_model: str
    gemini_base_url: str
    enrichment_timeout: float
    log_level: str
    cache_size: int

    @property
    def enrichment_enabled(self) -> bool:
        """Pattern summaries need both the flag and an API key."""
        return self.pattern_ai and bool(self.gemini_api_key)


def _positive_float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _positive_int(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` naming the offending variable when a numeric
    setting is malformed or non-positive.
    """
    load_dotenv(dotenv_path=env_path)

    return Config(
        pattern_ai=os.environ.get("PATTERN_AI", "false").strip().lower() in _TRUTHY,
        gemini_api_key=os.environ.get("GEMINI_API_KEY", ""),
        gemini_model=os.environ.get("GEMINI_MODEL", "gemini-1.5-flash"),
        gemini_base_url=os.environ.get(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com"
        ),
        enrichment_timeout=_positive_float("ENRICHMENT_TIMEOUT", "10.0"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        cache_size=_positive_int("CACHE_SIZE", "16"),
    )
