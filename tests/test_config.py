"""Tests for quantllm.config: environment variable loading and validation."""

import pytest

from quantllm.config import Config, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Ensure QuantLLM env vars are cleared between tests.

    Each var is set before being deleted so that monkeypatch also removes
    anything ``load_dotenv`` writes into the environment during the test.
    """
    for var in [
        "PATTERN_AI",
        "GEMINI_API_KEY",
        "GEMINI_MODEL",
        "GEMINI_BASE_URL",
        "ENRICHMENT_TIMEOUT",
        "LOG_LEVEL",
        "CACHE_SIZE",
    ]:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


@pytest.fixture
def no_env_file(tmp_path):
    """A non-existent .env path so load_dotenv doesn't pick up a real file."""
    return str(tmp_path / "nonexistent.env")


class TestLoadConfig:
    def test_defaults(self, no_env_file):
        cfg = load_config(env_path=no_env_file)
        assert isinstance(cfg, Config)
        assert cfg.pattern_ai is False
        assert cfg.gemini_api_key == ""
        assert cfg.gemini_model == "gemini-1.5-flash"
        assert cfg.gemini_base_url == "https://generativelanguage.googleapis.com"
        assert cfg.enrichment_timeout == 10.0
        assert cfg.log_level == "INFO"
        assert cfg.cache_size == 16
        assert cfg.enrichment_enabled is False

    @pytest.mark.parametrize("raw", ["true", "TRUE", "1", "yes", " on "])
    def test_pattern_ai_truthy(self, monkeypatch, no_env_file, raw):
        monkeypatch.setenv("PATTERN_AI", raw)
        assert load_config(env_path=no_env_file).pattern_ai is True

    @pytest.mark.parametrize("raw", ["false", "0", "", "nope"])
    def test_pattern_ai_falsy(self, monkeypatch, no_env_file, raw):
        monkeypatch.setenv("PATTERN_AI", raw)
        assert load_config(env_path=no_env_file).pattern_ai is False

    def test_enrichment_needs_flag_and_key(self, monkeypatch, no_env_file):
        monkeypatch.setenv("PATTERN_AI", "true")
        assert load_config(env_path=no_env_file).enrichment_enabled is False
        monkeypatch.setenv("GEMINI_API_KEY", "secret")
        assert load_config(env_path=no_env_file).enrichment_enabled is True
        monkeypatch.setenv("PATTERN_AI", "false")
        assert load_config(env_path=no_env_file).enrichment_enabled is False

    def test_overrides(self, monkeypatch, no_env_file):
        monkeypatch.setenv("GEMINI_MODEL", "gemini-pro")
        monkeypatch.setenv("ENRICHMENT_TIMEOUT", "2.5")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("CACHE_SIZE", "3")
        cfg = load_config(env_path=no_env_file)
        assert cfg.gemini_model == "gemini-pro"
        assert cfg.enrichment_timeout == 2.5
        assert cfg.log_level == "DEBUG"
        assert cfg.cache_size == 3

    def test_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("PATTERN_AI=true\nGEMINI_API_KEY=from-file\n")
        cfg = load_config(env_path=str(env_file))
        assert cfg.gemini_api_key == "from-file"
        assert cfg.enrichment_enabled is True

    def test_bad_timeout(self, monkeypatch, no_env_file):
        monkeypatch.setenv("ENRICHMENT_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="ENRICHMENT_TIMEOUT"):
            load_config(env_path=no_env_file)

    def test_non_positive_cache_size(self, monkeypatch, no_env_file):
        monkeypatch.setenv("CACHE_SIZE", "0")
        with pytest.raises(ValueError, match="CACHE_SIZE"):
            load_config(env_path=no_env_file)
