"""Settings.from_env: defaults, overrides and fatal configuration errors."""

from __future__ import annotations

import pytest

from domain.exceptions import ConfigurationError
from domain.models import StopBias
from infrastructure.config import Settings

_VARS = (
    "LLM_PROVIDER", "LLM_MODEL", "GOOGLE_API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY",
    "GROQ_API_KEY", "WORKSPACE_ROOT", "MAX_ITERATIONS", "AGENT_ROLES", "USE_MEMORY",
    "STOP_BIAS", "PHASE_DELAY", "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    # WORKSPACE_ROOT falls back to the current directory
    monkeypatch.chdir(tmp_path)


class TestFromEnv:
    def test_missing_google_key_is_fatal(self):
        with pytest.raises(ConfigurationError, match="GOOGLE_API_KEY"):
            Settings.from_env()

    def test_gemini_key_is_accepted(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "g-key")
        config = Settings.from_env()
        assert config.llm_provider == "google"
        assert config.llm_model == "gemini-2.0-flash"
        assert config.api_key == "g-key"

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GOOGLE_API_KEY", "k")
        config = Settings.from_env()
        assert config.max_iterations == 6
        assert config.agent_roles == 2
        assert config.use_memory is True
        assert config.stop_bias == StopBias.STOP
        assert config.port == 3000
        assert config.workspace_root == tmp_path.resolve()

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LLM_PROVIDER", "ollama")
        monkeypatch.setenv("MAX_ITERATIONS", "10")
        monkeypatch.setenv("USE_MEMORY", "false")
        monkeypatch.setenv("STOP_BIAS", "continue")
        monkeypatch.setenv("PHASE_DELAY", "0.5")
        monkeypatch.setenv("WORKSPACE_ROOT", str(tmp_path / "ws"))

        config = Settings.from_env()

        assert config.llm_model == "llama3.2"
        assert config.max_iterations == 10
        assert config.use_memory is False
        assert config.stop_bias == StopBias.CONTINUE
        assert config.phase_delay == 0.5
        assert config.workspace_root.name == "ws"

    def test_openai_requires_its_key(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "openai")
        monkeypatch.setenv("GOOGLE_API_KEY", "irrelevant")
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            Settings.from_env()

    @pytest.mark.parametrize("name, value", [
        ("LLM_PROVIDER", "anthropic-on-a-toaster"),
        ("STOP_BIAS", "maybe"),
        ("MAX_ITERATIONS", "lots"),
        ("AGENT_ROLES", "3"),
        ("MAX_ITERATIONS", "-1"),
        ("MAX_ITERATIONS", "0"),
        ("MEMORY_MAX_ENTRIES", "0"),
        ("RECURSION_LIMIT", "0"),
        ("PHASE_DELAY", "-2"),
        ("QUOTA_BACKOFF", "-1"),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv("GOOGLE_API_KEY", "k")
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError):
            Settings.from_env()
