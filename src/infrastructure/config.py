"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass constructed from the environment (and a local .env
file) or passed explicitly in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from domain.exceptions import ConfigurationError
from domain.models import StopBias

DEFAULT_MODELS = {
    "google": "gemini-2.0-flash",
    "openai": "gpt-4.1-mini",
    "groq": "llama-3.3-70b-versatile",
    "ollama": "llama3.2",
}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default: str, cast=int):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the workspace assistant.

    No module-level globals; construct via from_env() or pass explicitly
    in tests.
    """
    workspace_root: Path

    # ── LLM provider ────────────────────────────────────────────
    # Allowed: "google", "openai", "groq", "ollama"
    llm_provider: str = "google"
    llm_model: str = DEFAULT_MODELS["google"]
    google_api_key: str = ""
    openai_api_key: str = ""
    groq_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434/"

    # ── Iteration loop ──────────────────────────────────────────
    max_iterations: int = 6
    agent_roles: int = 2
    use_memory: bool = True
    observe_first: bool = True
    enforce_tools: bool = True
    stop_bias: StopBias = StopBias.STOP
    phase_delay: float = 2.0
    iteration_delay: float = 3.0

    # ── Agent runner ────────────────────────────────────────────
    quota_backoff: float = 10.0
    recursion_limit: int = 15
    memory_max_entries: int = 10
    command_timeout: float = 120.0

    # ── Transport ───────────────────────────────────────────────
    port: int = 3000
    log_level: str = "INFO"

    @property
    def api_key(self) -> str:
        """Return the key for the currently active provider."""
        return {
            "google": self.google_api_key,
            "openai": self.openai_api_key,
            "groq": self.groq_api_key,
        }.get(self.llm_provider, "")

    def validate(self) -> Settings:
        """Fail fast on a provider that cannot be used. Returns self."""
        if self.llm_provider not in DEFAULT_MODELS:
            raise ConfigurationError(
                f"Unsupported LLM_PROVIDER: '{self.llm_provider}'. "
                "Must be 'google', 'openai', 'groq', or 'ollama'."
            )
        if self.llm_provider != "ollama" and not self.api_key:
            names = {
                "google": "GOOGLE_API_KEY or GEMINI_API_KEY",
                "openai": "OPENAI_API_KEY",
                "groq": "GROQ_API_KEY",
            }[self.llm_provider]
            raise ConfigurationError(
                f"{names} is required when LLM_PROVIDER='{self.llm_provider}'. "
                "Set it in the environment or in a .env file."
            )
        if self.agent_roles not in (1, 2):
            raise ConfigurationError("AGENT_ROLES must be 1 or 2")
        for name, value in (
            ("MAX_ITERATIONS", self.max_iterations),
            ("RECURSION_LIMIT", self.recursion_limit),
            ("MEMORY_MAX_ENTRIES", self.memory_max_entries),
        ):
            if value < 1:
                raise ConfigurationError(f"{name} must be at least 1, got {value}")
        for name, value in (
            ("PHASE_DELAY", self.phase_delay),
            ("ITERATION_DELAY", self.iteration_delay),
            ("QUOTA_BACKOFF", self.quota_backoff),
            ("COMMAND_TIMEOUT", self.command_timeout),
        ):
            if value < 0:
                raise ConfigurationError(f"{name} must not be negative, got {value}")
        return self

    @classmethod
    def from_env(cls, workspace_root: Optional[Path] = None) -> Settings:
        """Build and validate Settings from the environment."""
        from dotenv import load_dotenv
        load_dotenv()

        provider = os.getenv("LLM_PROVIDER", "google").lower().strip()
        bias = os.getenv("STOP_BIAS", StopBias.STOP.value).lower().strip()
        try:
            stop_bias = StopBias(bias)
        except ValueError as exc:
            raise ConfigurationError(
                f"STOP_BIAS must be 'stop' or 'continue', got {bias!r}"
            ) from exc

        root = workspace_root or Path(os.getenv("WORKSPACE_ROOT") or os.getcwd())

        return cls(
            workspace_root=root.resolve(),

            llm_provider=provider,
            llm_model=os.getenv("LLM_MODEL") or DEFAULT_MODELS.get(provider, ""),
            google_api_key=os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/"),

            max_iterations=_env_number("MAX_ITERATIONS", "6"),
            agent_roles=_env_number("AGENT_ROLES", "2"),
            use_memory=_env_bool("USE_MEMORY", True),
            observe_first=_env_bool("OBSERVE_FIRST", True),
            enforce_tools=_env_bool("ENFORCE_TOOLS", True),
            stop_bias=stop_bias,
            phase_delay=_env_number("PHASE_DELAY", "2", float),
            iteration_delay=_env_number("ITERATION_DELAY", "3", float),

            quota_backoff=_env_number("QUOTA_BACKOFF", "10", float),
            recursion_limit=_env_number("RECURSION_LIMIT", "15"),
            memory_max_entries=_env_number("MEMORY_MAX_ENTRIES", "10"),
            command_timeout=_env_number("COMMAND_TIMEOUT", "120", float),

            port=_env_number("PORT", "3000"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        ).validate()
