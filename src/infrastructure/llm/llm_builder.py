"""
infrastructure.llm.llm_builder - Centralized chat model construction.

Single source of truth for building the chat model shared by both agents.
The provider is controlled by the LLM_PROVIDER environment variable.

Supported providers:
    - "google"  → langchain_google_genai.ChatGoogleGenerativeAI
    - "openai"  → langchain_openai.ChatOpenAI
    - "groq"    → langchain_groq.ChatGroq
    - "ollama"  → langchain_ollama.ChatOllama
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)


def build_llm(
    *,
    provider: str,
    model: str,
    temperature: float = 0,
    google_api_key: str = "",
    openai_api_key: str = "",
    groq_api_key: str = "",
    ollama_base_url: str = "http://localhost:11434/",
    max_tokens: Optional[int] = None,
) -> BaseChatModel:
    """Build a tool-calling chat model for the given provider.

    Args:
        provider: One of "google", "openai", "groq", "ollama".
        model: Model name for the selected provider.
        temperature: Sampling temperature.
        google_api_key: API key for Gemini.
        openai_api_key: API key for OpenAI.
        groq_api_key: API key for Groq.
        ollama_base_url: Ollama server URL (only used when provider="ollama").
        max_tokens: Maximum output tokens, provider default when None.

    Raises:
        ValueError: If the provider is unknown or required credentials are missing.
    """
    provider = provider.lower().strip()

    if provider == "google":
        from langchain_google_genai import ChatGoogleGenerativeAI

        if not google_api_key:
            raise ValueError("GOOGLE_API_KEY is required when LLM_PROVIDER='google'")

        kwargs: Dict[str, Any] = {
            "model": model,
            "temperature": temperature,
            "google_api_key": google_api_key,
        }
        if max_tokens is not None:
            kwargs["max_output_tokens"] = max_tokens

        logger.info("Building Gemini chat model (model=%s)", model)
        return ChatGoogleGenerativeAI(**kwargs)

    elif provider == "openai":
        from langchain_openai import ChatOpenAI

        if not openai_api_key:
            raise ValueError("OPENAI_API_KEY is required when LLM_PROVIDER='openai'")

        kwargs = {
            "model": model,
            "temperature": temperature,
            "openai_api_key": openai_api_key,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        logger.info("Building OpenAI chat model (model=%s)", model)
        return ChatOpenAI(**kwargs)

    elif provider == "groq":
        from langchain_groq import ChatGroq

        if not groq_api_key:
            raise ValueError("GROQ_API_KEY is required when LLM_PROVIDER='groq'")

        kwargs = {
            "model": model,
            "temperature": temperature,
            "groq_api_key": groq_api_key,
            "max_tokens": max_tokens if max_tokens is not None else 1024,
        }

        logger.info("Building Groq chat model (model=%s)", model)
        return ChatGroq(**kwargs)

    elif provider == "ollama":
        from langchain_ollama import ChatOllama

        kwargs = {
            "model": model,
            "temperature": temperature,
            "base_url": ollama_base_url,
        }

        logger.info("Building ChatOllama (model=%s)", model)
        return ChatOllama(**kwargs)

    else:
        raise ValueError(
            f"Unsupported LLM_PROVIDER: '{provider}'. "
            "Must be 'google', 'openai', 'groq', or 'ollama'."
        )
