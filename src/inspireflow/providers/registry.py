"""Adapter factory."""

from __future__ import annotations

import httpx

from inspireflow.config import ProviderConfig
from inspireflow.core.errors import UnsupportedTypeError
from inspireflow.providers.anthropic import AnthropicAdapter
from inspireflow.providers.ark import ArkAdapter
from inspireflow.providers.base import ProviderAdapter, ProviderFamily
from inspireflow.providers.gemini import GeminiAdapter
from inspireflow.providers.ollama import OllamaAdapter
from inspireflow.providers.openai import OpenAICompatibleAdapter


def create_adapter(
    family: ProviderFamily | str,
    config: ProviderConfig,
    *,
    timeout: httpx.Timeout | None = None,
) -> ProviderAdapter:
    """Adapter for ``family`` talking to ``config.base_url``."""
    try:
        family = ProviderFamily(family)
    except ValueError as exc:
        raise UnsupportedTypeError(f"Unknown provider family: {family}") from exc

    match family:
        case ProviderFamily.OPENAI:
            return OpenAICompatibleAdapter(config, timeout=timeout)
        case ProviderFamily.ANTHROPIC:
            return AnthropicAdapter(config, timeout=timeout)
        case ProviderFamily.GOOGLE:
            return GeminiAdapter(config, timeout=timeout)
        case ProviderFamily.ARK:
            return ArkAdapter(config, timeout=timeout)
        case ProviderFamily.OLLAMA:
            return OllamaAdapter(config, timeout=timeout)
    raise UnsupportedTypeError(f"Unknown provider family: {family}")
