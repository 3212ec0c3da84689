"""Friendly model names -> wire model names, per generation category.

Names not in the table are assumed to already be wire names and pass through.
"""

from __future__ import annotations

from typing import Literal

ModelCategory = Literal["text", "image", "video", "3d"]

DEFAULT_MODEL_MAPPING: dict[str, dict[str, str]] = {
    "text": {
        "openai": "gpt-4",
        "gpt-4": "gpt-4",
        "gpt-3.5-turbo": "gpt-3.5-turbo",
        "claude": "claude-3-haiku-20240307",
        "claude-3-opus": "claude-3-opus-20240229",
        "claude-3-sonnet": "claude-3-sonnet-20240229",
        "claude-3-haiku": "claude-3-haiku-20240307",
        "deepseek": "deepseek-chat",
        "deepseek-chat": "deepseek-chat",
        "deepseek-coder": "deepseek-coder",
        "gemini": "gemini-2.5-flash-lite",
        "gemini-2.5-flash-lite": "gemini-2.5-flash-lite",
        "gemini-1.5-flash": "gemini-1.5-flash",
        "gemini-1.5-pro": "gemini-1.5-pro",
        "seedream-text": "doubao-seed-1-6-251015",
        "seedream-seed": "doubao-seed-1-6-251015",
        "seedream-seed-1-8": "doubao-seed-1-8-251228",
        "seedream-seed-1-6": "doubao-seed-1-6-251015",
        # Real local model name comes from ProviderConfig.model_name
        "ollama": "llama3.2",
    },
    "image": {
        "nanobanana": "gemini-2.5-flash-image",
        "nanobananapro": "gemini-3-pro-image-preview",
        "seedream": "doubao-seedream-4-5-251128",
        "seedream-4-5": "doubao-seedream-4-5-251128",
        "seedream-4-0": "doubao-seedream-4-0-250828",
        "gptimage": "gptimage",
    },
    "video": {
        "seedream-video": "doubao-seedance-1-5-pro-251215",
        "seedream-seedance": "doubao-seedance-1-5-pro-251215",
        "seedream-seedance-1-5-pro": "doubao-seedance-1-5-pro-251215",
        "seedream-seedance-1-0-pro": "doubao-seedance-1-0-pro-250528",
        "seedream-seedance-1-0-pro-fast": "doubao-seedance-1-0-pro-fast-251015",
        "seedream-seedance-1-0-lite-t2v": "doubao-seedance-1-0-lite-t2v-250428",
        "seedream-seedance-1-0-lite-i2v": "doubao-seedance-1-0-lite-i2v-250428",
    },
    "3d": {
        "seedream-3d": "doubao-seed3d-1-0-250928",
        "seedream-seed3d": "doubao-seed3d-1-0-250928",
    },
}


def map_model_name(
    model: str,
    category: ModelCategory = "text",
    mapping: dict[str, dict[str, str]] | None = None,
) -> str:
    """Wire name for ``model`` in ``category``; unknown names are returned as-is."""
    if not model:
        return ""
    table = (mapping or DEFAULT_MODEL_MAPPING).get(category, {})
    return table.get(model.lower(), model)
