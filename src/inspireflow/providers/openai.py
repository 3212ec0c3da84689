"""OpenAI-compatible adapter (OpenAI, DeepSeek, Qwen and other proxies).

Text: ``/v1/chat/completions`` with vision ``image_url`` parts.
Images: ``/v1/images/generations`` (no image input).
"""

from __future__ import annotations

from typing import Any

from inspireflow.core.errors import ProviderError
from inspireflow.providers.base import (
    GenerationRequest,
    ProviderAdapter,
    ProviderFamily,
    images_from_data_list,
    to_image_url,
)
from inspireflow.providers.model_mapping import map_model_name

_ASPECT_RATIO_SIZES = {
    "1:1": "1024x1024",
    "16:9": "1792x1024",
    "9:16": "1024x1792",
    "4:3": "1024x768",
    "3:4": "768x1024",
}
DEFAULT_IMAGE_SIZE = "1024x1024"
DEFAULT_IMAGE_MODEL = "dall-e-3"


def build_chat_messages(
    prompt: str,
    images: list[str],
    context: str | None = None,
) -> list[dict[str, Any]]:
    """OpenAI chat ``messages`` with an optional system message and vision parts."""
    messages: list[dict[str, Any]] = []
    if context:
        messages.append({"role": "system", "content": context})
    if images:
        content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
        for ref in images:
            content.append({"type": "image_url", "image_url": {"url": to_image_url(ref)}})
        messages.append({"role": "user", "content": content})
    else:
        messages.append({"role": "user", "content": prompt})
    return messages


def first_choice_content(data: dict[str, Any]) -> str:
    choices = data.get("choices") or [{}]
    message = choices[0].get("message") or {}
    return message.get("content") or ""


class OpenAICompatibleAdapter(ProviderAdapter):
    """OpenAI chat/images protocol with ``Authorization: Bearer``."""

    display_name = "OpenAI"

    @property
    def family(self) -> ProviderFamily:
        return ProviderFamily.OPENAI

    def _path(self, resource: str) -> str:
        return resource if self._base_has_v1() else f"/v1{resource}"

    async def generate_text(self, request: GenerationRequest) -> str:
        params = request.params
        payload = {
            "model": map_model_name(request.model or "openai", "text"),
            "messages": build_chat_messages(request.prompt, request.images, params.get("context")),
            "temperature": params.get("temperature") or 0.7,
            "max_tokens": params.get("max_tokens") or 1000,
        }
        data = await self._post(self._path("/chat/completions"), payload)
        return first_choice_content(data)

    async def generate_image(self, request: GenerationRequest) -> list[str]:
        if request.images:
            raise ProviderError(
                "The OpenAI images API does not accept image input. "
                "Use a Google GenAI or Seedream model for image-to-image.",
                provider=self.family.value,
            )
        params = request.params
        model = request.model or DEFAULT_IMAGE_MODEL
        payload: dict[str, Any] = {"model": model, "prompt": request.prompt, "n": 1}

        if params.get("size"):
            payload["size"] = params["size"]
        elif params.get("aspect_ratio"):
            payload["size"] = _ASPECT_RATIO_SIZES.get(params["aspect_ratio"], DEFAULT_IMAGE_SIZE)
        else:
            payload["size"] = DEFAULT_IMAGE_SIZE

        quality = params.get("quality")
        if quality and "dall-e-3" in model:
            payload["quality"] = "hd" if quality in ("2K", "hd") else "standard"

        data = await self._post(self._path("/images/generations"), payload)
        images = images_from_data_list(data)
        if not images:
            raise ProviderError(
                "OpenAI image generation returned no images", provider=self.family.value,
            )
        return images
