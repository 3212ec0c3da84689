"""Anthropic Messages API adapter (text only)."""

from __future__ import annotations

from typing import Any

from inspireflow.providers.base import GenerationRequest, ProviderAdapter, ProviderFamily
from inspireflow.providers.model_mapping import map_model_name

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicAdapter(ProviderAdapter):
    """``/v1/messages`` with ``x-api-key`` and ``anthropic-version`` headers.

    Images are sent inline as base64 ``source`` blocks; remote URLs are
    downloaded first.
    """

    display_name = "Anthropic"

    @property
    def family(self) -> ProviderFamily:
        return ProviderFamily.ANTHROPIC

    def _auth_headers(self) -> dict[str, str]:
        headers = {"anthropic-version": ANTHROPIC_VERSION}
        if self._api_key:
            headers["x-api-key"] = self._api_key
        return headers

    async def _build_content(self, prompt: str, images: list[str]) -> str | list[dict[str, Any]]:
        if not images:
            return prompt
        content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
        for ref in images:
            mime, data = await self._inline_image(ref)
            content.append({
                "type": "image",
                "source": {"type": "base64", "media_type": mime, "data": data},
            })
        return content

    async def generate_text(self, request: GenerationRequest) -> str:
        params = request.params
        payload: dict[str, Any] = {
            "model": map_model_name(request.model or "claude", "text"),
            "max_tokens": params.get("max_tokens") or 1000,
            "messages": [
                {"role": "user", "content": await self._build_content(request.prompt, request.images)},
            ],
        }
        if params.get("context"):
            payload["system"] = params["context"]
        if params.get("temperature") is not None:
            payload["temperature"] = params["temperature"]

        path = "/messages" if self._base_has_v1() else "/v1/messages"
        data = await self._post(path, payload)

        texts = [
            block.get("text", "")
            for block in data.get("content") or []
            if isinstance(block, dict) and block.get("type", "text") == "text"
        ]
        return "\n".join(t for t in texts if t)
