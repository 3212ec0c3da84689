"""Google GenAI adapter (Gemini text, Nano Banana images).

Uses ``{base}/v1beta/models/{model}:generateContent``. Image generation falls
back once to an OpenAI-style ``/v1/chat/completions`` call, which several
Gemini proxies expose instead of the native endpoint.
"""

from __future__ import annotations

import json
from typing import Any

from inspireflow.core.errors import NetworkError, ProviderError
from inspireflow.providers.base import (
    GenerationRequest,
    ProviderAdapter,
    ProviderFamily,
    images_from_data_list,
)
from inspireflow.providers.model_mapping import map_model_name
from inspireflow.providers.openai import build_chat_messages, first_choice_content
from inspireflow.utils.logging import get_logger

log = get_logger(__name__)

MAX_INPUT_IMAGES = 14
# Only this model accepts imageConfig.imageSize
IMAGE_SIZE_MODEL = "gemini-3-pro-image-preview"

_IMAGE_SIZES = {"1K": "1K", "2K": "2K", "4K": "4K", "standard": "1K"}


class GeminiAdapter(ProviderAdapter):
    """Google GenAI ``generateContent`` protocol."""

    display_name = "Google GenAI"

    @property
    def family(self) -> ProviderFamily:
        return ProviderFamily.GOOGLE

    def _generate_path(self, model: str) -> str:
        if self._base_url.endswith(("/v1", "/v1beta")):
            return f"/models/{model}:generateContent"
        return f"/v1beta/models/{model}:generateContent"

    async def _parts(self, prompt: str, images: list[str]) -> list[dict[str, Any]]:
        parts: list[dict[str, Any]] = [{"text": prompt}]
        for ref in images:
            mime, data = await self._inline_image(ref)
            parts.append({"inlineData": {"mimeType": mime, "data": data}})
        return parts

    # ── Text ─────────────────────────────────────────────────────

    async def generate_text(self, request: GenerationRequest) -> str:
        model = map_model_name(request.model or "gemini", "text")
        payload: dict[str, Any] = {
            "contents": [{"parts": await self._parts(request.prompt, request.images)}],
        }
        context = request.params.get("context")
        if context:
            payload["systemInstruction"] = {"parts": [{"text": context}]}

        data = await self._post(self._generate_path(model), payload)
        candidates = data.get("candidates") or []
        if not candidates or not isinstance(candidates[0].get("content"), dict):
            raise ProviderError(
                "Google GenAI response has no candidates", provider=self.family.value,
            )
        parts = candidates[0]["content"].get("parts") or []
        return "\n".join(p["text"] for p in parts if p.get("text"))

    # ── Images ───────────────────────────────────────────────────

    def _generation_config(self, model: str, params: dict[str, Any]) -> dict[str, Any]:
        config: dict[str, Any] = {"responseModalities": ["TEXT", "IMAGE"]}
        image_config: dict[str, Any] = {}
        if params.get("aspect_ratio"):
            image_config["aspectRatio"] = params["aspect_ratio"]
        quality = params.get("quality")
        if quality and model == IMAGE_SIZE_MODEL:
            image_config["imageSize"] = _IMAGE_SIZES.get(quality, quality)
        if image_config:
            config["imageConfig"] = image_config
        return config

    async def generate_image(self, request: GenerationRequest) -> list[str]:
        model = map_model_name(request.model or "nanobanana", "image")
        images = request.images[:MAX_INPUT_IMAGES]

        payload = {
            "contents": [{"parts": await self._parts(request.prompt, images)}],
            "generationConfig": self._generation_config(model, request.params),
        }
        try:
            data = await self._post(self._generate_path(model), payload)
        except (ProviderError, NetworkError) as exc:
            log.warning("gemini_native_image_failed", model=model, error=str(exc))
            return await self._generate_image_via_chat(model, request.prompt, images, exc)

        found = images_from_candidates(data)
        if found:
            return found
        log.warning("gemini_native_image_empty", model=model)
        return await self._generate_image_via_chat(model, request.prompt, images, None)

    async def _generate_image_via_chat(
        self,
        model: str,
        prompt: str,
        images: list[str],
        cause: Exception | None,
    ) -> list[str]:
        payload = {
            "model": model,
            "messages": build_chat_messages(prompt, images),
            "max_tokens": 4096,
        }
        try:
            data = await self._post("/v1/chat/completions", payload)
        except (ProviderError, NetworkError):
            if cause is not None:
                raise cause from None
            raise
        found = images_from_candidates(data) or images_from_chat(data) or images_from_data_list(data)
        if not found:
            raise ProviderError(
                f"Google GenAI returned no image for model '{model}'",
                provider=self.family.value,
            )
        return found


def images_from_candidates(data: dict[str, Any]) -> list[str]:
    """Every ``inlineData`` part of every candidate as a data URI."""
    images: list[str] = []
    for candidate in data.get("candidates") or []:
        content = candidate.get("content") if isinstance(candidate, dict) else None
        for part in (content or {}).get("parts") or []:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                images.append(f"data:{mime};base64,{inline['data']}")
    return images


def images_from_chat(data: dict[str, Any]) -> list[str]:
    """Image carried in a chat completion's content (data URI or JSON object)."""
    if not data.get("choices"):
        return []
    content = first_choice_content(data)
    if not isinstance(content, str) or not content:
        return []
    if content.startswith("data:image"):
        return [content]
    try:
        parsed = json.loads(content)
    except ValueError:
        return []
    if not isinstance(parsed, dict):
        return []
    value = parsed.get("image") or (parsed.get("images") or [None])[0] or parsed.get("url") or parsed.get("data")
    if not isinstance(value, str) or not value:
        return []
    if value.startswith(("data:", "http://", "https://")):
        return [value]
    return [f"data:image/png;base64,{value}"]
