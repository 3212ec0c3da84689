"""Local Ollama adapter (text only, no auth)."""

from __future__ import annotations

from inspireflow.providers.base import GenerationRequest, ProviderAdapter, ProviderFamily
from inspireflow.providers.model_mapping import map_model_name
from inspireflow.providers.openai import build_chat_messages


class OllamaAdapter(ProviderAdapter):
    """Ollama ``/api/chat``. The configured ``model_name`` wins over the mapping."""

    display_name = "Ollama"

    @property
    def family(self) -> ProviderFamily:
        return ProviderFamily.OLLAMA

    def _auth_headers(self) -> dict[str, str]:
        return {}

    def _model(self, requested: str) -> str:
        if self._config.model_name:
            return self._config.model_name
        return map_model_name(requested or "ollama", "text")

    async def generate_text(self, request: GenerationRequest) -> str:
        params = request.params
        payload = {
            "model": self._model(request.model),
            "messages": build_chat_messages(request.prompt, request.images, params.get("context")),
            "stream": False,
            "options": {
                "temperature": params.get("temperature") or 0.7,
                "num_predict": params.get("max_tokens") or 1000,
            },
        }
        data = await self._post("/api/chat", payload)
        message = data.get("message") or {}
        return message.get("content") or data.get("content") or ""
