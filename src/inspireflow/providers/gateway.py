"""Executes GenerationRequests against the configured providers.

Configuration is checked before any request goes out: a model without
config, without a base URL, or without an API key (everything except
Ollama) fails with a ConfigurationError naming the model and the field.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

import httpx

from inspireflow.config import PollingConfig, ProviderConfig
from inspireflow.core.errors import ConfigurationError, UnsupportedTypeError
from inspireflow.providers.base import (
    GenerationRequest,
    OperationKind,
    ProviderAdapter,
    ProviderFamily,
    detect_family,
)
from inspireflow.providers.registry import create_adapter
from inspireflow.providers.tasks import AsyncTaskPoller, ShouldStop
from inspireflow.utils.logging import get_logger

log = get_logger(__name__)

AdapterFactory = Callable[..., ProviderAdapter]


class ConfigProvider(Protocol):
    """Looks up connection settings for a model id."""

    def get_provider_config(self, model_id: str) -> ProviderConfig | None: ...


class ProviderGateway:
    """Routes a request to the right adapter and waits for async tasks.

    Args:
        config_provider: Source of ProviderConfig per model id.
        poller: Poller for video/3D tasks.
        polling: Attempt budgets for video and 3D.
        timeout: Transport timeout handed to every adapter.
        adapter_factory: ``(family, config, *, timeout)`` -> adapter.
    """

    def __init__(
        self,
        config_provider: ConfigProvider,
        *,
        poller: AsyncTaskPoller | None = None,
        polling: PollingConfig | None = None,
        timeout: httpx.Timeout | None = None,
        adapter_factory: AdapterFactory | None = None,
    ) -> None:
        self._configs = config_provider
        self._polling = polling or PollingConfig()
        self._poller = poller or AsyncTaskPoller(self._polling.interval_seconds)
        self._timeout = timeout
        self._factory = adapter_factory or create_adapter

    def resolve(self, model: str) -> tuple[ProviderFamily, ProviderConfig]:
        """Family and validated config for ``model``."""
        config = self._configs.get_provider_config(model)
        if config is None:
            raise ConfigurationError(
                f"No provider configured for model '{model}'. "
                "Add its base URL and API key in the settings.",
                details={"model": model, "field": "provider"},
            )
        if not config.base_url.strip():
            raise ConfigurationError(
                f"Provider config for model '{model}' is missing the base URL",
                details={"model": model, "field": "base_url"},
            )
        family = detect_family(model, config.base_url)
        if family != ProviderFamily.OLLAMA and not config.api_key.strip():
            raise ConfigurationError(
                f"Provider config for model '{model}' is missing the API key",
                details={"model": model, "field": "api_key"},
            )
        return family, config

    async def execute(
        self,
        request: GenerationRequest,
        *,
        should_stop: ShouldStop | None = None,
    ) -> Any:
        """Run ``request`` and return its canonical value."""
        family, config = self.resolve(request.model)
        adapter = self._factory(family, config, timeout=self._timeout)
        log.info(
            "provider_request",
            model=request.model,
            family=family.value,
            kind=request.kind.value,
            images=len(request.images),
        )
        try:
            match request.kind:
                case OperationKind.TEXT:
                    return await adapter.generate_text(request)
                case OperationKind.IMAGE:
                    return await adapter.generate_image(request)
                case OperationKind.VIDEO:
                    task_id = await adapter.generate_video(request)
                    return await self._poller.wait(
                        adapter,
                        task_id,
                        result_key="video_url",
                        max_attempts=self._polling.video_max_attempts,
                        label="Video",
                        should_stop=should_stop,
                    )
                case OperationKind.MODEL_3D:
                    task_id = await adapter.generate_3d(request)
                    return await self._poller.wait(
                        adapter,
                        task_id,
                        result_key="file_url",
                        max_attempts=self._polling.model3d_max_attempts,
                        label="3D",
                        should_stop=should_stop,
                    )
            raise UnsupportedTypeError(f"Unknown operation: {request.kind}")
        finally:
            await adapter.close()
