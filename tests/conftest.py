"""
inspireflow · Shared test fixtures.

Tests use a temporary home directory instead of ~/.inspireflow/ and mocked
HTTP clients instead of real providers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from inspireflow.config import ProviderConfig, SettingsConfigProvider, WorkflowSettings
from inspireflow.providers.tasks import AsyncTaskPoller

if TYPE_CHECKING:
    from pathlib import Path


def _response(status_code: int = 200, payload: Any = None, text: str = "") -> MagicMock:
    """Stand-in for an httpx.Response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {}
    resp.text = text or ("" if payload is None else str(payload))
    resp.headers = {"content-type": "image/png"}
    resp.content = b"png-bytes"
    return resp


def _client(*, post: list[MagicMock] | None = None, get: list[MagicMock] | None = None) -> AsyncMock:
    """Stand-in for an httpx.AsyncClient returning the given responses in order."""
    client = AsyncMock()
    client.is_closed = False
    client.post = AsyncMock(side_effect=list(post or []))
    client.get = AsyncMock(side_effect=list(get or []))
    return client


@pytest.fixture
def tmp_home(tmp_path: Path) -> Path:
    """Temporary inspireflow home directory."""
    return tmp_path / ".inspireflow"


@pytest.fixture
def settings(tmp_home: Path) -> WorkflowSettings:
    """Settings with one provider per family."""
    return WorkflowSettings(
        home=tmp_home,
        providers={
            "openai": ProviderConfig(base_url="https://api.openai.test", api_key="sk-openai"),
            "claude": ProviderConfig(base_url="https://api.anthropic.test", api_key="sk-claude"),
            "nanobanana": ProviderConfig(base_url="https://genai.test", api_key="g-key"),
            "gemini": ProviderConfig(base_url="https://genai.test", api_key="g-key"),
            "seedream-ark": ProviderConfig(base_url="https://ark.test/api/v3", api_key="ark-key"),
            "ollama": ProviderConfig(base_url="http://localhost:11434", model_name="llama3.2:3b"),
        },
    )


@pytest.fixture
def config_provider(settings: WorkflowSettings) -> SettingsConfigProvider:
    return SettingsConfigProvider(settings)


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def fast_poller(no_sleep: AsyncMock) -> AsyncTaskPoller:
    """Poller that never actually waits."""
    return AsyncTaskPoller(10.0, sleep=no_sleep)


@pytest.fixture
def make_response():
    """Factory for fake httpx responses."""
    return _response


@pytest.fixture
def make_client():
    """Factory for fake httpx.AsyncClient instances."""
    return _client
