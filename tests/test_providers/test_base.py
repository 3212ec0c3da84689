"""Tests for inspireflow.providers.base: family detection, helpers and transport errors."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from inspireflow.config import ProviderConfig
from inspireflow.core.errors import NetworkError, ProviderError, UnsupportedTypeError
from inspireflow.providers.base import (
    GenerationRequest,
    OperationKind,
    ProviderFamily,
    TaskStatus,
    detect_family,
    images_from_data_list,
    parse_error_message,
    split_data_uri,
    to_image_url,
)
from inspireflow.providers.ollama import OllamaAdapter
from inspireflow.providers.openai import OpenAICompatibleAdapter


class TestDetectFamily:
    @pytest.mark.parametrize(
        ("model", "base_url", "family"),
        [
            ("ollama", "", ProviderFamily.OLLAMA),
            ("llama3", "http://localhost:11434", ProviderFamily.OLLAMA),
            ("seedream-video", "", ProviderFamily.ARK),
            ("doubao-seed-1-6", "", ProviderFamily.ARK),
            ("claude", "", ProviderFamily.ANTHROPIC),
            ("nanobanana", "", ProviderFamily.GOOGLE),
            ("gemini-1.5-pro", "", ProviderFamily.GOOGLE),
            ("custom", "https://generativelanguage.googleapis.com", ProviderFamily.GOOGLE),
            ("custom", "https://proxy.test/google", ProviderFamily.GOOGLE),
            ("deepseek", "https://api.deepseek.test", ProviderFamily.OPENAI),
            ("openai", "", ProviderFamily.OPENAI),
        ],
    )
    def test_families(self, model: str, base_url: str, family: ProviderFamily) -> None:
        assert detect_family(model, base_url) is family

    def test_ollama_base_wins_over_name(self) -> None:
        assert detect_family("claude", "http://127.0.0.1:11434") is ProviderFamily.OLLAMA


class TestHelpers:
    def test_split_data_uri(self) -> None:
        assert split_data_uri("data:image/jpeg;base64,QUJD") == ("image/jpeg", "QUJD")
        assert split_data_uri("QUJD") == ("image/png", "QUJD")

    def test_to_image_url(self) -> None:
        assert to_image_url("https://a.test/x.png") == "https://a.test/x.png"
        assert to_image_url("QUJD") == "data:image/png;base64,QUJD"

    def test_images_from_data_list(self) -> None:
        payload = {"data": [{"url": "https://a.test/1.png"}, {"b64_json": "QUJD"}, "junk"]}
        assert images_from_data_list(payload) == ["https://a.test/1.png", "data:image/png;base64,QUJD"]

    def test_task_status_terminal(self) -> None:
        assert TaskStatus.FAILED.is_terminal
        assert not TaskStatus.RUNNING.is_terminal


class TestParseErrorMessage:
    def test_error_object(self) -> None:
        assert parse_error_message('{"error": {"message": "quota exceeded"}}') == "quota exceeded"

    def test_error_string(self) -> None:
        assert parse_error_message('{"error": "bad key"}') == "bad key"

    def test_top_level_message(self) -> None:
        assert parse_error_message('{"message": "nope"}') == "nope"

    def test_model_not_found_hint(self) -> None:
        message = parse_error_message('{"error": {"message": "The model not exist"}}')
        assert message.startswith("Model not found")

    def test_plain_text(self) -> None:
        assert parse_error_message("Bad Gateway") == "Bad Gateway"


class TestTransport:
    @pytest.mark.asyncio
    async def test_http_error_becomes_provider_error(self, make_response, make_client) -> None:
        adapter = OpenAICompatibleAdapter(ProviderConfig(base_url="https://api.test", api_key="k"))
        adapter._client = make_client(
            post=[make_response(429, text='{"error": {"message": "rate limited"}}')],
        )
        request = GenerationRequest(OperationKind.TEXT, "openai", "hi")
        with pytest.raises(ProviderError) as exc_info:
            await adapter.generate_text(request)
        assert exc_info.value.status_code == 429
        assert str(exc_info.value) == "OpenAI HTTP 429: rate limited"

    @pytest.mark.asyncio
    async def test_invalid_json(self, make_response, make_client) -> None:
        resp = make_response(200)
        resp.json.side_effect = ValueError("not json")
        adapter = OpenAICompatibleAdapter(ProviderConfig(base_url="https://api.test", api_key="k"))
        adapter._client = make_client(post=[resp])
        with pytest.raises(ProviderError, match="invalid JSON"):
            await adapter.generate_text(GenerationRequest(OperationKind.TEXT, "openai", "hi"))

    @pytest.mark.asyncio
    async def test_connect_error_becomes_network_error(self, make_client) -> None:
        adapter = OpenAICompatibleAdapter(ProviderConfig(base_url="https://api.test", api_key="k"))
        client = make_client()
        client.post = AsyncMock(side_effect=httpx.ConnectError("refused"))
        adapter._client = client
        with pytest.raises(NetworkError, match="unreachable"):
            await adapter.generate_text(GenerationRequest(OperationKind.TEXT, "openai", "hi"))

    @pytest.mark.asyncio
    async def test_timeout_becomes_network_error(self, make_client) -> None:
        adapter = OpenAICompatibleAdapter(ProviderConfig(base_url="https://api.test", api_key="k"))
        client = make_client()
        client.post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        adapter._client = client
        with pytest.raises(NetworkError, match="timed out"):
            await adapter.generate_text(GenerationRequest(OperationKind.TEXT, "openai", "hi"))

    @pytest.mark.asyncio
    async def test_unsupported_operation(self) -> None:
        adapter = OllamaAdapter(ProviderConfig(base_url="http://localhost:11434"))
        with pytest.raises(UnsupportedTypeError, match="Ollama does not support video"):
            await adapter.generate_video(GenerationRequest(OperationKind.VIDEO, "ollama", "x"))

    @pytest.mark.asyncio
    async def test_close_releases_client(self, make_client) -> None:
        adapter = OpenAICompatibleAdapter(ProviderConfig(base_url="https://api.test", api_key="k"))
        client = make_client()
        adapter._client = client
        await adapter.close()
        client.aclose.assert_awaited_once()
        assert adapter._client is None
