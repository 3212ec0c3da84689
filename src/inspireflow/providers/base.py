"""Provider adapter abstraction.

One adapter per wire protocol family. Every adapter turns a GenerationRequest
into a single HTTP call and parses the family's response shape into the
engine's canonical value:

  text   -> str
  image  -> list[str] of URLs / data URIs
  video  -> task id (resolved to a URL by the poller)
  3d     -> task id (resolved to an archive URL by the poller)
"""

from __future__ import annotations

import base64
import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import httpx

from inspireflow.config import ProviderConfig
from inspireflow.core.errors import NetworkError, ProviderError, UnsupportedTypeError
from inspireflow.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(connect=10.0, read=120.0, write=30.0, pool=10.0)

_MODEL_NOT_FOUND_MARKERS = ("model not exist", "model not found", "invalid model")


# ============================================================================
# Types
# ============================================================================


class OperationKind(StrEnum):
    """What a generating node asks a provider for."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    MODEL_3D = "3d"


class ProviderFamily(StrEnum):
    """Wire protocol families."""

    OPENAI = "openai"  # OpenAI and every OpenAI-compatible API (DeepSeek, Qwen, ...)
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    ARK = "ark"
    OLLAMA = "ollama"


@dataclass
class GenerationRequest:
    """Provider-independent generation request built by the dispatcher."""

    kind: OperationKind
    model: str
    prompt: str = ""
    images: list[str] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)


class TaskStatus(StrEnum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.EXPIRED)


@dataclass
class AsyncTask:
    """A provider-side job, advanced only by polling."""

    id: str
    status: TaskStatus
    result: dict[str, Any] | None = None
    error: dict[str, Any] | None = None
    raw: dict[str, Any] | None = None


# ============================================================================
# Helpers
# ============================================================================


def detect_family(model: str, base_url: str = "") -> ProviderFamily:
    """Pick the wire protocol for ``model``. First match wins."""
    name = (model or "").lower()
    base = (base_url or "").lower()
    if name == "ollama" or "localhost:11434" in base or "127.0.0.1:11434" in base:
        return ProviderFamily.OLLAMA
    if "seedream" in name or "doubao" in name:
        return ProviderFamily.ARK
    if "claude" in name or "anthropic" in name:
        return ProviderFamily.ANTHROPIC
    if "gemini" in name or "nanobanana" in name:
        return ProviderFamily.GOOGLE
    if "generativelanguage.googleapis.com" in base or base.endswith("/google"):
        return ProviderFamily.GOOGLE
    return ProviderFamily.OPENAI


def split_data_uri(ref: str, default_mime: str = "image/png") -> tuple[str, str]:
    """``(mime_type, base64_data)`` of a data URI; bare strings are taken as base64."""
    if ref.startswith("data:") and "," in ref:
        header, data = ref.split(",", 1)
        mime = header[5:].split(";", 1)[0] or default_mime
        return mime, data
    return default_mime, ref


def to_image_url(ref: str) -> str:
    """URL form accepted by image_url parts: remote URLs and data URIs as-is."""
    if ref.startswith(("http://", "https://", "data:")):
        return ref
    return f"data:image/png;base64,{ref}"


def is_remote(ref: str) -> bool:
    return ref.startswith(("http://", "https://"))


def images_from_data_list(payload: dict[str, Any]) -> list[str]:
    """``data[].url`` / ``data[].b64_json`` of an images API response."""
    images: list[str] = []
    for item in payload.get("data") or []:
        if not isinstance(item, dict):
            continue
        if item.get("url"):
            images.append(item["url"])
        elif item.get("b64_json"):
            images.append(f"data:image/png;base64,{item['b64_json']}")
    return images


def parse_error_message(text: str) -> str:
    """Human-readable message from a provider error body."""
    try:
        data = json.loads(text)
    except ValueError:
        return text
    if not isinstance(data, dict):
        return text
    error = data.get("error")
    if error:
        if isinstance(error, dict) and error.get("message"):
            message = str(error["message"])
        elif isinstance(error, str):
            message = error
        else:
            message = json.dumps(error, ensure_ascii=False)
        if any(marker in message.lower() for marker in _MODEL_NOT_FOUND_MARKERS):
            return (
                f"Model not found: {message}. Check the model name in the node "
                "settings and that your provider offers it."
            )
        return message
    if data.get("message"):
        return str(data["message"])
    return json.dumps(data, ensure_ascii=False)


# ============================================================================
# Abstract base
# ============================================================================


class ProviderAdapter(ABC):
    """One wire protocol.

    Holds a lazily created httpx.AsyncClient. Unsupported operations raise
    UnsupportedTypeError naming the family and operation.

    Args:
        config: Base URL, credential and optional model name override.
        timeout: Transport timeout for every call.
    """

    display_name = "Provider"
    # Replaceable in tests to capture image downloads
    _download_transport: httpx.AsyncBaseTransport | None = None

    def __init__(self, config: ProviderConfig, *, timeout: httpx.Timeout | None = None) -> None:
        self._config = config
        self._base_url = config.base_url.strip().rstrip("/")
        self._api_key = config.api_key
        self._timeout = timeout or DEFAULT_TIMEOUT
        self._client: httpx.AsyncClient | None = None

    @property
    @abstractmethod
    def family(self) -> ProviderFamily:
        """Protocol family of this adapter."""
        ...

    def _auth_headers(self) -> dict[str, str]:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    def _base_has_v1(self) -> bool:
        return self._base_url.endswith("/v1")

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers: dict[str, str] = {"Content-Type": "application/json"}
            headers.update(self._auth_headers())
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
                trust_env=False,
            )
        return self._client

    # ── Transport ────────────────────────────────────────────────

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        client = await self._ensure_client()
        start = time.monotonic()
        try:
            resp = await client.post(path, json=payload)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"{self.display_name} request to {path} timed out") from exc
        except httpx.TransportError as exc:
            raise NetworkError(
                f"{self.display_name} unreachable at {self._base_url}: {exc}",
            ) from exc
        data = self._check(resp, path)
        log.debug(
            "provider_post",
            provider=self.family.value,
            path=path,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return data

    async def _get(self, path: str) -> dict[str, Any]:
        client = await self._ensure_client()
        try:
            resp = await client.get(path)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"{self.display_name} request to {path} timed out") from exc
        except httpx.TransportError as exc:
            raise NetworkError(
                f"{self.display_name} unreachable at {self._base_url}: {exc}",
            ) from exc
        return self._check(resp, path)

    def _check(self, resp: httpx.Response, path: str) -> dict[str, Any]:
        if not 200 <= resp.status_code < 300:
            message = parse_error_message(resp.text[:2000])
            raise ProviderError(
                f"{self.display_name} HTTP {resp.status_code}: {message}",
                status_code=resp.status_code,
                provider=self.family.value,
                details={"path": path},
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderError(
                f"{self.display_name} returned invalid JSON from {path}",
                status_code=resp.status_code,
                provider=self.family.value,
            ) from exc
        if not isinstance(data, dict):
            raise ProviderError(
                f"{self.display_name} returned an unexpected payload from {path}",
                provider=self.family.value,
            )
        return data

    def _download_client(self) -> httpx.AsyncClient:
        # No provider headers: image hosts must never see the credential
        return httpx.AsyncClient(
            timeout=self._timeout,
            trust_env=False,
            follow_redirects=True,
            transport=self._download_transport,
        )

    async def _fetch_base64(self, url: str) -> tuple[str, str]:
        """Download a remote image for protocols that only take inline bytes."""
        try:
            async with self._download_client() as client:
                resp = await client.get(url)
        except httpx.TransportError as exc:
            raise NetworkError(f"Could not download input image {url}: {exc}") from exc
        if not 200 <= resp.status_code < 300:
            raise ProviderError(
                f"Could not download input image {url}: HTTP {resp.status_code}",
                status_code=resp.status_code,
                provider=self.family.value,
            )
        mime = resp.headers.get("content-type", "image/png").split(";", 1)[0]
        return mime, base64.b64encode(resp.content).decode("ascii")

    async def _inline_image(self, ref: str) -> tuple[str, str]:
        if is_remote(ref):
            return await self._fetch_base64(ref)
        return split_data_uri(ref)

    def _unsupported(self, operation: str) -> UnsupportedTypeError:
        return UnsupportedTypeError(
            f"{self.display_name} does not support {operation} generation",
            details={"family": self.family.value, "operation": operation},
        )

    # ── Operations ───────────────────────────────────────────────

    async def generate_text(self, request: GenerationRequest) -> str:
        raise self._unsupported("text")

    async def generate_image(self, request: GenerationRequest) -> list[str]:
        raise self._unsupported("image")

    async def generate_video(self, request: GenerationRequest) -> str:
        """Submit a video job and return its task id."""
        raise self._unsupported("video")

    async def generate_3d(self, request: GenerationRequest) -> str:
        """Submit a 3D job and return its task id."""
        raise self._unsupported("3d")

    async def get_task(self, task_id: str) -> AsyncTask:
        raise self._unsupported("task lookup")

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
