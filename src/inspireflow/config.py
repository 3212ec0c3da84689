"""
InspireFlow · Configuration system.

Loads configuration from:
  1. Defaults (defined here)
  2. ~/.inspireflow/config.yaml (overrides defaults)
  3. Environment variables INSPIREFLOW_* (overrides everything)

Provider credentials live under ``providers`` keyed by config key (a model id
such as ``gemini`` or a unified group key such as ``google-gemini-unified``).
The engine only reads them, through SettingsConfigProvider.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import BaseModel, Field

log = logging.getLogger(__name__)

# Home/base of the ARK API; bare hosts get the version prefix appended
ARK_HOST_SUFFIX = "volces.com"
ARK_API_PREFIX = "/api/v3"


# ============================================================================
# Configuration models
# ============================================================================


class ProviderConfig(BaseModel):
    """Connection settings for one provider or model."""

    base_url: str = ""
    api_key: str = ""
    model_name: str = Field(default="", description="Explicit wire model name (Ollama)")


class HttpConfig(BaseModel):
    """Transport timeouts for provider calls."""

    connect_timeout: float = Field(default=10.0, gt=0)
    read_timeout: float = Field(default=120.0, gt=0)
    write_timeout: float = Field(default=30.0, gt=0)
    pool_timeout: float = Field(default=10.0, gt=0)

    def to_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.pool_timeout,
        )


class PollingConfig(BaseModel):
    """Async task polling. Fixed interval, no backoff."""

    interval_seconds: float = Field(default=10.0, ge=0)
    video_max_attempts: int = Field(default=120, ge=1)
    model3d_max_attempts: int = Field(default=60, ge=1)


class ScriptConfig(BaseModel):
    """Script runner limits."""

    timeout_seconds: int = Field(default=30, ge=1, le=600)
    max_output_bytes: int = Field(default=50_000, ge=1024)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_logs: bool = False
    console: bool = True
    # JSONL file under <home>/logs
    file: bool = True


class WorkflowSettings(BaseModel):
    """Complete engine configuration.

    Loaded once at startup and handed to the executor.
    """

    home: Path = Field(default_factory=lambda: Path.home() / ".inspireflow")

    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    # Group id -> use the group's unified config key
    unified_providers: dict[str, bool] = Field(default_factory=dict)

    http: HttpConfig = Field(default_factory=HttpConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    scripts: ScriptConfig = Field(default_factory=ScriptConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def log_dir(self) -> Path:
        return self.home / "logs"


# ============================================================================
# Provider groups
# ============================================================================


@dataclass(frozen=True)
class ProviderGroup:
    """Models that can share one set of credentials."""

    id: str
    unified_key: str
    models: tuple[str, ...]
    always_unified: bool = False


PROVIDER_GROUPS: tuple[ProviderGroup, ...] = (
    ProviderGroup("openai", "openai-unified", ("openai",)),
    ProviderGroup("claude", "claude-unified", ("claude",)),
    ProviderGroup("deepseek", "deepseek-unified", ("deepseek",)),
    ProviderGroup(
        "google-gemini",
        "google-gemini-unified",
        ("gemini", "nanobanana", "nanobananapro", "gptimage"),
    ),
    ProviderGroup(
        "seedream",
        "seedream-ark",
        (
            "seedream", "seedream-4-5", "seedream-4-0",
            "seedream-text", "seedream-seed-1-8",
            "seedream-video", "seedream-seedance", "seedream-seedance-1-5-pro",
            "seedream-seedance-1-0-pro", "seedream-seedance-1-0-pro-fast",
            "seedream-seedance-1-0-lite-t2v", "seedream-seedance-1-0-lite-i2v",
            "seedream-3d", "seedream-seed3d",
        ),
        always_unified=True,
    ),
)


def find_provider_group(model_id: str) -> ProviderGroup | None:
    """Group a model belongs to; any ``seedream*`` id counts as Seedream."""
    key = model_id.lower()
    for group in PROVIDER_GROUPS:
        if key in group.models:
            return group
    if key.startswith("seedream"):
        return PROVIDER_GROUPS[-1]
    return None


def normalize_ark_base_url(base_url: str) -> str:
    """Append ``/api/v3`` to a bare ARK host."""
    base = base_url.rstrip("/")
    if base.endswith(ARK_HOST_SUFFIX):
        return base + ARK_API_PREFIX
    return base


class SettingsConfigProvider:
    """Default ConfigProvider backed by WorkflowSettings.

    Resolution: the Seedream group always reads ``seedream-ark``; other groups
    read their unified key when switched on in ``unified_providers``; then the
    per-model entry. Returns None when nothing is configured.
    """

    def __init__(self, settings: WorkflowSettings) -> None:
        self._settings = settings

    def config_key_for(self, model_id: str) -> str:
        group = find_provider_group(model_id)
        if group is not None:
            if group.always_unified or self._settings.unified_providers.get(group.id, False):
                return group.unified_key
        return model_id

    def get_provider_config(self, model_id: str) -> ProviderConfig | None:
        key = self.config_key_for(model_id)
        config = self._settings.providers.get(key)
        if config is None and key != model_id:
            config = self._settings.providers.get(model_id)
        if config is None:
            return None
        if key == "seedream-ark":
            return config.model_copy(update={"base_url": normalize_ark_base_url(config.base_url)})
        return config


# ============================================================================
# Config loading
# ============================================================================


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two dicts. Override wins on conflicts."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply INSPIREFLOW_* environment variables.

    Convention: INSPIREFLOW_SECTION_KEY -> data["section"]["key"]
    Example: INSPIREFLOW_POLLING_INTERVAL_SECONDS -> data["polling"]["interval_seconds"]
    """
    prefix = "INSPIREFLOW_"
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        parts = key[len(prefix):].lower().split("_")
        if len(parts) >= 2:
            node = data
            consumed = 0
            for i in range(len(parts) - 1):
                candidate = parts[i]
                if candidate in node and isinstance(node[candidate], dict):
                    node = node[candidate]
                    consumed = i + 1
                else:
                    break
            if consumed == 0:
                section = parts[0]
                if section not in node:
                    node[section] = {}
                if isinstance(node[section], dict):
                    node = node[section]
                    consumed = 1
            leaf_key = "_".join(parts[consumed:])
            if leaf_key:
                node[leaf_key] = value
        elif len(parts) == 1:
            data[parts[0]] = value
    return data


def load_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> WorkflowSettings:
    """Load the configuration.

    Order (later wins):
      1. Defaults (in the pydantic models)
      2. config.yaml (when present)
      3. INSPIREFLOW_* environment variables

    Args:
        config_path: Explicit path to config.yaml. None: ~/.inspireflow/config.yaml
        overrides: Values merged over the file before env vars are applied.

    Returns:
        Fully validated WorkflowSettings.
    """
    data: dict[str, Any] = {}

    if config_path is None:
        config_path = Path.home() / ".inspireflow" / "config.yaml"

    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                file_data = yaml.safe_load(f) or {}
            if isinstance(file_data, dict):
                data = file_data
        except yaml.YAMLError as exc:
            log.warning("Ignoring broken config.yaml: %s", exc)

    if overrides:
        data = _deep_merge(data, overrides)

    data = _apply_env_overrides(data)

    return WorkflowSettings(**data)
