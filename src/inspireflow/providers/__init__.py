"""Model provider adapters, the gateway that routes to them and task polling."""

from inspireflow.providers.base import (
    AsyncTask,
    GenerationRequest,
    OperationKind,
    ProviderAdapter,
    ProviderFamily,
    TaskStatus,
    detect_family,
)
from inspireflow.providers.gateway import ConfigProvider, ProviderGateway
from inspireflow.providers.model_mapping import map_model_name
from inspireflow.providers.registry import create_adapter
from inspireflow.providers.tasks import AsyncTaskPoller

__all__ = [
    "AsyncTask",
    "AsyncTaskPoller",
    "ConfigProvider",
    "GenerationRequest",
    "OperationKind",
    "ProviderAdapter",
    "ProviderFamily",
    "ProviderGateway",
    "TaskStatus",
    "create_adapter",
    "detect_family",
    "map_model_name",
]
