"""inspireflow core module."""

from inspireflow.core.errors import (  # noqa: F401
    ConfigurationError,
    CycleError,
    NetworkError,
    ProviderError,
    ScriptExecutionError,
    TaskCancelledError,
    TaskError,
    TaskExpiredError,
    TaskFailedError,
    TaskTimeoutError,
    UnsupportedTypeError,
    ValidationError,
    WorkflowError,
)
