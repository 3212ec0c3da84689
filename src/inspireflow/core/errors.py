"""InspireFlow · Unified Error Hierarchy.

All engine exceptions inherit from WorkflowError, which carries an error_code
and an optional details dict for programmatic handling. The orchestrator
catches these at the per-node boundary and records ``str(exc)`` on the
node's ExecutionResult.

Usage::

    from inspireflow.core.errors import ConfigurationError, ProviderError

    raise ConfigurationError("Model 'gemini' has no API key", details={"field": "api_key"})
    raise ProviderError("OpenAI HTTP 429: rate limited", status_code=429, provider="openai")
"""

from __future__ import annotations


class WorkflowError(Exception):
    """Base exception for all workflow engine errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "WORKFLOW_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(WorkflowError):
    """Missing or incomplete provider configuration (base URL, credential)."""

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIGURATION_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code, details=details)


class ValidationError(WorkflowError):
    """A node is missing required fields or carries an unparsable config."""

    def __init__(
        self,
        message: str,
        *,
        missing: list[str] | None = None,
        error_code: str = "VALIDATION_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code, details=details)
        self.missing = list(missing or [])


class ProviderError(WorkflowError):
    """A provider answered with an error status or an unusable payload."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        provider: str = "",
        error_code: str = "PROVIDER_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code, details=details)
        self.status_code = status_code
        self.provider = provider


class NetworkError(WorkflowError):
    """Transport-level failure (connection refused, DNS, timeout)."""

    def __init__(
        self,
        message: str,
        error_code: str = "NETWORK_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code, details=details)


class TaskError(WorkflowError):
    """Base for async provider task outcomes other than success."""

    def __init__(
        self,
        message: str,
        *,
        task_id: str = "",
        error_code: str = "TASK_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code, details=details)
        self.task_id = task_id


class TaskFailedError(TaskError):
    """The provider reported the task as failed."""

    def __init__(
        self,
        message: str,
        *,
        task_id: str = "",
        code: str = "",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, task_id=task_id, error_code="TASK_FAILED", details=details)
        self.code = code


class TaskExpiredError(TaskError):
    """The provider expired the task before it finished."""

    def __init__(self, message: str = "Task expired", *, task_id: str = "") -> None:
        super().__init__(message, task_id=task_id, error_code="TASK_EXPIRED")


class TaskTimeoutError(TaskError):
    """The poll budget ran out before the task reached a terminal state."""

    def __init__(self, message: str, *, task_id: str = "", attempts: int = 0) -> None:
        super().__init__(
            message, task_id=task_id, error_code="TASK_TIMEOUT", details={"attempts": attempts},
        )
        self.attempts = attempts


class TaskCancelledError(TaskError):
    """Polling stopped because the run was cancelled."""

    def __init__(self, message: str = "Execution stopped", *, task_id: str = "") -> None:
        super().__init__(message, task_id=task_id, error_code="TASK_CANCELLED")


class UnsupportedTypeError(WorkflowError):
    """Node type, provider family, operation or script language not recognized."""

    def __init__(
        self,
        message: str,
        error_code: str = "UNSUPPORTED_TYPE",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code, details=details)


class CycleError(WorkflowError):
    """The workflow graph contains a cycle and cannot be ordered."""

    def __init__(self, node_ids: list[str]) -> None:
        super().__init__(
            f"Circular dependency detected between nodes: {', '.join(node_ids)}",
            error_code="GRAPH_CYCLE",
            details={"node_ids": list(node_ids)},
        )
        self.node_ids = list(node_ids)


class ScriptExecutionError(WorkflowError):
    """A script runner process exited non-zero or timed out."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        error_code: str = "SCRIPT_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code, details=details)
        self.exit_code = exit_code
