"""Tests for inspireflow.core.errors."""

from __future__ import annotations

import pytest

from inspireflow.core.errors import (
    ConfigurationError,
    CycleError,
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


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc",
        [
            ConfigurationError("x"),
            ValidationError("x"),
            ProviderError("x"),
            TaskFailedError("x", task_id="t", code="c"),
            TaskExpiredError(task_id="t"),
            TaskTimeoutError("x", task_id="t", attempts=3),
            TaskCancelledError(task_id="t"),
            UnsupportedTypeError("x"),
            CycleError(["a"]),
            ScriptExecutionError("x"),
        ],
    )
    def test_all_inherit_from_workflow_error(self, exc: WorkflowError) -> None:
        assert isinstance(exc, WorkflowError)
        assert exc.error_code

    def test_task_errors_share_base(self) -> None:
        for exc in (TaskFailedError("x"), TaskExpiredError(), TaskTimeoutError("x"), TaskCancelledError()):
            assert isinstance(exc, TaskError)


class TestAttributes:
    def test_details_default_to_empty_dict(self) -> None:
        assert WorkflowError("boom").details == {}

    def test_validation_error_carries_missing_keys(self) -> None:
        exc = ValidationError("missing", missing=["prompt", "image"])
        assert exc.missing == ["prompt", "image"]
        assert exc.error_code == "VALIDATION_ERROR"

    def test_provider_error_fields(self) -> None:
        exc = ProviderError("OpenAI HTTP 429: slow down", status_code=429, provider="openai")
        assert exc.status_code == 429
        assert exc.provider == "openai"
        assert "429" in str(exc)

    def test_task_failed_error_keeps_code(self) -> None:
        exc = TaskFailedError("Video generation failed: bad input (code: InvalidParameter)",
                              task_id="cgt-1", code="InvalidParameter")
        assert exc.task_id == "cgt-1"
        assert exc.code == "InvalidParameter"
        assert exc.error_code == "TASK_FAILED"

    def test_cycle_error_names_nodes(self) -> None:
        exc = CycleError(["a", "b"])
        assert exc.node_ids == ["a", "b"]
        assert str(exc) == "Circular dependency detected between nodes: a, b"

    def test_cancelled_default_message(self) -> None:
        assert str(TaskCancelledError()) == "Execution stopped"

    def test_script_error_exit_code(self) -> None:
        assert ScriptExecutionError("failed", exit_code=2).exit_code == 2
