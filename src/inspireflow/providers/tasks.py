"""Polling of provider-side async tasks (video, 3D).

The interval is fixed and there is no backoff: the providers document a
polling cadence and the attempt budget alone bounds the wait.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from inspireflow.core.errors import (
    ProviderError,
    TaskCancelledError,
    TaskExpiredError,
    TaskFailedError,
    TaskTimeoutError,
)
from inspireflow.providers.base import ProviderAdapter, TaskStatus
from inspireflow.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 10.0
VIDEO_MAX_ATTEMPTS = 120
MODEL3D_MAX_ATTEMPTS = 60

ShouldStop = Callable[[], bool]
SleepFn = Callable[[float], Awaitable[None]]


class AsyncTaskPoller:
    """Waits for a task to reach a terminal state.

    Args:
        interval_seconds: Pause before every status query.
        sleep: Awaitable sleep, replaceable in tests.
    """

    def __init__(
        self,
        interval_seconds: float = DEFAULT_POLL_INTERVAL,
        *,
        sleep: SleepFn | None = None,
    ) -> None:
        self._interval = interval_seconds
        self._sleep = sleep or asyncio.sleep

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def wait(
        self,
        adapter: ProviderAdapter,
        task_id: str,
        *,
        result_key: str,
        max_attempts: int,
        label: str = "Task",
        should_stop: ShouldStop | None = None,
    ) -> str:
        """Poll ``task_id`` and return ``result[result_key]`` once it succeeds.

        Raises:
            TaskCancelledError: ``should_stop`` returned True.
            TaskFailedError: The provider reported failure (carries its code).
            TaskExpiredError: The provider expired the task.
            TaskTimeoutError: ``max_attempts`` polls without a terminal state.
            ProviderError: Success without the expected result field.
        """
        for attempt in range(1, max_attempts + 1):
            self._check_stop(should_stop, task_id, label)
            await self._sleep(self._interval)
            self._check_stop(should_stop, task_id, label)

            task = await adapter.get_task(task_id)
            log.debug("task_polled", task_id=task_id, attempt=attempt, status=task.status.value)

            if task.status == TaskStatus.SUCCEEDED:
                value = (task.result or {}).get(result_key)
                if not value:
                    raise ProviderError(
                        f"{label} task {task_id} succeeded but returned no {result_key}",
                        provider=adapter.family.value,
                        details={"result": task.result},
                    )
                log.info("task_succeeded", task_id=task_id, attempts=attempt)
                return str(value)

            if task.status == TaskStatus.FAILED:
                error = task.error or {}
                code = str(error.get("code") or "")
                message = error.get("message") or code or "unknown error"
                suffix = f" (code: {code})" if code and code != message else ""
                raise TaskFailedError(
                    f"{label} generation failed: {message}{suffix}",
                    task_id=task_id,
                    code=code,
                    details={"error": error},
                )

            if task.status == TaskStatus.EXPIRED:
                raise TaskExpiredError(f"{label} generation task expired", task_id=task_id)

        raise TaskTimeoutError(
            f"{label} generation timed out after {max_attempts} polls; "
            f"query task {task_id} later",
            task_id=task_id,
            attempts=max_attempts,
        )

    @staticmethod
    def _check_stop(should_stop: ShouldStop | None, task_id: str, label: str) -> None:
        if should_stop is not None and should_stop():
            log.info("task_polling_cancelled", task_id=task_id)
            raise TaskCancelledError(f"{label} task {task_id} cancelled: execution stopped", task_id=task_id)
