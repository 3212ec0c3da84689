"""Tests for inspireflow.providers.tasks.AsyncTaskPoller."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from inspireflow.core.errors import (
    ProviderError,
    TaskCancelledError,
    TaskExpiredError,
    TaskFailedError,
    TaskTimeoutError,
)
from inspireflow.providers.base import AsyncTask, ProviderFamily, TaskStatus
from inspireflow.providers.tasks import AsyncTaskPoller


def _adapter(*tasks: AsyncTask) -> MagicMock:
    adapter = MagicMock()
    adapter.family = ProviderFamily.ARK
    adapter.get_task = AsyncMock(side_effect=list(tasks))
    return adapter


def _running() -> AsyncTask:
    return AsyncTask("t1", TaskStatus.RUNNING)


class TestAsyncTaskPoller:
    @pytest.mark.asyncio
    async def test_success_returns_result_key(self, fast_poller: AsyncTaskPoller, no_sleep: AsyncMock) -> None:
        adapter = _adapter(
            _running(),
            AsyncTask("t1", TaskStatus.SUCCEEDED, result={"video_url": "https://v.test/a.mp4"}),
        )
        url = await fast_poller.wait(adapter, "t1", result_key="video_url", max_attempts=5)
        assert url == "https://v.test/a.mp4"
        assert adapter.get_task.await_count == 2
        no_sleep.assert_awaited_with(10.0)
        assert no_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_after_three_polls(self, fast_poller: AsyncTaskPoller) -> None:
        adapter = _adapter(
            _running(),
            _running(),
            AsyncTask("t1", TaskStatus.FAILED, error={"code": "OutputVideoSensitive", "message": "blocked"}),
        )
        with pytest.raises(TaskFailedError) as exc_info:
            await fast_poller.wait(adapter, "t1", result_key="video_url", max_attempts=10, label="Video")
        assert exc_info.value.code == "OutputVideoSensitive"
        assert str(exc_info.value) == "Video generation failed: blocked (code: OutputVideoSensitive)"
        assert adapter.get_task.await_count == 3

    @pytest.mark.asyncio
    async def test_expired(self, fast_poller: AsyncTaskPoller) -> None:
        adapter = _adapter(AsyncTask("t1", TaskStatus.EXPIRED))
        with pytest.raises(TaskExpiredError):
            await fast_poller.wait(adapter, "t1", result_key="file_url", max_attempts=3)

    @pytest.mark.asyncio
    async def test_attempt_budget(self, fast_poller: AsyncTaskPoller) -> None:
        adapter = _adapter(_running(), _running(), _running())
        with pytest.raises(TaskTimeoutError) as exc_info:
            await fast_poller.wait(adapter, "t1", result_key="file_url", max_attempts=3, label="3D")
        assert exc_info.value.attempts == 3
        assert "t1" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_success_without_result(self, fast_poller: AsyncTaskPoller) -> None:
        adapter = _adapter(AsyncTask("t1", TaskStatus.SUCCEEDED, result={}))
        with pytest.raises(ProviderError, match="file_url"):
            await fast_poller.wait(adapter, "t1", result_key="file_url", max_attempts=3)

    @pytest.mark.asyncio
    async def test_stop_before_first_poll(self, fast_poller: AsyncTaskPoller) -> None:
        adapter = _adapter()
        with pytest.raises(TaskCancelledError):
            await fast_poller.wait(adapter, "t1", result_key="video_url", max_attempts=3, should_stop=lambda: True)
        adapter.get_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_stop_during_polling(self, fast_poller: AsyncTaskPoller) -> None:
        adapter = _adapter(_running(), _running())
        stop = {"now": False}

        async def _poll(task_id: str) -> AsyncTask:
            stop["now"] = True
            return _running()

        adapter.get_task = AsyncMock(side_effect=_poll)
        with pytest.raises(TaskCancelledError):
            await fast_poller.wait(
                adapter, "t1", result_key="video_url", max_attempts=10, should_stop=lambda: stop["now"],
            )
        assert adapter.get_task.await_count == 1

    def test_interval(self) -> None:
        assert AsyncTaskPoller().interval_seconds == 10.0
