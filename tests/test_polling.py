"""Tests for snapshot ordering and the polling loop."""

from __future__ import annotations

import pytest

from core.polling import TaskSnapshotTracker, poll_task
from model.task import Task, TaskStatus
from util.errors import ApplicationError


def _task(status: TaskStatus, progress: int, ts: int | None = None, **kw) -> Task:
    return Task(taskId="t-1", status=status, progress=progress, timestamp=ts, **kw)


class ScriptedSource:
    def __init__(self, snapshots: list[Task]) -> None:
        self._snapshots = list(snapshots)
        self.calls = 0

    async def fetch_status(self, task_id: str) -> Task:
        self.calls += 1
        if len(self._snapshots) > 1:
            return self._snapshots.pop(0)
        return self._snapshots[0]


class TestTracker:
    def test_first_snapshot_accepted(self) -> None:
        tracker = TaskSnapshotTracker()

        assert tracker.observe(_task(TaskStatus.Pending, 0))
        assert tracker.latest is not None

    def test_lower_progress_rejected(self) -> None:
        tracker = TaskSnapshotTracker()
        tracker.observe(_task(TaskStatus.Processing, 60))

        assert not tracker.observe(_task(TaskStatus.Processing, 40))
        assert tracker.latest.progress == 60

    def test_older_timestamp_rejected(self) -> None:
        tracker = TaskSnapshotTracker()
        tracker.observe(_task(TaskStatus.Processing, 10, ts=200))

        assert not tracker.observe(_task(TaskStatus.Processing, 20, ts=100))
        assert tracker.observe(_task(TaskStatus.Processing, 20, ts=300))

    def test_status_never_moves_backwards(self) -> None:
        tracker = TaskSnapshotTracker()
        tracker.observe(_task(TaskStatus.Processing, 10))

        assert not tracker.observe(_task(TaskStatus.Pending, 10))

    def test_terminal_is_sticky(self) -> None:
        tracker = TaskSnapshotTracker()
        tracker.observe(_task(TaskStatus.Completed, 100, resultRef="r"))

        assert not tracker.observe(_task(TaskStatus.Processing, 100))
        assert tracker.latest.status is TaskStatus.Completed

    def test_terminal_failure_may_report_lower_progress(self) -> None:
        tracker = TaskSnapshotTracker()
        tracker.observe(_task(TaskStatus.Processing, 80))

        assert tracker.observe(_task(TaskStatus.Failed, 0, errorDetail="boom"))

    def test_other_task_rejected(self) -> None:
        tracker = TaskSnapshotTracker()
        tracker.observe(_task(TaskStatus.Pending, 0))

        with pytest.raises(ValueError):
            tracker.observe(Task(taskId="other", status=TaskStatus.Pending))


class TestPollTask:
    @pytest.mark.asyncio
    async def test_yields_non_decreasing_progress_until_terminal(self) -> None:
        source = ScriptedSource(
            [
                _task(TaskStatus.Pending, 0),
                _task(TaskStatus.Processing, 30),
                _task(TaskStatus.Processing, 20),  # stale read
                _task(TaskStatus.Processing, 30),
                _task(TaskStatus.Processing, 75),
                _task(TaskStatus.Completed, 100, resultRef="resume-1"),
            ]
        )
        delays: list[float] = []

        async def fake_sleep(delay: float) -> None:
            delays.append(delay)

        seen = [t async for t in poll_task(source, "t-1", interval=1.0, max_interval=4.0, sleep=fake_sleep)]

        progress = [t.progress for t in seen]
        assert progress == sorted(progress)
        assert progress == [0, 30, 75, 100]
        assert seen[-1].status is TaskStatus.Completed
        assert source.calls == 6
        # back-off grows while nothing changes and resets on change
        assert delays == [1.0, 1.0, 1.5, 2.25, 1.0]

    @pytest.mark.asyncio
    async def test_backoff_is_capped(self) -> None:
        source = ScriptedSource([_task(TaskStatus.Processing, 5)])
        delays: list[float] = []

        async def fake_sleep(delay: float) -> None:
            delays.append(delay)

        with pytest.raises(ApplicationError):
            async for _ in poll_task(
                source, "t-1", interval=1.0, max_interval=2.0, backoff=2.0, max_attempts=4, sleep=fake_sleep
            ):
                pass

        assert delays == [1.0, 2.0, 2.0]
