import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol
from config.settings import settings
from model.task import Task, TaskStatus
from util.errors import ApplicationError

logger = logging.getLogger(__name__)

_RANK = {
    TaskStatus.Pending: 0,
    TaskStatus.Processing: 1,
    TaskStatus.Completed: 2,
    TaskStatus.Failed: 2,
}


class StatusSource(Protocol):
    async def fetch_status(self, task_id: str) -> Task: ...


class TaskSnapshotTracker:
    """
    Keeps the authoritative snapshot of one task across unordered status reads.

    A snapshot is rejected when it is older than the current one (by timestamp,
    when both carry one), moves the status backwards, lowers progress while
    non-terminal, or arrives after a terminal snapshot.
    """

    def __init__(self) -> None:
        self._latest: Optional[Task] = None

    @property
    def latest(self) -> Optional[Task]:
        return self._latest

    def observe(self, task: Task) -> bool:
        cur = self._latest
        if cur is None:
            self._latest = task
            return True
        if task.taskId != cur.taskId:
            raise ValueError(f"snapshot for {task.taskId} fed to tracker of {cur.taskId}")
        if cur.is_terminal:
            return False
        if task.timestamp is not None and cur.timestamp is not None and task.timestamp < cur.timestamp:
            return False
        if _RANK[task.status] < _RANK[cur.status]:
            return False
        if not task.is_terminal and task.progress < cur.progress:
            return False
        self._latest = task
        return True


async def poll_task(
    client: StatusSource,
    task_id: str,
    *,
    interval: float = settings.POLL_INTERVAL_SECONDS,
    max_interval: float = settings.POLL_MAX_INTERVAL_SECONDS,
    backoff: float = 1.5,
    max_attempts: Optional[int] = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> AsyncIterator[Task]:
    """
    Poll until the task is terminal, yielding each snapshot that changes status
    or progress. The delay grows by `backoff` while nothing changes and resets
    to `interval` after a change.
    """
    tracker = TaskSnapshotTracker()
    delay = interval
    attempts = 0

    while True:
        previous = tracker.latest
        task = await client.fetch_status(task_id)
        attempts += 1

        if tracker.observe(task) and (
            previous is None
            or previous.status is not task.status
            or previous.progress != task.progress
        ):
            logger.info(
                "poll.update task=%s status=%s progress=%d",
                task_id,
                task.status.value,
                task.progress,
            )
            delay = interval
            yield task
        else:
            delay = min(delay * backoff, max_interval)

        latest = tracker.latest
        if latest is not None and latest.is_terminal:
            return
        if max_attempts is not None and attempts >= max_attempts:
            raise ApplicationError(f"Task {task_id} still running after {attempts} polls")
        await sleep(delay)
