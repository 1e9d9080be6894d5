import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Optional, Protocol
from config.settings import settings
from core.http import ApiClient
from core.streaming import iter_stream_events
from model.events import StreamEvent, StreamEventKind
from util.constants import BackendURIs
from util.errors import AppError, StreamErrorEvent, StreamSuspendedError, TransportError

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    Idle = "Idle"
    Connecting = "Connecting"
    Open = "Open"
    Closed = "Closed"
    Failed = "Failed"


class StreamSink(Protocol):
    """Receives stream callbacks in arrival order. Methods may be sync or async."""

    def on_progress(self, event: StreamEvent) -> Any: ...

    def on_chunk(self, event: StreamEvent) -> Any: ...

    def on_result(self, event: StreamEvent) -> Any: ...

    def on_error(self, error: AppError) -> Any: ...


class _SinkFailure(Exception):
    def __init__(self, original: BaseException) -> None:
        super().__init__(repr(original))
        self.original = original


class _Suspended(Exception):
    pass


def _retrieve_exception(runner: asyncio.Task) -> None:
    # Callers that never wait() would otherwise get "exception was never retrieved"
    if not runner.cancelled():
        runner.exception()


class StreamSubscription:
    """
    Handle for one push-channel session: Idle -> Connecting -> Open -> Closed | Failed.

    Exactly one terminal callback (on_result, or on_error) reaches the sink.
    After cancel() nothing reaches it at all.

    If a sink callback raises, the session ends Failed without a further
    terminal callback; the exception is logged and re-raised by wait().
    """

    def __init__(
        self,
        api: ApiClient,
        task_id: str,
        sink: StreamSink,
        body: dict[str, Any],
        keep_alive_when_backgrounded: bool,
    ) -> None:
        self._api = api
        self._task_id = task_id
        self._sink = sink
        self._body = body
        self._keep_alive = keep_alive_when_backgrounded
        self._state = StreamState.Idle
        self._cancelled = False
        self._suspended = False
        self._finished = False
        self._runner: Optional[asyncio.Task] = None
        self.terminal_event: Optional[StreamEvent] = None
        self.error: Optional[AppError] = None

    @property
    def task_id(self) -> str:
        return self._task_id

    @property
    def state(self) -> StreamState:
        return self._state

    def _start(self) -> None:
        self._state = StreamState.Connecting
        self._runner = asyncio.get_running_loop().create_task(self._run())
        self._runner.add_done_callback(_retrieve_exception)

    # ---------------- Caller controls ----------------

    def cancel(self) -> None:
        """Idempotent; safe to call from inside a sink callback."""
        if self._cancelled:
            return
        self._cancelled = True
        was = self._state
        self._state = StreamState.Closed
        self._interrupt()
        logger.info("stream.cancelled task=%s from=%s", self._task_id, was.value)

    def set_foreground(self, visible: bool) -> None:
        """Report visibility of the consuming context; may suspend the channel."""
        if visible or self._keep_alive or self._cancelled or self._finished:
            return
        if self._state not in (StreamState.Connecting, StreamState.Open):
            return
        logger.info("stream.suspend task=%s", self._task_id)
        self._suspended = True
        self._interrupt()

    async def wait(self) -> StreamState:
        """Wait for the session to end; re-raises an exception thrown by the sink."""
        runner = self._runner
        if runner is not None:
            await asyncio.wait([runner])
            if not runner.cancelled() and runner.exception() is not None:
                raise runner.exception()  # type: ignore[misc]
        return self._state

    def _interrupt(self) -> None:
        runner = self._runner
        if runner is None or runner.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # From inside a callback the run loop notices the flag after dispatch.
        if runner is not current:
            runner.cancel()

    # ---------------- Run loop ----------------

    async def _run(self) -> None:
        try:
            await self._consume()
        except asyncio.CancelledError:
            if self._cancelled:
                return
            if self._suspended:
                await self._fail(StreamSuspendedError("Stream suspended while in background"))
                return
            raise
        except _Suspended:
            await self._fail(StreamSuspendedError("Stream suspended while in background"))
        except _SinkFailure as e:
            self._state = StreamState.Failed
            self._finished = True
            logger.error("stream.sink.error task=%s err=%s", self._task_id, type(e.original).__name__)
            raise e.original
        except AppError as e:
            await self._fail(e)

    async def _consume(self) -> None:
        async with self._api.stream("POST", BackendURIs.OPTIMIZE_STREAM, json=self._body) as res:
            self._check_stop()
            self._state = StreamState.Open
            logger.info("stream.open task=%s", self._task_id)

            async for event in iter_stream_events(res.aiter_lines()):
                self._check_stop()
                await self._dispatch(event)
                if event.is_terminal:
                    if not self._cancelled:
                        self._state = StreamState.Closed
                    self._finished = True
                    self.terminal_event = event
                    logger.info("stream.terminal task=%s kind=%s", self._task_id, event.kind.value)
                    return
                self._check_stop()

        self._check_stop()
        raise TransportError("Stream ended before a terminal event")

    def _check_stop(self) -> None:
        if self._cancelled:
            raise asyncio.CancelledError()
        if self._suspended:
            raise _Suspended()

    async def _dispatch(self, event: StreamEvent) -> None:
        if event.kind is StreamEventKind.progress:
            await self._call(self._sink.on_progress, event)
        elif event.kind is StreamEventKind.chunk:
            await self._call(self._sink.on_chunk, event)
        elif event.kind is StreamEventKind.result:
            await self._call(self._sink.on_result, event)
        else:
            err = StreamErrorEvent(event.payload or "Optimization failed")
            self.error = err
            await self._call(self._sink.on_error, err)

    async def _fail(self, error: AppError) -> None:
        if self._cancelled or self._finished:
            return
        self._state = StreamState.Failed
        self._finished = True
        self.error = error
        logger.warning(
            "stream.failed task=%s err=%s msg=%s", self._task_id, type(error).__name__, error.message
        )
        try:
            await self._call(self._sink.on_error, error)
        except _SinkFailure as e:
            raise e.original

    async def _call(self, fn: Any, arg: Any) -> None:
        if self._cancelled:
            return
        try:
            outcome = fn(arg)
            if inspect.isawaitable(outcome):
                await outcome
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise _SinkFailure(e) from e


class StreamConsumer:
    """Opens optimization push channels; one StreamSubscription per open()."""

    def __init__(
        self,
        api: ApiClient,
        keep_alive_when_backgrounded: bool = settings.STREAM_KEEP_ALIVE_WHEN_BACKGROUNDED,
    ) -> None:
        self._api = api
        self._keep_alive = keep_alive_when_backgrounded

    def open(
        self,
        task_id: str,
        sink: StreamSink,
        *,
        resume_id: Optional[str] = None,
        job_description: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> StreamSubscription:
        """Must be called from a running event loop. Reopening the same task_id is allowed."""
        body: dict[str, Any] = {"taskId": task_id}
        if resume_id is not None:
            body["resumeId"] = resume_id
        if job_description is not None:
            body["jobDescription"] = job_description
        if user_id is not None:
            body["userId"] = user_id

        sub = StreamSubscription(
            self._api,
            task_id,
            sink,
            body,
            keep_alive_when_backgrounded=self._keep_alive,
        )
        sub._start()
        logger.debug("stream.connecting task=%s", task_id)
        return sub
