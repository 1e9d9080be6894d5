# core/streaming.py
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Final, Optional
from model.events import StreamEvent

logger = logging.getLogger(__name__)

COMMENT_PREFIX: Final[str] = ":"


@dataclass
class SseFrame:
    event: Optional[str]
    data: str


async def iter_sse_frames(lines: AsyncIterator[str]) -> AsyncIterator[SseFrame]:
    """
    Decode text/event-stream lines into frames:
      - `event:` sets the tag, `data:` lines accumulate (joined with "\\n")
      - a blank line dispatches the frame; frames without data are dropped
      - comment lines, `id:` and `retry:` are ignored
    A pending frame at clean EOF is still dispatched.
    """
    event: Optional[str] = None
    data: list[str] = []

    async for raw in lines:
        line = raw.rstrip("\r\n")
        if not line:
            if data:
                yield SseFrame(event=event, data="\n".join(data))
            event, data = None, []
            continue
        if line.startswith(COMMENT_PREFIX):
            continue

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if field == "event":
            event = value
        elif field == "data":
            data.append(value)

    if data:
        yield SseFrame(event=event, data="\n".join(data))


async def iter_stream_events(lines: AsyncIterator[str]) -> AsyncIterator[StreamEvent]:
    async for frame in iter_sse_frames(lines):
        ev = StreamEvent.from_wire(frame.event, frame.data)
        if ev is None:
            logger.debug("stream.frame.unknown_tag tag=%s", frame.event)
            continue
        yield ev
