import json
from enum import Enum
from pydantic import BaseModel


class StreamEventKind(str, Enum):
    progress = "progress"
    chunk = "chunk"
    result = "result"
    error = "error"


# SSE `event:` tag -> kind. Frames with no tag (or "message") carry content chunks.
WIRE_TAGS = {
    "progress": StreamEventKind.progress,
    "result": StreamEventKind.result,
    "error": StreamEventKind.error,
    "message": StreamEventKind.chunk,
    "": StreamEventKind.chunk,
}


class StreamEvent(BaseModel):
    """One push notification decoded from the optimization stream."""

    kind: StreamEventKind
    payload: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.kind in (StreamEventKind.result, StreamEventKind.error)

    @property
    def progress_percent(self) -> int | None:
        """Progress frames carry either a bare number or {"progress": n}."""
        if self.kind is not StreamEventKind.progress:
            return None
        text = self.payload.strip()
        try:
            return int(float(text))
        except (ValueError, OverflowError):
            pass
        try:
            value = json.loads(text).get("progress")
            return int(value) if value is not None else None
        except (ValueError, AttributeError, TypeError):
            return None

    @classmethod
    def from_wire(cls, tag: str | None, data: str) -> "StreamEvent | None":
        kind = WIRE_TAGS.get((tag or "").strip().lower())
        if kind is None:
            return None
        return cls(kind=kind, payload=data)
