# model/task.py
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class TaskStatus(str, Enum):
    Pending = "Pending"
    Processing = "Processing"
    Completed = "Completed"
    Failed = "Failed"

    @classmethod
    def _missing_(cls, value: Any) -> Optional["TaskStatus"]:
        # Wire codes arrive as PENDING / pending / Pending
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return None

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.Completed, TaskStatus.Failed)


class Task(BaseModel):
    taskId: str = Field(min_length=1)
    status: TaskStatus = TaskStatus.Pending
    progress: int = Field(default=0, ge=0, le=100)
    resultRef: Optional[str] = None
    errorDetail: Optional[str] = None

    statusMessage: Optional[str] = None
    fileName: Optional[str] = None
    originalFileName: Optional[str] = None
    estimatedRemainingSeconds: Optional[int] = None
    # Ordering hint, only when the backend supplies one
    timestamp: Optional[int] = None

    @field_validator("status", mode="before")
    @classmethod
    def _wire_status(cls, v: Any) -> Any:
        return TaskStatus(v) if isinstance(v, str) else v

    @field_validator("resultRef", "errorDetail", "statusMessage", mode="before")
    @classmethod
    def _blank_is_absent(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _terminal_fields(self) -> "Task":
        if self.resultRef is not None and self.status is not TaskStatus.Completed:
            raise ValueError("resultRef is only set on Completed tasks")
        if self.errorDetail is not None and self.status is not TaskStatus.Failed:
            raise ValueError("errorDetail is only set on Failed tasks")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
