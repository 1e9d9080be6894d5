from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from model.task import Task, TaskStatus


class WireModel(BaseModel):
    # Backend DTOs grow fields over time; keep what we know, ignore the rest.
    model_config = ConfigDict(extra="ignore")


# ---------------- Auth ----------------


class LoginRequest(WireModel):
    username: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    code: Optional[str] = None
    loginType: Literal["password", "sms"] = "password"


class RegisterRequest(WireModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    confirmPassword: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    nickname: Optional[str] = None


class ForgotPasswordRequest(WireModel):
    email: str = Field(min_length=1)


class ResetPasswordRequest(WireModel):
    token: str = Field(min_length=1)
    newPassword: str = Field(min_length=1)
    confirmPassword: Optional[str] = None


class UserInfo(WireModel):
    id: int | str
    username: str
    avatar: Optional[str] = None
    roles: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)
    email: Optional[str] = None
    phone: Optional[str] = None
    nickname: Optional[str] = None


# ---------------- Resumes ----------------


class UploadResponse(WireModel):
    success: bool = True
    taskId: Optional[str] = None
    fileName: Optional[str] = None
    originalFileName: Optional[str] = None
    errorMessage: Optional[str] = None
    message: Optional[str] = None
    timestamp: Optional[int] = None

    def to_task(self) -> Task:
        return Task(
            taskId=self.taskId or "",
            status=TaskStatus.Pending,
            progress=0,
            fileName=self.fileName,
            originalFileName=self.originalFileName,
            statusMessage=self.message,
            timestamp=self.timestamp,
        )


class TaskStatusResponse(WireModel):
    taskId: str
    status: str
    statusMessage: Optional[str] = None
    progress: int = 0
    startTime: Optional[str] = None
    completeTime: Optional[str] = None
    resumeId: Optional[str] = None
    errorMessage: Optional[str] = None
    fileName: Optional[str] = None
    originalFileName: Optional[str] = None
    estimatedRemainingSeconds: Optional[int] = None
    timestamp: Optional[int] = None

    def to_task(self) -> Task:
        status = TaskStatus(self.status)
        return Task(
            taskId=self.taskId,
            status=status,
            progress=max(0, min(100, self.progress)),
            resultRef=self.resumeId if status is TaskStatus.Completed else None,
            errorDetail=self.errorMessage if status is TaskStatus.Failed else None,
            statusMessage=self.statusMessage,
            fileName=self.fileName,
            originalFileName=self.originalFileName,
            estimatedRemainingSeconds=self.estimatedRemainingSeconds,
            timestamp=self.timestamp,
        )


class OptimizeRequest(WireModel):
    userId: Optional[int] = None
    resumeId: str
    jobDescription: str


class OptimizationRecord(WireModel):
    feedback: str = ""
    score: float = 0.0


class OptimizationResult(WireModel):
    suggestionText: str = ""
    optimizedResumeId: Optional[int] = None
    optimizationHistory: list[OptimizationRecord] = Field(default_factory=list)


class OptimizedDownloadRequest(WireModel):
    userId: Optional[int] = None
    optimizedResumeId: int
    downloadFileType: str = "pdf"


class EmbeddingResponse(WireModel):
    success: bool = False
    message: Optional[str] = None


class ResumeSummary(WireModel):
    resumeId: str
    fileName: Optional[str] = None
    originalFileName: Optional[str] = None
    createTime: Optional[str] = None
