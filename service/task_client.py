import logging
from pathlib import Path
from typing import Any, Optional
from pydantic import ValidationError as SchemaError
from config.settings import settings
from core.http import ApiClient
from model.api import (
    EmbeddingResponse,
    OptimizationResult,
    OptimizeRequest,
    OptimizedDownloadRequest,
    ResumeSummary,
    TaskStatusResponse,
    UploadResponse,
)
from model.task import Task
from util.constants import BackendURIs
from util.errors import ApplicationError, ValidationError

logger = logging.getLogger(__name__)


class TaskClient:
    """
    Submits résumé analysis jobs and reads their status.

    No timers live here: `fetch_status` is single shot and the caller decides
    how often to call it (see core.polling for a ready-made loop).
    """

    def __init__(
        self,
        api: ApiClient,
        optimize_timeout: float = settings.OPTIMIZE_TIMEOUT_SECONDS,
    ) -> None:
        self._api = api
        self._optimize_timeout = optimize_timeout

    async def submit(
        self,
        document: bytes | Path,
        filename: Optional[str] = None,
        content_type: str = "application/octet-stream",
    ) -> Task:
        """Upload the source document; the returned task is Pending and carries the backend's taskId."""
        if isinstance(document, Path):
            filename = filename or document.name
            document = document.read_bytes()
        if not document:
            raise ValidationError("Document is empty")
        name = filename or "resume"

        data = await self._api.post(
            BackendURIs.UPLOAD, files={"file": (name, document, content_type)}
        )
        try:
            res = UploadResponse.model_validate(data or {})
        except SchemaError as e:
            raise ApplicationError("Malformed upload response from backend") from e
        if not res.success or not res.taskId:
            message = res.errorMessage or res.message or "Upload was not accepted"
            logger.warning("task.submit.rejected file=%s msg=%s", name, message)
            raise ApplicationError(message)

        task = res.to_task()
        logger.info("task.submit.ok task=%s file=%s bytes=%d", task.taskId, name, len(document))
        return task

    async def fetch_status(self, task_id: str) -> Task:
        if not task_id:
            raise ValidationError("taskId is required")
        data = await self._api.get(BackendURIs.TASK_STATUS.format(task_id=task_id))
        try:
            task = TaskStatusResponse.model_validate(data).to_task()
        except (SchemaError, ValueError) as e:
            logger.error("task.status.malformed task=%s", task_id)
            raise ApplicationError("Malformed task status from backend") from e
        logger.debug(
            "task.status task=%s status=%s progress=%d",
            task.taskId,
            task.status.value,
            task.progress,
        )
        return task

    async def optimize(
        self, resume_id: str, job_description: str, user_id: Optional[int] = None
    ) -> OptimizationResult:
        """Long-running call: uses the extended optimization timeout."""
        body = OptimizeRequest(
            userId=user_id, resumeId=resume_id, jobDescription=job_description
        )
        logger.info("task.optimize.start resume=%s jd_chars=%d", resume_id, len(job_description))
        data = await self._api.post(
            BackendURIs.OPTIMIZE,
            json=body.model_dump(exclude_none=True),
            timeout=self._optimize_timeout,
        )
        result = OptimizationResult.model_validate(data or {})
        logger.info(
            "task.optimize.ok resume=%s chars=%d optimized=%s",
            resume_id,
            len(result.suggestionText),
            result.optimizedResumeId,
        )
        return result

    async def request_optimization(
        self, resume_id: str, job_description: str, user_id: Optional[int] = None
    ) -> str:
        result = await self.optimize(resume_id, job_description, user_id=user_id)
        return result.suggestionText

    async def store_embedding(self, resume_id: str) -> bool:
        data = await self._api.post(BackendURIs.EMBEDDING.format(resume_id=resume_id))
        ok = _as_ack(data)
        logger.info("task.embedding resume=%s ok=%s", resume_id, ok)
        return ok

    async def generate_optimized_file(
        self,
        optimized_resume_id: int,
        file_type: str = "pdf",
        user_id: Optional[int] = None,
    ) -> bytes:
        body = OptimizedDownloadRequest(
            userId=user_id, optimizedResumeId=optimized_resume_id, downloadFileType=file_type
        )
        content = await self._api.post(
            BackendURIs.GENERATE_OPTIMIZED_FILE,
            json=body.model_dump(exclude_none=True),
            timeout=self._optimize_timeout,
            raw=True,
        )
        logger.info("task.download optimized=%s bytes=%d", optimized_resume_id, len(content))
        return content

    async def list_resumes(self) -> list[ResumeSummary]:
        data = await self._api.get(BackendURIs.LIST)
        return [ResumeSummary.model_validate(item) for item in data or []]


def _as_ack(data: Any) -> bool:
    if isinstance(data, bool):
        return data
    if isinstance(data, dict):
        return EmbeddingResponse.model_validate(data).success
    return data is not None
