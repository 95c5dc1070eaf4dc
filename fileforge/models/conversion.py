"""Conversion request, result, remote job and file models.

Defines Pydantic v2 models for the lifetime of one conversion:

    1. The API layer reads a multipart upload      → ConversionRequest
    2. The service picks a strategy and runs it    → ConversionResult
    3. Word→PDF delegation tracks the remote job   → ConversionJob / JobTask
    4. A client records the finished artifact      → FileObject

All models are frozen.  Nothing here is persisted by the conversion core;
``FileObject`` is the boundary type owned by the file-store collaborator.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Response header naming the strategy that produced a conversion.
STRATEGY_HEADER = "X-Conversion-Strategy"


class ConversionStrategy(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Conversion strategies, named in selector priority order."""

    EXTERNAL_JOB = "external_job"
    IMAGE_PASSTHROUGH = "image_passthrough"
    TEXT_EXTRACTION = "text_extraction"
    PLACEHOLDER_PDF = "placeholder_pdf"
    ECHO = "echo"


class RequestState(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Per-request handler states.

    Received → Validated → Dispatched → {Succeeded | FallbackApplied | Rejected | Failed}
    """

    RECEIVED = "received"
    VALIDATED = "validated"
    DISPATCHED = "dispatched"
    SUCCEEDED = "succeeded"
    FALLBACK_APPLIED = "fallback_applied"
    REJECTED = "rejected"
    FAILED = "failed"


class ConversionRequest(BaseModel):
    """One uploaded file plus the format the client asked for.

    ``target_format`` stays a plain string: an unknown value must be
    rejected with the "not supported" message, not a schema error.
    """

    model_config = ConfigDict(frozen=True)

    file_bytes: bytes
    file_name: str
    declared_mime_type: str = ""
    target_format: str


class ConversionResult(BaseModel):
    """Bytes produced for one request, with the name the client should save."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str
    suggested_file_name: str
    # None on the client side when the server did not report a strategy.
    strategy: ConversionStrategy | None = None
    state: RequestState = RequestState.SUCCEEDED


# ---------------------------------------------------------------------------
# Remote job models (CloudConvert v2 job/task payloads)
# ---------------------------------------------------------------------------


class TaskStatus(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Status values reported for jobs and tasks by the remote service."""

    WAITING = "waiting"
    PROCESSING = "processing"
    FINISHED = "finished"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.FINISHED, TaskStatus.ERROR)


class ResultFile(BaseModel):
    """A downloadable file produced by an export task."""

    model_config = ConfigDict(frozen=True)

    url: str | None = None
    filename: str | None = None
    size: int | None = None


class UploadForm(BaseModel):
    """Signed upload target handed out by an ``import/upload`` task."""

    model_config = ConfigDict(frozen=True)

    url: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class JobTask(BaseModel):
    """One stage of a remote job: import, convert or export."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    operation: str
    status: TaskStatus
    message: str | None = None
    code: str | None = None
    upload_form: UploadForm | None = None
    result_files: list[ResultFile] = Field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> JobTask:
        """Build a task from the service's JSON task object."""
        result = payload.get("result") or {}
        form = result.get("form")
        return cls(
            id=str(payload["id"]),
            name=payload.get("name") or "",
            operation=payload["operation"],
            status=payload["status"],
            message=payload.get("message"),
            code=payload.get("code"),
            upload_form=UploadForm(**form) if form else None,
            result_files=[ResultFile(**f) for f in result.get("files") or []],
        )


class ConversionJob(BaseModel):
    """An outstanding delegated conversion and its ordered stages."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    status: TaskStatus
    tasks: list[JobTask] = Field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> ConversionJob:
        """Build a job from the service's JSON job object (the ``data`` member)."""
        return cls(
            job_id=str(payload["id"]),
            status=payload["status"],
            tasks=[JobTask.from_api(t) for t in payload.get("tasks") or []],
        )

    def find_task(self, operation: str) -> JobTask | None:
        """Return the first task whose operation matches, or ``None``."""
        for task in self.tasks:
            if task.operation == operation:
                return task
        return None

    def failed_tasks(self) -> list[JobTask]:
        return [t for t in self.tasks if t.status == TaskStatus.ERROR]


# ---------------------------------------------------------------------------
# FileObject: the dashboard collaborator's persisted entity.
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class FileObject(BaseModel):
    """A file in a user's dashboard.

    Serialises with camelCase keys (``mimeType``, ``sizeBytes`` …) so the
    stored JSON matches what the browser client reads.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    mime_type: str
    size_bytes: int
    date_added: str = Field(default_factory=_now_iso)
    processed: bool = False
    converted_format: str | None = None
    date_processed: str | None = None
