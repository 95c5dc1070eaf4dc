"""fileforge domain models; re-exports all public model classes."""

from __future__ import annotations

from fileforge.models.conversion import (
    ConversionJob,
    ConversionRequest,
    ConversionResult,
    ConversionStrategy,
    FileObject,
    JobTask,
    RequestState,
    ResultFile,
    TaskStatus,
    UploadForm,
)
from fileforge.models.formats import (
    FORMAT_MIME_TYPES,
    TargetFormat,
    format_mime_type,
)

__all__ = [
    "FORMAT_MIME_TYPES",
    "ConversionJob",
    "ConversionRequest",
    "ConversionResult",
    "ConversionStrategy",
    "FileObject",
    "JobTask",
    "RequestState",
    "ResultFile",
    "TargetFormat",
    "TaskStatus",
    "UploadForm",
    "format_mime_type",
]
