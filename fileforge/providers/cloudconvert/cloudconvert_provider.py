"""CloudConvert document conversion provider.

Converts Word documents to PDF through CloudConvert's job API (v2).  One
conversion is one job with three tasks, processed in dependency order:

    import-file   import/upload   raw bytes are POSTed to a signed form
    convert-file  convert         office engine, input_format from file name
    export-file   export/url      yields a temporary download URL

The job is polled with exponential backoff until it reaches ``finished`` or
``error`` (bounded by ``job_timeout_seconds``), then the export task is
polled on its own because the job payload may resolve before every task
object carries its result.  Every failure is raised as
:class:`ExternalServiceError`; the caller decides whether to fall back.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, TypeVar

import httpx
import structlog

from fileforge.config.settings import Settings
from fileforge.interfaces.document_converter import IDocumentConversionProvider
from fileforge.models.conversion import ConversionJob, JobTask, TaskStatus, UploadForm
from fileforge.utils.errors import ConfigurationError, ExternalServiceError
from fileforge.utils.file_utils import get_file_extension

logger = structlog.get_logger(logger_name=__name__)

_T = TypeVar("_T")

_PROVIDER_NAME = "cloudconvert"
_DEFAULT_INPUT_FORMAT = "docx"
_OUTPUT_FORMAT = "pdf"
_ENGINE = "office"
_JOB_TAG = "fileforge"

_IMPORT_TASK = "import-file"
_CONVERT_TASK = "convert-file"
_EXPORT_TASK = "export-file"

_IMPORT_OPERATION = "import/upload"
_CONVERT_OPERATION = "convert"
_EXPORT_OPERATION = "export/url"


class CloudConvertProvider(IDocumentConversionProvider):
    """Word→PDF conversion through CloudConvert jobs.

    Parameters
    ----------
    settings:
        Supplies the API key, base URL, poll backoff, timeout and retry bounds.
    http_client:
        Shared ``httpx.AsyncClient``.  When omitted the provider creates and
        owns one; call :meth:`aclose` to release it.
    sleep, clock:
        Injected for tests; default to ``asyncio.sleep`` and ``time.monotonic``.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if settings.job_max_attempts < 1:
            raise ConfigurationError("JOB_MAX_ATTEMPTS must be at least 1", provider_name=_PROVIDER_NAME)
        if settings.job_poll_initial_interval <= 0:
            raise ConfigurationError(
                "JOB_POLL_INITIAL_INTERVAL must be positive", provider_name=_PROVIDER_NAME
            )
        if settings.job_poll_max_interval < settings.job_poll_initial_interval:
            raise ConfigurationError(
                "JOB_POLL_MAX_INTERVAL must not be below JOB_POLL_INITIAL_INTERVAL",
                provider_name=_PROVIDER_NAME,
            )
        if settings.job_poll_backoff_factor < 1:
            raise ConfigurationError("JOB_POLL_BACKOFF_FACTOR must be at least 1", provider_name=_PROVIDER_NAME)

        self._api_key = settings.cloudconvert_api_key
        self._base_url = settings.get_cloudconvert_base_url()
        self._initial_interval = settings.job_poll_initial_interval
        self._max_interval = settings.job_poll_max_interval
        self._backoff_factor = settings.job_poll_backoff_factor
        self._timeout = settings.job_timeout_seconds
        self._max_attempts = settings.job_max_attempts
        self._retry_backoff = settings.job_retry_backoff_seconds
        self._sleep = sleep
        self._clock = clock

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_seconds),
        )

    # ------------------------------------------------------------------
    # IDocumentConversionProvider implementation
    # ------------------------------------------------------------------

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def convert_document(self, data: bytes, file_name: str) -> bytes:
        """Run the import → convert → export job and return the PDF bytes.

        With ``job_max_attempts > 1`` the whole job is retried after a
        linear backoff before the last error is raised.
        """
        if not self.is_available():
            raise ExternalServiceError(
                message="CloudConvert API key is not configured",
                provider_name=_PROVIDER_NAME,
            )

        last_error: ExternalServiceError | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._run_job(data, file_name)
            except ExternalServiceError as exc:
                last_error = exc
                logger.warning(
                    "cloudconvert_job_failed",
                    file_name=file_name,
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    error=exc.message,
                )
                if attempt < self._max_attempts:
                    await self._sleep(self._retry_backoff * attempt)

        assert last_error is not None
        raise last_error

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Job protocol
    # ------------------------------------------------------------------

    async def _run_job(self, data: bytes, file_name: str) -> bytes:
        input_format = get_file_extension(file_name) or _DEFAULT_INPUT_FORMAT

        job = await self._create_job(input_format)
        logger.info(
            "cloudconvert_job_created",
            job_id=job.job_id,
            input_format=input_format,
            file_name=file_name,
        )

        import_task = job.find_task(_IMPORT_OPERATION)
        if import_task is None or import_task.upload_form is None:
            raise self._error(f"Job {job.job_id} has no upload task")
        await self._upload(import_task.upload_form, data, file_name)

        job = await self._wait_for_job(job.job_id)
        if job.status == TaskStatus.ERROR:
            raise self._error(self._describe_failures(job))

        convert_task = job.find_task(_CONVERT_OPERATION)
        if convert_task is None or convert_task.status != TaskStatus.FINISHED:
            raise self._error(f"Job {job.job_id} finished without a finished convert task")

        export_task = job.find_task(_EXPORT_OPERATION)
        if export_task is None:
            raise self._error(f"Job {job.job_id} has no export task")

        export_task = await self._wait_for_task(export_task.id)
        if export_task.status == TaskStatus.ERROR:
            raise self._error(
                f"Export task failed: {export_task.message or export_task.code or 'unknown error'}"
            )

        url = export_task.result_files[0].url if export_task.result_files else None
        if not url:
            raise self._error(f"Export task {export_task.id} produced no downloadable file")

        pdf = await self._download(url)
        logger.info("cloudconvert_job_finished", job_id=job.job_id, size=len(pdf))
        return pdf

    async def _create_job(self, input_format: str) -> ConversionJob:
        payload = {
            "tasks": {
                _IMPORT_TASK: {"operation": _IMPORT_OPERATION},
                _CONVERT_TASK: {
                    "operation": _CONVERT_OPERATION,
                    "input": _IMPORT_TASK,
                    "input_format": input_format,
                    "output_format": _OUTPUT_FORMAT,
                    "engine": _ENGINE,
                },
                _EXPORT_TASK: {"operation": _EXPORT_OPERATION, "input": _CONVERT_TASK},
            },
            "tag": _JOB_TAG,
        }
        response = await self._send("job creation", "POST", "/jobs", json=payload)
        return self._parse(response, ConversionJob.from_api, "job creation")

    async def _upload(self, form: UploadForm, data: bytes, file_name: str) -> None:
        fields = {key: str(value) for key, value in form.parameters.items()}
        try:
            response = await self._client.post(
                form.url,
                data=fields,
                files={"file": (file_name, data)},
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise self._error(f"Upload failed with HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise self._error(f"Upload failed: {exc}") from exc

    async def _wait_for_job(self, job_id: str) -> ConversionJob:
        async def fetch() -> ConversionJob:
            response = await self._send("job status", "GET", f"/jobs/{job_id}")
            return self._parse(response, ConversionJob.from_api, "job status")

        return await self._poll(fetch, lambda job: job.status.is_terminal, f"job {job_id}")

    async def _wait_for_task(self, task_id: str) -> JobTask:
        async def fetch() -> JobTask:
            response = await self._send("task status", "GET", f"/tasks/{task_id}")
            return self._parse(response, JobTask.from_api, "task status")

        return await self._poll(fetch, lambda task: task.status.is_terminal, f"task {task_id}")

    async def _download(self, url: str) -> bytes:
        try:
            response = await self._client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise self._error(f"Download failed with HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise self._error(f"Download failed: {exc}") from exc
        return response.content

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _poll(
        self,
        fetch: Callable[[], Awaitable[_T]],
        is_terminal: Callable[[_T], bool],
        what: str,
    ) -> _T:
        """Fetch until *is_terminal*, sleeping with exponential backoff.

        Raises once ``job_timeout_seconds`` elapse without a terminal status.
        """
        deadline = self._clock() + self._timeout
        interval = self._initial_interval
        while True:
            current = await fetch()
            if is_terminal(current):
                return current

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise self._error(f"Timed out after {self._timeout:g}s waiting for {what}")

            logger.debug("cloudconvert_poll_wait", target=what, interval=interval)
            await self._sleep(min(interval, remaining))
            interval = min(interval * self._backoff_factor, self._max_interval)

    async def _send(self, step: str, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{path}",
                headers={"Authorization": f"Bearer {self._api_key}"},
                **kwargs,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise self._error(f"{step.capitalize()} failed with HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise self._error(f"{step.capitalize()} failed: {exc}") from exc
        return response

    def _parse(
        self,
        response: httpx.Response,
        build: Callable[[dict[str, Any]], _T],
        step: str,
    ) -> _T:
        try:
            return build(response.json()["data"])
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise self._error(f"Malformed {step} response: {exc}") from exc

    @staticmethod
    def _describe_failures(job: ConversionJob) -> str:
        failures = [
            f"{task.operation}: {task.message or task.code or 'unknown error'}"
            for task in job.failed_tasks()
        ]
        if not failures:
            return f"Job {job.job_id} failed"
        return f"Job {job.job_id} failed: " + "; ".join(failures)

    @staticmethod
    def _error(message: str) -> ExternalServiceError:
        return ExternalServiceError(message=message, provider_name=_PROVIDER_NAME)
