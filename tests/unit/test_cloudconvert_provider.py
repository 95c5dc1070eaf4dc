"""Unit tests for the CloudConvert provider, driven through httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from fileforge.providers.cloudconvert.cloudconvert_provider import CloudConvertProvider
from fileforge.utils.errors import ConfigurationError, ExternalServiceError

API = "https://cc.test/v2"
UPLOAD_URL = "https://upload.cc.test/tasks/t-import"
DOWNLOAD_URL = "https://storage.cc.test/job-1/report.pdf"
PDF = b"%PDF-1.7 converted by the service"


# ======================================================================
# Fake CloudConvert API
# ======================================================================


class FakeCloudConvert:
    """Answers the job protocol; individual steps can be made to fail."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.job_statuses = ["processing", "finished"]
        self.convert_status = "finished"
        self.export_status = "finished"
        self.export_message: str | None = None
        self.export_files: list[dict[str, Any]] = [
            {"url": DOWNLOAD_URL, "filename": "report.pdf", "size": len(PDF)}
        ]
        self.include_upload_form = True
        self.include_export = True
        self.malformed_create = False
        self.create_body: dict[str, Any] | None = None
        self.export_result: Any = None
        self._failures: dict[str, list[int]] = {}

    def fail(self, step: str, status: int, times: int = 1) -> None:
        self._failures[step] = [status] * times

    def _failure(self, step: str) -> httpx.Response | None:
        pending = self._failures.get(step)
        if pending:
            return httpx.Response(pending.pop(0), json={"message": f"{step} broke"})
        return None

    def _tasks(self, job_status: str) -> list[dict[str, Any]]:
        done = job_status in ("finished", "error")
        import_task: dict[str, Any] = {
            "id": "t-import",
            "name": "import-file",
            "operation": "import/upload",
            "status": "finished" if done else "waiting",
        }
        if self.include_upload_form:
            import_task["result"] = {
                "form": {"url": UPLOAD_URL, "parameters": {"expires": 1700000000, "signature": "sig-abc"}}
            }
        convert_task: dict[str, Any] = {
            "id": "t-convert",
            "name": "convert-file",
            "operation": "convert",
            "status": "waiting",
        }
        if job_status == "error":
            convert_task.update(status="error", message="Unsupported input file", code="INVALID_FILE")
        elif done:
            convert_task["status"] = self.convert_status
        tasks = [import_task, convert_task]
        if self.include_export:
            tasks.append(
                {
                    "id": "t-export",
                    "name": "export-file",
                    "operation": "export/url",
                    "status": "waiting",
                }
            )
        return tasks

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        method, url = request.method, str(request.url)

        if (method, url) == ("POST", f"{API}/jobs"):
            failure = self._failure("create")
            if failure is not None:
                return failure
            if self.malformed_create:
                return httpx.Response(201, json={"unexpected": True})
            if self.create_body is not None:
                return httpx.Response(201, json=self.create_body)
            return httpx.Response(
                201, json={"data": {"id": "job-1", "status": "waiting", "tasks": self._tasks("waiting")}}
            )

        if (method, url) == ("POST", UPLOAD_URL):
            return self._failure("upload") or httpx.Response(201)

        if (method, url) == ("GET", f"{API}/jobs/job-1"):
            failure = self._failure("status")
            if failure is not None:
                return failure
            status = self.job_statuses.pop(0) if len(self.job_statuses) > 1 else self.job_statuses[0]
            return httpx.Response(
                200, json={"data": {"id": "job-1", "status": status, "tasks": self._tasks(status)}}
            )

        if (method, url) == ("GET", f"{API}/tasks/t-export"):
            return httpx.Response(
                200,
                json={
                    "data": {
                        "id": "t-export",
                        "name": "export-file",
                        "operation": "export/url",
                        "status": self.export_status,
                        "message": self.export_message,
                        "result": (
                            self.export_result
                            if self.export_result is not None
                            else {"files": self.export_files}
                        ),
                    }
                },
            )

        if (method, url) == ("GET", DOWNLOAD_URL):
            return self._failure("download") or httpx.Response(200, content=PDF)

        return httpx.Response(404)

    def paths(self) -> list[str]:
        return [f"{r.method} {r.url}" for r in self.requests]


class FakeTimer:
    """Injected sleep/clock pair; sleeping advances the clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


# ======================================================================
# Fixtures
# ======================================================================


@pytest.fixture
def fake_api() -> FakeCloudConvert:
    return FakeCloudConvert()


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def make_provider(settings_factory, fake_api: FakeCloudConvert, timer: FakeTimer):
    def _make(**overrides: Any) -> CloudConvertProvider:
        defaults: dict[str, Any] = {"cloudconvert_api_key": "key-123", "cloudconvert_base_url": API}
        defaults.update(overrides)
        client = httpx.AsyncClient(transport=httpx.MockTransport(fake_api))
        return CloudConvertProvider(
            settings_factory(**defaults),
            http_client=client,
            sleep=timer.sleep,
            clock=timer.clock,
        )

    return _make


# ======================================================================
# Configuration
# ======================================================================


class TestConfiguration:
    def test_provider_name(self, make_provider) -> None:
        assert make_provider().get_provider_name() == "cloudconvert"

    def test_available_with_key(self, make_provider) -> None:
        assert make_provider().is_available() is True

    def test_unavailable_without_key(self, make_provider) -> None:
        assert make_provider(cloudconvert_api_key="").is_available() is False

    @pytest.mark.asyncio
    async def test_unconfigured_raises_without_network(self, make_provider, fake_api) -> None:
        provider = make_provider(cloudconvert_api_key="")
        with pytest.raises(ExternalServiceError, match="API key is not configured") as exc_info:
            await provider.convert_document(b"doc", "report.docx")
        assert exc_info.value.provider_name == "cloudconvert"
        assert fake_api.requests == []

    @pytest.mark.parametrize(
        "overrides",
        [
            {"job_max_attempts": 0},
            {"job_poll_initial_interval": -1.0},
            {"job_poll_initial_interval": 0.0},
            {"job_poll_initial_interval": 5.0, "job_poll_max_interval": 2.0},
            {"job_poll_backoff_factor": 0.5},
        ],
    )
    def test_invalid_settings_rejected(self, make_provider, overrides: dict[str, Any]) -> None:
        with pytest.raises(ConfigurationError):
            make_provider(**overrides)

    @pytest.mark.asyncio
    async def test_aclose_leaves_shared_client_open(self, settings_factory) -> None:
        client = httpx.AsyncClient()
        provider = CloudConvertProvider(settings_factory(), http_client=client)
        await provider.aclose()
        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_closes_owned_client(self, settings_factory) -> None:
        provider = CloudConvertProvider(settings_factory())
        await provider.aclose()
        assert provider._client.is_closed is True


# ======================================================================
# Happy path
# ======================================================================


class TestConvertDocument:
    @pytest.mark.asyncio
    async def test_returns_downloaded_pdf(self, make_provider, fake_api) -> None:
        pdf = await make_provider().convert_document(b"docx-bytes", "report.docx")

        assert pdf == PDF
        assert fake_api.paths() == [
            f"POST {API}/jobs",
            f"POST {UPLOAD_URL}",
            f"GET {API}/jobs/job-1",
            f"GET {API}/jobs/job-1",
            f"GET {API}/tasks/t-export",
            f"GET {DOWNLOAD_URL}",
        ]

    @pytest.mark.asyncio
    async def test_job_payload(self, make_provider, fake_api) -> None:
        await make_provider().convert_document(b"docx-bytes", "report.docx")

        create = fake_api.requests[0]
        assert create.headers["Authorization"] == "Bearer key-123"
        tasks = json.loads(create.content)["tasks"]
        assert tasks["import-file"] == {"operation": "import/upload"}
        assert tasks["convert-file"] == {
            "operation": "convert",
            "input": "import-file",
            "input_format": "docx",
            "output_format": "pdf",
            "engine": "office",
        }
        assert tasks["export-file"] == {"operation": "export/url", "input": "convert-file"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("file_name", "expected"),
        [("legacy.DOC", "doc"), ("report.docx", "docx"), ("no-extension", "docx")],
    )
    async def test_input_format_from_file_name(
        self, make_provider, fake_api, file_name: str, expected: str
    ) -> None:
        await make_provider().convert_document(b"bytes", file_name)
        tasks = json.loads(fake_api.requests[0].content)["tasks"]
        assert tasks["convert-file"]["input_format"] == expected

    @pytest.mark.asyncio
    async def test_upload_is_signed_multipart_without_auth(self, make_provider, fake_api) -> None:
        await make_provider().convert_document(b"docx-bytes", "report.docx")

        upload = fake_api.requests[1]
        assert "Authorization" not in upload.headers
        assert upload.headers["Content-Type"].startswith("multipart/form-data")
        body = upload.content
        assert b'name="signature"' in body
        assert b"sig-abc" in body
        assert b'name="expires"' in body
        assert b'filename="report.docx"' in body
        assert b"docx-bytes" in body

    @pytest.mark.asyncio
    async def test_download_has_no_auth_header(self, make_provider, fake_api) -> None:
        await make_provider().convert_document(b"x", "report.docx")
        assert "Authorization" not in fake_api.requests[-1].headers

    @pytest.mark.asyncio
    async def test_poll_backoff_is_exponential_and_capped(self, make_provider, fake_api, timer) -> None:
        fake_api.job_statuses = ["processing"] * 5 + ["finished"]
        await make_provider(job_poll_max_interval=3.0).convert_document(b"x", "report.docx")
        assert timer.sleeps == [1.0, 2.0, 3.0, 3.0, 3.0]


# ======================================================================
# Failure points
# ======================================================================


class TestFailures:
    @pytest.mark.asyncio
    async def test_job_creation_http_error(self, make_provider, fake_api) -> None:
        fake_api.fail("create", 500)
        with pytest.raises(ExternalServiceError, match="Job creation failed with HTTP 500"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    async def test_job_creation_malformed_response(self, make_provider, fake_api) -> None:
        fake_api.malformed_create = True
        with pytest.raises(ExternalServiceError, match="Malformed job creation response"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "tasks",
        [
            [1],
            ["import-file"],
            [{"id": "t-import", "operation": "import/upload", "status": "waiting", "result": ["x"]}],
        ],
    )
    async def test_job_creation_wrongly_shaped_tasks(self, make_provider, fake_api, tasks) -> None:
        fake_api.create_body = {"data": {"id": "job-1", "status": "waiting", "tasks": tasks}}
        with pytest.raises(ExternalServiceError, match="Malformed job creation response"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    async def test_export_task_result_not_an_object(self, make_provider, fake_api) -> None:
        fake_api.export_result = ["x"]
        with pytest.raises(ExternalServiceError, match="Malformed task status response"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    async def test_network_error(self, settings_factory, timer) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = CloudConvertProvider(
            settings_factory(cloudconvert_api_key="key-123", cloudconvert_base_url=API),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
            sleep=timer.sleep,
            clock=timer.clock,
        )
        with pytest.raises(ExternalServiceError, match="Job creation failed: connection refused") as exc_info:
            await provider.convert_document(b"x", "report.docx")
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_missing_upload_task(self, make_provider, fake_api) -> None:
        fake_api.include_upload_form = False
        with pytest.raises(ExternalServiceError, match="Job job-1 has no upload task"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    async def test_upload_http_error(self, make_provider, fake_api) -> None:
        fake_api.fail("upload", 500)
        with pytest.raises(ExternalServiceError, match="Upload failed with HTTP 500"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    async def test_job_status_http_error(self, make_provider, fake_api) -> None:
        fake_api.fail("status", 503)
        with pytest.raises(ExternalServiceError, match="Job status failed with HTTP 503"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    async def test_job_error_aggregates_failed_tasks(self, make_provider, fake_api) -> None:
        fake_api.job_statuses = ["error"]
        with pytest.raises(ExternalServiceError) as exc_info:
            await make_provider().convert_document(b"x", "report.docx")
        assert exc_info.value.message == "Job job-1 failed: convert: Unsupported input file"

    @pytest.mark.asyncio
    async def test_wait_times_out(self, make_provider, fake_api, timer) -> None:
        fake_api.job_statuses = ["processing"]
        with pytest.raises(ExternalServiceError, match="Timed out after 5s waiting for job job-1"):
            await make_provider(job_timeout_seconds=5.0).convert_document(b"x", "report.docx")
        assert timer.sleeps == [1.0, 2.0, 2.0]

    @pytest.mark.asyncio
    async def test_convert_task_not_finished(self, make_provider, fake_api) -> None:
        fake_api.convert_status = "processing"
        with pytest.raises(ExternalServiceError, match="without a finished convert task"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    async def test_missing_export_task(self, make_provider, fake_api) -> None:
        fake_api.include_export = False
        with pytest.raises(ExternalServiceError, match="Job job-1 has no export task"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    async def test_export_task_error(self, make_provider, fake_api) -> None:
        fake_api.export_status = "error"
        fake_api.export_message = "Storage unavailable"
        with pytest.raises(ExternalServiceError, match="Export task failed: Storage unavailable"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("files", [[], [{"filename": "report.pdf"}]])
    async def test_export_without_url(self, make_provider, fake_api, files) -> None:
        fake_api.export_files = files
        with pytest.raises(ExternalServiceError, match="produced no downloadable file"):
            await make_provider().convert_document(b"x", "report.docx")

    @pytest.mark.asyncio
    async def test_download_http_error(self, make_provider, fake_api) -> None:
        fake_api.fail("download", 404)
        with pytest.raises(ExternalServiceError, match="Download failed with HTTP 404"):
            await make_provider().convert_document(b"x", "report.docx")


# ======================================================================
# Retry
# ======================================================================


class TestRetry:
    @pytest.mark.asyncio
    async def test_single_attempt_by_default(self, make_provider, fake_api, timer) -> None:
        fake_api.fail("create", 500)
        with pytest.raises(ExternalServiceError):
            await make_provider().convert_document(b"x", "report.docx")
        assert fake_api.paths() == [f"POST {API}/jobs"]
        assert timer.sleeps == []

    @pytest.mark.asyncio
    async def test_retry_recovers(self, make_provider, fake_api, timer) -> None:
        fake_api.fail("create", 502)
        pdf = await make_provider(job_max_attempts=2).convert_document(b"x", "report.docx")
        assert pdf == PDF
        assert timer.sleeps[0] == 2.0

    @pytest.mark.asyncio
    async def test_retry_exhausted_raises_last_error(self, make_provider, fake_api, timer) -> None:
        fake_api.fail("create", 500, times=3)
        with pytest.raises(ExternalServiceError, match="HTTP 500"):
            await make_provider(job_max_attempts=3).convert_document(b"x", "report.docx")
        assert timer.sleeps == [2.0, 4.0]
        assert fake_api.paths().count(f"POST {API}/jobs") == 3
