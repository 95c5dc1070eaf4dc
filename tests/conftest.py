"""Shared pytest fixtures for the fileforge test suite."""

from __future__ import annotations

import io
import sys
from datetime import datetime, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog
from PIL import Image

import fileforge.main  # noqa: F401  configures logging at import
from fileforge.config.settings import Settings
from fileforge.interfaces.document_converter import IDocumentConversionProvider
from fileforge.services.placeholder_pdf import PlaceholderPdfSynthesizer

FIXED_NOW = datetime(2024, 3, 15, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True, scope="session")
def _uncached_loggers() -> None:
    """Create loggers per call so none holds a stream from an earlier test's capture."""
    structlog.configure(
        cache_logger_on_first_use=False,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _make_settings(**overrides: Any) -> Settings:
    defaults: dict[str, Any] = {
        "cloudconvert_api_key": "",
        "cloudconvert_sandbox": False,
        "cloudconvert_base_url": "",
        "job_poll_initial_interval": 1.0,
        "job_poll_max_interval": 10.0,
        "job_poll_backoff_factor": 2.0,
        "job_timeout_seconds": 300.0,
        "job_max_attempts": 1,
        "job_retry_backoff_seconds": 2.0,
        "image_transcode_enabled": False,
        "max_upload_mb": 50,
        "app_env": "test",
        "cors_origins": "*",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Return a builder for Settings that ignores the developer's environment.

    The API key defaults to empty so the placeholder fallback is exercised
    unless a test opts in.
    """
    return _make_settings


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------


@pytest.fixture
def png_bytes() -> bytes:
    """A small RGBA PNG."""
    img = Image.new("RGBA", (8, 8), color=(255, 0, 0, 128))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def docx_bytes() -> bytes:
    """Stand-in Word payload; only the remote service would parse it."""
    return b"PK\x03\x04fake-docx-content"


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def placeholder() -> PlaceholderPdfSynthesizer:
    """Placeholder synthesizer with a fixed clock."""
    return PlaceholderPdfSynthesizer(clock=lambda: FIXED_NOW)


@pytest.fixture
def mock_document_converter() -> IDocumentConversionProvider:
    """Mock IDocumentConversionProvider that is configured and succeeds.

    Override ``convert_document.side_effect`` or ``is_available.return_value``
    per test.
    """
    mock = MagicMock(spec=IDocumentConversionProvider)
    mock.get_provider_name.return_value = "cloudconvert"
    mock.is_available.return_value = True
    mock.convert_document = AsyncMock(return_value=b"%PDF-1.7 real conversion")
    return mock
