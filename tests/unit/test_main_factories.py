"""Unit tests for the service assembly and app factory in fileforge/main.py."""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fileforge.main import _build_all, build_conversion_service, create_app
from fileforge.providers.cloudconvert.cloudconvert_provider import CloudConvertProvider
from fileforge.services.conversion_service import ConversionService


class TestBuildConversionService:
    @pytest.mark.asyncio
    async def test_wires_provider_and_shared_client(self, settings_factory) -> None:
        async with httpx.AsyncClient() as client:
            service, provider = build_conversion_service(settings_factory(cloudconvert_api_key="k"), client)
            assert isinstance(service, ConversionService)
            assert isinstance(provider, CloudConvertProvider)
            assert provider._client is client
            assert service._document_converter is provider
            assert provider.is_available() is True

    @pytest.mark.asyncio
    async def test_image_transcode_flag_is_passed(self, settings_factory) -> None:
        async with httpx.AsyncClient() as client:
            service, _ = build_conversion_service(settings_factory(image_transcode_enabled=True), client)
            assert service._image_transcode_enabled is True


class TestBuildAll:
    @pytest.mark.asyncio
    async def test_components(self, settings_factory) -> None:
        settings = settings_factory(http_timeout_seconds=12.0)
        components = _build_all(settings)
        try:
            assert set(components) == {"settings", "http_client", "document_converter", "conversion_service"}
            assert components["settings"] is settings
            assert components["document_converter"]._client is components["http_client"]
            assert components["http_client"].timeout.read == 12.0
        finally:
            await components["http_client"].aclose()


class TestCreateApp:
    def test_returns_fastapi_with_routes(self, settings_factory) -> None:
        app = create_app(settings_factory())
        assert isinstance(app, FastAPI)
        paths = {getattr(route, "path", None) for route in app.routes}
        assert {"/api/v1/convert", "/api/v1/formats", "/api/v1/health"} <= paths

    def test_lifespan_populates_and_closes(self, settings_factory) -> None:
        app = create_app(settings_factory())
        with TestClient(app) as client:
            assert isinstance(app.state.conversion_service, ConversionService)
            http_client = app.state.http_client
            assert client.get("/api/v1/health").status_code == 200
        assert http_client.is_closed is True

    def test_health_reports_configuration(self, settings_factory) -> None:
        with TestClient(create_app(settings_factory(cloudconvert_api_key="k"))) as client:
            body = client.get("/api/v1/health").json()
        assert body["status"] == "ok"
        assert body["providers"] == {"cloudconvert": True}
