"""Tests for api/main.py app factory and lifespan."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi import APIRouter
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from config import Config  # noqa: E402
from errorlog import HTTPError, default_registry, trace  # noqa: E402
from errorlog import stacktrace, unwrap  # noqa: E402
from errorlog.fields import HTTP_STATUS, ROUTER_PATH  # noqa: E402
from middleware.request_logging import REQUEST_ID_HEADER, RequestLoggingMiddleware  # noqa: E402


def make_settings(**overrides) -> Config:
    settings = MagicMock(spec=Config)
    settings.environment = "test"
    settings.debug = False
    settings.log_call_stack_directly = False
    settings.error_chain_max_depth = 100
    settings.cors_allowed_origins = ""
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


class TestAppCreation:
    """Tests for the FastAPI app instance."""

    def test_app_has_correct_title(self):
        from api.main import app
        assert app.title == "Access Logging API"

    def test_app_has_middleware(self):
        from api.main import app
        middleware_classes = [m.cls.__name__ for m in app.user_middleware]
        assert "CORSMiddleware" in middleware_classes
        assert "RequestLoggingMiddleware" in middleware_classes

    def test_extra_cors_origins(self):
        from api.main import _allowed_origins
        origins = _allowed_origins(make_settings(cors_allowed_origins="https://a.io, https://b.io,"))
        assert "https://a.io" in origins
        assert "https://b.io" in origins
        assert "" not in origins

    @pytest.mark.asyncio
    async def test_health(self):
        from api.main import app

        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as client:
            response = await client.get("/api/health")
            assert response.status_code == 200
            assert response.json()["status"] == "healthy"
            assert REQUEST_ID_HEADER in response.headers


class TestLifespan:
    """Tests for the startup configuration."""

    def test_registers_default_error_logging(self):
        from api.main import create_app

        app = create_app(make_settings())
        with TestClient(app) as client:
            response = client.get("/api/health")

        assert default_registry.lookup(HTTPError(500)) is not None
        assert response.json()["error_handlers"] == len(default_registry)

    def test_applies_error_logging_settings(self):
        from api.main import create_app

        app = create_app(make_settings(log_call_stack_directly=True, error_chain_max_depth=7))
        with TestClient(app):
            assert stacktrace.log_call_stack_directly is True
            assert unwrap.max_chain_depth == 7


class TestErrorRouteLogging:
    """End-to-end: an endpoint error goes through the app's access logging."""

    def test_router_path_and_http_fields(self):
        from api.main import create_app

        router = APIRouter()

        @router.get("/users/{user_id}")
        async def get_user(user_id: str):
            raise HTTPError(404, "user not found", internal=trace(LookupError(user_id)))

        app = create_app(make_settings())
        app.include_router(router, prefix="/api")
        logger = MagicMock()
        for m in app.user_middleware:
            if m.cls is RequestLoggingMiddleware:
                m.kwargs["logger"] = logger

        with TestClient(app) as client:
            response = client.get("/api/users/42")

        assert response.status_code == 404
        assert response.json() == {"message": "user not found"}
        fields = logger.bind.call_args.kwargs
        assert fields[ROUTER_PATH] == "/api/users/{user_id}"
        assert fields[HTTP_STATUS] == 404
        logger.bind.return_value.error.assert_called_once_with("access")
