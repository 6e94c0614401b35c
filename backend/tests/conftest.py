"""
PrismWatch Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

from collections.abc import Generator
from typing import Any

import pytest
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from utils.config import APP_PASSWORD_ENV_KEY, get_settings


IMPORT_URL = "http://testserver/api/v1/import/"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockImportAPI:
    """
    Stand-in for the PhotoPrism import endpoint.

    Records every request and answers with ``reply``: a dict is sent as
    JSON, a string as plain text.
    """

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.reply: dict[str, Any] | str = {"code": 200, "message": "ok"}
        self.status_code = 200
        self.app = FastAPI()
        self.app.post("/api/v1/import/")(self._handle)

    async def _handle(self, request: Request) -> Response:
        self.requests.append(
            {
                "headers": dict(request.headers),
                "body": await request.json(),
            }
        )
        if isinstance(self.reply, str):
            return Response(
                content=self.reply,
                status_code=self.status_code,
                media_type="text/plain",
            )
        return JSONResponse(self.reply, status_code=self.status_code)


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Drop cached settings and logging configuration between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def import_api() -> MockImportAPI:
    """Create a mock import endpoint."""
    return MockImportAPI()


@pytest.fixture
def app_password(monkeypatch: pytest.MonkeyPatch) -> str:
    """Set the app password environment variable."""
    monkeypatch.setenv(APP_PASSWORD_ENV_KEY, "secret-token")
    return "secret-token"


@pytest.fixture
def no_app_password(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure the app password environment variable is unset."""
    monkeypatch.delenv(APP_PASSWORD_ENV_KEY, raising=False)
