"""Pytest configuration and fixtures for corsgate tests.

Test isolation strategy:
- Settings cache is cleared around every test; CORS_* env vars are removed
- Apps are built per test from explicit options via make_client
- Raw ASGI tests record sent messages with a list-backed send callable
"""

from collections.abc import Callable, Generator
from datetime import timedelta

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from corsgate.config import clear_settings_cache
from corsgate.cors.options import CORSOptions
from corsgate.middleware.cors import CORSMiddleware

ENV_VARS = (
    "CORSGATE_ENV",
    "CORSGATE_LOG_JSON",
    "CORS_SCHEME",
    "CORS_ALLOW_DOMAIN",
    "CORS_ALLOW_SUBDOMAIN",
    "CORS_METHODS",
    "CORS_MAX_AGE_S",
    "CORS_ALLOW_CREDENTIALS",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch) -> Generator[None, None, None]:
    """Run every test against default settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CORSGATE_ENV", "test")
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def handler_calls() -> list[str]:
    """Paths served by the protected route, in call order."""
    return []


@pytest.fixture
def make_client(handler_calls) -> Callable[..., TestClient]:
    """Build a TestClient for a Starlette app wrapped in CORSMiddleware.

    The single route answers every method with "ok" and records its calls.
    """

    def factory(options=None, observer=None) -> TestClient:
        async def protected(request: Request) -> PlainTextResponse:
            handler_calls.append(request.url.path)
            return PlainTextResponse("ok", headers={"X-Handler": "1"})

        app = Starlette(
            routes=[
                Route(
                    "/",
                    protected,
                    methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
                )
            ]
        )
        app.add_middleware(CORSMiddleware, options=options, observer=observer)
        return TestClient(app)

    return factory


@pytest.fixture
def https_options() -> CORSOptions:
    """Strict https policy for example.com with credentials."""
    return CORSOptions(
        scheme="https",
        allow_domain=["example.com"],
        allow_subdomain=False,
        allow_credentials=True,
        max_age=timedelta(seconds=20),
    )


@pytest.fixture
def sent_messages() -> list[dict]:
    return []


@pytest.fixture
def mock_send(sent_messages):
    """ASGI send callable recording every message."""

    async def send(message: dict) -> None:
        sent_messages.append(message)

    return send
