"""Shared test fixtures for fireauth.

Provides a scripted stand-in for the identity provider (routed through
:class:`httpx.MockTransport`), a controllable clock, isolated config
directories, and output state management.  These fixtures are discovered
by pytest automatically.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Union
from urllib.parse import parse_qsl

import httpx
import pytest

from fireauth.models import ClientConfig
from fireauth.output import OutputFormat, OutputManager, reset_output, set_output


T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

Reply = Union[tuple[int, Any], Exception, Callable[[httpx.Request], httpx.Response]]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams the
    cached references go stale, so a fresh manager is forced on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake identity provider
# ---------------------------------------------------------------------------


def error_body(message: str, status: int = 400) -> dict[str, Any]:
    return {"error": {"code": status, "message": message, "errors": [{"message": message}]}}


def sign_in_body(
    id_token: str = "id-1",
    refresh_token: str = "r1",
    expires_in: str = "3600",
    local_id: str = "user-1",
    **extra: Any,
) -> dict[str, Any]:
    """A sign-in style body as the API sends it (``expiresIn`` is a string)."""
    body = {
        "kind": "identitytoolkit#VerifyPasswordResponse",
        "idToken": id_token,
        "refreshToken": refresh_token,
        "expiresIn": expires_in,
        "localId": local_id,
    }
    body.update(extra)
    return body


def refresh_body(
    id_token: str = "tok2",
    refresh_token: str = "r1",
    expires_in: str = "3600",
    user_id: str = "user-1",
) -> dict[str, Any]:
    """A Secure Token ``token`` exchange body (snake_case)."""
    return {
        "id_token": id_token,
        "refresh_token": refresh_token,
        "expires_in": expires_in,
        "token_type": "Bearer",
        "user_id": user_id,
        "project_id": "1234",
    }


class FakeIdentityServer:
    """Scripted identity provider routed by endpoint name.

    Replies queued for an endpoint are consumed in order; the last one
    stays in place and answers every further request.  Every request is
    recorded for later assertions.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[Reply]] = {}
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def reply(self, endpoint: str, body: Any, status: int = 200) -> None:
        self.routes.setdefault(endpoint, []).append((status, body))

    def reject(self, endpoint: str, message: str, status: int = 400) -> None:
        self.reply(endpoint, error_body(message, status), status)

    def raise_(self, endpoint: str, exc: Exception) -> None:
        self.routes.setdefault(endpoint, []).append(exc)

    def respond(self, endpoint: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        """Answer *endpoint* with a hand-built response (raw headers, streams)."""
        self.routes.setdefault(endpoint, []).append(handler)

    def calls(self, endpoint: str) -> list[httpx.Request]:
        return [r for r in self.requests if _endpoint(r) == endpoint]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(_endpoint(request))
        if not queue:
            return httpx.Response(404, json=error_body(f"NO_ROUTE {_endpoint(request)}", 404))
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        status, body = item
        return httpx.Response(status, json=body)


def _endpoint(request: httpx.Request) -> str:
    return request.url.path.rsplit("/", 1)[-1]


def json_body(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


def form_body(request: httpx.Request) -> dict[str, str]:
    return dict(parse_qsl(request.content.decode()))


@pytest.fixture
def server() -> FakeIdentityServer:
    return FakeIdentityServer()


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(api_key="test-key")


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME at subdirectories of
    tmp_path, clears FIREAUTH_* environment variables, and changes the
    working directory to tmp_path.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("fireauth.config._is_xdg_platform", lambda: True)

    for var in ["FIREAUTH_API_KEY", "FIREAUTH_REFRESH_TOKEN"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
