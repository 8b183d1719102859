"""Shared test fixtures for autolab-cli.

Provides an in-process fake Autolab server built on
:class:`httpx.MockTransport`, isolated config environments, and output
state management. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from typing import Any, Callable, Optional
from urllib.parse import parse_qsl

import httpx
import pytest

from autolab_cli.client.session import Session
from autolab_cli.output import OutputFormat, OutputManager, reset_output, set_output


BASE_URL = "https://autolab.test"

Handler = Callable[[httpx.Request], httpx.Response]


def json_reply(data: Any, status_code: int = 200) -> Handler:
    """Handler that answers with a fresh JSON response on every call."""
    return lambda request: httpx.Response(status_code, json=data)


def file_reply(body: bytes, filename: Optional[str] = "handout.pdf") -> Handler:
    """Handler that answers with an attachment."""
    disposition = "attachment" if filename is None else f'attachment; filename="{filename}"'
    return lambda request: httpx.Response(
        200,
        headers={"Content-Disposition": disposition, "Content-Type": "application/pdf"},
        content=body,
    )


def form_params(request: httpx.Request) -> dict[str, str]:
    """Decode the parameters of a request, from the query string or the form body."""
    if request.method == "GET":
        return dict(request.url.params)
    return dict(parse_qsl(request.content.decode("ascii")))


class FakeAutolab:
    """Route table of queued handlers keyed by ``(method, path)``.

    Each route holds a queue; the last handler is reused once the queue
    is down to one. Unknown routes answer ``404 {"error": "Not found"}``.
    Every request is recorded in :attr:`requests`.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Handler]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *handlers: Handler) -> None:
        self.routes.setdefault((method, path), []).extend(handlers)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": "Not found"})
        handler = queue.pop(0) if len(queue) > 1 else queue[0]
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Server and session fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_server() -> FakeAutolab:
    return FakeAutolab()


@pytest.fixture
def session() -> Session:
    """An authenticated session with tokens ``at-1`` / ``rt-1``."""
    s = Session("cid", "csecret", f"{BASE_URL}/device_flow_auth_cb")
    s.set_tokens("at-1", "rt-1")
    return s


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME into tmp_path, forces the XDG
    layout on every platform, clears AUTOLAB_* environment variables, and
    changes the working directory to ``tmp_path / "work"``.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("autolab_cli.config._is_xdg_platform", lambda: True)

    for var in ["AUTOLAB_BASE_URL", "AUTOLAB_CLIENT_ID", "AUTOLAB_CLIENT_SECRET"]:
        monkeypatch.delenv(var, raising=False)

    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
