"""Shared test fixtures for netclient.

Provides mock-transport builders, client configuration helpers, isolated
config environments and output state management. These fixtures are
discovered by pytest automatically.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from netclient.client.transport import AsyncHttpxTransport, HttpxTransport
from netclient.models import ClientConfig, RetryPolicy
from netclient.output import OutputFormat, OutputManager, reset_output, set_output


BASE_URL = "https://api.example.com"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches sys.stdout/sys.stderr at creation time; once
    a CliRunner invocation finishes those references are stale.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_netclient_logger() -> None:
    """Undo :func:`netclient.output.configure_logging` so caplog keeps working."""
    yield
    logger = logging.getLogger("netclient")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Transport fixtures
# ---------------------------------------------------------------------------


class Recorder:
    """httpx mock handler that records requests and replays canned responses.

    Responses are consumed in order; the last one repeats. A response may
    also be an exception instance, which is raised instead.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses) or [httpx.Response(200, json={})]
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.responses) - 1)
        response = self.responses[index]
        if isinstance(response, BaseException):
            raise response
        return httpx.Response(
            response.status_code, headers=response.headers, content=response.content
        )

    @property
    def count(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recorder() -> type[Recorder]:
    """The :class:`Recorder` class, for building mock handlers."""
    return Recorder


@pytest.fixture
def make_config() -> Callable[..., ClientConfig]:
    """Build a ClientConfig against ``BASE_URL`` with zero backoff."""

    def _make(**overrides: Any) -> ClientConfig:
        values: dict[str, Any] = {
            "base_url": BASE_URL,
            "retry_policy": RetryPolicy(max_retries=0, max_delay=0),
        }
        values.update(overrides)
        return ClientConfig(**values)

    return _make


@pytest.fixture
def sync_transport() -> Callable[..., HttpxTransport]:
    """Wrap a handler in an HttpxTransport backed by httpx.MockTransport."""

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> HttpxTransport:
        return HttpxTransport(transport=httpx.MockTransport(handler), **kwargs)

    return _make


@pytest.fixture
def async_transport() -> Callable[..., AsyncHttpxTransport]:
    """Wrap a handler in an AsyncHttpxTransport backed by httpx.MockTransport."""

    def _make(handler: Callable[..., Any], **kwargs: Any) -> AsyncHttpxTransport:
        return AsyncHttpxTransport(transport=httpx.MockTransport(handler), **kwargs)

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at tmp_path, clears ``NETCLIENT_*``
    variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("netclient.config._is_xdg_platform", lambda: True)

    for var in ["NETCLIENT_BASE_URL", "NETCLIENT_LOG_LEVEL", "NETCLIENT_MAX_RETRIES"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN OutputManager."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()
