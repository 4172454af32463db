"""End-to-end tests for the ``netclient`` command line.

The ``request`` command builds its transport through
:meth:`HttpxTransport.from_config`; the ``mock_api`` fixture swaps that
for one backed by :class:`httpx.MockTransport` so no network is touched.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from typer.testing import CliRunner

from netclient import __version__
from netclient.app import app
from netclient.client.transport import HttpxTransport
from netclient.config import get_config_dir


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def mock_api(
    isolated_config: Path, monkeypatch: pytest.MonkeyPatch, recorder
) -> Callable[..., Any]:
    """Route every CLI request to a :class:`Recorder` built from *responses*."""

    def _install(*responses: Any):
        rec = recorder(*responses)

        def from_config(cls, config, inspectors=(), transport=None):
            return cls(
                timeouts=config.timeouts,
                logging=config.logging,
                inspectors=inspectors,
                transport=httpx.MockTransport(rec),
            )

        monkeypatch.setattr(HttpxTransport, "from_config", classmethod(from_config))
        return rec

    return _install


def _invoke(runner: CliRunner, *args: str):
    return runner.invoke(app, ["--plain", "--no-color", *args])


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"netclient {__version__}" in result.output

    def test_no_args_shows_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, [])
        assert "request" in result.output
        assert "config" in result.output


# ---------------------------------------------------------------------------
# netclient request
# ---------------------------------------------------------------------------


class TestRequestCommand:
    def test_get_prints_body(self, runner: CliRunner, mock_api) -> None:
        rec = mock_api(httpx.Response(200, json={"id": 1, "name": "Ada"}))
        result = _invoke(
            runner, "--base-url", "https://api.example.com", "request", "GET", "/users/1"
        )

        assert result.exit_code == 0, result.output
        assert "HTTP 200 OK" in result.output
        assert "name\tAda" in result.output
        assert str(rec.last.url) == "https://api.example.com/users/1"

    def test_post_with_headers_and_body(self, runner: CliRunner, mock_api) -> None:
        rec = mock_api(httpx.Response(201, json={"ok": True}))
        result = _invoke(
            runner,
            "request",
            "post",
            "https://api.example.com/users",
            "-H",
            "X-Trace: abc",
            "-d",
            '{"name": "Ada"}',
        )

        assert result.exit_code == 0, result.output
        assert rec.last.method == "POST"
        assert rec.last.headers["x-trace"] == "abc"
        assert rec.last.headers["content-type"] == "application/json"
        assert json.loads(rec.last.content) == {"name": "Ada"}

    def test_body_from_file(self, runner: CliRunner, mock_api, isolated_config: Path) -> None:
        rec = mock_api(httpx.Response(200, json={}))
        body_file = isolated_config / "body.json"
        body_file.write_text('{"from": "file"}', encoding="utf-8")

        result = _invoke(runner, "request", "PUT", "https://h/x", "-d", f"@{body_file}")
        assert result.exit_code == 0, result.output
        assert json.loads(rec.last.content) == {"from": "file"}

    def test_settings_file_applies(
        self, runner: CliRunner, mock_api, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NC_TOKEN", "s3cret")
        (isolated_config / "netclient.yaml").write_text(
            "base_url: https://api.example.com\n"
            "default_headers:\n"
            "  Accept: application/json\n"
            "auth:\n"
            "  type: bearer\n"
            "  source: env:NC_TOKEN\n",
            encoding="utf-8",
        )
        rec = mock_api(httpx.Response(200, json={}))

        result = _invoke(runner, "request", "GET", "/me")
        assert result.exit_code == 0, result.output
        assert str(rec.last.url) == "https://api.example.com/me"
        assert rec.last.headers["authorization"] == "Bearer s3cret"
        assert rec.last.headers["accept"] == "application/json"

    @pytest.mark.parametrize(
        ("response", "exit_code"),
        [
            (httpx.Response(404, text="no such user"), 4),
            (httpx.Response(503), 5),
            (httpx.ReadTimeout("slow"), 6),
            (httpx.ConnectError("refused"), 1),
            (httpx.Response(304), 1),
        ],
    )
    def test_failure_exit_codes(
        self, runner: CliRunner, mock_api, response: Any, exit_code: int
    ) -> None:
        mock_api(response)
        result = _invoke(runner, "request", "GET", "https://h/x")
        assert result.exit_code == exit_code, result.output
        assert "Error:" in result.output

    def test_client_error_body_shown(self, runner: CliRunner, mock_api) -> None:
        mock_api(httpx.Response(422, text="name is required"))
        result = _invoke(runner, "request", "POST", "https://h/x", "-d", "{}")
        assert result.exit_code == 4
        assert "name is required" in result.output

    def test_retries_from_env(
        self, runner: CliRunner, mock_api, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NETCLIENT_MAX_RETRIES", "2")
        monkeypatch.setattr("netclient.client.sync_client.time.sleep", lambda _: None)
        rec = mock_api(httpx.Response(503), httpx.Response(200, json={"ok": True}))

        result = _invoke(runner, "request", "GET", "https://h/x")
        assert result.exit_code == 0, result.output
        assert rec.count == 2

    def test_inspect_prints_every_attempt(
        self, runner: CliRunner, mock_api, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NETCLIENT_MAX_RETRIES", "1")
        monkeypatch.setattr("netclient.client.sync_client.time.sleep", lambda _: None)
        mock_api(httpx.Response(500), httpx.Response(200, json={}))

        result = _invoke(runner, "request", "GET", "https://h/x", "--inspect")
        assert result.exit_code == 0, result.output
        assert "#\tMethod\tURL\tStatus" in result.output
        assert "1\tGET\thttps://h/x\t500" in result.output
        assert "2\tGET\thttps://h/x\t200" in result.output

    def test_inspect_printed_on_failure(self, runner: CliRunner, mock_api) -> None:
        mock_api(httpx.Response(404))
        result = _invoke(runner, "request", "GET", "https://h/x", "--inspect")
        assert result.exit_code == 4
        assert "1\tGET\thttps://h/x\t404" in result.output

    def test_bad_header(self, runner: CliRunner, mock_api) -> None:
        mock_api()
        result = _invoke(runner, "request", "GET", "https://h/x", "-H", "no-colon")
        assert result.exit_code == 2

    def test_bad_body(self, runner: CliRunner, mock_api) -> None:
        mock_api()
        result = _invoke(runner, "request", "POST", "https://h/x", "-d", "{not json")
        assert result.exit_code == 2

    def test_bad_method(self, runner: CliRunner, mock_api) -> None:
        mock_api()
        result = _invoke(runner, "request", "BREW", "https://h/x")
        assert result.exit_code == 2

    def test_invalid_settings_file(
        self, runner: CliRunner, mock_api, isolated_config: Path
    ) -> None:
        mock_api()
        (isolated_config / "netclient.json").write_text("{broken", encoding="utf-8")
        result = _invoke(runner, "request", "GET", "/x")
        assert result.exit_code == 1
        assert "Config error" in result.output


# ---------------------------------------------------------------------------
# netclient config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_path(self, runner: CliRunner, isolated_config: Path) -> None:
        result = _invoke(runner, "config", "path")
        assert result.exit_code == 0
        assert str(isolated_config / "config" / "netclient") in result.output

    def test_show_defaults(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--json", "config", "show"])
        assert result.exit_code == 0, result.output
        assert '"max_retries": 0' in result.output
        assert '"base_url": null' in result.output

    def test_show_lists_loaded_files(self, runner: CliRunner, isolated_config: Path) -> None:
        project = isolated_config / "netclient.yaml"
        project.write_text("base_url: https://project\n", encoding="utf-8")

        result = _invoke(runner, "config", "show")
        assert result.exit_code == 0, result.output
        assert f"Loaded: {project}" in result.output
        assert "https://project" in result.output

    def test_set_then_show(self, runner: CliRunner, isolated_config: Path) -> None:
        assert _invoke(runner, "config", "set", "retry.max_retries", "3").exit_code == 0
        assert _invoke(runner, "config", "set", "logging.enabled", "true").exit_code == 0
        assert _invoke(runner, "config", "set", "base_url", "https://saved").exit_code == 0

        saved = json.loads((get_config_dir() / "config.json").read_text())
        assert saved["retry"] == {"max_retries": 3}
        assert saved["logging"] == {"enabled": True}
        assert saved["base_url"] == "https://saved"

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("nope", "1"),
            ("retry.nope", "1"),
            ("retry.max_retries", "many"),
            ("timeouts.connect", "0"),
        ],
    )
    def test_set_rejects(
        self, runner: CliRunner, isolated_config: Path, key: str, value: str
    ) -> None:
        result = _invoke(runner, "config", "set", key, value)
        assert result.exit_code == 2
        assert not (get_config_dir() / "config.json").exists()
