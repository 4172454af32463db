"""Request command -- send one HTTP request through :class:`~netclient.client.NetworkClient`.

Settings are resolved with the usual precedence (see
:func:`netclient.config.resolve_settings`), so auth rules, retries and
default headers from the config files apply to ad-hoc requests too.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import typer

from netclient.output import configure_logging, error, get_output


def parse_header(raw: str) -> tuple[str, str]:
    """Split ``"Name: value"`` into ``("Name", "value")``.

    Raises:
        typer.BadParameter: If there is no colon or the name is empty.
    """
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise typer.BadParameter(f"Expected 'Name: value', got {raw!r}", param_hint="--header")
    return name.strip(), value.strip()


def parse_body(raw: Optional[str]) -> Any:
    """Parse ``--body`` as JSON. ``@path`` reads the JSON from a file."""
    if raw is None:
        return None
    if raw.startswith("@"):
        try:
            with open(raw[1:], encoding="utf-8") as f:
                raw = f.read()
        except OSError as exc:
            raise typer.BadParameter(f"Cannot read body file: {exc}", param_hint="--body") from None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Body is not valid JSON: {exc}", param_hint="--body") from None


def _print_exchanges(collector: Any) -> None:
    output = get_output()
    rows = [
        [
            str(i),
            record.method,
            record.url,
            str(record.status_code or "-"),
            f"{record.duration * 1000:.0f}",
            record.error or "",
        ]
        for i, record in enumerate(collector.records, start=1)
    ]
    output.print_table(
        ["#", "Method", "URL", "Status", "Duration (ms)", "Error"],
        rows,
        title="Exchanges",
    )
    for i, record in enumerate(collector.records, start=1):
        output.debug(f"#{i} request headers: {record.request_headers}")
        output.debug(f"#{i} response headers: {record.response_headers}")


def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method (GET, POST, PUT, PATCH, DELETE, ...)."),
    url: str = typer.Argument(help="Path relative to the base URL, or an absolute URL."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra header as 'Name: value'. Repeatable."
    ),
    body: Optional[str] = typer.Option(
        None, "--body", "-d", help="JSON request body, or @file to read it from a file."
    ),
    inspect: bool = typer.Option(
        False, "--inspect", help="Print every exchange (including retries) as a table."
    ),
) -> None:
    """Send a request and print the response body.

    Example::

        netclient request GET /users/1
        netclient --base-url https://api.example.com request POST /users -d '{"name": "a"}'
        netclient request GET https://httpbin.org/status/503 --inspect
    """
    from netclient.client import NetworkClient
    from netclient.client.response import format_api_response
    from netclient.config import build_client_config, resolve_settings
    from netclient.exceptions import NetclientError
    from netclient.inspection import InspectionCollector
    from netclient.models import HTTPMethod

    obj = ctx.obj or {}

    try:
        http_method = HTTPMethod(method)
    except ValueError:
        raise typer.BadParameter(f"Unsupported method {method!r}", param_hint="METHOD") from None

    headers = dict(parse_header(h) for h in header or [])
    payload = parse_body(body)

    try:
        settings = resolve_settings(
            config_path=obj.get("config_path"),
            cli_base_url=obj.get("base_url"),
        )
        config = build_client_config(settings)
    except NetclientError as exc:
        error(f"Config error: {exc.message}")
        raise typer.Exit(code=exc.exit_code) from None

    configure_logging(
        get_output(),
        verbose=obj.get("verbose", False),
        transport=config.logging.enabled,
    )

    collector = InspectionCollector() if inspect else None
    try:
        with NetworkClient(config, inspector=collector) as client:
            response = client.execute(http_method, url, body=payload, headers=headers)
    except NetclientError as exc:
        error(exc.message)
        body_text = getattr(exc, "body", None)
        if body_text:
            get_output().info(body_text[:2000])
        raise typer.Exit(code=exc.exit_code) from None
    finally:
        if collector is not None:
            _print_exchanges(collector)

    format_api_response(response)
