"""Response formatting bridge -- maps a :class:`TransportResponse` to the CLI output system.

After ``netclient request`` completes, :func:`format_api_response` writes
the status line to stderr and routes the body through
:meth:`~netclient.output.OutputManager.format_response`.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from netclient.client.transport import TransportResponse
from netclient.output import get_output


def format_api_response(response: TransportResponse) -> None:
    """Print *response* using the global output manager.

    The status line (``HTTP 200 OK``) goes to stderr, the body to stdout.
    """
    output = get_output()
    reason = httpx.codes.get_reason_phrase(response.status_code)
    output.info(f"HTTP {response.status_code} {reason}".rstrip())

    data = extract_response_data(response)
    if data is not None:
        content_type = response.headers.get("content-type", "application/json")
        output.format_response(data, content_type)


def extract_response_data(response: TransportResponse) -> Any:
    """Return the body as parsed JSON, else as text, or ``None`` when empty."""
    if not response.content:
        return None
    try:
        return json.loads(response.content)
    except ValueError:
        return response.text
