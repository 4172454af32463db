"""Exchange records, the inspector interface, and the runner that feeds them.

This module provides the pieces a transport needs to support optional
network inspection:

* :class:`ExchangeRecord` -- a dataclass describing one request/response
  exchange (or a failed attempt).
* :class:`Inspector` -- the capability interface. Anything with an
  ``on_exchange(record)`` method qualifies.
* :class:`InspectorRunner` -- calls every inspector in registration order
  and keeps inspector failures away from the request.

Inspection is opt-in and injected: a transport is built with or without
inspectors, and the request pipeline behaves the same either way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

REDACTED = "**"

DEFAULT_REDACTED_HEADERS = ("Authorization", "Bearer", "X-API-Key")
"""Header names whose values are never shown in logs or inspection records."""


@dataclass
class ExchangeRecord:
    """One request/response exchange as seen by the transport.

    Attributes:
        method: HTTP method (e.g. ``"GET"``).
        url: The fully resolved request URL.
        request_headers: Headers handed to the transport.
        request_body: Request body decoded as text, if any.
        status_code: Response status, ``0`` when no response arrived.
        response_headers: Response headers.
        response_body: Response body decoded as text, if any.
        started_at: Wall-clock start time (``time.time()``).
        duration: Seconds between sending and receiving the response.
        error: ``"ExceptionType: message"`` when the attempt failed.
    """

    method: str = ""
    url: str = ""
    request_headers: dict[str, str] = field(default_factory=dict)
    request_body: Optional[str] = None
    status_code: int = 0
    response_headers: dict[str, str] = field(default_factory=dict)
    response_body: Optional[str] = None
    started_at: float = 0.0
    duration: float = 0.0
    error: Optional[str] = None

    def sanitized(
        self,
        redact: Iterable[str] = DEFAULT_REDACTED_HEADERS,
        max_content_length: Optional[int] = None,
    ) -> ExchangeRecord:
        """Return a copy with sensitive headers masked and bodies truncated."""
        return replace(
            self,
            request_headers=redact_headers(self.request_headers, redact),
            response_headers=redact_headers(self.response_headers, redact),
            request_body=truncate(self.request_body, max_content_length),
            response_body=truncate(self.response_body, max_content_length),
        )


@runtime_checkable
class Inspector(Protocol):
    """Receives a record for every exchange a transport performs."""

    def on_exchange(self, record: ExchangeRecord) -> None: ...


class InspectorRunner:
    """Feeds exchange records to inspectors in registration order.

    An inspector that raises is logged and skipped so that inspection can
    never change the outcome of a request.
    """

    def __init__(self, inspectors: Iterable[Inspector]) -> None:
        self._inspectors = list(inspectors)

    def __bool__(self) -> bool:
        return bool(self._inspectors)

    def run(self, record: ExchangeRecord) -> None:
        """Deliver *record* to every inspector."""
        for inspector in self._inspectors:
            try:
                inspector.on_exchange(record)
            except Exception as exc:
                logger.warning(
                    "Inspector %s failed on %s %s: %s",
                    type(inspector).__name__,
                    record.method,
                    record.url,
                    exc,
                )


def redact_headers(
    headers: Mapping[str, str],
    names: Iterable[str] = DEFAULT_REDACTED_HEADERS,
) -> dict[str, str]:
    """Return a copy of *headers* with the values of *names* masked (case-insensitive)."""
    hidden = {n.lower() for n in names}
    return {k: (REDACTED if k.lower() in hidden else v) for k, v in headers.items()}


def truncate(text: Optional[str], limit: Optional[int]) -> Optional[str]:
    """Cut *text* to *limit* characters, marking the cut."""
    if text is None or limit is None or len(text) <= limit:
        return text
    return text[:limit] + f"... [{len(text) - limit} more characters]"


def decode_body(content: Optional[bytes]) -> Optional[str]:
    """Decode a body for display, replacing undecodable bytes."""
    if not content:
        return None
    return content.decode("utf-8", errors="replace")
