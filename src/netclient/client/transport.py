"""Transport layer -- the narrow boundary between the request pipeline and httpx.

The request executors only ever call ``send(method, url, headers, body)``
and ``close()``. Everything below that line (connection pooling, TLS,
redirects, timeouts) belongs to the transport.

Classes:
    :class:`TransportResponse` -- status, headers and body of one response.
    :class:`Transport` / :class:`AsyncTransport` -- the interfaces.
    :class:`HttpxTransport` -- blocking implementation on :class:`httpx.Client`.
    :class:`AsyncHttpxTransport` -- asyncio implementation on :class:`httpx.AsyncClient`.

Both httpx transports accept an inner ``httpx`` transport, which is how
tests plug in :class:`httpx.MockTransport`, and optional inspectors (see
:mod:`netclient.inspection`). When logging is enabled they install httpx
event hooks that write to the ``netclient.transport`` logger.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Protocol

import httpx

from netclient.inspection.hooks import (
    ExchangeRecord,
    Inspector,
    InspectorRunner,
    decode_body,
    redact_headers,
)
from netclient.models import ClientConfig, LoggingConfig, LogLevel, Timeouts

logger = logging.getLogger("netclient.transport")

_LOG_BODY_LIMIT = 4096


@dataclass(frozen=True)
class TransportResponse:
    """A response as returned by a transport.

    ``headers`` is an :class:`httpx.Headers`, so lookups are
    case-insensitive.
    """

    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes = b""
    url: str = ""

    @property
    def text(self) -> str:
        """The body decoded as UTF-8, with undecodable bytes replaced."""
        return self.content.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        """``True`` for 2xx statuses."""
        return 200 <= self.status_code < 300

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> TransportResponse:
        return cls(
            status_code=response.status_code,
            headers=httpx.Headers(response.headers),
            content=response.content,
            url=str(response.url),
        )


class Transport(Protocol):
    """Blocking transport interface."""

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> TransportResponse: ...

    def close(self) -> None: ...


class AsyncTransport(Protocol):
    """Asyncio transport interface."""

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> TransportResponse: ...

    async def aclose(self) -> None: ...


def httpx_timeout(timeouts: Timeouts) -> httpx.Timeout:
    """Map :class:`~netclient.models.Timeouts` onto an :class:`httpx.Timeout`.

    ``socket`` bounds each read and write, ``connect`` bounds connection
    setup, and ``request`` bounds waiting for a pooled connection. The
    async transport additionally enforces ``request`` as a deadline for
    the whole exchange.
    """
    return httpx.Timeout(
        connect=timeouts.connect,
        read=timeouts.socket,
        write=timeouts.socket,
        pool=timeouts.request,
    )


# ------------------------------------------------------------------ #
# Logging event hooks
# ------------------------------------------------------------------ #


def _shows_headers(level: LogLevel) -> bool:
    return level in (LogLevel.HEADERS, LogLevel.ALL)


def _shows_body(level: LogLevel) -> bool:
    return level in (LogLevel.BODY, LogLevel.ALL)


def _preview(content: bytes) -> str:
    text = decode_body(content) or ""
    if len(text) > _LOG_BODY_LIMIT:
        return text[:_LOG_BODY_LIMIT] + "..."
    return text


def _log_request(request: httpx.Request, level: LogLevel) -> None:
    logger.info("--> %s %s", request.method, request.url)
    if _shows_headers(level):
        for name, value in redact_headers(request.headers).items():
            logger.info("%s: %s", name, value)
    if _shows_body(level) and request.content:
        logger.info("%s", _preview(request.content))


def _log_response(response: httpx.Response, level: LogLevel) -> None:
    logger.info(
        "<-- %s %s %s",
        response.status_code,
        response.request.method,
        response.request.url,
    )
    if _shows_headers(level):
        for name, value in redact_headers(response.headers).items():
            logger.info("%s: %s", name, value)
    if _shows_body(level) and response.content:
        logger.info("%s", _preview(response.content))


def log_event_hooks(config: LoggingConfig) -> dict[str, list]:
    """Return httpx ``event_hooks`` for a blocking client."""
    if not config.enabled or config.level == LogLevel.NONE:
        return {}

    def on_request(request: httpx.Request) -> None:
        _log_request(request, config.level)

    def on_response(response: httpx.Response) -> None:
        if _shows_body(config.level):
            response.read()
        _log_response(response, config.level)

    return {"request": [on_request], "response": [on_response]}


def async_log_event_hooks(config: LoggingConfig) -> dict[str, list]:
    """Return httpx ``event_hooks`` for an async client."""
    if not config.enabled or config.level == LogLevel.NONE:
        return {}

    async def on_request(request: httpx.Request) -> None:
        _log_request(request, config.level)

    async def on_response(response: httpx.Response) -> None:
        if _shows_body(config.level):
            await response.aread()
        _log_response(response, config.level)

    return {"request": [on_request], "response": [on_response]}


def _new_record(
    method: str,
    url: str,
    headers: Mapping[str, str],
    body: Optional[bytes],
) -> ExchangeRecord:
    return ExchangeRecord(
        method=method,
        url=url,
        request_headers=dict(headers),
        request_body=decode_body(body),
        started_at=time.time(),
    )


def _finish_record(
    record: ExchangeRecord,
    started: float,
    response: Optional[TransportResponse] = None,
    error: Optional[BaseException] = None,
) -> ExchangeRecord:
    record.duration = time.monotonic() - started
    if response is not None:
        record.status_code = response.status_code
        record.response_headers = dict(response.headers)
        record.response_body = decode_body(response.content)
    if error is not None:
        record.error = f"{type(error).__name__}: {error}"
    return record


# ------------------------------------------------------------------ #
# httpx transports
# ------------------------------------------------------------------ #


class HttpxTransport:
    """Blocking transport backed by :class:`httpx.Client`.

    Args:
        timeouts: Transport timeouts.
        logging: Logging switch and level.
        inspectors: Optional inspectors that receive every exchange.
        transport: Inner httpx transport (e.g. :class:`httpx.MockTransport`).
        follow_redirects: Whether 3xx responses are followed.
    """

    def __init__(
        self,
        timeouts: Optional[Timeouts] = None,
        logging: Optional[LoggingConfig] = None,
        inspectors: Iterable[Inspector] = (),
        transport: Optional[httpx.BaseTransport] = None,
        follow_redirects: bool = True,
    ) -> None:
        self._timeouts = timeouts or Timeouts()
        self._runner = InspectorRunner(inspectors)
        self._client = httpx.Client(
            timeout=httpx_timeout(self._timeouts),
            follow_redirects=follow_redirects,
            transport=transport,
            event_hooks=log_event_hooks(logging or LoggingConfig()),
        )
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        inspectors: Iterable[Inspector] = (),
        transport: Optional[httpx.BaseTransport] = None,
    ) -> HttpxTransport:
        return cls(
            timeouts=config.timeouts,
            logging=config.logging,
            inspectors=inspectors,
            transport=transport,
        )

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> TransportResponse:
        if not self._runner:
            return TransportResponse.from_httpx(
                self._client.request(method, url, headers=headers, content=body)
            )

        record = _new_record(method, url, headers, body)
        started = time.monotonic()
        try:
            response = TransportResponse.from_httpx(
                self._client.request(method, url, headers=headers, content=body)
            )
        except Exception as exc:
            self._runner.run(_finish_record(record, started, error=exc))
            raise
        self._runner.run(_finish_record(record, started, response=response))
        return response

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._client.close()


class AsyncHttpxTransport:
    """Asyncio transport backed by :class:`httpx.AsyncClient`.

    Concurrent :meth:`send` calls share one connection pool. The
    ``request`` timeout is enforced as a deadline for the whole exchange.
    Cancelling the calling task interrupts the wait on httpx.

    Args:
        timeouts: Transport timeouts.
        logging: Logging switch and level.
        inspectors: Optional inspectors that receive every exchange.
        transport: Inner httpx transport (e.g. :class:`httpx.MockTransport`).
        follow_redirects: Whether 3xx responses are followed.
    """

    def __init__(
        self,
        timeouts: Optional[Timeouts] = None,
        logging: Optional[LoggingConfig] = None,
        inspectors: Iterable[Inspector] = (),
        transport: Optional[httpx.AsyncBaseTransport] = None,
        follow_redirects: bool = True,
    ) -> None:
        self._timeouts = timeouts or Timeouts()
        self._runner = InspectorRunner(inspectors)
        self._client = httpx.AsyncClient(
            timeout=httpx_timeout(self._timeouts),
            follow_redirects=follow_redirects,
            transport=transport,
            event_hooks=async_log_event_hooks(logging or LoggingConfig()),
        )
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        inspectors: Iterable[Inspector] = (),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> AsyncHttpxTransport:
        return cls(
            timeouts=config.timeouts,
            logging=config.logging,
            inspectors=inspectors,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes],
    ) -> TransportResponse:
        response = await asyncio.wait_for(
            self._client.request(method, url, headers=headers, content=body),
            timeout=self._timeouts.request,
        )
        return TransportResponse.from_httpx(response)

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> TransportResponse:
        if not self._runner:
            return await self._request(method, url, headers, body)

        record = _new_record(method, url, headers, body)
        started = time.monotonic()
        try:
            response = await self._request(method, url, headers, body)
        except Exception as exc:
            self._runner.run(_finish_record(record, started, error=exc))
            raise
        self._runner.run(_finish_record(record, started, response=response))
        return response

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await self._client.aclose()
