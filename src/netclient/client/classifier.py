"""Maps raw transport outcomes onto the :class:`~netclient.exceptions.NetworkError` taxonomy."""

from __future__ import annotations

import asyncio
from typing import Union

import httpx

from netclient.client.transport import TransportResponse
from netclient.exceptions import (
    ClientError,
    NetworkError,
    ServerError,
    TimeoutError_,
    UnknownError,
)

Outcome = Union[BaseException, TransportResponse, httpx.Response]


def _body_text(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def classify_status(status_code: int, body: str = "") -> NetworkError:
    """Classify an HTTP status that was not accepted as success."""
    if 400 <= status_code < 500:
        return ClientError(f"HTTP {status_code}", status_code=status_code, body=body)
    if 500 <= status_code < 600:
        return ServerError(f"HTTP {status_code}", status_code=status_code, body=body)
    return UnknownError(
        f"Unexpected HTTP status {status_code}", status_code=status_code, body=body
    )


def classify(outcome: Outcome) -> Union[NetworkError, asyncio.CancelledError]:
    """Classify a transport outcome.

    Pure and total: the same outcome always yields an equal result and no
    input raises.

    Args:
        outcome: An exception raised while sending, or a response whose
            status was not accepted.

    Returns:
        A :class:`~netclient.exceptions.NetworkError` subclass instance.
        :class:`asyncio.CancelledError` is returned untouched so the caller
        can re-raise it.
    """
    if isinstance(outcome, asyncio.CancelledError):
        return outcome
    if isinstance(outcome, NetworkError):
        return outcome
    if isinstance(outcome, (TransportResponse, httpx.Response)):
        return classify_status(outcome.status_code, _body_text(outcome.content))
    if isinstance(outcome, httpx.HTTPStatusError):
        response = outcome.response
        return classify_status(response.status_code, _body_text(response.content))
    if isinstance(outcome, (httpx.TimeoutException, TimeoutError, asyncio.TimeoutError)):
        return TimeoutError_(f"Request timed out: {outcome}", cause=outcome)
    return UnknownError(f"{type(outcome).__name__}: {outcome}", cause=outcome)
