"""Tests for the error classifier."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from netclient.client.classifier import classify
from netclient.client.transport import TransportResponse
from netclient.exceptions import (
    ClientError,
    NetworkError,
    ServerError,
    TimeoutError_,
    UnknownError,
)


def _response(status: int, body: bytes = b"") -> TransportResponse:
    return TransportResponse(status_code=status, content=body)


class TestStatusClassification:
    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422, 499])
    def test_4xx(self, status: int) -> None:
        error = classify(_response(status, b"nope"))
        assert isinstance(error, ClientError)
        assert error.status_code == status
        assert error.body == "nope"

    @pytest.mark.parametrize("status", [500, 502, 503, 599])
    def test_5xx(self, status: int) -> None:
        error = classify(_response(status))
        assert isinstance(error, ServerError)
        assert error.status_code == status

    @pytest.mark.parametrize("status", [101, 304, 600])
    def test_other_status_is_unknown(self, status: int) -> None:
        error = classify(_response(status))
        assert type(error) is UnknownError
        assert error.status_code == status

    def test_httpx_status_error(self) -> None:
        request = httpx.Request("GET", "https://x")
        response = httpx.Response(418, request=request, text="teapot")
        exc = httpx.HTTPStatusError("teapot", request=request, response=response)
        error = classify(exc)
        assert isinstance(error, ClientError)
        assert error.status_code == 418


class TestExceptionClassification:
    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectTimeout("connect"),
            httpx.ReadTimeout("read"),
            httpx.PoolTimeout("pool"),
            TimeoutError("builtin"),
            asyncio.TimeoutError(),
        ],
    )
    def test_timeouts(self, exc: Exception) -> None:
        error = classify(exc)
        assert isinstance(error, TimeoutError_)
        assert error.cause is exc

    def test_cancellation_returned_untouched(self) -> None:
        cancelled = asyncio.CancelledError()
        assert classify(cancelled) is cancelled

    def test_network_error_returned_as_is(self) -> None:
        error = ServerError("HTTP 503", status_code=503)
        assert classify(error) is error

    def test_everything_else_is_unknown(self) -> None:
        exc = httpx.ConnectError("refused")
        error = classify(exc)
        assert type(error) is UnknownError
        assert error.cause is exc
        assert error.status_code is None

    def test_arbitrary_exception(self) -> None:
        error = classify(ValueError("boom"))
        assert isinstance(error, UnknownError)
        assert "boom" in error.message


class TestDeterminism:
    def test_same_response_yields_equal_errors(self) -> None:
        response = _response(503, b"busy")
        assert classify(response) == classify(response)

    def test_same_exception_yields_equal_errors(self) -> None:
        exc = httpx.ReadTimeout("slow")
        first, second = classify(exc), classify(exc)
        assert first == second
        assert hash(first) == hash(second)

    def test_different_types_not_equal(self) -> None:
        assert ClientError("HTTP 500", 500) != ServerError("HTTP 500", 500)

    def test_all_results_are_network_errors(self) -> None:
        for outcome in (_response(404), _response(500), ValueError(), httpx.ReadTimeout("")):
            assert isinstance(classify(outcome), NetworkError)
