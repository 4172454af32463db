"""Tests for RetryController and the retryable-error predicate."""

from __future__ import annotations

import asyncio

import pytest

from netclient.client.retry import BACKOFF_UNIT, RetryController, RetryDecision, is_retryable
from netclient.exceptions import ClientError, ServerError, TimeoutError_, UnknownError
from netclient.models import RetryPolicy


SERVER_503 = ServerError("HTTP 503", status_code=503)


class TestRetryable:
    @pytest.mark.parametrize(
        "error",
        [
            ServerError("HTTP 500", status_code=500),
            TimeoutError_("timed out"),
            UnknownError("connection reset"),
        ],
    )
    def test_transient_failures(self, error: Exception) -> None:
        assert is_retryable(error)

    @pytest.mark.parametrize(
        "error",
        [
            ClientError("HTTP 404", status_code=404),
            UnknownError("Unexpected HTTP status 304", status_code=304),
            asyncio.CancelledError(),
        ],
    )
    def test_permanent_failures(self, error: BaseException) -> None:
        assert not is_retryable(error)


class TestRetryController:
    def test_default_policy_never_retries(self) -> None:
        assert RetryController().should_retry(0, SERVER_503) == RetryDecision(retry=False)

    def test_delays_grow_exponentially(self) -> None:
        controller = RetryController(RetryPolicy(max_retries=5, max_delay=100))
        delays = [controller.should_retry(n, SERVER_503).delay for n in range(4)]
        assert delays == [1.0, 2.0, 4.0, 8.0]

    def test_delay_capped_by_max_delay(self) -> None:
        controller = RetryController(RetryPolicy(max_retries=5, max_delay=3.0))
        assert controller.should_retry(3, SERVER_503).delay == 3.0

    def test_custom_base(self) -> None:
        controller = RetryController(RetryPolicy(max_retries=3, exponential_base=3, max_delay=60))
        assert controller.should_retry(2, SERVER_503).delay == 9.0 * BACKOFF_UNIT

    def test_stops_at_max_retries(self) -> None:
        controller = RetryController(RetryPolicy(max_retries=3))
        assert controller.should_retry(2, SERVER_503).retry
        assert not controller.should_retry(3, SERVER_503).retry

    def test_never_retries_client_error(self) -> None:
        controller = RetryController(RetryPolicy(max_retries=3))
        assert not controller.should_retry(0, ClientError("HTTP 400", status_code=400)).retry

    def test_huge_attempt_does_not_raise(self) -> None:
        controller = RetryController(RetryPolicy(max_retries=10_000, max_delay=5))
        assert controller.should_retry(5000, SERVER_503) == RetryDecision(retry=True, delay=5)


class TestRetryPolicyValidation:
    def test_negative_retries_rejected(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)

    def test_base_must_exceed_one(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(exponential_base=1.0)
