"""Blocking network client with auth resolution, retry, and typed failures.

This module provides :class:`NetworkClient`, the synchronous request
executor. For every call it:

- **Prepares once** -- builds the URL from ``base_url``, resolves the auth
  strategy for the method and path, merges headers and encodes the body.
- **Sends with retry** -- hands the prepared request to the transport and,
  on failure, classifies the outcome and asks the
  :class:`~netclient.client.retry.RetryController` whether to wait and try
  again (1 s, 2 s, 4 s, ... capped by ``max_delay``).
- **Decodes** -- turns the body into the requested type through the
  client's serializer.

See Also:
    :class:`~netclient.client.async_client.AsyncNetworkClient` for the
    asyncio equivalent.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional, Union

from netclient.auth.resolver import AuthResolver
from netclient.client.classifier import classify
from netclient.client.request import PreparedRequest, prepare_request
from netclient.client.retry import RetryController, describe_failure
from netclient.client.serialization import JsonSerializer, Serializer
from netclient.client.transport import HttpxTransport, Transport, TransportResponse
from netclient.exceptions import NetworkError, SerializationError, UnknownError
from netclient.inspection.hooks import Inspector
from netclient.models import ClientConfig, HTTPMethod

logger = logging.getLogger(__name__)


def raise_failure(error: NetworkError, cause: Optional[BaseException]) -> None:
    """Raise *error* chained to *cause* (unless *cause* is the error itself)."""
    if cause is None or cause is error:
        raise error
    raise error from cause


def decode_response(
    serializer: Serializer,
    response: TransportResponse,
    response_type: Any,
) -> Any:
    """Decode *response* into *response_type*; failures become :class:`UnknownError`."""
    try:
        return serializer.decode(response.content, response_type)
    except SerializationError as exc:
        raise UnknownError(f"Failed to decode response: {exc.message}", cause=exc) from exc


class NetworkClient:
    """Synchronous client for one API.

    Args:
        config: Client configuration. Defaults to ``ClientConfig()``.
        transport: Transport to send through. Defaults to an
            :class:`~netclient.client.transport.HttpxTransport` built from
            *config*. The client takes ownership and closes it.
        serializer: Body serializer. Defaults to a
            :class:`~netclient.client.serialization.JsonSerializer` built
            from ``config.serialization``.
        inspector: Optional inspector for the default transport.
        resolver: Auth resolver. Defaults to one built from
            ``config.auth_strategy`` with the built-in handlers.

    Example::

        with NetworkClient(ClientConfig(base_url="https://api.example.com")) as client:
            user = client.get("/users/1", response_type=User)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
        serializer: Optional[Serializer] = None,
        inspector: Optional[Inspector] = None,
        resolver: Optional[AuthResolver] = None,
    ) -> None:
        self.config = config or ClientConfig()
        if transport is not None and inspector is not None:
            raise ValueError("Pass the inspector to the transport when supplying a transport")
        self._transport = transport or HttpxTransport.from_config(
            self.config, inspectors=[inspector] if inspector is not None else ()
        )
        self._serializer = serializer or JsonSerializer(self.config.serialization)
        self._resolver = resolver or AuthResolver(self.config.auth_strategy)
        self._retry = RetryController(self.config.retry_policy)
        self._closed = False

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> NetworkClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the transport. Safe to call more than once."""
        if not self._closed:
            self._closed = True
            self._transport.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def execute(
        self,
        method: Union[HTTPMethod, str],
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> TransportResponse:
        """Send a request and return the raw response.

        Args:
            method: HTTP method.
            path: Path relative to ``base_url``, or an absolute URL.
            body: Request body, encoded by the serializer.
            headers: Per-call headers; they override every other layer.

        Returns:
            The accepted :class:`~netclient.client.transport.TransportResponse`.

        Raises:
            ClientError: On 4xx (when ``expect_success`` is on).
            ServerError: On 5xx once retries are exhausted.
            TimeoutError_: On timeout once retries are exhausted.
            UnknownError: On any other failure.
            ConfigError: If auth resolution fails.
            RuntimeError: If the client is closed.
        """
        self._check_open()
        try:
            prepared = prepare_request(
                self.config, self._resolver, self._serializer, method, path, body, headers
            )
        except SerializationError as exc:
            raise UnknownError(f"Failed to encode request body: {exc.message}", cause=exc) from exc
        return self._send_with_retry(prepared)

    def request(
        self,
        method: Union[HTTPMethod, str],
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        """Send a request and decode the response body.

        Args:
            method: HTTP method.
            path: Path relative to ``base_url``, or an absolute URL.
            body: Request body.
            headers: Per-call headers.
            response_type: Type to decode into; ``None`` returns parsed JSON.

        Returns:
            The decoded body, or ``None`` when the body is empty.

        Raises:
            UnknownError: If the body cannot be decoded (not retried).
        """
        response = self.execute(method, path, body=body, headers=headers)
        return decode_response(self._serializer, response, response_type)

    def get(
        self,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        """Send a GET request."""
        return self.request(HTTPMethod.GET, path, headers=headers, response_type=response_type)

    def post(
        self,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        """Send a POST request."""
        return self.request(
            HTTPMethod.POST, path, body=body, headers=headers, response_type=response_type
        )

    def put(
        self,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        """Send a PUT request."""
        return self.request(
            HTTPMethod.PUT, path, body=body, headers=headers, response_type=response_type
        )

    def patch(
        self,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        """Send a PATCH request."""
        return self.request(
            HTTPMethod.PATCH, path, body=body, headers=headers, response_type=response_type
        )

    def delete(
        self,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        """Send a DELETE request."""
        return self.request(HTTPMethod.DELETE, path, headers=headers, response_type=response_type)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("NetworkClient is closed")

    def _send_with_retry(self, prepared: PreparedRequest) -> TransportResponse:
        """Send *prepared* until it succeeds or the retry controller gives up."""
        max_retries = self.config.retry_policy.max_retries
        attempt = 0

        while True:
            cause: Optional[BaseException] = None
            try:
                response = self._transport.send(
                    prepared.method.value, prepared.url, prepared.headers, prepared.body
                )
            except Exception as exc:
                cause = exc
                error = classify(exc)
            else:
                if response.is_success or not self.config.expect_success:
                    return response
                error = classify(response)

            decision = self._retry.should_retry(attempt, error)
            if not decision.retry:
                if attempt > 0:
                    logger.warning(
                        "%s %s failed after %d attempts: %s",
                        prepared.method.value,
                        prepared.url,
                        attempt + 1,
                        describe_failure(error),
                    )
                raise_failure(error, cause)

            logger.debug(
                "%s, retrying in %ss (attempt %d/%d)",
                describe_failure(error),
                decision.delay,
                attempt + 1,
                max_retries,
            )
            time.sleep(decision.delay)
            attempt += 1
