"""Asyncio network client -- mirrors :class:`~netclient.client.sync_client.NetworkClient`.

:class:`AsyncNetworkClient` offers the same request pipeline as the
blocking client (prepare once, send with retry, decode) on top of an
:class:`~netclient.client.transport.AsyncTransport`. Backoff uses
:func:`asyncio.sleep`.

Each request runs in the caller's task and shares nothing mutable with
other requests, so any number may be in flight at once. Cancelling the
task aborts the request at its next suspension point (transport call or
backoff sleep); :class:`asyncio.CancelledError` then propagates unchanged
and is neither retried nor logged as a failure.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Union

from netclient.auth.resolver import AuthResolver
from netclient.client.classifier import classify
from netclient.client.request import PreparedRequest, prepare_request
from netclient.client.retry import RetryController, describe_failure
from netclient.client.serialization import JsonSerializer, Serializer
from netclient.client.sync_client import decode_response, raise_failure
from netclient.client.transport import AsyncHttpxTransport, AsyncTransport, TransportResponse
from netclient.exceptions import SerializationError, UnknownError
from netclient.inspection.hooks import Inspector
from netclient.models import ClientConfig, HTTPMethod

logger = logging.getLogger(__name__)


class AsyncNetworkClient:
    """Asyncio client for one API.

    Args:
        config: Client configuration. Defaults to ``ClientConfig()``.
        transport: Transport to send through. Defaults to an
            :class:`~netclient.client.transport.AsyncHttpxTransport` built
            from *config*. The client takes ownership and closes it.
        serializer: Body serializer.
        inspector: Optional inspector for the default transport.
        resolver: Auth resolver.

    Example::

        async with AsyncNetworkClient(config) as client:
            users, orders = await asyncio.gather(
                client.get("/users"), client.get("/orders")
            )
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[AsyncTransport] = None,
        serializer: Optional[Serializer] = None,
        inspector: Optional[Inspector] = None,
        resolver: Optional[AuthResolver] = None,
    ) -> None:
        self.config = config or ClientConfig()
        if transport is not None and inspector is not None:
            raise ValueError("Pass the inspector to the transport when supplying a transport")
        self._transport = transport or AsyncHttpxTransport.from_config(
            self.config, inspectors=[inspector] if inspector is not None else ()
        )
        self._serializer = serializer or JsonSerializer(self.config.serialization)
        self._resolver = resolver or AuthResolver(self.config.auth_strategy)
        self._retry = RetryController(self.config.retry_policy)
        self._closed = False

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncNetworkClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the transport. Safe to call more than once."""
        if not self._closed:
            self._closed = True
            await self._transport.aclose()

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def execute(
        self,
        method: Union[HTTPMethod, str],
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> TransportResponse:
        """Send a request and return the raw response.

        See :meth:`NetworkClient.execute <netclient.client.sync_client.NetworkClient.execute>`.
        """
        if self._closed:
            raise RuntimeError("AsyncNetworkClient is closed")
        try:
            prepared = prepare_request(
                self.config, self._resolver, self._serializer, method, path, body, headers
            )
        except SerializationError as exc:
            raise UnknownError(f"Failed to encode request body: {exc.message}", cause=exc) from exc
        return await self._send_with_retry(prepared)

    async def request(
        self,
        method: Union[HTTPMethod, str],
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        """Send a request and decode the response body."""
        response = await self.execute(method, path, body=body, headers=headers)
        return decode_response(self._serializer, response, response_type)

    async def get(
        self,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        return await self.request(HTTPMethod.GET, path, headers=headers, response_type=response_type)

    async def post(
        self,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        return await self.request(
            HTTPMethod.POST, path, body=body, headers=headers, response_type=response_type
        )

    async def put(
        self,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        return await self.request(
            HTTPMethod.PUT, path, body=body, headers=headers, response_type=response_type
        )

    async def patch(
        self,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        return await self.request(
            HTTPMethod.PATCH, path, body=body, headers=headers, response_type=response_type
        )

    async def delete(
        self,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        response_type: Any = None,
    ) -> Any:
        return await self.request(
            HTTPMethod.DELETE, path, headers=headers, response_type=response_type
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _send_with_retry(self, prepared: PreparedRequest) -> TransportResponse:
        max_retries = self.config.retry_policy.max_retries
        attempt = 0

        while True:
            cause: Optional[BaseException] = None
            try:
                response = await self._transport.send(
                    prepared.method.value, prepared.url, prepared.headers, prepared.body
                )
            except asyncio.CancelledError:
                raise
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
            await asyncio.sleep(decision.delay)
            attempt += 1
