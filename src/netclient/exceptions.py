"""Exception hierarchy for netclient.

All exceptions inherit from :class:`NetclientError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`netclient.exit_codes`.

The request pipeline reports failures through the closed
:class:`NetworkError` taxonomy. Those errors are only ever produced by
:func:`netclient.client.classifier.classify`; callers should match on the
class rather than parse messages.

Subclass hierarchy::

    NetclientError (exit 1)
    +-- ConfigError          (exit 1)
    +-- SerializationError   (exit 1)
    +-- NetworkError         (exit 1)
        +-- ClientError      (exit 4)
        +-- ServerError      (exit 5)
        +-- TimeoutError_    (exit 6)
        +-- UnknownError     (exit 1)

Cancellation is not part of the hierarchy: :class:`asyncio.CancelledError`
is re-exported here as :data:`CancelledError` and is always propagated
untouched.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from netclient.exit_codes import (
    EXIT_CLIENT_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_SERVER_ERROR,
    EXIT_TIMEOUT,
)

CancelledError = asyncio.CancelledError
"""Cooperative cancellation signal. Never wrapped, never retried."""


class NetclientError(Exception):
    """Base exception for all netclient errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(NetclientError):
    """Raised for configuration problems (invalid settings file, unresolvable
    credential source, or a dynamic selector returning a nested strategy)."""

    exit_code = EXIT_GENERIC_FAILURE


class SerializationError(NetclientError):
    """Raised when a body cannot be encoded or a response cannot be decoded."""

    exit_code = EXIT_GENERIC_FAILURE


class NetworkError(NetclientError):
    """Base class of the request failure taxonomy.

    Instances compare structurally, so classifying the same transport
    outcome twice yields equal values.

    Args:
        message: Human-readable description.
        status_code: HTTP status code, when the failure carries one.
        body: Response body text, when the failure carries one.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.cause = cause

    def _identity(self) -> tuple:
        return (type(self), self.message, self.status_code, self.body, self.cause)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetworkError):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        parts = [repr(self.message)]
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code}")
        if self.cause is not None:
            parts.append(f"cause={self.cause!r}")
        return f"{type(self).__name__}({', '.join(parts)})"


class ClientError(NetworkError):
    """The server answered with an HTTP 4xx status. Never retried."""

    exit_code = EXIT_CLIENT_ERROR

    def __init__(self, message: str, status_code: int, body: Optional[str] = None):
        super().__init__(message, status_code=status_code, body=body)


class ServerError(NetworkError):
    """The server answered with an HTTP 5xx status."""

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, message: str, status_code: int, body: Optional[str] = None):
        super().__init__(message, status_code=status_code, body=body)


class TimeoutError_(NetworkError):
    """The transport reported a connect, socket or whole-request timeout.

    Named with a trailing underscore to avoid shadowing the built-in
    ``TimeoutError``.
    """

    exit_code = EXIT_TIMEOUT

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)


class UnknownError(NetworkError):
    """Any other failure: connection reset, decode failure, unexpected status."""

    exit_code = EXIT_GENERIC_FAILURE
