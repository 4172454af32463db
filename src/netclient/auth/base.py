"""Core types of the auth subsystem.

- :class:`AuthResult` -- the *effective auth* for one request: the leaf
  strategy that was chosen and the headers it produces, split into the
  static part (fixed per strategy) and the dynamic part (computed for this
  request).
- :class:`AuthHandler` -- the abstract base class for the object that
  turns one kind of leaf strategy into an :class:`AuthResult`.

See Also:
    :mod:`netclient.auth.handlers` for the built-in handlers.
    :mod:`netclient.auth.resolver` for dispatch and Dynamic/RuleBased resolution.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class AuthResult:
    """Headers to apply to one outgoing request.

    The request executor layers ``static_headers`` below
    ``dynamic_headers``, so a per-request value (``Authorization``,
    a signature) wins over a fixed custom header of the same name.

    Args:
        strategy: The resolved leaf strategy, or ``None`` when no
            authentication applies.
        static_headers: Headers fixed by the strategy's configuration.
        dynamic_headers: Headers computed for this request.

    Example::

        result = AuthResult(dynamic_headers={"Authorization": "Bearer tok123"})
        assert result.headers["Authorization"] == "Bearer tok123"
    """

    def __init__(
        self,
        strategy: Optional[Any] = None,
        static_headers: dict[str, str] | None = None,
        dynamic_headers: dict[str, str] | None = None,
    ):
        self.strategy = strategy
        self.static_headers = static_headers or {}
        self.dynamic_headers = dynamic_headers or {}

    @property
    def headers(self) -> dict[str, str]:
        """Static headers overlaid with dynamic headers."""
        return {**self.static_headers, **self.dynamic_headers}

    @property
    def is_noop(self) -> bool:
        """``True`` when applying this result changes nothing."""
        return not self.static_headers and not self.dynamic_headers

    def __repr__(self) -> str:
        kind = getattr(self.strategy, "kind", None)
        names = sorted(self.headers)
        return f"AuthResult(kind={kind!r}, headers={names!r})"


class AuthHandler(ABC):
    """Turns one kind of leaf strategy into an :class:`AuthResult`.

    Every concrete handler sets :attr:`kind` to the discriminator value of
    the strategy model it handles and implements :meth:`apply`. Handlers
    are registered with :class:`~netclient.auth.resolver.AuthResolver`.
    """

    @property
    @abstractmethod
    def kind(self) -> str:
        """Return the strategy discriminator this handler serves (e.g. ``"basic"``)."""
        ...

    @abstractmethod
    def apply(self, strategy: Any) -> AuthResult:
        """Produce the headers for one request.

        Called once per request. Any callable carried by the strategy
        (token provider, dynamic header function) is invoked here and may
        be invoked concurrently from several in-flight requests.

        Args:
            strategy: A leaf strategy whose ``kind`` equals :attr:`kind`.

        Returns:
            The :class:`AuthResult` for this request.
        """
        ...
