"""Auth resolver -- decides which leaf strategy applies to a request.

:class:`AuthResolver` holds a registry of :class:`~netclient.auth.base.AuthHandler`
instances keyed by strategy ``kind`` and exposes :meth:`AuthResolver.resolve`,
which the request executor calls once per request.

Resolution is single-level. A :class:`~netclient.models.DynamicAuth`
selector or a :class:`~netclient.models.RuleBasedAuth` table yields a leaf
strategy (or nothing), and that leaf is applied directly. Rule tables
cannot hold nested indirect strategies (pydantic rejects them when the
table is built); a selector that returns one raises
:class:`~netclient.exceptions.ConfigError`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional, Union

import httpx

from netclient.auth.base import AuthHandler, AuthResult
from netclient.auth.handlers import default_handlers
from netclient.exceptions import ConfigError
from netclient.models import (
    LEAF_STRATEGY_TYPES,
    DynamicAuth,
    HTTPMethod,
    NoAuth,
    RuleBasedAuth,
)

logger = logging.getLogger(__name__)

_ABSOLUTE_URL = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def extract_path(path_or_url: str) -> str:
    """Return the path component used for rule matching.

    Absolute URLs are parsed and their encoded path is returned; if parsing
    fails, everything before the first ``?`` is used. Anything else is
    taken as a path already, minus its query string.

    Example::

        >>> extract_path("https://api.x.com/users/5?x=1")
        '/users/5'
        >>> extract_path("/users/5")
        '/users/5'
    """
    if _ABSOLUTE_URL.match(path_or_url):
        try:
            raw_path = httpx.URL(path_or_url).raw_path
        except httpx.InvalidURL:
            return path_or_url.split("?", 1)[0]
        return raw_path.split(b"?", 1)[0].decode("ascii")
    return path_or_url.split("?", 1)[0]


class AuthResolver:
    """Registry of auth handlers plus Dynamic/RuleBased resolution.

    Args:
        strategy: The client's configured strategy. Defaults to
            :class:`~netclient.models.NoAuth`.
        handlers: Handlers to register. Defaults to the built-in four.

    Example::

        resolver = AuthResolver(config.auth_strategy)
        result = resolver.resolve("GET", "/admin/users")
        headers.update(result.headers)
    """

    def __init__(
        self,
        strategy: Optional[Any] = None,
        handlers: Optional[Iterable[AuthHandler]] = None,
    ) -> None:
        self.strategy = strategy if strategy is not None else NoAuth()
        self._handlers: dict[str, AuthHandler] = {}
        for handler in handlers if handlers is not None else default_handlers():
            self.register(handler)

    def register(self, handler: AuthHandler) -> None:
        """Register *handler* under its ``kind``, replacing any previous one."""
        self._handlers[handler.kind] = handler

    def get_handler(self, kind: str) -> AuthHandler:
        """Return the handler registered for *kind*.

        Raises:
            ConfigError: If no handler is registered for *kind*.
        """
        handler = self._handlers.get(kind)
        if handler is None:
            available = ", ".join(sorted(self._handlers)) or "(none)"
            raise ConfigError(
                f"No auth handler registered for kind '{kind}'. Available kinds: {available}"
            )
        return handler

    def resolve(
        self,
        method: Union[HTTPMethod, str],
        path: str,
        strategy: Optional[Any] = None,
    ) -> AuthResult:
        """Resolve the effective auth for one request.

        Args:
            method: The request method.
            path: The request path (or a full URL; see :func:`extract_path`).
            strategy: Strategy to resolve instead of the configured one.

        Returns:
            The :class:`~netclient.auth.base.AuthResult` to apply. A no-op
            result when nothing applies.

        Raises:
            ConfigError: If a dynamic selector returns something other than
                a leaf strategy or ``None``.
        """
        method = HTTPMethod(method)
        path = extract_path(path)
        leaf = self.select_leaf(strategy if strategy is not None else self.strategy, method, path)
        return self.get_handler(leaf.kind).apply(leaf)

    def select_leaf(self, strategy: Any, method: HTTPMethod, path: str) -> Any:
        """Return the leaf strategy that applies, without applying it."""
        if isinstance(strategy, LEAF_STRATEGY_TYPES):
            return strategy

        if isinstance(strategy, DynamicAuth):
            selected = strategy.selector(method, path)
            if selected is None:
                return NoAuth()
            if not isinstance(selected, LEAF_STRATEGY_TYPES):
                kind = getattr(selected, "kind", type(selected).__name__)
                raise ConfigError(
                    f"Dynamic auth selector returned '{kind}' for {method.value} {path}; "
                    "selectors must return a leaf strategy (none, basic, bearer, custom) or None"
                )
            return selected

        if isinstance(strategy, RuleBasedAuth):
            for auth_rule in strategy.rules:
                if auth_rule.matches(method, path):
                    logger.debug(
                        "Auth rule %s matched %s %s",
                        auth_rule.path_pattern.pattern,
                        method.value,
                        path,
                    )
                    return auth_rule.strategy
            return strategy.default if strategy.default is not None else NoAuth()

        raise ConfigError(f"Unsupported auth strategy: {strategy!r}")


_default_resolver: Optional[AuthResolver] = None


def resolve_auth(strategy: Any, method: Union[HTTPMethod, str], path: str) -> AuthResult:
    """Resolve *strategy* for one request using the built-in handlers.

    Convenience wrapper around :meth:`AuthResolver.resolve` for callers that
    do not hold a resolver.
    """
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = AuthResolver()
    return _default_resolver.resolve(method, path, strategy=strategy)
