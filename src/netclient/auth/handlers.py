"""Built-in handlers for the four leaf strategies.

Each handler maps one strategy model from :mod:`netclient.models` to the
headers it contributes to a request:

============  ==========================  ======================================
Strategy      Static headers              Dynamic headers
============  ==========================  ======================================
``none``      --                          --
``basic``     ``custom_headers``          ``Authorization: Basic <b64>``
``bearer``    ``custom_headers``          ``Authorization: Bearer <token>``
``custom``    ``static_headers``          whatever ``dynamic_headers()`` writes
============  ==========================  ======================================

An ``Authorization`` entry in ``custom_headers`` replaces the generated
Basic or Bearer credentials.
"""

from __future__ import annotations

import base64

from netclient.auth.base import AuthHandler, AuthResult
from netclient.models import BasicAuth, BearerAuth, CustomAuth, NoAuth

AUTHORIZATION = "Authorization"


class NoAuthHandler(AuthHandler):
    """Contributes nothing."""

    @property
    def kind(self) -> str:
        return "none"

    def apply(self, strategy: NoAuth) -> AuthResult:
        return AuthResult(strategy=strategy)


class BasicAuthHandler(AuthHandler):
    """Encode ``username:password`` as Base64 per :rfc:`7617`."""

    @property
    def kind(self) -> str:
        return "basic"

    def apply(self, strategy: BasicAuth) -> AuthResult:
        return AuthResult(
            strategy=strategy,
            static_headers=dict(strategy.custom_headers),
            dynamic_headers=_authorization(
                strategy.custom_headers, basic_credentials(strategy.username, strategy.password)
            ),
        )


class BearerAuthHandler(AuthHandler):
    """Ask the token provider for the current token on every request."""

    @property
    def kind(self) -> str:
        return "bearer"

    def apply(self, strategy: BearerAuth) -> AuthResult:
        token = strategy.token_provider()
        return AuthResult(
            strategy=strategy,
            static_headers=dict(strategy.custom_headers),
            dynamic_headers=_authorization(strategy.custom_headers, f"Bearer {token}"),
        )


class CustomAuthHandler(AuthHandler):
    """Apply static headers, then let the caller's function add dynamic ones."""

    @property
    def kind(self) -> str:
        return "custom"

    def apply(self, strategy: CustomAuth) -> AuthResult:
        dynamic: dict[str, str] = {}
        if strategy.dynamic_headers is not None:
            strategy.dynamic_headers(dynamic)
        return AuthResult(
            strategy=strategy,
            static_headers=dict(strategy.static_headers),
            dynamic_headers=dynamic,
        )


def _authorization(custom_headers: dict[str, str], value: str) -> dict[str, str]:
    if any(name.lower() == "authorization" for name in custom_headers):
        return {}
    return {AUTHORIZATION: value}


def basic_credentials(username: str, password: str) -> str:
    """Return the ``Authorization`` value for HTTP Basic auth."""
    raw = f"{username}:{password}"
    encoded = base64.b64encode(raw.encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def default_handlers() -> list[AuthHandler]:
    """Return one instance of every built-in handler."""
    return [NoAuthHandler(), BasicAuthHandler(), BearerAuthHandler(), CustomAuthHandler()]
