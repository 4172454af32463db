"""Authentication resolution for netclient.

Given a configured strategy, an HTTP method and a request path, this
package works out which leaf strategy applies and which headers it adds.

The main entry points are:

- :class:`AuthResolver` -- handler registry plus Dynamic/RuleBased resolution.
- :func:`resolve_auth` -- one-shot resolution with the built-in handlers.
- :func:`extract_path` -- the path used for rule matching when a full URL
  is requested.
- :class:`AuthResult` -- the effective auth for one request.

Typical usage::

    from netclient.auth import AuthResolver

    resolver = AuthResolver(config.auth_strategy)
    result = resolver.resolve("POST", "/admin/users")
    # result.static_headers / .dynamic_headers are ready to merge.
"""

from netclient.auth.base import AuthHandler, AuthResult
from netclient.auth.handlers import (
    BasicAuthHandler,
    BearerAuthHandler,
    CustomAuthHandler,
    NoAuthHandler,
    basic_credentials,
)
from netclient.auth.resolver import AuthResolver, extract_path, resolve_auth

__all__ = [
    "AuthHandler",
    "AuthResult",
    "AuthResolver",
    "BasicAuthHandler",
    "BearerAuthHandler",
    "CustomAuthHandler",
    "NoAuthHandler",
    "basic_credentials",
    "extract_path",
    "resolve_auth",
]
