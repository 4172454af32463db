"""Request preparation shared by the sync and async clients.

A request is prepared once per call: the URL is built, auth is resolved,
headers are merged and the body is encoded. The resulting
:class:`PreparedRequest` is then sent unchanged on every attempt.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

import httpx

from netclient.auth.base import AuthResult
from netclient.auth.resolver import AuthResolver, extract_path
from netclient.client.serialization import Serializer
from netclient.models import ClientConfig, HTTPMethod

_ABSOLUTE_URL = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")

CONTENT_TYPE = "Content-Type"


@dataclass(frozen=True)
class PreparedRequest:
    """Everything a transport needs to send one request."""

    method: HTTPMethod
    url: str
    headers: httpx.Headers
    body: Optional[bytes] = None
    auth: Optional[AuthResult] = None


def build_url(base_url: Optional[str], path_or_url: str) -> str:
    """Join *path_or_url* to *base_url*.

    Absolute URLs are returned unchanged, as are relative paths when no
    base URL is configured. Exactly one ``/`` separates base and path.

    Example::

        >>> build_url("https://api.x.com/v1/", "/users")
        'https://api.x.com/v1/users'
    """
    if _ABSOLUTE_URL.match(path_or_url) or not base_url:
        return path_or_url
    return base_url.rstrip("/") + "/" + path_or_url.lstrip("/")


def merge_headers(*layers: Optional[Mapping[str, str]]) -> httpx.Headers:
    """Merge header layers, later layers overriding earlier ones.

    Names compare case-insensitively; the spelling of the winning layer is
    kept.
    """
    merged = httpx.Headers()
    for layer in layers:
        if not layer:
            continue
        for name, value in layer.items():
            merged[name] = value
    return merged


def prepare_request(
    config: ClientConfig,
    resolver: AuthResolver,
    serializer: Serializer,
    method: Union[HTTPMethod, str],
    path_or_url: str,
    body: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> PreparedRequest:
    """Build the :class:`PreparedRequest` for one call.

    Header precedence, lowest to highest: the client's default headers,
    the auth strategy's static headers, its dynamic headers, then
    *headers*. ``Content-Type`` is only added for a body when none of the
    layers set it.

    Raises:
        ConfigError: If auth resolution fails.
        SerializationError: If *body* cannot be encoded.
    """
    method = HTTPMethod(method)
    auth = resolver.resolve(method, extract_path(path_or_url))
    merged = merge_headers(
        config.default_headers,
        auth.static_headers,
        auth.dynamic_headers,
        headers,
    )

    content: Optional[bytes] = None
    if body is not None:
        content = serializer.encode(body)
        if CONTENT_TYPE not in merged:
            merged[CONTENT_TYPE] = serializer.content_type

    return PreparedRequest(
        method=method,
        url=build_url(config.base_url, path_or_url),
        headers=merged,
        body=content,
        auth=auth,
    )
