"""Canonical Pydantic models shared across all netclient modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Authentication strategies** -- the closed, tagged set of ways a request
can be authenticated: :class:`NoAuth`, :class:`BasicAuth`,
:class:`BearerAuth`, :class:`CustomAuth` (the *leaf* strategies) and the
two indirect ones, :class:`DynamicAuth` and :class:`RuleBasedAuth`, which
pick a leaf per request. The ``kind`` field is the discriminator.

**Client configuration** -- :class:`RetryPolicy`, :class:`Timeouts`,
:class:`LoggingConfig`, :class:`SerializationConfig` and
:class:`ClientConfig`. All are immutable once built.

**Declarative settings** -- :class:`AuthSettings`, :class:`AuthRuleSettings`
and :class:`ClientSettings`, the JSON/YAML-serialisable shape read from
settings files and turned into a :class:`ClientConfig` by
:func:`netclient.config.build_client_config`.

Strategies may hold callables (token providers, selectors), so they are
built in code; settings files can only describe what can be written down.
"""

from __future__ import annotations

import enum
import re
from typing import Annotated, Any, Callable, Iterable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class HTTPMethod(str, enum.Enum):
    """HTTP methods accepted by the request API and by auth rules.

    Lower-case input (``"get"``) is accepted and normalised.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @classmethod
    def _missing_(cls, value: object) -> Optional[HTTPMethod]:
        if isinstance(value, str):
            upper = value.upper()
            for member in cls:
                if member.value == upper:
                    return member
        return None


class LogLevel(str, enum.Enum):
    """How much of each exchange the transport logs.

    ``INFO`` logs the request and status lines, ``HEADERS`` adds headers,
    ``BODY`` logs the lines plus bodies, and ``ALL`` logs everything.
    """

    NONE = "none"
    INFO = "info"
    HEADERS = "headers"
    BODY = "body"
    ALL = "all"

    @classmethod
    def _missing_(cls, value: object) -> Optional[LogLevel]:
        if isinstance(value, str):
            lower = value.lower()
            for member in cls:
                if member.value == lower:
                    return member
        return None


# --- Authentication strategies ---


class NoAuth(BaseModel):
    """Explicitly apply no authentication (e.g. for public endpoints)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


class BasicAuth(BaseModel):
    """HTTP Basic authentication per :rfc:`7617`.

    Sends ``Authorization: Basic base64(username:password)`` together with
    ``custom_headers``.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["basic"] = "basic"
    username: str
    password: str = Field(repr=False)
    custom_headers: dict[str, str] = Field(default_factory=dict)


class BearerAuth(BaseModel):
    """Bearer token authentication.

    ``token_provider`` is called once for every request, so it can hand
    out a rotated token. It may be called concurrently from several
    in-flight requests and is never serialised behind a lock.
    ``refresh_token`` is carried for transports that implement a refresh
    flow; the core does not use it.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["bearer"] = "bearer"
    token_provider: Callable[[], str]
    refresh_token: Optional[str] = Field(default=None, repr=False)
    custom_headers: dict[str, str] = Field(default_factory=dict)


class CustomAuth(BaseModel):
    """Caller-defined headers.

    ``static_headers`` are sent as-is. ``dynamic_headers``, when given, is
    called once per request with an empty mutable dict to fill in
    (timestamps, signatures and so on).
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["custom"] = "custom"
    static_headers: dict[str, str] = Field(default_factory=dict)
    dynamic_headers: Optional[Callable[[dict[str, str]], None]] = None


LeafStrategy = Annotated[
    Union[NoAuth, BasicAuth, BearerAuth, CustomAuth],
    Field(discriminator="kind"),
]
"""A strategy that produces headers directly, without further indirection."""

LEAF_STRATEGY_TYPES = (NoAuth, BasicAuth, BearerAuth, CustomAuth)


class DynamicAuth(BaseModel):
    """Pick a leaf strategy per request from the method and path.

    ``selector(method, path)`` must return a leaf strategy or ``None``
    (meaning no authentication). Returning another :class:`DynamicAuth` or
    :class:`RuleBasedAuth` is rejected with
    :class:`~netclient.exceptions.ConfigError` when the request is made.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["dynamic"] = "dynamic"
    selector: Callable[..., Any]


class AuthRule(BaseModel):
    """One entry of a :class:`RuleBasedAuth` table.

    The rule matches when ``methods`` is ``None`` or contains the request
    method, and ``path_pattern`` matches the *entire* request path.
    """

    model_config = ConfigDict(frozen=True)

    methods: Optional[frozenset[HTTPMethod]] = None
    path_pattern: re.Pattern
    strategy: LeafStrategy

    def matches(self, method: HTTPMethod, path: str) -> bool:
        """Return ``True`` if this rule applies to *method* and *path*."""
        if self.methods is not None and method not in self.methods:
            return False
        return self.path_pattern.fullmatch(path) is not None


class RuleBasedAuth(BaseModel):
    """Ordered rule table; the first matching rule wins.

    When no rule matches, ``default`` applies, or no authentication if it is
    unset. Both rule strategies and ``default`` must be leaf strategies;
    anything else fails validation at construction time.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["rule_based"] = "rule_based"
    rules: list[AuthRule] = Field(default_factory=list)
    default: Optional[LeafStrategy] = None


AuthStrategy = Annotated[
    Union[NoAuth, BasicAuth, BearerAuth, CustomAuth, DynamicAuth, RuleBasedAuth],
    Field(discriminator="kind"),
]
"""Any authentication strategy."""


def rule(
    path_pattern: Union[str, re.Pattern],
    strategy: Any,
    methods: Union[HTTPMethod, str, Iterable[Union[HTTPMethod, str]], None] = None,
) -> AuthRule:
    """Build an :class:`AuthRule` from a pattern string and a method or methods.

    Example::

        rule("/admin/.*", basic, methods="GET")
        rule("/admin/.*", signature, methods={"POST", "PUT", "DELETE"})
        rule("/public/.*", api_key)   # every method
    """
    method_set: Optional[frozenset[HTTPMethod]] = None
    if isinstance(methods, (str, HTTPMethod)):
        method_set = frozenset({HTTPMethod(methods)})
    elif methods is not None:
        method_set = frozenset(HTTPMethod(m) for m in methods)
    return AuthRule(methods=method_set, path_pattern=path_pattern, strategy=strategy)


# --- Client configuration ---


class RetryPolicy(BaseModel):
    """Retry and exponential backoff settings.

    The delay before retry number ``n`` (counting the first try as attempt
    0) is ``min(max_delay, exponential_base ** n)`` seconds.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=0, ge=0, description="Retries after the first attempt")
    exponential_base: float = Field(default=2.0, gt=1.0, description="Backoff growth factor")
    max_delay: float = Field(default=3.0, ge=0, description="Backoff ceiling in seconds")


class Timeouts(BaseModel):
    """Transport timeouts in seconds."""

    model_config = ConfigDict(frozen=True)

    connect: float = Field(default=15.0, gt=0, description="Connection establishment")
    request: float = Field(
        default=30.0,
        gt=0,
        description="Wait for a pooled connection; the async client also caps the whole exchange",
    )
    socket: float = Field(default=30.0, gt=0, description="Idle time between socket reads/writes")


class LoggingConfig(BaseModel):
    """Transport logging switch and verbosity."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    level: LogLevel = LogLevel.HEADERS


class SerializationConfig(BaseModel):
    """JSON encoding and decoding behaviour.

    ``lenient`` decodes in pydantic's lax mode (``"1"`` is accepted for an
    ``int``); when off, strict mode is used. ``ignore_unknown_keys``
    controls whether unexpected keys in a response object are an error.
    """

    model_config = ConfigDict(frozen=True)

    lenient: bool = True
    ignore_unknown_keys: bool = True
    pretty_print: bool = True


class ClientConfig(BaseModel):
    """Immutable configuration of a :class:`~netclient.client.NetworkClient`.

    Example::

        ClientConfig(
            base_url="https://api.example.com",
            default_headers={"Accept": "application/json"},
            auth_strategy=BearerAuth(token_provider=lambda: store.token),
            retry_policy=RetryPolicy(max_retries=3),
        )
    """

    model_config = ConfigDict(frozen=True)

    base_url: Optional[str] = Field(default=None, description="Prefix for relative paths")
    default_headers: dict[str, str] = Field(default_factory=dict)
    expect_success: bool = Field(
        default=True, description="Treat any non-2xx status as a failure"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    serialization: SerializationConfig = Field(default_factory=SerializationConfig)
    auth_strategy: AuthStrategy = Field(default_factory=NoAuth)
    timeouts: Timeouts = Field(default_factory=Timeouts)
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)


# --- Declarative settings ---


class AuthRuleSettings(BaseModel):
    """A rule entry in a settings file."""

    methods: Optional[list[HTTPMethod]] = None
    path: str = Field(description="Regular expression matched against the whole path")
    auth: AuthSettings


class AuthSettings(BaseModel):
    """Authentication section of a settings file.

    ``source`` is a credential source (``env:VAR``, ``file:/path`` or
    ``prompt``). For ``basic`` it resolves to the password, or to a
    ``username:password`` pair when ``username`` is unset. For ``bearer``
    it resolves to the token and is read again on every request.

    Example (YAML)::

        auth:
          type: rule_based
          rules:
            - path: "/admin/.*"
              methods: [GET]
              auth: {type: basic, username: admin, source: "env:ADMIN_PASSWORD"}
          default: {type: bearer, source: "file:~/.api-token"}
    """

    type: Literal["none", "basic", "bearer", "custom", "rule_based"] = "none"
    username: Optional[str] = None
    source: Optional[str] = None
    refresh_token_source: Optional[str] = None
    headers: dict[str, str] = Field(
        default_factory=dict, description="Custom headers sent with this strategy"
    )
    rules: list[AuthRuleSettings] = Field(default_factory=list)
    default: Optional[AuthSettings] = None


AuthRuleSettings.model_rebuild()


class ClientSettings(BaseModel):
    """Serialisable client settings, as stored in ``config.json`` / ``config.yaml``."""

    base_url: Optional[str] = None
    default_headers: dict[str, str] = Field(default_factory=dict)
    expect_success: bool = True
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    serialization: SerializationConfig = Field(default_factory=SerializationConfig)
    timeouts: Timeouts = Field(default_factory=Timeouts)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    auth: Optional[AuthSettings] = None
