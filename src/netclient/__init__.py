"""netclient -- an HTTP client core with pluggable auth, retries and inspection.

A :class:`NetworkClient` (or its asyncio twin :class:`AsyncNetworkClient`)
is configured once with an immutable :class:`ClientConfig` and then sends
requests. For each request it resolves the authentication strategy for
the method and path, merges headers, sends through a transport, retries
transient failures with exponential backoff, and reports failures as a
closed set of typed errors.

Typical usage::

    from netclient import BearerAuth, ClientConfig, NetworkClient, RetryPolicy

    config = ClientConfig(
        base_url="https://api.example.com",
        auth_strategy=BearerAuth(token_provider=lambda: tokens.current),
        retry_policy=RetryPolicy(max_retries=3),
    )
    with NetworkClient(config) as client:
        user = client.get("/users/1", response_type=User)

Modules:
    models: Strategies, configuration and settings models.
    auth: Strategy resolution and header production.
    client: Request execution, transports, retry, classification.
    inspection: Optional exchange recording.
    config: Settings files, precedence and credential sources.
    exceptions: Error taxonomy with exit-code mapping.
    app: The ``netclient`` command-line interface.
"""

__version__ = "0.1.0"

from netclient.auth import AuthResolver, AuthResult, extract_path, resolve_auth
from netclient.client import (
    AsyncNetworkClient,
    NetworkClient,
    RetryController,
    RetryDecision,
    TransportResponse,
    classify,
)
from netclient.exceptions import (
    CancelledError,
    ClientError,
    ConfigError,
    NetclientError,
    NetworkError,
    SerializationError,
    ServerError,
    TimeoutError_,
    UnknownError,
)
from netclient.inspection import ExchangeRecord, InspectionCollector, Inspector
from netclient.models import (
    AuthRule,
    AuthStrategy,
    BasicAuth,
    BearerAuth,
    ClientConfig,
    CustomAuth,
    DynamicAuth,
    HTTPMethod,
    LoggingConfig,
    LogLevel,
    NoAuth,
    RetryPolicy,
    RuleBasedAuth,
    SerializationConfig,
    Timeouts,
    rule,
)

__all__ = [
    "AsyncNetworkClient",
    "AuthResolver",
    "AuthResult",
    "AuthRule",
    "AuthStrategy",
    "BasicAuth",
    "BearerAuth",
    "CancelledError",
    "ClientConfig",
    "ClientError",
    "ConfigError",
    "CustomAuth",
    "DynamicAuth",
    "ExchangeRecord",
    "HTTPMethod",
    "InspectionCollector",
    "Inspector",
    "LogLevel",
    "LoggingConfig",
    "NetclientError",
    "NetworkClient",
    "NetworkError",
    "NoAuth",
    "RetryController",
    "RetryDecision",
    "RetryPolicy",
    "RuleBasedAuth",
    "SerializationConfig",
    "SerializationError",
    "ServerError",
    "TimeoutError_",
    "Timeouts",
    "TransportResponse",
    "UnknownError",
    "classify",
    "extract_path",
    "resolve_auth",
    "__version__",
]
