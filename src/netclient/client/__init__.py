"""Request execution: clients, transports, retry, classification and serialization."""

from netclient.client.async_client import AsyncNetworkClient
from netclient.client.classifier import classify
from netclient.client.request import build_url, merge_headers
from netclient.client.retry import BACKOFF_UNIT, RetryController, RetryDecision
from netclient.client.serialization import JsonSerializer, Serializer
from netclient.client.sync_client import NetworkClient
from netclient.client.transport import (
    AsyncHttpxTransport,
    AsyncTransport,
    HttpxTransport,
    Transport,
    TransportResponse,
)

__all__ = [
    "AsyncHttpxTransport",
    "AsyncNetworkClient",
    "AsyncTransport",
    "BACKOFF_UNIT",
    "HttpxTransport",
    "JsonSerializer",
    "NetworkClient",
    "RetryController",
    "RetryDecision",
    "Serializer",
    "Transport",
    "TransportResponse",
    "build_url",
    "classify",
    "merge_headers",
]
