"""In-memory inspector that keeps recent exchanges for later viewing.

:class:`InspectionCollector` is the stock :class:`~netclient.inspection.hooks.Inspector`.
Pass it to a transport (or to a client, which hands it to the default
transport) and read :attr:`InspectionCollector.records` afterwards; the
``netclient request --inspect`` command prints them as a table.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Iterable

from netclient.inspection.hooks import DEFAULT_REDACTED_HEADERS, ExchangeRecord

DEFAULT_MAX_CONTENT_LENGTH = 250_000
DEFAULT_RETENTION = 3600.0


class InspectionCollector:
    """Collects sanitised exchange records.

    Records are stored with sensitive headers masked and bodies truncated.
    Records older than *retention* seconds are dropped, and at most
    *max_records* are kept.

    Safe to share between threads and between concurrent requests.

    Args:
        max_content_length: Maximum characters kept per body.
        redact_headers: Header names to mask.
        retention: Seconds a record is kept.
        max_records: Upper bound on stored records.
        clock: Time source, for tests.

    Example::

        collector = InspectionCollector()
        with NetworkClient(config, inspector=collector) as client:
            client.get("/users")
        for record in collector.records:
            print(record.method, record.url, record.status_code)
    """

    def __init__(
        self,
        max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
        redact_headers: Iterable[str] = DEFAULT_REDACTED_HEADERS,
        retention: float = DEFAULT_RETENTION,
        max_records: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_content_length = max_content_length
        self.redact_headers = tuple(redact_headers)
        self.retention = retention
        self._clock = clock
        self._records: deque[ExchangeRecord] = deque(maxlen=max_records)
        self._lock = threading.Lock()

    def on_exchange(self, record: ExchangeRecord) -> None:
        clean = record.sanitized(self.redact_headers, self.max_content_length)
        with self._lock:
            self._records.append(clean)
            self._prune()

    @property
    def records(self) -> list[ExchangeRecord]:
        """Records still within the retention period, in completion order."""
        with self._lock:
            self._prune()
            return list(self._records)

    def clear(self) -> None:
        """Forget every record."""
        with self._lock:
            self._records.clear()

    def _prune(self) -> None:
        # Records arrive in completion order, so an expired record can sit
        # behind a newer one.
        cutoff = self._clock() - self.retention
        if any(r.started_at < cutoff for r in self._records):
            kept = [r for r in self._records if r.started_at >= cutoff]
            self._records.clear()
            self._records.extend(kept)
