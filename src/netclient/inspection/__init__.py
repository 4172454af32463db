"""Optional network inspection.

Inspection is a capability handed to a transport at construction time.
The request pipeline does not know whether one is attached.

- :class:`Inspector` -- the interface (``on_exchange(record)``).
- :class:`ExchangeRecord` -- what an inspector receives.
- :class:`InspectionCollector` -- keeps recent, sanitised records in memory.
"""

from netclient.inspection.collector import InspectionCollector
from netclient.inspection.hooks import (
    DEFAULT_REDACTED_HEADERS,
    ExchangeRecord,
    Inspector,
    InspectorRunner,
    redact_headers,
)

__all__ = [
    "DEFAULT_REDACTED_HEADERS",
    "ExchangeRecord",
    "InspectionCollector",
    "Inspector",
    "InspectorRunner",
    "redact_headers",
]
