"""
Resource Ledger: per-resource timing and outcome, keyed by engine resource id.

Entries are created by a request event and only ever updated afterwards.
Response, error and timeout events for an id that was never requested are a
protocol violation and raise UnknownResourceError.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Iterator, Optional

from loadspeed.core import setup_logger
from loadspeed.errors import UnknownResourceError
from loadspeed.models import ResourceEntry

logger = setup_logger("loadspeed.ledger")


def truncate_ms(dt: datetime) -> datetime:
    """Drop sub-millisecond precision so durations agree with printed timestamps."""
    return dt.replace(microsecond=dt.microsecond // 1000 * 1000)


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Millisecond delta between two timestamps."""
    return (end - start) // timedelta(milliseconds=1)


class ResourceLedger:

    def __init__(self):
        self._entries: Dict[Any, ResourceEntry] = {}

    def create(self, resource_id, method: str, url: str, request_time: datetime) -> ResourceEntry:
        if resource_id in self._entries:
            logger.warning(f"[LEDGER] Resource id {resource_id!r} requested twice, overwriting entry.")
        entry = ResourceEntry(
            resource_id=resource_id,
            method=method,
            url=url,
            request_time=truncate_ms(request_time),
        )
        self._entries[resource_id] = entry
        return entry

    def record_response(self, resource_id, response_time: datetime, status: Optional[int]) -> ResourceEntry:
        entry = self._require(resource_id, "response")
        entry.response_time = truncate_ms(response_time)
        entry.response_status = status
        entry.duration = elapsed_ms(entry.request_time, entry.response_time)
        return entry

    def record_error(self, resource_id, error_code, error_string: Optional[str]) -> ResourceEntry:
        entry = self._require(resource_id, "error")
        entry.error_code = error_code
        entry.error_string = error_string
        return entry

    def record_timeout(self, resource_id) -> ResourceEntry:
        entry = self._require(resource_id, "timeout")
        entry.timed_out = True
        return entry

    def get(self, resource_id) -> Optional[ResourceEntry]:
        return self._entries.get(resource_id)

    def _require(self, resource_id, event: str) -> ResourceEntry:
        try:
            return self._entries[resource_id]
        except KeyError:
            raise UnknownResourceError(resource_id, event) from None

    def __contains__(self, resource_id) -> bool:
        return resource_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ResourceEntry]:
        return iter(self._entries.values())

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Entries in fetch order, keyed by the id as a string."""
        return {str(rid): entry.to_dict() for rid, entry in self._entries.items()}
