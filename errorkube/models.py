import datetime as dt
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

# Unparseable creation timestamps sort as the oldest possible instant.
OLDEST = dt.datetime.min.replace(tzinfo=dt.timezone.utc)

# Selector value the UI uses for "no constraint".
ALL = "All"

# ===== Utils =====
def parse_timestamp(value: Any) -> dt.datetime:
    """Parses an RFC 3339 timestamp (or datetime) into an aware UTC datetime.

    Returns ``OLDEST`` for anything that cannot be parsed.
    """
    try:
        if isinstance(value, dt.datetime):
            parsed = value
        elif isinstance(value, str) and value.strip():
            parsed = dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        else:
            return OLDEST
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=dt.timezone.utc)
        # offsets at the edges of the year range overflow when shifted to UTC
        return parsed.astimezone(dt.timezone.utc)
    except (ValueError, OverflowError):
        return OLDEST

def lookup(body: Any, *path: str) -> Any:
    """Walks nested dict keys, returning None on the first miss."""
    current = body
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


# ===== Event =====
class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    identity: Optional[str] = None
    uid: Optional[str] = None          # top-level uid carried on the raw record
    body: Union[Dict[str, Any], str]   # str when the payload could not be parsed

    @property
    def degraded(self) -> bool:
        return isinstance(self.body, str)

    @property
    def namespace(self) -> Optional[str]:
        return lookup(self.body, "metadata", "namespace")

    @property
    def name(self) -> Optional[str]:
        return lookup(self.body, "metadata", "name")

    @property
    def creation_timestamp(self) -> Any:
        return lookup(self.body, "metadata", "creationTimestamp")

    @property
    def created_at(self) -> dt.datetime:
        return parse_timestamp(self.creation_timestamp)

    @property
    def kind(self) -> Optional[str]:
        return lookup(self.body, "involvedObject", "kind")

    @property
    def reason(self) -> Optional[str]:
        return lookup(self.body, "reason")

    @property
    def message(self) -> Optional[str]:
        return lookup(self.body, "message")

    @property
    def event_type(self) -> Optional[str]:
        return lookup(self.body, "type")

    @property
    def first_timestamp(self) -> Any:
        return lookup(self.body, "firstTimestamp")

    @property
    def last_timestamp(self) -> Any:
        return lookup(self.body, "lastTimestamp")

    @property
    def reporting_component(self) -> Optional[str]:
        return lookup(self.body, "reportingComponent")

    @property
    def source_host(self) -> Optional[str]:
        return lookup(self.body, "source", "host")


# ===== Filters =====
class TimeWindow(str, Enum):
    ALL = "all"
    HOUR = "1h"
    TEN_HOURS = "10h"
    DAY = "24h"
    WEEK = "1w"
    MONTH = "30d"

    @property
    def delta(self) -> Optional[dt.timedelta]:
        return _WINDOW_DELTAS.get(self)


_WINDOW_DELTAS = {
    TimeWindow.HOUR: dt.timedelta(hours=1),
    TimeWindow.TEN_HOURS: dt.timedelta(hours=10),
    TimeWindow.DAY: dt.timedelta(hours=24),
    TimeWindow.WEEK: dt.timedelta(days=7),
    TimeWindow.MONTH: dt.timedelta(days=30),
}


class FilterState(BaseModel):
    """Operator-selected predicates. None (or "All") means no constraint."""

    model_config = ConfigDict(frozen=True)

    namespace: Optional[str] = None
    object_kind: Optional[str] = None
    search: str = ""
    window: TimeWindow = TimeWindow.ALL

    @field_validator("namespace", "object_kind", mode="before")
    @classmethod
    def _normalize_all(cls, value):
        if value in (ALL, ""):
            return None
        return value

    @field_validator("search", mode="before")
    @classmethod
    def _normalize_search(cls, value):
        return value or ""
