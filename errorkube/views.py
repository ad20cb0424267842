from typing import Any, Iterable, Optional

from pydantic import BaseModel

from errorkube.models import OLDEST, Event, parse_timestamp


class EventRow(BaseModel):
    identity: Optional[str] = None
    time: Optional[str] = None  # ISO8601, None when unparseable
    namespace: Optional[str] = None
    object: Optional[str] = None
    kind: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None


class GeneralInfo(BaseModel):
    identity: Optional[str] = None
    namespace: Optional[str] = None
    name: Optional[str] = None
    kind: Optional[str] = None
    created_at: Optional[str] = None

class SourceInfo(BaseModel):
    reporting_component: Optional[str] = None
    host: Optional[str] = None

class ErrorInfo(BaseModel):
    reason: Optional[str] = None
    message: Optional[str] = None
    type: Optional[str] = None
    first_timestamp: Optional[str] = None
    last_timestamp: Optional[str] = None

class EventDetail(BaseModel):
    general: GeneralInfo
    source: SourceInfo
    error: ErrorInfo
    raw: Any = None  # body as received, degraded bodies included


def format_time(value: Any) -> Optional[str]:
    ts = parse_timestamp(value)
    if ts == OLDEST:
        return None
    return ts.isoformat()

def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return str(value)


def event_row(event: Event) -> EventRow:
    return EventRow(
        identity=event.identity,
        time=format_time(event.creation_timestamp),
        namespace=_text(event.namespace),
        object=_text(event.name),
        kind=_text(event.kind),
        reason=_text(event.reason),
        message=_text(event.message) if not event.degraded else event.body,
    )


def event_detail(event: Event) -> EventDetail:
    return EventDetail(
        general=GeneralInfo(
            identity=event.identity or event.uid,
            namespace=_text(event.namespace),
            name=_text(event.name),
            kind=_text(event.kind),
            created_at=format_time(event.creation_timestamp),
        ),
        source=SourceInfo(
            reporting_component=_text(event.reporting_component),
            host=_text(event.source_host),
        ),
        error=ErrorInfo(
            reason=_text(event.reason),
            message=_text(event.message),
            type=_text(event.event_type),
            first_timestamp=format_time(event.first_timestamp),
            last_timestamp=format_time(event.last_timestamp),
        ),
        raw=event.body,
    )


def find_event(events: Iterable[Event], identity: str) -> Optional[Event]:
    for event in events:
        if event.identity == identity:
            return event
    return None
