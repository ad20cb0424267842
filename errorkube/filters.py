import datetime as dt
from typing import Iterable, List, Optional

from errorkube.models import Event, FilterState, TimeWindow


# ===== Predicates =====
def matches_namespace(event: Event, namespace: Optional[str]) -> bool:
    return namespace is None or event.namespace == namespace

def matches_object_kind(event: Event, object_kind: Optional[str]) -> bool:
    return object_kind is None or event.kind == object_kind

def matches_search(event: Event, search: str) -> bool:
    if not search:
        return True
    reason = event.reason
    if not isinstance(reason, str):
        return False
    return search.lower() in reason.lower()

def matches_window(event: Event, window: TimeWindow, now: dt.datetime) -> bool:
    delta = window.delta
    if delta is None:
        return True
    return now - event.created_at <= delta


def matches(event: Event, state: FilterState, now: dt.datetime) -> bool:
    return (
        matches_namespace(event, state.namespace)
        and matches_object_kind(event, state.object_kind)
        and matches_search(event, state.search)
        and matches_window(event, state.window, now)
    )


def apply_filters(
    events: Iterable[Event],
    state: FilterState,
    now: Optional[dt.datetime] = None,
) -> List[Event]:
    """Returns the events passing every predicate, in their original order."""
    if now is None:
        now = dt.datetime.now(dt.timezone.utc)
    return [e for e in events if matches(e, state, now)]


# ===== Options =====
def _distinct(values: Iterable[Optional[str]]) -> List[str]:
    # dict keeps first-seen order
    return list(dict.fromkeys(v for v in values if isinstance(v, str)))

def distinct_namespaces(events: Iterable[Event]) -> List[str]:
    return _distinct(e.namespace for e in events)

def distinct_object_kinds(events: Iterable[Event], namespace: Optional[str] = None) -> List[str]:
    return _distinct(e.kind for e in events if matches_namespace(e, namespace))


# ===== State changes =====
def _replace(state: FilterState, **changes) -> FilterState:
    # rebuilt rather than model_copy'd so the "All" normalization runs
    return FilterState(**{**state.model_dump(), **changes})

def select_namespace(state: FilterState, namespace: Optional[str]) -> FilterState:
    # the kind list narrows per namespace; a stale kind would hide every row
    return _replace(state, namespace=namespace, object_kind=None)

def select_object_kind(state: FilterState, object_kind: Optional[str]) -> FilterState:
    return _replace(state, object_kind=object_kind)

def set_search(state: FilterState, search: Optional[str]) -> FilterState:
    return _replace(state, search=search)

def set_window(state: FilterState, window: TimeWindow) -> FilterState:
    return _replace(state, window=window)
