"""View state and the reducer that drives it.

Every change to what the operator sees (snapshot load, a streamed event, a
filter change, connection lifecycle) is an action applied by ``reduce``:

    state = reduce(state, EventReceived(event=event))

``reduce`` never mutates its input. The event collection only grows, and
``visible`` is recomputed from the whole collection after each transition.
"""

import datetime as dt
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from errorkube.filters import (
    apply_filters,
    distinct_namespaces,
    distinct_object_kinds,
    select_namespace,
    select_object_kind,
    set_search,
    set_window,
)
from errorkube.models import Event, FilterState, TimeWindow
from errorkube.pipeline import ingest


class ConnectionStatus(str, Enum):
    IDLE = "idle"
    OPEN = "open"
    CLOSED = "closed"


class ViewState(BaseModel):
    model_config = ConfigDict(frozen=True)

    events: Tuple[Event, ...] = ()
    filter: FilterState = FilterState()
    visible: Tuple[Event, ...] = ()
    snapshot_loaded: bool = False
    connection: ConnectionStatus = ConnectionStatus.IDLE
    alive: bool = True


# ===== Actions =====
class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)

class SnapshotLoaded(_Action):
    events: Tuple[Event, ...] = ()

class EventReceived(_Action):
    event: Event

class StreamOpened(_Action):
    pass

class StreamErrored(_Action):
    reason: str = ""

class StreamClosed(_Action):
    pass

class NamespaceSelected(_Action):
    namespace: Optional[str] = None

class ObjectKindSelected(_Action):
    object_kind: Optional[str] = None

class SearchChanged(_Action):
    search: str = ""

class WindowChanged(_Action):
    window: TimeWindow = TimeWindow.ALL

class FiltersReset(_Action):
    pass

class SessionClosed(_Action):
    pass


Action = Union[
    SnapshotLoaded,
    EventReceived,
    StreamOpened,
    StreamErrored,
    StreamClosed,
    NamespaceSelected,
    ObjectKindSelected,
    SearchChanged,
    WindowChanged,
    FiltersReset,
    SessionClosed,
]


# ===== Reducer =====
def _with(state: ViewState, now: Optional[dt.datetime], **changes) -> ViewState:
    updated = state.model_copy(update=changes)
    visible = apply_filters(updated.events, updated.filter, now=now)
    return updated.model_copy(update={"visible": tuple(visible)})


def reduce(state: ViewState, action: Action, now: Optional[dt.datetime] = None) -> ViewState:
    if isinstance(action, SessionClosed):
        return state.model_copy(update={"alive": False, "connection": ConnectionStatus.CLOSED})

    if isinstance(action, SnapshotLoaded):
        if not state.alive or state.snapshot_loaded:
            return state
        events = ingest(state.events, action.events)
        return _with(state, now, events=tuple(events), snapshot_loaded=True)

    if isinstance(action, EventReceived):
        if not state.alive or state.connection == ConnectionStatus.CLOSED:
            return state
        events = ingest(state.events, [action.event])
        return _with(state, now, events=tuple(events))

    if isinstance(action, StreamOpened):
        if state.connection != ConnectionStatus.IDLE:
            return state
        return state.model_copy(update={"connection": ConnectionStatus.OPEN})

    if isinstance(action, (StreamErrored, StreamClosed)):
        return state.model_copy(update={"connection": ConnectionStatus.CLOSED})

    if isinstance(action, NamespaceSelected):
        return _with(state, now, filter=select_namespace(state.filter, action.namespace))

    if isinstance(action, ObjectKindSelected):
        return _with(state, now, filter=select_object_kind(state.filter, action.object_kind))

    if isinstance(action, SearchChanged):
        return _with(state, now, filter=set_search(state.filter, action.search))

    if isinstance(action, WindowChanged):
        return _with(state, now, filter=set_window(state.filter, action.window))

    if isinstance(action, FiltersReset):
        return _with(state, now, filter=FilterState())

    raise TypeError(f"Unknown action: {type(action).__name__}")


def filter_options(state: ViewState) -> Dict[str, List[str]]:
    return {
        "namespaces": distinct_namespaces(state.events),
        "object_kinds": distinct_object_kinds(state.events, state.filter.namespace),
    }
