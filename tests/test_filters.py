import datetime as dt

import pytest

from conftest import T
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

MINUTE = dt.timedelta(minutes=1)
HOUR = dt.timedelta(hours=1)


@pytest.fixture
def events(make_event):
    return [
        make_event("a", namespace="kube-system", kind="Pod", reason="BackOff", created=T - 30 * MINUTE),
        make_event("b", namespace="kube-system", kind="Node", reason="NodeNotReady", created=T - 2 * HOUR),
        make_event("c", namespace="default", kind="Pod", reason="FailedScheduling", created=T - 3 * 24 * HOUR),
    ]


def ids(events):
    return [e.identity for e in events]


def test_no_constraints_returns_everything(events, now):
    assert ids(apply_filters(events, FilterState(), now=now)) == ["a", "b", "c"]


def test_namespace_filter(events, now):
    view = apply_filters(events, FilterState(namespace="kube-system"), now=now)
    assert ids(view) == ["a", "b"]


def test_all_means_no_constraint(events, now):
    state = FilterState(namespace="All", object_kind="All")
    assert state.namespace is None and state.object_kind is None
    assert len(apply_filters(events, state, now=now)) == 3


def test_object_kind_filter(events, now):
    assert ids(apply_filters(events, FilterState(object_kind="Pod"), now=now)) == ["a", "c"]


@pytest.mark.parametrize("search,expected", [
    ("backoff", ["a"]),
    ("NOT", ["b"]),
    ("fail", ["c"]),
    ("", ["a", "b", "c"]),
    ("nothing-matches", []),
])
def test_search_is_case_insensitive_on_reason(events, now, search, expected):
    assert ids(apply_filters(events, FilterState(search=search), now=now)) == expected


def test_search_skips_degraded_events(now):
    assert apply_filters([Event(body="raw text")], FilterState(search="raw"), now=now) == []


def test_recency_one_hour(make_event, now):
    recent = make_event("recent", created=now - 30 * MINUTE)
    stale = make_event("stale", created=now - 2 * HOUR)
    view = apply_filters([recent, stale], FilterState(window=TimeWindow.HOUR), now=now)
    assert ids(view) == ["recent"]


def test_recency_window_is_closed_ended(make_event, now):
    edge = make_event("edge", created=now - HOUR)
    assert ids(apply_filters([edge], FilterState(window="1h"), now=now)) == ["edge"]


@pytest.mark.parametrize("window,expected", [
    (TimeWindow.ALL, ["a", "b", "c"]),
    (TimeWindow.HOUR, ["a"]),
    (TimeWindow.TEN_HOURS, ["a", "b"]),
    (TimeWindow.DAY, ["a", "b"]),
    (TimeWindow.WEEK, ["a", "b", "c"]),
    (TimeWindow.MONTH, ["a", "b", "c"]),
])
def test_recency_windows(events, now, window, expected):
    assert ids(apply_filters(events, FilterState(window=window), now=now)) == expected


def test_unparseable_timestamp_fails_finite_windows(make_event, now):
    broken = make_event("broken", created="garbage")
    assert apply_filters([broken], FilterState(window=TimeWindow.MONTH), now=now) == []
    assert ids(apply_filters([broken], FilterState(), now=now)) == ["broken"]


def test_filters_combine_with_and(events, now):
    state = FilterState(namespace="kube-system", object_kind="Pod", window=TimeWindow.HOUR)
    assert ids(apply_filters(events, state, now=now)) == ["a"]


def test_filtering_leaves_collection_intact(events, now):
    before = list(events)
    apply_filters(events, FilterState(namespace="default", search="x"), now=now)
    assert events == before


@pytest.mark.parametrize("extra", [
    {"namespace": "kube-system"},
    {"object_kind": "Node"},
    {"search": "back"},
    {"window": TimeWindow.TEN_HOURS},
])
def test_extra_constraint_narrows(events, now, extra):
    wide = FilterState(window=TimeWindow.WEEK)
    narrow = FilterState(**{**wide.model_dump(), **extra})
    wide_ids = set(ids(apply_filters(events, wide, now=now)))
    assert set(ids(apply_filters(events, narrow, now=now))) <= wide_ids


def test_distinct_namespaces_in_first_seen_order(events):
    assert distinct_namespaces(events) == ["kube-system", "default"]


def test_object_kinds_narrow_with_namespace(events):
    assert distinct_object_kinds(events) == ["Pod", "Node"]
    assert distinct_object_kinds(events, "default") == ["Pod"]
    assert distinct_object_kinds(events, None) == ["Pod", "Node"]


def test_options_ignore_degraded_events(events):
    assert distinct_namespaces(events + [Event(body="raw")]) == ["kube-system", "default"]


def test_changing_namespace_resets_object_kind():
    state = select_object_kind(FilterState(namespace="kube-system"), "Node")
    state = set_search(set_window(state, TimeWindow.DAY), "back")
    changed = select_namespace(state, "default")
    assert changed.namespace == "default"
    assert changed.object_kind is None
    assert changed.search == "back"
    assert changed.window == TimeWindow.DAY


def test_state_changes_return_new_state():
    state = FilterState()
    assert select_object_kind(state, "Pod") is not state
    assert state.object_kind is None
    assert select_object_kind(state, "All").object_kind is None
