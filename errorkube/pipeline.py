from typing import Iterable, List, Sequence

from errorkube.models import Event


def merge_events(existing: Iterable[Event], new: Iterable[Event]) -> List[Event]:
    """Concatenates both sequences, keeping the first event seen per identity.

    Events without an identity cannot be matched and are always kept.
    """
    merged = []
    seen = set()
    for event in [*existing, *new]:
        if event.identity is None:
            merged.append(event)
            continue
        if event.identity in seen:
            continue
        seen.add(event.identity)
        merged.append(event)
    return merged


def sort_by_creation(events: Iterable[Event]) -> List[Event]:
    # sorted() stays stable with reverse=True, so ties keep arrival order
    return sorted(events, key=lambda e: e.created_at, reverse=True)


def ingest(existing: Sequence[Event], new: Iterable[Event]) -> List[Event]:
    return sort_by_creation(merge_events(existing, new))
