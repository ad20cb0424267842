import asyncio
import datetime as dt
import logging
from contextlib import suppress
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from errorkube.config import settings
from errorkube.database import db, get_event_collection
from errorkube.filters import apply_filters
from errorkube.models import TimeWindow
from errorkube.services.live_feed import LiveFeed
from errorkube.services.snapshot import ApiSnapshotSource, MongoSnapshotSource
from errorkube.session import Session
from errorkube.state import (
    FiltersReset,
    NamespaceSelected,
    ObjectKindSelected,
    SearchChanged,
    WindowChanged,
    filter_options,
)
from errorkube.views import event_detail, event_row, find_event

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(message)s",
)

# ===== App =====
app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def build_snapshot_source():
    if settings.SNAPSHOT_SOURCE == "mongo":
        return MongoSnapshotSource(get_event_collection())
    return ApiSnapshotSource()

@app.on_event("startup")
async def start_session():
    session = Session(build_snapshot_source(), LiveFeed())
    app.state.session = session
    app.state.session_task = asyncio.create_task(session.start(), name="errorkube-session")

@app.on_event("shutdown")
async def stop_session():
    session = getattr(app.state, "session", None)
    if session is not None:
        await session.close()
    task = getattr(app.state, "session_task", None)
    if task is not None and not task.done():
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
    db.close()

def get_session(request: Request) -> Session:
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Session not started")
    return session

# ===== Models =====
class FilterUpdate(BaseModel):
    namespace: Optional[str] = None
    object_kind: Optional[str] = None
    search: Optional[str] = None
    window: Optional[TimeWindow] = None

def now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()

def filters_payload(session: Session) -> dict:
    state = session.state
    return {
        "filter": state.filter.model_dump(mode="json"),
        **filter_options(state),
    }

# ===== Endpoints =====
@app.get("/health")
async def health(session: Session = Depends(get_session)):
    state = session.state
    return {
        "ok": state.alive,
        "ts": now_iso(),
        "connection": state.connection.value,
        "snapshot_loaded": state.snapshot_loaded,
    }

@app.get("/events")
async def list_events(
    session: Session = Depends(get_session),
    limit: Optional[int] = Query(None, ge=1, le=5000),
):
    state = session.state
    # recomputed per request: the recency window moves with the clock
    visible = apply_filters(state.events, state.filter)
    if limit is not None:
        visible = visible[:limit]
    return {
        "count": len(visible),
        "total": len(state.events),
        "items": [event_row(e).model_dump() for e in visible],
    }

@app.get("/events/{identity}")
async def get_event(identity: str, session: Session = Depends(get_session)):
    event = find_event(session.state.events, identity)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event_detail(event).model_dump()

@app.get("/filters")
async def get_filters(session: Session = Depends(get_session)):
    return filters_payload(session)

@app.patch("/filters")
async def update_filters(update: FilterUpdate, session: Session = Depends(get_session)):
    changed = update.model_fields_set
    # namespace first: selecting one clears the kind
    if "namespace" in changed:
        session.dispatch(NamespaceSelected(namespace=update.namespace))
    if "object_kind" in changed:
        session.dispatch(ObjectKindSelected(object_kind=update.object_kind))
    if "search" in changed:
        session.dispatch(SearchChanged(search=update.search or ""))
    if "window" in changed:
        session.dispatch(WindowChanged(window=update.window or TimeWindow.ALL))
    return filters_payload(session)

@app.delete("/filters")
async def reset_filters(session: Session = Depends(get_session)):
    session.dispatch(FiltersReset())
    return filters_payload(session)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("errorkube.main:app", host=settings.HOST, port=settings.PORT, reload=False)
