import asyncio
import logging
from contextlib import suppress
from typing import Callable, List, Optional

from errorkube.decoder import decode_event, decode_message
from errorkube.services.live_feed import FeedClosed, FeedError, FeedMessage, FeedOpened, LiveFeed
from errorkube.state import (
    Action,
    EventReceived,
    SessionClosed,
    SnapshotLoaded,
    StreamClosed,
    StreamErrored,
    StreamOpened,
    ViewState,
    reduce,
)

Listener = Callable[[ViewState], None]


class Session:
    """One operator's view: snapshot first, then the live feed until closed.

    All state changes go through ``dispatch``; the feed is drained by a
    single consumer task so streamed events are applied one at a time.
    """

    def __init__(self, snapshot_source, feed: Optional[LiveFeed] = None):
        self.snapshot_source = snapshot_source
        self.feed = feed
        self.state = ViewState()
        self.channel: asyncio.Queue = asyncio.Queue()
        self._listeners: List[Listener] = []
        self._producer: Optional[asyncio.Task] = None
        self._consumer: Optional[asyncio.Task] = None

    @property
    def alive(self) -> bool:
        return self.state.alive

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def dispatch(self, action: Action) -> ViewState:
        self.state = reduce(self.state, action)
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:
                logging.exception(f"Listener failed after {type(action).__name__}")
        return self.state

    async def load_snapshot(self) -> None:
        raw_events = await self.snapshot_source.fetch()
        if not self.alive:
            logging.info(f"Session closed; discarding snapshot of {len(raw_events)} events")
            return
        events = [decode_event(raw) for raw in raw_events]
        self.dispatch(SnapshotLoaded(events=tuple(events)))
        logging.info(f"Loaded {len(self.state.events)} events from snapshot")

    async def start(self) -> None:
        await self.load_snapshot()
        if not self.alive or self.feed is None:
            return
        self._producer = asyncio.create_task(self.feed.run(self.channel), name="errorkube-feed")
        self._consumer = asyncio.create_task(self.consume(), name="errorkube-consumer")

    def handle(self, signal) -> None:
        if isinstance(signal, FeedMessage):
            self.dispatch(EventReceived(event=decode_message(signal.data)))
        elif isinstance(signal, FeedOpened):
            logging.info("Live feed connection established.")
            self.dispatch(StreamOpened())
        elif isinstance(signal, FeedError):
            logging.error(f"Live feed error: {signal.reason}")
            self.dispatch(StreamErrored(reason=signal.reason))
        elif isinstance(signal, FeedClosed):
            logging.info("Live feed connection closed.")
            self.dispatch(StreamClosed())

    async def consume(self) -> None:
        while self.alive:
            signal = await self.channel.get()
            if not self.alive:
                break
            try:
                self.handle(signal)
            except Exception:
                logging.exception(f"Error handling live feed signal {type(signal).__name__}")
            if isinstance(signal, FeedClosed):
                break

    async def join(self) -> None:
        """Waits until the feed has been drained to its close signal."""
        if self._consumer is not None:
            with suppress(asyncio.CancelledError):
                await self._consumer

    async def close(self) -> None:
        if not self.alive:
            return
        self.dispatch(SessionClosed())
        for task in (self._producer, self._consumer):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logging.error(f"Task {task.get_name()} failed before close: {e}")
        logging.info("Session closed")
