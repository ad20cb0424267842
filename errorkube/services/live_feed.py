"""Live feed: a WebSocket connection feeding an asyncio channel.

The producer (``LiveFeed.run``) puts one signal per connection event on the
queue; the consumer side drains it in order. Every run ends with exactly one
``FeedClosed``, so consumers can stop on it.
"""

import asyncio
from typing import Callable, Optional, Union

import websockets
from pydantic import BaseModel, ConfigDict
from websockets.exceptions import WebSocketException

from errorkube.config import settings


class _Signal(BaseModel):
    model_config = ConfigDict(frozen=True)

class FeedOpened(_Signal):
    pass

class FeedMessage(_Signal):
    data: Union[str, bytes]

class FeedError(_Signal):
    reason: str

class FeedClosed(_Signal):
    pass


FeedSignal = Union[FeedOpened, FeedMessage, FeedError, FeedClosed]


class LiveFeed:
    def __init__(self, url: str = settings.STREAM_URL, connect: Optional[Callable] = None):
        self.url = url
        self._connect = connect or websockets.connect

    async def run(self, channel: asyncio.Queue) -> None:
        try:
            async with self._connect(self.url) as ws:
                await channel.put(FeedOpened())
                async for message in ws:
                    await channel.put(FeedMessage(data=message))
        except asyncio.CancelledError:
            channel.put_nowait(FeedClosed())
            raise
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            await channel.put(FeedError(reason=f"{type(e).__name__}: {e}"))
        await channel.put(FeedClosed())
