import base64
import logging
from typing import Any, Dict, List, Optional

import httpx
from pymongo.errors import PyMongoError

from errorkube.config import settings

RawEvent = Dict[str, Any]


class ApiSnapshotSource:
    """One-shot fetch of the historical events from the events API."""

    def __init__(
        self,
        base_url: str = settings.API_BASE_URL,
        path: str = settings.SNAPSHOT_PATH,
        timeout: float = settings.SNAPSHOT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.path = path
        self.timeout = timeout
        self.transport = transport

    async def fetch(self) -> List[RawEvent]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                r = await client.get(self.path)
        except httpx.HTTPError as e:
            logging.error(f"Error fetching API events: {e}")
            return []

        if not r.is_success:
            logging.error(f"API Error: {r.status_code} - {r.reason_phrase}")
            return []

        try:
            data = r.json()
        except ValueError as e:
            logging.error(f"API returned invalid JSON: {e}")
            return []

        # an empty collection is encoded as null
        if data is None:
            return []
        if not isinstance(data, list):
            logging.error(f"API returned {type(data).__name__}, expected a list of events")
            return []
        return [ev for ev in data if isinstance(ev, dict)]


def serialize_event(doc: dict) -> RawEvent:
    """Converts a stored document into the events API wire shape."""
    data = dict(doc)
    data.pop("_id", None)
    payload = data.get("data")
    # raw JSON is stored as binary; the API serves it as {"Subtype", "Data"}
    if isinstance(payload, (bytes, bytearray)):
        data["data"] = {
            "Subtype": getattr(payload, "subtype", 0),
            "Data": base64.b64encode(bytes(payload)).decode("ascii"),
        }
    return data


class MongoSnapshotSource:
    """Reads the historical events straight from the events collection."""

    def __init__(self, collection):
        self.collection = collection

    async def fetch(self) -> List[RawEvent]:
        try:
            cursor = self.collection.find({}, projection={"_id": 0})
            return [serialize_event(doc) async for doc in cursor]
        except PyMongoError as e:
            logging.error(f"Error retrieving events: {e}")
            return []
