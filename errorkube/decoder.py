import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional, Union

from errorkube.models import Event, lookup


def decode_payload(encoded: str) -> Union[Dict[str, Any], str]:
    """Decodes a base64 ``Data`` blob.

    Returns the parsed JSON object, the decoded text when it is not a JSON
    object, or the encoded string itself when the base64 is malformed.
    """
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, ValueError, TypeError) as e:
        logging.warning(f"Error decoding event payload: {e}")
        return encoded

    try:
        parsed = json.loads(decoded)
    except json.JSONDecodeError as e:
        logging.warning(f"Error parsing decoded string: {e}")
        return decoded

    if not isinstance(parsed, dict):
        logging.warning(f"Decoded payload is a {type(parsed).__name__}, not an object")
        return decoded
    return parsed


def event_identity(body: Any, uid: Any) -> Optional[str]:
    # metadata.uid first, then the record's own uid; empty values fall through
    for candidate in (lookup(body, "metadata", "uid"), uid):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def decode_event(raw: Dict[str, Any]) -> Event:
    uid = raw.get("uid")
    body = raw.get("data", raw)

    if isinstance(body, dict) and "Data" in body:
        body = decode_payload(body["Data"])
    if not isinstance(body, (dict, str)):
        body = json.dumps(body, default=str)

    return Event(
        identity=event_identity(body, uid),
        uid=uid if isinstance(uid, str) else None,
        body=body,
    )


def decode_message(message: Union[str, bytes]) -> Event:
    """Decodes one live-feed message (UTF-8 JSON text)."""
    if isinstance(message, bytes):
        message = message.decode("utf-8", errors="replace")

    try:
        raw = json.loads(message)
    except json.JSONDecodeError as e:
        logging.warning(f"Error parsing stream message: {e}")
        return Event(body=message)

    if not isinstance(raw, dict):
        logging.warning(f"Stream message is a {type(raw).__name__}, not an object")
        return Event(body=message)
    return decode_event(raw)
