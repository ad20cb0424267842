import base64
import datetime as dt
import json

import pytest

from errorkube.decoder import decode_event

T = dt.datetime(2024, 5, 1, 12, 0, 0, tzinfo=dt.timezone.utc)


def iso(ts: dt.datetime) -> str:
    return ts.strftime("%Y-%m-%dT%H:%M:%SZ")


def k8s_event(uid, namespace="default", kind="Pod", reason="BackOff", created=T, **extra):
    body = {
        "metadata": {
            "uid": uid,
            "name": f"{kind.lower()}-{uid}",
            "namespace": namespace,
            "creationTimestamp": iso(created) if isinstance(created, dt.datetime) else created,
        },
        "involvedObject": {"kind": kind, "name": f"{kind.lower()}-{uid}"},
        "reason": reason,
        "message": f"{reason} happened",
        "type": "Warning",
        "firstTimestamp": iso(created) if isinstance(created, dt.datetime) else created,
        "lastTimestamp": iso(created) if isinstance(created, dt.datetime) else created,
        "reportingComponent": "kubelet",
        "source": {"component": "kubelet", "host": "node-1"},
    }
    body.update(extra)
    return body


def encoded_record(body, uid=None):
    """Wire shape served by the events API: base64 JSON under data.Data."""
    blob = base64.b64encode(json.dumps(body).encode("utf-8")).decode("ascii")
    if uid is None:
        uid = body.get("metadata", {}).get("uid")
    return {"uid": uid, "data": {"Subtype": 0, "Data": blob}}


@pytest.fixture
def make_event():
    def _make(uid, **kwargs):
        return decode_event(encoded_record(k8s_event(uid, **kwargs)))
    return _make


@pytest.fixture
def now():
    return T
