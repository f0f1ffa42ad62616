from types import SimpleNamespace
from typing import List

import pytest
from bson import ObjectId

from vibecheck.models.event import ClientEnvironment, EventRecord
from vibecheck.models.user import BodyType, StyleVibe, UserProfile
from vibecheck.services.event_transport import EventTransport
from vibecheck.services.local_storage import EventLogStore, MemoryKeyValueStorage
from vibecheck.services.tracking_service import TrackingService

EVENT_LOG_KEY = "desidrip_extraction_v1"


class RecordingTransport(EventTransport):
    """Remembers which delivery path each record took"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[EventRecord] = []
        self.durable: List[EventRecord] = []

    def send(self, record):
        if self.fail:
            raise ConnectionError("collector unreachable")
        self.sent.append(record)

    def send_durable(self, record):
        if self.fail:
            raise ConnectionError("collector unreachable")
        self.durable.append(record)


def fixed_environment() -> ClientEnvironment:
    return ClientEnvironment(
        platform="Linux x86_64",
        user_agent="pytest",
        language="en-US",
        screen_resolution="1920x1080",
        connection_type="4g",
        is_pwa=False,
    )


@pytest.fixture
def storage():
    return MemoryKeyValueStorage()


@pytest.fixture
def store(storage):
    return EventLogStore(storage, EVENT_LOG_KEY)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def tracker(store, transport):
    return TrackingService(store, transport, environment=fixed_environment)


@pytest.fixture
def user():
    return UserProfile(
        id="u1",
        name="Alex",
        email="a@x.com",
        body_type=BodyType.ATHLETIC,
        style_vibe=StyleVibe.STREETWEAR,
    )


# ============= FAKE MOTOR COLLECTION =============

def _matches(doc: dict, query: dict) -> bool:
    for key, cond in query.items():
        value = doc.get(key)
        if isinstance(cond, dict):
            if "$gte" in cond and not (value is not None and value >= cond["$gte"]):
                return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self._docs = list(docs)

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda d: d.get(key), reverse=direction == -1)
        return self

    def skip(self, n):
        self._docs = self._docs[n:]
        return self

    def limit(self, n):
        self._docs = self._docs[:n]
        return self

    async def to_list(self, length=None):
        docs = self._docs if length is None else self._docs[:length]
        return [dict(d) for d in docs]


class FakeCollection:
    def __init__(self):
        self.docs: List[dict] = []

    async def insert_one(self, doc):
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, query=None, projection=None):
        return FakeCursor(d for d in self.docs if _matches(d, query or {}))


class FakeDatabase:
    def __init__(self):
        self.events = FakeCollection()
