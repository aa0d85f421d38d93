"""Shared fixtures: in-memory Motor-like database, clocks and Gemini responses."""

import datetime as dt
import os
import tempfile

# Logs des tests dans un dossier jetable (avant tout import de `app`)
os.environ.setdefault("LOGS_DIR", tempfile.mkdtemp(prefix="lostkings-logs-"))

import httpx
import pytest
from pymongo import DESCENDING
from pymongo.errors import OperationFailure

from app.db.document_store import DocumentStore
from app.models.challenge_record import ArchetypeEntries, ChallengeRecord
from app.services.journal.journal_service import JournalService

TEST_APP_ID = "test-app"
START_DATE = dt.date(2025, 11, 1)
GEMINI_URL = "https://gemini.test/v1beta/models/test:generateContent"


class FakeCursor:
    def __init__(self, collection, docs):
        self.collection = collection
        self.docs = docs

    async def to_list(self, length=None):
        if self.collection.db.fail_reads:
            raise OperationFailure("read refused")
        return [dict(doc) for doc in self.docs]


class FakeCollection:
    """Sous-ensemble de l'API Motor utilisé par le magasin de documents."""

    def __init__(self, name, db):
        self.name = name
        self.db = db
        self.docs = {}
        self.indexes = []

    def find(self, filter_query=None, sort=None):
        docs = [
            doc
            for doc in self.docs.values()
            if all(doc.get(field) == value for field, value in (filter_query or {}).items())
        ]
        for field, direction in reversed(sort or []):
            docs.sort(key=lambda doc: doc.get(field), reverse=direction == DESCENDING)
        return FakeCursor(self, docs)

    async def replace_one(self, filter_query, document, upsert=False):
        if self.name in self.db.fail_writes_on or self.db.fail_writes:
            raise OperationFailure("write refused")
        if filter_query["_id"] in self.docs or upsert:
            self.docs[filter_query["_id"]] = dict(document)

    async def create_index(self, keys, **options):
        self.indexes.append((keys, options))
        return options.get("name") or "_".join(f"{field}_{direction}" for field, direction in keys)


class FakeDatabase:
    def __init__(self):
        self.collections = {}
        self.fail_reads = False
        self.fail_writes = False
        self.fail_writes_on = set()
        self.ping_error = None

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name, self)
        return self.collections[name]

    async def command(self, name):
        if self.ping_error is not None:
            raise self.ping_error
        return {"ok": 1}


class FakeClock:
    """Horloge murale et monotone pilotables."""

    def __init__(self, moment):
        self.moment = moment
        self.mono = 0.0

    def now(self):
        return self.moment

    def monotonic(self):
        return self.mono

    def advance(self, seconds):
        self.mono += seconds


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def gemini_ok(text):
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


def make_record(owner_id="owner-1", day=3, timestamp=1762160400000, **entries):
    return ChallengeRecord(
        day=day,
        date=f"11/{day}/2025",
        entries=ArchetypeEntries(**entries),
        timestamp=timestamp,
        owner_id=owner_id,
    )


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def store(fake_db):
    return DocumentStore(fake_db)


@pytest.fixture
def journal(store):
    return JournalService(store, TEST_APP_ID)


@pytest.fixture
def clock():
    return FakeClock(dt.datetime(2025, 11, 3, 9, 30))


@pytest.fixture
def sleeper():
    return SleepRecorder()
