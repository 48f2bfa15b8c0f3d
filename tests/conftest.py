"""
Unit-test fixtures.

``FakeFirestoreClient`` implements the slice of the async Firestore client
API the models use (collection/document refs, ``where(filter=...)``,
``order_by``, ``limit``, ``offset``, ``select``, ``stream`` and ``get``),
keeping documents in plain dicts. Integration tests against the emulator live
in ``tests/integration``.
"""
import copy
import itertools
import random
from typing import Any, Dict, List, Optional
from urllib.parse import unquote, urlparse

import pytest
import pytest_asyncio
from google.api_core.exceptions import NotFound

from social_scheduler import BlobStore, FirestoreDB, ImageFile, Scheduler, init_scheduler


# ---------------------------------------------------------------------------
# In-memory Firestore
# ---------------------------------------------------------------------------
_OPS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
    "in": lambda a, b: a in b,
    "not-in": lambda a, b: a not in b,
}


class FakeSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict[str, Any]], reference=None):
        self.id = doc_id
        self._data = data
        self.reference = reference

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, client: "FakeFirestoreClient", collection: str, doc_id: str):
        self._client = client
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self) -> Dict[str, Dict[str, Any]]:
        return self._client.data.setdefault(self._collection, {})

    async def get(self):
        self._client.calls.append(("get", self._collection, self.id))
        return FakeSnapshot(self.id, self._docs.get(self.id), self)

    async def set(self, data):
        self._client.calls.append(("set", self._collection, self.id))
        self._docs[self.id] = copy.deepcopy(data)

    async def update(self, data):
        self._client.calls.append(("update", self._collection, self.id))
        if self.id in self._client.fail_updates_for:
            raise RuntimeError(f"simulated failure updating {self.id}")
        if self.id not in self._docs:
            raise NotFound(f"No document to update: {self._collection}/{self.id}")
        self._docs[self.id].update(copy.deepcopy(data))

    async def delete(self):
        self._client.calls.append(("delete", self._collection, self.id))
        self._docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, client, collection, filters=(), orders=(), limit=None, offset=None):
        self._client = client
        self._collection = collection
        self._filters = tuple(filters)
        self._orders = tuple(orders)
        self._limit = limit
        self._offset = offset

    def _copy(self, **changes):
        params = dict(
            filters=self._filters, orders=self._orders,
            limit=self._limit, offset=self._offset,
        )
        params.update(changes)
        return FakeQuery(self._client, self._collection, **params)

    def where(self, field_path=None, op_string=None, value=None, *, filter=None):
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return self._copy(filters=self._filters + ((field_path, op_string, value),))

    def order_by(self, field_path, direction="ASCENDING"):
        return self._copy(orders=self._orders + ((field_path, str(direction)),))

    def limit(self, count):
        return self._copy(limit=count)

    def offset(self, count):
        return self._copy(offset=count)

    def select(self, field_paths):
        return self

    def _matches(self, data) -> bool:
        for field_path, op_string, value in self._filters:
            if field_path not in data:
                return False
            if not _OPS[op_string](data[field_path], value):
                return False
        return True

    def _results(self) -> List[FakeSnapshot]:
        docs = self._client.data.get(self._collection, {})
        rows = [(doc_id, data) for doc_id, data in docs.items() if self._matches(data)]
        for field_path, direction in reversed(self._orders):
            rows = [row for row in rows if field_path in row[1]]
            rows.sort(key=lambda row: row[1][field_path], reverse=direction == "DESCENDING")
        if self._offset:
            rows = rows[self._offset:]
        if self._limit is not None:
            rows = rows[: self._limit]
        return [
            FakeSnapshot(doc_id, data, FakeDocumentRef(self._client, self._collection, doc_id))
            for doc_id, data in rows
        ]

    async def stream(self):
        self._client.calls.append(("query", self._collection, self._filters))
        for snapshot in self._results():
            yield snapshot

    async def get(self):
        return self._results()


class FakeCollection(FakeQuery):
    def __init__(self, client, name):
        super().__init__(client, name)
        self.name = name

    def document(self, doc_id: Optional[str] = None) -> FakeDocumentRef:
        if doc_id is None:
            doc_id = f"doc{next(self._client.ids):04d}"
        return FakeDocumentRef(self._client, self.name, doc_id)


class FakeFirestoreClient:
    def __init__(self):
        self.data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.ids = itertools.count(1)
        self.fail_updates_for = set()

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def docs(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self.data.get(collection, {})


# ---------------------------------------------------------------------------
# In-memory blob store
# ---------------------------------------------------------------------------
class MemoryBlobStore(BlobStore):
    base_url = "https://blobs.example.test/bucket/"

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.deleted: List[str] = []
        self.fail_deletes = False
        self.fail_uploads = False

    async def upload(self, path, content, content_type):
        if self.fail_uploads:
            raise RuntimeError("simulated upload failure")
        self.objects[path] = content
        self.content_types[path] = content_type

    async def get_url(self, path):
        return f"{self.base_url}{path}?alt=media"

    async def delete(self, path):
        if self.fail_deletes:
            raise RuntimeError("simulated delete failure")
        if path not in self.objects:
            raise KeyError(path)
        del self.objects[path]
        self.deleted.append(path)

    def path_from_url(self, url):
        return unquote(urlparse(url).path).split("/bucket/", 1)[1]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def fake_client():
    return FakeFirestoreClient()


@pytest.fixture
def firestore_db(fake_client):
    db = FirestoreDB.__new__(FirestoreDB)
    db.project_id = "test-project"
    db.database = None
    db.credentials = None
    db._emulator_host = None
    db.client = fake_client
    return db


@pytest.fixture
def blobs():
    return MemoryBlobStore()


@pytest.fixture
def scheduler(firestore_db, blobs):
    init_scheduler(firestore_db)
    return Scheduler(firestore_db, blobs, rng=random.Random(7))


@pytest.fixture
def image():
    return ImageFile(filename="summer promo.png", content=b"\x89PNG fake", content_type="image/png")


@pytest_asyncio.fixture
async def client_with_calendar(scheduler):
    """A client owning one "Instagram" calendar; returns (client_id, calendar_id)."""
    client_id = await scheduler.clients.create_client("Padaria Central", code="CLI1234")
    calendar_id = await scheduler.calendars.create_calendar(client_id, "Instagram", "#E1306C")
    return client_id, calendar_id
