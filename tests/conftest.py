"""Shared fixtures for tagcache tests."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import bson
import pytest
from bson.binary import Binary

from tagcache.backend.modules.cache.models.cache_entry_model import CacheEntryModel
from tagcache.backend.modules.cache.services.mongo_cache_backend import MongoCacheBackend
from tagcache.shared.modules.cache.models import cache_entry

_MISSING = object()


def _stored(value):
    """Mimic a BSON round trip: subtype 0 binaries come back as plain bytes."""
    if isinstance(value, Binary) and value.subtype == 0:
        return bytes(value)
    if isinstance(value, (list, tuple)):
        return [_stored(item) for item in value]
    if isinstance(value, dict):
        return {key: _stored(item) for key, item in value.items()}
    if isinstance(value, datetime):
        # BSON dates have millisecond precision
        return value.replace(microsecond=value.microsecond // 1000 * 1000)
    return value


def _eval(value, condition):
    if not (isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition)):
        return value is not _MISSING and value == _stored(condition)
    for op, arg in condition.items():
        arg = _stored(arg)
        if op == "$lt":
            ok = value is not _MISSING and value is not None and value < arg
        elif op == "$not":
            ok = not _eval(value, arg)
        elif op == "$all":
            ok = isinstance(value, list) and all(item in value for item in arg)
        elif op == "$in":
            items = value if isinstance(value, list) else [value]
            ok = any(item in items for item in arg)
        elif op == "$nin":
            items = value if isinstance(value, list) else [value]
            ok = not any(item in items for item in arg)
        else:
            raise NotImplementedError(op)
        if not ok:
            return False
    return True


class FakeCollection:
    """In-memory stand-in for the subset of pymongo.Collection used by the backend."""

    def __init__(self, name="cm_cache", db_name="cm_cache"):
        self.name = name
        self.database = SimpleNamespace(name=db_name)
        self.docs = {}
        self.indexes = []

    def _matching(self, query):
        # Anything the real driver cannot serialise must fail here too
        bson.encode(query)
        return [
            doc for doc in self.docs.values()
            if all(_eval(doc.get(key, _MISSING), cond) for key, cond in query.items())
        ]

    @staticmethod
    def _project(doc, projection):
        if not projection:
            return dict(doc)
        fields = [field for field, include in projection.items() if include]
        projected = {"_id": doc["_id"]}
        projected.update({field: doc[field] for field in fields if field in doc})
        return projected

    def create_index(self, keys, **kwargs):
        self.indexes.append((keys, kwargs))
        return "_".join(f"{field}_{direction}" for field, direction in keys)

    def replace_one(self, query, replacement, upsert=False):
        bson.encode(replacement)
        doc_id = query["_id"]
        matched = doc_id in self.docs
        if matched or upsert:
            doc = _stored(dict(replacement))
            doc["_id"] = doc_id
            self.docs[doc_id] = doc
        return SimpleNamespace(
            acknowledged=True,
            matched_count=int(matched),
            upserted_id=None if matched else doc_id,
        )

    def update_one(self, query, update):
        bson.encode(update)
        docs = self._matching(query)[:1]
        for doc in docs:
            doc.update(_stored(update["$set"]))
        return SimpleNamespace(acknowledged=True, matched_count=len(docs), modified_count=len(docs))

    def delete_one(self, query):
        docs = self._matching(query)[:1]
        for doc in docs:
            del self.docs[doc["_id"]]
        return SimpleNamespace(acknowledged=True, deleted_count=len(docs))

    def delete_many(self, query):
        docs = self._matching(query)
        for doc in docs:
            del self.docs[doc["_id"]]
        return SimpleNamespace(acknowledged=True, deleted_count=len(docs))

    def find_one(self, query, projection=None):
        docs = self._matching(query)
        return self._project(docs[0], projection) if docs else None

    def find(self, query, projection=None):
        return iter([self._project(doc, projection) for doc in self._matching(query)])

    def distinct(self, field):
        values = []
        for doc in self.docs.values():
            value = doc.get(field, _MISSING)
            if value is _MISSING:
                continue
            for item in value if isinstance(value, list) else [value]:
                if item not in values:
                    values.append(item)
        return values


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock(monkeypatch):
    """Freeze the time seen by the cache and let tests move it forward."""
    fake = FakeClock()
    monkeypatch.setattr(cache_entry, "utcnow", fake)
    return fake


@pytest.fixture
def collection():
    return FakeCollection()


def _client_for(collection):
    client = MagicMock()
    client.__getitem__.return_value.__getitem__.return_value = collection
    return client


@pytest.fixture
def client_for():
    return _client_for


@pytest.fixture
def backend(collection, clock):
    return MongoCacheBackend({"ensure_index": False}, client=_client_for(collection))


@pytest.fixture
def utf8_backend(collection, clock):
    return MongoCacheBackend({"ensure_index": False, "check_utf8": True}, client=_client_for(collection))


@pytest.fixture
def entry_model(collection, clock):
    return CacheEntryModel(collection)
