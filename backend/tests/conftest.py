from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import pytest
from bson import ObjectId

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.app.db import init  # noqa: E402
from backend.app.db.mongo import MongoConnectionManager  # noqa: E402
from backend.app.db.redis import RedisConnectionManager  # noqa: E402


def _sort_value(value: Any) -> tuple[bool, Any]:
    return (value is None, value)


def _matches_condition(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and any(key.startswith("$") for key in condition):
        for op, operand in condition.items():
            if op == "$gte" and not (value is not None and value >= operand):
                return False
            if op == "$gt" and not (value is not None and value > operand):
                return False
            if op == "$lt" and not (value is not None and value < operand):
                return False
            if op == "$ne" and value == operand:
                return False
            if op == "$in" and value not in operand:
                return False
        return True
    return value == condition


def _matches(doc: dict, query: dict) -> bool:
    return all(_matches_condition(doc.get(key), condition) for key, condition in query.items())


class _Result:
    def __init__(self, **kwargs: Any) -> None:
        self.__dict__.update(kwargs)


class FakeCursor:
    def __init__(self, docs: list[dict]) -> None:
        self._docs = docs
        self._limit: int | None = None

    def sort(self, key: str | list[tuple[str, int]], direction: int = 1) -> "FakeCursor":
        keys = [(key, direction)] if isinstance(key, str) else list(key)
        for field, order in reversed(keys):
            self._docs.sort(key=lambda doc: _sort_value(doc.get(field)), reverse=order < 0)
        return self

    def limit(self, n: int) -> "FakeCursor":
        self._limit = n
        return self

    def __aiter__(self):
        docs = self._docs if self._limit is None else self._docs[: self._limit]
        return _AsyncIter([dict(doc) for doc in docs])


class _AsyncIter:
    def __init__(self, items: list[dict]) -> None:
        self._items = iter(items)

    def __aiter__(self) -> "_AsyncIter":
        return self

    async def __anext__(self) -> dict:
        try:
            return next(self._items)
        except StopIteration:
            raise StopAsyncIteration from None


class FakeCollection:
    """테스트용 motor 컬렉션 (사용하는 연산만 구현)"""

    def __init__(self) -> None:
        self.docs: list[dict] = []
        self.fail_inserts_when: Any = None

    async def create_index(self, *_args: Any, **_kwargs: Any) -> None:
        return None

    async def insert_one(self, doc: dict) -> _Result:
        if self.fail_inserts_when is not None and self.fail_inserts_when(doc):
            raise RuntimeError("insert failed")
        stored = dict(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return _Result(inserted_id=stored["_id"])

    def find(self, query: dict | None = None) -> FakeCursor:
        return FakeCursor([doc for doc in self.docs if _matches(doc, query or {})])

    async def find_one(self, query: dict | None = None, sort: list[tuple[str, int]] | None = None) -> dict | None:
        cursor = self.find(query)
        if sort:
            cursor.sort(sort)
        async for doc in cursor:
            return doc
        return None

    async def count_documents(self, query: dict) -> int:
        return sum(1 for doc in self.docs if _matches(doc, query))

    def _apply_update(self, doc: dict, update: dict) -> None:
        for key, value in update.get("$set", {}).items():
            doc[key] = value
        for key, value in update.get("$inc", {}).items():
            doc[key] = doc.get(key, 0) + value

    async def update_one(self, query: dict, update: dict) -> _Result:
        for doc in self.docs:
            if _matches(doc, query):
                self._apply_update(doc, update)
                return _Result(matched_count=1, modified_count=1)
        return _Result(matched_count=0, modified_count=0)

    async def find_one_and_update(self, query: dict, update: dict, return_document: Any = None) -> dict | None:
        for doc in self.docs:
            if _matches(doc, query):
                self._apply_update(doc, update)
                return dict(doc)
        return None

    async def delete_one(self, query: dict) -> _Result:
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[index]
                return _Result(deleted_count=1)
        return _Result(deleted_count=0)


class FakeDatabase:
    def __init__(self) -> None:
        self._collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self._collections.setdefault(name, FakeCollection())


class FakeMongoClient:
    def __init__(self) -> None:
        self.db = FakeDatabase()

    def __getitem__(self, _name: str) -> FakeDatabase:
        return self.db

    def close(self) -> None:
        return None


class FakePubSub:
    def __init__(self, messages: list[dict]) -> None:
        self._messages = messages
        self.subscribed: list[str] = []
        self.closed = False

    async def subscribe(self, channel: str) -> None:
        self.subscribed.append(channel)

    async def unsubscribe(self, channel: str) -> None:
        self.subscribed.remove(channel)

    async def listen(self):
        for message in self._messages:
            yield message

    async def aclose(self) -> None:
        self.closed = True


class FakeRedis:
    def __init__(self) -> None:
        self.published: list[tuple[str, dict]] = []
        self.pending_messages: list[dict] = []
        self.last_pubsub: FakePubSub | None = None

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, json.loads(message)))
        return 1

    def pubsub(self) -> FakePubSub:
        self.last_pubsub = FakePubSub(self.pending_messages)
        return self.last_pubsub

    async def close(self) -> None:
        return None


@pytest.fixture
def fake_mongo_client() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def fake_db(fake_mongo_client: FakeMongoClient) -> FakeDatabase:
    return fake_mongo_client.db


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture(autouse=True)
def stub_infrastructure(
    monkeypatch: pytest.MonkeyPatch, fake_mongo_client: FakeMongoClient, fake_redis: FakeRedis
) -> None:
    """MongoDB/Redis 연결을 인메모리 stub으로 대체하는 fixture"""

    async def _noop_ensure_indexes(_db: Any) -> None:
        return None

    async def _noop_close(cls: type) -> None:
        return None

    monkeypatch.setattr(
        MongoConnectionManager,
        "get_client",
        classmethod(lambda cls: fake_mongo_client),
    )
    monkeypatch.setattr(
        RedisConnectionManager,
        "get_client",
        classmethod(lambda cls: fake_redis),
    )
    monkeypatch.setattr(MongoConnectionManager, "close", classmethod(lambda cls: _noop_close(cls)))
    monkeypatch.setattr(RedisConnectionManager, "close", classmethod(lambda cls: _noop_close(cls)))
    monkeypatch.setattr(init, "ensure_indexes", _noop_ensure_indexes)


@pytest.fixture
def seed_badges(fake_db: FakeDatabase):
    """배지 카탈로그를 fake DB에 넣고 이름 -> ID 매핑을 반환"""

    def _seed(*names: str) -> dict[str, str]:
        ids: dict[str, str] = {}
        for name in names:
            badge_id = ObjectId()
            fake_db["badges"].docs.append({"_id": badge_id, "name": name, "description": f"{name} badge"})
            ids[name] = str(badge_id)
        return ids

    return _seed
