from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any

import pytest
from bson import ObjectId

from onupdate import disable_tracing
from onupdate.core.connection import _databases


def _matches(document: dict[str, Any], filter: dict[str, Any] | None) -> bool:
    return all(document.get(key) == value for key, value in (filter or {}).items())


class InMemoryCollection:
    """The subset of the async collection API that Document uses."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.documents: list[dict[str, Any]] = []
        self.updates: list[tuple[dict[str, Any], dict[str, Any]]] = []

    async def insert_one(self, document: dict[str, Any]) -> SimpleNamespace:
        stored = copy.deepcopy(document)
        stored.setdefault("_id", ObjectId())
        self.documents.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    async def find_one(self, filter: dict[str, Any] | None = None) -> dict[str, Any] | None:
        for document in self.documents:
            if _matches(document, filter):
                return copy.deepcopy(document)
        return None

    async def update_one(self, filter: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        self.updates.append((filter, update))
        for document in self.documents:
            if _matches(document, filter):
                document.update(copy.deepcopy(update.get("$set", {})))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, filter: dict[str, Any]) -> SimpleNamespace:
        for index, document in enumerate(self.documents):
            if _matches(document, filter):
                del self.documents[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class InMemoryDatabase:
    def __init__(self, name: str) -> None:
        self.name = name
        self.collections: dict[str, InMemoryCollection] = {}

    def __getitem__(self, name: str) -> InMemoryCollection:
        if name not in self.collections:
            self.collections[name] = InMemoryCollection(name)
        return self.collections[name]


@pytest.fixture
def memory_db(monkeypatch):
    """Register an in-memory database as the default connection."""
    db = InMemoryDatabase("onupdate_test")
    monkeypatch.setitem(_databases, "default", db)
    return db


@pytest.fixture(autouse=True)
def reset_tracing():
    yield
    disable_tracing()
