"""
Shared fixtures: an in-memory stand-in for the subset of the Motor collection API the services use.
"""

import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from flashdeck.database.owner_collection import OwnerScopedCollection
from flashdeck.services.admission_gate import AdmissionGate
from flashdeck.services.workspace_service import WorkspaceService

_MISSING = object()


def _matches(document: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    for key, expected in (filter or {}).items():
        actual = document.get(key, _MISSING)
        if isinstance(expected, dict) and "$exists" in expected:
            if (actual is not _MISSING) != bool(expected["$exists"]):
                return False
            continue
        if actual is _MISSING:
            actual = None
        if actual != expected:
            return False
    return True


def _evaluate(document: Dict[str, Any], expression: Any) -> Any:
    """The few aggregation expressions the services use in pipeline updates."""
    if isinstance(expression, str) and expression.startswith("$"):
        return document.get(expression[1:])
    if isinstance(expression, dict) and "$not" in expression:
        (operand,) = expression["$not"]
        return not _evaluate(document, operand)
    return expression


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    def sort(self, key: str, direction: int = 1) -> "FakeCursor":
        self._documents = sorted(self._documents, key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        documents = [copy.deepcopy(doc) for doc in self._documents]
        return documents if length is None else documents[:length]


class FakeCollection:
    def __init__(self, name: str):
        self.name = name
        self.documents: List[Dict[str, Any]] = []

    async def find_one(self, filter: Optional[Dict[str, Any]] = None, *args, **kwargs):
        for doc in self.documents:
            if _matches(doc, filter):
                return copy.deepcopy(doc)
        return None

    def find(self, filter: Optional[Dict[str, Any]] = None, *args, **kwargs) -> FakeCursor:
        return FakeCursor([doc for doc in self.documents if _matches(doc, filter)])

    async def count_documents(self, filter: Optional[Dict[str, Any]] = None, *args, **kwargs) -> int:
        return sum(1 for doc in self.documents if _matches(doc, filter))

    async def insert_one(self, document: Dict[str, Any], *args, **kwargs) -> InsertOneResult:
        if any(doc["_id"] == document["_id"] for doc in self.documents):
            raise DuplicateKeyError(f"duplicate key: {document['_id']}")
        self.documents.append(copy.deepcopy(document))
        return InsertOneResult(document["_id"], True)

    async def update_one(self, filter: Dict[str, Any], update: Dict[str, Any], *args, **kwargs) -> UpdateResult:
        for doc in self.documents:
            if _matches(doc, filter):
                changes = update.get("$set", {})
                modified = any(doc.get(key, _MISSING) != value for key, value in changes.items())
                doc.update(copy.deepcopy(changes))
                return UpdateResult({"n": 1, "nModified": 1 if modified else 0}, True)
        return UpdateResult({"n": 0, "nModified": 0}, True)

    async def find_one_and_update(
        self, filter: Dict[str, Any], update, *args, return_document=ReturnDocument.BEFORE, **kwargs
    ):
        for doc in self.documents:
            if _matches(doc, filter):
                before = copy.deepcopy(doc)
                stages = update if isinstance(update, list) else [update]
                for stage in stages:
                    changes = {key: _evaluate(doc, value) for key, value in stage.get("$set", {}).items()}
                    doc.update(copy.deepcopy(changes))
                return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before
        return None

    async def delete_one(self, filter: Dict[str, Any], *args, **kwargs) -> DeleteResult:
        for index, doc in enumerate(self.documents):
            if _matches(doc, filter):
                del self.documents[index]
                return DeleteResult({"n": 1}, True)
        return DeleteResult({"n": 0}, True)


class FakeDatabase:
    """Mirrors the `DatabaseManager` collection accessors over `FakeCollection`s."""

    def __init__(self):
        self.collections: Dict[str, FakeCollection] = {}

    def get_collection(self, collection_name: str) -> FakeCollection:
        if collection_name not in self.collections:
            self.collections[collection_name] = FakeCollection(collection_name)
        return self.collections[collection_name]

    def get_owner_collection(self, collection_name: str, owner_id: str) -> OwnerScopedCollection:
        return OwnerScopedCollection(self.get_collection(collection_name), owner_id)


class FakeClock:
    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def workspace(fake_db):
    return WorkspaceService(database=fake_db, timeout=1.0)


@pytest.fixture
def gate(fake_db, clock):
    return AdmissionGate(database=fake_db, clock=clock, timeout=1.0)


@pytest.fixture
def sample_cards():
    return [{"question": "2+2", "answer": "4"}, {"question": "3+3", "answer": "6"}]
