"""
Shared fixtures: an in-memory stand-in for the MongoDB database.

``FakeDatabase`` implements the part of the PyMongo asynchronous API
the service uses (``find``/``find_one``/``insert_one``/``update_one``/
``delete_one``/``aggregate``/``create_index`` and the ``ping``
command) together with
the aggregation stages it sends: ``$match``, ``$lookup`` (both the
``localField`` and the ``let``/``pipeline`` form), ``$unset`` and
``$group`` with ``$avg``.  Setting ``collection.fail`` makes every
call on that collection raise the given exception.
"""

from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from people_api.app.core.db import Collections, get_collections, get_database
from people_api.app.main import create_app


class FakeCursor:
    def __init__(self, documents: List[dict]) -> None:
        self._documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[dict]:
        docs = copy.deepcopy(self._documents)
        return docs if length is None else docs[:length]


def _matches(document: dict, query: Optional[dict]) -> bool:
    return all(document.get(key) == value for key, value in (query or {}).items())


def _evaluate(expr: Any, document: dict, variables: Dict[str, Any]) -> Any:
    if isinstance(expr, str) and expr.startswith("$$"):
        return variables[expr[2:]]
    if isinstance(expr, str) and expr.startswith("$"):
        return document.get(expr[1:])
    if isinstance(expr, dict) and "$ifNull" in expr:
        value, default = expr["$ifNull"]
        result = _evaluate(value, document, variables)
        return default if result is None else result
    if isinstance(expr, dict) and "$in" in expr:
        needle, haystack = (_evaluate(e, document, variables) for e in expr["$in"])
        if not isinstance(haystack, list):
            raise ValueError("$in requires an array as a second argument")
        return needle in haystack
    return expr


class FakeCollection:
    def __init__(self, name: str, database: "FakeDatabase") -> None:
        self.name = name
        self.database = database
        self.documents: List[dict] = []
        self.fail: Optional[Exception] = None
        self.indexes: List[list] = []

    def _check(self) -> None:
        if self.fail is not None:
            raise self.fail

    def seed(self, **fields: Any) -> ObjectId:
        document = {"_id": ObjectId(), **fields}
        self.documents.append(document)
        return document["_id"]

    def get(self, oid: ObjectId) -> Optional[dict]:
        return next((d for d in self.documents if d["_id"] == oid), None)

    def find(self, query: Optional[dict] = None) -> FakeCursor:
        self._check()
        return FakeCursor([d for d in self.documents if _matches(d, query)])

    async def find_one(self, query: dict, projection: Optional[dict] = None) -> Optional[dict]:
        self._check()
        found = next((d for d in self.documents if _matches(d, query)), None)
        return copy.deepcopy(found)

    async def insert_one(self, document: dict) -> SimpleNamespace:
        self._check()
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def update_one(self, query: dict, update: dict) -> SimpleNamespace:
        self._check()
        for document in self.documents:
            if _matches(document, query):
                for key, value in update.get("$set", {}).items():
                    document[key] = copy.deepcopy(value)
                for key, value in update.get("$push", {}).items():
                    document.setdefault(key, []).append(value)
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, query: dict) -> SimpleNamespace:
        self._check()
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                del self.documents[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def create_index(self, keys: list) -> str:
        self._check()
        self.indexes.append(keys)
        return "_".join(f"{field}_{direction}" for field, direction in keys)

    async def aggregate(self, pipeline: List[dict]) -> FakeCursor:
        self._check()
        return FakeCursor(self._run(copy.deepcopy(self.documents), pipeline, {}))

    def _run(self, documents: List[dict], pipeline: List[dict], variables: Dict[str, Any]) -> List[dict]:
        for stage in pipeline:
            (operator, spec), = stage.items()
            if operator == "$match":
                if "$expr" in spec:
                    documents = [d for d in documents if _evaluate(spec["$expr"], d, variables)]
                else:
                    documents = [d for d in documents if _matches(d, spec)]
            elif operator == "$lookup":
                foreign = self.database[spec["from"]]
                for document in documents:
                    if "localField" in spec:
                        local = document.get(spec["localField"])
                        joined = [
                            copy.deepcopy(f)
                            for f in foreign.documents
                            if f.get(spec["foreignField"]) == local
                        ]
                    else:
                        bound = {
                            name: _evaluate(expr, document, variables)
                            for name, expr in spec.get("let", {}).items()
                        }
                        joined = foreign._run(copy.deepcopy(foreign.documents), spec["pipeline"], bound)
                    document[spec["as"]] = joined
            elif operator == "$unset":
                for document in documents:
                    for field in spec:
                        document.pop(field, None)
            elif operator == "$group":
                if not documents:
                    return []
                row = {"_id": spec["_id"]}
                for name, accumulator in spec.items():
                    if name == "_id":
                        continue
                    field = accumulator["$avg"][1:]
                    values = [
                        d[field]
                        for d in documents
                        if isinstance(d.get(field), (int, float)) and not isinstance(d.get(field), bool)
                    ]
                    row[name] = sum(values) / len(values) if values else None
                documents = [row]
            else:
                raise NotImplementedError(operator)
        return documents


class FakeDatabase:
    name = "people_test"

    def __init__(self) -> None:
        self._collections: Dict[str, FakeCollection] = {}
        self.reachable = True

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name, self)
        return self._collections[name]

    async def command(self, name: str) -> dict:
        if not self.reachable:
            raise ServerSelectionTimeoutError("no servers available")
        return {"ok": 1.0}


@pytest.fixture()
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture()
def people(database: FakeDatabase) -> FakeCollection:
    return database["people"]


@pytest.fixture()
def pets(database: FakeDatabase) -> FakeCollection:
    return database["pets"]


@pytest.fixture()
def cars(database: FakeDatabase) -> FakeCollection:
    return database["cars"]


@pytest.fixture()
def client(database: FakeDatabase) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_collections] = lambda: Collections.from_database(database)
    return TestClient(app)
