from __future__ import annotations

import json

import pytest

from shellasync.catalog import load_catalog
from shellasync.writer import AsyncWriter


def _fn(returns: str = "unknown", promise: bool = False) -> dict:
    return {"type": "function", "returnsPromise": promise, "returnType": returns}


CATALOG = {
    "types": {
        "Database": {
            "type": "Database",
            "hasAsyncChild": True,
            "attributes": {
                "getCollectionNames": _fn(promise=True),
                "getCollection": _fn("Collection"),
                "getSiblingDB": _fn("Database"),
                "getName": _fn(),
            },
        },
        "Collection": {
            "type": "Collection",
            "hasAsyncChild": True,
            "attributes": {
                "find": _fn("Cursor", promise=True),
                "insertOne": _fn("InsertOneResult", promise=True),
                "countDocuments": _fn(promise=True),
                "getName": _fn(),
            },
        },
        "Cursor": {
            "type": "Cursor",
            "hasAsyncChild": True,
            "attributes": {
                "toArray": _fn(promise=True),
                "limit": _fn("Cursor"),
                "sort": _fn("Cursor"),
            },
        },
        "InsertOneResult": {
            "type": "InsertOneResult",
            "hasAsyncChild": False,
            "attributes": {"insertedId": "unknown"},
        },
    },
    "scope": {
        "db": "Database",
        "print": _fn(),
        "use": _fn(promise=True),
    },
}


@pytest.fixture
def catalog() -> dict:
    return json.loads(json.dumps(CATALOG))


@pytest.fixture
def symbols(catalog):
    return load_catalog(catalog)


@pytest.fixture
def writer(symbols) -> AsyncWriter:
    return AsyncWriter(symbols=symbols)


@pytest.fixture
def catalog_file(tmp_path, catalog):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(catalog))
    return path
