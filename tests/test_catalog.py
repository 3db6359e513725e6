from __future__ import annotations

import pytest

from shellasync.catalog import load_catalog, load_catalog_file
from shellasync.errors import CatalogError
from shellasync.types import UNKNOWN, FunctionType, ObjectType, type_name


def test_registry_and_scope(symbols):
    assert set(symbols.types) >= {"Database", "Collection", "Cursor", "unknown"}
    db = symbols.lookup_type("db")
    assert isinstance(db, ObjectType)
    assert db.has_async_child
    find = symbols.types["Collection"].attributes["find"]
    assert isinstance(find, FunctionType)
    assert find.returns_promise
    assert find.return_type == "Cursor"


def test_named_attributes_resolve_to_registry_types(symbols):
    result = symbols.types["InsertOneResult"]
    assert result.attributes["insertedId"] is UNKNOWN


def test_inline_return_type():
    table = load_catalog(
        {
            "scope": {
                "connect": {
                    "type": "function",
                    "returnsPromise": True,
                    "returnType": {"type": "Session", "hasAsyncChild": True, "attributes": {}},
                }
            }
        }
    )
    fn = table.lookup_type("connect")
    assert type_name(table.resolve(fn.return_type)) == "Session"


def test_self_referencing_types():
    table = load_catalog(
        {"types": {"Node": {"type": "Node", "attributes": {"next": "Node"}}}, "scope": {"head": "Node"}}
    )
    node = table.types["Node"]
    assert node.attributes["next"] is node


def test_function_entries_in_registry():
    table = load_catalog({"types": {"Fn": {"type": "function", "returnsPromise": True}}, "scope": {"f": "Fn"}})
    fn = table.lookup_type("f")
    assert isinstance(fn, FunctionType)
    assert fn.return_type == "unknown"


@pytest.mark.parametrize(
    "catalog, message",
    [
        ([], "must be an object"),
        ({"types": []}, "'types' must be an object"),
        ({"scope": {"db": "Missing"}}, "unknown type 'Missing'"),
        ({"types": {"A": {"attributes": {}}}}, "missing 'type'"),
        ({"types": {"A": {"type": "A", "hasAsyncChild": "yes"}}}, "hasAsyncChild"),
        ({"types": {"A": {"type": "A", "attributes": {"b": "Nope"}}}}, "types.A.b"),
        ({"scope": {"f": {"type": "function", "returnType": "Nope"}}}, "returnType"),
        ({"scope": {"f": {"type": "function", "returnsPromise": 1}}}, "returnsPromise"),
        ({"scope": {"x": 3}}, "scope.x"),
    ],
)
def test_malformed_catalogs(catalog, message):
    with pytest.raises(CatalogError, match=message):
        load_catalog(catalog)


def test_load_from_file(catalog_file):
    table = load_catalog_file(catalog_file)
    assert type_name(table.lookup_type("db")) == "Database"


def test_load_from_bad_file(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(CatalogError, match="invalid JSON"):
        load_catalog_file(bad)
    with pytest.raises(CatalogError, match="cannot read"):
        load_catalog_file(tmp_path / "missing.json")
