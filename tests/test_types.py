from __future__ import annotations

from shellasync.types import (
    UNKNOWN,
    FunctionType,
    ObjectType,
    has_async_child,
    is_database,
    is_function,
    returns_promise,
    type_name,
)


def test_unknown_is_never_async():
    assert not has_async_child(UNKNOWN)
    assert not is_function(UNKNOWN)
    assert not returns_promise(UNKNOWN)
    assert UNKNOWN.attributes is None
    assert type_name(UNKNOWN) == "unknown"


def test_function_queries():
    fn = FunctionType(return_type="Cursor", returns_promise=True)
    assert is_function(fn)
    assert returns_promise(fn)
    assert not has_async_child(fn)
    assert type_name(fn) == "function"
    assert not returns_promise(FunctionType(return_type=UNKNOWN))


def test_object_types_compare_by_name_and_flag():
    a = ObjectType(name="Collection", attributes={"find": UNKNOWN}, has_async_child=True)
    b = ObjectType(name="Collection", attributes={}, has_async_child=True)
    assert a == b
    assert a != ObjectType(name="Collection", has_async_child=False)
    assert hash(a) == hash(b)
    assert type_name(a) == "Collection"


def test_is_database():
    assert is_database(ObjectType(name="Database", has_async_child=True))
    assert not is_database(ObjectType(name="Collection", has_async_child=True))
    assert not is_database(UNKNOWN)


def test_type_name_of_missing_type():
    assert type_name(None) == "unknown"
