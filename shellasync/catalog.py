"""
Loader for shell API type catalogs.

A catalog is a mapping (usually read from JSON) with two sections::

    {
      "types": {
        "Database": {"type": "Database", "hasAsyncChild": true,
                     "attributes": {"getCollectionNames": {"type": "function",
                                                           "returnsPromise": true,
                                                           "returnType": "unknown"}}},
        ...
      },
      "scope": {"db": "Database", "print": {"type": "function", "returnType": "unknown"}}
    }

String values anywhere a type is expected name a registry entry. Object types
are created before their attributes are filled, so types may refer to each
other (and to themselves) in any order.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import CatalogError
from .symbols import SymbolTable
from .types import FUNCTION_NAME, UNKNOWN, UNKNOWN_NAME, FunctionType, ObjectType, ShellType, TypeRef

logger = logging.getLogger(__name__)

# (attribute mapping to fill or None, attribute name, registry name, location)
_Pending = List[Tuple[Optional[Dict[str, ShellType]], str, str, str]]


def load_catalog(catalog: Mapping[str, Any]) -> SymbolTable:
    if not isinstance(catalog, Mapping):
        raise CatalogError("catalog must be an object with 'types' and 'scope' sections")
    type_descs = catalog.get("types", {})
    scope_descs = catalog.get("scope", {})
    if not isinstance(type_descs, Mapping):
        raise CatalogError("catalog 'types' must be an object")
    if not isinstance(scope_descs, Mapping):
        raise CatalogError("catalog 'scope' must be an object")

    registry: Dict[str, ShellType] = {UNKNOWN_NAME: UNKNOWN}
    pending: _Pending = []
    # Named object types first, so attribute references can be resolved afterwards.
    shells: Dict[str, Tuple[ObjectType, Mapping[str, Any]]] = {}
    for name, desc in type_descs.items():
        _check_desc(desc, f"types.{name}")
        if desc.get("type") == FUNCTION_NAME:
            continue
        shells[name] = (_new_object(desc, f"types.{name}"), desc)
        registry[name] = shells[name][0]
    for name, desc in type_descs.items():
        if desc.get("type") == FUNCTION_NAME:
            registry[name] = _build_function(desc, registry, pending, f"types.{name}")
    for name, (obj, desc) in shells.items():
        _fill_attributes(obj, desc, registry, pending, f"types.{name}")

    scope: Dict[str, TypeRef] = {}
    for ident, desc in scope_descs.items():
        if isinstance(desc, str):
            _require_name(desc, registry, f"scope.{ident}")
            scope[ident] = desc
        else:
            scope[ident] = _build(desc, registry, pending, f"scope.{ident}")

    for attributes, attr, ref, where in pending:
        _require_name(ref, registry, where)
        if attributes is not None:
            attributes[attr] = registry[ref]

    logger.debug("loaded catalog with %d types and %d scope entries", len(registry), len(scope))
    return SymbolTable(scope, registry)


def load_catalog_file(path: Union[str, Path]) -> SymbolTable:
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except OSError as exc:
        raise CatalogError(f"cannot read catalog {path}: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise CatalogError(f"{path}: invalid JSON at line {exc.lineno}: {exc.msg}") from exc
    return load_catalog(data)


def _check_desc(desc: Any, where: str) -> None:
    if not isinstance(desc, Mapping):
        raise CatalogError(f"{where}: type description must be an object or a type name")
    if not isinstance(desc.get("type"), str):
        raise CatalogError(f"{where}: missing 'type'")


def _new_object(desc: Mapping[str, Any], where: str) -> ObjectType:
    flag = desc.get("hasAsyncChild", False)
    if not isinstance(flag, bool):
        raise CatalogError(f"{where}: 'hasAsyncChild' must be a boolean")
    return ObjectType(name=desc["type"], attributes={}, has_async_child=flag)


def _build(desc: Any, registry: Mapping[str, ShellType], pending: _Pending, where: str) -> ShellType:
    _check_desc(desc, where)
    if desc["type"] == FUNCTION_NAME:
        return _build_function(desc, registry, pending, where)
    obj = _new_object(desc, where)
    _fill_attributes(obj, desc, registry, pending, where)
    return obj


def _build_function(
    desc: Mapping[str, Any], registry: Mapping[str, ShellType], pending: _Pending, where: str
) -> FunctionType:
    promise = desc.get("returnsPromise", False)
    if not isinstance(promise, bool):
        raise CatalogError(f"{where}: 'returnsPromise' must be a boolean")
    ret = desc.get("returnType", UNKNOWN_NAME)
    if isinstance(ret, str):
        # Kept as a name; the symbol table resolves it when the call is typed.
        pending.append((None, "returnType", ret, f"{where}.returnType"))
        return_type: TypeRef = ret
    else:
        return_type = _build(ret, registry, pending, f"{where}.returnType")
    return FunctionType(return_type=return_type, returns_promise=promise)


def _fill_attributes(
    obj: ObjectType,
    desc: Mapping[str, Any],
    registry: Mapping[str, ShellType],
    pending: _Pending,
    where: str,
) -> None:
    attrs = desc.get("attributes", {})
    if not isinstance(attrs, Mapping):
        raise CatalogError(f"{where}: 'attributes' must be an object")
    target = obj.attributes
    for attr, value in attrs.items():
        if isinstance(value, str):
            pending.append((target, attr, value, f"{where}.{attr}"))
        else:
            target[attr] = _build(value, registry, pending, f"{where}.{attr}")


def _require_name(name: str, registry: Mapping[str, ShellType], where: str) -> None:
    if name not in registry:
        raise CatalogError(f"{where}: unknown type '{name}'")
