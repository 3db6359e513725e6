from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

DATABASE_TYPE = "Database"
COLLECTION_TYPE = "Collection"
UNKNOWN_NAME = "unknown"
FUNCTION_NAME = "function"


class ShellType:
    """Base of the nominal shell API types attached to syntax nodes."""

    __slots__ = ()

    @property
    def type(self) -> str:
        raise NotImplementedError


# A type reference is either a concrete type or the name of a registry entry.
TypeRef = Union[ShellType, str]


@dataclass(frozen=True)
class UnknownType(ShellType):
    @property
    def type(self) -> str:
        return UNKNOWN_NAME

    @property
    def attributes(self) -> Optional[Mapping[str, ShellType]]:
        return None

    @property
    def has_async_child(self) -> bool:
        return False

    def __str__(self) -> str:
        return UNKNOWN_NAME


@dataclass(frozen=True)
class FunctionType(ShellType):
    return_type: TypeRef
    returns_promise: bool = False

    @property
    def type(self) -> str:
        return FUNCTION_NAME

    @property
    def attributes(self) -> Optional[Mapping[str, ShellType]]:
        return None

    @property
    def has_async_child(self) -> bool:
        return False

    def __str__(self) -> str:
        ret = self.return_type if isinstance(self.return_type, str) else str(self.return_type)
        prefix = "async " if self.returns_promise else ""
        return f"{prefix}function<{ret}>"


@dataclass(frozen=True)
class ObjectType(ShellType):
    name: str
    # Attributes are filled in by the catalog loader and never change afterwards;
    # identity of a nominal type is its name and flag.
    attributes: Optional[Mapping[str, ShellType]] = field(default=None, compare=False, hash=False)
    has_async_child: bool = False

    @property
    def type(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name


UNKNOWN = UnknownType()


def has_async_child(ty: ShellType) -> bool:
    return bool(ty.has_async_child)


def is_function(ty: ShellType) -> bool:
    return isinstance(ty, FunctionType)


def returns_promise(ty: ShellType) -> bool:
    return isinstance(ty, FunctionType) and ty.returns_promise


def type_name(ty: Optional[ShellType]) -> str:
    if ty is None:
        return UNKNOWN_NAME
    return ty.type


def is_database(ty: ShellType) -> bool:
    return isinstance(ty, ObjectType) and ty.name == DATABASE_TYPE
