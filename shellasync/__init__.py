"""Static async rewriter for database shell scripts."""

from .catalog import load_catalog, load_catalog_file
from .errors import (
    AmbiguousConditionalReturnType,
    CatalogError,
    ParseError,
    ShellAsyncError,
    UnresolvedAsyncDynamicAccess,
)
from .symbols import SymbolTable
from .types import UNKNOWN, FunctionType, ObjectType, UnknownType
from .writer import AsyncWriter, TransformResult

__all__ = [
    "AmbiguousConditionalReturnType",
    "AsyncWriter",
    "CatalogError",
    "FunctionType",
    "ObjectType",
    "ParseError",
    "ShellAsyncError",
    "SymbolTable",
    "TransformResult",
    "UNKNOWN",
    "UnknownType",
    "UnresolvedAsyncDynamicAccess",
    "load_catalog",
    "load_catalog_file",
]
