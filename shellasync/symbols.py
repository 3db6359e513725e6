from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from .errors import ScopeStackError
from .types import UNKNOWN, UNKNOWN_NAME, ShellType, TypeRef

logger = logging.getLogger(__name__)

Scope = Dict[str, TypeRef]


class SymbolTable:
    """Lexical scope stack plus the global registry of named shell types.

    The bottom frame holds the catalog's initial scope. Frames above it are
    pushed and popped by the inference pass as it enters and leaves scoping
    constructs. Values are either concrete types or registry names, resolved
    lazily through :meth:`resolve`.
    """

    def __init__(
        self,
        initial_scope: Optional[Mapping[str, TypeRef]] = None,
        types: Optional[Mapping[str, ShellType]] = None,
    ) -> None:
        self.types: Dict[str, ShellType] = dict(types or {})
        self.types.setdefault(UNKNOWN_NAME, UNKNOWN)
        self.scope_stack: List[Scope] = [dict(initial_scope or {})]

    def fork(self) -> "SymbolTable":
        """Return a table sharing this registry with a fresh copy of the root frame."""
        clone = SymbolTable.__new__(SymbolTable)
        clone.types = self.types
        clone.scope_stack = [dict(self.scope_stack[0])] if self.scope_stack else [{}]
        return clone

    @property
    def unknown(self) -> ShellType:
        return self.types[UNKNOWN_NAME]

    def push_scope(self) -> None:
        self.scope_stack.append({})

    def pop_scope(self) -> Scope:
        if not self.scope_stack:
            raise ScopeStackError("pop_scope called with an empty scope stack")
        return self.scope_stack.pop()

    def depth(self) -> int:
        return len(self.scope_stack)

    def unwind(self, depth: int) -> None:
        """Drop frames above ``depth``; bindings in the remaining frames are kept."""
        if depth < 0 or depth > len(self.scope_stack):
            raise ScopeStackError(f"cannot unwind scope stack of depth {len(self.scope_stack)} to {depth}")
        if len(self.scope_stack) > depth:
            logger.debug("unwinding scope stack from %d to %d", len(self.scope_stack), depth)
        del self.scope_stack[depth:]

    def declare(self, name: str, ty: TypeRef) -> None:
        if not self.scope_stack:
            raise ScopeStackError(f"cannot declare '{name}' without an open scope")
        self.scope_stack[-1][name] = ty

    def update(self, name: str, ty: TypeRef) -> None:
        for frame in reversed(self.scope_stack):
            if name in frame:
                frame[name] = ty
                return
        self.declare(name, ty)

    def lookup(self, name: str) -> TypeRef:
        for frame in reversed(self.scope_stack):
            if name in frame:
                return frame[name]
        return self.unknown

    def resolve(self, ref: Optional[TypeRef]) -> ShellType:
        if ref is None:
            return self.unknown
        if isinstance(ref, str):
            resolved = self.types.get(ref)
            if resolved is None:
                logger.debug("type name '%s' is not in the registry, treating as unknown", ref)
                return self.unknown
            return resolved
        return ref

    def lookup_type(self, name: str) -> ShellType:
        return self.resolve(self.lookup(name))

    def __repr__(self) -> str:
        return f"SymbolTable(depth={len(self.scope_stack)}, types={sorted(self.types)})"
