from __future__ import annotations

from typing import Optional

from .ast import Located


class ShellAsyncError(Exception):
    """Base class for user-facing failures of a single compilation."""

    def __init__(self, message: str, loc: Optional[Located] = None) -> None:
        self.message = message
        self.loc = loc
        if loc is not None:
            message = f"{loc.line}:{loc.column}: {message}"
        super().__init__(message)


class ParseError(ShellAsyncError):
    pass


class CatalogError(ShellAsyncError):
    pass


class UnresolvedAsyncDynamicAccess(ShellAsyncError):
    """Computed member access on a type whose children may be asynchronous."""

    def __init__(self, type_name: str, hint: str = "", loc: Optional[Located] = None) -> None:
        self.type_name = type_name
        self.hint = hint
        message = "Cannot access shell API attributes dynamically."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message, loc)


class AmbiguousConditionalReturnType(ShellAsyncError):
    """A function returns differently typed values and one of them is async-capable."""

    def __init__(self, function_name: Optional[str], return_types: list, loc: Optional[Located] = None) -> None:
        self.function_name = function_name
        self.return_types = list(return_types)
        label = function_name or "<lambda>"
        names = ", ".join(str(t) for t in self.return_types)
        super().__init__(
            f"Error: conditional statement. Function '{label}' may return different shell API types ({names})",
            loc,
        )


class ScopeStackError(RuntimeError):
    """Raised when scope push/pop bookkeeping is violated."""
