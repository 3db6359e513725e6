from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .ast import Program
from .inference import infer_program
from .parser import parse_program
from .printer import format_program
from .symbols import Scope, SymbolTable
from .types import ShellType, TypeRef

logger = logging.getLogger(__name__)


@dataclass
class TransformResult:
    tree: Program
    code: str


class AsyncWriter:
    """Rewrites script source so that every promise-returning shell API call is awaited.

    A writer keeps one program-level scope open for its whole lifetime, so a
    binding made by one ``compile`` call is visible to the next one. Calls on
    a single writer must not overlap.
    """

    def __init__(
        self,
        initial_scope: Optional[Mapping[str, TypeRef]] = None,
        types: Optional[Mapping[str, ShellType]] = None,
        symbols: Optional[SymbolTable] = None,
    ) -> None:
        if symbols is None:
            symbols = SymbolTable(initial_scope, types)
        self.symbols = symbols
        self._program_scope: Optional[Scope] = None

    def _enter_program(self) -> None:
        if self._program_scope is None:
            self.symbols.push_scope()
            self._program_scope = self.symbols.scope_stack[-1]

    def compile_tree(self, tree: Program) -> Program:
        """Run inference and rewriting over an already parsed (or already rewritten) tree."""
        self._enter_program()
        # Other writers sharing the table may own frames below this depth.
        depth = self.symbols.depth()
        try:
            return infer_program(tree, self.symbols)
        except Exception:
            self.symbols.unwind(depth)
            raise

    def get_transform(self, source: str) -> TransformResult:
        logger.debug("compiling %d characters", len(source))
        tree = parse_program(source)
        tree = self.compile_tree(tree)
        return TransformResult(tree=tree, code=format_program(tree))

    def compile(self, source: str) -> str:
        return self.get_transform(source).code

    def program_bindings(self) -> Dict[str, ShellType]:
        """Resolved types of the names bound at program level so far."""
        if self._program_scope is None:
            return {}
        return {name: self.symbols.resolve(ref) for name, ref in self._program_scope.items()}
