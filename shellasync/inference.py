"""
Shell type inference and `await` insertion.

One post-order pass over a parsed program. Each node receives a `shell_type`
computed from its already-typed children; call sites whose callee resolves to a
promise-returning function are replaced by an `AwaitExpression` wrapping the
call. Functions and blocks additionally get an enter hook so lexical scopes and
per-function return-type lists open before their bodies are visited.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .ast import (
    FUNCTION_NODES,
    SCOPABLE_NODES,
    ArrowFunctionExpression,
    AssignmentExpression,
    AwaitExpression,
    BlockStatement,
    CallExpression,
    CatchClause,
    Identifier,
    Literal,
    MemberExpression,
    NewExpression,
    Node,
    ReturnStatement,
    VariableDeclarator,
)
from .errors import AmbiguousConditionalReturnType, UnresolvedAsyncDynamicAccess
from .symbols import SymbolTable
from .traverse import Path, Replace, Visitor, traverse_children
from .types import (
    COLLECTION_TYPE,
    FunctionType,
    ShellType,
    has_async_child,
    is_database,
    returns_promise,
    type_name,
)

logger = logging.getLogger(__name__)

DATABASE_HINT = "If you are accessing a collection try Database.get('collection')."


class InferTypes(Visitor):
    def __init__(self, symbols: SymbolTable) -> None:
        self.symbols = symbols
        # One list of collected return types per function currently being visited.
        self.returns: List[List[ShellType]] = []

    def enter(self, path: Path) -> Optional[Replace]:
        node = path.node
        if isinstance(node, FUNCTION_NODES):
            self.returns.append([])
            self._push_scope(node)
            for param in node.params:
                self.symbols.declare(param.name, self.symbols.unknown)
        elif isinstance(node, SCOPABLE_NODES):
            self._push_scope(node)
            if isinstance(node, CatchClause) and node.param is not None:
                self.symbols.declare(node.param.name, self.symbols.unknown)
        return None

    def exit(self, path: Path) -> Optional[Replace]:
        node = path.node
        if isinstance(node, Identifier):
            self._exit_identifier(node)
        elif isinstance(node, MemberExpression):
            self._exit_member(node)
        elif isinstance(node, CallExpression):
            return self._exit_call(node, path)
        elif isinstance(node, NewExpression):
            node.shell_type = self._callee_return_type(node.callee)
            logger.debug("NewExpression ==> %s", type_name(node.shell_type))
        elif isinstance(node, AwaitExpression):
            node.shell_type = self._type_of(node.argument)
            logger.debug("AwaitExpression ==> %s", type_name(node.shell_type))
        elif isinstance(node, VariableDeclarator):
            self._exit_declarator(node)
        elif isinstance(node, AssignmentExpression):
            self._exit_assignment(node)
        elif isinstance(node, FUNCTION_NODES):
            self._exit_function(node)
        elif isinstance(node, ReturnStatement):
            self._exit_return(node)
        elif isinstance(node, SCOPABLE_NODES):
            self._pop_scope(node)
            node.shell_type = self.symbols.unknown
        else:
            node.shell_type = self.symbols.unknown
            logger.debug("*%s ==> unknown", node.kind)
        return None

    def _type_of(self, node: Optional[Node]) -> ShellType:
        if node is None or node.shell_type is None:
            return self.symbols.unknown
        return node.shell_type

    def _push_scope(self, node: Node) -> None:
        logger.debug("---new scope at i=%d %s", self.symbols.depth(), node.kind)
        self.symbols.push_scope()

    def _pop_scope(self, node: Node) -> None:
        self.symbols.pop_scope()
        logger.debug("---pop scope at i=%d %s", self.symbols.depth(), node.kind)

    def _exit_identifier(self, node: Identifier) -> None:
        node.shell_type = self.symbols.lookup_type(node.name)
        logger.debug("Identifier: { name: %s } ==> %s", node.name, type_name(node.shell_type))

    def _exit_member(self, node: MemberExpression) -> None:
        lhs = self._type_of(node.object)
        prop = node.property
        if isinstance(prop, Literal):
            attr = prop.value if isinstance(prop.value, str) else prop.raw
        elif isinstance(prop, Identifier) and not node.computed:
            attr = prop.name
        else:
            if has_async_child(lhs):
                hint = DATABASE_HINT if is_database(lhs) else ""
                raise UnresolvedAsyncDynamicAccess(type_name(lhs), hint=hint, loc=node.loc)
            node.shell_type = self.symbols.unknown
            logger.debug("MemberExpression: { object.sType: %s, dynamic } ==> unknown", type_name(lhs))
            return
        attributes = getattr(lhs, "attributes", None)
        if attributes is not None and attr in attributes:
            sty = self.symbols.resolve(attributes[attr])
        elif is_database(lhs):
            sty = self.symbols.resolve(COLLECTION_TYPE)
        else:
            sty = self.symbols.unknown
        node.shell_type = sty
        logger.debug(
            "MemberExpression: { object.sType: %s, property.name: %s } ==> %s",
            type_name(lhs),
            attr,
            type_name(sty),
        )

    def _callee_return_type(self, callee: Node) -> ShellType:
        callee_type = self._type_of(callee)
        if isinstance(callee_type, FunctionType):
            return self.symbols.resolve(callee_type.return_type)
        return self.symbols.unknown

    def _exit_call(self, node: CallExpression, path: Path) -> Optional[Replace]:
        callee_type = self._type_of(node.callee)
        node.shell_type = self._callee_return_type(node.callee)
        logger.debug(
            "CallExpression: { callee.type: %s, callee.shellType: %s } ==> %s",
            node.callee.kind,
            type_name(callee_type),
            type_name(node.shell_type),
        )
        if not returns_promise(callee_type):
            return None
        if isinstance(path.parent, AwaitExpression):
            # Already suspended, either by the user or by an earlier run.
            return None
        wrapped = AwaitExpression(loc=node.loc, argument=node)
        wrapped.shell_type = node.shell_type
        return Replace(wrapped)

    def _exit_declarator(self, node: VariableDeclarator) -> None:
        sty = self._type_of(node.init) if node.init is not None else self.symbols.unknown
        node.shell_type = self.symbols.unknown
        self.symbols.update(node.id.name, sty)
        logger.debug(
            "VariableDeclarator: { id.name: %s, init.shellType: %s } ==> unknown",
            node.id.name,
            "null" if node.init is None else type_name(sty),
        )

    def _exit_assignment(self, node: AssignmentExpression) -> None:
        sty = self._type_of(node.right)
        if isinstance(node.left, Identifier):
            self.symbols.update(node.left.name, sty)
        node.shell_type = sty
        logger.debug(
            "AssignmentExpression: { left: %s, right.type: %s } ==> %s",
            node.left.kind,
            node.right.kind,
            type_name(sty),
        )

    def _exit_function(self, node: Node) -> None:
        self._pop_scope(node)
        return_types = self.returns.pop()
        name = node.id.name if getattr(node, "id", None) is not None else None
        if not return_types:
            if isinstance(node, ArrowFunctionExpression) and not isinstance(node.body, BlockStatement):
                how = "single value"
                rtype = self._type_of(node.body)
            else:
                how = "no return in block statement"
                rtype = self.symbols.unknown
        elif len(return_types) == 1:
            how = "single return stmt"
            rtype = return_types[0]
        else:
            how = "multi return stmt"
            if any(has_async_child(t) for t in return_types):
                raise AmbiguousConditionalReturnType(name, return_types, loc=node.loc)
            rtype = self.symbols.unknown
        fn_type = FunctionType(return_type=rtype, returns_promise=False)
        if name is not None:
            self.symbols.declare(name, fn_type)
        node.shell_type = fn_type
        logger.debug(
            "Function: { id: %s } ==> function<%s> (determined via %s)",
            name or "<lambda>",
            type_name(rtype),
            how,
        )

    def _exit_return(self, node: ReturnStatement) -> None:
        sty = self._type_of(node.argument) if node.argument is not None else self.symbols.unknown
        node.shell_type = sty
        if self.returns:
            self.returns[-1].append(sty)
        logger.debug("ReturnStatement ==> %s", type_name(sty))


def infer_program(program: Node, symbols: SymbolTable) -> Node:
    """Run the pass over every statement of ``program``.

    The caller owns the program-level scope; this only opens and closes the
    scopes of constructs nested in the program.
    """
    traverse_children(program, InferTypes(symbols))
    program.shell_type = symbols.unknown
    return program
