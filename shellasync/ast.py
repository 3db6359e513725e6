from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Union

if TYPE_CHECKING:
    from .types import ShellType


@dataclass(frozen=True)
class Located:
    line: int
    column: int


class Node:
    loc: Located
    # Inferred shell API type; set by the inference pass, not part of equality.
    shell_type: Optional["ShellType"] = None

    @property
    def kind(self) -> str:
        return type(self).__name__


class Stmt(Node):
    pass


class Expr(Node):
    pass


@dataclass
class Identifier(Expr):
    loc: Located
    name: str


@dataclass
class Literal(Expr):
    loc: Located
    value: object
    raw: str


@dataclass
class ThisExpression(Expr):
    loc: Located


@dataclass
class ArrayExpression(Expr):
    loc: Located
    elements: List[Expr] = field(default_factory=list)


@dataclass
class ObjectProperty(Node):
    loc: Located
    key: Union[Identifier, Literal]
    value: Expr
    shorthand: bool = False


@dataclass
class ObjectExpression(Expr):
    loc: Located
    properties: List[ObjectProperty] = field(default_factory=list)


@dataclass
class MemberExpression(Expr):
    loc: Located
    object: Expr
    property: Expr
    computed: bool = False


@dataclass
class CallExpression(Expr):
    loc: Located
    callee: Expr
    arguments: List[Expr] = field(default_factory=list)


@dataclass
class NewExpression(Expr):
    loc: Located
    callee: Expr
    arguments: List[Expr] = field(default_factory=list)


@dataclass
class AwaitExpression(Expr):
    loc: Located
    argument: Expr


@dataclass
class AssignmentExpression(Expr):
    loc: Located
    operator: str
    left: Expr
    right: Expr


@dataclass
class BinaryExpression(Expr):
    loc: Located
    operator: str
    left: Expr
    right: Expr


@dataclass
class LogicalExpression(Expr):
    loc: Located
    operator: str
    left: Expr
    right: Expr


@dataclass
class UnaryExpression(Expr):
    loc: Located
    operator: str
    argument: Expr


@dataclass
class UpdateExpression(Expr):
    loc: Located
    operator: str
    argument: Expr
    prefix: bool = False


@dataclass
class ConditionalExpression(Expr):
    loc: Located
    test: Expr
    consequent: Expr
    alternate: Expr


@dataclass
class BlockStatement(Stmt):
    loc: Located
    body: List[Stmt] = field(default_factory=list)


@dataclass
class FunctionExpression(Expr):
    loc: Located
    id: Optional[Identifier]
    params: List[Identifier]
    body: BlockStatement


@dataclass
class ArrowFunctionExpression(Expr):
    loc: Located
    params: List[Identifier]
    body: Union[BlockStatement, Expr]


@dataclass
class FunctionDeclaration(Stmt):
    loc: Located
    id: Identifier
    params: List[Identifier]
    body: BlockStatement


@dataclass
class ExpressionStatement(Stmt):
    loc: Located
    expression: Expr


@dataclass
class VariableDeclarator(Node):
    loc: Located
    id: Identifier
    init: Optional[Expr] = None


@dataclass
class VariableDeclaration(Stmt):
    loc: Located
    declaration_kind: str
    declarations: List[VariableDeclarator]


@dataclass
class ReturnStatement(Stmt):
    loc: Located
    argument: Optional[Expr] = None


@dataclass
class IfStatement(Stmt):
    loc: Located
    test: Expr
    consequent: Stmt
    alternate: Optional[Stmt] = None


@dataclass
class WhileStatement(Stmt):
    loc: Located
    test: Expr
    body: Stmt


@dataclass
class ForStatement(Stmt):
    loc: Located
    init: Optional[Union[VariableDeclaration, Expr]]
    test: Optional[Expr]
    update: Optional[Expr]
    body: Stmt


@dataclass
class ForOfStatement(Stmt):
    loc: Located
    left: VariableDeclaration
    right: Expr
    body: Stmt


@dataclass
class BreakStatement(Stmt):
    loc: Located


@dataclass
class ContinueStatement(Stmt):
    loc: Located


@dataclass
class ThrowStatement(Stmt):
    loc: Located
    argument: Expr


@dataclass
class CatchClause(Node):
    loc: Located
    param: Optional[Identifier]
    body: BlockStatement


@dataclass
class TryStatement(Stmt):
    loc: Located
    block: BlockStatement
    handler: Optional[CatchClause] = None
    finalizer: Optional[BlockStatement] = None


@dataclass
class Program(Node):
    loc: Located
    body: List[Stmt] = field(default_factory=list)


FUNCTION_NODES = (FunctionDeclaration, FunctionExpression, ArrowFunctionExpression)

# Constructs that open a lexical scope below the program level.
SCOPABLE_NODES = (
    BlockStatement,
    ForStatement,
    ForOfStatement,
    WhileStatement,
    CatchClause,
) + FUNCTION_NODES
