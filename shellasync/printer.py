from __future__ import annotations

import re
from typing import List

from .ast import (
    ArrayExpression,
    ArrowFunctionExpression,
    AssignmentExpression,
    AwaitExpression,
    BinaryExpression,
    BlockStatement,
    BreakStatement,
    CallExpression,
    ConditionalExpression,
    ContinueStatement,
    Expr,
    ExpressionStatement,
    ForOfStatement,
    ForStatement,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    IfStatement,
    Literal,
    LogicalExpression,
    MemberExpression,
    NewExpression,
    ObjectExpression,
    ObjectProperty,
    Program,
    ReturnStatement,
    Stmt,
    ThisExpression,
    ThrowStatement,
    TryStatement,
    UnaryExpression,
    UpdateExpression,
    VariableDeclaration,
    WhileStatement,
)

INDENT = "  "

# Binding strength, loosest first.
PREC_ASSIGN = 1
PREC_CONDITIONAL = 2
PREC_UNARY = 9
PREC_POSTFIX = 10
PREC_MEMBER = 11
PREC_PRIMARY = 12

BINARY_PREC = {
    "??": 3,
    "||": 3,
    "&&": 4,
    "==": 5,
    "!=": 5,
    "===": 5,
    "!==": 5,
    "<": 6,
    ">": 6,
    "<=": 6,
    ">=": 6,
    "+": 7,
    "-": 7,
    "*": 8,
    "/": 8,
    "%": 8,
}

_STATEMENT_AMBIGUOUS = re.compile(r"^(\{|function\b)")


def format_program(program: Program) -> str:
    return "\n".join(format_stmt(stmt, 0) for stmt in program.body)


def format_stmt(stmt: Stmt, level: int = 0) -> str:
    """Render one statement. The first line carries no indentation of its own."""
    if isinstance(stmt, ExpressionStatement):
        text = format_expr(stmt.expression, level)
        if _STATEMENT_AMBIGUOUS.match(text):
            text = f"({text})"
        return f"{text};"
    if isinstance(stmt, VariableDeclaration):
        return f"{_format_declaration(stmt, level)};"
    if isinstance(stmt, ReturnStatement):
        if stmt.argument is None:
            return "return;"
        return f"return {format_expr(stmt.argument, level)};"
    if isinstance(stmt, BlockStatement):
        return format_block(stmt, level)
    if isinstance(stmt, FunctionDeclaration):
        return _format_function("function", stmt.id, stmt.params, stmt.body, level)
    if isinstance(stmt, IfStatement):
        return _format_if(stmt, level)
    if isinstance(stmt, WhileStatement):
        return f"while ({format_expr(stmt.test, level)}) {_format_body(stmt.body, level)}"
    if isinstance(stmt, ForStatement):
        if isinstance(stmt.init, VariableDeclaration):
            init = _format_declaration(stmt.init, level)
        elif stmt.init is not None:
            init = format_expr(stmt.init, level)
        else:
            init = ""
        test = format_expr(stmt.test, level) if stmt.test is not None else ""
        update = format_expr(stmt.update, level) if stmt.update is not None else ""
        header = f"{init}; {test}; {update}".rstrip()
        return f"for ({header}) {_format_body(stmt.body, level)}"
    if isinstance(stmt, ForOfStatement):
        left = _format_declaration(stmt.left, level)
        return f"for ({left} of {format_expr(stmt.right, level)}) {_format_body(stmt.body, level)}"
    if isinstance(stmt, BreakStatement):
        return "break;"
    if isinstance(stmt, ContinueStatement):
        return "continue;"
    if isinstance(stmt, ThrowStatement):
        return f"throw {format_expr(stmt.argument, level)};"
    if isinstance(stmt, TryStatement):
        parts = [f"try {format_block(stmt.block, level)}"]
        if stmt.handler is not None:
            param = f"({stmt.handler.param.name}) " if stmt.handler.param is not None else ""
            parts.append(f"catch {param}{format_block(stmt.handler.body, level)}")
        if stmt.finalizer is not None:
            parts.append(f"finally {format_block(stmt.finalizer, level)}")
        return " ".join(parts)
    return f"/* <unsupported {stmt.kind}> */"


def format_block(block: BlockStatement, level: int) -> str:
    if not block.body:
        return "{}"
    pad = INDENT * (level + 1)
    lines = [f"{pad}{format_stmt(stmt, level + 1)}" for stmt in block.body]
    return "{\n" + "\n".join(lines) + "\n" + INDENT * level + "}"


def _format_body(body: Stmt, level: int) -> str:
    if isinstance(body, BlockStatement):
        return format_block(body, level)
    return format_stmt(body, level)


def _format_if(stmt: IfStatement, level: int) -> str:
    text = f"if ({format_expr(stmt.test, level)}) {_format_body(stmt.consequent, level)}"
    if stmt.alternate is None:
        return text
    if isinstance(stmt.consequent, BlockStatement):
        joiner = " else "
    else:
        joiner = "\n" + INDENT * level + "else "
    return text + joiner + _format_body(stmt.alternate, level)


def _format_declaration(decl: VariableDeclaration, level: int) -> str:
    items: List[str] = []
    for declarator in decl.declarations:
        if declarator.init is None:
            items.append(declarator.id.name)
        else:
            items.append(f"{declarator.id.name} = {format_expr(declarator.init, level, PREC_ASSIGN)}")
    return f"{decl.declaration_kind} {', '.join(items)}"


def _format_function(keyword: str, ident, params, body: BlockStatement, level: int) -> str:
    name = f" {ident.name}" if ident is not None else ""
    args = ", ".join(p.name for p in params)
    return f"{keyword}{name}({args}) {format_block(body, level)}"


def format_expr(expr: Expr, level: int = 0, min_prec: int = 0) -> str:
    """Render ``expr``, parenthesized when it binds looser than ``min_prec``."""
    text = _format_expr(expr, level)
    if precedence(expr) < min_prec:
        return f"({text})"
    return text


def precedence(expr: Expr) -> int:
    if isinstance(expr, (AssignmentExpression, ArrowFunctionExpression)):
        return PREC_ASSIGN
    if isinstance(expr, ConditionalExpression):
        return PREC_CONDITIONAL
    if isinstance(expr, (BinaryExpression, LogicalExpression)):
        return BINARY_PREC.get(expr.operator, PREC_CONDITIONAL + 1)
    if isinstance(expr, (UnaryExpression, AwaitExpression)):
        return PREC_UNARY
    if isinstance(expr, UpdateExpression):
        return PREC_POSTFIX
    if isinstance(expr, (MemberExpression, CallExpression, NewExpression)):
        return PREC_MEMBER
    return PREC_PRIMARY


def _format_expr(expr: Expr, level: int) -> str:
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, Literal):
        return expr.raw
    if isinstance(expr, ThisExpression):
        return "this"
    if isinstance(expr, ArrayExpression):
        return "[" + ", ".join(format_expr(e, level, PREC_ASSIGN) for e in expr.elements) + "]"
    if isinstance(expr, ObjectExpression):
        if not expr.properties:
            return "{}"
        return "{ " + ", ".join(_format_property(p, level) for p in expr.properties) + " }"
    if isinstance(expr, MemberExpression):
        obj = _format_operand(expr.object, level)
        if expr.computed:
            return f"{obj}[{format_expr(expr.property, level)}]"
        return f"{obj}.{_format_expr(expr.property, level)}"
    if isinstance(expr, CallExpression):
        callee = _format_operand(expr.callee, level)
        return f"{callee}({_format_args(expr.arguments, level)})"
    if isinstance(expr, NewExpression):
        callee = format_expr(expr.callee, level, PREC_MEMBER)
        return f"new {callee}({_format_args(expr.arguments, level)})"
    if isinstance(expr, AwaitExpression):
        return f"await {format_expr(expr.argument, level, PREC_UNARY)}"
    if isinstance(expr, AssignmentExpression):
        left = format_expr(expr.left, level, PREC_MEMBER)
        return f"{left} {expr.operator} {format_expr(expr.right, level, PREC_ASSIGN)}"
    if isinstance(expr, (BinaryExpression, LogicalExpression)):
        return _format_binary(expr, level)
    if isinstance(expr, UnaryExpression):
        arg = format_expr(expr.argument, level, PREC_UNARY)
        if expr.operator == "typeof":
            return f"typeof {arg}"
        if arg.startswith(expr.operator):
            # `- -x` must not collapse into the `--` token.
            return f"{expr.operator} {arg}"
        return f"{expr.operator}{arg}"
    if isinstance(expr, UpdateExpression):
        arg = format_expr(expr.argument, level, PREC_MEMBER)
        if expr.prefix:
            return f"{expr.operator}{arg}"
        return f"{arg}{expr.operator}"
    if isinstance(expr, ConditionalExpression):
        test = format_expr(expr.test, level, PREC_CONDITIONAL + 1)
        consequent = format_expr(expr.consequent, level, PREC_ASSIGN)
        alternate = format_expr(expr.alternate, level, PREC_ASSIGN)
        return f"{test} ? {consequent} : {alternate}"
    if isinstance(expr, FunctionExpression):
        return _format_function("function", expr.id, expr.params, expr.body, level)
    if isinstance(expr, ArrowFunctionExpression):
        return _format_arrow(expr, level)
    return f"/* <unsupported {expr.kind}> */"


def _format_binary(expr, level: int) -> str:
    prec = precedence(expr)
    left_min = PREC_PRIMARY if _mixes_nullish(expr, expr.left) else prec
    right_min = PREC_PRIMARY if _mixes_nullish(expr, expr.right) else prec + 1
    left = format_expr(expr.left, level, left_min)
    right = format_expr(expr.right, level, right_min)
    return f"{left} {expr.operator} {right}"


def _mixes_nullish(parent: Expr, child: Expr) -> bool:
    # `??` cannot be mixed with `||` or `&&` without explicit grouping.
    if not isinstance(parent, LogicalExpression) or not isinstance(child, LogicalExpression):
        return False
    return parent.operator != child.operator and "??" in (parent.operator, child.operator)


def _format_arrow(expr: ArrowFunctionExpression, level: int) -> str:
    if len(expr.params) == 1:
        params = expr.params[0].name
    else:
        params = "(" + ", ".join(p.name for p in expr.params) + ")"
    if isinstance(expr.body, BlockStatement):
        body = format_block(expr.body, level)
    else:
        body = format_expr(expr.body, level, PREC_ASSIGN)
        if isinstance(expr.body, ObjectExpression):
            body = f"({body})"
    return f"{params} => {body}"


def _format_args(args: List[Expr], level: int) -> str:
    return ", ".join(format_expr(arg, level, PREC_ASSIGN) for arg in args)


def _format_property(prop: ObjectProperty, level: int) -> str:
    if prop.shorthand:
        return _format_expr(prop.key, level)
    return f"{_format_expr(prop.key, level)}: {format_expr(prop.value, level, PREC_ASSIGN)}"


def _format_operand(expr: Expr, level: int) -> str:
    """Render the object of a member access or the callee of a call."""
    text = format_expr(expr, level, PREC_MEMBER)
    if isinstance(expr, FunctionExpression):
        return f"({text})"
    if isinstance(expr, Literal) and type(expr.value) in (int, float):
        # `1.toString()` does not lex.
        return f"({text})"
    return text
