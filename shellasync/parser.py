from __future__ import annotations

import ast
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from .ast import (
    ArrayExpression,
    ArrowFunctionExpression,
    AssignmentExpression,
    AwaitExpression,
    BinaryExpression,
    BlockStatement,
    BreakStatement,
    CallExpression,
    CatchClause,
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
    Located,
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
    VariableDeclarator,
    WhileStatement,
)
from .errors import ParseError

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()


class TerminatorInserter:
    """Post-lexer implementing optional semicolons and brace disambiguation.

    - A newline ends a statement when the previous token can end one, the
      innermost open bracket is a block (or none), and the next token does not
      continue the expression (`.`, binary operators, `(`, ...).
    - A `;` outside parentheses, an implicit end before a block-closing `}`, and
      end of input all become `_TERM`.
    - `{` opens a block (`LBLOCK`) after a statement boundary, a control header,
      `=>`, `else`, `try`, `catch` or `finally`; anywhere else it opens an object.
    - `function` at a statement boundary becomes `FUNCTION_DECL`.
    """

    always_accept = ("NEWLINE",)

    TERMINABLE = {
        "NAME",
        "NUMBER",
        "STRING",
        "TRUE",
        "FALSE",
        "NULL",
        "THIS",
        "RPAR",
        "RSQB",
        "RBRACE",
        "RETURN",
        "BREAK",
        "CONTINUE",
        "INCDEC",
    }

    CONTINUATION = {
        "DOT",
        "LPAR",
        "LSQB",
        "COMMA",
        "COLON",
        "QMARK",
        "EQUAL",
        "COMPOUND_ASSIGN",
        "EQ_OP",
        "COMP_OP",
        "LOGIC_OR",
        "LOGIC_AND",
        "ADD_OP",
        "MUL_OP",
        "ARROW",
        "RPAR",
        "RSQB",
    }

    # Keywords that may follow a block on the next line without ending the statement.
    BLOCK_TRAILERS = {"ELSE", "CATCH", "FINALLY"}

    BLOCK_OPENERS = {"ARROW", "ELSE", "TRY", "CATCH", "FINALLY"}

    HEADER_KEYWORDS = {"IF", "WHILE", "FOR", "CATCH", "FUNCTION", "FUNCTION_DECL"}

    # Reserved words are plain property names after a dot, as in `promise.catch(f)`.
    KEYWORDS = {
        "LET", "CONST", "VAR", "RETURN", "BREAK", "CONTINUE", "THROW", "IF", "ELSE", "WHILE", "FOR", "OF",
        "TRY", "CATCH", "FINALLY", "FUNCTION", "NEW", "TRUE", "FALSE", "NULL", "THIS", "TYPEOF", "AWAIT",
    }

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.stack: List[str] = []
        self.can_terminate = False
        self.at_stmt_start = True
        self.after_header = False
        self.closed_block = False
        self.prev: Optional[str] = None
        self.prev2: Optional[str] = None
        self.last: Optional[Token] = None

    def process(self, stream):
        self._reset()
        pending: Optional[Token] = None
        for token in stream:
            ttype = token.type
            if ttype == "NEWLINE":
                if self.can_terminate and self._newline_terminates():
                    pending = token
                continue
            if ttype == "SEMICOLON":
                pending = None
                if self.stack and self.stack[-1] in ("paren", "header"):
                    yield self._emit(token)
                else:
                    yield self._terminator(token)
                continue
            if pending is not None:
                if self._ends_statement(ttype):
                    yield self._terminator(pending)
                pending = None
            if self.prev == "DOT" and ttype in self.KEYWORDS:
                token = Token.new_borrow_pos("NAME", token.value, token)
                ttype = token.type
            if ttype == "RBRACE":
                opener = self.stack.pop() if self.stack else None
                if opener == "block" and self.can_terminate:
                    yield self._terminator(token)
                yield self._emit(token)
                self.closed_block = opener == "block"
                self.at_stmt_start = self.closed_block
                continue
            if ttype == "LBRACE":
                if self.at_stmt_start or self.after_header or self.prev in self.BLOCK_OPENERS:
                    self.stack.append("block")
                    yield self._emit(Token.new_borrow_pos("LBLOCK", token.value, token))
                    self.at_stmt_start = True
                    continue
                self.stack.append("object")
            elif ttype == "FUNCTION" and self.at_stmt_start:
                token = Token.new_borrow_pos("FUNCTION_DECL", token.value, token)
                ttype = token.type
            elif ttype == "LPAR":
                self.stack.append("header" if self._opens_header() else "paren")
            elif ttype == "LSQB":
                self.stack.append("bracket")
            elif ttype in ("RPAR", "RSQB"):
                opener = self.stack.pop() if self.stack else None
                if opener == "header":
                    yield self._emit(token)
                    self.after_header = True
                    self.can_terminate = False
                    continue
            yield self._emit(token)
            self.at_stmt_start = ttype == "ELSE"
        if pending is not None or self.can_terminate:
            yield self._terminator(pending or self.last)

    def _emit(self, token: Token) -> Token:
        self.prev2 = self.prev
        self.prev = token.type
        self.last = token
        self.can_terminate = token.type in self.TERMINABLE
        self.after_header = False
        self.closed_block = False
        return token

    def _terminator(self, at: Optional[Token]) -> Token:
        self.can_terminate = False
        self.at_stmt_start = True
        self.after_header = False
        self.closed_block = False
        self.prev2 = self.prev
        self.prev = "_TERM"
        if at is None:
            return Token("_TERM", "")
        return Token.new_borrow_pos("_TERM", "", at)

    def _newline_terminates(self) -> bool:
        return not self.stack or self.stack[-1] == "block"

    def _ends_statement(self, ttype: str) -> bool:
        if ttype in self.CONTINUATION:
            return False
        if ttype in self.BLOCK_TRAILERS and self.closed_block:
            return False
        return True

    def _opens_header(self) -> bool:
        if self.prev in self.HEADER_KEYWORDS:
            return True
        return self.prev == "NAME" and self.prev2 in ("FUNCTION", "FUNCTION_DECL")


_PARSER = Lark(
    _GRAMMAR_SRC,
    parser="lalr",
    lexer="basic",
    start="program",
    propagate_positions=True,
    maybe_placeholders=False,
    postlex=TerminatorInserter(),
)


def parse_program(source: str) -> Program:
    try:
        tree = _PARSER.parse(source)
    except UnexpectedInput as exc:
        raise _parse_error(exc) from exc
    return _build_program(tree)


def _parse_error(exc: UnexpectedInput) -> ParseError:
    line = getattr(exc, "line", -1)
    column = getattr(exc, "column", -1)
    loc = Located(line=line, column=column) if line and line > 0 else None
    token = getattr(exc, "token", None)
    if token is not None and token.type in ("$END", "<EOF>"):
        return ParseError("unexpected end of input", loc)
    if token is not None:
        shown = token.value or token.type
        return ParseError(f"unexpected token {shown!r}", loc)
    char = getattr(exc, "char", None)
    if char is not None:
        return ParseError(f"unexpected character {char!r}", loc)
    return ParseError("invalid syntax", loc)


def _build_program(tree: Tree) -> Program:
    body = [_build_stmt(child) for child in _subtrees(tree)]
    return Program(loc=Located(line=1, column=1), body=body)


def _build_stmt(tree: Tree) -> Stmt:
    kind = _name(tree)
    if kind == "var_decl":
        return _build_var_decl(tree)
    if kind == "expr_stmt":
        expr = _build_expr(_subtrees(tree)[0])
        return ExpressionStatement(loc=_loc(tree), expression=expr)
    if kind == "return_stmt":
        parts = _subtrees(tree)
        argument = _build_expr(parts[0]) if parts else None
        return ReturnStatement(loc=_loc(tree), argument=argument)
    if kind == "if_stmt":
        parts = _subtrees(tree)
        alternate = _build_stmt(parts[2]) if len(parts) > 2 else None
        return IfStatement(
            loc=_loc(tree),
            test=_build_expr(parts[0]),
            consequent=_build_stmt(parts[1]),
            alternate=alternate,
        )
    if kind == "while_stmt":
        test_node, body_node = _subtrees(tree)
        return WhileStatement(loc=_loc(tree), test=_build_expr(test_node), body=_build_stmt(body_node))
    if kind == "for_stmt":
        return _build_for_stmt(tree)
    if kind == "for_of_stmt":
        return _build_for_of_stmt(tree)
    if kind == "func_decl":
        name_token = _token(tree, "NAME")
        return FunctionDeclaration(
            loc=_loc(tree),
            id=_identifier(name_token),
            params=_build_params(_child(tree, "params")),
            body=_build_block(_child(tree, "block")),
        )
    if kind == "block":
        return _build_block(tree)
    if kind == "break_stmt":
        return BreakStatement(loc=_loc(tree))
    if kind == "continue_stmt":
        return ContinueStatement(loc=_loc(tree))
    if kind == "throw_stmt":
        return ThrowStatement(loc=_loc(tree), argument=_build_expr(_subtrees(tree)[0]))
    if kind == "try_stmt":
        return _build_try_stmt(tree)
    raise ParseError(f"unsupported statement '{kind}'", _loc(tree))


def _build_block(tree: Tree) -> BlockStatement:
    return BlockStatement(loc=_loc(tree), body=[_build_stmt(child) for child in _subtrees(tree)])


def _build_var_decl(tree: Tree) -> VariableDeclaration:
    kind_node = _child(tree, "decl_kind")
    declarations: List[VariableDeclarator] = []
    for child in _subtrees(tree):
        if _name(child) != "declarator":
            continue
        name_token = _token(child, "NAME")
        init_nodes = _subtrees(child)
        init = _build_expr(init_nodes[0]) if init_nodes else None
        declarations.append(VariableDeclarator(loc=_loc(child), id=_identifier(name_token), init=init))
    return VariableDeclaration(loc=_loc(tree), declaration_kind=_decl_kind(kind_node), declarations=declarations)


def _decl_kind(tree: Tree) -> str:
    return next(child.value for child in tree.children if isinstance(child, Token))


def _build_for_stmt(tree: Tree) -> ForStatement:
    init = test = update = None
    body: Optional[Stmt] = None
    for child in _subtrees(tree):
        kind = _name(child)
        if kind == "for_init":
            inner = _subtrees(child)[0]
            init = _build_var_decl(inner) if _name(inner) == "var_decl" else _build_expr(inner)
        elif kind == "for_test":
            test = _build_expr(_subtrees(child)[0])
        elif kind == "for_update":
            update = _build_expr(_subtrees(child)[0])
        else:
            body = _build_stmt(child)
    if body is None:
        raise ParseError("for statement missing body", _loc(tree))
    return ForStatement(loc=_loc(tree), init=init, test=test, update=update, body=body)


def _build_for_of_stmt(tree: Tree) -> ForOfStatement:
    kind_node, right_node, body_node = _subtrees(tree)
    name_token = _token(tree, "NAME")
    left = VariableDeclaration(
        loc=_loc(kind_node),
        declaration_kind=_decl_kind(kind_node),
        declarations=[VariableDeclarator(loc=_loc_from_token(name_token), id=_identifier(name_token))],
    )
    return ForOfStatement(loc=_loc(tree), left=left, right=_build_expr(right_node), body=_build_stmt(body_node))


def _build_try_stmt(tree: Tree) -> TryStatement:
    block = _build_block(_child(tree, "block"))
    handler = None
    finalizer = None
    catch_node = _child(tree, "catch_clause")
    if catch_node is not None:
        name_token = _token(catch_node, "NAME")
        handler = CatchClause(
            loc=_loc(catch_node),
            param=_identifier(name_token) if name_token is not None else None,
            body=_build_block(_child(catch_node, "block")),
        )
    finally_node = _child(tree, "finally_clause")
    if finally_node is not None:
        finalizer = _build_block(_child(finally_node, "block"))
    return TryStatement(loc=_loc(tree), block=block, handler=handler, finalizer=finalizer)


def _build_params(tree: Optional[Tree]) -> List[Identifier]:
    if tree is None:
        return []
    return [_identifier(tok) for tok in tree.children if isinstance(tok, Token) and tok.type == "NAME"]


def _build_expr(node: Tree) -> Expr:
    if not isinstance(node, Tree):
        raise ParseError(f"unexpected token {node!r} in expression")
    name = _name(node)
    children = node.children
    if name == "identifier":
        return _identifier(children[0])
    if name == "number":
        raw = children[0].value
        value: object = float(raw) if any(c in raw for c in ".eE") else int(raw)
        return Literal(loc=_loc(node), value=value, raw=raw)
    if name == "string":
        raw = children[0].value
        return Literal(loc=_loc(node), value=_decode_string(raw), raw=raw)
    if name == "true_lit":
        return Literal(loc=_loc(node), value=True, raw="true")
    if name == "false_lit":
        return Literal(loc=_loc(node), value=False, raw="false")
    if name == "null_lit":
        return Literal(loc=_loc(node), value=None, raw="null")
    if name == "this_expr":
        return ThisExpression(loc=_loc(node))
    if name == "member_expr":
        obj_node = _subtrees(node)[0]
        prop_token = _token(node, "NAME")
        return MemberExpression(
            loc=_loc(node),
            object=_build_expr(obj_node),
            property=_identifier(prop_token),
            computed=False,
        )
    if name == "computed_member_expr":
        obj_node, prop_node = _subtrees(node)
        return MemberExpression(
            loc=_loc(node),
            object=_build_expr(obj_node),
            property=_build_expr(prop_node),
            computed=True,
        )
    if name == "call_expr":
        callee_node, args_node = _subtrees(node)
        return CallExpression(loc=_loc(node), callee=_build_expr(callee_node), arguments=_build_args(args_node))
    if name == "new_expr":
        return _build_new_expr(node)
    if name == "assignment_expr":
        left_node, right_node = _subtrees(node)
        op_token = next(tok for tok in children if isinstance(tok, Token))
        left = _build_expr(left_node)
        if not isinstance(left, (Identifier, MemberExpression)):
            raise ParseError("invalid assignment target", _loc(node))
        return AssignmentExpression(loc=_loc(node), operator=op_token.value, left=left, right=_build_expr(right_node))
    if name == "arrow_fn":
        return _build_arrow(node)
    if name == "conditional_expr":
        test, consequent, alternate = (_build_expr(child) for child in _subtrees(node))
        return ConditionalExpression(loc=_loc(node), test=test, consequent=consequent, alternate=alternate)
    if name == "logical_expr":
        left_node, op_token, right_node = children
        return LogicalExpression(
            loc=_loc(node),
            operator=op_token.value,
            left=_build_expr(left_node),
            right=_build_expr(right_node),
        )
    if name == "binary_expr":
        left_node, op_token, right_node = children
        return BinaryExpression(
            loc=_loc(node),
            operator=op_token.value,
            left=_build_expr(left_node),
            right=_build_expr(right_node),
        )
    if name == "unary_expr":
        op_token, arg_node = children
        return UnaryExpression(loc=_loc(node), operator=op_token.value, argument=_build_expr(arg_node))
    if name == "await_expr":
        return AwaitExpression(loc=_loc(node), argument=_build_expr(_subtrees(node)[0]))
    if name == "update_expr":
        arg_node, op_token = children
        return UpdateExpression(loc=_loc(node), operator=op_token.value, argument=_build_expr(arg_node))
    if name == "array":
        return ArrayExpression(loc=_loc(node), elements=[_build_expr(child) for child in _subtrees(node)])
    if name == "object":
        return ObjectExpression(loc=_loc(node), properties=[_build_prop(child) for child in _subtrees(node)])
    if name == "function_expr":
        name_token = _token(node, "NAME")
        return FunctionExpression(
            loc=_loc(node),
            id=_identifier(name_token) if name_token is not None else None,
            params=_build_params(_child(node, "params")),
            body=_build_block(_child(node, "block")),
        )
    raise ParseError(f"unsupported expression '{name}'", _loc(node))


def _build_args(tree: Tree) -> List[Expr]:
    return [_build_expr(child) for child in _subtrees(tree)]


def _build_new_expr(tree: Tree) -> NewExpression:
    target = _child(tree, "new_target")
    names = [tok for tok in target.children if isinstance(tok, Token) and tok.type == "NAME"]
    callee: Expr = _identifier(names[0])
    for tok in names[1:]:
        callee = MemberExpression(loc=_loc_from_token(tok), object=callee, property=_identifier(tok))
    args_node = _child(tree, "arguments")
    arguments = _build_args(args_node) if args_node is not None else []
    return NewExpression(loc=_loc(tree), callee=callee, arguments=arguments)


def _build_arrow(tree: Tree) -> ArrowFunctionExpression:
    params_node, body_node = _subtrees(tree)
    params: List[Identifier] = []
    for child in params_node.children:
        if isinstance(child, Token):
            if child.type == "NAME":
                params.append(_identifier(child))
            continue
        param = _build_expr(child)
        if not isinstance(param, Identifier):
            raise ParseError("arrow function parameters must be identifiers", _loc(child))
        params.append(param)
    if _name(body_node) == "block":
        body = _build_block(body_node)
    else:
        body = _build_expr(body_node)
    return ArrowFunctionExpression(loc=_loc(tree), params=params, body=body)


def _build_prop(tree: Tree) -> ObjectProperty:
    if _name(tree) == "shorthand_prop":
        ident = _identifier(_token(tree, "NAME"))
        value = Identifier(loc=ident.loc, name=ident.name)
        return ObjectProperty(loc=_loc(tree), key=ident, value=value, shorthand=True)
    key_node, value_node = _subtrees(tree)
    key_token = next(tok for tok in key_node.children if isinstance(tok, Token))
    if key_token.type == "NAME":
        key = _identifier(key_token)
    elif key_token.type == "STRING":
        key = Literal(loc=_loc_from_token(key_token), value=_decode_string(key_token.value), raw=key_token.value)
    else:
        raw = key_token.value
        key = Literal(loc=_loc_from_token(key_token), value=float(raw) if "." in raw else int(raw), raw=raw)
    return ObjectProperty(loc=_loc(tree), key=key, value=_build_expr(value_node))


def _decode_string(raw: str) -> str:
    try:
        value = ast.literal_eval(raw)
    except (ValueError, SyntaxError):
        return raw[1:-1]
    return value if isinstance(value, str) else raw[1:-1]


def _identifier(token: Token) -> Identifier:
    return Identifier(loc=_loc_from_token(token), name=token.value)


def _subtrees(tree: Tree) -> List[Tree]:
    return [child for child in tree.children if isinstance(child, Tree)]


def _child(tree: Tree, name: str) -> Optional[Tree]:
    return next((child for child in tree.children if isinstance(child, Tree) and _name(child) == name), None)


def _token(tree: Tree, ttype: str) -> Optional[Token]:
    return next((child for child in tree.children if isinstance(child, Token) and child.type == ttype), None)


def _loc(tree: Tree) -> Located:
    meta = tree.meta
    return Located(line=getattr(meta, "line", 0), column=getattr(meta, "column", 0))


def _loc_from_token(token: Token) -> Located:
    return Located(line=token.line or 0, column=token.column or 0)


def _name(node: Tree | Token) -> str:
    if isinstance(node, Tree):
        data = node.data
        if isinstance(data, Token):
            return data.value
        return data
    if isinstance(node, Token):
        return node.type
    return str(node)
