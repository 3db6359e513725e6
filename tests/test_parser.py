from __future__ import annotations

import pytest

import shellasync
from shellasync.ast import (
    ArrowFunctionExpression,
    AssignmentExpression,
    BinaryExpression,
    BlockStatement,
    CallExpression,
    ExpressionStatement,
    ForOfStatement,
    ForStatement,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    IfStatement,
    Literal,
    Located,
    MemberExpression,
    NewExpression,
    ObjectExpression,
    ReturnStatement,
    TryStatement,
    UpdateExpression,
    VariableDeclaration,
)
from shellasync.errors import ParseError
from shellasync.parser import parse_program


def _expr(source: str):
    program = parse_program(source)
    assert len(program.body) == 1
    stmt = program.body[0]
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression


def test_member_call_chain():
    call = _expr("db.coll.find({ a: 1 })")
    assert isinstance(call, CallExpression)
    assert isinstance(call.callee, MemberExpression)
    assert call.callee.property.name == "find"
    assert isinstance(call.callee.object, MemberExpression)
    assert call.callee.object.object.name == "db"
    assert isinstance(call.arguments[0], ObjectExpression)


def test_computed_member_keeps_literal_property():
    member = _expr("db['coll']")
    assert isinstance(member, MemberExpression)
    assert member.computed
    assert isinstance(member.property, Literal)
    assert member.property.value == "coll"
    assert member.property.raw == "'coll'"


def test_newlines_terminate_statements():
    program = parse_program("let a = 1\nlet b = 2\nprint(a)\n")
    assert [type(s) for s in program.body] == [VariableDeclaration, VariableDeclaration, ExpressionStatement]


def test_semicolons_and_newlines_mix():
    program = parse_program("let a = 1; let b = 2;\n\n;print(a);")
    assert len(program.body) == 3


def test_leading_dot_continues_expression():
    program = parse_program("db.coll\n  .find()\n  .toArray()")
    assert len(program.body) == 1
    assert program.body[0].expression.callee.property.name == "toArray"


def test_binary_operator_continues_expression():
    program = parse_program("let total = 1 +\n  2\nprint(total)")
    assert len(program.body) == 2
    assert isinstance(program.body[0].declarations[0].init, BinaryExpression)


def test_newlines_inside_brackets_are_ignored():
    program = parse_program("print(\n  1,\n  [2,\n 3],\n  { a: 1,\n b: 2 }\n)")
    assert len(program.body) == 1
    assert len(program.body[0].expression.arguments) == 3


def test_object_literal_keys():
    obj = _expr("x = { name: 1, 'quoted': 2, 3: 4, short }").right
    assert isinstance(obj, ObjectExpression)
    keys = obj.properties
    assert isinstance(keys[0].key, Identifier)
    assert isinstance(keys[1].key, Literal) and keys[1].key.value == "quoted"
    assert isinstance(keys[2].key, Literal) and keys[2].key.value == 3
    assert keys[3].shorthand
    assert keys[3].value.name == "short"


def test_block_versus_object_brace():
    program = parse_program("{ let a = 1 }\nlet o = {}")
    assert isinstance(program.body[0], BlockStatement)
    assert isinstance(program.body[1].declarations[0].init, ObjectExpression)


def test_function_declaration_and_expression():
    program = parse_program("function f(a, b) { return a }\nconst g = function () { return 1 }")
    decl = program.body[0]
    assert isinstance(decl, FunctionDeclaration)
    assert decl.id.name == "f"
    assert [p.name for p in decl.params] == ["a", "b"]
    assert isinstance(decl.body.body[0], ReturnStatement)
    expr = program.body[1].declarations[0].init
    assert isinstance(expr, FunctionExpression)
    assert expr.id is None


def test_arrow_functions():
    program = parse_program("const f = x => x.find()\nconst g = (a, b) => { return a }\nconst h = () => ({ a: 1 })")
    f = program.body[0].declarations[0].init
    g = program.body[1].declarations[0].init
    h = program.body[2].declarations[0].init
    assert isinstance(f, ArrowFunctionExpression) and isinstance(f.body, CallExpression)
    assert [p.name for p in g.params] == ["a", "b"]
    assert isinstance(g.body, BlockStatement)
    assert h.params == [] and isinstance(h.body, ObjectExpression)


def test_arrow_params_must_be_identifiers():
    with pytest.raises(ParseError):
        parse_program("const f = (a.b) => 1")


def test_if_else_across_lines():
    program = parse_program("if (x) {\n  a()\n}\nelse {\n  b()\n}")
    stmt = program.body[0]
    assert isinstance(stmt, IfStatement)
    assert isinstance(stmt.alternate, BlockStatement)


def test_if_header_followed_by_newline():
    program = parse_program("if (x)\n  a()\nelse\n  b()")
    stmt = program.body[0]
    assert isinstance(stmt, IfStatement)
    assert isinstance(stmt.consequent, ExpressionStatement)
    assert isinstance(stmt.alternate, ExpressionStatement)


def test_for_loops():
    program = parse_program("for (let i = 0; i < 3; i++) { print(i) }\nfor (const d of docs) print(d)")
    loop = program.body[0]
    assert isinstance(loop, ForStatement)
    assert isinstance(loop.init, VariableDeclaration)
    assert isinstance(loop.update, UpdateExpression)
    of = program.body[1]
    assert isinstance(of, ForOfStatement)
    assert of.left.declaration_kind == "const"
    assert of.left.declarations[0].id.name == "d"


def test_empty_for_header():
    loop = parse_program("for (;;) { break }").body[0]
    assert loop.init is None and loop.test is None and loop.update is None


def test_try_catch_finally():
    stmt = parse_program("try { a() } catch (e) { b() } finally { c() }").body[0]
    assert isinstance(stmt, TryStatement)
    assert stmt.handler.param.name == "e"
    assert stmt.finalizer is not None


def test_new_and_compound_assignment():
    program = parse_program("let d = new Date()\nn += 1")
    assert isinstance(program.body[0].declarations[0].init, NewExpression)
    assign = program.body[1].expression
    assert isinstance(assign, AssignmentExpression)
    assert assign.operator == "+="


def test_return_on_its_own_line_ends_statement():
    fn = parse_program("function f() {\n  return\n  1\n}").body[0]
    assert fn.body.body[0].argument is None
    assert len(fn.body.body) == 2


def test_comments_are_ignored():
    program = parse_program("// leading\nlet a = 1 /* inline */\n/* block\ncomment */ print(a)")
    assert len(program.body) == 2


def test_literal_values():
    program = parse_program("x = [1, 2.5, 'a\\'b', \"c\", true, false, null]")
    values = [e.value for e in program.body[0].expression.right.elements]
    assert values == [1, 2.5, "a'b", "c", True, False, None]


def test_locations_are_recorded():
    call = parse_program("\n  db.coll.find()").body[0].expression
    assert call.loc.line == 2
    assert call.callee.object.object.loc.column == 3


def test_parse_error_has_location():
    with pytest.raises(ParseError) as excinfo:
        parse_program("let = 5")
    assert excinfo.value.loc is not None
    assert excinfo.value.loc.line == 1
    assert str(excinfo.value).startswith("1:")


def test_unterminated_input():
    with pytest.raises(ParseError, match="end of input"):
        parse_program("print(")


def test_unsupported_character():
    with pytest.raises(ParseError):
        parse_program("let a = `template`")


def test_keyword_property_names():
    call = _expr("p.catch(f).finally(g)")
    assert call.callee.property.name == "finally"
    assert call.callee.object.callee.property.name == "catch"


def test_declaration_node_built_directly():
    decl = VariableDeclaration(loc=Located(1, 1), declaration_kind="let", declarations=[])
    assert decl.kind == "VariableDeclaration"
    assert decl.declaration_kind == "let"
    assert shellasync.AsyncWriter is not None
