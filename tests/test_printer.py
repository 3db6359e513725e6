from __future__ import annotations

import pytest

from shellasync.ast import AwaitExpression, CallExpression, ExpressionStatement, Identifier, Located, MemberExpression, Program
from shellasync.parser import parse_program
from shellasync.printer import format_program

L = Located(line=1, column=1)


def _roundtrip(source: str) -> str:
    return format_program(parse_program(source))


@pytest.mark.parametrize(
    "source, expected",
    [
        ("a + b * c", "a + b * c;"),
        ("(a + b) * c", "(a + b) * c;"),
        ("a - (b - c)", "a - (b - c);"),
        ("(a || b) && c", "(a || b) && c;"),
        ("a ?? (b || c)", "a ?? (b || c);"),
        ("x = a ? b : c", "x = a ? b : c;"),
        ("-(-x)", "- -x;"),
        ("!(a && b)", "!(a && b);"),
        ("typeof x === 'string'", "typeof x === 'string';"),
        ("f = x => ({ a: 1 })", "f = x => ({ a: 1 });"),
        ("f = (a, b) => a + b", "f = (a, b) => a + b;"),
        ("i++", "i++;"),
        ("new Date(1)", "new Date(1);"),
        ("x = { a, 'b': [1, 2] }", "x = { a, 'b': [1, 2] };"),
    ],
)
def test_expressions(source, expected):
    assert _roundtrip(source) == expected


def test_await_of_member_object_is_parenthesized():
    inner = AwaitExpression(
        loc=L,
        argument=CallExpression(
            loc=L,
            callee=MemberExpression(loc=L, object=Identifier(loc=L, name="c"), property=Identifier(loc=L, name="find")),
        ),
    )
    outer = CallExpression(loc=L, callee=MemberExpression(loc=L, object=inner, property=Identifier(loc=L, name="toArray")))
    program = Program(loc=L, body=[ExpressionStatement(loc=L, expression=AwaitExpression(loc=L, argument=outer))])
    assert format_program(program) == "await (await c.find()).toArray();"


def test_statements_are_indented():
    source = "function f(a) {\nif (a) { return 1 } else { return 2 }\n}"
    assert _roundtrip(source) == "\n".join(
        [
            "function f(a) {",
            "  if (a) {",
            "    return 1;",
            "  } else {",
            "    return 2;",
            "  }",
            "}",
        ]
    )


def test_loops_and_try():
    source = "for (let i = 0; i < 2; i++) print(i)\nfor (const d of docs) {}\ntry { a() } catch (e) { b() } finally {}"
    assert _roundtrip(source) == "\n".join(
        [
            "for (let i = 0; i < 2; i++) print(i);",
            "for (const d of docs) {}",
            "try {",
            "  a();",
            "} catch (e) {",
            "  b();",
            "} finally {}",
        ]
    )


def test_function_expression_statement_is_wrapped():
    assert _roundtrip("(function () { return 1 })()") == "(function() {\n  return 1;\n})();"


def test_if_without_block_and_else():
    assert _roundtrip("if (a) b()\nelse c()") == "if (a) b();\nelse c();"
