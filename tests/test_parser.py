"""Tests for the Sprig parser: tree shapes, block closing and syntax errors."""

from __future__ import annotations

import pytest

from sprig import ErrorCode, TemplateSyntaxError
from sprig.lexer import tokenize
from sprig.nodes import (
    BinOp,
    Block,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Data,
    Dict,
    Filter,
    For,
    FuncCall,
    Getattr,
    Getitem,
    If,
    Include,
    Name,
    Output,
    Range,
    Set,
    Test,
    Tuple,
    UnaryOp,
)
from sprig.parser import ParseError, Parser


def parse(source: str, **kwargs):
    return Parser(tokenize(source), "test.html", None, source, **kwargs).parse()


def parse_expr(source: str):
    output = parse(f"{{{{ {source} }}}}").body[0]
    assert isinstance(output, Output)
    return output.expr


class TestBody:
    def test_data_and_output(self) -> None:
        tree = parse("Hi {{ name }}!")
        assert [type(n) for n in tree.body] == [Data, Output, Data]
        assert tree.extends is None

    def test_raw_output_is_not_escaped(self) -> None:
        escaped, raw = parse("{{ a }}{! a !}").body
        assert escaped.escape is True
        assert raw.escape is False

    def test_autoescape_false_disables_escaping(self) -> None:
        tree = parse("{% autoescape false %}{{ a }}{% endautoescape %}{{ b }}")
        inner, outer = tree.body
        assert inner.escape is False
        assert outer.escape is True

    def test_autoescape_true_keeps_escaping(self) -> None:
        (node,) = parse("{% autoescape 'html' %}{{ a }}{% end %}").body
        assert node.escape is True

    def test_extends_recorded_on_root(self) -> None:
        tree = parse('{% extends "base.html" %}{% block content %}x{% endblock %}')
        assert tree.extends is not None
        assert tree.extends.template == "base.html"
        assert isinstance(tree.body[0], Block)

    def test_include(self) -> None:
        (node,) = parse('{% include "partial.html" %}').body
        assert isinstance(node, Include)
        assert node.template == "partial.html"

    def test_set(self) -> None:
        (node,) = parse("{% set total = 1 + 2 %}").body
        assert isinstance(node, Set)
        assert node.target.name == "total"
        assert isinstance(node.value, BinOp)


class TestControlFlow:
    def test_if_elseif_else(self) -> None:
        (node,) = parse("{% if a %}1{% elseif b %}2{% elif c %}3{% else %}4{% endif %}").body
        assert isinstance(node, If)
        assert len(node.elif_) == 2
        assert node.else_[0].value == "4"

    def test_for_with_single_target(self) -> None:
        (node,) = parse("{% for item in items %}{{ item }}{% endfor %}").body
        assert isinstance(node, For)
        assert isinstance(node.target, Name)
        assert node.target.name == "item"

    def test_for_with_key_value_targets(self) -> None:
        (node,) = parse("{% for k, v in pairs %}{% endfor %}").body
        assert isinstance(node.target, Tuple)
        assert [n.name for n in node.target.items] == ["k", "v"]

    def test_for_empty_alias(self) -> None:
        (node,) = parse("{% for x in xs %}a{% empty %}none{% endfor %}").body
        assert node.empty[0].value == "none"

    def test_generic_end_closes_any_block(self) -> None:
        tree = parse("{% if a %}{% for x in xs %}{{ x }}{% end %}{% end %}")
        assert isinstance(tree.body[0], If)
        assert isinstance(tree.body[0].body[0], For)

    def test_endblock_may_repeat_name(self) -> None:
        (node,) = parse("{% block content %}x{% endblock content %}").body
        assert node.name == "content"


class TestExpressions:
    def test_literals(self) -> None:
        assert parse_expr("'text'").value == "text"
        assert parse_expr("42").value == 42
        assert parse_expr("1.5").value == 1.5
        assert parse_expr("true").value is True
        assert parse_expr("False").value is False
        assert parse_expr("null").value is None
        assert parse_expr("none").value is None

    def test_filter_binds_tighter_than_comparison(self) -> None:
        expr = parse_expr("items|length > 0")
        assert isinstance(expr, Compare)
        assert isinstance(expr.left, Filter)

    def test_filter_chain_is_left_to_right(self) -> None:
        expr = parse_expr("name|upper|trim")
        assert isinstance(expr, Filter)
        assert expr.name == "trim"
        assert expr.value.name == "upper"

    def test_filter_arguments(self) -> None:
        expr = parse_expr("price|number_format(2, thousands_sep=' ')")
        assert len(expr.args) == 1
        assert set(expr.kwargs) == {"thousands_sep"}

    def test_not_binds_looser_than_comparison(self) -> None:
        expr = parse_expr("not a == b")
        assert isinstance(expr, UnaryOp)
        assert isinstance(expr.operand, Compare)

    def test_and_binds_tighter_than_or(self) -> None:
        expr = parse_expr("a or b and c")
        assert isinstance(expr, BoolOp)
        assert expr.op == "or"
        assert expr.values[1].op == "and"

    def test_arithmetic_precedence(self) -> None:
        expr = parse_expr("1 + 2 * 3")
        assert expr.op == "+"
        assert expr.right.op == "*"

    def test_word_comparisons(self) -> None:
        assert parse_expr("a in b").ops == ("in",)
        assert parse_expr("a not in b").ops == ("not in",)
        assert parse_expr("a starts with 'x'").ops == ("starts with",)
        assert parse_expr("a ends with 'x'").ops == ("ends with",)

    def test_is_test(self) -> None:
        expr = parse_expr("n is not divisibleby(3)")
        assert isinstance(expr, Test)
        assert expr.negated is True
        assert expr.name == "divisibleby"
        assert len(expr.args) == 1

    def test_ternary(self) -> None:
        expr = parse_expr("ok ? 'yes' : 'no'")
        assert isinstance(expr, CondExpr)

    def test_concat(self) -> None:
        expr = parse_expr("a ~ ' ' ~ b")
        assert isinstance(expr, Concat)
        assert len(expr.nodes) == 3

    def test_range_literal(self) -> None:
        assert isinstance(parse_expr("1..5"), Range)

    def test_access_chain(self) -> None:
        expr = parse_expr("user.roles[0].name")
        assert isinstance(expr, Getattr)
        assert isinstance(expr.obj, Getitem)
        assert isinstance(expr.obj.obj, Getattr)

    def test_numeric_dot_access_is_index(self) -> None:
        expr = parse_expr("items.0")
        assert isinstance(expr, Getitem)
        assert expr.key.value == 0

    def test_function_call_with_nested_calls(self) -> None:
        expr = parse_expr("url(path(a, b), absolute=true)")
        assert isinstance(expr, FuncCall)
        assert isinstance(expr.args[0], FuncCall)
        assert isinstance(expr.kwargs["absolute"], Const)

    def test_method_call(self) -> None:
        expr = parse_expr("user.greet('hi')")
        assert isinstance(expr, FuncCall)
        assert isinstance(expr.func, Getattr)

    def test_dict_bare_keys_are_strings(self) -> None:
        expr = parse_expr("{a: 1, 'b': 2}")
        assert isinstance(expr, Dict)
        assert [k.value for k in expr.keys] == ["a", "b"]


class TestSyntaxErrors:
    def test_unclosed_block(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("{% if a %}never closed")
        assert exc_info.value.code == ErrorCode.UNCLOSED_BLOCK
        assert "line 1" in str(exc_info.value)

    def test_mismatched_end_tag(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("{% for x in xs %}{% endif %}")
        assert exc_info.value.code == ErrorCode.UNCLOSED_BLOCK

    def test_end_without_open_block(self) -> None:
        with pytest.raises(ParseError):
            parse("{% endif %}")

    def test_unknown_tag_suggests_close_match(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("{% fro x in xs %}{% endfor %}")
        assert exc_info.value.code == ErrorCode.UNKNOWN_TAG
        assert exc_info.value.suggestion == "Did you mean '{% for %}'?"

    def test_empty_expression(self) -> None:
        with pytest.raises(ParseError):
            parse("{{ }}")

    def test_extends_requires_string_literal(self) -> None:
        with pytest.raises(ParseError):
            parse("{% extends parent %}")

    def test_extends_inside_block_rejected(self) -> None:
        with pytest.raises(ParseError):
            parse('{% if a %}{% extends "base.html" %}{% endif %}')

    def test_double_extends_rejected(self) -> None:
        with pytest.raises(ParseError):
            parse('{% extends "a.html" %}{% extends "b.html" %}')

    def test_for_requires_in(self) -> None:
        with pytest.raises(ParseError):
            parse("{% for x of xs %}{% endfor %}")

    def test_for_binds_at_most_two_names(self) -> None:
        with pytest.raises(ParseError):
            parse("{% for a, b, c in xs %}{% endfor %}")

    def test_unknown_autoescape_mode(self) -> None:
        with pytest.raises(ParseError):
            parse("{% autoescape js %}{% endautoescape %}")

    def test_nesting_limit(self) -> None:
        source = "{% if a %}" * 4 + "{% endif %}" * 4
        parse(source, max_nesting=4)
        with pytest.raises(ParseError) as exc_info:
            parse(source, max_nesting=3)
        assert exc_info.value.code == ErrorCode.NESTING_TOO_DEEP

    def test_parse_error_is_syntax_error_with_location(self) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            parse("line one\n{{ a + }}")
        assert exc_info.value.lineno == 2
        assert "test.html:2" in str(exc_info.value)
