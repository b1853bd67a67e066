"""Tests for error types, error codes and diagnostic formatting."""

from __future__ import annotations

from pathlib import Path

import pytest

from sprig import (
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    TemplateTooLargeError,
    UnknownFilterError,
    UnknownFunctionError,
    UnknownTestError,
    build_source_snippet,
)
from sprig.environment import terminal


class TestErrorCodes:
    @pytest.mark.parametrize(
        ("code", "category"),
        [
            (ErrorCode.UNCLOSED_TAG, "lexer"),
            (ErrorCode.UNKNOWN_TAG, "parser"),
            (ErrorCode.UNDEFINED_VARIABLE, "runtime"),
            (ErrorCode.TEMPLATE_NOT_FOUND, "template"),
        ],
    )
    def test_category(self, code: ErrorCode, category: str) -> None:
        assert code.category == category

    def test_codes_are_unique(self) -> None:
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))

    def test_format_compact_prefixes_code(self) -> None:
        error = TemplateNotFoundError("Template 'x' not found")
        assert error.format_compact() == "S-TPL-001: Template 'x' not found"

    def test_base_error_without_code(self) -> None:
        assert TemplateError("plain").format_compact() == "plain"

    def test_too_large_message(self) -> None:
        error = TemplateTooLargeError("big.html", 6 * 1024 * 1024, 5 * 1024 * 1024)
        assert str(error) == "Template file is too large: big.html is 6.00 MB (max: 5.00 MB)"
        assert error.code is ErrorCode.TEMPLATE_TOO_LARGE


class TestSyntaxErrorFormatting:
    def test_message_with_location_and_caret(self) -> None:
        error = TemplateSyntaxError(
            "Unexpected token", lineno=2, name="page.html", source="a\n{{ x + }}", col_offset=7
        )
        text = str(error)
        assert text.startswith("Syntax Error: Unexpected token\n  --> page.html:2:7")
        assert "  2 | {{ x + }}" in text
        assert "   |        ^" in text

    def test_filename_preferred_over_name(self) -> None:
        error = TemplateSyntaxError("bad", lineno=1, name="page.html", filename="/srv/page.html")
        assert error.location == "/srv/page.html:1"

    def test_format_compact(self) -> None:
        error = TemplateSyntaxError("bad", lineno=1, source="{{", code=ErrorCode.UNCLOSED_TAG)
        compact = error.format_compact()
        assert compact.startswith("S-LEX-001: bad\n  --> <template>:1")
        assert "  1 | {{" in compact

    def test_parse_errors_carry_codes(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError) as exc_info:
            env.from_string("{% fro x in y %}{% endfor %}")
        assert exc_info.value.code is ErrorCode.UNKNOWN_TAG


class TestUnknownNames:
    def test_unknown_filter_at_compile_time(self, env: Environment) -> None:
        with pytest.raises(UnknownFilterError) as exc_info:
            env.from_string("\n{{ name|uper }}")
        error = exc_info.value
        assert error.name == "uper"
        assert error.suggestion == "upper"
        assert error.lineno == 2
        assert error.code is ErrorCode.UNKNOWN_FILTER
        assert "Filter 'uper' not found in <template>:2. Did you mean 'upper'?" == str(error)

    def test_unknown_function(self, env: Environment) -> None:
        with pytest.raises(UnknownFunctionError) as exc_info:
            env.from_string("{{ rnge(1, 3) }}")
        assert exc_info.value.suggestion == "range"

    def test_unknown_test(self, env: Environment) -> None:
        with pytest.raises(UnknownTestError) as exc_info:
            env.from_string("{% if x is evn %}{% endif %}")
        assert exc_info.value.suggestion == "even"

    def test_no_suggestion_for_distant_names(self, env: Environment) -> None:
        with pytest.raises(UnknownFilterError) as exc_info:
            env.from_string("{{ x|zzzzqqq }}")
        assert exc_info.value.suggestion is None
        assert "Did you mean" not in str(exc_info.value)

    def test_unknown_filter_in_cached_code_fails_at_render(
        self, template_dir: Path, tmp_path: Path
    ) -> None:
        (template_dir / "shout.html").write_text("{{ 'a'|shout }}", encoding="utf-8")
        cache_dir = tmp_path / "cache"
        writer = Environment(
            loader=FileSystemLoader(template_dir),
            cache_dir=cache_dir,
            filters={"shout": lambda s: s.upper() + "!"},
        )
        assert writer.render("shout.html") == "A!"

        reader = Environment(loader=FileSystemLoader(template_dir), cache_dir=cache_dir)
        template = reader.get_template("shout.html")
        assert template.from_cache is True
        with pytest.raises(UnknownFilterError) as exc_info:
            template.render()
        assert exc_info.value.lineno == 1


class TestRuntimeErrors:
    def test_python_error_wrapped_with_line(self, env: Environment) -> None:
        template = env.from_string("line one\n{{ 1 / zero }}\nline three")
        with pytest.raises(TemplateRuntimeError) as exc_info:
            template.render(zero=0)
        error = exc_info.value
        assert isinstance(error.__cause__, ZeroDivisionError)
        assert error.message == "ZeroDivisionError: division by zero"
        assert error.lineno == 2
        assert error.code is ErrorCode.RUNTIME_ERROR
        text = str(error)
        assert "Runtime Error: ZeroDivisionError: division by zero" in text
        assert "Location: <template>:2" in text
        assert ">  2 | {{ 1 / zero }}" in text

    def test_type_and_value_errors_keep_plain_message(self, env: Environment) -> None:
        template = env.from_string("{{ n + s }}")
        with pytest.raises(TemplateRuntimeError) as exc_info:
            template.render(n=1, s="a")
        assert exc_info.value.message.startswith("unsupported operand type(s) for +")

    def test_error_inside_include_reports_include_line(self) -> None:
        env = Environment(loader=DictLoader({"inc": "\n\n{{ 1 / zero }}"}))
        template = env.from_string('a\n{% include "inc" %}', name="outer")
        with pytest.raises(TemplateRuntimeError) as exc_info:
            template.render(zero=0)
        assert exc_info.value.lineno == 2
        assert exc_info.value.template_name == "outer"

    def test_error_inside_loop(self, env: Environment) -> None:
        template = env.from_string("{% for x in xs %}\n{{ 10 / x }}\n{% endfor %}")
        with pytest.raises(TemplateRuntimeError) as exc_info:
            template.render(xs=[1, 0])
        assert exc_info.value.lineno == 2

    def test_format_compact(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("{{ 1 / zero }}", name="calc.html").render(zero=0)
        compact = exc_info.value.format_compact()
        assert compact.startswith("S-RUN-005: ZeroDivisionError: division by zero")
        assert "  Location: calc.html:1" in compact

    def test_template_errors_pass_through_unwrapped(self) -> None:
        env = Environment(strict_variables=True)
        with pytest.raises(TemplateError) as exc_info:
            env.from_string("{{ gone }}").render()
        assert not isinstance(exc_info.value, TemplateRuntimeError)

    def test_values_and_suggestion_rendered(self) -> None:
        error = TemplateRuntimeError(
            "bad total",
            expression="{{ total + label }}",
            values={"total": 1, "label": "x" * 100},
            template_name="cart.html",
            lineno=15,
            suggestion="Convert label first",
        )
        text = str(error)
        assert "  Expression: {{ total + label }}" in text
        assert "    total = 1 (int)" in text
        assert "..." in text
        assert "Suggestion: Convert label first" in text


class TestSourceSnippet:
    def test_exported_from_package(self) -> None:
        import sprig
        from sprig.environment import build_source_snippet as from_environment

        assert "build_source_snippet" in sprig.__all__
        assert sprig.build_source_snippet is from_environment

    def test_context_lines(self) -> None:
        source = "\n".join(f"line {i}" for i in range(1, 11))
        snippet = build_source_snippet(source, 5)
        assert [n for n, _ in snippet.lines] == [3, 4, 5, 6, 7]
        assert snippet.error_line == 5

    def test_clamped_at_edges(self) -> None:
        snippet = build_source_snippet("a\nb", 1, context_lines=5)
        assert snippet.lines == ((1, "a"), (2, "b"))

    def test_format_marks_error_line(self) -> None:
        snippet = build_source_snippet("a\nb\nc", 2, column=1)
        assert snippet.format().splitlines() == [
            "   |",
            "   1 | a",
            ">  2 | b",
            "   3 | c",
            "   |  ^",
            "   |",
        ]


class TestTerminal:
    def test_plain_when_colors_disabled(self) -> None:
        assert terminal.supports_color() is False
        assert terminal.hint("Hint:") == "Hint:"
        assert terminal.format_error_header("S-RUN-001", "msg") == "S-RUN-001: msg"
        assert terminal.format_error_header(None, "msg") == "msg"

    def test_styles_when_colors_enabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        styled = terminal.location("page.html:3")
        assert styled != "page.html:3"
        assert styled.startswith("\033[36m")
        assert terminal.strip_colors(styled) == "page.html:3"
        assert terminal.style("x", "no-such-role") == "x"

    def test_strip_colors_on_error_message(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        error = UnknownFilterError("uper", available=["upper"], template_name="t.html", lineno=1)
        assert terminal.strip_colors(str(error)) == (
            "Filter 'uper' not found in t.html:1. Did you mean 'upper'?"
        )

    def test_caret_line(self) -> None:
        assert terminal.caret_line(3) == "   |    ^"
