"""Tests for the built-in filters and filter registration."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from sprig import Environment, Markup, UnknownFilterError
from sprig.environment.filters import DEFAULT_FILTERS

from .conftest import render


class TestCaseFilters:
    def test_upper_then_trim(self, env: Environment) -> None:
        assert render(env, "{{ name|upper|trim }}", name="  world  ") == "WORLD"

    def test_lower(self, env: Environment) -> None:
        assert render(env, "{{ 'MiXeD'|lower }}") == "mixed"

    def test_capitalize_title_cases_words(self, env: Environment) -> None:
        assert render(env, "{{ 'hello big world'|capitalize }}") == "Hello Big World"

    def test_filters_with_spaces_around_pipe(self, env: Environment) -> None:
        assert render(env, "{{ name | upper }}", name="x") == "X"


class TestHtmlFilters:
    def test_escape_returns_markup(self) -> None:
        result = DEFAULT_FILTERS["escape"]("<a>")
        assert isinstance(result, Markup)
        assert result == "&lt;a&gt;"

    def test_escape_is_not_double_escaped(self, env: Environment) -> None:
        assert render(env, "{{ x|e }}", x="<a>") == "&lt;a&gt;"

    def test_striptags(self, env: Environment) -> None:
        assert render(env, "{{ x|striptags }}", x="<p>Hi <b>there</b><!-- c --></p>") == "Hi there"

    def test_nl2br_escapes_then_breaks(self, env: Environment) -> None:
        assert render(env, "{{ x|nl2br }}", x="a<\nb") == "a&lt;<br />\nb"


class TestNumberFilters:
    def test_abs(self, env: Environment) -> None:
        assert render(env, "{{ x|abs }}", x=-3) == "3"
        assert render(env, "{{ -x|abs }}", x=3) == "-3"

    @pytest.mark.parametrize(
        ("value", "precision", "expected"),
        [
            (2.5, 0, "3"),
            (-2.5, 0, "-3"),
            (1.005, 2, "1.01"),
            (3.14159, 3, "3.142"),
            ("7.5", 0, "8"),
        ],
    )
    def test_round_half_away_from_zero(
        self, env: Environment, value: object, precision: int, expected: str
    ) -> None:
        assert render(env, "{{ v|round(p) }}", v=value, p=precision) == expected

    def test_round_default_precision_returns_int(self) -> None:
        assert DEFAULT_FILTERS["round"](4.4) == 4
        assert isinstance(DEFAULT_FILTERS["round"](4.4), int)

    def test_number_format(self, env: Environment) -> None:
        assert render(env, "{{ 1234567.891|number_format(2) }}") == "1,234,567.89"
        assert render(env, "{{ 1234.5|number_format(2, ',', ' ') }}") == "1 234,50"
        assert render(env, "{{ 999|number_format }}") == "999"

    def test_number_format_non_numeric_is_zero(self, env: Environment) -> None:
        assert render(env, "{{ 'abc'|number_format(1) }}") == "0.0"


class TestCollectionFilters:
    def test_length_and_count(self, env: Environment) -> None:
        assert render(env, "{{ xs|length }} {{ s|length }}", xs=[1, 2], s="abc") == "2 3"
        assert render(env, "{{ xs|count }} {{ s|count }}", xs={"a": 1}, s="abc") == "1 0"

    def test_join(self, env: Environment) -> None:
        assert render(env, "{{ xs|join(', ') }}", xs=["a", None, 3]) == "a, , 3"

    def test_join_mapping_uses_values(self, env: Environment) -> None:
        assert render(env, "{{ d|join('-') }}", d={"x": 1, "y": 2}) == "1-2"

    def test_first_and_last(self, env: Environment) -> None:
        assert render(env, "{{ xs|first }}{{ xs|last }}", xs=[1, 2, 3]) == "13"
        assert render(env, "[{{ xs|first }}]", xs=[]) == "[]"

    def test_keys_and_values(self, env: Environment) -> None:
        d = {"a": 1, "b": 2}
        assert render(env, "{{ d|keys|join }}{{ d|values|join }}", d=d) == "ab12"

    def test_reverse(self, env: Environment) -> None:
        assert render(env, "{{ xs|reverse|join }}", xs=[1, 2, 3]) == "321"
        assert render(env, "{{ 'abc'|reverse }}") == "cba"

    def test_batch_pads_last_chunk(self) -> None:
        batch = DEFAULT_FILTERS["batch"]
        assert batch([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
        assert batch([1, 2, 3], 2, "-") == [[1, 2], [3, "-"]]

    def test_batch_in_loop(self, env: Environment) -> None:
        source = "{% for row in xs|batch(2) %}[{{ row|join }}]{% endfor %}"
        assert render(env, source, xs=[1, 2, 3]) == "[12][3]"

    def test_slice(self, env: Environment) -> None:
        assert render(env, "{{ 'abcdef'|slice(1, 3) }}") == "bcd"
        assert render(env, "{{ xs|slice(2)|join }}", xs=[1, 2, 3, 4]) == "34"
        assert render(env, "{{ xs|slice(-2)|join }}", xs=[1, 2, 3, 4]) == "34"


class TestStringFilters:
    def test_truncate(self, env: Environment) -> None:
        assert render(env, "{{ 'abcdefgh'|truncate(3) }}") == "abc..."
        assert render(env, "{{ 'abc'|truncate(3) }}") == "abc"
        assert render(env, "{{ 'abcdef'|truncate(2, '!') }}") == "ab!"

    def test_replace(self, env: Environment) -> None:
        assert render(env, "{{ 'a-b-c'|replace('-', '+') }}") == "a+b+c"

    def test_split(self, env: Environment) -> None:
        assert render(env, "{{ 'a,b'|split|join('|') }}") == "a|b"
        assert render(env, "{{ 'a b'|split(' ')|length }}") == "2"


class TestFormattingFilters:
    def test_date_from_datetime(self, env: Environment) -> None:
        value = datetime(2024, 3, 9, 14, 5, 0)
        assert render(env, "{{ d|date }}", d=value) == "2024-03-09 14:05:00"
        assert render(env, "{{ d|date('%d/%m/%Y') }}", d=value) == "09/03/2024"

    def test_date_from_date_and_iso_string(self, env: Environment) -> None:
        assert render(env, "{{ d|date('%Y') }}", d=date(1999, 1, 1)) == "1999"
        assert render(env, "{{ '2020-02-29T10:00:00'|date('%m-%d') }}") == "02-29"

    def test_date_from_timestamp(self) -> None:
        expected = datetime.fromtimestamp(0).strftime("%Y")
        assert DEFAULT_FILTERS["date"](0, "%Y") == expected

    def test_date_unparseable_returned_unchanged(self, env: Environment) -> None:
        assert render(env, "{{ 'not a date'|date }}") == "not a date"

    def test_default_replaces_empty_values(self, env: Environment) -> None:
        source = "{{ a|default('x') }}{{ b|default('y') }}{{ c|default('z') }}"
        assert render(env, source, a="", b=0, c="kept") == "xykept"

    def test_default_on_missing_variable(self, env: Environment) -> None:
        assert render(env, "{{ missing|default('N/A') }}") == "N/A"
        assert render(env, "[{{ missing|default }}]") == "[]"

    def test_json(self, env: Environment) -> None:
        assert render(env, "{! d|json !}", d={"a": [1, "é"]}) == '{"a": [1, "é"]}'

    def test_json_decode(self, env: Environment) -> None:
        assert render(env, "{{ ('{\"a\": 2}'|json_decode).a }}") == "2"
        assert render(env, "[{{ 'nope'|json_decode }}]") == "[]"

    def test_url_encode_and_decode(self, env: Environment) -> None:
        assert render(env, "{{ 'a b&c'|url_encode }}") == "a+b%26c"
        assert render(env, "{{ 'a+b%26c'|url_decode }}") == "a b&amp;c"

    def test_dump(self, env: Environment) -> None:
        result = render(env, "{{ d|dump }}", d={"k": "<v>"})
        assert result == "<pre>{&#039;k&#039;: &#039;&lt;v&gt;&#039;}</pre>"


class TestFilterRegistration:
    def test_add_filter(self) -> None:
        env = Environment().add_filter("double", lambda x: x * 2)
        assert render(env, "{{ 21|double }}") == "42"

    def test_filter_decorator(self) -> None:
        env = Environment()

        @env.filter()
        def shout(value):
            return f"{value}!"

        @env.filter("wrap")
        def _wrap(value, left="[", right="]"):
            return f"{left}{value}{right}"

        assert render(env, "{{ 'hi'|shout|wrap(right='>') }}") == "[hi!&gt;"

    def test_constructor_filters_extend_builtins(self) -> None:
        env = Environment(filters={"money": lambda v: f"${v:,.2f}"})
        assert render(env, "{{ 1234|money }} {{ 'a'|upper }}") == "$1,234.00 A"

    def test_reregistration_replaces(self) -> None:
        env = Environment().add_filter("upper", lambda v: "replaced")
        assert render(env, "{{ 'x'|upper }}") == "replaced"

    def test_non_callable_rejected(self, env: Environment) -> None:
        with pytest.raises(TypeError):
            env.filters["bad"] = "not callable"

    def test_unknown_filter_fails_at_compile_time(self, env: Environment) -> None:
        with pytest.raises(UnknownFilterError) as exc_info:
            env.from_string("{{ name|uper }}")
        assert exc_info.value.suggestion == "upper"
        assert "Did you mean" in str(exc_info.value)

    def test_environments_do_not_share_registrations(self) -> None:
        first = Environment().add_filter("only_here", lambda v: v)
        second = Environment()
        assert "only_here" in first.filters
        assert "only_here" not in second.filters
