"""Tests for ``is`` tests: built-ins, negation, quiet operands and registration."""

from __future__ import annotations

import logging

import pytest

from sprig import Environment, UnknownTestError

from .conftest import render


def check(env: Environment, expr: str, **context: object) -> bool:
    result = render(env, f"{{% if {expr} %}}yes{{% else %}}no{{% endif %}}", **context)
    return result == "yes"


class TestPresenceTests:
    def test_defined(self, env: Environment) -> None:
        assert check(env, "x is defined", x=0)
        assert not check(env, "missing is defined")
        assert not check(env, "x is defined", x=None)

    def test_undefined(self, env: Environment) -> None:
        assert check(env, "missing is undefined")
        assert check(env, "x is not undefined", x="")

    def test_null_and_none(self, env: Environment) -> None:
        assert check(env, "x is null", x=None)
        assert check(env, "missing is none")
        assert not check(env, "x is null", x=0)

    def test_empty(self, env: Environment) -> None:
        assert check(env, "x is empty", x=[])
        assert check(env, "x is empty", x="")
        assert check(env, "missing is empty")
        assert not check(env, "x is empty", x=[0])

    def test_presence_tests_do_not_report(
        self, env: Environment, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="sprig"):
            render(
                env,
                "{% if a is defined %}{% endif %}{% if b.c is null %}{% endif %}"
                "{% if d is empty %}{% endif %}{% if e is undefined %}{% endif %}",
            )
        assert caplog.records == []
        assert env.undefined_references == {}


class TestNumberTests:
    @pytest.mark.parametrize(("n", "even"), [(0, True), (3, False), (-4, True), ("6", True)])
    def test_even_and_odd(self, env: Environment, n: object, even: bool) -> None:
        assert check(env, "n is even", n=n) is even
        assert check(env, "n is odd", n=n) is not even

    def test_non_numbers_are_neither_even_nor_odd(self, env: Environment) -> None:
        assert not check(env, "n is even", n="x")
        assert not check(env, "n is odd", n=None)

    def test_divisibleby(self, env: Environment) -> None:
        assert check(env, "n is divisibleby(3)", n=9)
        assert check(env, "n is not divisibleby(3)", n=10)
        assert not check(env, "n is divisibleby(0)", n=10)


class TestTypeTests:
    @pytest.mark.parametrize(
        ("test", "value", "expected"),
        [
            ("iterable", [1], True),
            ("iterable", "text", False),
            ("iterable", {"a": 1}, True),
            ("string", "s", True),
            ("string", 1, False),
            ("number", 1.5, True),
            ("number", "42", True),
            ("numeric", "4.2", True),
            ("number", "x", False),
            ("number", True, False),
            ("integer", 3, True),
            ("int", 3.0, False),
            ("float", 3.0, True),
            ("bool", False, True),
            ("boolean", 0, False),
            ("array", (1, 2), True),
            ("array", {"a": 1}, True),
            ("array", "ab", False),
            ("mapping", {"a": 1}, True),
            ("mapping", [1], False),
            ("sequence", "ab", True),
            ("sequence", {"a": 1}, False),
            ("object", object(), True),
            ("object", [1], False),
            ("callable", len, True),
            ("callable", 1, False),
        ],
    )
    def test_type_tests(self, env: Environment, test: str, value: object, expected: bool) -> None:
        assert check(env, f"v is {test}", v=value) is expected

    def test_missing_value_is_not_iterable(self, env: Environment) -> None:
        assert not check(env, "missing is iterable")


class TestTestRegistration:
    def test_add_test(self) -> None:
        env = Environment().add_test("prime", lambda n: n > 1 and all(n % i for i in range(2, n)))
        assert check(env, "n is prime", n=17)
        assert not check(env, "n is prime", n=15)

    def test_test_decorator_with_argument(self) -> None:
        env = Environment()

        @env.test()
        def longer_than(value, size):
            return len(value) > size

        assert check(env, "s is longer_than(2)", s="abc")
        assert check(env, "s is not longer_than(5)", s="abc")

    def test_unknown_test_fails_at_compile_time(self, env: Environment) -> None:
        with pytest.raises(UnknownTestError) as exc_info:
            env.from_string("{% if x is defind %}{% endif %}")
        assert exc_info.value.suggestion == "defined"
