"""Built-in tests for Sprig templates.

Tests are boolean predicates used with `is` in conditionals:
`{% if value is test %}` or `{% if value is test(arg) %}`

Categories:
**Presence Tests** (operand evaluated without undefined reports):
    - `defined`: Value exists and is not null
    - `undefined`: Value is missing or null
    - `null` / `none`: Value is null or missing
    - `empty`: Value is falsy (empty string, 0, empty collection, missing)

**Number Tests**:
    - `odd`: Integer is odd
    - `even`: Integer is even
    - `divisibleby(n)`: Integer is divisible by n

**Type Tests**:
    - `iterable`: A collection (strings excluded)
    - `string`: Value is a string
    - `number` / `numeric`: int or float (not bool), or a numeric string
    - `integer` / `int`, `float`, `bool` / `boolean`
    - `array`: list, tuple or mapping
    - `mapping`: Value is a mapping
    - `sequence`: list, tuple or string
    - `object`: Any other object
    - `callable`: Value is callable

Negation:
Use `is not` for negated tests:
`{% if user is not defined %}` or `{% if count is not even %}`

Custom Tests:
    >>> env.add_test('prime', lambda n: n > 1 and all(n % i for i in range(2, n)))
    >>> # {% if 17 is prime %}Yes{% endif %}
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from sprig.template.helpers import Undefined


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _test_defined(value: Any) -> bool:
    """Test if value is defined (not None and not the Undefined sentinel)."""
    return value is not None and not isinstance(value, Undefined)


def _test_undefined(value: Any) -> bool:
    return not _test_defined(value)


def _test_null(value: Any) -> bool:
    """Test if value is null; a missing value counts as null."""
    return value is None or isinstance(value, Undefined)


def _test_empty(value: Any) -> bool:
    return not value


def _test_even(value: Any) -> bool:
    number = _as_int(value)
    return number is not None and number % 2 == 0


def _test_odd(value: Any) -> bool:
    number = _as_int(value)
    return number is not None and number % 2 != 0


def _test_divisible_by(value: Any, num: Any) -> bool:
    """Test if value is divisible by num."""
    number, divisor = _as_int(value), _as_int(num)
    if number is None or not divisor:
        return False
    return number % divisor == 0


def _test_iterable(value: Any) -> bool:
    """Test if value is a collection. Strings are not iterable here."""
    if isinstance(value, (str, bytes, Undefined)):
        return False
    return isinstance(value, Iterable)


def _test_string(value: Any) -> bool:
    return isinstance(value, str)


def _test_number(value: Any) -> bool:
    """Test if value is a number or a numeric string."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value.strip())
        except ValueError:
            return False
        return True
    return False


def _test_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _test_float(value: Any) -> bool:
    return isinstance(value, float)


def _test_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _test_array(value: Any) -> bool:
    return isinstance(value, (list, tuple, Mapping))


def _test_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def _test_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, str))


def _test_object(value: Any) -> bool:
    """Test if value is an object other than a scalar, list or mapping."""
    return not isinstance(
        value, (str, bytes, int, float, bool, list, tuple, Mapping, Undefined, type(None))
    )


def _test_callable(value: Any) -> bool:
    return callable(value) and not isinstance(value, Undefined)


DEFAULT_TESTS: dict[str, Callable[..., bool]] = {
    "array": _test_array,
    "bool": _test_bool,
    "boolean": _test_bool,
    "callable": _test_callable,
    "defined": _test_defined,
    "divisibleby": _test_divisible_by,
    "empty": _test_empty,
    "even": _test_even,
    "float": _test_float,
    "int": _test_integer,
    "integer": _test_integer,
    "iterable": _test_iterable,
    "mapping": _test_mapping,
    "none": _test_null,
    "null": _test_null,
    "number": _test_number,
    "numeric": _test_number,
    "object": _test_object,
    "odd": _test_odd,
    "sequence": _test_sequence,
    "string": _test_string,
    "undefined": _test_undefined,
}
