"""Runtime values for Quip.

Quip values are dynamically tagged. Numbers, strings and booleans are
represented by the Python `float`, `str` and `bool` types; lists, maps and
null have dedicated classes. Every consumer of values goes through the
helpers in this module (`type_name`, `to_string`, `is_truthy`) so that the
set of tags is handled in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
import math
import re


class NullVal:
    """Marker object for the Quip `null` value."""

    _instance: Optional['NullVal'] = None

    def __new__(cls) -> 'NullVal':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'null'

    def __bool__(self) -> bool:
        return False


NULL = NullVal()


@dataclass
class ListVal:
    """An ordered list of values, indexed from 0."""
    items: List[Any]

    def __repr__(self) -> str:
        return f"List({self.items!r})"


@dataclass
class MapVal:
    """A mapping from string keys to values."""
    entries: Dict[str, Any]

    def __repr__(self) -> str:
        return f"Map({self.entries!r})"


Value = Union[float, str, bool, ListVal, MapVal, NullVal]


# optional sign, digits, optional decimal point, optional exponent
NUMBER_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')


def parse_number(text: str) -> Optional[float]:
    """Parse text with the permissive numeric grammar, or return None."""
    text = text.strip()
    if NUMBER_RE.match(text):
        return float(text)
    return None


def type_name(value: Any) -> str:
    """Return the Quip type name of a runtime value."""
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, float):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, ListVal):
        return 'list'
    if isinstance(value, MapVal):
        return 'map'
    if isinstance(value, NullVal):
        return 'null'
    raise TypeError(f"not a Quip value: {value!r}")


def format_number(value: float) -> str:
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    if value == int(value) and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    mantissa, _, exponent = text.partition('e')
    if not exponent:
        return text
    exp = int(exponent)
    if -7 < exp < 21:
        # repr switches to exponent form earlier than Quip does
        return format(Decimal(text), 'f')
    return f"{mantissa}e{exp:+d}"


def to_string(value: Any) -> str:
    """Convert a Quip value to the text `say` prints for it.

    Strings print as-is at the top level but are quoted when they appear
    inside a list or a map, so that `["1", 1]` and `[1, 1]` stay
    distinguishable.
    """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, ListVal):
        return '[' + ', '.join(_element_string(item) for item in value.items) + ']'
    if isinstance(value, MapVal):
        entries = ', '.join(f'"{k}": {_element_string(v)}' for k, v in value.entries.items())
        return '{' + entries + '}'
    if isinstance(value, NullVal):
        return 'null'
    raise TypeError(f"not a Quip value: {value!r}")


def _element_string(value: Any) -> str:
    if isinstance(value, str):
        return '"' + value + '"'
    return to_string(value)


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return not (value == 0.0 or math.isnan(value))
    if isinstance(value, str):
        return len(value) > 0
    if isinstance(value, (ListVal, MapVal)):
        return True
    if isinstance(value, NullVal):
        return False
    raise TypeError(f"not a Quip value: {value!r}")


def from_python(obj: Any) -> Any:
    """Convert decoded JSON data into Quip values."""
    if obj is None:
        return NULL
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, (int, float)):
        return float(obj)
    if isinstance(obj, str):
        return obj
    if isinstance(obj, list):
        return ListVal([from_python(item) for item in obj])
    if isinstance(obj, dict):
        return MapVal({str(k): from_python(v) for k, v in obj.items()})
    raise TypeError(f"cannot convert {type(obj).__name__} to a Quip value")


def values_equal(a: Any, b: Any) -> bool:
    """Compare two values by value, coercing numeric strings and booleans."""
    if isinstance(a, bool) and isinstance(b, bool):
        return a == b
    if isinstance(a, bool) and isinstance(b, float):
        return float(a) == b
    if isinstance(a, float) and isinstance(b, bool):
        return a == float(b)
    if isinstance(a, float) and isinstance(b, float):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if isinstance(a, float) and isinstance(b, str):
        parsed = parse_number(b)
        return parsed is not None and parsed == a
    if isinstance(a, str) and isinstance(b, float):
        parsed = parse_number(a)
        return parsed is not None and parsed == b
    if isinstance(a, ListVal) and isinstance(b, ListVal):
        if len(a.items) != len(b.items):
            return False
        return all(values_equal(x, y) for x, y in zip(a.items, b.items))
    if isinstance(a, MapVal) and isinstance(b, MapVal):
        if a.entries.keys() != b.entries.keys():
            return False
        return all(values_equal(v, b.entries[k]) for k, v in a.entries.items())
    if isinstance(a, NullVal) and isinstance(b, NullVal):
        return True
    return False
