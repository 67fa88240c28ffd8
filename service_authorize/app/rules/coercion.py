"""
Value coercion shared by the rule builder and the evaluator.

Attribute values arrive as strings from the identity assertion, so every
numeric comparison and every exception flag goes through the two helpers
below instead of relying on implicit conversions.
"""

import re
from typing import Any, Optional, Union

_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")

_TRUE_STRINGS = frozenset({"1", "true", "on", "yes"})
_FALSE_STRINGS = frozenset({"0", "false", "off", "no", ""})


def is_numeric(value: Any) -> bool:
    """Return True for numbers and decimal/exponent numeric strings.

    Booleans are not numbers here, and neither are "inf", "nan" or
    underscore-grouped literals that float() would otherwise accept.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        return bool(_NUMERIC_RE.match(value))
    return False


def to_number(value: Any) -> Optional[Union[int, float]]:
    """Convert a numeric value to a number, or None when it is not numeric.

    Integers are returned unchanged so arbitrarily large ones still compare
    exactly; numeric strings become floats.
    """
    if not is_numeric(value):
        return None
    if isinstance(value, int):
        return value
    return float(value)


def parse_bool(value: Any) -> Optional[bool]:
    """Parse the canonical boolean string forms.

    "1", "true", "on", "yes" are True; "0", "false", "off", "no" and the
    empty string are False (case-insensitive, surrounding whitespace
    ignored). Anything else does not parse and yields None.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        return None
    if not isinstance(value, str):
        return None

    normalized = value.strip().lower()
    if normalized in _TRUE_STRINGS:
        return True
    if normalized in _FALSE_STRINGS:
        return False
    return None


def is_truthy(value: Any) -> bool:
    """True only when the value parses as boolean true."""
    return parse_bool(value) is True
