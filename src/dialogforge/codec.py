"""Raw-text codec for typed scalar fields.

Executor and condition values are edited as free text but stored in the
document as typed scalars. ``parse_scalar`` is total over its input: every
string maps to some value, so there is no error case.

Numeric-looking strings with a non-canonical spelling (``"007"``, ``"1.50"``,
``"+3"``) parse to the number and format back to its canonical text; this is
the one accepted lossy edge of the round trip.
"""

from __future__ import annotations

import math
import re
from typing import TypeAlias

Scalar: TypeAlias = int | float | bool | str | None

_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER = re.compile(r"[+-]?\d+")


def parse_scalar(text: str | None) -> Scalar:
    """Convert free text into a typed scalar.

    Tried in order: the ``null`` literal, a finite decimal number, the
    ``true``/``false`` literals. Anything else is returned unchanged.

    Args:
        text: Raw field text. ``None`` is treated as the null literal.

    Returns:
        ``None``, an ``int``, a ``float``, a ``bool`` or the original string.
    """
    if text is None or text == "null":
        return None

    if _NUMBER.fullmatch(text):
        if _INTEGER.fullmatch(text):
            return int(text)
        number = float(text)
        if math.isfinite(number):
            return number

    if text == "true":
        return True
    if text == "false":
        return False

    return text


def format_scalar(value: Scalar) -> str:
    """Convert a typed scalar back to its editable text.

    Exact inverse of :func:`parse_scalar` for canonical values. Integral
    floats are written without a fractional part (``3.0`` -> ``"3"``).
    """
    if value is None:
        return "null"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)
