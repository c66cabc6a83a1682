"""Runtime value model.

Values are plain Python objects: ``int`` (Integer, signed 64-bit), ``float``
(Float) and ``str`` (Text). ``bool`` is an ``int`` subclass in Python and is
never a value here.

Binary operations take ``a`` (second from top) and ``b`` (top) and compute
``a OP b``. Integer results wrap to 64 bits; mixing Integer and Float
promotes to Float; Text is rejected.
"""

import math
import re

from errors import ConversionError, DivisionByZero, OperandTypeError

INT_BITS = 64
INT_MIN = -(2 ** (INT_BITS - 1))
INT_MAX = 2 ** (INT_BITS - 1) - 1
_MASK = (1 << INT_BITS) - 1

_INT_TEXT = re.compile(r"[+-]?[0-9]+")
_FLOAT_TEXT = re.compile(r"[+-]?([0-9]+\.[0-9]*|\.[0-9]+|[0-9]+)([eE][+-]?[0-9]+)?")


def is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_float(value) -> bool:
    return isinstance(value, float)


def is_text(value) -> bool:
    return isinstance(value, str)


def is_number(value) -> bool:
    return is_int(value) or is_float(value)


def type_name(value) -> str:
    if is_int(value):
        return "Integer"
    if is_float(value):
        return "Float"
    if is_text(value):
        return "Text"
    return type(value).__name__


def wrap_int(n: int) -> int:
    n &= _MASK
    if n > INT_MAX:
        n -= 1 << INT_BITS
    return n


def trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def trunc_mod(a: int, b: int) -> int:
    # sign follows the dividend
    return a - b * trunc_div(a, b)


def _require_numbers(op, a, b):
    if not is_number(a) or not is_number(b):
        raise OperandTypeError(f"{op} expects numbers, got {type_name(a)} and {type_name(b)}")


def _float_to_int(x: float, context: str) -> int:
    if math.isnan(x) or math.isinf(x):
        raise ConversionError(f"{context}: cannot convert {x!r} to an integer")
    n = int(x)
    if n < INT_MIN or n > INT_MAX:
        raise ConversionError(f"{context}: {x!r} is out of 64-bit integer range")
    return n


def arith(op, a, b):
    """Compute ``a op b`` for op in add/sub/mul/div/idiv/mod."""
    _require_numbers(op, a, b)

    if op in ("div", "idiv", "mod") and b == 0:
        raise DivisionByZero(f"{op} by zero")

    if is_int(a) and is_int(b):
        if op == "add":
            return wrap_int(a + b)
        if op == "sub":
            return wrap_int(a - b)
        if op == "mul":
            return wrap_int(a * b)
        if op in ("div", "idiv"):
            return wrap_int(trunc_div(a, b))
        if op == "mod":
            return wrap_int(trunc_mod(a, b))
        raise ValueError(f"unknown arithmetic op: {op}")

    x = float(a)
    y = float(b)
    if op == "add":
        return x + y
    if op == "sub":
        return x - y
    if op == "mul":
        return x * y
    if op == "div":
        return x / y
    if op == "idiv":
        return _float_to_int(x / y, "idiv")
    if op == "mod":
        if math.isinf(x):
            raise OperandTypeError(f"mod of an infinite value: {x!r}")
        return math.fmod(x, y)
    raise ValueError(f"unknown arithmetic op: {op}")


def compare(a, b) -> int:
    """Three-way comparison of a against b: -1, 0 or 1.

    Numbers compare numerically (Integer against Float promotes), Text
    compares lexicographically; Text against a number is a type error.
    """
    if is_number(a) and is_number(b):
        if is_int(a) and is_int(b):
            x, y = a, b
        else:
            x, y = float(a), float(b)
    elif is_text(a) and is_text(b):
        x, y = a, b
    else:
        raise OperandTypeError(f"cannot compare {type_name(a)} with {type_name(b)}")

    if x == y:
        return 0
    return 1 if x > y else -1


# -------- conversions --------

def atoi(value) -> int:
    if not is_text(value):
        raise OperandTypeError(f"atoi expects Text, got {type_name(value)}")
    s = value.strip()
    if not _INT_TEXT.fullmatch(s):
        raise ConversionError(f"invalid integer: {value!r}")
    n = int(s)
    if n < INT_MIN or n > INT_MAX:
        raise ConversionError(f"integer out of 64-bit range: {value!r}")
    return n


def itoa(value) -> str:
    if not is_int(value):
        raise OperandTypeError(f"itoa expects Integer, got {type_name(value)}")
    return str(value)


def itof(value) -> float:
    if not is_int(value):
        raise OperandTypeError(f"itof expects Integer, got {type_name(value)}")
    return float(value)


def ftoi(value) -> int:
    if not is_float(value):
        raise OperandTypeError(f"ftoi expects Float, got {type_name(value)}")
    return _float_to_int(value, "ftoi")


# -------- text form --------

def format_value(value) -> str:
    if is_float(value):
        return repr(value)
    return str(value)


def parse_input(text: str):
    """Integer if it looks like one, then Float, otherwise the Text itself."""
    s = text.strip()
    if _INT_TEXT.fullmatch(s):
        n = int(s)
        if INT_MIN <= n <= INT_MAX:
            return n
    if _FLOAT_TEXT.fullmatch(s):
        return float(s)
    return text
