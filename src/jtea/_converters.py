"""
Conversion of primitive token text to typed values.

Every converter takes the exact bytes of a primitive span and either
returns the value or raises ValueError with a message naming what was
expected.
"""

import ctypes
import math
import re
from enum import Enum

_INTEGER = re.compile(rb"-?[0-9]+")
_NUMBER = re.compile(rb"-?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")


class NumberKind(Enum):
    """Numeric storage types a JSON number can be converted to."""

    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @property
    def is_integer(self) -> bool:
        return self not in (NumberKind.FLOAT32, NumberKind.FLOAT64)

    @property
    def bounds(self) -> tuple[int, int]:
        """Inclusive range of an integer kind."""
        return _INTEGER_BOUNDS[self]


def _bounds(bits: int, signed: bool) -> tuple[int, int]:
    if signed:
        return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return 0, (1 << bits) - 1


_INTEGER_BOUNDS = {
    NumberKind.INT8: _bounds(8, True),
    NumberKind.UINT8: _bounds(8, False),
    NumberKind.INT16: _bounds(16, True),
    NumberKind.UINT16: _bounds(16, False),
    NumberKind.INT32: _bounds(32, True),
    NumberKind.UINT32: _bounds(32, False),
    NumberKind.INT64: _bounds(64, True),
    NumberKind.UINT64: _bounds(64, False),
}


def _shown(text: bytes) -> str:
    return text.decode("utf-8", errors="replace")


def to_integer(text: bytes, kind: NumberKind = NumberKind.INT64) -> int:
    """Parses a base 10 integer that fits the given kind."""
    if _INTEGER.fullmatch(text) is None:
        raise ValueError(f"Expected an integer. Got `{_shown(text)}`")
    value = int(text, 10)
    low, high = kind.bounds
    if not low <= value <= high:
        raise ValueError(
            f"Expected {kind.value} in [{low}, {high}]. Got `{_shown(text)}`"
        )
    return value


def to_float(text: bytes, kind: NumberKind = NumberKind.FLOAT64) -> float:
    """
    Parses a JSON number, narrowed to single precision for FLOAT32.

    Numbers too large for the kind are rejected rather than turned into
    infinity.
    """
    if _NUMBER.fullmatch(text) is None:
        raise ValueError(f"Expected a floating number. Got `{_shown(text)}`")
    value = float(text)
    if kind is NumberKind.FLOAT32:
        try:
            value = ctypes.c_float(value).value
        except OverflowError:
            value = math.inf
    if math.isinf(value):
        raise ValueError(
            f"Expected a finite {kind.value}. Got `{_shown(text)}`"
        )
    return value


def to_number(text: bytes, kind: NumberKind) -> int | float:
    if kind.is_integer:
        return to_integer(text, kind)
    return to_float(text, kind)


def to_bool(text: bytes) -> bool:
    if text == b"true":
        return True
    if text == b"false":
        return False
    raise ValueError(f"Expected a boolean. Got `{_shown(text)}`")


def is_null(text: bytes) -> bool:
    return text == b"null"
