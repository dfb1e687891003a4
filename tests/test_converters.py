"""Primitive text conversion."""

import pytest

from jtea import NumberKind
from jtea._converters import is_null
from jtea._converters import to_bool
from jtea._converters import to_float
from jtea._converters import to_integer
from jtea._converters import to_number


@pytest.mark.parametrize(
    "kind,bounds",
    [
        (NumberKind.INT8, (-128, 127)),
        (NumberKind.UINT8, (0, 255)),
        (NumberKind.INT16, (-32768, 32767)),
        (NumberKind.UINT32, (0, 4294967295)),
        (NumberKind.INT64, (-(2**63), 2**63 - 1)),
        (NumberKind.UINT64, (0, 2**64 - 1)),
    ],
)
def test_integer_bounds(kind: NumberKind, bounds: tuple[int, int]) -> None:
    assert kind.is_integer
    assert kind.bounds == bounds
    low, high = bounds
    assert to_integer(str(low).encode(), kind) == low
    assert to_integer(str(high).encode(), kind) == high
    with pytest.raises(ValueError):
        to_integer(str(high + 1).encode(), kind)
    with pytest.raises(ValueError):
        to_integer(str(low - 1).encode(), kind)


def test_float_kinds_have_no_bounds() -> None:
    assert not NumberKind.FLOAT32.is_integer
    assert not NumberKind.FLOAT64.is_integer
    with pytest.raises(KeyError):
        NumberKind.FLOAT64.bounds


@pytest.mark.parametrize("text", [b"", b"1.0", b"0x10", b"+1", b"1 ", b"- 1"])
def test_integer_rejects_partial_text(text: bytes) -> None:
    with pytest.raises(ValueError, match="Expected an integer"):
        to_integer(text)


def test_integer_is_base_ten() -> None:
    assert to_integer(b"010") == 10
    assert to_integer(b"-0") == 0


@pytest.mark.parametrize(
    "text,expected",
    [
        (b"0", 0.0),
        (b"-0.25", -0.25),
        (b"1E2", 100.0),
        (b"2.5e-1", 0.25),
    ],
)
def test_float_values(text: bytes, expected: float) -> None:
    assert to_float(text) == expected


@pytest.mark.parametrize("text", [b"inf", b"nan", b"1.", b".5", b"1e", b"true"])
def test_float_rejects_non_json_numbers(text: bytes) -> None:
    with pytest.raises(ValueError, match="Expected a floating number"):
        to_float(text)


def test_float32_rounds_to_single_precision() -> None:
    assert to_float(b"16777217", NumberKind.FLOAT32) == 16777216.0
    assert to_float(b"16777217", NumberKind.FLOAT64) == 16777217.0


def test_to_number_dispatch() -> None:
    assert to_number(b"42", NumberKind.UINT16) == 42
    assert isinstance(to_number(b"42", NumberKind.FLOAT64), float)


def test_bool_and_null() -> None:
    assert to_bool(b"true") is True
    assert to_bool(b"false") is False
    with pytest.raises(ValueError, match="Expected a boolean. Got `True`"):
        to_bool(b"True")
    assert is_null(b"null")
    assert not is_null(b"nul")


def test_float_overflow_is_rejected() -> None:
    assert to_float(b"1e38", NumberKind.FLOAT32) == pytest.approx(1e38)
    with pytest.raises(ValueError, match="Expected a finite float32"):
        to_float(b"1e39", NumberKind.FLOAT32)
    assert to_float(b"1e39", NumberKind.FLOAT64) == 1e39
    with pytest.raises(ValueError, match="Expected a finite float64"):
        to_float(b"1e400", NumberKind.FLOAT64)
