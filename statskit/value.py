"""A small tagged value type holding null, bool, integer, float or duration."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from enum import IntEnum
from typing import Any

__all__ = [
    "ValueType",
    "Value",
    "value_of",
    "must_value_of",
    "uint_value",
]

_UINT64_MASK = (1 << 64) - 1
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class ValueType(IntEnum):
    """The underlying type of a Value."""

    NULL = 0
    BOOL = 1
    INT = 2
    UINT = 3
    FLOAT = 4
    DURATION = 5
    INVALID = 6

    def __str__(self) -> str:
        return _TYPE_NAMES.get(self, "<unknown>")


_TYPE_NAMES = {
    ValueType.NULL: "<nil>",
    ValueType.BOOL: "bool",
    ValueType.INT: "int64",
    ValueType.UINT: "uint64",
    ValueType.FLOAT: "float64",
    ValueType.DURATION: "time.Duration",
}


@dataclass(frozen=True)
class Value:
    """A value of one of the supported types, stored as 64 raw bits."""

    type: ValueType = ValueType.NULL
    bits: int = 0

    def as_bool(self) -> bool:
        return self.bits != 0

    def as_int(self) -> int:
        """Return the bits read as a signed 64-bit integer."""
        bits = self.bits & _UINT64_MASK
        return bits - (1 << 64) if bits > _INT64_MAX else bits

    def as_uint(self) -> int:
        return self.bits & _UINT64_MASK

    def as_float(self) -> float:
        return struct.unpack("<d", struct.pack("<Q", self.bits & _UINT64_MASK))[0]

    def as_duration(self) -> timedelta:
        return timedelta(microseconds=self.as_int() / 1000)

    def interface(self) -> Any:
        """Return the value as a plain Python object."""
        if self.type == ValueType.NULL:
            return None
        if self.type == ValueType.BOOL:
            return self.as_bool()
        if self.type == ValueType.INT:
            return self.as_int()
        if self.type == ValueType.UINT:
            return self.as_uint()
        if self.type == ValueType.FLOAT:
            return self.as_float()
        if self.type == ValueType.DURATION:
            return self.as_duration()
        raise ValueError("unknown type found in a value")

    def __str__(self) -> str:
        if self.type == ValueType.NULL:
            return "<nil>"
        if self.type == ValueType.BOOL:
            return "true" if self.as_bool() else "false"
        if self.type == ValueType.INT:
            return str(self.as_int())
        if self.type == ValueType.UINT:
            return str(self.as_uint())
        if self.type == ValueType.FLOAT:
            return _format_float(self.as_float())
        if self.type == ValueType.DURATION:
            return _format_duration(self.as_int())
        return "<unknown>"


def _float_bits(f: float) -> int:
    return struct.unpack("<Q", struct.pack("<d", f))[0]


def uint_value(v: int) -> Value:
    """Return an unsigned integer Value holding v modulo 2**64."""
    return Value(ValueType.UINT, v & _UINT64_MASK)


def value_of(v: Any) -> Value:
    """Wrap v in a Value; unsupported types give a Value of type INVALID."""
    if isinstance(v, Value):
        return v
    if v is None:
        return Value()
    if isinstance(v, bool):
        return Value(ValueType.BOOL, 1 if v else 0)
    if isinstance(v, int):
        if _INT64_MIN <= v <= _INT64_MAX:
            return Value(ValueType.INT, v & _UINT64_MASK)
        if 0 <= v <= _UINT64_MASK:
            return Value(ValueType.UINT, v)
        return Value(ValueType.INVALID)
    if isinstance(v, float):
        return Value(ValueType.FLOAT, _float_bits(v))
    if isinstance(v, timedelta):
        ns = (v.days * 86400 + v.seconds) * 1_000_000_000 + v.microseconds * 1000
        if not _INT64_MIN <= ns <= _INT64_MAX:
            return Value(ValueType.INVALID)
        return Value(ValueType.DURATION, ns & _UINT64_MASK)
    return Value(ValueType.INVALID)


def must_value_of(v: Value) -> Value:
    """Return v, raising ValueError if its type is INVALID."""
    if v.type == ValueType.INVALID:
        raise ValueError("must_value_of received a value of unsupported type")
    return v


def _format_float(f: float) -> str:
    """Format f with the shortest digits, switching to exponent form like %g."""
    if math.isnan(f):
        return "NaN"
    if math.isinf(f):
        return "+Inf" if f > 0 else "-Inf"
    sign, digit_tuple, exponent = Decimal(repr(f)).normalize().as_tuple()
    digits = "".join(map(str, digit_tuple))
    nd = len(digits)
    dp = nd + exponent
    prefix = "-" if sign else ""
    exp = dp - 1
    if exp < -4 or exp >= 6:
        mantissa = digits[0] + ("." + digits[1:] if nd > 1 else "")
        esign = "-" if exp < 0 else "+"
        return f"{prefix}{mantissa}e{esign}{abs(exp):02d}"
    if dp <= 0:
        return f"{prefix}0.{'0' * -dp}{digits}"
    if dp >= nd:
        return f"{prefix}{digits}{'0' * (dp - nd)}"
    return f"{prefix}{digits[:dp]}.{digits[dp:]}"


def _fraction(v: int, precision: int) -> str:
    scale = 10**precision
    whole, frac = divmod(v, scale)
    frac_text = f"{frac:0{precision}d}".rstrip("0")
    return f"{whole}.{frac_text}" if frac_text else str(whole)


def _format_duration(ns: int) -> str:
    """Format a nanosecond count as e.g. 1h2m3.5s, 1.5ms or 0s."""
    if ns == 0:
        return "0s"
    prefix = "-" if ns < 0 else ""
    u = abs(ns)
    if u < 1_000_000_000:
        if u < 1_000:
            return f"{prefix}{u}ns"
        if u < 1_000_000:
            return f"{prefix}{_fraction(u, 3)}µs"
        return f"{prefix}{_fraction(u, 6)}ms"
    minute = 60 * 1_000_000_000
    total_minutes, rest = divmod(u, minute)
    text = _fraction(rest, 9) + "s"
    if total_minutes:
        hours, minutes = divmod(total_minutes, 60)
        text = f"{minutes}m{text}"
        if hours:
            text = f"{hours}h{text}"
    return prefix + text