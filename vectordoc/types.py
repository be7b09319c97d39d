"""
Value types for dynamic record attributes.

A dynamic attribute's type is only known by looking at its value. TypedValue
wraps such a value and offers lenient coercion accessors; NumberToken is the
arbitrary-precision number produced when decoding wire objects.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


UINT64_MASK = 0xFFFFFFFFFFFFFFFF


class FieldKind(str, Enum):
    """Scalar kinds understood by the store's filter index."""
    UINT64 = "uint64"
    STRING = "string"
    ARRAY = "array"
    JSON = "json"
    UNKNOWN = ""


class NumberToken(str):
    """
    A JSON number kept as its literal text.

    Produced by the decoder for every numeric wire value so that 64-bit
    identifiers survive without passing through a float.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"NumberToken({str.__repr__(self)})"

    def to_python(self) -> int | Decimal:
        """
        Convert without rounding: int for integral syntax, else Decimal.

        Raises:
            ValueError: If the text is not a finite number
        """
        text = str(self)
        if not any(c in text for c in ".eE"):
            return int(text)
        try:
            number = Decimal(text)
        except InvalidOperation as e:
            raise ValueError(f"invalid number literal: {text!r}") from e
        if not number.is_finite():
            raise ValueError(f"invalid number literal: {text!r}")
        return number


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float, Decimal, NumberToken))


def _integral(value: float | Decimal) -> bool:
    if isinstance(value, Decimal):
        return value.is_finite() and value == value.to_integral_value()
    return math.isfinite(value) and value.is_integer()


def _parse_uint(text: str) -> int:
    """Parse a decimal string as an unsigned 64-bit integer; 0 if it isn't one."""
    try:
        number = Decimal(text)
    except (InvalidOperation, ValueError):
        return 0
    if not _integral(number) or number < 0:
        return 0
    n = int(number)
    return n if n <= UINT64_MASK else 0


def _parse_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return 0.0


@dataclass(frozen=True)
class TypedValue:
    """
    A single dynamic attribute value.

    The accessors never raise: a value they cannot interpret coerces to the
    zero value of the requested type.
    """
    raw: Any = None

    def kind(self) -> FieldKind:
        raw = self.raw
        if isinstance(raw, bool) or raw is None:
            return FieldKind.UNKNOWN
        if isinstance(raw, int):
            return FieldKind.UINT64
        if isinstance(raw, NumberToken):
            try:
                number = Decimal(raw)
            except InvalidOperation:
                return FieldKind.UNKNOWN
            return FieldKind.UINT64 if _integral(number) else FieldKind.UNKNOWN
        if isinstance(raw, (float, Decimal)):
            return FieldKind.UINT64 if _integral(raw) else FieldKind.UNKNOWN
        if isinstance(raw, str):
            return FieldKind.STRING
        if isinstance(raw, (list, tuple)):
            if all(isinstance(v, str) or _is_number(v) for v in raw):
                return FieldKind.ARRAY
            return FieldKind.UNKNOWN
        if isinstance(raw, dict) and all(isinstance(k, str) for k in raw):
            return FieldKind.JSON
        return FieldKind.UNKNOWN

    def as_string(self) -> str:
        raw = self.raw
        if raw is None:
            return ""
        if isinstance(raw, bool):
            return "true" if raw else "false"
        try:
            return str(raw)
        except Exception:
            return ""

    def as_string_array(self) -> list[str]:
        if not isinstance(self.raw, (list, tuple)):
            return []
        return [str(v) if isinstance(v, str) else "" for v in self.raw]

    def as_uint64_array(self) -> list[int]:
        if not isinstance(self.raw, (list, tuple)):
            return []
        return [TypedValue(v).as_uint64() for v in self.raw]

    def as_uint64(self) -> int:
        raw = self.raw
        if isinstance(raw, bool) or raw is None:
            return 0
        if isinstance(raw, int):
            # negative values wrap, like a cast to an unsigned 64-bit integer
            return raw & UINT64_MASK
        if isinstance(raw, NumberToken):
            return _parse_uint(raw)
        if isinstance(raw, str):
            return _parse_uint(raw.strip())
        if isinstance(raw, (float, Decimal)):
            if isinstance(raw, float) and not math.isfinite(raw):
                return 0
            if isinstance(raw, Decimal) and not raw.is_finite():
                return 0
            return int(raw) & UINT64_MASK
        return 0

    def as_float64(self) -> float:
        raw = self.raw
        if isinstance(raw, bool) or raw is None:
            return 0.0
        if isinstance(raw, NumberToken):
            return _parse_float(raw)
        if isinstance(raw, str):
            return _parse_float(raw.strip())
        if isinstance(raw, (int, float, Decimal)):
            try:
                return float(raw)
            except OverflowError:
                return 0.0
        return 0.0

    def __str__(self) -> str:
        return self.as_string()


def wrap(value: Any) -> TypedValue:
    """Wrap a raw value, passing TypedValue instances through unchanged."""
    if isinstance(value, TypedValue):
        return value
    return TypedValue(value)
