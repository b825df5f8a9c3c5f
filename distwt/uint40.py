"""A 40-bit unsigned integer stored in five bytes."""

from __future__ import annotations

from functools import total_ordering
from typing import Union

__all__ = ["UInt40", "Index", "BITS", "BYTES"]

LOW_BITS = 32
HIGH_BITS = 8
BITS = LOW_BITS + HIGH_BITS
BYTES = BITS // 8

_LOW_MASK = (1 << LOW_BITS) - 1
_HIGH_MASK = (1 << HIGH_BITS) - 1
_MASK = (1 << BITS) - 1
_INT32_MIN = -(1 << 31)

IntLike = Union["UInt40", int]


@total_ordering
class UInt40:
    """Unsigned 40-bit integer: a 32-bit low part and an 8-bit high part.

    Addition and subtraction wrap around modulo 2**40.
    """

    __slots__ = ("_value",)

    def __init__(self, value: IntLike = 0) -> None:
        if isinstance(value, UInt40):
            self._value = value._value
            return
        value = int(value)
        if value < 0:
            # a negative 32-bit value fills the high part with ones
            if value < _INT32_MIN:
                raise ValueError(f"value {value} does not fit into 40 bits")
            value &= _MASK
        elif value > _MASK:
            raise ValueError(f"value {value} does not fit into 40 bits")
        self._value = value

    @classmethod
    def from_parts(cls, low: int, high: int) -> "UInt40":
        """Build a value from its 32-bit low and 8-bit high parts."""
        if not 0 <= low <= _LOW_MASK:
            raise ValueError(f"low part {low} is not a 32-bit unsigned value")
        if not 0 <= high <= _HIGH_MASK:
            raise ValueError(f"high part {high} is not an 8-bit unsigned value")
        return cls((high << LOW_BITS) | low)

    @classmethod
    def from_bytes(cls, data: bytes) -> "UInt40":
        """Decode the packed five-byte little-endian representation."""
        if len(data) != BYTES:
            raise ValueError(f"expected {BYTES} bytes, got {len(data)}")
        return cls(int.from_bytes(data, "little"))

    def to_bytes(self) -> bytes:
        """Encode as five little-endian bytes (low part first)."""
        return self._value.to_bytes(BYTES, "little")

    @classmethod
    def minimum(cls) -> "UInt40":
        return cls(0)

    @classmethod
    def maximum(cls) -> "UInt40":
        return cls(_MASK)

    @property
    def low(self) -> int:
        return self._value & _LOW_MASK

    @property
    def high(self) -> int:
        return self._value >> LOW_BITS

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    @staticmethod
    def _coerce(other: object) -> "UInt40 | None":
        if isinstance(other, UInt40):
            return other
        if isinstance(other, int) and not isinstance(other, bool):
            return UInt40(other)
        return None

    def __add__(self, other: IntLike) -> "UInt40":
        rhs = self._coerce(other)
        if rhs is None:
            return NotImplemented
        return UInt40((self._value + rhs._value) & _MASK)

    __radd__ = __add__

    def __sub__(self, other: IntLike) -> "UInt40":
        rhs = self._coerce(other)
        if rhs is None:
            return NotImplemented
        return UInt40((self._value - rhs._value) & _MASK)

    def __rsub__(self, other: IntLike) -> "UInt40":
        lhs = self._coerce(other)
        if lhs is None:
            return NotImplemented
        return lhs - self

    def __eq__(self, other: object) -> bool:
        if isinstance(other, UInt40):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if isinstance(other, UInt40):
            return self._value < other._value
        if isinstance(other, int):
            return self._value < other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f"UInt40({self._value})"


# index type used for symbol counts
Index = UInt40