"""IEEE half-precision (binary16) and bfloat16 values kept as 16-bit patterns."""

from __future__ import annotations

import math
import struct

__all__ = ["Float16", "BFloat16"]

_F32_SIGN_MASK = 0x80000000
_F32_INFINITY = 255 << 23
_F16_MAX_AS_F32 = (127 + 16) << 23
_F16_MIN_NORMAL_AS_F32 = 113 << 23
_U32 = 0xFFFFFFFF
_SIGN_MASK = 0x8000


def _float32_bits(value: float) -> int:
    """Return the bit pattern of ``value`` rounded to single precision."""
    try:
        return struct.unpack(">I", struct.pack(">f", value))[0]
    except OverflowError:
        # Too large for single precision: the conversion saturates to infinity.
        return _F32_INFINITY | (_F32_SIGN_MASK if value < 0 else 0)


def _float32_from_bits(bits: int) -> float:
    return struct.unpack(">f", struct.pack(">I", bits & _U32))[0]


def _check_bits(bits: int) -> int:
    bits = int(bits)
    if not 0 <= bits <= 0xFFFF:
        raise ValueError(f"bit pattern {bits:#x} does not fit in 16 bits")
    return bits


def _magnitude(bits: int) -> int:
    return bits & ~_SIGN_MASK & 0xFFFF


class _Half:
    """Storage shared by the 16-bit float formats."""

    __slots__ = ("bits",)

    def __init__(self, bits: int = 0) -> None:
        object.__setattr__(self, "bits", _check_bits(bits))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __float__(self) -> float:
        return self.to_float()  # type: ignore[attr-defined]

    def __neg__(self):
        return self.negate()  # type: ignore[attr-defined]

    def __abs__(self):
        return self.abs()  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        return f"{type(self).__name__}.from_bits({self.bits:#06x})"


class Float16(_Half):
    """An IEEE 754 binary16 value."""

    __slots__ = ()

    SIGN_MASK = _SIGN_MASK
    BIASED_EXPONENT_MASK = 0x7C00
    POSITIVE_INFINITY_BITS = 0x7C00
    NEGATIVE_INFINITY_BITS = 0xFC00
    POSITIVE_QNAN_BITS = 0x7E00
    NEGATIVE_QNAN_BITS = 0xFE00
    EPSILON_BITS = 0x4170
    MIN_VALUE_BITS = 0xFBFF
    MAX_VALUE_BITS = 0x7BFF
    ONE_BITS = 0x3C00
    MINUS_ONE_BITS = 0xBC00

    @classmethod
    def from_bits(cls, bits: int) -> "Float16":
        """Create a value from its raw 16-bit pattern."""
        return cls(bits)

    @classmethod
    def from_float(cls, value: float) -> "Float16":
        """Convert a number, rounding to nearest even; out of range gives infinity."""
        u = _float32_bits(value)
        sign = u & _F32_SIGN_MASK
        u ^= sign

        if u >= _F16_MAX_AS_F32:
            bits = 0x7E00 if u > _F32_INFINITY else 0x7C00
        elif u < _F16_MIN_NORMAL_AS_F32:
            # Subnormal or zero result: the mantissa is the magnitude in units
            # of 2**-24, rounded half to even; scaling by a power of two is exact.
            bits = round(_float32_from_bits(u) * 2.0**24)
        else:
            mant_odd = (u >> 13) & 1
            u = (u + 0xC8000FFF) & _U32
            u = (u + mant_odd) & _U32
            bits = (u >> 13) & 0xFFFF

        return cls((bits | (sign >> 16)) & 0xFFFF)

    def to_float(self) -> float:
        """Return the exact value as a Python float."""
        shifted_exp = 0x7C00 << 13
        u = (self.bits & 0x7FFF) << 13
        exponent = u & shifted_exp
        u += (127 - 15) << 23
        if exponent == shifted_exp:
            u += (128 - 16) << 23
        elif exponent == 0:
            u += 1 << 23
            u = _float32_bits(_float32_from_bits(u) - 2.0**-14)
        u |= (self.bits & 0x8000) << 16
        return _float32_from_bits(u)

    def is_negative(self) -> bool:
        """True if the sign bit is set."""
        return bool(self.bits & _SIGN_MASK)

    def is_nan(self) -> bool:
        """True if the value is NaN."""
        return _magnitude(self.bits) > self.POSITIVE_INFINITY_BITS

    def is_finite(self) -> bool:
        """True if the value is neither infinite nor NaN."""
        return _magnitude(self.bits) < self.POSITIVE_INFINITY_BITS

    def is_positive_infinity(self) -> bool:
        """True if the value is positive infinity."""
        return self.bits == self.POSITIVE_INFINITY_BITS

    def is_negative_infinity(self) -> bool:
        """True if the value is negative infinity."""
        return self.bits == self.NEGATIVE_INFINITY_BITS

    def is_infinity(self) -> bool:
        """True if the value is infinite of either sign."""
        return _magnitude(self.bits) == self.POSITIVE_INFINITY_BITS

    def is_nan_or_zero(self) -> bool:
        """True if the value is NaN or a zero of either sign."""
        magnitude = _magnitude(self.bits)
        return magnitude == 0 or magnitude > self.POSITIVE_INFINITY_BITS

    def is_normal(self) -> bool:
        """True if finite, non-zero and not subnormal."""
        magnitude = _magnitude(self.bits)
        return (
            magnitude < self.POSITIVE_INFINITY_BITS
            and magnitude != 0
            and magnitude & self.BIASED_EXPONENT_MASK != 0
        )

    def is_subnormal(self) -> bool:
        """True if the value is a non-zero subnormal."""
        magnitude = _magnitude(self.bits)
        return (
            magnitude < self.POSITIVE_INFINITY_BITS
            and magnitude != 0
            and magnitude & self.BIASED_EXPONENT_MASK == 0
        )

    def abs(self) -> "Float16":
        """Return the value with the sign bit cleared."""
        return Float16(_magnitude(self.bits))

    def negate(self) -> "Float16":
        """Return the value with the sign flipped; NaN is returned unchanged."""
        if self.is_nan():
            return Float16(self.bits)
        return Float16(self.bits ^ _SIGN_MASK)

    @staticmethod
    def are_zero(lhs: "Float16", rhs: "Float16") -> bool:
        """True if both values are zeros, whatever their signs."""
        return _magnitude(lhs.bits | rhs.bits) == 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Float16):
            return NotImplemented
        if self.is_nan() or other.is_nan():
            return False
        return self.bits == other.bits

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Float16):
            return NotImplemented
        if self.is_nan() or other.is_nan():
            return False
        left_negative = self.is_negative()
        if left_negative != other.is_negative():
            return left_negative and not Float16.are_zero(self, other)
        return self.bits != other.bits and ((self.bits < other.bits) != left_negative)

    def __hash__(self) -> int:
        return hash((Float16, self.bits))


class BFloat16(_Half):
    """A bfloat16 value: the upper half of a single-precision float."""

    __slots__ = ()

    SIGN_MASK = _SIGN_MASK
    BIASED_EXPONENT_MASK = 0x7F80
    POSITIVE_INFINITY_BITS = 0x7F80
    NEGATIVE_INFINITY_BITS = 0xFF80
    POSITIVE_QNAN_BITS = 0x7FC1
    NEGATIVE_QNAN_BITS = 0xFFC1
    SIGNALING_NAN_BITS = 0x7F80
    EPSILON_BITS = 0x0080
    MIN_VALUE_BITS = 0xFF7F
    MAX_VALUE_BITS = 0x7F7F
    ROUND_TO_NEAREST = 0x7FFF
    ONE_BITS = 0x3F80
    MINUS_ONE_BITS = 0xBF80

    @classmethod
    def from_bits(cls, bits: int) -> "BFloat16":
        """Create a value from its raw 16-bit pattern."""
        return cls(bits)

    @classmethod
    def from_float(cls, value: float) -> "BFloat16":
        """Convert a number, rounding to nearest even; NaN becomes the quiet NaN."""
        if math.isnan(value):
            return cls(cls.POSITIVE_QNAN_BITS)
        u = _float32_bits(value)
        upper = u >> 16
        u = (u + (upper & 1) + cls.ROUND_TO_NEAREST) & _U32
        return cls(u >> 16)

    def to_float(self) -> float:
        """Return the exact value as a Python float; NaN patterns give NaN."""
        if self.is_nan():
            return math.nan
        return _float32_from_bits(self.bits << 16)

    def is_negative(self) -> bool:
        """True if the sign bit is set."""
        return bool(self.bits & _SIGN_MASK)

    def is_nan(self) -> bool:
        """True if the value is NaN."""
        return _magnitude(self.bits) > self.POSITIVE_INFINITY_BITS

    def is_finite(self) -> bool:
        """True if the value is neither infinite nor NaN."""
        return _magnitude(self.bits) < self.POSITIVE_INFINITY_BITS

    def is_positive_infinity(self) -> bool:
        """True if the value is positive infinity."""
        return self.bits == self.POSITIVE_INFINITY_BITS

    def is_negative_infinity(self) -> bool:
        """True if the value is negative infinity."""
        return self.bits == self.NEGATIVE_INFINITY_BITS

    def is_infinity(self) -> bool:
        """True if the value is infinite of either sign."""
        return _magnitude(self.bits) == self.POSITIVE_INFINITY_BITS

    def is_nan_or_zero(self) -> bool:
        """True if the value is NaN or a zero of either sign."""
        magnitude = _magnitude(self.bits)
        return magnitude == 0 or magnitude > self.POSITIVE_INFINITY_BITS

    def is_normal(self) -> bool:
        """True if finite, non-zero and not subnormal."""
        magnitude = _magnitude(self.bits)
        return (
            magnitude < self.POSITIVE_INFINITY_BITS
            and magnitude != 0
            and magnitude & self.BIASED_EXPONENT_MASK != 0
        )

    def is_subnormal(self) -> bool:
        """True if the value is a non-zero subnormal."""
        magnitude = _magnitude(self.bits)
        return (
            magnitude < self.POSITIVE_INFINITY_BITS
            and magnitude != 0
            and magnitude & self.BIASED_EXPONENT_MASK == 0
        )

    def abs(self) -> "BFloat16":
        """Return the value with the sign bit cleared."""
        return BFloat16(_magnitude(self.bits))

    def negate(self) -> "BFloat16":
        """Return the value with the sign flipped; NaN is returned unchanged."""
        if self.is_nan():
            return BFloat16(self.bits)
        return BFloat16(self.bits ^ _SIGN_MASK)

    @staticmethod
    def are_zero(lhs: "BFloat16", rhs: "BFloat16") -> bool:
        """True if both values are zeros, whatever their signs."""
        return _magnitude(lhs.bits | rhs.bits) == 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BFloat16):
            return NotImplemented
        return self.bits == other.bits

    def __hash__(self) -> int:
        return hash((BFloat16, self.bits))