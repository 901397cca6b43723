import math
import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from edgekit.float16 import BFloat16, Float16


def _half_bits(value):
    return struct.unpack("<H", struct.pack("<e", value))[0]


def _f32(hex_bits):
    return struct.unpack(">f", bytes.fromhex(hex_bits))[0]


# ---------------------------------------------------------------- Float16


def test_float16_pinned_conversions():
    assert Float16.from_float(1.0).bits == Float16.ONE_BITS
    assert Float16.from_float(-1.0).bits == Float16.MINUS_ONE_BITS
    assert Float16.from_float(math.inf).bits == Float16.POSITIVE_INFINITY_BITS
    assert Float16.from_float(-math.inf).bits == Float16.NEGATIVE_INFINITY_BITS
    assert Float16.from_float(math.nan).bits == Float16.POSITIVE_QNAN_BITS
    assert Float16.from_float(-0.0).bits == Float16.SIGN_MASK


def test_float16_max_value():
    assert Float16.from_bits(Float16.MAX_VALUE_BITS).to_float() == 65504.0
    assert Float16.from_bits(Float16.MIN_VALUE_BITS).to_float() == -65504.0


def test_float16_overflow_gives_infinity():
    assert Float16.from_float(1e300).is_positive_infinity()
    assert Float16.from_float(-1e300).is_negative_infinity()
    assert Float16.from_float(1e6).is_positive_infinity()


def test_float16_round_trip_all_non_nan_patterns():
    for bits in range(0x10000):
        value = Float16.from_bits(bits)
        if value.is_nan():
            continue
        assert Float16.from_float(value.to_float()).bits == bits


def test_float16_to_float_matches_struct_half():
    for bits in range(0x10000):
        value = Float16.from_bits(bits)
        expected = struct.unpack("<e", struct.pack("<H", bits))[0]
        if value.is_nan():
            assert math.isnan(value.to_float())
        else:
            assert value.to_float() == expected


@given(st.floats(min_value=-65504.0, max_value=65504.0, width=32))
def test_float16_from_float_matches_struct_half(value):
    assert Float16.from_float(value).bits == _half_bits(value)


def test_float16_nan_conversion_keeps_sign():
    assert Float16.from_float(-math.nan).is_nan()
    assert Float16.from_float(math.nan).to_float() != Float16.from_float(math.nan).to_float()


def test_float16_classification():
    assert Float16.from_bits(0x0001).is_subnormal()
    assert not Float16.from_bits(0x0001).is_normal()
    assert Float16.from_bits(Float16.ONE_BITS).is_normal()
    assert Float16.from_bits(Float16.POSITIVE_QNAN_BITS).is_nan()
    assert not Float16.from_bits(Float16.POSITIVE_INFINITY_BITS).is_finite()
    assert Float16.from_bits(Float16.NEGATIVE_INFINITY_BITS).is_infinity()
    assert Float16.from_bits(0).is_nan_or_zero()
    assert Float16.from_bits(Float16.NEGATIVE_QNAN_BITS).is_nan_or_zero()
    assert not Float16.from_bits(Float16.ONE_BITS).is_nan_or_zero()
    assert Float16.from_bits(Float16.MINUS_ONE_BITS).is_negative()
    assert not Float16.from_bits(0).is_subnormal()


def test_float16_abs_and_negate():
    minus_one = Float16.from_bits(Float16.MINUS_ONE_BITS)
    assert minus_one.abs().bits == Float16.ONE_BITS
    assert minus_one.negate().bits == Float16.ONE_BITS
    assert (-minus_one).bits == Float16.ONE_BITS
    nan = Float16.from_bits(Float16.POSITIVE_QNAN_BITS)
    assert nan.negate().bits == Float16.POSITIVE_QNAN_BITS


def test_float16_equality_and_zero():
    nan = Float16.from_bits(Float16.POSITIVE_QNAN_BITS)
    assert not nan == nan
    assert nan != nan
    assert Float16.from_float(1.0) == Float16.from_bits(Float16.ONE_BITS)
    pos_zero = Float16.from_bits(0)
    neg_zero = Float16.from_bits(Float16.SIGN_MASK)
    assert Float16.are_zero(pos_zero, neg_zero)
    assert not Float16.are_zero(pos_zero, Float16.from_bits(1))


def test_float16_ordering():
    one = Float16.from_bits(Float16.ONE_BITS)
    minus_one = Float16.from_bits(Float16.MINUS_ONE_BITS)
    nan = Float16.from_bits(Float16.POSITIVE_QNAN_BITS)
    pos_zero = Float16.from_bits(0)
    neg_zero = Float16.from_bits(Float16.SIGN_MASK)
    assert minus_one < one
    assert not one < minus_one
    assert one > minus_one
    assert Float16.from_float(-2.0) < minus_one
    assert not nan < one
    assert not one < nan
    assert not neg_zero < pos_zero
    assert not pos_zero < neg_zero


@given(
    st.floats(min_value=-65504.0, max_value=65504.0, width=32),
    st.floats(min_value=-65504.0, max_value=65504.0, width=32),
)
def test_float16_ordering_agrees_with_floats(a, b):
    ha, hb = Float16.from_float(a), Float16.from_float(b)
    assert (ha < hb) == (ha.to_float() < hb.to_float())


def test_float16_rejects_wide_bits():
    with pytest.raises(ValueError):
        Float16.from_bits(0x10000)
    with pytest.raises(ValueError):
        Float16.from_bits(-1)


# ---------------------------------------------------------------- BFloat16


def test_bfloat16_pinned_conversions():
    assert BFloat16.from_float(1.0).bits == BFloat16.ONE_BITS
    assert BFloat16.from_float(-1.0).bits == BFloat16.MINUS_ONE_BITS
    assert BFloat16.from_float(math.inf).bits == BFloat16.POSITIVE_INFINITY_BITS
    assert BFloat16.from_float(math.nan).bits == BFloat16.POSITIVE_QNAN_BITS
    assert BFloat16.from_bits(BFloat16.ONE_BITS).to_float() == 1.0


def test_bfloat16_round_half_to_even():
    assert BFloat16.from_float(_f32("3f808000")).bits == BFloat16.ONE_BITS
    assert BFloat16.from_float(_f32("3f818000")).bits == 0x3F82


def test_bfloat16_round_trip_all_non_nan_patterns():
    for bits in range(0x10000):
        value = BFloat16.from_bits(bits)
        if value.is_nan():
            assert math.isnan(value.to_float())
        else:
            assert BFloat16.from_float(value.to_float()).bits == bits


@given(st.floats(allow_nan=False, allow_infinity=False, width=32))
def test_bfloat16_conversion_is_close(value):
    converted = BFloat16.from_float(value)
    if converted.is_infinity():
        assert abs(value) > BFloat16.from_bits(BFloat16.MAX_VALUE_BITS).to_float()
    else:
        assert math.isclose(converted.to_float(), value, rel_tol=2.0**-8, abs_tol=1e-38)


def test_bfloat16_classification():
    assert BFloat16.from_bits(0x0001).is_subnormal()
    assert BFloat16.from_bits(BFloat16.EPSILON_BITS).is_normal()
    assert BFloat16.from_bits(BFloat16.NEGATIVE_QNAN_BITS).is_nan()
    assert BFloat16.from_bits(BFloat16.NEGATIVE_INFINITY_BITS).is_negative_infinity()
    assert BFloat16.from_bits(BFloat16.POSITIVE_INFINITY_BITS).is_positive_infinity()
    assert BFloat16.from_bits(BFloat16.MAX_VALUE_BITS).is_finite()
    assert BFloat16.from_bits(BFloat16.SIGN_MASK).is_nan_or_zero()


def test_bfloat16_abs_negate_and_zero():
    minus_one = BFloat16.from_bits(BFloat16.MINUS_ONE_BITS)
    assert minus_one.abs() == BFloat16.from_bits(BFloat16.ONE_BITS)
    assert minus_one.negate().bits == BFloat16.ONE_BITS
    nan = BFloat16.from_bits(BFloat16.POSITIVE_QNAN_BITS)
    assert nan.negate().bits == BFloat16.POSITIVE_QNAN_BITS
    assert BFloat16.are_zero(BFloat16.from_bits(0), BFloat16.from_bits(BFloat16.SIGN_MASK))
    assert not BFloat16.are_zero(BFloat16.from_bits(0), minus_one)


def test_bfloat16_rejects_wide_bits():
    with pytest.raises(ValueError):
        BFloat16.from_bits(0x12345)