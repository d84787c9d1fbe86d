# tests/test_floats.py
"""
Tests for binary32 float handling and literal encoding.
"""

import math
import struct

import pytest

from lslpy.floats import (
    decode_float,
    encode_float,
    float_to_hex,
    is_integral,
    readable_float,
    to_f32,
)


def _eval_literal(text: str) -> float:
    """Evaluate an encoded literal with a local ``bin2float``."""
    return eval(text, {"bin2float": lambda _hint, hex_bytes: decode_float(hex_bytes)})


class TestToF32:

    def test_exact_values_unchanged(self):
        assert to_f32(0.5) == 0.5
        assert to_f32(-2.0) == -2.0

    def test_rounds_to_single(self):
        assert to_f32(0.1) != 0.1
        assert to_f32(0.1) == struct.unpack("=f", struct.pack("=f", 0.1))[0]

    def test_overflow_becomes_infinity(self):
        assert to_f32(1e40) == math.inf
        assert to_f32(-1e40) == -math.inf

    def test_nan_stays_nan(self):
        assert math.isnan(to_f32(math.nan))


class TestIsIntegral:

    @pytest.mark.parametrize("value", [0.0, -0.0, 1.0, -17.0, 16777216.0, 1e30])
    def test_integral(self, value):
        assert is_integral(value)

    @pytest.mark.parametrize("value", [0.5, -1.25, to_f32(0.1), math.inf, -math.inf, math.nan])
    def test_not_integral(self, value):
        assert not is_integral(value)


class TestHex:

    def test_host_native_order(self):
        assert float_to_hex(1.0) == struct.pack("=f", 1.0).hex()

    def test_eight_lowercase_digits(self):
        text = float_to_hex(-123.456)
        assert len(text) == 8
        assert text == text.lower()

    def test_decode_inverts(self):
        for value in (0.1, -3.75, 1e-38, 3.4e38):
            assert decode_float(float_to_hex(value)) == to_f32(value)

    def test_readable_hint(self):
        assert readable_float(0.1) == "0.100000"
        assert readable_float(-2.5) == "-2.500000"


class TestEncodeFloat:

    @pytest.mark.parametrize("value,expected", [
        (0.0, "0.0"),
        (-0.0, "-0.0"),
        (1.0, "1.0"),
        (-42.0, "-42.0"),
        (16777216.0, "16777216.0"),
    ])
    def test_integral_literals(self, value, expected):
        assert encode_float(value) == expected

    def test_negative_zero_keeps_sign(self):
        assert math.copysign(1.0, _eval_literal(encode_float(-0.0))) < 0

    def test_fractional_uses_bit_pattern(self):
        text = encode_float(0.1)
        assert text == f"bin2float('0.100000', '{float_to_hex(0.1)}')"

    @pytest.mark.parametrize("value", [0.1, -0.3, 1.0 / 3.0, 1e-10, 123456.789, 1e30])
    def test_literal_reproduces_single(self, value):
        assert _eval_literal(encode_float(value)) == to_f32(value)

    def test_infinity(self):
        text = encode_float(math.inf)
        assert text.startswith("bin2float('inf', ")
        assert _eval_literal(text) == math.inf
        assert _eval_literal(encode_float(-1e40)) == -math.inf

    def test_nan(self):
        text = encode_float(math.nan)
        assert text.startswith("bin2float('nan', ")
        assert math.isnan(_eval_literal(text))
