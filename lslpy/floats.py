"""lslpy/floats.py – binary32 helpers for float literal emission.

LSL floats are IEEE-754 single precision.  Python floats are doubles, and
a decimal literal in the generated program would be rounded to a double,
not to the original single.  Integral values are exact either way and are
written as plain decimals; everything else is written as the raw bit
pattern so the runtime can rebuild the exact binary32 value.
"""

from __future__ import annotations

import math
import struct

__all__ = [
    "to_f32",
    "is_integral",
    "float_to_hex",
    "decode_float",
    "readable_float",
    "encode_float",
]

# Host-native byte order, matching how the runtime's ``bin2float`` reads it.
_F32 = struct.Struct("=f")


def to_f32(value: float) -> float:
    """Round *value* to the nearest binary32 and return it as a Python float."""
    try:
        return _F32.unpack(_F32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def is_integral(value: float) -> bool:
    """True when *value* is finite and equal to its nearest integer."""
    return math.isfinite(value) and round(value) == value


def float_to_hex(value: float) -> str:
    """The four bytes of *value* as binary32, host-native order, lowercase hex."""
    return _F32.pack(to_f32(value)).hex()


def decode_float(hex_bytes: str) -> float:
    """Inverse of :func:`float_to_hex`."""
    return _F32.unpack(bytes.fromhex(hex_bytes))[0]


def readable_float(value: float) -> str:
    """Six-decimal rendering; a hint for readers, never parsed back."""
    return "%f" % value


def encode_float(value: float) -> str:
    """Python source text that evaluates to exactly the binary32 *value*."""
    value = to_f32(value)
    if is_integral(value):
        # -0.0 must keep its sign
        if value == 0 and math.copysign(1.0, value) < 0:
            return "-0.0"
        return f"{int(value)}.0"
    return f"bin2float('{readable_float(value)}', '{float_to_hex(value)}')"
