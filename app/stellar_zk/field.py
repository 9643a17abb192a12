# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# field.py

"""
Canonical 32-byte big-endian form of BN254 field elements.

snarkjs writes field elements as decimal strings; the verifier contract reads
32-byte big-endian words, left-padded with zeros.
"""

from stellar_zk.constants import FIELD_ELEMENT_SIZE, FIELD_MODULUS
from stellar_zk.errors import LengthMismatch, OutOfRange, ParseError


def parse_int(value: int | str, label: str = "field element") -> int:
    """
    Parse a toolchain value into a non-negative integer.

    Accepts a Python `int` or a decimal string (surrounding whitespace is
    ignored). Hex, signs, floats and booleans are rejected.

    Args:
        value: The raw value from the toolchain JSON.
        label: Structure name used in error messages.

    Returns:
        The parsed integer.

    Raises:
        ParseError: If the value is not a non-negative decimal integer.
    """
    if isinstance(value, bool):
        raise ParseError(label, f"expected a decimal integer, got {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ParseError(label, f"negative value {value}")
        return value
    if not isinstance(value, str):
        raise ParseError(
            label, f"expected a decimal string, got {type(value).__name__}"
        )
    s = value.strip()
    if not s or not (s.isascii() and s.isdigit()):
        raise ParseError(label, f"invalid decimal literal {value!r}")
    return int(s)


def check_range(value: int, modulus: int = FIELD_MODULUS, label: str = "field element") -> int:
    """
    Enforce `value < modulus`.

    `decode` deliberately skips this bound because it also reads opaque
    32-byte words (nullifiers, digests); callers reading field elements use
    this afterwards.

    Raises:
        OutOfRange: If the value is not below the modulus.
    """
    if value >= modulus:
        raise OutOfRange(label, "value exceeds field modulus")
    return value


def encode(
    value: int | str,
    modulus: int = FIELD_MODULUS,
    label: str = "field element",
) -> bytes:
    """
    Encode a field element as 32 bytes, big-endian, left-zero-padded.

    Values at or above the modulus are rejected, never reduced: reducing
    would silently change the proven statement.

    Args:
        value: Integer or decimal string.
        modulus: Field bound, the BN254 base field by default.
        label: Structure name used in error messages.

    Returns:
        Exactly 32 bytes.

    Raises:
        ParseError: If the value is not a non-negative decimal integer.
        OutOfRange: If the value is >= modulus.
    """
    n = check_range(parse_int(value, label), modulus, label)
    return n.to_bytes(FIELD_ELEMENT_SIZE, "big")


def decode(data: bytes, label: str = "field element") -> int:
    """
    Interpret exactly 32 bytes as a big-endian unsigned integer.

    Raises:
        LengthMismatch: If `data` is not 32 bytes long.
    """
    if len(data) != FIELD_ELEMENT_SIZE:
        raise LengthMismatch(
            label, f"expected {FIELD_ELEMENT_SIZE} bytes, got {len(data)}"
        )
    return int.from_bytes(data, "big")


def split_elements(data: bytes, label: str = "field elements") -> list[bytes]:
    """Split a buffer into 32-byte words; the length must divide evenly."""
    if len(data) % FIELD_ELEMENT_SIZE != 0:
        raise LengthMismatch(
            label,
            f"length {len(data)} is not a multiple of {FIELD_ELEMENT_SIZE}",
        )
    return [
        bytes(data[i : i + FIELD_ELEMENT_SIZE])
        for i in range(0, len(data), FIELD_ELEMENT_SIZE)
    ]
