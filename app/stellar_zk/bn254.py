# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# bn254.py

"""
BN254 point layouts shared by the Groth16 and RISC Zero codecs.

Points are handled as plain integer tuples in toolchain order:

    G1: (x, y)
    G2: ((x_c0, x_c1), (y_c0, y_c1))     # c0 + c1 * u, ascending degree

On chain, G1 is `x || y` and G2 is `x_c1 || x_c0 || y_c1 || y_c0`: each Fq2
coordinate is written highest degree first. `encode_g2` applies that swap
exactly once and `decode_g2` undoes it exactly once; nothing else in the
package touches component order.

The point at infinity is encoded as all zero bytes.
"""

from typing import Any, Sequence

from py_ecc.fields import optimized_bn128_FQ as FQ
from py_ecc.fields import optimized_bn128_FQ2 as FQ2
from py_ecc.optimized_bn128 import Z1, Z2, b, b2, is_inf, is_on_curve, normalize

from stellar_zk.constants import FIELD_ELEMENT_SIZE, FIELD_MODULUS, G1_SIZE, G2_SIZE
from stellar_zk.errors import LengthMismatch, NotOnCurve, ParseError
from stellar_zk.field import check_range, decode, encode, parse_int

G1Point = tuple[int, int]
G2Point = tuple[tuple[int, int], tuple[int, int]]

G1_INFINITY: G1Point = (0, 0)
G2_INFINITY: G2Point = ((0, 0), (0, 0))


def g1_from_json(coords: Sequence[Any], label: str = "G1 point") -> G1Point:
    """
    Read a snarkjs G1 point `["x", "y", "1"]`.

    The projective z coordinate is ignored unless it is `"0"`, which is how
    snarkjs writes the point at infinity.

    Raises:
        ParseError: If the shape is wrong or a coordinate is not a decimal.
    """
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        raise ParseError(label, "must be an array of at least 2 coordinates")
    if len(coords) >= 3 and parse_int(coords[2], f"{label} z") == 0:
        return G1_INFINITY
    x = parse_int(coords[0], f"{label} x")
    y = parse_int(coords[1], f"{label} y")
    return (x, y)


def g2_from_json(coords: Sequence[Any], label: str = "G2 point") -> G2Point:
    """
    Read a snarkjs G2 point `[["x_c0", "x_c1"], ["y_c0", "y_c1"], ["1", "0"]]`.

    Components stay in the toolchain's ascending-degree order; the on-chain
    reordering belongs to `encode_g2`.

    Raises:
        ParseError: If the shape is wrong or a component is not a decimal.
    """
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        raise ParseError(label, "must be an array of at least 2 coordinate pairs")

    pairs = []
    for name, pair in zip(("x", "y"), coords[:2]):
        if not isinstance(pair, (list, tuple)):
            raise ParseError(label, f"{name} must be an array [c0, c1]")
        if len(pair) < 2:
            raise ParseError(label, f"{name} must have 2 components")
        pairs.append(
            (
                parse_int(pair[0], f"{label} {name}.c0"),
                parse_int(pair[1], f"{label} {name}.c1"),
            )
        )

    if len(coords) >= 3 and isinstance(coords[2], (list, tuple)) and coords[2]:
        z = [parse_int(c, f"{label} z") for c in coords[2]]
        if not any(z):
            return G2_INFINITY

    return (pairs[0], pairs[1])


def encode_g1(point: G1Point, label: str = "G1 point") -> bytes:
    """Serialize a G1 point as `x || y` (64 bytes)."""
    x, y = point
    return encode(x, label=f"{label} x") + encode(y, label=f"{label} y")


def encode_g2(point: G2Point, label: str = "G2 point") -> bytes:
    """
    Serialize a G2 point as `x_c1 || x_c0 || y_c1 || y_c0` (128 bytes).

    The input is in ascending-degree order `[c0, c1]`. Writing c1 first is
    what the host's BN254 functions expect; getting this wrong yields a point
    that passes length and range checks but is not the proven one.
    """
    (x_c0, x_c1), (y_c0, y_c1) = point
    return (
        encode(x_c1, label=f"{label} x.c1")
        + encode(x_c0, label=f"{label} x.c0")
        + encode(y_c1, label=f"{label} y.c1")
        + encode(y_c0, label=f"{label} y.c0")
    )


def _words(data: bytes, size: int, label: str) -> list[bytes]:
    if len(data) != size:
        raise LengthMismatch(label, f"expected {size} bytes, got {len(data)}")
    return [
        data[i : i + FIELD_ELEMENT_SIZE] for i in range(0, size, FIELD_ELEMENT_SIZE)
    ]


def _coordinate(word: bytes, label: str) -> int:
    return check_range(decode(word, label), FIELD_MODULUS, label)


def decode_g1(data: bytes, label: str = "G1 point") -> G1Point:
    """Inverse of `encode_g1`; coordinates must be below the base field modulus."""
    x, y = _words(data, G1_SIZE, label)
    return (_coordinate(x, f"{label} x"), _coordinate(y, f"{label} y"))


def decode_g2(data: bytes, label: str = "G2 point") -> G2Point:
    """Inverse of `encode_g2`: reads `c1 || c0` words back into `(c0, c1)`."""
    x_c1, x_c0, y_c1, y_c0 = _words(data, G2_SIZE, label)
    return (
        (_coordinate(x_c0, f"{label} x.c0"), _coordinate(x_c1, f"{label} x.c1")),
        (_coordinate(y_c0, f"{label} y.c0"), _coordinate(y_c1, f"{label} y.c1")),
    )


def to_g1(point: G1Point) -> tuple:
    """Convert to a py_ecc projective point."""
    if point == G1_INFINITY:
        return Z1
    x, y = point
    return (FQ(x), FQ(y), FQ.one())


def to_g2(point: G2Point) -> tuple:
    """Convert to a py_ecc projective point over Fq2."""
    if point == G2_INFINITY:
        return Z2
    (x_c0, x_c1), (y_c0, y_c1) = point
    return (FQ2([x_c0, x_c1]), FQ2([y_c0, y_c1]), FQ2.one())


def from_g1(element: tuple) -> G1Point:
    """Convert a py_ecc projective G1 point back to affine integers."""
    if is_inf(element):
        return G1_INFINITY
    x, y = normalize(element)
    return (int(x), int(y))


def from_g2(element: tuple) -> G2Point:
    """Convert a py_ecc projective G2 point back to affine integer pairs."""
    if is_inf(element):
        return G2_INFINITY
    ax, ay = normalize(element)
    return (
        (int(ax.coeffs[0]), int(ax.coeffs[1])),
        (int(ay.coeffs[0]), int(ay.coeffs[1])),
    )


def check_g1(point: G1Point, label: str = "G1 point") -> G1Point:
    """
    Raise `NotOnCurve` unless `y^2 = x^3 + 3` holds.

    Raises:
        NotOnCurve: If the point is not on the BN254 base curve.
    """
    if not is_on_curve(to_g1(point), b):
        raise NotOnCurve(label, "point is not on the BN254 curve")
    return point


def check_g2(point: G2Point, label: str = "G2 point") -> G2Point:
    """
    Raise `NotOnCurve` unless the point lies on the BN254 twist.

    A G2 point whose Fq2 components were swapped once too often (or not at
    all) lands here.
    """
    if not is_on_curve(to_g2(point), b2):
        raise NotOnCurve(label, "point is not on the BN254 twist curve")
    return point
