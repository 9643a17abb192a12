# test_bn254.py
#
# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

import pytest
from py_ecc.optimized_bn128 import G1, G2, multiply

from stellar_zk.bn254 import (
    G1_INFINITY,
    G2_INFINITY,
    check_g1,
    check_g2,
    decode_g1,
    decode_g2,
    encode_g1,
    encode_g2,
    from_g1,
    from_g2,
    g1_from_json,
    g2_from_json,
    to_g1,
    to_g2,
)
from stellar_zk.constants import FIELD_MODULUS
from stellar_zk.errors import LengthMismatch, NotOnCurve, OutOfRange, ParseError
from stellar_zk.field import encode


class TestG1Layout:
    def test_x_then_y(self):
        assert encode_g1((1, 2)) == encode(1) + encode(2)

    def test_decode_inverse(self):
        point = from_g1(multiply(G1, 99))
        assert decode_g1(encode_g1(point)) == point

    def test_decode_wrong_size(self):
        with pytest.raises(LengthMismatch):
            decode_g1(b"\x00" * 63)

    def test_decode_coordinate_out_of_range(self):
        with pytest.raises(OutOfRange, match="G1 point y"):
            decode_g1(encode(1) + FIELD_MODULUS.to_bytes(32, "big"))


class TestG2Layout:
    """The on-chain G2 layout writes each Fq2 coordinate c1 first."""

    def test_component_swap(self):
        assert encode_g2(((1, 2), (3, 4))) == encode(2) + encode(1) + encode(4) + encode(3)

    def test_decode_undoes_swap_once(self):
        data = encode(2) + encode(1) + encode(4) + encode(3)
        assert decode_g2(data) == ((1, 2), (3, 4))

    def test_generator_inverse(self):
        point = from_g2(G2)
        assert decode_g2(encode_g2(point)) == point

    def test_swapped_generator_is_off_curve(self):
        (x_c0, x_c1), (y_c0, y_c1) = from_g2(G2)
        check_g2(((x_c0, x_c1), (y_c0, y_c1)))
        with pytest.raises(NotOnCurve):
            check_g2(((x_c1, x_c0), (y_c1, y_c0)))

    def test_label_names_component(self):
        with pytest.raises(OutOfRange, match="G2 point pi_b y.c1"):
            encode_g2(((1, 2), (3, FIELD_MODULUS)), "G2 point pi_b")


class TestFromJson:
    def test_g1_ignores_z(self):
        assert g1_from_json(["5", "6", "1"]) == (5, 6)

    def test_g1_two_coordinates(self):
        assert g1_from_json(["5", "6"]) == (5, 6)

    def test_g1_infinity(self):
        assert g1_from_json(["0", "1", "0"]) == G1_INFINITY
        assert encode_g1(G1_INFINITY) == b"\x00" * 64

    def test_g1_too_short(self):
        with pytest.raises(ParseError, match="at least 2"):
            g1_from_json(["5"])

    def test_g1_not_array(self):
        with pytest.raises(ParseError):
            g1_from_json("5,6")

    def test_g2_keeps_toolchain_order(self):
        assert g2_from_json([["1", "2"], ["3", "4"], ["1", "0"]]) == ((1, 2), (3, 4))

    def test_g2_infinity(self):
        assert g2_from_json([["0", "0"], ["1", "0"], ["0", "0"]]) == G2_INFINITY

    def test_g2_short_pair(self):
        with pytest.raises(ParseError, match="y must have 2 components"):
            g2_from_json([["1", "2"], ["3"]])

    def test_g2_bad_component(self):
        with pytest.raises(ParseError, match="x.c1"):
            g2_from_json([["1", "0x2"], ["3", "4"]])


class TestCurveChecks:
    def test_generators(self):
        check_g1(from_g1(G1))
        check_g2(from_g2(G2))

    def test_infinity_is_on_curve(self):
        check_g1(G1_INFINITY)
        check_g2(G2_INFINITY)

    def test_off_curve_g1(self):
        with pytest.raises(NotOnCurve, match="G1 point pi_a"):
            check_g1((1, 3), "G1 point pi_a")

    def test_py_ecc_round_trip(self):
        element = multiply(G1, 12345)
        assert from_g1(to_g1(from_g1(element))) == from_g1(element)
        element2 = multiply(G2, 678)
        assert from_g2(to_g2(from_g2(element2))) == from_g2(element2)
