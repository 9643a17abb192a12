# conftest.py
#
# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

import pytest
from py_ecc.optimized_bn128 import G1, G2, curve_order, multiply

from stellar_zk.bn254 import from_g1, from_g2


def g1_json(element) -> list[str]:
    x, y = from_g1(element)
    return [str(x), str(y), "1"]


def g2_json(element) -> list[list[str]]:
    (x_c0, x_c1), (y_c0, y_c1) = from_g2(element)
    return [[str(x_c0), str(x_c1)], [str(y_c0), str(y_c1)], ["1", "0"]]


def make_groth16(public_inputs: list[int]) -> tuple[dict, dict, list[str]]:
    """
    Build a valid snarkjs-shaped key, proof and public.json over BN254.

    With gamma = delta = G2 the verification equation reduces to
        a * b == alpha * beta + (ic_0 + sum(x_i * ic_i)) + c   (mod r)
    so picking a, b and solving for c gives a proof that verifies.
    """
    alpha, beta = 5, 7
    ic = [11 + 2 * i for i in range(len(public_inputs) + 1)]
    a, b = 13, 17

    vk_x = ic[0] + sum(x * k for x, k in zip(public_inputs, ic[1:]))
    c = (a * b - alpha * beta - vk_x) % curve_order

    vk = {
        "protocol": "groth16",
        "curve": "bn128",
        "nPublic": len(public_inputs),
        "vk_alpha_1": g1_json(multiply(G1, alpha)),
        "vk_beta_2": g2_json(multiply(G2, beta)),
        "vk_gamma_2": g2_json(G2),
        "vk_delta_2": g2_json(G2),
        "IC": [g1_json(multiply(G1, k)) for k in ic],
    }
    proof = {
        "pi_a": g1_json(multiply(G1, a)),
        "pi_b": g2_json(multiply(G2, b)),
        "pi_c": g1_json(multiply(G1, c)),
        "protocol": "groth16",
        "curve": "bn128",
    }
    public = [str(x) for x in public_inputs]
    return vk, proof, public


@pytest.fixture(scope="session")
def groth16_fixture() -> tuple[dict, dict, list[str]]:
    return make_groth16([3, 1234567890])


@pytest.fixture
def layout_proof() -> dict:
    """Proof with small literal coordinates, for pinning byte positions."""
    return {
        "pi_a": ["1", "2", "1"],
        "pi_b": [["3", "4"], ["5", "6"], ["1", "0"]],
        "pi_c": ["7", "8", "1"],
        "protocol": "groth16",
        "curve": "bn128",
    }


@pytest.fixture
def layout_vk() -> dict:
    """Verification key with no public inputs (ic_count = 1) and literal coordinates."""
    return {
        "protocol": "groth16",
        "curve": "bn128",
        "nPublic": 0,
        "vk_alpha_1": ["1", "2", "1"],
        "vk_beta_2": [["3", "4"], ["5", "6"], ["1", "0"]],
        "vk_gamma_2": [["7", "8"], ["9", "10"], ["1", "0"]],
        "vk_delta_2": [["11", "12"], ["13", "14"], ["1", "0"]],
        "IC": [["15", "16", "1"]],
    }
