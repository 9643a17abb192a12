# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# verify.py

"""
Off-chain Groth16 check over the on-chain byte formats.

This runs the same equation the verifier contract does,

    e(A, B) == e(alpha, beta) * e(vk_x, gamma) * e(C, delta)
    vk_x    =  IC[0] + sum(x_i * IC[i + 1])

but starting from the serialized key and proof, so a layout bug (a missing or
doubled G2 swap, a shifted IC entry) is caught before anything is deployed.
"""

import logging

from py_ecc.optimized_bn128 import add, final_exponentiate, multiply, pairing

from stellar_zk.bn254 import check_g1, check_g2, to_g1, to_g2
from stellar_zk.constants import SCALAR_MODULUS
from stellar_zk.errors import CountMismatch, NotOnCurve
from stellar_zk.field import check_range, decode, split_elements
from stellar_zk.groth_convert import deserialize_proof
from stellar_zk.vk_convert import deserialize_vk

logger = logging.getLogger(__name__)


def verify_groth16(
    vk_bytes: bytes,
    proof_bytes: bytes,
    public_inputs: list[bytes] | bytes,
) -> bool:
    """
    Verify a serialized Groth16 proof against a serialized verification key.

    Args:
        vk_bytes: Key in the on-chain layout (`452 + 64 * ic_count` bytes).
        proof_bytes: The 256-byte proof.
        public_inputs: 32-byte scalars, as a list or concatenated.

    Returns:
        True if the pairing equation holds. False if it does not, or if any
        decoded point is off the curve.

    Raises:
        LengthMismatch: If a buffer has the wrong size.
        CountMismatch: If `ic_count != len(public_inputs) + 1`.
        OutOfRange: If a coordinate or public input is out of its field.
    """
    vk = deserialize_vk(vk_bytes)
    proof = deserialize_proof(proof_bytes)

    if isinstance(public_inputs, (bytes, bytearray)):
        public_inputs = split_elements(bytes(public_inputs), "public inputs")
    scalars = [
        check_range(decode(v, f"public input [{i}]"), SCALAR_MODULUS, f"public input [{i}]")
        for i, v in enumerate(public_inputs)
    ]

    if len(vk.ic) != len(scalars) + 1:
        raise CountMismatch(
            "verification key IC",
            f"ic_count={len(vk.ic)} but {len(scalars)} public inputs were supplied",
        )

    try:
        check_g1(vk.alpha, "G1 point alpha")
        check_g2(vk.beta, "G2 point beta")
        check_g2(vk.gamma, "G2 point gamma")
        check_g2(vk.delta, "G2 point delta")
        for i, point in enumerate(vk.ic):
            check_g1(point, f"G1 point IC[{i}]")
        check_g1(proof.a, "G1 point A")
        check_g2(proof.b, "G2 point B")
        check_g1(proof.c, "G1 point C")
    except NotOnCurve as e:
        logger.info("proof rejected: %s", e)
        return False

    vk_x = to_g1(vk.ic[0])
    for s, point in zip(scalars, vk.ic[1:]):
        vk_x = add(vk_x, multiply(to_g1(point), s))

    left = pairing(to_g2(proof.b), to_g1(proof.a), final_exponentiate=False)
    right = pairing(to_g2(vk.beta), to_g1(vk.alpha), final_exponentiate=False)
    right *= pairing(to_g2(vk.gamma), vk_x, final_exponentiate=False)
    right *= pairing(to_g2(vk.delta), to_g1(proof.c), final_exponentiate=False)

    return final_exponentiate(left) == final_exponentiate(right)
