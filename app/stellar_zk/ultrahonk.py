# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# ultrahonk.py

"""
Barretenberg UltraHonk proof envelope.

`bb prove_ultra_honk` writes:

    count(u32 BE, 4) | count x 32-byte public inputs | proof fields x 32 bytes

Only the header and the public-input section are interpreted here. The
commitment section is handed to the verifier byte-for-byte, as produced, so
off-chain `bb verify_ultra_honk` and the contract see the same proof.
"""

from stellar_zk.constants import FIELD_ELEMENT_SIZE, SCALAR_MODULUS, ULTRAHONK_HEADER_SIZE
from stellar_zk.errors import CountMismatch, LengthMismatch
from stellar_zk.field import check_range, decode, split_elements


def header_count(data: bytes) -> int:
    """Read the public-input count from the 4-byte header."""
    if len(data) < ULTRAHONK_HEADER_SIZE:
        raise LengthMismatch(
            "UltraHonk proof header",
            f"expected at least {ULTRAHONK_HEADER_SIZE} bytes, got {len(data)}",
        )
    return int.from_bytes(data[:ULTRAHONK_HEADER_SIZE], "big")


def validate_proof_format(data: bytes, declared_count: int) -> None:
    """
    Check an UltraHonk proof blob against the circuit's public-input arity.

    Args:
        data: Raw proof bytes from bb.
        declared_count: Number of public inputs the circuit declares.

    Raises:
        LengthMismatch: If the header is truncated, the blob is too short for
            its public inputs, or the commitment section is empty or not a
            whole number of 32-byte fields.
        CountMismatch: If the header count differs from `declared_count`.
    """
    count = header_count(data)
    if count != declared_count:
        raise CountMismatch(
            "UltraHonk proof header",
            f"proof declares {count} public inputs, circuit declares {declared_count}",
        )

    body = len(data) - ULTRAHONK_HEADER_SIZE
    needed = count * FIELD_ELEMENT_SIZE
    if body < needed:
        raise LengthMismatch(
            "UltraHonk public inputs",
            f"{count} inputs need {needed} bytes, only {body} present",
        )

    commitments = body - needed
    if commitments == 0:
        raise LengthMismatch("UltraHonk commitments", "section is empty")
    if commitments % FIELD_ELEMENT_SIZE != 0:
        raise LengthMismatch(
            "UltraHonk commitments",
            f"length {commitments} is not a multiple of {FIELD_ELEMENT_SIZE}",
        )


def split_proof(data: bytes, declared_count: int) -> tuple[list[bytes], bytes]:
    """
    Split a validated proof into its public inputs and commitment section.

    Each public input must be a scalar below the BN254 group order; the
    commitment section is not interpreted.

    Returns:
        `(public_inputs, commitments)`; `commitments` is an unmodified slice
        of `data`.

    Raises:
        LengthMismatch / CountMismatch: As `validate_proof_format`.
        OutOfRange: If a public input is not below the scalar field order.
    """
    validate_proof_format(data, declared_count)
    end = ULTRAHONK_HEADER_SIZE + declared_count * FIELD_ELEMENT_SIZE
    inputs = split_elements(data[ULTRAHONK_HEADER_SIZE:end], "UltraHonk public inputs")
    for i, chunk in enumerate(inputs):
        label = f"UltraHonk public input [{i}]"
        check_range(decode(chunk, label), SCALAR_MODULUS, label)
    return inputs, bytes(data[end:])


def extract_public_inputs(data: bytes, declared_count: int) -> list[bytes]:
    """
    Return the public inputs of an UltraHonk proof as 32-byte elements, in order.

    Raises:
        LengthMismatch / CountMismatch: As `validate_proof_format`.
        OutOfRange: If a public input is not below the scalar field order.
    """
    inputs, _ = split_proof(data, declared_count)
    return inputs


def serialize_vk(vk_bytes: bytes) -> bytes:
    """
    Barretenberg's VK is consumed on chain as written; only reject empty keys.
    """
    if not vk_bytes:
        raise LengthMismatch("UltraHonk verification key", "key is empty")
    return bytes(vk_bytes)
