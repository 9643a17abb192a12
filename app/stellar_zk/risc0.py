# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# risc0.py

"""
RISC Zero Groth16 seal.

A STARK receipt wrapped in Groth16 is submitted as

    selector(4, big-endian) | groth16_proof(256)

The selector names the Groth16 circuit version; the verifier contract only
accepts the one it was configured with.
"""

from stellar_zk.constants import (
    GROTH16_PROOF_SIZE,
    IMAGE_ID_SIZE,
    RISC0_SEAL_SIZE,
    RISC0_SELECTOR,
    SELECTOR_SIZE,
)
from stellar_zk.errors import LengthMismatch, SelectorMismatch
from stellar_zk.hashing import sha256


def selector_bytes(selector: bytes | int) -> bytes:
    """Normalize a selector given as 4 bytes or as a u32."""
    if isinstance(selector, int):
        if not 0 <= selector < 1 << (8 * SELECTOR_SIZE):
            raise LengthMismatch("RISC Zero selector", f"{selector} does not fit in u32")
        return selector.to_bytes(SELECTOR_SIZE, "big")
    if len(selector) != SELECTOR_SIZE:
        raise LengthMismatch(
            "RISC Zero selector",
            f"expected {SELECTOR_SIZE} bytes, got {len(selector)}",
        )
    return bytes(selector)


def serialize_seal(selector: bytes | int, groth16_proof: bytes) -> bytes:
    """
    Prefix a 256-byte Groth16 proof with its selector.

    Raises:
        LengthMismatch: If the proof is not 256 bytes.
    """
    if len(groth16_proof) != GROTH16_PROOF_SIZE:
        raise LengthMismatch(
            "RISC Zero seal proof",
            f"expected {GROTH16_PROOF_SIZE} bytes, got {len(groth16_proof)}",
        )
    return selector_bytes(selector) + bytes(groth16_proof)


def validate_seal(seal: bytes, expected_selector: bytes | int = RISC0_SELECTOR) -> bytes:
    """
    Check a seal's length and selector and return the embedded Groth16 proof.

    A wrong selector means a stale build or a version-confusion attempt; it is
    always an error.

    Args:
        seal: The 260-byte seal.
        expected_selector: Selector the verifier accepts.

    Returns:
        The 256-byte Groth16 proof, unchanged.

    Raises:
        LengthMismatch: If the seal is not 260 bytes.
        SelectorMismatch: If the selector differs from `expected_selector`.
    """
    if len(seal) != RISC0_SEAL_SIZE:
        raise LengthMismatch(
            "RISC Zero seal", f"expected {RISC0_SEAL_SIZE} bytes, got {len(seal)}"
        )
    expected = selector_bytes(expected_selector)
    found = bytes(seal[:SELECTOR_SIZE])
    if found != expected:
        raise SelectorMismatch(
            "RISC Zero seal",
            f"selector {found.hex()} does not match expected {expected.hex()}",
        )
    return bytes(seal[SELECTOR_SIZE:])


def journal_digest(journal: bytes) -> bytes:
    """SHA-256 of the zkVM journal, the second public input of a receipt."""
    return sha256(journal)


def receipt_public_inputs(image_id: bytes, journal: bytes) -> list[bytes]:
    """
    Public inputs for a RISC Zero receipt: `[image_id, sha256(journal)]`.

    Raises:
        LengthMismatch: If the image id is not 32 bytes.
    """
    if len(image_id) != IMAGE_ID_SIZE:
        raise LengthMismatch(
            "RISC Zero image id", f"expected {IMAGE_ID_SIZE} bytes, got {len(image_id)}"
        )
    return [bytes(image_id), journal_digest(journal)]
