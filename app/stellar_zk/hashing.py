# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

import hashlib

from eth_typing import Hash32


def sha256(data: bytes) -> bytes:
    """
    Calculates the SHA-256 digest of raw bytes.

    Args:
        data (bytes): The bytes to be hashed.

    Returns:
        bytes: The 32-byte digest.
    """
    return hashlib.sha256(data).digest()


def compute_nullifier(proof: bytes, public_inputs: bytes) -> Hash32:
    """
    Derive the anti-replay nullifier for a verify call.

        nullifier = sha256(proof || public_inputs)

    The same (proof, public inputs) pair always gives the same nullifier, and
    the contract refuses a second verification carrying one it has already
    stored. It is recomputed before every call and never persisted locally.

    Args:
        proof: The full serialized proof bytes.
        public_inputs: The concatenated 32-byte public inputs.

    Returns:
        The 32-byte nullifier.
    """
    h = hashlib.sha256()
    h.update(proof)
    h.update(public_inputs)
    return Hash32(h.digest())
