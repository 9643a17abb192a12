# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# call.py

"""
Byte-exact arguments for the two verifier contract entry points:

    initialize(vk_bytes)
    verify(proof, public_inputs, nullifier)

Every argument is handed to the contract invocation as lowercase hex.
"""

from dataclasses import dataclass
from pathlib import Path

from stellar_zk import artifacts
from stellar_zk.artifacts import BuildArtifacts
from stellar_zk.constants import PROOFS_DIR
from stellar_zk.errors import NotFound
from stellar_zk.field import split_elements
from stellar_zk.files import load_bytes
from stellar_zk.hashing import compute_nullifier

__all__ = [
    "CallArgs",
    "compute_nullifier",
    "deploy_args",
    "prepare_call",
    "prepare_call_from_project",
]


@dataclass(frozen=True)
class CallArgs:
    proof: str
    public_inputs: str
    nullifier: str

    @property
    def num_public_inputs(self) -> int:
        return len(self.public_inputs) // 64

    def as_dict(self) -> dict[str, str]:
        return {
            "proof": self.proof,
            "public_inputs": self.public_inputs,
            "nullifier": self.nullifier,
        }


def prepare_call(proof_bytes: bytes, public_input_bytes: bytes) -> CallArgs:
    """
    Build the `verify` arguments for a proof and its public inputs.

    Args:
        proof_bytes: The full serialized proof (Groth16 proof, UltraHonk blob
            or RISC Zero seal).
        public_input_bytes: Concatenated 32-byte public inputs, in order.

    Returns:
        Hex-encoded proof, public inputs and nullifier.

    Raises:
        LengthMismatch: If the public inputs are not whole 32-byte fields.
    """
    split_elements(public_input_bytes, "public inputs")
    nullifier = compute_nullifier(proof_bytes, public_input_bytes)
    return CallArgs(
        proof=proof_bytes.hex(),
        public_inputs=public_input_bytes.hex(),
        nullifier=nullifier.hex(),
    )


def prepare_call_from_project(
    project_dir: str | Path,
    proof_path: str | Path | None = None,
    public_inputs_path: str | Path | None = None,
) -> CallArgs:
    """
    Build the `verify` arguments from what `prove` left in `proofs/`.

    An explicit `public_inputs_path` is read as raw concatenated bytes;
    otherwise `proofs/public_inputs.json` is used.

    Raises:
        NotFound: If the proof or public inputs are missing.
    """
    proof_dir = Path(project_dir) / PROOFS_DIR
    if proof_path is None:
        proof = artifacts.load_proof(proof_dir).proof
    else:
        try:
            proof = load_bytes(proof_path)
        except FileNotFoundError as e:
            raise NotFound(f"proof file not found: {proof_path}") from e

    if public_inputs_path is None:
        public_inputs = b"".join(artifacts.load_public_inputs(proof_dir))
    else:
        try:
            public_inputs = load_bytes(public_inputs_path)
        except FileNotFoundError as e:
            raise NotFound(f"public inputs file not found: {public_inputs_path}") from e

    return prepare_call(proof, public_inputs)


def deploy_args(build_artifacts: BuildArtifacts) -> dict[str, str]:
    """
    Arguments for `initialize`, read from the recorded verification key.

    Raises:
        NotFound: If the verification key file is missing.
    """
    vk_path = build_artifacts.verification_key
    try:
        vk_bytes = load_bytes(vk_path)
    except FileNotFoundError as e:
        raise NotFound(f"verification key not found at {vk_path}, run build first") from e
    return {"vk_bytes": vk_bytes.hex()}
