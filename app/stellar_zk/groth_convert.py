# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# groth_convert.py

"""
Convert snarkjs Groth16 proof output to the on-chain binary format.

snarkjs outputs:
  - proof.json: {pi_a, pi_b, pi_c, protocol, curve}
  - public.json: ["decimal", ...] in the circuit's public signal order

The verifier contract expects:
  - proof: A(G1, 64) | B(G2, 128) | C(G1, 64) = 256 bytes
  - public_inputs: concatenated 32-byte big-endian scalars, same order
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from stellar_zk.artifacts import public_inputs_record
from stellar_zk.bn254 import (
    G1Point,
    G2Point,
    check_g1,
    check_g2,
    decode_g1,
    decode_g2,
    encode_g1,
    encode_g2,
    g1_from_json,
    g2_from_json,
)
from stellar_zk.constants import (
    FIELD_ELEMENT_SIZE,
    G1_SIZE,
    G2_SIZE,
    GROTH16_PROOF_SIZE,
    PROOF_FILE,
    PUBLIC_INPUTS_FILE,
    SCALAR_MODULUS,
)
from stellar_zk.errors import (
    LengthMismatch,
    MalformedProof,
    MissingField,
    OutOfRange,
    ParseError,
)
from stellar_zk.field import encode
from stellar_zk.files import load_json, save_bytes, save_json


@dataclass(frozen=True)
class Groth16Proof:
    a: G1Point
    b: G2Point
    c: G1Point


def require(raw: Any, key: str, structure: str) -> Any:
    """Fetch `raw[key]`, raising `MissingField` if the toolchain omitted it."""
    if not isinstance(raw, dict):
        raise ParseError(structure, f"expected a JSON object, got {type(raw).__name__}")
    value = raw.get(key)
    if value is None:
        raise MissingField(structure, f"missing '{key}'")
    return value


def serialize_g1(coords: list[Any], label: str = "G1 point") -> bytes:
    """snarkjs `["x", "y", "1"]` to 64 on-chain bytes."""
    return encode_g1(g1_from_json(coords, label), label)


def serialize_g2(coords: list[Any], label: str = "G2 point") -> bytes:
    """
    snarkjs `[["x_c0", "x_c1"], ["y_c0", "y_c1"], ["1", "0"]]` to 128 on-chain
    bytes, with c1 written before c0.
    """
    return encode_g2(g2_from_json(coords, label), label)


def proof_from_snarkjs(raw_proof: dict[str, Any]) -> Groth16Proof:
    """
    Parse snarkjs proof.json into points, keeping toolchain component order.

    Raises:
        MissingField: If pi_a, pi_b or pi_c is absent.
        MalformedProof: If a point has the wrong shape or a bad coordinate.
    """
    pi_a = require(raw_proof, "pi_a", "Groth16 proof")
    pi_b = require(raw_proof, "pi_b", "Groth16 proof")
    pi_c = require(raw_proof, "pi_c", "Groth16 proof")
    try:
        return Groth16Proof(
            a=g1_from_json(pi_a, "G1 point pi_a"),
            b=g2_from_json(pi_b, "G2 point pi_b"),
            c=g1_from_json(pi_c, "G1 point pi_c"),
        )
    except ParseError as e:
        raise MalformedProof(e.structure, e.reason) from e


def proof_to_bytes(proof: Groth16Proof) -> bytes:
    """
    Lay out a parsed proof as `A | B | C` (256 bytes).

    Raises:
        MalformedProof: If a coordinate is not below the field modulus.
    """
    try:
        out = (
            encode_g1(proof.a, "G1 point pi_a")
            + encode_g2(proof.b, "G2 point pi_b")
            + encode_g1(proof.c, "G1 point pi_c")
        )
    except (ParseError, OutOfRange) as e:
        raise MalformedProof(e.structure, e.reason) from e
    return out


def serialize_proof(raw_proof: dict[str, Any], check_curve: bool = False) -> bytes:
    """
    Serialize a snarkjs proof.json into 256 bytes for the verifier contract.

    Expects:
        {
          "pi_a": ["x", "y", "1"],
          "pi_b": [["x_c0", "x_c1"], ["y_c0", "y_c1"], ["1", "0"]],
          "pi_c": ["x", "y", "1"]
        }

    The output is deterministic: the same JSON always yields the same bytes.

    Args:
        raw_proof: Dict from snarkjs's proof.json.
        check_curve: Also require every point to lie on BN254.

    Returns:
        `A(64) | B(128, c1 before c0) | C(64)`.

    Raises:
        MissingField: If a proof point is absent.
        MalformedProof: If a coordinate fails field-element encoding.
        NotOnCurve: With `check_curve`, if a point is not on the curve.
    """
    proof = proof_from_snarkjs(raw_proof)
    out = proof_to_bytes(proof)
    if check_curve:
        check_g1(proof.a, "G1 point pi_a")
        check_g2(proof.b, "G2 point pi_b")
        check_g1(proof.c, "G1 point pi_c")
    return out


def deserialize_proof(data: bytes) -> Groth16Proof:
    """
    Read a 256-byte on-chain proof back into points.

    Raises:
        LengthMismatch: If `data` is not 256 bytes.
        OutOfRange: If a coordinate is not below the base field modulus.
    """
    if len(data) != GROTH16_PROOF_SIZE:
        raise LengthMismatch(
            "Groth16 proof", f"expected {GROTH16_PROOF_SIZE} bytes, got {len(data)}"
        )
    b_end = G1_SIZE + G2_SIZE
    return Groth16Proof(
        a=decode_g1(data[:G1_SIZE], "G1 point A"),
        b=decode_g2(data[G1_SIZE:b_end], "G2 point B"),
        c=decode_g1(data[b_end:], "G1 point C"),
    )


def extract_public_inputs(raw_public: list[Any]) -> list[bytes]:
    """
    Convert snarkjs public.json into 32-byte big-endian scalars.

    Order is preserved: the verification equation pairs input `i` with
    `IC[i + 1]`.

    Args:
        raw_public: The decoded public.json array.

    Returns:
        One 32-byte element per public signal.

    Raises:
        ParseError: If the input is not an array or an entry is not a decimal.
        OutOfRange: If an entry is not below the BN254 scalar field order.
    """
    if not isinstance(raw_public, list):
        raise ParseError("public inputs", "must be an array")
    return [
        encode(v, SCALAR_MODULUS, label=f"public input [{i}]")
        for i, v in enumerate(raw_public)
    ]


def public_inputs_to_bytes(inputs: list[bytes]) -> bytes:
    """Concatenate public inputs in order, checking each is one field element."""
    for i, value in enumerate(inputs):
        if len(value) != FIELD_ELEMENT_SIZE:
            raise LengthMismatch(
                f"public input [{i}]",
                f"expected {FIELD_ELEMENT_SIZE} bytes, got {len(value)}",
            )
    return b"".join(inputs)


def convert_proof_file(
    proof_path: str | Path,
    output_path: str | Path,
) -> bytes:
    """
    Read snarkjs proof.json and write the 256-byte binary proof.

    Args:
        proof_path: Path to snarkjs's proof.json
        output_path: Path to write the binary proof

    Returns:
        The serialized proof bytes.
    """
    proof_bytes = serialize_proof(load_json(proof_path))
    save_bytes(output_path, proof_bytes)
    return proof_bytes


def convert_public_file(
    public_path: str | Path,
    output_path: str | Path,
    total_proof_size: int = GROTH16_PROOF_SIZE,
) -> list[bytes]:
    """
    Read snarkjs public.json and write public_inputs.json.

    The output records each input as hex, plus the count and the proof size,
    which is what the call stage reads back.

    Args:
        public_path: Path to snarkjs's public.json
        output_path: Path to write public_inputs.json
        total_proof_size: Size of the proof these inputs belong to

    Returns:
        The public inputs as 32-byte elements.
    """
    inputs = extract_public_inputs(load_json(public_path))
    save_json(output_path, public_inputs_record(inputs, total_proof_size))
    return inputs


def convert_all(
    proof_path: str | Path,
    public_path: str | Path,
    output_dir: str | Path,
    proof_filename: str = PROOF_FILE,
    public_filename: str = PUBLIC_INPUTS_FILE,
) -> tuple[bytes, list[bytes]]:
    """
    Convert snarkjs proof and public output files to the on-chain format.

    Args:
        proof_path: Path to snarkjs's proof.json
        public_path: Path to snarkjs's public.json
        output_dir: Directory to write output files
        proof_filename: Name for the binary proof
        public_filename: Name for public inputs output file

    Returns:
        `(proof_bytes, public_inputs)`.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    proof_bytes = convert_proof_file(proof_path, output_dir / proof_filename)
    inputs = convert_public_file(
        public_path, output_dir / public_filename, len(proof_bytes)
    )
    return proof_bytes, inputs


def main() -> None:
    """CLI: convert proof.json and public.json into an output directory."""
    if len(sys.argv) < 3:
        print(
            "Usage: python -m stellar_zk.groth_convert <proof.json> <public.json> [output_dir]",
            file=sys.stderr,
        )
        sys.exit(1)

    output_dir = sys.argv[3] if len(sys.argv) >= 4 else "."
    proof_bytes, inputs = convert_all(sys.argv[1], sys.argv[2], output_dir)
    print(f"proof: {len(proof_bytes)} bytes, public inputs: {len(inputs)}")


if __name__ == "__main__":
    main()
