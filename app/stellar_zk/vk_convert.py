# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# vk_convert.py

"""
Convert a snarkjs Groth16 verification key to the on-chain binary format.

snarkjs outputs:
  - verification_key.json: {protocol, curve, nPublic, vk_alpha_1, vk_beta_2,
    vk_gamma_2, vk_delta_2, vk_alphabeta_12, IC}

The verifier contract's one-time initializer takes:
  alpha(G1, 64) | beta(G2, 128) | gamma(G2, 128) | delta(G2, 128)
  | ic_count(u32 BE, 4) | IC[ic_count](G1, 64 each)

for a total of 452 + 64 * ic_count bytes. RISC Zero's universal Groth16 key
uses the same layout.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

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
from stellar_zk.constants import G1_SIZE, G2_SIZE, IC_COUNT_SIZE, VK_HEADER_SIZE
from stellar_zk.errors import CountMismatch, EmptyIC, LengthMismatch, ParseError
from stellar_zk.field import parse_int
from stellar_zk.files import load_json, save_bytes
from stellar_zk.groth_convert import require


@dataclass(frozen=True)
class VerificationKey:
    alpha: G1Point
    beta: G2Point
    gamma: G2Point
    delta: G2Point
    ic: tuple[G1Point, ...]

    @property
    def n_public(self) -> int:
        return len(self.ic) - 1


def vk_from_snarkjs(raw_vk: dict[str, Any]) -> VerificationKey:
    """
    Parse snarkjs verification_key.json into points.

    When the key carries `nPublic`, the IC length must be `nPublic + 1`
    (one point per public input plus the constant term).

    Raises:
        MissingField: If alpha, beta, gamma, delta or IC is absent.
        EmptyIC: If IC has no points.
        CountMismatch: If IC disagrees with nPublic.
        ParseError: If a point has the wrong shape or a bad coordinate.
    """
    alpha = require(raw_vk, "vk_alpha_1", "verification key")
    beta = require(raw_vk, "vk_beta_2", "verification key")
    gamma = require(raw_vk, "vk_gamma_2", "verification key")
    delta = require(raw_vk, "vk_delta_2", "verification key")
    ic = require(raw_vk, "IC", "verification key")

    if not isinstance(ic, list):
        raise ParseError("verification key IC", "must be an array")
    if not ic:
        raise EmptyIC(
            "verification key IC", "no IC points (expected at least the constant term)"
        )

    if raw_vk.get("nPublic") is not None:
        n_public = parse_int(raw_vk["nPublic"], "verification key nPublic")
        if len(ic) != n_public + 1:
            raise CountMismatch(
                "verification key IC",
                f"{len(ic)} points for nPublic={n_public}, expected {n_public + 1}",
            )

    return VerificationKey(
        alpha=g1_from_json(alpha, "G1 point vk_alpha_1"),
        beta=g2_from_json(beta, "G2 point vk_beta_2"),
        gamma=g2_from_json(gamma, "G2 point vk_gamma_2"),
        delta=g2_from_json(delta, "G2 point vk_delta_2"),
        ic=tuple(g1_from_json(p, f"G1 point IC[{i}]") for i, p in enumerate(ic)),
    )


def vk_to_bytes(vk: VerificationKey) -> bytes:
    """Lay out a parsed verification key in the on-chain order."""
    if not vk.ic:
        raise EmptyIC("verification key IC", "no IC points")
    out = bytearray()
    out += encode_g1(vk.alpha, "G1 point vk_alpha_1")
    out += encode_g2(vk.beta, "G2 point vk_beta_2")
    out += encode_g2(vk.gamma, "G2 point vk_gamma_2")
    out += encode_g2(vk.delta, "G2 point vk_delta_2")
    out += len(vk.ic).to_bytes(IC_COUNT_SIZE, "big")
    for i, point in enumerate(vk.ic):
        out += encode_g1(point, f"G1 point IC[{i}]")
    return bytes(out)


def serialize_vk(raw_vk: dict[str, Any], check_curve: bool = False) -> bytes:
    """
    Serialize snarkjs verification_key.json for the verifier's initializer.

    Args:
        raw_vk: Dict from snarkjs's verification_key.json
        check_curve: Also require every point to lie on BN254.

    Returns:
        `452 + 64 * len(IC)` bytes.

    Raises:
        MissingField: If a required key is absent.
        EmptyIC: If IC is empty.
        CountMismatch: If IC disagrees with nPublic.
        ParseError / OutOfRange: If a coordinate fails encoding.
        NotOnCurve: With `check_curve`, if a point is not on the curve.
    """
    vk = vk_from_snarkjs(raw_vk)
    out = vk_to_bytes(vk)
    if check_curve:
        check_g1(vk.alpha, "G1 point vk_alpha_1")
        check_g2(vk.beta, "G2 point vk_beta_2")
        check_g2(vk.gamma, "G2 point vk_gamma_2")
        check_g2(vk.delta, "G2 point vk_delta_2")
        for i, point in enumerate(vk.ic):
            check_g1(point, f"G1 point IC[{i}]")
    return out


def deserialize_vk(data: bytes) -> VerificationKey:
    """
    Read on-chain verification key bytes back into points.

    Raises:
        LengthMismatch: If the buffer is shorter than the fixed header or its
            length disagrees with `ic_count`.
        EmptyIC: If `ic_count` is zero.
        OutOfRange: If a coordinate is not below the base field modulus.
    """
    if len(data) < VK_HEADER_SIZE:
        raise LengthMismatch(
            "verification key",
            f"expected at least {VK_HEADER_SIZE} bytes, got {len(data)}",
        )
    offset = 0

    def take(size: int) -> bytes:
        nonlocal offset
        chunk = data[offset : offset + size]
        offset += size
        return chunk

    alpha = decode_g1(take(G1_SIZE), "G1 point alpha")
    beta = decode_g2(take(G2_SIZE), "G2 point beta")
    gamma = decode_g2(take(G2_SIZE), "G2 point gamma")
    delta = decode_g2(take(G2_SIZE), "G2 point delta")
    ic_count = int.from_bytes(take(IC_COUNT_SIZE), "big")

    if ic_count == 0:
        raise EmptyIC("verification key IC", "ic_count is 0")
    expected = VK_HEADER_SIZE + G1_SIZE * ic_count
    if len(data) != expected:
        raise LengthMismatch(
            "verification key",
            f"ic_count={ic_count} requires {expected} bytes, got {len(data)}",
        )

    ic = tuple(decode_g1(take(G1_SIZE), f"G1 point IC[{i}]") for i in range(ic_count))
    return VerificationKey(alpha=alpha, beta=beta, gamma=gamma, delta=delta, ic=ic)


def check_ic_count(vk_bytes: bytes, n_public: int) -> int:
    """
    Check a serialized key accepts exactly `n_public` public inputs.

    Returns:
        The key's `ic_count`.

    Raises:
        LengthMismatch: If the header is truncated.
        CountMismatch: If `ic_count != n_public + 1`.
    """
    if len(vk_bytes) < VK_HEADER_SIZE:
        raise LengthMismatch(
            "verification key",
            f"expected at least {VK_HEADER_SIZE} bytes, got {len(vk_bytes)}",
        )
    ic_count = int.from_bytes(vk_bytes[VK_HEADER_SIZE - IC_COUNT_SIZE : VK_HEADER_SIZE], "big")
    if ic_count != n_public + 1:
        raise CountMismatch(
            "verification key IC",
            f"ic_count={ic_count} but {n_public} public inputs were supplied",
        )
    return ic_count


def convert_vk_file(
    input_path: str | Path,
    output_path: str | Path,
) -> bytes:
    """
    Read snarkjs verification_key.json and write the binary key.

    Args:
        input_path: Path to snarkjs's verification_key.json
        output_path: Path to write the binary verification key

    Returns:
        The serialized key bytes.
    """
    vk_bytes = serialize_vk(load_json(input_path))
    save_bytes(output_path, vk_bytes)
    return vk_bytes


def main() -> None:
    """CLI: read verification_key.json from arg, write binary to file or hex to stdout."""
    if len(sys.argv) < 2:
        print(
            "Usage: python -m stellar_zk.vk_convert <verification_key.json> [verification.key]",
            file=sys.stderr,
        )
        sys.exit(1)

    if len(sys.argv) >= 3:
        convert_vk_file(sys.argv[1], sys.argv[2])
    else:
        print(serialize_vk(load_json(sys.argv[1])).hex())


if __name__ == "__main__":
    main()
