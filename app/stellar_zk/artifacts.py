# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# artifacts.py

"""
Persistence of pipeline outputs between invocations.

`build` writes `target/build_artifacts.json`; `prove` writes
`proofs/proof.bin` and `proofs/public_inputs.json`; `deploy` writes
`target/deployment.json`. Later stages read what earlier ones wrote. The
progression Absent -> Built -> Proved -> Deployed is only ever derived from
which of these files exist.

The build record is the join key of the chain. Changing its fields means
bumping `ARTIFACTS_SCHEMA_VERSION` and updating every reader at once; an old
or corrupted file is reported as `SchemaMismatch`, a missing one as
`NotFound`.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from stellar_zk.constants import (
    ARTIFACTS_FILE,
    ARTIFACTS_SCHEMA_VERSION,
    DEPLOYMENT_FILE,
    FIELD_ELEMENT_SIZE,
    PROOF_FILE,
    PROOFS_DIR,
    PUBLIC_INPUTS_FILE,
    TARGET_DIR,
)
from stellar_zk.errors import NotFound, SchemaMismatch
from stellar_zk.files import load_bytes, load_json, save_bytes, save_json

logger = logging.getLogger(__name__)


class Stage(Enum):
    ABSENT = "absent"
    BUILT = "built"
    PROVED = "proved"
    DEPLOYED = "deployed"


@dataclass(frozen=True)
class BuildArtifacts:
    """File locations produced once by `build` and read by every later stage."""

    circuit_artifact: Path
    verifier_wasm: Path
    verification_key: Path
    proving_key: Path | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "schema_version": ARTIFACTS_SCHEMA_VERSION,
            "circuit_artifact": str(self.circuit_artifact),
            "verifier_wasm": str(self.verifier_wasm),
            "proving_key": None if self.proving_key is None else str(self.proving_key),
            "verification_key": str(self.verification_key),
        }

    @classmethod
    def from_json(cls, data: Any, source: str = ARTIFACTS_FILE) -> "BuildArtifacts":
        if not isinstance(data, dict):
            raise SchemaMismatch(f"{source}: expected a JSON object")
        version = data.get("schema_version")
        if version != ARTIFACTS_SCHEMA_VERSION:
            raise SchemaMismatch(
                f"{source}: schema_version {version!r}, expected "
                f"{ARTIFACTS_SCHEMA_VERSION} (rebuild the project)"
            )
        fields = {}
        for key in ("circuit_artifact", "verifier_wasm", "verification_key"):
            value = data.get(key)
            if not isinstance(value, str) or not value:
                raise SchemaMismatch(f"{source}: '{key}' must be a non-empty path")
            fields[key] = Path(value)
        proving_key = data.get("proving_key")
        if proving_key is not None and not isinstance(proving_key, str):
            raise SchemaMismatch(f"{source}: 'proving_key' must be a path or null")
        return cls(
            proving_key=None if proving_key is None else Path(proving_key),
            **fields,
        )


@dataclass(frozen=True)
class ProofArtifacts:
    proof: bytes
    public_inputs: list[bytes]
    proof_path: Path


def save(artifacts: BuildArtifacts, target_dir: str | Path) -> Path:
    """
    Write the build record to `<target_dir>/build_artifacts.json`.

    Returns:
        The path written.
    """
    path = Path(target_dir) / ARTIFACTS_FILE
    save_json(path, artifacts.to_json())
    logger.info("saved build artifacts to %s", path)
    return path


def load(target_dir: str | Path) -> BuildArtifacts:
    """
    Read the build record written by `save`.

    Raises:
        NotFound: If the project has not been built.
        SchemaMismatch: If the file is corrupted or from another schema version.
    """
    path = Path(target_dir) / ARTIFACTS_FILE
    try:
        data = load_json(path)
    except FileNotFoundError as e:
        raise NotFound(f"{path} not found, run build first") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SchemaMismatch(f"{path}: not valid JSON ({e})") from e
    return BuildArtifacts.from_json(data, str(path))


def public_inputs_record(public_inputs: list[bytes], total_proof_size: int) -> dict[str, Any]:
    return {
        "public_inputs_hex": [v.hex() for v in public_inputs],
        "count": len(public_inputs),
        "total_proof_size": total_proof_size,
    }


def save_proof(proof: bytes, public_inputs: list[bytes], proof_dir: str | Path) -> ProofArtifacts:
    """
    Write `proof.bin` and `public_inputs.json` for the call stage.

    public_inputs.json holds `public_inputs_hex`, `count` and
    `total_proof_size`.
    """
    proof_dir = Path(proof_dir)
    proof_path = proof_dir / PROOF_FILE
    save_bytes(proof_path, proof)
    save_json(proof_dir / PUBLIC_INPUTS_FILE, public_inputs_record(public_inputs, len(proof)))
    logger.info(
        "saved %d-byte proof with %d public inputs to %s",
        len(proof),
        len(public_inputs),
        proof_dir,
    )
    return ProofArtifacts(proof=proof, public_inputs=list(public_inputs), proof_path=proof_path)


def load_public_inputs(proof_dir: str | Path) -> list[bytes]:
    """
    Read public_inputs.json back into 32-byte elements, in order.

    Raises:
        NotFound: If the project has not been proved.
        SchemaMismatch: If an entry is not 32 bytes of hex or `count` disagrees.
    """
    path = Path(proof_dir) / PUBLIC_INPUTS_FILE
    try:
        data = load_json(path)
    except FileNotFoundError as e:
        raise NotFound(f"{path} not found, run prove first") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SchemaMismatch(f"{path}: not valid JSON ({e})") from e

    if not isinstance(data, dict) or not isinstance(data.get("public_inputs_hex"), list):
        raise SchemaMismatch(f"{path}: missing public_inputs_hex array")

    inputs = []
    for i, h in enumerate(data["public_inputs_hex"]):
        try:
            value = bytes.fromhex(h)
        except (TypeError, ValueError) as e:
            raise SchemaMismatch(f"{path}: public_inputs_hex[{i}] is not hex") from e
        if len(value) != FIELD_ELEMENT_SIZE:
            raise SchemaMismatch(
                f"{path}: public_inputs_hex[{i}] is {len(value)} bytes, expected 32"
            )
        inputs.append(value)

    count = data.get("count", len(inputs))
    if not isinstance(count, int) or isinstance(count, bool):
        raise SchemaMismatch(f"{path}: count must be an integer, got {count!r}")
    if count != len(inputs):
        raise SchemaMismatch(f"{path}: count {count} but {len(inputs)} inputs listed")
    return inputs


def load_proof(proof_dir: str | Path) -> ProofArtifacts:
    """
    Read the proof and public inputs written by `save_proof`.

    Raises:
        NotFound: If either file is missing.
        SchemaMismatch: If the recorded proof size disagrees with proof.bin.
    """
    proof_dir = Path(proof_dir)
    proof_path = proof_dir / PROOF_FILE
    try:
        proof = load_bytes(proof_path)
    except FileNotFoundError as e:
        raise NotFound(f"{proof_path} not found, run prove first") from e
    inputs = load_public_inputs(proof_dir)

    recorded = load_json(proof_dir / PUBLIC_INPUTS_FILE).get("total_proof_size")
    if recorded is not None and recorded != len(proof):
        raise SchemaMismatch(
            f"{proof_path}: {len(proof)} bytes but public_inputs.json records {recorded}"
        )
    return ProofArtifacts(proof=proof, public_inputs=inputs, proof_path=proof_path)


def record_deployment(target_dir: str | Path, contract_id: str, network: str) -> Path:
    """Record the deployed verifier contract for later `call` invocations."""
    path = Path(target_dir) / DEPLOYMENT_FILE
    save_json(path, {"contract_id": contract_id, "network": network})
    logger.info("recorded deployment %s on %s", contract_id, network)
    return path


def load_deployment(target_dir: str | Path) -> dict[str, str]:
    """
    Read the deployment record.

    Raises:
        NotFound: If the verifier has not been deployed.
        SchemaMismatch: If the record lacks a contract id or network.
    """
    path = Path(target_dir) / DEPLOYMENT_FILE
    try:
        data = load_json(path)
    except FileNotFoundError as e:
        raise NotFound(f"{path} not found, run deploy first") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SchemaMismatch(f"{path}: not valid JSON ({e})") from e
    if not isinstance(data, dict):
        raise SchemaMismatch(f"{path}: expected a JSON object")
    for key in ("contract_id", "network"):
        if not isinstance(data.get(key), str):
            raise SchemaMismatch(f"{path}: '{key}' must be a string")
    return {"contract_id": data["contract_id"], "network": data["network"]}


def stage(project_dir: str | Path) -> Stage:
    """Report how far the pipeline has progressed for a project directory."""
    project_dir = Path(project_dir)
    target_dir = project_dir / TARGET_DIR
    proof_dir = project_dir / PROOFS_DIR

    if not (target_dir / ARTIFACTS_FILE).exists():
        return Stage.ABSENT
    if (target_dir / DEPLOYMENT_FILE).exists():
        return Stage.DEPLOYED
    if (proof_dir / PROOF_FILE).exists() and (proof_dir / PUBLIC_INPUTS_FILE).exists():
        return Stage.PROVED
    return Stage.BUILT
