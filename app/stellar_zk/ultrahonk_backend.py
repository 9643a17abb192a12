# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# ultrahonk_backend.py

"""
UltraHonk with Noir (nargo) and Barretenberg (bb).

There is no separate proving key: `bb write_vk` derives the verification key
from the compiled ACIR, and `bb prove_ultra_honk` writes a proof whose header
already carries the public inputs.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from stellar_zk import artifacts
from stellar_zk.artifacts import BuildArtifacts, ProofArtifacts
from stellar_zk.backend import (
    PrerequisiteError,
    VersionWarning,
    build_verifier_wasm,
    missing_tools,
    outdated_tools,
    require_input,
)
from stellar_zk.constants import PROOFS_DIR, TARGET_DIR
from stellar_zk.errors import ToolError, VerificationFailed
from stellar_zk.estimator import CostEstimate, static_estimate
from stellar_zk.files import load_bytes, load_json, save_json
from stellar_zk.profile import OptimizationProfile
from stellar_zk.tools import run_tool
from stellar_zk.ultrahonk import extract_public_inputs, header_count

logger = logging.getLogger(__name__)

DEFAULT_ORACLE_HASH = "keccak"
CONFIG_FILE = "ultrahonk_config.json"
BB_PROOF_FILE = "bb_proof.bin"
NARGO_INSTALL = "noirup"
BB_INSTALL = "bbup"


@dataclass
class UltraHonkOptions:
    oracle_hash: str = DEFAULT_ORACLE_HASH
    circuit_dir: str = "circuits"
    # None trusts the count in the proof header
    num_public_inputs: int | None = None
    profile: str = "development"
    verify_offchain: bool = True


def load_oracle_hash(target_dir: Path) -> str:
    """Oracle hash cached by the last build, or keccak if there is none."""
    try:
        data = load_json(target_dir / CONFIG_FILE)
    except FileNotFoundError:
        return DEFAULT_ORACLE_HASH
    except json.JSONDecodeError:
        logger.warning("%s is not valid JSON, using %s", CONFIG_FILE, DEFAULT_ORACLE_HASH)
        return DEFAULT_ORACLE_HASH
    oracle_hash = data.get("oracle_hash") if isinstance(data, dict) else None
    return oracle_hash if isinstance(oracle_hash, str) else DEFAULT_ORACLE_HASH


class UltraHonkBackend:
    name = "ultrahonk"
    display_name = "Noir + UltraHonk (Barretenberg)"

    def __init__(self, options: UltraHonkOptions | None = None):
        self.options = options or UltraHonkOptions()

    def check_prerequisites(self) -> list[PrerequisiteError]:
        return missing_tools(
            {
                "nargo": "curl -L https://raw.githubusercontent.com/noir-lang/noirup/main/install | bash && noirup",
                "bb": "curl -L https://raw.githubusercontent.com/AztecProtocol/aztec-packages/master/barretenberg/bbup/install | bash && bbup",
            }
        )

    def check_versions(self) -> list[VersionWarning]:
        return outdated_tools({"nargo": (0, 36, 0), "bb": (0, 56, 0)})

    def build(self, project_dir: str | Path) -> BuildArtifacts:
        profile = OptimizationProfile.from_name(self.options.profile)
        project_dir = Path(project_dir)
        target_dir = project_dir / TARGET_DIR
        target_dir.mkdir(parents=True, exist_ok=True)
        oracle_hash = self.options.oracle_hash

        logger.info("compiling noir circuit")
        run_tool("nargo", ["compile"], cwd=project_dir / self.options.circuit_dir, install=NARGO_INSTALL)

        acir_path = target_dir / f"{self.options.circuit_dir}.json"
        vk_path = target_dir / "vk"
        logger.info("writing verification key (oracle hash %s)", oracle_hash)
        run_tool(
            "bb",
            ["write_vk", "--oracle_hash", oracle_hash, "-b", acir_path, "-o", vk_path],
            install=BB_INSTALL,
        )
        save_json(target_dir / CONFIG_FILE, {"oracle_hash": oracle_hash})

        build = BuildArtifacts(
            circuit_artifact=acir_path,
            verifier_wasm=build_verifier_wasm(project_dir, profile),
            verification_key=vk_path,
        )
        artifacts.save(build, target_dir)
        return build

    def prove(
        self,
        project_dir: str | Path,
        build_artifacts: BuildArtifacts,
        input_path: str | Path,
    ) -> ProofArtifacts:
        require_input(input_path)
        project_dir = Path(project_dir)
        target_dir = project_dir / TARGET_DIR
        proof_dir = project_dir / PROOFS_DIR
        proof_dir.mkdir(parents=True, exist_ok=True)
        oracle_hash = load_oracle_hash(target_dir)

        # nargo reads Prover.toml from the circuit directory
        logger.info("executing noir circuit")
        run_tool("nargo", ["execute"], cwd=project_dir / self.options.circuit_dir, install=NARGO_INSTALL)

        witness_path = target_dir / f"{self.options.circuit_dir}.gz"
        # proof.bin is only replaced once the new proof has been accepted
        proof_path = proof_dir / BB_PROOF_FILE
        logger.info("generating ultrahonk proof")
        run_tool(
            "bb",
            [
                "prove_ultra_honk",
                "--oracle_hash", oracle_hash,
                "-b", build_artifacts.circuit_artifact,
                "-w", witness_path,
                "-o", proof_path,
            ],
            install=BB_INSTALL,
        )

        if self.options.verify_offchain:
            try:
                run_tool(
                    "bb",
                    [
                        "verify_ultra_honk",
                        "--oracle_hash", oracle_hash,
                        "-p", proof_path,
                        "-k", build_artifacts.verification_key,
                    ],
                    install=BB_INSTALL,
                )
            except ToolError as e:
                if e.returncode is None:
                    raise
                raise VerificationFailed(f"ultrahonk proof rejected by bb: {e}") from e
            logger.info("off-chain verification passed")

        proof = load_bytes(proof_path)
        declared = self.options.num_public_inputs
        if declared is None:
            declared = header_count(proof)
        public_inputs = extract_public_inputs(proof, declared)
        saved = artifacts.save_proof(proof, public_inputs, proof_dir)
        proof_path.unlink()
        return saved

    def estimate_cost(
        self,
        proof_artifacts: ProofArtifacts,
        build_artifacts: BuildArtifacts | None = None,
    ) -> CostEstimate:
        return static_estimate(self.name, len(proof_artifacts.public_inputs))
