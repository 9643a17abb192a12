# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# groth16_backend.py

"""
Groth16 over BN254 with Circom and snarkjs.

build: circom -> r1cs + witness wasm, development powers of tau, groth16
setup, verification key export and conversion to the on-chain layout.

prove: snarkjs witness + proof, conversion of proof.json / public.json, and
an off-chain pairing check of the converted bytes.
"""

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
from stellar_zk.errors import NotFound, VerificationFailed
from stellar_zk.estimator import CostEstimate, static_estimate
from stellar_zk.files import load_bytes, load_json
from stellar_zk.profile import OptimizationProfile
from stellar_zk.groth_convert import extract_public_inputs, serialize_proof
from stellar_zk.tools import run_tool
from stellar_zk.verify import verify_groth16
from stellar_zk.vk_convert import check_ic_count, convert_vk_file

logger = logging.getLogger(__name__)

SNARKJS_INSTALL = "npm install -g snarkjs"


@dataclass
class Groth16Options:
    circuit: str = "circuits/main.circom"
    ptau_power: int = 12
    ptau_entropy: str = "stellar-zk-dev-entropy"
    profile: str = "development"
    check_curve: bool = False
    verify_offchain: bool = True


def witness_wasm_path(target_dir: Path, circuit_name: str) -> Path:
    return target_dir / f"{circuit_name}_js" / f"{circuit_name}.wasm"


def r1cs_path(target_dir: Path, circuit_name: str) -> Path:
    return target_dir / f"{circuit_name}.r1cs"


def snarkjs(*args: str | Path) -> None:
    run_tool("snarkjs", args, install=SNARKJS_INSTALL)


def generate_dev_ptau(output_path: Path, power: int, entropy: str) -> None:
    """
    Run a single-contributor powers of tau ceremony.

    Only suitable for development: one known contribution is not a trusted
    setup.
    """
    fresh = output_path.with_suffix(".ptau.tmp")
    contributed = output_path.with_suffix(".ptau.contributed")
    snarkjs("powersoftau", "new", "bn128", str(power), fresh)
    snarkjs(
        "powersoftau", "contribute", fresh, contributed, "--name=dev", f"-e={entropy}"
    )
    snarkjs("powersoftau", "prepare", "phase2", contributed, output_path)
    fresh.unlink(missing_ok=True)
    contributed.unlink(missing_ok=True)


class Groth16Backend:
    name = "groth16"
    display_name = "Groth16 (Circom + snarkjs)"

    def __init__(self, options: Groth16Options | None = None):
        self.options = options or Groth16Options()

    def check_prerequisites(self) -> list[PrerequisiteError]:
        return missing_tools(
            {
                "circom": "https://docs.circom.io/getting-started/installation/",
                "snarkjs": SNARKJS_INSTALL,
                "node": "https://nodejs.org/",
            }
        )

    def check_versions(self) -> list[VersionWarning]:
        return outdated_tools({"circom": (2, 1, 0)})

    def build(self, project_dir: str | Path) -> BuildArtifacts:
        profile = OptimizationProfile.from_name(self.options.profile)
        project_dir = Path(project_dir)
        target_dir = project_dir / TARGET_DIR
        target_dir.mkdir(parents=True, exist_ok=True)

        circuit_path = project_dir / self.options.circuit
        circuit_name = circuit_path.stem
        logger.info("compiling circuit %s", circuit_path)
        run_tool(
            "circom",
            [circuit_path, "--r1cs", "--wasm", "--sym", "-o", target_dir],
            install="npm install -g circom",
        )

        ptau_path = target_dir / f"pot{self.options.ptau_power}_final.ptau"
        if not ptau_path.exists():
            logger.info("generating development powers of tau")
            generate_dev_ptau(ptau_path, self.options.ptau_power, self.options.ptau_entropy)

        r1cs = r1cs_path(target_dir, circuit_name)
        zkey_path = target_dir / "circuit.zkey"
        vk_json_path = target_dir / "verification_key.json"
        logger.info("running groth16 setup")
        snarkjs("groth16", "setup", r1cs, ptau_path, zkey_path)
        snarkjs("zkey", "export", "verificationkey", zkey_path, vk_json_path)

        vk_path = target_dir / "verification.key"
        vk_bytes = convert_vk_file(vk_json_path, vk_path)
        logger.info("verification key: %d bytes at %s", len(vk_bytes), vk_path)

        build = BuildArtifacts(
            circuit_artifact=r1cs,
            verifier_wasm=build_verifier_wasm(project_dir, profile),
            verification_key=vk_path,
            proving_key=zkey_path,
        )
        artifacts.save(build, target_dir)
        return build

    def prove(
        self,
        project_dir: str | Path,
        build_artifacts: BuildArtifacts,
        input_path: str | Path,
    ) -> ProofArtifacts:
        input_path = require_input(input_path)
        project_dir = Path(project_dir)
        target_dir = project_dir / TARGET_DIR
        proof_dir = project_dir / PROOFS_DIR
        proof_dir.mkdir(parents=True, exist_ok=True)

        circuit_name = build_artifacts.circuit_artifact.stem
        witness_wasm = witness_wasm_path(target_dir, circuit_name)
        if not witness_wasm.exists():
            raise NotFound(f"witness generator {witness_wasm} not found, run build first")
        if build_artifacts.proving_key is None:
            raise NotFound("build artifacts carry no zkey, run build first")

        witness_path = target_dir / "witness.wtns"
        logger.info("computing witness")
        snarkjs("wtns", "calculate", witness_wasm, input_path, witness_path)

        proof_json = proof_dir / "proof.json"
        public_json = proof_dir / "public.json"
        logger.info("generating groth16 proof")
        snarkjs(
            "groth16", "prove", build_artifacts.proving_key, witness_path, proof_json, public_json
        )

        proof = serialize_proof(load_json(proof_json), check_curve=self.options.check_curve)
        public_inputs = extract_public_inputs(load_json(public_json))

        vk_bytes = load_bytes(build_artifacts.verification_key)
        check_ic_count(vk_bytes, len(public_inputs))
        if self.options.verify_offchain:
            if not verify_groth16(vk_bytes, proof, public_inputs):
                raise VerificationFailed(
                    f"groth16 proof in {proof_json} does not verify against "
                    f"{build_artifacts.verification_key}"
                )
            logger.info("off-chain verification passed")

        return artifacts.save_proof(proof, public_inputs, proof_dir)

    def estimate_cost(
        self,
        proof_artifacts: ProofArtifacts,
        build_artifacts: BuildArtifacts | None = None,
    ) -> CostEstimate:
        return static_estimate(self.name, len(proof_artifacts.public_inputs))
