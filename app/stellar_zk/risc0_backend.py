# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# risc0_backend.py

"""
RISC Zero zkVM with the STARK receipt wrapped in Groth16.

The project's host binary runs the guest, wraps the receipt and leaves three
files in `proofs/`:

    seal.bin       selector(4) | groth16 proof(256)
    journal.bin    the guest's public output
    image_id.hex   the guest image id, 32 bytes as hex

The verifier sees two public inputs, `[image_id, sha256(journal)]`.
"""

import json
import logging
import shutil
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
from stellar_zk.constants import PROOFS_DIR, RISC0_SELECTOR, TARGET_DIR
from stellar_zk.errors import NotFound, ParseError
from stellar_zk.estimator import CostEstimate, static_estimate
from stellar_zk.files import load_bytes, load_json, save_json
from stellar_zk.profile import OptimizationProfile
from stellar_zk.risc0 import receipt_public_inputs, selector_bytes, validate_seal
from stellar_zk.tools import run_tool
from stellar_zk.vk_convert import convert_vk_file

logger = logging.getLogger(__name__)

CONFIG_FILE = "risc0_config.json"
GUEST_DIR = Path("programs") / "guest"
HOST_DIR = Path("programs") / "host"


@dataclass
class Risc0Options:
    guest_target: str = "riscv32im-risc0-zkvm-elf"
    selector: bytes | int = RISC0_SELECTOR
    # snarkjs-format JSON of the RISC Zero groth16 verification key
    verification_key_json: str | None = None
    profile: str = "development"


def host_binary(project_dir: Path) -> Path:
    return project_dir / HOST_DIR / "target" / "release" / "host"


def load_selector(target_dir: Path, default: bytes | int) -> bytes:
    """
    Selector cached by the last build, or `default` if there is none.

    Raises:
        ParseError: If the cached selector is not 4 bytes of hex.
    """
    try:
        data = load_json(target_dir / CONFIG_FILE)
    except FileNotFoundError:
        return selector_bytes(default)
    except json.JSONDecodeError:
        logger.warning("%s is not valid JSON, using the configured selector", CONFIG_FILE)
        return selector_bytes(default)
    cached = data.get("selector") if isinstance(data, dict) else None
    if not isinstance(cached, str):
        return selector_bytes(default)
    try:
        return selector_bytes(bytes.fromhex(cached.removeprefix("0x")))
    except ValueError as e:
        raise ParseError("RISC Zero selector", f"{CONFIG_FILE} holds {cached!r}") from e


def read_image_id(path: Path) -> bytes:
    try:
        text = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError as e:
        raise NotFound(f"{path} not found, the host binary did not write it") from e
    try:
        return bytes.fromhex(text.removeprefix("0x"))
    except ValueError as e:
        raise ParseError("RISC Zero image id", f"not valid hex: {text!r}") from e


class Risc0Backend:
    name = "risc0"
    display_name = "RISC Zero (zkVM)"

    def __init__(self, options: Risc0Options | None = None):
        self.options = options or Risc0Options()

    def check_prerequisites(self) -> list[PrerequisiteError]:
        return missing_tools(
            {
                "cargo-risczero": "curl -L https://risczero.com/install | bash && rzup install",
                "docker": "https://docs.docker.com/get-docker/ (needed for groth16 wrapping)",
            }
        )

    def check_versions(self) -> list[VersionWarning]:
        return outdated_tools({"cargo-risczero": (1, 0, 0)})

    def build(self, project_dir: str | Path) -> BuildArtifacts:
        profile = OptimizationProfile.from_name(self.options.profile)
        project_dir = Path(project_dir)
        target_dir = project_dir / TARGET_DIR
        target_dir.mkdir(parents=True, exist_ok=True)
        guest_target = self.options.guest_target

        logger.info("building risc zero guest for %s", guest_target)
        run_tool(
            "cargo",
            ["build", "--release", "--target", guest_target],
            cwd=project_dir / GUEST_DIR,
            install="https://rustup.rs",
        )
        guest_elf = project_dir / GUEST_DIR / "target" / guest_target / "release" / "guest"
        elf_path = target_dir / "guest.elf"
        if guest_elf.exists():
            shutil.copyfile(guest_elf, elf_path)
        else:
            logger.warning("guest ELF not found at %s", guest_elf)
            elf_path = guest_elf

        logger.info("building risc zero host")
        run_tool("cargo", ["build", "--release"], cwd=project_dir / HOST_DIR)

        save_json(
            target_dir / CONFIG_FILE,
            {
                "guest_target": guest_target,
                "selector": selector_bytes(self.options.selector).hex(),
            },
        )

        vk_path = target_dir / "risc0.vk"
        if self.options.verification_key_json is not None:
            convert_vk_file(project_dir / self.options.verification_key_json, vk_path)
        elif not vk_path.exists():
            logger.warning("no risc zero verification key at %s, deploy will need one", vk_path)

        build = BuildArtifacts(
            circuit_artifact=elf_path,
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
        input_path = require_input(input_path)
        project_dir = Path(project_dir)
        proof_dir = project_dir / PROOFS_DIR
        proof_dir.mkdir(parents=True, exist_ok=True)

        host = host_binary(project_dir)
        if not host.exists():
            raise NotFound(f"host binary {host} not found, run build first")

        logger.info("proving with risc zero host")
        run_tool(host, [], cwd=project_dir, env={"RISC0_INPUT": str(input_path.resolve())})

        try:
            seal = load_bytes(proof_dir / "seal.bin")
            journal = load_bytes(proof_dir / "journal.bin")
        except FileNotFoundError as e:
            raise NotFound(f"{e.filename} not found, the host binary did not write it") from e
        image_id = read_image_id(proof_dir / "image_id.hex")

        validate_seal(seal, load_selector(project_dir / TARGET_DIR, self.options.selector))
        public_inputs = receipt_public_inputs(image_id, journal)
        return artifacts.save_proof(seal, public_inputs, proof_dir)

    def estimate_cost(
        self,
        proof_artifacts: ProofArtifacts,
        build_artifacts: BuildArtifacts | None = None,
    ) -> CostEstimate:
        return static_estimate(self.name, len(proof_artifacts.public_inputs))
