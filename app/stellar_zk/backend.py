# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# backend.py

"""
The interface every proving backend implements, plus the pieces they share:
prerequisite and version checks, and the verifier contract build.

A backend shells out to its toolchain, feeds the raw output through its codec
and persists the result on the artifact chain:

    build(project_dir)                 -> BuildArtifacts   (target/)
    prove(project_dir, build, input)   -> ProofArtifacts   (proofs/)
    estimate_cost(proof, build)        -> CostEstimate
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from stellar_zk.artifacts import BuildArtifacts, ProofArtifacts
from stellar_zk.constants import MAX_WASM_SIZE, WASM_TARGET
from stellar_zk.errors import InputNotFound, ToolError, UnknownBackend, WasmTooLarge
from stellar_zk.estimator import CostEstimate
from stellar_zk.profile import OptimizationProfile
from stellar_zk.tools import run_tool, tool_version, which

logger = logging.getLogger(__name__)

BACKENDS = ("groth16", "ultrahonk", "risc0")

VERIFIER_DIR = Path("contracts") / "verifier"


@dataclass(frozen=True)
class PrerequisiteError:
    tool_name: str
    install_instructions: str


@dataclass(frozen=True)
class VersionWarning:
    tool_name: str
    found_version: str
    minimum_version: str


class ZkBackend(Protocol):
    name: str
    display_name: str

    def check_prerequisites(self) -> list[PrerequisiteError]: ...

    def check_versions(self) -> list[VersionWarning]: ...

    def build(self, project_dir: str | Path) -> BuildArtifacts: ...

    def prove(
        self,
        project_dir: str | Path,
        build_artifacts: BuildArtifacts,
        input_path: str | Path,
    ) -> ProofArtifacts: ...

    def estimate_cost(
        self,
        proof_artifacts: ProofArtifacts,
        build_artifacts: BuildArtifacts | None = None,
    ) -> CostEstimate: ...


def missing_tools(required: dict[str, str]) -> list[PrerequisiteError]:
    """Report every tool in `{name: install hint}` that is not on PATH."""
    return [
        PrerequisiteError(tool_name=tool, install_instructions=install)
        for tool, install in required.items()
        if which(tool) is None
    ]


def parse_version(text: str) -> tuple[int, int, int] | None:
    """Pull the first `major.minor[.patch]` out of a `--version` line."""
    match = re.search(r"(\d+)\.(\d+)(?:\.(\d+))?", text)
    if match is None:
        return None
    major, minor, patch = match.groups()
    return (int(major), int(minor), int(patch or 0))


def outdated_tools(minimums: dict[str, tuple[int, int, int]]) -> list[VersionWarning]:
    """
    Compare installed tool versions against recommended minimums.

    Tools that are missing or print no recognizable version are skipped.
    """
    warnings = []
    for tool, minimum in minimums.items():
        line = tool_version(tool)
        found = None if line is None else parse_version(line)
        if found is None:
            continue
        if found < minimum:
            warnings.append(
                VersionWarning(
                    tool_name=tool,
                    found_version=".".join(map(str, found)),
                    minimum_version=".".join(map(str, minimum)),
                )
            )
    return warnings


def require_input(input_path: str | Path) -> Path:
    """Raise `InputNotFound` unless the prover input file exists."""
    input_path = Path(input_path)
    if not input_path.exists():
        raise InputNotFound(f"input file not found: {input_path}")
    return input_path


def find_wasm(directory: Path) -> Path:
    """First cargo-built `.wasm` in `directory`, skipping `.opt`/`.stripped` outputs."""
    wasm = []
    if directory.is_dir():
        wasm = sorted(p for p in directory.glob("*.wasm") if len(p.suffixes) == 1)
    if not wasm:
        raise ToolError("cargo", f"no .wasm file found in {directory}")
    return wasm[0]


def build_verifier_wasm(
    project_dir: str | Path,
    profile: OptimizationProfile | str = "development",
) -> Path:
    """
    Compile the verifier contract under `contracts/verifier` to wasm.

    The profile decides the cargo profile, the `wasm-opt` level, whether
    symbols are stripped with `wasm-strip`, and whether the network size
    limit is enforced. Missing `wasm-opt` or `wasm-strip` only skips that
    step, with a warning.

    Returns:
        Path to the final wasm file.

    Raises:
        UnknownProfile: If `profile` is a name that does not resolve.
        WasmTooLarge: If the profile enforces the size limit and the wasm
            is above it.
    """
    if isinstance(profile, str):
        profile = OptimizationProfile.from_name(profile)
    contract_dir = Path(project_dir) / VERIFIER_DIR
    logger.info("building verifier contract in %s (profile %s)", contract_dir, profile.name)
    run_tool(
        "cargo",
        ["build", "--target", WASM_TARGET, *profile.cargo_args()],
        cwd=contract_dir,
        install="https://rustup.rs",
    )
    wasm = find_wasm(contract_dir / "target" / WASM_TARGET / profile.target_subdir)

    if profile.wasm_opt_level is not None:
        if which("wasm-opt") is not None:
            optimized = wasm.with_suffix(".opt.wasm")
            run_tool("wasm-opt", [profile.wasm_opt_level, wasm, "-o", optimized])
            wasm = optimized
        else:
            logger.warning("wasm-opt not found, skipping wasm optimization")

    if profile.strip_symbols:
        if which("wasm-strip") is not None:
            stripped = wasm.with_name(wasm.name.split(".")[0] + ".stripped.wasm")
            run_tool("wasm-strip", [wasm, "-o", stripped])
            wasm = stripped
        else:
            logger.warning("wasm-strip not found, skipping symbol stripping")

    size = wasm.stat().st_size
    if size > MAX_WASM_SIZE:
        if profile.enforce_size_limit:
            raise WasmTooLarge(size, MAX_WASM_SIZE, wasm)
        logger.warning(
            "verifier wasm is %d bytes, above the %d byte limit", size, MAX_WASM_SIZE
        )
    return wasm


def get_backend(name: str) -> ZkBackend:
    """
    Return the backend registered under `name`.

    Raises:
        UnknownBackend: If `name` is not one of groth16, ultrahonk, risc0.
    """
    if name == "groth16":
        from stellar_zk.groth16_backend import Groth16Backend

        return Groth16Backend()
    if name == "ultrahonk":
        from stellar_zk.ultrahonk_backend import UltraHonkBackend

        return UltraHonkBackend()
    if name == "risc0":
        from stellar_zk.risc0_backend import Risc0Backend

        return Risc0Backend()
    raise UnknownBackend(name)
