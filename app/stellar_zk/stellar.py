# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# stellar.py

"""
Deploy and call the verifier contract through the `stellar` CLI.

    stellar contract deploy --wasm W --network N --source S -- --vk_bytes HEX
    stellar contract invoke --id C --network N --source S -- verify --proof HEX ...
    stellar contract invoke --id C --network N --sim-only -- verify ...

Arguments come from the artifact chain: `deploy_project` reads the build
record, `call_project` reads what `prove` left in `proofs/` and the contract id
recorded by deploy.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from stellar_zk import artifacts
from stellar_zk.call import deploy_args, prepare_call_from_project
from stellar_zk.constants import NETWORKS, TARGET_DIR
from stellar_zk.errors import DeployFailed, NotFound, ToolError, UnknownNetwork
from stellar_zk.tools import run_tool

logger = logging.getLogger(__name__)

STELLAR_INSTALL = "https://developers.stellar.org/docs/tools/cli"
VERIFY_FUNCTION = "verify"


@dataclass(frozen=True)
class SimulateResult:
    cpu_instructions: int
    memory_bytes: int
    resource_fee_stroops: int
    ledger_reads: int
    ledger_writes: int


def check_network(network: str) -> str:
    if network not in NETWORKS:
        raise UnknownNetwork(network)
    return network


def function_args(args: Mapping[str, str] | None) -> list[str]:
    """`{"proof": "ab"}` to `["--proof", "ab"]`, keeping insertion order."""
    out = []
    for key, value in (args or {}).items():
        out += [f"--{key}", value]
    return out


def deploy(
    wasm_path: str | Path,
    network: str,
    source: str,
    constructor_args: Mapping[str, str] | None = None,
) -> str:
    """
    Deploy a wasm contract and return its contract id.

    Non-empty `constructor_args` are passed after `--` so the contract's
    constructor runs in the same transaction.

    Raises:
        UnknownNetwork: If `network` is not local, testnet or mainnet.
        MissingTool: If the stellar CLI is not installed.
        DeployFailed: If the CLI exits non-zero or prints no contract id.
    """
    check_network(network)
    cmd = ["contract", "deploy", "--wasm", wasm_path, "--network", network, "--source", source]
    if constructor_args:
        cmd += ["--", *function_args(constructor_args)]

    logger.info("deploying %s to %s", wasm_path, network)
    try:
        result = run_tool("stellar", cmd, install=STELLAR_INSTALL)
    except ToolError as e:
        if e.returncode is None:
            raise
        raise DeployFailed("stellar", "contract deploy failed", e.returncode, e.stderr) from e

    contract_id = result.stdout.strip()
    if not contract_id:
        raise DeployFailed("stellar", "contract deploy printed no contract id")
    logger.info("deployed contract %s", contract_id)
    return contract_id


def invoke(
    contract_id: str,
    function: str,
    args: Mapping[str, str] | None,
    network: str,
    source: str,
) -> str:
    """
    Invoke a contract function and return what the CLI printed.

    Raises:
        ToolError: If the invocation fails, including a rejected proof.
    """
    check_network(network)
    cmd = [
        "contract", "invoke",
        "--id", contract_id,
        "--network", network,
        "--source", source,
        "--", function, *function_args(args),
    ]
    logger.info("invoking %s on %s", function, contract_id)
    result = run_tool("stellar", cmd, install=STELLAR_INSTALL)
    return result.stdout.strip()


def _metric(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


def parse_simulation(stdout: str) -> SimulateResult:
    """
    Read resource usage from `--sim-only` output.

    The CLI does not always print JSON, and older versions omit some keys, so
    anything missing reads as zero.
    """
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError:
        logger.warning("simulation output is not JSON, reporting zero usage")
        data = {}
    if not isinstance(data, dict):
        data = {}
    return SimulateResult(
        cpu_instructions=_metric(data, "cpu_insns"),
        memory_bytes=_metric(data, "mem_bytes"),
        resource_fee_stroops=_metric(data, "resource_fee"),
        ledger_reads=_metric(data, "read_bytes"),
        ledger_writes=_metric(data, "write_bytes"),
    )


def simulate(
    contract_id: str,
    function: str,
    args: Mapping[str, str] | None,
    network: str,
) -> SimulateResult:
    """Simulate a contract call without submitting it."""
    check_network(network)
    cmd = [
        "contract", "invoke",
        "--id", contract_id,
        "--network", network,
        "--sim-only",
        "--", function, *function_args(args),
    ]
    result = run_tool("stellar", cmd, install=STELLAR_INSTALL)
    logger.debug("simulate output: %s", result.stdout)
    return parse_simulation(result.stdout)


def deploy_project(project_dir: str | Path, source: str, network: str = "testnet") -> str:
    """
    Deploy the built verifier and initialize it with the verification key.

    The contract id is recorded in `target/deployment.json`.

    Raises:
        NotFound: If the project is not built or the wasm is missing.
    """
    target_dir = Path(project_dir) / TARGET_DIR
    build = artifacts.load(target_dir)
    if not build.verifier_wasm.exists():
        raise NotFound(f"verifier wasm not found at {build.verifier_wasm}, run build first")
    contract_id = deploy(build.verifier_wasm, network, source, deploy_args(build))
    artifacts.record_deployment(target_dir, contract_id, network)
    return contract_id


def _call_target(
    project_dir: Path,
    network: str | None,
    contract_id: str | None,
) -> tuple[str, str]:
    if contract_id is not None and network is not None:
        return contract_id, network
    deployment = artifacts.load_deployment(project_dir / TARGET_DIR)
    return contract_id or deployment["contract_id"], network or deployment["network"]


def call_project(
    project_dir: str | Path,
    source: str,
    network: str | None = None,
    contract_id: str | None = None,
    proof_path: str | Path | None = None,
    public_inputs_path: str | Path | None = None,
) -> str:
    """
    Call `verify` on the deployed contract with the project's latest proof.

    The contract id and network default to the recorded deployment.

    Raises:
        NotFound: If nothing was proved, or no deployment is recorded and
            none was given.
    """
    project_dir = Path(project_dir)
    contract_id, network = _call_target(project_dir, network, contract_id)
    call = prepare_call_from_project(project_dir, proof_path, public_inputs_path)
    logger.info("verifying a %d-input proof", call.num_public_inputs)
    return invoke(contract_id, VERIFY_FUNCTION, call.as_dict(), network, source)


def simulate_project(
    project_dir: str | Path,
    network: str | None = None,
    contract_id: str | None = None,
) -> SimulateResult:
    """Simulate `verify` with the project's latest proof against the deployment."""
    project_dir = Path(project_dir)
    contract_id, network = _call_target(project_dir, network, contract_id)
    call = prepare_call_from_project(project_dir)
    return simulate(contract_id, VERIFY_FUNCTION, call.as_dict(), network)
