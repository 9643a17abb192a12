# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# estimator.py

"""
Static, offline estimates of what an on-chain verify call costs per backend.

The numbers come from the known shape of each verifier: Groth16 is four
pairings plus one G1 multiply-add per public input, UltraHonk runs sumcheck
and several MSMs, and RISC Zero is a Groth16 check with two fixed inputs.
"""

from dataclasses import dataclass, field

from stellar_zk.constants import (
    MAX_CPU_INSTRUCTIONS,
    MAX_LEDGER_READS,
    MAX_LEDGER_WRITES,
    MAX_WASM_SIZE,
    STROOPS_PER_XLM,
)

# fraction of the cpu budget above which an estimate carries a warning
CPU_WARN_RATIO = 0.7
WASM_WARN_RATIO = 0.75

GROTH16_BASE_CPU = 10_000_000
GROTH16_PER_INPUT_CPU = 500_000
GROTH16_MANY_INPUTS = 20
ULTRAHONK_BASE_CPU = 35_000_000
ULTRAHONK_PER_INPUT_CPU = 200_000
RISC0_CPU = 15_000_000


@dataclass
class CostEstimate:
    cpu_instructions: int
    memory_bytes: int
    wasm_size: int
    ledger_reads: int
    ledger_writes: int
    estimated_fee_stroops: int
    warnings: list[str] = field(default_factory=list)


def estimate_fee(cpu_instructions: int) -> int:
    """Base fee of 100 stroops plus one stroop per 10k instructions."""
    return 100 + cpu_instructions // 10_000


def _cpu_warning(cpu: int) -> list[str]:
    if cpu > int(MAX_CPU_INSTRUCTIONS * CPU_WARN_RATIO):
        return [
            f"CPU usage {cpu} is above 70% of the "
            f"{MAX_CPU_INSTRUCTIONS // 1_000_000}M limit"
        ]
    return []


def groth16_estimate(num_public_inputs: int) -> CostEstimate:
    cpu = GROTH16_BASE_CPU + num_public_inputs * GROTH16_PER_INPUT_CPU
    warnings = _cpu_warning(cpu)
    if num_public_inputs > GROTH16_MANY_INPUTS:
        warnings.append(
            "many public inputs increase g1_mul cost, consider hashing inputs off-chain"
        )
    # reads: vk + nullifier; writes: nullifier + counter
    return CostEstimate(
        cpu_instructions=cpu,
        memory_bytes=500_000,
        wasm_size=45_000,
        ledger_reads=2,
        ledger_writes=2,
        estimated_fee_stroops=estimate_fee(cpu),
        warnings=warnings,
    )


def ultrahonk_estimate(num_public_inputs: int) -> CostEstimate:
    cpu = ULTRAHONK_BASE_CPU + num_public_inputs * ULTRAHONK_PER_INPUT_CPU
    warnings = _cpu_warning(cpu)
    warnings.append(
        "UltraHonk verification is the most CPU-intensive backend, monitor limits closely"
    )
    return CostEstimate(
        cpu_instructions=cpu,
        memory_bytes=2_000_000,
        wasm_size=55_000,
        ledger_reads=2,
        ledger_writes=1,
        estimated_fee_stroops=estimate_fee(cpu),
        warnings=warnings,
    )


def risc0_estimate() -> CostEstimate:
    return CostEstimate(
        cpu_instructions=RISC0_CPU,
        memory_bytes=600_000,
        wasm_size=48_000,
        ledger_reads=2,
        ledger_writes=2,
        estimated_fee_stroops=estimate_fee(RISC0_CPU),
    )


def static_estimate(backend: str, num_public_inputs: int) -> CostEstimate:
    """
    Estimate the verify-call cost for `backend` with `num_public_inputs`.

    An unknown backend yields an all-zero estimate with an "unknown backend"
    warning rather than an error, so a report can still be printed.

    Args:
        backend: "groth16", "ultrahonk" or "risc0".
        num_public_inputs: Number of public inputs passed to verify.

    Returns:
        The estimate, with any limit warnings attached.
    """
    if backend == "groth16":
        return groth16_estimate(num_public_inputs)
    if backend == "ultrahonk":
        return ultrahonk_estimate(num_public_inputs)
    if backend == "risc0":
        return risc0_estimate()
    return CostEstimate(0, 0, 0, 0, 0, 0, warnings=["unknown backend"])


def _status(ratio: float, warn_at: float) -> str:
    if ratio > 1.0:
        return "FAIL"
    if ratio > warn_at:
        return "WARN"
    return "OK"


def format_bytes(n: int) -> str:
    if n >= 1_048_576:
        return f"{n / 1_048_576:.1f} MB"
    if n >= 1024:
        return f"{n / 1024:.1f} KB"
    return f"{n} B"


def format_estimate(estimate: CostEstimate, backend: str) -> str:
    """Render an estimate as the plain-text table printed by `estimate`."""
    cpu_ratio = estimate.cpu_instructions / MAX_CPU_INSTRUCTIONS
    wasm_ratio = estimate.wasm_size / MAX_WASM_SIZE
    cpu_status = _status(cpu_ratio, CPU_WARN_RATIO)
    wasm_status = _status(wasm_ratio, WASM_WARN_RATIO)
    fee_xlm = estimate.estimated_fee_stroops / STROOPS_PER_XLM

    rows = [
        ("CPU Instructions", f"{estimate.cpu_instructions:,}",
         f"{MAX_CPU_INSTRUCTIONS:,}", f"{cpu_ratio * 100:.1f}%  [{cpu_status}]"),
        ("Memory", format_bytes(estimate.memory_bytes), "40 MB", "-"),
        ("WASM Size", format_bytes(estimate.wasm_size),
         f"{MAX_WASM_SIZE:,}", f"{wasm_ratio * 100:.1f}%  [{wasm_status}]"),
        ("Ledger Reads", str(estimate.ledger_reads), str(MAX_LEDGER_READS), "-"),
        ("Ledger Writes", str(estimate.ledger_writes), str(MAX_LEDGER_WRITES), "-"),
    ]

    lines = [
        "",
        f"Cost Estimate: {backend}",
        "=" * 44,
        "",
        f"{'Resource':<24}{'Estimated':<17}{'Limit':<14}Usage",
        "-" * 60,
    ]
    for name, value, limit, usage in rows:
        lines.append(f"{name:<24}{value:<17}{limit:<14}{usage}")
    lines += ["", f"Estimated Fee: {fee_xlm:.4f} XLM", ""]

    if estimate.warnings:
        lines.append("Warnings:")
        lines += [f"  * {w}" for w in estimate.warnings]
        lines.append("")
    return "\n".join(lines)
