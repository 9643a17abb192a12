# test_estimator.py
#
# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

import pytest

from stellar_zk.estimator import (
    CostEstimate,
    estimate_fee,
    format_bytes,
    format_estimate,
    static_estimate,
)


class TestStaticEstimate:
    def test_groth16_base_cost(self):
        assert static_estimate("groth16", 0).cpu_instructions == 10_000_000

    def test_groth16_scales_with_inputs(self):
        base = static_estimate("groth16", 0)
        five = static_estimate("groth16", 5)
        assert five.cpu_instructions == base.cpu_instructions + 5 * 500_000

    def test_groth16_warning_above_70_percent(self):
        # 10M + 130 * 0.5M = 75M
        est = static_estimate("groth16", 130)
        assert any("70%" in w for w in est.warnings)

    def test_groth16_many_inputs_warning(self):
        assert static_estimate("groth16", 20).warnings == []
        assert any("hashing inputs" in w for w in static_estimate("groth16", 21).warnings)

    def test_ultrahonk_always_warns(self):
        est = static_estimate("ultrahonk", 1)
        assert est.cpu_instructions == 35_200_000
        assert est.ledger_writes == 1
        assert any("most CPU-intensive" in w for w in est.warnings)

    def test_risc0_ignores_input_count(self):
        assert static_estimate("risc0", 2) == static_estimate("risc0", 50)
        assert static_estimate("risc0", 2).cpu_instructions == 15_000_000

    def test_unknown_backend(self):
        est = static_estimate("plonky2", 0)
        assert est.cpu_instructions == 0
        assert est.warnings == ["unknown backend"]

    def test_fee(self):
        assert estimate_fee(10_000_000) == 1_100
        assert static_estimate("groth16", 0).estimated_fee_stroops == 1_100


class TestFormatEstimate:
    def test_contains_backend_and_status(self):
        report = format_estimate(static_estimate("groth16", 1), "groth16")
        assert "Cost Estimate: groth16" in report
        assert "10,500,000" in report
        assert "[OK]" in report
        assert "Estimated Fee: 0.0001 XLM" in report

    def test_warn_and_fail(self):
        warn = CostEstimate(80_000_000, 0, 60_000, 0, 0, 0)
        report = format_estimate(warn, "groth16")
        assert "80.0%  [WARN]" in report

        fail = CostEstimate(120_000_000, 0, 70_000, 0, 0, 0)
        assert format_estimate(fail, "groth16").count("[FAIL]") == 2

    def test_warnings_listed(self):
        report = format_estimate(static_estimate("ultrahonk", 0), "ultrahonk")
        assert "Warnings:" in report
        assert "  * UltraHonk verification" in report

    def test_no_warnings_section(self):
        assert "Warnings:" not in format_estimate(static_estimate("risc0", 2), "risc0")


@pytest.mark.parametrize(
    "n, expected",
    [(512, "512 B"), (45_000, "43.9 KB"), (2_000_000, "1.9 MB")],
)
def test_format_bytes(n, expected):
    assert format_bytes(n) == expected
