# test_backends.py
#
# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

import json
import logging
import subprocess
from pathlib import Path

import pytest

from stellar_zk import artifacts, backend, groth16_backend, risc0_backend, ultrahonk_backend
from stellar_zk.artifacts import Stage
from stellar_zk.backend import get_backend, parse_version
from stellar_zk.call import deploy_args, prepare_call_from_project
from stellar_zk.constants import MAX_WASM_SIZE, RISC0_SELECTOR
from stellar_zk.errors import (
    InputNotFound,
    NotFound,
    ParseError,
    SelectorMismatch,
    ToolError,
    UnknownBackend,
    UnknownProfile,
    VerificationFailed,
    WasmTooLarge,
)
from stellar_zk.field import encode
from stellar_zk.groth16_backend import Groth16Backend, Groth16Options
from stellar_zk.hashing import compute_nullifier, sha256
from stellar_zk.profile import OptimizationProfile
from stellar_zk.risc0_backend import Risc0Backend, Risc0Options
from stellar_zk.ultrahonk_backend import UltraHonkBackend, UltraHonkOptions


def touch(path: Path, data: bytes = b"\x00") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def flag(args: list, name: str) -> Path:
    return Path(args[args.index(name) + 1])


class FakeToolchain:
    """
    Replaces `run_tool` in every backend module. Each handler writes the
    files the real tool would have written, so the artifact chain can be
    exercised without circom, snarkjs, nargo, bb, cargo or a RISC Zero host.
    """

    def __init__(self, project: Path, monkeypatch, vk=None, proof=None, public=None):
        self.project = project
        self.vk = vk
        self.proof = proof
        self.public = public
        self.ultrahonk_proof = (1).to_bytes(4, "big") + encode(42) + b"\x07" * 96
        self.seal = RISC0_SELECTOR + bytes(range(256))
        self.journal = b"journal"
        self.image_id = b"\x22" * 32
        self.wasm_size = 1
        self.optimized_size = None
        self.failing = set()
        self.calls = []

        for module in (backend, groth16_backend, ultrahonk_backend, risc0_backend):
            monkeypatch.setattr(module, "run_tool", self)
        monkeypatch.setattr(backend, "which", lambda tool: None)

    def __call__(self, tool, args, timeout=None, cwd=None, env=None, install=""):
        name = Path(tool).name
        args = [str(a) for a in args]
        self.calls.append((name, args))
        if (name, args[0] if args else "") in self.failing:
            raise ToolError(name, "exited with status 1", returncode=1, stderr="boom")
        getattr(self, f"_{name.replace('-', '_')}")(args, cwd, env)
        return subprocess.CompletedProcess([name, *args], 0, "", "")

    def _circom(self, args, cwd, env):
        out = flag(args, "-o")
        name = Path(args[0]).stem
        touch(out / f"{name}.r1cs")
        touch(out / f"{name}_js" / f"{name}.wasm")

    def _snarkjs(self, args, cwd, env):
        if args[:2] == ["powersoftau", "contribute"]:
            touch(Path(args[3]))
        elif args[:2] == ["zkey", "export"]:
            Path(args[-1]).write_text(json.dumps(self.vk))
        elif args[:2] == ["groth16", "prove"]:
            Path(args[-2]).write_text(json.dumps(self.proof))
            Path(args[-1]).write_text(json.dumps(self.public))
        else:
            touch(Path(args[-1]))

    def _cargo(self, args, cwd, env):
        cwd = Path(cwd)
        if "wasm32-unknown-unknown" in args:
            subdir = "release" if "--release" in args else "debug"
            wasm = cwd / "target" / "wasm32-unknown-unknown" / subdir / "verifier.wasm"
            touch(wasm, b"\x00" * self.wasm_size)
        elif "--target" in args:
            touch(cwd / "target" / flag(args, "--target") / "release" / "guest", b"\x7fELF")
        else:
            touch(cwd / "target" / "release" / "host")

    def _wasm_opt(self, args, cwd, env):
        size = self.optimized_size or len(Path(args[1]).read_bytes())
        touch(flag(args, "-o"), b"\x00" * size)

    def _wasm_strip(self, args, cwd, env):
        touch(flag(args, "-o"), Path(args[0]).read_bytes())

    def _nargo(self, args, cwd, env):
        target = self.project / "target"
        if args[0] == "compile":
            touch(target / "circuits.json", b"{}")
        else:
            touch(target / "circuits.gz")

    def _bb(self, args, cwd, env):
        if args[0] == "write_vk":
            touch(flag(args, "-o"), b"\x01" * 1888)
        elif args[0] == "prove_ultra_honk":
            touch(flag(args, "-o"), self.ultrahonk_proof)

    def _host(self, args, cwd, env):
        assert Path(env["RISC0_INPUT"]).exists()
        proofs = self.project / "proofs"
        touch(proofs / "seal.bin", self.seal)
        touch(proofs / "journal.bin", self.journal)
        (proofs / "image_id.hex").write_text(self.image_id.hex() + "\n")


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "input.json").write_text("{}")
    return tmp_path


class TestGetBackend:
    @pytest.mark.parametrize(
        "name, cls",
        [("groth16", Groth16Backend), ("ultrahonk", UltraHonkBackend), ("risc0", Risc0Backend)],
    )
    def test_known(self, name, cls):
        chosen = get_backend(name)
        assert isinstance(chosen, cls)
        assert chosen.name == name
        assert chosen.display_name

    def test_unknown(self):
        with pytest.raises(UnknownBackend, match="plonky2"):
            get_backend("plonky2")


class TestPrerequisites:
    def test_reports_missing_tools(self, monkeypatch):
        monkeypatch.setattr(backend, "which", lambda tool: None if tool == "snarkjs" else "/bin/x")
        missing = Groth16Backend().check_prerequisites()
        assert [m.tool_name for m in missing] == ["snarkjs"]
        assert missing[0].install_instructions == "npm install -g snarkjs"

    def test_all_present(self, monkeypatch):
        monkeypatch.setattr(backend, "which", lambda tool: "/bin/x")
        assert UltraHonkBackend().check_prerequisites() == []

    def test_outdated_version(self, monkeypatch):
        versions = {"nargo": "nargo version = 0.35.1", "bb": "0.61.0"}
        monkeypatch.setattr(backend, "tool_version", versions.get)
        warnings = UltraHonkBackend().check_versions()
        assert [(w.tool_name, w.found_version, w.minimum_version) for w in warnings] == [
            ("nargo", "0.35.1", "0.36.0")
        ]

    def test_missing_version_is_skipped(self, monkeypatch):
        monkeypatch.setattr(backend, "tool_version", lambda tool: None)
        assert Risc0Backend().check_versions() == []

    def test_parse_version(self):
        assert parse_version("circom compiler 2.1.9") == (2, 1, 9)
        assert parse_version("v1.2") == (1, 2, 0)
        assert parse_version("unknown") is None


class TestGroth16Chain:
    def test_build_prove_call(self, project, monkeypatch, groth16_fixture):
        vk, proof, public = groth16_fixture
        tools = FakeToolchain(project, monkeypatch, vk=vk, proof=proof, public=public)
        chosen = get_backend("groth16")

        build = chosen.build(project)
        assert artifacts.stage(project) is Stage.BUILT
        assert artifacts.load(project / "target") == build
        assert build.proving_key == project / "target" / "circuit.zkey"
        assert len(build.verification_key.read_bytes()) == 452 + 64 * 3
        assert not (project / "target" / "pot12_final.ptau.tmp").exists()
        assert ("circom", [str(project / "circuits" / "main.circom"), "--r1cs", "--wasm", "--sym", "-o", str(project / "target")]) in tools.calls

        result = chosen.prove(project, build, project / "input.json")
        assert artifacts.stage(project) is Stage.PROVED
        assert len(result.proof) == 256
        assert result.public_inputs == [encode(3), encode(1234567890)]

        args = prepare_call_from_project(project)
        assert args.proof == result.proof.hex()
        assert args.nullifier == compute_nullifier(result.proof, b"".join(result.public_inputs)).hex()
        assert deploy_args(artifacts.load(project / "target"))["vk_bytes"] == build.verification_key.read_bytes().hex()

        estimate = chosen.estimate_cost(result, build)
        assert estimate.cpu_instructions == 10_000_000 + 2 * 500_000

        artifacts.record_deployment(project / "target", "CVERIFIER", "testnet")
        assert artifacts.stage(project) is Stage.DEPLOYED

    def test_existing_ptau_is_reused(self, project, monkeypatch, groth16_fixture):
        vk, proof, public = groth16_fixture
        tools = FakeToolchain(project, monkeypatch, vk=vk, proof=proof, public=public)
        touch(project / "target" / "pot12_final.ptau")

        Groth16Backend().build(project)

        assert not any(args[0] == "powersoftau" for _, args in tools.calls)

    def test_forged_proof_fails_offchain_check(self, project, monkeypatch, groth16_fixture):
        vk, proof, public = groth16_fixture
        FakeToolchain(project, monkeypatch, vk=vk, proof=proof, public=["4", "1234567890"])
        chosen = Groth16Backend()
        build = chosen.build(project)

        with pytest.raises(VerificationFailed):
            chosen.prove(project, build, project / "input.json")
        assert artifacts.stage(project) is Stage.BUILT

    def test_skip_offchain_check(self, project, monkeypatch, groth16_fixture):
        vk, proof, public = groth16_fixture
        FakeToolchain(project, monkeypatch, vk=vk, proof=proof, public=["4", "1234567890"])
        chosen = Groth16Backend(Groth16Options(verify_offchain=False))
        build = chosen.build(project)

        result = chosen.prove(project, build, project / "input.json")
        assert result.public_inputs[0] == encode(4)

    def test_missing_input(self, project, monkeypatch, groth16_fixture):
        vk, proof, public = groth16_fixture
        FakeToolchain(project, monkeypatch, vk=vk, proof=proof, public=public)
        chosen = Groth16Backend()
        build = chosen.build(project)

        with pytest.raises(InputNotFound):
            chosen.prove(project, build, project / "absent.json")

    def test_tool_failure_propagates(self, project, monkeypatch, groth16_fixture):
        vk, proof, public = groth16_fixture
        tools = FakeToolchain(project, monkeypatch, vk=vk, proof=proof, public=public)
        tools.failing.add(("snarkjs", "groth16"))

        with pytest.raises(ToolError, match="boom"):
            Groth16Backend().build(project)
        assert artifacts.stage(project) is Stage.ABSENT


class TestUltraHonkChain:
    def test_build_prove_call(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        chosen = get_backend("ultrahonk")

        build = chosen.build(project)
        assert build.proving_key is None
        assert build.circuit_artifact == project / "target" / "circuits.json"
        assert json.loads((project / "target" / "ultrahonk_config.json").read_text()) == {
            "oracle_hash": "keccak"
        }

        result = chosen.prove(project, build, project / "input.json")
        assert result.proof == tools.ultrahonk_proof
        assert result.public_inputs == [encode(42)]
        assert any(name == "bb" and args[0] == "verify_ultra_honk" for name, args in tools.calls)

        args = prepare_call_from_project(project)
        assert args.public_inputs == encode(42).hex()
        assert chosen.estimate_cost(result).ledger_writes == 1

    def test_cached_oracle_hash_used_by_prove(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        build = UltraHonkBackend(UltraHonkOptions(oracle_hash="poseidon2")).build(project)

        UltraHonkBackend().prove(project, build, project / "input.json")

        prove_args = next(a for n, a in tools.calls if n == "bb" and a[0] == "prove_ultra_honk")
        assert prove_args[prove_args.index("--oracle_hash") + 1] == "poseidon2"

    def test_declared_count_mismatch(self, project, monkeypatch):
        FakeToolchain(project, monkeypatch)
        chosen = UltraHonkBackend(UltraHonkOptions(num_public_inputs=2))
        build = chosen.build(project)

        with pytest.raises(ValueError, match="proof declares 1"):
            chosen.prove(project, build, project / "input.json")

    def test_bb_rejects_proof(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        tools.failing.add(("bb", "verify_ultra_honk"))
        chosen = UltraHonkBackend()
        build = chosen.build(project)

        with pytest.raises(VerificationFailed):
            chosen.prove(project, build, project / "input.json")
        assert artifacts.stage(project) is Stage.BUILT

    def test_rejected_proof_keeps_previous_proof(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        chosen = UltraHonkBackend()
        build = chosen.build(project)
        first = chosen.prove(project, build, project / "input.json")
        assert not (project / "proofs" / "bb_proof.bin").exists()

        tools.ultrahonk_proof = (1).to_bytes(4, "big") + encode(43) + b"\x09" * 96
        tools.failing.add(("bb", "verify_ultra_honk"))
        with pytest.raises(VerificationFailed):
            chosen.prove(project, build, project / "input.json")

        assert artifacts.stage(project) is Stage.PROVED
        kept = artifacts.load_proof(project / "proofs")
        assert kept.proof == first.proof
        assert kept.public_inputs == [encode(42)]


class TestRisc0Chain:
    def test_build_prove_call(self, project, monkeypatch, groth16_fixture):
        vk, _, _ = groth16_fixture
        (project / "risc0_vk.json").write_text(json.dumps(vk))
        tools = FakeToolchain(project, monkeypatch)
        chosen = Risc0Backend(Risc0Options(verification_key_json="risc0_vk.json"))

        build = chosen.build(project)
        assert build.circuit_artifact.read_bytes() == b"\x7fELF"
        assert len(build.verification_key.read_bytes()) == 452 + 64 * 3

        result = chosen.prove(project, build, project / "input.json")
        assert result.proof == tools.seal
        assert result.public_inputs == [tools.image_id, sha256(tools.journal)]
        assert artifacts.load_proof(project / "proofs").proof == tools.seal

        args = prepare_call_from_project(project)
        assert len(bytes.fromhex(args.proof)) == 260
        assert args.num_public_inputs == 2
        assert chosen.estimate_cost(result).cpu_instructions == 15_000_000

    def test_stale_selector_is_rejected(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        tools.seal = (1).to_bytes(4, "big") + bytes(256)
        chosen = Risc0Backend()
        build = chosen.build(project)

        with pytest.raises(SelectorMismatch):
            chosen.prove(project, build, project / "input.json")
        assert artifacts.stage(project) is Stage.BUILT

    def test_cached_selector_used_by_prove(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        tools.seal = (2).to_bytes(4, "big") + bytes(256)
        build = Risc0Backend(Risc0Options(selector=2)).build(project)

        result = Risc0Backend().prove(project, build, project / "input.json")

        assert result.proof[:4] == b"\x00\x00\x00\x02"
        assert artifacts.stage(project) is Stage.PROVED

    def test_no_cached_selector_falls_back_to_options(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        tools.seal = (2).to_bytes(4, "big") + bytes(256)
        build = Risc0Backend().build(project)
        (project / "target" / "risc0_config.json").unlink()

        result = Risc0Backend(Risc0Options(selector=2)).prove(project, build, project / "input.json")
        assert len(result.proof) == 260

    def test_corrupted_cached_selector(self, project, monkeypatch):
        FakeToolchain(project, monkeypatch)
        build = Risc0Backend().build(project)
        (project / "target" / "risc0_config.json").write_text(json.dumps({"selector": "zz"}))

        with pytest.raises(ParseError, match="selector"):
            Risc0Backend().prove(project, build, project / "input.json")

    def test_prove_before_build(self, project, monkeypatch):
        FakeToolchain(project, monkeypatch)
        chosen = Risc0Backend()
        build = artifacts.BuildArtifacts(
            circuit_artifact=project / "target" / "guest.elf",
            verifier_wasm=project / "verifier.wasm",
            verification_key=project / "target" / "risc0.vk",
        )
        with pytest.raises(NotFound, match="host binary"):
            chosen.prove(project, build, project / "input.json")


class TestVerifierWasm:
    def test_development_builds_debug(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)

        wasm = backend.build_verifier_wasm(project)

        assert wasm == project / "contracts" / "verifier" / "target" / "wasm32-unknown-unknown" / "debug" / "verifier.wasm"
        assert tools.calls == [("cargo", ["build", "--target", "wasm32-unknown-unknown"])]

    def test_development_only_warns_when_too_large(self, project, monkeypatch, caplog):
        tools = FakeToolchain(project, monkeypatch)
        tools.wasm_size = MAX_WASM_SIZE + 1

        with caplog.at_level(logging.WARNING, logger="stellar_zk.backend"):
            wasm = backend.build_verifier_wasm(project, "development")

        assert wasm.stat().st_size == MAX_WASM_SIZE + 1
        assert "above the 65536 byte limit" in caplog.text

    def test_testnet_rejects_oversized_wasm(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        tools.wasm_size = MAX_WASM_SIZE + 1

        with pytest.raises(WasmTooLarge, match="65537 bytes") as e:
            backend.build_verifier_wasm(project, "testnet")
        assert e.value.limit == MAX_WASM_SIZE

    def test_limit_is_inclusive(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        tools.wasm_size = MAX_WASM_SIZE

        wasm = backend.build_verifier_wasm(project, "stellar-production")
        assert wasm.stat().st_size == MAX_WASM_SIZE

    def test_testnet_runs_wasm_opt(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        monkeypatch.setattr(backend, "which", lambda tool: f"/usr/bin/{tool}")
        tools.wasm_size = MAX_WASM_SIZE + 1
        tools.optimized_size = 40_000

        wasm = backend.build_verifier_wasm(project, "testnet")

        assert wasm.name == "verifier.opt.wasm"
        assert wasm.stat().st_size == 40_000
        assert tools.calls[0] == ("cargo", ["build", "--target", "wasm32-unknown-unknown", "--release"])
        assert tools.calls[1][0] == "wasm-opt"
        assert tools.calls[1][1][0] == "-Os"
        assert not any(name == "wasm-strip" for name, _ in tools.calls)

    def test_production_optimizes_then_strips(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)
        monkeypatch.setattr(backend, "which", lambda tool: f"/usr/bin/{tool}")

        wasm = backend.build_verifier_wasm(project, OptimizationProfile.stellar_production())

        assert wasm.name == "verifier.stripped.wasm"
        assert [name for name, _ in tools.calls] == ["cargo", "wasm-opt", "wasm-strip"]
        assert tools.calls[1][1][0] == "-Oz"
        assert tools.calls[2][1][0].endswith("verifier.opt.wasm")

    def test_rebuild_ignores_previous_outputs(self, project, monkeypatch):
        FakeToolchain(project, monkeypatch)
        monkeypatch.setattr(backend, "which", lambda tool: f"/usr/bin/{tool}")
        backend.build_verifier_wasm(project, "stellar-production")

        assert backend.build_verifier_wasm(project, "stellar-production").name == "verifier.stripped.wasm"

    def test_missing_wasm(self, tmp_path: Path):
        with pytest.raises(ToolError, match="no .wasm file"):
            backend.find_wasm(tmp_path)

    def test_unknown_profile_fails_before_any_tool_runs(self, project, monkeypatch):
        tools = FakeToolchain(project, monkeypatch)

        with pytest.raises(UnknownProfile, match="fastest"):
            UltraHonkBackend(UltraHonkOptions(profile="fastest")).build(project)
        assert tools.calls == []

    def test_backend_passes_profile_to_cargo(self, project, monkeypatch, groth16_fixture):
        vk, proof, public = groth16_fixture
        tools = FakeToolchain(project, monkeypatch, vk=vk, proof=proof, public=public)

        build = Groth16Backend(Groth16Options(profile="testnet")).build(project)

        assert build.verifier_wasm.parent.name == "release"
        assert ("cargo", ["build", "--target", "wasm32-unknown-unknown", "--release"]) in tools.calls
