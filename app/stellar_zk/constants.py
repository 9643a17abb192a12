# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

import os

from py_ecc.optimized_bn128 import curve_order, field_modulus

# BN254 moduli: q for point coordinates, r for scalars / public inputs
FIELD_MODULUS = field_modulus
SCALAR_MODULUS = curve_order

# byte layouts
FIELD_ELEMENT_SIZE = 32
G1_SIZE = 2 * FIELD_ELEMENT_SIZE
G2_SIZE = 4 * FIELD_ELEMENT_SIZE
IC_COUNT_SIZE = 4
GROTH16_PROOF_SIZE = G1_SIZE + G2_SIZE + G1_SIZE
VK_HEADER_SIZE = G1_SIZE + 3 * G2_SIZE + IC_COUNT_SIZE
SELECTOR_SIZE = 4
RISC0_SEAL_SIZE = SELECTOR_SIZE + GROTH16_PROOF_SIZE
ULTRAHONK_HEADER_SIZE = 4
NULLIFIER_SIZE = 32
IMAGE_ID_SIZE = 32

# risc zero groth16 circuit version accepted by the verifier contract
RISC0_SELECTOR = bytes.fromhex("310fe598")

# artifact chain
ARTIFACTS_FILE = "build_artifacts.json"
ARTIFACTS_SCHEMA_VERSION = 1
DEPLOYMENT_FILE = "deployment.json"
PROOF_FILE = "proof.bin"
PUBLIC_INPUTS_FILE = "public_inputs.json"
TARGET_DIR = "target"
PROOFS_DIR = "proofs"

# external tools
DEFAULT_TOOL_TIMEOUT = float(os.environ.get("STELLAR_ZK_TOOL_TIMEOUT", "600"))

# soroban resource limits
MAX_CPU_INSTRUCTIONS = 100_000_000
MAX_WASM_SIZE = 65_536
MAX_LEDGER_READS = 40
MAX_LEDGER_WRITES = 20
STROOPS_PER_XLM = 10_000_000
WASM_TARGET = "wasm32-unknown-unknown"
NETWORKS = ("local", "testnet", "mainnet")
