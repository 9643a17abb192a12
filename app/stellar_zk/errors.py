# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# errors.py

"""
Error taxonomy for the serialization layer and the pipeline around it.

Codec failures subclass `ValueError` and carry the name of the structure that
failed, so a message like

    G2 point pi_b y.c1: value exceeds field modulus

points straight at the toolchain output that needs investigating.
"""


class CodecError(ValueError):
    """Base class for every encode/decode failure."""

    def __init__(self, structure: str, reason: str):
        self.structure = structure
        self.reason = reason
        super().__init__(f"{structure}: {reason}")


class ParseError(CodecError):
    """Input is not a non-negative decimal integer literal."""


class OutOfRange(CodecError):
    """Value is not below the field modulus."""


class LengthMismatch(CodecError):
    """A byte buffer does not have the length its layout requires."""


class CountMismatch(CodecError):
    """A declared element count disagrees with the data."""


class MissingField(CodecError):
    """A required key is absent from the toolchain JSON."""


class EmptyIC(CodecError):
    """A verification key has no IC points."""


class MalformedProof(CodecError):
    """A proof coordinate could not be encoded."""


class SelectorMismatch(CodecError):
    """A RISC Zero seal carries a selector the verifier does not accept."""


class NotOnCurve(CodecError):
    """A decoded point does not satisfy the BN254 curve equation."""


class ArtifactError(Exception):
    """Base class for artifact chain failures."""


class NotFound(ArtifactError, FileNotFoundError):
    """A prior pipeline stage has not produced its output yet."""


class SchemaMismatch(ArtifactError, ValueError):
    """An artifact file exists but is corrupted or written by another version."""


class ToolError(RuntimeError):
    """An external toolchain process failed."""

    def __init__(
        self,
        tool: str,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
    ):
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        detail = f"{tool}: {message}"
        if stderr:
            detail += f"\nstderr: {stderr.strip()}"
        super().__init__(detail)


class MissingTool(ToolError):
    """The external binary is not installed."""

    def __init__(self, tool: str, install: str):
        self.install = install
        super().__init__(tool, f"not found, install: {install}")


class ToolTimeout(ToolError):
    """The external binary did not finish within its timeout."""


class UnknownBackend(ValueError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"unknown backend: {name} (supported: groth16, ultrahonk, risc0)"
        )


class InputNotFound(FileNotFoundError):
    pass


class VerificationFailed(RuntimeError):
    """A freshly generated proof did not verify off-chain."""


class UnknownProfile(ValueError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"unknown profile: {name} (supported: development, testnet, stellar-production)"
        )


class WasmTooLarge(RuntimeError):
    """The verifier contract exceeds the network's wasm size limit."""

    def __init__(self, size: int, limit: int, path):
        self.size = size
        self.limit = limit
        self.path = path
        super().__init__(
            f"verifier wasm {path} is {size} bytes, above the {limit} byte limit"
        )


class DeployFailed(ToolError):
    """`stellar contract deploy` failed or returned no contract id."""


class UnknownNetwork(ValueError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown network: {name} (supported: local, testnet, mainnet)")
