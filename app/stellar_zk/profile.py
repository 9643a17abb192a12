# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# profile.py

"""
Build profiles for the verifier contract.

    development          cargo dev, no wasm-opt, no size limit
    testnet              cargo release, wasm-opt -Os, 64 KB limit enforced
    stellar-production   cargo release, wasm-opt -Oz, symbols stripped,
                         64 KB limit enforced
"""

from dataclasses import dataclass

from stellar_zk.errors import UnknownProfile

PROFILES = ("development", "testnet", "stellar-production")


@dataclass(frozen=True)
class OptimizationProfile:
    name: str
    # "dev" or "release"
    cargo_profile: str
    # None skips wasm-opt
    wasm_opt_level: str | None
    strip_symbols: bool
    enforce_size_limit: bool

    @property
    def target_subdir(self) -> str:
        """Directory cargo writes this profile's output to."""
        return "debug" if self.cargo_profile == "dev" else self.cargo_profile

    def cargo_args(self) -> list[str]:
        if self.cargo_profile == "dev":
            return []
        if self.cargo_profile == "release":
            return ["--release"]
        return ["--profile", self.cargo_profile]

    @classmethod
    def development(cls) -> "OptimizationProfile":
        return cls(
            name="development",
            cargo_profile="dev",
            wasm_opt_level=None,
            strip_symbols=False,
            enforce_size_limit=False,
        )

    @classmethod
    def testnet(cls) -> "OptimizationProfile":
        return cls(
            name="testnet",
            cargo_profile="release",
            wasm_opt_level="-Os",
            strip_symbols=False,
            enforce_size_limit=True,
        )

    @classmethod
    def stellar_production(cls) -> "OptimizationProfile":
        return cls(
            name="stellar-production",
            cargo_profile="release",
            wasm_opt_level="-Oz",
            strip_symbols=True,
            enforce_size_limit=True,
        )

    @classmethod
    def from_name(cls, name: str) -> "OptimizationProfile":
        """
        Resolve a profile by name.

        Raises:
            UnknownProfile: If `name` is not one of `PROFILES`.
        """
        if name == "development":
            return cls.development()
        if name == "testnet":
            return cls.testnet()
        if name == "stellar-production":
            return cls.stellar_production()
        raise UnknownProfile(name)
