# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# files.py

"""
Disk IO for toolchain outputs and artifact-chain records.

Writers create missing parent directories, so a stage can write into
`target/` or `proofs/` before anything else has. JSON is written with sorted
keys and a trailing newline: rerunning a stage on the same inputs leaves
byte-identical records behind.
"""

import json
from pathlib import Path
from typing import Any


def save_bytes(path: str | Path, data: bytes) -> None:
    """Write a binary artifact such as `proof.bin` or `verification.key`."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def load_bytes(path: str | Path) -> bytes:
    """
    Read a binary artifact.

    Raises:
        FileNotFoundError: If the file does not exist. Callers on the
            artifact chain turn this into `NotFound` naming the missing stage.
    """
    return Path(path).read_bytes()


def save_json(path: str | Path, data: Any) -> None:
    """
    Write a JSON record, e.g. `build_artifacts.json` or `public_inputs.json`.

    Args:
        path: Destination file.
        data: JSON-serializable value; paths must already be strings.

    Raises:
        TypeError: If `data` holds something `json` cannot encode.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(data, indent=2, sort_keys=True)
    path.write_text(text + "\n", encoding="utf-8")


def load_json(path: str | Path) -> Any:
    """
    Parse a JSON file written by a toolchain (snarkjs proof.json, public.json,
    verification_key.json) or by `save_json`.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the content is not JSON.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)
