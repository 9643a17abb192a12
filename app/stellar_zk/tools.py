# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# tools.py

"""
Run the external proving toolchains (circom, snarkjs, nargo, bb, the RISC Zero
host) with a timeout and captured output.

Every failure is turned into a `ToolError` subclass so callers see which tool
failed and what it printed on stderr.
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

from stellar_zk.constants import DEFAULT_TOOL_TIMEOUT
from stellar_zk.errors import MissingTool, ToolError, ToolTimeout

logger = logging.getLogger(__name__)


def run_tool(
    tool: str | Path,
    args: Sequence[str | Path],
    timeout: float | None = None,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    install: str = "",
) -> subprocess.CompletedProcess:
    """
    Run `tool args...` and return the completed process.

    Args:
        tool: Executable name on PATH, or a path to a binary.
        args: Arguments passed after the executable.
        timeout: Seconds before the process is killed. Defaults to
            `DEFAULT_TOOL_TIMEOUT`.
        cwd: Working directory for the process.
        env: Extra environment variables, layered on top of `os.environ`.
        install: Install hint used when the executable is missing.

    Returns:
        The `CompletedProcess`, with text stdout and stderr.

    Raises:
        MissingTool: If the executable cannot be found.
        ToolTimeout: If the process does not finish in time.
        ToolError: If the process exits non-zero.
    """
    name = Path(tool).name
    cmd = [str(tool), *(str(a) for a in args)]
    if timeout is None:
        timeout = DEFAULT_TOOL_TIMEOUT

    run_env = None
    if env:
        run_env = {**os.environ, **env}

    logger.debug("running %s (cwd=%s, timeout=%ss)", " ".join(cmd), cwd, timeout)
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
            cwd=None if cwd is None else str(cwd),
            env=run_env,
        )
    except FileNotFoundError as e:
        raise MissingTool(name, install or f"put {name} on PATH") from e
    except subprocess.TimeoutExpired as e:
        raise ToolTimeout(name, f"timed out after {timeout}s") from e

    if result.returncode != 0:
        raise ToolError(
            name,
            f"exited with status {result.returncode}",
            returncode=result.returncode,
            stderr=result.stderr or "",
        )
    return result


def which(tool: str) -> str | None:
    """Locate `tool` on PATH."""
    return shutil.which(tool)


def tool_version(tool: str, flag: str = "--version") -> str | None:
    """
    Return the first line a tool prints for `--version`, or None if it is
    not installed or refuses the flag.
    """
    if which(tool) is None:
        return None
    try:
        result = run_tool(tool, [flag], timeout=30)
    except ToolError as e:
        logger.debug("could not read %s version: %s", tool, e)
        return None
    lines = (result.stdout or result.stderr).strip().splitlines()
    return lines[0] if lines else ""
