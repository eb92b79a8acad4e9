"""
Locating and checking the genai-toolbox binary.
"""

import logging
import os
import platform
import shutil
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional

from .errors import BinaryNotFoundError, ProcessError

logger = logging.getLogger(__name__)

TOOLBOX_PATH_ENV = "TOOLBOX_PATH"
VERSION_TIMEOUT = 10
DOWNLOAD_URL = "https://github.com/googleapis/genai-toolbox/releases"


def get_binary_name(system: Optional[str] = None) -> str:
    system = system or platform.system()
    return "toolbox.exe" if system == "Windows" else "toolbox"


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def candidate_paths(binary_path: Optional[str], env: Mapping[str, str]) -> List[Path]:
    """Places searched for the binary, in priority order (PATH excluded)."""
    name = get_binary_name()
    candidates: List[Path] = []

    for explicit in (binary_path, env.get(TOOLBOX_PATH_ENV)):
        if not explicit:
            continue
        path = Path(explicit).expanduser()
        candidates.append(path / name if path.is_dir() else path)

    candidates.append(Path.cwd() / "binaries" / name)
    candidates.append(Path.home() / ".mcp-database" / "binaries" / name)
    return candidates


def find_binary(binary_path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> str:
    """
    Find the toolbox binary.

    Search order: binary_path (file or directory), TOOLBOX_PATH,
    ./binaries/toolbox, ~/.mcp-database/binaries/toolbox, then PATH.

    Raises:
        BinaryNotFoundError: if no executable binary is found
    """
    env = os.environ if env is None else env

    for candidate in candidate_paths(binary_path, env):
        if _is_executable(candidate):
            logger.debug(f"Found toolbox binary at {candidate}")
            return str(candidate)
        logger.debug(f"No toolbox binary at {candidate}")

    on_path = shutil.which(get_binary_name(), path=env.get("PATH"))
    if on_path:
        logger.debug(f"Found toolbox binary on PATH: {on_path}")
        return on_path

    raise BinaryNotFoundError(
        "genai-toolbox binary not found. Download it from "
        f"{DOWNLOAD_URL} and either pass --binary-path, set {TOOLBOX_PATH_ENV}, "
        "or place it at ./binaries/toolbox or ~/.mcp-database/binaries/toolbox"
    )


def verify_binary(binary_path: str) -> str:
    """Run `toolbox --version` and return the reported version."""
    try:
        completed = subprocess.run(
            [binary_path, "--version"],
            capture_output=True,
            text=True,
            timeout=VERSION_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ProcessError(f"Failed to run {binary_path} --version: {e}") from e

    if completed.returncode != 0:
        raise ProcessError(
            f"{binary_path} --version exited with code {completed.returncode}: {completed.stderr.strip()}",
            exit_code=completed.returncode,
        )
    return completed.stdout.strip() or completed.stderr.strip()
