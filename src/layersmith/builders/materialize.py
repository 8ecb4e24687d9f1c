"""Subprocess execution for external toolchains and produced binaries."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from layersmith.errors import BuildError, FilesystemError, ToolchainFailedError

EXECUTABLE_MODE = 0o755
_DIAGNOSTIC_LIMIT = 4000


def run_toolchain(
    command: Sequence[str],
    *,
    name: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run *command*; a launch failure or non-zero exit raises :class:`ToolchainFailedError`."""
    run_env = None
    if env:
        run_env = dict(os.environ)
        run_env.update(env)
    try:
        result = subprocess.run(
            list(command),
            cwd=str(cwd) if cwd is not None else None,
            env=run_env,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise ToolchainFailedError(
            f"{name} could not be started.",
            diagnostics=str(exc),
            hint=f"Ensure `{command[0]}` is installed and on PATH.",
            context={"builder": name, "command": " ".join(command), "cause": str(exc)},
        ) from exc

    if result.returncode != 0:
        diagnostics = _diagnostics(result)
        raise ToolchainFailedError(
            f"{name} build failed.",
            diagnostics=diagnostics,
            hint=f"Check {name} output and build configuration.",
            context={
                "builder": name,
                "command": " ".join(command),
                "returncode": str(result.returncode),
                "output": diagnostics,
            },
        )
    return result


def query_version(binary: Path, *args: str) -> str:
    """Invoke *binary* with a version query and return its trimmed combined output."""
    command = [str(binary), *args]
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise BuildError(
            f"Failed to determine {binary.name} version.",
            context={"command": " ".join(command), "cause": str(exc)},
        ) from exc
    output = (result.stdout + result.stderr).strip()
    if result.returncode != 0:
        raise BuildError(
            f"Failed to determine {binary.name} version.",
            context={
                "command": " ".join(command),
                "returncode": str(result.returncode),
                "output": output[:_DIAGNOSTIC_LIMIT],
            },
        )
    return output


def ensure_executable(path: Path) -> None:
    try:
        path.chmod(EXECUTABLE_MODE)
    except OSError as exc:
        raise FilesystemError(
            f"Failed to make {path.name} executable.",
            context={"path": str(path), "cause": str(exc)},
        ) from exc


def _diagnostics(result: subprocess.CompletedProcess[str]) -> str:
    combined = "\n".join(part.strip() for part in (result.stderr, result.stdout) if part and part.strip())
    return combined[:_DIAGNOSTIC_LIMIT]
