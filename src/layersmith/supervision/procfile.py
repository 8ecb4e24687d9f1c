"""Procfile directive lookup."""

from __future__ import annotations

from pathlib import Path

from layersmith.errors import FilesystemError

DEV_PREFIX = "dev:"


def read_dev_process(working_dir: str | Path) -> str:
    """Return the command of the first ``dev:`` line in ``<working_dir>/Procfile``.

    A missing Procfile or one without the directive yields ``""``.
    """
    procfile = Path(working_dir) / "Procfile"
    try:
        text = procfile.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except (OSError, UnicodeDecodeError) as exc:
        raise FilesystemError(
            "Failed to read Procfile.",
            context={"operation": "read_dev_process", "path": str(procfile), "cause": str(exc)},
        ) from exc

    for line in text.splitlines():
        if line.startswith(DEV_PREFIX):
            return line[len(DEV_PREFIX):].strip()
    return ""
