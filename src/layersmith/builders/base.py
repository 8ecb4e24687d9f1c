"""Typed interface for external toolchain builders."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol


class ToolchainBuilder(Protocol):
    def build(self, tool: Path, output: Path, plugins: Sequence[str]) -> None:
        """Produce an executable at *output* from *tool* plus *plugins*, or raise."""

    def binary_version(self, binary: Path) -> str:
        """Return the produced binary's self-reported version."""
