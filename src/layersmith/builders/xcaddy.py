"""xcaddy builder: compiles caddy with a plugin set via ``pkgx +go``."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from layersmith.builders.materialize import ensure_executable, query_version, run_toolchain
from layersmith.errors import FilesystemError


@dataclass(slots=True)
class XcaddyBuilder:
    launcher: tuple[str, ...] = ("pkgx", "+go")

    def command(self, tool: Path, output: Path, plugins: Sequence[str]) -> tuple[str, ...]:
        args = [str(tool), "build", "--output", str(output)]
        for plugin in plugins:
            args.extend(["--with", plugin])
        return (*self.launcher, *args)

    def build(self, tool: Path, output: Path, plugins: Sequence[str]) -> None:
        run_toolchain(self.command(tool, output, plugins), name="xcaddy", cwd=tool.parent)
        if not output.is_file():
            raise FilesystemError(
                "xcaddy reported success but produced no binary.",
                context={"builder": "xcaddy", "output": str(output)},
            )
        ensure_executable(output)

    def binary_version(self, binary: Path) -> str:
        return query_version(binary, "version")
