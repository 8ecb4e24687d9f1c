"""Installer contract and helpers shared by the concrete installers."""

from __future__ import annotations

import json
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from layersmith.config import Settings
from layersmith.errors import FilesystemError
from layersmith.fetch import FetchedArchive
from layersmith.fetch.http import fetch
from layersmith.layers import Layers
from layersmith.models import BuildResult, Platform
from layersmith.observability import StructuredLogger

DIR_MODE = 0o755
CONFIG_MODE = 0o644
EXECUTABLE_MODE = 0o755


class Fetcher(Protocol):
    def __call__(self, url: str, **kwargs: Any) -> FetchedArchive: ...


@dataclass(slots=True)
class BuildContext:
    """Everything an installer may touch during one build.

    ``platform`` overrides host detection; ``fetcher`` replaces the network
    download (both are used by tests).
    """

    layers: Layers
    buildpack_dir: Path
    working_dir: Path
    buildpack_version: str = ""
    settings: Settings = field(default_factory=Settings)
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    platform: Platform | None = None
    fetcher: Fetcher = fetch

    def fetch(self, url: str, *, layer: str) -> FetchedArchive:
        self.logger.log(operation="build", layer=layer, phase="fetch", message=f"downloading {url}")
        archive = self.fetcher(
            url,
            expected_sha256=self.settings.expected_digest(url),
            policy=self.settings.policy,
        )
        self.logger.log(
            operation="build",
            layer=layer,
            phase="fetch",
            message="download complete",
            extra={"sha256": archive.sha256, "bytes": archive.size},
        )
        return archive

    def log(self, layer: str, phase: str, message: str, **extra: Any) -> None:
        self.logger.log(
            operation="build",
            layer=layer,
            phase=phase,
            message=message,
            extra=extra or None,
        )


class Installer(Protocol):
    name: str

    def detect(self, context: BuildContext) -> bool:
        """Return whether this installer participates in the build."""

    def build(self, context: BuildContext) -> BuildResult:
        """Populate the installer's layer(s) and return them."""


def make_dirs(*paths: Path) -> None:
    for path in paths:
        try:
            path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(
                f"Failed to create directory {path}.",
                context={"path": str(path), "cause": str(exc)},
            ) from exc


def copy_file(source: Path, dest: Path, *, mode: int = CONFIG_MODE) -> Path:
    try:
        dest.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        shutil.copyfile(source, dest)
        dest.chmod(mode)
    except OSError as exc:
        raise FilesystemError(
            f"Failed to copy {source.name}.",
            context={"source": str(source), "dest": str(dest), "cause": str(exc)},
        ) from exc
    return dest


def write_executable(path: Path, payload: bytes) -> Path:
    try:
        path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        path.write_bytes(payload)
        path.chmod(EXECUTABLE_MODE)
    except OSError as exc:
        raise FilesystemError(
            f"Failed to write {path.name} binary.",
            context={"path": str(path), "cause": str(exc)},
        ) from exc
    return path


def write_sbom(layer_path: Path, *, name: str, metadata: Mapping[str, str]) -> Path:
    sbom_path = layer_path / "sbom.json"
    document = {"name": name, "metadata": dict(metadata)}
    try:
        sbom_path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
        sbom_path.chmod(CONFIG_MODE)
    except OSError as exc:
        raise FilesystemError(
            "Failed to write SBOM file.",
            context={"path": str(sbom_path), "cause": str(exc)},
        ) from exc
    return sbom_path
