"""Layer handles: a directory tree plus its persisted record."""

from __future__ import annotations

import json
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from layersmith.errors import FilesystemError
from layersmith.models import LayerMetadata


@dataclass(slots=True)
class LayerHandle:
    """One installable layer rooted at ``<layers_root>/<name>``.

    The record next to it (``<layers_root>/<name>.json``) holds the flags and
    the metadata used for cache decisions on the next build.
    """

    root: Path
    name: str
    launch: bool = False
    build: bool = False
    cache: bool = False
    metadata: LayerMetadata = field(default_factory=LayerMetadata)
    launch_env: dict[str, str] = field(default_factory=dict)

    @property
    def path(self) -> Path:
        return self.root / self.name

    @property
    def record_path(self) -> Path:
        return self.root / f"{self.name}.json"

    @property
    def bin_dir(self) -> Path:
        return self.path / "bin"

    @property
    def config_dir(self) -> Path:
        return self.path / "config"

    def reset(self) -> LayerHandle:
        """Discard all prior content and recreate an empty layer directory."""
        try:
            if self.path.is_symlink() or self.path.is_file():
                self.path.unlink()
            elif self.path.exists():
                shutil.rmtree(self.path)
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(
                f"Failed to reset {self.name} layer.",
                context={"operation": "reset", "layer": self.name, "cause": str(exc)},
            ) from exc
        self.launch = False
        self.build = False
        self.cache = False
        self.metadata = LayerMetadata()
        self.launch_env = {}
        return self

    def default_launch_env(self, name: str, value: str) -> None:
        self.launch_env[name] = value

    def save(self) -> Path:
        payload = {
            "launch": self.launch,
            "build": self.build,
            "cache": self.cache,
            "metadata": self.metadata.to_dict(),
        }
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            self.record_path.write_text(
                json.dumps(payload, indent=2, sort_keys=True) + "\n",
                encoding="utf-8",
            )
            if self.launch_env:
                env_dir = self.path / "env.launch"
                env_dir.mkdir(parents=True, exist_ok=True)
                for key, value in sorted(self.launch_env.items()):
                    (env_dir / f"{key}.default").write_text(value, encoding="utf-8")
        except OSError as exc:
            raise FilesystemError(
                f"Failed to persist {self.name} layer record.",
                context={"operation": "save", "layer": self.name, "cause": str(exc)},
            ) from exc
        return self.record_path


@dataclass(frozen=True, slots=True)
class Layers:
    root: Path

    def get(self, name: str) -> LayerHandle:
        """Return a handle for *name*, loading any record left by a previous build."""
        layer = LayerHandle(root=self.root, name=name)
        payload = _read_record(layer.record_path)
        if payload is not None:
            layer.launch = payload.get("launch") is True
            layer.build = payload.get("build") is True
            layer.cache = payload.get("cache") is True
            layer.metadata = LayerMetadata.from_dict(payload.get("metadata"))
        return layer


def _read_record(path: Path) -> dict[str, object] | None:
    # A missing or unreadable record means "no prior build".
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed
