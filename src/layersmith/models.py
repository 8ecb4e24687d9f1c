"""Core typed dataclasses for layer provenance and build results."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from layersmith.layers import LayerHandle


@dataclass(frozen=True, slots=True)
class LayerMetadata:
    """Provenance recorded for a layer.

    Read back on the next build to decide cache hits, so :meth:`from_dict`
    treats its input as untrusted: unknown keys and non-string values are
    dropped instead of raising.
    """

    build_hash: str | None = None
    buildpack_version: str | None = None
    binary_version: str | None = None
    builder_version: str | None = None
    plugins: str | None = None
    uri: str | None = None
    checksum: str | None = None
    version: str | None = None
    asset: str | None = None
    os: str | None = None
    arch: str | None = None
    dev_command: str | None = None

    def to_dict(self) -> dict[str, str]:
        return {
            f.name: value
            for f in fields(self)
            if (value := getattr(self, f.name)) is not None
        }

    @classmethod
    def from_dict(cls, payload: Any) -> LayerMetadata:
        if not isinstance(payload, dict):
            return cls()
        known = {f.name for f in fields(cls)}
        values = {
            key: value
            for key, value in payload.items()
            if key in known and isinstance(value, str)
        }
        return cls(**values)

    @property
    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass(frozen=True, slots=True)
class Platform:
    """An operating system / architecture pair, spelled the way a download expects."""

    os: str
    arch: str

    @property
    def key(self) -> str:
        return f"{self.os}/{self.arch}"


@dataclass(frozen=True, slots=True)
class DirectProcess:
    type: str
    command: tuple[str, ...]
    args: tuple[str, ...] = ()
    default: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "command": list(self.command),
            "args": list(self.args),
            "default": self.default,
        }


@dataclass(slots=True)
class BuildResult:
    layers: list[LayerHandle] = field(default_factory=list)
    processes: list[DirectProcess] = field(default_factory=list)

    def to_launch_dict(self) -> dict[str, Any]:
        return {"processes": [process.to_dict() for process in self.processes]}
