"""Cache key derivation."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BuildInputs:
    tool_version: str
    plugins: tuple[str, ...]
    buildpack_version: str

    @property
    def sorted_plugins(self) -> tuple[str, ...]:
        return tuple(sorted(self.plugins))

    @property
    def key(self) -> str:
        return derive_key(self.tool_version, self.plugins)


def derive_key(tool_version: str, plugins: Iterable[str]) -> str:
    # Declaration order must not leak into the key.
    ordered = sorted(plugins)
    canonical = f"{tool_version}:{','.join(ordered)}"
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
