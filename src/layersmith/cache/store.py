"""Hit/miss decisions for expensive layer builds."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from layersmith.cache.keys import BuildInputs
from layersmith.layers import LayerHandle
from layersmith.models import LayerMetadata
from layersmith.observability import StructuredLogger


class Outcome(StrEnum):
    HIT = "hit"
    MISS = "miss"


@dataclass(frozen=True, slots=True)
class CacheDecision:
    outcome: Outcome
    key: str
    reason: str

    @property
    def hit(self) -> bool:
        return self.outcome is Outcome.HIT


def decide(
    inputs: BuildInputs,
    stored: LayerMetadata | None,
    binary_path: str | Path,
) -> CacheDecision:
    """Decide whether a previous build can be reused.

    Stored metadata is untrusted: even when every recorded field matches,
    the binary must still be on disk as a regular file.
    """
    key = inputs.key
    if stored is None or stored.is_empty:
        return CacheDecision(Outcome.MISS, key, "no previous build recorded")
    if stored.buildpack_version != inputs.buildpack_version:
        return CacheDecision(Outcome.MISS, key, "buildpack version changed")
    if stored.build_hash != key:
        return CacheDecision(Outcome.MISS, key, "build inputs changed")
    if not stored.binary_version:
        return CacheDecision(Outcome.MISS, key, "binary version not recorded")
    binary = Path(binary_path)
    if not binary.exists() or binary.is_dir():
        return CacheDecision(Outcome.MISS, key, "binary missing from layer")
    return CacheDecision(Outcome.HIT, key, "inputs unchanged")


Rebuild = Callable[[LayerHandle], LayerMetadata]
Refresh = Callable[[LayerHandle, LayerMetadata], None]


@dataclass(slots=True)
class BuildCache:
    """Drives the reuse-or-rebuild path for a single layer."""

    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def resolve(
        self,
        layer: LayerHandle,
        inputs: BuildInputs,
        *,
        binary_path: Path,
        rebuild: Rebuild,
        refresh: Refresh,
    ) -> LayerHandle:
        decision = decide(inputs, layer.metadata, binary_path)
        self.logger.log(
            operation="build",
            layer=layer.name,
            phase="cache",
            message=f"cache {decision.outcome}: {decision.reason}",
            extra={"build_hash": decision.key},
        )

        if decision.hit:
            metadata = layer.metadata
        else:
            layer.reset()
            metadata = rebuild(layer)
            layer.metadata = metadata

        # Configuration can change between builds even when the binary does not.
        refresh(layer, metadata)
        layer.launch = True
        layer.build = True
        layer.cache = True
        layer.save()
        return layer
