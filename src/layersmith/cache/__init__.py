"""Build cache APIs."""

from layersmith.models import LayerMetadata

from .keys import BuildInputs, derive_key
from .store import BuildCache, CacheDecision, Outcome, decide

__all__ = [
    "BuildCache",
    "BuildInputs",
    "CacheDecision",
    "LayerMetadata",
    "Outcome",
    "decide",
    "derive_key",
]
