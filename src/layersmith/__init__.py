"""Public package entrypoint for the layer installers."""

from .archive import EntryKind, TarEntry, extract_tar_gz
from .cache import BuildCache, BuildInputs, CacheDecision, Outcome, decide, derive_key
from .errors import (
    ArchiveError,
    BadStatusError,
    BodyReadError,
    BuildError,
    ConfigError,
    CorruptCompressionError,
    CorruptTarHeaderError,
    ErrorCode,
    FetchError,
    FilesystemError,
    IntegrityError,
    LayersmithError,
    PathEscapeError,
    PlatformUnsupportedError,
    PolicyError,
    ToolchainFailedError,
    TransportError,
    UnsupportedEntryTypeError,
    ValidationError,
)
from .fetch import FetchedArchive
from .layers import LayerHandle, Layers
from .models import BuildResult, DirectProcess, LayerMetadata, Platform
from .policy import Policy

__all__ = [
    "ArchiveError",
    "BadStatusError",
    "BodyReadError",
    "BuildCache",
    "BuildError",
    "BuildInputs",
    "BuildResult",
    "CacheDecision",
    "ConfigError",
    "CorruptCompressionError",
    "CorruptTarHeaderError",
    "DirectProcess",
    "EntryKind",
    "ErrorCode",
    "FetchError",
    "FetchedArchive",
    "FilesystemError",
    "IntegrityError",
    "LayerHandle",
    "LayerMetadata",
    "Layers",
    "LayersmithError",
    "Outcome",
    "PathEscapeError",
    "Platform",
    "PlatformUnsupportedError",
    "Policy",
    "PolicyError",
    "TarEntry",
    "ToolchainFailedError",
    "TransportError",
    "UnsupportedEntryTypeError",
    "ValidationError",
    "decide",
    "derive_key",
    "extract_tar_gz",
]
