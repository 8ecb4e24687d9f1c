"""External toolchain builders."""

from .base import ToolchainBuilder
from .materialize import ensure_executable, query_version, run_toolchain
from .xcaddy import XcaddyBuilder

__all__ = [
    "ToolchainBuilder",
    "XcaddyBuilder",
    "ensure_executable",
    "query_version",
    "run_toolchain",
]
