"""Host platform detection in the spellings download servers expect.

Two conventions are in use: ``uname`` output (``Linux``/``x86_64``) for
pkgx.sh, and Go's ``GOOS``/``GOARCH`` (``linux``/``amd64``) for GitHub
release assets.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping

from layersmith.errors import PlatformUnsupportedError, ValidationError
from layersmith.models import Platform

GO_ARCH_ALIASES: Mapping[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "i386": "386",
    "i686": "386",
}


def uname(*args: str) -> str:
    try:
        completed = subprocess.run(
            ["uname", *args],
            check=False,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise ValidationError(
            "Failed to run uname.",
            context={"operation": "detect_platform", "cause": str(exc)},
        ) from exc
    if completed.returncode != 0:
        raise ValidationError(
            "uname exited with a non-zero status.",
            context={
                "operation": "detect_platform",
                "args": " ".join(args),
                "stderr": completed.stderr.strip(),
            },
        )
    return completed.stdout.strip()


def detect_uname_platform() -> Platform:
    """Return the host platform as ``uname`` and ``uname -m`` report it."""
    return Platform(os=uname(), arch=uname("-m"))


def to_go_platform(platform: Platform) -> Platform:
    arch = GO_ARCH_ALIASES.get(platform.arch.lower(), platform.arch.lower())
    return Platform(os=platform.os.lower(), arch=arch)


def detect_go_platform() -> Platform:
    return to_go_platform(detect_uname_platform())


def select_asset(platform: Platform, assets: Mapping[str, str]) -> str:
    """Look up the download asset for *platform* in a ``os/arch`` keyed table."""
    try:
        return assets[platform.key]
    except KeyError:
        raise PlatformUnsupportedError(
            f"Unsupported platform {platform.key}.",
            hint="Supported platforms: " + ", ".join(sorted(assets)),
            context={"platform": platform.key},
        ) from None


__all__ = [
    "GO_ARCH_ALIASES",
    "Platform",
    "detect_go_platform",
    "detect_uname_platform",
    "select_asset",
    "to_go_platform",
    "uname",
]
