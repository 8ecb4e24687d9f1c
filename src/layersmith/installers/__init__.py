"""Installer registry."""

from __future__ import annotations

from collections.abc import Callable

from layersmith.errors import ValidationError

from .base import BuildContext, Installer
from .caddy import CaddyInstaller
from .pkgx import PkgxInstaller
from .runtime import RuntimeInstaller
from .ttyd import TtydInstaller

INSTALLERS: dict[str, Callable[[], Installer]] = {
    "caddy": CaddyInstaller,
    "pkgx": PkgxInstaller,
    "runtime": RuntimeInstaller,
    "ttyd": TtydInstaller,
}


def get_installer(name: str) -> Installer:
    try:
        factory = INSTALLERS[name]
    except KeyError:
        raise ValidationError(
            f"Unknown installer {name!r}.",
            hint="Available installers: " + ", ".join(sorted(INSTALLERS)),
        ) from None
    return factory()


__all__ = [
    "INSTALLERS",
    "BuildContext",
    "CaddyInstaller",
    "Installer",
    "PkgxInstaller",
    "RuntimeInstaller",
    "TtydInstaller",
    "get_installer",
]
