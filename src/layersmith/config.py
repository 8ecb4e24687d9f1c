"""Environment-driven installer settings."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from layersmith.errors import ConfigError
from layersmith.policy import NetworkMode, Policy

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"", "0", "false", "no", "off"})
_SHA256_HEX = re.compile(r"[0-9a-f]{64}")


def env(
    name: str,
    default: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Read a trimmed value from the environment.

    Empty and whitespace-only values count as unset, so an exported but
    blank override falls back to *default*.
    """
    source = os.environ if environ is None else environ
    value = source.get(name, "").strip()
    return value if value else default


@dataclass(frozen=True, slots=True)
class Settings:
    ttyd_version: str | None = None
    network_mode: NetworkMode = "online"
    require_integrity: bool = False
    digests: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        mode = (env("LAYERSMITH_NETWORK_MODE", "online", environ=environ) or "online").lower()
        if mode not in ("online", "offline"):
            raise ConfigError(
                "Invalid network mode.",
                hint="Set LAYERSMITH_NETWORK_MODE to 'online' or 'offline'.",
                context={"LAYERSMITH_NETWORK_MODE": mode},
            )
        return cls(
            ttyd_version=env("TTYD_VERSION", environ=environ),
            network_mode="offline" if mode == "offline" else "online",
            require_integrity=_parse_bool(
                "LAYERSMITH_REQUIRE_INTEGRITY",
                env("LAYERSMITH_REQUIRE_INTEGRITY", "", environ=environ) or "",
            ),
            digests=_digests_from_env(environ),
        )

    @property
    def policy(self) -> Policy:
        return Policy(require_integrity=self.require_integrity, network_mode=self.network_mode)

    def expected_digest(self, url: str) -> str | None:
        """Return the pinned SHA-256 for *url*, if one was configured."""
        return self.digests.get(url)


def _digests_from_env(environ: Mapping[str, str] | None) -> dict[str, str]:
    path = env("LAYERSMITH_DIGESTS_FILE", environ=environ)
    return read_digest_pins(path) if path else {}


def read_digest_pins(path: str | Path) -> dict[str, str]:
    """Load ``[sha256]`` URL-to-digest pins from a TOML file.

    Pinned downloads are verified by :func:`layersmith.fetch.http.fetch`; with
    ``LAYERSMITH_REQUIRE_INTEGRITY`` set, every download needs a pin.
    """
    pins_path = Path(path)
    try:
        parsed = tomllib.loads(pins_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(
            "Failed to read digest pins.",
            hint="Point LAYERSMITH_DIGESTS_FILE at a readable TOML file.",
            context={"path": str(pins_path), "cause": str(exc)},
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            "Digest pins file is not valid TOML.",
            hint=str(exc),
            context={"path": str(pins_path)},
        ) from exc
    table = parsed.get("sha256", {})
    if not isinstance(table, dict):
        raise ConfigError(
            "Digest pins must be a [sha256] table.",
            context={"path": str(pins_path)},
        )
    pins: dict[str, str] = {}
    for url, digest in table.items():
        if not isinstance(digest, str) or not _SHA256_HEX.fullmatch(digest.lower()):
            raise ConfigError(
                "Pinned digest is not a SHA-256 hex string.",
                context={"path": str(pins_path), "url": url},
            )
        pins[url] = digest.lower()
    return pins


def read_buildpack_version(buildpack_dir: str | Path) -> str:
    """Return ``[buildpack] version`` from ``buildpack.toml``, or ``""`` when absent."""
    descriptor = Path(buildpack_dir) / "buildpack.toml"
    try:
        raw = descriptor.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    try:
        parsed = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            "buildpack.toml is not valid TOML.",
            hint=str(exc),
            context={"path": str(descriptor)},
        ) from exc
    table = parsed.get("buildpack")
    if not isinstance(table, dict):
        return ""
    version = table.get("version")
    return version if isinstance(version, str) else ""


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ConfigError(
        f"Invalid boolean value for {name}.",
        hint="Use one of 1/0, true/false, yes/no, on/off.",
        context={name: raw},
    )
