"""Download policy: network mode and integrity requirements."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from layersmith.errors import PolicyError

NetworkMode = Literal["online", "offline"]


@dataclass(frozen=True, slots=True)
class Policy:
    require_integrity: bool = False
    network_mode: NetworkMode = "online"


def ensure_network_allowed(url: str, *, policy: Policy) -> None:
    """Refuse to download *url* when the build runs offline."""
    if policy.network_mode == "offline":
        raise PolicyError(
            f"Refusing to download {url} while offline.",
            hint="Unset LAYERSMITH_NETWORK_MODE or set it to 'online'.",
            context={"operation": "fetch", "url": url},
        )
