"""Fetched payload model shared by the download helpers."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class FetchedArchive:
    url: str
    payload: bytes = field(repr=False)
    sha256: str

    @property
    def size(self) -> int:
        return len(self.payload)


__all__ = ["FetchedArchive"]
