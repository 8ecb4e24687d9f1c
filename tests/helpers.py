"""Archive and fetch helpers shared by the test modules."""

from __future__ import annotations

import hashlib
import io
import tarfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from layersmith.fetch import FetchedArchive

ArchiveMember = tuple[tarfile.TarInfo, bytes | None]


def member(
    name: str,
    *,
    kind: bytes = tarfile.REGTYPE,
    data: bytes = b"",
    mode: int = 0o644,
    linkname: str = "",
) -> ArchiveMember:
    info = tarfile.TarInfo(name)
    info.type = kind
    info.mode = mode
    info.linkname = linkname
    if kind in (tarfile.REGTYPE, tarfile.AREGTYPE):
        info.size = len(data)
        return info, data
    return info, None


def make_tar_gz(members: Sequence[ArchiveMember]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz", format=tarfile.GNU_FORMAT) as archive:
        for info, data in members:
            archive.addfile(info, io.BytesIO(data) if data is not None else None)
    return buffer.getvalue()


@dataclass(slots=True)
class FakeFetcher:
    """Serves canned payloads by URL and remembers what was requested."""

    payloads: dict[str, bytes] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    options: list[dict[str, Any]] = field(default_factory=list)

    def __call__(self, url: str, **kwargs: Any) -> FetchedArchive:
        self.calls.append(url)
        self.options.append(kwargs)
        payload = self.payloads[url]
        return FetchedArchive(url=url, payload=payload, sha256=hashlib.sha256(payload).hexdigest())
