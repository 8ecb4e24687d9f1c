"""Path-confined extraction of gzip-compressed tar archives.

Entries are processed strictly in stream order. For every entry the target
path is resolved against the canonical destination root *before* anything is
written, so a hostile member name (``../../etc/passwd``), a member routed
through a previously extracted symlink, or a file entry landing on such a
symlink is rejected with :class:`PathEscapeError`.

The stream reader treats a damaged header after the first one as the end of
the archive, so anything but zero padding after the last entry is reported
as :class:`CorruptTarHeaderError`.

Extraction is not transactional: entries written before a failing entry stay
on disk and the caller owns cleanup (installers reset the layer on the next
cache miss).
"""

from __future__ import annotations

import gzip
import io
import os
import shutil
import tarfile
import zlib
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import IO

from layersmith.errors import (
    CorruptCompressionError,
    CorruptTarHeaderError,
    FilesystemError,
    PathEscapeError,
    UnsupportedEntryTypeError,
)

DIR_MODE = 0o755

_REGULAR_TYPES = (tarfile.REGTYPE, tarfile.AREGTYPE)


class EntryKind(StrEnum):
    DIRECTORY = "directory"
    SYMLINK = "symbolic-link"
    REGULAR_FILE = "regular-file"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True, slots=True)
class TarEntry:
    path: str
    kind: EntryKind
    mode: int
    link_target: str | None = None

    @classmethod
    def from_tarinfo(cls, info: tarfile.TarInfo) -> TarEntry:
        if info.type == tarfile.DIRTYPE:
            kind = EntryKind.DIRECTORY
        elif info.type == tarfile.SYMTYPE:
            kind = EntryKind.SYMLINK
        elif info.type in _REGULAR_TYPES:
            kind = EntryKind.REGULAR_FILE
        else:
            kind = EntryKind.UNSUPPORTED
        return cls(
            path=info.name,
            kind=kind,
            mode=info.mode & 0o7777,
            link_target=info.linkname if kind is EntryKind.SYMLINK else None,
        )


@dataclass(slots=True)
class ExtractionReport:
    destination: Path
    entries: list[TarEntry] = field(default_factory=list)

    @property
    def files(self) -> list[str]:
        return [entry.path for entry in self.entries if entry.kind is EntryKind.REGULAR_FILE]


def extract_tar_gz(payload: bytes, destination: str | Path) -> ExtractionReport:
    """Unpack a ``.tar.gz`` payload into *destination*."""
    if not payload:
        raise CorruptCompressionError(
            "Archive payload is empty.",
            context={"operation": "extract"},
        )
    try:
        raw = gzip.decompress(payload)
    except (OSError, EOFError, zlib.error) as exc:
        raise CorruptCompressionError(
            "Archive gzip envelope is malformed.",
            context={"operation": "extract", "cause": str(exc)},
        ) from exc

    root = Path(os.path.realpath(destination))
    report = ExtractionReport(destination=root)
    if not raw:
        return report

    try:
        archive = tarfile.open(fileobj=io.BytesIO(raw), mode="r|")
    except tarfile.TarError as exc:
        raise CorruptTarHeaderError(
            "Failed to read tar header.",
            context={"operation": "extract", "cause": str(exc)},
        ) from exc

    with archive:
        while True:
            try:
                info = archive.next()
            except tarfile.TarError as exc:
                raise CorruptTarHeaderError(
                    "Failed to read tar header.",
                    context={"operation": "extract", "cause": str(exc)},
                ) from exc
            if info is None:
                _ensure_end_of_archive(raw, archive.offset)
                return report

            entry = TarEntry.from_tarinfo(info)
            target = resolve_member_path(root, entry.path)
            if entry.kind is EntryKind.UNSUPPORTED:
                raise UnsupportedEntryTypeError(
                    f"Unsupported tar entry {entry.path} of type {info.type!r}.",
                    context={"operation": "extract", "entry": entry.path},
                )
            if entry.kind is EntryKind.REGULAR_FILE:
                _write_file(archive, info, target, root=root, mode=entry.mode)
            elif entry.kind is EntryKind.DIRECTORY:
                _make_dirs(target)
            else:
                _make_symlink(target, entry.link_target or "")
            report.entries.append(entry)


def resolve_member_path(root: str | Path, name: str) -> Path:
    """Return where archive member *name* lands under *root*, or raise.

    *root* must already be canonical. The member name is joined as a
    relative path, ``.``/``..`` are collapsed, and the real path of the
    parent directory is used so links extracted earlier cannot redirect
    writes. The final component is not dereferenced here; file writes
    re-check it before opening.
    """
    root_str = os.fspath(root)
    joined = os.path.normpath(os.path.join(root_str, name.lstrip("/\\")))
    if joined != root_str:
        parent, leaf = os.path.split(joined)
        joined = os.path.join(os.path.realpath(parent), leaf)
    if not _is_within(root_str, joined):
        raise PathEscapeError(
            f"Archive entry escapes destination: {name}",
            hint="The archive is malformed or malicious; it was not extracted further.",
            context={"operation": "extract", "entry": name, "destination": root_str},
        )
    return Path(joined)


def _is_within(root: str, candidate: str) -> bool:
    return candidate == root or candidate.startswith(root.rstrip(os.sep) + os.sep)


def _ensure_end_of_archive(raw: bytes, offset: int) -> None:
    if raw[offset:].strip(b"\0"):
        raise CorruptTarHeaderError(
            "Failed to read tar header.",
            hint="The archive is truncated or corrupt; entries after the damage were not extracted.",
            context={"operation": "extract", "offset": str(offset)},
        )


def _make_dirs(path: Path) -> None:
    try:
        path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(
            f"Failed to create directory {path}.",
            context={"operation": "extract", "path": str(path), "cause": str(exc)},
        ) from exc


def _make_symlink(path: Path, link_target: str) -> None:
    try:
        os.symlink(link_target, path)
    except FileExistsError:
        return
    except OSError as exc:
        raise FilesystemError(
            f"Failed to create symlink {path} -> {link_target}.",
            context={"operation": "extract", "path": str(path), "cause": str(exc)},
        ) from exc


def _write_file(
    archive: tarfile.TarFile,
    info: tarfile.TarInfo,
    path: Path,
    *,
    root: Path,
    mode: int,
) -> None:
    _make_dirs(path.parent)
    _remove_symlink_leaf(path, root=root, name=info.name)
    source = archive.extractfile(info)
    if source is None:
        raise CorruptTarHeaderError(
            f"Tar entry {info.name} has no readable content.",
            context={"operation": "extract", "entry": info.name},
        )
    try:
        fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC | os.O_NOFOLLOW, mode)
    except OSError as exc:
        raise FilesystemError(
            f"Failed to create file {path}.",
            context={"operation": "extract", "path": str(path), "cause": str(exc)},
        ) from exc
    try:
        with os.fdopen(fd, "wb") as target:
            _copy_member(source, target, name=info.name)
            os.fchmod(target.fileno(), mode)
    except OSError as exc:
        raise FilesystemError(
            f"Failed to write file {path}.",
            context={"operation": "extract", "path": str(path), "cause": str(exc)},
        ) from exc


def _remove_symlink_leaf(path: Path, *, root: Path, name: str) -> None:
    """Drop a symlink an earlier entry left at *path*; a file entry replaces it."""
    if not path.is_symlink():
        return
    resolved = os.path.realpath(path)
    if not _is_within(os.fspath(root), resolved):
        raise PathEscapeError(
            f"Archive entry escapes destination: {name}",
            hint="The archive is malformed or malicious; it was not extracted further.",
            context={"operation": "extract", "entry": name, "destination": os.fspath(root)},
        )
    try:
        path.unlink()
    except OSError as exc:
        raise FilesystemError(
            f"Failed to replace symlink {path}.",
            context={"operation": "extract", "path": str(path), "cause": str(exc)},
        ) from exc


def _copy_member(source: IO[bytes], target: IO[bytes], *, name: str) -> None:
    try:
        shutil.copyfileobj(source, target)
    except tarfile.TarError as exc:
        raise CorruptTarHeaderError(
            f"Tar entry {name} is truncated.",
            context={"operation": "extract", "entry": name, "cause": str(exc)},
        ) from exc
