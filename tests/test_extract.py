import gzip
import io
import os
import stat
import tarfile
from pathlib import Path

import pytest
from helpers import make_tar_gz, member

from layersmith.archive import EntryKind, extract_tar_gz, resolve_member_path
from layersmith.errors import (
    ArchiveError,
    CorruptCompressionError,
    CorruptTarHeaderError,
    PathEscapeError,
    UnsupportedEntryTypeError,
)


def test_extracts_directory_and_file_with_mode(tmp_path: Path) -> None:
    payload = make_tar_gz(
        [
            member("d/", kind=tarfile.DIRTYPE, mode=0o755),
            member("d/f.txt", data=b"hello", mode=0o644),
        ]
    )
    dest = tmp_path / "dest"
    dest.mkdir()

    report = extract_tar_gz(payload, dest)

    assert (dest / "d").is_dir()
    assert (dest / "d" / "f.txt").read_bytes() == b"hello"
    assert stat.S_IMODE((dest / "d" / "f.txt").stat().st_mode) == 0o644
    assert [entry.kind for entry in report.entries] == [EntryKind.DIRECTORY, EntryKind.REGULAR_FILE]
    assert report.files == ["d/f.txt"]


def test_file_entry_creates_missing_parents_and_keeps_exec_bits(tmp_path: Path) -> None:
    payload = make_tar_gz([member("bin/tools/pkgx", data=b"#!/bin/sh\n", mode=0o755)])

    extract_tar_gz(payload, tmp_path)

    binary = tmp_path / "bin" / "tools" / "pkgx"
    assert binary.read_bytes() == b"#!/bin/sh\n"
    assert stat.S_IMODE(binary.stat().st_mode) == 0o755


def test_rejects_parent_traversal_before_writing(tmp_path: Path) -> None:
    dest = tmp_path / "a" / "b" / "dest"
    dest.mkdir(parents=True)
    payload = make_tar_gz([member("../../etc/passwd", data=b"root::0:0")])

    with pytest.raises(PathEscapeError) as excinfo:
        extract_tar_gz(payload, dest)

    assert excinfo.value.code == "E_ARCHIVE"
    assert not (tmp_path / "a" / "etc").exists()
    assert list(dest.iterdir()) == []


def test_rejects_sibling_directory_with_shared_prefix(tmp_path: Path) -> None:
    dest = tmp_path / "out"
    dest.mkdir()
    payload = make_tar_gz([member("../out-evil/payload", data=b"x")])

    with pytest.raises(PathEscapeError):
        extract_tar_gz(payload, dest)

    assert not (tmp_path / "out-evil").exists()


def test_rejects_writes_through_extracted_symlink(tmp_path: Path) -> None:
    dest = tmp_path / "dest"
    outside = tmp_path / "outside"
    dest.mkdir()
    outside.mkdir()
    payload = make_tar_gz(
        [
            member("link", kind=tarfile.SYMTYPE, linkname=str(outside)),
            member("link/pwned", data=b"x"),
        ]
    )

    with pytest.raises(PathEscapeError):
        extract_tar_gz(payload, dest)

    assert (dest / "link").is_symlink()
    assert list(outside.iterdir()) == []


def test_symlink_entries_are_idempotent(tmp_path: Path) -> None:
    payload = make_tar_gz(
        [
            member("pkgx-1.0", data=b"bin", mode=0o755),
            member("pkgx", kind=tarfile.SYMTYPE, linkname="pkgx-1.0"),
        ]
    )

    extract_tar_gz(payload, tmp_path)
    extract_tar_gz(payload, tmp_path)

    assert os.readlink(tmp_path / "pkgx") == "pkgx-1.0"
    assert (tmp_path / "pkgx").read_bytes() == b"bin"


def test_unsupported_entry_aborts_without_processing_later_entries(tmp_path: Path) -> None:
    payload = make_tar_gz(
        [
            member("first.txt", data=b"1"),
            member("pipe", kind=tarfile.FIFOTYPE),
            member("third.txt", data=b"3"),
        ]
    )

    with pytest.raises(UnsupportedEntryTypeError):
        extract_tar_gz(payload, tmp_path)

    assert (tmp_path / "first.txt").exists()
    assert not (tmp_path / "pipe").exists()
    assert not (tmp_path / "third.txt").exists()


def test_hard_links_are_unsupported(tmp_path: Path) -> None:
    payload = make_tar_gz(
        [
            member("target", data=b"x"),
            member("hard", kind=tarfile.LNKTYPE, linkname="target"),
        ]
    )

    with pytest.raises(UnsupportedEntryTypeError):
        extract_tar_gz(payload, tmp_path)


def test_malformed_gzip_envelope(tmp_path: Path) -> None:
    with pytest.raises(CorruptCompressionError):
        extract_tar_gz(b"definitely not gzip", tmp_path)


def test_truncated_gzip_envelope(tmp_path: Path) -> None:
    payload = make_tar_gz([member("f.txt", data=b"hello" * 100)])

    with pytest.raises(CorruptCompressionError):
        extract_tar_gz(payload[: len(payload) // 2], tmp_path)


def test_malformed_tar_header(tmp_path: Path) -> None:
    with pytest.raises(CorruptTarHeaderError) as excinfo:
        extract_tar_gz(gzip.compress(b"x" * 1024), tmp_path)

    assert isinstance(excinfo.value, ArchiveError)


def test_empty_stream_is_an_empty_archive(tmp_path: Path) -> None:
    report = extract_tar_gz(gzip.compress(b""), tmp_path)

    assert report.entries == []
    assert list(tmp_path.iterdir()) == []


def test_resolve_member_path_joins_relative_to_root(tmp_path: Path) -> None:
    root = Path(os.path.realpath(tmp_path))

    assert resolve_member_path(root, ".") == root
    assert resolve_member_path(root, "./bin/x") == root / "bin" / "x"
    assert resolve_member_path(root, "/etc/passwd") == root / "etc" / "passwd"
    assert resolve_member_path(root, "a/../b") == root / "b"

    with pytest.raises(PathEscapeError):
        resolve_member_path(root, "a/../../b")


def test_rejects_file_entry_over_symlink_leaving_destination(tmp_path: Path) -> None:
    dest = tmp_path / "dest"
    outside = tmp_path / "outside"
    dest.mkdir()
    outside.mkdir()
    victim = outside / "victim"
    victim.write_bytes(b"original")
    victim.chmod(0o600)
    payload = make_tar_gz(
        [
            member("evil", kind=tarfile.SYMTYPE, linkname=str(victim)),
            member("evil", data=b"PWNED", mode=0o777),
        ]
    )

    with pytest.raises(PathEscapeError):
        extract_tar_gz(payload, dest)

    assert victim.read_bytes() == b"original"
    assert stat.S_IMODE(victim.stat().st_mode) == 0o600


def test_file_entry_replaces_symlink_inside_destination(tmp_path: Path) -> None:
    payload = make_tar_gz(
        [
            member("real", data=b"target"),
            member("alias", kind=tarfile.SYMTYPE, linkname="real"),
            member("alias", data=b"own content"),
        ]
    )

    extract_tar_gz(payload, tmp_path)

    assert not (tmp_path / "alias").is_symlink()
    assert (tmp_path / "alias").read_bytes() == b"own content"
    assert (tmp_path / "real").read_bytes() == b"target"


def _two_entry_tar() -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w", format=tarfile.GNU_FORMAT) as archive:
        for name, data in (("a.txt", b"a" * 10), ("b.txt", b"b" * 10)):
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def test_corrupt_header_after_first_entry_is_fatal(tmp_path: Path) -> None:
    raw = bytearray(_two_entry_tar())
    # Second header starts after one header block and one data block.
    raw[1024 + 148 : 1024 + 156] = b"0000000\0"

    with pytest.raises(CorruptTarHeaderError):
        extract_tar_gz(gzip.compress(bytes(raw)), tmp_path)

    assert (tmp_path / "a.txt").exists()
    assert not (tmp_path / "b.txt").exists()


def test_truncated_header_after_first_entry_is_fatal(tmp_path: Path) -> None:
    raw = _two_entry_tar()[:1124]

    with pytest.raises(CorruptTarHeaderError):
        extract_tar_gz(gzip.compress(raw), tmp_path)


def test_empty_payload_is_not_a_gzip_envelope(tmp_path: Path) -> None:
    with pytest.raises(CorruptCompressionError):
        extract_tar_gz(b"", tmp_path)
