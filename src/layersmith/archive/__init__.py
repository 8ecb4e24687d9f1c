"""Archive extraction APIs."""

from .extract import EntryKind, ExtractionReport, TarEntry, extract_tar_gz, resolve_member_path

__all__ = ["EntryKind", "ExtractionReport", "TarEntry", "extract_tar_gz", "resolve_member_path"]
