"""Structured logging and observability helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO


@dataclass(slots=True)
class StructuredLogger:
    """Collects structured records and optionally echoes them as text lines.

    Records are plain dicts so they can be asserted on in tests and dumped
    as JSON lines next to the layers for inspection.
    """

    stream: TextIO | None = None
    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        layer: str | None,
        phase: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "layer": layer,
            "phase": phase,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        if self.stream is not None:
            self.stream.write(_format_line(record) + "\n")
            self.stream.flush()

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path


def _format_line(record: dict[str, Any]) -> str:
    scope = "/".join(str(part) for part in (record["layer"], record["phase"]) if part)
    prefix = f"[{record['level']}] {scope}: " if scope else f"[{record['level']}] "
    line = prefix + record["message"]
    extra = record.get("extra")
    if extra:
        line += " (" + ", ".join(f"{k}={v}" for k, v in sorted(extra.items())) + ")"
    return line
