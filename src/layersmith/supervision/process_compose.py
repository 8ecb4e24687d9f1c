"""process-compose configuration rendering.

The packaged template supplies any static processes. The ``dev``, ``agent``
and ``caddy`` entries are owned by the runtime installer and are set or
removed on every build.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from layersmith.errors import ConfigError, FilesystemError

PROCESS_STARTED = "process_started"


@dataclass(frozen=True, slots=True)
class ProcessEntry:
    command: str
    description: str = ""
    args: tuple[str, ...] = ()
    depends_on: Mapping[str, str] = field(default_factory=dict)
    environment: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.description:
            payload["description"] = self.description
        payload["command"] = self.command
        if self.args:
            payload["args"] = list(self.args)
        if self.depends_on:
            payload["depends_on"] = {
                name: {"condition": condition} if condition else {}
                for name, condition in sorted(self.depends_on.items())
            }
        if self.environment:
            payload["environment"] = list(self.environment)
        return payload


def load_template(path: str | Path) -> dict[str, Any]:
    """Load the template document; a missing template is an empty config."""
    template = Path(path)
    try:
        raw = template.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise FilesystemError(
            "Failed to read process-compose template.",
            context={"path": str(template), "cause": str(exc)},
        ) from exc
    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(
            "process-compose template is not valid YAML.",
            hint=str(exc),
            context={"path": str(template)},
        ) from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigError(
            "process-compose template must be a mapping.",
            context={"path": str(template)},
        )
    return parsed


def render_config(
    template: Mapping[str, Any],
    *,
    dev_command: str,
    agent_command: str,
    caddy_command: str | None,
) -> dict[str, Any]:
    config = dict(template)
    processes_raw = config.get("processes")
    if processes_raw is not None and not isinstance(processes_raw, dict):
        raise ConfigError("process-compose template `processes` must be a mapping.")
    processes: dict[str, Any] = dict(processes_raw or {})

    if dev_command:
        processes["dev"] = ProcessEntry(
            command=dev_command,
            description="Development process from Procfile",
        ).to_dict()
    else:
        processes.pop("dev", None)

    processes["agent"] = ProcessEntry(command=agent_command, description="Supervise agent").to_dict()

    if caddy_command is not None:
        processes["caddy"] = ProcessEntry(
            command=caddy_command,
            description="Caddy reverse proxy",
            depends_on={"agent": PROCESS_STARTED},
            # Caddy autosaves its config; point it at a writable directory.
            environment=("XDG_CONFIG_HOME=/tmp",),
        ).to_dict()
    else:
        processes.pop("caddy", None)

    config["processes"] = dict(sorted(processes.items()))
    return config


def write_config(config: Mapping[str, Any], path: str | Path) -> Path:
    output = Path(path)
    data = yaml.safe_dump(dict(config), default_flow_style=False, sort_keys=False)
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(data, encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(
            "Failed to write process-compose.yaml.",
            context={"path": str(output), "cause": str(exc)},
        ) from exc
    return output
