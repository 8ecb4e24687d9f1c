from pathlib import Path

import pytest
import yaml

from layersmith.errors import ConfigError
from layersmith.supervision import ProcessEntry, load_template, read_dev_process, render_config, write_config


def test_read_dev_process_returns_first_dev_line(tmp_path: Path) -> None:
    (tmp_path / "Procfile").write_text(
        "web: bin/server\ndev:   bin/dev --watch  \ndev: second\n",
        encoding="utf-8",
    )

    assert read_dev_process(tmp_path) == "bin/dev --watch"


@pytest.mark.parametrize("content", [None, "web: bin/server\n", " dev: indented\n"])
def test_read_dev_process_without_directive(tmp_path: Path, content: str | None) -> None:
    if content is not None:
        (tmp_path / "Procfile").write_text(content, encoding="utf-8")

    assert read_dev_process(tmp_path) == ""


def test_process_entry_serialization_omits_empty_fields() -> None:
    assert ProcessEntry(command="run").to_dict() == {"command": "run"}
    assert ProcessEntry(
        command="caddy run",
        description="proxy",
        depends_on={"agent": "process_started"},
        environment=("A=1",),
    ).to_dict() == {
        "description": "proxy",
        "command": "caddy run",
        "depends_on": {"agent": {"condition": "process_started"}},
        "environment": ["A=1"],
    }


def test_render_config_owns_dev_agent_and_caddy() -> None:
    template = {"processes": {"dev": {"command": "old"}, "db": {"command": "postgres"}}}

    config = render_config(template, dev_command="", agent_command="/agent.sh", caddy_command=None)

    assert list(config["processes"]) == ["agent", "db"]
    assert template["processes"]["dev"] == {"command": "old"}


def test_render_config_rejects_non_mapping_processes() -> None:
    with pytest.raises(ConfigError):
        render_config({"processes": ["a"]}, dev_command="", agent_command="a", caddy_command=None)


def test_load_template_missing_and_empty(tmp_path: Path) -> None:
    assert load_template(tmp_path / "absent.yaml") == {}

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert load_template(empty) == {}


@pytest.mark.parametrize("content", ["processes: [unclosed\n", "- just\n- a list\n"])
def test_load_template_rejects_invalid_documents(tmp_path: Path, content: str) -> None:
    template = tmp_path / "process-compose.yaml"
    template.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_template(template)


def test_write_config_creates_parent_and_preserves_order(tmp_path: Path) -> None:
    output = tmp_path / "config" / "process-compose.yaml"

    write_config({"version": "0.5", "processes": {"agent": {"command": "a"}}}, output)

    text = output.read_text(encoding="utf-8")
    assert text.index("version") < text.index("processes")
    assert yaml.safe_load(text)["processes"]["agent"]["command"] == "a"
