"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from helpers import FakeFetcher

from layersmith.installers import BuildContext
from layersmith.layers import Layers
from layersmith.models import Platform
from layersmith.observability import StructuredLogger


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def buildpack_dir(tmp_path: Path) -> Path:
    """A packaged-resources directory with the files the installers copy."""
    root = tmp_path / "buildpack"
    (root / "config").mkdir(parents=True)
    (root / "scripts").mkdir()
    (root / "config" / "Caddyfile").write_text(':8080 {\n\trespond "ok"\n}\n', encoding="utf-8")
    (root / "scripts" / "agent.sh").write_text("#!/bin/sh\necho agent\n", encoding="utf-8")
    (root / "buildpack.toml").write_text(
        '[buildpack]\nid = "dev.supervise.caddy"\nversion = "1.2.3"\n',
        encoding="utf-8",
    )
    return root


@pytest.fixture
def make_context(
    tmp_path: Path,
    buildpack_dir: Path,
    fake_fetcher: FakeFetcher,
) -> Callable[..., BuildContext]:
    def factory(**overrides: Any) -> BuildContext:
        working_dir = tmp_path / "app"
        working_dir.mkdir(exist_ok=True)
        values: dict[str, Any] = {
            "layers": Layers(tmp_path / "layers"),
            "buildpack_dir": buildpack_dir,
            "working_dir": working_dir,
            "buildpack_version": "1.2.3",
            "logger": StructuredLogger(),
            "platform": Platform(os="linux", arch="amd64"),
            "fetcher": fake_fetcher,
        }
        values.update(overrides)
        return BuildContext(**values)

    return factory
