import json
from pathlib import Path

import pytest

from layersmith.cli import main
from layersmith.models import Platform


def _build_args(tmp_path: Path, buildpack_dir: Path, installer: str) -> list[str]:
    app = tmp_path / "app"
    app.mkdir(exist_ok=True)
    return [
        "build",
        installer,
        "--layers-dir",
        str(tmp_path / "layers"),
        "--buildpack-dir",
        str(buildpack_dir),
        "--working-dir",
        str(app),
    ]


def test_list_prints_installers(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["list"]) == 0

    assert capsys.readouterr().out.split() == ["caddy", "pkgx", "runtime", "ttyd"]


def test_build_runtime_writes_launch_record(
    tmp_path: Path,
    buildpack_dir: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    log_path = tmp_path / "logs" / "build.jsonl"

    status = main(["--quiet", "--log-json", str(log_path), *_build_args(tmp_path, buildpack_dir, "runtime")])

    assert status == 0
    launch = json.loads((tmp_path / "layers" / "launch.json").read_text(encoding="utf-8"))
    assert launch["processes"][0]["type"] == "dev"
    assert launch["processes"][0]["default"] is True
    record = json.loads((tmp_path / "layers" / "runtime.json").read_text(encoding="utf-8"))
    assert record["cache"] is False
    assert "layer runtime ready" in capsys.readouterr().out
    records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert any(r["layer"] == "runtime" and r["phase"] == "install" for r in records)


def test_build_reports_typed_error_and_exit_status(
    tmp_path: Path,
    buildpack_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("LAYERSMITH_NETWORK_MODE", "sometimes")

    status = main(["--quiet", *_build_args(tmp_path, buildpack_dir, "ttyd")])

    assert status == 1
    err = capsys.readouterr().err
    assert err.startswith("ttyd: build failed [E_CONFIG]")
    assert not (tmp_path / "layers" / "ttyd").exists()


def test_build_offline_fails_without_network(
    tmp_path: Path,
    buildpack_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("LAYERSMITH_NETWORK_MODE", "offline")
    monkeypatch.setattr(
        "layersmith.installers.pkgx.detect_uname_platform",
        lambda: Platform(os="Linux", arch="x86_64"),
    )

    status = main(["--quiet", *_build_args(tmp_path, buildpack_dir, "pkgx")])

    assert status == 1
    assert capsys.readouterr().err.startswith("pkgx: fetch failed [E_POLICY]: Refusing to download")


def test_detect_passes_for_runtime(tmp_path: Path, buildpack_dir: Path) -> None:
    args = _build_args(tmp_path, buildpack_dir, "runtime")
    args[0] = "detect"

    assert main(["--quiet", *args]) == 0


def test_unknown_installer_is_a_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["build", "nginx"])

    assert excinfo.value.code == 2

