"""CLI entry point for the layer installers."""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from layersmith.config import Settings, read_buildpack_version
from layersmith.errors import FilesystemError, LayersmithError
from layersmith.installers import INSTALLERS, BuildContext, get_installer
from layersmith.layers import Layers
from layersmith.models import BuildResult
from layersmith.observability import StructuredLogger


def _context(args: argparse.Namespace, logger: StructuredLogger) -> BuildContext:
    buildpack_dir = Path(args.buildpack_dir).resolve()
    version = args.buildpack_version
    if version is None:
        version = read_buildpack_version(buildpack_dir)
    return BuildContext(
        layers=Layers(Path(args.layers_dir).resolve()),
        buildpack_dir=buildpack_dir,
        working_dir=Path(args.working_dir).resolve(),
        buildpack_version=version,
        settings=Settings.from_env(),
        logger=logger,
    )


def cmd_detect(args: argparse.Namespace, logger: StructuredLogger) -> int:
    """Report whether the installer participates in the build."""
    installer = get_installer(args.installer)
    passed = installer.detect(_context(args, logger))
    return 0 if passed else 100


def cmd_build(args: argparse.Namespace, logger: StructuredLogger) -> int:
    """Populate the installer's layer and write the launch record."""
    installer = get_installer(args.installer)
    context = _context(args, logger)
    result = installer.build(context)
    _write_launch(context.layers.root, result)
    for layer in result.layers:
        print(f"{installer.name}: layer {layer.name} ready at {layer.path}")
    return 0


def cmd_list(args: argparse.Namespace, logger: StructuredLogger) -> int:
    """List the available installers."""
    for name in sorted(INSTALLERS):
        print(name)
    return 0


def _write_launch(layers_root: Path, result: BuildResult) -> None:
    if not result.processes:
        return
    launch_path = layers_root / "launch.json"
    try:
        launch_path.write_text(
            json.dumps(result.to_launch_dict(), indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise FilesystemError(
            "Failed to write launch record.",
            context={"path": str(launch_path), "cause": str(exc)},
        ) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="layersmith",
        description="Build-time installers that populate cacheable layers with tool binaries",
    )
    parser.add_argument("--log-json", help="Write structured log records to this file")
    parser.add_argument("--quiet", action="store_true", help="Do not echo log records to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, func, help_text in (
        ("detect", cmd_detect, "Run an installer's detect step"),
        ("build", cmd_build, "Run an installer's build step"),
    ):
        command_p = sub.add_parser(name, help=help_text)
        command_p.add_argument("installer", choices=sorted(INSTALLERS), help="Installer name")
        command_p.add_argument(
            "--layers-dir",
            default=os.environ.get("CNB_LAYERS_DIR", "layers"),
            help="Directory holding the layers (default: $CNB_LAYERS_DIR or ./layers)",
        )
        command_p.add_argument(
            "--buildpack-dir",
            default=os.environ.get("CNB_BUILDPACK_DIR", "."),
            help="Directory with the packaged installer resources (default: $CNB_BUILDPACK_DIR)",
        )
        command_p.add_argument(
            "--working-dir",
            default=os.getcwd(),
            help="Application source directory (default: current directory)",
        )
        command_p.add_argument(
            "--buildpack-version",
            help="Override the version read from buildpack.toml",
        )
        command_p.set_defaults(func=func)

    list_p = sub.add_parser("list", help="List available installers")
    list_p.set_defaults(func=cmd_list)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = StructuredLogger(stream=None if args.quiet else sys.stderr)
    try:
        status = args.func(args, logger)
    except LayersmithError as exc:
        stage = exc.stage or args.command
        target = getattr(args, "installer", "layersmith")
        print(f"{target}: {stage} failed [{exc.code}]: {exc}", file=sys.stderr)
        status = 1
    finally:
        if args.log_json:
            logger.to_json_lines(args.log_json)
    return status


if __name__ == "__main__":
    sys.exit(main())
