"""Runtime installer: process-compose supervision for the app container.

Build: copies the agent script, reads the ``dev:`` Procfile directive and
renders ``config/process-compose.yaml`` from the packaged template. The
layer is launch-only and never cached.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from layersmith.installers.base import BuildContext, copy_file, make_dirs
from layersmith.models import BuildResult, DirectProcess, LayerMetadata
from layersmith.supervision import load_template, read_dev_process, render_config, write_config

DEFAULT_CADDY_CONFIG_PATH = "/layers/dev.supervise.caddy/caddy/config/Caddyfile"
DEFAULT_CADDY_BINARY_PATH = "/layers/dev.supervise.caddy/caddy/bin/caddy"


@dataclass(slots=True)
class RuntimeInstaller:
    name: str = "runtime"
    caddy_config_path: str = DEFAULT_CADDY_CONFIG_PATH
    caddy_binary_path: str = DEFAULT_CADDY_BINARY_PATH

    def detect(self, context: BuildContext) -> bool:
        # Making the app directory writable is best effort.
        try:
            result = subprocess.run(
                ["chmod", "-R", "a+w", str(context.working_dir)],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            context.logger.log(
                operation="detect",
                layer=self.name,
                phase="detect",
                level="warning",
                message=f"could not make working directory writable: {exc}",
            )
            return True
        if result.returncode != 0:
            context.logger.log(
                operation="detect",
                layer=self.name,
                phase="detect",
                level="warning",
                message="could not make working directory writable",
                extra={"stderr": result.stderr.strip()},
            )
        return True

    def caddy_command(self) -> str | None:
        if not Path(self.caddy_config_path).exists():
            return None
        return f"{self.caddy_binary_path} run --config {self.caddy_config_path} --adapter caddyfile"

    def build(self, context: BuildContext) -> BuildResult:
        layer = context.layers.get(self.name).reset()
        config_home = layer.config_dir / "process-compose"
        make_dirs(layer.bin_dir, layer.config_dir, config_home)

        agent_script = copy_file(
            context.buildpack_dir / "scripts" / "agent.sh",
            layer.bin_dir / "agent.sh",
            mode=0o755,
        )

        dev_command = read_dev_process(context.working_dir)
        template = load_template(context.buildpack_dir / "config" / "process-compose.yaml")
        config = render_config(
            template,
            dev_command=dev_command,
            agent_command=str(agent_script),
            caddy_command=self.caddy_command(),
        )
        config_path = write_config(config, layer.config_dir / "process-compose.yaml")

        layer.launch = True
        layer.build = True
        layer.cache = False
        layer.default_launch_env("PROCESS_COMPOSE_HOME", str(config_home))
        layer.default_launch_env("TERM", "xterm-256color")
        layer.default_launch_env("PC_DISABLE_TUI", "1")
        layer.default_launch_env("PC_LOG_FILE", "/tmp/process-compose.log")
        layer.default_launch_env("CADDY_CONFIG", self.caddy_config_path)
        layer.metadata = LayerMetadata(dev_command=dev_command)
        layer.save()

        context.log(self.name, "install", f"installed runtime with dev process: {dev_command}")
        return BuildResult(
            layers=[layer],
            processes=[
                DirectProcess(
                    type="dev",
                    command=("pkgx",),
                    args=("process-compose", "--tui=false", "-f", str(config_path)),
                    default=True,
                )
            ],
        )
