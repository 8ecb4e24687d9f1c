"""ttyd installer: downloads the prebuilt terminal server binary."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from layersmith.installers.base import BuildContext, make_dirs, write_executable
from layersmith.models import BuildResult, LayerMetadata, Platform
from layersmith.platforms import detect_go_platform, select_asset

TTYD_DEFAULT_VERSION = "1.7.7"
TTYD_RELEASES_URL = "https://github.com/tsl0922/ttyd/releases/download"

TTYD_ASSETS: Mapping[str, str] = {
    "linux/amd64": "ttyd.x86_64",
    "linux/arm64": "ttyd.aarch64",
}


def ttyd_download_url(version: str, asset: str, *, base_url: str = TTYD_RELEASES_URL) -> str:
    return f"{base_url}/{version}/{asset}"


@dataclass(slots=True)
class TtydInstaller:
    name: str = "ttyd"
    default_version: str = TTYD_DEFAULT_VERSION
    assets: Mapping[str, str] = field(default_factory=lambda: dict(TTYD_ASSETS))

    def detect(self, context: BuildContext) -> bool:
        return True

    def resolve_version(self, context: BuildContext) -> str:
        return context.settings.ttyd_version or self.default_version

    def build(self, context: BuildContext) -> BuildResult:
        platform: Platform = context.platform or detect_go_platform()
        asset = select_asset(platform, self.assets)
        version = self.resolve_version(context)
        url = ttyd_download_url(version, asset)

        layer = context.layers.get(self.name).reset()
        make_dirs(layer.bin_dir)

        archive = context.fetch(url, layer=self.name)
        write_executable(layer.bin_dir / "ttyd", archive.payload)
        context.log(self.name, "install", "ttyd binary installed", version=version)

        layer.launch = True
        layer.build = True
        layer.cache = True
        layer.metadata = LayerMetadata(
            checksum=archive.sha256,
            uri=url,
            version=version,
            asset=asset,
            os=platform.os,
            arch=platform.arch,
            buildpack_version=context.buildpack_version,
        )
        layer.save()
        return BuildResult(layers=[layer])
