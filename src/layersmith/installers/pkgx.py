"""pkgx installer: fetches the pkgx tool runner into its own layer."""

from __future__ import annotations

from dataclasses import dataclass

from layersmith.archive import extract_tar_gz
from layersmith.builders import ensure_executable
from layersmith.installers.base import BuildContext, make_dirs
from layersmith.models import BuildResult, LayerMetadata, Platform
from layersmith.platforms import detect_uname_platform

PKGX_BASE_URL = "https://pkgx.sh"


def pkgx_archive_url(platform: Platform, *, base_url: str = PKGX_BASE_URL) -> str:
    return f"{base_url}/{platform.os}/{platform.arch}.tgz"


@dataclass(slots=True)
class PkgxInstaller:
    """Installs ``pkgx`` under ``<layer>/bin``.

    The layer is rebuilt on every run; the archive digest and URL are
    recorded as provenance.
    """

    name: str = "pkgx"
    base_url: str = PKGX_BASE_URL

    def detect(self, context: BuildContext) -> bool:
        return True

    def build(self, context: BuildContext) -> BuildResult:
        platform = context.platform or detect_uname_platform()
        url = pkgx_archive_url(platform, base_url=self.base_url)

        layer = context.layers.get(self.name).reset()
        make_dirs(layer.bin_dir)

        archive = context.fetch(url, layer=self.name)
        report = extract_tar_gz(archive.payload, layer.bin_dir)
        context.log(self.name, "extract", "archive extracted", entries=len(report.entries))

        pkgx_binary = layer.bin_dir / "pkgx"
        if pkgx_binary.exists():
            ensure_executable(pkgx_binary)

        layer.launch = True
        layer.build = True
        layer.cache = True
        layer.metadata = LayerMetadata(
            checksum=archive.sha256,
            uri=url,
            os=platform.os,
            arch=platform.arch,
            buildpack_version=context.buildpack_version,
        )
        layer.save()
        return BuildResult(layers=[layer])
