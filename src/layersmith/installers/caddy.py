"""Caddy installer: compiles caddy with plugins and caches the result.

Build: on a cache miss the layer is reset, xcaddy is downloaded and
extracted into ``bin/``, run once through ``pkgx +go`` to produce
``bin/caddy``, and removed again.
Refresh: on hit and miss alike the default Caddyfile is copied from the
buildpack and the SBOM is rewritten, since configuration can change while
the binary stays cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from layersmith.archive import extract_tar_gz
from layersmith.builders import ToolchainBuilder, XcaddyBuilder, ensure_executable
from layersmith.cache import BuildCache, BuildInputs
from layersmith.errors import FilesystemError
from layersmith.installers.base import BuildContext, copy_file, make_dirs, write_sbom
from layersmith.layers import LayerHandle
from layersmith.models import BuildResult, LayerMetadata, Platform
from layersmith.platforms import detect_go_platform

XCADDY_VERSION = "v0.4.5"
XCADDY_RELEASES_URL = "https://github.com/caddyserver/xcaddy/releases/download"

CADDY_PLUGINS = ("github.com/ggicci/caddy-jwt",)


def xcaddy_archive_url(
    version: str,
    platform: Platform,
    *,
    base_url: str = XCADDY_RELEASES_URL,
) -> str:
    bare = version.removeprefix("v")
    return f"{base_url}/{version}/xcaddy_{bare}_{platform.os}_{platform.arch}.tar.gz"


@dataclass(slots=True)
class CaddyInstaller:
    name: str = "caddy"
    xcaddy_version: str = XCADDY_VERSION
    plugins: tuple[str, ...] = CADDY_PLUGINS
    builder: ToolchainBuilder = field(default_factory=XcaddyBuilder)

    def detect(self, context: BuildContext) -> bool:
        return True

    def inputs(self, context: BuildContext) -> BuildInputs:
        return BuildInputs(
            tool_version=self.xcaddy_version,
            plugins=tuple(self.plugins),
            buildpack_version=context.buildpack_version,
        )

    def build(self, context: BuildContext) -> BuildResult:
        inputs = self.inputs(context)
        layer = context.layers.get(self.name)
        cache = BuildCache(logger=context.logger)
        cache.resolve(
            layer,
            inputs,
            binary_path=layer.bin_dir / "caddy",
            rebuild=lambda target: self._compile(context, target, inputs),
            refresh=lambda target, metadata: self._refresh(context, target, metadata),
        )
        return BuildResult(layers=[layer])

    def _compile(self, context: BuildContext, layer: LayerHandle, inputs: BuildInputs) -> LayerMetadata:
        make_dirs(layer.bin_dir)
        platform = context.platform or detect_go_platform()
        url = xcaddy_archive_url(self.xcaddy_version, platform)

        archive = context.fetch(url, layer=self.name)
        extract_tar_gz(archive.payload, layer.bin_dir)

        xcaddy_path = layer.bin_dir / "xcaddy"
        caddy_path = layer.bin_dir / "caddy"
        ensure_executable(xcaddy_path)

        plugins = inputs.sorted_plugins
        context.log(self.name, "compile", "building caddy", plugins=",".join(plugins))
        self.builder.build(xcaddy_path, caddy_path, plugins)

        try:
            xcaddy_path.unlink(missing_ok=True)
        except OSError as exc:
            raise FilesystemError(
                "Failed to remove xcaddy binary.",
                context={"path": str(xcaddy_path), "cause": str(exc)},
            ) from exc

        caddy_version = self.builder.binary_version(caddy_path)
        context.log(self.name, "compile", "caddy built", version=caddy_version)
        return LayerMetadata(
            build_hash=inputs.key,
            builder_version=self.xcaddy_version,
            plugins=",".join(plugins),
            binary_version=caddy_version,
            buildpack_version=inputs.buildpack_version,
            uri=url,
            checksum=archive.sha256,
        )

    def _refresh(self, context: BuildContext, layer: LayerHandle, metadata: LayerMetadata) -> None:
        copy_file(
            context.buildpack_dir / "config" / "Caddyfile",
            layer.config_dir / "Caddyfile",
        )
        write_sbom(
            layer.path,
            name="caddy",
            metadata={
                "build_hash": metadata.build_hash or "",
                "xcaddy_version": self.xcaddy_version,
                "plugins": metadata.plugins or "",
                "version": metadata.binary_version or "",
            },
        )
