"""Typed installer error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across installers and the CLI."""

    VALIDATION = "E_VALIDATION"
    CONFIG = "E_CONFIG"
    POLICY = "E_POLICY"
    PLATFORM_UNSUPPORTED = "E_PLATFORM_UNSUPPORTED"
    FETCH = "E_FETCH"
    INTEGRITY = "E_INTEGRITY"
    ARCHIVE = "E_ARCHIVE"
    FILESYSTEM = "E_FILESYSTEM"
    BUILD = "E_BUILD"


class LayersmithError(Exception):
    """An installer failure with a stable code.

    ``context`` holds string details; its ``operation`` entry names the stage
    that failed (``fetch``, ``extract``, ``reset``...) and is what the CLI
    reports as the failing stage.
    """

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    @property
    def message(self) -> str:
        return self.args[0]

    @property
    def stage(self) -> str | None:
        return self.context.get("operation") or None

    def __str__(self) -> str:
        details = ", ".join(
            f"{key}={value}"
            for key, value in sorted(self.context.items())
            if value and key != "operation"
        )
        text = self.message
        if details:
            text += f" ({details})"
        if self.hint:
            text += f"\nhint: {self.hint}"
        return text

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(LayersmithError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class ConfigError(LayersmithError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CONFIG, hint=hint, context=context)


class PolicyError(LayersmithError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.POLICY, hint=hint, context=context)


class PlatformUnsupportedError(LayersmithError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.PLATFORM_UNSUPPORTED, hint=hint, context=context
        )


class FetchError(LayersmithError):
    """Network acquisition failed."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.FETCH, hint=hint, context=context)


class BadStatusError(FetchError):
    """The server answered with something other than 200 OK."""

    status: int | None

    def __init__(
        self,
        message: str,
        *,
        status: int | None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, hint=hint, context=context)
        self.status = status


class TransportError(FetchError):
    pass


class BodyReadError(FetchError):
    pass


class IntegrityError(LayersmithError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.INTEGRITY, hint=hint, context=context)


class ArchiveError(LayersmithError):
    """The archive is malformed or malicious."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.ARCHIVE, hint=hint, context=context)


class CorruptCompressionError(ArchiveError):
    pass


class CorruptTarHeaderError(ArchiveError):
    pass


class PathEscapeError(ArchiveError):
    pass


class UnsupportedEntryTypeError(ArchiveError):
    pass


class FilesystemError(LayersmithError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.FILESYSTEM, hint=hint, context=context)


class BuildError(LayersmithError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.BUILD, hint=hint, context=context)


class ToolchainFailedError(BuildError):
    """The external toolchain exited non-zero; ``diagnostics`` holds its output."""

    diagnostics: str

    def __init__(
        self,
        message: str,
        *,
        diagnostics: str = "",
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, hint=hint, context=context)
        self.diagnostics = diagnostics


__all__ = [
    "ArchiveError",
    "BadStatusError",
    "BodyReadError",
    "BuildError",
    "ConfigError",
    "CorruptCompressionError",
    "CorruptTarHeaderError",
    "ErrorCode",
    "FetchError",
    "FilesystemError",
    "IntegrityError",
    "LayersmithError",
    "PathEscapeError",
    "PlatformUnsupportedError",
    "PolicyError",
    "ToolchainFailedError",
    "TransportError",
    "UnsupportedEntryTypeError",
    "ValidationError",
]
