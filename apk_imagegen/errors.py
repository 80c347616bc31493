"""Error taxonomy for apk_imagegen.

Every error carries a stable ``code`` attribute so callers (CLI, scripts)
can branch on the failure class without parsing messages.
"""

from __future__ import annotations

from collections.abc import Sequence

from apk_imagegen.types import BuildPhase

# Stable error codes
CONFIGURATION_ERROR = "configuration_error"
CONFIGURATION_IO_ERROR = "configuration_io_error"
CONFIGURATION_PARSE_ERROR = "configuration_parse_error"
VALIDATION_ERROR = "validation"
BUILD_PHASE_ERROR = "build_phase_error"
PACKAGE_MANAGER_ERROR = "package_manager_error"
ASSERTION_FAILED = "assertion_failed"
ARCHIVE_ERROR = "archive_error"
SBOM_ERROR = "sbom_error"
SBOM_WRITE_ERROR = "sbom_write_error"
SBOM_ENCODING_ERROR = "sbom_encoding_error"


class ImageGenError(Exception):
    """Base error for all apk_imagegen failures."""

    def __init__(self, message: str, code: str = "imagegen_error") -> None:
        super().__init__(message)
        self.code = code


class ConfigurationError(ImageGenError):
    """Raised when an image configuration is malformed or invalid."""

    def __init__(self, message: str, code: str = CONFIGURATION_ERROR) -> None:
        super().__init__(message, code=code)


class ConfigurationIOError(ConfigurationError):
    """Raised when an image configuration file cannot be read."""

    def __init__(self, message: str, code: str = CONFIGURATION_IO_ERROR) -> None:
        super().__init__(message, code=code)


class ConfigurationParseError(ConfigurationError):
    """Raised when an image configuration cannot be decoded."""

    def __init__(self, message: str, code: str = CONFIGURATION_PARSE_ERROR) -> None:
        super().__init__(message, code=code)


class ConfigurationValidationError(ConfigurationError):
    """Raised when an image configuration violates an invariant."""

    def __init__(self, message: str, code: str = VALIDATION_ERROR) -> None:
        super().__init__(message, code=code)


class BuildPhaseError(ImageGenError):
    """Raised when a build phase fails.

    Attributes:
        phase: Name of the failed phase.
        operation: Name of the failed operation within the phase.
    """

    def __init__(
        self,
        phase: str,
        operation: str,
        message: str,
        code: str = BUILD_PHASE_ERROR,
    ) -> None:
        super().__init__(f"{phase}: failed to {operation}: {message}", code=code)
        self.phase = phase
        self.operation = operation


class PackageManagerError(ImageGenError):
    """Raised when a package manager operation fails.

    Attributes:
        exit_code: Exit code of the failed command, if one was run.
        stderr: Captured error output of the failed command.
    """

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        stderr: str | None = None,
        code: str = PACKAGE_MANAGER_ERROR,
    ) -> None:
        super().__init__(message, code=code)
        self.exit_code = exit_code
        self.stderr = stderr


class AssertionFailure(ImageGenError):
    """Raised when one or more post-build assertions fail.

    Attributes:
        phase: Name of the build phase that ran the assertions.
        errors: Every individual assertion failure, in completion order.
    """

    phase = BuildPhase.ASSERTIONS.value

    def __init__(
        self, errors: Sequence[BaseException], code: str = ASSERTION_FAILED
    ) -> None:
        self.errors = list(errors)
        lines = [f"{len(self.errors)} assertion(s) failed:"]
        lines.extend(f"  * {e}" for e in self.errors)
        super().__init__("\n".join(lines), code=code)

    @property
    def messages(self) -> list[str]:
        """Return the message of every failed assertion."""
        return [str(e) for e in self.errors]


class ArchiveError(ImageGenError):
    """Raised when a filesystem entry cannot be archived."""

    def __init__(self, message: str, code: str = ARCHIVE_ERROR) -> None:
        super().__init__(message, code=code)


class SBOMError(ImageGenError):
    """Base error for SBOM generation."""

    def __init__(self, message: str, code: str = SBOM_ERROR) -> None:
        super().__init__(message, code=code)


class SBOMWriteError(SBOMError):
    """Raised when the SBOM destination cannot be written."""

    def __init__(self, message: str, code: str = SBOM_WRITE_ERROR) -> None:
        super().__init__(message, code=code)


class SBOMEncodingError(SBOMError):
    """Raised when the SBOM document cannot be serialized."""

    def __init__(self, message: str, code: str = SBOM_ENCODING_ERROR) -> None:
        super().__init__(message, code=code)


__all__ = [
    "ARCHIVE_ERROR",
    "ASSERTION_FAILED",
    "BUILD_PHASE_ERROR",
    "CONFIGURATION_ERROR",
    "CONFIGURATION_IO_ERROR",
    "CONFIGURATION_PARSE_ERROR",
    "PACKAGE_MANAGER_ERROR",
    "SBOM_ENCODING_ERROR",
    "SBOM_ERROR",
    "SBOM_WRITE_ERROR",
    "VALIDATION_ERROR",
    "ArchiveError",
    "AssertionFailure",
    "BuildPhaseError",
    "ConfigurationError",
    "ConfigurationIOError",
    "ConfigurationParseError",
    "ConfigurationValidationError",
    "ImageGenError",
    "PackageManagerError",
    "SBOMEncodingError",
    "SBOMError",
    "SBOMWriteError",
]
