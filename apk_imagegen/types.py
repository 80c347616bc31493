"""Shared type definitions for apk_imagegen.

This module contains dataclasses, enums, and type aliases shared across
subpackages to avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum


class BuildPhase(str, Enum):
    """Phases of an image build, in execution order."""

    VALIDATE = "validate"
    INIT_DB = "init-db"
    BOOTSTRAP = "bootstrap"
    FIXATE = "fixate"
    POST_INSTALL = "post-install"
    ASSERTIONS = "assertions"
    EMULATION = "emulation"
    SUPERVISION = "supervision"
    SBOM = "sbom"


class EntrypointType(str, Enum):
    """Known entrypoint types."""

    DEFAULT = ""
    SERVICE_BUNDLE = "service-bundle"


@dataclass(frozen=True)
class InstalledPackage:
    """A package recorded in the apk installed database."""

    name: str
    version: str
    description: str = ""
    license: str = ""
    dependencies: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class OSRelease:
    """Operating system identity from /etc/os-release."""

    id: str = "unknown"
    name: str = ""
    version: str = ""


__all__ = [
    "BuildPhase",
    "EntrypointType",
    "InstalledPackage",
    "OSRelease",
]
