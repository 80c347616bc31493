"""CPU architectures for container images.

Architectures are named the way OCI platform descriptors name them
(``amd64``, ``arm/v7``). apk uses its own names (``x86_64``, ``armv7``);
both spellings are accepted on input and normalized here. Names this module
does not know are carried through parsing and rejected only when a build
architecture is selected.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from apk_imagegen.errors import ConfigurationValidationError


@dataclass(frozen=True)
class Platform:
    """OCI platform triple for an architecture."""

    os: str
    architecture: str
    variant: str = ""

    def __str__(self) -> str:
        parts = [self.os, self.architecture]
        if self.variant:
            parts.append(self.variant)
        return "/".join(parts)


class Architecture(str, Enum):
    """A canonical CPU architecture."""

    I386 = "386"
    AMD64 = "amd64"
    ARM64 = "arm64"
    ARMV6 = "arm/v6"
    ARMV7 = "arm/v7"
    PPC64LE = "ppc64le"
    RISCV64 = "riscv64"
    S390X = "s390x"

    def to_apk(self) -> str:
        """Return the apk-style name of this architecture."""
        return _TO_APK.get(self, self.value)

    def to_oci_platform(self) -> Platform:
        """Return the OCI platform descriptor for this architecture."""
        arch, _, variant = self.value.partition("/")
        return Platform(os="linux", architecture=arch, variant=variant)

    @classmethod
    def from_string(cls, raw: str) -> Architecture:
        """Parse a canonical or apk-style architecture name.

        Raises:
            ConfigurationValidationError: If the name is not a known architecture.
        """
        value = _FROM_APK.get(raw, raw)
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationValidationError(
                f"unsupported architecture '{raw}'"
            ) from None


_TO_APK = {
    Architecture.I386: "x86",
    Architecture.AMD64: "x86_64",
    Architecture.ARM64: "aarch64",
    Architecture.ARMV6: "armhf",
    Architecture.ARMV7: "armv7",
}
_FROM_APK = {apk: arch.value for arch, apk in _TO_APK.items()}

# Host machine names (as reported by uname) that differ from apk names
_HOST_MACHINES = {"i386": "x86", "i686": "x86", "armv6l": "armhf", "armv7l": "armv7"}

# Standard set used when a configuration names no architectures.
ALL_ARCHITECTURES: tuple[Architecture, ...] = tuple(
    sorted(Architecture, key=lambda a: a.value)
)


def canonical_architecture(raw: str) -> str:
    """Return the canonical name for an architecture name.

    apk-style names are mapped to their canonical equivalent; any other name
    is returned unchanged.
    """
    name = raw.value if isinstance(raw, Architecture) else raw
    return _FROM_APK.get(name, name)


def parse_architectures(raw: Iterable[str]) -> list[str]:
    """Parse architecture names into canonical, deduplicated, sorted names.

    apk-style names (``x86_64``) are mapped to their canonical equivalent
    (``amd64``). Unrecognized names are kept as given. The result is sorted
    by name, so two builds given the same names in a different order produce
    identical output, and parsing a result again returns it unchanged.

    Args:
        raw: Architecture names, canonical or apk-style.

    Returns:
        Sorted list of unique canonical names.
    """
    return sorted({canonical_architecture(s) for s in raw})


def select_architecture(
    configured: Sequence[str],
    requested: str | None = None,
    host: str | None = None,
) -> Architecture:
    """Pick the architecture to build from the configured set.

    An explicit request must be one of the configured architectures.
    Without one, the host architecture is used when it is configured,
    otherwise the first configured architecture.

    Args:
        configured: Canonical architecture names the image is built for.
        requested: Architecture asked for by the caller, if any.
        host: Machine name of the build host, e.g. ``platform.machine()``.

    Returns:
        The architecture to build.

    Raises:
        ConfigurationValidationError: If a configured architecture is not
            supported, none is configured, or the requested one is not
            configured.
    """
    supported = [Architecture.from_string(name) for name in configured]
    if not supported:
        raise ConfigurationValidationError("no architectures configured")

    if requested is not None:
        wanted = canonical_architecture(requested)
        for arch in supported:
            if arch.value == wanted:
                return arch
        raise ConfigurationValidationError(
            f"architecture '{wanted}' is not configured "
            f"(configured: {', '.join(a.value for a in supported)})"
        )

    if host is not None:
        wanted = canonical_architecture(_HOST_MACHINES.get(host, host))
        for arch in supported:
            if arch.value == wanted:
                return arch
    return supported[0]


__all__ = [
    "ALL_ARCHITECTURES",
    "Architecture",
    "Platform",
    "canonical_architecture",
    "parse_architectures",
    "select_architecture",
]
