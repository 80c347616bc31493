"""Package URL construction for apk packages."""

from __future__ import annotations

# Characters that end the package name in an apk dependency specifier
DEPENDENCY_CONSTRAINT_CHARS = " ~<>=/!"


def package_ref(os_id: str, name: str | None = None, version: str | None = None) -> str:
    """Build a package URL for an apk package.

    Args:
        os_id: Operating system id (the purl namespace), e.g. ``wolfi``.
        name: Package name; omitted for the operating system itself.
        version: Optional package version.

    Returns:
        Package URL such as ``pkg:apk/wolfi/busybox@1.36.0-r0``.
    """
    ref = f"pkg:apk/{os_id}"
    if name:
        ref = f"{ref}/{name}"
        if version:
            ref = f"{ref}@{version}"
    return ref


def dependency_name(spec: str) -> str | None:
    """Extract the package name from an apk dependency specifier.

    Version constraints are stripped (``bar>=1.0`` -> ``bar``). Provider
    specifiers such as ``so:libc.musl-x86_64.so.1`` cannot be mapped to a
    package and yield ``None``, as does an empty name.

    Args:
        spec: Dependency specifier from the installed database.

    Returns:
        The bare package name, or None if the dependency is not representable.
    """
    if ":" in spec:
        return None
    for i, ch in enumerate(spec):
        if ch in DEPENDENCY_CONSTRAINT_CHARS:
            spec = spec[:i]
            break
    return spec or None


__all__ = ["DEPENDENCY_CONSTRAINT_CHARS", "dependency_name", "package_ref"]
