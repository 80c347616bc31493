"""Readers for the installed package database and OS identity.

The apk installed database (``lib/apk/db/installed``) is a sequence of
blank-line separated stanzas of ``<letter>:<value>`` lines. Only the fields
needed for the SBOM are read:

- ``P`` package name
- ``V`` version
- ``T`` description
- ``L`` license expression
- ``D`` space separated dependency specifiers
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from apk_imagegen.types import InstalledPackage, OSRelease

logger = logging.getLogger(__name__)

INSTALLED_DB_PATH = Path("lib/apk/db/installed")
OS_RELEASE_PATH = Path("etc/os-release")


def _stanzas(lines: Iterable[str]) -> Iterator[dict[str, list[str]]]:
    current: dict[str, list[str]] = {}
    for raw in lines:
        line = raw.rstrip("\n")
        if not line:
            if current:
                yield current
                current = {}
            continue
        key, sep, value = line.partition(":")
        if not sep or len(key) != 1:
            logger.debug("Skipping malformed installed db line: %r", line)
            continue
        current.setdefault(key, []).append(value)
    if current:
        yield current


def parse_installed(lines: Iterable[str]) -> list[InstalledPackage]:
    """Parse installed database content into packages.

    Args:
        lines: Lines of the installed database.

    Returns:
        Packages in database order. Stanzas without a name are skipped.
    """
    packages: list[InstalledPackage] = []
    for stanza in _stanzas(lines):
        name = stanza.get("P", [""])[0]
        if not name:
            continue
        depends: list[str] = []
        for value in stanza.get("D", []):
            depends.extend(value.split())
        packages.append(
            InstalledPackage(
                name=name,
                version=stanza.get("V", [""])[0],
                description=stanza.get("T", [""])[0],
                license=stanza.get("L", [""])[0],
                dependencies=depends,
            )
        )
    return packages


def read_installed_packages(work_dir: Path) -> list[InstalledPackage]:
    """Read the installed packages of an image filesystem.

    Args:
        work_dir: Root of the image filesystem.

    Returns:
        Installed packages, empty if the database does not exist.

    Raises:
        OSError: If the database exists but cannot be read.
    """
    db_path = work_dir / INSTALLED_DB_PATH
    if not db_path.exists():
        logger.warning("Installed database not found: %s", db_path)
        return []
    with db_path.open(encoding="utf-8") as f:
        packages = parse_installed(f)
    logger.debug("Read %d installed packages from %s", len(packages), db_path)
    return packages


def parse_os_release(lines: Iterable[str]) -> OSRelease:
    """Parse os-release content.

    Args:
        lines: Lines of an os-release file.

    Returns:
        OSRelease with ID, NAME and VERSION_ID; id defaults to ``unknown``.
    """
    values: dict[str, str] = {}
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        values[key.strip()] = value.strip().strip("\"'")
    return OSRelease(
        id=values.get("ID") or "unknown",
        name=values.get("NAME", ""),
        version=values.get("VERSION_ID", ""),
    )


def read_os_release(work_dir: Path) -> OSRelease:
    """Read the OS identity of an image filesystem.

    Args:
        work_dir: Root of the image filesystem.

    Returns:
        OSRelease, with defaults if os-release does not exist.
    """
    path = work_dir / OS_RELEASE_PATH
    if not path.exists():
        logger.warning("os-release not found: %s", path)
        return OSRelease()
    with path.open(encoding="utf-8") as f:
        return parse_os_release(f)


__all__ = [
    "INSTALLED_DB_PATH",
    "OS_RELEASE_PATH",
    "parse_installed",
    "parse_os_release",
    "read_installed_packages",
    "read_os_release",
]
