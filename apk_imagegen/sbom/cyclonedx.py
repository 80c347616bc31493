"""CycloneDX SBOM generation.

This module handles:
- Building one component per installed package
- Building the dependency graph from declared dependency specifiers
- Nesting package components under a root operating-system component
- Writing the document as indented JSON
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from apk_imagegen.errors import SBOMEncodingError, SBOMWriteError
from apk_imagegen.sbom.models import Component, Dependency, Document, License
from apk_imagegen.sbom.purl import dependency_name, package_ref
from apk_imagegen.types import InstalledPackage, OSRelease

logger = logging.getLogger(__name__)


def package_component(os_id: str, pkg: InstalledPackage) -> Component:
    """Build the component describing a package."""
    return Component(
        bom_ref=package_ref(os_id, pkg.name),
        name=pkg.name,
        version=pkg.version,
        description=pkg.description,
        licenses=[License(expression=pkg.license)],
        purl=package_ref(os_id, pkg.name, pkg.version),
    )


def package_dependency(os_id: str, pkg: InstalledPackage) -> Dependency:
    """Build the dependency edge list of a package.

    Virtual (provider) dependencies are dropped because they cannot be
    mapped to a package component.
    """
    refs: list[str] = []
    for spec in pkg.dependencies:
        name = dependency_name(spec)
        if name is None:
            continue
        refs.append(package_ref(os_id, name))
    return Dependency(ref=package_ref(os_id, pkg.name), depends_on=refs)


def generate_document(
    packages: Sequence[InstalledPackage],
    os_release: OSRelease,
) -> Document:
    """Build a CycloneDX document for an image.

    Args:
        packages: Installed packages.
        os_release: Identity of the image operating system.

    Returns:
        Document with one root OS component nesting all package components.
    """
    components = [package_component(os_release.id, pkg) for pkg in packages]
    dependencies = [package_dependency(os_release.id, pkg) for pkg in packages]

    root = Component(
        bom_ref=package_ref(os_release.id),
        name=os_release.name,
        version=os_release.version,
        components=components or None,
    )
    return Document(components=[root], dependencies=dependencies or None)


def document_to_json(document: Document) -> str:
    """Serialize a document as two-space indented JSON.

    Raises:
        SBOMEncodingError: If the document cannot be serialized.
    """
    try:
        data = document.model_dump(by_alias=True, exclude_none=True)
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    except (TypeError, ValueError, ValidationError) as e:
        raise SBOMEncodingError(f"encoding BOM: {e}") from e


def write_document(document: Document, path: Path) -> Path:
    """Write a document to a file.

    Args:
        document: Document to write.
        path: Destination path.

    Returns:
        Path to the written document.

    Raises:
        SBOMEncodingError: If the document cannot be serialized.
        SBOMWriteError: If the destination cannot be written.
    """
    content = document_to_json(document)
    try:
        with path.open("w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise SBOMWriteError(f"opening SBOM path {path} for writing: {e}") from e

    logger.info("Wrote SBOM to %s", path)
    return path


def generate_sbom(
    path: Path,
    packages: Sequence[InstalledPackage],
    os_release: OSRelease,
) -> Document:
    """Generate and write a CycloneDX SBOM.

    Args:
        path: Destination path.
        packages: Installed packages.
        os_release: Identity of the image operating system.

    Returns:
        The written document.
    """
    document = generate_document(packages, os_release)
    write_document(document, path)
    return document


__all__ = [
    "document_to_json",
    "generate_document",
    "generate_sbom",
    "package_component",
    "package_dependency",
    "write_document",
]
