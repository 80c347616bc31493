"""SBOM generation module.

This module handles:
- Package URL construction
- Reading the installed package database and os-release
- CycloneDX document generation and serialization
"""

from apk_imagegen.sbom.cyclonedx import (
    generate_document,
    generate_sbom,
    write_document,
)
from apk_imagegen.sbom.installed import read_installed_packages, read_os_release
from apk_imagegen.sbom.models import Component, Dependency, Document, License
from apk_imagegen.sbom.purl import dependency_name, package_ref

__all__ = [
    "Component",
    "Dependency",
    "Document",
    "License",
    "dependency_name",
    "generate_document",
    "generate_sbom",
    "package_ref",
    "read_installed_packages",
    "read_os_release",
    "write_document",
]
