"""apk Image Generator - reproducible root filesystems from apk manifests.

This package builds a root filesystem and a reproducible OCI layer tarball
directly from a declarative package manifest, without a container runtime.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
