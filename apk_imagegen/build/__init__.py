"""Build orchestration module.

This module handles:
- The build context and package manager collaborator
- Phased, concurrent population of the image filesystem
- Account mutation, scripts normalization and the supervision tree
- Post-build assertions
- Reproducible layer tarballs
"""

from apk_imagegen.build.context import BuildContext
from apk_imagegen.build.orchestrator import build_image, build_layer

__all__ = ["BuildContext", "build_image", "build_layer"]

# Submodules are imported explicitly: apk_imagegen.build.tarball, etc.
