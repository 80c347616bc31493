"""Build context: the mutable state of one image build."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from apk_imagegen.image.architecture import Architecture
from apk_imagegen.image.schema import ImageConfiguration

if TYPE_CHECKING:
    from apk_imagegen.build.apk import PackageManager

logger = logging.getLogger(__name__)

Assertion = Callable[["BuildContext"], None]
Observer = Callable[[str], None]


@dataclass
class BuildContext:
    """State of an image build.

    The context owns the filesystem under ``work_dir`` for the duration of
    the build.

    Attributes:
        work_dir: Root of the image filesystem being built.
        image_configuration: Desired image state.
        package_manager: Collaborator performing package operations.
        arch: Architecture being built.
        assertions: Checks run against the finished filesystem.
        sbom_path: Where to write the SBOM; None disables SBOM generation.
        use_proot: Run in-image commands under proot with binary emulation.
        source_date_epoch: Timestamp used for every archive entry.
        tarball_dir: Directory for staged layer tarballs (system temp if None).
        observer: Sink for progress messages; defaults to the module logger.
    """

    work_dir: Path
    image_configuration: ImageConfiguration
    package_manager: PackageManager
    arch: Architecture = Architecture.AMD64
    assertions: list[Assertion] = field(default_factory=list)
    sbom_path: Path | None = None
    use_proot: bool = False
    source_date_epoch: int = 0
    tarball_dir: Path | None = None
    observer: Observer | None = None

    def emit(self, message: str) -> None:
        """Report build progress through the observer."""
        if self.observer is not None:
            self.observer(message)
        else:
            logger.info(message)


__all__ = ["Assertion", "BuildContext", "Observer"]
