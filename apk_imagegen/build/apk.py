"""Package manager operations on an image filesystem.

The orchestrator only depends on the ``PackageManager`` protocol. The
``ApkCommandRunner`` implementation drives the ``apk`` binary against the
build's working directory (``--root``); dependency resolution and package
fetching are left entirely to apk.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from apk_imagegen.build.keyring import install_keyring
from apk_imagegen.errors import PackageManagerError

if TYPE_CHECKING:
    from apk_imagegen.build.context import BuildContext
    from apk_imagegen.config import Settings

logger = logging.getLogger(__name__)

APK_DIRS = ("etc/apk", "etc/apk/keys", "lib/apk/db", "var/cache/apk")
REPOSITORIES_PATH = Path("etc/apk/repositories")
WORLD_PATH = Path("etc/apk/world")


class PackageManager(Protocol):
    """Operations the orchestrator performs through the package manager.

    Every operation either returns normally or raises an exception
    describing the failure.
    """

    def init_db(self, ctx: BuildContext) -> None:
        """Create an empty package database."""

    def init_keyring(self, ctx: BuildContext) -> None:
        """Install the configured signing keys."""

    def init_repositories(self, ctx: BuildContext) -> None:
        """Write the configured repository list."""

    def init_world(self, ctx: BuildContext) -> None:
        """Write the desired top-level package set."""

    def fixate_world(self, ctx: BuildContext) -> None:
        """Install and remove packages until the filesystem matches the world."""

    def execute_chroot(self, ctx: BuildContext, *args: str) -> None:
        """Run a command inside the image filesystem."""


def write_lines(path: Path, lines: Sequence[str]) -> None:
    """Write one entry per line, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for line in lines:
            f.write(f"{line}\n")


class ApkCommandRunner:
    """PackageManager backed by the apk command line tool."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _run(self, cmd: list[str], cwd: Path | None = None) -> None:
        cmd_str = shlex.join(cmd)
        logger.info("Executing: %s", cmd_str)
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise PackageManagerError(f"failed to execute {cmd_str}: {e}") from e

        if result.stdout:
            logger.debug("%s", result.stdout.rstrip())
        if result.returncode != 0:
            raise PackageManagerError(
                f"{cmd_str} failed with exit code {result.returncode}: "
                f"{result.stderr.strip()}",
                exit_code=result.returncode,
                stderr=result.stderr,
            )

    def _apk(self, ctx: BuildContext, *args: str) -> list[str]:
        return [
            self.settings.apk_binary,
            *args,
            "--root",
            str(ctx.work_dir),
            "--arch",
            ctx.arch.to_apk(),
        ]

    def init_db(self, ctx: BuildContext) -> None:
        for d in APK_DIRS:
            (ctx.work_dir / d).mkdir(parents=True, exist_ok=True)
        self._run(self._apk(ctx, "add", "--initdb"))

    def init_keyring(self, ctx: BuildContext) -> None:
        install_keyring(
            ctx.work_dir,
            ctx.image_configuration.contents.keyring,
            timeout=self.settings.keyring_fetch_timeout,
        )

    def init_repositories(self, ctx: BuildContext) -> None:
        write_lines(
            ctx.work_dir / REPOSITORIES_PATH,
            ctx.image_configuration.contents.repositories,
        )

    def init_world(self, ctx: BuildContext) -> None:
        write_lines(
            ctx.work_dir / WORLD_PATH,
            ctx.image_configuration.contents.packages,
        )

    def fixate_world(self, ctx: BuildContext) -> None:
        self._run(
            self._apk(
                ctx, "fix", "--no-scripts", "--no-cache", "--update-cache"
            )
        )

    def execute_chroot(self, ctx: BuildContext, *args: str) -> None:
        self._run([self.settings.proot_binary, "-r", str(ctx.work_dir), *args])


__all__ = [
    "APK_DIRS",
    "REPOSITORIES_PATH",
    "WORLD_PATH",
    "ApkCommandRunner",
    "PackageManager",
    "write_lines",
]
