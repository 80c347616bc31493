"""Build orchestration.

This module provides the high-level build API:
- build_image(): populate ``ctx.work_dir`` with the image filesystem
- build_layer(): build the image and write its reproducible layer tarball

Phases run strictly in order. Operations within the bootstrap and
post-install phases run concurrently; every launched operation finishes
before the phase reports its first failure. A failed phase aborts the build.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable, Mapping
from pathlib import Path

from apk_imagegen.build.accounts import mutate_accounts
from apk_imagegen.build.assertions import run_assertions
from apk_imagegen.build.concurrency import JoinPolicy, run_concurrently
from apk_imagegen.build.context import BuildContext
from apk_imagegen.build.scripts import normalize_scripts_tar
from apk_imagegen.build.supervision import write_supervision_tree
from apk_imagegen.build.tarball import write_archive
from apk_imagegen.errors import (
    BuildPhaseError,
    ConfigurationError,
    ImageGenError,
)
from apk_imagegen.image.architecture import select_architecture
from apk_imagegen.sbom.cyclonedx import generate_sbom
from apk_imagegen.sbom.installed import read_installed_packages, read_os_release
from apk_imagegen.types import BuildPhase

logger = logging.getLogger(__name__)

BUSYBOX_PATH = Path("bin/busybox")


def _phase_error(phase: BuildPhase, operation: str, error: Exception) -> BuildPhaseError:
    code = error.code if isinstance(error, ImageGenError) else "build_phase_error"
    return BuildPhaseError(phase.value, operation, str(error), code=code)


def _run_step(phase: BuildPhase, operation: str, fn: Callable[[], object]) -> None:
    """Run one sequential operation, wrapping failures with phase context."""
    logger.debug("Phase %s: %s", phase.value, operation)
    try:
        fn()
    except Exception as e:
        raise _phase_error(phase, operation, e) from e


def _run_parallel(phase: BuildPhase, operations: Mapping[str, Callable[[], None]]) -> None:
    """Run a phase's operations concurrently and surface the first failure."""
    logger.debug("Phase %s: %s", phase.value, ", ".join(operations))
    failures = run_concurrently(operations, JoinPolicy.FIRST_ERROR)
    if failures:
        failure = failures[0]
        raise _phase_error(phase, failure.name, failure.error) from failure.error


def prepare_configuration(ctx: BuildContext) -> None:
    """Normalize and validate the build's configuration.

    The build architecture must be one of the configured architectures.

    Raises:
        ConfigurationError: If the configuration is invalid.
    """
    ic = ctx.image_configuration
    ic.normalize()
    ic.validate_configuration()
    select_architecture(ic.architectures(), requested=ctx.arch)


def init_work_dir(ctx: BuildContext) -> None:
    """Create the working directory and an empty package database."""
    ctx.work_dir.mkdir(parents=True, exist_ok=True)
    ctx.package_manager.init_db(ctx)


def install_busybox_symlinks(ctx: BuildContext) -> bool:
    """Install busybox applet symlinks inside the image, if busybox exists.

    Returns:
        True if the installer was run.
    """
    if not (ctx.work_dir / BUSYBOX_PATH).exists():
        logger.debug("No busybox in image, skipping symlink installation")
        return False
    ctx.package_manager.execute_chroot(ctx, "/bin/busybox", "--install", "-s")
    return True


def write_sbom(ctx: BuildContext) -> None:
    """Generate the SBOM of the finished filesystem."""
    if ctx.sbom_path is None:
        return
    packages = read_installed_packages(ctx.work_dir)
    os_release = read_os_release(ctx.work_dir)
    generate_sbom(ctx.sbom_path, packages, os_release)


def build_image(ctx: BuildContext) -> None:
    """Build the image filesystem in ``ctx.work_dir``.

    Args:
        ctx: Build context. Its configuration is normalized in place.

    Raises:
        ConfigurationError: If the configuration is invalid; nothing has
            been written to the working directory.
        BuildPhaseError: If a build phase fails.
        AssertionFailure: If any assertion fails.
    """
    pm = ctx.package_manager
    ic = ctx.image_configuration

    ctx.emit("doing pre-flight checks")
    logger.debug("Phase %s: prepare configuration", BuildPhase.VALIDATE.value)
    try:
        prepare_configuration(ctx)
    except ConfigurationError as e:
        raise type(e)(
            f"{BuildPhase.VALIDATE.value}: failed to validate configuration: {e}"
        ) from e

    ctx.emit(f"building image filesystem in {ctx.work_dir}")
    _run_step(BuildPhase.INIT_DB, "initialize apk database", lambda: init_work_dir(ctx))

    _run_parallel(
        BuildPhase.BOOTSTRAP,
        {
            "initialize apk keyring": lambda: pm.init_keyring(ctx),
            "initialize apk repositories": lambda: pm.init_repositories(ctx),
            "initialize apk world": lambda: pm.init_world(ctx),
        },
    )

    _run_step(BuildPhase.FIXATE, "fixate apk world", lambda: pm.fixate_world(ctx))

    _run_parallel(
        BuildPhase.POST_INSTALL,
        {
            "normalize scripts.tar": lambda: normalize_scripts_tar(
                ctx.work_dir, ctx.source_date_epoch
            ),
            "mutate accounts": lambda: mutate_accounts(ctx.work_dir, ic.accounts),
        },
    )

    run_assertions(ctx)

    if ctx.use_proot:
        _run_step(
            BuildPhase.EMULATION,
            "install busybox symlinks",
            lambda: install_busybox_symlinks(ctx),
        )

    _run_step(
        BuildPhase.SUPERVISION,
        "write supervision tree",
        lambda: write_supervision_tree(ctx.work_dir, ic.entrypoint.services),
    )

    if ctx.sbom_path is not None:
        _run_step(BuildPhase.SBOM, "generate SBOM", lambda: write_sbom(ctx))

    ctx.emit(f"finished building filesystem in {ctx.work_dir}")


def build_layer(ctx: BuildContext, output: Path | None = None) -> Path:
    """Build the image and write its layer tarball.

    The tarball is staged in ``ctx.tarball_dir`` and, when ``output`` is
    given, renamed into place once complete.

    Args:
        ctx: Build context.
        output: Optional final path of the tarball.

    Returns:
        Path of the written tarball.
    """
    build_image(ctx)

    stage_dir = output.parent if output is not None else ctx.tarball_dir
    if stage_dir is not None:
        stage_dir.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix="layer-", suffix=".tar.gz", dir=stage_dir)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as out:
            count = write_archive(ctx.work_dir, out, ctx.source_date_epoch)
        if output is not None:
            os.replace(tmp_path, output)
            tmp_path = output
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    ctx.emit(f"wrote layer tarball {tmp_path} ({count} entries)")
    return tmp_path


__all__ = [
    "BUSYBOX_PATH",
    "build_image",
    "build_layer",
    "init_work_dir",
    "install_busybox_symlinks",
    "prepare_configuration",
    "write_sbom",
]
