"""Post-build assertions.

An assertion is a callable taking the build context and raising an
exception if the finished filesystem violates an invariant. All assertions
run concurrently and every failure is reported.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from apk_imagegen.build.concurrency import JoinPolicy, run_concurrently
from apk_imagegen.build.context import Assertion, BuildContext
from apk_imagegen.errors import AssertionFailure
from apk_imagegen.sbom.installed import read_installed_packages

logger = logging.getLogger(__name__)


def run_assertions(ctx: BuildContext, assertions: Iterable[Assertion] | None = None) -> None:
    """Run assertions against a build.

    Args:
        ctx: Build context.
        assertions: Assertions to run; defaults to ``ctx.assertions``.

    Raises:
        AssertionFailure: If any assertion failed; carries every failure.
    """
    selected = list(ctx.assertions if assertions is None else assertions)
    operations = {
        f"assertion-{i}": (lambda a=a: a(ctx)) for i, a in enumerate(selected)
    }
    failures = run_concurrently(operations, JoinPolicy.AGGREGATE)
    if failures:
        raise AssertionFailure([f.error for f in failures])
    logger.debug("%d assertion(s) passed", len(selected))


def require_paths(*paths: str) -> Assertion:
    """Assert that paths exist in the image filesystem."""

    def check(ctx: BuildContext) -> None:
        missing = [p for p in paths if not (ctx.work_dir / p.lstrip("/")).exists()]
        if missing:
            raise AssertionError(f"missing required paths: {', '.join(missing)}")

    return check


def require_packages(*names: str) -> Assertion:
    """Assert that packages are recorded in the installed database."""

    def check(ctx: BuildContext) -> None:
        installed = {p.name for p in read_installed_packages(ctx.work_dir)}
        missing = [n for n in names if n not in installed]
        if missing:
            raise AssertionError(f"missing required packages: {', '.join(missing)}")

    return check


__all__ = ["require_packages", "require_paths", "run_assertions"]
