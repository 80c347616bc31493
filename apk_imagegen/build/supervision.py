"""Supervision tree writer.

Each configured service gets an s6 service directory ``sv/<name>`` whose
``run`` script executes the service command through execline. The
``service-bundle`` entrypoint launches ``s6-svscan /sv`` over this tree.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

SUPERVISION_ROOT = Path("sv")
RUN_SCRIPT_MODE = 0o755


def run_script(command: str) -> str:
    """Return the contents of a service run script."""
    return f"#!/bin/execlineb -P\n{command}\n"


def write_supervision_tree(work_dir: Path, services: Mapping[str, str]) -> list[Path]:
    """Write the supervision tree for the configured services.

    The tree root is always created, even without services.

    Args:
        work_dir: Root of the image filesystem.
        services: Service name to command.

    Returns:
        Paths of the written run scripts, in service name order.

    Raises:
        ValueError: If a service name is not a single path component.
        OSError: If the tree cannot be written.
    """
    root = work_dir / SUPERVISION_ROOT
    root.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for name in sorted(services):
        if not name or "/" in name or name in (".", ".."):
            raise ValueError(f"invalid service name '{name}'")
        service_dir = root / name
        service_dir.mkdir(parents=True, exist_ok=True)
        run_path = service_dir / "run"
        run_path.write_text(run_script(services[name]), encoding="utf-8")
        run_path.chmod(RUN_SCRIPT_MODE)
        logger.debug("Wrote service %s", name)
        written.append(run_path)

    logger.info("Wrote supervision tree with %d service(s)", len(written))
    return written


__all__ = ["RUN_SCRIPT_MODE", "SUPERVISION_ROOT", "run_script", "write_supervision_tree"]
