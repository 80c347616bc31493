"""Normalization of the apk scripts archive.

apk records package install scripts in ``lib/apk/db/scripts.tar`` with the
time they were installed. The archive is rewritten so every entry carries the
source date epoch instead.
"""

from __future__ import annotations

import logging
import os
import tarfile
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

SCRIPTS_TAR_PATH = Path("lib/apk/db/scripts.tar")


def normalize_scripts_tar(work_dir: Path, source_date_epoch: int) -> bool:
    """Rewrite the scripts archive with fixed timestamps.

    Args:
        work_dir: Root of the image filesystem.
        source_date_epoch: Timestamp applied to every entry.

    Returns:
        True if the archive existed and was rewritten.

    Raises:
        OSError: If the archive cannot be read or replaced.
        tarfile.TarError: If the archive is corrupt.
    """
    path = work_dir / SCRIPTS_TAR_PATH
    if not path.exists():
        logger.debug("No scripts archive at %s", path)
        return False

    fd, tmp_name = tempfile.mkstemp(prefix=".scripts-", suffix=".tar", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as out, tarfile.open(path, "r:") as src, tarfile.open(
            fileobj=out, mode="w:", format=tarfile.PAX_FORMAT
        ) as dst:
            for member in src:
                member.mtime = source_date_epoch
                member.pax_headers = {
                    k: v
                    for k, v in member.pax_headers.items()
                    if k not in ("atime", "ctime", "mtime")
                }
                data = src.extractfile(member) if member.isfile() else None
                dst.addfile(member, data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info("Normalized %s", path)
    return True


__all__ = ["SCRIPTS_TAR_PATH", "normalize_scripts_tar"]
