"""Reproducible archive writer.

This module serializes a filesystem tree into a gzip-compressed tar stream
whose bytes depend only on the tree's content:

- entries are visited root first, then depth-first in lexicographic order
- every entry's mtime, atime and ctime is the source date epoch
- owner names are not recorded, only numeric ids
- the gzip header carries the epoch and no file name

Writing is single-threaded and streams file contents.
"""

from __future__ import annotations

import gzip
import logging
import os
import stat
import tarfile
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO, Protocol

from apk_imagegen.errors import ArchiveError

logger = logging.getLogger(__name__)

ROOT = "."


class ArchiveSource(Protocol):
    """A filesystem tree that can be archived.

    Paths are POSIX paths relative to the tree root; the root itself is ``.``.
    """

    def list_dir(self, path: str) -> list[str]:
        """Return the entry names of a directory, in any order."""

    def lstat(self, path: str) -> os.stat_result:
        """Return file status without following symlinks."""

    def open(self, path: str) -> BinaryIO:
        """Open a regular file for binary reading."""

    def readlink(self, path: str) -> str:
        """Return the literal target of a symlink."""


class DirectorySource:
    """ArchiveSource over a directory on the local filesystem."""

    def __init__(self, base: Path | str) -> None:
        self.base = Path(base)

    def _resolve(self, path: str) -> Path:
        return self.base if path == ROOT else self.base / path

    def list_dir(self, path: str) -> list[str]:
        return os.listdir(self._resolve(path))

    def lstat(self, path: str) -> os.stat_result:
        return os.lstat(self._resolve(path))

    def open(self, path: str) -> BinaryIO:
        return self._resolve(path).open("rb")

    def readlink(self, path: str) -> str:
        return os.readlink(self._resolve(path))


def walk(source: ArchiveSource, path: str = ROOT) -> Iterator[tuple[str, os.stat_result]]:
    """Yield every entry of a tree with its status, in archive order."""
    st = source.lstat(path)
    yield path, st
    if stat.S_ISDIR(st.st_mode):
        for name in sorted(source.list_dir(path)):
            child = name if path == ROOT else f"{path}/{name}"
            yield from walk(source, child)


def make_tarinfo(
    source: ArchiveSource,
    path: str,
    st: os.stat_result,
    source_date_epoch: int,
) -> tarfile.TarInfo:
    """Build the archive header for an entry.

    Raises:
        ArchiveError: If the entry type cannot be archived.
    """
    info = tarfile.TarInfo(path)
    info.mode = stat.S_IMODE(st.st_mode)
    info.uid = st.st_uid
    info.gid = st.st_gid
    info.uname = ""
    info.gname = ""
    info.mtime = source_date_epoch
    info.pax_headers = {
        "atime": str(source_date_epoch),
        "ctime": str(source_date_epoch),
    }

    mode = st.st_mode
    if stat.S_ISREG(mode):
        info.type = tarfile.REGTYPE
        info.size = st.st_size
    elif stat.S_ISDIR(mode):
        info.type = tarfile.DIRTYPE
    elif stat.S_ISLNK(mode):
        info.type = tarfile.SYMTYPE
        info.linkname = source.readlink(path)
    elif stat.S_ISFIFO(mode):
        info.type = tarfile.FIFOTYPE
    elif stat.S_ISCHR(mode) or stat.S_ISBLK(mode):
        info.type = tarfile.CHRTYPE if stat.S_ISCHR(mode) else tarfile.BLKTYPE
        info.devmajor = os.major(st.st_rdev)
        info.devminor = os.minor(st.st_rdev)
    else:
        raise ArchiveError(f"{path}: unsupported file type {stat.S_IFMT(mode):o}")
    return info


def write_archive_from_source(
    source: ArchiveSource,
    out: BinaryIO,
    source_date_epoch: int,
) -> int:
    """Write a gzip-compressed tar archive of a tree.

    Any error aborts the archive; discarding partial output is the caller's
    responsibility.

    Args:
        source: Tree to archive.
        out: Binary sink for the compressed archive.
        source_date_epoch: Timestamp applied to every entry.

    Returns:
        Number of entries written.

    Raises:
        ArchiveError: If an entry type cannot be archived.
        OSError: If reading the tree or writing the sink fails.
    """
    count = 0
    with gzip.GzipFile(
        filename="", mode="wb", fileobj=out, mtime=source_date_epoch
    ) as gz, tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar:
        for path, st in walk(source):
            info = make_tarinfo(source, path, st, source_date_epoch)
            if info.isreg():
                with source.open(path) as data:
                    tar.addfile(info, data)
            else:
                tar.addfile(info)
            count += 1

    logger.debug("Archived %d entries", count)
    return count


def write_archive(src: Path | str, out: BinaryIO, source_date_epoch: int) -> int:
    """Write a reproducible archive of a directory.

    Args:
        src: Directory to archive.
        out: Binary sink for the compressed archive.
        source_date_epoch: Timestamp applied to every entry.

    Returns:
        Number of entries written.

    Raises:
        ArchiveError: If writing the archive fails.
    """
    try:
        return write_archive_from_source(DirectorySource(src), out, source_date_epoch)
    except (OSError, tarfile.TarError) as e:
        raise ArchiveError(f"writing TAR archive failed: {e}") from e


__all__ = [
    "ArchiveSource",
    "DirectorySource",
    "make_tarinfo",
    "walk",
    "write_archive",
    "write_archive_from_source",
]
