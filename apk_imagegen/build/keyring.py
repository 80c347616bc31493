"""Keyring installation.

Keyring entries are either local file paths or http(s) URLs. Each key is
placed in ``etc/apk/keys/`` of the image under its base name.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import urlparse

import httpx

from apk_imagegen.errors import PackageManagerError

logger = logging.getLogger(__name__)

KEYS_DIR = Path("etc/apk/keys")

# Timeout for key downloads (seconds)
FETCH_TIMEOUT = 60

# Chunk size for downloads (bytes)
FETCH_CHUNK_SIZE = 64 * 1024


def is_remote(entry: str) -> bool:
    """Return True if a keyring entry is an http(s) URL."""
    return urlparse(entry).scheme in ("http", "https")


def key_filename(entry: str) -> str:
    """Return the file name a keyring entry is installed under.

    Raises:
        PackageManagerError: If no file name can be derived from the entry.
    """
    path = urlparse(entry).path if is_remote(entry) else entry
    name = Path(path).name
    if not name:
        raise PackageManagerError(f"cannot derive key file name from '{entry}'")
    return name


def fetch_key(
    client: httpx.Client,
    url: str,
    dest_path: Path,
    timeout: float = FETCH_TIMEOUT,
) -> Path:
    """Download a remote key.

    Args:
        client: HTTPX client instance.
        url: URL of the key.
        dest_path: Destination path for the key.
        timeout: Download timeout in seconds.

    Returns:
        Path to the downloaded key.

    Raises:
        PackageManagerError: If the download fails.
    """
    logger.info("Fetching key %s", url)
    try:
        with client.stream("GET", url, timeout=timeout) as response:
            response.raise_for_status()
            with dest_path.open("wb") as f:
                for chunk in response.iter_bytes(FETCH_CHUNK_SIZE):
                    f.write(chunk)
    except httpx.HTTPStatusError as e:
        raise PackageManagerError(
            f"HTTP error fetching key {url}: {e.response.status_code}"
        ) from e
    except httpx.TimeoutException as e:
        raise PackageManagerError(f"Timeout fetching key {url}") from e
    except httpx.RequestError as e:
        raise PackageManagerError(f"Network error fetching key {url}: {e}") from e
    return dest_path


def install_keyring(
    work_dir: Path,
    keyring: Sequence[str],
    client: httpx.Client | None = None,
    timeout: float = FETCH_TIMEOUT,
) -> list[Path]:
    """Install keyring material into an image filesystem.

    Args:
        work_dir: Root of the image filesystem.
        keyring: Local paths or URLs of public keys.
        client: Optional HTTPX client; one is created on the first remote
            key and closed before returning.
        timeout: Download timeout in seconds.

    Returns:
        Paths of the installed keys.

    Raises:
        PackageManagerError: If a key cannot be copied or fetched.
    """
    keys_dir = work_dir / KEYS_DIR
    keys_dir.mkdir(parents=True, exist_ok=True)

    installed: list[Path] = []
    owned_client: httpx.Client | None = None

    try:
        for entry in keyring:
            dest = keys_dir / key_filename(entry)
            if is_remote(entry):
                if client is None:
                    client = owned_client = httpx.Client(follow_redirects=True)
                fetch_key(client, entry, dest, timeout=timeout)
            else:
                try:
                    shutil.copyfile(entry, dest)
                except OSError as e:
                    raise PackageManagerError(
                        f"failed to copy key {entry}: {e}"
                    ) from e
            logger.debug("Installed key %s", dest)
            installed.append(dest)
    finally:
        if owned_client is not None:
            owned_client.close()

    return installed


__all__ = [
    "FETCH_TIMEOUT",
    "KEYS_DIR",
    "fetch_key",
    "install_keyring",
    "is_remote",
    "key_filename",
]
