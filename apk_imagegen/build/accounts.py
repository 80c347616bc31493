"""Account mutation: users and groups in the image's account databases."""

from __future__ import annotations

import logging
from pathlib import Path

from apk_imagegen.image.schema import Accounts, Group, User

logger = logging.getLogger(__name__)

PASSWD_PATH = Path("etc/passwd")
GROUP_PATH = Path("etc/group")
DEFAULT_SHELL = "/bin/sh"


def passwd_entry(user: User) -> str:
    """Format a user as an /etc/passwd line."""
    home = f"/home/{user.username}"
    return (
        f"{user.username}:x:{user.uid}:{user.gid}:{user.username}:{home}:"
        f"{DEFAULT_SHELL}"
    )


def group_entry(group: Group) -> str:
    """Format a group as an /etc/group line."""
    return f"{group.groupname}:x:{group.gid}:{','.join(group.members)}"


def _existing_names(path: Path) -> set[str]:
    if not path.exists():
        return set()
    with path.open(encoding="utf-8") as f:
        return {line.split(":", 1)[0] for line in f if line.strip()}


def _append_entries(path: Path, entries: dict[str, str]) -> int:
    existing = _existing_names(path)
    new = [line for name, line in entries.items() if name not in existing]
    if not new:
        return 0

    path.parent.mkdir(parents=True, exist_ok=True)
    needs_newline = path.exists() and path.stat().st_size > 0
    if needs_newline:
        with path.open("rb") as f:
            f.seek(-1, 2)
            needs_newline = f.read(1) != b"\n"

    with path.open("a", encoding="utf-8") as f:
        if needs_newline:
            f.write("\n")
        for line in new:
            f.write(f"{line}\n")
    return len(new)


def mutate_accounts(work_dir: Path, accounts: Accounts) -> None:
    """Create configured groups, users and home directories.

    Entries whose name already exists in the account database are left
    untouched, so running this twice is harmless.

    Args:
        work_dir: Root of the image filesystem.
        accounts: Accounts to create.

    Raises:
        OSError: If an account database cannot be written.
    """
    added_groups = _append_entries(
        work_dir / GROUP_PATH,
        {g.groupname: group_entry(g) for g in accounts.groups},
    )
    added_users = _append_entries(
        work_dir / PASSWD_PATH,
        {u.username: passwd_entry(u) for u in accounts.users},
    )
    for user in accounts.users:
        (work_dir / "home" / user.username).mkdir(parents=True, exist_ok=True)

    logger.info(
        "Added %d group(s) and %d user(s); run-as: %s",
        added_groups,
        added_users,
        accounts.run_as or "(default)",
    )


__all__ = [
    "GROUP_PATH",
    "PASSWD_PATH",
    "group_entry",
    "mutate_accounts",
    "passwd_entry",
]
