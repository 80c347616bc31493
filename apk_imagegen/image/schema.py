"""Pydantic models for the image configuration.

The image configuration is the declarative manifest describing the desired
image: package contents, entrypoint, accounts and target architectures.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apk_imagegen.errors import ConfigurationValidationError
from apk_imagegen.image.architecture import ALL_ARCHITECTURES, parse_architectures
from apk_imagegen.types import EntrypointType

logger = logging.getLogger(__name__)

# Entrypoint forced by service-bundle images
SUPERVISION_COMMAND = "/bin/s6-svscan /sv"
SUPERVISION_PACKAGE = "s6"


class User(BaseModel):
    """A user account to create in the image.

    Attributes:
        username: Login name.
        uid: Numeric user id (must not be 0).
        gid: Numeric primary group id.
    """

    model_config = ConfigDict(extra="forbid")

    username: str = Field(default="", description="Login name")
    uid: int = Field(default=0, ge=0, description="Numeric user id")
    gid: int = Field(default=0, ge=0, description="Numeric primary group id")


class Group(BaseModel):
    """A group to create in the image.

    Attributes:
        groupname: Group name.
        gid: Numeric group id (must not be 0).
        members: Usernames belonging to the group.
    """

    model_config = ConfigDict(extra="forbid")

    groupname: str = Field(default="", description="Group name")
    gid: int = Field(default=0, ge=0, description="Numeric group id")
    members: list[str] = Field(default_factory=list, description="Member usernames")


class Contents(BaseModel):
    """Package sources and packages to install."""

    model_config = ConfigDict(extra="forbid")

    repositories: list[str] = Field(default_factory=list)
    keyring: list[str] = Field(default_factory=list)
    packages: list[str] = Field(default_factory=list)

    @field_validator("repositories", "keyring", "packages")
    @classmethod
    def validate_string_list(cls, v: list[str]) -> list[str]:
        """Validate list entries are non-empty strings."""
        for item in v:
            if not item or not item.strip():
                raise ValueError("list items must be non-empty strings")
        return v


class Entrypoint(BaseModel):
    """Image entrypoint.

    Attributes:
        type: Entrypoint type; ``service-bundle`` runs a supervision tree.
        command: Command run as the image entrypoint.
        services: Service name to command, for service bundles.
    """

    model_config = ConfigDict(extra="forbid")

    type: str = Field(
        default=EntrypointType.DEFAULT.value, description="Entrypoint type"
    )
    command: str = Field(default="", description="Entrypoint command")
    services: dict[str, str] = Field(
        default_factory=dict, description="Supervised services"
    )


class Accounts(BaseModel):
    """Accounts to create and the identity the image runs as."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    run_as: str = Field(default="", alias="run-as", description="Run-as identity")
    users: list[User] = Field(default_factory=list)
    groups: list[Group] = Field(default_factory=list)


class ImageConfiguration(BaseModel):
    """Complete desired-state descriptor for an image.

    Call ``normalize()`` and then ``validate_configuration()`` exactly once,
    before any build phase begins.
    """

    model_config = ConfigDict(extra="forbid")

    contents: Contents = Field(default_factory=Contents)
    entrypoint: Entrypoint = Field(default_factory=Entrypoint)
    accounts: Accounts = Field(default_factory=Accounts)
    archs: list[str] = Field(
        default_factory=list, description="Target architectures (empty means all)"
    )

    def normalize(self) -> None:
        """Apply entrypoint-driven mutations.

        A ``service-bundle`` entrypoint always runs the supervision tree, and
        its supervisor package is appended to the package list. A duplicate
        entry is harmless: the package manager collapses it when the world
        is fixated.
        """
        if self.entrypoint.type == EntrypointType.SERVICE_BUNDLE.value:
            self.entrypoint.command = SUPERVISION_COMMAND
            self.contents.packages.append(SUPERVISION_PACKAGE)

    def validate_configuration(self) -> None:
        """Check account invariants.

        Raises:
            ConfigurationValidationError: If a user or group has no name or
                a zero id.
        """
        for user in self.accounts.users:
            if not user.username:
                raise ConfigurationValidationError(
                    f"configured user {user!r} has no configured user name"
                )
            if user.uid == 0:
                raise ConfigurationValidationError(
                    f"configured user {user!r} has UID 0"
                )

        for group in self.accounts.groups:
            if not group.groupname:
                raise ConfigurationValidationError(
                    f"configured group {group!r} has no configured group name"
                )
            if group.gid == 0:
                raise ConfigurationValidationError(
                    f"configured group {group!r} has GID 0"
                )

    def architectures(self) -> list[str]:
        """Return the canonical names of the target architectures.

        Unrecognized names are kept; they are rejected when a build
        architecture is selected.
        """
        if not self.archs:
            return [a.value for a in ALL_ARCHITECTURES]
        return parse_architectures(self.archs)

    def summarize(self, emit: Callable[[str], None] | None = None) -> None:
        """Describe the configuration line by line.

        Args:
            emit: Sink receiving each line; defaults to this module's logger.
        """
        if emit is None:
            emit = logger.info

        emit("image configuration:")
        emit("  contents:")
        emit(f"    repositories: {self.contents.repositories}")
        emit(f"    keyring:      {self.contents.keyring}")
        emit(f"    packages:     {self.contents.packages}")
        ep = self.entrypoint
        if ep.type or ep.command or ep.services:
            emit("  entrypoint:")
            emit(f"    type:    {ep.type}")
            emit(f"    cmd:     {ep.command}")
            emit(f"    service: {ep.services}")
        accounts = self.accounts
        if accounts.run_as or accounts.users or accounts.groups:
            emit("  accounts:")
            emit(f"    runas:  {accounts.run_as}")
            emit(f"    users:  {[u.username for u in accounts.users]}")
            emit(f"    groups: {[g.groupname for g in accounts.groups]}")
        if self.archs:
            emit(f"  archs: {self.archs}")


__all__ = [
    "SUPERVISION_COMMAND",
    "SUPERVISION_PACKAGE",
    "Accounts",
    "Contents",
    "Entrypoint",
    "Group",
    "ImageConfiguration",
    "User",
]
