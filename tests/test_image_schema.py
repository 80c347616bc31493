"""Tests for image/schema.py module.

Tests normalization, validation and summaries of image configurations.
"""

import pytest
from pydantic import ValidationError

from apk_imagegen.errors import ConfigurationValidationError
from apk_imagegen.image.architecture import ALL_ARCHITECTURES
from apk_imagegen.image.schema import (
    SUPERVISION_COMMAND,
    SUPERVISION_PACKAGE,
    Accounts,
    Group,
    ImageConfiguration,
    User,
)
from apk_imagegen.types import EntrypointType


@pytest.fixture
def full_config_data():
    """Return a complete configuration as parsed from YAML."""
    return {
        "contents": {
            "repositories": ["https://dl-cdn.alpinelinux.org/alpine/edge/main"],
            "keyring": ["/etc/apk/keys/alpine.rsa.pub"],
            "packages": ["alpine-baselayout", "busybox"],
        },
        "entrypoint": {"command": "/bin/sh -l"},
        "accounts": {
            "run-as": "nonroot",
            "users": [{"username": "nonroot", "uid": 65532, "gid": 65532}],
            "groups": [{"groupname": "nonroot", "gid": 65532, "members": ["nonroot"]}],
        },
        "archs": ["x86_64", "aarch64"],
    }


class TestImageConfigurationParsing:
    """Tests for building configurations from data."""

    def test_defaults(self):
        """An empty configuration should be valid with empty sections."""
        ic = ImageConfiguration()
        assert ic.contents.packages == []
        assert ic.entrypoint.type == EntrypointType.DEFAULT.value == ""
        assert ic.accounts.run_as == ""
        assert ic.archs == []

    def test_full(self, full_config_data):
        """Should parse every section."""
        ic = ImageConfiguration.model_validate(full_config_data)
        assert ic.contents.packages == ["alpine-baselayout", "busybox"]
        assert ic.accounts.run_as == "nonroot"
        assert ic.accounts.users[0].uid == 65532
        assert ic.accounts.groups[0].members == ["nonroot"]

    def test_duplicate_packages_tolerated(self):
        """Duplicate packages should not be rejected."""
        ic = ImageConfiguration.model_validate(
            {"contents": {"packages": ["busybox", "busybox"]}}
        )
        assert ic.contents.packages == ["busybox", "busybox"]

    def test_unknown_key_rejected(self):
        """Unknown keys should be rejected."""
        with pytest.raises(ValidationError):
            ImageConfiguration.model_validate({"content": {}})

    def test_negative_uid_rejected(self):
        """Negative ids should be rejected at parse time."""
        with pytest.raises(ValidationError):
            User(username="x", uid=-1)


class TestNormalize:
    """Tests for ImageConfiguration.normalize."""

    def test_service_bundle_without_packages(self):
        """Service bundles should get the supervisor package and command."""
        ic = ImageConfiguration.model_validate(
            {"entrypoint": {"type": "service-bundle"}}
        )
        ic.normalize()
        assert SUPERVISION_PACKAGE in ic.contents.packages
        assert ic.entrypoint.command == SUPERVISION_COMMAND
        assert ic.entrypoint.command == "/bin/s6-svscan /sv"

    def test_service_bundle_overrides_command(self):
        """A configured command should be replaced for service bundles."""
        ic = ImageConfiguration.model_validate(
            {
                "contents": {"packages": ["s6", "nginx"]},
                "entrypoint": {"type": "service-bundle", "command": "/bin/sh"},
            }
        )
        ic.normalize()
        assert ic.entrypoint.command == SUPERVISION_COMMAND
        # duplicate entries are left for the package manager to collapse
        assert ic.contents.packages == ["s6", "nginx", "s6"]

    def test_default_entrypoint_untouched(self, full_config_data):
        """Non service-bundle configurations should not change."""
        ic = ImageConfiguration.model_validate(full_config_data)
        before = ic.model_dump()
        ic.normalize()
        assert ic.model_dump() == before


class TestValidateConfiguration:
    """Tests for ImageConfiguration.validate_configuration."""

    def test_valid(self, full_config_data):
        """A valid configuration should pass."""
        ImageConfiguration.model_validate(full_config_data).validate_configuration()

    def test_user_uid_zero(self):
        """A user with UID 0 should fail."""
        ic = ImageConfiguration(
            accounts=Accounts(users=[User(username="root2", uid=0, gid=0)])
        )
        with pytest.raises(ConfigurationValidationError, match="UID 0"):
            ic.validate_configuration()

    def test_user_without_name(self):
        """A user without a name should fail even with a valid UID."""
        ic = ImageConfiguration(accounts=Accounts(users=[User(uid=1000, gid=1000)]))
        with pytest.raises(ConfigurationValidationError, match="no configured user name"):
            ic.validate_configuration()

    def test_group_gid_zero(self):
        """A group with GID 0 should fail."""
        ic = ImageConfiguration(accounts=Accounts(groups=[Group(groupname="wheel")]))
        with pytest.raises(ConfigurationValidationError, match="GID 0"):
            ic.validate_configuration()

    def test_group_without_name(self):
        """A group without a name should fail."""
        ic = ImageConfiguration(accounts=Accounts(groups=[Group(gid=1000)]))
        with pytest.raises(
            ConfigurationValidationError, match="no configured group name"
        ):
            ic.validate_configuration()

    def test_is_pure(self):
        """Validation should not mutate the configuration."""
        ic = ImageConfiguration.model_validate(
            {"entrypoint": {"type": "service-bundle"}}
        )
        ic.validate_configuration()
        assert ic.contents.packages == []
        assert ic.entrypoint.command == ""

    def test_error_code(self):
        """Validation errors should carry the validation code."""
        ic = ImageConfiguration(accounts=Accounts(users=[User(username="a")]))
        with pytest.raises(ConfigurationValidationError) as exc_info:
            ic.validate_configuration()
        assert exc_info.value.code == "validation"


class TestArchitectures:
    """Tests for ImageConfiguration.architectures."""

    def test_empty_means_all(self):
        """No configured archs should mean the standard set."""
        assert ImageConfiguration().architectures() == [a.value for a in ALL_ARCHITECTURES]

    def test_parsed(self, full_config_data):
        """Configured archs should be canonicalized."""
        ic = ImageConfiguration.model_validate(full_config_data)
        assert ic.architectures() == ["amd64", "arm64"]

    def test_unknown_kept(self):
        """Unrecognized archs should be kept for selection to reject."""
        ic = ImageConfiguration(archs=["x86_64", "mips64"])
        assert ic.architectures() == ["amd64", "mips64"]


class TestSummarize:
    """Tests for ImageConfiguration.summarize."""

    def test_emits_to_injected_sink(self, full_config_data):
        """Summary lines should go to the injected sink."""
        lines: list[str] = []
        ImageConfiguration.model_validate(full_config_data).summarize(lines.append)

        assert lines[0] == "image configuration:"
        assert any("alpine-baselayout" in line for line in lines)
        assert any("runas:  nonroot" in line for line in lines)
        assert any("entrypoint:" in line for line in lines)

    def test_omits_empty_sections(self):
        """Empty entrypoint and accounts sections should be omitted."""
        lines: list[str] = []
        ImageConfiguration().summarize(lines.append)
        assert not any("entrypoint:" in line for line in lines)
        assert not any("accounts:" in line for line in lines)

    def test_defaults_to_logger(self, caplog):
        """Without a sink, the summary should be logged."""
        with caplog.at_level("INFO", logger="apk_imagegen.image.schema"):
            ImageConfiguration().summarize()
        assert "image configuration:" in caplog.text
