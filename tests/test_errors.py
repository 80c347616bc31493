"""Tests for the error taxonomy."""

import pytest

from apk_imagegen.errors import (
    AssertionFailure,
    BuildPhaseError,
    ConfigurationError,
    ConfigurationIOError,
    ConfigurationParseError,
    ConfigurationValidationError,
    ImageGenError,
    PackageManagerError,
    SBOMEncodingError,
    SBOMError,
    SBOMWriteError,
)


class TestErrorCodes:
    """Every error should carry a stable code."""

    @pytest.mark.parametrize(
        ("error", "code", "parent"),
        [
            (ConfigurationIOError("x"), "configuration_io_error", ConfigurationError),
            (ConfigurationParseError("x"), "configuration_parse_error", ConfigurationError),
            (ConfigurationValidationError("x"), "validation", ConfigurationError),
            (PackageManagerError("x"), "package_manager_error", ImageGenError),
            (SBOMWriteError("x"), "sbom_write_error", SBOMError),
            (SBOMEncodingError("x"), "sbom_encoding_error", SBOMError),
        ],
    )
    def test_codes(self, error, code, parent):
        """Codes and hierarchy should be stable."""
        assert error.code == code
        assert isinstance(error, parent)
        assert isinstance(error, ImageGenError)


class TestBuildPhaseError:
    """Tests for BuildPhaseError."""

    def test_message(self):
        """The message should name the phase and operation."""
        error = BuildPhaseError("bootstrap", "initialize apk keyring", "no such key")
        assert str(error) == "bootstrap: failed to initialize apk keyring: no such key"
        assert error.phase == "bootstrap"
        assert error.operation == "initialize apk keyring"
        assert error.code == "build_phase_error"

    def test_custom_code(self):
        """The code of the underlying failure can be carried."""
        error = BuildPhaseError("fixate", "fixate apk world", "x", code="package_manager_error")
        assert error.code == "package_manager_error"


class TestAssertionFailure:
    """Tests for AssertionFailure."""

    def test_lists_every_failure(self):
        """The message should list every failed assertion."""
        error = AssertionFailure([AssertionError("a"), ValueError("b")])
        assert error.messages == ["a", "b"]
        assert str(error) == "2 assertion(s) failed:\n  * a\n  * b"
        assert error.code == "assertion_failed"

    def test_phase(self):
        """Assertion failures should name the assertions phase."""
        assert AssertionFailure([AssertionError("a")]).phase == "assertions"
