"""Tests for sbom/purl.py module."""

import pytest

from apk_imagegen.sbom.purl import dependency_name, package_ref


class TestPackageRef:
    """Tests for package_ref function."""

    def test_os_only(self):
        """Should reference the operating system."""
        assert package_ref("wolfi") == "pkg:apk/wolfi"

    def test_name(self):
        """Should reference a package without a version."""
        assert package_ref("wolfi", "busybox") == "pkg:apk/wolfi/busybox"

    def test_name_and_version(self):
        """Should append the version."""
        assert (
            package_ref("alpine", "busybox", "1.36.1-r0")
            == "pkg:apk/alpine/busybox@1.36.1-r0"
        )


class TestDependencyName:
    """Tests for dependency_name function."""

    @pytest.mark.parametrize(
        ("spec", "expected"),
        [
            ("bar", "bar"),
            ("bar>=1.0", "bar"),
            ("bar=1.0-r0", "bar"),
            ("bar~1.2", "bar"),
            ("bar<2", "bar"),
            ("!conflict", None),
            ("so:libc.musl-x86_64.so.1", None),
            ("cmd:sh", None),
            ("virtual:baz", None),
            ("", None),
        ],
    )
    def test_dependency_name(self, spec, expected):
        """Should strip constraints and drop provider specifiers."""
        assert dependency_name(spec) == expected
