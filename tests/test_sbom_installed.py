"""Tests for sbom/installed.py module."""

from apk_imagegen.sbom.installed import (
    INSTALLED_DB_PATH,
    OS_RELEASE_PATH,
    parse_installed,
    parse_os_release,
    read_installed_packages,
    read_os_release,
)
from apk_imagegen.types import InstalledPackage, OSRelease

INSTALLED_DB = """\
C:Q1abcdef=
P:busybox
V:1.36.1-r0
A:x86_64
T:Size optimized toolbox of many common UNIX utilities
L:GPL-2.0-only
D:so:libc.musl-x86_64.so.1 musl>=1.2

P:musl
V:1.2.4-r0
L:MIT

V:9.9
"""


class TestParseInstalled:
    """Tests for parse_installed function."""

    def test_parses_packages(self):
        """Should read name, version, description, license and dependencies."""
        packages = parse_installed(INSTALLED_DB.splitlines(keepends=True))

        assert packages == [
            InstalledPackage(
                name="busybox",
                version="1.36.1-r0",
                description="Size optimized toolbox of many common UNIX utilities",
                license="GPL-2.0-only",
                dependencies=["so:libc.musl-x86_64.so.1", "musl>=1.2"],
            ),
            InstalledPackage(name="musl", version="1.2.4-r0", license="MIT"),
        ]

    def test_empty(self):
        """No lines should mean no packages."""
        assert parse_installed([]) == []


class TestReadInstalledPackages:
    """Tests for read_installed_packages function."""

    def test_missing_database(self, tmp_path):
        """A missing database should yield no packages."""
        assert read_installed_packages(tmp_path) == []

    def test_reads_database(self, tmp_path):
        """Should read the database from the image filesystem."""
        path = tmp_path / INSTALLED_DB_PATH
        path.parent.mkdir(parents=True)
        path.write_text(INSTALLED_DB)
        assert [p.name for p in read_installed_packages(tmp_path)] == ["busybox", "musl"]


class TestOSRelease:
    """Tests for os-release parsing."""

    def test_parse(self):
        """Should read ID, NAME and VERSION_ID, unquoting values."""
        lines = [
            "# comment\n",
            "ID=alpine\n",
            'NAME="Alpine Linux"\n',
            "VERSION_ID='3.19.0'\n",
            "PRETTY_NAME=\"Alpine Linux v3.19\"\n",
        ]
        assert parse_os_release(lines) == OSRelease(
            id="alpine", name="Alpine Linux", version="3.19.0"
        )

    def test_missing_id(self):
        """A missing ID should default to unknown."""
        assert parse_os_release(["NAME=Thing\n"]).id == "unknown"

    def test_missing_file(self, tmp_path):
        """A missing file should yield defaults."""
        assert read_os_release(tmp_path) == OSRelease()

    def test_read_file(self, tmp_path):
        """Should read os-release from the image filesystem."""
        path = tmp_path / OS_RELEASE_PATH
        path.parent.mkdir(parents=True)
        path.write_text("ID=wolfi\nNAME=Wolfi\n")
        assert read_os_release(tmp_path).id == "wolfi"
