"""Tests for configuration module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

from apk_imagegen.config import Settings, get_settings, print_settings_json


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self) -> None:
        """Settings should have sensible defaults."""
        with patch.dict(os.environ, {"HOME": "/home/builder"}, clear=True):
            settings = Settings()

        assert settings.work_dir_root == Path("/home/builder/.cache/apk-imagegen/work")
        assert settings.tarball_dir is None
        assert settings.apk_binary == "apk"
        assert settings.proot_binary == "proot"
        assert settings.source_date_epoch == 0
        assert settings.use_proot is False
        assert settings.log_level == "INFO"

    def test_settings_from_env(self) -> None:
        """Settings should be loadable from environment variables."""
        with patch.dict(
            os.environ,
            {
                "APK_IMG_USE_PROOT": "true",
                "APK_IMG_LOG_LEVEL": "DEBUG",
                "APK_IMG_APK_BINARY": "/sbin/apk.static",
            },
        ):
            settings = Settings()
            assert settings.use_proot is True
            assert settings.log_level == "DEBUG"
            assert settings.apk_binary == "/sbin/apk.static"

    def test_source_date_epoch_conventional_env(self) -> None:
        """SOURCE_DATE_EPOCH should be honored without the prefix."""
        with patch.dict(os.environ, {"SOURCE_DATE_EPOCH": "1700000000"}, clear=True):
            settings = Settings()
            assert settings.source_date_epoch == 1700000000

    def test_source_date_epoch_prefixed_env(self) -> None:
        """APK_IMG_SOURCE_DATE_EPOCH should also be honored."""
        with patch.dict(
            os.environ, {"APK_IMG_SOURCE_DATE_EPOCH": "42"}, clear=True
        ):
            settings = Settings()
            assert settings.source_date_epoch == 42

    def test_work_dir_root_from_env(self) -> None:
        """Work dir root should be configurable via env."""
        with patch.dict(os.environ, {"APK_IMG_WORK_DIR_ROOT": "/tmp/test-work"}):
            settings = Settings()
            assert settings.work_dir_root == Path("/tmp/test-work")


class TestGetSettings:
    """Test get_settings function."""

    def test_get_settings_returns_settings(self) -> None:
        """get_settings should return a Settings instance."""
        settings = get_settings()
        assert isinstance(settings, Settings)


class TestPrintSettingsJson:
    """Test print_settings_json function."""

    def test_print_settings_json(self) -> None:
        """print_settings_json should return valid JSON."""
        settings = Settings()
        parsed = json.loads(print_settings_json(settings))

        assert "work_dir_root" in parsed
        assert "apk_binary" in parsed
        assert "source_date_epoch" in parsed
        assert "use_proot" in parsed

    def test_print_settings_json_default(self) -> None:
        """print_settings_json without args should use default settings."""
        parsed = json.loads(print_settings_json())
        assert "work_dir_root" in parsed
