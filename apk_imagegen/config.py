"""Configuration settings for apk_imagegen.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_work_dir_root() -> Path:
    """Return the default root for build working directories."""
    return Path.home() / ".cache" / "apk-imagegen" / "work"


def _default_tarball_dir() -> Path:
    """Return the default directory for staged layer tarballs."""
    return Path.home() / ".cache" / "apk-imagegen" / "layers"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the APK_IMG_ prefix.
    The source date epoch also honors the conventional SOURCE_DATE_EPOCH.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="APK_IMG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Paths
    work_dir_root: Path = Field(
        default_factory=_default_work_dir_root,
        description="Root directory for build working directories",
    )
    tarball_dir: Path | None = Field(
        default=None,
        description="Directory for staged layer tarballs (system temp if not set)",
    )

    # Tools
    apk_binary: str = Field(
        default="apk",
        description="apk executable used for package operations",
    )
    proot_binary: str = Field(
        default="proot",
        description="proot executable used to run commands inside the image",
    )

    # Reproducibility
    source_date_epoch: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices(
            "APK_IMG_SOURCE_DATE_EPOCH", "SOURCE_DATE_EPOCH", "source_date_epoch"
        ),
        description="Timestamp (seconds since epoch) used for every archive entry",
    )

    # Operational modes
    use_proot: bool = Field(
        default=False,
        description="Use proot and binary emulation to run commands in the image",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Timeouts (in seconds)
    keyring_fetch_timeout: int = Field(
        default=60,
        ge=1,
        description="Timeout for fetching remote keyring keys",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
