"""Configuration settings for pkgshift.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the PKGSHIFT_ prefix.
    The historic RPMBUILDOPT and RPMINSTALLOPT variables are accepted as
    aliases for the extra rpm options. CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="PKGSHIFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Paths
    work_dir: Path = Field(
        default_factory=Path.cwd,
        description="Directory in which package working trees are created",
    )

    # Operational
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # External tools
    rpm_command: str = Field(default="rpm", description="rpm query/install tool")
    rpmbuild_command: str = Field(default="rpmbuild", description="rpm build tool")
    rpm2cpio_command: str = Field(default="rpm2cpio", description="rpm2cpio tool")
    cpio_command: str = Field(default="cpio", description="cpio tool")

    # Architecture
    noarch_keyword: str = Field(
        default="noarch",
        description="Fallback builder keyword for architecture-independent builds",
    )

    # Extra options forwarded verbatim to rpm
    rpm_build_options: str = Field(
        default="",
        validation_alias=AliasChoices("PKGSHIFT_RPM_BUILD_OPTIONS", "RPMBUILDOPT"),
        description="Extra options passed to the build tool",
    )
    rpm_install_options: str = Field(
        default="",
        validation_alias=AliasChoices("PKGSHIFT_RPM_INSTALL_OPTIONS", "RPMINSTALLOPT"),
        description="Extra options passed to rpm when installing",
    )

    # Timeouts (in seconds)
    command_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for external commands (None = wait forever)",
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
