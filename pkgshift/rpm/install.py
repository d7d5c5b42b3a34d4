"""Installing built RPM packages."""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from pkgshift.config import Settings
from pkgshift.errors import InstallError

logger = logging.getLogger(__name__)

INSTALL_FLAGS = ["-Uvh"]


def compose_install_command(
    rpm_path: Path | str, install_options: str, settings: Settings
) -> list[str]:
    """Compose the rpm install command line."""
    return [
        settings.rpm_command,
        *INSTALL_FLAGS,
        *shlex.split(install_options),
        str(rpm_path),
    ]


def install_package(
    rpm_path: Path | str,
    settings: Settings,
    install_options: str = "",
) -> None:
    """Install an RPM file.

    Raises:
        InstallError: If rpm cannot be run or exits non-zero.
    """
    cmd = compose_install_command(rpm_path, install_options, settings)
    logger.info("Installing: %s", shlex.join(cmd))

    try:
        result = subprocess.run(cmd, timeout=settings.command_timeout, check=False)
    except subprocess.TimeoutExpired as e:
        raise InstallError(
            f"Install of {rpm_path} timed out", exit_code=-1, code="timeout"
        ) from e
    except OSError as e:
        raise InstallError(
            f"Unable to install {rpm_path}: {e}", code="execution_error"
        ) from e

    if result.returncode != 0:
        raise InstallError(
            f"Unable to install {rpm_path}: rpm exited {result.returncode}",
            exit_code=result.returncode,
        )


__all__ = ["INSTALL_FLAGS", "compose_install_command", "install_package"]
