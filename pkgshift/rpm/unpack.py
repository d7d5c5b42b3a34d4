"""RPM unpacking.

This module handles:
- Extracting an RPM payload with ``rpm2cpio | cpio`` into a fresh working tree
- Relocating the tree under the package's relocation prefix
- Repairing modes of directories cpio created implicitly
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import tempfile
from pathlib import Path

from pkgshift.config import Settings
from pkgshift.errors import BuildPrepError, UnpackError
from pkgshift.models import Package
from pkgshift.tree import create_working_dir, relocate_tree, repair_permissions

logger = logging.getLogger(__name__)

CPIO_EXTRACT_FLAGS = [
    "--extract",
    "--make-directories",
    "--no-absolute-filenames",
    "--preserve-modification-time",
]


def compose_extract_commands(
    rpm_path: Path, settings: Settings
) -> tuple[list[str], list[str]]:
    """Compose the rpm2cpio and cpio commands of the extraction pipeline."""
    return (
        [settings.rpm2cpio_command, str(rpm_path)],
        [settings.cpio_command, *CPIO_EXTRACT_FLAGS],
    )


def extract_payload(rpm_path: Path, workdir: Path, settings: Settings) -> None:
    """Extract the payload of an RPM file into ``workdir``.

    Raises:
        UnpackError: If either side of the pipeline fails.
    """
    convert_cmd, extract_cmd = compose_extract_commands(rpm_path, settings)
    logger.info(
        "Extracting: %s | %s", shlex.join(convert_cmd), shlex.join(extract_cmd)
    )

    try:
        with tempfile.TemporaryFile() as convert_errors, subprocess.Popen(
            convert_cmd,
            stdout=subprocess.PIPE,
            stderr=convert_errors,
        ) as convert:
            extract = subprocess.run(
                extract_cmd,
                cwd=workdir,
                stdin=convert.stdout,
                capture_output=True,
                text=True,
                timeout=settings.command_timeout,
                check=False,
            )
            if convert.stdout is not None:
                convert.stdout.close()
            convert_rc = convert.wait()
            convert_errors.seek(0)
            convert_stderr = convert_errors.read()
    except subprocess.TimeoutExpired as e:
        raise UnpackError(
            f"Unpacking of {rpm_path} timed out after {settings.command_timeout}s",
            code="timeout",
        ) from e
    except OSError as e:
        raise UnpackError(
            f"Unpacking of {rpm_path} failed: {e}",
            code="execution_error",
        ) from e

    if convert_rc != 0:
        detail = convert_stderr.decode("utf-8", errors="replace").strip()
        raise UnpackError(
            f"Unpacking of {rpm_path} failed: rpm2cpio exited {convert_rc}: {detail}",
            code="rpm2cpio_error",
        )
    if extract.returncode != 0:
        raise UnpackError(
            f"Unpacking of {rpm_path} failed: cpio exited {extract.returncode}: "
            f"{extract.stderr.strip()}",
            code="cpio_error",
        )


def unpack_package(package: Package, base_dir: Path, settings: Settings) -> Path:
    """Unpack an RPM into a new working directory.

    Args:
        package: Scanned package; must carry ``source_path``.
        base_dir: Directory in which the working tree is created.
        settings: Application settings.

    Returns:
        Path of the working directory, also recorded on the package.

    Raises:
        UnpackError: If any step fails.
        BuildPrepError: If the package was already unpacked.
    """
    if package.source_path is None:
        raise UnpackError("Package has no source file to unpack", code="no_source")

    if package.working_dir is not None:
        raise BuildPrepError(
            f"Working directory already set to {package.working_dir}",
            code="workdir_already_set",
        )

    workdir = create_working_dir(Path(base_dir), f"{package.name}-{package.version}")
    package.set_working_dir(workdir)

    extract_payload(package.source_path, workdir, settings)
    relocate_tree(workdir, package.prefixes)
    try:
        repair_permissions(workdir, package.file_list)
    except OSError as e:
        raise UnpackError(
            f"Unable to fix directory permissions in {workdir}: {e}",
            code="permission_error",
        ) from e

    logger.info("Unpacked %s into %s", package.full_name, workdir)
    return workdir


__all__ = [
    "CPIO_EXTRACT_FLAGS",
    "compose_extract_commands",
    "extract_payload",
    "unpack_package",
]
