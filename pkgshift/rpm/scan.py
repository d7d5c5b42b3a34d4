"""RPM metadata scanning.

This module handles:
- Querying individual header fields with ``rpm -qp --queryformat``
- Querying the conffile list, file list and info dump
- Deriving fallback values for missing summary/copyright/description

rpm prints ``(none)`` for a field the header does not carry. That sentinel
is turned into ``None`` here and nowhere else.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path

from pkgshift.config import Settings
from pkgshift.errors import ScanError
from pkgshift.models import Package, ScriptSlot

logger = logging.getLogger(__name__)

# rpm's output for a missing header field
ABSENT_SENTINEL = b"(none)"

# rpm's output for a package with an empty file list
NO_FILES_MARKER = "(contains no files)"

DEFAULT_SUMMARY = "Converted RPM package"
DEFAULT_COPYRIGHT = "unknown"
DISTRIBUTION = "Red Hat"
ORIGIN_FORMAT = "rpm"

# Header tag -> Package attribute for plain text fields
TEXT_FIELDS = {
    "NAME": "name",
    "VERSION": "version",
    "RELEASE": "release",
    "ARCH": "arch",
    "CHANGELOGTEXT": "changelog_text",
    "SUMMARY": "summary",
    "DESCRIPTION": "description",
    "COPYRIGHT": "copyright",
    "PREFIXES": "prefixes",
}

# Header tag -> script slot. Script bodies are kept as raw bytes.
SCRIPT_FIELDS = {
    "PREIN": ScriptSlot.PREINST,
    "POSTIN": ScriptSlot.POSTINST,
    "PREUN": ScriptSlot.PRERM,
    "POSTUN": ScriptSlot.POSTRM,
}

REQUIRED_FIELDS = ("name", "version", "release")


def _query_env() -> dict[str, str]:
    """Environment forcing the C locale so rpm output is parseable."""
    env = dict(os.environ)
    env["LANG"] = "C"
    env["LC_ALL"] = "C"
    return env


def run_query(args: list[str], settings: Settings) -> bytes:
    """Run a read-only rpm query and return its raw stdout.

    Raises:
        ScanError: If rpm cannot be run or exits non-zero.
    """
    cmd = [settings.rpm_command, *args]
    logger.debug("Querying: %s", shlex.join(cmd))

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            env=_query_env(),
            timeout=settings.command_timeout,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode("utf-8", errors="replace").strip()
        raise ScanError(
            f"Error querying rpm file: {stderr or f'exit code {e.returncode}'}",
            code="query_failed",
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ScanError(
            f"rpm query timed out after {settings.command_timeout}s",
            code="timeout",
        ) from e
    except OSError as e:
        raise ScanError(f"Failed to run rpm: {e}", code="execution_error") from e

    return result.stdout


def query_field(path: Path, tag: str, settings: Settings) -> bytes | None:
    """Query a single header tag.

    Args:
        path: RPM file.
        tag: Header tag name, e.g. ``NAME``.
        settings: Application settings.

    Returns:
        Raw field value, or None when the package does not carry it.
    """
    value = run_query(["-qp", str(path), "--queryformat", f"%{{{tag}}}"], settings)
    if value == ABSENT_SENTINEL:
        return None
    return value


def query_list(path: Path, flag: str, settings: Settings) -> list[str]:
    """Run a bulk query returning one item per line."""
    output = run_query([flag, str(path)], settings)
    items = []
    for line in output.decode("utf-8", errors="replace").splitlines():
        if not line or line == NO_FILES_MARKER:
            continue
        items.append(line)
    return items


def _decode(value: bytes | None) -> str | None:
    if value is None:
        return None
    return value.decode("utf-8", errors="replace")


def first_line(text: str | None) -> str | None:
    """Return the first line of a text, or None if there is none."""
    lines = (text or "").splitlines()
    return lines[0] if lines else None


def scan_package(path: Path, settings: Settings) -> Package:
    """Read an RPM file into a Package.

    Args:
        path: RPM file to scan.
        settings: Application settings.

    Returns:
        Populated Package.

    Raises:
        ScanError: If a query fails or name, version or release is missing.
    """
    path = Path(path)
    logger.info("Scanning %s", path)

    fields: dict[str, str | None] = {}
    for tag, attr in TEXT_FIELDS.items():
        fields[attr] = _decode(query_field(path, tag, settings))

    scripts: dict[ScriptSlot, bytes | None] = {}
    for tag, slot in SCRIPT_FIELDS.items():
        scripts[slot] = query_field(path, tag, settings)

    conffiles = query_list(path, "-qcp", settings)
    binary_info = run_query(["-qpi", str(path)], settings).decode(
        "utf-8", errors="replace"
    )
    file_list = query_list(path, "-qpl", settings)

    missing = [attr for attr in REQUIRED_FIELDS if not fields.get(attr)]
    if missing:
        raise ScanError(
            f"Error querying rpm file {path}: missing {', '.join(missing)}",
            code="missing_field",
        )

    # Older rpms have no summary; use the first line of the description.
    summary = fields["summary"] or first_line(fields["description"])
    if not summary:
        summary = DEFAULT_SUMMARY
    fields["summary"] = summary
    if fields["copyright"] is None:
        fields["copyright"] = DEFAULT_COPYRIGHT
    if fields["description"] is None:
        fields["description"] = summary

    listed = set(file_list)
    for conffile in conffiles:
        if conffile not in listed:
            logger.warning("Ignoring conffile %s missing from file list", conffile)
    conffiles = [c for c in conffiles if c in listed]

    package = Package(
        **fields,
        distribution=DISTRIBUTION,
        origin_format=ORIGIN_FORMAT,
        file_list=file_list,
        conffiles=conffiles,
        binary_info=binary_info,
        source_path=path,
        **{slot.value: content for slot, content in scripts.items()},
    )
    logger.info(
        "Scanned %s (%s, %d files)", package.full_name, package.arch, len(file_list)
    )
    return package


__all__ = [
    "ABSENT_SENTINEL",
    "DEFAULT_COPYRIGHT",
    "DEFAULT_SUMMARY",
    "query_field",
    "query_list",
    "run_query",
    "scan_package",
]
