"""RPM spec file generation.

Renders a scanned and unpacked Package into the spec file that rpmbuild
consumes. The spec is written into the working directory as
``<name>-<version>-<release>.spec``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from pkgshift.errors import BuildPrepError
from pkgshift.models import Package, ScriptSlot

logger = logging.getLogger(__name__)

# Spec section for each lifecycle script slot, in emission order
SCRIPT_SECTIONS = (
    ("%pre", ScriptSlot.PREINST),
    ("%post", ScriptSlot.POSTINST),
    ("%preun", ScriptSlot.PRERM),
    ("%postun", ScriptSlot.POSTRM),
)

GROUP_PREFIX = "Converted/"


def spec_filename(package: Package) -> str:
    """Return the spec file name for a package."""
    return f"{package.full_name}.spec"


def quote_path(path: str) -> str:
    """Quote a path for the %files section."""
    return f'"{path}"'


def manifest_lines(file_list: Iterable[str], conffiles: Iterable[str]) -> list[str]:
    """Classify every file list entry for the %files section.

    Args:
        file_list: Files in package order.
        conffiles: Configuration files (exact path match).

    Returns:
        One ``%dir``, ``%config`` or plain line per entry, in list order.
    """
    config_set = set(conffiles)
    lines: list[str] = []
    for path in file_list:
        if path.endswith("/"):
            lines.append(f"%dir {quote_path(path)}")
        elif path in config_set:
            lines.append(f"%config {quote_path(path)}")
        else:
            lines.append(quote_path(path))
    return lines


def _script_text(package: Package, slot: ScriptSlot) -> str:
    rendered = package.rendered_script(slot)
    if rendered is None:
        return ""
    if isinstance(rendered, bytes):
        return rendered.decode("utf-8", errors="replace")
    return rendered


def render_spec(package: Package) -> str:
    """Render the spec file text for a package.

    Raises:
        BuildPrepError: If the package has not been unpacked.
    """
    workdir = package.require_working_dir()

    out: list[str] = [
        f"BuildRoot: {Path(workdir).absolute()}",
        f"Name: {package.name}",
        f"Version: {package.version}",
        f"Release: {package.release}",
        f"Summary: {package.summary or ''}",
        f"License: {package.copyright or ''}",
        f"Distribution: {package.distribution or ''}",
        f"Group: {GROUP_PREFIX}{package.group}",
        "",
        # Write the rpm to the parent of the working directory
        "%define _rpmdir ../",
        "%define _rpmfilename %%{NAME}-%%{VERSION}-%%{RELEASE}.%%{ARCH}.rpm",
        "",
    ]

    for section, slot in SCRIPT_SECTIONS:
        out.append(section)
        out.append(_script_text(package, slot))
        out.append("")

    out.append("%description")
    out.append(package.description or "")
    out.append("")
    out.append(
        f" (Converted from a .{package.origin_format} package by pkgshift.)"
    )
    out.append("")
    out.append("%files")
    out.extend(manifest_lines(package.file_list, package.conffiles))

    return "\n".join(out) + "\n"


def write_spec(package: Package) -> Path:
    """Write the spec file into the package's working directory.

    Returns:
        Path of the written spec file.

    Raises:
        BuildPrepError: If the package is not unpacked or the write fails.
    """
    workdir = package.require_working_dir()
    spec_path = Path(workdir) / spec_filename(package)
    content = render_spec(package)

    try:
        spec_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise BuildPrepError(
            f"{spec_path}: {e}",
            code="spec_write_error",
        ) from e

    logger.info("Wrote spec file %s", spec_path)
    return spec_path


__all__ = [
    "GROUP_PREFIX",
    "SCRIPT_SECTIONS",
    "manifest_lines",
    "render_spec",
    "spec_filename",
    "write_spec",
]
