"""Working tree helpers shared by all package formats.

This module handles:
- Creating the exclusive working directory for a conversion
- Relocating an extracted tree under a relocation prefix
- Repairing permissions of directories that were created implicitly
  during extraction

None of these helpers know about a particular package format; they only
operate on paths and file lists.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path, PurePosixPath

from pkgshift.errors import UnpackError

logger = logging.getLogger(__name__)

DEFAULT_DIR_MODE = 0o755


def create_working_dir(base_dir: Path, name: str) -> Path:
    """Create a fresh working directory for one conversion.

    Args:
        base_dir: Directory in which to create the working tree.
        name: Directory name, usually ``<name>-<version>``.

    Returns:
        Absolute path of the new directory.

    Raises:
        UnpackError: If the directory exists or cannot be created.
    """
    workdir = (base_dir / name).absolute()
    try:
        workdir.mkdir(mode=DEFAULT_DIR_MODE)
    except FileExistsError as e:
        raise UnpackError(
            f"Working directory {workdir} already exists",
            code="workdir_exists",
        ) from e
    except OSError as e:
        raise UnpackError(
            f"Unable to create working directory {workdir}: {e}",
            code="workdir_error",
        ) from e

    logger.debug("Created working directory %s", workdir)
    return workdir


def prefix_components(prefix: str) -> list[str]:
    """Split a relocation prefix into safe relative path components.

    Empty, ``.`` and ``..`` components are skipped so that the prefix
    chain can never leave the working directory.
    """
    return [part for part in prefix.split("/") if part not in ("", ".", "..")]


def relocate_tree(workdir: Path, prefix: str | None) -> bool:
    """Move an extracted tree underneath its relocation prefix.

    Nothing happens when no prefix is declared, or when the prefix already
    exists inside the tree (the archive was built relocated).

    Args:
        workdir: Root of the extracted tree.
        prefix: Relocation prefix declared by the package, if any.

    Returns:
        True if entries were moved.

    Raises:
        UnpackError: If directory creation or a move fails.
    """
    if not prefix:
        return False

    components = prefix_components(prefix)
    if not components:
        return False

    target = workdir.joinpath(*components)
    if target.exists():
        logger.debug("Prefix %s already present, not relocating", prefix)
        return False

    logger.info("Relocating unpacked files under %s", "/".join(components))

    try:
        entries = sorted(workdir.iterdir())

        # Park the entries first so that a top-level entry sharing its name
        # with the first prefix component cannot be moved into itself.
        staging = Path(tempfile.mkdtemp(prefix=".relocate-", dir=workdir))
        for entry in entries:
            shutil.move(str(entry), str(staging / entry.name))

        collect = workdir
        for component in components:
            collect = collect / component
            collect.mkdir(mode=DEFAULT_DIR_MODE, exist_ok=True)

        for entry in sorted(staging.iterdir()):
            shutil.move(str(entry), str(target / entry.name))
        staging.rmdir()

    except OSError as e:
        raise UnpackError(
            f"Error moving unpacked files into the prefix directory {prefix}: {e}",
            code="relocation_error",
        ) from e

    return True


def _parts(path: str) -> tuple[str, ...]:
    """Split a file list entry into components, ignoring leading/trailing '/'."""
    return PurePosixPath(path.strip("/")).parts if path.strip("/") else ()


def is_hierarchical(file_list: Sequence[str]) -> bool:
    """Check that every listed directory precedes the entries below it.

    This is the order rpm reports file lists in; the permission repair
    walk relies on it.
    """
    seen: set[tuple[str, ...]] = set()
    listed = {_parts(path) for path in file_list}
    for path in file_list:
        parts = _parts(path)
        for depth in range(1, len(parts)):
            ancestor = parts[:depth]
            if ancestor in listed and ancestor not in seen:
                return False
        seen.add(parts)
    return True


def hierarchical_order(file_list: Sequence[str]) -> list[str]:
    """Return the file list in hierarchical order.

    The list is returned unchanged when it already satisfies
    :func:`is_hierarchical`; otherwise it is sorted by path components.
    """
    if is_hierarchical(file_list):
        return list(file_list)
    logger.warning("File list is not in hierarchical order, sorting it")
    return sorted(file_list, key=_parts)


def implicit_directories(file_list: Iterable[str]) -> set[str]:
    """Directories implied by the file list but never listed themselves.

    Every strict ancestor of a listed path that is not itself a listed
    entry was created by the extractor rather than restored from the
    archive.

    Returns:
        Relative directory paths without leading or trailing '/'.
    """
    entries = [_parts(path) for path in file_list]
    listed = set(entries)
    implied: set[str] = set()
    for parts in entries:
        for depth in range(1, len(parts)):
            ancestor = parts[:depth]
            if ancestor not in listed:
                implied.add("/".join(ancestor))
    return implied


def walk_implicit_directories(
    file_list: Sequence[str],
    is_dir: Callable[[str], bool],
) -> list[str]:
    """Find implicitly created directories by walking an ordered file list.

    An entry that is a direct child of the most recently confirmed
    directory is trusted. Any other entry starts a new subtree, and each
    ancestor of its parent that is not itself a listed entry is reported.

    Args:
        file_list: File list in hierarchical order.
        is_dir: Tells whether a relative path is a directory on disk.

    Returns:
        Relative directory paths in the order they were found, each once.
    """
    listed = {_parts(path) for path in file_list}
    found: list[str] = []
    seen: set[tuple[str, ...]] = set()
    last_dir: tuple[str, ...] | None = None

    for path in file_list:
        parts = _parts(path)
        if not parts:
            continue
        parent = parts[:-1]

        if last_dir is None or parent != last_dir:
            for depth in range(1, len(parts)):
                ancestor = parts[:depth]
                if ancestor in listed or ancestor in seen:
                    continue
                seen.add(ancestor)
                found.append("/".join(ancestor))

        rel = "/".join(parts)
        if is_dir(rel):
            last_dir = parts

    return found


def repair_permissions(
    workdir: Path,
    file_list: Sequence[str],
    mode: int = DEFAULT_DIR_MODE,
) -> list[str]:
    """Reset the mode of directories that extraction created implicitly.

    cpio creates missing parent directories with a restrictive mode when
    the archive has no entry for them. This resets those directories to
    ``mode`` and leaves every directory that has its own archive entry
    alone.

    Args:
        workdir: Root of the extracted tree.
        file_list: Package file list, as reported by the package tool.
        mode: Mode to apply.

    Returns:
        Relative paths of the directories whose mode was reset.
    """
    ordered = hierarchical_order(file_list)
    fixed: list[str] = []

    for rel in walk_implicit_directories(ordered, lambda p: (workdir / p).is_dir()):
        path = workdir / rel
        if not path.is_dir():
            continue
        path.chmod(mode)
        fixed.append(rel)

    if fixed:
        logger.debug("Reset mode of %d implicit directories", len(fixed))
    return fixed


__all__ = [
    "DEFAULT_DIR_MODE",
    "create_working_dir",
    "hierarchical_order",
    "implicit_directories",
    "is_hierarchical",
    "prefix_components",
    "relocate_tree",
    "repair_permissions",
    "walk_implicit_directories",
]
