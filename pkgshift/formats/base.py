"""Capability interface implemented by every package format.

A format variant knows how to read one package family into the normalized
Package model and how to build and install packages of that family.
Format-agnostic helpers (script transport, architecture names, working
tree handling) live in :mod:`pkgshift.scripts`, :mod:`pkgshift.arch` and
:mod:`pkgshift.tree`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pkgshift.config import Settings
from pkgshift.models import Package

logger = logging.getLogger(__name__)


class PackageFormat(ABC):
    """One package family."""

    #: Short name used for lookup, e.g. ``"rpm"``.
    name: str = ""

    def __init__(
        self,
        settings: Settings,
        build_options: str = "",
        install_options: str = "",
    ) -> None:
        """Initialize the format.

        Args:
            settings: Application settings.
            build_options: Extra options passed verbatim to the builder.
            install_options: Extra options passed verbatim to the installer.
        """
        self.settings = settings
        self.build_options = build_options
        self.install_options = install_options

    @abstractmethod
    def scan(self, path: Path) -> Package:
        """Read a package file into a Package."""

    @abstractmethod
    def unpack(self, package: Package, base_dir: Path) -> Path:
        """Unpack the package file tree into a new working directory."""

    @abstractmethod
    def prep(self, package: Package) -> Path:
        """Write the build descriptor into the working directory."""

    @abstractmethod
    def build(self, package: Package) -> str:
        """Build a package and return the path of the result."""

    @abstractmethod
    def install(self, path: Path | str) -> None:
        """Install a built package."""

    def convert(self, path: Path, base_dir: Path | None = None) -> tuple[Package, str]:
        """Run scan, unpack, prep and build for one package file.

        Args:
            path: Foreign package file.
            base_dir: Where to create the working directory; defaults to
                the configured work_dir.

        Returns:
            Tuple of (package, built artifact path).
        """
        if base_dir is None:
            base_dir = self.settings.work_dir

        package = self.scan(path)
        self.unpack(package, base_dir)
        self.prep(package)
        artifact = self.build(package)
        logger.info("Converted %s -> %s", path, artifact)
        return package, artifact


__all__ = ["PackageFormat"]
