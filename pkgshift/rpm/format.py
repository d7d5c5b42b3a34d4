"""The RPM variant of the package format interface."""

from __future__ import annotations

from pathlib import Path

from pkgshift.formats.base import PackageFormat
from pkgshift.models import Package
from pkgshift.rpm.builder import build_package
from pkgshift.rpm.install import install_package
from pkgshift.rpm.scan import scan_package
from pkgshift.rpm.specfile import write_spec
from pkgshift.rpm.unpack import unpack_package


class RpmFormat(PackageFormat):
    """Red Hat package format."""

    name = "rpm"

    def scan(self, path: Path) -> Package:
        return scan_package(Path(path), self.settings)

    def unpack(self, package: Package, base_dir: Path) -> Path:
        return unpack_package(package, Path(base_dir), self.settings)

    def prep(self, package: Package) -> Path:
        return write_spec(package)

    def build(self, package: Package) -> str:
        return build_package(package, self.settings, self.build_options)

    def install(self, path: Path | str) -> None:
        install_package(path, self.settings, self.install_options)


__all__ = ["RpmFormat"]
