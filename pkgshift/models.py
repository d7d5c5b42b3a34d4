"""Normalized package model.

One Package instance describes one conversion: metadata read from the
foreign package, its file list, raw lifecycle scripts, and the working
directory the package was unpacked into.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pkgshift.arch import normalize_arch
from pkgshift.errors import BuildPrepError
from pkgshift.scripts import render_script


class ScriptSlot(str, Enum):
    """Lifecycle script slots."""

    PREINST = "preinst"
    POSTINST = "postinst"
    PRERM = "prerm"
    POSTRM = "postrm"


def normalize_version(version: str) -> str:
    """Replace dashes in a version string, which rpm does not allow."""
    return version.replace("-", "_")


class Package(BaseModel):
    """Normalized representation of a package being converted.

    Attributes:
        name: Package name.
        version: Upstream version, with '-' replaced by '_'.
        release: Package release.
        arch: Architecture in the internal (Debian-style) vocabulary, or None
            when the package does not declare one.
        summary: One-line summary.
        description: Long description.
        copyright: License/copyright string.
        distribution: Distribution the package comes from.
        group: Package group or section.
        changelog_text: Changelog text, kept for diagnostics.
        origin_format: Tag of the package family this was read from.
        prefixes: Relocation prefix for relocatable packages.
        file_list: Files in the order reported by the package tool.
        conffiles: Configuration files; always a subset of file_list.
        binary_info: Human-readable metadata dump, kept for diagnostics.
        preinst/postinst/prerm/postrm: Raw lifecycle script bytes.
        source_path: Path of the foreign package file.
        working_dir: Directory the package was unpacked into.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    release: str = Field(min_length=1)
    arch: str | None = None

    summary: str | None = None
    description: str | None = None
    copyright: str | None = None
    distribution: str | None = None
    group: str = "unknown"
    changelog_text: str | None = None
    origin_format: str | None = None
    prefixes: str | None = None

    file_list: list[str] = Field(default_factory=list)
    conffiles: list[str] = Field(default_factory=list)
    binary_info: str | None = None

    preinst: bytes | None = None
    postinst: bytes | None = None
    prerm: bytes | None = None
    postrm: bytes | None = None

    source_path: Path | None = None
    working_dir: Path | None = None

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Normalize version separators."""
        return normalize_version(v)

    @field_validator("arch")
    @classmethod
    def validate_arch(cls, v: str | None) -> str | None:
        """Translate the architecture to the internal vocabulary."""
        if v is None:
            return None
        return normalize_arch(v)

    @model_validator(mode="after")
    def validate_conffiles(self) -> Package:
        """Ensure every configuration file is part of the file list."""
        missing = set(self.conffiles) - set(self.file_list)
        if missing:
            raise ValueError(
                f"conffiles not in file list: {', '.join(sorted(missing))}"
            )
        return self

    @property
    def full_name(self) -> str:
        """Return ``name-version-release``."""
        return f"{self.name}-{self.version}-{self.release}"

    def get_script(self, slot: ScriptSlot | str) -> bytes | None:
        """Return the raw bytes stored in a script slot."""
        return getattr(self, ScriptSlot(slot).value)

    def set_script(self, slot: ScriptSlot | str, content: bytes | None) -> None:
        """Store raw script bytes verbatim."""
        setattr(self, ScriptSlot(slot).value, content)

    def rendered_script(self, slot: ScriptSlot | str) -> bytes | str | None:
        """Return a script slot in its wrapped, spec-file ready form.

        Computed on every call; the wrapped text is never stored.
        """
        return render_script(self.get_script(slot))

    def set_working_dir(self, path: Path) -> None:
        """Record the working directory. It can only be set once.

        Raises:
            BuildPrepError: If a working directory was already set.
        """
        if self.working_dir is not None:
            raise BuildPrepError(
                f"Working directory already set to {self.working_dir}",
                code="workdir_already_set",
            )
        self.working_dir = path

    def require_working_dir(self) -> Path:
        """Return the working directory.

        Raises:
            BuildPrepError: If the package has not been unpacked.
        """
        if self.working_dir is None:
            raise BuildPrepError(
                "The package must be unpacked first",
                code="not_unpacked",
            )
        return self.working_dir


__all__ = ["Package", "ScriptSlot", "normalize_version"]
