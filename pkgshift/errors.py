"""Error taxonomy for package conversion.

Every stage of a conversion fails fatally with one of these exceptions.
Each carries a stable ``code`` for programmatic handling and a ``stage``
name used when reporting the failure to the user.
"""

from __future__ import annotations


class PkgshiftError(Exception):
    """Base class for all conversion errors."""

    stage = "conversion"

    def __init__(self, message: str, code: str = "pkgshift_error") -> None:
        """Initialize PkgshiftError.

        Args:
            message: Error description.
            code: Error code for structured error handling.
        """
        super().__init__(message)
        self.code = code


class ScanError(PkgshiftError):
    """Raised when package metadata cannot be read."""

    stage = "scan"

    def __init__(self, message: str, code: str = "scan_error") -> None:
        super().__init__(message, code)


class UnpackError(PkgshiftError):
    """Raised when extraction, directory creation or relocation fails."""

    stage = "unpack"

    def __init__(self, message: str, code: str = "unpack_error") -> None:
        super().__init__(message, code)


class BuildPrepError(PkgshiftError):
    """Raised when the build descriptor cannot be prepared."""

    stage = "prep"

    def __init__(self, message: str, code: str = "build_prep_error") -> None:
        super().__init__(message, code)


class BuildError(PkgshiftError):
    """Raised when builder discovery or the build itself fails."""

    stage = "build"

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "build_error",
    ) -> None:
        super().__init__(message, code)
        self.exit_code = exit_code


class InstallError(PkgshiftError):
    """Raised when installing a built package fails."""

    stage = "install"

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "install_error",
    ) -> None:
        super().__init__(message, code)
        self.exit_code = exit_code


__all__ = [
    "BuildError",
    "BuildPrepError",
    "InstallError",
    "PkgshiftError",
    "ScanError",
    "UnpackError",
]
