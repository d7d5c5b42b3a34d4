"""Package format registry.

Each supported package family registers one PackageFormat variant here.
"""

from __future__ import annotations

from pkgshift.formats.base import PackageFormat


class UnknownFormatError(KeyError):
    """Raised when no format is registered under a name."""


def _registry() -> dict[str, type[PackageFormat]]:
    from pkgshift.rpm.format import RpmFormat

    return {RpmFormat.name: RpmFormat}


def available_formats() -> list[str]:
    """Return the names of all registered formats."""
    return sorted(_registry())


def get_format(name: str) -> type[PackageFormat]:
    """Look up a format class by name.

    Raises:
        UnknownFormatError: If the format is not registered.
    """
    try:
        return _registry()[name]
    except KeyError:
        raise UnknownFormatError(name) from None


__all__ = ["PackageFormat", "UnknownFormatError", "available_formats", "get_format"]
