"""pkgshift - RPM format adapter for multi-format package conversion.

This package converts RPM packages into a normalized package model and
re-emits that model as RPM packages via rpmbuild.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
