"""RPM format support.

This module handles:
- Scanning RPM metadata
- Unpacking RPM payloads into a working tree
- Generating spec files
- Building and installing RPMs
"""

from pkgshift.rpm.format import RpmFormat

__all__ = ["RpmFormat"]
