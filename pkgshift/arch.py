"""Architecture name translation.

The normalized package model uses Debian-style architecture names. RPM
headers carry either legacy numeric codes or RPM-style names, and the
builder has its own keyword for architecture-independent output.
"""

from __future__ import annotations

import re

# Internal name for architecture-independent packages
ARCH_ALL = "all"

# Legacy numeric RPM architecture codes
LEGACY_ARCH_CODES = {
    "1": "i386",
    "2": "alpha",
    "3": "sparc",
    "6": "m68k",
}

# RPM names that differ from the internal vocabulary
RPM_ARCH_NAMES = {
    "noarch": ARCH_ALL,
    "ppc": "powerpc",
}

# i386 through i686, and pentium variants, are all treated as i386
X86_PATTERN = re.compile(r"i[3-6]86|pentium.*", re.IGNORECASE)


def normalize_arch(token: str | int) -> str:
    """Translate a foreign architecture token to the internal vocabulary.

    Args:
        token: Architecture as reported by rpm (name or legacy code).

    Returns:
        Internal architecture name. Unknown tokens are returned unchanged.
    """
    arch = str(token).strip()
    arch = LEGACY_ARCH_CODES.get(arch, arch)
    arch = RPM_ARCH_NAMES.get(arch, arch)
    if X86_PATTERN.fullmatch(arch):
        return "i386"
    return arch


def builder_arch(
    arch: str | None, builder_default: str, noarch_keyword: str
) -> str:
    """Pick the architecture the builder will stamp on its output.

    Args:
        arch: Internal architecture of the package; None when undeclared.
        builder_default: Default output architecture reported by the builder.
        noarch_keyword: The builder's keyword for architecture-independent builds.

    Returns:
        Architecture string used in the built file name.
    """
    if arch == ARCH_ALL:
        return noarch_keyword
    return builder_default


__all__ = [
    "ARCH_ALL",
    "LEGACY_ARCH_CODES",
    "RPM_ARCH_NAMES",
    "builder_arch",
    "normalize_arch",
]
