"""Lifecycle script transport.

RPM scriptlets are run by /bin/sh, while scripts from other package
families can be written in any language or even be binaries. To carry
them through a spec file, the raw bytes are uuencoded and wrapped in a
small shell program that decodes them into a private temporary directory
and executes the result with the original arguments.

rpmbuild expands ``%`` as a macro trigger, so every literal percent sign
in the encoded block is doubled.
"""

from __future__ import annotations

import binascii

# uuencode line length (bytes of input per encoded line)
UU_LINE_BYTES = 45

# Heredoc delimiter. A uuencoded line can never equal it because its
# first character would encode a length above 45.
HEREDOC_MARKER = "__EOF__"

# Temporary directory, qualified with the executing shell's PID
SCRIPT_TMPDIR = "/tmp/pkgshift.$$"

DECODE_FILTER = "perl -pe '$_=unpack(\"u\",$_)'"


def uuencode(data: bytes) -> str:
    """Encode bytes as uuencoded lines without begin/end framing."""
    lines = [
        binascii.b2a_uu(data[i : i + UU_LINE_BYTES], backtick=True).decode("ascii")
        for i in range(0, len(data), UU_LINE_BYTES)
    ]
    return "".join(lines)


def uudecode(text: str) -> bytes:
    """Decode lines produced by :func:`uuencode`."""
    return b"".join(
        binascii.a2b_uu(line) for line in text.splitlines() if line.strip()
    )


def encode_script(data: bytes) -> str:
    """Encode raw script bytes into a percent-escaped printable block.

    Args:
        data: Raw script content.

    Returns:
        uuencoded text with every ``%`` doubled, ending with a newline.
    """
    return uuencode(data).replace("%", "%%")


def wrap_script(data: bytes) -> str:
    """Wrap raw script bytes in a self-extracting shell scriptlet.

    Args:
        data: Raw script content (any language, or a binary).

    Returns:
        Shell text that recreates and runs the original script.
    """
    script_path = f"{SCRIPT_TMPDIR}/script"
    return (
        "set -e\n"
        f"mkdir -m 700 {SCRIPT_TMPDIR}\n"
        f"{DECODE_FILTER} << '{HEREDOC_MARKER}' > {script_path}\n"
        f"{encode_script(data)}"
        f"{HEREDOC_MARKER}\n"
        f"chmod 755 {script_path}\n"
        f'{script_path} "$@"\n'
        f"rm -f {script_path}\n"
        f"rmdir {SCRIPT_TMPDIR}"
    )


def is_empty_script(value: bytes | str | None) -> bool:
    """Return True for absent or whitespace-only script content."""
    if value is None:
        return True
    return not value.strip()


def render_script(value: bytes | None) -> bytes | str | None:
    """Render a stored script slot for inclusion in a spec file.

    Absent or whitespace-only content means "no script" and is returned
    unchanged. Anything else is wrapped fresh on every call.

    Args:
        value: Raw script bytes as stored in the package model.

    Returns:
        The unchanged value, or the wrapped shell text.
    """
    if is_empty_script(value):
        return value
    return wrap_script(value)


def decode_script(text: str) -> bytes:
    """Recover the raw script bytes from wrapped shell text.

    Args:
        text: Output of :func:`wrap_script`.

    Returns:
        The original script bytes.

    Raises:
        ValueError: If the text does not contain an encoded block.
    """
    lines = text.splitlines()
    try:
        start = next(i for i, line in enumerate(lines) if HEREDOC_MARKER in line)
        end = lines.index(HEREDOC_MARKER, start + 1)
    except (StopIteration, ValueError):
        raise ValueError("no encoded script block found") from None

    block = "\n".join(lines[start + 1 : end]).replace("%%", "%")
    return uudecode(block)


__all__ = [
    "decode_script",
    "encode_script",
    "is_empty_script",
    "render_script",
    "uudecode",
    "uuencode",
    "wrap_script",
]
