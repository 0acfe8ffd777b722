"""Source text decoding.

The registry publishes some files in UTF-8 and others in ISO-8859-1.
Content that validates as UTF-8 is kept, anything else is read as Latin-1.
"""

from __future__ import annotations

_UTF8_BOM = "\ufeff"


def decode_source_bytes(content: bytes) -> str:
    """Decode raw source bytes into text.

    Args:
        content: Raw downloaded or read bytes.

    Returns:
        Decoded text without a leading byte-order mark.
    """
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        # Latin-1 maps every byte, so this never fails.
        text = content.decode("iso-8859-1")
    return text.removeprefix(_UTF8_BOM)


def split_source_lines(text: str) -> list[str]:
    """Split decoded text into lines without ``\\n`` or ``\\r\\n`` terminators.

    Only newline characters delimit rows; other Unicode line separators
    inside free-text columns stay part of their row.
    """
    lines = [line.removesuffix("\r") for line in text.split("\n")]
    if lines and lines[-1] == "":
        lines.pop()
    return lines
