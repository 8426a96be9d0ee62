"""
Marker token helpers.

A marker is written in a template as ``${name}``. After a row has been
cloned the markers in copy ``i`` are addressed as ``name#i``.
"""

import re
from typing import Any

from .constants import CLONE_INDEX_SEPARATOR, MARKER_CLOSE, MARKER_OPEN

# ${name} where name holds no delimiter characters
MARKER_PATTERN = re.compile(r"\$\{([^${}]+)\}")

_TAG_PATTERN = re.compile(r"<[^>]*>")

# Characters outside the XML 1.0 Char production
_XML_ILLEGAL_PATTERN = re.compile(
    r"[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


def marker_token(name: str) -> str:
    """Build the literal token for a marker name.

    Args:
        name: Marker name without delimiters (e.g., "first_name#2")

    Returns:
        The token as it appears in document text (e.g., "${first_name#2}")

    Raises:
        ValueError: If the name is empty or contains delimiter characters
    """
    if not name or any(ch in name for ch in "${}"):
        raise ValueError(f"Invalid marker name: {name!r}")
    return f"{MARKER_OPEN}{name}{MARKER_CLOSE}"


def clone_marker_name(name: str, index: int) -> str:
    """Name of a marker inside the index-th cloned row (1-based)."""
    if index < 1:
        raise ValueError(f"Clone index must be >= 1, got {index}")
    return f"{name}{CLONE_INDEX_SEPARATOR}{index}"


def find_marker_names(text: str) -> list[str]:
    """Return marker names found in text, in order, without duplicates."""
    seen: dict[str, None] = {}
    for match in MARKER_PATTERN.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)


def clean_value(value: Any) -> str:
    """Clean a replacement value before it is written into the document.

    Markup tags are stripped, ampersands spelled out and characters XML
    cannot hold (control characters such as vertical tab) dropped, so user
    supplied text never introduces structure or breaks the document.

    Args:
        value: The replacement. Lists and tuples contribute their first item;
            other non-string values are converted with str().

    Returns:
        The cleaned string

    Example:
        >>> clean_value("A & B <b>bold</b>")
        'A and B bold'
    """
    if isinstance(value, list | tuple):
        value = value[0] if value else ""
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    text = _XML_ILLEGAL_PATTERN.sub("", text)
    return _TAG_PATTERN.sub("", text).replace("&", "and")
