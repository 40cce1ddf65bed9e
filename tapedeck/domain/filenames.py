from __future__ import annotations

import re


# "HTTPServer" -> "HTTP-Server"
_ACRONYM_BOUNDARY_PATTERN = re.compile(r"([A-Z]+)([A-Z][a-z])")
# "albumTitle" -> "album-Title", "mp3Player" -> "mp3-Player"
_CASE_BOUNDARY_PATTERN = re.compile(r"([a-z0-9])([A-Z])")
_DELIMITER_PATTERN = re.compile(r"[\s_.\-]+")
_UNSAFE_PATTERN = re.compile(r"[^A-Za-z0-9\-]")


def to_kebab_case(value: str) -> str:
    """Lowercase, hyphen-delimited word form of value.

    Word boundaries are case changes and runs of whitespace, underscores, dots
    or hyphens. Other characters are left in place.
    """
    value = (value or "").strip()
    value = _ACRONYM_BOUNDARY_PATTERN.sub(r"\1-\2", value)
    value = _CASE_BOUNDARY_PATTERN.sub(r"\1-\2", value)
    value = _DELIMITER_PATTERN.sub("-", value)
    return value.lower()


def sanitize_filename(name: str, extension: str) -> str:
    """Turn free text into a file name made of ``[a-z0-9-]`` plus extension.

    >>> sanitize_filename("Hello/WHAT/ARE/ you /DOING?", ".jpg")
    'hellowhatare-you-doing.jpg'

    The stem may be empty when name holds no usable characters.
    """
    return _UNSAFE_PATTERN.sub("", to_kebab_case(name)) + extension
