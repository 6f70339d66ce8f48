"""Strict percent-decoding for request paths.

``urllib.parse.unquote`` leaves a stray ``%`` alone; a request path with
one is malformed and must not be treated as an ordinary non-match.
"""

import re
from urllib.parse import unquote

from perch.errors import MalformedPath

_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_component(value: str, *, path: str | None = None) -> str:
    """Percent-decode *value* as UTF-8.

    Raises ``MalformedPath`` for a ``%`` not followed by two hex digits,
    or for escapes that do not form valid UTF-8. *path* is the request
    path reported in the error (defaults to *value*).
    """
    if "%" not in value:
        return value
    if _BAD_ESCAPE_RE.search(value):
        raise MalformedPath(path if path is not None else value)
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError as exc:
        raise MalformedPath(path if path is not None else value) from exc


def check_path(path: str) -> None:
    """Raise ``MalformedPath`` unless every escape in *path* decodes."""
    decode_component(path)
