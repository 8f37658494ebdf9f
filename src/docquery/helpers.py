"""
Helper Utilities.

Provides the field path parsing, validation and escaping rules shared by
filters, orders, projections and aggregations.
"""

import string
from typing import List, Sequence, Tuple, Union

from .errors import InvalidPathError

DOCUMENT_ID = "__name__"
"""Reserved field name addressing the document identity (its full reference)."""

# Characters a dot-separated field path string may not contain
_INVALID_DOTTED_PATH_CHARS = set("~*/[]")

# A segment made only of these (and not starting with a digit) is not quoted on the wire
_SIMPLE_SEGMENT_CHARS = set(string.ascii_letters + string.digits + "_")

FieldPath = Tuple[str, ...]


def parse_dotted_path(path: str) -> FieldPath:
    """
    Splits a dot-separated field path string (e.g. `"address.city"`) into segments.

    Raises:
        InvalidPathError: If the path is empty, contains any of `~*/[]`, or has
            an empty segment.
    """
    if not isinstance(path, str):
        raise InvalidPathError(
            f"field path must be a string, got '{type(path).__name__}'"
        )
    if not path:
        raise InvalidPathError("empty field path")
    invalid_chars = sorted({ch for ch in path if ch in _INVALID_DOTTED_PATH_CHARS})
    if invalid_chars:
        raise InvalidPathError(
            f"field path '{path}' contains invalid characters: {invalid_chars}"
        )
    segments = tuple(path.split("."))
    if any(seg == "" for seg in segments):
        raise InvalidPathError(f"field path '{path}' has an empty segment")
    return segments


def validate_path_segments(path: Sequence[str]) -> FieldPath:
    """
    Validates a field path given as explicit segments.

    Segments may contain any character, but the path must not be empty and no
    segment may be the empty string.

    Raises:
        InvalidPathError: If the path is malformed.
    """
    if isinstance(path, str) or not isinstance(path, (list, tuple)):
        raise InvalidPathError(
            f"field path must be a sequence of segments, got '{type(path).__name__}'"
        )
    if not path:
        raise InvalidPathError("empty field path")
    for seg in path:
        if not isinstance(seg, str):
            raise InvalidPathError(
                f"field path segment must be a string, got '{type(seg).__name__}'"
            )
        if not seg:
            raise InvalidPathError(f"field path {list(path)} has an empty segment")
    return tuple(path)


def to_field_path(path: Union[str, Sequence[str]]) -> FieldPath:
    """Accepts either a dotted string or a segment sequence and returns validated segments."""
    if isinstance(path, str):
        return parse_dotted_path(path)
    return validate_path_segments(path)


def _needs_quoting(segment: str) -> bool:
    return (
        not segment
        or segment[0] in string.digits
        or any(ch not in _SIMPLE_SEGMENT_CHARS for ch in segment)
    )


def to_service_field_path(segments: Sequence[str]) -> str:
    """
    Encodes path segments into the escaped dotted form used on the wire.

    Example:
        `("a", "b.c", "1x")` -> ``a.`b.c`.`1x` ``
    """
    parts: List[str] = []
    for seg in segments:
        if _needs_quoting(seg):
            seg = seg.replace("\\", "\\\\").replace("`", "\\`")
            parts.append(f"`{seg}`")
        else:
            parts.append(seg)
    return ".".join(parts)


def parse_service_field_path(path: str) -> FieldPath:
    """
    Inverse of [`to_service_field_path`][docquery.helpers.to_service_field_path].

    Raises:
        InvalidPathError: If the escaped path is malformed.
    """
    if not path:
        raise InvalidPathError("empty field path")
    segments: List[str] = []
    i = 0
    n = len(path)
    while i < n:
        if path[i] == "`":
            i += 1
            buf: List[str] = []
            closed = False
            while i < n:
                ch = path[i]
                if ch == "\\":
                    if i + 1 >= n:
                        raise InvalidPathError(f"dangling escape in field path '{path}'")
                    buf.append(path[i + 1])
                    i += 2
                elif ch == "`":
                    closed = True
                    i += 1
                    break
                else:
                    buf.append(ch)
                    i += 1
            if not closed:
                raise InvalidPathError(f"unterminated quote in field path '{path}'")
            segments.append("".join(buf))
        else:
            end = path.find(".", i)
            end = n if end == -1 else end
            segments.append(path[i:end])
            i = end
        if i < n:
            if path[i] != ".":
                raise InvalidPathError(f"malformed field path '{path}'")
            i += 1
            if i == n:
                raise InvalidPathError(f"field path '{path}' has an empty segment")
    return validate_path_segments(segments)


def is_document_id(segments: Sequence[str]) -> bool:
    """True if the path addresses the reserved document identity field."""
    return len(segments) == 1 and segments[0] == DOCUMENT_ID
