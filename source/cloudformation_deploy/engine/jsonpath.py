# ABOUTME: Restricted JSON path extraction for external command results
# ABOUTME: Supports dictionary keys, array indices and field=value array filters

"""
JSON path extraction.

Paths look like ``/VpnConnections/VgwTelemetry[0]/OutsideIpAddress`` or
``/Reservations/Instances[Name=web]/PrivateIpAddress``. Segments are split
on ``/`` characters outside brackets. A selector on a segment applies to the
array found under that segment's name, before the next segment's name is
looked up.
"""

import re
from typing import Any

from ..errors import PathError, PathErrorKind

PATH_SYNTAX = re.compile(r"^(/[A-Za-z0-9_-]+(\[[A-Za-z0-9_/= -]+\])?)+$")
SEGMENT_SYNTAX = re.compile(r"^([A-Za-z0-9_-]+)(\[([0-9]+|[A-Za-z0-9_-]+=[A-Za-z0-9_ /-]+)\])?$")
FILTER_SYNTAX = re.compile(r"^([A-Za-z0-9_-]+)=([A-Za-z0-9_ /-]+)$")
SEGMENT_DELIMITER = re.compile(r"/(?![^\[]*\])")


def split_path(path: str) -> list[str]:
    """Validate a path and split it into segments.

    Raises:
        PathError: If the path does not follow the grammar.
    """
    if not PATH_SYNTAX.match(path):
        raise PathError(PathErrorKind.INVALID_SYNTAX, f"Invalid parameter name syntax: {path}")
    return [segment for segment in SEGMENT_DELIMITER.split(path) if segment]


def apply_selector(node: Any, selector: str, extract_string: bool) -> Any:
    """Select into an array by index or by a field filter.

    Returns ``None`` when nothing matches. An indexed string element is only
    returned when ``extract_string`` is set, i.e. at the end of the path.

    Raises:
        PathError: If the node is not an array, or a filter matches more than once.
    """
    if not isinstance(node, list):
        raise PathError(PathErrorKind.TYPE_MISMATCH, "Invalid parameter type: element is not an array.")

    if selector.isdigit():
        index = int(selector)
        if index >= len(node):
            return None
        element = node[index]
        if isinstance(element, str) and not extract_string:
            return None
        return element

    match = FILTER_SYNTAX.match(selector)
    if not match:
        raise PathError(PathErrorKind.INVALID_SYNTAX, f"Invalid group filter: {selector}")

    field_name, value = match.group(1), match.group(2)
    matches = [item for item in node if isinstance(item, dict) and item.get(field_name) == value]
    if len(matches) > 1:
        raise PathError(PathErrorKind.TOO_MANY_MATCHES, f"Too many matches for filter {selector}.")
    return matches[0] if matches else None


class JsonPathExtractor:
    """Pulls a single string out of a parsed JSON document."""

    def extract(self, document: Any, path: str, default: str | None = None) -> str:
        """Walk ``document`` along ``path``.

        Args:
            document: Parsed JSON value.
            path: Path in the restricted grammar.
            default: Value returned when the path resolves to nothing usable.

        Returns:
            The matched string, or ``default``.

        Raises:
            PathError: On malformed paths, type mismatches, ambiguous filters,
                or when nothing matches and there is no default.
        """
        node = document
        selector = None

        for segment in split_path(path):
            if node is None:
                break

            if selector is None:
                if not isinstance(node, dict):
                    raise PathError(PathErrorKind.TYPE_MISMATCH, f"Element is not a dictionary at '{segment}'.")
            elif not isinstance(node, list):
                raise PathError(PathErrorKind.TYPE_MISMATCH, f"Element is not an array before '{segment}'.")

            match = SEGMENT_SYNTAX.match(segment)
            if not match:
                raise PathError(PathErrorKind.INVALID_SYNTAX, f"Couldn't parse path segment '{segment}'.")

            if selector is not None:
                node = apply_selector(node, selector, extract_string=False)
                if node is None:
                    break
                if not isinstance(node, dict):
                    raise PathError(PathErrorKind.TYPE_MISMATCH, f"Element is not a dictionary at '{segment}'.")

            node = node.get(match.group(1))
            selector = match.group(3)

        if not isinstance(node, str) and isinstance(node, list) and selector is not None:
            node = apply_selector(node, selector, extract_string=True)

        if isinstance(node, str):
            return node
        if default is not None:
            return default
        raise PathError(PathErrorKind.NOT_FOUND, f"Couldn't find parameter at {path}.")
