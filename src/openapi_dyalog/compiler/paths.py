"""Converts OpenAPI URL path templates into APL path expressions."""

import re
from typing import Literal, NamedTuple

from .naming import sanitize

PATH_PARAMETER_RE = re.compile(r"\{([^}]+)\}")

ARGS_NAMESPACE = "argsNs"
EMPTY_STRING = "''"


class PathSegment(NamedTuple):
    kind: Literal["literal", "variable"]
    value: str  # literal text, or the sanitized parameter name


def apl_string(text: str) -> str:
    """Quote text as an APL character vector literal."""
    return "'" + text.replace("'", "''") + "'"


def path_segments(template: str) -> list[PathSegment]:
    """Split a path template into literal and variable segments, in source order."""
    segments = []
    current = 0
    for match in PATH_PARAMETER_RE.finditer(template):
        if match.start() > current:
            segments.append(PathSegment("literal", template[current:match.start()]))
        segments.append(PathSegment("variable", sanitize(match.group(1))))
        current = match.end()
    if current < len(template):
        segments.append(PathSegment("literal", template[current:]))
    return segments


def render_segment(segment: PathSegment) -> str:
    if segment.kind == "literal":
        return apl_string(segment.value)
    return f"(⍕{ARGS_NAMESPACE}.{segment.value})"


def compile_path(template: str) -> str:
    """Convert a path template into an APL expression.

    Example: ``/user/{userId}`` -> ``'/user/',(⍕argsNs.userId)``
    """
    segments = path_segments(template or "")
    if not segments:
        return EMPTY_STRING
    return ",".join(render_segment(s) for s in segments)
