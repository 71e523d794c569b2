"""
Naming utilities for generated APL code.

Handles identifier sanitization, case conversion and collision suffixing.
Every name that ends up in generated source passes through ``sanitize``.
"""

import re
import string
from collections.abc import Collection

ESCAPE = "⍙"
EMPTY_NAME = f"{ESCAPE}empty"

_LATIN1_LETTERS = frozenset(chr(c) for c in range(0xC0, 0xFF) if c not in (0xD7, 0xF7))
_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_∆") | _LATIN1_LETTERS

_WORD_RE = re.compile(r"[^\W_]+")
_LOWER_UPPER_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def _is_name_char(ch: str) -> bool:
    return ch in _NAME_CHARS


def is_valid_name(name: str) -> bool:
    """Check whether ``name`` is a plain APL name that needs no escaping."""
    if not name or name[0].isdigit() or name[0] == ESCAPE:
        return False
    return all(_is_name_char(ch) for ch in name)


def is_escaped_name(name: str) -> bool:
    """Check whether ``name`` is already in the escaped form ``sanitize`` produces.

    That is a leading escape marker followed by legal characters and
    ``⍙<code point>⍙`` groups.
    """
    if len(name) < 2 or name[0] != ESCAPE:
        return False

    i, n = 1, len(name)
    while i < n:
        ch = name[i]
        if ch == ESCAPE:
            j = i + 1
            while j < n and name[j] in string.digits:
                j += 1
            if j == i + 1 or j >= n or name[j] != ESCAPE:
                return False
            i = j + 1
        elif _is_name_char(ch):
            i += 1
        else:
            return False
    return True


def sanitize(raw: str) -> str:
    """
    Convert an arbitrary string into a legal APL name.

    Legal names come back unchanged. Anything else is prefixed with the
    escape marker and each illegal character (the marker included) is
    replaced by its decimal code point between two markers, so
    ``hello-world`` becomes ``⍙hello⍙45⍙world``. Two different inputs can
    still meet at one name; callers that need uniqueness suffix at the point
    of use with ``unique_name``.

    Args:
        raw: Any string, possibly empty

    Returns:
        A legal APL name
    """
    if not raw:
        return EMPTY_NAME
    if is_valid_name(raw) or is_escaped_name(raw):
        return raw

    parts = [ESCAPE]
    for ch in raw:
        if _is_name_char(ch):
            parts.append(ch)
        else:
            parts.append(f"{ESCAPE}{ord(ch)}{ESCAPE}")
    return "".join(parts)


def split_words(text: str) -> list[str]:
    """Split text into words on separators and case boundaries."""
    words = []
    for run in _WORD_RE.findall(text):
        run = _ACRONYM_RE.sub(r"\1 \2", run)
        run = _LOWER_UPPER_RE.sub(r"\1 \2", run)
        words.extend(run.split())
    return words


def pascal_case(text: str) -> str:
    """Convert to PascalCase (``list_pets`` -> ``ListPets``)."""
    return "".join(w[:1].upper() + w[1:].lower() for w in split_words(text))


def camel_case(text: str) -> str:
    """Convert to camelCase (``List-Pets`` -> ``listPets``)."""
    words = split_words(text)
    if not words:
        return ""
    first, *rest = words
    return first.lower() + "".join(w[:1].upper() + w[1:].lower() for w in rest)


def snake_case(text: str) -> str:
    """Convert to snake_case (``securitySchemeNames`` -> ``security_scheme_names``)."""
    return "_".join(w.lower() for w in split_words(text))


def model_name(raw: str) -> str:
    """Class name for a component or synthetic model."""
    return sanitize(pascal_case(raw))


def member_name(raw: str) -> str:
    """Name for a property, form field, or tag namespace."""
    return sanitize(camel_case(raw))


def unique_name(base: str, taken: Collection[str], start: int = 2) -> str:
    """Return ``base``, or ``base`` plus the first free numeric suffix from ``start`` up."""
    if base not in taken:
        return base
    counter = start
    while f"{base}{counter}" in taken:
        counter += 1
    return f"{base}{counter}"


def comment_lines(text: str | None) -> str:
    """Prefix every line of ``text`` with the APL comment symbol."""
    if not text:
        return ""
    return "\n".join(f"⍝ {line}" for line in _LINE_BREAK_RE.split(text))
