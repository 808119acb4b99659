"""
Collation - Locale-style string ordering for Turtle output.

Subject blocks, prefix lines and unknown predicates are ordered the way a
reader expects in an editor: case-insensitive first, punctuation before
digits before letters, and lowercase ahead of uppercase only when two
strings are otherwise equal.
"""

import unicodedata
from functools import cmp_to_key

# Root collation order of ASCII punctuation and symbols
PUNCTUATION_ORDER = "_-,;:!?.'\"()[]{}@*/\\&#%`^+<=>|~$"


def _strip_accents(char: str) -> str:
    decomposed = unicodedata.normalize("NFD", char)
    return "".join(c for c in decomposed if not unicodedata.combining(c)) or char


def _primary_weight(char: str) -> tuple:
    if char.isspace():
        return (0, ord(char))
    index = PUNCTUATION_ORDER.find(char)
    if index != -1:
        return (1, index)
    if char.isdigit():
        return (2, unicodedata.digit(char, ord(char)))
    if char.isalpha():
        return (3, _strip_accents(char).casefold())
    return (4, ord(char))


def collation_key(value: str) -> tuple:
    """
    Build a sort key approximating a root-locale ``localeCompare``.

    Compares whole-string primary weights first, then accents, then case.
    """
    primary = tuple(_primary_weight(c) for c in value)
    secondary = tuple(c.casefold() for c in value)
    tertiary = tuple(1 if c.isupper() else 0 for c in value)
    return (primary, secondary, tertiary)


def compare(a: str, b: str) -> int:
    """Three-way comparison using :func:`collation_key`."""
    key_a, key_b = collation_key(a), collation_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


collation_cmp_key = cmp_to_key(compare)
