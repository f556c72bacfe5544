"""Helpers for turning section identifiers and typed input into course codes."""

from __future__ import annotations

import re
from typing import Optional

SHORT_PREFIX = "CS"

# Long-form department prefixes folded into the short form.
LONG_PREFIXES = {"CSCI": SHORT_PREFIX}

# Two-letter campus suffixes seen on section identifiers, e.g. ``CSCI181DVPO``.
LOCATION_CODES = frozenset({"PO", "HM", "CM", "PZ", "AF", "SA", "IO", "BS"})

_LEADING_ZEROS = re.compile(r"^0+(?=\d)")
_WHITESPACE = re.compile(r"\s+")


def _strip_leading_zeros(number_part: str) -> str:
    return _LEADING_ZEROS.sub("", number_part)


def _fold_prefix(code: str) -> str:
    for long_prefix, short_prefix in LONG_PREFIXES.items():
        if code.startswith(long_prefix):
            return short_prefix + code[len(long_prefix) :]
    return code


def strip_location_code(course_code: str) -> str:
    """Drop a trailing campus code (``CS181DVPO`` -> ``CS181DV``).

    Codes of four characters or fewer are returned unchanged so that a bare
    ``CS`` number is never mistaken for a location suffix.
    """
    if len(course_code) > 4 and course_code.startswith(SHORT_PREFIX):
        if course_code[-2:] in LOCATION_CODES:
            return course_code[:-2]
    return course_code


def extract_course_code(section_id: Optional[str]) -> str:
    """Resolve the canonical course code embedded in a section identifier.

    Handles identifiers such as ``"CSCI140  HM-01 SP2025"``,
    ``"CSCI181DVPO-01 SP2025"`` and ``"CS62-01"``.

    Parameters
    ----------
    section_id : Optional[str]
        Raw section identifier. ``None`` or an empty string yields ``""``.

    Returns
    -------
    str
        The course code, e.g. ``"CS140"``, ``"CS181DV"`` or ``"CS62"``.
    """
    if not section_id:
        return ""

    dash = section_id.find("-")
    space = section_id.find(" ")
    if dash > 0 and (space == -1 or dash < space):
        code = section_id[:dash]
    elif space > 0:
        code = section_id[:space]
    else:
        code = section_id
    code = code.strip().upper()

    code = strip_location_code(_fold_prefix(code))
    if len(code) > len(SHORT_PREFIX) and code.startswith(SHORT_PREFIX):
        code = SHORT_PREFIX + _strip_leading_zeros(code[len(SHORT_PREFIX) :])
    return code


def canonical_course_code(code: Optional[str]) -> str:
    """Canonicalize an already-separated course code.

    Whitespace is dropped, the long department prefix is folded and leading
    zeros after ``CS`` are stripped (``"CSCI051"`` -> ``"CS51"``). Codes
    of other departments are only upper-cased.
    """
    if code is None:
        return ""
    folded = _fold_prefix(_WHITESPACE.sub("", code.upper()))
    if len(folded) > len(SHORT_PREFIX) and folded.startswith(SHORT_PREFIX):
        return SHORT_PREFIX + _strip_leading_zeros(folded[len(SHORT_PREFIX) :])
    return folded


def normalize_course_code_input(text: Optional[str]) -> str:
    """Canonicalize a course code typed by a person.

    The input may carry the long or short department prefix, whitespace,
    lower-case letters or leading zeros; ``"csci 051"``, ``"CS51"`` and
    ``"51"`` all become ``"CS51"``.
    """
    if text is None:
        return ""
    code = _WHITESPACE.sub("", text.upper())
    if not code:
        return ""

    folded = _fold_prefix(code)
    if folded.startswith(SHORT_PREFIX):
        code = folded[len(SHORT_PREFIX) :]
    return SHORT_PREFIX + _strip_leading_zeros(code)


def is_valid_course_code(course_code: Optional[str]) -> bool:
    """Return ``True`` when a normalized code has something after the prefix."""
    if not course_code or len(course_code) <= len(SHORT_PREFIX):
        return False
    return bool(course_code[len(SHORT_PREFIX) :].strip())


def matches_course_code(section_id: str, course_code: str) -> bool:
    """Check whether ``section_id`` is a section of ``course_code``.

    Both sides are compared after location codes are dropped, so a request
    for ``CS181DV`` matches the section ``CSCI181DVPO-01 SP2025``.
    """
    wanted = strip_location_code(normalize_course_code_input(course_code))
    if not is_valid_course_code(wanted):
        return False
    return extract_course_code(section_id) == wanted


__all__ = [
    "LOCATION_CODES",
    "canonical_course_code",
    "extract_course_code",
    "is_valid_course_code",
    "matches_course_code",
    "normalize_course_code_input",
    "strip_location_code",
]
