"""Loading lottery inputs from the roster CSV and the section catalog JSON."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from ..lottery.codes import is_valid_course_code, normalize_course_code_input
from ..lottery.types import (
    MAX_PREFERENCE_RANK,
    ClassRequest,
    CourseSection,
    MajorStatus,
    Student,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_SECTION_CAPACITY = 30

# student_id,name,[past, classes],[requested, classes],grad_year,major_status
_ROSTER_LINE = re.compile(
    r"^\s*(?P<student_id>[^,\[\]]+?)\s*,"
    r"\s*(?P<name>[^,\[\]]+?)\s*,"
    r"\s*\[(?P<past>[^\]]*)\]\s*,"
    r"\s*\[(?P<requested>[^\]]*)\]\s*,"
    r"\s*(?P<grad_year>\d{4})\s*,"
    r"\s*(?P<major>.*?)\s*$"
)


def parse_major_status(text: Optional[str]) -> MajorStatus:
    """Map roster text such as ``"CS major"`` to a :class:`MajorStatus`."""
    normalized = (text or "").strip().lower().replace("_", " ")
    if normalized == "cs major":
        return MajorStatus.CS_MAJOR
    if normalized == "cs minor":
        return MajorStatus.CS_MINOR
    return MajorStatus.NON_MAJOR


def _split_codes(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_roster_line(line: str) -> Student:
    """Parse one roster line into a :class:`Student`.

    Completed courses are canonicalized; requested entries are kept as given
    because they name sections rather than courses.

    Raises
    ------
    ValueError
        If the line does not match the roster layout or describes an invalid
        student.
    """
    match = _ROSTER_LINE.match(line)
    if match is None:
        raise ValueError(f"Malformed roster line: {line!r}")

    completed = set()
    for code in _split_codes(match["past"]):
        normalized = normalize_course_code_input(code)
        if is_valid_course_code(normalized):
            completed.add(normalized)

    return Student(
        student_id=match["student_id"],
        name=match["name"],
        grad_year=int(match["grad_year"]),
        major_status=parse_major_status(match["major"]),
        completed_courses=completed,
        requested_courses=_split_codes(match["requested"]),
    )


def load_students_csv(path: PathLike) -> list[Student]:
    """Load students from the roster file at ``path``.

    The first line is a header. Blank lines are ignored; malformed lines are
    logged and skipped.
    """
    students: list[Student] = []
    with open(path, encoding="utf-8") as fh:
        next(fh, None)
        for lineno, line in enumerate(fh, start=2):
            if not line.strip():
                continue
            try:
                students.append(parse_roster_line(line))
            except ValueError as exc:
                logger.warning(f"{path}:{lineno}: skipping roster line ({exc})")
    logger.debug(f"Loaded {len(students)} students from {path}")
    return students


def _section_from_json(obj: dict[str, Any]) -> Optional[CourseSection]:
    section_id = obj.get("courseSectionId")
    section_number = obj.get("courseSectionNumber")
    if not section_id or section_number is None:
        return None
    return CourseSection(
        section_id=str(section_id).strip(),
        section_number=str(section_number).strip(),
        capacity=int(obj.get("capacity", 0) or 0),
        current_enrollment=int(obj.get("currentEnrollment", 0) or 0),
        credit_hours=float(obj.get("creditHours", 0.0) or 0.0),
    )


def load_sections_json(path: PathLike) -> list[CourseSection]:
    """Load course sections from a JSON array of catalog objects.

    Each object carries ``courseSectionId``, ``courseSectionNumber``,
    ``capacity``, ``currentEnrollment`` and ``creditHours``. Objects without
    identifiers or with invalid numbers are logged and skipped.
    """
    with open(path, encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a JSON array of sections")

    sections: list[CourseSection] = []
    for index, obj in enumerate(payload):
        if not isinstance(obj, dict):
            logger.warning(f"{path}[{index}]: skipping non-object entry")
            continue
        try:
            section = _section_from_json(obj)
        except (TypeError, ValueError) as exc:
            logger.warning(f"{path}[{index}]: skipping section ({exc})")
            continue
        if section is None:
            logger.warning(f"{path}[{index}]: skipping section without identifiers")
            continue
        sections.append(section)
    return sections


def build_requests(students: Iterable[Student]) -> list[ClassRequest]:
    """Turn each student's ordered wish list into ranked requests.

    The first requested course gets rank 1; anything past the fourth entry is
    dropped. Repeated entries only count once.
    """
    requests: list[ClassRequest] = []
    for student in students:
        seen: set[str] = set()
        rank = 1
        for course_id in student.requested_courses:
            if rank > MAX_PREFERENCE_RANK:
                break
            if course_id in seen:
                continue
            seen.add(course_id)
            requests.append(ClassRequest(student.student_id, course_id, rank))
            rank += 1
    return requests


def default_sections(
    requests: Iterable[ClassRequest], capacity: int = DEFAULT_SECTION_CAPACITY
) -> list[CourseSection]:
    """Create one open section per distinct requested course id."""
    course_ids = sorted({request.course_id for request in requests})
    return [CourseSection(section_id=course_id, capacity=capacity) for course_id in course_ids]


__all__ = [
    "build_requests",
    "default_sections",
    "load_sections_json",
    "load_students_csv",
    "parse_major_status",
    "parse_roster_line",
]
