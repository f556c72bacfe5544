"""Lottery weight calculation for a single course request."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .codes import extract_course_code
from .prerequisites import (
    VALIDATION_ERROR,
    PrerequisiteGraph,
    PrerequisiteValidation,
    build_default_graph,
)
from .types import ClassRequest, CourseSection, MajorStatus, Student, StudentYear

logger = logging.getLogger(__name__)

BASE_WEIGHT = 10
MIN_WEIGHT = 1
INELIGIBLE_WEIGHT = 0

RANK_BONUS = {1: 4, 2: 3, 3: 2, 4: 1}
MAJOR_BONUS = {
    MajorStatus.CS_MAJOR: 4,
    MajorStatus.CS_MINOR: 2,
    MajorStatus.NON_MAJOR: 0,
}
YEAR_BONUS = {
    StudentYear.SENIOR: 4,
    StudentYear.JUNIOR: 3,
    StudentYear.SOPHOMORE: 2,
    StudentYear.FRESHMAN: 1,
}


@dataclass(frozen=True)
class WeightBreakdown:
    """Additive components of an eligible request's weight.

    Attributes
    ----------
    base : int
        Base weight every eligible request starts from.
    rank_bonus : int
        Bonus for the request's preference rank.
    major_bonus : int
        Bonus for the student's major status.
    year_bonus : int
        Bonus for the student's academic standing.
    student_year : StudentYear
        Standing the year bonus was derived from.
    preference_rank : int
        Rank of the request.
    major_status : MajorStatus
        Major status the major bonus was derived from.
    """

    base: int
    rank_bonus: int
    major_bonus: int
    year_bonus: int
    student_year: StudentYear
    preference_rank: int
    major_status: MajorStatus

    @property
    def total(self) -> int:
        return max(self.base + self.rank_bonus + self.major_bonus + self.year_bonus, MIN_WEIGHT)

    def describe(self) -> str:
        """Render the breakdown as ``"Base: 10 + Preference Rank 1: +4 ..."``."""
        parts = [f"Base: {self.base}"]
        if self.rank_bonus > 0:
            parts.append(f"Preference Rank {self.preference_rank}: +{self.rank_bonus}")
        if self.major_bonus > 0:
            parts.append(f"{self.major_status.label}: +{self.major_bonus}")
        parts.append(f"{self.student_year.label}: +{self.year_bonus}")
        return " + ".join(parts)


class WeightCalculator:
    """Computes lottery ticket counts gated by prerequisite eligibility."""

    def __init__(self, graph: Optional[PrerequisiteGraph] = None) -> None:
        """Create a calculator bound to a prerequisite graph.

        Parameters
        ----------
        graph : Optional[PrerequisiteGraph], default: None
            Graph used for eligibility checks. When omitted, a graph built from
            the default CS curriculum is used.
        """
        self._graph = graph if graph is not None else build_default_graph()

    @property
    def graph(self) -> PrerequisiteGraph:
        return self._graph

    def compute_weight_now(
        self, student: Student, request: ClassRequest, course: CourseSection
    ) -> int:
        """Same as :meth:`compute_weight` with the current calendar year."""
        return self.compute_weight(student, request, course, date.today().year)

    def compute_weight(
        self,
        student: Student,
        request: ClassRequest,
        course: CourseSection,
        current_year: int,
    ) -> int:
        """Return the number of lottery tickets for ``request``.

        Parameters
        ----------
        student : Student
            The requesting student.
        request : ClassRequest
            Request carrying the preference rank.
        course : CourseSection
            Section being requested; its identifier determines the course code.
        current_year : int
            Year used to derive the student's academic standing.

        Returns
        -------
        int
            ``0`` when prerequisites are unmet (the request gets no tickets at
            all), otherwise the additive weight, never below ``1``.

        Raises
        ------
        ValueError
            If ``student``, ``request`` or ``course`` is ``None``.
        """
        if student is None or request is None or course is None:
            raise ValueError("Student, request, and course cannot be None.")

        if not self.validate_prerequisites(student, course).eligible:
            return INELIGIBLE_WEIGHT
        return self.breakdown(student, request, current_year).total

    def breakdown(
        self, student: Student, request: ClassRequest, current_year: int
    ) -> WeightBreakdown:
        """Return the additive components of the weight, ignoring eligibility."""
        major_status = student.major_status or MajorStatus.NON_MAJOR
        student_year = StudentYear.from_grad_year(student.grad_year, current_year)
        return WeightBreakdown(
            base=BASE_WEIGHT,
            rank_bonus=RANK_BONUS.get(request.preference_rank, RANK_BONUS[4]),
            major_bonus=MAJOR_BONUS[major_status],
            year_bonus=YEAR_BONUS[student_year],
            student_year=student_year,
            preference_rank=request.preference_rank,
            major_status=major_status,
        )

    def validate_prerequisites(
        self, student: Student, course: CourseSection
    ) -> PrerequisiteValidation:
        """Check ``student``'s completed courses against ``course``.

        Any error raised while evaluating prerequisites is logged and turned
        into an ineligible result; eligibility is never assumed.
        """
        course_code = ""
        try:
            course_code = extract_course_code(course.section_id)
            if not course_code:
                return PrerequisiteValidation(True, frozenset(), "No course code to validate")

            required = self._graph.get_all_prerequisites(course_code)
            if not required:
                return PrerequisiteValidation(True, frozenset(), "No prerequisites required")

            missing = frozenset(p for p in required if not student.has_taken(p))
        except Exception as exc:
            logger.exception(
                f"Error checking prerequisites for course_code='{course_code}' "
                f"(section_id='{course.section_id}')"
            )
            return PrerequisiteValidation(
                False,
                frozenset({VALIDATION_ERROR}),
                f"{VALIDATION_ERROR}: {exc}",
            )

        if not missing:
            return PrerequisiteValidation(True, frozenset(), "All prerequisites met")
        return PrerequisiteValidation(
            False,
            missing,
            "Missing prerequisites: " + ", ".join(sorted(missing)),
        )


__all__ = [
    "BASE_WEIGHT",
    "INELIGIBLE_WEIGHT",
    "MAJOR_BONUS",
    "RANK_BONUS",
    "WeightBreakdown",
    "WeightCalculator",
    "YEAR_BONUS",
]
