"""Classification and explanation of lottery outcomes."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Sequence

from .types import (
    ClassDemographics,
    ClassRequest,
    CourseSection,
    MajorStatus,
    OutcomeRecord,
    OutcomeStatus,
    Student,
    StudentYear,
)
from .weights import WeightCalculator

logger = logging.getLogger(__name__)

RequestKey = tuple[str, str]

ENROLLED_REASON = "Successfully enrolled"
NO_SEATS_REASON = "Course is full. No seats available."
GENERIC_WAITLIST_REASON = (
    "Course is full. Limited seats available and lottery selection favored "
    "other students"
)
UNKNOWN_MISSING_REASON = (
    "Prerequisites not met (unable to determine specific missing courses)"
)
VALIDATION_ERROR_REASON = (
    "Prerequisites could not be validated. Request rejected until eligibility "
    "can be confirmed."
)


def rejected_reason(missing: Iterable[str]) -> str:
    """Render the reason text for a request rejected on missing prerequisites."""
    return (
        "Missing prerequisites: "
        + ", ".join(sorted(missing))
        + ". Must complete prerequisites before registering for this class."
    )


class WaitlistAnalyzer:
    """Explains the lottery outcome of every request.

    The analysis is descriptive only; the winners were fixed by the lottery
    engine before it runs.
    """

    def __init__(self, calculator: Optional[WeightCalculator] = None) -> None:
        self._calculator = calculator or WeightCalculator()

    def analyze(
        self,
        enrolled_by_course: Mapping[str, Sequence[Student]],
        requests: Sequence[ClassRequest],
        students: Iterable[Student],
        sections: Iterable[CourseSection],
        weights: Mapping[RequestKey, int],
        current_year: int,
    ) -> dict[RequestKey, OutcomeRecord]:
        """Classify each request as enrolled, waitlisted or rejected.

        Parameters
        ----------
        enrolled_by_course : Mapping[str, Sequence[Student]]
            Winners per section id as returned by the lottery engine.
        requests : Sequence[ClassRequest]
            Every request that took part in the lottery.
        students : Iterable[Student]
            All known students.
        sections : Iterable[CourseSection]
            All sections, with enrollment already updated by the draw.
        weights : Mapping[tuple[str, str], int]
            Weight per ``(student_id, course_id)`` computed before the draw.
            A missing entry counts as ``0``.
        current_year : int
            Year used to derive academic standing.

        Returns
        -------
        dict[tuple[str, str], OutcomeRecord]
            One record per request whose student and section are both known.
        """
        students_by_id = {student.student_id: student for student in students}
        sections_by_id = {section.section_id: section for section in sections}
        requests_by_key = {request.key: request for request in requests}

        results: dict[RequestKey, OutcomeRecord] = {}
        demographics_cache: dict[str, ClassDemographics] = {}

        for request in requests:
            student = students_by_id.get(request.student_id)
            section = sections_by_id.get(request.course_id)
            if student is None or section is None:
                logger.warning(
                    f"No outcome for request {request.student_id}->{request.course_id}: "
                    "unknown student or section"
                )
                continue

            winners = enrolled_by_course.get(request.course_id, [])
            weight = weights.get(request.key, 0)

            if any(winner.student_id == request.student_id for winner in winners):
                results[request.key] = OutcomeRecord(
                    status=OutcomeStatus.ENROLLED,
                    course_id=request.course_id,
                    student_id=request.student_id,
                    weight=weight,
                    reason=ENROLLED_REASON,
                )
                continue

            if weight == 0:
                results[request.key] = OutcomeRecord(
                    status=OutcomeStatus.REJECTED,
                    course_id=request.course_id,
                    student_id=request.student_id,
                    weight=0,
                    reason=self._rejection_reason(student, section),
                )
                continue

            demographics = demographics_cache.get(request.course_id)
            if demographics is None:
                demographics = self.compute_demographics(
                    winners, requests_by_key, request.course_id, weights, current_year
                )
                demographics_cache[request.course_id] = demographics

            results[request.key] = OutcomeRecord(
                status=OutcomeStatus.WAITLISTED,
                course_id=request.course_id,
                student_id=request.student_id,
                weight=weight,
                reason=self.waitlist_reason(
                    student, request, section, demographics, weight, current_year
                ),
                demographics=demographics,
            )

        return results

    def _rejection_reason(self, student: Student, section: CourseSection) -> str:
        try:
            validation = self._calculator.validate_prerequisites(student, section)
        except Exception:
            logger.exception(
                f"Prerequisite validation failed for {student.student_id} "
                f"in {section.section_id}"
            )
            return VALIDATION_ERROR_REASON

        if validation.failed:
            return VALIDATION_ERROR_REASON
        if not validation.eligible and validation.missing:
            return rejected_reason(validation.missing)
        return UNKNOWN_MISSING_REASON

    def compute_demographics(
        self,
        winners: Sequence[Student],
        requests_by_key: Mapping[RequestKey, ClassRequest],
        course_id: str,
        weights: Mapping[RequestKey, int],
        current_year: int,
    ) -> ClassDemographics:
        """Summarize the winners of ``course_id``.

        Year and major counts always sum to the number of winners; rank counts
        do as long as every winner has a matching request. The average weight
        only includes winners with a known nonzero weight.
        """
        by_year = {year: 0 for year in StudentYear}
        by_major = {major: 0 for major in MajorStatus}
        by_rank = {rank: 0 for rank in (1, 2, 3, 4)}
        total_weight = 0
        weighted = 0

        for winner in winners:
            by_year[winner.year(current_year)] += 1
            by_major[winner.major_status or MajorStatus.NON_MAJOR] += 1

            key = (winner.student_id, course_id)
            request = requests_by_key.get(key)
            if request is None:
                continue
            by_rank[request.preference_rank] += 1

            weight = weights.get(key)
            if weight:
                total_weight += weight
                weighted += 1

        return ClassDemographics(
            total_enrolled=len(winners),
            seniors=by_year[StudentYear.SENIOR],
            juniors=by_year[StudentYear.JUNIOR],
            sophomores=by_year[StudentYear.SOPHOMORE],
            freshmen=by_year[StudentYear.FRESHMAN],
            cs_majors=by_major[MajorStatus.CS_MAJOR],
            cs_minors=by_major[MajorStatus.CS_MINOR],
            non_majors=by_major[MajorStatus.NON_MAJOR],
            rank1_preferences=by_rank[1],
            rank2_preferences=by_rank[2],
            rank3_preferences=by_rank[3],
            rank4_preferences=by_rank[4],
            average_weight=total_weight / weighted if weighted else 0.0,
        )

    def waitlist_reason(
        self,
        student: Student,
        request: ClassRequest,
        section: CourseSection,
        demographics: ClassDemographics,
        weight: int,
        current_year: int,
    ) -> str:
        """Explain why ``student`` was waitlisted for ``section``.

        The text states the student's weight and its components, compares it
        with the winners' average, lists the factors that applied and ends
        with a summary of the winning cohort.
        """
        if demographics.total_enrolled == 0:
            return NO_SEATS_REASON

        breakdown = self._calculator.breakdown(student, request, current_year)
        text = f"Your lottery weight: {weight} ({breakdown.describe()})"

        factors: list[str] = []
        average = demographics.average_weight
        if average > 0:
            text += f". Average weight of enrolled students: {average:.2f}"
            if weight < average:
                text += f" (you were {average - weight:.2f} points below average)"
                factors.append("Your lottery weight was below the average of enrolled students")
            elif weight > average:
                text += (
                    f" (you were {weight - average:.2f} points above average, "
                    "but course was full)"
                )
        text += ". "

        year = breakdown.student_year
        if year is StudentYear.FRESHMAN and demographics.freshmen == 0:
            factors.append(
                "All enrolled students are upperclassmen (Sophomores, Juniors, or Seniors)"
            )
        elif (
            year is StudentYear.SOPHOMORE
            and demographics.seniors + demographics.juniors > demographics.sophomores
        ):
            factors.append("Priority given to upperclassmen (Juniors and Seniors)")
        elif year is StudentYear.JUNIOR and demographics.seniors > demographics.juniors:
            factors.append("Priority given to Seniors")

        major = breakdown.major_status
        if (
            major is MajorStatus.NON_MAJOR
            and demographics.cs_majors + demographics.cs_minors > demographics.non_majors
        ):
            factors.append("Priority given to CS Majors and Minors")
        elif major is MajorStatus.CS_MINOR and demographics.cs_majors > demographics.cs_minors:
            factors.append("Priority given to CS Majors")

        ranks = demographics.by_rank()
        higher_ranked = sum(ranks[rank] for rank in range(1, request.preference_rank))
        if higher_ranked > 0:
            factors.append(
                "Students with higher preference ranks (more preferred) were prioritized"
            )

        if section.is_full:
            factors.append(f"Course is at capacity ({section.capacity} seats)")

        if factors:
            text += "Waitlisted due to: " + "; ".join(factors)
        else:
            text += f"Waitlisted due to: {GENERIC_WAITLIST_REASON}"

        text += (
            f". Class demographics: {demographics.total_enrolled} students enrolled "
            f"({demographics.seniors} Seniors, {demographics.juniors} Juniors, "
            f"{demographics.sophomores} Sophomores, {demographics.freshmen} Freshmen)."
        )
        return text


def format_outcome(record: OutcomeRecord, student: Student) -> str:
    """Render an outcome as a multi-line report for ``student``."""
    lines = [
        f"Student: {student.name} ({record.student_id})",
        f"  Major: {student.major_status.label}",
        f"  Grad Year: {student.grad_year}",
    ]
    if record.weight > 0:
        lines.append(f"  Lottery Weight: {record.weight}")
    lines.append(f"  Status: {record.status.name}")
    lines.append(f"  Reason: {record.reason}")
    text = "\n".join(lines) + "\n"

    if record.demographics is not None:
        text += "\n  Enrolled Class Demographics:\n"
        for line in str(record.demographics).splitlines():
            text += f"  {line}\n"
    return text


__all__ = [
    "ENROLLED_REASON",
    "NO_SEATS_REASON",
    "WaitlistAnalyzer",
    "format_outcome",
    "rejected_reason",
]
