"""Weighted seat lottery run independently for every course section."""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from .types import ClassRequest, CourseSection, OutcomeRecord, Student
from .waitlist import WaitlistAnalyzer
from .weights import WeightCalculator

logger = logging.getLogger(__name__)

RequestKey = tuple[str, str]


@dataclass
class LotteryResult:
    """Winners and per-request outcomes produced by one lottery run.

    Attributes
    ----------
    enrolled_by_course : dict[str, list[Student]]
        Winners per section id, in the order they were drawn.
    outcomes : dict[tuple[str, str], OutcomeRecord]
        Outcome per ``(student_id, course_id)``.
    weights : dict[tuple[str, str], int]
        Weights computed before the draw for every resolvable request.
    current_year : int
        Year used to derive academic standing.
    """

    enrolled_by_course: dict[str, list[Student]]
    outcomes: dict[RequestKey, OutcomeRecord] = field(default_factory=dict)
    weights: dict[RequestKey, int] = field(default_factory=dict)
    current_year: int = 0

    def outcome_for(self, student_id: str, course_id: str) -> Optional[OutcomeRecord]:
        """Return the outcome for one request, or ``None`` if there is none."""
        return self.outcomes.get((student_id, course_id))

    def winners(self, course_id: str) -> list[Student]:
        return list(self.enrolled_by_course.get(course_id, []))

    @property
    def total_enrolled(self) -> int:
        return sum(len(winners) for winners in self.enrolled_by_course.values())


class LotteryEngine:
    """Runs a without-replacement weighted draw for each course section."""

    def __init__(
        self,
        calculator: Optional[WeightCalculator] = None,
        *,
        rng: Optional[random.Random] = None,
        current_year: Optional[int] = None,
    ) -> None:
        """Create a lottery engine.

        Parameters
        ----------
        calculator : Optional[WeightCalculator], default: None
            Calculator used to turn requests into ticket counts. A calculator
            over the default CS prerequisite graph is used when omitted.
        rng : Optional[random.Random], default: None
            Random source used for every draw. Pass a seeded instance for
            reproducible runs; a fresh unseeded instance is used otherwise.
        current_year : Optional[int], default: None
            Year used for academic standing. Defaults to the calendar year at
            the time of each run.
        """
        self._calculator = calculator or WeightCalculator()
        self._rng = rng or random.Random()
        self._current_year = current_year

    @property
    def calculator(self) -> WeightCalculator:
        return self._calculator

    def _resolve_year(self, current_year: Optional[int]) -> int:
        if current_year is not None:
            return current_year
        if self._current_year is not None:
            return self._current_year
        return date.today().year

    def run_lottery(
        self,
        students: Iterable[Student],
        sections: Sequence[CourseSection],
        requests: Iterable[ClassRequest],
        *,
        current_year: Optional[int] = None,
    ) -> dict[str, list[Student]]:
        """Run the lottery for every section and update enrollment counts.

        Parameters
        ----------
        students : Iterable[Student]
            All known students. Requests naming other students are skipped.
        sections : Sequence[CourseSection]
            Sections to draw for. Each section's ``current_enrollment`` is
            increased by its number of winners.
        requests : Iterable[ClassRequest]
            All requests; they are grouped by ``course_id``.
        current_year : Optional[int], default: None
            Overrides the engine's year for this run.

        Returns
        -------
        dict[str, list[Student]]
            Winners per section id, in draw order. Every section appears,
            possibly with an empty list.
        """
        year = self._resolve_year(current_year)
        students_by_id = {student.student_id: student for student in students}

        requests_by_course: dict[str, list[ClassRequest]] = defaultdict(list)
        for request in requests:
            requests_by_course[request.course_id].append(request)

        enrolled_by_course: dict[str, list[Student]] = {}
        for section in sections:
            winners = self.run_course_lottery(
                section,
                requests_by_course.get(section.section_id, []),
                students_by_id,
                current_year=year,
            )
            enrolled_by_course[section.section_id] = winners
            section.current_enrollment += len(winners)
            logger.debug(
                f"Section {section.section_id}: {len(winners)} winner(s), "
                f"enrollment now {section.current_enrollment}/{section.capacity}"
            )

        return enrolled_by_course

    def build_ticket_pool(
        self,
        section: CourseSection,
        requests: Iterable[ClassRequest],
        students_by_id: Mapping[str, Student],
        *,
        current_year: int,
    ) -> list[Student]:
        """Return the ticket pool for ``section``.

        Each eligible student appears exactly ``weight`` times. Requests for
        unknown students and requests with weight ``0`` contribute nothing.
        """
        pool: list[Student] = []
        for request in requests:
            student = students_by_id.get(request.student_id)
            if student is None:
                logger.warning(
                    f"Skipping request for unknown student '{request.student_id}' "
                    f"in section '{section.section_id}'"
                )
                continue

            weight = self._calculator.compute_weight(student, request, section, current_year)
            if weight <= 0:
                continue
            pool.extend([student] * weight)
        return pool

    def run_course_lottery(
        self,
        section: CourseSection,
        requests: Iterable[ClassRequest],
        students_by_id: Mapping[str, Student],
        *,
        current_year: Optional[int] = None,
    ) -> list[Student]:
        """Draw winners for a single section without touching its enrollment.

        Notes
        -----
        The draw proceeds as follows:

        1. Stop immediately if the section has no seats left.
        2. Build the ticket pool (see :meth:`build_ticket_pool`).
        3. Repeatedly pick one ticket uniformly at random. The drawn student
           wins a seat unless they already hold one, and every ticket of that
           student is then removed from the pool.
        4. Stop once seats run out or the pool is empty.

        Removing all of a student's tickets changes the odds of later draws,
        so draws within a section are strictly sequential.
        """
        year = self._resolve_year(current_year)
        winners: list[Student] = []

        if section.is_full:
            return winners
        seats_left = section.seats_left

        pool = self.build_ticket_pool(section, requests, students_by_id, current_year=year)
        if not pool:
            return winners

        chosen_ids: set[str] = set()
        while seats_left > 0 and pool:
            drawn = pool[self._rng.randrange(len(pool))]
            if drawn.student_id not in chosen_ids:
                winners.append(drawn)
                chosen_ids.add(drawn.student_id)
                seats_left -= 1
                logger.debug(
                    f"Section {section.section_id}: drew {drawn.student_id}, "
                    f"{seats_left} seat(s) left"
                )
            else:
                logger.debug(f"Section {section.section_id}: {drawn.student_id} already won")

            pool = [ticket for ticket in pool if ticket.student_id != drawn.student_id]

        return winners

    def compute_request_weights(
        self,
        students: Iterable[Student],
        sections: Iterable[CourseSection],
        requests: Iterable[ClassRequest],
        *,
        current_year: Optional[int] = None,
    ) -> dict[RequestKey, int]:
        """Return the weight of every request whose student and section exist."""
        year = self._resolve_year(current_year)
        students_by_id = {student.student_id: student for student in students}
        sections_by_id = {section.section_id: section for section in sections}

        weights: dict[RequestKey, int] = {}
        for request in requests:
            student = students_by_id.get(request.student_id)
            section = sections_by_id.get(request.course_id)
            if student is None or section is None:
                continue
            weights[request.key] = self._calculator.compute_weight(
                student, request, section, year
            )
        return weights

    def run_lottery_with_waitlist(
        self,
        students: Sequence[Student],
        sections: Sequence[CourseSection],
        requests: Sequence[ClassRequest],
        *,
        current_year: Optional[int] = None,
        analyzer: Optional[WaitlistAnalyzer] = None,
    ) -> LotteryResult:
        """Run the lottery and classify every request.

        Weights are computed before the draw so that the analysis sees the
        same numbers the draw used.
        """
        year = self._resolve_year(current_year)
        weights = self.compute_request_weights(
            students, sections, requests, current_year=year
        )
        enrolled_by_course = self.run_lottery(
            students, sections, requests, current_year=year
        )

        analyzer = analyzer or WaitlistAnalyzer(self._calculator)
        outcomes = analyzer.analyze(
            enrolled_by_course, requests, students, sections, weights, year
        )
        return LotteryResult(
            enrolled_by_course=enrolled_by_course,
            outcomes=outcomes,
            weights=weights,
            current_year=year,
        )


__all__ = [
    "LotteryEngine",
    "LotteryResult",
]
