"""Value objects shared by the lottery subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .codes import canonical_course_code

MIN_GRAD_YEAR = 1900
MAX_GRAD_YEAR = 2100
MIN_PREFERENCE_RANK = 1
MAX_PREFERENCE_RANK = 4


class MajorStatus(Enum):
    """Declared relationship of a student to the CS department."""

    CS_MAJOR = "cs_major"
    CS_MINOR = "cs_minor"
    NON_MAJOR = "non_major"

    @property
    def label(self) -> str:
        return _MAJOR_LABELS[self]


_MAJOR_LABELS = {
    MajorStatus.CS_MAJOR: "CS Major",
    MajorStatus.CS_MINOR: "CS Minor",
    MajorStatus.NON_MAJOR: "Non-major",
}


class StudentYear(Enum):
    """Academic standing derived from the years left until graduation."""

    FRESHMAN = "freshman"
    SOPHOMORE = "sophomore"
    JUNIOR = "junior"
    SENIOR = "senior"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_grad_year(cls, grad_year: int, current_year: int) -> "StudentYear":
        """Return the standing for ``grad_year`` as seen from ``current_year``.

        Parameters
        ----------
        grad_year : int
            Expected graduation year of the student.
        current_year : int
            Academic year the standing is evaluated in.

        Returns
        -------
        StudentYear
            ``SENIOR`` when no years are left (or the date has passed),
            ``JUNIOR`` with one year left, ``SOPHOMORE`` with two and
            ``FRESHMAN`` otherwise.
        """
        years_left = grad_year - current_year
        if years_left <= 0:
            return cls.SENIOR
        if years_left == 1:
            return cls.JUNIOR
        if years_left == 2:
            return cls.SOPHOMORE
        return cls.FRESHMAN


class SectionStatus(Enum):
    OPEN = "O"
    CLOSED = "C"
    RESTRICTED = "R"


class OutcomeStatus(Enum):
    ENROLLED = "enrolled"
    WAITLISTED = "waitlisted"
    REJECTED = "rejected"


def _canonical_codes(course_codes: Iterable[str]) -> set[str]:
    return {code for code in map(canonical_course_code, course_codes) if code}


@dataclass(eq=False)
class Student:
    """A student taking part in the lottery.

    Attributes
    ----------
    student_id : str
        Unique identifier of the student.
    name : str
        Display name.
    grad_year : int
        Expected graduation year.
    major_status : MajorStatus
        Relationship to the CS department.
    completed_courses : set[str]
        Codes of courses already passed, canonicalized on the way in. The set
        only grows, see :meth:`record_completion`.
    requested_courses : list[str]
        Course identifiers the student asked for, most preferred first.
    """

    student_id: str
    name: str
    grad_year: int
    major_status: MajorStatus = MajorStatus.NON_MAJOR
    completed_courses: set[str] = field(default_factory=set)
    requested_courses: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.student_id:
            raise ValueError("student_id must not be empty")
        if not self.name:
            raise ValueError("name must not be empty")
        if not MIN_GRAD_YEAR <= self.grad_year <= MAX_GRAD_YEAR:
            raise ValueError(f"Invalid graduation year: {self.grad_year}")
        if self.major_status is None:
            self.major_status = MajorStatus.NON_MAJOR
        self.completed_courses = _canonical_codes(self.completed_courses or ())
        self.requested_courses = list(self.requested_courses or ())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Student):
            return NotImplemented
        return self.student_id == other.student_id

    def __hash__(self) -> int:
        return hash(self.student_id)

    def has_taken(self, course_code: str) -> bool:
        return course_code in self.completed_courses

    def record_completion(self, course_codes: Iterable[str]) -> None:
        """Add ``course_codes`` to the completed set.

        Codes are canonicalized first, so ``"CSCI051"`` is recorded as
        ``"CS51"``, the form the prerequisite graph uses.
        """
        self.completed_courses.update(_canonical_codes(course_codes))

    def year(self, current_year: int) -> StudentYear:
        return StudentYear.from_grad_year(self.grad_year, current_year)


@dataclass
class CourseSection:
    """A section with a fixed number of seats.

    ``current_enrollment`` is the only field mutated after creation; the
    lottery engine bumps it once per draw.
    """

    section_id: str
    section_number: str = "01"
    capacity: int = 0
    current_enrollment: int = 0
    credit_hours: float = 1.0
    status: SectionStatus = SectionStatus.OPEN

    def __post_init__(self) -> None:
        if not self.section_id:
            raise ValueError("section_id must not be empty")
        if self.capacity < 0:
            raise ValueError("capacity cannot be negative")
        if not 0 <= self.current_enrollment <= self.capacity:
            raise ValueError("current_enrollment must be between 0 and capacity")

    @property
    def seats_left(self) -> int:
        return self.capacity - self.current_enrollment

    @property
    def is_full(self) -> bool:
        return self.seats_left <= 0


@dataclass(frozen=True)
class ClassRequest:
    """A student's ranked request for one course section."""

    student_id: str
    course_id: str
    preference_rank: int

    def __post_init__(self) -> None:
        if not MIN_PREFERENCE_RANK <= self.preference_rank <= MAX_PREFERENCE_RANK:
            raise ValueError(
                f"preference_rank must be between {MIN_PREFERENCE_RANK} and "
                f"{MAX_PREFERENCE_RANK}, got {self.preference_rank}"
            )

    @property
    def key(self) -> tuple[str, str]:
        return (self.student_id, self.course_id)


@dataclass(frozen=True)
class ClassDemographics:
    """Aggregate description of the students who won seats in a course.

    Attributes
    ----------
    total_enrolled : int
        Number of winners.
    seniors, juniors, sophomores, freshmen : int
        Winners by academic standing.
    cs_majors, cs_minors, non_majors : int
        Winners by major status.
    rank1_preferences, rank2_preferences, rank3_preferences, rank4_preferences : int
        Winners by the preference rank of their request.
    average_weight : float
        Mean lottery weight of winners with a known, nonzero weight.
    """

    total_enrolled: int
    seniors: int = 0
    juniors: int = 0
    sophomores: int = 0
    freshmen: int = 0
    cs_majors: int = 0
    cs_minors: int = 0
    non_majors: int = 0
    rank1_preferences: int = 0
    rank2_preferences: int = 0
    rank3_preferences: int = 0
    rank4_preferences: int = 0
    average_weight: float = 0.0

    def by_year(self) -> dict[StudentYear, int]:
        return {
            StudentYear.SENIOR: self.seniors,
            StudentYear.JUNIOR: self.juniors,
            StudentYear.SOPHOMORE: self.sophomores,
            StudentYear.FRESHMAN: self.freshmen,
        }

    def by_major(self) -> dict[MajorStatus, int]:
        return {
            MajorStatus.CS_MAJOR: self.cs_majors,
            MajorStatus.CS_MINOR: self.cs_minors,
            MajorStatus.NON_MAJOR: self.non_majors,
        }

    def by_rank(self) -> dict[int, int]:
        return {
            1: self.rank1_preferences,
            2: self.rank2_preferences,
            3: self.rank3_preferences,
            4: self.rank4_preferences,
        }

    def to_json(self) -> dict[str, object]:
        return {
            "total_enrolled": self.total_enrolled,
            "by_year": {year.value: count for year, count in self.by_year().items()},
            "by_major": {major.value: count for major, count in self.by_major().items()},
            "by_rank": {str(rank): count for rank, count in self.by_rank().items()},
            "average_weight": self.average_weight,
        }

    def __str__(self) -> str:
        return (
            f"  Total Enrolled: {self.total_enrolled}\n"
            f"  By Year: Seniors={self.seniors}, Juniors={self.juniors}, "
            f"Sophomores={self.sophomores}, Freshmen={self.freshmen}\n"
            f"  By Major: CS Majors={self.cs_majors}, CS Minors={self.cs_minors}, "
            f"Non-Majors={self.non_majors}\n"
            f"  By Preference Rank: Rank 1={self.rank1_preferences}, "
            f"Rank 2={self.rank2_preferences}, Rank 3={self.rank3_preferences}, "
            f"Rank 4={self.rank4_preferences}\n"
            f"  Average Lottery Weight: {self.average_weight:.2f}\n"
        )


@dataclass(frozen=True)
class OutcomeRecord:
    """Final classification of one request after a lottery run."""

    status: OutcomeStatus
    course_id: str
    student_id: str
    weight: int
    reason: str
    demographics: Optional[ClassDemographics] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.student_id, self.course_id)

    def __str__(self) -> str:
        text = (
            f"Status: {self.status.name}\n"
            f"Course: {self.course_id}\n"
            f"Reason: {self.reason}\n"
        )
        if self.demographics is not None:
            text += f"\nEnrolled Class Demographics:\n{self.demographics}"
        return text


__all__ = [
    "ClassDemographics",
    "ClassRequest",
    "CourseSection",
    "MajorStatus",
    "OutcomeRecord",
    "OutcomeStatus",
    "SectionStatus",
    "Student",
    "StudentYear",
]
