"""Registry rows for students and their completed coursework."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..lottery.types import MajorStatus, Student
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .request import ClassRequestRecord
    from .outcome import LotteryOutcome


class StudentRecord(Base):
    """A registered student eligible to enter course lotteries."""

    __tablename__ = "students"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Surrogate primary key."""

    student_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    """Registrar-issued identifier, e.g. ``"S1"``."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    grad_year: Mapped[int] = mapped_column(Integer, nullable=False)
    """Expected graduation year; academic standing is derived from it."""

    major_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MajorStatus.NON_MAJOR.value
    )
    """One of the :class:`MajorStatus` values."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    completed_courses: Mapped[list["CompletedCourse"]] = relationship(
        back_populates="student", cascade="all, delete-orphan"
    )
    requests: Mapped[list["ClassRequestRecord"]] = relationship(
        back_populates="student", cascade="all, delete-orphan"
    )
    outcomes: Mapped[list["LotteryOutcome"]] = relationship(back_populates="student")

    def __init__(
        self,
        *,
        student_id: str,
        name: str,
        grad_year: int,
        major_status: MajorStatus = MajorStatus.NON_MAJOR,
        completed_courses: Optional[Iterable[str]] = None,
    ) -> None:
        """Create a new :class:`StudentRecord`.

        Parameters
        ----------
        student_id : str
            Registrar-issued identifier.
        name : str
            Display name.
        grad_year : int
            Expected graduation year.
        major_status : MajorStatus, default: MajorStatus.NON_MAJOR
            Relationship to the CS department.
        completed_courses : Optional[Iterable[str]], default: None
            Canonical course codes already passed.
        """
        self.student_id = student_id
        self.name = name
        self.grad_year = grad_year
        self.major_status = (major_status or MajorStatus.NON_MAJOR).value
        for code in sorted(set(completed_courses or ())):
            self.completed_courses.append(CompletedCourse(course_code=code))

    def __repr__(self) -> str:
        return (
            f"<StudentRecord(id={self.id}, student_id='{self.student_id}', "
            f"name='{self.name}', grad_year={self.grad_year}, "
            f"major_status='{self.major_status}')>"
        )

    @classmethod
    def get_by_student_id(cls, session: Session, student_id: str) -> Optional["StudentRecord"]:
        """Retrieve a student by registrar identifier."""

        return session.scalar(select(cls).where(cls.student_id == student_id))

    @classmethod
    def from_domain(cls, student: Student) -> "StudentRecord":
        return cls(
            student_id=student.student_id,
            name=student.name,
            grad_year=student.grad_year,
            major_status=student.major_status,
            completed_courses=student.completed_courses,
        )

    @property
    def completed_codes(self) -> set[str]:
        return {row.course_code for row in self.completed_courses}

    def record_completion(self, course_codes: Iterable[str]) -> None:
        """Add course codes to the completed set; existing codes are ignored."""
        known = self.completed_codes
        for code in sorted(set(course_codes) - known):
            self.completed_courses.append(CompletedCourse(course_code=code))

    def to_domain(self) -> Student:
        """Build the lottery-facing :class:`Student` value for this row.

        ``requested_courses`` lists the requested section ids ordered by
        preference rank.
        """
        ordered = sorted(self.requests, key=lambda req: (req.preference_rank, req.id or 0))
        return Student(
            student_id=self.student_id,
            name=self.name,
            grad_year=self.grad_year,
            major_status=MajorStatus(self.major_status),
            completed_courses=self.completed_codes,
            requested_courses=[req.section.section_id for req in ordered],
        )


class CompletedCourse(Base):
    """A course code a student has already passed."""

    __tablename__ = "completed_courses"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    student_pk: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_code: Mapped[str] = mapped_column(String(32), nullable=False)
    """Canonical course code, e.g. ``"CS62"``."""

    student: Mapped["StudentRecord"] = relationship(back_populates="completed_courses")

    __table_args__ = (
        UniqueConstraint("student_pk", "course_code", name="uq_completed_course"),
    )

    def __repr__(self) -> str:
        return f"<CompletedCourse(student_pk={self.student_pk}, course_code='{self.course_code}')>"


__all__ = ["StudentRecord", "CompletedCourse"]
