"""Registry rows for ranked course requests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..lottery.types import ClassRequest
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .section import SectionRecord
    from .student import StudentRecord


class ClassRequestRecord(Base):
    """A student's ranked request for one section.

    A student may hold at most one request per section; the unique
    constraint enforces it at the database level.
    """

    __tablename__ = "class_requests"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    student_pk: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    section_pk: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("course_sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    preference_rank: Mapped[int] = mapped_column(Integer, nullable=False)
    """1 (most preferred) through 4."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    student: Mapped["StudentRecord"] = relationship(back_populates="requests")
    section: Mapped["SectionRecord"] = relationship(back_populates="requests")

    __table_args__ = (
        UniqueConstraint("student_pk", "section_pk", name="uq_request_per_section"),
        CheckConstraint(
            "preference_rank >= 1 AND preference_rank <= 4", name="rank_in_range"
        ),
    )

    def __init__(
        self,
        *,
        preference_rank: int,
        student: Optional["StudentRecord"] = None,
        student_pk: Optional[int] = None,
        section: Optional["SectionRecord"] = None,
        section_pk: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        if not 1 <= preference_rank <= 4:
            raise ValueError("preference_rank must be between 1 and 4")
        self.preference_rank = preference_rank
        if student is not None:
            self.student = student
        if student_pk is not None:
            self.student_pk = student_pk
        if section is not None:
            self.section = section
        if section_pk is not None:
            self.section_pk = section_pk
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<ClassRequestRecord(id={id}, student_pk={student}, section_pk={section}, rank={rank})>".format(
            id=self.id,
            student=self.student_pk,
            section=self.section_pk,
            rank=self.preference_rank,
        )

    @classmethod
    def get_for(
        cls, session: Session, student: "StudentRecord", section: "SectionRecord"
    ) -> Optional["ClassRequestRecord"]:
        """Return the request ``student`` holds for ``section``, if any."""

        return session.scalar(
            select(cls).where(cls.student_pk == student.id, cls.section_pk == section.id)
        )

    def to_domain(self) -> ClassRequest:
        return ClassRequest(
            student_id=self.student.student_id,
            course_id=self.section.section_id,
            preference_rank=self.preference_rank,
        )


__all__ = ["ClassRequestRecord"]
