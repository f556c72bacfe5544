"""Registry rows for course sections."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, Float, Integer, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..lottery.types import CourseSection, SectionStatus
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .request import ClassRequestRecord
    from .outcome import LotteryOutcome


class SectionRecord(Base):
    """A course section with a fixed seat capacity."""

    __tablename__ = "course_sections"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)

    section_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    """Full section identifier, e.g. ``"CSCI140  HM-01 SP2025"``."""

    section_number: Mapped[str] = mapped_column(String(16), nullable=False, default="01")
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_enrollment: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Seats already taken. Written back after each lottery run."""

    credit_hours: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    status: Mapped[str] = mapped_column(
        String(1), nullable=False, default=SectionStatus.OPEN.value
    )

    requests: Mapped[list["ClassRequestRecord"]] = relationship(
        back_populates="section", cascade="all, delete-orphan"
    )
    outcomes: Mapped[list["LotteryOutcome"]] = relationship(back_populates="section")

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="capacity_non_negative"),
        CheckConstraint(
            "current_enrollment >= 0 AND current_enrollment <= capacity",
            name="enrollment_within_capacity",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<SectionRecord(id={self.id}, section_id='{self.section_id}', "
            f"enrolled={self.current_enrollment}/{self.capacity})>"
        )

    @classmethod
    def get_by_section_id(cls, session: Session, section_id: str) -> Optional["SectionRecord"]:
        """Retrieve a section by its full identifier."""

        return session.scalar(select(cls).where(cls.section_id == section_id))

    @classmethod
    def from_domain(cls, section: CourseSection) -> "SectionRecord":
        return cls(
            section_id=section.section_id,
            section_number=section.section_number,
            capacity=section.capacity,
            current_enrollment=section.current_enrollment,
            credit_hours=section.credit_hours,
            status=section.status.value,
        )

    def to_domain(self) -> CourseSection:
        return CourseSection(
            section_id=self.section_id,
            section_number=self.section_number,
            capacity=self.capacity,
            current_enrollment=self.current_enrollment,
            credit_hours=self.credit_hours,
            status=SectionStatus(self.status),
        )


__all__ = ["SectionRecord"]
