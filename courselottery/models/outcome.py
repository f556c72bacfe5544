"""Database models recording lottery runs and their per-request outcomes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import dt_iso
from ..lottery.types import OutcomeStatus
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .section import SectionRecord
    from .student import StudentRecord


class LotteryRun(Base):
    """One execution of the lottery over the whole registry."""

    __tablename__ = "lottery_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    seed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Seed of the random source, when the run was seeded."""

    current_year: Mapped[int] = mapped_column(Integer, nullable=False)
    """Year used to derive academic standing during the run."""

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    """``"pending"`` while running, ``"completed"`` once outcomes are stored."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    meta: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    """Summary counters (sections, requests, enrolled, waitlisted, rejected)."""

    outcomes: Mapped[list["LotteryOutcome"]] = relationship(
        back_populates="run", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<LotteryRun(id={id}, status={status}, seed={seed})>".format(
            id=self.id, status=self.status, seed=self.seed
        )

    @classmethod
    def latest(cls, session: Session) -> Optional["LotteryRun"]:
        """Return the most recently completed run."""

        stmt = (
            select(cls)
            .where(cls.status == "completed")
            .order_by(cls.created_at.desc(), cls.id.desc())
        )
        return session.scalars(stmt).first()

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "seed": self.seed,
            "current_year": self.current_year,
            "status": self.status,
            "created_at": dt_iso(self.created_at),
            "completed_at": dt_iso(self.completed_at),
            "meta": dict(self.meta or {}),
        }


class LotteryOutcome(Base):
    """Immutable record of how one request fared in one run."""

    __tablename__ = "lottery_outcomes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    run_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lottery_runs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_pk: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    section_pk: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("course_sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False)
    """One of the :class:`OutcomeStatus` values."""

    weight: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Lottery weight computed before the draw (0 when ineligible)."""

    reason: Mapped[str] = mapped_column(Text, nullable=False)
    demographics: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    """Snapshot of the winning cohort, stored for waitlisted requests only."""

    run: Mapped["LotteryRun"] = relationship(back_populates="outcomes")
    student: Mapped["StudentRecord"] = relationship(back_populates="outcomes")
    section: Mapped["SectionRecord"] = relationship(back_populates="outcomes")

    __table_args__ = (
        UniqueConstraint("run_id", "student_pk", "section_pk", name="uq_outcome_per_request"),
        Index("ix_lottery_outcomes_status", "status"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<LotteryOutcome(run_id={run}, student_pk={student}, section_pk={section}, status={status})>".format(
            run=self.run_id,
            student=self.student_pk,
            section=self.section_pk,
            status=self.status,
        )

    @property
    def outcome_status(self) -> OutcomeStatus:
        return OutcomeStatus(self.status)

    def to_json(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "student_id": self.student.student_id,
            "section_id": self.section.section_id,
            "status": self.status,
            "weight": self.weight,
            "reason": self.reason,
            "demographics": self.demographics,
        }


__all__ = ["LotteryRun", "LotteryOutcome"]
