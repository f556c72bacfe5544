import logging
import random
from collections import Counter
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .lottery.codes import (
    is_valid_course_code,
    matches_course_code,
    normalize_course_code_input,
)
from .lottery.engine import LotteryEngine, LotteryResult
from .lottery.prerequisites import PrerequisiteGraph
from .lottery.types import ClassRequest, CourseSection, OutcomeStatus, Student
from .lottery.weights import WeightCalculator
from .models import (
    ClassRequestRecord,
    LotteryOutcome,
    LotteryRun,
    SectionRecord,
    StudentRecord,
)
from .settings import lottery_seed

logger = logging.getLogger(__name__)


def register_student(session: Session, student: Student) -> StudentRecord:
    """Persist ``student`` in the registry.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    student : Student
        Domain value to store, with its canonical completed courses.
        Requested courses are ignored, use :func:`submit_request` instead.

    Returns
    -------
    StudentRecord
        The flushed row with a populated primary key.

    Raises
    ------
    ValueError
        If a student with the same ``student_id`` is already registered.
    """
    if StudentRecord.get_by_student_id(session, student.student_id) is not None:
        raise ValueError(f"Student '{student.student_id}' is already registered")

    record = StudentRecord.from_domain(student)
    session.add(record)
    session.flush()
    return record


def register_section(session: Session, section: CourseSection) -> SectionRecord:
    """Persist ``section`` in the registry.

    Raises
    ------
    ValueError
        If a section with the same ``section_id`` already exists.
    """
    if SectionRecord.get_by_section_id(session, section.section_id) is not None:
        raise ValueError(f"Section '{section.section_id}' already exists")

    record = SectionRecord.from_domain(section)
    session.add(record)
    session.flush()
    return record


def record_completed_courses(
    session: Session, student_id: str, course_codes: Iterable[str]
) -> StudentRecord:
    """Add completed courses to a registered student.

    Codes are canonicalized first (``"csci 051"`` is stored as ``"CS51"``);
    codes that do not survive canonicalization are ignored with a warning.
    """
    record = StudentRecord.get_by_student_id(session, student_id)
    if record is None:
        raise ValueError(f"Unknown student '{student_id}'")

    normalized: list[str] = []
    for code in course_codes:
        canonical = normalize_course_code_input(code)
        if not is_valid_course_code(canonical):
            logger.warning(f"Ignoring invalid course code {code!r} for {student_id}")
            continue
        normalized.append(canonical)

    record.record_completion(normalized)
    session.flush()
    return record


def find_sections(session: Session, course_code: str) -> list[SectionRecord]:
    """Return the sections of the course a person typed as ``course_code``.

    Any prefix form, leading zeros and a campus suffix are accepted, so
    ``"cs 051"`` finds ``"CSCI051  PO-01 FA2025"`` and ``"CS181DV"`` finds
    ``"CSCI181DVPO-01 SP2025"``. Sections are returned in registration order.
    """
    sections = session.scalars(select(SectionRecord).order_by(SectionRecord.id.asc())).all()
    return [section for section in sections if matches_course_code(section.section_id, course_code)]


def _resolve_section(session: Session, section_or_code: str) -> SectionRecord:
    section = SectionRecord.get_by_section_id(session, section_or_code)
    if section is not None:
        return section

    matches = find_sections(session, section_or_code)
    if not matches:
        raise ValueError(f"Unknown section '{section_or_code}'")
    if len(matches) > 1:
        ids = ", ".join(match.section_id for match in matches)
        raise ValueError(f"Course code '{section_or_code}' matches several sections: {ids}")
    return matches[0]


def submit_request(
    session: Session, student_id: str, section_id: str, preference_rank: int
) -> ClassRequestRecord:
    """Record that ``student_id`` requests ``section_id`` at ``preference_rank``.

    ``section_id`` is either a full section identifier or a typed course
    code such as ``"cs 51"`` that matches exactly one section (see
    :func:`find_sections`).

    Raises
    ------
    ValueError
        If the rank is outside 1..4, the student is unknown, the section
        cannot be resolved to exactly one row, or the student already holds a
        request for the section.
    """
    # Validates the rank before touching the database.
    ClassRequest(student_id, section_id, preference_rank)

    student = StudentRecord.get_by_student_id(session, student_id)
    if student is None:
        raise ValueError(f"Unknown student '{student_id}'")
    section = _resolve_section(session, section_id)
    if ClassRequestRecord.get_for(session, student, section) is not None:
        raise ValueError(
            f"Student '{student_id}' already has a request for section '{section.section_id}'"
        )

    request = ClassRequestRecord(
        student=student, section=section, preference_rank=preference_rank
    )
    session.add(request)
    session.flush()
    return request


def _load_registry(
    session: Session,
) -> tuple[list[StudentRecord], list[SectionRecord], list[ClassRequestRecord]]:
    students = session.scalars(
        select(StudentRecord)
        .options(selectinload(StudentRecord.completed_courses))
        .order_by(StudentRecord.id.asc())
    ).all()
    sections = session.scalars(select(SectionRecord).order_by(SectionRecord.id.asc())).all()
    requests = session.scalars(
        select(ClassRequestRecord)
        .options(
            selectinload(ClassRequestRecord.student),
            selectinload(ClassRequestRecord.section),
        )
        .order_by(ClassRequestRecord.id.asc())
    ).all()
    return list(students), list(sections), list(requests)


def _already_enrolled(session: Session) -> set[tuple[str, str]]:
    """Return ``(student_id, section_id)`` pairs won in earlier completed runs."""
    stmt = (
        select(StudentRecord.student_id, SectionRecord.section_id)
        .select_from(LotteryOutcome)
        .join(LotteryRun, LotteryOutcome.run_id == LotteryRun.id)
        .join(StudentRecord, LotteryOutcome.student_pk == StudentRecord.id)
        .join(SectionRecord, LotteryOutcome.section_pk == SectionRecord.id)
        .where(
            LotteryRun.status == "completed",
            LotteryOutcome.status == OutcomeStatus.ENROLLED.value,
        )
    )
    return {(student_id, section_id) for student_id, section_id in session.execute(stmt)}


def run_registry_lottery(
    session: Session,
    *,
    graph: Optional[PrerequisiteGraph] = None,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    current_year: Optional[int] = None,
) -> LotteryRun:
    """Run the lottery over every registered section and persist the outcomes.

    The workflow performs these steps:

    1. Load all students, sections and requests and convert them to domain
       values. Requests already won in an earlier completed run are left
       out; their seats are part of the section's enrollment.
    2. Run :meth:`LotteryEngine.run_lottery_with_waitlist`.
    3. Write each section's new enrollment back to its row.
    4. Store a :class:`LotteryRun` with one :class:`LotteryOutcome` per
       classified request.

    Parameters
    ----------
    session : Session
        Active session used for queries and persistence.
    graph : Optional[PrerequisiteGraph], default: None
        Prerequisite graph; the default CS curriculum when omitted.
    rng : Optional[random.Random], default: None
        Random source. When omitted, one is created from ``seed``, falling
        back to the ``LOTTERY_SEED`` environment variable and finally to an
        unseeded source.
    seed : Optional[int], default: None
        Seed recorded on the run and used when ``rng`` is not supplied.
    current_year : Optional[int], default: None
        Year used for academic standing; the calendar year when omitted.

    Returns
    -------
    LotteryRun
        The completed run with its outcomes attached.
    """
    if rng is None:
        if seed is None:
            seed = lottery_seed()
        rng = random.Random(seed)
    year = current_year if current_year is not None else date.today().year

    student_rows, section_rows, request_rows = _load_registry(session)
    students = [row.to_domain() for row in student_rows]
    sections = [row.to_domain() for row in section_rows]
    enrolled_before = _already_enrolled(session)
    requests = [
        request
        for request in (row.to_domain() for row in request_rows)
        if request.key not in enrolled_before
    ]
    skipped = len(request_rows) - len(requests)
    if skipped:
        logger.info(f"Skipping {skipped} request(s) already enrolled in an earlier run")

    run = LotteryRun(seed=seed, current_year=year, status="pending")
    session.add(run)
    session.flush()

    engine = LotteryEngine(WeightCalculator(graph), rng=rng, current_year=year)
    result = engine.run_lottery_with_waitlist(students, sections, requests)

    for row, section in zip(section_rows, sections):
        row.current_enrollment = section.current_enrollment

    _store_outcomes(run, result, student_rows, section_rows)

    counts = Counter(outcome.status for outcome in result.outcomes.values())
    run.meta = {
        "sections": len(sections),
        "requests": len(requests),
        "already_enrolled": skipped,
        "enrolled": counts[OutcomeStatus.ENROLLED],
        "waitlisted": counts[OutcomeStatus.WAITLISTED],
        "rejected": counts[OutcomeStatus.REJECTED],
    }
    run.status = "completed"
    run.completed_at = datetime.now(timezone.utc)
    session.flush()

    logger.info(
        f"Lottery run {run.id}: {run.meta['enrolled']} enrolled, "
        f"{run.meta['waitlisted']} waitlisted, {run.meta['rejected']} rejected"
    )
    return run


def _store_outcomes(
    run: LotteryRun,
    result: LotteryResult,
    student_rows: Iterable[StudentRecord],
    section_rows: Iterable[SectionRecord],
) -> None:
    students_by_id = {row.student_id: row for row in student_rows}
    sections_by_id = {row.section_id: row for row in section_rows}

    for (student_id, section_id), record in result.outcomes.items():
        run.outcomes.append(
            LotteryOutcome(
                student=students_by_id[student_id],
                section=sections_by_id[section_id],
                status=record.status.value,
                weight=record.weight,
                reason=record.reason,
                demographics=(
                    record.demographics.to_json()
                    if record.demographics is not None
                    else None
                ),
            )
        )


def outcomes_for_student(
    session: Session, student_id: str, run: Optional[LotteryRun] = None
) -> list[LotteryOutcome]:
    """Return ``student_id``'s outcomes from ``run`` (default: the latest run).

    An empty list is returned when no completed run exists.
    """
    student = StudentRecord.get_by_student_id(session, student_id)
    if student is None:
        raise ValueError(f"Unknown student '{student_id}'")

    run = run or LotteryRun.latest(session)
    if run is None:
        return []
    if run.id is None:
        raise ValueError("Lottery run must be persisted before reading outcomes")

    stmt = (
        select(LotteryOutcome)
        .where(LotteryOutcome.run_id == run.id, LotteryOutcome.student_pk == student.id)
        .order_by(LotteryOutcome.id.asc())
    )
    return list(session.scalars(stmt).all())
