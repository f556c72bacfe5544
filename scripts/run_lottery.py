from __future__ import annotations

import argparse
import logging
import random
from typing import Optional, Sequence

from courselottery.data import (
    build_requests,
    default_sections,
    load_sections_json,
    load_students_csv,
)
from courselottery.db.engine import get_sessionmaker, make_engine
from courselottery.lottery import LotteryEngine, format_outcome
from courselottery.settings import log_level, lottery_seed
from courselottery.workflows import run_registry_lottery

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the weighted course seat lottery.")
    parser.add_argument("--roster", help="Student roster CSV file")
    parser.add_argument("--sections", help="Section catalog JSON file")
    parser.add_argument(
        "--capacity",
        type=int,
        default=30,
        help="Seats per section when no catalog is given (default: 30)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible draws")
    parser.add_argument("--year", type=int, default=None, help="Current academic year")
    parser.add_argument(
        "--registry",
        action="store_true",
        help="Run against the configured database instead of input files",
    )
    return parser.parse_args(argv)


def run_from_files(args: argparse.Namespace, seed: Optional[int]) -> None:
    students = load_students_csv(args.roster)
    requests = build_requests(students)
    if args.sections:
        sections = load_sections_json(args.sections)
    else:
        sections = default_sections(requests, capacity=args.capacity)

    engine = LotteryEngine(rng=random.Random(seed), current_year=args.year)
    result = engine.run_lottery_with_waitlist(students, sections, requests)

    students_by_id = {student.student_id: student for student in students}
    for section in sections:
        print(f"=== {section.section_id} ({section.current_enrollment}/{section.capacity}) ===")
        for request in requests:
            if request.course_id != section.section_id:
                continue
            record = result.outcome_for(request.student_id, request.course_id)
            if record is not None:
                print(format_outcome(record, students_by_id[request.student_id]))

    print(f"Total enrolled: {result.total_enrolled}")


def run_from_registry(args: argparse.Namespace, seed: Optional[int]) -> None:
    engine = make_engine()
    Session = get_sessionmaker(engine)
    with Session.begin() as session:
        run = run_registry_lottery(session, seed=seed, current_year=args.year)
        for outcome in run.outcomes:
            student = outcome.student
            print(
                f"{student.name} ({student.student_id}) -> {outcome.section.section_id}: "
                f"{outcome.status} [weight {outcome.weight}] {outcome.reason}"
            )
        print(f"Run {run.id} summary: {run.meta}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    seed = args.seed if args.seed is not None else lottery_seed()
    if args.registry:
        run_from_registry(args, seed)
        return 0
    if not args.roster:
        logger.error("--roster is required unless --registry is given")
        return 2
    run_from_files(args, seed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
