import random
import unittest

from courselottery.lottery import (
    ClassRequest,
    CourseSection,
    LotteryEngine,
    MajorStatus,
    OutcomeStatus,
    PrerequisiteGraph,
    Student,
    WeightCalculator,
)
from courselottery.lottery.waitlist import NO_SEATS_REASON

YEAR = 2025
CS51_ID = "CSCI051  PO-01 FA2025"
CS62_ID = "CSCI062  PO-01 FA2025"
CS140_ID = "CSCI140  HM-01 FA2025"


def _students(count: int, **kwargs) -> list[Student]:
    grad_year = kwargs.pop("grad_year", 2026)
    return [
        Student(f"S{index}", f"Student {index}", grad_year, **kwargs)
        for index in range(1, count + 1)
    ]


def _requests(students, course_id: str, rank: int = 1) -> list[ClassRequest]:
    return [ClassRequest(student.student_id, course_id, rank) for student in students]


class RunLotteryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = LotteryEngine(rng=random.Random(7), current_year=YEAR)

    def test_capacity_limits_winners(self) -> None:
        students = _students(3)
        section = CourseSection(CS51_ID, capacity=2)
        result = self.engine.run_lottery_with_waitlist(
            students, [section], _requests(students, CS51_ID)
        )

        winners = result.winners(CS51_ID)
        self.assertEqual(len(winners), 2)
        self.assertEqual(len({winner.student_id for winner in winners}), 2)
        self.assertEqual(section.current_enrollment, 2)

        statuses = [record.status for record in result.outcomes.values()]
        self.assertEqual(statuses.count(OutcomeStatus.ENROLLED), 2)
        self.assertEqual(statuses.count(OutcomeStatus.WAITLISTED), 1)
        waitlisted = next(
            record
            for record in result.outcomes.values()
            if record.status is OutcomeStatus.WAITLISTED
        )
        self.assertGreater(waitlisted.weight, 0)
        self.assertIsNotNone(waitlisted.demographics)
        self.assertEqual(waitlisted.demographics.total_enrolled, 2)

    def test_zero_capacity_enrolls_nobody(self) -> None:
        students = _students(4)
        section = CourseSection(CS51_ID, capacity=0)
        result = self.engine.run_lottery_with_waitlist(
            students, [section], _requests(students, CS51_ID)
        )

        self.assertEqual(result.winners(CS51_ID), [])
        self.assertEqual(section.current_enrollment, 0)
        self.assertEqual(len(result.outcomes), 4)
        for record in result.outcomes.values():
            self.assertIs(record.status, OutcomeStatus.WAITLISTED)
            self.assertEqual(record.reason, NO_SEATS_REASON)

    def test_full_section_draws_nothing(self) -> None:
        students = _students(2)
        section = CourseSection(CS51_ID, capacity=3, current_enrollment=3)
        self.assertTrue(section.is_full)
        enrolled = self.engine.run_lottery(students, [section], _requests(students, CS51_ID))
        self.assertEqual(enrolled, {CS51_ID: []})
        self.assertEqual(section.current_enrollment, 3)

    def test_fewer_eligible_than_seats(self) -> None:
        students = _students(3)
        section = CourseSection(CS51_ID, capacity=10, current_enrollment=4)
        enrolled = self.engine.run_lottery(students, [section], _requests(students, CS51_ID))
        self.assertCountEqual(
            [winner.student_id for winner in enrolled[CS51_ID]], ["S1", "S2", "S3"]
        )
        self.assertEqual(section.current_enrollment, 7)

    def test_ineligible_students_never_win(self) -> None:
        eligible = _students(2)
        ineligible = [Student("X1", "No Prereqs", 2025, MajorStatus.CS_MAJOR, {"CS51"})]
        section = CourseSection(CS140_ID, capacity=5)
        for student in eligible:
            student.record_completion({"CS51", "CS54", "CS62"})

        result = self.engine.run_lottery_with_waitlist(
            eligible + ineligible,
            [section],
            _requests(eligible + ineligible, CS140_ID),
        )

        self.assertNotIn("X1", [winner.student_id for winner in result.winners(CS140_ID)])
        rejected = result.outcome_for("X1", CS140_ID)
        self.assertIs(rejected.status, OutcomeStatus.REJECTED)
        self.assertEqual(rejected.weight, 0)
        self.assertIn("CS54", rejected.reason)
        self.assertIn("CS62", rejected.reason)

    def test_empty_pool_and_no_requests(self) -> None:
        section = CourseSection(CS62_ID, capacity=5)
        self.assertEqual(self.engine.run_lottery([], [section], []), {CS62_ID: []})

    def test_unknown_student_is_skipped(self) -> None:
        students = _students(1)
        section = CourseSection(CS51_ID, capacity=2)
        requests = _requests(students, CS51_ID) + [ClassRequest("ghost", CS51_ID, 1)]

        with self.assertLogs("courselottery.lottery", level="WARNING"):
            result = self.engine.run_lottery_with_waitlist(students, [section], requests)

        self.assertEqual([winner.student_id for winner in result.winners(CS51_ID)], ["S1"])
        self.assertIsNone(result.outcome_for("ghost", CS51_ID))

    def test_sections_are_drawn_independently(self) -> None:
        students = _students(1)
        sections = [CourseSection(CS51_ID, capacity=1), CourseSection(CS62_ID, capacity=1)]
        students[0].record_completion({"CS51"})
        requests = [
            ClassRequest("S1", CS51_ID, 1),
            ClassRequest("S1", CS62_ID, 2),
        ]
        result = self.engine.run_lottery_with_waitlist(students, sections, requests)
        self.assertEqual(result.total_enrolled, 2)
        self.assertIs(result.outcome_for("S1", CS62_ID).status, OutcomeStatus.ENROLLED)

    def test_winners_are_distinct_and_bounded(self) -> None:
        students = _students(25, grad_year=2027)
        section = CourseSection(CS51_ID, capacity=12, current_enrollment=2)
        enrolled = self.engine.run_lottery(students, [section], _requests(students, CS51_ID))
        ids = [winner.student_id for winner in enrolled[CS51_ID]]
        self.assertEqual(len(ids), 10)
        self.assertEqual(len(set(ids)), len(ids))
        self.assertEqual(section.current_enrollment, section.capacity)


class ReproducibilityTests(unittest.TestCase):
    def _draw(self, seed: int) -> list[str]:
        students = _students(20, grad_year=2027)
        section = CourseSection(CS51_ID, capacity=5)
        engine = LotteryEngine(rng=random.Random(seed), current_year=YEAR)
        enrolled = engine.run_lottery(students, [section], _requests(students, CS51_ID))
        return [winner.student_id for winner in enrolled[CS51_ID]]

    def test_same_seed_same_winners(self) -> None:
        self.assertEqual(self._draw(1234), self._draw(1234))

    def test_weights_bias_the_draw(self) -> None:
        graph = PrerequisiteGraph()
        heavy = Student("H", "Heavy", 2025, MajorStatus.CS_MAJOR)
        light = Student("L", "Light", 2029, MajorStatus.NON_MAJOR)
        requests = [ClassRequest("H", CS51_ID, 1), ClassRequest("L", CS51_ID, 4)]
        engine = LotteryEngine(WeightCalculator(graph), rng=random.Random(99), current_year=YEAR)

        trials = 2000
        heavy_wins = 0
        for _ in range(trials):
            section = CourseSection(CS51_ID, capacity=1)
            enrolled = engine.run_lottery([heavy, light], [section], requests)
            heavy_wins += enrolled[CS51_ID][0].student_id == "H"

        # 22 tickets against 12
        self.assertAlmostEqual(heavy_wins / trials, 22 / 34, delta=0.05)


class RequestWeightTests(unittest.TestCase):
    def test_weights_are_computed_before_the_draw(self) -> None:
        students = _students(2)
        section = CourseSection(CS51_ID, capacity=1)
        engine = LotteryEngine(rng=random.Random(3), current_year=YEAR)
        result = engine.run_lottery_with_waitlist(
            students, [section], _requests(students, CS51_ID)
        )
        self.assertEqual(result.weights, {("S1", CS51_ID): 17, ("S2", CS51_ID): 17})
        for record in result.outcomes.values():
            self.assertEqual(record.weight, 17)


if __name__ == "__main__":
    unittest.main()
