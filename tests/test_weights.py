import unittest
from datetime import date
from unittest import mock

from courselottery.lottery import (
    ClassRequest,
    CourseSection,
    MajorStatus,
    PrerequisiteGraph,
    Student,
    StudentYear,
    WeightCalculator,
)
from courselottery.lottery.prerequisites import VALIDATION_ERROR

YEAR = 2025
CS51 = CourseSection("CSCI051  PO-01 FA2025", capacity=30)
CS140 = CourseSection("CSCI140  HM-01 FA2025", capacity=20)


def _request(student: Student, section: CourseSection, rank: int = 1) -> ClassRequest:
    return ClassRequest(student.student_id, section.section_id, rank)


class StudentYearTests(unittest.TestCase):
    def test_boundaries(self) -> None:
        self.assertIs(StudentYear.from_grad_year(2025, YEAR), StudentYear.SENIOR)
        self.assertIs(StudentYear.from_grad_year(2020, YEAR), StudentYear.SENIOR)
        self.assertIs(StudentYear.from_grad_year(2026, YEAR), StudentYear.JUNIOR)
        self.assertIs(StudentYear.from_grad_year(2027, YEAR), StudentYear.SOPHOMORE)
        self.assertIs(StudentYear.from_grad_year(2028, YEAR), StudentYear.FRESHMAN)
        self.assertIs(StudentYear.from_grad_year(2031, YEAR), StudentYear.FRESHMAN)


class ComputeWeightTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calculator = WeightCalculator()

    def test_maximum_weight(self) -> None:
        student = Student("S1", "Alice", 2025, MajorStatus.CS_MAJOR)
        weight = self.calculator.compute_weight(student, _request(student, CS51), CS51, YEAR)
        self.assertEqual(weight, 22)

    def test_bonus_combinations(self) -> None:
        cases = [
            (2026, MajorStatus.CS_MINOR, 2, 10 + 3 + 2 + 3),
            (2027, MajorStatus.NON_MAJOR, 3, 10 + 2 + 0 + 2),
            (2029, MajorStatus.NON_MAJOR, 4, 10 + 1 + 0 + 1),
        ]
        for grad_year, major, rank, expected in cases:
            with self.subTest(grad_year=grad_year, major=major, rank=rank):
                student = Student("S2", "Bob", grad_year, major)
                weight = self.calculator.compute_weight(
                    student, _request(student, CS51, rank), CS51, YEAR
                )
                self.assertEqual(weight, expected)

    def test_missing_prerequisites_yield_zero(self) -> None:
        student = Student("S3", "Carmen", 2025, MajorStatus.CS_MAJOR, {"CS51"})
        weight = self.calculator.compute_weight(student, _request(student, CS140), CS140, YEAR)
        self.assertEqual(weight, 0)

        validation = self.calculator.validate_prerequisites(student, CS140)
        self.assertFalse(validation.eligible)
        self.assertEqual(validation.missing, frozenset({"CS54", "CS62"}))

    def test_complete_prerequisites_are_weighted(self) -> None:
        student = Student("S4", "Dev", 2026, MajorStatus.NON_MAJOR, {"CS51", "CS54", "CS62"})
        weight = self.calculator.compute_weight(student, _request(student, CS140, 2), CS140, YEAR)
        self.assertEqual(weight, 10 + 3 + 0 + 3)

    def test_zero_only_when_prerequisites_missing(self) -> None:
        graph = PrerequisiteGraph({"CS150": ["CS51", "CS54"]})
        calculator = WeightCalculator(graph)
        section = CourseSection("CSCI150-01", capacity=5)
        for completed in (set(), {"CS51"}, {"CS54"}, {"CS51", "CS54"}):
            for rank in (1, 2, 3, 4):
                with self.subTest(completed=completed, rank=rank):
                    student = Student("S5", "Emi", 2028, MajorStatus.NON_MAJOR, completed)
                    weight = calculator.compute_weight(
                        student, _request(student, section, rank), section, YEAR
                    )
                    eligible = {"CS51", "CS54"} <= completed
                    self.assertEqual(weight == 0, not eligible)
                    if eligible:
                        self.assertGreaterEqual(weight, 1)

    def test_long_form_completed_codes_count(self) -> None:
        student = Student("S10", "Jo", 2026, MajorStatus.CS_MAJOR, {"CSCI051", "csci 054"})
        student.record_completion(["CSCI062"])
        self.assertEqual(student.completed_courses, {"CS51", "CS54", "CS62"})
        self.assertEqual(
            self.calculator.compute_weight(student, _request(student, CS140), CS140, YEAR),
            10 + 4 + 4 + 3,
        )

    def test_unknown_course_has_no_prerequisites(self) -> None:
        section = CourseSection("MATH060  PO-01 FA2025", capacity=10)
        student = Student("S6", "Fay", 2028)
        self.assertTrue(self.calculator.validate_prerequisites(student, section).eligible)
        self.assertEqual(
            self.calculator.compute_weight(student, _request(student, section), section, YEAR),
            10 + 4 + 0 + 1,
        )

    def test_none_arguments_raise(self) -> None:
        student = Student("S7", "Gus", 2026)
        request = _request(student, CS51)
        with self.assertRaises(ValueError):
            self.calculator.compute_weight(None, request, CS51, YEAR)
        with self.assertRaises(ValueError):
            self.calculator.compute_weight(student, None, CS51, YEAR)
        with self.assertRaises(ValueError):
            self.calculator.compute_weight(student, request, None, YEAR)

    def test_validation_errors_fail_closed(self) -> None:
        student = Student("S8", "Hana", 2025, MajorStatus.CS_MAJOR, {"CS51", "CS54", "CS62"})
        with mock.patch.object(
            self.calculator.graph,
            "get_all_prerequisites",
            side_effect=RuntimeError("graph unavailable"),
        ):
            with self.assertLogs("courselottery.lottery.weights", level="ERROR"):
                weight = self.calculator.compute_weight(
                    student, _request(student, CS140), CS140, YEAR
                )
            with self.assertLogs("courselottery.lottery.weights", level="ERROR"):
                validation = self.calculator.validate_prerequisites(student, CS140)

        self.assertEqual(weight, 0)
        self.assertFalse(validation.eligible)
        self.assertTrue(validation.failed)
        self.assertIn(VALIDATION_ERROR, validation.missing)

    def test_compute_weight_now_uses_calendar_year(self) -> None:
        student = Student("S9", "Ivo", date.today().year, MajorStatus.CS_MINOR)
        request = _request(student, CS51, 3)
        self.assertEqual(
            self.calculator.compute_weight_now(student, request, CS51),
            10 + 2 + 2 + 4,
        )


class BreakdownTests(unittest.TestCase):
    def test_describe_lists_applied_bonuses(self) -> None:
        calculator = WeightCalculator()
        major = Student("S1", "Alice", 2025, MajorStatus.CS_MAJOR)
        self.assertEqual(
            calculator.breakdown(major, _request(major, CS51), YEAR).describe(),
            "Base: 10 + Preference Rank 1: +4 + CS Major: +4 + Senior: +4",
        )

        freshman = Student("S2", "Bob", 2029)
        breakdown = calculator.breakdown(freshman, _request(freshman, CS51, 4), YEAR)
        self.assertEqual(breakdown.describe(), "Base: 10 + Preference Rank 4: +1 + Freshman: +1")
        self.assertEqual(breakdown.total, 12)


if __name__ == "__main__":
    unittest.main()
