import unittest

from sqlalchemy import create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from courselottery.lottery import (
    ClassDemographics,
    CourseSection,
    MajorStatus,
    OutcomeStatus,
    SectionStatus,
    Student,
)
from courselottery.models import (
    Base,
    ClassRequestRecord,
    CompletedCourse,
    LotteryOutcome,
    LotteryRun,
    SectionRecord,
    StudentRecord,
)


class RegistryModelTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, future=True, expire_on_commit=False)

    def tearDown(self):
        self.engine.dispose()

    def test_student_round_trip_through_domain(self):
        student = Student("S1", "Alice", 2026, MajorStatus.CS_MINOR, {"CS62", "CS51"})
        with self.Session.begin() as session:
            session.add(StudentRecord.from_domain(student))

        with self.Session() as session:
            record = StudentRecord.get_by_student_id(session, "S1")
            self.assertIsNotNone(record)
            self.assertEqual(record.major_status, "cs_minor")
            self.assertEqual(record.completed_codes, {"CS51", "CS62"})

            domain = record.to_domain()
            self.assertEqual(domain, student)
            self.assertIs(domain.major_status, MajorStatus.CS_MINOR)
            self.assertEqual(domain.completed_courses, {"CS51", "CS62"})

    def test_record_completion_ignores_known_codes(self):
        with self.Session.begin() as session:
            record = StudentRecord(student_id="S2", name="Bob", grad_year=2027, completed_courses=["CS51"])
            session.add(record)
            session.flush()
            record.record_completion(["CS51", "CS54"])

        with self.Session() as session:
            codes = session.scalars(select(CompletedCourse.course_code)).all()
            self.assertCountEqual(codes, ["CS51", "CS54"])

    def test_section_round_trip(self):
        section = CourseSection(
            "CSCI140  HM-01 FA2025", "01", capacity=20, current_enrollment=3,
            credit_hours=1.0, status=SectionStatus.RESTRICTED,
        )
        with self.Session.begin() as session:
            session.add(SectionRecord.from_domain(section))

        with self.Session() as session:
            record = SectionRecord.get_by_section_id(session, "CSCI140  HM-01 FA2025")
            domain = record.to_domain()
            self.assertEqual(domain.seats_left, 17)
            self.assertIs(domain.status, SectionStatus.RESTRICTED)

    def test_enrollment_cannot_exceed_capacity(self):
        with self.assertRaises(IntegrityError):
            with self.Session.begin() as session:
                session.add(
                    SectionRecord(section_id="CSCI062-01", capacity=1, current_enrollment=2)
                )

    def test_request_rank_validated(self):
        with self.assertRaises(ValueError):
            ClassRequestRecord(preference_rank=5)

    def test_one_request_per_section(self):
        with self.assertRaises(IntegrityError):
            with self.Session.begin() as session:
                student = StudentRecord(student_id="S3", name="Carmen", grad_year=2028)
                section = SectionRecord(section_id="CSCI051-01", capacity=10)
                session.add_all([student, section])
                session.add(ClassRequestRecord(student=student, section=section, preference_rank=1))
                session.add(ClassRequestRecord(student=student, section=section, preference_rank=2))

    def test_student_domain_lists_requests_by_rank(self):
        with self.Session.begin() as session:
            student = StudentRecord(student_id="S4", name="Dev", grad_year=2026)
            first = SectionRecord(section_id="CSCI051-01", capacity=10)
            second = SectionRecord(section_id="CSCI062-01", capacity=10)
            session.add_all([student, first, second])
            session.add(ClassRequestRecord(student=student, section=second, preference_rank=2))
            session.add(ClassRequestRecord(student=student, section=first, preference_rank=1))
            session.flush()

            domain = student.to_domain()
            self.assertEqual(domain.requested_courses, ["CSCI051-01", "CSCI062-01"])
            request = ClassRequestRecord.get_for(session, student, second)
            self.assertEqual(request.to_domain().preference_rank, 2)

    def test_lottery_outcome_serialization(self):
        demographics = ClassDemographics(total_enrolled=1, seniors=1, cs_majors=1, rank1_preferences=1)
        with self.Session.begin() as session:
            student = StudentRecord(student_id="S5", name="Emi", grad_year=2025)
            section = SectionRecord(section_id="CSCI051-01", capacity=1)
            run = LotteryRun(seed=7, current_year=2025, status="completed", meta={"enrolled": 0})
            run.outcomes.append(
                LotteryOutcome(
                    student=student,
                    section=section,
                    status=OutcomeStatus.WAITLISTED.value,
                    weight=13,
                    reason="Course is full.",
                    demographics=demographics.to_json(),
                )
            )
            session.add(run)

        with self.Session() as session:
            latest = LotteryRun.latest(session)
            self.assertIsNotNone(latest)
            payload = latest.to_json()
            self.assertEqual(payload["seed"], 7)
            self.assertEqual(payload["meta"], {"enrolled": 0})

            outcome = latest.outcomes[0]
            self.assertIs(outcome.outcome_status, OutcomeStatus.WAITLISTED)
            data = outcome.to_json()
            self.assertEqual(data["student_id"], "S5")
            self.assertEqual(data["section_id"], "CSCI051-01")
            self.assertEqual(data["demographics"]["by_year"]["senior"], 1)

    def test_latest_ignores_pending_runs(self):
        with self.Session.begin() as session:
            session.add(LotteryRun(current_year=2025, status="pending"))

        with self.Session() as session:
            self.assertIsNone(LotteryRun.latest(session))


if __name__ == "__main__":
    unittest.main()
