from sqlalchemy.orm import sessionmaker

from courselottery.db.engine import make_engine
from courselottery.lottery import CourseSection, MajorStatus, Student
from courselottery.models import Base
from courselottery.workflows import register_section, register_student, submit_request


SECTIONS = [
    CourseSection("CSCI051  PO-01 FA2025", "01", capacity=3, credit_hours=1.0),
    CourseSection("CSCI062  PO-01 FA2025", "01", capacity=2, credit_hours=1.0),
    CourseSection("CSCI101  PO-01 FA2025", "01", capacity=2, credit_hours=1.0),
    CourseSection("CSCI140  HM-01 FA2025", "01", capacity=1, credit_hours=1.0),
]

STUDENTS = [
    Student("S1", "Alice", 2026, MajorStatus.CS_MAJOR, {"CS51", "CS54", "CS62"}),
    Student("S2", "Bob", 2027, MajorStatus.CS_MINOR, {"CS51", "CS62"}),
    Student("S3", "Carmen", 2028, MajorStatus.NON_MAJOR, {"CS51"}),
    Student("S4", "Dev", 2029, MajorStatus.CS_MAJOR),
    Student("S5", "Emi", 2026, MajorStatus.NON_MAJOR, {"CS51", "CS54", "CS62"}),
]

# (student_id, section id or typed course code, preference_rank)
REQUESTS = [
    ("S1", "cs 140", 1),
    ("S1", "CSCI101", 2),
    ("S2", "CSCI101  PO-01 FA2025", 1),
    ("S2", "CS140", 2),
    ("S3", "CSCI062  PO-01 FA2025", 1),
    ("S3", "CSCI101  PO-01 FA2025", 2),
    ("S4", "CSCI051  PO-01 FA2025", 1),
    ("S4", "CSCI062  PO-01 FA2025", 2),
    ("S5", "CSCI140  HM-01 FA2025", 1),
    ("S5", "CSCI062  PO-01 FA2025", 2),
]


def main() -> None:
    """Reset the development registry and fill it with sample data."""
    engine = make_engine()

    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        conn.commit()

    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)

    with Session.begin() as session:
        for section in SECTIONS:
            register_section(session, section)
        for student in STUDENTS:
            register_student(session, student)
        for student_id, section_id, rank in REQUESTS:
            submit_request(session, student_id, section_id, rank)

    print(
        f"Seeded {len(STUDENTS)} students, {len(SECTIONS)} sections "
        f"and {len(REQUESTS)} requests."
    )


if __name__ == "__main__":
    main()
