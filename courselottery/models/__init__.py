from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .student import StudentRecord, CompletedCourse  # noqa: F401
from .section import SectionRecord  # noqa: F401
from .request import ClassRequestRecord  # noqa: F401
from .outcome import LotteryRun, LotteryOutcome  # noqa: F401

__all__ = [
    "Base",
    "StudentRecord",
    "CompletedCourse",
    "SectionRecord",
    "ClassRequestRecord",
    "LotteryRun",
    "LotteryOutcome",
]
