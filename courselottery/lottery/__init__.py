"""Weighted seat lottery: eligibility, weights, draws and outcome explanations."""

from .codes import (
    canonical_course_code,
    extract_course_code,
    is_valid_course_code,
    matches_course_code,
    normalize_course_code_input,
    strip_location_code,
)
from .engine import LotteryEngine, LotteryResult
from .prerequisites import (
    DEFAULT_CS_PREREQUISITES,
    PrerequisiteGraph,
    PrerequisiteValidation,
    build_default_graph,
)
from .types import (
    ClassDemographics,
    ClassRequest,
    CourseSection,
    MajorStatus,
    OutcomeRecord,
    OutcomeStatus,
    SectionStatus,
    Student,
    StudentYear,
)
from .waitlist import WaitlistAnalyzer, format_outcome
from .weights import WeightBreakdown, WeightCalculator

__all__ = [
    "ClassDemographics",
    "ClassRequest",
    "CourseSection",
    "DEFAULT_CS_PREREQUISITES",
    "LotteryEngine",
    "LotteryResult",
    "MajorStatus",
    "OutcomeRecord",
    "OutcomeStatus",
    "PrerequisiteGraph",
    "PrerequisiteValidation",
    "SectionStatus",
    "Student",
    "StudentYear",
    "WaitlistAnalyzer",
    "WeightBreakdown",
    "WeightCalculator",
    "build_default_graph",
    "canonical_course_code",
    "extract_course_code",
    "format_outcome",
    "is_valid_course_code",
    "matches_course_code",
    "normalize_course_code_input",
    "strip_location_code",
]
