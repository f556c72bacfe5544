"""Loading lottery inputs from roster and catalog files."""

from .loader import (
    build_requests,
    default_sections,
    load_sections_json,
    load_students_csv,
    parse_major_status,
    parse_roster_line,
)

__all__ = [
    "build_requests",
    "default_sections",
    "load_sections_json",
    "load_students_csv",
    "parse_major_status",
    "parse_roster_line",
]
