"""Test fixtures for tower-stats tests."""

from .reports import FULL_REPORT, SHORT_REPORT, MARKERS_ONLY, NOT_A_REPORT, make_report
from .runs import make_run, make_milestone_body

__all__ = [
    "FULL_REPORT",
    "SHORT_REPORT",
    "MARKERS_ONLY",
    "NOT_A_REPORT",
    "make_report",
    "make_run",
    "make_milestone_body",
]
