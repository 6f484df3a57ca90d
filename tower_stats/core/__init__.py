"""Core module for battle report parsing and display formatting."""

from .numbers import parse_number_with_suffix, format_number
from .durations import parse_time_to_seconds, format_seconds, format_countdown
from .fields import FIELD_RULES, FieldRule, ValueKind
from .extractor import FieldExtractor, ExtractionResult, normalize_report_text
from .report_parser import ReportParser, parse_battle_report, MIN_MATCHED_FIELDS

__all__ = [
    # Codecs
    "parse_number_with_suffix",
    "format_number",
    "parse_time_to_seconds",
    "format_seconds",
    "format_countdown",
    # Extraction
    "FIELD_RULES",
    "FieldRule",
    "ValueKind",
    "FieldExtractor",
    "ExtractionResult",
    "normalize_report_text",
    # Parsing
    "ReportParser",
    "parse_battle_report",
    "MIN_MATCHED_FIELDS",
]
