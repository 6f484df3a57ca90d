"""
Field Extraction Engine.

Normalizes raw battle report text and runs the ordered field table over it.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from .fields import FIELD_RULES, FieldRule, ValueKind
from .numbers import parse_number_with_suffix

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

# Both markers must be present for text to be treated as a report at all.
REPORT_MARKERS = ("Battle", "Wave")


@dataclass
class ExtractionResult:
    """Fields pulled out of one report."""
    fields: dict[str, Any] = field(default_factory=dict)
    match_count: int = 0
    matched_keys: list[str] = field(default_factory=list)


def normalize_report_text(text: str) -> str:
    """Collapse all whitespace (newlines included) to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def looks_like_report(normalized: str) -> bool:
    """Cheap sanity gate: the text mentions both Battle and Wave."""
    return all(marker in normalized for marker in REPORT_MARKERS)


class FieldExtractor:
    """Applies an ordered table of field rules to report text."""

    def __init__(self, rules: Sequence[FieldRule] = FIELD_RULES):
        self.rules = tuple(rules)

    def extract(self, text: str) -> Optional[ExtractionResult]:
        """Extract every field present in the report.

        Returns None when the text fails the Battle/Wave gate. Fields whose
        label is absent are left out of the result rather than defaulted.
        """
        normalized = normalize_report_text(text)
        if not looks_like_report(normalized):
            logger.debug("Text lacks Battle/Wave markers; not a report")
            return None

        result = ExtractionResult()
        for rule in self.rules:
            raw = rule.find(normalized)
            if raw is None:
                continue
            result.match_count += 1
            result.matched_keys.append(rule.key)

            if rule.kind is ValueKind.TEXT:
                result.fields[rule.key] = raw.strip()
            else:
                value = parse_number_with_suffix(raw)
                if value is not None:
                    result.fields[rule.key] = value

        logger.debug(
            "Matched %d of %d report fields", result.match_count, len(self.rules)
        )
        return result
