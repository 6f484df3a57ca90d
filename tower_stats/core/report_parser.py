"""
Report Parser - turns pasted battle report text into a run record.

The parser never writes to storage; callers preview the record and decide
whether to save it.
"""

import logging
import time
from typing import Any, Optional

from .durations import parse_time_to_seconds
from .extractor import FieldExtractor

logger = logging.getLogger(__name__)

MIN_MATCHED_FIELDS = 3


def make_run_id(fields: dict, now_ms: Optional[int] = None) -> str:
    """Informational run label: "{battleDate}_{tier}_{wave}_{epoch_ms}".

    Only used for display. Runs are deduplicated by battleDate.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    parts = [fields.get("battleDate"), fields.get("tier"), fields.get("wave")]
    return "_".join(str(p) if p else "" for p in parts) + f"_{now_ms}"


class ReportParser:
    """Parses battle report text into structured run records."""

    def __init__(
        self,
        min_matched_fields: int = MIN_MATCHED_FIELDS,
        extractor: Optional[FieldExtractor] = None
    ):
        self.min_matched_fields = min_matched_fields
        self.extractor = extractor or FieldExtractor()

    def parse(self, text: Any, now_ms: Optional[int] = None) -> Optional[dict]:
        """Parse a full battle report.

        Args:
            text: Raw report text as pasted from the game.
            now_ms: Epoch milliseconds used for the informational id.

        Returns:
            The run record, or None if the text doesn't look like a report.
        """
        if not text or not isinstance(text, str):
            return None

        extraction = self.extractor.extract(text)
        if extraction is None:
            return None
        if extraction.match_count < self.min_matched_fields:
            logger.info(
                "Report unparseable: %d fields matched, need %d",
                extraction.match_count,
                self.min_matched_fields,
            )
            return None

        record = dict(extraction.fields)

        game_seconds = parse_time_to_seconds(record.get("gameTimeRaw"))
        if game_seconds is not None:
            record["gameTimeSeconds"] = game_seconds
        real_seconds = parse_time_to_seconds(record.get("realTimeRaw"))
        if real_seconds is not None:
            record["realTimeSeconds"] = real_seconds

        record["id"] = make_run_id(record, now_ms)
        return record


def parse_battle_report(text: Any) -> Optional[dict]:
    """Parse a report with the default settings."""
    return ReportParser().parse(text)
