"""
Tests for the metric catalogue and run display helpers.
"""

from tower_stats.core.fields import FIELD_KEYS
from tower_stats.core.metrics import (
    METRICS,
    METRICS_BY_KEY,
    SECTIONS,
    chronological_runs,
    format_int,
    format_metric,
    metric_series,
    summarize_run,
)
from tests.fixtures.runs import make_run


class TestCatalogue:
    """Tests for METRICS and SECTIONS."""

    def test_keys_come_from_reports(self):
        """Every metric is a parsed field or a computed duration."""
        extra = set(METRICS_BY_KEY) - set(FIELD_KEYS)
        assert extra == {"realTimeSeconds", "gameTimeSeconds"}

    def test_keys_unique(self):
        """No metric is listed twice."""
        assert len(METRICS) == len(METRICS_BY_KEY)

    def test_sections_in_display_order(self):
        """Sections keep their first-appearance order."""
        assert SECTIONS == ("Overview", "Economy", "Combat", "Utility", "Enemies", "Bots", "Rewards")


class TestFormatMetric:
    """Tests for format_metric() and format_int()."""

    def test_styles(self):
        """Each style renders its own way."""
        assert format_metric("coinsEarned", 2460000000) == "2.46B"
        assert format_metric("wave", 4512) == "4,512"
        assert format_metric("realTimeSeconds", 3723) == "1h 2m 3s"
        assert format_metric("damageGainFromBerserk", 8) == "x8"
        assert format_metric("tier", 11) == "11"

    def test_unknown_key_uses_suffix_notation(self):
        """Keys outside the catalogue still format."""
        assert format_metric("mystery", 1500) == "1.50K"

    def test_missing(self):
        """None renders the placeholder."""
        assert format_metric("coinsEarned", None) == "—"
        assert format_int(None) == "—"

    def test_format_int(self):
        """Thousands separators, two decimals for fractions."""
        assert format_int(1234567) == "1,234,567"
        assert format_int(12.0) == "12"
        assert format_int(1234.5) == "1,234.50"


class TestSeries:
    """Tests for chronological ordering and chart series."""

    def test_chronological(self):
        """Runs sort oldest first; undated runs are dropped."""
        runs = [
            make_run("2024-03-01 10:00"),
            make_run("Feb 14, 2024 10:32"),
            make_run(None),
        ]
        dates = [r["battleDate"] for r in chronological_runs(runs)]
        assert dates == ["Feb 14, 2024 10:32", "2024-03-01 10:00"]

    def test_series(self):
        """Labels are battle dates, values floats or None."""
        runs = [
            make_run("2024-01-02 10:00", coinsEarned=2000),
            make_run("2024-01-01 10:00", coinsEarned=1000),
            make_run("2024-01-03 10:00", coinsEarned=None),
        ]
        labels, values = metric_series(runs, "coinsEarned")
        assert labels == ["2024-01-01 10:00", "2024-01-02 10:00", "2024-01-03 10:00"]
        assert values == [1000.0, 2000.0, None]

    def test_series_of_missing_metric(self):
        """A metric no run has gives all-None values."""
        labels, values = metric_series([make_run()], "gems")
        assert labels == ["2024-01-01 10:00"]
        assert values == [None]


class TestSummarizeRun:
    """Tests for summarize_run()."""

    def test_row(self):
        """The history row formats each column."""
        run = make_run(killedBy="Boss", cellsEarned=18220, totalElites=810)
        assert summarize_run(run) == {
            "date": "2024-01-01 10:00",
            "tier": "5",
            "wave": "1200",
            "killedBy": "Boss",
            "coins": "2.46B",
            "cells": "18.22K",
            "elites": "810",
            "realTime": "0h 59m 0s",
        }

    def test_sparse_row(self):
        """Missing columns show the placeholder."""
        row = summarize_run({"battleDate": "x"})
        assert row["tier"] == "—"
        assert row["coins"] == "—"
        assert row["realTime"] == "—"
