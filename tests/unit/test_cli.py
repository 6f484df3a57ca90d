"""
Tests for the tower-stats command line.

Each test drives main() with a database in tmp_path and checks the exit
code and printed output.
"""

import json

import pytest
from tower_stats.cli.main import build_parser, main
from tests.fixtures.reports import FULL_REPORT, NOT_A_REPORT, make_report


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / "cli.db")


@pytest.fixture
def report_file(tmp_path):
    path = tmp_path / "report.txt"
    path.write_text(FULL_REPORT, encoding="utf-8")
    return str(path)


def run(db, *argv):
    return main(["--db", db, *argv])


class TestParser:
    """Tests for argument parsing."""

    def test_commands_registered(self):
        """Every command has a handler."""
        parser = build_parser()
        for argv in (["list"], ["metrics"], ["export"], ["milestones"]):
            assert callable(parser.parse_args(argv).func)

    def test_speed_choices(self):
        """Only the game's lab speeds are accepted."""
        parser = build_parser()
        assert parser.parse_args(["milestone-add", "A", "B", "--speed", "1.5"]).speed == 1.5
        with pytest.raises(SystemExit):
            parser.parse_args(["milestone-add", "A", "B", "--speed", "2.5"])

    def test_no_command(self, capsys):
        """Without a command, help is printed."""
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out


class TestParseCommand:
    """Tests for the parse command."""

    def test_preview(self, db, report_file, capsys):
        """A report previews without saving."""
        assert run(db, "parse", report_file) == 0
        out = capsys.readouterr().out
        assert "Feb 14, 2026 10:32" in out
        assert "2.46T" in out

        run(db, "list")
        assert "No local runs yet" in capsys.readouterr().out

    def test_json(self, db, report_file, capsys):
        """--json prints the full record."""
        assert run(db, "parse", report_file, "--json") == 0
        record = json.loads(capsys.readouterr().out)
        assert record["wave"] == 4512

    def test_save_and_duplicate(self, db, report_file, capsys):
        """Saving twice reports the overwrite."""
        assert run(db, "parse", report_file, "--save") == 0
        assert "Run saved." in capsys.readouterr().out

        assert run(db, "parse", report_file, "--save") == 0
        assert "duplicate battle date overwritten" in capsys.readouterr().out

        run(db, "list")
        out = capsys.readouterr().out
        assert "History (1 runs)" in out
        assert "Feb 14, 2026 10:32" in out

    def test_not_a_report(self, db, tmp_path, capsys):
        """Unparseable text exits non-zero."""
        path = tmp_path / "junk.txt"
        path.write_text(NOT_A_REPORT)
        assert run(db, "parse", str(path)) == 1
        assert "Could not parse" in capsys.readouterr().err


class TestRunCommands:
    """Tests for show, update, delete and series."""

    @pytest.fixture(autouse=True)
    def saved(self, db, tmp_path):
        for date, coins in (("2024-01-01 10:00", "1.00B"), ("2024-01-02 10:00", "2.00B")):
            path = tmp_path / f"{coins}.txt"
            path.write_text(make_report(battle_date=date, coins=coins))
            run(db, "parse", str(path), "--save")

    def test_show(self, db, capsys):
        """show prints sections of formatted metrics."""
        capsys.readouterr()
        assert run(db, "show", "2024-01-01 10:00") == 0
        out = capsys.readouterr().out
        assert "Economy" in out
        assert "1.00B" in out

    def test_show_missing(self, db, capsys):
        """Unknown runs exit non-zero."""
        assert run(db, "show", "nope") == 1

    def test_series(self, db, capsys):
        """series lists values oldest first."""
        capsys.readouterr()
        assert run(db, "series", "coinsEarned") == 0
        out = capsys.readouterr().out
        assert out.index("1.00B") < out.index("2.00B")

    def test_unknown_metric(self, db, capsys):
        """Unknown metric keys exit non-zero."""
        assert run(db, "series", "nope") == 1

    def test_update_conflict(self, db, tmp_path, capsys):
        """Renaming onto an existing battle date fails cleanly."""
        body = tmp_path / "body.json"
        body.write_text(json.dumps({"battleDate": "2024-01-02 10:00", "wave": 1}))
        assert run(db, "update", "2024-01-01 10:00", str(body)) == 1
        assert "Error:" in capsys.readouterr().err

    def test_update(self, db, tmp_path, capsys):
        """A valid body replaces the run."""
        body = tmp_path / "body.json"
        body.write_text(json.dumps({"battleDate": "2024-01-05 10:00", "wave": 1}))
        assert run(db, "update", "2024-01-01 10:00", str(body)) == 0
        capsys.readouterr()
        run(db, "show", "2024-01-05 10:00", "--json")
        assert json.loads(capsys.readouterr().out)["wave"] == 1

    def test_delete_and_clear(self, db, capsys):
        """delete removes one run, clear-runs the rest."""
        run(db, "delete", "2024-01-01 10:00")
        run(db, "clear-runs")
        capsys.readouterr()
        run(db, "list")
        assert "No local runs yet" in capsys.readouterr().out


class TestMilestoneCommands:
    """Tests for milestone commands."""

    def test_add_and_list(self, db, capsys):
        """Added milestones show a countdown."""
        assert run(db, "milestone-add", "Attack", "Damage", "--hours", "5", "--speed", "2") == 0
        assert "Tracking Damage" in capsys.readouterr().out

        run(db, "milestones")
        out = capsys.readouterr().out
        assert "Damage" in out
        assert " 2x " in out
        assert "2.0x" not in out

    def test_add_without_time(self, db, capsys):
        """A zero-length research is refused."""
        assert run(db, "milestone-add", "Attack", "Damage") == 1
        assert "greater than zero" in capsys.readouterr().err

    def test_empty(self, db, capsys):
        """No milestones yet."""
        run(db, "milestones")
        assert "No milestones yet." in capsys.readouterr().out


class TestBackupCommands:
    """Tests for export and import."""

    def test_export_then_import(self, db, report_file, tmp_path, capsys):
        """Export from one database imports into another."""
        run(db, "parse", report_file, "--save")
        run(db, "milestone-add", "Attack", "Damage", "--minutes", "30")
        out_file = tmp_path / "backup.json"
        assert run(db, "export", "--out", str(out_file)) == 0

        other = str(tmp_path / "other.db")
        capsys.readouterr()
        assert run(other, "import", str(out_file)) == 0
        assert "Imported 1 runs and 1 milestones." in capsys.readouterr().out

        assert run(other, "import", str(out_file)) == 0
        assert "Nothing new to import" in capsys.readouterr().out

    def test_import_malformed(self, db, tmp_path, capsys):
        """Bad files report the failure."""
        path = tmp_path / "bad.json"
        path.write_text('{"foo": 1}')
        assert run(db, "import", str(path)) == 1
        assert "Import failed" in capsys.readouterr().err


class TestUnavailableStorage:
    """Tests for a database file that isn't SQLite."""

    @pytest.fixture
    def bad_db(self, tmp_path):
        path = tmp_path / "bad.db"
        path.write_text("this is not sqlite at all" * 100)
        return str(path)

    @pytest.mark.parametrize("argv,expected", [
        (["list"], "No local runs yet"),
        (["milestones"], "No milestones yet."),
        (["series", "coinsEarned"], "No dated runs to chart."),
    ])
    def test_reads_come_back_empty(self, bad_db, capsys, argv, expected):
        """Read-only commands behave as if the store were empty."""
        assert run(bad_db, *argv) == 0
        assert expected in capsys.readouterr().out

    def test_show_reports_missing(self, bad_db, capsys):
        """show finds nothing rather than crashing."""
        assert run(bad_db, "show", "2024-01-01 10:00") == 1
        assert "Run not found" in capsys.readouterr().err

    def test_save_fails_cleanly(self, bad_db, report_file, capsys):
        """Writes report the storage error and exit non-zero."""
        assert run(bad_db, "parse", report_file, "--save") == 1
        assert "storage unavailable" in capsys.readouterr().err


class TestUpdateValidation:
    """Tests for run bodies given to update."""

    def test_non_string_battle_date(self, db, report_file, tmp_path, capsys):
        """A list battleDate is refused and later imports still work."""
        run(db, "parse", report_file, "--save")
        body = tmp_path / "body.json"
        body.write_text(json.dumps({"battleDate": ["x"], "wave": 1}))
        assert run(db, "update", "Feb 14, 2026 10:32", str(body)) == 1
        assert "Error:" in capsys.readouterr().err

        backup = tmp_path / "backup.json"
        backup.write_text(json.dumps([{"battleDate": "2024-01-01 10:00"}]))
        assert run(db, "import", str(backup)) == 0
        assert "Imported 1 runs and 0 milestones." in capsys.readouterr().out
