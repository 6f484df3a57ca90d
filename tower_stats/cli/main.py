"""
Tower Stats CLI.

Commands:
  parse             Preview a battle report (optionally save it)
  list              Show saved runs
  show              Show every field of one run
  delete            Delete a run by battle date
  update            Replace a run's fields from a JSON file
  clear-runs        Delete all runs
  metrics           List chartable metrics
  series            Print one metric across runs, oldest first

Milestone Commands:
  milestone-add     Track a lab research timer
  milestones        Show tracked milestones with countdowns
  milestone-delete  Delete a milestone by id
  clear-milestones  Delete all milestones

Backup Commands:
  export            Write runs and milestones to JSON
  import            Merge runs and milestones from a JSON export
"""

import argparse
import json
import logging
import sqlite3
import sys
from pathlib import Path

from tower_stats.config import load_settings
from tower_stats.core.durations import format_countdown, format_seconds
from tower_stats.core.metrics import (
    METRICS, METRICS_BY_KEY, SECTIONS, format_metric, metric_series, summarize_run
)
from tower_stats.core.milestones import SPEED_MULTIPLIERS, build_lab_milestone
from tower_stats.core.numbers import format_number
from tower_stats.core.report_parser import ReportParser
from tower_stats.db.backends import create_backend
from tower_stats.db.record_store import ImportFormatError, RecordStore


def _open_store(args) -> RecordStore:
    return RecordStore(create_backend(args.db))


def _read_input(path):
    """Read text from a file path, or stdin when path is None or '-'."""
    if path is None or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _print_preview(run: dict):
    print("Preview")
    print(f"  Battle Date:  {run.get('battleDate') or '—'}")
    print(f"  Tier:         {run.get('tier', '—')}")
    print(f"  Wave:         {run.get('wave', '—')}")
    print(f"  Killed By:    {run.get('killedBy') or '—'}")
    print(f"  Coins:        {format_number(run.get('coinsEarned'))}")
    print(f"  Cells:        {format_number(run.get('cellsEarned'))}")
    print(f"  Total Elites: {run.get('totalElites', '—')}")
    print(f"  Game Time:    {format_seconds(run.get('gameTimeSeconds'))}")
    print(f"  Real Time:    {format_seconds(run.get('realTimeSeconds'))}")
    print(f"  Damage Dealt: {format_number(run.get('damageDealt'))}")


def parse_cmd(args):
    """Preview a pasted battle report and optionally save it."""
    text = _read_input(args.file)
    parser = ReportParser(min_matched_fields=args.min_fields)
    run = parser.parse(text)
    if run is None:
        print("Could not parse battle report. Paste the full report text.", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(run, indent=2, ensure_ascii=False))
    else:
        _print_preview(run)

    if args.save:
        if not run.get("battleDate"):
            print("Error: report has no Battle Date; not saved.", file=sys.stderr)
            return 1
        outcome = _open_store(args).save_run(run)
        if outcome.was_duplicate:
            print("Run updated (duplicate battle date overwritten).")
        else:
            print("Run saved.")
    return 0


def list_cmd(args):
    """Show saved runs, most recently saved first."""
    runs = _open_store(args).get_runs()
    if not runs:
        print("No local runs yet. Paste a battle report to get started.")
        return 0

    print(f"History ({len(runs)} runs)")
    header = f"{'Date':<24} {'Tier':>4} {'Wave':>6} {'Coins':>9} {'Cells':>9} {'Elites':>6}  Real Time"
    print(header)
    print("-" * len(header))
    for run in runs:
        row = summarize_run(run)
        print(
            f"{row['date']:<24} {row['tier']:>4} {row['wave']:>6} "
            f"{row['coins']:>9} {row['cells']:>9} {row['elites']:>6}  {row['realTime']}"
        )
    return 0


def show_cmd(args):
    """Show every recorded field of one run."""
    run = _open_store(args).get_run(args.battle_date)
    if not run:
        print("Run not found", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(run, indent=2, ensure_ascii=False))
        return 0

    print(f"Battle Date: {run.get('battleDate')}")
    print(f"Saved At:    {run.get('savedAt', '—')}")
    for section in SECTIONS:
        shown = [m for m in METRICS if m.section == section and run.get(m.key) is not None]
        if not shown:
            continue
        print(f"\n{section}")
        for metric in shown:
            print(f"  {metric.label:<26} {format_metric(metric.key, run[metric.key])}")
    return 0


def delete_cmd(args):
    """Delete a run by battle date."""
    if _open_store(args).delete_run(args.battle_date):
        print(f"Deleted run {args.battle_date}")
    else:
        print(f"No run with battle date {args.battle_date}")
    return 0


def update_cmd(args):
    """Replace a run's body from a JSON file."""
    body = json.loads(_read_input(args.body))
    if not isinstance(body, dict):
        print("Error: run body must be a JSON object", file=sys.stderr)
        return 1
    run = _open_store(args).update_run(args.battle_date, body)
    print(f"Updated run {run['battleDate']}")
    return 0


def clear_runs_cmd(args):
    """Delete all runs."""
    _open_store(args).clear_runs()
    print("Cleared all runs.")
    return 0


def metrics_cmd(args):
    """List chartable metric keys by section."""
    for section in SECTIONS:
        print(section)
        for metric in METRICS:
            if metric.section == section:
                print(f"  {metric.key:<28} {metric.label}")
    return 0


def series_cmd(args):
    """Print one metric across runs, oldest first."""
    if args.metric not in METRICS_BY_KEY:
        print(f"Unknown metric: {args.metric}. Run 'metrics' to list them.", file=sys.stderr)
        return 1
    runs = _open_store(args).get_runs()
    labels, _ = metric_series(runs, args.metric)
    if not labels:
        print("No dated runs to chart.")
        return 0
    metric = METRICS_BY_KEY[args.metric]
    print(metric.label)
    by_date = {run.get("battleDate"): run for run in runs}
    for label in labels:
        print(f"  {label:<24} {format_metric(metric.key, by_date[label].get(metric.key))}")
    return 0


def milestone_add_cmd(args):
    """Track a lab research timer."""
    body = build_lab_milestone(
        category=args.category,
        name=args.name,
        days=args.days,
        hours=args.hours,
        minutes=args.minutes,
        multiplier=args.speed,
    )
    milestone = _open_store(args).save_milestone(body)
    text, _ = format_countdown(milestone["completionTimestamp"])
    print(f"Tracking {milestone['name']} ({milestone['id']}), done in {text}")
    return 0


def milestones_cmd(args):
    """Show tracked milestones with live countdowns."""
    milestones = _open_store(args).get_milestones()
    if not milestones:
        print("No milestones yet.")
        return 0
    for m in milestones:
        if m.get("completionTimestamp"):
            text, completed = format_countdown(m["completionTimestamp"])
        else:
            text, completed = "—", False
        marker = "✓" if completed else " "
        print(
            f"{marker} {m.get('name', '—'):<32} {m.get('category', '—'):<16} "
            f"{m.get('multiplier', 1)}x  {text:<12} {m.get('id', '—')}"
        )
    return 0


def milestone_delete_cmd(args):
    """Delete a milestone by id."""
    if _open_store(args).delete_milestone(args.milestone_id):
        print(f"Deleted milestone {args.milestone_id}")
    else:
        print(f"No milestone with id {args.milestone_id}")
    return 0


def clear_milestones_cmd(args):
    """Delete all milestones."""
    _open_store(args).clear_milestones()
    print("Cleared all milestones.")
    return 0


def export_cmd(args):
    """Write runs and milestones to a JSON export."""
    document = _open_store(args).export_all()
    if args.out:
        Path(args.out).write_text(document, encoding="utf-8")
        print(f"Exported to {args.out}")
    else:
        print(document)
    return 0


def import_cmd(args):
    """Merge runs and milestones from a JSON export."""
    text = _read_input(args.file)
    try:
        summary = _open_store(args).import_all(text)
    except ImportFormatError as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1
    if summary.runs_added == 0 and summary.milestones_added == 0:
        print("Nothing new to import (all entries already exist).")
    else:
        print(
            f"Imported {summary.runs_added} runs and "
            f"{summary.milestones_added} milestones."
        )
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description="Tower Stats - battle report tracker for The Tower"
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database path (default: from config, else the data directory)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command")

    # parse
    parse_parser = sub.add_parser("parse", help="Preview a battle report")
    parse_parser.add_argument("file", nargs="?", help="Report text file (default: stdin)")
    parse_parser.add_argument("--save", action="store_true", help="Save the parsed run")
    parse_parser.add_argument("--json", action="store_true", help="Print the full record as JSON")
    parse_parser.set_defaults(func=parse_cmd)

    # list
    list_parser = sub.add_parser("list", help="Show saved runs")
    list_parser.set_defaults(func=list_cmd)

    # show
    show_parser = sub.add_parser("show", help="Show one run")
    show_parser.add_argument("battle_date", help="Battle date of the run")
    show_parser.add_argument("--json", action="store_true", help="Print as JSON")
    show_parser.set_defaults(func=show_cmd)

    # delete
    delete_parser = sub.add_parser("delete", help="Delete a run")
    delete_parser.add_argument("battle_date", help="Battle date of the run")
    delete_parser.set_defaults(func=delete_cmd)

    # update
    update_parser = sub.add_parser("update", help="Replace a run's fields")
    update_parser.add_argument("battle_date", help="Current battle date of the run")
    update_parser.add_argument("body", help="JSON file with the new run body ('-' for stdin)")
    update_parser.set_defaults(func=update_cmd)

    # clear-runs
    clear_runs_parser = sub.add_parser("clear-runs", help="Delete all runs")
    clear_runs_parser.set_defaults(func=clear_runs_cmd)

    # metrics
    metrics_parser = sub.add_parser("metrics", help="List chartable metrics")
    metrics_parser.set_defaults(func=metrics_cmd)

    # series
    series_parser = sub.add_parser("series", help="Print a metric across runs")
    series_parser.add_argument("metric", help="Metric key (see 'metrics')")
    series_parser.set_defaults(func=series_cmd)

    # milestone-add
    ms_add_parser = sub.add_parser("milestone-add", help="Track a lab research timer")
    ms_add_parser.add_argument("category", help="Research category (e.g. Attack)")
    ms_add_parser.add_argument("name", help="Research name")
    ms_add_parser.add_argument("--days", type=int, default=0)
    ms_add_parser.add_argument("--hours", type=int, default=0)
    ms_add_parser.add_argument("--minutes", type=int, default=0)
    ms_add_parser.add_argument(
        "--speed",
        type=float,
        default=1,
        choices=SPEED_MULTIPLIERS,
        help="Lab speed multiplier (default: 1)",
    )
    ms_add_parser.set_defaults(func=milestone_add_cmd)

    # milestones
    ms_list_parser = sub.add_parser("milestones", help="Show tracked milestones")
    ms_list_parser.set_defaults(func=milestones_cmd)

    # milestone-delete
    ms_delete_parser = sub.add_parser("milestone-delete", help="Delete a milestone")
    ms_delete_parser.add_argument("milestone_id", help="Milestone id")
    ms_delete_parser.set_defaults(func=milestone_delete_cmd)

    # clear-milestones
    ms_clear_parser = sub.add_parser("clear-milestones", help="Delete all milestones")
    ms_clear_parser.set_defaults(func=clear_milestones_cmd)

    # export
    export_parser = sub.add_parser("export", help="Export runs and milestones")
    export_parser.add_argument("--out", help="Output file (default: stdout)")
    export_parser.set_defaults(func=export_cmd)

    # import
    import_parser = sub.add_parser("import", help="Import runs and milestones")
    import_parser.add_argument("file", help="Export file to merge ('-' for stdin)")
    import_parser.set_defaults(func=import_cmd)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.db is None:
        args.db = str(settings.db_path)
    args.min_fields = settings.min_matched_fields

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except sqlite3.Error as e:
        print(f"Error: storage unavailable ({e})", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
