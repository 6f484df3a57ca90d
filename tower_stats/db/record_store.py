"""
Record Store - persistent runs and milestones with upsert/merge semantics.

Runs are keyed by their natural key, battleDate. Milestones are keyed by a
generated id. Each collection is stored whole, as one JSON document, in a
KeyValueBackend; every mutation is a read-modify-write of that document.
"""

import copy
import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import jsonschema

from ..core.dates import battle_date_sort_key
from ..core.milestones import iso_timestamp
from .backends import KeyValueBackend

logger = logging.getLogger(__name__)

KEY_PREFIX = "tower-stats-"
RUNS_KEY = KEY_PREFIX + "history"
MILESTONES_KEY = KEY_PREFIX + "milestones"

EXPORT_VERSION = 1

_RECORD_LIST = {"type": "array", "items": {"type": "object"}}

IMPORT_SCHEMA = {
    "oneOf": [
        # Legacy export: a bare list of runs
        _RECORD_LIST,
        {
            "type": "object",
            "properties": {
                "version": {"type": ["integer", "string"]},
                "runs": _RECORD_LIST,
                "milestones": _RECORD_LIST,
            },
            "anyOf": [
                {"required": ["runs"]},
                {"required": ["milestones"]},
            ],
        },
    ]
}


class ImportFormatError(ValueError):
    """Import payload is not valid JSON or not a recognized export shape."""


class RunConflictError(ValueError):
    """An edit would give a run the battleDate of a different stored run."""


@dataclass
class SaveOutcome:
    """Result of saving a run."""
    was_duplicate: bool
    run: dict


@dataclass
class ImportSummary:
    """How many records an import actually added."""
    runs_added: int = 0
    milestones_added: int = 0


def new_id() -> str:
    """Generate a new UUID."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecordStore:
    """
    Runs and milestones over an injectable key-value backend.

    Reads degrade to an empty collection when the backend is unreadable or
    holds corrupt data. Writes let backend failures propagate.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id
    ):
        self.backend = backend
        self.clock = clock
        self.id_factory = id_factory

    def _timestamp(self) -> str:
        return iso_timestamp(self.clock())

    # =========================================================================
    # Collection I/O
    # =========================================================================

    def _read(self, key: str) -> list[dict]:
        try:
            raw = self.backend.get(key)
        except (sqlite3.Error, OSError) as e:
            logger.warning("Could not read %s (%s); treating as empty", key, e)
            return []
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("Corrupt data under %s (%s); treating as empty", key, e)
            return []
        if not isinstance(data, list):
            logger.warning("Unexpected %s under %s; treating as empty", type(data).__name__, key)
            return []
        return [item for item in data if isinstance(item, dict)]

    def _write(self, key: str, records: list[dict]) -> None:
        self.backend.set(key, json.dumps(records, ensure_ascii=False))

    # =========================================================================
    # Runs
    # =========================================================================

    def get_runs(self) -> list[dict]:
        """All runs, most recently written first."""
        return self._read(RUNS_KEY)

    def get_run(self, battle_date: str) -> Optional[dict]:
        """Run with the given battleDate, or None."""
        for run in self._read(RUNS_KEY):
            if run.get("battleDate") == battle_date:
                return run
        return None

    def save_run(self, record: dict) -> SaveOutcome:
        """Upsert a run by battleDate.

        An existing run with the same battleDate is overwritten in place;
        otherwise the run goes to the top of the list.

        Raises:
            ValueError: If the record has no battleDate string.
        """
        battle_date = record.get("battleDate")
        if not isinstance(battle_date, str) or not battle_date:
            raise ValueError("Run is missing battleDate")

        runs = self._read(RUNS_KEY)
        entry = {**copy.deepcopy(record), "savedAt": self._timestamp()}
        index = _index_of(runs, "battleDate", battle_date)

        if index is not None:
            runs[index] = entry
            logger.info("Overwrote run %s", battle_date)
        else:
            runs.insert(0, entry)
            logger.info("Saved run %s", battle_date)

        self._write(RUNS_KEY, runs)
        return SaveOutcome(was_duplicate=index is not None, run=copy.deepcopy(entry))

    def delete_run(self, battle_date: str) -> bool:
        """Remove the run with this battleDate. Returns whether one existed."""
        runs = self._read(RUNS_KEY)
        index = _index_of(runs, "battleDate", battle_date)
        if index is None:
            return False
        del runs[index]
        self._write(RUNS_KEY, runs)
        logger.info("Deleted run %s", battle_date)
        return True

    def update_run(self, original_battle_date: str, body: dict) -> dict:
        """Replace a run's whole body, located by its original battleDate.

        The new body may carry a different battleDate. The run keeps its
        position and gets a fresh savedAt.

        Raises:
            ValueError: If no run has original_battle_date or the body has
                no battleDate string.
            RunConflictError: If the new battleDate belongs to another run.
        """
        new_battle_date = body.get("battleDate")
        if not isinstance(new_battle_date, str) or not new_battle_date:
            raise ValueError("Run is missing battleDate")

        runs = self._read(RUNS_KEY)
        index = _index_of(runs, "battleDate", original_battle_date)
        if index is None:
            raise ValueError(f"Run not found: {original_battle_date}")

        if new_battle_date != original_battle_date:
            clash = _index_of(runs, "battleDate", new_battle_date)
            if clash is not None:
                raise RunConflictError(
                    f"Another run already has battleDate {new_battle_date}"
                )

        entry = {**copy.deepcopy(body), "savedAt": self._timestamp()}
        runs[index] = entry
        self._write(RUNS_KEY, runs)
        logger.info("Updated run %s -> %s", original_battle_date, new_battle_date)
        return copy.deepcopy(entry)

    def clear_runs(self) -> None:
        """Remove all runs."""
        self.backend.remove(RUNS_KEY)
        logger.info("Cleared all runs")

    # =========================================================================
    # Milestones
    # =========================================================================

    def get_milestones(self) -> list[dict]:
        """All milestones, most recently saved first."""
        return self._read(MILESTONES_KEY)

    def save_milestone(self, body: dict) -> dict:
        """Insert a milestone with a fresh id and savedAt. Never dedups."""
        milestones = self._read(MILESTONES_KEY)
        entry = {
            **copy.deepcopy(body),
            "id": self.id_factory(),
            "savedAt": self._timestamp(),
        }
        milestones.insert(0, entry)
        self._write(MILESTONES_KEY, milestones)
        logger.info("Saved milestone %s (%s)", entry["id"], entry.get("name"))
        return copy.deepcopy(entry)

    def delete_milestone(self, milestone_id: str) -> bool:
        """Remove a milestone by id. Returns whether one existed."""
        milestones = self._read(MILESTONES_KEY)
        remaining = [m for m in milestones if m.get("id") != milestone_id]
        if len(remaining) == len(milestones):
            return False
        self._write(MILESTONES_KEY, remaining)
        logger.info("Deleted milestone %s", milestone_id)
        return True

    def clear_milestones(self) -> None:
        """Remove all milestones."""
        self.backend.remove(MILESTONES_KEY)
        logger.info("Cleared all milestones")

    def clear_all(self) -> int:
        """Remove every collection this store owns. Returns keys removed."""
        removed = self.backend.remove_prefix(KEY_PREFIX)
        logger.info("Cleared %d stored collections", removed)
        return removed

    # =========================================================================
    # Export / Import
    # =========================================================================

    def export_all(self) -> str:
        """Serialize both collections with the export format version."""
        document = {
            "version": EXPORT_VERSION,
            "exportedAt": self._timestamp(),
            "runs": self.get_runs(),
            "milestones": self.get_milestones(),
        }
        return json.dumps(document, indent=2, ensure_ascii=False)

    def import_all(self, text: str) -> ImportSummary:
        """Merge an export document (or a legacy bare list of runs).

        Existing records win: incoming runs whose battleDate is already
        stored, and milestones whose id is, are skipped, as are records
        missing their key. The whole payload is validated before anything
        is written.

        Raises:
            ImportFormatError: If text isn't JSON or isn't an export shape.
        """
        payload = _parse_import_payload(text)

        if isinstance(payload, list):
            incoming_runs, incoming_milestones = payload, []
        else:
            version = payload.get("version")
            if version is not None and version != EXPORT_VERSION:
                logger.warning("Importing unknown export version %r", version)
            incoming_runs = payload.get("runs", [])
            incoming_milestones = payload.get("milestones", [])

        summary = ImportSummary()

        runs = self._read(RUNS_KEY)
        seen_dates = {r.get("battleDate") for r in runs if isinstance(r.get("battleDate"), str)}
        for run in incoming_runs:
            battle_date = run.get("battleDate")
            if not isinstance(battle_date, str) or not battle_date or battle_date in seen_dates:
                continue
            runs.append(copy.deepcopy(run))
            seen_dates.add(battle_date)
            summary.runs_added += 1

        milestones = self._read(MILESTONES_KEY)
        seen_ids = {m.get("id") for m in milestones if isinstance(m.get("id"), (str, int))}
        for milestone in incoming_milestones:
            milestone_id = milestone.get("id")
            if not isinstance(milestone_id, (str, int)) or not milestone_id or milestone_id in seen_ids:
                continue
            milestones.append(copy.deepcopy(milestone))
            seen_ids.add(milestone_id)
            summary.milestones_added += 1

        if summary.runs_added:
            runs.sort(key=lambda r: battle_date_sort_key(r.get("battleDate")), reverse=True)
            self._write(RUNS_KEY, runs)
        if summary.milestones_added:
            milestones.sort(key=lambda m: str(m.get("savedAt") or ""), reverse=True)
            self._write(MILESTONES_KEY, milestones)

        logger.info(
            "Imported %d runs and %d milestones",
            summary.runs_added,
            summary.milestones_added,
        )
        return summary


def _index_of(records: list[dict], field: str, value: Any) -> Optional[int]:
    """Position of the first record whose field equals value."""
    for i, record in enumerate(records):
        if record.get(field) == value:
            return i
    return None


def _parse_import_payload(text: str) -> Any:
    """Decode and shape-check an import document without touching the store."""
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ImportFormatError(f"Import file is not valid JSON: {e}") from e
    try:
        jsonschema.validate(instance=payload, schema=IMPORT_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ImportFormatError(
            "Import file must be a list of runs or an object with "
            f"runs/milestones lists ({e.message})"
        ) from e
    return payload
