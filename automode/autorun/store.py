"""
Run persistence for Auto Mode save slots.

Each save slot is one JSON file in <data_dir>/runs/{save_id}.json.
Lifetime analytics counters live in <data_dir>/analytics.json.

Writes are last-write-wins: a slot is replaced wholesale through a temp file
and an atomic rename. There is no locking; one writer per slot at a time is
the caller's responsibility.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from automode.autorun.models import AdaptiveAnalytics, Run, RunSummary, now_ms
from automode.autorun.schema import SchemaError, dump_envelope, parse_envelope
from automode.errors import InvalidSaveIdError, RunCorruptedError, RunNotFoundError

# Default store directory
DATA_DIR = Path.home() / ".automode"

_SAVE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,63}$")


def validate_save_id(save_id: str) -> str:
    """Ensure a save id is safe to use as a file name."""
    if not isinstance(save_id, str) or not _SAVE_ID_PATTERN.match(save_id) or ".." in save_id:
        raise InvalidSaveIdError(
            f"Invalid save id {save_id!r}: use letters, digits, '-', '_' or '.' (max 64)"
        )
    return save_id


class _AnalyticsRecord(BaseModel):
    promotions: int = Field(default=0, ge=0)
    streak_resets: int = Field(default=0, ge=0)
    remediations_triggered: int = Field(default=0, ge=0)
    completions: int = Field(default=0, ge=0)
    jumps: int = Field(default=0, ge=0)
    skips: int = Field(default=0, ge=0)


class RunStore:
    """
    Manages save slot persistence.

    Corrupted or unrecognized slot files are discarded on load and reported
    as RunCorruptedError (a RunNotFoundError), so callers simply start fresh.
    """

    def __init__(self, data_dir: Path | None = None):
        self.data_dir = data_dir or DATA_DIR
        self.runs_dir = self.data_dir / "runs"
        self.analytics_path = self.data_dir / "analytics.json"
        self.runs_dir.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # Slot Operations
    # =========================================================================

    def load(self, save_id: str) -> Run:
        """
        Load the run stored in a slot.

        Raises:
            RunNotFoundError: If the slot does not exist or cannot be read
            RunCorruptedError: If the slot held an invalid record (now discarded)
        """
        filepath = self._slot_path(save_id)
        if not filepath.exists():
            raise RunNotFoundError(save_id)

        try:
            run = self._read(filepath)
        except OSError as e:
            logger.warning(f"Cannot read save slot {save_id}: {e}")
            raise RunNotFoundError(save_id, f"unreadable ({e})") from e
        except (ValueError, SchemaError) as e:
            logger.warning(f"Discarding corrupted save slot {save_id}: {e}")
            self._discard(filepath)
            raise RunCorruptedError(save_id, f"corrupted ({e})") from e

        if run.save_id != save_id:
            logger.warning(f"Discarding save slot {save_id}: record belongs to {run.save_id}")
            self._discard(filepath)
            raise RunCorruptedError(save_id, f"record belongs to '{run.save_id}'")

        logger.debug(f"Loaded save slot {save_id} (topic {run.topic_pointer}, streak {run.streak})")
        return run

    def save(self, run: Run) -> Run:
        """
        Write a run to its slot, replacing whatever was there.

        Returns:
            The run as stored, with last_updated_at stamped at write time
        """
        filepath = self._slot_path(run.save_id)
        stamped = replace(run, last_updated_at=max(now_ms(), run.last_updated_at))
        self._write_json(filepath, dump_envelope(stamped))
        logger.debug(f"Saved save slot {run.save_id}")
        return stamped

    def list(self) -> list[RunSummary]:
        """List stored runs, most recently updated first. Slots that load() would reject are skipped."""
        summaries = []
        for filepath in self.runs_dir.glob("*.json"):
            try:
                run = self._read(filepath)
            except (OSError, ValueError, SchemaError) as e:
                logger.debug(f"Skipping unreadable slot file {filepath.name}: {e}")
                continue
            if run.save_id != filepath.stem:
                logger.debug(f"Skipping slot file {filepath.name}: record belongs to {run.save_id}")
                continue
            summaries.append(RunSummary.from_run(run))

        return sorted(summaries, key=lambda s: (-s.last_updated_at, s.save_id))

    def delete(self, save_id: str) -> bool:
        """Delete a slot. Returns False if it did not exist."""
        filepath = self._slot_path(save_id)
        if filepath.exists():
            filepath.unlink(missing_ok=True)
            logger.info(f"Deleted save slot {save_id}")
            return True
        return False

    def exists(self, save_id: str) -> bool:
        return self._slot_path(save_id).exists()

    # =========================================================================
    # Analytics
    # =========================================================================

    def load_analytics(self) -> AdaptiveAnalytics:
        """Read lifetime counters (zeros if missing or unreadable)."""
        if not self.analytics_path.exists():
            return AdaptiveAnalytics()
        try:
            with open(self.analytics_path, "r", encoding="utf-8") as f:
                record = _AnalyticsRecord.model_validate(json.load(f))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Resetting unreadable analytics file: {e}")
            return AdaptiveAnalytics()
        return AdaptiveAnalytics(**record.model_dump())

    def record_analytics(self, **deltas: int) -> AdaptiveAnalytics:
        """Add deltas to the lifetime counters and persist them."""
        current = asdict(self.load_analytics())
        unknown = set(deltas) - set(current)
        if unknown:
            raise ValueError(f"Unknown analytics counters: {sorted(unknown)}")
        if not any(deltas.values()):
            return AdaptiveAnalytics(**current)

        for key, delta in deltas.items():
            current[key] += delta
        self._write_json(self.analytics_path, current)
        return AdaptiveAnalytics(**current)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _slot_path(self, save_id: str) -> Path:
        return self.runs_dir / f"{validate_save_id(save_id)}.json"

    @staticmethod
    def _read(filepath: Path) -> Run:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        return parse_envelope(data)

    @staticmethod
    def _write_json(filepath: Path, data: dict[str, Any]) -> None:
        tmp_path = filepath.with_name(f".{filepath.name}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, filepath)

    @staticmethod
    def _discard(filepath: Path) -> None:
        try:
            filepath.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to discard {filepath}: {e}")
