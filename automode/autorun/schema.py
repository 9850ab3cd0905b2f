"""
Persisted run schema and migrations.

Each save slot is stored as an envelope:

    {"schemaVersion": 2, "run": {"saveId": ..., "topicPointer": ..., ...}}

Older envelopes are upgraded by a chain of pure record migrations
(v1 → v2 → ...) applied once when a record is read. Writes always use the
current version. A missing or unknown version makes the record unreadable.
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, ValidationError

from automode.autorun.models import Run, RunStatus, TopicStats

CURRENT_SCHEMA_VERSION = 2


class SchemaError(ValueError):
    """Raised when a stored envelope cannot be turned into a Run."""
    pass


# =============================================================================
# Record Models
# =============================================================================


class TopicStatsRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    attempts: StrictInt = Field(ge=0)
    solved: StrictInt = Field(ge=0)
    last_attempt_at: StrictInt | None = Field(default=None, alias="lastAttemptAt")


class RunRecord(BaseModel):
    """Current (v2) on-disk shape of a run."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    save_id: str = Field(min_length=1, alias="saveId")
    name: str = Field(min_length=1)
    created_at: StrictInt = Field(ge=0, alias="createdAt")
    last_updated_at: StrictInt = Field(ge=0, alias="lastUpdatedAt")
    topic_pointer: StrictInt = Field(ge=0, alias="topicPointer")
    streak: StrictInt = Field(ge=0)
    completed_questions: StrictInt = Field(ge=0, alias="completedQuestions")
    aggressive_progression: StrictBool = Field(alias="aggressiveProgression")
    remediation_mode: StrictBool = Field(alias="remediationMode")
    status: RunStatus
    topic_stats: dict[str, TopicStatsRecord] = Field(default_factory=dict, alias="topicStats")

    @classmethod
    def from_run(cls, run: Run) -> RunRecord:
        return cls(
            save_id=run.save_id,
            name=run.name,
            created_at=run.created_at,
            last_updated_at=run.last_updated_at,
            topic_pointer=run.topic_pointer,
            streak=run.streak,
            completed_questions=run.completed_questions,
            aggressive_progression=run.aggressive_progression,
            remediation_mode=run.remediation_mode,
            status=run.status,
            topic_stats={
                topic_id: TopicStatsRecord(
                    attempts=s.attempts, solved=s.solved, last_attempt_at=s.last_attempt_at
                )
                for topic_id, s in run.topic_stats.items()
            },
        )

    def to_run(self) -> Run:
        return Run(
            save_id=self.save_id,
            name=self.name,
            created_at=self.created_at,
            last_updated_at=self.last_updated_at,
            topic_pointer=self.topic_pointer,
            streak=self.streak,
            completed_questions=self.completed_questions,
            aggressive_progression=self.aggressive_progression,
            remediation_mode=self.remediation_mode,
            status=self.status,
            topic_stats={
                topic_id: TopicStats(
                    attempts=s.attempts, solved=s.solved, last_attempt_at=s.last_attempt_at
                )
                for topic_id, s in self.topic_stats.items()
            },
        )


# =============================================================================
# Migrations
# =============================================================================


def _migrate_v1_to_v2(record: dict[str, Any]) -> dict[str, Any]:
    """
    v1 records predate run names, creation time and per-topic stats.

    A missing status is assumed active. The store does not know the
    curriculum length, so a v1 run already at the end is marked completed
    by AdaptiveOrchestrator.load_run.
    """
    migrated = dict(record)
    migrated.setdefault("status", RunStatus.ACTIVE.value)
    migrated.setdefault("name", str(record.get("saveId", "")) or "Run")
    migrated.setdefault("createdAt", record.get("lastUpdatedAt", 0))
    migrated.setdefault("topicStats", {})
    return migrated


# version -> step producing version + 1
MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    1: _migrate_v1_to_v2,
}


def migrate_record(record: dict[str, Any], version: int) -> dict[str, Any]:
    """
    Upgrade a raw record to the current schema version.

    Raises:
        SchemaError: If the version is unknown or has no migration path
    """
    if isinstance(version, bool) or not isinstance(version, int):
        raise SchemaError(f"Schema version must be an integer, got {version!r}")
    if version > CURRENT_SCHEMA_VERSION or version < 1:
        raise SchemaError(f"Unsupported schema version {version}")

    while version < CURRENT_SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise SchemaError(f"No migration from schema version {version}")
        record = step(record)
        version += 1
    return record


# =============================================================================
# Envelope
# =============================================================================


def dump_envelope(run: Run) -> dict[str, Any]:
    """Serialize a run into the current on-disk envelope."""
    return {
        "schemaVersion": CURRENT_SCHEMA_VERSION,
        "run": RunRecord.from_run(run).model_dump(by_alias=True, mode="json"),
    }


def parse_envelope(payload: Any) -> Run:
    """
    Validate (and migrate) an envelope into a Run.

    Raises:
        SchemaError: On any shape, version or value problem
    """
    if not isinstance(payload, dict):
        raise SchemaError("Envelope must be a JSON object")
    if "schemaVersion" not in payload:
        raise SchemaError("Envelope has no schemaVersion")
    record = payload.get("run")
    if not isinstance(record, dict):
        raise SchemaError("Envelope has no run record")

    record = migrate_record(record, payload["schemaVersion"])
    try:
        parsed = RunRecord.model_validate(record)
    except ValidationError as e:
        raise SchemaError(f"Invalid run record: {e.error_count()} error(s)") from e
    return parsed.to_run()
