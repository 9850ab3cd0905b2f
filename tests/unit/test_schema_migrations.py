"""
Unit tests for the persisted run schema and its migration chain.
"""

import json

import pytest

from automode.autorun import RunStatus
from automode.autorun.schema import (
    CURRENT_SCHEMA_VERSION,
    MIGRATIONS,
    SchemaError,
    dump_envelope,
    migrate_record,
    parse_envelope,
)

V1_RECORD = {
    "saveId": "legacy",
    "topicPointer": 2,
    "streak": 1,
    "completedQuestions": 11,
    "aggressiveProgression": True,
    "remediationMode": False,
    "lastUpdatedAt": 1_700_000_000_000,
}


class TestMigrationChain:
    def test_every_old_version_has_a_step(self):
        assert sorted(MIGRATIONS) == list(range(1, CURRENT_SCHEMA_VERSION))

    def test_v1_record_gains_v2_fields(self):
        migrated = migrate_record(dict(V1_RECORD), 1)

        assert migrated["status"] == "active"
        assert migrated["name"] == "legacy"
        assert migrated["createdAt"] == V1_RECORD["lastUpdatedAt"]
        assert migrated["topicStats"] == {}

    def test_v1_status_is_kept(self):
        migrated = migrate_record({**V1_RECORD, "status": "completed"}, 1)
        assert migrated["status"] == "completed"

    def test_migration_is_pure(self):
        record = dict(V1_RECORD)
        migrate_record(record, 1)
        assert record == V1_RECORD

    def test_current_version_untouched(self):
        record = {"anything": True}
        assert migrate_record(record, CURRENT_SCHEMA_VERSION) is record

    @pytest.mark.parametrize("version", [0, -1, CURRENT_SCHEMA_VERSION + 1, "1", None, True])
    def test_unknown_versions_rejected(self, version):
        with pytest.raises(SchemaError):
            migrate_record(dict(V1_RECORD), version)


class TestEnvelope:
    def test_v1_envelope_loads_as_run(self):
        run = parse_envelope({"schemaVersion": 1, "run": dict(V1_RECORD)})

        assert run.save_id == "legacy"
        assert run.topic_pointer == 2
        assert run.streak == 1
        assert run.completed_questions == 11
        assert run.aggressive_progression is True
        assert run.remediation_mode is False
        assert run.status is RunStatus.ACTIVE

    def test_dump_then_parse(self, fresh_run):
        payload = json.loads(json.dumps(dump_envelope(fresh_run)))
        assert parse_envelope(payload) == fresh_run

    def test_dump_uses_current_version(self, fresh_run):
        assert dump_envelope(fresh_run)["schemaVersion"] == CURRENT_SCHEMA_VERSION

    def test_extra_fields_rejected(self, fresh_run):
        payload = dump_envelope(fresh_run)
        payload["run"]["surprise"] = 1
        with pytest.raises(SchemaError):
            parse_envelope(payload)

    def test_missing_run(self):
        with pytest.raises(SchemaError):
            parse_envelope({"schemaVersion": CURRENT_SCHEMA_VERSION})

    def test_unknown_status(self, fresh_run):
        payload = dump_envelope(fresh_run)
        payload["run"]["status"] = "paused"
        with pytest.raises(SchemaError):
            parse_envelope(payload)
