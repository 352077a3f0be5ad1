"""
Tests for persistence — state file, audit ledger and the status use case.
"""

import json
from pathlib import Path

from devsetup.core.models.state import ProvisionState
from devsetup.core.persistence.audit import AuditEntry, AuditLog
from devsetup.core.persistence.state_file import default_state_path, load_state, save_state
from devsetup.core.use_cases.status import get_status


class TestStateFile:
    """Tests for state file persistence."""

    def test_save_and_load(self, tmp_path: Path):
        """State roundtrips through save/load."""
        path = default_state_path(tmp_path)
        state = ProvisionState(target=str(tmp_path))
        state.set_fact_state("ffmpeg", kind="tool-presence", outcome="converged")
        state.last_run.run_id = "run-1"

        save_state(state, path)
        assert path == tmp_path / ".devsetup" / "state.json"
        assert path.is_file()

        loaded = load_state(path)
        assert loaded.target == str(tmp_path)
        assert loaded.facts["ffmpeg"].outcome == "converged"
        assert loaded.last_run.run_id == "run-1"

    def test_load_missing_returns_fresh(self, tmp_path: Path):
        state = load_state(tmp_path / "nonexistent.json")
        assert state.target == ""
        assert state.facts == {}

    def test_load_corrupt_returns_fresh(self, tmp_path: Path):
        path = tmp_path / "corrupt.json"
        path.write_text("not json at all {{{")
        assert load_state(path).facts == {}

    def test_load_wrong_schema_returns_fresh(self, tmp_path: Path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"facts": "nope"}))
        assert load_state(path).facts == {}

    def test_save_is_valid_json(self, tmp_path: Path):
        path = tmp_path / "state.json"
        save_state(ProvisionState(target="/srv/app"), path)
        data = json.loads(path.read_text())
        assert data["target"] == "/srv/app"
        assert data["schema_version"] == 1


class TestAuditLog:
    def test_write_and_read(self, tmp_path: Path):
        log = AuditLog(target=tmp_path)
        log.append(AuditEntry(run_id="run-1", status="ok", converged=["ffmpeg"]))
        log.append(AuditEntry(run_id="run-2", status="partial", errors=["ffmpeg: boom"]))

        entries = log.entries()
        assert [e.run_id for e in entries] == ["run-1", "run-2"]
        assert entries[0].converged == ["ffmpeg"]
        assert log.path == tmp_path / ".devsetup" / "audit.ndjson"

    def test_append_only(self, tmp_path: Path):
        log = AuditLog(path=tmp_path / "audit.ndjson")
        for i in range(3):
            log.append(AuditEntry(run_id=f"run-{i}"))
        assert len(log.path.read_text().splitlines()) == 3

    def test_recent(self, tmp_path: Path):
        log = AuditLog(path=tmp_path / "audit.ndjson")
        for i in range(5):
            log.append(AuditEntry(run_id=f"run-{i}"))
        assert [e.run_id for e in log.recent(2)] == ["run-3", "run-4"]

    def test_corrupt_line_skipped(self, tmp_path: Path):
        log = AuditLog(path=tmp_path / "audit.ndjson")
        log.append(AuditEntry(run_id="run-1"))
        with log.path.open("a") as f:
            f.write("{broken\n")
        log.append(AuditEntry(run_id="run-2"))
        assert [e.run_id for e in log.entries()] == ["run-1", "run-2"]

    def test_read_missing(self, tmp_path: Path):
        assert AuditLog(path=tmp_path / "none.ndjson").entries() == []


class TestStatus:
    def test_no_run(self, tmp_path: Path):
        result = get_status(tmp_path)
        assert not result.has_run
        assert result.to_dict()["has_run"] is False

    def test_last_run(self, tmp_path: Path):
        state = ProvisionState(target=str(tmp_path))
        state.last_run.run_id = "run-7"
        state.last_run.status = "partial"
        state.set_fact_state("ffmpeg", outcome="failed", error="exit status 100")
        save_state(state, default_state_path(tmp_path))
        AuditLog(target=tmp_path).append(AuditEntry(run_id="run-7", status="partial"))

        result = get_status(tmp_path)
        assert result.has_run
        data = result.to_dict()
        assert data["last_run"]["run_id"] == "run-7"
        assert data["facts"]["ffmpeg"]["error"] == "exit status 100"
        assert data["history"][0]["run_id"] == "run-7"
