"""Tests for state persistence."""

import json

import pytest

from scaffold.core import (
    InMemoryStateStore,
    PhaseStateMachine,
    PhaseStatus,
    ScaffoldStatus,
    StatePersistenceError,
    StateStore,
)
from scaffold.tracking.activity_logger import EventType


class TestBootstrap:
    """Loading without a state file."""

    def test_default_state(self, file_store):
        state = file_store.load()

        assert state.version == "1.0.0"
        assert state.status == ScaffoldStatus.NOT_STARTED
        assert state.current_phase is None
        assert state.started_at is not None
        assert state.completed_at is None
        assert state.config is None
        assert state.errors == []
        assert len(state.phases) == 11
        for record in state.phases.values():
            assert record.status == PhaseStatus.PENDING
            assert record.attempts == 0

    def test_load_does_not_write(self, file_store, state_path):
        file_store.load()
        assert not state_path.exists()

    def test_two_loads_yield_identical_phase_tables(self, file_store):
        first = file_store.load()
        second = file_store.load()

        assert first.phases == second.phases

    def test_init_creates_file(self, file_store, state_path):
        state = file_store.init()

        assert state_path.exists()
        assert state.last_updated is not None
        data = json.loads(state_path.read_text(encoding="utf-8"))
        assert data["status"] == "not_started"
        assert list(data["phases"]) == [str(n) for n in range(1, 12)]

    def test_config_seeds_project_name(self, configured_store):
        state = configured_store.load()

        assert state.project_name == "acme"
        assert state.config["projectName"] == "acme"
        assert state.config["scaffoldOptions"] == {"skipPhases": [2]}


class TestRoundTrip:
    """Loading what was saved."""

    def test_load_returns_last_saved_state(self, file_store):
        machine = PhaseStateMachine(file_store)
        machine.start_phase(1)
        machine.fail_phase(1, "boom")

        assert file_store.load() == machine.state

    def test_init_is_idempotent(self, file_store):
        machine = PhaseStateMachine(file_store)
        machine.start_phase(1)
        machine.complete_phase(1)

        again = StateStore(file_store.state_path).init()

        assert again == machine.state
        assert again.phases[1].status == PhaseStatus.COMPLETED

    def test_save_leaves_no_temp_file(self, file_store, workspace):
        file_store.init()

        assert not list(workspace.glob("*.tmp"))

    def test_memory_store_loads_copies(self, memory_store):
        state = memory_store.init()
        loaded = memory_store.load()

        assert loaded == state
        assert loaded is not state

        loaded.phases[1].attempts = 5
        assert memory_store.load().phases[1].attempts == 0


class TestPersistenceErrors:
    """A broken state file is fatal, never repaired."""

    def test_invalid_json(self, file_store, state_path):
        state_path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StatePersistenceError, match="Failed to parse state file"):
            file_store.load()

        # File left untouched for inspection
        assert state_path.read_text(encoding="utf-8") == "{not json"

    def test_invalid_status_value(self, file_store, state_path):
        file_store.init()
        data = json.loads(state_path.read_text(encoding="utf-8"))
        data["phases"]["4"]["status"] = "exploded"
        state_path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(StatePersistenceError):
            file_store.load()

    def test_missing_phases(self, file_store, state_path):
        file_store.init()
        data = json.loads(state_path.read_text(encoding="utf-8"))
        del data["phases"]["11"]
        state_path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(StatePersistenceError, match="missing phases"):
            file_store.init()


class TestReset:
    """Deleting the state file."""

    def test_reset_removes_file(self, file_store, state_path):
        machine = PhaseStateMachine(file_store)
        machine.start_phase(1)
        machine.complete_phase(1)
        machine.start_phase(2)

        assert file_store.reset() is True
        assert not state_path.exists()

        fresh = file_store.load()
        assert fresh.current_phase is None
        assert fresh.phases[1].status == PhaseStatus.PENDING
        assert fresh.phases[2].attempts == 0

    def test_reset_without_file(self, file_store, state_path):
        assert file_store.reset() is False
        assert not state_path.exists()

    def test_memory_reset(self):
        store = InMemoryStateStore()
        store.init()

        assert store.reset() is True
        assert not store.exists()


class TestActivityEvents:
    def test_create_load_reset_logged(self, state_path, activity_logger):
        store = StateStore(state_path, activity_logger=activity_logger)
        store.init()
        store.init()
        store.reset()

        types = [event.event_type for event in activity_logger.read_events()]
        assert types == [
            EventType.STATE_CREATED,
            EventType.STATE_LOADED,
            EventType.STATE_RESET,
        ]
