"""Tests for resume planning."""

import json

import pytest

from scaffold.config.models import ScaffoldConfig
from scaffold.core import (
    InvalidPhaseError,
    PhaseStateMachine,
    PhaseStatus,
    ResumePlanner,
)


def _complete(machine, number):
    machine.start_phase(number)
    machine.complete_phase(number)


class TestGetNextPhase:
    def test_fresh_state_starts_at_one(self, machine):
        assert ResumePlanner(machine).get_next_phase() == 1

    def test_skipped_and_failed(self, machine, memory_store):
        _complete(machine, 1)
        machine.start_phase(3)
        machine.fail_phase(3, "boom")

        planner = ResumePlanner(machine, skip_phases=[2])

        assert planner.get_next_phase() == 3
        assert machine.state.phases[2].status == PhaseStatus.SKIPPED
        assert machine.state.phases[2].error == "Skipped by configuration"
        # The lazy skip is persisted like any other transition
        assert memory_store.load().phases[2].status == PhaseStatus.SKIPPED

    def test_in_progress_is_not_actionable(self, machine):
        machine.start_phase(1)

        assert ResumePlanner(machine).get_next_phase() == 2

    def test_skip_list_ignores_started_phases(self, machine):
        machine.start_phase(1)
        machine.fail_phase(1, "boom")

        planner = ResumePlanner(machine, skip_phases=[1])

        assert planner.get_next_phase() == 2
        assert machine.state.phases[1].status == PhaseStatus.FAILED

    def test_none_when_everything_done(self, machine):
        for number in machine.registry.numbers:
            if number != 11:
                _complete(machine, number)

        assert ResumePlanner(machine, skip_phases=[11]).get_next_phase() is None
        assert machine.state.phases[11].status == PhaseStatus.SKIPPED

    def test_skip_list_validated(self, machine):
        with pytest.raises(InvalidPhaseError):
            ResumePlanner(machine, skip_phases=[42])

    def test_from_config(self, machine):
        config = ScaffoldConfig.model_validate(
            {"scaffoldOptions": {"skipPhases": [1]}, "docsDir": "docs/phases/"}
        )
        planner = ResumePlanner.from_config(machine, config)

        instructions = planner.get_resume_instructions()

        assert instructions.phase == 2
        assert instructions.command == "Execute the instructions in docs/phases/02-ENVIRONMENT.md"


class TestResumeInstructions:
    def test_fresh_attempt(self, machine):
        instructions = ResumePlanner(machine).get_resume_instructions()

        assert instructions.action == "execute"
        assert instructions.phase == 1
        assert instructions.phase_name == "WORKSPACE"
        assert instructions.phase_file == "01-WORKSPACE.md"
        assert instructions.message == "Ready to execute Phase 1: WORKSPACE"
        assert (
            instructions.command
            == "Execute the instructions in Masterguide/scaffolding/01-WORKSPACE.md"
        )
        assert instructions.previously_failed is False
        assert instructions.attempt == 1

    def test_retry_after_failure(self, machine):
        machine.start_phase(1)
        machine.complete_phase(1)
        machine.start_phase(2)
        machine.fail_phase(2, "boom")

        instructions = ResumePlanner(machine).get_resume_instructions()

        assert instructions.phase == 2
        assert instructions.previously_failed is True
        assert instructions.attempt == 2
        assert instructions.previous_error == "boom"
        assert "previously failed" in instructions.message
        assert "Previous error: boom" in instructions.message
        assert "Attempt: 2" in instructions.message

    def test_terminal_instruction(self, machine):
        for number in machine.registry.numbers:
            _complete(machine, number)

        instructions = ResumePlanner(machine).get_resume_instructions()

        assert instructions.is_complete
        assert instructions.phase is None
        assert instructions.command == "scaffold-smoke"
        assert "scaffold-smoke" in instructions.message


class TestRenderings:
    def test_context_lists_phases_and_artifacts(self, machine):
        machine.start_phase(1)
        machine.fail_phase(1, "pnpm missing")

        text = ResumePlanner(machine).render_context()

        assert "SCAFFOLD RESUME CONTEXT" in text
        assert "- Overall: FAILED" in text
        assert "❌ Phase 01: WORKSPACE - ERROR: pnpm missing" in text
        assert "⬜ Phase 11: FRONTEND" in text
        assert "This phase previously failed" in text
        assert "- turbo.json" in text
        assert "`scaffold complete 1`" in text

    def test_context_when_complete(self, machine):
        for number in machine.registry.numbers:
            _complete(machine, number)

        text = ResumePlanner(machine).render_context()

        assert "ALL PHASES COMPLETE" in text
        assert "- Progress: 11/11 phases complete (100%)" in text

    def test_agent_prompt(self, machine):
        machine.start_phase(1)
        machine.fail_phase(1, "pnpm missing")

        prompt = ResumePlanner(machine).render_agent_prompt()

        assert "## SCAFFOLD RESUME - Phase 1: WORKSPACE" in prompt
        assert 'previously failed with error: "pnpm missing"' in prompt
        assert "`Masterguide/scaffolding/01-WORKSPACE.md`" in prompt

    def test_json(self, machine):
        _complete(machine, 1)

        data = json.loads(ResumePlanner(machine).to_json())

        assert data["summary"]["progress"] == "1/11"
        assert data["instructions"]["phase"] == 2
        assert data["instructions"]["phaseFile"] == "02-ENVIRONMENT.md"
        assert "previousError" not in data["instructions"]
        assert data["state"]["phases"]["1"]["status"] == "completed"


def test_planner_over_file_store(file_store):
    machine = PhaseStateMachine(file_store)
    machine.start_phase(1)
    machine.complete_phase(1)

    reloaded = PhaseStateMachine(file_store)

    assert ResumePlanner(reloaded).get_next_phase() == 2
