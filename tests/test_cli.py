"""Tests for the click entry point."""

import json

import pytest
from click.testing import CliRunner

from scaffold.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, workspace):
    """Invoke the CLI against the test workspace."""

    def _invoke(*args):
        return runner.invoke(cli, ["--workspace", str(workspace), *args])

    return _invoke


def test_help_lists_commands(runner):
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for name in ("status", "resume", "reset", "start", "complete", "fail"):
        assert name in result.output


def test_start_creates_state(invoke, state_path):
    result = invoke("start", "1")

    assert result.exit_code == 0
    assert "Started Phase 01: WORKSPACE (Attempt 1)" in result.output
    data = json.loads(state_path.read_text(encoding="utf-8"))
    assert data["phases"]["1"]["status"] == "in_progress"
    assert data["currentPhase"] == 1


def test_complete_and_fail(invoke, state_path):
    invoke("start", "1")
    result = invoke("complete", "1")
    assert result.exit_code == 0
    assert "Completed Phase 01: WORKSPACE" in result.output

    invoke("start", "2")
    result = invoke("fail", "2", "Missing", "env", "file")
    assert result.exit_code == 0
    assert "Error: Missing env file" in result.output

    data = json.loads(state_path.read_text(encoding="utf-8"))
    assert data["status"] == "failed"
    assert data["phases"]["2"]["error"] == "Missing env file"
    assert data["errors"][0]["attempt"] == 1


@pytest.mark.parametrize(
    "words,expected",
    [
        (["-1", "exit"], "-1 exit"),
        (["--version", "mismatch"], "--version mismatch"),
        (["pnpm", "exited", "-2"], "pnpm exited -2"),
    ],
)
def test_fail_message_with_dashes(invoke, state_path, words, expected):
    result = invoke("fail", "3", *words)

    assert result.exit_code == 0
    assert f"Error: {expected}" in result.output
    data = json.loads(state_path.read_text(encoding="utf-8"))
    assert data["phases"]["3"]["error"] == expected


@pytest.mark.parametrize("raw", ["0", "12", "abc"])
def test_invalid_phase_is_usage_error(invoke, state_path, raw):
    result = invoke("start", raw)

    assert result.exit_code == 2
    assert "Invalid phase" in result.output or "not a number" in result.output
    assert not state_path.exists()


def test_missing_phase_argument(invoke):
    result = invoke("complete")

    assert result.exit_code == 2


def test_corrupt_state_file(invoke, state_path):
    state_path.write_text("{broken", encoding="utf-8")

    result = invoke("status")

    assert result.exit_code == 1
    assert "Failed to parse state file" in result.output
    assert state_path.read_text(encoding="utf-8") == "{broken"


def test_invalid_config(invoke, workspace):
    (workspace / "scaffold-config.json").write_text("{nope", encoding="utf-8")

    result = invoke("status")

    assert result.exit_code == 1
    assert "Invalid JSON" in result.output


def test_reset(invoke, state_path):
    invoke("start", "1")
    assert state_path.exists()

    result = invoke("reset")

    assert result.exit_code == 0
    assert "Scaffold state reset" in result.output
    assert not state_path.exists()


def test_resume_retry_scenario(invoke):
    invoke("start", "1")
    invoke("complete", "1")
    invoke("start", "2")
    invoke("fail", "2", "boom")

    result = invoke("resume")

    assert result.exit_code == 0
    assert "Phase 2 (ENVIRONMENT) previously failed" in result.output
    assert "Attempt: 2" in result.output


def test_resume_json_view(invoke):
    result = invoke("resume", "json")

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["instructions"]["phaseName"] == "WORKSPACE"


def test_resume_skips_configured_phases(invoke, write_config, state_path):
    write_config({"projectName": "acme", "scaffoldOptions": {"skipPhases": [1, 2]}})

    result = invoke("resume")

    assert "Ready to execute Phase 3: TYPES" in result.output
    data = json.loads(state_path.read_text(encoding="utf-8"))
    assert data["projectName"] == "acme"
    assert data["phases"]["1"]["status"] == "skipped"
    assert data["phases"]["2"]["error"] == "Skipped by configuration"


def test_status_table(invoke):
    invoke("start", "1")
    invoke("complete", "1")

    result = invoke("status")

    assert result.exit_code == 0
    assert "SCAFFOLD STATUS" in result.output
    assert "1/11 phases (9%)" in result.output
    assert "PHASES" in result.output
    assert "WORKSPACE" in result.output
    assert "FRONTEND" in result.output


def test_activity_log_written(invoke, workspace):
    invoke("start", "1")

    log_file = workspace / ".scaffold" / "logs" / "activity.jsonl"
    lines = log_file.read_text(encoding="utf-8").splitlines()
    types = [json.loads(line)["event_type"] for line in lines]
    assert types == ["state_created", "phase_start"]


def test_activity_log_disabled(invoke, workspace, write_config):
    write_config({"activityLog": {"enabled": False}})

    invoke("start", "1")

    assert not (workspace / ".scaffold").exists()
