"""Shared pytest fixtures for scaffold tests."""

import io
import json
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
from rich.console import Console

from scaffold.config.loader import load_config
from scaffold.core import (
    STATE_FILE_NAME,
    InMemoryStateStore,
    PhaseStateMachine,
    StateStore,
)
from scaffold.tracking.activity_logger import ActivityLogger


# ============================================================================
# Workspace Fixtures
# ============================================================================


@pytest.fixture
def workspace(tmp_path: Path) -> Generator[Path, None, None]:
    """Empty workspace directory.

    Yields:
        Path to the workspace root
    """
    root = tmp_path / "workspace"
    root.mkdir()
    yield root


@pytest.fixture
def write_config(workspace: Path):
    """Write a scaffold-config.json into the workspace.

    Returns:
        Function taking the config data and returning the file path
    """

    def _write(data: Dict[str, Any], name: str = "scaffold-config.json") -> Path:
        path = workspace / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def state_path(workspace: Path) -> Path:
    return workspace / STATE_FILE_NAME


@pytest.fixture
def activity_logger(workspace: Path) -> ActivityLogger:
    return ActivityLogger(workspace / ".scaffold" / "logs")


# ============================================================================
# Store and State Machine Fixtures
# ============================================================================


@pytest.fixture
def file_store(state_path: Path) -> StateStore:
    """State store backed by a file in the workspace."""
    return StateStore(state_path)


@pytest.fixture
def memory_store() -> InMemoryStateStore:
    """State store that never touches disk."""
    return InMemoryStateStore()


@pytest.fixture
def machine(memory_store: InMemoryStateStore) -> PhaseStateMachine:
    """State machine over a fresh in-memory store."""
    return PhaseStateMachine(memory_store)


@pytest.fixture
def configured_store(workspace: Path, write_config) -> StateStore:
    """File store seeded from a config that skips phase 2."""
    write_config({"projectName": "acme", "scaffoldOptions": {"skipPhases": [2]}})
    config = load_config(workspace)
    return StateStore(workspace / STATE_FILE_NAME, config=config)


# ============================================================================
# Output Fixtures
# ============================================================================


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(output: io.StringIO) -> Console:
    """Console writing plain text into a buffer."""
    return Console(file=output, width=200, color_system=None)
