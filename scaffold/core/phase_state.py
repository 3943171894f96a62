"""Phase state definitions and transitions."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

STATE_VERSION = "1.0.0"


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def duration_ms(start: datetime, end: datetime) -> int:
    """Milliseconds elapsed between two timestamps."""
    return int((end - start).total_seconds() * 1000)


class PhaseStatus(str, Enum):
    """Phase lifecycle states."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ScaffoldStatus(str, Enum):
    """Aggregate status of a scaffolding run."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class _CamelModel(BaseModel):
    """Base model persisted with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PhaseRecord(_CamelModel):
    """Persisted status and history for a single phase."""

    status: PhaseStatus = PhaseStatus.PENDING
    name: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    attempts: int = 0


class ErrorEntry(_CamelModel):
    """One entry of the append-only error log."""

    phase: int
    error: str
    timestamp: datetime = Field(default_factory=utcnow)
    attempt: int = 0


class Metrics(_CamelModel):
    """Run-wide timing and retry metrics."""

    total_duration: Optional[int] = None
    phase_durations: Dict[int, int] = Field(default_factory=dict)
    retry_count: int = 0


class ScaffoldState(_CamelModel):
    """Complete progress document for one workspace."""

    version: str = STATE_VERSION
    project_name: Optional[str] = None
    started_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    status: ScaffoldStatus = ScaffoldStatus.NOT_STARTED
    current_phase: Optional[int] = None
    phases: Dict[int, PhaseRecord] = Field(default_factory=dict)
    config: Optional[Dict[str, Any]] = None
    errors: List[ErrorEntry] = Field(default_factory=list)
    metrics: Metrics = Field(default_factory=Metrics)

    def phase(self, number: int) -> PhaseRecord:
        """Return the record for a phase number."""
        return self.phases[number]

    def count(self, status: PhaseStatus) -> int:
        """Number of phases currently in the given status."""
        return sum(1 for record in self.phases.values() if record.status == status)


# Transition table. Recorded for auditing; the state machine only enforces it
# in strict mode.
VALID_TRANSITIONS: Dict[PhaseStatus, List[PhaseStatus]] = {
    PhaseStatus.PENDING: [PhaseStatus.IN_PROGRESS, PhaseStatus.SKIPPED],
    PhaseStatus.IN_PROGRESS: [PhaseStatus.COMPLETED, PhaseStatus.FAILED],
    PhaseStatus.FAILED: [PhaseStatus.IN_PROGRESS],  # Retry
    PhaseStatus.COMPLETED: [],  # Terminal state
    PhaseStatus.SKIPPED: [],  # Terminal state
}


def is_valid_transition(from_status: PhaseStatus, to_status: PhaseStatus) -> bool:
    """Check if a phase transition is in the table."""
    return to_status in VALID_TRANSITIONS.get(from_status, [])


def get_valid_next_statuses(current: PhaseStatus) -> List[PhaseStatus]:
    """Get list of valid next statuses for a given status."""
    return VALID_TRANSITIONS.get(current, [])


def is_terminal_status(status: PhaseStatus) -> bool:
    """Check if a status is terminal (no further transitions allowed)."""
    return len(VALID_TRANSITIONS.get(status, [])) == 0
