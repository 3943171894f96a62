"""Core scaffold state functionality."""

from .exceptions import (
    ConfigurationError,
    InvalidPhaseError,
    InvalidTransitionError,
    ScaffoldError,
    StatePersistenceError,
    UsageError,
)
from .phase_registry import (
    DEFAULT_REGISTRY,
    PHASES,
    PhaseDefinition,
    PhaseRegistry,
)
from .phase_state import (
    ErrorEntry,
    Metrics,
    PhaseRecord,
    PhaseStatus,
    ScaffoldState,
    ScaffoldStatus,
    get_valid_next_statuses,
    is_terminal_status,
    is_valid_transition,
)
from .resume_planner import ResumeInstructions, ResumePlanner
from .state_machine import PhaseStateMachine, StatusSummary
from .state_store import (
    STATE_FILE_NAME,
    InMemoryStateStore,
    StateStore,
    create_default_state,
)

__all__ = [
    # Exceptions
    "ScaffoldError",
    "UsageError",
    "InvalidPhaseError",
    "ConfigurationError",
    "StatePersistenceError",
    "InvalidTransitionError",
    # Registry
    "PHASES",
    "DEFAULT_REGISTRY",
    "PhaseDefinition",
    "PhaseRegistry",
    # State model
    "PhaseStatus",
    "ScaffoldStatus",
    "PhaseRecord",
    "ErrorEntry",
    "Metrics",
    "ScaffoldState",
    "is_valid_transition",
    "get_valid_next_statuses",
    "is_terminal_status",
    # Persistence and transitions
    "STATE_FILE_NAME",
    "StateStore",
    "InMemoryStateStore",
    "create_default_state",
    "PhaseStateMachine",
    "StatusSummary",
    # Resume
    "ResumeInstructions",
    "ResumePlanner",
]
