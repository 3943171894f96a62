"""State machine for recording phase lifecycle changes."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from scaffold.tracking.activity_logger import ActivityLogger, EventType

from .exceptions import InvalidTransitionError
from .phase_registry import PhaseRegistry
from .phase_state import (
    ErrorEntry,
    PhaseRecord,
    PhaseStatus,
    ScaffoldState,
    ScaffoldStatus,
    duration_ms,
    get_valid_next_statuses,
    is_valid_transition,
    utcnow,
)
from .state_store import StateStore

DEFAULT_SKIP_REASON = "Skipped by configuration"

_FINISHED = (PhaseStatus.COMPLETED, PhaseStatus.SKIPPED)


class StatusSummary(BaseModel):
    """Aggregate counts and progress for a scaffold run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: ScaffoldStatus
    progress: str
    progress_percent: int
    completed: int
    failed: int
    skipped: int
    pending: int
    in_progress: int
    current_phase: Optional[int] = None
    total_retries: int = 0
    started_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None


class PhaseStateMachine:
    """
    Records phase transitions on a ScaffoldState and persists every change.

    The machine is a ledger of what an external agent did, not a gate on what
    it may do. Transitions outside ``VALID_TRANSITIONS`` (completing a phase
    that was never started, restarting a completed one) are applied and
    logged as ``transition_warning`` events. Pass ``strict=True`` to reject
    them with ``InvalidTransitionError`` instead.
    """

    def __init__(
        self,
        store: StateStore,
        state: Optional[ScaffoldState] = None,
        strict: bool = False,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        """
        Initialize the state machine.

        Args:
            store: Store the state is persisted to after each mutation
            state: Already loaded state (default: ``store.init()``)
            strict: Reject transitions that are not in the table
            activity_logger: Optional activity log (default: the store's)
        """
        self.store = store
        self.registry: PhaseRegistry = store.registry
        self.state = state if state is not None else store.init()
        self.strict = strict
        self.activity_logger = activity_logger or store.activity_logger

    def get_phase(self, number: int) -> PhaseRecord:
        """
        Get the record for a phase.

        Raises:
            InvalidPhaseError: If the number is outside the registry range
        """
        self.registry.validate(number)
        return self.state.phases[number]

    def start_phase(self, number: int) -> PhaseRecord:
        """Mark a phase as started. Every call counts as one more attempt."""
        record = self.get_phase(number)
        self._check_transition(number, record, PhaseStatus.IN_PROGRESS)
        now = utcnow()

        record.status = PhaseStatus.IN_PROGRESS
        record.started_at = now
        record.attempts += 1
        self.state.current_phase = number

        self._finish(now, started=True)
        if self.activity_logger:
            self.activity_logger.log_phase_start(number, record.name, record.attempts)
        return record

    def complete_phase(self, number: int) -> PhaseRecord:
        """Mark a phase as completed and record its duration if it was started."""
        record = self.get_phase(number)
        self._check_transition(number, record, PhaseStatus.COMPLETED)
        now = utcnow()

        record.status = PhaseStatus.COMPLETED
        record.completed_at = now
        record.error = None

        elapsed = None
        if record.started_at is not None:
            elapsed = duration_ms(record.started_at, now)
            self.state.metrics.phase_durations[number] = elapsed

        self._finish(now)
        if self.activity_logger:
            self.activity_logger.log_phase_complete(number, record.name, elapsed)
        return record

    def fail_phase(self, number: int, error: str) -> PhaseRecord:
        """
        Mark a phase as failed.

        The error is kept on the record and appended to the run's error log.
        Attempts are left as they are, so the next start counts on from them.
        """
        record = self.get_phase(number)
        self._check_transition(number, record, PhaseStatus.FAILED)
        now = utcnow()

        record.status = PhaseStatus.FAILED
        record.error = error
        self.state.metrics.retry_count += 1
        self.state.errors.append(
            ErrorEntry(
                phase=number, error=error, timestamp=now, attempt=record.attempts
            )
        )

        self._finish(now)
        if self.activity_logger:
            self.activity_logger.log_phase_fail(
                number, record.name, error, record.attempts
            )
        return record

    def skip_phase(self, number: int, reason: str = DEFAULT_SKIP_REASON) -> PhaseRecord:
        """Mark a phase as skipped. The reason is kept in the error field."""
        record = self.get_phase(number)
        self._check_transition(number, record, PhaseStatus.SKIPPED)
        now = utcnow()

        record.status = PhaseStatus.SKIPPED
        record.error = reason

        self._finish(now)
        if self.activity_logger:
            self.activity_logger.log_phase_skip(number, record.name, reason)
        return record

    def get_summary(self) -> StatusSummary:
        """Get counts by status and overall progress."""
        state = self.state
        completed = state.count(PhaseStatus.COMPLETED)
        skipped = state.count(PhaseStatus.SKIPPED)
        total = len(self.registry) - skipped

        if total > 0:
            percent = int(completed * 100 / total + 0.5)
        else:
            percent = 100

        return StatusSummary(
            status=state.status,
            progress=f"{completed}/{total}",
            progress_percent=percent,
            completed=completed,
            failed=state.count(PhaseStatus.FAILED),
            skipped=skipped,
            pending=state.count(PhaseStatus.PENDING),
            in_progress=state.count(PhaseStatus.IN_PROGRESS),
            current_phase=state.current_phase,
            total_retries=state.metrics.retry_count,
            started_at=state.started_at,
            last_updated=state.last_updated,
        )

    def _check_transition(
        self, number: int, record: PhaseRecord, to_status: PhaseStatus
    ) -> None:
        from_status = record.status
        if is_valid_transition(from_status, to_status):
            return

        valid = [s.value for s in get_valid_next_statuses(from_status)]
        message = (
            f"Transition for phase {number}: "
            f"{from_status.value} -> {to_status.value} is not in the table. "
            f"Valid next states: {valid}"
        )
        if self.strict:
            raise InvalidTransitionError(message)

        if self.activity_logger:
            self.activity_logger.log_event(
                EventType.TRANSITION_WARNING,
                message,
                phase=number,
                from_status=from_status.value,
                to_status=to_status.value,
            )

    def _finish(self, now: datetime, started: bool = False) -> None:
        """Recompute the aggregate status and persist."""
        self._update_aggregate(now, started)
        self.store.save(self.state)

    def _update_aggregate(self, now: datetime, started: bool = False) -> None:
        """
        Derive the root status from the phase records.

        Starting a phase always puts the run back in progress, even while an
        earlier phase is still recorded as failed.
        """
        state = self.state
        records = list(state.phases.values())

        if all(record.status in _FINISHED for record in records):
            state.status = ScaffoldStatus.COMPLETED
            if state.completed_at is None:
                state.completed_at = now
                if state.started_at is not None:
                    state.metrics.total_duration = duration_ms(state.started_at, now)
            return

        state.completed_at = None
        state.metrics.total_duration = None

        if started:
            state.status = ScaffoldStatus.IN_PROGRESS
        elif any(record.status == PhaseStatus.FAILED for record in records):
            state.status = ScaffoldStatus.FAILED
        elif any(
            record.status in (PhaseStatus.IN_PROGRESS, PhaseStatus.COMPLETED)
            for record in records
        ):
            state.status = ScaffoldStatus.IN_PROGRESS
        else:
            state.status = ScaffoldStatus.NOT_STARTED
