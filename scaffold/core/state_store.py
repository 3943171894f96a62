"""State persistence layer for the scaffold progress document."""

from pathlib import Path
from typing import TYPE_CHECKING, Optional

from pydantic import ValidationError

from scaffold.tracking.activity_logger import ActivityLogger, EventType

from .exceptions import StatePersistenceError
from .phase_registry import DEFAULT_REGISTRY, PhaseRegistry
from .phase_state import PhaseRecord, ScaffoldState, utcnow

if TYPE_CHECKING:
    from scaffold.config.models import ScaffoldConfig

STATE_FILE_NAME = "scaffold-state.json"


def create_default_state(
    registry: PhaseRegistry = DEFAULT_REGISTRY,
    config: Optional["ScaffoldConfig"] = None,
) -> ScaffoldState:
    """
    Build a fresh state with every phase pending.

    The configuration is only snapshotted when it was read from a file, so a
    workspace without one records ``config: null``.
    """
    state = ScaffoldState(
        started_at=utcnow(),
        phases={
            phase.number: PhaseRecord(name=phase.name) for phase in registry
        },
    )
    if config is not None and config.source is not None:
        state.config = config.snapshot()
        state.project_name = config.project_name
    return state


class StateStore:
    """
    Loads and saves the single JSON state document of a workspace.

    The file path is injected, so tests can point it anywhere or swap in
    ``InMemoryStateStore``. A file that exists but cannot be parsed is an
    error, never silently replaced.
    """

    def __init__(
        self,
        state_path: Optional[Path] = None,
        config: Optional["ScaffoldConfig"] = None,
        registry: PhaseRegistry = DEFAULT_REGISTRY,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        """
        Initialize the store.

        Args:
            state_path: State file (default: ./scaffold-state.json)
            config: External configuration used to seed a new state
            registry: Phase table the state is built against
            activity_logger: Optional activity log for create/load/reset events
        """
        if state_path is None:
            state_path = Path.cwd() / STATE_FILE_NAME

        self.state_path = Path(state_path)
        self.config = config
        self.registry = registry
        self.activity_logger = activity_logger

    def exists(self) -> bool:
        """Check whether a persisted state exists."""
        return self.state_path.exists()

    def load(self) -> ScaffoldState:
        """
        Load the persisted state, or build a default one if none exists.

        Nothing is written; see ``init`` for the load-or-create behaviour.

        Raises:
            StatePersistenceError: If the file exists but cannot be parsed
        """
        raw = self._read()
        if raw is None:
            return create_default_state(self.registry, self.config)

        try:
            state = ScaffoldState.model_validate_json(raw)
        except (ValidationError, ValueError) as e:
            raise StatePersistenceError(
                f"Failed to parse state file {self.state_path}: {e}"
            ) from e

        missing = [n for n in self.registry.numbers if n not in state.phases]
        if missing:
            raise StatePersistenceError(
                f"State file {self.state_path} is missing phases {missing}"
            )

        return state

    def init(self) -> ScaffoldState:
        """
        Load existing state or create and persist a new one.

        Running this against an existing file returns exactly what was last
        saved and never resets progress.
        """
        if self.exists():
            state = self.load()
            self._log(
                EventType.STATE_LOADED,
                f"Loaded existing scaffold state (phase {state.current_phase}, "
                f"status {state.status.value})",
            )
            return state

        state = self.load()
        self.save(state)
        self._log(EventType.STATE_CREATED, "Created new scaffold state")
        return state

    def save(self, state: ScaffoldState) -> None:
        """
        Persist the full state, stamping ``lastUpdated``.

        Raises:
            StatePersistenceError: If the write fails
        """
        state.last_updated = utcnow()
        self._write(state.model_dump_json(by_alias=True, indent=2))

    def reset(self) -> bool:
        """
        Delete the state file. Prior history is not archived.

        Returns:
            True if a file was deleted, False if there was none
        """
        deleted = self._delete()
        if deleted:
            self._log(EventType.STATE_RESET, "Scaffold state reset")
        return deleted

    def _read(self) -> Optional[str]:
        if not self.state_path.exists():
            return None
        try:
            return self.state_path.read_text(encoding="utf-8")
        except OSError as e:
            raise StatePersistenceError(
                f"Failed to read state file {self.state_path}: {e}"
            ) from e

    def _write(self, payload: str) -> None:
        try:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)

            # Write atomically by writing to temp file first
            temp_file = self.state_path.with_suffix(".tmp")
            with open(temp_file, "w", encoding="utf-8") as f:
                f.write(payload)

            # Rename to final location (atomic on POSIX systems)
            temp_file.replace(self.state_path)

        except OSError as e:
            raise StatePersistenceError(
                f"Failed to save state file {self.state_path}: {e}"
            ) from e

    def _delete(self) -> bool:
        if not self.state_path.exists():
            return False
        try:
            self.state_path.unlink()
            return True
        except OSError as e:
            raise StatePersistenceError(
                f"Failed to delete state file {self.state_path}: {e}"
            ) from e

    def _log(self, event_type: EventType, message: str) -> None:
        if self.activity_logger is not None:
            self.activity_logger.log_event(
                event_type, message, path=str(self.state_path)
            )


class InMemoryStateStore(StateStore):
    """StateStore that keeps the serialised document in memory."""

    def __init__(
        self,
        config: Optional["ScaffoldConfig"] = None,
        registry: PhaseRegistry = DEFAULT_REGISTRY,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        super().__init__(
            Path(STATE_FILE_NAME),
            config=config,
            registry=registry,
            activity_logger=activity_logger,
        )
        self._payload: Optional[str] = None

    def exists(self) -> bool:
        return self._payload is not None

    def _read(self) -> Optional[str]:
        return self._payload

    def _write(self, payload: str) -> None:
        self._payload = payload

    def _delete(self) -> bool:
        deleted = self._payload is not None
        self._payload = None
        return deleted
