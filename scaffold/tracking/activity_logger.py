"""Activity logging for scaffold state changes."""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from rich.console import Console
from rich.markup import escape

ACTIVITY_LOG_NAME = "activity.jsonl"

err_console = Console(stderr=True)


class EventType(str, Enum):
    """Types of events that can be logged."""

    STATE_CREATED = "state_created"
    STATE_LOADED = "state_loaded"
    STATE_RESET = "state_reset"
    PHASE_START = "phase_start"
    PHASE_COMPLETE = "phase_complete"
    PHASE_FAIL = "phase_fail"
    PHASE_SKIP = "phase_skip"
    TRANSITION_WARNING = "transition_warning"
    SMOKE_TEST = "smoke_test"


class ActivityEvent(BaseModel):
    """Activity event model."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: EventType = Field(..., description="Type of event")
    phase: Optional[int] = Field(None, description="Phase number")
    message: str = Field(..., description="Event message")
    data: Dict[str, Any] = Field(
        default_factory=dict, description="Additional event data"
    )


class ActivityLogger:
    """Append-only JSONL log of everything that happened to the state file."""

    def __init__(self, logs_dir: Path):
        """Initialize activity logger.

        Args:
            logs_dir: Directory to store the log file
        """
        self.logs_dir = Path(logs_dir)
        self.log_file = self.logs_dir / ACTIVITY_LOG_NAME

    def log_event(
        self,
        event_type: EventType,
        message: str,
        phase: Optional[int] = None,
        **data: Any,
    ) -> None:
        """Log an activity event.

        Args:
            event_type: Type of event
            message: Event message
            phase: Optional phase number
            **data: Additional event data
        """
        event = ActivityEvent(
            event_type=event_type, phase=phase, message=message, data=data
        )
        self._write_event(event)

    def log_phase_start(self, phase: int, name: str, attempt: int) -> None:
        self.log_event(
            EventType.PHASE_START,
            f"Started phase {phase:02d}: {name}",
            phase=phase,
            attempt=attempt,
        )

    def log_phase_complete(
        self, phase: int, name: str, duration_ms: Optional[int] = None
    ) -> None:
        self.log_event(
            EventType.PHASE_COMPLETE,
            f"Completed phase {phase:02d}: {name}",
            phase=phase,
            duration_ms=duration_ms,
        )

    def log_phase_fail(self, phase: int, name: str, error: str, attempt: int) -> None:
        self.log_event(
            EventType.PHASE_FAIL,
            f"Failed phase {phase:02d}: {name}",
            phase=phase,
            error=error,
            attempt=attempt,
        )

    def log_phase_skip(self, phase: int, name: str, reason: str) -> None:
        self.log_event(
            EventType.PHASE_SKIP,
            f"Skipped phase {phase:02d}: {name}",
            phase=phase,
            reason=reason,
        )

    def read_events(self, phase: Optional[int] = None) -> List[ActivityEvent]:
        """Read logged events, optionally only those for one phase.

        Lines that cannot be parsed are skipped.
        """
        events: List[ActivityEvent] = []

        if not self.log_file.exists():
            return events

        with open(self.log_file, "r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    event = ActivityEvent(**json.loads(line))
                except (json.JSONDecodeError, ValueError):
                    continue
                if phase is None or event.phase == phase:
                    events.append(event)

        return events

    def _write_event(self, event: ActivityEvent) -> None:
        """Append one event as a JSON line.

        A failed write is reported on stderr and never propagated.
        """
        try:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                json.dump(event.model_dump(mode="json"), f, separators=(",", ":"))
                f.write("\n")
        except OSError as e:
            err_console.print(
                f"[yellow]Warning:[/yellow] Failed to write activity log event: "
                f"{escape(str(e))}",
                highlight=False,
                soft_wrap=True,
            )
