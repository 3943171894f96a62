"""Command table and dispatcher for the scaffold CLI.

The dispatcher works on plain argument lists, so it can be driven from tests
or an agent loop without going through process argv.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from scaffold.config.models import ScaffoldConfig
from scaffold.core.exceptions import UsageError
from scaffold.core.phase_state import PhaseRecord
from scaffold.core.resume_planner import STATUS_ICONS, ResumePlanner
from scaffold.core.state_machine import PhaseStateMachine
from scaffold.core.state_store import StateStore

RESUME_VIEWS = ("brief", "full", "prompt", "json")
DEFAULT_FAIL_MESSAGE = "Unknown error"


@dataclass(frozen=True)
class Command:
    """One CLI operation."""

    name: str
    handler: str
    min_args: int
    max_args: Optional[int]
    usage: str
    help: str


COMMANDS: Dict[str, Command] = {
    command.name: command
    for command in (
        Command(
            "status", "_status", 0, 0, "status", "Show current scaffold status"
        ),
        Command(
            "resume",
            "_resume",
            0,
            1,
            "resume [brief|full|prompt|json]",
            "Get instructions for the next phase",
        ),
        Command("reset", "_reset", 0, 0, "reset", "Reset all state (fresh start)"),
        Command("start", "_start", 1, 1, "start <phase>", "Mark phase as started"),
        Command(
            "complete", "_complete", 1, 1, "complete <phase>", "Mark phase as completed"
        ),
        Command(
            "fail",
            "_fail",
            1,
            None,
            "fail <phase> <message...>",
            "Mark phase as failed with error",
        ),
    )
}


class Dispatcher:
    """Runs table commands against a state store and prints to a console."""

    def __init__(
        self,
        store: StateStore,
        config: Optional[ScaffoldConfig] = None,
        console: Optional[Console] = None,
        verbose: bool = False,
        strict: bool = False,
    ):
        self.store = store
        self.config = config or store.config or ScaffoldConfig()
        self.console = console or Console()
        self.verbose = verbose
        self.strict = strict
        self.registry = store.registry

    def dispatch(self, name: str, args: Sequence[str] = ()) -> int:
        """
        Run one command.

        Args:
            name: Command name from ``COMMANDS``
            args: Positional arguments

        Returns:
            Process exit code (0 on success)

        Raises:
            UsageError: Unknown command, wrong arity or invalid phase number
            StatePersistenceError: State file could not be read or written
        """
        command = COMMANDS.get(name)
        if command is None:
            available = ", ".join(COMMANDS)
            raise UsageError(f"Unknown command: {name!r}. Available: {available}")

        args = list(args)
        too_many = command.max_args is not None and len(args) > command.max_args
        if len(args) < command.min_args or too_many:
            raise UsageError(f"Usage: scaffold {command.usage}")

        getattr(self, command.handler)(args)
        return 0

    def _machine(self) -> PhaseStateMachine:
        existed = self.store.exists()
        machine = PhaseStateMachine(self.store, strict=self.strict)
        if self.verbose:
            verb = "Loaded existing" if existed else "Created new"
            self.console.print(
                f"[dim]📂 {verb} scaffold state at {self.store.state_path} "
                f"(Phase {machine.state.current_phase or 'N/A'}, "
                f"Status: {machine.state.status.value})[/dim]"
            )
        return machine

    def _status(self, args: List[str]) -> None:
        machine = self._machine()
        summary = machine.get_summary()

        self.console.print("\n[bold]📊 SCAFFOLD STATUS[/bold]")
        self.console.print("═" * 40)
        self.console.print(f"Status:      {summary.status.value}")
        self.console.print(
            f"Progress:    {summary.progress} phases ({summary.progress_percent}%)"
        )
        self.console.print(f"Current:     Phase {summary.current_phase or 'N/A'}")
        self.console.print(f"Retries:     {summary.total_retries}")
        self.console.print(f"Started:     {_fmt_time(summary.started_at)}")
        self.console.print(f"Updated:     {_fmt_time(summary.last_updated)}")
        self.console.print("")

        table = Table(title="PHASES", title_justify="left")
        table.add_column("", no_wrap=True)
        table.add_column("#", style="cyan", no_wrap=True)
        table.add_column("Phase", no_wrap=True)
        table.add_column("Status", no_wrap=True)
        table.add_column("Attempts", justify="right")

        for definition in self.registry:
            record = machine.state.phases[definition.number]
            table.add_row(
                STATUS_ICONS[record.status],
                definition.padded_number,
                record.name,
                record.status.value,
                str(record.attempts),
            )

        self.console.print(table)

    def _resume(self, args: List[str]) -> None:
        view = args[0] if args else "brief"
        if view not in RESUME_VIEWS:
            raise UsageError(
                f"Unknown resume view {view!r}. Choose one of: {', '.join(RESUME_VIEWS)}"
            )

        planner = ResumePlanner.from_config(self._machine(), self.config)

        if view == "full":
            self._print_raw(planner.render_context())
            return
        if view == "prompt":
            self._print_raw(planner.render_agent_prompt())
            return
        if view == "json":
            self._print_raw(planner.to_json())
            return

        instructions = planner.get_resume_instructions()
        if instructions.is_complete:
            icon = "🎉"
        elif instructions.previously_failed:
            icon = "⚠️ "
        else:
            icon = "▶️ "

        self.console.print("\n[bold]🔄 RESUME INSTRUCTIONS[/bold]")
        self.console.print("═" * 40)
        self._print_raw(f"{icon} {instructions.message}")
        self._print_raw(f"\nCommand: {instructions.command}")

    def _reset(self, args: List[str]) -> None:
        if self.store.reset():
            self.console.print("🔄 Scaffold state reset")
        else:
            self.console.print("[dim]No scaffold state to reset[/dim]")

    def _start(self, args: List[str]) -> None:
        number = self.registry.parse(args[0])
        record = self._machine().start_phase(number)
        self.console.print(
            f"▶️  Started Phase {_label(number, record)} (Attempt {record.attempts})"
        )

    def _complete(self, args: List[str]) -> None:
        number = self.registry.parse(args[0])
        record = self._machine().complete_phase(number)
        self.console.print(f"[green]✅ Completed Phase {_label(number, record)}[/green]")

    def _fail(self, args: List[str]) -> None:
        number = self.registry.parse(args[0])
        message = " ".join(args[1:]).strip() or DEFAULT_FAIL_MESSAGE
        record = self._machine().fail_phase(number, message)
        self.console.print(f"[red]❌ Failed Phase {_label(number, record)}[/red]")
        self._print_raw(f"   Error: {message}")

    def _print_raw(self, text: str) -> None:
        """Print text verbatim: no markup, no highlighting, no wrapping."""
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)


def _label(number: int, record: PhaseRecord) -> str:
    return f"{number:02d}: {record.name}"


def _fmt_time(value) -> str:
    return value.isoformat() if value else "N/A"
