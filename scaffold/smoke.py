"""Smoke test: do the artifacts the phases promised actually exist?

This is a read-only oracle run once every phase is done. It never changes the
scaffold state; it only reports passed/failed/skipped counts and exits
non-zero when anything failed.
"""

import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional

import click
from pydantic import BaseModel, Field
from rich.console import Console

from scaffold.config.loader import load_config
from scaffold.core.exceptions import InvalidPhaseError, ScaffoldError
from scaffold.core.phase_registry import DEFAULT_REGISTRY, PhaseRegistry
from scaffold.core.phase_state import PhaseStatus, ScaffoldState, ScaffoldStatus
from scaffold.core.state_store import STATE_FILE_NAME, StateStore
from scaffold.tracking.activity_logger import ActivityLogger, EventType

console = Console()


class SmokeStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class SmokeResult(BaseModel):
    """Outcome of one check."""

    name: str
    status: SmokeStatus
    phase: Optional[int] = None
    reason: Optional[str] = None


class SmokeReport(BaseModel):
    """All check outcomes of a smoke run."""

    results: List[SmokeResult] = Field(default_factory=list)

    @property
    def passed(self) -> int:
        return self._count(SmokeStatus.PASSED)

    @property
    def failed(self) -> int:
        return self._count(SmokeStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(SmokeStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def _count(self, status: SmokeStatus) -> int:
        return sum(1 for result in self.results if result.status == status)


class SmokeTestRunner:
    """Walks the workspace checking each phase's registered artifacts."""

    def __init__(
        self,
        workspace: Path,
        state: Optional[ScaffoldState] = None,
        registry: PhaseRegistry = DEFAULT_REGISTRY,
    ):
        self.workspace = Path(workspace)
        self.state = state
        self.registry = registry

    def run(self, phase: Optional[int] = None) -> SmokeReport:
        """
        Check artifacts of every phase, or of a single phase.

        The run-wide state check is left out when a single phase is checked.

        Raises:
            InvalidPhaseError: If ``phase`` is outside the registry range
        """
        report = SmokeReport()
        if phase is None:
            definitions = list(self.registry)
            report.results.append(self._check_state())
        else:
            definitions = [self.registry.get(phase)]

        for definition in definitions:
            record = self.state.phases.get(definition.number) if self.state else None
            phase_skipped = record is not None and record.status == PhaseStatus.SKIPPED

            for artifact in definition.artifacts:
                name = f"Phase {definition.padded_number} artifact {artifact}"
                if phase_skipped:
                    report.results.append(
                        SmokeResult(
                            name=name,
                            status=SmokeStatus.SKIPPED,
                            phase=definition.number,
                            reason="phase skipped",
                        )
                    )
                    continue

                if self._artifact_exists(artifact):
                    status, reason = SmokeStatus.PASSED, None
                else:
                    status, reason = SmokeStatus.FAILED, f"{artifact} not found"
                report.results.append(
                    SmokeResult(
                        name=name, status=status, phase=definition.number, reason=reason
                    )
                )

        return report

    def _check_state(self) -> SmokeResult:
        name = "Scaffold state reports every phase done"
        if self.state is None:
            return SmokeResult(
                name=name, status=SmokeStatus.SKIPPED, reason="no state file"
            )
        if self.state.status == ScaffoldStatus.COMPLETED:
            return SmokeResult(name=name, status=SmokeStatus.PASSED)
        return SmokeResult(
            name=name,
            status=SmokeStatus.FAILED,
            reason=f"state status is {self.state.status.value}",
        )

    def _artifact_exists(self, artifact: str) -> bool:
        path = self.workspace / artifact
        if artifact.endswith("/"):
            return path.is_dir()
        return path.exists()


def print_report(
    report: SmokeReport, out: Console, title: str = "SCAFFOLD SMOKE TEST"
) -> None:
    icons = {
        SmokeStatus.PASSED: "✅ PASS",
        SmokeStatus.FAILED: "❌ FAIL",
        SmokeStatus.SKIPPED: "⏭️  SKIP",
    }

    out.print("")
    out.print("═" * 60)
    out.print(f"[bold]🧪 {title}[/bold]")
    out.print("═" * 60)
    for result in report.results:
        line = f"{icons[result.status]}: {result.name}"
        if result.reason:
            line += f" ({result.reason})"
        out.print(line, markup=False, highlight=False, soft_wrap=True)

    out.print("")
    out.print(f"  ✅ Passed:  {report.passed}")
    out.print(f"  ❌ Failed:  {report.failed}")
    out.print(f"  ⏭️  Skipped: {report.skipped}")
    out.print("")

    if report.ok:
        out.print("[green]🎉 ALL TESTS PASSED![/green]")
    else:
        out.print("[yellow]⚠️  SOME TESTS FAILED[/yellow]")
        out.print("Re-run the failed phases and run this smoke test again.")


@click.command()
@click.option(
    "--workspace",
    "-w",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root to check (default: current directory)",
)
@click.option(
    "--phase",
    "-p",
    help="Only check the artifacts of this phase",
)
def smoke_command(workspace: Optional[Path], phase: Optional[str]) -> None:
    """Check that every phase's expected artifacts exist."""
    workspace = workspace or Path.cwd()

    number = None
    if phase is not None:
        try:
            number = DEFAULT_REGISTRY.parse(phase)
        except InvalidPhaseError as e:
            raise click.BadParameter(str(e), param_hint="'--phase'")

    try:
        config = load_config(workspace)
        store = StateStore(workspace / STATE_FILE_NAME, config=config)
        state = store.load() if store.exists() else None
    except ScaffoldError as e:
        raise click.ClickException(str(e))

    report = SmokeTestRunner(workspace, state).run(number)
    if number is None:
        print_report(report, console)
    else:
        name = DEFAULT_REGISTRY.get(number).name
        print_report(report, console, title=f"PHASE {number:02d} CHECK: {name}")

    if config.activity_log.enabled:
        ActivityLogger(config.get_log_dir(workspace)).log_event(
            EventType.SMOKE_TEST,
            "Smoke test passed" if report.ok else "Smoke test failed",
            phase=number,
            passed=report.passed,
            failed=report.failed,
            skipped=report.skipped,
        )

    sys.exit(0 if report.ok else 1)


def main() -> None:
    """Entry point for ``scaffold-smoke``."""
    smoke_command()


if __name__ == "__main__":
    main()
