"""Resume planning: what should the agent do next?"""

import json
from typing import TYPE_CHECKING, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .phase_state import PhaseStatus
from .state_machine import DEFAULT_SKIP_REASON, PhaseStateMachine

if TYPE_CHECKING:
    from scaffold.config.models import ScaffoldConfig

DEFAULT_DOCS_DIR = "Masterguide/scaffolding"
SMOKE_TEST_COMMAND = "scaffold-smoke"

STATUS_ICONS = {
    PhaseStatus.COMPLETED: "✅",
    PhaseStatus.FAILED: "❌",
    PhaseStatus.SKIPPED: "⏭️",
    PhaseStatus.IN_PROGRESS: "🔄",
    PhaseStatus.PENDING: "⬜",
}


class ResumeInstructions(BaseModel):
    """Next step for an agent resuming a scaffold run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: str
    """``execute`` a phase, or ``complete`` when nothing is left"""

    message: str
    command: str
    phase: Optional[int] = None
    phase_name: Optional[str] = None
    phase_file: Optional[str] = None
    previously_failed: bool = False
    attempt: Optional[int] = None
    previous_error: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.action == "complete"


class ResumePlanner:
    """
    Computes the next actionable phase from the recorded state.

    Phases in the skip list are marked skipped the first time the planner
    walks past them while they are still pending; that mark is persisted
    through the state machine like any other transition.
    """

    def __init__(
        self,
        machine: PhaseStateMachine,
        skip_phases: Iterable[int] = (),
        docs_dir: str = DEFAULT_DOCS_DIR,
        smoke_command: str = SMOKE_TEST_COMMAND,
    ):
        self.machine = machine
        self.skip_phases = [machine.registry.validate(n) for n in skip_phases]
        self.docs_dir = docs_dir.rstrip("/")
        self.smoke_command = smoke_command

    @classmethod
    def from_config(
        cls, machine: PhaseStateMachine, config: "ScaffoldConfig"
    ) -> "ResumePlanner":
        return cls(machine, skip_phases=config.skip_phases, docs_dir=config.docs_dir)

    def get_next_phase(self) -> Optional[int]:
        """
        Return the first phase that is pending or failed, or None.

        Failed phases count as actionable so an unattended loop can retry
        them without anyone intervening.
        """
        state = self.machine.state
        for number in self.machine.registry.numbers:
            record = state.phases[number]
            if number in self.skip_phases:
                if record.status == PhaseStatus.PENDING:
                    self.machine.skip_phase(number, DEFAULT_SKIP_REASON)
                continue
            if record.status in (PhaseStatus.PENDING, PhaseStatus.FAILED):
                return number
        return None

    def get_resume_instructions(self) -> ResumeInstructions:
        """Build the instruction for the next phase, or the terminal one."""
        next_phase = self.get_next_phase()

        if next_phase is None:
            return ResumeInstructions(
                action="complete",
                message=f"All phases complete! Run {self.smoke_command} to validate.",
                command=self.smoke_command,
            )

        record = self.machine.state.phases[next_phase]
        definition = self.machine.registry.get(next_phase)
        phase_file = definition.instruction_file
        failed = record.status == PhaseStatus.FAILED
        attempt = record.attempts + 1

        if failed:
            message = (
                f"Phase {next_phase} ({record.name}) previously failed. Retrying...\n"
                f"   Previous error: {record.error}\n"
                f"   Attempt: {attempt}"
            )
        else:
            message = f"Ready to execute Phase {next_phase}: {record.name}"

        return ResumeInstructions(
            action="execute",
            phase=next_phase,
            phase_name=record.name,
            phase_file=phase_file,
            message=message,
            command=f"Execute the instructions in {self.docs_dir}/{phase_file}",
            previously_failed=failed,
            attempt=attempt,
            previous_error=record.error if failed else None,
        )

    def render_context(self) -> str:
        """Full resume context: status, per-phase lines and the next action."""
        instructions = self.get_resume_instructions()
        summary = self.machine.get_summary()
        state = self.machine.state
        rule = "═" * 60

        output: List[str] = [rule, "🔄 SCAFFOLD RESUME CONTEXT", rule, ""]

        output.append("## Current Status")
        output.append(f"- Overall: {summary.status.value.upper()}")
        output.append(
            f"- Progress: {summary.progress} phases complete "
            f"({summary.progress_percent}%)"
        )
        output.append(f"- Total retries: {summary.total_retries}")
        output.append("")

        output.append("## Phase Status")
        for definition in self.machine.registry:
            record = state.phases[definition.number]
            line = (
                f"{STATUS_ICONS[record.status]} Phase {definition.padded_number}: "
                f"{record.name}"
            )
            if record.status == PhaseStatus.FAILED and record.error:
                line += f" - ERROR: {record.error}"
            duration = state.metrics.phase_durations.get(definition.number)
            if record.status == PhaseStatus.COMPLETED and duration:
                line += f" ({round(duration / 1000)}s)"
            output.append(line)
        output.append("")

        output.append("## Next Action")
        if instructions.is_complete:
            output.append("🎉 ALL PHASES COMPLETE!")
            output.append("")
            output.append("Run the smoke test to validate everything works:")
            output.append("```")
            output.append(self.smoke_command)
            output.append("```")
        else:
            output.append(instructions.message)
            output.append("")

            if instructions.previously_failed:
                output.append(
                    "⚠️  This phase previously failed. Review the error above and:"
                )
                output.append("1. Check TROUBLESHOOTING.md for common fixes")
                output.append("2. Verify prerequisites are met")
                output.append("3. Retry the phase from its instruction document")
                output.append("")

            output.append("### Instructions")
            output.append(f"1. Read: {self.docs_dir}/{instructions.phase_file}")
            output.append(f"2. Record the start: `scaffold start {instructions.phase}`")
            output.append("3. Execute all artifacts in the document")
            output.append(
                f"4. If it worked: `scaffold complete {instructions.phase}`, "
                f"otherwise: `scaffold fail {instructions.phase} <message>`"
            )
            output.append("")

            output.append("### Expected Artifacts")
            artifacts = self.machine.registry.get(instructions.phase).artifacts
            if artifacts:
                output.extend(f"- {artifact}" for artifact in artifacts)
            else:
                output.append("(See phase document for full list)")

        output.append("")
        output.append(rule)
        return "\n".join(output)

    def render_agent_prompt(self) -> str:
        """Prompt text an agent can be handed directly."""
        instructions = self.get_resume_instructions()

        if instructions.is_complete:
            total = len(self.machine.registry)
            return (
                f"The scaffolding is complete. All {total} phases have been "
                "executed or skipped.\n\n"
                "Your next task is to run the smoke test to validate the entire "
                "system works together:\n\n"
                f"```bash\n{self.smoke_command}\n```\n"
            )

        phase = instructions.phase
        doc = f"{self.docs_dir}/{instructions.phase_file}"
        lines = [f"## SCAFFOLD RESUME - Phase {phase}: {instructions.phase_name}", ""]

        if instructions.previously_failed:
            lines.append(
                "⚠️ WARNING: This phase previously failed with error: "
                f'"{instructions.previous_error}"'
            )
            lines.append("")
            lines.append(
                f"Before retrying, check {self.docs_dir}/TROUBLESHOOTING.md "
                "for common fixes."
            )
            lines.append("")

        lines.extend(
            [
                "You are resuming a scaffolding process.",
                "",
                "### Your Task",
                f"Execute Phase {phase} ({instructions.phase_name}) by following "
                "the instructions in:",
                f"`{doc}`",
                "",
                "### Process",
                f"1. Record the attempt: `scaffold start {phase}`",
                "2. Read the phase document completely",
                "3. Create all artifacts listed in the document",
                f"4. If everything is in place, mark complete: `scaffold complete {phase}`",
                f"5. If it fails, record it: `scaffold fail {phase} <error message>`",
                "",
                "### Important",
                "- Do NOT proceed to the next phase until this one is complete",
                "- If stuck, report the error and wait for guidance",
                "",
                "Begin by reading the phase document.",
            ]
        )
        return "\n".join(lines) + "\n"

    def to_json(self) -> str:
        """Summary, instructions and full state as one JSON document."""
        instructions = self.get_resume_instructions()
        payload = {
            "summary": self.machine.get_summary().model_dump(
                by_alias=True, mode="json"
            ),
            "instructions": instructions.model_dump(
                by_alias=True, mode="json", exclude_none=True
            ),
            "state": self.machine.state.model_dump(by_alias=True, mode="json"),
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)
