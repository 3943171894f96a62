"""Static, ordered table of scaffolding phases.

Phases form a fixed total order 1..N. The table is code, not user data: the
state file records progress against it, and the CLI validates phase numbers
against it before touching any state.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from .exceptions import InvalidPhaseError


@dataclass(frozen=True)
class PhaseDefinition:
    """One numbered, named unit of work."""

    number: int
    """Position in the total order, starting at 1"""

    name: str
    """Upper-case label used in state records and instruction file names"""

    title: str
    """Human-readable title"""

    artifacts: Tuple[str, ...] = field(default_factory=tuple)
    """Workspace-relative paths the phase is expected to produce"""

    @property
    def padded_number(self) -> str:
        return f"{self.number:02d}"

    @property
    def instruction_file(self) -> str:
        """Conventional instruction document name, e.g. ``03-TYPES.md``."""
        return f"{self.padded_number}-{self.name.upper()}.md"


PHASES: Tuple[PhaseDefinition, ...] = (
    PhaseDefinition(
        1,
        "WORKSPACE",
        "Workspace Setup",
        (
            "apps/web/",
            "packages/backend/",
            "packages/types/",
            "turbo.json",
            "pnpm-workspace.yaml",
        ),
    ),
    PhaseDefinition(
        2,
        "ENVIRONMENT",
        "Environment Configuration",
        ("apps/web/lib/env.ts", "packages/backend/src/config.py"),
    ),
    PhaseDefinition(
        3,
        "TYPES",
        "Shared Types & Exceptions",
        ("packages/types/src/", "packages/backend/src/exceptions.py"),
    ),
    PhaseDefinition(
        4,
        "DATABASE",
        "Database Foundation",
        ("supabase/migrations/", "apps/web/lib/supabase/"),
    ),
    PhaseDefinition(
        5,
        "AUTH",
        "Authentication Infrastructure",
        ("apps/web/lib/auth/", "packages/backend/src/auth/"),
    ),
    PhaseDefinition(
        6,
        "RESILIENCE",
        "Resilience Patterns",
        ("packages/backend/src/resilience/", "apps/web/lib/resilience/"),
    ),
    PhaseDefinition(
        7,
        "WORKERS",
        "Job Processing System",
        ("packages/backend/src/jobs/",),
    ),
    PhaseDefinition(
        8,
        "API",
        "API Foundation",
        ("packages/backend/src/api/", "apps/web/app/api/jobs/"),
    ),
    PhaseDefinition(
        9,
        "OBSERVABILITY",
        "Observability",
        ("packages/backend/src/observability/", "apps/web/lib/observability/"),
    ),
    PhaseDefinition(
        10,
        "INTEGRATIONS",
        "Third-Party Integrations",
        ("packages/backend/src/integrations/", "apps/web/app/api/webhooks/"),
    ),
    PhaseDefinition(
        11,
        "FRONTEND",
        "Frontend Foundation",
        ("apps/web/components/ui/", "apps/web/lib/design-tokens/"),
    ),
)


class PhaseRegistry:
    """Lookup helpers over an ordered sequence of phase definitions."""

    def __init__(self, phases: Sequence[PhaseDefinition] = PHASES):
        numbers = [phase.number for phase in phases]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValueError(
                f"Phase numbers must run 1..N without gaps, got {numbers}"
            )
        self._phases: Tuple[PhaseDefinition, ...] = tuple(phases)

    def __iter__(self):
        return iter(self._phases)

    def __len__(self) -> int:
        return len(self._phases)

    @property
    def numbers(self) -> range:
        return range(1, len(self._phases) + 1)

    def contains(self, number: int) -> bool:
        return 1 <= number <= len(self._phases)

    def get(self, number: int) -> PhaseDefinition:
        """
        Get the definition for a phase number.

        Raises:
            InvalidPhaseError: If the number is outside 1..N
        """
        self.validate(number)
        return self._phases[number - 1]

    def validate(self, number: int) -> int:
        """Return the number unchanged, or raise if it is out of range."""
        if not self.contains(number):
            raise InvalidPhaseError(
                f"Invalid phase: {number} (expected 1-{len(self._phases)})"
            )
        return number

    def parse(self, raw: Optional[str]) -> int:
        """Parse a phase number from a command-line argument."""
        if raw is None:
            raise InvalidPhaseError("Missing phase number")
        try:
            number = int(str(raw).strip())
        except ValueError as e:
            raise InvalidPhaseError(f"Invalid phase: {raw!r} is not a number") from e
        return self.validate(number)


DEFAULT_REGISTRY = PhaseRegistry()
