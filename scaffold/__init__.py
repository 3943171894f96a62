"""
Scaffold: phase orchestration for agent-driven code generation

Tracks progress through a fixed, ordered sequence of scaffolding phases carried
out by an external agent, persists that progress to a JSON state file, and
works out what to do next after an interruption, crash, or failed phase.
"""

__version__ = "0.1.0"

from scaffold.core.exceptions import ScaffoldError

__all__ = ["ScaffoldError", "__version__"]
