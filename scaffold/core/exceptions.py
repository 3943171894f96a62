"""Scaffold exception classes."""


class ScaffoldError(Exception):
    """Base exception for all scaffold errors."""

    pass


class UsageError(ScaffoldError):
    """Raised when a command is invoked incorrectly."""

    pass


class InvalidPhaseError(UsageError):
    """Raised when a phase number is outside the registry range."""

    pass


class ConfigurationError(ScaffoldError):
    """Raised when configuration is invalid."""

    pass


class StatePersistenceError(ScaffoldError):
    """Raised when the state file cannot be read or written."""

    pass


class InvalidTransitionError(ScaffoldError):
    """Raised in strict mode when a phase transition is not in the table."""

    pass
