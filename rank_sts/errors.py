"""Error types for the rank test module.

Contract violations are harness or environment bugs and are fatal by
policy; statistical outcomes are never raised, they are recorded as data.
"""

from __future__ import annotations


class RankTestError(Exception):
    """Base error type for the rank test module."""


class ContractViolation(RankTestError):
    """A caller broke the module's contract (fatal for the whole run)."""


class LifecycleError(ContractViolation):
    """An operation was called while the driver was in the wrong state."""

    def __init__(self, operation: str, state, allowed) -> None:
        self.operation = operation
        self.state = state
        self.allowed = tuple(allowed)
        names = ", ".join(s.name for s in self.allowed)
        super().__init__(
            f"{operation} called in driver state {state.name}; expected one of: {names}"
        )


class MissingInputError(ContractViolation):
    """A required input (stream, matrix, constants) was absent."""


class OutputError(ContractViolation):
    """A required output artifact could not be written."""


class InvalidConfigurationError(RankTestError):
    """The run configuration is malformed or inconsistent."""


class InvalidInputError(RankTestError):
    """The bit stream input could not be parsed."""
