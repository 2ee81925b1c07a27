"""Driver lifecycle shared by every test module of the suite."""

from __future__ import annotations

import logging
from enum import Enum

from rank_sts.errors import LifecycleError

logger = logging.getLogger(__name__)


class DriverState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    PRINTED = "printed"
    METRICS_COMPUTED = "metrics_computed"
    DESTROYED = "destroyed"


# operation -> (states it may be called from, state it leaves behind)
TRANSITIONS: dict[str, tuple[frozenset[DriverState], DriverState]] = {
    "init": (
        frozenset({DriverState.UNINITIALIZED, DriverState.DESTROYED}),
        DriverState.INITIALIZED,
    ),
    "iterate": (
        frozenset({DriverState.INITIALIZED, DriverState.ITERATING}),
        DriverState.ITERATING,
    ),
    "print": (
        frozenset({DriverState.ITERATING}),
        DriverState.PRINTED,
    ),
    "metrics": (
        frozenset({DriverState.ITERATING, DriverState.PRINTED}),
        DriverState.METRICS_COMPUTED,
    ),
    "destroy": (
        frozenset(DriverState),
        DriverState.DESTROYED,
    ),
}


class Lifecycle:
    """Checked finite-state machine for init → iterate* → print → metrics → destroy."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.state = DriverState.UNINITIALIZED

    def check(self, operation: str) -> None:
        """Raise :class:`LifecycleError` if *operation* is illegal right now."""
        allowed, _ = TRANSITIONS[operation]
        if self.state not in allowed:
            raise LifecycleError(
                f"{self.name}.{operation}",
                self.state,
                sorted(allowed, key=lambda s: list(DriverState).index(s)),
            )

    def advance(self, operation: str) -> None:
        _, target = TRANSITIONS[operation]
        if target is not self.state:
            logger.debug("%s: state %s -> %s", self.name, self.state.name, target.name)
            self.state = target
