"""Lifecycle state machine for a single benchmark run.

States advance monotonically::

    PENDING -> RUNNING -> COMPLETED
                      \\-> FAILED

``FAILED`` is only entered when an observation carries an explicit failure
outcome; a termination without an outcome is ``COMPLETED``. Nothing leaves a
terminal state. Stale and repeated observations are ignored.

The enumerated state is internal; it is projected onto the two booleans of
``BenchmarkStatus`` only when the status is published.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from s3bench.config.schema import BenchmarkStatus

from .observations import (
    Observation,
    ObservationError,
    ObservationKind,
    Outcome,
    observation_from_job_status,
)

logger = logging.getLogger(__name__)


class RunState(Enum):
    """Lifecycle position of a benchmark run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED)


# FAILED outranks COMPLETED only to break ties inside one batch; both are
# terminal, so neither can follow the other.
_RANK = {
    RunState.PENDING: 0,
    RunState.RUNNING: 1,
    RunState.COMPLETED: 2,
    RunState.FAILED: 3,
}

_PROJECTION = {
    RunState.PENDING: (False, False),
    RunState.RUNNING: (True, False),
    RunState.COMPLETED: (False, True),
    RunState.FAILED: (False, True),
}


def _target_state(observation: Observation) -> RunState:
    if observation.kind == ObservationKind.PENDING:
        return RunState.PENDING
    if observation.kind == ObservationKind.STARTED:
        return RunState.RUNNING
    if observation.outcome == Outcome.FAILED:
        return RunState.FAILED
    return RunState.COMPLETED


class LifecycleTracker:
    """Tracks one benchmark run from submission to termination.

    Thread-safe: observations may arrive concurrently from several watchers,
    a lock serializes every transition.
    """

    def __init__(self, name: str = "", state: RunState = RunState.PENDING):
        self.name = name
        self._state = state
        self._message = ""
        self._transitioned_at: datetime | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_status(cls, status: BenchmarkStatus, name: str = "") -> LifecycleTracker:
        """Rebuild a tracker from a published status record.

        A published ``completed`` status is restored as ``COMPLETED``, since
        the record does not carry the outcome.

        Raises:
            ObservationError: If the record has both flags set
        """
        if status.running and status.completed:
            raise ObservationError("Status cannot be both running and completed")
        if status.completed:
            return cls(name, RunState.COMPLETED)
        if status.running:
            return cls(name, RunState.RUNNING)
        return cls(name, RunState.PENDING)

    @property
    def state(self) -> RunState:
        with self._lock:
            return self._state

    @property
    def message(self) -> str:
        """Message attached to the observation that caused the last transition."""
        with self._lock:
            return self._message

    @property
    def transitioned_at(self) -> datetime | None:
        with self._lock:
            return self._transitioned_at

    def _can_advance(self, target: RunState) -> bool:
        if self._state.terminal:
            return False
        return _RANK[target] > _RANK[self._state]

    def _commit(self, target: RunState, observation: Observation) -> None:
        previous = self._state
        self._state = target
        self._message = observation.message
        self._transitioned_at = datetime.now(timezone.utc)
        logger.info(
            "Benchmark %s: %s -> %s%s",
            self.name or "<unnamed>",
            previous.value,
            target.value,
            f" ({observation.message})" if observation.message else "",
        )

    def observe(self, observation: Observation) -> bool:
        """Apply one observation.

        Returns:
            True if the state changed
        """
        return self.observe_batch([observation])

    def observe_batch(self, observations: Iterable[Observation]) -> bool:
        """Apply a batch of observations as a single transition.

        The most advanced state seen in the batch wins, regardless of the
        order the observations arrived in.

        Returns:
            True if the state changed
        """
        best: tuple[RunState, Observation] | None = None
        for observation in observations:
            target = _target_state(observation)
            if best is None or _RANK[target] > _RANK[best[0]]:
                best = (target, observation)
        if best is None:
            return False

        target, observation = best
        with self._lock:
            if not self._can_advance(target):
                logger.debug(
                    "Benchmark %s: ignoring %s observation in state %s",
                    self.name or "<unnamed>",
                    observation.kind.value,
                    self._state.value,
                )
                return False
            self._commit(target, observation)
            return True

    def ingest(self, raw_status: Mapping[str, Any] | Any) -> bool:
        """Apply a raw Kubernetes Job status record.

        Records that cannot be interpreted are dropped with a warning and
        leave the state unchanged.

        Returns:
            True if the state changed
        """
        try:
            observation = observation_from_job_status(raw_status)
        except ObservationError as e:
            logger.warning("Dropping observation for %s: %s", self.name or "<unnamed>", e)
            return False
        return self.observe(observation)

    def status(self) -> BenchmarkStatus:
        """Project the current state onto the published status record."""
        running, completed = _PROJECTION[self.state]
        return BenchmarkStatus(running=running, completed=completed)
