"""External observations that drive the benchmark lifecycle.

Observations come from whatever watches the benchmark workload (usually
Kubernetes Job or Pod status). The helpers here interpret those raw status
records; anything they cannot make sense of raises ``ObservationError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ObservationError(Exception):
    """Raised when an external lifecycle observation cannot be interpreted."""

    pass


class ObservationKind(str, Enum):
    """What an observer saw the workload doing."""

    PENDING = "pending"
    STARTED = "started"
    TERMINATED = "terminated"


class Outcome(str, Enum):
    """Exit outcome, when the observer reports one."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class Observation:
    """A single lifecycle observation."""

    kind: ObservationKind
    outcome: Outcome | None = None
    message: str = ""

    @classmethod
    def pending(cls, message: str = "") -> Observation:
        return cls(ObservationKind.PENDING, message=message)

    @classmethod
    def started(cls, message: str = "") -> Observation:
        return cls(ObservationKind.STARTED, message=message)

    @classmethod
    def terminated(cls, outcome: Outcome | None = None, message: str = "") -> Observation:
        return cls(ObservationKind.TERMINATED, outcome=outcome, message=message)


def _count(status: Mapping[str, Any], key: str) -> int:
    value = status.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ObservationError(f"Job status field {key!r} is not a count: {value!r}")
    return value


def _condition_get(condition: Any, key: str) -> Any:
    if isinstance(condition, Mapping):
        return condition.get(key)
    return getattr(condition, key, None)


def observation_from_job_status(status: Any) -> Observation:
    """Interpret a Kubernetes Job status record.

    Accepts the dict form produced by the kubernetes client
    (``V1JobStatus.to_dict()``) or the raw API form. Terminal conditions win
    over pod counts; ``ready`` is preferred over ``active`` for deciding that
    warp is actually executing, since ``active`` also counts pods that are
    still being scheduled.

    Args:
        status: Job ``status`` mapping

    Returns:
        Observation describing the workload

    Raises:
        ObservationError: If the record is not a mapping or has bad counts
    """
    if not isinstance(status, Mapping):
        raise ObservationError(f"Job status must be a mapping, got {type(status).__name__}")

    conditions = status.get("conditions") or []
    if not isinstance(conditions, list):
        raise ObservationError("Job status 'conditions' must be a list")

    for condition in conditions:
        if str(_condition_get(condition, "status")) != "True":
            continue
        ctype = _condition_get(condition, "type")
        message = _condition_get(condition, "message") or _condition_get(condition, "reason") or ""
        if ctype in ("Complete", "SuccessCriteriaMet"):
            return Observation.terminated(Outcome.SUCCEEDED, message)
        if ctype in ("Failed", "FailureTarget"):
            return Observation.terminated(Outcome.FAILED, message)

    active = _count(status, "active")
    succeeded = _count(status, "succeeded")
    failed = _count(status, "failed")

    if succeeded > 0:
        return Observation.terminated(Outcome.SUCCEEDED)
    if failed > 0 and active == 0:
        return Observation.terminated(Outcome.FAILED, f"{failed} pod(s) failed")

    if status.get("ready") is not None:
        if _count(status, "ready") > 0:
            return Observation.started()
        return Observation.pending()
    if active > 0:
        return Observation.started()
    return Observation.pending()


_POD_PHASES = {
    "Pending": Observation.pending(),
    "Running": Observation.started(),
    "Succeeded": Observation.terminated(Outcome.SUCCEEDED),
    "Failed": Observation.terminated(Outcome.FAILED),
}


def observation_from_pod_phase(phase: str) -> Observation:
    """Interpret a Kubernetes Pod phase.

    Raises:
        ObservationError: For ``Unknown`` or unrecognized phases
    """
    try:
        return _POD_PHASES[phase]
    except KeyError:
        raise ObservationError(f"Cannot interpret pod phase {phase!r}")  # noqa: B904
