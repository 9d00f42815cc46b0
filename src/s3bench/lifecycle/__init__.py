"""Benchmark run lifecycle tracking."""

from .observations import (
    Observation,
    ObservationError,
    ObservationKind,
    Outcome,
    observation_from_job_status,
    observation_from_pod_phase,
)
from .tracker import LifecycleTracker, RunState

__all__ = [
    "LifecycleTracker",
    "RunState",
    "Observation",
    "ObservationKind",
    "Outcome",
    "ObservationError",
    "observation_from_job_status",
    "observation_from_pod_phase",
]
