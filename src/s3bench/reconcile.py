"""Reconciliation of S3Bench resources into execution plans.

Ties the pipeline together: validate -> default -> compile, and keeps one
lifecycle tracker per run. A run's spec is write-once: submitting the same
identity again with an identical spec returns the existing plan, a different
spec is rejected.

Nothing here talks to the cluster; submission and status polling live in
:mod:`s3bench.k8s`.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from s3bench.compiler import Workload, compile_workload
from s3bench.config import BenchmarkStatus, S3Bench, S3BenchSpec, apply_defaults, ensure_valid_bench
from s3bench.lifecycle import LifecycleTracker, Observation

logger = logging.getLogger(__name__)

Identity = tuple[str, str]


class SpecConflictError(Exception):
    """Raised when a run is re-submitted with a different spec."""

    def __init__(self, identity: Identity, existing: str, submitted: str):
        namespace, name = identity
        super().__init__(
            f"S3Bench {namespace}/{name} already submitted with a different spec "
            f"(existing {existing}, submitted {submitted})"
        )
        self.identity = identity


def spec_fingerprint(spec: S3BenchSpec) -> str:
    """Stable short hash of a spec's wire form."""
    payload = json.dumps(spec.model_dump(mode="json", by_alias=True), sort_keys=True)
    return hashlib.sha256(payload.encode()).hexdigest()[:16]


@dataclass(frozen=True)
class ExecutionPlan:
    """Fully resolved plan for one benchmark run."""

    bench: S3Bench
    workload: Workload
    fingerprint: str

    @property
    def identity(self) -> Identity:
        return self.bench.identity


def prepare(bench: S3Bench) -> ExecutionPlan:
    """Validate, default and compile a resource.

    Args:
        bench: Resource as submitted

    Returns:
        ExecutionPlan holding the defaulted resource and its workload

    Raises:
        ValidationError: If the resource violates any constraint
    """
    ensure_valid_bench(bench)
    defaulted = bench.model_copy(update={"spec": apply_defaults(bench.spec)})
    workload = compile_workload(defaulted)
    return ExecutionPlan(
        bench=defaulted,
        workload=workload,
        fingerprint=spec_fingerprint(defaulted.spec),
    )


@dataclass
class _Run:
    plan: ExecutionPlan
    tracker: LifecycleTracker


class Reconciler:
    """Registry of submitted runs and their lifecycle trackers."""

    def __init__(self) -> None:
        self._runs: dict[Identity, _Run] = {}
        self._lock = threading.Lock()

    def submit(self, bench: S3Bench) -> ExecutionPlan:
        """Register a run, or return the existing plan for an identical resubmission.

        Raises:
            ValidationError: If the resource is invalid
            SpecConflictError: If the identity is already bound to another spec
        """
        plan = prepare(bench)
        with self._lock:
            existing = self._runs.get(plan.identity)
            if existing is not None:
                if existing.plan.fingerprint != plan.fingerprint:
                    raise SpecConflictError(
                        plan.identity, existing.plan.fingerprint, plan.fingerprint
                    )
                logger.debug("Resubmission of %s/%s is unchanged", *plan.identity)
                return existing.plan

            tracker = LifecycleTracker.from_status(bench.status, name=bench.metadata.name)
            self._runs[plan.identity] = _Run(plan=plan, tracker=tracker)
            logger.info(
                "Accepted S3Bench %s/%s (mode=%s, spec %s)",
                *plan.identity,
                plan.bench.spec.mode,
                plan.fingerprint,
            )
            return plan

    def _run(self, identity: Identity) -> _Run:
        with self._lock:
            run = self._runs.get(identity)
        if run is None:
            namespace, name = identity
            raise KeyError(f"No S3Bench run registered for {namespace}/{name}")
        return run

    def plan(self, identity: Identity) -> ExecutionPlan:
        return self._run(identity).plan

    def tracker(self, identity: Identity) -> LifecycleTracker:
        return self._run(identity).tracker

    def observe(self, identity: Identity, observation: Observation) -> BenchmarkStatus:
        """Feed one observation to a run's tracker and return its status."""
        tracker = self.tracker(identity)
        tracker.observe(observation)
        return tracker.status()

    def ingest(self, identity: Identity, job_status: Mapping[str, Any]) -> BenchmarkStatus:
        """Feed a raw Job status record to a run's tracker and return its status."""
        tracker = self.tracker(identity)
        tracker.ingest(job_status)
        return tracker.status()

    def status(self, identity: Identity) -> BenchmarkStatus:
        return self.tracker(identity).status()

    def forget(self, identity: Identity) -> bool:
        """Drop a run once its resource is deleted.

        Returns:
            True if the run was registered
        """
        with self._lock:
            return self._runs.pop(identity, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._runs)
