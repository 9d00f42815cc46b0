"""Wait-for-completion logic for benchmark workloads.

Polls the benchmark Job, feeds each status record to the run's lifecycle
tracker and publishes the resulting status on the S3Bench object.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from s3bench.config import BenchmarkStatus
from s3bench.lifecycle import LifecycleTracker, RunState

from .client import K8sClient

logger = logging.getLogger(__name__)


class WaitStatus(Enum):
    """Status of a wait operation."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"
    TIMEOUT = "timeout"


@dataclass
class WaitResult:
    """Result of a wait operation."""

    status: WaitStatus
    message: str
    elapsed_seconds: float
    attempts: int


def wait_for_condition(
    check_fn: Callable[[], tuple[bool, str]],
    timeout_seconds: int = 300,
    poll_interval: int = 5,
    description: str = "condition",
) -> WaitResult:
    """Generic wait for a condition to be true.

    Args:
        check_fn: Function that returns (success, message)
        timeout_seconds: Maximum time to wait
        poll_interval: Seconds between checks
        description: Description for logging

    Returns:
        WaitResult with outcome
    """
    start_time = time.time()
    attempts = 0

    while True:
        attempts += 1
        elapsed = time.time() - start_time

        try:
            success, message = check_fn()
            if success:
                return WaitResult(
                    status=WaitStatus.READY,
                    message=message,
                    elapsed_seconds=elapsed,
                    attempts=attempts,
                )
        except Exception as e:
            logger.debug("Check for %s failed: %s", description, e)
            message = str(e)

        if elapsed >= timeout_seconds:
            return WaitResult(
                status=WaitStatus.TIMEOUT,
                message=f"Timeout after {int(elapsed)}s waiting for {description}: {message}",
                elapsed_seconds=elapsed,
                attempts=attempts,
            )

        time.sleep(poll_interval)


def wait_for_benchmark(
    client: K8sClient,
    name: str,
    namespace: str,
    tracker: LifecycleTracker,
    timeout_seconds: int = 3600,
    poll_interval: int = 10,
    publish: bool = True,
    progress_callback: Callable[[RunState], None] | None = None,
) -> WaitResult:
    """Wait for a benchmark Job to terminate.

    Each poll feeds the Job status to ``tracker``. Whenever the projected
    status differs from the last one published, it is patched onto the
    S3Bench object (when ``publish`` is set).

    Args:
        client: K8sClient instance
        name: Benchmark (and Job) name
        namespace: Namespace
        tracker: Lifecycle tracker of the run
        timeout_seconds: Maximum time to wait
        poll_interval: Seconds between checks
        publish: Patch the S3Bench status subresource on change
        progress_callback: Called with the new state after each transition

    Returns:
        WaitResult: READY when the run completed, FAILED when it failed,
        TIMEOUT otherwise
    """
    published: BenchmarkStatus | None = None

    def check() -> tuple[bool, str]:
        nonlocal published

        job_status = client.get_job_status(name, namespace)
        if job_status is None:
            return False, f"Job {name} not found"

        if tracker.ingest(job_status) and progress_callback:
            progress_callback(tracker.state)

        status = tracker.status()
        if publish and status != published:
            client.patch_s3bench_status(name, status.model_dump(), namespace)
            published = status

        state = tracker.state
        if state.terminal:
            return True, f"Benchmark {name} {state.value}"
        return False, f"Benchmark {name} is {state.value}"

    result = wait_for_condition(
        check,
        timeout_seconds=timeout_seconds,
        poll_interval=poll_interval,
        description=f"benchmark {name}",
    )

    if result.status == WaitStatus.READY and tracker.state == RunState.FAILED:
        detail = f": {tracker.message}" if tracker.message else ""
        return WaitResult(
            status=WaitStatus.FAILED,
            message=f"Benchmark {name} failed{detail}",
            elapsed_seconds=result.elapsed_seconds,
            attempts=result.attempts,
        )
    return result
