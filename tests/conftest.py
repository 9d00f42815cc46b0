"""Shared fixtures for s3bench test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from s3bench.config import S3Bench, S3BenchSpec


def make_spec(**overrides: Any) -> S3BenchSpec:
    """Create a minimal valid S3BenchSpec (mode + host only).

    Keyword overrides use wire keys, e.g. ``options={"concurrent": 3}``.
    """
    base: dict[str, Any] = {
        "mode": "put",
        "host": "minio.minio.svc:9000",
    }
    base.update(overrides)
    return S3BenchSpec.model_validate(base)


def make_bench(name: str = "bench-test", namespace: str = "test-ns", **spec: Any) -> S3Bench:
    """Create an S3Bench resource for testing.

    This is the canonical resource factory for tests. Prefer this over
    hand-building dicts so that new required fields are handled in one place.
    """
    return S3Bench.model_validate(
        {
            "metadata": {"name": name, "namespace": namespace},
            "spec": make_spec(**spec).model_dump(by_alias=True, exclude_none=True),
        }
    )


@pytest.fixture
def default_bench() -> S3Bench:
    """A minimal valid S3Bench for tests that don't care about specifics."""
    return make_bench()


@pytest.fixture
def mixed_bench() -> S3Bench:
    """S3Bench in mixed mode with inline credentials."""
    return make_bench(
        mode="mixed",
        options={"access_key": "minioadmin", "secret_key": "minio-secret"},
    )


@pytest.fixture
def mock_k8s_client():
    """Pre-configured mock K8sClient for unit tests."""
    client = MagicMock()
    client.namespace = "test-ns"
    client.apply_manifest.return_value = True
    client.apply_workload.return_value = True
    client.patch_s3bench_status.return_value = True
    return client
