"""Kubernetes client module for s3bench."""

from .client import (
    K8sClient,
    K8sConnectionError,
    K8sError,
    K8sResourceError,
    ResourceStatus,
    get_k8s_client,
)
from .wait import (
    WaitResult,
    WaitStatus,
    wait_for_benchmark,
    wait_for_condition,
)

__all__ = [
    # Client
    "K8sClient",
    "ResourceStatus",
    "get_k8s_client",
    # Errors
    "K8sError",
    "K8sConnectionError",
    "K8sResourceError",
    # Wait
    "WaitResult",
    "WaitStatus",
    "wait_for_condition",
    "wait_for_benchmark",
]
