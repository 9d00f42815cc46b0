"""Kubernetes client for s3bench."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from s3bench._constants import API_GROUP, API_VERSION, CONTAINER_NAME, PLURAL

if TYPE_CHECKING:
    from s3bench.compiler import Workload

logger = logging.getLogger(__name__)


class K8sError(Exception):
    """Base exception for Kubernetes errors."""

    pass


class K8sConnectionError(K8sError):
    """Raised when Kubernetes cluster is unreachable."""

    pass


class K8sResourceError(K8sError):
    """Raised when resource operations fail."""

    pass


@dataclass
class ResourceStatus:
    """Status of a Kubernetes resource."""

    kind: str
    name: str
    namespace: str | None
    exists: bool
    ready: bool
    message: str = ""


class K8sClient:
    """Kubernetes client for benchmark workloads.

    This client wraps the official kubernetes-client and provides the few
    operations s3bench needs: submitting a compiled workload, reading its Job
    status and publishing the S3Bench status.
    """

    def __init__(self, context: str = "", namespace: str = ""):
        """Initialize Kubernetes client."""
        self.context_name = context
        self._namespace = namespace

        try:
            if context:
                config.load_kube_config(context=context)
            else:
                # Try in-cluster config first, fall back to kubeconfig
                try:
                    config.load_incluster_config()
                except config.ConfigException:
                    config.load_kube_config()
        except Exception as e:
            raise K8sConnectionError(f"Failed to load Kubernetes config: {e}")  # noqa: B904

        self._core_v1 = client.CoreV1Api()
        self._batch_v1 = client.BatchV1Api()
        self._custom = client.CustomObjectsApi()

    @property
    def namespace(self) -> str:
        """Get the default namespace."""
        if self._namespace:
            return self._namespace

        try:
            contexts, active = config.list_kube_config_contexts()
            if active and "namespace" in active.get("context", {}):
                return active["context"]["namespace"]
        except Exception:
            pass

        return "default"

    # ------------------------------------------------------------------
    # Workload submission
    # ------------------------------------------------------------------

    def apply_manifest(
        self,
        manifest: dict[str, Any],
        namespace: str | None = None,
        replace: bool = False,
    ) -> bool:
        """Apply a Secret or Job manifest.

        Args:
            manifest: Kubernetes manifest as dict
            namespace: Override namespace
            replace: Delete and recreate an existing Job instead of keeping it

        Returns:
            True if the object was created or updated, False if left as is
        """
        kind = manifest.get("kind", "")
        metadata = manifest.get("metadata", {})
        name = metadata.get("name", "")
        ns = namespace or metadata.get("namespace") or self.namespace

        try:
            if kind == "Secret":
                return self._apply_secret(manifest, ns)
            elif kind == "Job":
                return self._apply_job(manifest, ns, replace=replace)
            raise K8sResourceError(f"Unsupported resource kind: {kind}")
        except ApiException as e:
            raise K8sResourceError(f"Failed to apply {kind}/{name}: {e}")  # noqa: B904

    def _apply_secret(self, manifest: dict[str, Any], namespace: str) -> bool:
        """Apply a Secret manifest."""
        name = manifest["metadata"]["name"]
        manifest["metadata"]["namespace"] = namespace
        try:
            self._core_v1.read_namespaced_secret(name, namespace)
            self._core_v1.replace_namespaced_secret(name, namespace, manifest)
        except ApiException as e:
            if e.status == 404:
                self._core_v1.create_namespaced_secret(namespace, manifest)
            else:
                raise
        return True

    def _apply_job(self, manifest: dict[str, Any], namespace: str, replace: bool = False) -> bool:
        """Apply a Job manifest.

        Jobs are immutable. An existing Job belongs to the same run (specs
        are write-once), so it is kept unless ``replace`` is set.
        """
        name = manifest["metadata"]["name"]
        manifest["metadata"]["namespace"] = namespace
        try:
            self._batch_v1.read_namespaced_job(name, namespace)
        except ApiException as e:
            if e.status != 404:
                raise
            self._batch_v1.create_namespaced_job(namespace, manifest)
            logger.info("Created Job %s/%s", namespace, name)
            return True

        if not replace:
            logger.info("Job %s/%s already exists, keeping it", namespace, name)
            return False

        self._batch_v1.delete_namespaced_job(
            name,
            namespace,
            body=client.V1DeleteOptions(propagation_policy="Background"),
        )
        # Wait briefly for deletion
        time.sleep(2)
        self._batch_v1.create_namespaced_job(namespace, manifest)
        logger.info("Recreated Job %s/%s", namespace, name)
        return True

    def apply_workload(self, workload: Workload, replace: bool = False) -> bool:
        """Apply every manifest of a compiled workload, Secret first.

        Returns:
            True if the Job was created (or recreated)
        """
        created = False
        for manifest in workload.manifests():
            applied = self.apply_manifest(manifest, namespace=workload.namespace, replace=replace)
            if manifest["kind"] == "Job":
                created = applied
        return created

    def delete_workload(self, name: str, namespace: str | None = None) -> bool:
        """Delete the benchmark Job and its credentials Secret.

        Returns:
            True if the Job existed
        """
        from s3bench.compiler import credentials_secret_name

        ns = namespace or self.namespace
        deleted = False
        try:
            self._batch_v1.delete_namespaced_job(
                name,
                ns,
                body=client.V1DeleteOptions(propagation_policy="Background"),
            )
            deleted = True
        except ApiException as e:
            if e.status != 404:
                raise K8sResourceError(f"Failed to delete Job {name}: {e}")  # noqa: B904

        try:
            self._core_v1.delete_namespaced_secret(credentials_secret_name(name), ns)
        except ApiException as e:
            if e.status != 404:
                raise K8sResourceError(f"Failed to delete Secret for {name}: {e}")  # noqa: B904
        return deleted

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_job_status(self, name: str, namespace: str | None = None) -> dict[str, Any] | None:
        """Read the status of a benchmark Job.

        Returns:
            Job status as a dict (snake_case keys), or None if the Job is absent
        """
        ns = namespace or self.namespace
        try:
            job = self._batch_v1.read_namespaced_job_status(name, ns)
        except ApiException as e:
            if e.status == 404:
                return None
            raise K8sResourceError(f"Error reading Job status: {e}")  # noqa: B904
        if job.status is None:
            return {}
        return job.status.to_dict()

    def get_job_pod_status(self, name: str, namespace: str | None = None) -> ResourceStatus:
        """Get the status of the newest pod created by a benchmark Job."""
        ns = namespace or self.namespace
        try:
            pods = self._core_v1.list_namespaced_pod(ns, label_selector=f"job-name={name}")
        except ApiException as e:
            raise K8sResourceError(f"Error listing pods for Job {name}: {e}")  # noqa: B904

        if not pods.items:
            return ResourceStatus(kind="Pod", name=name, namespace=ns, exists=False, ready=False)

        pod = max(pods.items, key=lambda p: str(p.metadata.creation_timestamp or ""))
        phase = pod.status.phase
        ready = phase == "Running" and all(c.ready for c in (pod.status.container_statuses or []))
        return ResourceStatus(
            kind="Pod",
            name=pod.metadata.name,
            namespace=ns,
            exists=True,
            ready=ready,
            message=phase,
        )

    def get_job_logs(
        self, name: str, namespace: str | None = None, tail_lines: int | None = 100
    ) -> str | None:
        """Get warp output from the benchmark pod, or None if unavailable."""
        ns = namespace or self.namespace
        pod_status = self.get_job_pod_status(name, ns)
        if not pod_status.exists:
            return None

        kwargs: dict[str, Any] = {"container": CONTAINER_NAME}
        if tail_lines is not None:
            kwargs["tail_lines"] = tail_lines
        try:
            return self._core_v1.read_namespaced_pod_log(pod_status.name, ns, **kwargs)
        except ApiException:
            return None

    # ------------------------------------------------------------------
    # S3Bench resources
    # ------------------------------------------------------------------

    def get_s3bench(self, name: str, namespace: str | None = None) -> dict[str, Any] | None:
        """Read an S3Bench object, or None if it does not exist."""
        ns = namespace or self.namespace
        try:
            return self._custom.get_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=ns,
                plural=PLURAL,
                name=name,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise K8sResourceError(f"Error reading S3Bench {name}: {e}")  # noqa: B904

    def list_s3benches(self, namespace: str | None = None) -> list[dict[str, Any]]:
        """List S3Bench objects in a namespace."""
        ns = namespace or self.namespace
        try:
            result = self._custom.list_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=ns,
                plural=PLURAL,
            )
        except ApiException as e:
            if e.status == 404:
                return []
            raise K8sResourceError(f"Error listing S3Bench objects: {e}")  # noqa: B904
        return list(result.get("items", []))

    def patch_s3bench_status(
        self, name: str, status: dict[str, bool], namespace: str | None = None
    ) -> bool:
        """Publish a status record on the S3Bench status subresource.

        Returns:
            True if patched, False if the S3Bench object does not exist
        """
        ns = namespace or self.namespace
        try:
            self._custom.patch_namespaced_custom_object_status(
                group=API_GROUP,
                version=API_VERSION,
                namespace=ns,
                plural=PLURAL,
                name=name,
                body={"status": status},
            )
            return True
        except ApiException as e:
            if e.status == 404:
                return False
            raise K8sResourceError(f"Failed to patch S3Bench {name} status: {e}")  # noqa: B904


def get_k8s_client(context: str = "", namespace: str = "") -> K8sClient:
    """Create a Kubernetes client.

    Args:
        context: Kubernetes context (empty = current)
        namespace: Default namespace (empty = from context)

    Returns:
        K8sClient instance
    """
    return K8sClient(context=context, namespace=namespace)
