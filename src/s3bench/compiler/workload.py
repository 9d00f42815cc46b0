"""Workload footprint for a compiled benchmark.

Turns a validated, defaulted S3Bench into everything the orchestrator needs
to run it: image, arguments, environment, credential Secret and optional
output volume. ``Workload.job_manifest()`` and ``Workload.secret_manifest()``
render the Kubernetes objects as plain dicts.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from s3bench._constants import (
    ACCESS_KEY_ENV,
    ACCESS_KEY_SECRET_KEY,
    API_GROUP,
    API_VERSION,
    CONTAINER_NAME,
    INSTANCE_LABEL,
    KIND,
    MANAGED_BY,
    MANAGED_BY_LABEL,
    OUTPUT_MOUNT_PATH,
    OUTPUT_VOLUME_NAME,
    SECRET_KEY_ENV,
    SECRET_KEY_SECRET_KEY,
)
from s3bench.config.schema import PodConfigurationSpec, S3Bench
from s3bench.config.validator import validate_bench

from .command import CompilationContractError, CompiledCommand, compile_command

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnvBinding:
    """A container environment variable, literal or sourced from a Secret."""

    name: str
    value: str | None = None
    secret_name: str | None = None
    secret_key: str | None = None

    def to_manifest(self) -> dict[str, Any]:
        if self.secret_name:
            return {
                "name": self.name,
                "valueFrom": {
                    "secretKeyRef": {
                        "name": self.secret_name,
                        "key": self.secret_key,
                    },
                },
            }
        return {"name": self.name, "value": self.value or ""}


@dataclass(frozen=True)
class CredentialSecret:
    """S3 credentials bound into the benchmark pod through a Secret."""

    name: str
    access_key: str = field(repr=False)
    secret_key: str = field(repr=False)


@dataclass(frozen=True)
class Workload:
    """Everything needed to run one compiled benchmark."""

    name: str
    namespace: str
    image: str
    pull_policy: str
    command: CompiledCommand
    env: tuple[EnvBinding, ...] = ()
    credentials: CredentialSecret | None = None
    pull_secret: str = ""
    output_volume: bool = False
    pod_config: PodConfigurationSpec = field(default_factory=PodConfigurationSpec)
    owner_uid: str | None = None

    @property
    def labels(self) -> dict[str, str]:
        return {MANAGED_BY_LABEL: MANAGED_BY, INSTANCE_LABEL: self.name}

    def _metadata(self, name: str) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "name": name,
            "namespace": self.namespace,
            "labels": self.labels,
        }
        if self.owner_uid:
            metadata["ownerReferences"] = [
                {
                    "apiVersion": f"{API_GROUP}/{API_VERSION}",
                    "kind": KIND,
                    "name": self.name,
                    "uid": self.owner_uid,
                    "controller": True,
                    "blockOwnerDeletion": True,
                }
            ]
        return metadata

    def secret_manifest(self) -> dict[str, Any] | None:
        """Build the credentials Secret, or None when no credentials are set."""
        if self.credentials is None:
            return None
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": self._metadata(self.credentials.name),
            "type": "Opaque",
            "stringData": {
                ACCESS_KEY_SECRET_KEY: self.credentials.access_key,
                SECRET_KEY_SECRET_KEY: self.credentials.secret_key,
            },
        }

    def job_manifest(self) -> dict[str, Any]:
        """Build the batch/v1 Job that runs warp once."""
        pod = self.pod_config

        container: dict[str, Any] = {
            "name": CONTAINER_NAME,
            "image": self.image,
            "imagePullPolicy": self.pull_policy,
            "args": list(self.command.args),
        }
        if self.env:
            container["env"] = [binding.to_manifest() for binding in self.env]
        if pod.resources:
            container["resources"] = copy.deepcopy(pod.resources)
        if self.output_volume:
            container["workingDir"] = OUTPUT_MOUNT_PATH
            container["volumeMounts"] = [
                {"name": OUTPUT_VOLUME_NAME, "mountPath": OUTPUT_MOUNT_PATH}
            ]

        pod_spec: dict[str, Any] = {
            "restartPolicy": "Never",
            "containers": [container],
        }
        if self.output_volume:
            pod_spec["volumes"] = [{"name": OUTPUT_VOLUME_NAME, "emptyDir": {}}]
        if self.pull_secret:
            pod_spec["imagePullSecrets"] = [{"name": self.pull_secret}]
        if pod.affinity:
            pod_spec["affinity"] = copy.deepcopy(pod.affinity)
        if pod.tolerations:
            pod_spec["tolerations"] = copy.deepcopy(pod.tolerations)
        if pod.node_selector:
            pod_spec["nodeSelector"] = dict(pod.node_selector)
        if pod.node_name:
            pod_spec["nodeName"] = pod.node_name

        template_metadata: dict[str, Any] = {"labels": {**pod.labels, **self.labels}}
        if pod.annotations:
            template_metadata["annotations"] = dict(pod.annotations)

        return {
            "apiVersion": "batch/v1",
            "kind": "Job",
            "metadata": self._metadata(self.name),
            "spec": {
                # A failed benchmark is reported, not retried
                "backoffLimit": 0,
                "template": {
                    "metadata": template_metadata,
                    "spec": pod_spec,
                },
            },
        }

    def manifests(self) -> list[dict[str, Any]]:
        """All manifests in apply order (Secret before Job)."""
        secret = self.secret_manifest()
        return ([secret] if secret else []) + [self.job_manifest()]


def credentials_secret_name(bench_name: str) -> str:
    return f"{bench_name}-credentials"


def compile_workload(bench: S3Bench) -> Workload:
    """Compile a validated, defaulted S3Bench into its workload.

    Args:
        bench: Resource whose spec passed validation and defaulting

    Returns:
        Workload ready to render and submit

    Raises:
        CompilationContractError: If the resource is invalid or not defaulted
    """
    violations = validate_bench(bench)
    if violations:
        message = "; ".join(str(v) for v in violations)
        logger.error("Refusing to compile %s: %s", bench.metadata.name or "<unnamed>", message)
        raise CompilationContractError(f"Resource must be valid before compilation: {message}")

    spec = bench.spec
    command = compile_command(spec)
    name = bench.metadata.name

    credentials = None
    env: tuple[EnvBinding, ...] = ()
    if spec.has_credentials():
        secret_name = credentials_secret_name(name)
        credentials = CredentialSecret(
            name=secret_name,
            access_key=spec.options.access_key or "",
            secret_key=spec.options.secret_key or "",
        )
        env = (
            EnvBinding(ACCESS_KEY_ENV, secret_name=secret_name, secret_key=ACCESS_KEY_SECRET_KEY),
            EnvBinding(SECRET_KEY_ENV, secret_name=secret_name, secret_key=SECRET_KEY_SECRET_KEY),
        )

    return Workload(
        name=name,
        namespace=bench.metadata.namespace,
        image=spec.image.name or "",
        pull_policy=spec.image.pull_policy.value if spec.image.pull_policy else "",
        command=command,
        env=env,
        credentials=credentials,
        pull_secret=spec.image.pull_secret,
        output_volume=bool(spec.options.bench_output or spec.analysis.output),
        pod_config=spec.pod_config,
        owner_uid=bench.metadata.uid,
    )
