"""Manifest loader for S3Bench resources."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from s3bench._constants import KIND

from .schema import S3Bench


class ConfigError(Exception):
    """Base exception for manifest errors."""

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when a manifest file is not found."""

    pass


class ConfigParseError(ConfigError):
    """Raised when a manifest file cannot be parsed."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when a manifest does not match the S3Bench schema."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return as dictionary.

    Args:
        path: Path to YAML file

    Returns:
        Dictionary containing parsed YAML

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails or the document is not a mapping
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Manifest file not found: {path}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse YAML: {e}")  # noqa: B904

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigParseError(f"Expected a mapping at the top of {path}")
    return content


def parse_manifest(data: dict[str, Any]) -> S3Bench:
    """Build an S3Bench from its wire-form dictionary.

    Only the schema (field names and types) is checked here; value
    constraints are the validator's job.

    Args:
        data: Manifest dictionary (apiVersion, kind, metadata, spec[, status])

    Returns:
        Parsed S3Bench

    Raises:
        ConfigValidationError: If the manifest does not match the schema
    """
    kind = data.get("kind", KIND)
    if kind != KIND:
        raise ConfigValidationError(f"Expected kind {KIND}, got {kind!r}")

    try:
        return S3Bench.model_validate(data)
    except ValidationError as e:
        errors = e.errors()
        error_messages = []
        for err in errors:
            loc = ".".join(str(x) for x in err["loc"])
            msg = err["msg"]
            error_messages.append(f"  - {loc}: {msg}")

        raise ConfigValidationError(  # noqa: B904
            "Manifest validation failed:\n" + "\n".join(error_messages),
            errors=[dict(e) for e in errors],  # type: ignore[call-overload]
        )


def load_manifest(path: str | Path) -> S3Bench:
    """Load an S3Bench manifest from a YAML file.

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
        ConfigValidationError: If the manifest does not match the schema
    """
    return parse_manifest(load_yaml(Path(path)))


def save_manifest(bench: S3Bench, path: str | Path) -> None:
    """Save an S3Bench manifest to a YAML file.

    Args:
        bench: Resource to save
        path: Path to save YAML file
    """
    with open(Path(path), "w") as f:
        yaml.safe_dump(bench.to_manifest(), f, default_flow_style=False, sort_keys=False, indent=2)


def generate_example_manifest_yaml(name: str = "s3bench-sample") -> str:
    """Generate an example S3Bench manifest with comments.

    Only ``mode`` and ``host`` are required; every other option is shown
    commented out with its default.
    """
    return f"""# S3Bench manifest
# ================
# Runs a warp benchmark against an S3-compatible endpoint.
# Uncommented fields are required; commented fields show their DEFAULT.
apiVersion: perf.kubestone.xridge.io/v1alpha1
kind: S3Bench
metadata:
  name: {name}
  namespace: default
spec:
  # REQUIRED: get | put | delete | mixed
  mode: mixed

  # REQUIRED: comma-separated host:port list
  host: "minio.minio.svc:9000"

  # image:
  #   name: minio/warp:v0.7.11
  #   pullPolicy: IfNotPresent

  # podConfig:                    # passed through to the benchmark pod
  #   podLabels: {{}}
  #   podScheduling:
  #     nodeSelector: {{}}
  #     tolerations: []
  #     affinity: {{}}

  options:
    # Credentials are injected through a Secret, never on the command line
    access_key: minioadmin
    secret_key: minioadmin
    # bucket: warp-benchmark-bucket   # ALL DATA IN BUCKET IS DELETED
    # concurrent: 6
    # duration: 5m0s
    # host_select: weighed            # weighed | roundrobin
    # region: ""
    # tls: false
    # insecure: false
    # encrypt: false
    # no_prefix: false
    # no_clear: false
    # sync_start: ""                  # hh:mm, 24h, server TZ
    # requests: false
    # bench_output: ""
    # no_color: false
    # debug: false

  # objects:
  #   count: 2500
  #   size: 10MiB
  #   generator: random
  #   random_size: false

  # auto_term:
  #   enabled: false
  #   duration: 10s
  #   percent: "7.5"

  # analysis:
  #   duration: 1s
  #   skip: 0s
  #   output: ""
  #   operation_filter: ""            # GET | PUT | DELETE | STAT
  #   host_filter: ""
  #   print_errors: false
  #   host_details: false

  # mixed_dist:                     # mixed mode only; delete <= put
  #   get: 45
  #   stat: 30
  #   put: 15
  #   delete: 10
"""
