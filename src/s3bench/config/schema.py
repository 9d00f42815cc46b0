"""Pydantic models for the S3Bench custom resource.

The models mirror the wire format of the ``S3Bench`` resource
(``perf.kubestone.xridge.io/v1alpha1``). Optional scalars are ``None`` when
unset so that defaulting can tell "not given" apart from "explicitly zero";
the documented defaults live in :mod:`s3bench.config.defaults`.

Models are frozen: a spec is written once by the submitter and never mutated.
Validation of field values and cross-field rules is deliberately left to
:mod:`s3bench.config.validator`, which reports every violation at once.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from s3bench._constants import API_GROUP, API_VERSION, KIND

# =============================================================================
# Enums
# =============================================================================


class BenchmarkMode(str, Enum):
    """warp sub-commands supported by the S3Bench resource."""

    GET = "get"
    PUT = "put"
    DELETE = "delete"
    MIXED = "mixed"


class HostSelect(str, Enum):
    """Host selection algorithm used when several hosts are given."""

    WEIGHED = "weighed"
    ROUNDROBIN = "roundrobin"


class ImagePullPolicy(str, Enum):
    """Kubernetes image pull policy."""

    ALWAYS = "Always"
    IF_NOT_PRESENT = "IfNotPresent"
    NEVER = "Never"


class OperationFilter(str, Enum):
    """Operation types the analysis output can be restricted to."""

    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"
    STAT = "STAT"


class _SpecModel(BaseModel):
    """Base for spec sections: immutable, unknown keys rejected.

    An empty string on an optional field means "not given", the same as
    leaving the key out, so the field is defaulted rather than validated.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _empty_string_is_unset(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        optional = set()
        for name, info in cls.model_fields.items():
            if info.default is None:
                optional.add(name)
                if info.alias:
                    optional.add(info.alias)
        return {k: v for k, v in data.items() if not (k in optional and v == "")}


# =============================================================================
# Image and pod configuration
# =============================================================================


class ImageSpec(_SpecModel):
    """Container image used to run warp."""

    name: str | None = None
    pull_policy: ImagePullPolicy | None = Field(default=None, alias="pullPolicy")
    pull_secret: str = Field(default="", alias="pullSecret")


_SCHEDULING_KEYS = ("affinity", "tolerations", "nodeSelector", "nodeName")


class PodConfigurationSpec(_SpecModel):
    """Pod labels and scheduling hints.

    Passed through to the benchmark pod unchanged. Scheduling keys are
    accepted either nested under ``podScheduling``, as kubestone writes
    them, or directly under ``podConfig``.
    """

    labels: dict[str, str] = Field(default_factory=dict, alias="podLabels")
    annotations: dict[str, str] = Field(default_factory=dict)
    affinity: dict[str, Any] = Field(default_factory=dict)
    tolerations: list[dict[str, Any]] = Field(default_factory=list)
    node_selector: dict[str, str] = Field(default_factory=dict, alias="nodeSelector")
    node_name: str = Field(default="", alias="nodeName")
    resources: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _flatten_pod_scheduling(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "podScheduling" not in data:
            return data
        scheduling = data["podScheduling"] or {}
        if not isinstance(scheduling, dict):
            raise ValueError("podScheduling must be a mapping")
        unknown = set(scheduling) - set(_SCHEDULING_KEYS)
        if unknown:
            raise ValueError(f"unknown podScheduling keys: {', '.join(sorted(unknown))}")
        clash = [key for key in scheduling if key in data]
        if clash:
            raise ValueError(
                f"set both in podScheduling and directly under podConfig: {', '.join(clash)}"
            )
        flat = {k: v for k, v in data.items() if k != "podScheduling"}
        flat.update(scheduling)
        return flat


# =============================================================================
# warp options
# =============================================================================


class S3BenchOptions(_SpecModel):
    """Runtime arguments for the warp CLI."""

    no_color: bool = False
    debug: bool = False
    insecure: bool = False
    access_key: str | None = Field(default=None, repr=False)
    secret_key: str | None = Field(default=None, repr=False)
    tls: bool = False
    region: str | None = None
    encrypt: bool = False
    # ALL DATA IN THIS BUCKET IS DELETED by warp
    bucket: str | None = None
    host_select: str | None = None
    concurrent: int | None = None
    no_prefix: bool = False
    bench_output: str | None = None
    duration: str | None = None
    no_clear: bool = False
    sync_start: str | None = None  # hh:mm, 24h, server TZ
    requests: bool = False


class S3ObjectOptions(_SpecModel):
    """Options for the objects generated by the benchmark."""

    count: int | None = None
    size: str | None = None  # bytes, or 10KiB/MiB/GiB
    generator: str | None = None
    random_size: bool = False


class S3AutoTermOptions(_SpecModel):
    """Auto-termination once throughput is stable.

    ``duration`` and ``percent`` only take effect when ``enabled`` is set.
    """

    enabled: bool = False
    duration: str | None = None
    percent: str | None = None


class S3AnalysisOptions(_SpecModel):
    """Post-run aggregation controls."""

    duration: str | None = None
    output: str | None = None
    operation_filter: str | None = None
    print_errors: bool = False
    host_filter: str | None = None
    skip: str | None = None
    host_details: bool = False


class MixedDistributionOptions(_SpecModel):
    """Relative weights of operation types in mixed mode.

    Weights need not sum to 100. Only used when ``mode`` is ``mixed``.
    """

    get: int | None = None
    stat: int | None = None
    put: int | None = None
    delete: int | None = None


class S3BenchSpec(_SpecModel):
    """Desired state of one S3 benchmark run."""

    image: ImageSpec = Field(default_factory=ImageSpec)
    pod_config: PodConfigurationSpec = Field(
        default_factory=PodConfigurationSpec, alias="podConfig"
    )
    mode: str = ""
    host: str = ""
    options: S3BenchOptions = Field(default_factory=S3BenchOptions)
    objects: S3ObjectOptions = Field(default_factory=S3ObjectOptions)
    auto_term: S3AutoTermOptions = Field(default_factory=S3AutoTermOptions)
    analysis: S3AnalysisOptions = Field(default_factory=S3AnalysisOptions)
    mixed_dist: MixedDistributionOptions = Field(default_factory=MixedDistributionOptions)

    def hosts(self) -> list[str]:
        """Return the individual endpoints of the comma-separated host list."""
        return [h.strip() for h in self.host.split(",") if h.strip()]

    def has_credentials(self) -> bool:
        """Check if inline S3 credentials are set."""
        return bool(self.options.access_key or self.options.secret_key)


# =============================================================================
# Status and root resource
# =============================================================================


class BenchmarkStatus(BaseModel):
    """Observed lifecycle position of a benchmark run.

    Wire form is exactly ``{"running": bool, "completed": bool}``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    running: bool = False
    completed: bool = False


class ObjectMeta(BaseModel):
    """Subset of Kubernetes object metadata used by s3bench."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    namespace: str = "default"
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    uid: str | None = None


class S3Bench(BaseModel):
    """The S3Bench custom resource."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    api_version: str = Field(default=f"{API_GROUP}/{API_VERSION}", alias="apiVersion")
    kind: str = KIND
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: S3BenchSpec = Field(default_factory=S3BenchSpec)
    status: BenchmarkStatus = Field(default_factory=BenchmarkStatus)

    @property
    def identity(self) -> tuple[str, str]:
        """(namespace, name) key identifying the run."""
        return self.metadata.namespace, self.metadata.name

    def to_manifest(self) -> dict[str, Any]:
        """Serialize to the wire form, omitting unset optional fields."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        data["spec"] = self.spec.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude_defaults=True
        )
        return data


# =============================================================================
# Value parsing helpers
# =============================================================================

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*([a-z]*)$")

_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1000,
    "kb": 1000,
    "m": 1000**2,
    "mb": 1000**2,
    "g": 1000**3,
    "gb": 1000**3,
    "t": 1000**4,
    "tb": 1000**4,
    "ki": 1024,
    "kib": 1024,
    "mi": 1024**2,
    "mib": 1024**2,
    "gi": 1024**3,
    "gib": 1024**3,
    "ti": 1024**4,
    "tib": 1024**4,
}

_SYNC_START_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_duration(value: str) -> float:
    """Parse a Go-style duration string to seconds.

    Accepts a sequence of decimal numbers each followed by a unit
    (ns, us, ms, s, m, h), or the bare string ``0``. Signs are rejected.

    Examples:
        >>> parse_duration("5m0s")
        300.0
        >>> parse_duration("1.5s")
        1.5
    """
    text = value.strip()
    if text == "0":
        return 0.0
    if not text:
        raise ValueError("Empty duration")

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ValueError(f"Invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return total


def parse_size_to_bytes(size_str: str) -> int:
    """Parse an object size to bytes.

    Binary suffixes (KiB, MiB, GiB, TiB) are powers of 1024, decimal
    suffixes (KB, MB, GB, TB) powers of 1000. No suffix means bytes.
    Matching is case-insensitive.

    Examples:
        >>> parse_size_to_bytes("10MiB")
        10485760
        >>> parse_size_to_bytes("1KB")
        1000
    """
    match = _SIZE_RE.match(size_str.strip().lower())
    if not match or match.group(2) not in _SIZE_UNITS:
        raise ValueError(f"Invalid size format: {size_str}")
    return int(float(match.group(1)) * _SIZE_UNITS[match.group(2)])


def parse_sync_start(value: str) -> tuple[int, int]:
    """Parse a ``hh:mm`` (24h) start time into (hour, minute)."""
    match = _SYNC_START_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid start time (expected hh:mm): {value}")
    return int(match.group(1)), int(match.group(2))
