"""Structural and cross-field validation of S3Bench specs.

Validation is exhaustive: every check runs and every violation is collected,
so a submitter sees all problems with a spec in one pass. Nothing here
mutates its input.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .defaults import DEFAULTS
from .schema import (
    BenchmarkMode,
    HostSelect,
    OperationFilter,
    S3Bench,
    S3BenchSpec,
    parse_duration,
    parse_size_to_bytes,
    parse_sync_start,
)

logger = logging.getLogger(__name__)

_DNS1123_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
_BUCKET_NAME = re.compile(r"^[^\s/]+$")
_PORT = re.compile(r"^[0-9]{1,5}$")

_DURATION_FIELDS = (
    "options.duration",
    "auto_term.duration",
    "analysis.duration",
    "analysis.skip",
)


@dataclass(frozen=True)
class Violation:
    """A single failed check, identified by the dotted field path."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ValidationError(Exception):
    """Raised when a spec violates one or more documented constraints."""

    def __init__(self, violations: list[Violation]):
        self.violations = list(violations)
        lines = "\n".join(f"  - {v}" for v in self.violations)
        super().__init__(f"Spec validation failed ({len(self.violations)} violation(s)):\n{lines}")

    @property
    def fields(self) -> list[str]:
        """Dotted paths of the offending fields, in check order."""
        return [v.field for v in self.violations]


def _get(spec: S3BenchSpec, path: str) -> Any:
    section, name = path.split(".", 1)
    return getattr(getattr(spec, section), name)


def _effective(spec: S3BenchSpec, path: str) -> Any:
    """Value of ``path`` as it will be after defaulting."""
    value = _get(spec, path)
    return DEFAULTS.get(path) if value is None else value


# =============================================================================
# Individual checks
# =============================================================================


def _check_endpoint(endpoint: str) -> str | None:
    """Return an error message if ``endpoint`` is not ``host:port``."""
    if endpoint.startswith("["):
        host, sep, port = endpoint[1:].partition("]:")
    else:
        host, sep, port = endpoint.rpartition(":")
        if ":" in host:
            return f"IPv6 address must be bracketed: {endpoint!r}"
    if not sep or not host:
        return f"expected host:port, got {endpoint!r}"
    if any(c.isspace() for c in host):
        return f"host contains whitespace: {endpoint!r}"
    if not _PORT.match(port) or not 0 < int(port) <= 65535:
        return f"invalid port in {endpoint!r}"
    return None


def _check_mode(spec: S3BenchSpec) -> list[Violation]:
    if not spec.mode:
        return [Violation("mode", "is required")]
    valid = [m.value for m in BenchmarkMode]
    if spec.mode not in valid:
        return [
            Violation(
                "mode",
                f"unrecognized mode {spec.mode!r} (expected one of {', '.join(valid)})",
            )
        ]
    return []


def _check_host(spec: S3BenchSpec) -> list[Violation]:
    if not spec.host.strip():
        return [Violation("host", "is required")]
    violations = []
    for element in spec.host.split(","):
        error = _check_endpoint(element.strip())
        if error:
            violations.append(Violation("host", error))
    return violations


def _check_durations(spec: S3BenchSpec) -> list[Violation]:
    violations = []
    for path in _DURATION_FIELDS:
        value = _get(spec, path)
        if value is None:
            continue
        try:
            parse_duration(value)
        except ValueError:
            violations.append(
                Violation(path, f"invalid duration {value!r} (use e.g. 30s, 5m0s, 1h)")
            )
    return violations


def _check_objects(spec: S3BenchSpec) -> list[Violation]:
    violations = []
    objects = spec.objects
    if objects.count is not None and objects.count <= 0:
        violations.append(Violation("objects.count", f"must be positive, got {objects.count}"))
    if objects.size is not None:
        try:
            size = parse_size_to_bytes(objects.size)
        except ValueError:
            violations.append(
                Violation("objects.size", f"invalid size {objects.size!r} (use e.g. 4096, 10MiB)")
            )
        else:
            if size <= 0:
                violations.append(Violation("objects.size", "must be positive"))
    return violations


def _check_options(spec: S3BenchSpec) -> list[Violation]:
    violations = []
    opts = spec.options

    if opts.concurrent is not None and opts.concurrent <= 0:
        violations.append(
            Violation("options.concurrent", f"must be positive, got {opts.concurrent}")
        )

    if opts.host_select is not None:
        valid = [h.value for h in HostSelect]
        if opts.host_select not in valid:
            violations.append(
                Violation(
                    "options.host_select",
                    f"unrecognized value {opts.host_select!r} (expected one of {', '.join(valid)})",
                )
            )

    if opts.bucket is not None and not _BUCKET_NAME.match(opts.bucket):
        violations.append(Violation("options.bucket", f"invalid bucket name {opts.bucket!r}"))

    if opts.sync_start is not None:
        try:
            parse_sync_start(opts.sync_start)
        except ValueError as e:
            violations.append(Violation("options.sync_start", str(e)))

    if bool(opts.access_key) != bool(opts.secret_key):
        missing = "options.secret_key" if opts.access_key else "options.access_key"
        violations.append(Violation(missing, "access_key and secret_key must be set together"))

    return violations


def _check_auto_term(spec: S3BenchSpec) -> list[Violation]:
    percent = spec.auto_term.percent
    if percent is None:
        return []
    try:
        value = float(percent)
    except ValueError:
        return [Violation("auto_term.percent", f"not a number: {percent!r}")]
    if not 0 < value <= 100:
        return [Violation("auto_term.percent", f"must be in (0, 100], got {percent}")]
    return []


def _check_analysis(spec: S3BenchSpec) -> list[Violation]:
    op = spec.analysis.operation_filter
    valid = [o.value for o in OperationFilter]
    if op is not None and op not in valid:
        return [
            Violation(
                "analysis.operation_filter",
                f"unrecognized operation {op!r} (expected one of {', '.join(valid)})",
            )
        ]
    return []


def _check_mixed_distribution(spec: S3BenchSpec) -> list[Violation]:
    if spec.mode != BenchmarkMode.MIXED.value:
        return []

    violations = []
    weights = {
        name: _effective(spec, f"mixed_dist.{name}") for name in ("get", "stat", "put", "delete")
    }
    for name, weight in weights.items():
        if weight < 0:
            violations.append(
                Violation(f"mixed_dist.{name}", f"must not be negative, got {weight}")
            )
    if sum(w for w in weights.values() if w > 0) == 0:
        violations.append(Violation("mixed_dist", "at least one weight must be positive"))
    if weights["delete"] > weights["put"]:
        violations.append(
            Violation(
                "mixed_dist.delete",
                f"delete ({weights['delete']}) cannot exceed put ({weights['put']})",
            )
        )
    return violations


def _check_image(spec: S3BenchSpec) -> list[Violation]:
    if spec.image.name is not None and not spec.image.name.strip():
        return [Violation("image.name", "must not be empty")]
    return []


_CHECKS: tuple[Callable[[S3BenchSpec], list[Violation]], ...] = (
    _check_mode,
    _check_host,
    _check_image,
    _check_options,
    _check_durations,
    _check_objects,
    _check_auto_term,
    _check_analysis,
    _check_mixed_distribution,
)


# =============================================================================
# Public API
# =============================================================================


def validate_spec(spec: S3BenchSpec) -> list[Violation]:
    """Run every check against ``spec``.

    Cross-field rules are evaluated on the values the spec will have after
    defaulting, so a spec that validates here still validates once defaulted.

    Args:
        spec: Spec to check

    Returns:
        All violations found; empty when the spec is valid
    """
    violations: list[Violation] = []
    for check in _CHECKS:
        violations.extend(check(spec))
    if violations:
        logger.debug("Spec has %d violation(s)", len(violations))
    return violations


def validate_bench(bench: S3Bench) -> list[Violation]:
    """Validate resource metadata and spec together."""
    violations: list[Violation] = []
    name = bench.metadata.name
    if not name:
        violations.append(Violation("metadata.name", "is required"))
    elif len(name) > 63 or not _DNS1123_LABEL.match(name):
        violations.append(
            Violation("metadata.name", f"{name!r} is not a valid DNS-1123 label")
        )
    violations.extend(Violation(f"spec.{v.field}", v.message) for v in validate_spec(bench.spec))
    return violations


def ensure_valid(spec: S3BenchSpec) -> None:
    """Raise ValidationError listing every violation, if there are any."""
    violations = validate_spec(spec)
    if violations:
        raise ValidationError(violations)


def ensure_valid_bench(bench: S3Bench) -> None:
    """Raise ValidationError for invalid resource metadata or spec."""
    violations = validate_bench(bench)
    if violations:
        raise ValidationError(violations)
