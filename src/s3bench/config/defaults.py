"""Documented defaults for S3Bench specs and the defaulting pass.

Every default lives in the single read-only ``DEFAULTS`` table, keyed by the
dotted path of the field it fills. ``apply_defaults`` is the only consumer.
"""

from __future__ import annotations

from collections import defaultdict
from types import MappingProxyType
from typing import Any

from .schema import ImagePullPolicy, S3BenchSpec

DEFAULT_IMAGE = "minio/warp:v0.7.11"

DEFAULTS: MappingProxyType[str, Any] = MappingProxyType(
    {
        "image.name": DEFAULT_IMAGE,
        "image.pull_policy": ImagePullPolicy.IF_NOT_PRESENT,
        "options.bucket": "warp-benchmark-bucket",
        "options.host_select": "weighed",
        "options.concurrent": 6,
        "options.duration": "5m0s",
        "objects.count": 2500,
        "objects.size": "10MiB",
        "objects.generator": "random",
        "auto_term.duration": "10s",
        "auto_term.percent": "7.5",
        "analysis.duration": "1s",
        "analysis.skip": "0s",
        # delete <= put holds for the defaults
        "mixed_dist.get": 45,
        "mixed_dist.stat": 30,
        "mixed_dist.put": 15,
        "mixed_dist.delete": 10,
    }
)


def _by_section() -> dict[str, dict[str, Any]]:
    sections: dict[str, dict[str, Any]] = defaultdict(dict)
    for path, value in DEFAULTS.items():
        section, field_name = path.split(".", 1)
        sections[section][field_name] = value
    return sections


def apply_defaults(spec: S3BenchSpec) -> S3BenchSpec:
    """Return a copy of ``spec`` with every unset optional field filled.

    Only fields that are ``None`` are touched, so applying the defaults twice
    gives the same result as applying them once. ``mode`` and ``host`` are
    never changed.

    Args:
        spec: Spec as submitted

    Returns:
        New spec with defaults applied
    """
    updates: dict[str, Any] = {}
    for section, fields in _by_section().items():
        current = getattr(spec, section)
        missing = {name: value for name, value in fields.items() if getattr(current, name) is None}
        if missing:
            updates[section] = current.model_copy(update=missing)

    if not updates:
        return spec
    return spec.model_copy(update=updates)


def missing_defaults(spec: S3BenchSpec) -> list[str]:
    """List the dotted paths of default-bearing fields that are still unset."""
    missing = []
    for path in DEFAULTS:
        section, field_name = path.split(".", 1)
        if getattr(getattr(spec, section), field_name) is None:
            missing.append(path)
    return missing
