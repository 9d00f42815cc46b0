"""Tests for spec and resource validation."""

from __future__ import annotations

import pytest

from s3bench.config import (
    ValidationError,
    Violation,
    apply_defaults,
    ensure_valid,
    ensure_valid_bench,
    validate_bench,
    validate_spec,
)
from tests.conftest import make_bench, make_spec


def _fields(violations: list[Violation]) -> list[str]:
    return [v.field for v in violations]


class TestRequiredFields:
    def test_minimal_spec_is_valid(self):
        assert validate_spec(make_spec()) == []

    def test_missing_mode(self):
        assert _fields(validate_spec(make_spec(mode=""))) == ["mode"]

    def test_unknown_mode(self):
        violations = validate_spec(make_spec(mode="list"))
        assert _fields(violations) == ["mode"]
        assert "list" in violations[0].message

    def test_missing_host(self):
        assert _fields(validate_spec(make_spec(host=""))) == ["host"]
        assert _fields(validate_spec(make_spec(host="  "))) == ["host"]


class TestHost:
    @pytest.mark.parametrize(
        "host",
        [
            "127.0.0.1:9000",
            "minio.minio.svc.cluster.local:443",
            "a:9000,b:9000",
            "[::1]:9000",
        ],
    )
    def test_valid(self, host):
        assert validate_spec(make_spec(host=host)) == []

    @pytest.mark.parametrize(
        "host",
        [
            "minio",
            "minio:",
            ":9000",
            "minio:http",
            "minio:0",
            "minio:65536",
            "minio:²",
            "minio:９０００",
            "::1:9000",
            "a:9000,,b:9000",
        ],
    )
    def test_invalid(self, host):
        assert "host" in _fields(validate_spec(make_spec(host=host)))

    def test_each_bad_element_reported(self):
        violations = validate_spec(make_spec(host="a,b:1,c"))
        assert _fields(violations) == ["host", "host"]


class TestOptions:
    def test_concurrent_must_be_positive(self):
        assert _fields(validate_spec(make_spec(options={"concurrent": 0}))) == [
            "options.concurrent"
        ]

    def test_host_select(self):
        assert validate_spec(make_spec(options={"host_select": "roundrobin"})) == []
        assert _fields(validate_spec(make_spec(options={"host_select": "random"}))) == [
            "options.host_select"
        ]

    def test_bucket_name(self):
        assert validate_spec(make_spec(options={"bucket": "b"})) == []
        assert _fields(validate_spec(make_spec(options={"bucket": "a/b"}))) == ["options.bucket"]

    def test_sync_start(self):
        assert validate_spec(make_spec(options={"sync_start": "14:00"})) == []
        assert _fields(validate_spec(make_spec(options={"sync_start": "2pm"}))) == [
            "options.sync_start"
        ]

    def test_credentials_given_together(self):
        assert _fields(validate_spec(make_spec(options={"access_key": "ak"}))) == [
            "options.secret_key"
        ]
        assert _fields(validate_spec(make_spec(options={"secret_key": "sk"}))) == [
            "options.access_key"
        ]

    def test_empty_image_name(self):
        assert _fields(validate_spec(make_spec(image={"name": " "}))) == ["image.name"]

    def test_empty_strings_are_unset(self):
        spec = make_spec(
            mode="mixed",
            image={"name": ""},
            options={"sync_start": "", "bucket": "", "duration": "", "host_select": ""},
            objects={"size": ""},
            auto_term={"percent": "", "duration": ""},
            analysis={"operation_filter": "", "skip": ""},
        )
        assert validate_spec(spec) == []


class TestDurationsAndObjects:
    @pytest.mark.parametrize(
        "path,section,key",
        [
            ("options.duration", "options", "duration"),
            ("auto_term.duration", "auto_term", "duration"),
            ("analysis.duration", "analysis", "duration"),
            ("analysis.skip", "analysis", "skip"),
        ],
    )
    def test_invalid_duration(self, path, section, key):
        violations = validate_spec(make_spec(**{section: {key: "five minutes"}}))
        assert _fields(violations) == [path]

    def test_valid_durations(self):
        spec = make_spec(options={"duration": "1m30s"}, analysis={"skip": "0", "duration": "500ms"})
        assert validate_spec(spec) == []

    def test_object_size(self):
        assert validate_spec(make_spec(objects={"size": "4096"})) == []
        assert _fields(validate_spec(make_spec(objects={"size": "big"}))) == ["objects.size"]
        assert _fields(validate_spec(make_spec(objects={"size": "0KiB"}))) == ["objects.size"]

    def test_object_count(self):
        assert _fields(validate_spec(make_spec(objects={"count": -1}))) == ["objects.count"]

    @pytest.mark.parametrize("percent", ["0", "100.5", "abc"])
    def test_auto_term_percent_invalid(self, percent):
        violations = validate_spec(make_spec(auto_term={"enabled": True, "percent": percent}))
        assert _fields(violations) == ["auto_term.percent"]

    def test_operation_filter(self):
        assert validate_spec(make_spec(analysis={"operation_filter": "GET"})) == []
        assert _fields(validate_spec(make_spec(analysis={"operation_filter": "LIST"}))) == [
            "analysis.operation_filter"
        ]


class TestMixedDistribution:
    """Cross-field rules that only apply in mixed mode."""

    def test_defaults_are_valid(self):
        assert validate_spec(make_spec(mode="mixed")) == []

    def test_delete_exceeds_put(self):
        violations = validate_spec(make_spec(mode="mixed", mixed_dist={"put": 5, "delete": 10}))
        assert _fields(violations) == ["mixed_dist.delete"]

    def test_delete_exceeds_default_put(self):
        # put defaults to 15
        violations = validate_spec(make_spec(mode="mixed", mixed_dist={"delete": 20}))
        assert _fields(violations) == ["mixed_dist.delete"]

    def test_delete_equal_to_put(self):
        assert validate_spec(make_spec(mode="mixed", mixed_dist={"put": 10, "delete": 10})) == []

    def test_negative_weight(self):
        violations = validate_spec(make_spec(mode="mixed", mixed_dist={"stat": -1}))
        assert _fields(violations) == ["mixed_dist.stat"]

    def test_all_zero(self):
        violations = validate_spec(
            make_spec(mode="mixed", mixed_dist={"get": 0, "stat": 0, "put": 0, "delete": 0})
        )
        assert _fields(violations) == ["mixed_dist"]

    def test_ignored_outside_mixed_mode(self):
        assert validate_spec(make_spec(mode="put", mixed_dist={"put": 1, "delete": 50})) == []


class TestExhaustive:
    def test_all_violations_reported(self):
        spec = make_spec(
            mode="scan",
            host="nope",
            options={"concurrent": 0, "duration": "forever"},
            objects={"size": "huge"},
        )
        assert _fields(validate_spec(spec)) == [
            "mode",
            "host",
            "options.concurrent",
            "options.duration",
            "objects.size",
        ]

    def test_validation_does_not_mutate(self):
        spec = make_spec(mode="mixed", mixed_dist={"put": 1, "delete": 2})
        before = spec.model_dump()
        validate_spec(spec)
        assert spec.model_dump() == before

    def test_ensure_valid_raises_with_every_violation(self):
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid(make_spec(mode="", host=""))
        assert exc_info.value.fields == ["mode", "host"]
        assert "mode: is required" in str(exc_info.value)

    def test_ensure_valid_passes(self):
        ensure_valid(apply_defaults(make_spec()))


class TestValidateBench:
    def test_valid(self):
        assert validate_bench(make_bench()) == []

    @pytest.mark.parametrize("name", ["", "Bench", "bench_1", "-bench", "b" * 64])
    def test_invalid_name(self, name):
        assert _fields(validate_bench(make_bench(name=name))) == ["metadata.name"]

    def test_spec_violations_prefixed(self):
        assert _fields(validate_bench(make_bench(mode="nope"))) == ["spec.mode"]

    def test_ensure_valid_bench(self):
        with pytest.raises(ValidationError):
            ensure_valid_bench(make_bench(name="Bad_Name"))
