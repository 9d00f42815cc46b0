"""s3bench configuration module."""

from .defaults import DEFAULT_IMAGE, DEFAULTS, apply_defaults, missing_defaults
from .loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    generate_example_manifest_yaml,
    load_manifest,
    parse_manifest,
    save_manifest,
)
from .schema import (
    BenchmarkMode,
    BenchmarkStatus,
    HostSelect,
    ImagePullPolicy,
    ImageSpec,
    MixedDistributionOptions,
    ObjectMeta,
    OperationFilter,
    PodConfigurationSpec,
    S3AnalysisOptions,
    S3AutoTermOptions,
    S3Bench,
    S3BenchOptions,
    S3BenchSpec,
    S3ObjectOptions,
    parse_duration,
    parse_size_to_bytes,
    parse_sync_start,
)
from .validator import (
    ValidationError,
    Violation,
    ensure_valid,
    ensure_valid_bench,
    validate_bench,
    validate_spec,
)

__all__ = [
    # Models
    "S3Bench",
    "S3BenchSpec",
    "S3BenchOptions",
    "S3ObjectOptions",
    "S3AutoTermOptions",
    "S3AnalysisOptions",
    "MixedDistributionOptions",
    "ImageSpec",
    "PodConfigurationSpec",
    "ObjectMeta",
    "BenchmarkStatus",
    # Enums
    "BenchmarkMode",
    "HostSelect",
    "ImagePullPolicy",
    "OperationFilter",
    # Defaults
    "DEFAULTS",
    "DEFAULT_IMAGE",
    "apply_defaults",
    "missing_defaults",
    # Validation
    "Violation",
    "validate_spec",
    "validate_bench",
    "ensure_valid",
    "ensure_valid_bench",
    # Loader functions
    "load_manifest",
    "parse_manifest",
    "save_manifest",
    "generate_example_manifest_yaml",
    # Helpers
    "parse_duration",
    "parse_size_to_bytes",
    "parse_sync_start",
    # Exceptions
    "ValidationError",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
]
