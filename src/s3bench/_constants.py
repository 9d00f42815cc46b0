"""Shared constants for s3bench."""

# S3Bench custom resource coordinates
API_GROUP = "perf.kubestone.xridge.io"
API_VERSION = "v1alpha1"
KIND = "S3Bench"
PLURAL = "s3benches"

# Label stamped on every object created for a benchmark run
MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
MANAGED_BY = "s3bench"
INSTANCE_LABEL = "app.kubernetes.io/instance"

# Environment variables warp reads its credentials from. Credentials are
# never passed on the command line.
ACCESS_KEY_ENV = "WARP_ACCESS_KEY"
SECRET_KEY_ENV = "WARP_SECRET_KEY"

# Keys inside the generated credentials Secret
ACCESS_KEY_SECRET_KEY = "access_key"
SECRET_KEY_SECRET_KEY = "secret_key"

# Working directory for benchmark/analysis output files
OUTPUT_VOLUME_NAME = "warp-output"
OUTPUT_MOUNT_PATH = "/output"

# Name of the benchmark container inside the Job pod
CONTAINER_NAME = "warp"
