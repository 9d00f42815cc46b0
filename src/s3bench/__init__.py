"""s3bench -- S3 object-storage benchmark jobs for Kubernetes."""

__version__ = "0.1.0"
