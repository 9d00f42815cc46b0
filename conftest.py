"""Pytest configuration for s3bench."""

# Prevent collection from source tree
collect_ignore = ["src"]
