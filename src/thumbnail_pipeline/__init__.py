"""Queue-driven thumbnail generation for S3 media."""

__version__ = "0.1.0"
