"""Custom exceptions for the thumbnail pipeline."""

from __future__ import annotations


class ThumbnailPipelineError(Exception):
    """Base exception for all thumbnail pipeline errors."""


class S3Error(ThumbnailPipelineError):
    """Error raised for S3 related failures."""

    def __init__(self, message: str, bucket: str = "", key: str = "") -> None:
        super().__init__(message)
        self.bucket = bucket
        self.key = key


class ConfigurationError(ThumbnailPipelineError):
    """Error raised for invalid configuration options."""


class TransformError(ThumbnailPipelineError):
    """Error raised when processing a single work item fails at some stage."""

    def __init__(self, object_key: str, stage: str, message: str) -> None:
        super().__init__(f"[{stage}] {object_key}: {message}")
        self.object_key = object_key
        self.stage = stage


class QueueTransportError(ThumbnailPipelineError):
    """Error raised when the queue cannot be reached; fatal for the consumer."""


class QueueNotFoundError(QueueTransportError):
    """Error raised when no queue matches the configured name."""
