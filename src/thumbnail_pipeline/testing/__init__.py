"""Testing utilities and fakes for the thumbnail pipeline."""

from .fakes import (
    FakeEnvironment,
    FakeHTTPSession,
    FakeLogger,
    FakeS3Client,
    FakeSQSClient,
    S3Bucket,
    S3Object,
    create_test_image,
    notification_body,
    s3_event,
    setup_test_environment,
)

__all__ = [
    "FakeEnvironment",
    "FakeHTTPSession",
    "FakeLogger",
    "FakeS3Client",
    "FakeSQSClient",
    "S3Bucket",
    "S3Object",
    "create_test_image",
    "notification_body",
    "s3_event",
    "setup_test_environment",
]
