"""Core utilities and shared components for the thumbnail pipeline."""

from .logging_config import get_logger, setup_logger
from .exceptions import (
    ThumbnailPipelineError,
    S3Error,
    ConfigurationError,
    TransformError,
    QueueTransportError,
    QueueNotFoundError,
)
from .models import (
    ConsumerConfig,
    EventKind,
    QueueMessage,
    TransformationOutcome,
    WorkItem,
)
from .notifications import parse_notification
from .object_store import BucketKind, MediaStore, ObjectStore, ThumbnailStore
from .queue import SQSQueue
from .services import ThumbnailService
from .consumer import QueueConsumer

__all__ = [
    "ConsumerConfig",
    "EventKind",
    "WorkItem",
    "QueueMessage",
    "TransformationOutcome",
    "parse_notification",
    "BucketKind",
    "ObjectStore",
    "MediaStore",
    "ThumbnailStore",
    "SQSQueue",
    "ThumbnailService",
    "QueueConsumer",
    "setup_logger",
    "get_logger",
    "ThumbnailPipelineError",
    "S3Error",
    "ConfigurationError",
    "TransformError",
    "QueueTransportError",
    "QueueNotFoundError",
]
