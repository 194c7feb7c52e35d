"""Shared data models for the thumbnail pipeline."""

import os
from enum import Enum
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError


DEFAULT_WAIT_TIME_SECONDS = 20
DEFAULT_MAX_MESSAGES = 10


class EventKind(str, Enum):
    """Kind of storage lifecycle event a work item was derived from."""

    CREATED = "created"
    REMOVED = "removed"


class WorkItem(BaseModel):
    """One (event kind, object key) pair derived from a queue message."""

    model_config = ConfigDict(frozen=True)

    event_kind: EventKind
    object_key: str


class QueueMessage(BaseModel):
    """A message received from the queue, owned for one receive/ack cycle."""

    message_id: Optional[str] = None
    body: Optional[str] = None
    receipt_token: Optional[str] = None


class TransformationOutcome(BaseModel):
    """Result of processing a single work item."""

    item: WorkItem
    success: bool = False
    error: str = ""
    stage: str = ""
    processing_time: float = 0.0


_ENV_VARS = {
    "queue_name": "AWS_SQS_QUEUE",
    "media_bucket": "AWS_MEDIA_BUCKET",
    "thumbnails_bucket": "AWS_THUMBNAILS_BUCKET",
    "region": "AWS_REGION",
    "profile": "AWS_PROFILE",
    "endpoint_url": "AWS_ENDPOINT_URL",
    "wait_time_seconds": "AWS_SQS_MAX_WAIT_TIME_IN_SEC",
    "max_messages": "AWS_SQS_MAX_MESSAGES",
    "temp_dir": "THUMBNAIL_TEMP_DIR",
    "download_timeout": "DOWNLOAD_TIMEOUT_SECONDS",
}

STORAGE_FIELDS = ("media_bucket", "thumbnails_bucket", "region")
REQUIRED_FIELDS = ("queue_name",) + STORAGE_FIELDS


class ConsumerConfig(BaseModel):
    """Configuration for the queue consumer."""

    queue_name: Optional[str] = None
    media_bucket: str
    thumbnails_bucket: str
    region: str
    profile: Optional[str] = None
    endpoint_url: Optional[str] = None
    wait_time_seconds: int = Field(default=DEFAULT_WAIT_TIME_SECONDS, ge=0, le=20)
    max_messages: int = Field(default=DEFAULT_MAX_MESSAGES, ge=1, le=10)
    temp_dir: Optional[str] = None
    download_timeout: Optional[float] = Field(default=None, gt=0)
    debug: bool = False

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        required: Sequence[str] = REQUIRED_FIELDS,
        **overrides,
    ) -> "ConsumerConfig":
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)
            required: Fields that must be set; commands that never touch the
                queue pass ``STORAGE_FIELDS``
            **overrides: Field values that take precedence over the environment,
                ``None`` values are ignored

        Returns:
            Validated configuration

        Raises:
            ConfigurationError: If a required variable is missing or a value
                is invalid

        Environment Variables:
            AWS_SQS_QUEUE, AWS_MEDIA_BUCKET, AWS_THUMBNAILS_BUCKET, AWS_REGION:
                required unless given as overrides
            AWS_PROFILE, AWS_ENDPOINT_URL, AWS_SQS_MAX_WAIT_TIME_IN_SEC,
            AWS_SQS_MAX_MESSAGES, THUMBNAIL_TEMP_DIR, DOWNLOAD_TIMEOUT_SECONDS:
                optional
        """
        env = os.environ if environ is None else environ

        values = {}
        for field_name, var_name in _ENV_VARS.items():
            raw = env.get(var_name)
            if raw is not None and raw != "":
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})

        for field_name in required:
            if field_name not in values:
                raise ConfigurationError(
                    f'Config variable "{_ENV_VARS[field_name]}" is required, '
                    "but was not found"
                )

        try:
            return cls(**values)
        except ValidationError as exc:
            names = ", ".join(
                _ENV_VARS.get(str(err["loc"][0]), str(err["loc"][0]))
                for err in exc.errors()
            )
            raise ConfigurationError(f"Invalid configuration for {names}: {exc}") from exc
