"""Tests for core data models."""

import pytest
from pydantic import ValidationError

from thumbnail_pipeline.core.exceptions import ConfigurationError
from thumbnail_pipeline.core.models import (
    STORAGE_FIELDS,
    ConsumerConfig,
    EventKind,
    QueueMessage,
    TransformationOutcome,
    WorkItem,
)

REQUIRED_ENV = {
    "AWS_SQS_QUEUE": "thumbnail-events",
    "AWS_MEDIA_BUCKET": "media",
    "AWS_THUMBNAILS_BUCKET": "thumbnails",
    "AWS_REGION": "eu-west-1",
}


class TestWorkItem:
    """Tests for WorkItem model."""

    def test_work_item_creation(self):
        """Test creating a WorkItem."""
        item = WorkItem(event_kind=EventKind.CREATED, object_key="abc123")
        assert item.event_kind is EventKind.CREATED
        assert item.object_key == "abc123"

    def test_work_item_is_immutable(self):
        """Test WorkItem cannot be changed after construction."""
        item = WorkItem(event_kind=EventKind.CREATED, object_key="abc123")

        with pytest.raises(ValidationError):
            item.object_key = "other"

    def test_work_item_accepts_enum_value(self):
        """Test event kind can be given by value."""
        item = WorkItem(event_kind="removed", object_key="abc123")
        assert item.event_kind is EventKind.REMOVED

    def test_work_item_rejects_unknown_kind(self):
        """Test unknown event kinds are rejected."""
        with pytest.raises(ValidationError):
            WorkItem(event_kind="restored", object_key="abc123")

    def test_work_items_are_hashable_and_comparable(self):
        """Test equal items compare and hash equal."""
        a = WorkItem(event_kind=EventKind.CREATED, object_key="k")
        b = WorkItem(event_kind=EventKind.CREATED, object_key="k")
        assert a == b
        assert len({a, b}) == 1


class TestQueueMessage:
    """Tests for QueueMessage model."""

    def test_defaults(self):
        """Test all fields are optional."""
        message = QueueMessage()
        assert message.body is None
        assert message.receipt_token is None
        assert message.message_id is None


class TestTransformationOutcome:
    """Tests for TransformationOutcome model."""

    def test_default_is_failure(self):
        """Test outcomes start as failures."""
        outcome = TransformationOutcome(
            item=WorkItem(event_kind=EventKind.CREATED, object_key="k")
        )
        assert outcome.success is False
        assert outcome.error == ""
        assert outcome.stage == ""
        assert outcome.processing_time == 0.0


class TestConsumerConfig:
    """Tests for ConsumerConfig."""

    def test_defaults(self):
        """Test default values."""
        config = ConsumerConfig(
            queue_name="q", media_bucket="m", thumbnails_bucket="t", region="us-east-1"
        )
        assert config.wait_time_seconds == 20
        assert config.max_messages == 10
        assert config.download_timeout is None
        assert config.temp_dir is None
        assert config.profile is None
        assert config.debug is False

    @pytest.mark.parametrize("wait_time", [-1, 21])
    def test_wait_time_bounds(self, wait_time):
        """Test the long-poll wait is limited to the SQS range."""
        with pytest.raises(ValidationError):
            ConsumerConfig(
                queue_name="q",
                media_bucket="m",
                thumbnails_bucket="t",
                region="r",
                wait_time_seconds=wait_time,
            )

    def test_from_env_required_only(self):
        """Test loading the required variables."""
        config = ConsumerConfig.from_env(REQUIRED_ENV)

        assert config.queue_name == "thumbnail-events"
        assert config.media_bucket == "media"
        assert config.thumbnails_bucket == "thumbnails"
        assert config.region == "eu-west-1"
        assert config.wait_time_seconds == 20

    def test_from_env_optional_values(self):
        """Test optional variables are parsed."""
        env = {
            **REQUIRED_ENV,
            "AWS_PROFILE": "dev",
            "AWS_SQS_MAX_WAIT_TIME_IN_SEC": "5",
            "AWS_SQS_MAX_MESSAGES": "3",
            "THUMBNAIL_TEMP_DIR": "/var/tmp/thumbs",
            "DOWNLOAD_TIMEOUT_SECONDS": "12.5",
            "AWS_ENDPOINT_URL": "http://localhost:4566",
        }

        config = ConsumerConfig.from_env(env)

        assert config.profile == "dev"
        assert config.wait_time_seconds == 5
        assert config.max_messages == 3
        assert config.temp_dir == "/var/tmp/thumbs"
        assert config.download_timeout == 12.5
        assert config.endpoint_url == "http://localhost:4566"

    @pytest.mark.parametrize("missing", sorted(REQUIRED_ENV))
    def test_from_env_missing_variable(self, missing):
        """Test a missing required variable is named in the error."""
        env = {k: v for k, v in REQUIRED_ENV.items() if k != missing}

        with pytest.raises(ConfigurationError, match=missing):
            ConsumerConfig.from_env(env)

    def test_from_env_invalid_value(self):
        """Test an unparseable value is reported with its variable."""
        env = {**REQUIRED_ENV, "AWS_SQS_MAX_WAIT_TIME_IN_SEC": "soon"}

        with pytest.raises(ConfigurationError, match="AWS_SQS_MAX_WAIT_TIME_IN_SEC"):
            ConsumerConfig.from_env(env)

    def test_from_env_overrides_win(self):
        """Test explicit overrides take precedence, None overrides are ignored."""
        config = ConsumerConfig.from_env(
            REQUIRED_ENV, queue_name="override-queue", region=None, wait_time_seconds=1
        )

        assert config.queue_name == "override-queue"
        assert config.region == "eu-west-1"
        assert config.wait_time_seconds == 1

    def test_from_env_overrides_supply_required(self):
        """Test overrides can stand in for missing variables."""
        config = ConsumerConfig.from_env(
            {}, queue_name="q", media_bucket="m", thumbnails_bucket="t", region="r"
        )
        assert config.queue_name == "q"

    def test_from_env_empty_string_is_missing(self):
        """Test empty variables count as unset."""
        env = {**REQUIRED_ENV, "AWS_REGION": ""}

        with pytest.raises(ConfigurationError, match="AWS_REGION"):
            ConsumerConfig.from_env(env)

    def test_from_env_storage_only(self):
        """Test commands that never touch the queue do not need AWS_SQS_QUEUE."""
        env = {k: v for k, v in REQUIRED_ENV.items() if k != "AWS_SQS_QUEUE"}

        config = ConsumerConfig.from_env(env, required=STORAGE_FIELDS)

        assert config.queue_name is None
        assert config.media_bucket == "media"

    def test_from_env_storage_only_still_needs_buckets(self):
        """Test the storage settings stay required."""
        with pytest.raises(ConfigurationError, match="AWS_MEDIA_BUCKET"):
            ConsumerConfig.from_env(
                {"AWS_THUMBNAILS_BUCKET": "t", "AWS_REGION": "r"}, required=STORAGE_FIELDS
            )
