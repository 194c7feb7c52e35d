"""Factory classes for creating configured service instances."""

from typing import Any, Optional

import boto3
import requests

from .consumer import QueueConsumer
from .exceptions import ConfigurationError
from .models import ConsumerConfig
from .object_store import MediaStore, ThumbnailStore
from .observability import MetricsCollector, StructuredLogger
from .protocols import (
    HttpSessionProtocol,
    LoggerProtocol,
    S3ClientProtocol,
    SQSClientProtocol,
)
from .queue import SQSQueue
from .services import ThumbnailService


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, debug: bool = False) -> LoggerProtocol:
        """Create a structured logger; ``debug`` forces DEBUG level."""
        return StructuredLogger(name, level="DEBUG" if debug else None)


class AWSClientFactory:
    """Factory for boto3 clients sharing one session."""

    def __init__(self, config: ConsumerConfig):
        self._config = config
        self._session = boto3.Session(
            profile_name=config.profile, region_name=config.region
        )

    def _client(self, service_name: str, **kwargs: Any) -> Any:
        if self._config.endpoint_url:
            kwargs.setdefault("endpoint_url", self._config.endpoint_url)
        return self._session.client(service_name, **kwargs)

    def create_s3_client(self, **kwargs: Any) -> S3ClientProtocol:
        """Create S3 client with optional configuration."""
        return self._client("s3", **kwargs)  # type: ignore

    def create_sqs_client(self, **kwargs: Any) -> SQSClientProtocol:
        """Create SQS client with optional configuration."""
        return self._client("sqs", **kwargs)  # type: ignore


class StoreFactory:
    """Factory for the bucket-bound object stores."""

    @staticmethod
    def create_media_store(s3_client: S3ClientProtocol, config: ConsumerConfig) -> MediaStore:
        return MediaStore(s3_client, config.media_bucket)

    @staticmethod
    def create_thumbnail_store(
        s3_client: S3ClientProtocol, config: ConsumerConfig
    ) -> ThumbnailStore:
        return ThumbnailStore(s3_client, config.thumbnails_bucket)


class ConsumerFactory:
    """Factory for creating the complete queue consumer."""

    @staticmethod
    def create_consumer(
        config: ConsumerConfig,
        s3_client: Optional[S3ClientProtocol] = None,
        sqs_client: Optional[SQSClientProtocol] = None,
        http_session: Optional[HttpSessionProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> QueueConsumer:
        """
        Create a fully wired consumer.

        Clients that are not provided are built from ``config``; tests pass
        fakes for all of them.

        Raises:
            ConfigurationError: If no queue name is configured
            QueueNotFoundError: If the configured queue does not exist
        """
        if s3_client is None or sqs_client is None:
            aws = AWSClientFactory(config)
            s3_client = s3_client or aws.create_s3_client()
            sqs_client = sqs_client or aws.create_sqs_client()

        if http_session is None:
            http_session = requests.Session()

        if logger is None:
            logger = LoggerFactory.create_logger("thumbnail-pipeline", debug=config.debug)

        if metrics_collector is None:
            metrics_collector = MetricsCollector()

        service = ThumbnailService(
            media_store=StoreFactory.create_media_store(s3_client, config),
            thumbnail_store=StoreFactory.create_thumbnail_store(s3_client, config),
            http_session=http_session,
            logger=logger,
            temp_dir=config.temp_dir,
            download_timeout=config.download_timeout,
        )
        if not config.queue_name:
            raise ConfigurationError("A queue name is required to consume notifications")
        queue = SQSQueue.from_name(sqs_client, config.queue_name)

        return QueueConsumer(
            queue=queue,
            processor=service,
            logger=logger,
            wait_time_seconds=config.wait_time_seconds,
            max_messages=config.max_messages,
            metrics_collector=metrics_collector,
        )
