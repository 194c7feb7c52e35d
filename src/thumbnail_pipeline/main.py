"""Main module for the thumbnail pipeline CLI."""

import argparse
import json
import signal
import sys
import threading
from typing import List, Optional, Sequence

from . import __version__
from .core import (
    ConfigurationError,
    ConsumerConfig,
    QueueTransportError,
    S3Error,
    get_logger,
    parse_notification,
)
from .core.factories import AWSClientFactory, ConsumerFactory, StoreFactory
from .core.models import REQUIRED_FIELDS, STORAGE_FIELDS


def build_parser() -> argparse.ArgumentParser:
    """Build the ``thumbnail-pipeline`` argument parser."""
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="thumbnail-pipeline",
        description="Thumbnail Pipeline - SQS driven S3 thumbnail generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Consume the queue configured through AWS_* environment variables
  thumbnail-pipeline consume

  # Process a single batch with a short poll and debug logging
  thumbnail-pipeline consume --once --wait-time 1 --debug

  # Show the work items a notification produces
  thumbnail-pipeline parse event.json

  # Presign an upload URL for the media bucket
  thumbnail-pipeline presign put photo1.jpg --content-type image/jpeg
        """,
    )

    subparsers: argparse._SubParsersAction = parser.add_subparsers(
        dest="command", help="Available commands"
    )

    consume_parser = subparsers.add_parser(
        "consume", help="Consume S3 notifications and maintain thumbnails"
    )
    _add_aws_arguments(consume_parser)
    consume_parser.add_argument(
        "--wait-time",
        type=int,
        default=None,
        help="Long-poll wait in seconds, 0-20 (default: AWS_SQS_MAX_WAIT_TIME_IN_SEC or 20)",
    )
    consume_parser.add_argument(
        "--max-messages",
        type=int,
        default=None,
        help="Messages per receive, 1-10 (default: AWS_SQS_MAX_MESSAGES or 10)",
    )
    consume_parser.add_argument(
        "--download-timeout",
        type=float,
        default=None,
        help="Seconds before a stalled media download fails (default: no timeout)",
    )
    consume_parser.add_argument(
        "--once", action="store_true", help="Handle a single receive and exit"
    )
    consume_parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )

    parse_parser = subparsers.add_parser(
        "parse", help="Print the work items produced by a notification payload"
    )
    parse_parser.add_argument(
        "payload", help="Path to a JSON notification, or '-' for stdin"
    )

    presign_parser = subparsers.add_parser(
        "presign", help="Print a presigned URL for a media or thumbnail object"
    )
    presign_parser.add_argument("method", choices=["get", "put"])
    presign_parser.add_argument("key", help="Object key")
    presign_parser.add_argument(
        "--bucket",
        choices=["media", "thumbnails"],
        default="media",
        help="Which bucket the key belongs to (default: media)",
    )
    presign_parser.add_argument(
        "--content-type", default=None, help="Content type bound into PUT URLs"
    )
    presign_parser.add_argument(
        "--ttl", type=int, default=None, help="Validity in seconds (default: 300)"
    )
    _add_aws_arguments(presign_parser)

    subparsers.add_parser("version", help="Show version information")

    return parser


def _add_aws_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--queue", default=None, help="SQS queue name (AWS_SQS_QUEUE)")
    parser.add_argument(
        "--media-bucket", default=None, help="Source media bucket (AWS_MEDIA_BUCKET)"
    )
    parser.add_argument(
        "--thumbnails-bucket",
        default=None,
        help="Thumbnail bucket (AWS_THUMBNAILS_BUCKET)",
    )
    parser.add_argument("--region", default=None, help="AWS region (AWS_REGION)")
    parser.add_argument("--profile", default=None, help="AWS profile (AWS_PROFILE)")
    parser.add_argument(
        "--endpoint-url", default=None, help="Custom AWS endpoint (AWS_ENDPOINT_URL)"
    )


def load_config(
    args: argparse.Namespace, required: Sequence[str] = REQUIRED_FIELDS
) -> ConsumerConfig:
    """Merge environment configuration with command-line overrides."""
    return ConsumerConfig.from_env(
        required=required,
        queue_name=args.queue,
        media_bucket=args.media_bucket,
        thumbnails_bucket=args.thumbnails_bucket,
        region=args.region,
        profile=args.profile,
        endpoint_url=args.endpoint_url,
        wait_time_seconds=getattr(args, "wait_time", None),
        max_messages=getattr(args, "max_messages", None),
        download_timeout=getattr(args, "download_timeout", None),
        debug=getattr(args, "debug", None) or None,
    )


def run_consume(args: argparse.Namespace) -> int:
    """
    Run the consumer until it is signalled to stop.

    SIGINT/SIGTERM request a stop after the in-flight batch; the process then
    exits with 0. Queue transport and configuration errors exit with 1.
    """
    logger = get_logger("cli")

    try:
        config = load_config(args)
        consumer = ConsumerFactory.create_consumer(config)
    except (ConfigurationError, QueueTransportError) as e:
        logger.critical(f"Unable to start consumer: {e}")
        return 1

    stop_event = threading.Event()

    def request_stop(signum, _frame):
        logger.warning(f"Received signal {signum}, stopping after current batch")
        stop_event.set()

    signal.signal(signal.SIGINT, request_stop)
    signal.signal(signal.SIGTERM, request_stop)

    try:
        if args.once:
            consumer.poll_once(stop_event)
        else:
            consumer.run(stop_event)
    except QueueTransportError as e:
        logger.critical(f"Queue transport failed, exiting: {e}", exc_info=True)
        return 1

    return 0


def run_parse(args: argparse.Namespace) -> int:
    """Print one JSON object per work item."""
    if args.payload == "-":
        payload = sys.stdin.read()
    else:
        with open(args.payload, "r", encoding="utf-8") as fh:
            payload = fh.read()

    for item in parse_notification(payload):
        print(json.dumps(item.model_dump(mode="json")))
    return 0


def run_presign(args: argparse.Namespace) -> int:
    """Print a presigned GET or PUT URL."""
    logger = get_logger("cli")
    try:
        config = load_config(args, required=STORAGE_FIELDS)
    except ConfigurationError as e:
        logger.critical(str(e))
        return 1

    s3_client = AWSClientFactory(config).create_s3_client()
    if args.bucket == "media":
        store = StoreFactory.create_media_store(s3_client, config)
    else:
        store = StoreFactory.create_thumbnail_store(s3_client, config)

    try:
        if args.method == "get":
            url = store.presigned_get_url(args.key, ttl=args.ttl)
        else:
            url = store.presigned_put_url(
                args.key, content_type=args.content_type, ttl=args.ttl
            )
    except S3Error as e:
        logger.error(f"Presigning failed: {e}")
        return 1

    print(url)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``thumbnail-pipeline`` command."""
    parser = build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.command == "consume":
        sys.exit(run_consume(args))

    elif args.command == "parse":
        sys.exit(run_parse(args))

    elif args.command == "presign":
        sys.exit(run_presign(args))

    elif args.command == "version":
        print("Thumbnail Pipeline CLI")
        print(f"Version {__version__}")
        print("SQS driven S3 thumbnail generation")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
