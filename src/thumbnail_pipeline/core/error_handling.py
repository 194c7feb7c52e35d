# src/thumbnail_pipeline/core/error_handling.py

import functools
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import QueueTransportError, S3Error, TransformError

MISSING_OBJECT_ERROR_CODES = ("NoSuchKey", "404", "NotFound")


def client_error_code(exc: BaseException) -> Optional[str]:
    """Return the AWS error code carried by a botocore ClientError, if any."""
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def is_missing_object_error(exc: BaseException) -> bool:
    """True when the exception (or its cause) reports a missing S3 object."""
    if isinstance(exc, S3Error) and exc.__cause__ is not None:
        exc = exc.__cause__
    return client_error_code(exc) in MISSING_OBJECT_ERROR_CODES


def with_s3_error_handling(func):
    """
    A decorator for ObjectStore methods that turns botocore failures into S3Error.

    The wrapped method must take the object key as its first positional argument
    after ``self``; the store's bucket name is read from ``self.bucket``.
    """
    @functools.wraps(func)
    def wrapper(self, key, *args, **kwargs):
        try:
            return func(self, key, *args, **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger = logging.getLogger(func.__module__ + '.' + func.__name__)
            logger.debug(f"S3 '{func.__name__}' failed for s3://{self.bucket}/{key}: {e}")
            raise S3Error(
                f"S3 operation '{func.__name__}' failed for s3://{self.bucket}/{key}: {e}",
                bucket=self.bucket,
                key=key,
            ) from e
    return wrapper


def with_queue_error_handling(func):
    """
    A decorator for queue methods that turns botocore failures into QueueTransportError.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger = logging.getLogger(func.__module__ + '.' + func.__name__)
            logger.error(f"Queue operation '{func.__name__}' failed: {e}", exc_info=True)
            raise QueueTransportError(f"Queue operation '{func.__name__}' failed: {e}") from e
    return wrapper


@contextmanager
def transform_stage(object_key: str, stage: str) -> Iterator[None]:
    """
    Run one stage of a work item, classifying any failure as TransformError.

    Errors that already are TransformError pass through untouched so the
    innermost stage wins.
    """
    try:
        yield
    except TransformError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise TransformError(object_key, stage, str(exc) or type(exc).__name__) from exc


class BatchOperationContextManager:
    """
    Context manager for the work items of one queue message, collecting
    failures and summarizing them on exit.
    """
    def __init__(self, operation_name: str = "Batch Operation", logger: Any = None):
        self.operation_name = operation_name
        self.errors = []
        self.logger = logger or logging.getLogger(
            self.__class__.__module__ + '.' + self.__class__.__name__
        )

    def __enter__(self):
        self.logger.debug(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i+1}/{len(self.errors)} for item "
                    f"'{error_detail['item']}': {error_detail['error']}"
                )
        elif exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}"
            )
        else:
            self.logger.debug(f"{self.operation_name} completed successfully.")

        # Never suppress: transport errors raised inside the block must escape
        return False

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """
        Report a failure for a specific item.

        Args:
            error_message: The error message or exception string.
            item_identifier: The object key of the item that failed.
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
