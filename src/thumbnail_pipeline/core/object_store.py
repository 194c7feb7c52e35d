"""Bucket-bound access to the media and thumbnail object stores."""

from enum import Enum
from typing import Optional

from .error_handling import is_missing_object_error, with_s3_error_handling
from .exceptions import ConfigurationError, S3Error
from .logging_config import get_logger
from .protocols import S3ClientProtocol

PRESIGNED_URL_TTL_SECONDS = 5 * 60


class BucketKind(str, Enum):
    """Logical identity of a bucket."""

    MEDIA = "media"
    THUMBNAILS = "thumbnails"


class ObjectStore:
    """
    An S3 bucket with a fixed identity.

    The bucket is chosen when the store is constructed; none of the operations
    take a bucket argument, so a key can never be sent to the wrong bucket by a
    caller.
    """

    kind: BucketKind

    def __init__(
        self,
        s3_client: S3ClientProtocol,
        bucket: str,
        kind: Optional[BucketKind] = None,
        presign_ttl: int = PRESIGNED_URL_TTL_SECONDS,
    ):
        if not bucket:
            raise ConfigurationError("Object store requires a bucket name")

        fixed_kind = getattr(type(self), "kind", None)
        if kind is None:
            kind = fixed_kind
        if kind is None:
            raise ConfigurationError("Object store requires a bucket kind")
        if fixed_kind is not None and kind != fixed_kind:
            raise ConfigurationError(
                f"{type(self).__name__} is bound to {fixed_kind.value} buckets, "
                f"got {kind.value}"
            )

        self._s3_client = s3_client
        self.bucket = bucket
        self.kind = kind
        self.presign_ttl = presign_ttl

    def __repr__(self) -> str:
        return f"{type(self).__name__}(bucket={self.bucket!r}, kind={self.kind.value})"

    @with_s3_error_handling
    def put(self, key: str, content_type: str, body: bytes) -> None:
        """Upload ``body`` under ``key``."""
        self._s3_client.put_object(
            Bucket=self.bucket, Key=key, Body=body, ContentType=content_type
        )

    @with_s3_error_handling
    def get(self, key: str) -> bytes:
        """Download the object stored under ``key``."""
        response = self._s3_client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()

    def delete(self, key: str) -> bool:
        """
        Delete ``key`` from the bucket.

        Returns:
            False when the store reports the object as missing, True otherwise

        Raises:
            S3Error: For any other failure
        """
        try:
            self._delete(key)
        except S3Error as exc:
            if is_missing_object_error(exc):
                get_logger("object-store").debug(
                    f"s3://{self.bucket}/{key} already absent"
                )
                return False
            raise
        return True

    @with_s3_error_handling
    def _delete(self, key: str) -> None:
        self._s3_client.delete_object(Bucket=self.bucket, Key=key)

    @with_s3_error_handling
    def presigned_get_url(self, key: str, ttl: Optional[int] = None) -> str:
        """Return a time-limited URL to read ``key`` without credentials."""
        return self._s3_client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self.presign_ttl if ttl is None else ttl,
        )

    @with_s3_error_handling
    def presigned_put_url(
        self,
        key: str,
        content_type: Optional[str] = None,
        ttl: Optional[int] = None,
    ) -> str:
        """Return a time-limited URL to upload ``key`` without credentials."""
        params = {"Bucket": self.bucket, "Key": key}
        if content_type:
            params["ContentType"] = content_type
        return self._s3_client.generate_presigned_url(
            ClientMethod="put_object",
            Params=params,
            ExpiresIn=self.presign_ttl if ttl is None else ttl,
        )


class MediaStore(ObjectStore):
    """Store holding the uploaded source media."""

    kind = BucketKind.MEDIA


class ThumbnailStore(ObjectStore):
    """Store holding the derived thumbnails."""

    kind = BucketKind.THUMBNAILS
