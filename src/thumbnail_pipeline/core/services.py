"""Thumbnail generation and removal for individual work items."""

import tempfile
import time
from pathlib import Path
from typing import Optional, Union

from .error_handling import transform_stage
from .exceptions import ConfigurationError, TransformError
from .image_utils import (
    THUMBNAIL_CONTENT_TYPE,
    encode_jpeg,
    load_image,
    make_thumbnail,
    temp_file_path,
)
from .models import EventKind, WorkItem
from .object_store import BucketKind, MediaStore, ObjectStore, ThumbnailStore
from .observability import LogContext
from .protocols import HttpSessionProtocol, LoggerProtocol

DOWNLOAD_CHUNK_SIZE = 64 * 1024


class ThumbnailService:
    """
    Turns work items into thumbnail writes and deletes.

    ``process`` raises TransformError on any failure and never retries; retry
    happens through queue redelivery.

    There is no per-item timeout unless ``download_timeout`` is given: a stalled
    download then blocks its message until the connection drops.
    """

    def __init__(
        self,
        media_store: MediaStore,
        thumbnail_store: ThumbnailStore,
        http_session: HttpSessionProtocol,
        logger: LoggerProtocol,
        temp_dir: Optional[Union[str, Path]] = None,
        download_timeout: Optional[float] = None,
    ):
        _require_kind(media_store, BucketKind.MEDIA, "media_store")
        _require_kind(thumbnail_store, BucketKind.THUMBNAILS, "thumbnail_store")

        self._media_store = media_store
        self._thumbnail_store = thumbnail_store
        self._http_session = http_session
        self._logger = logger
        self._temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self._download_timeout = download_timeout

    def process(self, item: WorkItem) -> None:
        """Apply a work item to the thumbnail store."""
        log_context = LogContext(
            operation="process_item", component="thumbnail_service"
        ).with_metadata(object_key=item.object_key, event=item.event_kind.value)

        start_time = time.time()
        try:
            if item.event_kind is EventKind.CREATED:
                self.create_thumbnail(item.object_key, log_context)
            else:
                self.delete_thumbnail(item.object_key, log_context)
        except TransformError as e:
            self._logger.error(
                "Work item failed",
                log_context.with_metadata(stage=e.stage, error=str(e.__cause__ or e)),
            )
            raise

        self._logger.info(
            "Work item completed",
            log_context,
            processing_time_ms=round((time.time() - start_time) * 1000, 1),
        )

    def create_thumbnail(self, key: str, log_context: Optional[LogContext] = None) -> None:
        """Download ``key`` from the media store and upload its thumbnail."""
        log_context = log_context or LogContext(component="thumbnail_service")
        self._logger.info("Creating thumbnail", log_context.with_operation("create"))

        with transform_stage(key, "presign"):
            url = self._media_store.presigned_get_url(key)

        temp_path = temp_file_path(self._temp_dir, key)
        try:
            with transform_stage(key, "download"):
                self._logger.debug(
                    "Downloading media",
                    log_context.with_operation("download").with_metadata(
                        temp_path=str(temp_path)
                    ),
                )
                self.download(url, temp_path)

            with transform_stage(key, "decode"):
                image = load_image(temp_path)

            with transform_stage(key, "encode"):
                thumbnail_bytes = encode_jpeg(make_thumbnail(image))

            with transform_stage(key, "upload"):
                self._logger.debug(
                    "Uploading thumbnail",
                    log_context.with_operation("upload").with_metadata(
                        size_bytes=len(thumbnail_bytes)
                    ),
                )
                self._thumbnail_store.put(key, THUMBNAIL_CONTENT_TYPE, thumbnail_bytes)
        finally:
            self._cleanup(temp_path, log_context)

    def delete_thumbnail(self, key: str, log_context: Optional[LogContext] = None) -> None:
        """Remove the thumbnail for ``key``; an absent thumbnail is not an error."""
        log_context = log_context or LogContext(component="thumbnail_service")
        self._logger.info("Deleting thumbnail", log_context.with_operation("delete"))

        with transform_stage(key, "delete"):
            existed = self._thumbnail_store.delete(key)

        if not existed:
            self._logger.debug("Thumbnail was already absent", log_context)

    def download(self, url: str, destination: Path) -> None:
        """
        Stream ``url`` into ``destination``.

        Raises:
            requests.HTTPError: For non-2xx responses (the file is not created)
        """
        with self._http_session.get(
            url, stream=True, timeout=self._download_timeout
        ) as response:
            response.raise_for_status()
            with open(destination, "wb") as fh:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)

    def _cleanup(self, temp_path: Path, log_context: LogContext) -> None:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as e:
            # The item's own outcome stands; a leftover file is only logged
            self._logger.warning(
                "Failed to remove temp file",
                log_context.with_metadata(temp_path=str(temp_path), error=str(e)),
            )


def _require_kind(store: ObjectStore, kind: BucketKind, name: str) -> None:
    if not isinstance(store, ObjectStore) or store.kind != kind:
        raise ConfigurationError(
            f"{name} must be a {kind.value} object store, got {store!r}"
        )
