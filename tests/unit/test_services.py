"""Unit tests for the thumbnail service."""

import io
from unittest.mock import Mock

import pytest
from PIL import Image

from thumbnail_pipeline.core.exceptions import ConfigurationError, TransformError
from thumbnail_pipeline.core.models import EventKind, WorkItem
from thumbnail_pipeline.core.object_store import MediaStore, ObjectStore, BucketKind, ThumbnailStore
from thumbnail_pipeline.core.services import ThumbnailService
from thumbnail_pipeline.testing.fakes import create_test_image, setup_test_environment


@pytest.fixture
def env():
    return setup_test_environment()


@pytest.fixture
def service(env, tmp_path):
    return ThumbnailService(
        media_store=MediaStore(env.s3_client, env.media_bucket),
        thumbnail_store=ThumbnailStore(env.s3_client, env.thumbnails_bucket),
        http_session=env.http_session,
        logger=env.logger,
        temp_dir=tmp_path,
    )


def created(key):
    return WorkItem(event_kind=EventKind.CREATED, object_key=key)


def removed(key):
    return WorkItem(event_kind=EventKind.REMOVED, object_key=key)


class TestThumbnailServiceConstruction:
    """Tests for bucket identity checks."""

    def test_swapped_stores_rejected(self, env):
        """Test passing the stores in the wrong order fails at construction."""
        media = MediaStore(env.s3_client, env.media_bucket)
        thumbs = ThumbnailStore(env.s3_client, env.thumbnails_bucket)

        with pytest.raises(ConfigurationError, match="media object store"):
            ThumbnailService(thumbs, media, env.http_session, env.logger)

    def test_generic_store_with_right_kind_accepted(self, env):
        """Test a plain ObjectStore is accepted when its kind matches."""
        ThumbnailService(
            ObjectStore(env.s3_client, env.media_bucket, BucketKind.MEDIA),
            ObjectStore(env.s3_client, env.thumbnails_bucket, BucketKind.THUMBNAILS),
            env.http_session,
            env.logger,
        )

    def test_non_store_rejected(self, env):
        """Test arbitrary objects are rejected."""
        with pytest.raises(ConfigurationError):
            ThumbnailService(
                Mock(),
                ThumbnailStore(env.s3_client, env.thumbnails_bucket),
                env.http_session,
                env.logger,
            )


class TestCreatedItems:
    """Tests for thumbnail creation."""

    def test_creates_jpeg_thumbnail_under_same_key(self, env, service):
        """Test a created item uploads a bounded JPEG under the same key."""
        service.process(created("photo1.jpg"))

        obj = env.thumbnails().get_object("photo1.jpg")
        assert obj is not None
        assert obj.content_type == "image/jpeg"
        with Image.open(io.BytesIO(obj.body)) as thumb:
            assert thumb.format == "JPEG"
            assert thumb.size == (300, 200)

    def test_portrait_image(self, env, service):
        """Test a portrait image is bounded by height."""
        service.process(created("photo2.jpg"))

        with Image.open(io.BytesIO(env.thumbnails().get_object("photo2.jpg").body)) as thumb:
            assert thumb.size == (160, 240)

    def test_png_source_reencoded_as_jpeg(self, env, service):
        """Test a transparent PNG source is re-encoded as JPEG."""
        service.process(created("logo.png"))

        obj = env.thumbnails().get_object("logo.png")
        with Image.open(io.BytesIO(obj.body)) as thumb:
            assert thumb.format == "JPEG"
            assert thumb.size == (240, 240)

    def test_arbitrary_dimensions_round_trip(self, env, service):
        """Test key abc123 with odd dimensions yields a bounded thumbnail."""
        env.media().add_object("abc123", create_test_image(1013, 457))

        service.process(created("abc123"))

        with Image.open(io.BytesIO(env.thumbnails().get_object("abc123").body)) as thumb:
            assert thumb.format == "JPEG"
            assert thumb.width <= 300 and thumb.height <= 240
            assert abs(thumb.width / thumb.height - 1013 / 457) < 0.05

    def test_uses_five_minute_presigned_url(self, env, service):
        """Test the download goes through a 5 minute presigned GET URL."""
        service.process(created("photo1.jpg"))

        presign = env.s3_client.presign_requests[0]
        assert presign["method"] == "get_object"
        assert presign["params"] == {"Bucket": "test-media", "Key": "photo1.jpg"}
        assert presign["expires_in"] == 300
        assert env.http_session.requests[0]["stream"] is True
        assert env.http_session.requests[0]["timeout"] is None

    def test_download_timeout_passed_through(self, env, tmp_path):
        """Test an explicit download timeout reaches the HTTP session."""
        service = ThumbnailService(
            MediaStore(env.s3_client, env.media_bucket),
            ThumbnailStore(env.s3_client, env.thumbnails_bucket),
            env.http_session,
            env.logger,
            temp_dir=tmp_path,
            download_timeout=7.5,
        )

        service.process(created("photo1.jpg"))

        assert env.http_session.requests[0]["timeout"] == 7.5

    def test_temp_file_removed_after_success(self, service, tmp_path):
        """Test no transient file is left behind."""
        service.process(created("photo1.jpg"))

        assert list(tmp_path.iterdir()) == []

    def test_nested_key_uses_flat_temp_file(self, env, service, tmp_path):
        """Test keys with separators are downloaded inside the temp dir."""
        env.media().add_object("users/7/../avatar.jpg", create_test_image(400, 400))

        service.process(created("users/7/../avatar.jpg"))

        assert env.thumbnails().get_object("users/7/../avatar.jpg") is not None
        assert list(tmp_path.iterdir()) == []

    def test_http_404_fails_download_stage(self, env, service, tmp_path):
        """Test a 404 download fails the item and leaves no temp file."""
        with pytest.raises(TransformError) as exc_info:
            service.process(created("missing.jpg"))

        assert exc_info.value.stage == "download"
        assert exc_info.value.object_key == "missing.jpg"
        assert "404" in str(exc_info.value)
        assert list(tmp_path.iterdir()) == []
        assert env.thumbnails().get_object("missing.jpg") is None

    def test_forced_status_fails(self, env, service):
        """Test server errors fail the download stage."""
        env.http_session.set_status("photo1.jpg", 503)

        with pytest.raises(TransformError, match="download"):
            service.process(created("photo1.jpg"))

    def test_connection_error_fails_download(self, env, service):
        """Test network errors are classified as download failures."""
        env.http_session.set_failure_mode(True)

        with pytest.raises(TransformError) as exc_info:
            service.process(created("photo1.jpg"))

        assert exc_info.value.stage == "download"

    def test_undecodable_media_fails_decode(self, env, service, tmp_path):
        """Test a non-image object fails at decode and is cleaned up."""
        with pytest.raises(TransformError) as exc_info:
            service.process(created("notes.txt"))

        assert exc_info.value.stage == "decode"
        assert list(tmp_path.iterdir()) == []

    def test_truncated_image_fails(self, env, service, tmp_path):
        """Test a truncated JPEG fails and is cleaned up."""
        env.media().add_object("broken.jpg", create_test_image(800, 600)[:200])

        with pytest.raises(TransformError):
            service.process(created("broken.jpg"))

        assert list(tmp_path.iterdir()) == []

    def test_presign_failure(self, env, service):
        """Test a presigning error fails the presign stage."""
        env.s3_client.set_failure_mode(True, operations=["generate_presigned_url"])

        with pytest.raises(TransformError) as exc_info:
            service.process(created("photo1.jpg"))

        assert exc_info.value.stage == "presign"
        assert env.http_session.requests == []

    def test_upload_failure_cleans_up(self, env, service, tmp_path):
        """Test an upload error fails the item and still removes the temp file."""
        env.s3_client.set_failure_mode(True, "S3 Service Error", operations=["put_object"])

        with pytest.raises(TransformError) as exc_info:
            service.process(created("photo1.jpg"))

        assert exc_info.value.stage == "upload"
        assert list(tmp_path.iterdir()) == []

    def test_failure_is_logged_with_key_and_stage(self, env, service):
        """Test failures are logged with their context."""
        with pytest.raises(TransformError):
            service.process(created("missing.jpg"))

        errors = env.logger.get_logs("ERROR")
        assert len(errors) == 1
        assert errors[0]["object_key"] == "missing.jpg"
        assert errors[0]["stage"] == "download"


class TestRemovedItems:
    """Tests for thumbnail removal."""

    def test_deletes_existing_thumbnail(self, env, service):
        """Test a removed item deletes the thumbnail."""
        env.thumbnails().add_object("photo1.jpg", b"thumb")

        service.process(removed("photo1.jpg"))

        assert env.thumbnails().get_object("photo1.jpg") is None

    def test_missing_thumbnail_is_success(self, env, service):
        """Test removing a thumbnail that never existed succeeds."""
        service.process(removed("never-processed.jpg"))
        service.process(removed("never-processed.jpg"))

    def test_media_bucket_untouched(self, env, service):
        """Test removal only affects the thumbnail bucket."""
        service.process(removed("photo1.jpg"))

        assert env.media().get_object("photo1.jpg") is not None

    def test_store_error_fails_delete_stage(self, env, service):
        """Test a delete error fails the item."""
        env.s3_client.set_failure_mode(True, operations=["delete_object"])

        with pytest.raises(TransformError) as exc_info:
            service.process(removed("photo1.jpg"))

        assert exc_info.value.stage == "delete"

    def test_no_such_key_error_tolerated(self, env, tmp_path):
        """Test a store reporting NoSuchKey on delete is treated as success."""
        from botocore.exceptions import ClientError

        s3 = Mock()
        s3.delete_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "gone"}}, "DeleteObject"
        )
        service = ThumbnailService(
            MediaStore(s3, "m"), ThumbnailStore(s3, "t"), env.http_session, env.logger
        )

        service.process(removed("gone.jpg"))

        s3.delete_object.assert_called_once_with(Bucket="t", Key="gone.jpg")
