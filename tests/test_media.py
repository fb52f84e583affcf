"""
Tests for media uploads and object storage helpers.
"""
import io
from unittest import mock

import pytest
from botocore.exceptions import ClientError
from django.core.exceptions import PermissionDenied
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from inkpress.models import Media
from inkpress.services import media as media_service
from inkpress.storage import build_key, has_s3_config, object_url, sanitize_filename

S3 = {
    "s3_endpoint": "https://s3.example.com/",
    "s3_region": "auto",
    "s3_bucket": "media",
    "s3_access_key": "AKIA",
    "s3_secret_key": "secret",
}


@pytest.fixture
def storage_configured(site_settings):
    site_settings.s3_endpoint = S3["s3_endpoint"]
    site_settings.s3_region = S3["s3_region"]
    site_settings.s3_bucket = S3["s3_bucket"]
    site_settings.set_secret("s3_access_key", S3["s3_access_key"])
    site_settings.set_secret("s3_secret_key", S3["s3_secret_key"])
    site_settings.save()
    return site_settings


@pytest.fixture
def s3_client():
    client = mock.Mock()
    with mock.patch("inkpress.storage.boto3.client", return_value=client) as factory:
        client.factory = factory
        yield client


def png_upload(name="photo.png", size=(40, 20)):
    buffer = io.BytesIO()
    Image.new("RGB", size, "red").save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


class TestStorageHelpers:
    def test_has_s3_config(self):
        assert has_s3_config(S3)
        assert not has_s3_config(dict(S3, s3_bucket=""))

    def test_sanitize_filename(self):
        assert sanitize_filename("my photo (1).jpg") == "my_photo__1_.jpg"

    def test_build_key(self):
        assert build_key("a b.png", now=1700000000.5) == "uploads/1700000000500-a_b.png"

    def test_object_url(self):
        assert object_url(S3, "uploads/x.png") == "https://s3.example.com/media/uploads/x.png"
        cdn = dict(S3, s3_cdn_url="https://cdn.example.com/")
        assert object_url(cdn, "uploads/x.png") == "https://cdn.example.com/uploads/x.png"


class TestUpload:
    def test_requires_admin(self, regular_user):
        with pytest.raises(PermissionDenied):
            media_service.upload_media(regular_user, png_upload())

    def test_no_file(self, admin_user):
        assert media_service.upload_media(admin_user, None).error == "No file provided"

    def test_not_configured(self, admin_user, site_settings):
        result = media_service.upload_media(admin_user, png_upload())
        assert result.error == "S3 storage is not configured"

    def test_image_upload(self, admin_user, storage_configured, s3_client):
        result = media_service.upload_media(admin_user, png_upload())
        assert result

        media = Media.objects.get()
        assert media.width == 40 and media.height == 20
        assert media.mime_type == "image/png"
        assert media.key.startswith("uploads/") and media.key.endswith("-photo.png")
        assert media.url == f"https://s3.example.com/media/{media.key}"

        kwargs = s3_client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "media"
        assert kwargs["Key"] == media.key
        assert kwargs["ContentType"] == "image/png"
        assert kwargs["Body"].startswith(b"\x89PNG")

        factory_kwargs = s3_client.factory.call_args.kwargs
        assert factory_kwargs["endpoint_url"] == "https://s3.example.com/"
        assert factory_kwargs["aws_secret_access_key"] == "secret"

    def test_non_image_upload(self, admin_user, storage_configured, s3_client):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        assert media_service.upload_media(admin_user, upload)
        media = Media.objects.get()
        assert media.width is None
        assert media.size == 5

    def test_broken_image_has_no_dimensions(self, admin_user, storage_configured, s3_client):
        upload = SimpleUploadedFile("fake.png", b"not an image", content_type="image/png")
        assert media_service.upload_media(admin_user, upload)
        assert Media.objects.get().width is None

    def test_storage_failure(self, admin_user, storage_configured, s3_client):
        s3_client.put_object.side_effect = ClientError({"Error": {"Code": "500"}}, "PutObject")
        result = media_service.upload_media(admin_user, png_upload())
        assert result.error == "Upload failed"
        assert not Media.objects.exists()


class TestDelete:
    def test_delete_removes_object(self, admin_user, storage_configured, s3_client):
        media = Media.objects.create(url="https://s3.example.com/media/uploads/1-a.png", filename="a.png")
        assert media_service.delete_media(admin_user, media.id)
        s3_client.delete_object.assert_called_once_with(Bucket="media", Key="uploads/1-a.png")
        assert not Media.objects.exists()

    def test_row_removed_even_if_storage_fails(self, admin_user, storage_configured, s3_client):
        s3_client.delete_object.side_effect = ClientError({"Error": {"Code": "403"}}, "DeleteObject")
        media = Media.objects.create(url="https://x/media/k", key="k", filename="k")
        assert media_service.delete_media(admin_user, media.id)
        assert not Media.objects.exists()

    def test_missing(self, admin_user):
        assert media_service.delete_media(admin_user, "nope").error == "Media not found"

    def test_listing(self, admin_user):
        Media.objects.create(url="https://x/a", filename="a")
        assert len(media_service.get_media(admin_user)) == 1
