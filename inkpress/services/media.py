"""Media library backed by S3-compatible storage."""
import logging

from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from ..cache import blog_cache
from ..models import Media
from ..serializers import serialize_media
from ..storage import (
    build_key,
    delete_object,
    get_s3_client,
    has_s3_config,
    object_url,
    put_object,
)
from ..utils import ActionResult, get_object_or_none, require_admin

logger = logging.getLogger(__name__)


def get_media(actor):
    require_admin(actor)
    return list(Media.objects.all())


def image_dimensions(upload):
    """Return (width, height) of an image upload, or (None, None)."""
    try:
        upload.seek(0)
        with Image.open(upload) as image:
            width, height = image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return None, None
    finally:
        upload.seek(0)
    return width, height


def upload_media(actor, upload):
    """Store an uploaded file in the bucket and record it."""
    require_admin(actor)
    if upload is None or not upload.size:
        return ActionResult.fail("No file provided")

    config = blog_cache.settings()
    client = get_s3_client(config)
    if client is None or not has_s3_config(config):
        return ActionResult.fail("S3 storage is not configured")

    content_type = upload.content_type or "application/octet-stream"
    width = height = None
    if content_type.startswith("image/"):
        width, height = image_dimensions(upload)

    key = build_key(upload.name)
    try:
        put_object(client, config["s3_bucket"], key, upload.read(), content_type)
    except (BotoCoreError, ClientError):
        logger.exception("Upload of %s failed", key)
        return ActionResult.fail("Upload failed")

    media = Media.objects.create(
        url=object_url(config, key),
        key=key,
        filename=upload.name,
        mime_type=content_type,
        size=upload.size,
        width=width,
        height=height,
    )
    logger.info("Uploaded %s (%s bytes)", key, upload.size)
    return ActionResult.ok(serialize_media(media))


def delete_media(actor, media_id):
    """Delete a media row; removing the object from storage is best effort."""
    require_admin(actor)
    media = get_object_or_none(Media.objects, pk=media_id)
    if media is None:
        return ActionResult.fail("Media not found")

    config = blog_cache.settings()
    client = get_s3_client(config)
    bucket = config.get("s3_bucket")
    key = media.storage_key(bucket) if bucket else None
    if client is not None and key:
        delete_object(client, bucket, key)

    media.delete()
    return ActionResult.ok()
