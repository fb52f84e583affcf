"""
S3-compatible object storage for media uploads.
"""
import logging
import re
import time

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .conf import blog_settings

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (BotoCoreError, ClientError)


def has_s3_config(config):
    """Endpoint, region, both keys and the bucket are all set."""
    return all(
        config.get(name)
        for name in ("s3_endpoint", "s3_region", "s3_access_key", "s3_secret_key", "s3_bucket")
    )


def get_s3_client(config):
    """Return a path-style S3 client, or None when credentials are missing."""
    if not all(config.get(n) for n in ("s3_endpoint", "s3_region", "s3_access_key", "s3_secret_key")):
        return None
    return boto3.client(
        "s3",
        endpoint_url=config["s3_endpoint"],
        region_name=config["s3_region"],
        aws_access_key_id=config["s3_access_key"],
        aws_secret_access_key=config["s3_secret_key"],
        # MinIO and most S3-compatible providers need path-style URLs
        config=Config(s3={"addressing_style": "path"}),
    )


def sanitize_filename(filename):
    """Keep letters, digits, dots and hyphens; everything else becomes "_"."""
    return re.sub(r"[^a-zA-Z0-9.\-]", "_", filename)


def build_key(filename, now=None):
    millis = int((now if now is not None else time.time()) * 1000)
    return f"{blog_settings.UPLOAD_PREFIX}{millis}-{sanitize_filename(filename)}"


def object_url(config, key):
    """Public URL of an object: CDN base when set, else endpoint/bucket/key."""
    cdn = config.get("s3_cdn_url")
    if cdn:
        return f"{cdn.rstrip('/')}/{key}"
    return f"{config['s3_endpoint'].rstrip('/')}/{config['s3_bucket']}/{key}"


def put_object(client, bucket, key, body, content_type):
    client.put_object(Bucket=bucket, Key=key, Body=body, ContentType=content_type)


def delete_object(client, bucket, key):
    """Remove an object; returns False (and logs) when the store refuses."""
    try:
        client.delete_object(Bucket=bucket, Key=key)
    except STORAGE_ERRORS:
        logger.warning("Failed to delete s3://%s/%s", bucket, key, exc_info=True)
        return False
    return True
