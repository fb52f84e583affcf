"""
Media models for django-inkpress.

Files live in S3-compatible object storage; rows keep the public URL
and the object key.
"""
import uuid

from django.db import models
from django.utils import timezone


class Media(models.Model):
    """Uploaded file stored in object storage."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    url = models.URLField(max_length=1000)
    key = models.CharField(
        max_length=500,
        blank=True,
        help_text="Object key inside the bucket",
    )
    filename = models.CharField(max_length=255)
    mime_type = models.CharField(max_length=100, blank=True)
    size = models.PositiveIntegerField(null=True, blank=True, help_text="File size in bytes")
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Media Item"
        verbose_name_plural = "Media"

    def __str__(self):
        return self.filename

    @property
    def is_image(self):
        return self.mime_type.startswith("image/")

    @property
    def orientation(self):
        """Return orientation based on dimensions."""
        if not self.width or not self.height:
            return "unknown"
        if self.width > self.height:
            return "landscape"
        elif self.height > self.width:
            return "portrait"
        return "square"

    @property
    def human_file_size(self):
        """Return human-readable file size."""
        size = self.size or 0
        for unit in ["B", "KB", "MB", "GB"]:
            if size < 1024:
                return f"{size:.1f} {unit}"
            size /= 1024
        return f"{size:.1f} TB"

    def storage_key(self, bucket):
        """
        Return the object key, recovering it from the URL for rows
        imported without one.
        """
        if self.key:
            return self.key
        parts = self.url.split(f"/{bucket}/", 1)
        return parts[1] if len(parts) > 1 else None
