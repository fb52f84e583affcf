"""
Site configuration and navigation models for django-inkpress.
"""
import uuid

from django.db import models
from django.utils import timezone

from ..crypto import decrypt, encrypt


class SiteSettings(models.Model):
    """
    Singleton row (id=1) holding site-wide and integration configuration.

    Credential fields listed in ``SECRET_FIELDS`` are stored encrypted;
    use ``set_secret`` to write them and ``as_dict`` to read them back.
    """

    SINGLETON_ID = 1
    SECRET_FIELDS = (
        "s3_access_key",
        "s3_secret_key",
        "resend_api_key",
        "ai_api_key",
        "umami_api_key",
        "umami_api_secret",
    )

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_ID, editable=False)

    # Site
    site_title = models.CharField(max_length=100, default="My Awesome Blog")
    site_description = models.CharField(max_length=500, blank=True, default="A blog about tech...")
    allow_registration = models.BooleanField(default=True)

    # S3-compatible storage
    s3_bucket = models.CharField(max_length=255, blank=True)
    s3_region = models.CharField(max_length=100, blank=True)
    s3_access_key = models.TextField(blank=True)
    s3_secret_key = models.TextField(blank=True)
    s3_endpoint = models.CharField(max_length=500, blank=True)
    s3_cdn_url = models.CharField(max_length=500, blank=True)

    # Transactional email (Resend)
    resend_api_key = models.TextField(blank=True)
    resend_from_email = models.CharField(max_length=255, blank=True)

    # AI spam scoring (OpenAI-compatible chat completions)
    ai_base_url = models.CharField(max_length=500, blank=True)
    ai_api_key = models.TextField(blank=True)
    ai_model = models.CharField(max_length=100, blank=True)

    # Umami analytics
    umami_enabled = models.BooleanField(default=False)
    umami_cloud = models.BooleanField(default=False)
    umami_host_url = models.CharField(max_length=500, blank=True)
    umami_website_id = models.CharField(max_length=100, blank=True)
    umami_api_key = models.TextField(blank=True)
    umami_api_user_id = models.CharField(max_length=100, blank=True)
    umami_api_secret = models.TextField(blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Site Settings"
        verbose_name_plural = "Site Settings"

    def __str__(self):
        return self.site_title

    def save(self, *args, **kwargs):
        self.pk = self.SINGLETON_ID
        super().save(*args, **kwargs)

    @classmethod
    def load(cls):
        """Return the singleton, creating it with defaults if needed."""
        obj, _ = cls.objects.get_or_create(pk=cls.SINGLETON_ID)
        return obj

    @classmethod
    def field_names(cls):
        return [
            f.name for f in cls._meta.concrete_fields
            if f.name not in ("id", "updated_at")
        ]

    @classmethod
    def defaults(cls):
        """Field defaults, used when the row does not exist yet."""
        return {name: cls._meta.get_field(name).get_default() for name in cls.field_names()}

    def set_secret(self, field, value):
        """Encrypt *value* into a credential field; empty clears it."""
        if field not in self.SECRET_FIELDS:
            raise ValueError(f"{field} is not a secret field")
        setattr(self, field, encrypt(value) if value else "")

    def get_secret(self, field):
        return decrypt(getattr(self, field))

    def as_dict(self):
        """Return all configuration values with secrets decrypted."""
        data = {name: getattr(self, name) for name in self.field_names()}
        for field in self.SECRET_FIELDS:
            data[field] = self.get_secret(field)
        return data


class NavItem(models.Model):
    """Link shown in the blog header navigation."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    label = models.CharField(max_length=100)
    url = models.CharField(max_length=500)
    open_in_new_tab = models.BooleanField(default=False)
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["sort_order", "created_at"]
        verbose_name = "Navigation Item"

    def __str__(self):
        return self.label
