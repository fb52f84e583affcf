"""
Account models for django-inkpress.

Authentication itself is Django's; these models add the blog role,
public profile fields and WebAuthn passkeys.
"""
from django.conf import settings
from django.db import models
from django.utils import timezone


class Profile(models.Model):
    """Blog-specific data attached to every user."""

    ROLE_USER = "user"
    ROLE_ADMIN = "admin"
    ROLE_CHOICES = [
        (ROLE_USER, "User"),
        (ROLE_ADMIN, "Admin"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_USER)
    bio = models.TextField(blank=True)
    website = models.URLField(max_length=200, blank=True)
    image = models.URLField(max_length=1000, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} ({self.role})"

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN


class Passkey(models.Model):
    """
    WebAuthn credential registered by a user.

    Credential id and public key are stored base64url-encoded.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="passkeys",
    )
    name = models.CharField(max_length=100, blank=True)
    credential_id = models.CharField(max_length=512, unique=True)
    public_key = models.TextField()
    counter = models.PositiveIntegerField(default=0)
    device_type = models.CharField(max_length=32)
    backed_up = models.BooleanField(default=False)
    transports = models.CharField(max_length=200, blank=True)
    aaguid = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.name or "Passkey"
