"""
Comment and email whitelist models for django-inkpress.
"""
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class CommentQuerySet(models.QuerySet):
    def approved(self):
        return self.filter(status=Comment.STATUS_APPROVED)

    def pending(self):
        return self.filter(status=Comment.STATUS_PENDING)


class Comment(models.Model):
    """
    Comment on a post.

    Supports:
    - Threaded replies via parent field
    - Guest authorship (name, email, website) or a signed-in user
    - Moderation workflow driven by spam scoring
    """

    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    post = models.ForeignKey(
        "inkpress.Post",
        on_delete=models.CASCADE,
        related_name="comments",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="blog_comments",
    )
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="replies",
    )
    content = models.TextField()

    # Guest authorship
    guest_name = models.CharField(max_length=100, blank=True)
    guest_email = models.EmailField(blank=True)
    guest_website = models.URLField(max_length=200, blank=True)

    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True,
    )
    spam_score = models.FloatField(null=True, blank=True)
    spam_reason = models.CharField(max_length=32, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = CommentQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["post", "status", "created_at"]),
        ]

    def __str__(self):
        return f"Comment by {self.author_name} on {self.post}"

    @property
    def author_name(self):
        if self.user_id:
            return self.user.get_full_name() or self.user.get_username()
        return self.guest_name or "Anonymous"

    @property
    def author_email(self):
        if self.user_id:
            return self.user.email
        return self.guest_email

    @property
    def author_website(self):
        if self.user_id:
            profile = getattr(self.user, "profile", None)
            return profile.website if profile else ""
        return self.guest_website

    @property
    def is_guest(self):
        return self.user_id is None

    @property
    def preview(self):
        """Return truncated content for admin display."""
        if len(self.content) > 100:
            return self.content[:100] + "..."
        return self.content

    @property
    def is_reply(self):
        """Check if this is a reply to another comment."""
        return self.parent_id is not None

    @property
    def is_approved(self):
        return self.status == self.STATUS_APPROVED

    @property
    def thread_depth(self):
        """Calculate nesting depth of this comment."""
        depth = 0
        current = self.parent
        while current:
            depth += 1
            current = current.parent
        return depth

    def approve(self):
        """Approve the comment for display."""
        self.status = self.STATUS_APPROVED
        self.save(update_fields=["status"])

    def reject(self):
        """Reject the comment."""
        self.status = self.STATUS_REJECTED
        self.save(update_fields=["status"])


class EmailWhitelist(models.Model):
    """
    Guest email exempt from spam scoring.

    Comments from these addresses are approved without an AI check.
    Emails are stored lower-case.
    """

    email = models.EmailField(unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["email"]
        verbose_name = "Whitelisted Email"
        verbose_name_plural = "Email Whitelist"

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        self.email = self.email.strip().lower()
        super().save(*args, **kwargs)
