"""
Post and Tag models for django-inkpress.
"""
import uuid

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.urls import reverse
from django.utils import timezone

from ..utils import generate_slug


class Tag(models.Model):
    """
    Flat tag for posts.

    Tags are non-hierarchical and can be applied to multiple posts.
    The slug is derived from the name and keeps Unicode letters.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=50, unique=True)
    slug = models.CharField(max_length=100, unique=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = generate_slug(self.name)
        super().save(*args, **kwargs)

    def get_absolute_url(self):
        return reverse("inkpress:tag_detail", kwargs={"slug": self.slug})

    @property
    def post_count(self):
        """Return count of published posts with this tag."""
        return self.posts.filter(published=True).count()


class PostQuerySet(models.QuerySet):
    """Common filters for public and admin listings."""

    def published(self):
        return self.filter(published=True)

    def of_type(self, post_type):
        return self.filter(post_type=post_type)

    def newest_published_first(self):
        """Order by publish date (undated last), then creation date."""
        return self.order_by(F("published_at").desc(nulls_last=True), "-created_at")

    def matching(self, query):
        """Case-insensitive match on title or content."""
        return self.filter(Q(title__icontains=query) | Q(content__icontains=query))

    def with_relations(self):
        return self.select_related("author", "author__profile").prefetch_related("tags")


class Post(models.Model):
    """
    Blog entry.

    ``post_type`` discriminates regular posts, standalone pages (not in
    listings) and memos (short notes shown on the memo page).
    """

    TYPE_POST = "post"
    TYPE_PAGE = "page"
    TYPE_MEMO = "memo"
    TYPE_CHOICES = [
        (TYPE_POST, "Post"),
        (TYPE_PAGE, "Page"),
        (TYPE_MEMO, "Memo"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    slug = models.CharField(max_length=200, unique=True)
    content = models.TextField()
    published = models.BooleanField(default=False)
    post_type = models.CharField(
        max_length=10,
        choices=TYPE_CHOICES,
        default=TYPE_POST,
        db_index=True,
    )

    # Users who still author posts cannot be removed
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="posts",
    )

    published_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Custom publish time; set automatically when published",
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    tags = models.ManyToManyField(
        Tag,
        through="PostTag",
        related_name="posts",
        blank=True,
    )

    objects = PostQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["published", "post_type", "-published_at"]),
        ]

    def __str__(self):
        return self.title

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        # Remember the stored slug so a rename can bust the old cache key
        if "slug" in field_names:
            instance._loaded_slug = values[field_names.index("slug")]
        return instance

    @property
    def previous_slug(self):
        """Slug as loaded from the database, or None for new rows."""
        return getattr(self, "_loaded_slug", None)

    def save(self, *args, **kwargs):
        if self.published and not self.published_at:
            self.published_at = timezone.now()
        super().save(*args, **kwargs)
        self._loaded_slug = self.slug

    def get_absolute_url(self):
        return reverse("inkpress:post_detail", kwargs={"slug": self.slug})

    @property
    def is_memo(self):
        return self.post_type == self.TYPE_MEMO

    @property
    def is_page(self):
        return self.post_type == self.TYPE_PAGE

    @property
    def display_date(self):
        """Publish time, falling back to creation time."""
        return self.published_at or self.created_at

    def excerpt(self, length=280):
        """Return truncated content for feeds and listings."""
        if len(self.content) > length:
            return self.content[:length] + "..."
        return self.content

    def publish(self, when=None):
        """Publish the post immediately or at a custom time."""
        self.published = True
        self.published_at = when or self.published_at or timezone.now()
        self.save(update_fields=["published", "published_at", "updated_at"])


class PostTag(models.Model):
    """Association between a post and a tag."""

    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name="post_tags")
    tag = models.ForeignKey(Tag, on_delete=models.CASCADE, related_name="post_tags")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["post", "tag"], name="inkpress_unique_post_tag"),
        ]

    def __str__(self):
        return f"{self.post} #{self.tag}"
