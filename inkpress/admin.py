"""
Django admin configuration for inkpress.
"""
from django.contrib import admin
from django.utils.html import format_html

from .cache import blog_cache
from .models import (
    Comment,
    EmailWhitelist,
    Media,
    NavItem,
    Passkey,
    Post,
    PostTag,
    Profile,
    SiteSettings,
    Tag,
)
from .spam import add_to_whitelist


class PostTagInline(admin.TabularInline):
    """Inline for managing tags on posts."""

    model = PostTag
    extra = 1
    autocomplete_fields = ["tag"]


@admin.register(Tag)
class TagAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "post_count"]
    search_fields = ["name", "slug"]


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = [
        "title_preview",
        "post_type",
        "author",
        "published",
        "published_at",
        "created_at",
    ]
    list_filter = ["post_type", "published", "created_at"]
    search_fields = ["title", "content", "slug"]
    raw_id_fields = ["author"]
    date_hierarchy = "created_at"
    inlines = [PostTagInline]
    readonly_fields = ["created_at", "updated_at"]

    fieldsets = (
        (None, {
            "fields": ("title", "slug", "content", "author", "post_type")
        }),
        ("Publishing", {
            "fields": ("published", "published_at")
        }),
        ("Metadata", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    actions = ["publish_posts", "unpublish_posts"]

    def title_preview(self, obj):
        """Truncated title for list display."""
        return obj.title[:60] + "..." if len(obj.title) > 60 else obj.title

    title_preview.short_description = "Title"

    @admin.action(description="Publish selected posts")
    def publish_posts(self, request, queryset):
        for post in queryset:
            post.publish()
        self.message_user(request, f"{queryset.count()} posts published.")

    @admin.action(description="Unpublish selected posts")
    def unpublish_posts(self, request, queryset):
        slugs = list(queryset.values_list("slug", flat=True))
        count = queryset.update(published=False)
        # update() skips post_save
        blog_cache.invalidate_all_post_caches(*slugs)
        self.message_user(request, f"{count} posts unpublished.")


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = [
        "preview",
        "author_name",
        "post",
        "status",
        "spam_score",
        "created_at",
    ]
    list_filter = ["status", "spam_reason", "created_at"]
    search_fields = ["content", "guest_name", "guest_email", "post__title"]
    raw_id_fields = ["post", "user", "parent"]
    readonly_fields = ["spam_score", "spam_reason", "created_at"]
    actions = ["approve_comments", "reject_comments", "approve_and_whitelist"]

    @admin.action(description="Approve selected comments")
    def approve_comments(self, request, queryset):
        count = queryset.update(status=Comment.STATUS_APPROVED)
        self.message_user(request, f"{count} comments approved.")

    @admin.action(description="Reject selected comments")
    def reject_comments(self, request, queryset):
        count = queryset.update(status=Comment.STATUS_REJECTED)
        self.message_user(request, f"{count} comments rejected.")

    @admin.action(description="Approve and whitelist guest emails")
    def approve_and_whitelist(self, request, queryset):
        emails = {email for email in queryset.values_list("guest_email", flat=True) if email}
        for email in emails:
            add_to_whitelist(email)
        count = queryset.update(status=Comment.STATUS_APPROVED)
        self.message_user(request, f"{count} comments approved, {len(emails)} emails whitelisted.")


@admin.register(EmailWhitelist)
class EmailWhitelistAdmin(admin.ModelAdmin):
    list_display = ["email", "created_at"]
    search_fields = ["email"]


@admin.register(Media)
class MediaAdmin(admin.ModelAdmin):
    list_display = [
        "thumbnail_preview",
        "filename",
        "mime_type",
        "human_file_size",
        "dimensions",
        "created_at",
    ]
    list_filter = ["mime_type", "created_at"]
    search_fields = ["filename", "key"]
    readonly_fields = ["url", "key", "size", "width", "height", "mime_type", "created_at"]

    def thumbnail_preview(self, obj):
        if obj.is_image:
            return format_html(
                '<img src="{}" style="max-width: 50px; max-height: 50px;" />',
                obj.url,
            )
        return obj.mime_type

    thumbnail_preview.short_description = "Preview"

    def dimensions(self, obj):
        if obj.width and obj.height:
            return f"{obj.width}x{obj.height}"
        return "-"

    dimensions.short_description = "Size"


@admin.register(NavItem)
class NavItemAdmin(admin.ModelAdmin):
    list_display = ["label", "url", "open_in_new_tab", "sort_order"]
    list_editable = ["sort_order", "open_in_new_tab"]
    ordering = ["sort_order", "created_at"]


@admin.register(SiteSettings)
class SiteSettingsAdmin(admin.ModelAdmin):
    """
    Public site fields only; credentials are encrypted at rest and are
    edited through the console settings endpoint.
    """

    list_display = ["site_title", "allow_registration", "umami_enabled", "updated_at"]
    exclude = SiteSettings.SECRET_FIELDS

    def has_add_permission(self, request):
        return not SiteSettings.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ["user", "role", "website", "created_at"]
    list_filter = ["role"]
    search_fields = ["user__username", "user__email", "user__first_name"]
    raw_id_fields = ["user"]


@admin.register(Passkey)
class PasskeyAdmin(admin.ModelAdmin):
    list_display = ["name", "user", "device_type", "backed_up", "created_at"]
    list_filter = ["device_type", "backed_up"]
    search_fields = ["name", "user__username"]
    raw_id_fields = ["user"]
    readonly_fields = ["credential_id", "public_key", "counter", "aaguid", "created_at"]
