"""
Signal handlers: profile creation and cache invalidation.

Bulk operations (``QuerySet.update``, ``bulk_create``) bypass these
handlers; the services that use them invalidate explicitly.
"""
from django.conf import settings
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .cache import blog_cache
from .models import NavItem, Post, PostTag, Profile, SiteSettings, Tag


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_profile(sender, instance, created, raw=False, **kwargs):
    """Give every new user a profile; superusers start as admins."""
    if not created or raw:
        return
    role = Profile.ROLE_ADMIN if instance.is_superuser else Profile.ROLE_USER
    Profile.objects.get_or_create(user=instance, defaults={"role": role})


@receiver(post_save, sender=Post)
def post_saved(sender, instance, **kwargs):
    # previous_slug still holds the stored slug while the signal runs
    blog_cache.invalidate_all_post_caches(instance.slug, instance.previous_slug)


@receiver(post_delete, sender=Post)
def post_deleted(sender, instance, **kwargs):
    blog_cache.invalidate_all_post_caches(instance.slug)


@receiver(post_save, sender=PostTag)
@receiver(post_delete, sender=PostTag)
def post_tag_changed(sender, instance, **kwargs):
    slug = Post.objects.filter(pk=instance.post_id).values_list("slug", flat=True).first()
    blog_cache.invalidate_all_post_caches(slug)


@receiver(post_save, sender=Tag)
@receiver(post_delete, sender=Tag)
def tag_changed(sender, **kwargs):
    blog_cache.invalidate_tags()


@receiver(post_save, sender=NavItem)
@receiver(post_delete, sender=NavItem)
def nav_item_changed(sender, **kwargs):
    blog_cache.invalidate_navigation()


@receiver(post_save, sender=SiteSettings)
def site_settings_saved(sender, **kwargs):
    blog_cache.invalidate_settings()
