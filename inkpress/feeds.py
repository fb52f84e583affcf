"""RSS feed of the latest published posts."""
from django.contrib.syndication.views import Feed
from django.urls import reverse
from django.utils import timezone

from .cache import blog_cache
from .conf import blog_settings


class LatestPostsFeed(Feed):
    """RSS 2.0 feed; title and description follow the site settings."""

    def title(self):
        return blog_cache.settings().get("site_title") or "Blog"

    def description(self):
        return blog_cache.settings().get("site_description") or ""

    def link(self):
        return reverse("inkpress:post_list")

    def feed_copyright(self):
        return f"All rights reserved {timezone.now().year}"

    def items(self):
        return blog_cache.feed_posts(blog_settings.FEED_LIMIT)

    def item_title(self, item):
        return item.title

    def item_description(self, item):
        return item.excerpt(280)

    def item_link(self, item):
        return item.get_absolute_url()

    def item_author_name(self, item):
        return item.author.get_full_name() or "Anonymous"

    def item_author_link(self, item):
        profile = getattr(item.author, "profile", None)
        return (profile.website if profile else "") or None

    def item_pubdate(self, item):
        return item.display_date

    def item_updateddate(self, item):
        return item.updated_at
