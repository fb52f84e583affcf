"""
Sitemaps for the public site.

Include in your project urls.py through ``inkpress.urls`` (served at
``sitemap.xml``) or wire ``SITEMAPS`` into your own sitemap view.
"""
import logging

from django.contrib.sitemaps import Sitemap
from django.db import DatabaseError
from django.urls import reverse

from .cache import blog_cache
from .models import Post

logger = logging.getLogger(__name__)


class StaticSitemap(Sitemap):
    changefreq = "daily"

    PAGES = {
        "inkpress:post_list": 1.0,
        "inkpress:memo_list": 0.7,
    }

    def items(self):
        return list(self.PAGES)

    def location(self, item):
        return reverse(item)

    def priority(self, item):
        return self.PAGES[item]


class PostSitemap(Sitemap):
    """Published posts and pages."""

    changefreq = "weekly"

    def items(self):
        try:
            return blog_cache.sitemap_posts()
        except DatabaseError:
            logger.exception("Sitemap could not load posts")
            return []

    def location(self, item):
        return reverse("inkpress:post_detail", kwargs={"slug": item["slug"]})

    def lastmod(self, item):
        return item["updated_at"]

    def priority(self, item):
        return 0.9 if item["post_type"] == Post.TYPE_PAGE else 0.8


class TagSitemap(Sitemap):
    changefreq = "weekly"
    priority = 0.6

    def items(self):
        try:
            return blog_cache.sitemap_tags()
        except DatabaseError:
            logger.exception("Sitemap could not load tags")
            return []

    def location(self, item):
        return reverse("inkpress:tag_detail", kwargs={"slug": item["slug"]})


SITEMAPS = {
    "static": StaticSitemap,
    "posts": PostSitemap,
    "tags": TagSitemap,
}
