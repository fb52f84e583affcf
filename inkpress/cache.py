"""
Read-through cache for settings, navigation, tags and posts.

Entries are grouped by tags. Every tag owns a random version token kept
in the cache, and the key of an entry embeds the tokens of all its
tags. Invalidating a tag swaps its token, which orphans every entry
built with the old one; orphans simply age out. This works the same on
Redis and on the local-memory backend.

Usage:

    from inkpress.cache import blog_cache

    blog_cache.settings()
    blog_cache.invalidate_post("hello-world")
"""
import hashlib
import logging
import uuid

from django.core.cache import caches
from redis.exceptions import RedisError

from .conf import blog_settings

logger = logging.getLogger(__name__)

TAG_SETTINGS = "settings"
TAG_NAVIGATION = "navigation"
TAG_TAGS = "tags"
TAG_POSTS_LIST = "posts-list"

KEY_PREFIX = "inkpress"

# Failures of the cache backend never break a page, the loader result
# is served uncached instead.
CACHE_ERRORS = (RedisError, OSError)

_MISSING = object()


def post_tag(slug):
    return f"post:{slug}"


def _digest(value):
    return hashlib.md5(value.encode("utf-8")).hexdigest()


class BlogCache:
    """
    Handle around a Django cache alias.

    Pass *backend* to use a specific cache object (tests build their own
    ``LocMemCache``); otherwise ``INKPRESS["CACHE_ALIAS"]`` is looked up
    on every access so per-thread connections are respected.
    """

    def __init__(self, backend=None):
        self._backend = backend

    @property
    def backend(self):
        if self._backend is not None:
            return self._backend
        return caches[blog_settings.CACHE_ALIAS]

    # -- tag tokens ---------------------------------------------------

    def _tag_key(self, tag):
        return f"{KEY_PREFIX}:tag:{_digest(tag)}"

    def _tokens(self, tags):
        keys = [self._tag_key(tag) for tag in tags]
        found = self.backend.get_many(keys)
        missing = {key: uuid.uuid4().hex for key in keys if key not in found}
        if missing:
            self.backend.set_many(missing, timeout=None)
            found.update(missing)
        return [found[key] for key in keys]

    def _entry_key(self, name, tags):
        tokens = self._tokens(tags)
        return f"{KEY_PREFIX}:entry:{_digest(name + '|' + '|'.join(tokens))}"

    def invalidate(self, *tags):
        """Give each tag a fresh token."""
        try:
            self.backend.set_many(
                {self._tag_key(tag): uuid.uuid4().hex for tag in tags},
                timeout=None,
            )
        except CACHE_ERRORS:
            logger.exception("Cache invalidation failed for %s", ", ".join(tags))

    # -- read-through -------------------------------------------------

    def fetch(self, name, tags, loader, timeout=None):
        """
        Return the cached value for *name*, calling *loader* on a miss.

        ``None`` results are cached as well.
        """
        if timeout is None:
            timeout = blog_settings.CACHE_TIMEOUT
        try:
            key = self._entry_key(name, tags)
            value = self.backend.get(key, _MISSING)
        except CACHE_ERRORS:
            logger.warning("Cache read failed for %s, loading from database", name, exc_info=True)
            return loader()

        if value is not _MISSING:
            return value

        value = loader()
        try:
            self.backend.set(key, value, timeout)
        except CACHE_ERRORS:
            logger.warning("Cache write failed for %s", name, exc_info=True)
        return value

    # -- cached reads -------------------------------------------------

    def settings(self):
        """Site settings with secrets decrypted."""
        return self.fetch("settings", [TAG_SETTINGS], _load_settings)

    def nav_items(self):
        return self.fetch("nav-items", [TAG_NAVIGATION], _load_nav_items)

    def tags(self):
        return self.fetch("tags:all", [TAG_TAGS], _load_tags)

    def post_by_slug(self, slug):
        return self.fetch(
            f"post:{slug}",
            [post_tag(slug), TAG_TAGS],
            lambda: _load_post(slug),
        )

    def published_posts(self, page, page_size):
        return self.fetch(
            f"posts:published:{page}:{page_size}",
            [TAG_POSTS_LIST, TAG_TAGS],
            lambda: _load_published_posts(page, page_size),
            timeout=blog_settings.LIST_CACHE_TIMEOUT,
        )

    def sitemap_posts(self):
        return self.fetch("sitemap:posts", [TAG_POSTS_LIST], _load_sitemap_posts)

    def sitemap_tags(self):
        return self.fetch("sitemap:tags", [TAG_TAGS], _load_sitemap_tags)

    def feed_posts(self, limit):
        return self.fetch(
            f"feed:{limit}",
            [TAG_POSTS_LIST],
            lambda: _load_feed_posts(limit),
            timeout=blog_settings.LIST_CACHE_TIMEOUT,
        )

    # -- invalidation -------------------------------------------------

    def invalidate_settings(self):
        self.invalidate(TAG_SETTINGS)

    def invalidate_navigation(self):
        self.invalidate(TAG_NAVIGATION)

    def invalidate_tags(self):
        self.invalidate(TAG_TAGS)

    def invalidate_post(self, slug):
        self.invalidate(post_tag(slug))

    def invalidate_posts_list(self):
        self.invalidate(TAG_POSTS_LIST)

    def invalidate_all_post_caches(self, *slugs):
        """Invalidate the listings plus the detail entries of *slugs*."""
        self.invalidate(TAG_POSTS_LIST, *(post_tag(slug) for slug in slugs if slug))


blog_cache = BlogCache()


# Loaders. Models are imported lazily, this module is imported by
# signal handlers during app loading.

def _load_settings():
    from .models import SiteSettings

    row = SiteSettings.objects.filter(pk=SiteSettings.SINGLETON_ID).first()
    return row.as_dict() if row else SiteSettings.defaults()


def _load_nav_items():
    from .models import NavItem

    return list(NavItem.objects.all())


def _load_tags():
    from .models import Tag

    return list(Tag.objects.order_by("name"))


def _load_post(slug):
    from .models import Post

    return Post.objects.with_relations().filter(slug=slug).first()


def _load_published_posts(page, page_size):
    from .models import Post
    from .utils import paginate_items

    posts = (
        Post.objects.published()
        .of_type(Post.TYPE_POST)
        .newest_published_first()
        .with_relations()
    )
    return paginate_items(posts, page, page_size)


def _load_sitemap_posts():
    from .models import Post

    return list(
        Post.objects.published()
        .filter(post_type__in=[Post.TYPE_POST, Post.TYPE_PAGE])
        .order_by("-updated_at")
        .values("slug", "post_type", "updated_at")
    )


def _load_sitemap_tags():
    from .models import Tag

    return list(Tag.objects.order_by("name").values("slug"))


def _load_feed_posts(limit):
    from .models import Post

    return list(
        Post.objects.published()
        .of_type(Post.TYPE_POST)
        .newest_published_first()
        .with_relations()[:limit]
    )
