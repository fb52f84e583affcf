"""
Configuration settings for django-inkpress.

Override these in your Django settings.py:

    INKPRESS = {
        'POSTS_PER_PAGE': 10,
        'APP_URL': 'https://blog.example.com',
        'ENCRYPTION_KEY': '<64 hex chars>',
        ...
    }

Deployment values usually come from the environment. The helpers at the
bottom turn them into Django setting entries:

    CACHES = {'default': cache_backend(os.environ.get('REDIS_URL'))}
    DATABASES = {'default': database_from_url(os.environ['DATABASE_URL'])}
"""
from urllib.parse import unquote, urlparse

from django.conf import settings

DEFAULTS = {
    # Listings
    "POSTS_PER_PAGE": 10,
    "MEMOS_PER_PAGE": 20,
    "ADMIN_POSTS_PER_PAGE": 20,
    "MAX_PAGE_SIZE": 100,
    "FEED_LIMIT": 20,
    "SEARCH_LIMIT": 10,
    "SEARCH_MIN_LENGTH": 2,

    # Cache layer
    "CACHE_ALIAS": "default",
    "CACHE_TIMEOUT": 3600,
    "LIST_CACHE_TIMEOUT": 300,

    # Public base URL used in feeds, sitemaps and emails
    "APP_URL": "",

    # 64 hex chars; derived from SECRET_KEY when empty
    "ENCRYPTION_KEY": "",

    # Validation limits
    "TITLE_MAX_LENGTH": 200,
    "SLUG_MAX_LENGTH": 200,
    "TAG_NAME_MAX_LENGTH": 50,
    "COMMENT_MAX_LENGTH": 2000,
    "GUEST_NAME_MAX_LENGTH": 100,
    "GUEST_WEBSITE_MAX_LENGTH": 200,
    "SITE_TITLE_MAX_LENGTH": 100,
    "SITE_DESCRIPTION_MAX_LENGTH": 500,

    # Spam scoring
    "SPAM_DEFAULT_MODEL": "gpt-4o-mini",
    "SPAM_TIMEOUT": 15,

    # Analytics
    "UMAMI_SCRIPT_URL": "https://cloud.umami.is/script.js",
    "UMAMI_CLOUD_API": "https://api.umami.is",
    "UMAMI_TIMEOUT": 10,

    # Avatars
    "GRAVATAR_BASE": "https://use.sevencdn.com/avatar/",

    # (max requests, window seconds) per client IP
    "SIGN_IN_RATE": (5, 60),
    "SIGN_UP_RATE": (3, 60),

    # Media
    "UPLOAD_PREFIX": "uploads/",

    # Outgoing mail
    "RESEND_SMTP_HOST": "smtp.resend.com",
    "RESEND_SMTP_PORT": 465,
}


class InkpressSettings:
    """
    Lazy settings object that reads from Django settings.

    Access via: from inkpress.conf import blog_settings
    """

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid inkpress setting: {name}")

        user_settings = getattr(settings, "INKPRESS", {})
        return user_settings.get(name, DEFAULTS[name])


blog_settings = InkpressSettings()


def cache_backend(redis_url=None, timeout=None):
    """
    Build a CACHES entry.

    Uses Django's Redis backend when *redis_url* is set and the
    in-process local-memory cache otherwise.
    """
    if redis_url:
        entry = {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": redis_url,
            "OPTIONS": {"socket_connect_timeout": 5, "socket_timeout": 5},
        }
    else:
        entry = {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "inkpress",
        }
    if timeout is not None:
        entry["TIMEOUT"] = timeout
    return entry


def database_from_url(url, conn_max_age=60):
    """
    Build a DATABASES entry from a ``postgres://`` or ``sqlite://`` URL.

    Persistent connections are capped by *conn_max_age* seconds so the
    number of open connections stays bounded per worker.
    """
    parsed = urlparse(url)
    if parsed.scheme == "sqlite":
        # sqlite:///relative.db and sqlite:////absolute/path.db
        name = unquote(parsed.path[1:])
        return {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": name or ":memory:",
        }
    if parsed.scheme not in ("postgres", "postgresql"):
        raise ValueError(f"Unsupported database URL scheme: {parsed.scheme!r}")
    return {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": unquote(parsed.path.lstrip("/")),
        "USER": unquote(parsed.username or ""),
        "PASSWORD": unquote(parsed.password or ""),
        "HOST": parsed.hostname or "",
        "PORT": str(parsed.port or ""),
        "CONN_MAX_AGE": conn_max_age,
        "CONN_HEALTH_CHECKS": True,
    }
