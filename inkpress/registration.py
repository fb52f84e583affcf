"""
Account registration gating and request rate limiting.

The first account created on a fresh install becomes the admin and
closes public registration behind it.
"""
import logging
import time
from functools import wraps

from django.contrib.auth import get_user_model
from django.core.cache import caches
from django.db import transaction
from django.http import JsonResponse

from .conf import blog_settings
from .models import Profile, SiteSettings

logger = logging.getLogger(__name__)


def check_registration_status():
    """
    Return ``(allowed, is_first_user)``.

    An empty user table always allows registration. Otherwise the
    ``allow_registration`` setting decides.
    """
    if not get_user_model().objects.exists():
        return True, True
    row = SiteSettings.objects.filter(pk=SiteSettings.SINGLETON_ID).first()
    if row is not None and not row.allow_registration:
        return False, False
    return True, False


@transaction.atomic
def post_registration_cleanup(user):
    """Promote the sole user to admin and close registration."""
    if get_user_model().objects.count() != 1:
        return False

    profile, _ = Profile.objects.update_or_create(user=user, defaults={"role": Profile.ROLE_ADMIN})
    user.profile = profile
    site = SiteSettings.load()
    site.allow_registration = False
    site.save()
    logger.info("First user %s promoted to admin; registration closed", user.get_username())
    return True


def client_ip(request):
    # left-most X-Forwarded-For entry is the real client behind a proxy
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR") or "unknown"


def hit(bucket, request, rate):
    """
    Count one hit for the client of *request* in a fixed window.

    *rate* is ``(max_requests, window_seconds)``. Returns 0 while the
    client is within budget, else the seconds until the window resets.
    """
    max_requests, window = rate
    now = int(time.time())
    window_start = now - now % window
    key = f"inkpress:rl:{bucket}:{client_ip(request)}:{window_start}"
    cache = caches[blog_settings.CACHE_ALIAS]
    if cache.add(key, 1, timeout=window):
        return 0
    try:
        hits = cache.incr(key)
    except ValueError:
        # window expired between add() and incr()
        cache.set(key, 1, timeout=window)
        return 0
    if hits <= max_requests:
        return 0
    return max(1, window_start + window - now)


def rate_limit(bucket, rate_setting):
    """
    Reject a view with 429 once a client exceeds the rate named by
    *rate_setting* (an ``INKPRESS`` key).
    """
    def decorator(view):
        @wraps(view)
        def wrapped(request, *args, **kwargs):
            retry_after = hit(bucket, request, getattr(blog_settings, rate_setting))
            if retry_after:
                response = JsonResponse(
                    {"success": False, "error": "Too many requests, try again later"},
                    status=429,
                )
                response["Retry-After"] = str(retry_after)
                return response
            return view(request, *args, **kwargs)

        return wrapped

    return decorator
