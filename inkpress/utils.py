"""
Pure helpers shared by services, views and templates.
"""
import hashlib
import math
import re
from dataclasses import dataclass, field
from typing import Any

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db.models import QuerySet
from django.http import JsonResponse


def is_admin_authorized(user):
    """Return True only for an authenticated user with the admin role."""
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    profile = getattr(user, "profile", None)
    return profile is not None and profile.role == "admin"


def require_admin(actor):
    """Raise PermissionDenied unless *actor* is an admin."""
    if not is_admin_authorized(actor):
        raise PermissionDenied("Unauthorized")
    return actor


def filter_published_posts(posts):
    """Keep posts whose ``published`` flag is exactly True."""
    return [post for post in posts if getattr(post, "published", None) is True]


@dataclass
class PaginatedResult:
    items: list
    total: int
    total_pages: int
    page: int
    page_size: int

    @property
    def has_next(self):
        return self.page < self.total_pages

    @property
    def current_page(self):
        return self.page

    @property
    def has_previous(self):
        return self.page > 1


def clamp_pagination(page, page_size):
    """Return (page, page_size) clamped to page >= 1 and 1..MAX_PAGE_SIZE."""
    from .conf import blog_settings

    page = max(1, to_int(page, 1))
    page_size = max(1, min(blog_settings.MAX_PAGE_SIZE, to_int(page_size, 1)))
    return page, page_size


def paginate_items(items, page=1, page_size=10):
    """
    Return one page of *items* (a list or a queryset).

    Pages are 1-indexed. Out-of-range pages yield an empty slice with
    the real totals.
    """
    page, page_size = clamp_pagination(page, page_size)
    offset = (page - 1) * page_size
    total = items.count() if isinstance(items, QuerySet) else len(items)
    return PaginatedResult(
        items=list(items[offset:offset + page_size]),
        total=total,
        total_pages=math.ceil(total / page_size),
        page=page,
        page_size=page_size,
    )


def to_int(value, default=0):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def to_bool(value):
    """Interpret checkbox and JSON style booleans."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("on", "true", "1", "yes")


def generate_slug(name):
    """
    Generate a URL-safe slug from a name.

    Lower-cases, turns whitespace and underscores into hyphens, drops
    everything except Unicode letters, digits and hyphens, collapses
    hyphen runs and trims hyphens at both ends.
    """
    slug = name.lower().strip()
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"[^\w-]|_", "", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def get_initials(name):
    """First letters of the first and last word of *name*."""
    parts = (name or "").split()
    if not parts:
        return "?"
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def format_role(role):
    """Capitalize a role for display."""
    if not role:
        return "User"
    return role[0].upper() + role[1:].lower()


def gravatar_url(email):
    """Avatar URL for an email address."""
    from .conf import blog_settings

    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"{blog_settings.GRAVATAR_BASE}{digest}?d=mp"


def _flatten(text):
    return re.sub(r"\n+", " ", text).strip()


def make_excerpt(content, query=""):
    """
    Return an excerpt around the first match of *query*.

    Keeps 50 characters before and 100 after the match. Without a match
    the first 150 characters are used. Clipped ends get an ellipsis.
    """
    index = content.lower().find(query.lower()) if query else -1
    if index == -1:
        excerpt = _flatten(content[:150])
        return excerpt + ("..." if len(content) > 150 else "")

    start = max(0, index - 50)
    end = min(len(content), index + len(query) + 100)
    excerpt = _flatten(content[start:end])
    return ("..." if start > 0 else "") + excerpt + ("..." if end < len(content) else "")


@dataclass
class ActionResult:
    """
    Outcome of a console or comment operation.

    Failed results carry a human readable ``error`` and, for validation
    failures, field-level ``errors``.
    """

    success: bool
    data: Any = None
    error: str = ""
    errors: dict = field(default_factory=dict)

    def __bool__(self):
        return self.success

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error, errors=None):
        return cls(success=False, error=error, errors=errors or {})

    @classmethod
    def invalid(cls, form):
        """Build a failed result from a bound, invalid Django form."""
        errors = {name: [str(msg) for msg in messages] for name, messages in form.errors.items()}
        error = ", ".join(msg for messages in errors.values() for msg in messages)
        return cls.fail(error, errors)

    def as_dict(self):
        if self.success:
            body = {"success": True}
            if self.data is not None:
                body["data"] = self.data
            return body
        body = {"success": False, "error": self.error}
        if self.errors:
            body["errors"] = self.errors
        return body

    def as_response(self, status=None):
        if status is None:
            status = 200 if self.success else 400
        return JsonResponse(self.as_dict(), status=status, encoder=DjangoJSONEncoder)


def get_object_or_none(queryset, **lookup):
    """Like ``get_object_or_404`` but returns None, also for malformed ids."""
    try:
        return queryset.get(**lookup)
    except (ObjectDoesNotExist, ValidationError, ValueError):
        return None
