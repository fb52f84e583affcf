"""
Site export and import.

The JSON document keeps the camelCase keys of the portable blog format:

    {
        "exportedAt": "...",
        "version": "1.0",
        "data": {
            "posts": [...], "comments": [...], "tags": [...],
            "postsTags": [...], "navItems": [...],
            "media": [...], "users": [...], "settings": {...}
        }
    }

``media``, ``users`` and ``settings`` are optional. Imports only insert
rows that do not exist yet; rows that clash with a unique value or point
at missing rows are skipped and not counted.
"""
import logging
from datetime import timezone as dt_timezone

from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .models import Comment, Media, NavItem, Post, PostTag, Profile, SiteSettings, Tag
from .utils import require_admin

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"

# Row-level problems that make an import skip the row
ROW_ERRORS = (IntegrityError, ValidationError, ValueError, TypeError, KeyError)


class InvalidImport(ValueError):
    """The uploaded document cannot be imported."""


def _iso(value):
    return value.isoformat() if value else None


def _parse_date(value):
    if not value:
        return None
    try:
        parsed = parse_datetime(str(value))
    except ValueError:
        return None
    if parsed is not None and timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


# -- export -----------------------------------------------------------------

def export_post(post):
    return {
        "id": str(post.id),
        "title": post.title,
        "slug": post.slug,
        "content": post.content,
        "published": post.published,
        "postType": post.post_type,
        "authorId": str(post.author_id),
        "publishedAt": _iso(post.published_at),
        "createdAt": _iso(post.created_at),
        "updatedAt": _iso(post.updated_at),
    }


def export_comment(comment):
    return {
        "id": str(comment.id),
        "content": comment.content,
        "postId": str(comment.post_id),
        "userId": str(comment.user_id) if comment.user_id else None,
        "parentId": str(comment.parent_id) if comment.parent_id else None,
        "guestName": comment.guest_name or None,
        "guestEmail": comment.guest_email or None,
        "guestWebsite": comment.guest_website or None,
        "status": comment.status,
        "spamScore": comment.spam_score,
        "createdAt": _iso(comment.created_at),
    }


def export_media(item):
    return {
        "id": str(item.id),
        "url": item.url,
        "key": item.key or None,
        "filename": item.filename,
        "mimeType": item.mime_type or None,
        "size": item.size,
        "width": item.width,
        "height": item.height,
        "createdAt": _iso(item.created_at),
    }


def export_user(user):
    profile = getattr(user, "profile", None)
    return {
        "id": str(user.pk),
        "name": user.get_full_name() or user.get_username(),
        "email": user.email,
        "bio": profile.bio if profile else None,
        "website": profile.website if profile else None,
        "role": profile.role if profile else Profile.ROLE_USER,
        "createdAt": _iso(user.date_joined),
    }


def export_data(actor, include_media=False, include_users=False, include_settings=False):
    """Build the export document."""
    require_admin(actor)
    data = {
        "posts": [export_post(post) for post in Post.objects.order_by("created_at")],
        "comments": [export_comment(c) for c in Comment.objects.order_by("created_at")],
        "tags": [
            {"id": str(tag.id), "name": tag.name, "slug": tag.slug}
            for tag in Tag.objects.all()
        ],
        "postsTags": [
            {"postId": str(post_id), "tagId": str(tag_id)}
            for post_id, tag_id in PostTag.objects.values_list("post_id", "tag_id")
        ],
        "navItems": [
            {
                "id": str(item.id),
                "label": item.label,
                "url": item.url,
                "openInNewTab": item.open_in_new_tab,
                "sortOrder": item.sort_order,
                "createdAt": _iso(item.created_at),
            }
            for item in NavItem.objects.all()
        ],
    }
    if include_media:
        data["media"] = [export_media(item) for item in Media.objects.all()]
    if include_users:
        users = get_user_model().objects.select_related("profile").order_by("date_joined")
        data["users"] = [export_user(user) for user in users]
    if include_settings:
        site = SiteSettings.objects.filter(pk=SiteSettings.SINGLETON_ID).first()
        data["settings"] = {
            "siteTitle": site.site_title,
            "siteDescription": site.site_description,
            "allowRegistration": site.allow_registration,
        } if site else None

    return {
        "exportedAt": _iso(timezone.now()),
        "version": EXPORT_VERSION,
        "data": data,
    }


# -- import -----------------------------------------------------------------

def _payload_data(payload):
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise InvalidImport("Invalid import data")
    return payload["data"]


def _rows(data, name):
    rows = data.get(name) or []
    return [row for row in rows if isinstance(row, dict)] if isinstance(rows, list) else []


def _insert(model, row_id, build):
    """
    Insert a row unless its id is taken; return the instance or None.

    Each insert runs in its own savepoint so a conflicting row does not
    abort the surrounding transaction.
    """
    try:
        with transaction.atomic():
            if row_id is not None and model.objects.filter(pk=row_id).exists():
                return None
            return build()
    except ROW_ERRORS as exc:
        logger.debug("Skipping %s %s: %s", model.__name__, row_id, exc)
        return None


def _import_tag(row):
    return Tag.objects.create(id=row["id"], name=row["name"], slug=row["slug"])


def _import_post(row, owner):
    post_type = row.get("postType") or Post.TYPE_POST
    if post_type not in dict(Post.TYPE_CHOICES):
        post_type = Post.TYPE_POST
    post = Post.objects.create(
        id=row["id"],
        title=row["title"],
        slug=row["slug"],
        content=row["content"],
        published=bool(row.get("published")),
        post_type=post_type,
        author=owner,
        published_at=_parse_date(row.get("publishedAt")),
        created_at=_parse_date(row.get("createdAt")) or timezone.now(),
    )
    updated_at = _parse_date(row.get("updatedAt"))
    if updated_at:
        # auto_now would overwrite the original timestamp on save()
        Post.objects.filter(pk=post.pk).update(updated_at=updated_at)
    return post


def _import_post_tag(row):
    post_id, tag_id = row["postId"], row["tagId"]
    if not Post.objects.filter(pk=post_id).exists() or not Tag.objects.filter(pk=tag_id).exists():
        return None
    if PostTag.objects.filter(post_id=post_id, tag_id=tag_id).exists():
        return None
    return PostTag.objects.create(post_id=post_id, tag_id=tag_id)


def _import_comment(row, map_user):
    if not Post.objects.filter(pk=row["postId"]).exists():
        return None
    status = row.get("status") or Comment.STATUS_PENDING
    if status not in dict(Comment.STATUS_CHOICES):
        status = Comment.STATUS_PENDING
    return Comment.objects.create(
        id=row["id"],
        content=row["content"],
        post_id=row["postId"],
        user=map_user(row.get("userId")),
        guest_name=row.get("guestName") or "",
        guest_email=row.get("guestEmail") or "",
        guest_website=row.get("guestWebsite") or "",
        status=status,
        spam_score=row.get("spamScore"),
        created_at=_parse_date(row.get("createdAt")) or timezone.now(),
    )


def _link_comment_parents(rows, inserted_ids):
    """Second pass: attach replies to parents that exist on the same post."""
    for row in rows:
        if row.get("id") not in inserted_ids or not row.get("parentId"):
            continue
        parent = Comment.objects.filter(pk=row["parentId"], post_id=row["postId"]).first()
        if parent is not None:
            Comment.objects.filter(pk=row["id"]).update(parent=parent)


def _import_nav_item(row):
    return NavItem.objects.create(
        id=row["id"],
        label=row["label"],
        url=row["url"],
        open_in_new_tab=bool(row.get("openInNewTab")),
        sort_order=int(row.get("sortOrder") or 0),
        created_at=_parse_date(row.get("createdAt")) or timezone.now(),
    )


def _import_media(row):
    return Media.objects.create(
        id=row["id"],
        url=row["url"],
        key=row.get("key") or "",
        filename=row["filename"],
        mime_type=row.get("mimeType") or "",
        size=row.get("size"),
        width=row.get("width"),
        height=row.get("height"),
        created_at=_parse_date(row.get("createdAt")) or timezone.now(),
    )


def import_content(data, owner, map_user):
    """
    Insert tags, posts, links, comments, navigation and media rows.

    Posts are owned by *owner*; ``map_user(old_user_id)`` returns the
    local user for an imported comment (or None for a guest comment).
    Returns the number of inserted rows per entity.
    """
    counts = {}

    def run(name, rows, build):
        inserted = [_insert(model_for[name], row.get("id"), lambda row=row: build(row)) for row in rows]
        inserted = [obj for obj in inserted if obj is not None]
        counts[name] = len(inserted)
        return inserted

    model_for = {
        "tags": Tag,
        "posts": Post,
        "postsTags": PostTag,
        "comments": Comment,
        "navItems": NavItem,
        "media": Media,
    }

    run("tags", _rows(data, "tags"), _import_tag)
    run("posts", _rows(data, "posts"), lambda row: _import_post(row, owner))
    run("postsTags", _rows(data, "postsTags"), _import_post_tag)

    comment_rows = _rows(data, "comments")
    comments = run("comments", comment_rows, lambda row: _import_comment(row, map_user))
    _link_comment_parents(comment_rows, {str(c.id) for c in comments})

    run("navItems", _rows(data, "navItems"), _import_nav_item)
    run("media", _rows(data, "media"), _import_media)
    return counts


@transaction.atomic
def import_data(actor, payload):
    """Import an export document into a running site."""
    require_admin(actor)
    data = _payload_data(payload)
    counts = import_content(data, owner=actor, map_user=lambda old_id: actor if old_id else None)

    imported_settings = data.get("settings")
    counts["settings"] = False
    if isinstance(imported_settings, dict):
        site = SiteSettings.load()
        if imported_settings.get("siteTitle"):
            site.site_title = imported_settings["siteTitle"]
        if imported_settings.get("siteDescription"):
            site.site_description = imported_settings["siteDescription"]
        if imported_settings.get("allowRegistration") is not None:
            site.allow_registration = bool(imported_settings["allowRegistration"])
        site.save()
        counts["settings"] = True

    logger.info("Import by %s: %s", actor.get_username(), counts)
    return counts


# -- first-run import ---------------------------------------------------------

def ensure_uninitialized():
    if get_user_model().objects.exists():
        raise PermissionDenied("Instance already initialized")


def parse_init_import(payload):
    """List the users of an export so one can be chosen as the new admin."""
    ensure_uninitialized()
    data = _payload_data(payload)
    users = _rows(data, "users")
    if not users:
        raise InvalidImport("No users found in import data")
    return {
        "users": [
            {
                "id": str(user.get("id")),
                "name": user.get("name"),
                "email": user.get("email"),
                "role": user.get("role"),
            }
            for user in users
        ],
        "hasSettings": bool(data.get("settings")),
        "hasPosts": bool(_rows(data, "posts")),
        "hasComments": bool(_rows(data, "comments")),
    }


@transaction.atomic
def initialize_from_import(payload, selected_user_id, password):
    """
    Bootstrap an empty site from an export.

    The selected exported user is recreated as the admin with
    *password*; all content is imported as theirs and registration is
    closed.
    """
    ensure_uninitialized()
    data = _payload_data(payload)
    if not selected_user_id or not password:
        raise InvalidImport("User and password required")

    selected_user_id = str(selected_user_id)
    selected = next(
        (u for u in _rows(data, "users") if str(u.get("id")) == selected_user_id),
        None,
    )
    if selected is None or not selected.get("email"):
        raise InvalidImport("Selected user not found")

    email = selected["email"].strip().lower()
    user = get_user_model().objects.create_user(
        username=email,
        email=email,
        password=password,
        first_name=(selected.get("name") or "")[:150],
    )
    user.profile, _ = Profile.objects.update_or_create(
        user=user,
        defaults={
            "role": Profile.ROLE_ADMIN,
            "bio": selected.get("bio") or "",
            "website": selected.get("website") or "",
        },
    )

    counts = import_content(
        data,
        owner=user,
        map_user=lambda old_id: user if old_id is not None and str(old_id) == selected_user_id else None,
    )

    imported_settings = data.get("settings") or {}
    site = SiteSettings.load()
    site.site_title = imported_settings.get("siteTitle") or SiteSettings._meta.get_field("site_title").default
    site.site_description = imported_settings.get("siteDescription") or ""
    site.allow_registration = False
    site.save()

    logger.info("Initialized from import as %s: %s", email, counts)
    return user, counts
