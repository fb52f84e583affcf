"""
Plain-dict representations of models for JSON responses.
"""
from .utils import format_role, get_initials, gravatar_url


def serialize_tag(tag):
    return {"id": str(tag.id), "name": tag.name, "slug": tag.slug}


def serialize_author(user):
    if user is None:
        return None
    name = user.get_full_name() or user.get_username()
    profile = getattr(user, "profile", None)
    return {
        "id": user.pk,
        "name": name,
        "image": (profile.image if profile else "") or gravatar_url(user.email or ""),
        "initials": get_initials(name),
    }


def serialize_post(post, with_content=True):
    data = {
        "id": str(post.id),
        "title": post.title,
        "slug": post.slug,
        "published": post.published,
        "post_type": post.post_type,
        "published_at": post.published_at,
        "created_at": post.created_at,
        "updated_at": post.updated_at,
        "author": serialize_author(post.author),
        "tags": [serialize_tag(tag) for tag in post.tags.all()],
    }
    if with_content:
        data["content"] = post.content
    return data


def serialize_comment(comment, with_post=False):
    data = {
        "id": str(comment.id),
        "post_id": str(comment.post_id),
        "parent_id": str(comment.parent_id) if comment.parent_id else None,
        "content": comment.content,
        "author_name": comment.author_name,
        "author_website": comment.author_website,
        "avatar": gravatar_url(comment.author_email or ""),
        "is_guest": comment.is_guest,
        "status": comment.status,
        "created_at": comment.created_at,
    }
    if with_post:
        data["post_title"] = comment.post.title if comment.post_id else None
        data["author_email"] = comment.author_email
        data["spam_score"] = comment.spam_score
        data["spam_reason"] = comment.spam_reason
    return data


def serialize_comment_node(node):
    data = serialize_comment(node["comment"])
    data["replies"] = [serialize_comment_node(child) for child in node["replies"]]
    return data


def serialize_nav_item(item):
    return {
        "id": str(item.id),
        "label": item.label,
        "url": item.url,
        "open_in_new_tab": item.open_in_new_tab,
        "sort_order": item.sort_order,
    }


def serialize_media(media):
    return {
        "id": str(media.id),
        "url": media.url,
        "key": media.key,
        "filename": media.filename,
        "mime_type": media.mime_type,
        "size": media.size,
        "width": media.width,
        "height": media.height,
        "created_at": media.created_at,
    }


def serialize_user(user):
    profile = getattr(user, "profile", None)
    role = profile.role if profile else "user"
    name = user.get_full_name() or user.get_username()
    return {
        "id": user.pk,
        "name": name,
        "email": user.email,
        "role": role,
        "role_display": format_role(role),
        "initials": get_initials(name),
        "image": profile.image if profile else "",
        "bio": profile.bio if profile else "",
        "website": profile.website if profile else "",
        "date_joined": user.date_joined,
    }


def serialize_passkey(passkey):
    return {
        "id": passkey.pk,
        "name": passkey.name,
        "device_type": passkey.device_type,
        "backed_up": passkey.backed_up,
        "created_at": passkey.created_at,
    }
