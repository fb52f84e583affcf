"""
Models for django-inkpress.

All models are importable from inkpress.models:

    from inkpress.models import Post, Tag, Comment, SiteSettings
"""
from .accounts import Passkey, Profile
from .comments import Comment, EmailWhitelist
from .media import Media
from .posts import Post, PostTag, Tag
from .site import NavItem, SiteSettings

__all__ = [
    # Accounts
    "Profile",
    "Passkey",
    # Posts
    "Post",
    "PostTag",
    "Tag",
    # Comments
    "Comment",
    "EmailWhitelist",
    # Media
    "Media",
    # Site
    "NavItem",
    "SiteSettings",
]
