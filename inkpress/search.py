"""Full-text-ish search over published posts."""
from .conf import blog_settings
from .models import Post
from .utils import make_excerpt


def search_posts(query, limit=None):
    """
    Return published posts whose title or content contains *query*.

    Queries shorter than ``SEARCH_MIN_LENGTH`` characters return nothing.
    Each result is a dict with an excerpt around the first match.
    """
    query = (query or "").strip()
    if len(query) < blog_settings.SEARCH_MIN_LENGTH:
        return []
    if limit is None:
        limit = blog_settings.SEARCH_LIMIT

    posts = Post.objects.published().matching(query).newest_published_first()[:limit]
    return [
        {
            "id": str(post.id),
            "title": post.title,
            "slug": post.slug,
            "excerpt": make_excerpt(post.content, query),
            "post_type": post.post_type,
            "published_at": post.published_at,
            "created_at": post.created_at,
        }
        for post in posts
    ]
