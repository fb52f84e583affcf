"""Post, page and memo operations."""
import logging
import time

from django.db import IntegrityError, transaction

from ..cache import blog_cache
from ..conf import blog_settings
from ..forms import PostForm
from ..models import Post
from ..serializers import serialize_post
from ..utils import (
    ActionResult,
    clamp_pagination,
    get_object_or_none,
    is_admin_authorized,
    paginate_items,
    require_admin,
)
from .tags import replace_post_tags

logger = logging.getLogger(__name__)

DUPLICATE_SLUG = "A post with this slug already exists"


def memo_stamp():
    return f"memo-{int(time.time() * 1000)}"


def get_posts(actor, page=1, page_size=None, search=None):
    """Admin listing of every post type, newest first."""
    require_admin(actor)
    posts = Post.objects.with_relations().order_by("-created_at")
    if search and search.strip():
        posts = posts.matching(search.strip())
    return paginate_items(posts, page, page_size or blog_settings.ADMIN_POSTS_PER_PAGE)


def get_published_posts(page=1, page_size=None):
    page, page_size = clamp_pagination(page, page_size or blog_settings.POSTS_PER_PAGE)
    return blog_cache.published_posts(page, page_size)


def get_published_memos(page=1, page_size=None):
    memos = (
        Post.objects.published()
        .of_type(Post.TYPE_MEMO)
        .select_related("author", "author__profile")
        .order_by("-created_at")
    )
    return paginate_items(memos, page, page_size or blog_settings.MEMOS_PER_PAGE)


def get_post_by_slug(slug):
    return blog_cache.post_by_slug(slug)


def get_post_by_slug_uncached(slug):
    return Post.objects.with_relations().filter(slug=slug).first()


def get_post_by_id(post_id):
    return get_object_or_none(Post.objects.with_relations(), pk=post_id)


def _save_post(form, author=None):
    post = form.save(commit=False)
    if author is not None:
        post.author = author
    try:
        with transaction.atomic():
            post.save()
            if "tag_ids" in form.data:
                tags = [] if post.is_memo else form.cleaned_data["tag_ids"]
                replace_post_tags(post, tags)
    except IntegrityError:
        return ActionResult.fail(DUPLICATE_SLUG)
    return ActionResult.ok(serialize_post(post))


def create_post(actor, data):
    """
    Create a post, page or memo.

    Memos without a title or slug get ``memo-<epoch ms>`` for both.
    Tags are only attached to posts and pages.
    """
    require_admin(actor)
    data = dict(data)
    data["post_type"] = data.get("post_type") or Post.TYPE_POST
    if data["post_type"] == Post.TYPE_MEMO and not (data.get("title") and data.get("slug")):
        stamp = memo_stamp()
        data["title"] = data.get("title") or stamp
        data["slug"] = data.get("slug") or stamp

    form = PostForm(data)
    if not form.is_valid():
        return ActionResult.invalid(form)

    result = _save_post(form, author=actor)
    if result:
        logger.info("Post %r created by %s", result.data["slug"], actor.get_username())
    return result


def update_post(actor, post_id, data):
    """Replace a post's fields; the old and new slug are both invalidated."""
    require_admin(actor)
    post = get_object_or_none(Post.objects, pk=post_id)
    if post is None:
        return ActionResult.fail("Post not found")

    data = dict(data)
    data["post_type"] = data.get("post_type") or post.post_type
    if not data.get("published_at"):
        data["published_at"] = post.published_at

    form = PostForm(data, instance=post)
    if not form.is_valid():
        return ActionResult.invalid(form)
    return _save_post(form)


def delete_post(actor, post_id):
    """Delete a post with its tag links and comments."""
    require_admin(actor)
    post = get_object_or_none(Post.objects, pk=post_id)
    if post is None:
        return ActionResult.fail("Post not found")
    post.delete()
    logger.info("Post %r deleted by %s", post.slug, actor.get_username())
    return ActionResult.ok()


# Memo shortcuts report permission problems as results, the quick
# editor on the memo page shows them inline.

def create_quick_memo(actor, content):
    if not is_admin_authorized(actor):
        return ActionResult.fail("Admin permission required")
    content = (content or "").strip()
    if not content:
        return ActionResult.fail("Content cannot be empty")

    stamp = memo_stamp()
    try:
        with transaction.atomic():
            memo = Post.objects.create(
                title=stamp,
                slug=stamp,
                content=content,
                author=actor,
                published=True,
                post_type=Post.TYPE_MEMO,
            )
    except IntegrityError:
        return ActionResult.fail(DUPLICATE_SLUG)
    return ActionResult.ok(serialize_post(memo))


def _get_memo(memo_id):
    return get_object_or_none(Post.objects.of_type(Post.TYPE_MEMO), pk=memo_id)


def update_memo(actor, memo_id, content):
    if not is_admin_authorized(actor):
        return ActionResult.fail("Admin permission required")
    content = (content or "").strip()
    if not content:
        return ActionResult.fail("Content cannot be empty")
    memo = _get_memo(memo_id)
    if memo is None:
        return ActionResult.fail("Memo not found")
    memo.content = content
    memo.save()
    return ActionResult.ok(serialize_post(memo))


def delete_memo(actor, memo_id):
    if not is_admin_authorized(actor):
        return ActionResult.fail("Admin permission required")
    memo = _get_memo(memo_id)
    if memo is None:
        return ActionResult.fail("Memo not found")
    memo.delete()
    return ActionResult.ok()
