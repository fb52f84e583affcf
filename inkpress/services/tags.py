"""Tag management and tag-based post lookups."""
import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from ..cache import blog_cache
from ..forms import TagForm
from ..models import Post, PostTag, Tag
from ..serializers import serialize_tag
from ..utils import ActionResult, generate_slug, get_object_or_none, require_admin

logger = logging.getLogger(__name__)


def get_tags():
    return blog_cache.tags()


def get_tags_uncached():
    return list(Tag.objects.order_by("name"))


def _save_tag(tag, name):
    form = TagForm({"name": name})
    if not form.is_valid():
        return ActionResult.invalid(form)

    name = form.cleaned_data["name"]
    slug = generate_slug(name)
    if not slug:
        return ActionResult.fail("Tag name must contain letters or numbers")

    tag.name = name
    tag.slug = slug
    try:
        with transaction.atomic():
            tag.save()
    except IntegrityError:
        return ActionResult.fail("A tag with this name already exists")
    return ActionResult.ok(serialize_tag(tag))


def create_tag(actor, name):
    require_admin(actor)
    result = _save_tag(Tag(), name)
    if result:
        logger.info("Tag %r created", result.data["name"])
        result.data = None
    return result


def create_tag_inline(actor, name):
    """Create a tag from the post editor and return it."""
    require_admin(actor)
    return _save_tag(Tag(), name)


def update_tag(actor, tag_id, name):
    require_admin(actor)
    tag = get_object_or_none(Tag.objects, pk=tag_id)
    if tag is None:
        return ActionResult.fail("Tag not found")
    return _save_tag(tag, name)


def delete_tag(actor, tag_id):
    """Delete a tag and its post links; the posts themselves stay."""
    require_admin(actor)
    tag = get_object_or_none(Tag.objects, pk=tag_id)
    if tag is None:
        return ActionResult.fail("Tag not found")
    tag.delete()
    return ActionResult.ok()


def get_post_tags(post_id):
    return list(Tag.objects.filter(post_tags__post_id=post_id).order_by("name"))


def replace_post_tags(post, tags):
    """Make *tags* the complete tag set of *post*."""
    with transaction.atomic():
        PostTag.objects.filter(post=post).delete()
        PostTag.objects.bulk_create([PostTag(post=post, tag=tag) for tag in tags])
    # bulk_create sends no signals
    blog_cache.invalidate_all_post_caches(post.slug)


def update_post_tags(actor, post_id, tag_ids):
    require_admin(actor)
    post = get_object_or_none(Post.objects, pk=post_id)
    if post is None:
        return ActionResult.fail("Post not found")
    try:
        tags = list(Tag.objects.filter(pk__in=set(tag_ids)))
    except ValidationError:
        return ActionResult.fail("Invalid tag id")
    replace_post_tags(post, tags)
    return ActionResult.ok([serialize_tag(tag) for tag in tags])


def get_tag_by_slug(slug):
    return Tag.objects.filter(slug=slug).first()


def get_posts_by_tag(slug):
    """Return ``(tag, published posts newest first)`` or ``(None, [])``."""
    tag = get_tag_by_slug(slug)
    if tag is None:
        return None, []
    posts = tag.posts.published().newest_published_first().with_relations()
    return tag, list(posts)
