"""
Comment submission and moderation.

Guest comments are scored for spam before they are stored:

    auto-approved (whitelist or low score) -> approved
    spam (high score or prompt injection)  -> rejected
    anything else                          -> pending

Comments from signed-in users skip scoring and are approved directly.
"""
import logging

from django.db import transaction

from ..forms import CommentForm
from ..models import Comment, Post
from ..notifications import notify_comment_reply, notify_new_comment
from ..serializers import serialize_comment
from ..spam import add_to_whitelist, check_comment_spam
from ..utils import ActionResult, get_object_or_none, require_admin

logger = logging.getLogger(__name__)


def status_for(check):
    if check.auto_approved:
        return Comment.STATUS_APPROVED
    if check.is_spam:
        return Comment.STATUS_REJECTED
    return Comment.STATUS_PENDING


def _send_notifications(comment, new=True):
    """Runs after commit; failures are logged, the comment is already saved."""
    try:
        if new and comment.status != Comment.STATUS_REJECTED:
            notify_new_comment(comment)
        if comment.parent_id and comment.is_approved:
            notify_comment_reply(comment)
    except Exception:
        logger.exception("Notifications for comment %s failed", comment.pk)


def create_comment(post_id, data, user=None):
    """Validate, score and store a comment on a published post."""
    post = get_object_or_none(Post.objects, pk=post_id)
    if post is None or not post.published:
        return ActionResult.fail("Post not found")

    is_guest = user is None or not user.is_authenticated
    form = CommentForm(data, guest=is_guest)
    if not form.is_valid():
        return ActionResult.invalid(form)
    cleaned = form.cleaned_data

    parent = None
    if cleaned["parent_id"]:
        parent = Comment.objects.filter(pk=cleaned["parent_id"], post=post).first()
        if parent is None:
            return ActionResult.fail("Parent comment not found")

    comment = Comment(post=post, parent=parent, content=cleaned["content"])
    if is_guest:
        comment.guest_name = cleaned["guest_name"]
        comment.guest_email = cleaned["guest_email"].lower()
        comment.guest_website = cleaned["guest_website"]
        check = check_comment_spam(
            comment.content,
            comment.guest_name,
            comment.guest_email,
            comment.guest_website,
        )
        comment.status = status_for(check)
        comment.spam_score = check.score
        comment.spam_reason = check.reason
        logger.info(
            "Guest comment on %r scored %.1f (%s) -> %s",
            post.slug, check.score, check.reason, comment.status,
        )
    else:
        comment.user = user
        comment.status = Comment.STATUS_APPROVED

    comment.save()
    transaction.on_commit(lambda: _send_notifications(comment))
    return ActionResult.ok(serialize_comment(comment))


def get_post_comments(post_id):
    """Approved comments of a post, newest first."""
    return list(
        Comment.objects.approved()
        .filter(post_id=post_id)
        .select_related("user", "user__profile")
        .order_by("-created_at")
    )


def build_comment_tree(comments):
    """
    Nest replies under their parents.

    Returns a list of ``{"comment": ..., "replies": [...]}`` nodes in
    input order. Replies whose parent is not in *comments* become roots.
    """
    nodes = {comment.id: {"comment": comment, "replies": []} for comment in comments}
    roots = []
    for comment in comments:
        node = nodes[comment.id]
        parent = nodes.get(comment.parent_id)
        if parent is not None and parent is not node:
            parent["replies"].append(node)
        else:
            roots.append(node)
    return roots


def get_comments(actor, status=None):
    """All comments for moderation, with their post."""
    require_admin(actor)
    comments = Comment.objects.select_related("post", "user", "user__profile").order_by("-created_at")
    if status:
        comments = comments.filter(status=status)
    return list(comments)


def _get_comment(comment_id):
    return get_object_or_none(Comment.objects.select_related("post", "parent"), pk=comment_id)


def approve_comment(actor, comment_id, whitelist=False):
    """Approve a comment, optionally whitelisting the guest's email."""
    require_admin(actor)
    comment = _get_comment(comment_id)
    if comment is None:
        return ActionResult.fail("Comment not found")

    comment.approve()
    if whitelist and comment.guest_email:
        add_to_whitelist(comment.guest_email)
    if comment.parent_id:
        transaction.on_commit(lambda: _send_notifications(comment, new=False))
    return ActionResult.ok()


def reject_comment(actor, comment_id):
    require_admin(actor)
    comment = _get_comment(comment_id)
    if comment is None:
        return ActionResult.fail("Comment not found")
    comment.reject()
    return ActionResult.ok()


def delete_comment(actor, comment_id):
    """Delete a comment together with its replies."""
    require_admin(actor)
    comment = _get_comment(comment_id)
    if comment is None:
        return ActionResult.fail("Comment not found")
    comment.delete()
    return ActionResult.ok()
