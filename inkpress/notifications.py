"""
Comment notification emails sent through Resend's SMTP relay.

Nothing is sent until a Resend API key and sender address are
configured in site settings. Delivery is best effort: failures are
logged and never reach the commenter.
"""
import logging
import smtplib

from django.contrib.auth import get_user_model
from django.core.mail import EmailMessage, get_connection

from .cache import blog_cache
from .conf import blog_settings
from .models import Profile

logger = logging.getLogger(__name__)


def get_mail_connection(config=None):
    """Return a connection to the relay, or None when email is not set up."""
    config = config or blog_cache.settings()
    api_key = config.get("resend_api_key")
    if not api_key or not config.get("resend_from_email"):
        return None
    return get_connection(
        host=blog_settings.RESEND_SMTP_HOST,
        port=blog_settings.RESEND_SMTP_PORT,
        username="resend",
        password=api_key,
        use_ssl=True,
    )


def post_link(post):
    return f"{blog_settings.APP_URL.rstrip('/')}{post.get_absolute_url()}"


def send_mail_safely(subject, body, recipients):
    """Send one message; return True on success."""
    recipients = [r for r in recipients if r]
    if not recipients:
        return False

    config = blog_cache.settings()
    connection = get_mail_connection(config)
    if connection is None:
        logger.debug("Email not configured, skipping %r", subject)
        return False

    message = EmailMessage(
        subject=subject,
        body=body,
        from_email=config["resend_from_email"],
        to=recipients,
        connection=connection,
    )
    try:
        message.send()
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send %r to %s", subject, ", ".join(recipients))
        return False
    return True


def admin_emails():
    User = get_user_model()
    return list(
        User.objects.filter(profile__role=Profile.ROLE_ADMIN)
        .exclude(email="")
        .values_list("email", flat=True)
    )


def notify_new_comment(comment):
    """Tell admins about a new comment awaiting (or past) moderation."""
    post = comment.post
    body = (
        f"{comment.author_name} commented on \"{post.title}\":\n\n"
        f"{comment.content}\n\n"
        f"Status: {comment.status}\n"
        f"{post_link(post)}\n"
    )
    return send_mail_safely(f"New comment on {post.title}", body, admin_emails())


def notify_comment_reply(comment):
    """Tell the parent comment's author that a reply was approved."""
    parent = comment.parent
    if parent is None or not comment.is_approved:
        return False
    recipient = parent.author_email
    if not recipient or recipient == comment.author_email:
        return False

    post = comment.post
    body = (
        f"{comment.author_name} replied to your comment on \"{post.title}\":\n\n"
        f"{comment.content}\n\n"
        f"{post_link(post)}\n"
    )
    return send_mail_safely(f"New reply on {post.title}", body, [recipient])
