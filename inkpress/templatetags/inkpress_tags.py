"""
Template filters for rendering post and comment bodies.

    {% load inkpress_tags %}
    {{ post.content|markdown }}
    {{ comment.content|comment_markdown }}
"""
import markdown as markdown_lib
from django import template
from django.utils.html import escape
from django.utils.safestring import mark_safe

from ..utils import gravatar_url

register = template.Library()

MD_EXTENSIONS = ["extra", "sane_lists", "smarty"]


def render_markdown(text):
    return markdown_lib.markdown(text or "", extensions=MD_EXTENSIONS)


@register.filter(name="markdown")
def markdown_filter(text):
    """Render trusted Markdown written by site admins."""
    return mark_safe(render_markdown(text))


@register.filter
def comment_markdown(text):
    """Render visitor Markdown with raw HTML escaped first."""
    return mark_safe(render_markdown(escape(text or "")))


@register.filter
def gravatar(email):
    return gravatar_url(email or "")
