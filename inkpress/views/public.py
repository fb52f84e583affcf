"""
Public blog pages.
"""
from django.http import Http404
from django.views import View
from django.views.generic import TemplateView

from ..conf import blog_settings
from ..models import Post
from ..search import search_posts
from ..serializers import serialize_comment_node
from ..services.comments import build_comment_tree, create_comment, get_post_comments
from ..services.posts import get_post_by_slug, get_published_memos, get_published_posts
from ..services.tags import get_posts_by_tag
from ..utils import is_admin_authorized
from .base import BlogContextMixin, json_response, request_data


class PostListView(BlogContextMixin, TemplateView):
    """List published posts with pagination."""

    template_name = "inkpress/post_list.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        page = get_published_posts(self.request.GET.get("page", 1), blog_settings.POSTS_PER_PAGE)
        context["page"] = page
        context["posts"] = page.items
        return context


class MemoListView(BlogContextMixin, TemplateView):
    template_name = "inkpress/memo_list.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        page = get_published_memos(self.request.GET.get("page", 1), blog_settings.MEMOS_PER_PAGE)
        context["page"] = page
        context["memos"] = page.items
        context["can_post"] = is_admin_authorized(self.request.user)
        return context


class PostDetailView(BlogContextMixin, TemplateView):
    """Display a single post or page; drafts are visible to admins only."""

    template_name = "inkpress/post_detail.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        post = get_post_by_slug(self.kwargs["slug"])
        if post is None or (not post.published and not is_admin_authorized(self.request.user)):
            raise Http404("Post not found")
        context["post"] = post
        if post.post_type != Post.TYPE_PAGE:
            context["comments"] = build_comment_tree(get_post_comments(post.id))
        return context


class TagDetailView(BlogContextMixin, TemplateView):
    """List published posts with a specific tag."""

    template_name = "inkpress/tag_detail.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        tag, posts = get_posts_by_tag(self.kwargs["slug"])
        if tag is None:
            raise Http404("Tag not found")
        context["tag"] = tag
        context["posts"] = posts
        return context


class SearchView(View):
    def get(self, request):
        return json_response({"results": search_posts(request.GET.get("q", ""))})


class PostCommentsView(View):
    """Comment thread of a post (GET) and comment submission (POST)."""

    def get_post(self, slug):
        post = get_post_by_slug(slug)
        if post is None or not post.published:
            raise Http404("Post not found")
        return post

    def get(self, request, slug):
        post = self.get_post(slug)
        tree = build_comment_tree(get_post_comments(post.id))
        return json_response({"comments": [serialize_comment_node(node) for node in tree]})

    def post(self, request, slug):
        post = self.get_post(slug)
        result = create_comment(post.id, request_data(request), user=request.user)
        return result.as_response(status=201 if result else 400)
