"""
Admin console JSON endpoints.

Every endpoint requires an admin session. Failures come back as
``{"success": false, "error": ...}``.
"""
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.http import Http404
from django.utils import timezone

from ..analytics import create_umami_client
from ..models import Comment, Media, Post, Tag
from ..serializers import (
    serialize_comment,
    serialize_media,
    serialize_nav_item,
    serialize_post,
    serialize_tag,
    serialize_user,
)
from ..services import comments, media, navigation, posts, settings, tags, users
from ..spam import add_to_whitelist, get_whitelisted_emails, remove_from_whitelist
from ..utils import ActionResult, require_admin, to_bool
from .base import ConsoleView, ok


def _epoch_ms(moment):
    return int(moment.timestamp() * 1000)


class DashboardView(ConsoleView):
    """Content counts plus Umami traffic for the last day and week."""

    def get(self, request):
        require_admin(request.user)
        data = {
            "counts": {
                "posts": Post.objects.of_type(Post.TYPE_POST).count(),
                "published_posts": Post.objects.published().of_type(Post.TYPE_POST).count(),
                "memos": Post.objects.of_type(Post.TYPE_MEMO).count(),
                "pages": Post.objects.of_type(Post.TYPE_PAGE).count(),
                "comments": Comment.objects.count(),
                "pending_comments": Comment.objects.pending().count(),
                "tags": Tag.objects.count(),
                "media": Media.objects.count(),
                "users": get_user_model().objects.count(),
            },
            "analytics": None,
        }

        config = settings.get_settings()
        client = create_umami_client(config)
        if config.get("umami_enabled") and client.is_configured():
            now = timezone.now()
            end = _epoch_ms(now)
            data["analytics"] = {
                "last_24h": client.get_stats(_epoch_ms(now - timedelta(hours=24)), end),
                "last_7d": client.get_stats(_epoch_ms(now - timedelta(days=7)), end),
                "pageviews": client.get_pageviews(_epoch_ms(now - timedelta(days=7)), end, unit="day"),
                "active": client.get_active_visitors(),
            }
        return ok(data)


# -- posts --------------------------------------------------------------------

class PostListView(ConsoleView):
    def get(self, request):
        page = posts.get_posts(
            request.user,
            page=request.GET.get("page", 1),
            page_size=request.GET.get("page_size"),
            search=request.GET.get("search"),
        )
        return ok({
            "posts": [serialize_post(post, with_content=False) for post in page.items],
            "total": page.total,
            "total_pages": page.total_pages,
            "current_page": page.current_page,
        })

    def post(self, request):
        result = posts.create_post(request.user, self.get_data())
        return result.as_response(status=201 if result else 400)


class PostDetailView(ConsoleView):
    def get(self, request, pk):
        require_admin(request.user)
        post = posts.get_post_by_id(pk)
        if post is None:
            raise Http404("Post not found")
        return ok(serialize_post(post))

    def put(self, request, pk):
        return posts.update_post(request.user, pk, self.get_data()).as_response()

    def delete(self, request, pk):
        return posts.delete_post(request.user, pk).as_response()


class PostTagsView(ConsoleView):
    def get(self, request, pk):
        require_admin(request.user)
        return ok([serialize_tag(tag) for tag in tags.get_post_tags(pk)])

    def put(self, request, pk):
        tag_ids = self.get_data().get("tag_ids") or []
        return tags.update_post_tags(request.user, pk, tag_ids).as_response()


class MemoListView(ConsoleView):
    def post(self, request):
        result = posts.create_quick_memo(request.user, self.get_data().get("content"))
        return result.as_response(status=201 if result else 400)


class MemoDetailView(ConsoleView):
    def put(self, request, pk):
        return posts.update_memo(request.user, pk, self.get_data().get("content")).as_response()

    def delete(self, request, pk):
        return posts.delete_memo(request.user, pk).as_response()


# -- tags ---------------------------------------------------------------------

class TagListView(ConsoleView):
    def get(self, request):
        require_admin(request.user)
        return ok([
            dict(serialize_tag(tag), post_count=tag.post_count)
            for tag in tags.get_tags_uncached()
        ])

    def post(self, request):
        data = self.get_data()
        if to_bool(data.get("inline", False)):
            result = tags.create_tag_inline(request.user, data.get("name", ""))
        else:
            result = tags.create_tag(request.user, data.get("name", ""))
        return result.as_response(status=201 if result else 400)


class TagDetailView(ConsoleView):
    def put(self, request, pk):
        return tags.update_tag(request.user, pk, self.get_data().get("name", "")).as_response()

    def delete(self, request, pk):
        return tags.delete_tag(request.user, pk).as_response()


# -- comments -----------------------------------------------------------------

class CommentListView(ConsoleView):
    def get(self, request):
        items = comments.get_comments(request.user, status=request.GET.get("status"))
        return ok([serialize_comment(comment, with_post=True) for comment in items])


class CommentDetailView(ConsoleView):
    def delete(self, request, pk):
        return comments.delete_comment(request.user, pk).as_response()


class CommentApproveView(ConsoleView):
    def post(self, request, pk):
        whitelist = to_bool(self.get_data().get("whitelist", False))
        return comments.approve_comment(request.user, pk, whitelist=whitelist).as_response()


class CommentRejectView(ConsoleView):
    def post(self, request, pk):
        return comments.reject_comment(request.user, pk).as_response()


class WhitelistView(ConsoleView):
    def get(self, request):
        require_admin(request.user)
        return ok(get_whitelisted_emails())

    def post(self, request):
        require_admin(request.user)
        email = (self.get_data().get("email") or "").strip()
        if not email:
            return ActionResult.fail("Email is required").as_response()
        add_to_whitelist(email)
        return ok()

    def delete(self, request):
        require_admin(request.user)
        email = (self.get_data().get("email") or "").strip()
        if not email:
            return ActionResult.fail("Email is required").as_response()
        remove_from_whitelist(email)
        return ok()


# -- media --------------------------------------------------------------------

class MediaListView(ConsoleView):
    def get(self, request):
        return ok([serialize_media(item) for item in media.get_media(request.user)])

    def post(self, request):
        result = media.upload_media(request.user, request.FILES.get("file"))
        return result.as_response(status=201 if result else 400)


class MediaDetailView(ConsoleView):
    def delete(self, request, pk):
        return media.delete_media(request.user, pk).as_response()


# -- navigation ---------------------------------------------------------------

class NavItemListView(ConsoleView):
    def get(self, request):
        require_admin(request.user)
        return ok([serialize_nav_item(item) for item in navigation.get_nav_items_uncached()])

    def post(self, request):
        result = navigation.create_nav_item(request.user, self.get_data())
        return result.as_response(status=201 if result else 400)


class NavItemDetailView(ConsoleView):
    def put(self, request, pk):
        return navigation.update_nav_item(request.user, pk, self.get_data()).as_response()

    def delete(self, request, pk):
        return navigation.delete_nav_item(request.user, pk).as_response()


class NavItemReorderView(ConsoleView):
    def post(self, request):
        ids = self.get_data().get("ids") or []
        return navigation.reorder_nav_items(request.user, ids).as_response()


# -- settings -----------------------------------------------------------------

class SettingsView(ConsoleView):
    def get(self, request):
        require_admin(request.user)
        return ok(settings.get_settings())

    def put(self, request):
        return settings.update_settings(request.user, self.get_data()).as_response()

    post = put


# -- users --------------------------------------------------------------------

class UserListView(ConsoleView):
    def get(self, request):
        return ok([serialize_user(user) for user in users.get_users(request.user)])


class UserDetailView(ConsoleView):
    def get(self, request, pk):
        user = users.get_user_by_id(request.user, pk)
        if user is None:
            raise Http404("User not found")
        return ok(serialize_user(user))

    def put(self, request, pk):
        return users.update_user(request.user, pk, self.get_data()).as_response()

    def delete(self, request, pk):
        return users.delete_user(request.user, pk).as_response()
