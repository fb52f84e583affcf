"""
URL configuration for django-inkpress.

Include in your project urls.py:

    path('', include('inkpress.urls')),
"""
from django.contrib.sitemaps.views import sitemap
from django.urls import path

from .feeds import LatestPostsFeed
from .sitemaps import SITEMAPS
from .views import api, auth, console, passkeys, public

app_name = "inkpress"

urlpatterns = [
    # Public pages
    path("", public.PostListView.as_view(), name="post_list"),
    path("memo/", public.MemoListView.as_view(), name="memo_list"),
    path("tag/<str:slug>/", public.TagDetailView.as_view(), name="tag_detail"),
    path("search/", public.SearchView.as_view(), name="search"),

    # Feed and sitemap
    path("feed.xml", LatestPostsFeed(), name="feed"),
    path("sitemap.xml", sitemap, {"sitemaps": SITEMAPS}, name="sitemap"),

    # Data transfer and analytics
    path("api/umami/script.js", api.umami_script, name="umami_script"),
    path("api/export/", api.export_view, name="export"),
    path("api/import/", api.import_view, name="import"),
    path("api/init-import/", api.init_import_view, name="init_import"),

    # Authentication
    path("auth/registration-status/", auth.registration_status, name="registration_status"),
    path("auth/sign-up/", auth.sign_up, name="sign_up"),
    path("auth/sign-in/", auth.sign_in, name="sign_in"),
    path("auth/sign-out/", auth.sign_out, name="sign_out"),
    path("auth/passkeys/", passkeys.passkey_list, name="passkey_list"),
    path("auth/passkeys/<int:pk>/", passkeys.passkey_detail, name="passkey_detail"),
    path("auth/passkeys/register/begin/", passkeys.begin_registration, name="passkey_register_begin"),
    path("auth/passkeys/register/complete/", passkeys.complete_registration, name="passkey_register_complete"),
    path("auth/passkeys/login/begin/", passkeys.begin_login, name="passkey_login_begin"),
    path("auth/passkeys/login/complete/", passkeys.complete_login, name="passkey_login_complete"),

    # Admin console
    path("console/dashboard/", console.DashboardView.as_view(), name="console_dashboard"),
    path("console/posts/", console.PostListView.as_view(), name="console_posts"),
    path("console/posts/<uuid:pk>/", console.PostDetailView.as_view(), name="console_post"),
    path("console/posts/<uuid:pk>/tags/", console.PostTagsView.as_view(), name="console_post_tags"),
    path("console/memos/", console.MemoListView.as_view(), name="console_memos"),
    path("console/memos/<uuid:pk>/", console.MemoDetailView.as_view(), name="console_memo"),
    path("console/tags/", console.TagListView.as_view(), name="console_tags"),
    path("console/tags/<uuid:pk>/", console.TagDetailView.as_view(), name="console_tag"),
    path("console/comments/", console.CommentListView.as_view(), name="console_comments"),
    path("console/comments/whitelist/", console.WhitelistView.as_view(), name="console_whitelist"),
    path("console/comments/<uuid:pk>/", console.CommentDetailView.as_view(), name="console_comment"),
    path("console/comments/<uuid:pk>/approve/", console.CommentApproveView.as_view(), name="console_comment_approve"),
    path("console/comments/<uuid:pk>/reject/", console.CommentRejectView.as_view(), name="console_comment_reject"),
    path("console/media/", console.MediaListView.as_view(), name="console_media"),
    path("console/media/<uuid:pk>/", console.MediaDetailView.as_view(), name="console_media_item"),
    path("console/navigation/", console.NavItemListView.as_view(), name="console_nav_items"),
    path("console/navigation/reorder/", console.NavItemReorderView.as_view(), name="console_nav_reorder"),
    path("console/navigation/<uuid:pk>/", console.NavItemDetailView.as_view(), name="console_nav_item"),
    path("console/settings/", console.SettingsView.as_view(), name="console_settings"),
    path("console/users/", console.UserListView.as_view(), name="console_users"),
    path("console/users/<int:pk>/", console.UserDetailView.as_view(), name="console_user"),

    # Posts last: slugs would shadow the fixed prefixes above
    path("<str:slug>/comments/", public.PostCommentsView.as_view(), name="post_comments"),
    path("<str:slug>/", public.PostDetailView.as_view(), name="post_detail"),
]
