"""
Tests for the pure helpers in inkpress.utils.
"""
from types import SimpleNamespace

import pytest
from django import forms
from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import PermissionDenied

from inkpress.models import Tag
from inkpress.utils import (
    ActionResult,
    clamp_pagination,
    filter_published_posts,
    format_role,
    generate_slug,
    get_initials,
    get_object_or_none,
    gravatar_url,
    is_admin_authorized,
    make_excerpt,
    paginate_items,
    require_admin,
    to_bool,
)


class TestAdminChecks:
    def test_anonymous_is_not_admin(self):
        assert not is_admin_authorized(None)
        assert not is_admin_authorized(AnonymousUser())

    def test_role_decides(self, admin_user, regular_user):
        assert is_admin_authorized(admin_user)
        assert not is_admin_authorized(regular_user)

    def test_require_admin_raises(self, regular_user):
        with pytest.raises(PermissionDenied, match="Unauthorized"):
            require_admin(regular_user)

    def test_require_admin_returns_actor(self, admin_user):
        assert require_admin(admin_user) is admin_user


class TestPagination:
    def test_clamping(self):
        assert clamp_pagination(0, 0) == (1, 1)
        assert clamp_pagination("3", "5000") == (3, 100)
        assert clamp_pagination("abc", None) == (1, 1)

    def test_list_pages(self):
        page = paginate_items(list(range(25)), page=2, page_size=10)
        assert page.items == list(range(10, 20))
        assert page.total == 25
        assert page.total_pages == 3
        assert page.has_next and page.has_previous

    def test_out_of_range_page_is_empty(self):
        page = paginate_items(list(range(5)), page=4, page_size=2)
        assert page.items == []
        assert page.total == 5
        assert page.total_pages == 3
        assert not page.has_next

    def test_empty(self):
        page = paginate_items([], page=1, page_size=10)
        assert page.total_pages == 0
        assert not page.has_next and not page.has_previous


class TestSlugs:
    @pytest.mark.parametrize("name, slug", [
        ("Hello World", "hello-world"),
        ("  Trim me  ", "trim-me"),
        ("snake_case name", "snake-case-name"),
        ("C++ & Rust!", "c-rust"),
        ("--a---b--", "a-b"),
        ("日本語 タグ", "日本語-タグ"),
        ("!!!", ""),
    ])
    def test_generate_slug(self, name, slug):
        assert generate_slug(name) == slug

    @pytest.mark.parametrize("name", [
        "Hello World",
        "İstanbul Ǆemal",
        "ǅungla_x",
        "snake__case___name",
        "Ünïcödé Çafé 2024",
        "编程 技巧_Python3",
        "Ⅻ Roman ½",
        "...!!!???",
        "  --MiXeD--Case--  ",
        "tab\tand\nnewline",
    ])
    def test_slug_is_stable_and_clean(self, name):
        slug = generate_slug(name)
        assert generate_slug(slug) == slug
        assert slug == slug.lower()
        assert all(ch == "-" or ch.isalnum() for ch in slug)
        assert not slug.startswith("-") and not slug.endswith("-")
        assert "--" not in slug


class TestDisplayHelpers:
    def test_initials(self):
        assert get_initials("Ada Lovelace") == "AL"
        assert get_initials("ada") == "A"
        assert get_initials("Ada King Lovelace") == "AL"
        assert get_initials("") == "?"

    def test_format_role(self):
        assert format_role("admin") == "Admin"
        assert format_role("USER") == "User"
        assert format_role("") == "User"

    def test_gravatar_normalizes_email(self):
        assert gravatar_url(" Me@Example.com ") == gravatar_url("me@example.com")
        assert gravatar_url("me@example.com").endswith("?d=mp")

    def test_to_bool(self):
        assert to_bool(True) and to_bool("on") and to_bool("1") and to_bool("TRUE")
        assert not to_bool(False) and not to_bool("") and not to_bool("off")


class TestExcerpt:
    def test_no_query_uses_start(self):
        text = "a" * 200
        assert make_excerpt(text) == "a" * 150 + "..."
        assert make_excerpt("short") == "short"

    def test_window_around_match(self):
        text = "x" * 100 + "needle" + "y" * 200
        excerpt = make_excerpt(text, "NEEDLE")
        assert excerpt.startswith("...")
        assert excerpt.endswith("...")
        assert "needle" in excerpt
        assert len(excerpt) == 3 + 50 + 6 + 100 + 3

    def test_newlines_flattened(self):
        assert make_excerpt("line one\n\nline two", "two") == "line one line two"


class TestActionResult:
    def test_ok_dict(self):
        assert ActionResult.ok().as_dict() == {"success": True}
        assert ActionResult.ok({"a": 1}).as_dict() == {"success": True, "data": {"a": 1}}

    def test_truthiness(self):
        assert ActionResult.ok()
        assert not ActionResult.fail("nope")

    def test_invalid_form(self):
        class NameForm(forms.Form):
            name = forms.CharField()

        form = NameForm({})
        assert not form.is_valid()
        result = ActionResult.invalid(form)
        assert result.errors == {"name": ["This field is required."]}
        assert result.error == "This field is required."

    def test_response_status(self):
        assert ActionResult.ok().as_response().status_code == 200
        assert ActionResult.fail("x").as_response().status_code == 400
        assert ActionResult.fail("x").as_response(status=404).status_code == 404


def test_filter_published_posts():
    posts = [
        SimpleNamespace(published=True),
        SimpleNamespace(published=False),
        SimpleNamespace(published=1),
        SimpleNamespace(),
    ]
    assert filter_published_posts(posts) == [posts[0]]


def test_get_object_or_none_tolerates_bad_ids(db, tag):
    assert get_object_or_none(Tag.objects, pk=tag.pk) == tag
    assert get_object_or_none(Tag.objects, pk="not-a-uuid") is None
    assert get_object_or_none(Tag.objects, slug="missing") is None
