"""
Shared fixtures for django-inkpress tests.
"""
import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache

from inkpress.models import Post, Profile, Tag

User = get_user_model()


@pytest.fixture(autouse=True)
def _clear_cache():
    """Each test starts with an empty cache (tag tokens and rate limits)."""
    cache.clear()
    yield
    cache.clear()


def make_user(email, name="", role=Profile.ROLE_USER, password="testpass123"):
    user = User.objects.create_user(
        username=email,
        email=email,
        password=password,
        first_name=name,
    )
    if role != Profile.ROLE_USER:
        user.profile.role = role
        user.profile.save()
    return user


@pytest.fixture
def admin_user(db):
    return make_user("admin@example.com", "Ada Admin", role=Profile.ROLE_ADMIN)


@pytest.fixture
def regular_user(db):
    return make_user("reader@example.com", "Rita Reader")


@pytest.fixture
def admin_client(client, admin_user):
    client.force_login(admin_user)
    return client


@pytest.fixture
def user_client(client, regular_user):
    client.force_login(regular_user)
    return client


@pytest.fixture
def tag(db):
    return Tag.objects.create(name="Django", slug="django")


@pytest.fixture
def post(db, admin_user):
    """A published regular post."""
    return Post.objects.create(
        title="Hello World",
        slug="hello-world",
        content="This is the first post on the blog.",
        author=admin_user,
        published=True,
    )


@pytest.fixture
def draft(db, admin_user):
    return Post.objects.create(
        title="Work in progress",
        slug="work-in-progress",
        content="Not ready yet.",
        author=admin_user,
    )


@pytest.fixture
def site_settings(db):
    from inkpress.models import SiteSettings

    return SiteSettings.load()


@pytest.fixture
def ai_configured(site_settings):
    """Site settings pointing spam scoring at a fake endpoint."""
    site_settings.ai_base_url = "https://llm.example.com/v1/"
    site_settings.ai_model = "tiny-model"
    site_settings.set_secret("ai_api_key", "sk-test")
    site_settings.save()
    return site_settings


def completion(content="", reasoning=None):
    """Fake chat completions response."""
    from unittest import mock

    message = {"content": content}
    if reasoning is not None:
        message["reasoning"] = reasoning
    response = mock.Mock()
    response.json.return_value = {"choices": [{"message": message}]}
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def mail_configured(site_settings):
    site_settings.resend_from_email = "blog@example.com"
    site_settings.set_secret("resend_api_key", "re_test")
    site_settings.save()
    return site_settings


@pytest.fixture
def frozen_clock():
    """Pin the rate limiter's clock so a test never straddles two windows."""
    from unittest import mock

    with mock.patch("inkpress.registration.time.time", return_value=1_700_000_000.0):
        yield
