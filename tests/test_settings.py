"""
Tests for site settings updates.
"""
import pytest
from django.core.exceptions import PermissionDenied

from inkpress.crypto import is_encrypted
from inkpress.models import SiteSettings
from inkpress.services import settings as settings_service


def test_defaults_before_first_save(db):
    config = settings_service.get_settings()
    assert config["site_title"] == "My Awesome Blog"
    assert config["ai_api_key"] == ""


def test_update_requires_admin(regular_user):
    with pytest.raises(PermissionDenied):
        settings_service.update_settings(regular_user, {"site_title": "x"})


def test_partial_update_keeps_other_fields(admin_user):
    settings_service.update_settings(admin_user, {"site_description": "Notes"})
    settings_service.update_settings(admin_user, {"site_title": "Inkwell"})
    config = settings_service.get_settings()
    assert config["site_title"] == "Inkwell"
    assert config["site_description"] == "Notes"


def test_empty_title_falls_back_to_default(admin_user):
    settings_service.update_settings(admin_user, {"site_title": ""})
    assert SiteSettings.load().site_title == "My Awesome Blog"


def test_title_too_long(admin_user):
    result = settings_service.update_settings(admin_user, {"site_title": "x" * 101})
    assert not result
    assert "site_title" in result.errors


def test_booleans(admin_user):
    settings_service.update_settings(admin_user, {"allow_registration": False, "umami_enabled": True})
    config = settings_service.get_settings()
    assert config["allow_registration"] is False
    assert config["umami_enabled"] is True


def test_secrets_encrypted_and_cleared(admin_user):
    settings_service.update_settings(admin_user, {"s3_secret_key": "  abc123  "})
    stored = SiteSettings.objects.values_list("s3_secret_key", flat=True).get()
    assert is_encrypted(stored)
    assert settings_service.get_settings()["s3_secret_key"] == "abc123"

    # omitted secrets keep their value, empty clears
    settings_service.update_settings(admin_user, {"site_title": "Other"})
    assert settings_service.get_settings()["s3_secret_key"] == "abc123"
    settings_service.update_settings(admin_user, {"s3_secret_key": ""})
    assert settings_service.get_settings()["s3_secret_key"] == ""


def test_has_s3_config(admin_user):
    assert not settings_service.has_s3_config()
    settings_service.update_settings(admin_user, {
        "s3_endpoint": "https://s3.example.com",
        "s3_region": "auto",
        "s3_bucket": "media",
        "s3_access_key": "AKIA",
        "s3_secret_key": "secret",
    })
    assert settings_service.has_s3_config()
