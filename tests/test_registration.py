"""
Tests for sign-up, sign-in and the first-user flow.
"""
import json

import pytest
from django.contrib.auth import get_user_model

from inkpress.models import Profile, SiteSettings
from inkpress.registration import check_registration_status, post_registration_cleanup

from .conftest import make_user

User = get_user_model()


def post_json(client, url, data, **extra):
    return client.post(url, json.dumps(data), content_type="application/json", **extra)


SIGN_UP = {"name": "First Person", "email": "First@Example.com", "password": "longenough"}


class TestRegistrationStatus:
    def test_empty_site(self, db):
        assert check_registration_status() == (True, True)

    def test_open(self, regular_user):
        assert check_registration_status() == (True, False)

    def test_closed(self, regular_user):
        site = SiteSettings.load()
        site.allow_registration = False
        site.save()
        assert check_registration_status() == (False, False)

    def test_endpoint(self, client, db):
        assert client.get("/auth/registration-status/").json() == {"allowed": True, "is_first_user": True}


class TestFirstUser:
    def test_first_sign_up_becomes_admin(self, client, db):
        response = post_json(client, "/auth/sign-up/", SIGN_UP)
        assert response.status_code == 201
        body = response.json()
        assert body["data"]["role"] == "admin"
        assert body["data"]["email"] == "first@example.com"

        user = User.objects.get()
        assert user.username == "first@example.com"
        assert Profile.objects.get(user=user).is_admin
        assert SiteSettings.load().allow_registration is False
        # signed in right away
        assert client.get("/console/settings/").status_code == 200

    def test_second_sign_up_blocked(self, client, db):
        post_json(client, "/auth/sign-up/", SIGN_UP)
        client.logout()
        response = post_json(client, "/auth/sign-up/", dict(SIGN_UP, email="second@example.com"))
        assert response.status_code == 403
        assert User.objects.count() == 1

    def test_cleanup_only_for_sole_user(self, admin_user, regular_user):
        assert post_registration_cleanup(regular_user) is False
        assert not Profile.objects.get(user=regular_user).is_admin


class TestSignUp:
    def test_regular_sign_up_when_open(self, client, admin_user):
        response = post_json(client, "/auth/sign-up/", dict(SIGN_UP, email="new@example.com"))
        assert response.status_code == 201
        assert response.json()["data"]["role"] == "user"

    def test_validation(self, client, db):
        response = post_json(client, "/auth/sign-up/", {"name": "", "email": "bad", "password": "short"})
        assert response.status_code == 400
        assert set(response.json()["errors"]) == {"name", "email", "password"}

    def test_duplicate_email(self, client, regular_user):
        response = post_json(client, "/auth/sign-up/", dict(SIGN_UP, email="READER@example.com"))
        assert response.status_code == 400
        assert "email" in response.json()["errors"]

    @pytest.mark.usefixtures("frozen_clock")
    def test_rate_limited(self, client, admin_user):
        statuses = [
            post_json(client, "/auth/sign-up/", {"name": "", "email": "", "password": ""}).status_code
            for _ in range(4)
        ]
        assert statuses == [400, 400, 400, 429]

    @pytest.mark.usefixtures("frozen_clock")
    def test_rate_limit_per_ip(self, client, admin_user):
        for _ in range(3):
            post_json(client, "/auth/sign-up/", {}, REMOTE_ADDR="10.0.0.1")
        limited = post_json(client, "/auth/sign-up/", {}, REMOTE_ADDR="10.0.0.1")
        assert limited.status_code == 429
        assert int(limited["Retry-After"]) >= 1
        assert post_json(client, "/auth/sign-up/", {}, REMOTE_ADDR="10.0.0.2").status_code == 400


class TestSignIn:
    def test_sign_in_and_out(self, client, regular_user):
        response = post_json(client, "/auth/sign-in/", {"email": "Reader@example.com", "password": "testpass123"})
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Rita Reader"
        assert "_auth_user_id" in client.session

        assert client.post("/auth/sign-out/").status_code == 200
        assert "_auth_user_id" not in client.session

    def test_wrong_password(self, client, regular_user):
        response = post_json(client, "/auth/sign-in/", {"email": "reader@example.com", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password"

    @pytest.mark.usefixtures("frozen_clock")
    def test_rate_limited(self, client, regular_user):
        bad = {"email": "reader@example.com", "password": "nope"}
        statuses = [post_json(client, "/auth/sign-in/", bad).status_code for _ in range(6)]
        assert statuses == [401] * 5 + [429]

    def test_get_not_allowed(self, client, db):
        assert client.get("/auth/sign-in/").status_code == 405

    def test_form_post(self, client, db):
        make_user("form@example.com", password="formpass123")
        response = client.post("/auth/sign-in/", {"email": "form@example.com", "password": "formpass123"})
        assert response.status_code == 200
