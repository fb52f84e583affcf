"""
Tests for export/import endpoints, the analytics proxy, passkeys and the
export management command.
"""
import json
from io import StringIO
from types import SimpleNamespace
from unittest import mock

import pytest
import requests
from django.core.management import CommandError, call_command

from inkpress.models import Passkey, Post, Tag
from inkpress.views.passkeys import CHALLENGE_SESSION_KEY


def post_json(client, url, data):
    return client.post(url, json.dumps(data), content_type="application/json")


def export_document(users=None):
    return {
        "version": "1.0",
        "data": {
            "posts": [{
                "id": "0b6c2a52-6f7d-4a3e-9a52-1f0f3c1a9d10",
                "title": "Imported post",
                "slug": "imported-post",
                "content": "From elsewhere",
                "published": True,
                "postType": "post",
                "authorId": "u1",
            }],
            "tags": [{"id": "5f1d3b0e-8a44-4a0c-b6f5-0e2c8d0e4e11", "name": "Moved", "slug": "moved"}],
            "users": users or [],
        },
    }


class TestExport:
    def test_requires_admin(self, client, db):
        assert client.get("/api/export/").status_code == 401

    def test_download(self, admin_client, post):
        response = admin_client.get("/api/export/", {"include_users": "true"})
        assert response.status_code == 200
        assert response["Content-Disposition"].startswith('attachment; filename="blog-export-')
        data = response.json()["data"]
        assert [p["slug"] for p in data["posts"]] == ["hello-world"]
        assert "users" in data
        assert "media" not in data


class TestImport:
    def test_import(self, admin_client):
        response = post_json(admin_client, "/api/import/", export_document())
        assert response.status_code == 200
        assert response.json()["data"]["posts"] == 1
        assert Post.objects.get(slug="imported-post").author.email == "admin@example.com"
        assert Tag.objects.filter(slug="moved").exists()

    def test_invalid_payload(self, admin_client):
        response = post_json(admin_client, "/api/import/", {"nothing": True})
        assert response.status_code == 400

    def test_requires_admin(self, user_client):
        response = post_json(user_client, "/api/import/", export_document())
        assert response.status_code == 403


class TestInitImport:
    USERS = [{"id": "u1", "name": "Old Owner", "email": "Owner@Example.com", "role": "admin"}]

    def test_parse(self, client, db):
        response = post_json(client, "/api/init-import/", {
            "action": "parse", "data": export_document(self.USERS),
        })
        data = response.json()["data"]
        assert data["users"][0]["email"] == "Owner@Example.com"
        assert data["hasPosts"]

    def test_initialize_signs_in(self, client, db):
        response = post_json(client, "/api/init-import/", {
            "action": "initialize",
            "data": export_document(self.USERS),
            "selected_user_id": "u1",
            "password": "new-password-1",
        })
        assert response.status_code == 200
        body = response.json()["data"]
        assert body["user"]["role"] == "admin"
        assert body["counts"]["posts"] == 1
        assert client.get("/console/posts/").status_code == 200

    def test_rejected_once_initialized(self, client, regular_user):
        response = post_json(client, "/api/init-import/", {
            "action": "parse", "data": export_document(self.USERS),
        })
        assert response.status_code == 403

    def test_unknown_action(self, client, db):
        response = post_json(client, "/api/init-import/", {"action": "explode"})
        assert response.json()["error"] == "Unknown action"


class TestUmamiScript:
    def test_proxy(self, client):
        with mock.patch("inkpress.views.api.fetch_tracker_script", return_value="console.log(1)"):
            response = client.get("/api/umami/script.js")
        assert response.status_code == 200
        assert response["Content-Type"] == "application/javascript"
        assert response["Cache-Control"] == "public, max-age=86400"
        assert response.content == b"console.log(1)"

    def test_upstream_failure(self, client):
        with mock.patch(
            "inkpress.views.api.fetch_tracker_script",
            side_effect=requests.ConnectionError("down"),
        ):
            response = client.get("/api/umami/script.js")
        assert response.status_code == 502


class TestPasskeys:
    @pytest.fixture
    def passkey(self, regular_user):
        return Passkey.objects.create(
            user=regular_user,
            name="Laptop",
            credential_id="AQID",
            public_key="cHVibGlj",
            counter=1,
            device_type="multi_device",
        )

    def test_list_requires_session(self, client, db):
        assert client.get("/auth/passkeys/").status_code == 401

    def test_list(self, user_client, passkey):
        data = user_client.get("/auth/passkeys/").json()["data"]
        assert [p["name"] for p in data] == ["Laptop"]

    def test_begin_registration(self, user_client):
        response = user_client.get("/auth/passkeys/register/begin/")
        assert response.status_code == 200
        options = response.json()
        assert options["rp"]["id"] == "blog.example.com"
        assert options["challenge"] == user_client.session[CHALLENGE_SESSION_KEY]

    def test_complete_registration(self, user_client, regular_user):
        user_client.get("/auth/passkeys/register/begin/")
        verified = SimpleNamespace(
            credential_id=b"\x01\x02",
            credential_public_key=b"key",
            sign_count=0,
            credential_device_type=SimpleNamespace(value="single_device"),
            credential_backed_up=False,
            aaguid="",
        )
        with mock.patch("inkpress.views.passkeys.verify_registration_response", return_value=verified):
            response = post_json(user_client, "/auth/passkeys/register/complete/", {
                "name": "Phone",
                "credential": {"id": "AQI", "response": {"transports": ["internal", "hybrid"]}},
            })
        assert response.status_code == 201
        passkey = regular_user.passkeys.get()
        assert passkey.credential_id == "AQI"
        assert passkey.device_type == "single_device"
        assert passkey.transports == "internal,hybrid"

    def test_complete_login(self, client, passkey):
        client.get("/auth/passkeys/login/begin/")
        with mock.patch(
            "inkpress.views.passkeys.verify_authentication_response",
            return_value=SimpleNamespace(new_sign_count=5),
        ):
            response = post_json(client, "/auth/passkeys/login/complete/", {"id": "AQID", "rawId": "AQID"})
        assert response.json()["success"]
        passkey.refresh_from_db()
        assert passkey.counter == 5
        assert client.get("/auth/passkeys/").status_code == 200

    def test_unknown_credential(self, client, db):
        response = post_json(client, "/auth/passkeys/login/complete/", {"id": "BBBB", "rawId": "BBBB"})
        assert response.status_code == 401

    def test_rename_and_delete(self, user_client, passkey):
        response = user_client.put(
            f"/auth/passkeys/{passkey.pk}/", json.dumps({"name": "Work laptop"}),
            content_type="application/json",
        )
        assert response.json()["data"]["name"] == "Work laptop"
        user_client.delete(f"/auth/passkeys/{passkey.pk}/")
        assert not Passkey.objects.exists()

    def test_other_users_passkey_not_found(self, admin_client, passkey):
        assert admin_client.delete(f"/auth/passkeys/{passkey.pk}/").status_code == 404


class TestExportCommand:
    def test_stdout(self, post):
        out = StringIO()
        call_command("inkpress_export", stdout=out)
        document = json.loads(out.getvalue())
        assert document["data"]["posts"][0]["slug"] == "hello-world"

    def test_to_file(self, post, tmp_path):
        target = tmp_path / "backup.json"
        out = StringIO()
        call_command("inkpress_export", "--include-users", output=str(target), stdout=out)
        assert "1 posts" in out.getvalue()
        assert json.loads(target.read_text())["data"]["users"][0]["email"] == "admin@example.com"

    def test_no_admin(self, db):
        with pytest.raises(CommandError):
            call_command("inkpress_export")
