"""Tests for account endpoints, token handling and the Google OAuth round trip."""
from urllib.parse import parse_qs, urlparse

from eventhub.security import (
    create_access_token, create_oauth_state, decode_access_token, decode_oauth_state,
    hash_password, verify_password,
)
from tests.conftest import auth_headers, create_test_user


class TestRegisterAndLogin:
    def test_register_returns_token_and_user(self, client):
        resp = client.post("/api/auth/register", json={
            "name": "Grace", "email": "grace@eventhub.io", "password": "hopper1",
        })
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["token"]
        assert body["data"]["email"] == "grace@eventhub.io"
        assert body["data"]["role"] == "user"
        assert body["data"]["default_timezone"] == "UTC"
        assert body["data"]["calendar_connected"] is False
        assert "password_hash" not in body["data"]
        assert resp.cookies.get("token") == body["token"]

    def test_duplicate_email_rejected(self, client):
        create_test_user(client, name="Grace", email="grace@eventhub.io")
        resp = client.post("/api/auth/register", json={
            "name": "Other Grace", "email": "grace@eventhub.io", "password": "secret123",
        })
        assert resp.status_code == 400
        assert resp.json()["message"] == "User already exists with this email"

    def test_invalid_payload_is_400(self, client):
        resp = client.post("/api/auth/register", json={"name": "X", "email": "not-an-email", "password": "1"})
        assert resp.status_code == 400
        message = resp.json()["message"]
        assert "email" in message
        assert "password" in message

    def test_unknown_timezone_rejected(self, client):
        resp = client.post("/api/auth/register", json={
            "name": "Tz", "email": "tz@eventhub.io", "password": "secret123", "default_timezone": "Mars/Olympus",
        })
        assert resp.status_code == 400
        assert "Unknown timezone" in resp.json()["message"]

    def test_login(self, client):
        create_test_user(client, name="Linus", email="linus@eventhub.io", password="penguin1")
        resp = client.post("/api/auth/login", json={"email": "linus@eventhub.io", "password": "penguin1"})
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Linus"

    def test_login_wrong_password(self, client):
        create_test_user(client, name="Linus", email="linus@eventhub.io", password="penguin1")
        resp = client.post("/api/auth/login", json={"email": "linus@eventhub.io", "password": "walrus"})
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "message": "Invalid credentials"}

    def test_login_unknown_email(self, client):
        resp = client.post("/api/auth/login", json={"email": "ghost@eventhub.io", "password": "boo"})
        assert resp.status_code == 401


class TestCurrentUser:
    def test_me_with_bearer_token(self, client):
        user = create_test_user(client, name="Ada")
        resp = client.get("/api/auth/me", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.json()["data"]["user_id"] == user["user_id"]

    def test_me_with_cookie(self, client):
        client.post("/api/auth/register", json={
            "name": "Cookie", "email": "cookie@eventhub.io", "password": "secret123",
        })
        resp = client.get("/api/auth/me")
        assert resp.status_code == 200
        assert resp.json()["data"]["email"] == "cookie@eventhub.io"

    def test_me_without_token(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["message"] == "Not authorized to access this route"

    def test_me_with_garbage_token(self, client):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_update_details(self, client):
        user = create_test_user(client, name="Ada")
        resp = client.put("/api/auth/updatedetails", json={
            "name": "Ada Lovelace", "default_timezone": "Europe/London",
        }, headers=auth_headers(user))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["name"] == "Ada Lovelace"
        assert data["default_timezone"] == "Europe/London"
        assert data["email"] == user["email"]

    def test_update_details_rejects_null(self, client):
        user = create_test_user(client, name="Ada")
        resp = client.put("/api/auth/updatedetails", json={"name": None}, headers=auth_headers(user))
        assert resp.status_code == 400
        assert "name cannot be null" in resp.json()["message"]

        me = client.get("/api/auth/me", headers=auth_headers(user)).json()["data"]
        assert me["name"] == "Ada"

    def test_update_details_email_taken(self, client):
        create_test_user(client, name="Taken", email="taken@eventhub.io")
        user = create_test_user(client, name="Ada")
        resp = client.put("/api/auth/updatedetails", json={"email": "taken@eventhub.io"}, headers=auth_headers(user))
        assert resp.status_code == 400

    def test_update_password(self, client):
        user = create_test_user(client, name="Ada", email="ada@eventhub.io", password="oldpass1")
        resp = client.put("/api/auth/updatepassword", json={
            "current_password": "wrong", "new_password": "newpass1",
        }, headers=auth_headers(user))
        assert resp.status_code == 401
        assert resp.json()["message"] == "Password is incorrect"

        resp = client.put("/api/auth/updatepassword", json={
            "current_password": "oldpass1", "new_password": "newpass1",
        }, headers=auth_headers(user))
        assert resp.status_code == 200

        login = client.post("/api/auth/login", json={"email": "ada@eventhub.io", "password": "newpass1"})
        assert login.status_code == 200

    def test_logout(self, client):
        user = create_test_user(client, name="Ada")
        resp = client.get("/api/auth/logout", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.json()["message"] == "Logged out successfully"


class TestGoogleOAuth:
    def _state(self, client, user):
        resp = client.get("/api/auth/google/url", headers=auth_headers(user))
        assert resp.status_code == 200
        return parse_qs(urlparse(resp.json()["auth_url"]).query)["state"][0]

    def test_auth_url_carries_signed_state(self, client):
        user = create_test_user(client, name="Ada")
        state = self._state(client, user)
        assert decode_oauth_state(state) == user["user_id"]

    def test_auth_url_requires_configuration(self, client, calendar_client):
        calendar_client.configured = False
        user = create_test_user(client, name="Ada")
        resp = client.get("/api/auth/google/url", headers=auth_headers(user))
        assert resp.status_code == 400
        assert "not configured" in resp.json()["message"]

    def test_callback_stores_tokens(self, client):
        user = create_test_user(client, name="Ada")
        state = self._state(client, user)

        resp = client.get("/api/auth/google/callback", params={"code": "xyz", "state": state})
        assert resp.status_code == 200
        assert resp.json()["message"] == "Google Calendar connected successfully"

        me = client.get("/api/auth/me", headers=auth_headers(user)).json()["data"]
        assert me["calendar_connected"] is True

    def test_callback_requires_code_and_state(self, client):
        assert client.get("/api/auth/google/callback", params={"state": "s"}).status_code == 400
        assert client.get("/api/auth/google/callback", params={"code": "c"}).status_code == 400

    def test_callback_rejects_forged_state(self, client):
        user = create_test_user(client, name="Ada")
        resp = client.get("/api/auth/google/callback", params={"code": "xyz", "state": user["user_id"]})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid or expired state parameter"

    def test_callback_rejects_session_token_as_state(self, client):
        user = create_test_user(client, name="Ada")
        resp = client.get("/api/auth/google/callback", params={"code": "xyz", "state": user["token"]})
        assert resp.status_code == 400

    def test_callback_unknown_user(self, client):
        resp = client.get("/api/auth/google/callback", params={
            "code": "xyz", "state": create_oauth_state("no-such-user"),
        })
        assert resp.status_code == 404

    def test_callback_exchange_failure(self, client, calendar_client):
        user = create_test_user(client, name="Ada")
        state = self._state(client, user)
        calendar_client.fail = True

        resp = client.get("/api/auth/google/callback", params={"code": "xyz", "state": state})
        assert resp.status_code == 500
        assert "invalid_grant" in resp.json()["message"]


class TestSecurityHelpers:
    def test_password_hash_roundtrip(self):
        stored = hash_password("s3cret!")
        assert stored != "s3cret!"
        assert verify_password("s3cret!", stored)
        assert not verify_password("wrong", stored)
        assert not verify_password("s3cret!", "malformed")

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_state_and_session_tokens_are_not_interchangeable(self):
        state = create_oauth_state("user-1")
        session = create_access_token("user-1")
        assert decode_access_token(session) == "user-1"
        assert decode_access_token(state) is None
        assert decode_oauth_state(session) is None
