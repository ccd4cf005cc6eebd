"""Tests for login, token refresh, profiles and password reset."""

from datetime import timedelta

from api.auth.accounts import permissions_for, redirect_for
from api.auth.jwt import create_access_token, create_refresh_token, decode_token
from api.auth.password import get_password_hash, is_hashed, needs_rehash, verify_password
from api.db.models import Contact, User, utcnow
from conftest import fetch, seed


def make_user(tenant=None, email="ada@acme.com", password="s3cret-pass", role="owner", **fields):
    return User(
        tenant_id=tenant.id if tenant else None,
        email=email,
        full_name=fields.pop("full_name", "Ada Lovelace"),
        password_hash=get_password_hash(password),
        role=role,
        **fields,
    )


# =============================================================================
# Password hashing
# =============================================================================


class TestPasswords:
    """Tests for bcrypt hashing and legacy plaintext support."""

    def test_hash_verifies(self):
        hashed = get_password_hash("correct horse")
        assert is_hashed(hashed)
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_legacy_plaintext_verifies_and_needs_rehash(self):
        assert verify_password("plain-pass", "plain-pass")
        assert not verify_password("other", "plain-pass")
        assert needs_rehash("plain-pass")

    def test_missing_password_never_verifies(self):
        assert not verify_password("anything", None)
        assert not verify_password("", "stored")

    def test_fresh_hash_does_not_need_rehash(self):
        assert not needs_rehash(get_password_hash("fresh-password"))


class TestRoles:
    """Tests for role permissions and dashboard redirects."""

    def test_admin_like_roles_get_everything(self):
        for role in ("admin", "owner", "saas"):
            assert permissions_for(role) == "all"

    def test_advisor_and_client_permissions(self):
        assert "campaigns.view" in permissions_for("advisor")
        assert "campaigns.view" not in permissions_for("client")

    def test_redirects(self):
        assert redirect_for("advisor") == "/advisor-dashboard.html"
        assert redirect_for("consultant") == "/advisor-dashboard.html"
        assert redirect_for("client") == "/client-dashboard.html"
        assert redirect_for("owner") == "/dashboard.html"


class TestTokens:
    """Tests for JWT encoding."""

    def test_access_token_round_trip(self):
        token = create_access_token("abc", kind="contact", tenant_id="t-1")
        payload = decode_token(token)
        assert payload.sub == "abc"
        assert payload.type == "access"
        assert payload.kind == "contact"
        assert payload.tenant_id == "t-1"

    def test_refresh_token_type(self):
        assert decode_token(create_refresh_token("abc")).type == "refresh"


# =============================================================================
# Login
# =============================================================================


class TestLogin:
    """Tests for POST /auth/login."""

    def test_user_login_returns_profile_and_tokens(self, client, tenant):
        user = seed(make_user(tenant))

        response = client.post(
            "/auth/login", json={"email": "ADA@acme.com", "password": "s3cret-pass"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == str(user.id)
        assert body["data"]["role"] == "owner"
        assert body["data"]["permissions"] == "all"
        assert body["data"]["redirectTo"] == "/dashboard.html"
        assert body["data"]["tenant_id"] == str(tenant.id)
        assert body["tokens"]["token_type"] == "bearer"
        assert fetch(User, user.id).last_login is not None

    def test_wrong_password_is_401(self, client, tenant):
        seed(make_user(tenant))

        response = client.post(
            "/auth/login", json={"email": "ada@acme.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid credentials"}

    def test_unknown_email_is_401(self, client):
        response = client.post(
            "/auth/login", json={"email": "ghost@acme.com", "password": "whatever"}
        )
        assert response.status_code == 401

    def test_missing_field_is_400(self, client):
        response = client.post("/auth/login", json={"email": "ada@acme.com"})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_legacy_plaintext_password_is_upgraded(self, client, tenant):
        user = make_user(tenant)
        user.password_hash = "legacy-pass"
        seed(user)

        response = client.post(
            "/auth/login", json={"email": "ada@acme.com", "password": "legacy-pass"}
        )

        assert response.status_code == 200
        stored = fetch(User, user.id).password_hash
        assert is_hashed(stored)
        assert verify_password("legacy-pass", stored)

    def test_client_logs_in_with_contact(self, client, tenant):
        contact = seed(
            Contact(
                tenant_id=tenant.id,
                name="Carla Client",
                email="carla@client.com",
                company="Client Co",
                password_hash=get_password_hash("portal-pass"),
            )
        )

        response = client.post(
            "/auth/login", json={"email": "carla@client.com", "password": "portal-pass"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == str(contact.id)
        assert data["role"] == "client"
        assert data["type"] == "client"
        assert data["redirectTo"] == "/client-dashboard.html"

    def test_contact_without_password_cannot_log_in(self, client, tenant):
        seed(Contact(tenant_id=tenant.id, name="No Portal", email="np@client.com"))

        response = client.post(
            "/auth/login", json={"email": "np@client.com", "password": "anything"}
        )
        assert response.status_code == 401


class TestSession:
    """Tests for /auth/me and /auth/refresh."""

    def _login(self, client):
        response = client.post(
            "/auth/login", json={"email": "ada@acme.com", "password": "s3cret-pass"}
        )
        return response.json()["tokens"]

    def test_me_returns_profile(self, client, tenant):
        seed(make_user(tenant))
        tokens = self._login(client)

        response = client.get(
            "/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "ada@acme.com"

    def test_me_without_token_is_401(self, client):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.json()["error"] == "Not authenticated"

    def test_me_rejects_refresh_token(self, client, tenant):
        seed(make_user(tenant))
        tokens = self._login(client)

        response = client.get(
            "/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"}
        )
        assert response.status_code == 401

    def test_refresh_issues_new_pair(self, client, tenant):
        seed(make_user(tenant))
        tokens = self._login(client)

        response = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

        assert response.status_code == 200
        assert decode_token(response.json()["data"]["access_token"]).type == "access"

    def test_refresh_rejects_access_token(self, client, tenant):
        seed(make_user(tenant))
        tokens = self._login(client)

        response = client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert response.status_code == 401


# =============================================================================
# Password reset
# =============================================================================


class TestPasswordReset:
    """Tests for the password reset flow."""

    def test_request_for_unknown_email_gives_same_answer(self, client, email_sender):
        response = client.post("/auth/request-password-reset", json={"email": "ghost@x.com"})

        assert response.status_code == 200
        assert response.json()["message"] == "If account exists, reset link sent"
        assert email_sender.sent == []

    def test_request_sets_token_and_emails_link(self, client, tenant, email_sender):
        user = seed(make_user(tenant))

        response = client.post("/auth/request-password-reset", json={"email": "ada@acme.com"})

        assert response.status_code == 200
        stored = fetch(User, user.id)
        assert len(stored.reset_token) == 64
        kind, to, link = email_sender.sent[0]
        assert kind == "password_reset"
        assert to == "ada@acme.com"
        assert link == f"https://app.test/reset-password.html?token={stored.reset_token}"

    def test_reset_with_valid_token(self, client, tenant):
        user = make_user(tenant)
        user.reset_token = "a" * 64
        user.reset_expires = utcnow() + timedelta(minutes=30)
        seed(user)

        response = client.post(
            "/auth/reset-password", json={"token": "a" * 64, "password": "brand-new-pass"}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Password reset successfully"
        stored = fetch(User, user.id)
        assert stored.reset_token is None
        assert verify_password("brand-new-pass", stored.password_hash)

    def test_reset_with_expired_token(self, client, tenant):
        user = make_user(tenant)
        user.reset_token = "b" * 64
        user.reset_expires = utcnow() - timedelta(minutes=1)
        seed(user)

        response = client.post(
            "/auth/reset-password", json={"token": "b" * 64, "password": "brand-new-pass"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid or expired reset token"

    def test_reset_rejects_short_password(self, client):
        response = client.post(
            "/auth/reset-password", json={"token": "c" * 64, "password": "short"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Password must be at least 8 characters"
