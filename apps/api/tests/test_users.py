"""Tests for user management and invitations."""

from datetime import timedelta

from api.auth.password import get_password_hash, verify_password
from api.db.models import Invitation, User, utcnow
from conftest import fetch, fetch_all, seed


def make_user(tenant, email, role="advisor"):
    return User(
        tenant_id=tenant.id if tenant else None,
        email=email,
        full_name=email.split("@")[0].title(),
        password_hash=get_password_hash("password123"),
        role=role,
    )


def make_invitation(email="new@acme.com", role="advisor", tenant=None, **fields):
    values = {
        "tenant_id": tenant.id if tenant else None,
        "email": email,
        "role": role,
        "token": fields.pop("token", "t" * 64),
        "status": "pending",
        "expires_at": utcnow() + timedelta(days=7),
    }
    values.update(fields)
    return Invitation(**values)


# =============================================================================
# Users
# =============================================================================


class TestListUsers:
    """Tests for GET /users."""

    def test_tenant_filter(self, client, tenant, other_tenant, headers):
        seed(make_user(tenant, "a@acme.com"), make_user(other_tenant, "b@globex.com"))

        response = client.get("/users", headers=headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [u["email"] for u in data["users"]] == ["a@acme.com"]
        assert data["tenant_filter"] == str(tenant.id)

    def test_admin_view_without_tenant_lists_all(self, client, tenant, other_tenant):
        seed(make_user(tenant, "a@acme.com"), make_user(other_tenant, "b@globex.com"))

        response = client.get("/users")

        data = response.json()["data"]
        assert len(data["users"]) == 2
        assert data["tenant_filter"] == "all"

    def test_password_hash_not_exposed(self, client, tenant, headers):
        seed(make_user(tenant, "a@acme.com"))
        user = client.get("/users", headers=headers).json()["data"]["users"][0]
        assert "password_hash" not in user


class TestCreateUser:
    """Tests for POST /users."""

    def test_create(self, client, tenant, headers):
        response = client.post(
            "/users",
            headers=headers,
            json={"email": "New@Acme.com", "password": "pw", "full_name": "New Person"},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == "new@acme.com"
        assert data["role"] == "advisor"
        stored = fetch_all(User, email="new@acme.com")[0]
        assert verify_password("pw", stored.password_hash)

    def test_non_admin_requires_tenant(self, client):
        response = client.post(
            "/users",
            json={"email": "x@acme.com", "password": "pw", "full_name": "X", "role": "advisor"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Tenant ID required for non-admin users"

    def test_admin_without_tenant(self, client):
        response = client.post(
            "/users",
            json={"email": "root@platform.com", "password": "pw", "full_name": "Root", "role": "admin"},
        )
        assert response.status_code == 201
        assert response.json()["data"]["tenant_id"] is None

    def test_duplicate_email(self, client, tenant, headers):
        seed(make_user(tenant, "dup@acme.com"))

        response = client.post(
            "/users",
            headers=headers,
            json={"email": "dup@acme.com", "password": "pw", "full_name": "Dup"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "User with this email already exists"

    def test_user_limit(self, client, tenant, headers):
        seed(make_user(tenant, "one@acme.com"), make_user(tenant, "two@acme.com"))

        response = client.post(
            "/users",
            headers=headers,
            json={"email": "three@acme.com", "password": "pw", "full_name": "Three"},
        )

        assert response.status_code == 403
        assert "User limit reached" in response.json()["error"]


class TestUpdateDeleteUser:
    """Tests for PUT/DELETE /users/{id}."""

    def test_update(self, client, tenant, headers):
        user = seed(make_user(tenant, "a@acme.com"))

        response = client.put(
            f"/users/{user.id}", headers=headers, json={"full_name": "Renamed", "status": "disabled"}
        )

        assert response.status_code == 200
        stored = fetch(User, user.id)
        assert stored.full_name == "Renamed"
        assert stored.status == "disabled"

    def test_cross_tenant_update_denied(self, client, tenant, other_tenant, headers):
        user = seed(make_user(other_tenant, "b@globex.com"))

        response = client.put(f"/users/{user.id}", headers=headers, json={"full_name": "Hacked"})

        assert response.status_code == 403
        assert response.json()["error"] == "Access denied - user belongs to different tenant"

    def test_protected_account(self, client, tenant, headers, monkeypatch):
        monkeypatch.setenv("PROTECTED_ADMIN_EMAIL", "boss@acme.com")
        user = seed(make_user(tenant, "boss@acme.com", role="admin"))

        assert client.put(f"/users/{user.id}", headers=headers, json={"full_name": "X"}).status_code == 403
        assert client.delete(f"/users/{user.id}", headers=headers).status_code == 403
        assert fetch(User, user.id) is not None

    def test_delete(self, client, tenant, headers):
        user = seed(make_user(tenant, "a@acme.com"))

        response = client.delete(f"/users/{user.id}", headers=headers)

        assert response.status_code == 200
        assert fetch(User, user.id) is None

    def test_missing_user(self, client, headers):
        response = client.delete("/users/00000000-0000-0000-0000-000000000000", headers=headers)
        assert response.status_code == 404


# =============================================================================
# Invitations
# =============================================================================


class TestCreateInvitation:
    """Tests for POST /invitations."""

    def test_creates_and_queues_email(self, client, tenant, headers, instantly_transport):
        response = client.post(
            "/invitations", headers=headers, json={"email": "Invitee@Acme.com", "role": "advisor"}
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["emailSent"] is True
        invitation = fetch_all(Invitation, email="invitee@acme.com")[0]
        assert data["invitation"]["signupLink"] == f"https://app.test/signup?token={invitation.token}"
        assert invitation.tenant_id == tenant.id

        payload = instantly_transport.payloads()[0]
        assert payload["campaign_id"] == "camp-invite"
        assert payload["personalization"]["role"] == "Advisor"

    def test_email_failure_still_creates(self, client, headers, failing_instantly):
        response = client.post(
            "/invitations", headers=headers, json={"email": "x@acme.com", "role": "client"}
        )

        assert response.status_code == 201
        assert response.json()["data"]["emailSent"] is False
        assert len(fetch_all(Invitation)) == 1

    def test_invalid_role(self, client, headers, instantly_transport):
        response = client.post(
            "/invitations", headers=headers, json={"email": "x@acme.com", "role": "overlord"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid role"

    def test_duplicate_pending(self, client, headers, instantly_transport):
        seed(make_invitation(email="x@acme.com"))

        response = client.post(
            "/invitations", headers=headers, json={"email": "x@acme.com", "role": "advisor"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invitation already sent to this email"

    def test_existing_user(self, client, tenant, headers, instantly_transport):
        seed(make_user(tenant, "x@acme.com"))

        response = client.post(
            "/invitations", headers=headers, json={"email": "x@acme.com", "role": "advisor"}
        )
        assert response.status_code == 400


class TestVerifyInvitation:
    """Tests for POST /invitations/verify."""

    def test_pending(self, client):
        seed(make_invitation(email="x@acme.com", role="client"))

        response = client.post("/invitations/verify", json={"email": "x@acme.com"})

        assert response.status_code == 200
        assert response.json()["data"] == {"token": "t" * 64, "role": "client", "email": "x@acme.com"}

    def test_missing(self, client):
        response = client.post("/invitations/verify", json={"email": "nobody@acme.com"})
        assert response.status_code == 404

    def test_expired(self, client):
        seed(make_invitation(email="x@acme.com", expires_at=utcnow() - timedelta(days=1)))

        response = client.post("/invitations/verify", json={"email": "x@acme.com"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invitation has expired"


class TestAcceptInvitation:
    """Tests for POST /invitations/accept."""

    def test_advisor_starts_pending(self, client, tenant):
        invitation = seed(make_invitation(tenant=tenant))

        response = client.post(
            "/invitations/accept",
            json={"token": invitation.token, "full_name": "Ava Advisor", "password": "long-enough"},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["redirectTo"] == "/advisor-dashboard.html"
        assert fetch(Invitation, invitation.id).status == "accepted"
        user = fetch_all(User, email="new@acme.com")[0]
        assert user.tenant_id == tenant.id

    def test_client_starts_active(self, client):
        invitation = seed(make_invitation(role="client"))

        response = client.post(
            "/invitations/accept",
            json={"token": invitation.token, "full_name": "Cal Client", "password": "long-enough"},
        )

        assert response.json()["data"]["status"] == "active"

    def test_token_is_single_use(self, client):
        invitation = seed(make_invitation(role="client"))
        body = {"token": invitation.token, "full_name": "Cal", "password": "long-enough"}

        assert client.post("/invitations/accept", json=body).status_code == 201
        second = client.post("/invitations/accept", json=body)
        assert second.status_code == 404
        assert second.json()["error"] == "Invalid invitation token"

    def test_short_password(self, client):
        invitation = seed(make_invitation())

        response = client.post(
            "/invitations/accept",
            json={"token": invitation.token, "full_name": "Ava", "password": "short"},
        )
        assert response.status_code == 400

    def test_expired(self, client):
        invitation = seed(make_invitation(expires_at=utcnow() - timedelta(hours=1)))

        response = client.post(
            "/invitations/accept",
            json={"token": invitation.token, "full_name": "Ava", "password": "long-enough"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invitation has expired"
