"""Tests for contacts, lead capture, deals, proposals and client messages."""

from datetime import timedelta
from decimal import Decimal

from api.db.models import Contact, Deal, Message, Proposal, utcnow
from conftest import fetch, fetch_all, seed


def make_contact(tenant, email="lead@prospect.com", **fields):
    values = {"tenant_id": tenant.id, "name": "Pat Prospect", "email": email}
    values.update(fields)
    return Contact(**values)


# =============================================================================
# Contacts
# =============================================================================


class TestContacts:
    """Tests for /contacts."""

    def test_create_and_list(self, client, headers):
        created = client.post(
            "/contacts",
            headers=headers,
            json={"name": "Pat Prospect", "email": "pat@prospect.com", "company": "Prospect Inc"},
        )
        assert created.status_code == 201
        assert created.json()["data"]["stage"] == "lead"
        assert "password_hash" not in created.json()["data"]

        listed = client.get("/contacts", headers=headers).json()["data"]
        assert len(listed["contacts"]) == 1
        assert listed["stats"]["totalContacts"] == 1
        assert listed["stats"]["leads"] == 1

    def test_filters(self, client, tenant, headers):
        seed(
            make_contact(tenant, "a@x.com", status="lead", stage="lead"),
            make_contact(tenant, "b@x.com", status="customer", stage="client"),
        )

        by_status = client.get("/contacts", headers=headers, params={"status": "customer"}).json()
        by_stage = client.get("/contacts", headers=headers, params={"stage": "lead"}).json()

        assert [c["email"] for c in by_status["data"]["contacts"]] == ["b@x.com"]
        assert [c["email"] for c in by_stage["data"]["contacts"]] == ["a@x.com"]

    def test_tenant_isolation(self, client, tenant, other_tenant, headers):
        foreign = seed(make_contact(other_tenant, "x@globex.com"))

        assert client.get("/contacts", headers=headers).json()["data"]["contacts"] == []
        response = client.put(f"/contacts/{foreign.id}", headers=headers, json={"name": "Mine"})
        assert response.status_code == 404
        assert response.json()["error"] == "Contact not found"

    def test_update(self, client, tenant, headers):
        contact = seed(make_contact(tenant))

        response = client.put(
            f"/contacts/{contact.id}", headers=headers, json={"stage": "podcast", "notes": "Warm"}
        )

        assert response.status_code == 200
        stored = fetch(Contact, contact.id)
        assert stored.stage == "podcast"
        assert stored.notes == "Warm"
        assert stored.tenant_id == tenant.id

    def test_null_for_required_column_is_400(self, client, tenant, headers):
        """Explicit nulls on NOT NULL columns are refused before anything is written."""
        contact = seed(make_contact(tenant))

        response = client.put(
            f"/contacts/{contact.id}", headers=headers, json={"notes": "Warm", "name": None}
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "name cannot be null"}
        stored = fetch(Contact, contact.id)
        assert stored.name == "Pat Prospect"
        assert stored.notes is None

    def test_null_for_optional_column_clears_it(self, client, tenant, headers):
        contact = seed(make_contact(tenant, phone="555-0100"))

        response = client.put(f"/contacts/{contact.id}", headers=headers, json={"phone": None})

        assert response.status_code == 200
        assert fetch(Contact, contact.id).phone is None

    def test_delete(self, client, tenant, headers):
        contact = seed(make_contact(tenant))

        response = client.delete(f"/contacts/{contact.id}", headers=headers)

        assert response.json() == {"success": True, "message": "Contact deleted"}
        assert fetch(Contact, contact.id) is None

    def test_missing_name_is_400(self, client, headers):
        response = client.post("/contacts", headers=headers, json={"email": "x@x.com"})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required field: name"

    def test_tenant_required(self, client):
        assert client.get("/contacts").status_code == 400

    def test_tenant_from_query_param(self, client, tenant):
        response = client.get("/contacts", params={"tenant_id": str(tenant.id)})
        assert response.status_code == 200


class TestLeadCapture:
    """Tests for POST /leads/capture."""

    def test_new_lead(self, client, tenant, headers, instantly_transport):
        response = client.post(
            "/leads/capture",
            headers=headers,
            json={
                "name": "  Nina New  ",
                "email": "Nina@New.com",
                "message": "Need help scaling",
                "utm_source": "linkedin",
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["isExisting"] is False
        assert data["redirectUrl"] == "https://calendly.com/test/podcast"

        contact = fetch_all(Contact, email="nina@new.com")[0]
        assert contact.name == "Nina New"
        assert contact.stage == "podcast"
        assert contact.source == "landing_page"
        assert contact.utm_source == "linkedin"
        assert "Need help scaling" in contact.notes

    def test_returning_lead_appends_note(self, client, tenant, headers, instantly_transport):
        existing = seed(make_contact(tenant, "nina@new.com", notes="First touch", status="nurture"))

        response = client.post(
            "/leads/capture",
            headers=headers,
            json={"name": "Nina", "email": "nina@new.com", "message": "Back again"},
        )

        data = response.json()["data"]
        assert data["isExisting"] is True
        assert data["contactId"] == str(existing.id)
        stored = fetch(Contact, existing.id)
        assert stored.notes.startswith("First touch\n\n")
        assert "Back again" in stored.notes
        assert stored.status == "lead"
        assert len(fetch_all(Contact)) == 1


# =============================================================================
# Deals
# =============================================================================


class TestDeals:
    """Tests for /deals."""

    def test_create_with_defaults(self, client, headers):
        response = client.post("/deals", headers=headers, json={"name": "Big Deal", "value": "25000"})

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["stage"] == "prospecting"
        assert data["status"] == "active"
        assert data["value"] == 25000.0

    def test_name_required(self, client, headers):
        response = client.post("/deals", headers=headers, json={"value": 10})
        assert response.status_code == 400

    def test_list_stats(self, client, tenant, headers):
        seed(
            Deal(tenant_id=tenant.id, name="A", value=Decimal("10000"), stage="closed_won"),
            Deal(tenant_id=tenant.id, name="B", value=Decimal("5000"), stage="proposal"),
        )

        data = client.get("/deals", headers=headers).json()["data"]

        assert data["stats"] == {
            "totalDeals": 2,
            "totalValue": 15000.0,
            "closedWon": 1,
            "avgDealValue": 7500.0,
        }

    def test_update_and_delete(self, client, tenant, headers):
        deal = seed(Deal(tenant_id=tenant.id, name="A", value=Decimal("100")))

        updated = client.put(f"/deals/{deal.id}", headers=headers, json={"stage": "negotiation"})
        assert updated.json()["data"]["stage"] == "negotiation"

        deleted = client.delete(f"/deals/{deal.id}", headers=headers)
        assert deleted.json()["message"] == "Deal deleted"
        assert fetch(Deal, deal.id) is None

    def test_null_stage_is_400(self, client, tenant, headers):
        deal = seed(Deal(tenant_id=tenant.id, name="A"))

        response = client.put(f"/deals/{deal.id}", headers=headers, json={"stage": None})

        assert response.status_code == 400
        assert response.json()["error"] == "stage cannot be null"
        assert fetch(Deal, deal.id).stage == "prospecting"

    def test_other_tenant_deal_is_404(self, client, other_tenant, headers):
        deal = seed(Deal(tenant_id=other_tenant.id, name="Theirs"))
        assert client.delete(f"/deals/{deal.id}", headers=headers).status_code == 404


# =============================================================================
# Proposals
# =============================================================================


class TestProposals:
    """Tests for /proposals."""

    def test_create_defaults(self, client, headers):
        response = client.post("/proposals", headers=headers, json={"prospect_name": "Pat"})

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["title"] == "Growth Management Proposal"
        assert data["pricing_model"] == "monthly_retainer"
        assert data["payment_terms"] == "Net 30"
        assert data["status"] == "draft"
        assert data["setup_fee"] == 0.0
        assert data["sent_at"] is None

    def test_create_as_sent_stamps_sent_at(self, client, headers):
        response = client.post(
            "/proposals", headers=headers, json={"prospect_name": "Pat", "status": "sent"}
        )
        assert response.json()["data"]["sent_at"] is not None

    def test_filter_by_status(self, client, tenant, headers):
        seed(
            Proposal(tenant_id=tenant.id, prospect_name="Draft"),
            Proposal(tenant_id=tenant.id, prospect_name="Sent", status="sent"),
        )

        data = client.get("/proposals", headers=headers, params={"status": "sent"}).json()["data"]
        assert [p["prospect_name"] for p in data] == ["Sent"]

    def test_accepting_creates_one_pending_deal(self, client, tenant, headers):
        proposal = seed(
            Proposal(
                tenant_id=tenant.id,
                prospect_name="Pat",
                company="Prospect Inc",
                monthly_fee=Decimal("4000"),
                total_value=Decimal("48000"),
            )
        )

        first = client.put(f"/proposals/{proposal.id}", headers=headers, json={"status": "accepted"})
        second = client.put(f"/proposals/{proposal.id}", headers=headers, json={"status": "accepted"})

        assert first.json()["message"] == "Proposal accepted and deal created"
        assert "message" not in second.json()

        deals = fetch_all(Deal, tenant_id=tenant.id)
        assert len(deals) == 1
        assert deals[0].status == "pending"
        assert deals[0].value == Decimal("48000")
        assert deals[0].name == "Prospect Inc - Growth Management Proposal"
        stored = fetch(Proposal, proposal.id)
        assert stored.deal_id == deals[0].id
        assert stored.accepted_at is not None

    def test_deal_value_falls_back_to_monthly_fee(self, client, tenant, headers):
        proposal = seed(
            Proposal(tenant_id=tenant.id, prospect_name="Pat", monthly_fee=Decimal("3000"))
        )

        client.put(f"/proposals/{proposal.id}", headers=headers, json={"status": "accepted"})

        assert fetch_all(Deal)[0].value == Decimal("3000")

    def test_delete(self, client, tenant, headers):
        proposal = seed(Proposal(tenant_id=tenant.id, prospect_name="Pat"))

        response = client.delete(f"/proposals/{proposal.id}", headers=headers)

        assert response.json()["message"] == "Proposal deleted"
        assert fetch(Proposal, proposal.id) is None


# =============================================================================
# Messages
# =============================================================================


class TestMessages:
    """Tests for /clients/{client_id}/messages."""

    def test_post_and_list_newest_first(self, client, tenant, headers):
        contact = seed(make_contact(tenant))
        now = utcnow()
        seed(
            Message(
                tenant_id=tenant.id,
                client_id=contact.id,
                content="older",
                created_at=now - timedelta(minutes=5),
            )
        )

        posted = client.post(
            f"/clients/{contact.id}/messages", headers=headers, json={"content": "newer"}
        )
        assert posted.status_code == 201
        assert posted.json()["data"]["author"] == "Team"
        assert posted.json()["data"]["read"] is False

        messages = client.get(f"/clients/{contact.id}/messages", headers=headers).json()["data"]
        assert [m["content"] for m in messages] == ["newer", "older"]

    def test_pagination(self, client, tenant, headers):
        contact = seed(make_contact(tenant))
        now = utcnow()
        seed(
            *[
                Message(
                    tenant_id=tenant.id,
                    client_id=contact.id,
                    content=f"m{i}",
                    created_at=now - timedelta(minutes=i),
                )
                for i in range(5)
            ]
        )

        page = client.get(
            f"/clients/{contact.id}/messages", headers=headers, params={"limit": 2, "offset": 2}
        ).json()["data"]

        assert [m["content"] for m in page] == ["m2", "m3"]

    def test_unknown_client(self, client, headers):
        response = client.post(
            "/clients/00000000-0000-0000-0000-000000000000/messages",
            headers=headers,
            json={"content": "hello"},
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Client not found"

    def test_mark_read(self, client, tenant, headers):
        contact = seed(make_contact(tenant))
        message = seed(Message(tenant_id=tenant.id, client_id=contact.id, content="hi"))

        response = client.put(
            f"/clients/{contact.id}/messages", headers=headers, json={"message_id": str(message.id)}
        )

        assert response.status_code == 200
        stored = fetch(Message, message.id)
        assert stored.read is True
        assert stored.read_at is not None

    def test_mark_read_wrong_client(self, client, tenant, headers):
        contact = seed(make_contact(tenant))
        other = seed(make_contact(tenant, "other@x.com"))
        message = seed(Message(tenant_id=tenant.id, client_id=contact.id, content="hi"))

        response = client.put(
            f"/clients/{other.id}/messages", headers=headers, json={"message_id": str(message.id)}
        )
        assert response.status_code == 404
