"""Tests for the pre-qualification, podcast, discovery and strategy call routes."""

from decimal import Decimal

from api.db.models import (
    Contact,
    Deal,
    DiscoveryCall,
    PodcastInterview,
    PreQualificationCall,
    StrategyCall,
)
from conftest import fetch, fetch_all, seed


# =============================================================================
# Pre-qualification
# =============================================================================


class TestPrequalCalls:
    """Tests for /calls/prequal."""

    def test_create_lowercases_email(self, client, headers):
        response = client.post(
            "/calls/prequal",
            headers=headers,
            json={"guest_name": "Gail Guest", "guest_email": "Gail@Guest.com"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Pre-qualification call created"
        assert body["data"]["guest_email"] == "gail@guest.com"
        assert body["data"]["call_status"] == "scheduled"

    def test_invalid_email_rejected(self, client, headers):
        response = client.post(
            "/calls/prequal", headers=headers, json={"guest_name": "G", "guest_email": "nope"}
        )
        assert response.status_code == 400

    def test_list_stats(self, client, tenant, headers):
        seed(
            PreQualificationCall(
                tenant_id=tenant.id, guest_name="A", guest_email="a@x.com",
                ai_score=40, call_status="qualified", podcast_invitation_sent=True,
            ),
            PreQualificationCall(
                tenant_id=tenant.id, guest_name="B", guest_email="b@x.com",
                ai_score=21, call_status="not_qualified",
            ),
            PreQualificationCall(tenant_id=tenant.id, guest_name="C", guest_email="c@x.com"),
        )

        stats = client.get("/calls/prequal", headers=headers).json()["data"]["stats"]

        assert stats["totalCalls"] == 3
        assert stats["qualifiedCalls"] == 1
        assert stats["averageScore"] == 30
        assert stats["podcastInvitesSent"] == 1
        assert stats["callsByStatus"]["scheduled"] == 1
        assert stats["callsByStatus"]["recorded"] == 0

    def test_status_filter(self, client, tenant, headers):
        seed(
            PreQualificationCall(tenant_id=tenant.id, guest_name="A", guest_email="a@x.com"),
            PreQualificationCall(
                tenant_id=tenant.id, guest_name="B", guest_email="b@x.com", call_status="recorded"
            ),
        )

        calls = client.get(
            "/calls/prequal", headers=headers, params={"status": "recorded"}
        ).json()["data"]["calls"]
        assert [c["guest_name"] for c in calls] == ["B"]

    def test_get_update_delete(self, client, tenant, headers):
        call = seed(PreQualificationCall(tenant_id=tenant.id, guest_name="A", guest_email="a@x.com"))

        assert client.get(f"/calls/prequal/{call.id}", headers=headers).status_code == 200

        client.put(f"/calls/prequal/{call.id}", headers=headers, json={"transcript": "Hello"})
        assert fetch(PreQualificationCall, call.id).transcript == "Hello"

        deleted = client.delete(f"/calls/prequal/{call.id}", headers=headers)
        assert deleted.json()["message"] == "Pre-qualification call deleted"

        missing = client.get(f"/calls/prequal/{call.id}", headers=headers)
        assert missing.status_code == 404
        assert missing.json()["error"] == "Pre-qualification call not found"


# =============================================================================
# Podcast
# =============================================================================


class TestPodcastInterviews:
    """Tests for /calls/podcast."""

    def test_create(self, client, headers):
        response = client.post(
            "/calls/podcast",
            headers=headers,
            json={"guest_name": "Gail", "guest_email": "GAIL@x.com", "company": "Gail Co"},
        )

        assert response.status_code == 201
        assert response.json()["data"]["guest_email"] == "gail@x.com"

    def test_stats(self, client, tenant, headers):
        seed(
            PodcastInterview(
                tenant_id=tenant.id, guest_name="A", guest_email="a@x.com",
                overall_score=40.0, qualified_for_discovery=True, discovery_call_created=True,
            ),
            PodcastInterview(
                tenant_id=tenant.id, guest_name="B", guest_email="b@x.com", overall_score=25.5,
            ),
        )

        data = client.get("/calls/podcast", headers=headers).json()["data"]

        assert len(data["interviews"]) == 2
        assert data["stats"]["qualifiedForDiscovery"] == 1
        assert data["stats"]["discoveryCallsCreated"] == 1
        assert data["stats"]["averageScore"] == 32.8

    def test_other_tenant_hidden(self, client, other_tenant, headers):
        interview = seed(
            PodcastInterview(tenant_id=other_tenant.id, guest_name="X", guest_email="x@x.com")
        )
        response = client.get(f"/calls/podcast/{interview.id}", headers=headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Podcast interview not found"


# =============================================================================
# Discovery
# =============================================================================


class TestDiscoveryCalls:
    """Tests for /calls/discovery."""

    def test_create_defaults(self, client, headers):
        response = client.post(
            "/calls/discovery",
            headers=headers,
            json={"prospect_name": "Dee", "prospect_email": "dee@x.com"},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "scheduled"
        assert data["call_source"] == "manual"

    def test_completing_opens_strategy_call_once(self, client, tenant, headers):
        call = seed(
            DiscoveryCall(
                tenant_id=tenant.id, prospect_name="Dee", prospect_email="dee@x.com",
                company="Dee Co", ai_score=38, recommended_tier="growth",
            )
        )

        first = client.put(
            f"/calls/discovery/{call.id}", headers=headers, json={"status": "completed"}
        ).json()
        second = client.put(
            f"/calls/discovery/{call.id}", headers=headers, json={"status": "qualified"}
        ).json()

        assert first["strategy_call_created"] is True
        assert second["strategy_call_created"] is False
        assert second["strategy_call_id"] is None

        strategy_calls = fetch_all(StrategyCall, discovery_call_id=call.id)
        assert len(strategy_calls) == 1
        strategy = strategy_calls[0]
        assert str(strategy.id) == first["strategy_call_id"]
        assert strategy.auto_created is True
        assert strategy.recommended_tier == "growth"
        assert strategy.company == "Dee Co"
        assert "Score: 38.0/50" in strategy.notes

        stored = fetch(DiscoveryCall, call.id)
        assert stored.strategy_call_created is True
        assert stored.strategy_call_id == strategy.id

    def test_other_status_changes_do_not_advance(self, client, tenant, headers):
        call = seed(DiscoveryCall(tenant_id=tenant.id, prospect_name="Dee", prospect_email="dee@x.com"))

        body = client.put(
            f"/calls/discovery/{call.id}", headers=headers, json={"status": "canceled"}
        ).json()

        assert body["strategy_call_created"] is False
        assert fetch_all(StrategyCall) == []

    def test_stats(self, client, tenant, headers):
        """Qualified counts the status, so calls qualified by hand are included."""
        seed(
            DiscoveryCall(tenant_id=tenant.id, prospect_name="A", prospect_email="a@x.com", ai_score=40),
            DiscoveryCall(
                tenant_id=tenant.id, prospect_name="B", prospect_email="b@x.com",
                ai_score=20, status="completed",
            ),
            DiscoveryCall(
                tenant_id=tenant.id, prospect_name="C", prospect_email="c@x.com",
                status="qualified",
            ),
        )

        stats = client.get("/calls/discovery", headers=headers).json()["data"]["stats"]
        assert stats == {
            "totalCalls": 3,
            "scheduled": 1,
            "completed": 1,
            "qualified": 1,
            "averageScore": 30,
        }


# =============================================================================
# Strategy
# =============================================================================


class TestStrategyCalls:
    """Tests for /calls/strategy."""

    def test_create(self, client, headers):
        response = client.post(
            "/calls/strategy",
            headers=headers,
            json={"prospect_name": "Sam", "prospect_email": "Sam@x.com", "estimated_value": 30000},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Strategy call created successfully"
        assert body["data"]["estimated_value"] == 30000.0

    def test_winning_creates_deal_and_welcomes_client(self, client, tenant, headers, email_sender):
        contact = seed(Contact(tenant_id=tenant.id, name="Sam", email="sam@x.com"))
        call = seed(
            StrategyCall(
                tenant_id=tenant.id, contact_id=contact.id, prospect_name="Sam Seller",
                prospect_email="sam@x.com", company="Sam Co",
                estimated_value=Decimal("42000"), recommended_tier="scale",
            )
        )

        body = client.put(
            f"/calls/strategy/{call.id}", headers=headers, json={"status": "won"}
        ).json()

        assert body["deal_created"] is True
        assert body["welcome_email_sent"] is True

        deal = fetch(Deal, fetch(StrategyCall, call.id).deal_id)
        assert str(deal.id) == body["deal_id"]
        assert deal.name == "Sam Co - Leadership Intelligence System"
        assert deal.value == Decimal("42000")
        assert deal.stage == "closed_won"
        assert deal.contact_id == contact.id

        stored_contact = fetch(Contact, contact.id)
        assert stored_contact.stage == "client"
        assert stored_contact.status == "customer"
        assert stored_contact.program_start_date is not None

        assert email_sender.sent == [("client_welcome", "sam@x.com", "Sam Co", "scale")]

    def test_winning_twice_creates_one_deal(self, client, tenant, headers, email_sender):
        call = seed(StrategyCall(tenant_id=tenant.id, prospect_name="Sam", prospect_email="sam@x.com"))

        client.put(f"/calls/strategy/{call.id}", headers=headers, json={"status": "won"})
        second = client.put(
            f"/calls/strategy/{call.id}", headers=headers, json={"status": "won"}
        ).json()

        assert second["deal_created"] is False
        deals = fetch_all(Deal)
        assert len(deals) == 1
        assert deals[0].value == Decimal("15000")
        assert len(email_sender.sent) == 1

    def test_failed_welcome_email_does_not_fail_request(self, client, tenant, headers, email_sender):
        email_sender.succeed = False
        call = seed(StrategyCall(tenant_id=tenant.id, prospect_name="Sam", prospect_email="sam@x.com"))

        response = client.put(f"/calls/strategy/{call.id}", headers=headers, json={"status": "won"})

        assert response.status_code == 200
        assert response.json()["deal_created"] is True
        assert response.json()["welcome_email_sent"] is False

    def test_stats_exclude_lost_from_pipeline(self, client, tenant, headers):
        seed(
            StrategyCall(
                tenant_id=tenant.id, prospect_name="A", prospect_email="a@x.com",
                estimated_value=Decimal("10000"),
            ),
            StrategyCall(
                tenant_id=tenant.id, prospect_name="B", prospect_email="b@x.com",
                estimated_value=Decimal("5000"), status="lost",
            ),
            StrategyCall(
                tenant_id=tenant.id, prospect_name="C", prospect_email="c@x.com",
                estimated_value=Decimal("20000"), status="won",
            ),
        )

        stats = client.get("/calls/strategy", headers=headers).json()["data"]["stats"]
        assert stats == {
            "totalDeals": 3,
            "scheduledCalls": 1,
            "closedDeals": 1,
            "pipelineValue": 30000.0,
        }

    def test_delete(self, client, tenant, headers):
        call = seed(StrategyCall(tenant_id=tenant.id, prospect_name="A", prospect_email="a@x.com"))

        response = client.delete(f"/calls/strategy/{call.id}", headers=headers)

        assert response.json()["message"] == "Strategy call deleted successfully"
        assert fetch(StrategyCall, call.id) is None
