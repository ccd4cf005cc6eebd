"""Tests for the outbound integration clients and the health check."""

import httpx
import pytest
from shared.schemas import CallType

from api.integrations.base import IntegrationError, parse_json
from api.integrations.instantly import InstantlyClient, split_name
from api.integrations.smartlead import SmartleadClient, build_lead
from api.integrations.zoom import (
    ZoomClient,
    classify_topic,
    clean_vtt,
    is_media_file,
    is_transcript_file,
)
from api.workflow.scoring import AnalysisError, extract_json
from conftest import (
    SAMPLE_VTT,
    RecordingTransport,
    ZoomTransport,
    instantly_config,
    smartlead_config,
    zoom_config,
)


# =============================================================================
# Zoom helpers
# =============================================================================


class TestZoomHelpers:
    @pytest.mark.parametrize(
        "topic, expected",
        [
            ("Pre-Qual Call - Jane", CallType.PREQUAL),
            ("prequal with Bob", CallType.PREQUAL),
            ("Pre-Podcast chat", CallType.PREQUAL),
            ("Podcast Interview: Jane", CallType.PODCAST),
            ("Discovery Call", CallType.DISCOVERY),
            ("Strategy Session", CallType.STRATEGY),
            ("Sales call", CallType.STRATEGY),
            ("Weekly standup", None),
            (None, None),
        ],
    )
    def test_classify_topic(self, topic, expected):
        assert classify_topic(topic) == expected

    def test_clean_vtt_keeps_only_speech(self):
        assert clean_vtt(SAMPLE_VTT) == (
            "Host: Thanks for joining the pre-qual call.\n"
            "Guest: Happy to be here, we are growing fast."
        )

    def test_clean_vtt_drops_notes_and_metadata(self):
        content = "WEBVTT\nKind: captions\nLanguage: en\n\nNOTE recorded\n\n1\n00:00:00.000 --> 00:00:01.000\nHi"
        assert clean_vtt(content) == "Hi"

    def test_file_kinds(self):
        assert is_transcript_file({"file_type": "TRANSCRIPT"})
        assert is_transcript_file({"recording_type": "audio_transcript"})
        assert not is_transcript_file({"file_type": "MP4"})
        assert is_media_file({"file_type": "M4A"})
        assert not is_media_file({"file_type": "CHAT"})

    def test_validation_token_is_hmac(self):
        client = ZoomClient(zoom_config(webhook_secret="s3cret"))
        token = client.sign_validation_token("plain")
        assert len(token) == 64
        assert token == client.sign_validation_token("plain")
        assert token != ZoomClient(zoom_config(webhook_secret="other")).sign_validation_token("plain")


class TestZoomClient:
    async def test_token_and_download(self):
        transport = ZoomTransport()
        client = ZoomClient(zoom_config(), transport=transport)

        token = await client.get_access_token()
        text = await client.download_transcript("https://api.zoom.us/rec/x.vtt", token)

        assert token == "zoom-token"
        assert text.startswith("Host: Thanks")
        assert transport.requests[0].headers["Authorization"].startswith("Basic ")

    async def test_unconfigured_oauth(self):
        client = ZoomClient(zoom_config(account_id=""))
        with pytest.raises(IntegrationError):
            await client.get_access_token()

    async def test_token_missing_from_reply(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        client = ZoomClient(zoom_config(), transport=transport)
        with pytest.raises(IntegrationError, match="No access_token"):
            await client.get_access_token()


# =============================================================================
# Instantly
# =============================================================================


class TestInstantlyClient:
    def test_split_name(self):
        assert split_name("Jane Q Doe") == ("Jane", "Q Doe")
        assert split_name(None) == ("", "")

    async def test_send_email(self):
        transport = RecordingTransport()
        client = InstantlyClient(instantly_config(), transport=transport)

        await client.send_email("to@x.com", "Hello", "Body")

        request = transport.requests[0]
        assert str(request.url) == "https://api.instantly.ai/api/v1/email/send"
        assert request.headers["Authorization"] == "Bearer inst-key"
        payload = transport.payloads()[0]
        assert payload["from_email"] == "team@growth.test"
        assert payload["subject"] == "Hello"

    async def test_add_lead_payload(self):
        transport = RecordingTransport()
        client = InstantlyClient(instantly_config(), transport=transport)

        await client.add_lead("camp-1", "solo@x.com", full_name=None)

        payload = transport.payloads()[0]
        assert payload["api_key"] == "inst-key"
        assert payload["first_name"] == "solo"
        assert payload["last_name"] == ""
        assert payload["personalization"] == {}

    async def test_add_lead_requires_campaign(self):
        client = InstantlyClient(instantly_config(), transport=RecordingTransport())
        with pytest.raises(IntegrationError, match="Campaign ID not configured"):
            await client.add_lead("", "x@x.com")

    async def test_rejected_lead(self):
        transport = RecordingTransport(body={"status": "error", "reason": "duplicate"})
        client = InstantlyClient(instantly_config(), transport=transport)
        with pytest.raises(IntegrationError, match="Lead rejected"):
            await client.add_lead("camp-1", "x@x.com")

    async def test_rejected_email(self):
        transport = RecordingTransport(body={"status": "error"})
        client = InstantlyClient(instantly_config(), transport=transport)
        with pytest.raises(IntegrationError, match="Email rejected"):
            await client.send_email("to@x.com", "Hi", "Body")

    async def test_not_configured(self):
        transport = RecordingTransport()
        client = InstantlyClient(instantly_config(api_key=""), transport=transport)
        with pytest.raises(IntegrationError):
            await client.send_email("to@x.com", "Hi", "Body")
        assert transport.requests == []

    async def test_http_error_status(self):
        transport = RecordingTransport(status_code=401, body={"error": "bad key"})
        client = InstantlyClient(instantly_config(), transport=transport)
        with pytest.raises(IntegrationError) as excinfo:
            await client.send_email("to@x.com", "Hi", "Body")
        assert excinfo.value.status_code == 401
        assert excinfo.value.service == "Instantly"


# =============================================================================
# Smartlead
# =============================================================================


class TestSmartleadClient:
    def test_build_lead(self):
        lead = build_lead("jo@x.com", name="Jo Ann Smith", custom_fields={"source": "podcast"})

        assert lead["first_name"] == "Jo"
        assert lead["last_name"] == "Ann Smith"
        assert lead["company_name"] == ""
        assert lead["custom_fields"]["source"] == "podcast"
        assert "handoff_date" in lead["custom_fields"]

    def test_build_lead_without_name(self):
        assert build_lead("jo@x.com")["first_name"] == "jo"

    async def test_add_leads(self):
        transport = RecordingTransport(body={"ok": True})
        client = SmartleadClient(smartlead_config(), transport=transport)

        result = await client.add_leads("102", [build_lead("jo@x.com")])

        assert result == {"ok": True}
        payload = transport.payloads()[0]
        assert len(payload["lead_list"]) == 1
        assert payload["settings"]["ignore_unsubscribe_list"] is False

    async def test_add_leads_not_configured(self):
        client = SmartleadClient(smartlead_config(api_key=""))
        with pytest.raises(IntegrationError):
            await client.add_leads("102", [])


# =============================================================================
# Plumbing
# =============================================================================


class TestParseJson:
    def test_list_body_is_wrapped(self):
        response = httpx.Response(200, json=[1, 2])
        assert parse_json("Svc", response) == {"data": [1, 2]}

    def test_non_json_body(self):
        with pytest.raises(IntegrationError, match="not JSON"):
            parse_json("Svc", httpx.Response(200, text="<html>"))


class TestExtractJson:
    def test_fenced_reply(self):
        text = 'Here is the analysis:\n```json\n{"score": 40, "notes": {"a": 1}}\n```'
        assert extract_json(text) == {"score": 40, "notes": {"a": 1}}

    def test_no_object(self):
        with pytest.raises(AnalysisError):
            extract_json("I could not analyze this transcript.")

    def test_invalid_json(self):
        with pytest.raises(AnalysisError, match="invalid JSON"):
            extract_json("{score: forty}")


# =============================================================================
# Health
# =============================================================================


class TestHealth:
    def test_reports_integrations(self, client, instantly_transport, use_scorer):
        use_scorer(configured=True)

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["integrations"]["claude"] is True
        assert body["integrations"]["instantly"] is True
        assert body["integrations"]["stripe"] is False
        assert body["integrations"]["email"] is False
