"""Tests for the HTTP surface: POST /track, preflights and the health check"""

import json

import pytest

from livetrack.models import CarrierMatch
from livetrack.routers.tracking import resolve_while_connected
from livetrack.services.pipeline import ResolutionPipeline


def track(client, tracking_number):
    return client.post("/track", json={"trackingNumber": tracking_number})


# =========================================================================
# Input validation
# =========================================================================


class TestTrackValidation:

    def test_missing_tracking_number(self, client):
        response = client.post("/track", json={})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Tracking number required"}

    def test_empty_tracking_number(self, client):
        assert track(client, "").json()["error"] == "Tracking number required"

    def test_non_string_tracking_number(self, client):
        response = track(client, 123456789012)
        assert response.status_code == 400
        assert response.json()["error"] == "Tracking number required"

    def test_too_short_is_hoax(self, client):
        response = track(client, "abc")
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Invalid tracking number",
            "reason": "Tracking number too short",
            "hoaxDetected": True,
        }

    def test_no_alphanumerics_is_hoax(self, client):
        body = track(client, "--------").json()
        assert body["reason"] == "Invalid format"
        assert body["hoaxDetected"] is True

    def test_unrecognized_format(self, client):
        body = track(client, "hello world!").json()
        assert body["reason"] == "Invalid tracking format"

    def test_malformed_json_is_server_error(self, client):
        response = client.post("/track", content=b"{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to track package"}

    def test_errors_carry_cors_headers(self, client):
        response = track(client, "abc")
        assert response.headers["access-control-allow-origin"] == "*"


# =========================================================================
# Successful lookups
# =========================================================================


class TestTrackSuccess:

    def test_fallback_record_when_no_backend_configured(self, client):
        response = track(client, "TBA123456789012")
        assert response.status_code == 200

        body = response.json()
        assert body["success"] is True
        assert body["timestamp"]

        data = body["data"]
        assert data["trackingNumber"] == "TBA123456789012"
        assert data["carrier"] == "Amazon"
        assert data["source"] == "fallback"
        assert data["statusCode"] == "IT"
        assert len(data["checkpoints"]) >= 1
        assert data["checkpoints"][0]["isCurrent"] is True
        assert response.headers["access-control-allow-origin"] == "*"

    def test_input_is_cleaned_before_lookup(self, client):
        data = track(client, "  1z999aa10123456784 ").json()["data"]
        assert data["trackingNumber"] == "1Z999AA10123456784"
        assert data["carrier"] == "UPS"

    def test_generic_number_gets_unknown_carrier(self, client):
        data = track(client, "ZZZZ12345678").json()["data"]
        assert data["carrier"] == "Unknown Carrier"

    def test_delivered_backend_answer(self, client, override_pipeline, make_backend):
        delivered = json.dumps({
            "carrier": "UPS",
            "status": "Delivered",
            "statusCode": "DL",
            "location": "Austin, TX, USA",
            "estimatedDelivery": "2026-03-20",
            "confidence": 97,
            "checkpoints": [{"timestamp": "2026-03-14T15:02:00Z", "status": "Delivered", "location": "Austin, TX"}],
        })
        primary = make_backend("perplexity", [delivered])
        override_pipeline(ResolutionPipeline([primary]))

        data = track(client, "1Z999AA10123456784").json()["data"]
        assert data["source"] == "perplexity"
        assert data["status"] == "Delivered"
        assert data["estimatedDelivery"] is None
        assert data["confidence"] == 97
        assert data["location"]["city"] == "Austin"
        assert "1Z999AA10123456784 (UPS)" in primary.calls[0]["prompt"]

    def test_backends_failing_still_returns_200(self, client, override_pipeline, make_backend):
        override_pipeline(ResolutionPipeline([
            make_backend("perplexity", ["not json"]),
            make_backend("openai", [RuntimeError("boom")]),
        ]))
        response = track(client, "123456789012")
        assert response.status_code == 200
        assert response.json()["data"]["source"] == "fallback"
        assert response.json()["data"]["carrier"] == "FedEx"

    def test_pipeline_crash_is_server_error(self, client, override_pipeline):
        class BrokenPipeline:
            def resolve(self, *args, **kwargs):
                raise RuntimeError("boom")

        override_pipeline(BrokenPipeline())
        response = track(client, "1Z999AA10123456784")
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to track package"


# =========================================================================
# CORS and health
# =========================================================================


class TestPreflight:

    def test_plain_options(self, client):
        response = client.options("/track")
        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"
        assert response.content == b""

    def test_browser_preflight(self, client):
        response = client.options("/track", headers={
            "Origin": "https://livetrack.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        })
        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.content == b""


def test_health(client):
    assert client.get("/").json() == {"status": "ONLINE", "engine": "LiveTrack V1"}


# =========================================================================
# Caller disconnects
# =========================================================================


class FakeRequest:
    def __init__(self, disconnected):
        self.disconnected = disconnected

    async def is_disconnected(self):
        return self.disconnected


class WaitingPipeline:
    """Blocks like a slow backend until cancelled, then reports whether it was."""

    def resolve(self, tracking_number, match=None, cancel=None):
        return cancel.wait(timeout=2.0)


class TestCallerDisconnect:

    @pytest.fixture
    def ups_match(self):
        return CarrierMatch(tracking_number="1Z999AA10123456784", carrier_name="UPS", confidence=95)

    @pytest.mark.asyncio
    async def test_disconnect_sets_cancel(self, ups_match):
        cancelled = await resolve_while_connected(FakeRequest(disconnected=True), WaitingPipeline(), ups_match)
        assert cancelled is True

    @pytest.mark.asyncio
    async def test_connected_caller_gets_result(self, make_backend, ups_match):
        primary = make_backend("perplexity", ['{"carrier": "UPS", "status": "In Transit"}'])
        record = await resolve_while_connected(FakeRequest(disconnected=False), ResolutionPipeline([primary]), ups_match)
        assert record.source == "perplexity"
