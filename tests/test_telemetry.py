"""Telemetry tests for rank and sample requests.

These tests verify:
1. sample_served carries draw counts, kind and config_hash
2. sample_rejected is emitted for rejected requests
3. rank_served carries the best die
4. Sink failures do not break HTTP requests
"""
from typing import TYPE_CHECKING, Any

from fastapi.testclient import TestClient

from fairdice.config_hash import get_config_hash
from fairdice.telemetry import telemetry_service

if TYPE_CHECKING:
    from conftest import RecordingTelemetrySink


class FailingSink:
    """Telemetry sink that always raises an exception."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Always raise to test exception safety."""
        raise RuntimeError(f"Sink failure for {event_name}")


class TestTelemetry:
    """Server-side telemetry events."""

    def test_sample_served_fields(
        self,
        client_with_recording_telemetry: tuple[TestClient, "RecordingTelemetrySink"],
    ):
        client, telemetry = client_with_recording_telemetry

        response = client.post("/sample", json={"maxInclusive": str(2**32 - 1), "count": 3})
        assert response.status_code == 200

        events = telemetry.get_events("sample_served")
        assert len(events) == 1
        event = events[0]
        assert event["kind"] == "direct"
        assert event["count"] == 3
        assert event["draws_consumed"] == 3
        assert event["modulus"] == 2**32
        assert event["max_inclusive_bits"] == 32
        assert event["config_hash"] == get_config_hash()
        assert len(event["config_hash"]) == 16
        assert all(c in "0123456789abcdef" for c in event["config_hash"])

    def test_sample_rejected_on_invalid_count(
        self,
        client_with_recording_telemetry: tuple[TestClient, "RecordingTelemetrySink"],
    ):
        client, telemetry = client_with_recording_telemetry

        response = client.post("/sample", json={"maxInclusive": "10", "count": 0, "modulus": 6})
        assert response.status_code == 400

        assert telemetry.get_events("sample_served") == []
        rejected = telemetry.get_events("sample_rejected")
        assert rejected == [{"reason": "INVALID_REQUEST", "modulus": 6}]

    def test_rank_served_fields(
        self,
        client_with_recording_telemetry: tuple[TestClient, "RecordingTelemetrySink"],
    ):
        client, telemetry = client_with_recording_telemetry

        client.post("/rank", json={"limit": "7776", "catalog": [3, 4, 6, 8, 12]})

        events = telemetry.get_events("rank_served")
        assert len(events) == 1
        assert events[0]["best_sides"] == 6
        assert events[0]["best_average_rolls"] == 5.0
        assert events[0]["catalog_size"] == 5
        assert events[0]["limit_bits"] == (7776).bit_length()

    def test_sink_failure_does_not_break_requests(self, test_client: TestClient):
        original_sink = telemetry_service._sink
        telemetry_service.set_sink(FailingSink())
        try:
            errors_before = telemetry_service._sink_errors
            response = test_client.post("/sample", json={"maxInclusive": "5", "count": 2})
            assert response.status_code == 200
            assert len(response.json()["values"]) == 2

            response = test_client.post("/rank", json={"limit": "36"})
            assert response.status_code == 200
            assert telemetry_service._sink_errors == errors_before + 2
        finally:
            telemetry_service.set_sink(original_sink)
