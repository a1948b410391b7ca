"""Telemetry delivery tests."""
from typing import Any

from fastapi.testclient import TestClient

from plinko.config_hash import get_config_hash
from plinko.telemetry import RoundCommittedEvent, TelemetryService


class FailingSink:
    """Telemetry sink that always raises an exception."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        raise RuntimeError(f"Sink failure for {event_name}")


class TestConfigHash:
    def test_is_16_char_hex(self):
        value = get_config_hash()
        assert len(value) == 16
        assert all(c in "0123456789abcdef" for c in value)

    def test_is_stable(self):
        assert get_config_hash() == get_config_hash()


class TestRoundEvents:
    def test_lifecycle_emits_events(
        self, client_with_mock_redis: TestClient, recording_telemetry
    ):
        committed = client_with_mock_redis.post("/rounds/commit").json()
        round_id = committed["roundId"]
        started = client_with_mock_redis.post(
            f"/rounds/{round_id}/start",
            json={"clientSeed": "abc", "betCents": 100, "dropColumn": 4},
        ).json()
        client_with_mock_redis.post(f"/rounds/{round_id}/reveal")

        committed_events = recording_telemetry.get_events("round_committed")
        assert committed_events == [{"round_id": round_id, "commit_hex": committed["commitHex"]}]

        started_events = recording_telemetry.get_events("round_started")
        assert len(started_events) == 1
        event = started_events[0]
        assert event["round_id"] == round_id
        assert event["drop_column"] == 4
        assert event["bin_index"] == started["binIndex"]
        assert event["peg_map_hash"] == started["pegMapHash"]
        assert event["config_hash"] == get_config_hash()
        assert event["lock_acquire_ms"] >= 0

        revealed_events = recording_telemetry.get_events("round_revealed")
        assert revealed_events == [{"round_id": round_id, "already_revealed": False}]

    def test_verify_emits_event(
        self, client_with_mock_redis: TestClient, recording_telemetry, vector
    ):
        client_with_mock_redis.get(
            "/verify",
            params={
                "serverSeed": vector["server_seed"],
                "clientSeed": vector["client_seed"],
                "nonce": vector["nonce"],
            },
        )
        events = recording_telemetry.get_events("round_verified")
        assert events == [{"round_id": None, "bin_index": vector["bin_index"], "is_valid": True}]

    def test_rejected_start_emits_nothing(
        self, client_with_mock_redis: TestClient, recording_telemetry
    ):
        client_with_mock_redis.post(
            "/rounds/missing/start",
            json={"clientSeed": "abc", "betCents": 100, "dropColumn": 4},
        )
        assert recording_telemetry.get_events("round_started") == []


class TestSinkFailures:
    def test_sink_error_is_counted_not_raised(self):
        service = TelemetryService(sink=FailingSink())
        service.emit_round_committed(RoundCommittedEvent(round_id="r", commit_hex="c"))
        assert service.sink_errors == 1

    def test_failing_sink_does_not_break_requests(self, client_with_mock_redis: TestClient):
        from plinko.telemetry import LoggingTelemetrySink, telemetry_service

        telemetry_service.set_sink(FailingSink())
        try:
            response = client_with_mock_redis.post("/rounds/commit")
            assert response.status_code == 200
        finally:
            telemetry_service.set_sink(LoggingTelemetrySink())
