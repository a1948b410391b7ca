"""Server-side round telemetry."""
import logging
from dataclasses import asdict, dataclass
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    """Protocol for telemetry sinks."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Emit a telemetry event."""
        ...


class LoggingTelemetrySink:
    """Default sink that logs telemetry events."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        logger.info("TELEMETRY %s: %s", event_name, data)


@dataclass
class RoundCommittedEvent:
    """round_committed: a commitment was published."""

    round_id: str
    commit_hex: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RoundStartedEvent:
    """round_started: the engine produced an outcome."""

    round_id: str
    drop_column: int
    bin_index: int
    payout_multiplier: float
    bet_cents: int
    peg_map_hash: str
    config_hash: str
    lock_acquire_ms: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RoundRevealedEvent:
    """round_revealed: the server seed was disclosed."""

    round_id: str
    already_revealed: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RoundVerifiedEvent:
    """round_verified: a verification request was served."""

    round_id: str | None
    bin_index: int
    is_valid: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class TelemetryService:
    """Service for emitting server telemetry events."""

    def __init__(self, sink: TelemetrySink | None = None):
        self._sink = sink or LoggingTelemetrySink()
        self._sink_errors = 0

    @property
    def sink_errors(self) -> int:
        return self._sink_errors

    def set_sink(self, sink: TelemetrySink) -> None:
        """Set the telemetry sink (useful for testing)."""
        self._sink = sink

    def _safe_emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Emit event; sink failures must not break HTTP requests."""
        try:
            self._sink.emit(event_name, data)
        except Exception as e:
            self._sink_errors += 1
            logger.warning(
                "Telemetry sink error (count=%d): %s - %s",
                self._sink_errors,
                event_name,
                str(e),
            )

    def emit_round_committed(self, event: RoundCommittedEvent) -> None:
        self._safe_emit("round_committed", event.to_dict())

    def emit_round_started(self, event: RoundStartedEvent) -> None:
        self._safe_emit("round_started", event.to_dict())

    def emit_round_revealed(self, event: RoundRevealedEvent) -> None:
        self._safe_emit("round_revealed", event.to_dict())

    def emit_round_verified(self, event: RoundVerifiedEvent) -> None:
        self._safe_emit("round_verified", event.to_dict())


# Global instance
telemetry_service = TelemetryService()
