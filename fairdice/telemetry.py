"""Server-side telemetry for rank and sample requests."""
import logging
from dataclasses import dataclass
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
        """Log telemetry event."""
        logger.info("TELEMETRY %s: %s", event_name, data)


@dataclass
class RankServedEvent:
    """rank_served telemetry event."""

    limit_bits: int
    catalog_size: int
    best_sides: int | None
    best_average_rolls: float | None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "limit_bits": self.limit_bits,
            "catalog_size": self.catalog_size,
            "best_sides": self.best_sides,
            "best_average_rolls": self.best_average_rolls,
        }


@dataclass
class SampleServedEvent:
    """sample_served telemetry event."""

    max_inclusive_bits: int
    modulus: int
    kind: str  # "zero" | "direct" | "power_of_two" | "non_power_of_two"
    count: int
    draws_consumed: int
    config_hash: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "max_inclusive_bits": self.max_inclusive_bits,
            "modulus": self.modulus,
            "kind": self.kind,
            "count": self.count,
            "draws_consumed": self.draws_consumed,
            "config_hash": self.config_hash,
        }


@dataclass
class SampleRejectedEvent:
    """sample_rejected telemetry event."""

    reason: str  # ErrorCode value
    modulus: int | None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "reason": self.reason,
            "modulus": self.modulus,
        }


class TelemetryService:
    """Service for emitting server telemetry events."""

    def __init__(self, sink: TelemetrySink | None = None):
        self._sink = sink or LoggingTelemetrySink()
        self._sink_errors = 0

    def set_sink(self, sink: TelemetrySink) -> None:
        """Set the telemetry sink (useful for testing)."""
        self._sink = sink

    def _safe_emit(self, event_name: str, data: dict[str, Any]) -> None:
        """
        Emit event with exception safety.

        Sink failures MUST NOT break HTTP requests.
        """
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

    def emit_rank_served(self, event: RankServedEvent) -> None:
        self._safe_emit("rank_served", event.to_dict())

    def emit_sample_served(self, event: SampleServedEvent) -> None:
        self._safe_emit("sample_served", event.to_dict())

    def emit_sample_rejected(self, event: SampleRejectedEvent) -> None:
        self._safe_emit("sample_rejected", event.to_dict())


# Global instance
telemetry_service = TelemetryService()
