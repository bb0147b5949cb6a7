"""Pytest fixtures for fairdice tests."""
import itertools
from collections import Counter
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from fairdice.errors import SourceExhausted
from fairdice.logic.rng import SequenceSource
from fairdice.logic.sampler import BoundedUniformSampler
from fairdice.main import app
from fairdice.telemetry import telemetry_service


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (large seeded simulations)"
    )


class RecordingTelemetrySink:
    """Telemetry sink that keeps every event for assertions."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        self.events.append((event_name, data))

    def get_events(self, event_name: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event_name]

    def clear(self) -> None:
        self.events.clear()


def _enumerate_outcomes(sampler: BoundedUniformSampler, length: int) -> Counter:
    """
    Run sampler once against every source sequence of the given length.

    Each sequence is equally likely, so a sampler that is exactly uniform
    produces the same count for every value; sequences that run out of
    draws before a value is produced are not counted.
    """
    counts: Counter = Counter()
    for sequence in itertools.product(range(sampler.modulus), repeat=length):
        source = SequenceSource(sampler.modulus, sequence)
        try:
            counts[sampler.sample(source)] += 1
        except SourceExhausted:
            continue
    return counts


@pytest.fixture
def test_client() -> TestClient:
    """Create basic TestClient."""
    return TestClient(app)


@pytest.fixture
def recording_telemetry() -> Generator[RecordingTelemetrySink, None, None]:
    """Swap the global telemetry sink for a recording one."""
    sink = RecordingTelemetrySink()
    original_sink = telemetry_service._sink
    telemetry_service.set_sink(sink)
    yield sink
    telemetry_service.set_sink(original_sink)


@pytest.fixture
def client_with_recording_telemetry(
    recording_telemetry: RecordingTelemetrySink,
) -> Generator[tuple[TestClient, RecordingTelemetrySink], None, None]:
    """Create TestClient with a recording telemetry sink."""
    with TestClient(app) as client:
        yield client, recording_telemetry


@pytest.fixture
def enumerate_outcomes():
    """Exhaustive outcome counter, see _enumerate_outcomes."""
    return _enumerate_outcomes
