"""Pytest fixtures for simulator tests."""

import pytest

from shorq import AmplitudeStore, GateEngine, Measurement


@pytest.fixture
def store():
    """Empty amplitude store with the default budget."""
    return AmplitudeStore()


@pytest.fixture
def engine(store):
    return GateEngine(store)


@pytest.fixture
def measurement(engine):
    """Measurement with a fixed seed."""
    return Measurement(engine, seed=42)
