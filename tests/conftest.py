"""
Shared pytest fixtures and configuration for resque-status tests.

This module provides:
- An in-memory store and a registry built on it for test isolation
- A scriptable liveness probe so scheduler reconciliation is deterministic
- Settings-cache cleanup between tests

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    def test_something(registry, probe):
        probe.answer = Liveness.DEAD
        ...
"""

import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure resque_status package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from resque_status.liveness import Liveness
from resque_status.registry import StatusRegistry
from resque_status.settings import clear_settings_cache
from resque_status.store import InMemoryStatusStore


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Probe / Store / Registry Fixtures
# =============================================================================


class StubProbe:
    """Liveness probe returning a fixed, changeable answer and recording calls."""

    name = "stub"

    def __init__(self, answer: Liveness = Liveness.UNKNOWN):
        self.answer = answer
        self.calls: list[int] = []

    def __call__(self, pid: int) -> Liveness:
        self.calls.append(pid)
        return self.answer


@pytest.fixture
def probe() -> StubProbe:
    """Probe answering UNKNOWN until a test says otherwise."""
    return StubProbe()


@pytest.fixture
def store() -> InMemoryStatusStore:
    return InMemoryStatusStore()


@pytest.fixture
def registry(store: InMemoryStatusStore, probe: StubProbe) -> StatusRegistry:
    """Registry with default key names over a fresh in-memory store."""
    return StatusRegistry(store, probe=probe)


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Drop cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
