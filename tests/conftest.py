"""
Shared pytest fixtures for tile-regen tests.

This module provides:
- settings: RegenSettings with the default tunables
- layer: Empty 10x10 TileLayer
- manual_host: ManualHost with a fake clock and manual ticks
- mock_oracle: MockTileOracle filling every region with tile 1
- mock_llm_client / mock_llm_with_responses: get_completion stand-ins
- Custom markers for test categorization
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tile_regen.config import RegenSettings
from tile_regen.world.tilemap import SelectionRegion, TileLayer

if TYPE_CHECKING:
    from tests.mocks.host import ManualHost
    from tests.mocks.oracle import MockLLMClient, MockTileOracle


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


# =============================================================================
# Settings and World Fixtures
# =============================================================================


@pytest.fixture
def settings() -> RegenSettings:
    """Default settings: 8-tile chunks, 8ms budget, 120ms debounce."""
    return RegenSettings()


@pytest.fixture
def layer() -> TileLayer:
    """An empty 10x10 ground layer."""
    return TileLayer(10, 10, name="Ground_Layer")


@pytest.fixture
def overlapping_regions() -> tuple[SelectionRegion, SelectionRegion]:
    """Two overlapping selections at different levels.

    Layout (x right, y down), overlap on column 2:

        R1 (z=3): [1,1]-[2,2]
        R2 (z=1): [2,1]-[3,2]
    """
    r1 = SelectionRegion(id="r1", start=(1, 1), end=(2, 2), z_level=3, prompt="stone")
    r2 = SelectionRegion(id="r2", start=(2, 1), end=(3, 2), z_level=1, prompt="grass")
    return r1, r2


# =============================================================================
# Host and Oracle Fixtures
# =============================================================================


@pytest.fixture
def manual_host() -> "ManualHost":
    """A scheduler host that only moves when the test tells it to."""
    from tests.mocks.host import ManualHost

    host = ManualHost()
    yield host
    host.close()


@pytest.fixture
def mock_oracle() -> "MockTileOracle":
    """An oracle that fills every requested region with tile 1."""
    from tests.mocks.oracle import MockTileOracle

    return MockTileOracle(fill=1)


@pytest.fixture
def mock_llm_client() -> "MockLLMClient":
    """Create a mock completion client replying with a 2x2 matrix of 1s."""
    from tests.mocks.oracle import MockLLMClient, matrix_json

    return MockLLMClient({"default": matrix_json(2, 2, 1)})


@pytest.fixture
def mock_llm_with_responses() -> callable:
    """Factory fixture to create mock completion clients with custom responses.

    Usage:
        def test_something(mock_llm_with_responses):
            llm = mock_llm_with_responses({
                "forest": '{"tiles": [[4]]}',
                "default": '{"tiles": [[1]]}',
            })
    """
    from tests.mocks.oracle import MockLLMClient

    def _factory(responses: dict[str, str]) -> MockLLMClient:
        return MockLLMClient(responses)

    return _factory
