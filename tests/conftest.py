"""Pytest fixtures for Opal experiment tools tests."""

import pytest

from opaltools.core.inputs import RuntimeInputs
from opaltools.tools.server_config import ServerConfig


@pytest.fixture
def baseline_inputs() -> RuntimeInputs:
    """Reference A/B test: 20% baseline, 10% lift, 95%, 5000 visitors/day."""
    return RuntimeInputs(bcr=0.2, mde=0.1, sig_level=95, num_variations=2, daily_visitors=5000)


@pytest.fixture
def baseline_params() -> dict:
    """Reference test as a tool request body."""
    return {
        "BCR": 0.2,
        "MDE": 0.1,
        "sigLevel": 95,
        "numVariations": 2,
        "dailyVisitors": 5000,
    }


@pytest.fixture
def default_config() -> ServerConfig:
    """Default server configuration."""
    return ServerConfig()
