"""Shared fixtures for pawmoment tests.

All keypoints are synthetic. NO ML models or cameras needed.
"""

import importlib.util
import sys
from pathlib import Path

import pytest

# Load helpers module from the tests directory without touching sys.path.
_helpers_path = Path(__file__).resolve().parent / "helpers.py"
_spec = importlib.util.spec_from_file_location("helpers", _helpers_path)
_helpers = importlib.util.module_from_spec(_spec)
sys.modules["helpers"] = _helpers
_spec.loader.exec_module(_helpers)

from helpers import (  # noqa: E402
    FakeCaptureDevice,
    FakeClock,
    FakeLightMeter,
    StubDetector,
    make_sample,
)

from pawmoment.observability import ObservabilityHub  # noqa: E402


@pytest.fixture(autouse=True)
def reset_hub():
    """Every test starts with a fresh, disabled observability hub."""
    ObservabilityHub.reset_instance()
    yield
    ObservabilityHub.reset_instance()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def device():
    return FakeCaptureDevice()


@pytest.fixture
def auto_device():
    return FakeCaptureDevice(auto_resolve=True)


@pytest.fixture
def light_meter():
    return FakeLightMeter(iso=100.0)


@pytest.fixture
def detector():
    return StubDetector()


@pytest.fixture
def frontal():
    """Factory for frontal samples."""
    return make_sample
