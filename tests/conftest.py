"""
Pytest configuration and shared fixtures.

This module provides:
- Common fixtures for test configuration
- Fakes for the signal source, dispatcher and HTTP responses
- Helper functions for test audio creation
"""
import sys
import threading
from pathlib import Path
from typing import Iterable, List, Optional
from unittest.mock import MagicMock

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import config_loader
import numpy as np
import pytest
import requests
from requests.structures import CaseInsensitiveDict

from core.settings import Credentials, DetectorSettings
from core.status import StatusReporter
from utils import NO_DATA_DB

# Test constants
TEST_SAMPLE_RATE = 16000
TEST_FREQUENCY = 440  # Hz
TEST_DURATION = 0.5  # seconds
INT16_FULL_SCALE = 32768.0
TEST_TOKEN = "test-token"
TEST_USER_ID = "123456789"


class FakeSource:
    """Signal source returning scripted levels, counting acquisitions."""

    def __init__(self, levels: Iterable[float] = (), default: float = NO_DATA_DB, start_error: Optional[Exception] = None):
        self.levels: List[float] = list(levels)
        self.default = default
        self.start_error = start_error
        self.start_calls = 0
        self.stop_calls = 0

    def start(self) -> None:
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error

    def stop(self) -> None:
        self.stop_calls += 1

    def current_level(self) -> float:
        if self.levels:
            return self.levels.pop(0)
        return self.default


class RecordingDispatcher:
    """Dispatcher that only records what it was asked to deliver."""

    def __init__(self):
        self.levels: List[float] = []
        self.notified = threading.Event()

    def notify(self, decibel_level: float) -> None:
        self.levels.append(decibel_level)
        self.notified.set()


@pytest.fixture
def project_root_path():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config():
    """Default configuration for testing."""
    return config_loader.get_default_config()


@pytest.fixture
def settings():
    """Settings with complete credentials and default thresholds."""
    return DetectorSettings(credentials=Credentials(TEST_TOKEN, TEST_USER_ID))


@pytest.fixture
def status():
    return StatusReporter()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


def make_response(status_code: int, json_body=None, headers: Optional[dict] = None) -> MagicMock:
    """
    Create a fake requests.Response.

    Args:
        status_code: HTTP status
        json_body: Value returned by .json(); None makes .json() raise ValueError
        headers: Response headers (case-insensitive like requests)
    """
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.headers = CaseInsensitiveDict(headers or {})
    if json_body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_body
    return response


def create_test_audio_samples(
    sample_rate: int = TEST_SAMPLE_RATE,
    duration: float = TEST_DURATION,
    frequency: float = TEST_FREQUENCY,
    amplitude: float = 0.5
) -> np.ndarray:
    """
    Create test audio samples (sine wave).

    Args:
        sample_rate: Sample rate in Hz
        duration: Duration in seconds
        frequency: Frequency in Hz
        amplitude: Amplitude (0.0 to 1.0)

    Returns:
        int16 array of audio samples
    """
    t = np.arange(int(sample_rate * duration)) / sample_rate
    samples = (np.sin(2 * np.pi * frequency * t) * amplitude * INT16_FULL_SCALE).astype(np.int16)
    return samples
