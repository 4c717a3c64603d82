"""Pytest fixtures for taskgraph tests."""

import pytest

from helpers.logging import RecordingLogger


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Provide a logger that records every line it is given.

    Returns:
        A RecordingLogger at TRACE level.
    """
    return RecordingLogger()
