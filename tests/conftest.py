import os
import sys

import pytest

# Add the project root to Python path so the top-level modules import
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Configure pytest for async tests
pytest_plugins = ('pytest_asyncio',)

from hub import CollabHub  # noqa: E402


class RecordingSink:
    """Stands in for a socket: keeps every message the hub sends."""

    def __init__(self):
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)

    def of(self, event):
        return [m["data"] for m in self.messages if m["event"] == event]

    def clear(self):
        self.messages.clear()


@pytest.fixture
def hub():
    return CollabHub(debounce_seconds=0.05)


@pytest.fixture
def connect(hub):
    """Open a connection on the hub and return its recording sink."""
    def _connect(connection_id):
        sink = RecordingSink()
        hub.connect(connection_id, sink)
        return sink
    return _connect
