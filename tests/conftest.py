"""
Pytest configuration and shared fixtures
"""
import os
import sys
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment before config is imported anywhere
os.environ['LOG_DIRECTORY'] = tempfile.mkdtemp(prefix="slackecho-test-logs-")
os.environ['CONSOLE_LOGGING_ENABLED'] = 'false'
os.environ['LOG_LEVEL'] = 'DEBUG'

import pytest

from base_client import (
    Identity,
    IncomingMessage,
    MessageHandle,
    MessagingError,
    MessagingService,
    PollAction,
)


class FakeMessagingService(MessagingService):
    """Records every call; failures are queued per method"""

    def __init__(self):
        super().__init__("FakeMessagingService")
        self.calls: List[Tuple[str, str, Optional[str], str, float]] = []
        self.send_errors: List[Exception] = []
        self.edit_errors: List[Exception] = []
        self.identity = Identity(user_id="UBOT", username="relaybot", bot_id="BBOT")
        self.identity_error: Optional[Exception] = None
        self.incoming: List[IncomingMessage] = []
        self.poll_error: Optional[Exception] = None
        self.call_delay = 0.0
        self._next_id = 0
        self._lock = threading.Lock()

    def _record(self, method: str, recipient_id: str, message_id: Optional[str], text: str) -> None:
        with self._lock:
            self.calls.append((method, recipient_id, message_id, text, time.monotonic()))
        if self.call_delay:
            time.sleep(self.call_delay)

    def send_message(self, recipient_id: str, text: str) -> MessageHandle:
        self._record("send", recipient_id, None, text)
        if self.send_errors:
            raise self.send_errors.pop(0)
        with self._lock:
            self._next_id += 1
            message_id = str(self._next_id)
        return MessageHandle(recipient_id=recipient_id, message_id=message_id, text=text)

    def edit_message_text(self, recipient_id: str, message_id: str, text: str) -> MessageHandle:
        self._record("edit", recipient_id, message_id, text)
        if self.edit_errors:
            raise self.edit_errors.pop(0)
        return MessageHandle(recipient_id=recipient_id, message_id=message_id, text=text)

    def get_self_identity(self) -> Identity:
        if self.identity_error:
            raise self.identity_error
        return self.identity

    def poll_incoming_messages(self, callback: Callable[[IncomingMessage], PollAction]) -> None:
        for message in self.incoming:
            if callback(message) is PollAction.STOP:
                return
        if self.poll_error:
            raise self.poll_error

    @property
    def sent_texts(self) -> List[str]:
        return [call[3] for call in self.calls if call[0] == "send"]

    @property
    def edited_texts(self) -> List[str]:
        return [call[3] for call in self.calls if call[0] == "edit"]

    def wait_for_calls(self, count: int, timeout: float = 5.0) -> bool:
        """Poll until at least count calls were made"""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if len(self.calls) >= count:
                return True
            time.sleep(0.01)
        return len(self.calls) >= count


class FakeClock:
    """Monotonic clock whose sleep only advances time"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_service():
    """Recording messaging service"""
    return FakeMessagingService()


@pytest.fixture
def fake_clock():
    """Controllable clock for rate limiting"""
    return FakeClock()


@pytest.fixture
def messaging_error():
    """Factory for messaging errors"""
    def _make(message: str = "boom", retry_after: Optional[float] = None) -> MessagingError:
        return MessagingError(message, retry_after=retry_after)
    return _make


@pytest.fixture
def connections_file(tmp_path):
    """Path of a connections file that does not exist yet"""
    return str(tmp_path / "slackecho.conf")


@pytest.fixture
def mock_env(monkeypatch):
    """Mock environment variables for testing"""
    test_env = {
        'SLACKECHO_CONFIG': '/tmp/slackecho-test.conf',
        'RELAY_MESSAGE_LENGTH_LIMIT': '4096',
        'RELAY_MIN_SEND_INTERVAL': '1.0',
        'RELAY_COLLAPSE_OVERWRITES': 'false',
        'RELAY_INPUT_CHUNK_SIZE': '4096',
        'SLACK_POLL_INTERVAL': '2.0',
        'SLACK_API_TIMEOUT': '30',
        'LOG_LEVEL': 'DEBUG',
        'DEBUG_MODE': 'false',
    }
    for key, value in test_env.items():
        monkeypatch.setenv(key, value)
    return test_env
