"""
Base Client Abstract Class
Defines the interface that messaging services (Slack, test doubles, etc.) must implement
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional
from dataclasses import dataclass
from logger import LoggerMixin


@dataclass(frozen=True)
class MessageHandle:
    """A message the service accepted: where it lives, its id and its last known text"""
    recipient_id: str
    message_id: str
    text: str


@dataclass(frozen=True)
class Identity:
    """The bot account the credential belongs to"""
    user_id: str
    username: str
    bot_id: Optional[str] = None


@dataclass(frozen=True)
class IncomingMessage:
    """Universal incoming message format"""
    text: str
    sender_id: str
    chat_id: str
    sender_name: str = ""


class PollAction(Enum):
    """What a poll callback wants the listener to do next"""
    CONTINUE = "continue"
    STOP = "stop"


class MessagingError(Exception):
    """A call to the messaging service failed"""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        # Seconds the platform asked us to wait, set on rate-limit responses
        self.retry_after = retry_after


class MessagingService(ABC, LoggerMixin):
    """Abstract base class for all messaging services"""

    def __init__(self, name: str):
        self.name = name
        self.log_info(f"{name} client initialized")

    @abstractmethod
    def send_message(self, recipient_id: str, text: str) -> MessageHandle:
        """Send a new text message, raising MessagingError on failure"""
        pass

    @abstractmethod
    def edit_message_text(self, recipient_id: str, message_id: str, text: str) -> MessageHandle:
        """Replace the text of a sent message, raising MessagingError on failure"""
        pass

    @abstractmethod
    def get_self_identity(self) -> Identity:
        """Fetch the identity of the account behind the credential"""
        pass

    @abstractmethod
    def poll_incoming_messages(self, callback: Callable[[IncomingMessage], PollAction]) -> None:
        """Deliver incoming messages to callback until it returns PollAction.STOP

        Raises MessagingError when listening fails.
        """
        pass
