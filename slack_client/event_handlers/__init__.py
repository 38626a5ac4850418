from .message_events import SlackMessageEventsMixin

__all__ = [
    "SlackMessageEventsMixin",
]
