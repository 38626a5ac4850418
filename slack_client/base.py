"""Slack messaging service implementation."""
from typing import Optional

from slack_sdk import WebClient

from base_client import MessagingService
from config import config
from .event_handlers import SlackMessageEventsMixin
from .utilities import SlackUtilitiesMixin
from .formatting.text import SlackFormattingMixin
from .messaging import SlackMessagingMixin


class SlackMessagingService(SlackMessageEventsMixin,
                            SlackUtilitiesMixin,
                            SlackFormattingMixin,
                            SlackMessagingMixin,
                            MessagingService):
    """Slack-specific messaging service backed by the Web API"""

    def __init__(self, token: str, poll_interval: Optional[float] = None, client: Optional[WebClient] = None):
        super().__init__("SlackMessagingService")
        self.client = client or WebClient(token=token, timeout=config.slack_api_timeout)
        self.poll_interval = poll_interval if poll_interval is not None else config.slack_poll_interval
