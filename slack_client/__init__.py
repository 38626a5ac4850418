"""Slack client for relaying messages through the Web API."""
from .base import SlackMessagingService

__all__ = ["SlackMessagingService"]
