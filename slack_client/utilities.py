from __future__ import annotations

from typing import Dict, Optional

from slack_sdk.errors import SlackApiError, SlackClientError

from base_client import MessagingError


def retry_after_seconds(error: SlackApiError) -> Optional[float]:
    """Extract the Retry-After delay from a rate-limited Slack response"""
    response = getattr(error, "response", None)
    if response is None or getattr(response, "status_code", None) != 429:
        return None

    headers = getattr(response, "headers", None) or {}
    value = headers.get("Retry-After") or headers.get("retry-after")
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def to_messaging_error(action: str, error: Exception) -> MessagingError:
    """
    Convert a Slack SDK or transport failure into a MessagingError

    Args:
        action: What was being attempted, used in the message
        error: The exception raised by slack_sdk or the network layer

    Returns:
        MessagingError carrying the Retry-After delay when Slack sent one
    """
    if isinstance(error, SlackApiError):
        slack_error = error.response.get("error", "unknown_error") if error.response is not None else "unknown_error"
        return MessagingError(f"{action} failed: {slack_error}", retry_after=retry_after_seconds(error))
    if isinstance(error, SlackClientError):
        return MessagingError(f"{action} failed: {error}")
    return MessagingError(f"{action} failed: network error: {error}")


class SlackUtilitiesMixin:
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_cache: Dict[str, str] = {}  # Cache user names to avoid repeated API calls

    def get_username(self, user_id: str) -> str:
        """Get username from user ID, with caching"""
        if user_id in self.user_cache:
            return self.user_cache[user_id]

        try:
            result = self.client.users_info(user=user_id)
            if result["ok"]:
                profile = result["user"].get("profile", {})
                # Prefer display name, fall back to real name, then just the ID
                username = profile.get("display_name") or profile.get("real_name") or result["user"].get("name") or user_id
                self.user_cache[user_id] = username
                return username
        except (SlackClientError, OSError) as e:
            self.log_debug(f"Could not fetch username for {user_id}: {e}")

        return user_id  # Fallback to user ID if fetch fails
