from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional

from slack_sdk.errors import SlackClientError

from base_client import IncomingMessage, PollAction
from slack_client.utilities import to_messaging_error


class SlackMessageEventsMixin:
    def poll_incoming_messages(self, callback: Callable[[IncomingMessage], PollAction]) -> None:
        """
        Long-poll the bot's direct messages and hand each new one to callback

        Only messages posted after polling started are delivered, oldest first.
        Returns when the callback answers PollAction.STOP; there is no timeout.

        Args:
            callback: Receives every new message, returns CONTINUE or STOP
        """
        started = f"{time.time():.6f}"
        last_seen: Dict[str, str] = {}

        self.log_info(f"Listening for direct messages (every {self.poll_interval}s)")
        while True:
            for channel_id in self._list_direct_channels():
                oldest = last_seen.get(channel_id, started)
                for event in self._fetch_new_messages(channel_id, oldest):
                    last_seen[channel_id] = event["ts"]
                    message = self._to_incoming_message(event, channel_id)
                    if message is None:
                        continue
                    if callback(message) is PollAction.STOP:
                        self.log_debug("Poll callback requested stop")
                        return

            time.sleep(self.poll_interval)

    def _list_direct_channels(self) -> List[str]:
        """Return the ids of all direct-message conversations the bot is part of"""
        channel_ids = []
        cursor: Optional[str] = None
        try:
            while True:
                result = self.client.conversations_list(types="im", limit=200, cursor=cursor)
                channel_ids.extend(channel["id"] for channel in result.get("channels", []))
                cursor = (result.get("response_metadata") or {}).get("next_cursor")
                if not cursor:
                    break
        except (SlackClientError, OSError) as e:
            raise to_messaging_error("conversations.list", e) from e
        return channel_ids

    def _fetch_new_messages(self, channel_id: str, oldest: str) -> List[Dict[str, Any]]:
        """Fetch messages newer than oldest, sorted oldest first"""
        try:
            result = self.client.conversations_history(channel=channel_id, oldest=oldest, limit=100)
        except (SlackClientError, OSError) as e:
            raise to_messaging_error("conversations.history", e) from e

        # Slack returns newest first
        return sorted(result.get("messages", []), key=lambda event: float(event["ts"]))

    def _to_incoming_message(self, event: Dict[str, Any], channel_id: str) -> Optional[IncomingMessage]:
        """Convert a Slack message event to the universal format, skipping bot and system messages"""
        if event.get("bot_id") or event.get("subtype"):
            return None

        user_id = event.get("user")
        if not user_id:
            return None

        return IncomingMessage(
            text=self.unformat_text(self._clean_mentions(event.get("text", ""))),
            sender_id=user_id,
            chat_id=channel_id,
            sender_name=self.get_username(user_id)
        )
