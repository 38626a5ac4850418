from __future__ import annotations

from slack_sdk.errors import SlackClientError

from base_client import Identity, MessageHandle
from slack_client.utilities import to_messaging_error


class SlackMessagingMixin:
    def send_message(self, recipient_id: str, text: str) -> MessageHandle:
        """Post a new message to the recipient's conversation"""
        try:
            result = self.client.chat_postMessage(
                channel=recipient_id,
                text=self.format_text(text),
                mrkdwn=False  # Relayed output is shown as typed
            )
        except (SlackClientError, OSError) as e:
            raise to_messaging_error("chat.postMessage", e) from e

        reported = (result.get("message") or {}).get("text")
        handle = MessageHandle(
            recipient_id=result.get("channel") or recipient_id,
            message_id=result["ts"],
            text=self.unformat_text(reported) if reported is not None else text
        )
        self.log_debug(f"Sent message {handle.message_id} to {handle.recipient_id} ({len(text)} chars)")
        return handle

    def edit_message_text(self, recipient_id: str, message_id: str, text: str) -> MessageHandle:
        """Replace the text of a message the bot posted earlier"""
        try:
            result = self.client.chat_update(
                channel=recipient_id,
                ts=message_id,
                text=self.format_text(text)
            )
        except (SlackClientError, OSError) as e:
            raise to_messaging_error("chat.update", e) from e

        reported = result.get("text")
        handle = MessageHandle(
            recipient_id=result.get("channel") or recipient_id,
            message_id=result.get("ts") or message_id,
            text=self.unformat_text(reported) if reported is not None else text
        )
        self.log_debug(f"Edited message {handle.message_id} in {handle.recipient_id}")
        return handle

    def get_self_identity(self) -> Identity:
        """Ask Slack who the bot token belongs to"""
        try:
            result = self.client.auth_test()
        except (SlackClientError, OSError) as e:
            raise to_messaging_error("auth.test", e) from e

        return Identity(
            user_id=result["user_id"],
            username=result.get("user") or result["user_id"],
            bot_id=result.get("bot_id")
        )
