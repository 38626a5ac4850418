"""
Pairing handshake binding a bot token to the conversation it should relay into
"""

import random
from typing import Callable, Optional, Tuple

from base_client import IncomingMessage, MessagingError, MessagingService, PollAction
from logger import setup_logger

logger = setup_logger("slackecho.pairing")


class PairingError(Exception):
    """The handshake could not resolve a recipient"""


def generate_pairing_code() -> int:
    """Random short numeric code the operator has to send back"""
    return random.randint(0, 99999)


def register_connection(
    token: str,
    service: Optional[MessagingService] = None,
    announce: Callable[[str], None] = print
) -> Tuple[str, str]:
    """
    Wait for the operator to send the pairing code to the bot

    Args:
        token: Slack bot token to pair
        service: Messaging service to use instead of Slack
        announce: Shows the pairing instructions to the operator

    Returns:
        (token, recipient_id) where recipient_id is the conversation the code came from

    Raises:
        PairingError: The identity lookup or polling failed, or no code matched
    """
    if service is None:
        from slack_client import SlackMessagingService
        service = SlackMessagingService(token)

    try:
        me = service.get_self_identity()
    except MessagingError as e:
        raise PairingError(f"could not fetch bot identity: {e}") from e

    code = str(generate_pairing_code())
    announce(f"send the following number to the {me.username} bot:\t{code}")

    recipient_id: Optional[str] = None

    def on_message(message: IncomingMessage) -> PollAction:
        nonlocal recipient_id

        if message.text.strip() != code:
            logger.info(f"received wrong number from {message.sender_name or message.sender_id}")
            return PollAction.CONTINUE

        # Confirmation is a courtesy, the pairing stands without it
        try:
            service.send_message(message.chat_id, "correct number!")
        except MessagingError as e:
            logger.warning(f"Error while confirming pairing: {e}")

        recipient_id = message.chat_id
        return PollAction.STOP

    try:
        service.poll_incoming_messages(on_message)
    except MessagingError as e:
        raise PairingError(f"listening for the pairing code failed: {e}") from e

    if recipient_id is None:
        raise PairingError("no recipient resolved")

    logger.info(f"Paired {me.username} with {recipient_id}")
    return token, recipient_id
