"""
RelayProcessor: the caller-facing handle of the relay pipeline
Feeds input through the segmenter into the pending queue and owns the sender worker
"""

import threading
from typing import Any, Dict, Optional

from base_client import MessagingService
from config import config
from logger import LoggerMixin
from .pending_queue import PendingQueue
from .rate_limiter import DispatchRateLimiter
from .segmenter import Segmenter
from .segments import MessageSegment
from .sender import SenderWorker


class RelayProcessor(LoggerMixin):
    """
    Relays text fed by the caller to one recipient

    Use it as a context manager so the worker is always shut down:

        with start(token, channel_id) as processor:
            processor.feed(text)
    """

    def __init__(
        self,
        service: MessagingService,
        recipient_id: str,
        message_length_limit: int = 4096,
        min_send_interval: float = 1.0,
        collapse_overwrites: bool = False
    ):
        self.recipient_id = recipient_id
        self.pending = PendingQueue(max_length=message_length_limit, collapse_overwrites=collapse_overwrites)
        self.worker = SenderWorker(
            service,
            recipient_id,
            self.pending,
            DispatchRateLimiter(min_interval=min_send_interval)
        )
        self.segmenter = Segmenter(self._append_to_send_buffer, max_length=message_length_limit)

        self._close_lock = threading.Lock()
        self._closed = False

        self.worker.start()
        self.log_info(f"Relaying to {recipient_id} (limit={message_length_limit} chars, "
                      f"interval={min_send_interval}s)")

    @property
    def closed(self) -> bool:
        return self._closed

    def _append_to_send_buffer(self, segment: MessageSegment) -> None:
        """Queue a flushed segment and wake the worker"""
        self.pending.enqueue(segment)
        self.worker.notify()

    def feed(self, text: str) -> None:
        """Relay a piece of input text"""
        if self._closed:
            raise RuntimeError("RelayProcessor is closed")
        self.segmenter.feed(text)

    def flush(self) -> bool:
        """Relay the unterminated tail of the input, if any"""
        if self._closed:
            return False
        return self.segmenter.flush_pending()

    def close(self) -> None:
        """
        Stop the worker and wait for it to finish

        Segments still queued when the worker sees the shutdown signal are
        dropped. Calling close() again does nothing.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        self.worker.shutdown()
        self.log_info("Relay closed")

    def __enter__(self) -> "RelayProcessor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def start(
    credential: str,
    recipient_id: str,
    service: Optional[MessagingService] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> RelayProcessor:
    """
    Start relaying to recipient_id

    Args:
        credential: Slack bot token, used when no service is given
        recipient_id: Conversation to relay into
        service: Messaging service to use instead of Slack
        overrides: Relay settings that win over the configuration

    Returns:
        A running RelayProcessor
    """
    if service is None:
        from slack_client import SlackMessagingService
        service = SlackMessagingService(credential)

    return RelayProcessor(service, recipient_id, **config.get_relay_settings(overrides))
