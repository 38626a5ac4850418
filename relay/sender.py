"""
SenderWorker: the background thread that drains the pending queue
Coalesces queued lines, spaces out dispatches and decides between send and edit
"""

import queue
import threading
from enum import Enum
from typing import Optional

from base_client import MessageHandle, MessagingError, MessagingService
from logger import LoggerMixin
from .override import compose_override_text
from .pending_queue import PendingQueue
from .rate_limiter import DispatchRateLimiter
from .segments import CarriageReturn, Newline


class SignalEvent(Enum):
    """Notifications from the producer to the worker"""
    NEW_ELEMENT = "new_element"  # Queue changed, re-check it
    SHUTDOWN = "shutdown"        # Terminal


class SenderWorker(LoggerMixin):
    """
    Owns the messaging service and the last sent message

    Each NEW_ELEMENT signal leads to at most one network dispatch. Because a
    dispatch takes everything that can be merged, later signals may find the
    queue already empty. Failed dispatches are logged and dropped.
    """

    def __init__(
        self,
        service: MessagingService,
        recipient_id: str,
        pending: PendingQueue,
        rate_limiter: Optional[DispatchRateLimiter] = None
    ):
        self.service = service
        self.recipient_id = recipient_id
        self.pending = pending
        self.rate_limiter = rate_limiter or DispatchRateLimiter()

        self.signals: "queue.Queue[SignalEvent]" = queue.Queue()
        self.last_sent: Optional[MessageHandle] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Spawn the worker thread"""
        if self._thread is not None:
            raise RuntimeError("SenderWorker already started")
        self._thread = threading.Thread(target=self.run, name="relay-sender", daemon=True)
        self._thread.start()
        self.log_debug(f"Sender worker started for {self.recipient_id}")

    def notify(self) -> None:
        """Tell the worker the queue changed"""
        self.signals.put(SignalEvent.NEW_ELEMENT)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Send the shutdown signal and wait for the thread to finish its current dispatch"""
        self.signals.put(SignalEvent.SHUTDOWN)
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                self.log_warning("Sender worker did not stop in time")

    def run(self) -> None:
        """Consume signals in order until SHUTDOWN"""
        while True:
            event = self.signals.get()

            if event is SignalEvent.SHUTDOWN:
                dropped = self.pending.clear()
                if dropped:
                    self.log_warning(f"Shutting down with {dropped} unsent segments")
                self.rate_limiter.log_periodic_stats()
                return

            try:
                self.handle_new_element()
            except Exception as e:
                # Only SHUTDOWN may stop the worker
                self.log_error(f"Unexpected error while relaying: {e}", exc_info=True)

    def handle_new_element(self) -> None:
        """Dispatch at most one batch from the queue"""
        # Empty means an earlier batch already took this element: no wait, no dispatch.
        # Spacing between real dispatches is kept by the last dispatch time alone.
        if self.pending.is_empty():
            return

        self.rate_limiter.wait_for_slot()

        batch = self.pending.dequeue_batch()
        if batch is None or not batch.text:
            return

        if isinstance(batch, Newline):
            self.send(batch.text)
        elif isinstance(batch, CarriageReturn):
            self.override_last(batch.text)

    def send(self, text: str) -> None:
        """Send text as a new message and remember it for later overrides"""
        success = False
        retry_after = None
        try:
            self.last_sent = self.service.send_message(self.recipient_id, text)
            success = True
        except MessagingError as e:
            self.log_error(f"Error while sending: {e}")
            retry_after = e.retry_after
        finally:
            # Latency of the call counts against the next window
            self.rate_limiter.record_dispatch(success=success, retry_after=retry_after)

    def override_last(self, text: str) -> None:
        """Replace the last line of the previously sent message with text"""
        previous = self.last_sent
        if previous is None:
            self.log_warning("No previous message to override")
            return

        new_text = compose_override_text(previous.text, text)

        # Nothing changed, skip the edit call
        if previous.text == text or new_text == previous.text:
            return

        success = False
        retry_after = None
        try:
            self.last_sent = self.service.edit_message_text(
                previous.recipient_id,
                previous.message_id,
                new_text
            )
            success = True
        except MessagingError as e:
            # The previous handle stays, later overrides edit the same message
            self.log_error(f"Error while overriding: {e}")
            retry_after = e.retry_after
        finally:
            self.rate_limiter.record_dispatch(success=success, retry_after=retry_after)
