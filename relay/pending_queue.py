"""
Pending message queue shared by the producer and the sender worker
Merges adjacent new lines into one outbound message below the length limit
"""

import threading
from collections import deque
from typing import Deque, List, Optional

from logger import LoggerMixin
from .segments import CarriageReturn, MessageSegment, Newline


class PendingQueue(LoggerMixin):
    """
    Ordered FIFO of segments guarded by a lock

    Segments are appended at the tail by the producer and taken from the
    head by the worker. Coalescing never takes a carriage-return segment
    along with new lines; it stays at the head for the next batch.
    """

    def __init__(self, max_length: int = 4096, collapse_overwrites: bool = False):
        """
        Initialize the queue

        Args:
            max_length: Merged batches stay strictly below this many code points
            collapse_overwrites: Let a carriage-return segment replace the queued tail
        """
        self.max_length = max_length
        self.collapse_overwrites = collapse_overwrites
        self._items: Deque[MessageSegment] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def is_empty(self) -> bool:
        """Check if nothing is waiting to be sent"""
        return len(self) == 0

    def snapshot(self) -> List[MessageSegment]:
        """Copy of the queued segments, head first"""
        with self._lock:
            return list(self._items)

    def clear(self) -> int:
        """Drop every queued segment and return how many were dropped"""
        with self._lock:
            dropped = len(self._items)
            self._items.clear()
            return dropped

    def enqueue(self, segment: MessageSegment) -> None:
        """Append a segment at the tail"""
        with self._lock:
            if self.collapse_overwrites and isinstance(segment, CarriageReturn) and self._items:
                # The unsent tail line is overwritten before it ever reaches the network
                tail = self._items.pop()
                self._items.append(type(tail)(segment.text))
                return
            self._items.append(segment)

    def dequeue_batch(self) -> Optional[MessageSegment]:
        """
        Take the next outbound batch from the head of the queue

        Returns:
            A CarriageReturn segment as queued, a Newline holding as many
            merged lines as fit, or None if the queue is empty
        """
        with self._lock:
            if not self._items:
                return None

            head = self._items.popleft()
            if isinstance(head, CarriageReturn):
                return head

            parts = [head.text]
            merged_length = len(head.text)
            merged_count = 1
            while self._items:
                candidate = self._items[0]
                if not isinstance(candidate, Newline):
                    break
                if merged_length + len(candidate.text) + 1 >= self.max_length:
                    break
                self._items.popleft()
                parts.append(candidate.text)
                merged_length += len(candidate.text) + 1
                merged_count += 1

        if merged_count > 1:
            self.log_debug(f"Coalesced {merged_count} lines into {merged_length} chars")
        return Newline("\n".join(parts))
