"""
DispatchRateLimiter class for spacing out network dispatches
Enforces a minimum interval between calls and honours platform retry-after hints
"""

import time
from typing import Any, Callable, Dict, Optional
from logger import LoggerMixin


class DispatchRateLimiter(LoggerMixin):
    """
    Tracks when the last network dispatch happened and blocks until the next one is allowed
    Only the sender worker touches it, so no locking is needed
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the rate limiter

        Args:
            min_interval: Minimum time between dispatches in seconds
            clock: Monotonic time source
            sleep: Blocking sleep used while waiting for a slot
        """
        self.min_interval = min_interval
        self.clock = clock
        self.sleep = sleep

        # Current state
        self.last_send_time: Optional[float] = None
        self.retry_after: Optional[float] = None

        # Statistics
        self.total_dispatches = 0
        self.failed_dispatches = 0
        self.rate_limited_dispatches = 0
        self.total_wait_time = 0.0

        self.log_debug(f"DispatchRateLimiter initialized: min_interval={min_interval}s")

    def time_until_next_dispatch(self) -> float:
        """
        Get seconds until the next dispatch is allowed

        Returns:
            Seconds to wait, 0.0 if a dispatch is allowed now
        """
        now = self.clock()
        wait = 0.0

        if self.last_send_time is not None:
            wait = max(wait, self.min_interval - (now - self.last_send_time))

        if self.retry_after is not None:
            wait = max(wait, self.retry_after - now)

        return max(wait, 0.0)

    def wait_for_slot(self) -> float:
        """
        Block until a dispatch is allowed

        Returns:
            Seconds spent waiting
        """
        wait = self.time_until_next_dispatch()
        if wait > 0:
            self.log_debug(f"Rate limited, waiting {wait:.3f}s")
            self.sleep(wait)
            self.total_wait_time += wait
        self.retry_after = None
        return wait

    def record_dispatch(self, success: bool = True, retry_after: Optional[float] = None) -> None:
        """
        Record that a dispatch attempt finished, successful or not

        Args:
            success: Whether the platform accepted the call
            retry_after: Seconds the platform asked us to back off, if any
        """
        self.last_send_time = self.clock()
        self.total_dispatches += 1

        if not success:
            self.failed_dispatches += 1
        if retry_after:
            self.set_retry_after(retry_after)

    def set_retry_after(self, retry_after_seconds: float) -> None:
        """
        Set retry-after time from a rate-limited response

        Args:
            retry_after_seconds: Seconds to wait before the next dispatch
        """
        self.rate_limited_dispatches += 1
        self.retry_after = self.clock() + retry_after_seconds
        self.log_warning(f"Rate limit retry-after set to {retry_after_seconds}s")

    def get_stats(self) -> Dict[str, Any]:
        """
        Get dispatch statistics

        Returns:
            Dictionary with current stats
        """
        successful = self.total_dispatches - self.failed_dispatches
        success_rate = (successful / self.total_dispatches * 100) if self.total_dispatches > 0 else 0

        return {
            "min_interval": self.min_interval,
            "time_until_next_dispatch": self.time_until_next_dispatch(),
            "total_dispatches": self.total_dispatches,
            "failed_dispatches": self.failed_dispatches,
            "rate_limited_dispatches": self.rate_limited_dispatches,
            "total_wait_time": round(self.total_wait_time, 3),
            "success_rate_percent": round(success_rate, 1),
        }

    def log_periodic_stats(self) -> None:
        """Log current statistics"""
        stats = self.get_stats()
        self.log_info(f"Dispatch stats: {stats['total_dispatches'] - stats['failed_dispatches']}/"
                      f"{stats['total_dispatches']} succeeded ({stats['success_rate_percent']}%), "
                      f"rate limited {stats['rate_limited_dispatches']}x, waited {stats['total_wait_time']}s")
