"""Unit tests for overriding the last sent line"""

from unittest.mock import patch

import pytest

from base_client import MessageHandle
from relay.override import compose_override_text
from relay.pending_queue import PendingQueue
from relay.rate_limiter import DispatchRateLimiter
from relay.sender import SenderWorker


class TestComposeOverrideText:
    """Test compose_override_text function"""

    @pytest.mark.parametrize("previous,new_line,expected", [
        ("x\ny", "z", "x\nz"),
        ("only", "new", "new"),
        ("", "new", "new"),
        ("a\nb\n", "c", "a\nb\nc"),
        ("a\nb", "", "a\n"),
    ])
    def test_replaces_last_line(self, previous, new_line, expected):
        """Test only the last line is replaced"""
        assert compose_override_text(previous, new_line) == expected


class TestOverrideLast:
    """Test SenderWorker.override_last"""

    @pytest.fixture
    def worker(self, fake_service, fake_clock):
        """Worker that is never started; methods are called directly"""
        limiter = DispatchRateLimiter(min_interval=1.0, clock=fake_clock, sleep=fake_clock.sleep)
        return SenderWorker(fake_service, "D1", PendingQueue(), limiter)

    def test_no_previous_message(self, worker, fake_service):
        """Test an override with nothing sent is a logged no-op"""
        with patch.object(worker, "log_warning") as mock_warning:
            worker.override_last("50%")

        assert fake_service.calls == []
        assert worker.last_sent is None
        mock_warning.assert_called_once_with("No previous message to override")
        assert worker.rate_limiter.total_dispatches == 0

    def test_edits_last_line(self, worker, fake_service):
        """Test the last line of the previous message is replaced"""
        worker.last_sent = MessageHandle("D1", "7", "x\ny")
        worker.override_last("z")

        assert fake_service.calls[0][:4] == ("edit", "D1", "7", "x\nz")
        assert worker.last_sent == MessageHandle("D1", "7", "x\nz")
        assert worker.rate_limiter.total_dispatches == 1

    def test_identical_text_skips_edit(self, worker, fake_service):
        """Test an override that would not change anything makes no call"""
        worker.send("p")
        worker.override_last("p")

        assert [call[0] for call in fake_service.calls] == ["send"]
        assert worker.rate_limiter.total_dispatches == 1

    def test_identical_consecutive_overrides_edit_once(self, worker, fake_service):
        """Test repeating the same progress line on a multi-line message edits once"""
        worker.last_sent = MessageHandle("D1", "7", "header\n10%")
        worker.override_last("p")
        worker.override_last("p")

        assert fake_service.edited_texts == ["header\np"]

    def test_repeated_overrides_edit_once_each(self, worker, fake_service):
        """Test successive overrides keep editing the same message"""
        worker.send("status")
        worker.override_last("10%")
        worker.override_last("20%")

        assert fake_service.edited_texts == ["10%", "20%"]
        assert {call[2] for call in fake_service.calls if call[0] == "edit"} == {"1"}

    def test_failed_edit_keeps_previous_handle(self, worker, fake_service, messaging_error):
        """Test a failed edit leaves the handle unchanged"""
        worker.last_sent = MessageHandle("D1", "7", "a\nb")
        fake_service.edit_errors.append(messaging_error("message_not_found"))

        worker.override_last("c")

        assert worker.last_sent == MessageHandle("D1", "7", "a\nb")
        assert worker.rate_limiter.failed_dispatches == 1

        worker.override_last("d")
        assert fake_service.calls[-1][:4] == ("edit", "D1", "7", "a\nd")

    def test_failed_edit_with_retry_after(self, worker, fake_service, messaging_error):
        """Test a rate-limited edit postpones the next dispatch"""
        worker.last_sent = MessageHandle("D1", "7", "a")
        fake_service.edit_errors.append(messaging_error("ratelimited", retry_after=4.0))

        worker.override_last("b")

        assert worker.rate_limiter.time_until_next_dispatch() == pytest.approx(4.0)
