"""Unit tests for RelayProcessor and start()"""

from unittest.mock import MagicMock, patch

import pytest

from relay.processor import RelayProcessor, start
from relay.segments import CarriageReturn, Newline


@pytest.fixture
def processor(fake_service):
    """Processor without a send interval, closed after the test"""
    processor = RelayProcessor(fake_service, "D1", min_send_interval=0)
    yield processor
    processor.close()


class TestRelayProcessor:
    """Test RelayProcessor class"""

    def test_initialization(self, processor):
        """Test the worker runs as soon as the processor exists"""
        assert processor.recipient_id == "D1"
        assert processor.worker.is_running
        assert not processor.closed

    def test_feed_relays_lines(self, processor, fake_service):
        """Test fed lines reach the service"""
        processor.feed("hello\nworld\n")

        assert fake_service.wait_for_calls(1)
        processor.close()
        assert "\n".join(fake_service.sent_texts) == "hello\nworld"

    def test_segments_are_queued_in_order(self, fake_service):
        """Test every flushed segment is queued and signalled"""
        processor = RelayProcessor(fake_service, "D1", min_send_interval=0)
        with patch.object(processor.worker, "notify") as mock_notify:
            processor.feed("a\n\rb\n")
            assert processor.pending.snapshot() == [Newline("a"), Newline(""), CarriageReturn("b")]
            assert mock_notify.call_count == 3
        processor.close()

    def test_unterminated_line_waits_for_flush(self, processor, fake_service):
        """Test a partial line is only sent after flush()"""
        processor.feed("partial")
        assert processor.pending.is_empty()

        assert processor.flush() is True
        assert fake_service.wait_for_calls(1)
        assert fake_service.sent_texts == ["partial"]

    def test_close_is_idempotent(self, fake_service):
        """Test closing twice stops the worker once"""
        processor = RelayProcessor(fake_service, "D1", min_send_interval=0)
        with patch.object(processor.worker, "shutdown", wraps=processor.worker.shutdown) as mock_shutdown:
            processor.close()
            processor.close()

        mock_shutdown.assert_called_once()
        assert processor.closed
        assert not processor.worker.is_running

    def test_feed_after_close_raises(self, processor):
        """Test a closed processor rejects input"""
        processor.close()

        with pytest.raises(RuntimeError):
            processor.feed("late\n")
        assert processor.flush() is False

    def test_context_manager_closes(self, fake_service):
        """Test leaving the with block shuts the worker down"""
        with RelayProcessor(fake_service, "D1", min_send_interval=0) as processor:
            processor.feed("inside\n")

        assert processor.closed
        assert not processor.worker.is_running

    def test_context_manager_closes_on_error(self, fake_service):
        """Test the worker is stopped when the body raises"""
        with pytest.raises(ValueError):
            with RelayProcessor(fake_service, "D1", min_send_interval=0) as processor:
                raise ValueError("boom")

        assert processor.closed

    def test_progress_updates_edit_in_place(self, fake_service):
        """Test carriage-return output ends as edits of one message"""
        with RelayProcessor(fake_service, "D1", min_send_interval=0) as processor:
            processor.feed("progress\n")
            assert fake_service.wait_for_calls(1)
            processor.feed("\r10%")
            processor.flush()
            assert fake_service.wait_for_calls(2)

        assert fake_service.sent_texts == ["progress"]
        assert fake_service.edited_texts == ["10%"]


class TestStart:
    """Test start() factory"""

    def test_start_with_service(self, fake_service):
        """Test an explicit service is used with configured settings"""
        processor = start("xoxb-unused", "D1", service=fake_service, overrides={"min_send_interval": 0.5})
        try:
            assert processor.worker.service is fake_service
            assert processor.worker.rate_limiter.min_interval == 0.5
            assert processor.pending.max_length == 4096
        finally:
            processor.close()

    def test_start_builds_slack_service(self):
        """Test the credential is handed to the Slack service"""
        mock_service = MagicMock()
        with patch("slack_client.SlackMessagingService", return_value=mock_service) as mock_cls:
            processor = start("xoxb-token", "D1")
            processor.close()

        mock_cls.assert_called_once_with("xoxb-token")
        assert processor.worker.service is mock_service
