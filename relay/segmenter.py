"""
Segmenter for turning a raw character stream into message segments
Splits on line feeds and carriage returns, and caps segment length
"""

from typing import Callable, List
from logger import LoggerMixin
from .segments import CarriageReturn, MessageSegment, Newline


class Segmenter(LoggerMixin):
    """
    Accumulates input characters and emits one segment per flushed line

    A line that was started by a carriage return becomes a CarriageReturn
    segment (it overwrites the previous line); everything else is a Newline.
    """

    def __init__(self, emit: Callable[[MessageSegment], None], max_length: int = 4096):
        """
        Initialize the segmenter

        Args:
            emit: Receives every flushed segment, in input order
            max_length: Accumulator length that forces a flush
        """
        self.emit = emit
        self.max_length = max_length
        self._buffer: List[str] = []
        self._length = 0

    @property
    def pending_text(self) -> str:
        """The unflushed tail of the input"""
        return "".join(self._buffer)

    def feed(self, text: str) -> None:
        """Feed every character of text, in order"""
        for char in text:
            self.feed_char(char)

    def feed_char(self, char: str) -> None:
        """Append one character, flushing on line breaks and at the length cap"""
        if char == "\n" or char == "\r":
            self.convert_to_message()

        # A leading '\r' stays in the buffer as the overwrite marker
        if char != "\n":
            self._buffer.append(char)
            self._length += 1

        if self._length >= self.max_length:
            self.convert_to_message()

    def convert_to_message(self) -> MessageSegment:
        """Flush the accumulator into exactly one segment, even when empty"""
        found_carriage_return = False
        kept = []
        for char in self._buffer:
            if char == "\r":
                found_carriage_return = True
            else:
                kept.append(char)

        text = "".join(kept)
        segment = CarriageReturn(text) if found_carriage_return else Newline(text)

        self._buffer = []
        self._length = 0

        self.emit(segment)
        return segment

    def flush_pending(self) -> bool:
        """
        Flush the accumulator if it holds anything

        Returns:
            True if a segment was emitted
        """
        if self._length == 0:
            return False
        self.log_debug(f"Flushing {self._length} pending chars")
        self.convert_to_message()
        return True
