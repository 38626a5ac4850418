"""
Message segments produced by the segmenter and consumed by the sender
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Newline:
    """A complete line, sent as a new message or merged with neighbouring lines"""
    text: str


@dataclass(frozen=True)
class CarriageReturn:
    """A line led by a carriage return: it overwrites the last line already sent"""
    text: str


MessageSegment = Union[Newline, CarriageReturn]
