"""
Streaming relay pipeline
Segments piped input, coalesces lines and sends them to one chat at a bounded rate
"""

from .segments import CarriageReturn, MessageSegment, Newline
from .segmenter import Segmenter
from .pending_queue import PendingQueue
from .rate_limiter import DispatchRateLimiter
from .override import compose_override_text
from .sender import SenderWorker, SignalEvent
from .processor import RelayProcessor, start
from .pairing import PairingError, register_connection

__all__ = [
    'CarriageReturn',
    'MessageSegment',
    'Newline',
    'Segmenter',
    'PendingQueue',
    'DispatchRateLimiter',
    'compose_override_text',
    'SenderWorker',
    'SignalEvent',
    'RelayProcessor',
    'start',
    'PairingError',
    'register_connection'
]
