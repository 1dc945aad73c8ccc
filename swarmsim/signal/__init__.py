"""
swarmsim.signal - Signal quality, signals and the delayed signal queue
"""

from swarmsim.signal.quality import (
    SignalQuality,
    SignalTier,
    BLACK_QUALITY,
    RED_QUALITY,
    YELLOW_QUALITY,
    GREEN_QUALITY,
)
from swarmsim.signal.signal import Signal, Payload
from swarmsim.signal.queue import SignalQueue, QueueEntry, DelayMap, delay_for

__all__ = [
    'SignalQuality',
    'SignalTier',
    'BLACK_QUALITY',
    'RED_QUALITY',
    'YELLOW_QUALITY',
    'GREEN_QUALITY',
    'Signal',
    'Payload',
    'SignalQueue',
    'QueueEntry',
    'DelayMap',
    'delay_for',
]
