"""
queue.py - Delayed signal queue

Holds signals in flight. Each entry is (creation_time, signal, delay_map) where
the delay map gives a per-destination delay in milliseconds, with an optional
BROADCAST_ID entry as fallback. One entry can therefore arrive at different
devices at different ticks.

DESIGN PHILOSOPHY:
- Exact-tick delivery: a signal is due for a device iff
  current_time == creation_time + delay(device)
- Entries kept sorted by creation time (stable for equal times), so delivery
  order within a tick is creation order
- Pruned only once the slowest recipient has had its delivery tick
"""

import bisect
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from swarmsim.ids import BROADCAST_ID
from swarmsim.signal.signal import Signal


DelayMap = Dict[int, int]


def delay_for(device_id: int, delay_map: DelayMap) -> int:
    """Delay for a device: its own entry, else the broadcast entry, else 0."""
    if device_id in delay_map:
        return delay_map[device_id]
    return delay_map.get(BROADCAST_ID, 0)


@dataclass
class QueueEntry:
    """One in-flight signal."""
    time: int
    signal: Signal
    delay_map: DelayMap = field(default_factory=dict)

    def longest_delay(self) -> int:
        return max(self.delay_map.values(), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'time': self.time,
            'signal': self.signal.to_dict(),
            # JSON object keys are strings, keep ids as a pair list
            'delay_map': [[device_id, delay] for device_id, delay in sorted(self.delay_map.items())],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QueueEntry':
        return cls(
            time=int(data['time']),
            signal=Signal.from_dict(data['signal']),
            delay_map={int(device_id): int(delay) for device_id, delay in data['delay_map']},
        )


class SignalQueue:
    """Time-ordered queue of in-flight signals."""

    def __init__(self, entries: Optional[List[QueueEntry]] = None):
        self.entries: List[QueueEntry] = sorted(entries or [], key=lambda entry: entry.time)

    def __len__(self) -> int:
        return len(self.entries)

    def is_empty(self) -> bool:
        return not self.entries

    def add_entry(self, time: int, signal: Signal, delay_map: DelayMap):
        """
        Add a signal created at `time`.

        Args:
            time: Creation time in milliseconds
            signal: Signal to deliver
            delay_map: Per-destination delays (BROADCAST_ID as fallback)
        """
        times = [entry.time for entry in self.entries]
        index = bisect.bisect_right(times, time)
        self.entries.insert(index, QueueEntry(time, signal, dict(delay_map)))

    def get_current_signals_for(self, destination_id: int, current_time: int) -> List[Signal]:
        """
        Signals due for a device at current_time.

        A signal matches when it is addressed to destination_id (or broadcast)
        and its delay for that device ends exactly at current_time.
        """
        return [
            entry.signal
            for entry in self.entries
            if entry.signal.destination_id in (destination_id, BROADCAST_ID)
            and current_time == entry.time + delay_for(destination_id, entry.delay_map)
        ]

    def remove_old_signals(self, current_time: int):
        """Drop entries whose slowest recipient is already served."""
        self.entries = [
            entry for entry in self.entries
            if current_time < entry.time + entry.longest_delay()
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {'entries': [entry.to_dict() for entry in self.entries]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignalQueue':
        return cls([QueueEntry.from_dict(entry) for entry in data.get('entries', [])])
