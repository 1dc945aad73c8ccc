"""
ids.py - Device identifiers

Ids are positive integers handed out by a DeviceIdGenerator. The value 0 is
reserved as the broadcast destination and is never assigned to a device.
"""

import itertools
from typing import Iterator


BROADCAST_ID = 0


class DeviceIdGenerator:
    """
    Monotonic id source.

    One generator is normally shared by everything built for a simulation, so
    ids stay unique and increase in construction order.
    """

    def __init__(self, start: int = BROADCAST_ID + 1):
        if start <= BROADCAST_ID:
            raise ValueError(f"Device ids must start above {BROADCAST_ID}, got {start}")
        self._counter: Iterator[int] = itertools.count(start)
        self.last_id = start - 1

    def next_id(self) -> int:
        self.last_id = next(self._counter)
        return self.last_id

    def skip_past(self, device_id: int):
        """Make sure future ids are larger than device_id (used after loading a snapshot)."""
        if device_id > self.last_id:
            self._counter = itertools.count(device_id + 1)
            self.last_id = device_id


default_id_generator = DeviceIdGenerator()
