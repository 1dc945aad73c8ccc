#!/usr/bin/env python3
"""
test_queue.py - Unit tests for the delayed signal queue
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from swarmsim.ids import BROADCAST_ID
from swarmsim.physics.geometry import Point3D
from swarmsim.physics.propagation import Frequency
from swarmsim.signal.quality import RED_QUALITY
from swarmsim.signal.queue import QueueEntry, SignalQueue, delay_for
from swarmsim.signal.signal import Signal
from swarmsim.task import Task


def broadcast_signal(source_id=1):
    return Signal(source_id, BROADCAST_ID, Task.undefined(), Frequency.CONTROL, RED_QUALITY)


def unicast_signal(destination_id, source_id=1):
    return Signal(source_id, destination_id, Point3D(), Frequency.GPS, RED_QUALITY)


def test_delay_for():
    """Test own entry, then broadcast fallback, then zero."""
    assert delay_for(2, {2: 100, BROADCAST_ID: 50}) == 100
    assert delay_for(3, {2: 100, BROADCAST_ID: 50}) == 50
    assert delay_for(3, {2: 100}) == 0


class TestDelivery:
    """Tests for get_current_signals_for."""

    def test_exact_tick_delivery(self):
        """Test that an entry is due iff t == creation time + delay."""
        queue = SignalQueue()
        signal = broadcast_signal()
        queue.add_entry(100, signal, {2: 100, 3: 50})

        assert queue.get_current_signals_for(2, 200) == [signal]
        assert queue.get_current_signals_for(2, 150) == []
        assert queue.get_current_signals_for(2, 250) == []
        assert queue.get_current_signals_for(3, 150) == [signal]
        # No entry for 4 and no broadcast entry: zero delay
        assert queue.get_current_signals_for(4, 100) == [signal]

    def test_broadcast_delay_entry(self):
        queue = SignalQueue()
        signal = broadcast_signal()
        queue.add_entry(0, signal, {BROADCAST_ID: 150})

        assert queue.get_current_signals_for(7, 150) == [signal]
        assert queue.get_current_signals_for(7, 0) == []

    def test_unicast_only_reaches_destination(self):
        queue = SignalQueue()
        signal = unicast_signal(5)
        queue.add_entry(0, signal, {5: 0})

        assert queue.get_current_signals_for(5, 0) == [signal]
        assert queue.get_current_signals_for(6, 0) == []

    def test_creation_order_within_tick(self):
        """Test that signals due in the same tick come in creation order."""
        queue = SignalQueue()
        late = broadcast_signal(source_id=2)
        early = broadcast_signal(source_id=1)

        queue.add_entry(100, late, {})
        queue.add_entry(50, early, {9: 50})

        assert [entry.time for entry in queue.entries] == [50, 100]
        assert queue.get_current_signals_for(9, 100) == [early, late]

    def test_equal_times_keep_insertion_order(self):
        queue = SignalQueue()
        first = broadcast_signal(source_id=1)
        second = broadcast_signal(source_id=2)

        queue.add_entry(0, first, {})
        queue.add_entry(0, second, {})

        assert queue.get_current_signals_for(3, 0) == [first, second]


class TestRemoval:
    """Tests for remove_old_signals."""

    def test_removed_once_slowest_recipient_served(self):
        """Test that an entry is removed iff t >= creation time + max delay."""
        queue = SignalQueue()
        queue.add_entry(100, broadcast_signal(), {2: 100, 3: 50})

        queue.remove_old_signals(150)
        assert len(queue) == 1

        queue.remove_old_signals(199)
        assert len(queue) == 1

        queue.remove_old_signals(200)
        assert queue.is_empty()

    def test_zero_delay_entry_removed_same_tick(self):
        queue = SignalQueue()
        queue.add_entry(50, broadcast_signal(), {})

        queue.remove_old_signals(0)
        assert len(queue) == 1

        queue.remove_old_signals(50)
        assert queue.is_empty()


def test_serialization():
    queue = SignalQueue()
    queue.add_entry(0, broadcast_signal(), {2: 100, BROADCAST_ID: 50})
    queue.add_entry(50, unicast_signal(3), {3: 0})

    restored = SignalQueue.from_dict(queue.to_dict())

    assert restored.entries == queue.entries
    assert QueueEntry.from_dict(queue.entries[0].to_dict()).delay_map == {2: 100, BROADCAST_ID: 50}
