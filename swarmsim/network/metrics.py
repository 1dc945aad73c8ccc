"""
metrics.py - Simulation metrics

Counters collected by the network model while it runs.

DESIGN PHILOSOPHY:
- Simple counters, network-wide totals
- Transient: not part of the snapshot
- Easy to serialize (to_dict) for run summaries
"""

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class SimulationMetrics:
    """
    Simulation statistics.

    Tracks:
    - Signal deliveries (accepted and rejected, by error name)
    - Devices removed after shutting down
    - Attacks that could not reach their target
    - Latest device and infection counts
    """

    ticks: int = 0
    signals_delivered: int = 0
    signals_rejected: Dict[str, int] = field(default_factory=dict)
    devices_removed: int = 0
    attacks_failed: int = 0
    device_count: int = 0
    infected_count: int = 0

    def record_tick(self, device_count: int, infected_count: int):
        self.ticks += 1
        self.device_count = device_count
        self.infected_count = infected_count

    def record_delivered(self):
        """Record a signal accepted by a receiver."""
        self.signals_delivered += 1

    def record_rejected(self, reason: str):
        """
        Record a signal a receiver did not accept.

        Args:
            reason: Error class name, e.g. 'SignalTooWeak'
        """
        self.signals_rejected[reason] = self.signals_rejected.get(reason, 0) + 1

    def record_removed(self, count: int = 1):
        self.devices_removed += count

    def record_attack_failed(self):
        self.attacks_failed += 1

    def total_rejected(self) -> int:
        return sum(self.signals_rejected.values())

    def reset(self):
        """Reset all metrics to initial state."""
        self.ticks = 0
        self.signals_delivered = 0
        self.signals_rejected = {}
        self.devices_removed = 0
        self.attacks_failed = 0
        self.device_count = 0
        self.infected_count = 0

    def to_dict(self) -> Dict:
        return {
            'ticks': self.ticks,
            'signals_delivered': self.signals_delivered,
            'signals_rejected': dict(self.signals_rejected),
            'signals_rejected_total': self.total_rejected(),
            'devices_removed': self.devices_removed,
            'attacks_failed': self.attacks_failed,
            'device_count': self.device_count,
            'infected_count': self.infected_count,
        }
