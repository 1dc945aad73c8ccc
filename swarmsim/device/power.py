"""
power.py - Device power budget
"""

from dataclasses import dataclass
from typing import Any, Dict


PASSIVE_POWER_CONSUMPTION = 1
PROCESSING_POWER_CONSUMPTION = 5
MOVEMENT_POWER_CONSUMPTION = 5


class PowerSystemError(Exception):
    """Base class for power system failures."""
    pass


class NoPowerLeft(PowerSystemError):
    """Raised when a device has consumed all of its power."""
    pass


class PowerIsGreaterThanMax(PowerSystemError):
    """Raised when a power system is built with more power than its maximum."""
    pass


@dataclass
class PowerSystem:
    """
    Power budget of a device.

    The default (0, 0) system is the powered-off state a device is left in
    after selfdestruction.

    Attributes:
        max_power: Capacity
        power: Power left
    """
    max_power: int = 0
    power: int = 0

    def __post_init__(self):
        if self.max_power < 0 or self.power < 0:
            raise ValueError(f"Power values must be non-negative, got max={self.max_power} power={self.power}")
        if self.power > self.max_power:
            raise PowerIsGreaterThanMax(
                f"power {self.power} is greater than max_power {self.max_power}"
            )

    def consume_power(self, amount: int):
        """
        Consume power, saturating at zero.

        Raises:
            NoPowerLeft: If no power remains afterwards
        """
        self.power = max(self.power - amount, 0)

        if self.power == 0:
            raise NoPowerLeft("No power left")

    def to_dict(self) -> Dict[str, Any]:
        return {'max_power': self.max_power, 'power': self.power}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PowerSystem':
        return cls(int(data['max_power']), int(data['power']))
