"""
movement.py - Device movement system

Holds what the device believes about its own motion: the last GPS fix and the
current velocity. The device's real position lives on the Device itself and
only the simulation knows it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from swarmsim.physics.geometry import Point3D
from swarmsim.physics.propagation import TICK_DURATION_MS, millis_to_secs


MAX_DRONE_SPEED = 25.0  # m/s


class MovementSystemError(Exception):
    """Base class for movement system failures."""
    pass


class MaxSpeedTooHigh(MovementSystemError):
    """Raised when a movement system is built faster than MAX_DRONE_SPEED."""
    pass


@dataclass
class MovementSystem:
    """
    Movement state of a device.

    A max_speed of 0 means the device cannot move (movement disabled).

    Attributes:
        max_speed: Speed limit in m/s
        position: Believed position (last GPS fix)
        velocity: Current velocity in m/s
    """
    max_speed: float = 0.0
    position: Point3D = field(default_factory=Point3D)
    velocity: Point3D = field(default_factory=Point3D)

    def __post_init__(self):
        if self.max_speed < 0 or self.max_speed > MAX_DRONE_SPEED:
            raise MaxSpeedTooHigh(
                f"max_speed must be in [0, {MAX_DRONE_SPEED}], got {self.max_speed}"
            )

    def is_disabled(self) -> bool:
        return self.max_speed == 0.0

    def set_direction(self, destination: Point3D):
        """
        Head from the believed position towards destination.

        Speed is the max speed, reduced near the destination so one tick
        never carries the device past it.
        """
        direction = destination - self.position
        tick_s = millis_to_secs(TICK_DURATION_MS)
        speed = min(self.max_speed, direction.norm() / tick_s)

        self.velocity = direction.scaled_to(speed)

    def set_horizontal_velocity(self):
        """Keep the current heading in the horizontal plane at max speed."""
        self.velocity = self.velocity.with_z(0.0).scaled_to(self.max_speed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'max_speed': self.max_speed,
            'position': self.position.to_list(),
            'velocity': self.velocity.to_list(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MovementSystem':
        return cls(
            max_speed=float(data['max_speed']),
            position=Point3D.from_list(data['position']),
            velocity=Point3D.from_list(data['velocity']),
        )
