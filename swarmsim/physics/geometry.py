"""
geometry.py - 3D points, vectors and motion

Points double as vectors: a velocity is a Point3D holding metres per second
along each axis.

DESIGN PHILOSOPHY:
- Immutable value type (frozen dataclass)
- Plain float math
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass(frozen=True)
class Point3D:
    """Point (or displacement vector) in metres."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: 'Point3D') -> 'Point3D':
        return Point3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: 'Point3D') -> 'Point3D':
        return Point3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, factor: float) -> 'Point3D':
        return Point3D(self.x * factor, self.y * factor, self.z * factor)

    __rmul__ = __mul__

    def norm(self) -> float:
        """Euclidean length of the vector."""
        return math.sqrt(self.x ** 2 + self.y ** 2 + self.z ** 2)

    def distance_to(self, other: 'Point3D') -> float:
        return (other - self).norm()

    def scaled_to(self, length: float) -> 'Point3D':
        """
        Return a vector with the same direction and the given length.

        The zero vector stays zero (it has no direction to keep).
        """
        current = self.norm()
        if current == 0.0:
            return Point3D()
        return self * (length / current)

    def with_z(self, z: float) -> 'Point3D':
        return Point3D(self.x, self.y, z)

    def to_list(self) -> List[float]:
        return [self.x, self.y, self.z]

    @classmethod
    def from_list(cls, values: List[float]) -> 'Point3D':
        if len(values) != 3:
            raise ValueError(f"Point3D needs 3 coordinates, got {values!r}")
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def to_dict(self) -> Dict[str, Any]:
        return {'x': self.x, 'y': self.y, 'z': self.z}


def distance(a: Point3D, b: Point3D) -> float:
    """Euclidean distance between two points (symmetric)."""
    return a.distance_to(b)


def equation_of_motion(position: Point3D, velocity: Point3D, time_s: float) -> Point3D:
    """
    Uniform motion: position + velocity * time on every axis.

    Args:
        position: Start position in metres
        velocity: Velocity in metres per second
        time_s: Elapsed time in seconds

    Returns:
        New position
    """
    return position + velocity * time_s
