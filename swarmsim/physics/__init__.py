"""
swarmsim.physics - Geometry and propagation primitives

Leaf package: nothing here depends on the rest of swarmsim.
"""

from swarmsim.physics.geometry import Point3D, equation_of_motion, distance
from swarmsim.physics.propagation import (
    Frequency,
    SPEED_OF_LIGHT,
    TICK_DURATION_MS,
    wavelength,
    delay_to,
    millis_to_secs,
)

__all__ = [
    'Point3D',
    'equation_of_motion',
    'distance',
    'Frequency',
    'SPEED_OF_LIGHT',
    'TICK_DURATION_MS',
    'wavelength',
    'delay_to',
    'millis_to_secs',
]
