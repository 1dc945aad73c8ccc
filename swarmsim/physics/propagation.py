"""
propagation.py - Radio propagation helpers

Frequencies, wavelength and transit delay. Delays are whole milliseconds
floored to the tick duration so that the signal queue can match them against
tick timestamps exactly.
"""

from enum import IntEnum
from typing import Union


SPEED_OF_LIGHT = 299_792_458.0  # m/s
TICK_DURATION_MS = 50


class Frequency(IntEnum):
    """Radio channels used by the simulation (value in MHz)."""
    CONTROL = 2400
    GPS = 1575


Megahertz = Union[int, float, Frequency]


def millis_to_secs(millis: int) -> float:
    return millis / 1000.0


def wavelength(frequency_mhz: Megahertz) -> float:
    """
    Wavelength in metres for a frequency in MHz.

    Raises:
        ValueError: If frequency is not positive
    """
    if frequency_mhz <= 0:
        raise ValueError(f"frequency must be positive, got {frequency_mhz}")
    return SPEED_OF_LIGHT / (float(frequency_mhz) * 1e6)


def delay_to(distance_m: float, delay_multiplier: float) -> int:
    """
    Propagation delay over a distance, in milliseconds.

    The physical delay is stretched by delay_multiplier and floored to a
    whole number of ticks.

    Args:
        distance_m: Distance in metres
        delay_multiplier: Non-negative stretch factor (0 disables delays)

    Returns:
        Delay in milliseconds, a multiple of TICK_DURATION_MS
    """
    if delay_multiplier == 0:
        return 0

    speed_of_light_m_per_ms = SPEED_OF_LIGHT / 1000.0
    delay_ms = int(distance_m * delay_multiplier / speed_of_light_m_per_ms)

    return delay_ms - delay_ms % TICK_DURATION_MS
