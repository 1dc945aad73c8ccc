"""
quality.py - Signal quality model

A SignalQuality is a continuous strength value. Its tier (black, red, yellow,
green) is derived from fixed thresholds and is never stored separately, so the
two cannot disagree.

Two attenuation models are provided:
- at(): continuous free-space path loss approximation
- at_by_zone(): stepped degradation over fractions of the coverage radius

DESIGN PHILOSOPHY:
- Pure functions of (strength, frequency, distance), no hidden state
- Ordering compares strength, which is consistent with tier ordering
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from swarmsim.physics.propagation import Megahertz, wavelength


GREEN_STRENGTH_VALUE = 100.0
MAX_BLACK_STRENGTH = 1.0
MAX_RED_STRENGTH = GREEN_STRENGTH_VALUE * 0.2
MAX_YELLOW_STRENGTH = GREEN_STRENGTH_VALUE * 0.5

STRENGTH_SCALING = 2_500.0

# Zone boundaries as fractions of the coverage radius
SAME_TIER_ZONE = 0.1
LOWER_TIER_ZONE = 0.2


class SignalTier(IntEnum):
    """Coarse quality bucket, ordered from worst to best."""
    BLACK = 0
    RED = 1
    YELLOW = 2
    GREEN = 3


def tier_of(strength: float) -> SignalTier:
    if strength <= MAX_BLACK_STRENGTH:
        return SignalTier.BLACK
    if strength <= MAX_RED_STRENGTH:
        return SignalTier.RED
    if strength <= MAX_YELLOW_STRENGTH:
        return SignalTier.YELLOW
    return SignalTier.GREEN


@dataclass(frozen=True, order=True)
class SignalQuality:
    """
    Signal strength with a derived quality tier.

    Attributes:
        strength: Non-negative strength value
    """
    strength: float = 0.0

    @property
    def tier(self) -> SignalTier:
        return tier_of(self.strength)

    def is_black(self) -> bool:
        return self.tier == SignalTier.BLACK

    def is_red(self) -> bool:
        return self.tier == SignalTier.RED

    def is_yellow(self) -> bool:
        return self.tier == SignalTier.YELLOW

    def is_green(self) -> bool:
        return self.tier == SignalTier.GREEN

    def __add__(self, other: Union['SignalQuality', float]) -> 'SignalQuality':
        value = other.strength if isinstance(other, SignalQuality) else other
        return SignalQuality(self.strength + value)

    def __sub__(self, other: Union['SignalQuality', float]) -> 'SignalQuality':
        value = other.strength if isinstance(other, SignalQuality) else other
        return SignalQuality(max(self.strength - value, 0.0))

    @classmethod
    def from_area(cls, radius_m: float, frequency: Megahertz) -> 'SignalQuality':
        """
        Transmit quality whose coverage radius on a frequency is radius_m.

        Inverse of area_radius_on().

        Args:
            radius_m: Desired coverage radius in metres
            frequency: Frequency in MHz

        Returns:
            Transmit quality
        """
        if radius_m < 0:
            raise ValueError(f"radius must be non-negative, got {radius_m}")
        return cls((radius_m / wavelength(frequency)) ** 2 / STRENGTH_SCALING)

    def area_radius_on(self, frequency: Megahertz) -> float:
        """Coverage radius in metres (0 for a black quality)."""
        if self.is_black():
            return 0.0
        return wavelength(frequency) * math.sqrt(self.strength * STRENGTH_SCALING)

    def at(self, frequency: Megahertz, distance_m: float) -> 'SignalQuality':
        """
        Quality of this transmission received at a distance.

        Within one wavelength the attenuation factor is wavelength squared,
        beyond it (wavelength / distance) squared.

        Args:
            frequency: Frequency in MHz
            distance_m: Distance from the transmitter in metres

        Returns:
            Attenuated quality (zero strength if this quality is black)
        """
        if self.is_black():
            return SignalQuality()

        wave_length = wavelength(frequency)
        if distance_m <= wave_length:
            attenuation = wave_length ** 2
        else:
            attenuation = (wave_length / distance_m) ** 2

        return SignalQuality(attenuation * self.strength * STRENGTH_SCALING)

    def at_by_zone(self, frequency: Megahertz, distance_m: float) -> 'SignalQuality':
        """
        Stepped quality at a distance.

        Up to 10% of the coverage radius the tier is unchanged, up to 20% it
        drops one tier, up to the full radius two tiers; beyond it is black.
        """
        if self.is_black():
            return BLACK_QUALITY

        radius = self.area_radius_on(frequency)
        if distance_m <= radius * SAME_TIER_ZONE:
            return self
        if distance_m <= radius * LOWER_TIER_ZONE:
            return self.lower_tier()
        if distance_m <= radius:
            return self.lower_tier().lower_tier()
        return BLACK_QUALITY

    def lower_tier(self) -> 'SignalQuality':
        """Named quality one tier below this one (black stays black)."""
        return NAMED_QUALITIES[max(self.tier - 1, SignalTier.BLACK)]

    def to_dict(self) -> dict:
        return {'strength': self.strength}

    @classmethod
    def from_dict(cls, data: dict) -> 'SignalQuality':
        return cls(float(data['strength']))


BLACK_QUALITY = SignalQuality(MAX_BLACK_STRENGTH)
RED_QUALITY = SignalQuality(MAX_RED_STRENGTH)
YELLOW_QUALITY = SignalQuality(MAX_YELLOW_STRENGTH)
GREEN_QUALITY = SignalQuality(GREEN_STRENGTH_VALUE)

NAMED_QUALITIES = {
    SignalTier.BLACK: BLACK_QUALITY,
    SignalTier.RED: RED_QUALITY,
    SignalTier.YELLOW: YELLOW_QUALITY,
    SignalTier.GREEN: GREEN_QUALITY,
}

