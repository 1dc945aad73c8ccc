"""
trx.py - Transceiver (TRX) model

TX side: nominal transmit quality per frequency, attenuated over distance by
either the continuous or the zoned quality model.

RX side: maximum decodable quality per frequency and a buffer of at most one
received signal per frequency. Reception rules, in order:
1. Not listening on the frequency -> NotListeningOnFrequency
2. A buffered signal on the frequency is at least as strong -> SignalTooWeak
3. Probabilistic capture by quality tier fails -> SignalNotReceived
4. Quality above the receiver maximum -> stored as noise, NoiseReceived
5. Otherwise the signal replaces the buffered one

DESIGN PHILOSOPHY:
- Deterministic: capture draws come from a per-module seeded random.Random
  whose state is part of the snapshot
- A failed reception (1-3) leaves the buffer unchanged
"""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from swarmsim.signal.quality import SignalQuality, SignalTier
from swarmsim.signal.signal import Signal, frequency_from_value


FreqToQualityMap = Dict[int, SignalQuality]
ReceivedSignal = Tuple[int, Signal]

DEFAULT_CAPTURE_PROBABILITIES: Dict[SignalTier, float] = {
    SignalTier.GREEN: 0.95,
    SignalTier.YELLOW: 0.75,
    SignalTier.RED: 0.5,
    SignalTier.BLACK: 0.1,
}

# Receivers that never miss a signal (test rigs, idealized setups)
IDEAL_CAPTURE_PROBABILITIES: Dict[SignalTier, float] = {tier: 1.0 for tier in SignalTier}


class RXError(Exception):
    """Base class for RX module failures."""
    pass


class NotListeningOnFrequency(RXError):
    """Raised when the RX module has no receiver for the signal's frequency."""
    pass


class NoiseReceived(RXError):
    """Raised when a signal is too strong to decode and is stored as noise."""
    pass


class SignalNotReceived(RXError):
    """Raised when the probabilistic capture check rejects a signal."""
    pass


class SignalTooWeak(RXError):
    """Raised when an equal or stronger signal is already buffered on the frequency."""
    pass


class TRXSystemError(Exception):
    """Base class for TRX system failures."""
    pass


class RXOutOfRange(TRXSystemError):
    """Raised when a receiver cannot be reached on a frequency."""
    pass


class WrongSignalDestination(TRXSystemError):
    """Raised when a signal is addressed to another device."""
    pass


class WrongSignalSource(TRXSystemError):
    """Raised when a device is handed its own transmission."""
    pass


class RXModuleError(TRXSystemError):
    """Raised when the RX module rejects a signal; wraps the RXError."""

    def __init__(self, rx_error: RXError):
        super().__init__(f"RX module failed with error `{type(rx_error).__name__}`")
        self.rx_error = rx_error


def _quality_map_to_list(quality_map: FreqToQualityMap) -> List[List[Any]]:
    return [[int(frequency), quality.strength] for frequency, quality in sorted(quality_map.items())]


def _quality_map_from_list(items: List[List[Any]]) -> FreqToQualityMap:
    return {
        frequency_from_value(int(frequency)): SignalQuality(float(strength))
        for frequency, strength in items
    }


class TXModuleType(Enum):
    """Attenuation model used by a transmitter."""
    STRENGTH = 'strength'  # continuous
    LEVEL = 'level'        # zoned


@dataclass
class TXModule:
    """
    Transmitter.

    Attributes:
        quality_map: Nominal transmit quality per frequency
        module_type: Attenuation model
    """
    quality_map: FreqToQualityMap = field(default_factory=dict)
    module_type: TXModuleType = TXModuleType.STRENGTH

    def signal_quality_on(self, frequency: int) -> Optional[SignalQuality]:
        return self.quality_map.get(frequency)

    def signal_quality_at(self, distance_m: float, frequency: int) -> Optional[SignalQuality]:
        """
        Quality delivered at a distance, or None if out of range.

        Returns None when there is no transmitter on the frequency or the
        attenuated quality is black.
        """
        tx_quality = self.quality_map.get(frequency)
        if tx_quality is None:
            return None

        if self.module_type == TXModuleType.LEVEL:
            quality = tx_quality.at_by_zone(frequency, distance_m)
        else:
            quality = tx_quality.at(frequency, distance_m)

        if quality.is_black():
            return None
        return quality

    def area_radius_on(self, frequency: int) -> float:
        tx_quality = self.quality_map.get(frequency)
        if tx_quality is None:
            return 0.0
        return tx_quality.area_radius_on(frequency)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.module_type.value,
            'quality_map': _quality_map_to_list(self.quality_map),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TXModule':
        return cls(
            quality_map=_quality_map_from_list(data.get('quality_map', [])),
            module_type=TXModuleType(data.get('type', TXModuleType.STRENGTH.value)),
        )


class RXModule:
    """
    Receiver with a one-signal-per-frequency buffer.

    Args:
        max_quality_map: Strongest decodable quality per frequency
        capture_probabilities: Acceptance probability per tier
            (defaults to DEFAULT_CAPTURE_PROBABILITIES)
        rng: Random source for capture checks
    """

    def __init__(
        self,
        max_quality_map: Optional[FreqToQualityMap] = None,
        capture_probabilities: Optional[Dict[SignalTier, float]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.max_quality_map: FreqToQualityMap = dict(max_quality_map or {})
        self.capture_probabilities = dict(capture_probabilities or DEFAULT_CAPTURE_PROBABILITIES)
        self.rng = rng or random.Random(0)
        self.received_signals: List[ReceivedSignal] = []

        for tier, probability in self.capture_probabilities.items():
            if not (0.0 <= probability <= 1.0):
                raise ValueError(f"capture probability for {tier.name} must be in [0.0, 1.0], got {probability}")

    def reseed(self, seed: int):
        self.rng = random.Random(seed)

    def received_signal_on(self, frequency: int) -> Optional[ReceivedSignal]:
        for received in self.received_signals:
            if received[1].frequency == frequency:
                return received
        return None

    def receives_signal_on(self, frequency: int) -> bool:
        """True if a decodable (non-noise) signal is buffered on the frequency."""
        received = self.received_signal_on(frequency)
        return received is not None and not received[1].is_noise()

    def receive_signal(self, signal: Signal, time: int):
        """
        Try to buffer an incoming signal.

        Args:
            signal: Incoming signal
            time: Reception time in milliseconds

        Raises:
            NotListeningOnFrequency: No receiver on the frequency
            SignalTooWeak: An equal or stronger signal is already buffered
            SignalNotReceived: Capture check failed
            NoiseReceived: Signal stored without payload
        """
        max_quality = self.max_quality_map.get(signal.frequency)
        if max_quality is None or max_quality.is_black():
            raise NotListeningOnFrequency(f"Not listening on {int(signal.frequency)} MHz")

        current = self.received_signal_on(signal.frequency)
        if current is not None and current[1].quality >= signal.quality:
            raise SignalTooWeak(f"Stronger signal already received on {int(signal.frequency)} MHz")

        probability = self.capture_probabilities.get(signal.quality.tier, 0.0)
        if self.rng.random() >= probability:
            raise SignalNotReceived(f"Signal from {signal.source_id} was lost")

        if current is not None:
            self.received_signals.remove(current)

        if signal.quality > max_quality:
            self.received_signals.append((time, signal.to_noise()))
            raise NoiseReceived(f"Signal from {signal.source_id} is too strong to decode")

        self.received_signals.append((time, signal))

    def clear_signals(self):
        self.received_signals = []

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RXModule):
            return NotImplemented
        return (
            self.max_quality_map == other.max_quality_map
            and self.capture_probabilities == other.capture_probabilities
            and self.received_signals == other.received_signals
        )

    def to_dict(self) -> Dict[str, Any]:
        version, internal_state, gauss_next = self.rng.getstate()
        return {
            'max_quality_map': _quality_map_to_list(self.max_quality_map),
            'capture_probabilities': {tier.name: p for tier, p in self.capture_probabilities.items()},
            'received_signals': [[time, signal.to_dict()] for time, signal in self.received_signals],
            'rng_state': [version, list(internal_state), gauss_next],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RXModule':
        module = cls(
            max_quality_map=_quality_map_from_list(data.get('max_quality_map', [])),
            capture_probabilities={
                SignalTier[name]: float(p)
                for name, p in data.get('capture_probabilities', {}).items()
            } or None,
        )
        module.received_signals = [
            (int(time), Signal.from_dict(signal)) for time, signal in data.get('received_signals', [])
        ]
        if data.get('rng_state'):
            version, internal_state, gauss_next = data['rng_state']
            module.rng.setstate((version, tuple(internal_state), gauss_next))
        return module


class TRXSystem:
    """TX and RX modules of one device."""

    def __init__(self, tx_module: Optional[TXModule] = None, rx_module: Optional[RXModule] = None):
        self.tx_module = tx_module or TXModule()
        self.rx_module = rx_module or RXModule()

    def tx_quality_map(self) -> FreqToQualityMap:
        return self.tx_module.quality_map

    def tx_signal_quality_at(self, distance_m: float, frequency: int) -> Optional[SignalQuality]:
        return self.tx_module.signal_quality_at(distance_m, frequency)

    def transmits_at(self, distance_m: float, frequency: int) -> bool:
        return self.tx_module.signal_quality_at(distance_m, frequency) is not None

    def area_radius_on(self, frequency: int) -> float:
        return self.tx_module.area_radius_on(frequency)

    def receives_signal_on(self, frequency: int) -> bool:
        return self.rx_module.receives_signal_on(frequency)

    def received_signals(self) -> List[ReceivedSignal]:
        return list(self.rx_module.received_signals)

    def received_signal_on(self, frequency: int) -> Optional[ReceivedSignal]:
        return self.rx_module.received_signal_on(frequency)

    def receive_signal(self, signal: Signal, time: int):
        """
        Pass a signal to the RX module.

        Raises:
            RXModuleError: Wrapping the RXError raised by the module
        """
        try:
            self.rx_module.receive_signal(signal, time)
        except RXError as e:
            raise RXModuleError(e) from e

    def clear_received_signals(self):
        self.rx_module.clear_signals()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TRXSystem):
            return NotImplemented
        return self.tx_module == other.tx_module and self.rx_module == other.rx_module

    def to_dict(self) -> Dict[str, Any]:
        return {'tx': self.tx_module.to_dict(), 'rx': self.rx_module.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TRXSystem':
        return cls(TXModule.from_dict(data['tx']), RXModule.from_dict(data['rx']))
