"""
attack.py - Attacker devices and opportunistic malware spread

An AttackerDevice is a device plus one attack type:
- electronic warfare: noise on every frequency it can transmit
- GPS spoofing: a forged GPS fix
- malware distribution: a malware payload on the control frequency

All attack signals are addressed to one target and enqueued at the current
time with the direct-distance delay.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from swarmsim.device.device import Device
from swarmsim.device.trx import RXOutOfRange
from swarmsim.malware import Malware
from swarmsim.physics.geometry import Point3D
from swarmsim.physics.propagation import Frequency, delay_to
from swarmsim.signal.queue import SignalQueue


logger = logging.getLogger(__name__)


class AttackError(Exception):
    """Base class for attack failures."""
    pass


class TargetOutOfRange(AttackError):
    """Raised when the attacker cannot reach the target on any frequency."""
    pass


class WrongAttackType(AttackError):
    """Raised when an attack handler is called for a different attack type."""
    pass


def add_malware_signals_to_queue(
    source_device: Device,
    destination_device: Device,
    malware_list: List[Malware],
    signal_queue: SignalQueue,
    current_time: int,
    delay_multiplier: float,
):
    """
    Schedule malware signals from an infected device to a neighbor.

    Nothing is scheduled if the source cannot reach the destination on the
    control frequency. Malware without a spread delay is skipped.

    Args:
        source_device: Infected device
        destination_device: Potential victim
        malware_list: Malware the source is infected with
        signal_queue: Queue to add to
        current_time: Current time in ms
        delay_multiplier: Delay stretch factor
    """
    quality = source_device.tx_signal_quality_at(destination_device, Frequency.CONTROL)
    if quality is None:
        return

    delay = delay_to(source_device.distance_to(destination_device), delay_multiplier)

    for malware in malware_list:
        if malware.spread_delay is None:
            continue

        malware_signal = source_device.create_signal_for(
            destination_device, malware, Frequency.CONTROL
        )
        signal_queue.add_entry(
            current_time + malware.spread_delay,
            malware_signal,
            {destination_device.id: delay},
        )


class AttackKind(Enum):
    ELECTRONIC_WARFARE = 'electronic_warfare'
    GPS_SPOOFING = 'gps_spoofing'
    MALWARE_DISTRIBUTION = 'malware_distribution'


@dataclass(frozen=True)
class AttackType:
    """
    Attack tag.

    Attributes:
        kind: Attack kind
        spoofed_position: Forged fix, only for GPS_SPOOFING
        malware: Distributed malware, only for MALWARE_DISTRIBUTION
    """
    kind: AttackKind
    spoofed_position: Optional[Point3D] = None
    malware: Optional[Malware] = None

    def __post_init__(self):
        if (self.kind == AttackKind.GPS_SPOOFING) != (self.spoofed_position is not None):
            raise ValueError("spoofed_position is required for GPS spoofing and only for it")
        if (self.kind == AttackKind.MALWARE_DISTRIBUTION) != (self.malware is not None):
            raise ValueError("malware is required for malware distribution and only for it")

    @classmethod
    def electronic_warfare(cls) -> 'AttackType':
        return cls(AttackKind.ELECTRONIC_WARFARE)

    @classmethod
    def gps_spoofing(cls, spoofed_position: Point3D) -> 'AttackType':
        return cls(AttackKind.GPS_SPOOFING, spoofed_position=spoofed_position)

    @classmethod
    def malware_distribution(cls, malware: Malware) -> 'AttackType':
        return cls(AttackKind.MALWARE_DISTRIBUTION, malware=malware)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'spoofed_position': self.spoofed_position.to_list() if self.spoofed_position else None,
            'malware': self.malware.to_dict() if self.malware else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AttackType':
        spoofed_position = data.get('spoofed_position')
        malware = data.get('malware')
        return cls(
            AttackKind(data['kind']),
            Point3D.from_list(spoofed_position) if spoofed_position else None,
            Malware.from_dict(malware) if malware else None,
        )


class AttackerDevice:
    """Device executing one kind of attack against every device it can reach."""

    def __init__(self, device: Device, attack_type: AttackType):
        self.device = device
        self.attack_type = attack_type

    def execute_attack(
        self,
        target_device: Device,
        signal_queue: SignalQueue,
        current_time: int,
        delay_multiplier: float,
    ):
        """
        Enqueue this attacker's signal(s) for a target.

        Raises:
            TargetOutOfRange: The target cannot be reached
        """
        handlers = {
            AttackKind.ELECTRONIC_WARFARE: self.execute_electronic_warfare,
            AttackKind.GPS_SPOOFING: self.spoof_gps,
            AttackKind.MALWARE_DISTRIBUTION: self.spread_malware,
        }
        handlers[self.attack_type.kind](target_device, signal_queue, current_time, delay_multiplier)

    def execute_electronic_warfare(
        self,
        target_device: Device,
        signal_queue: SignalQueue,
        current_time: int,
        delay_multiplier: float,
    ):
        """Jam the target with noise on every frequency that reaches it."""
        if self.attack_type.kind != AttackKind.ELECTRONIC_WARFARE:
            raise WrongAttackType(f"Attacker {self.device.id} does not jam")

        delay = delay_to(self.device.distance_to(target_device), delay_multiplier)
        jammed = False

        for frequency in self.device.tx_frequencies():
            try:
                jamming_signal = self.device.create_signal_for(target_device, None, frequency)
            except RXOutOfRange:
                continue

            signal_queue.add_entry(current_time, jamming_signal, {target_device.id: delay})
            jammed = True

        if not jammed:
            raise TargetOutOfRange(f"Device {target_device.id} is out of jamming range")

    def spoof_gps(
        self,
        target_device: Device,
        signal_queue: SignalQueue,
        current_time: int,
        delay_multiplier: float,
    ):
        """Send the target a forged GPS fix."""
        if self.attack_type.kind != AttackKind.GPS_SPOOFING:
            raise WrongAttackType(f"Attacker {self.device.id} does not spoof GPS")

        self._send(target_device, self.attack_type.spoofed_position, Frequency.GPS,
                   signal_queue, current_time, delay_multiplier)

    def spread_malware(
        self,
        target_device: Device,
        signal_queue: SignalQueue,
        current_time: int,
        delay_multiplier: float,
    ):
        """Send the target a malware payload on the control frequency."""
        if self.attack_type.kind != AttackKind.MALWARE_DISTRIBUTION:
            raise WrongAttackType(f"Attacker {self.device.id} does not distribute malware")

        self._send(target_device, self.attack_type.malware, Frequency.CONTROL,
                   signal_queue, current_time, delay_multiplier)

    def _send(self, target_device, data, frequency, signal_queue, current_time, delay_multiplier):
        try:
            signal = self.device.create_signal_for(target_device, data, frequency)
        except RXOutOfRange as e:
            raise TargetOutOfRange(f"Device {target_device.id} is out of attack range") from e

        delay = delay_to(self.device.distance_to(target_device), delay_multiplier)
        signal_queue.add_entry(current_time, signal, {target_device.id: delay})

    def to_dict(self) -> Dict[str, Any]:
        return {'device': self.device.to_dict(), 'attack_type': self.attack_type.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AttackerDevice':
        return cls(Device.from_dict(data['device']), AttackType.from_dict(data['attack_type']))
