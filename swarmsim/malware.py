"""
malware.py - Malware descriptions and per-device infection state

Malware values are immutable and hashable so they can key a device's
infection map. Infection state moves one way only: Vulnerable -> Infected.
Patched devices never change state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from swarmsim.physics.propagation import TICK_DURATION_MS


class MalwareType(Enum):
    DOS = 'dos'
    INDICATOR = 'indicator'


@dataclass(frozen=True)
class Malware:
    """
    Malware description.

    Attributes:
        malware_type: DOS drains power when the payload runs, INDICATOR only marks the device
        infection_delay: Milliseconds (whole ticks) from infection to payload execution
        spread_delay: Milliseconds from an infected device emitting the malware to it
            entering the queue, or None if it cannot spread device-to-device
        power_loss: Power drained by a DOS payload
    """
    malware_type: MalwareType
    infection_delay: int = 0
    spread_delay: Optional[int] = None
    power_loss: int = 0

    def __post_init__(self):
        if self.infection_delay < 0:
            raise ValueError(f"infection_delay must be non-negative, got {self.infection_delay}")
        if self.spread_delay is not None and self.spread_delay < 0:
            raise ValueError(f"spread_delay must be non-negative, got {self.spread_delay}")
        for name, delay in (('infection_delay', self.infection_delay), ('spread_delay', self.spread_delay)):
            if delay is not None and delay % TICK_DURATION_MS != 0:
                raise ValueError(f"{name} must be a multiple of {TICK_DURATION_MS} ms, got {delay}")
        if self.power_loss < 0:
            raise ValueError(f"power_loss must be non-negative, got {self.power_loss}")
        if self.malware_type == MalwareType.INDICATOR and self.power_loss:
            raise ValueError("Indicator malware cannot have power_loss")

    @classmethod
    def dos(cls, power_loss: int, infection_delay: int = 0,
            spread_delay: Optional[int] = None) -> 'Malware':
        return cls(MalwareType.DOS, infection_delay, spread_delay, power_loss)

    @classmethod
    def indicator(cls, infection_delay: int = 0,
                  spread_delay: Optional[int] = None) -> 'Malware':
        return cls(MalwareType.INDICATOR, infection_delay, spread_delay)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.malware_type.value,
            'infection_delay': self.infection_delay,
            'spread_delay': self.spread_delay,
            'power_loss': self.power_loss,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Malware':
        spread_delay = data.get('spread_delay')
        return cls(
            MalwareType(data['type']),
            int(data.get('infection_delay', 0)),
            int(spread_delay) if spread_delay is not None else None,
            int(data.get('power_loss', 0)),
        )


class InfectionStatus(Enum):
    VULNERABLE = 'vulnerable'
    INFECTED = 'infected'
    PATCHED = 'patched'


@dataclass(frozen=True)
class InfectionState:
    """Infection state of one device for one malware."""
    status: InfectionStatus = InfectionStatus.VULNERABLE
    infection_time: Optional[int] = None

    @classmethod
    def vulnerable(cls) -> 'InfectionState':
        return cls()

    @classmethod
    def infected(cls, infection_time: int) -> 'InfectionState':
        return cls(InfectionStatus.INFECTED, infection_time)

    @classmethod
    def patched(cls) -> 'InfectionState':
        return cls(InfectionStatus.PATCHED)

    def is_infected(self) -> bool:
        return self.status == InfectionStatus.INFECTED
