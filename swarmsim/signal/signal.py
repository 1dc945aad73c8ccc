"""
signal.py - Radio signals and their payloads

A Signal is an immutable envelope (source, destination, frequency, quality)
plus an optional payload:
- Point3D: a GPS fix
- Malware: a malware payload
- Task: a task assignment
- None: noise (jamming, or a signal too strong for the receiver to decode)
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Union

from swarmsim.malware import Malware
from swarmsim.physics.geometry import Point3D
from swarmsim.physics.propagation import Frequency
from swarmsim.signal.quality import SignalQuality
from swarmsim.task import Task


Payload = Optional[Union[Point3D, Malware, Task]]


def payload_to_dict(data: Payload) -> Optional[Dict[str, Any]]:
    if data is None:
        return None
    if isinstance(data, Point3D):
        return {'kind': 'gps', 'position': data.to_list()}
    if isinstance(data, Malware):
        return {'kind': 'malware', 'malware': data.to_dict()}
    if isinstance(data, Task):
        return {'kind': 'set_task', 'task': data.to_dict()}
    raise TypeError(f"Unsupported signal payload: {type(data).__name__}")


def payload_from_dict(data: Optional[Dict[str, Any]]) -> Payload:
    if data is None:
        return None
    kind = data.get('kind')
    if kind == 'gps':
        return Point3D.from_list(data['position'])
    if kind == 'malware':
        return Malware.from_dict(data['malware'])
    if kind == 'set_task':
        return Task.from_dict(data['task'])
    raise ValueError(f"Unknown signal payload kind: {kind!r}")


def frequency_from_value(value: int) -> Union[Frequency, int]:
    """Map a stored MHz value back to a Frequency member when one matches."""
    try:
        return Frequency(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class Signal:
    """
    Radio signal.

    Attributes:
        source_id: Sending device id
        destination_id: Receiving device id, or BROADCAST_ID
        data: Payload, None for noise
        frequency: Frequency in MHz
        quality: Quality at the receiver when the signal was created
    """
    source_id: int
    destination_id: int
    data: Payload
    frequency: int
    quality: SignalQuality

    def to_noise(self) -> 'Signal':
        """Same envelope, payload dropped."""
        return replace(self, data=None)

    def is_noise(self) -> bool:
        return self.data is None

    @property
    def gps(self) -> Optional[Point3D]:
        return self.data if isinstance(self.data, Point3D) else None

    @property
    def malware(self) -> Optional[Malware]:
        return self.data if isinstance(self.data, Malware) else None

    @property
    def task(self) -> Optional[Task]:
        return self.data if isinstance(self.data, Task) else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_id': self.source_id,
            'destination_id': self.destination_id,
            'data': payload_to_dict(self.data),
            'frequency': int(self.frequency),
            'quality': self.quality.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Signal':
        return cls(
            source_id=int(data['source_id']),
            destination_id=int(data['destination_id']),
            data=payload_from_dict(data.get('data')),
            frequency=frequency_from_value(int(data['frequency'])),
            quality=SignalQuality.from_dict(data['quality']),
        )
