"""
gps.py - GPS source

Wraps a device that transmits on the GPS frequency. Every tick each device
it can reach gets a fix carrying that device's real position.
"""

from typing import Any, Dict, Mapping, Optional

from swarmsim.device.device import Device, DeviceBuilder
from swarmsim.device.trx import RXOutOfRange
from swarmsim.ids import DeviceIdGenerator
from swarmsim.physics.propagation import Frequency, delay_to
from swarmsim.signal.queue import SignalQueue


class GPS:
    """
    GPS source device.

    Args:
        device: Transmitting device; a device without a GPS transmitter
            sends nothing
    """

    def __init__(self, device: Device):
        self.device = device

    @classmethod
    def idle(cls, id_generator: Optional[DeviceIdGenerator] = None) -> 'GPS':
        """GPS source that transmits nothing, with its id taken from id_generator."""
        return cls(DeviceBuilder(id_generator).build())

    def add_gps_signals_to_queue(
        self,
        signal_queue: SignalQueue,
        devices: Mapping[int, Device],
        current_time: int,
        delay_multiplier: float,
    ):
        for device_id in sorted(devices):
            device = devices[device_id]
            try:
                gps_signal = self.device.create_signal_for(device, device.position, Frequency.GPS)
            except RXOutOfRange:
                continue

            delay = delay_to(self.device.distance_to(device), delay_multiplier)
            signal_queue.add_entry(current_time, gps_signal, {device_id: delay})

    def to_dict(self) -> Dict[str, Any]:
        return {'device': self.device.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GPS':
        return cls(Device.from_dict(data['device']))
