"""
swarmsim.device - Devices and their systems

A device combines a power budget, a movement system, a transceiver and an
infection map; Device.update() is the per-tick state machine.
"""

from swarmsim.device.power import (
    PowerSystem,
    PowerSystemError,
    NoPowerLeft,
    PowerIsGreaterThanMax,
)
from swarmsim.device.movement import (
    MovementSystem,
    MovementSystemError,
    MaxSpeedTooHigh,
    MAX_DRONE_SPEED,
)
from swarmsim.device.trx import (
    TRXSystem,
    TXModule,
    TXModuleType,
    RXModule,
    TRXSystemError,
    RXOutOfRange,
    WrongSignalDestination,
    WrongSignalSource,
    RXModuleError,
    RXError,
    NotListeningOnFrequency,
    NoiseReceived,
    SignalNotReceived,
    SignalTooWeak,
    IDEAL_CAPTURE_PROBABILITIES,
)
from swarmsim.device.device import (
    Device,
    DeviceBuilder,
    SignalLossResponse,
    SignalLossKind,
    DESTINATION_RADIUS,
)

__all__ = [
    'PowerSystem',
    'PowerSystemError',
    'NoPowerLeft',
    'PowerIsGreaterThanMax',
    'MovementSystem',
    'MovementSystemError',
    'MaxSpeedTooHigh',
    'MAX_DRONE_SPEED',
    'TRXSystem',
    'TXModule',
    'TXModuleType',
    'RXModule',
    'TRXSystemError',
    'RXOutOfRange',
    'WrongSignalDestination',
    'WrongSignalSource',
    'RXModuleError',
    'RXError',
    'NotListeningOnFrequency',
    'NoiseReceived',
    'SignalNotReceived',
    'SignalTooWeak',
    'IDEAL_CAPTURE_PROBABILITIES',
    'Device',
    'DeviceBuilder',
    'SignalLossResponse',
    'SignalLossKind',
    'DESTINATION_RADIUS',
]
