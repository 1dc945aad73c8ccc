"""
device.py - Simulated device and its per-tick state machine

A Device owns its systems (power, movement, TRX), its task, its infection
state and its signal-loss policy. update() advances it one tick:

1. Passive power cost (NoPowerLeft -> selfdestruct, raised)
2. Malware payloads whose execution time is now
3. Buffered signals: GPS fix, malware, task assignment
4. Task processing if the control channel is up, else the signal-loss policy
5. Receive buffer cleared
6. Real position advanced (movement power cost)
7. Local clock advanced by one tick

Selfdestruction replaces power, movement and TRX systems with their empty
defaults. The device then reports is_shut_down() and the network model drops it.
"""

import hashlib
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from swarmsim.device.movement import MovementSystem
from swarmsim.device.power import (
    PowerSystem,
    NoPowerLeft,
    PASSIVE_POWER_CONSUMPTION,
    PROCESSING_POWER_CONSUMPTION,
    MOVEMENT_POWER_CONSUMPTION,
)
from swarmsim.device.trx import (
    TRXSystem,
    RXOutOfRange,
    WrongSignalDestination,
    WrongSignalSource,
)
from swarmsim.ids import BROADCAST_ID, DeviceIdGenerator, default_id_generator
from swarmsim.malware import Malware, MalwareType, InfectionState, InfectionStatus
from swarmsim.physics.geometry import Point3D, equation_of_motion
from swarmsim.physics.propagation import Frequency, TICK_DURATION_MS, millis_to_secs
from swarmsim.signal.quality import SignalQuality
from swarmsim.signal.signal import Payload, Signal
from swarmsim.task import Task, TaskType


logger = logging.getLogger(__name__)

DESTINATION_RADIUS = 5.0  # metres


def device_seed(device_id: int, seed: int) -> int:
    """Per-device RNG seed derived from the device id and the run seed."""
    hash_input = f"{device_id}_{seed}".encode('utf-8')
    hash_digest = hashlib.sha256(hash_input).digest()
    return int.from_bytes(hash_digest[:8], 'big')


class SignalLossKind(Enum):
    ASCEND = 'ascend'
    HOVER = 'hover'
    IGNORE = 'ignore'
    RETURN_TO_HOME = 'return_to_home'
    SHUTDOWN = 'shutdown'


@dataclass(frozen=True)
class SignalLossResponse:
    """
    What a device does while it has no control signal.

    Attributes:
        kind: Policy
        home: Home point, only for RETURN_TO_HOME
    """
    kind: SignalLossKind = SignalLossKind.IGNORE
    home: Optional[Point3D] = None

    def __post_init__(self):
        if (self.kind == SignalLossKind.RETURN_TO_HOME) != (self.home is not None):
            raise ValueError("A home point is required for return_to_home and only for it")

    @classmethod
    def ascend(cls) -> 'SignalLossResponse':
        return cls(SignalLossKind.ASCEND)

    @classmethod
    def hover(cls) -> 'SignalLossResponse':
        return cls(SignalLossKind.HOVER)

    @classmethod
    def ignore(cls) -> 'SignalLossResponse':
        return cls(SignalLossKind.IGNORE)

    @classmethod
    def return_to_home(cls, home: Point3D) -> 'SignalLossResponse':
        return cls(SignalLossKind.RETURN_TO_HOME, home)

    @classmethod
    def shutdown(cls) -> 'SignalLossResponse':
        return cls(SignalLossKind.SHUTDOWN)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'home': self.home.to_list() if self.home is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignalLossResponse':
        home = data.get('home')
        return cls(SignalLossKind(data['kind']), Point3D.from_list(home) if home else None)


class Device:
    """
    Simulated device (drone, command center, GPS source or attacker).

    Use DeviceBuilder to create devices with fresh ids; the constructor takes
    an explicit id and is used when restoring snapshots.
    """

    def __init__(
        self,
        device_id: int,
        real_position: Optional[Point3D] = None,
        task: Optional[Task] = None,
        power_system: Optional[PowerSystem] = None,
        movement_system: Optional[MovementSystem] = None,
        trx_system: Optional[TRXSystem] = None,
        infection_map: Optional[Dict[Malware, InfectionState]] = None,
        signal_loss_response: Optional[SignalLossResponse] = None,
        current_time: int = 0,
    ):
        if device_id == BROADCAST_ID:
            raise ValueError(f"Device id {BROADCAST_ID} is reserved for broadcast")

        self._id = device_id
        self.current_time = current_time
        self.real_position = real_position or Point3D()
        self.task = task or Task.undefined()
        self.power_system = power_system or PowerSystem()
        self.movement_system = movement_system or MovementSystem()
        self.trx_system = trx_system or TRXSystem()
        self.infection_map: Dict[Malware, InfectionState] = dict(infection_map or {})
        self.signal_loss_response = signal_loss_response or SignalLossResponse.ignore()

    @property
    def id(self) -> int:
        return self._id

    @property
    def position(self) -> Point3D:
        """Real position (known to the simulation, not to the device)."""
        return self.real_position

    @property
    def gps_position(self) -> Point3D:
        """Position the device believes it is at."""
        return self.movement_system.position

    def distance_to(self, other: Union['Device', Point3D]) -> float:
        point = other.position if isinstance(other, Device) else other
        return self.real_position.distance_to(point)

    def at_destination(self, destination: Point3D) -> bool:
        return self.distance_to(destination) <= DESTINATION_RADIUS

    # --- TRX ---

    def tx_frequencies(self) -> List[int]:
        return sorted(self.trx_system.tx_quality_map())

    def tx_signal_quality_on(self, frequency: int) -> Optional[SignalQuality]:
        return self.trx_system.tx_module.signal_quality_on(frequency)

    def area_radius_on(self, frequency: int) -> float:
        return self.trx_system.area_radius_on(frequency)

    def transmits_at(self, distance_m: float, frequency: int) -> bool:
        return self.trx_system.transmits_at(distance_m, frequency)

    def tx_signal_quality_at(
        self,
        receiver: Union['Device', Point3D],
        frequency: int,
    ) -> Optional[SignalQuality]:
        return self.trx_system.tx_signal_quality_at(self.distance_to(receiver), frequency)

    def create_signal_for(self, receiver: 'Device', data: Payload, frequency: int) -> Signal:
        """
        Create a signal addressed to receiver.

        Args:
            receiver: Destination device
            data: Payload, None for noise
            frequency: Frequency in MHz

        Returns:
            Signal carrying the quality it will have at the receiver

        Raises:
            RXOutOfRange: If the receiver is beyond reach on this frequency
        """
        quality = self.tx_signal_quality_at(receiver, frequency)
        if quality is None or quality.is_black():
            raise RXOutOfRange(f"Device {receiver.id} is out of range of device {self._id}")

        logger.debug(
            "Current time: %d, Id: %d, Created signal for %d",
            self.current_time, self._id, receiver.id,
        )
        return Signal(self._id, receiver.id, data, frequency, quality)

    def receives_signal_on(self, frequency: int) -> bool:
        return self.trx_system.receives_signal_on(frequency)

    def receive_signal(self, signal: Signal, time: int):
        """
        Accept a signal into the receive buffer.

        Raises:
            WrongSignalDestination: Signal addressed to another device
            WrongSignalSource: Signal sent by this device
            RXModuleError: RX module rejected the signal
        """
        if signal.destination_id not in (BROADCAST_ID, self._id):
            raise WrongSignalDestination(
                f"Signal for {signal.destination_id} delivered to {self._id}"
            )
        if signal.source_id == self._id:
            raise WrongSignalSource(f"Device {self._id} received its own signal")

        self.trx_system.receive_signal(signal, time)

        logger.debug(
            "Current time: %d, Id: %d, Received signal from %d",
            self.current_time, self._id, signal.source_id,
        )

    # --- Infection ---

    def infection_state(self, malware: Malware) -> InfectionState:
        return self.infection_map.get(malware, InfectionState.vulnerable())

    def is_infected(self) -> bool:
        return any(state.is_infected() for state in self.infection_map.values())

    def is_infected_with(self, malware: Malware) -> bool:
        return self.infection_state(malware).is_infected()

    def infections(self) -> List[Malware]:
        """Malware this device is infected with, in infection order."""
        return [malware for malware, state in self.infection_map.items() if state.is_infected()]

    # --- Lifecycle ---

    def is_shut_down(self) -> bool:
        return self.power_system.power == 0

    def selfdestruct(self):
        """Disable the device by resetting power, movement and TRX."""
        logger.debug("Current time: %d, Id: %d, Selfdestruction", self.current_time, self._id)

        self.power_system = PowerSystem()
        self.movement_system = MovementSystem()
        self.trx_system = TRXSystem()

    def update(self):
        """
        Advance the device by one tick.

        Raises:
            NoPowerLeft: The device ran out of power and selfdestructed
        """
        self._log_control_signal_quality()

        self._consume_power(PASSIVE_POWER_CONSUMPTION)
        self._run_malware_payloads()
        self._process_received_signals()

        if self.receives_signal_on(Frequency.CONTROL):
            self._process_task()
        else:
            self._handle_signal_loss()

        self.trx_system.clear_received_signals()
        self._update_real_position()

        self.current_time += TICK_DURATION_MS

    def _consume_power(self, amount: int):
        try:
            self.power_system.consume_power(amount)
        except NoPowerLeft:
            self.selfdestruct()
            raise

    def _run_malware_payloads(self):
        due = [
            malware for malware in self.infections()
            if self.current_time == self.infection_map[malware].infection_time + malware.infection_delay
        ]

        for malware in due:
            if malware.malware_type == MalwareType.DOS:
                self._consume_power(malware.power_loss)

    def _process_received_signals(self):
        for _, signal in self.trx_system.received_signals():
            if signal.is_noise():
                continue

            self._consume_power(PROCESSING_POWER_CONSUMPTION)

            if signal.gps is not None:
                self.movement_system.position = signal.gps
            elif signal.malware is not None:
                self._process_malware(signal.malware)
            elif signal.task is not None:
                self.task = signal.task

    def _process_malware(self, malware: Malware):
        if self.infection_state(malware).status != InfectionStatus.VULNERABLE:
            return

        self.infection_map[malware] = InfectionState.infected(self.current_time)
        logger.debug(
            "Current time: %d, Id: %d, Infected with %s",
            self.current_time, self._id, malware.malware_type.value,
        )

    def _process_task(self):
        if not self.task.has_destination():
            return

        if self.receives_signal_on(Frequency.GPS):
            self.movement_system.set_direction(self.task.destination)
            self._try_complete_task()
        else:
            self.movement_system.set_horizontal_velocity()

    def _try_complete_task(self):
        # Arrival can only be checked with a GPS fix
        if not self.at_destination(self.task.destination):
            return

        if self.task.task_type == TaskType.ATTACK:
            logger.debug("Current time: %d, Id: %d, Reached destination", self.current_time, self._id)
            self.selfdestruct()
        elif self.task.task_type == TaskType.REPOSITION:
            logger.debug("Current time: %d, Id: %d, Reached destination", self.current_time, self._id)
            self.task = Task.undefined()

    def _handle_signal_loss(self):
        kind = self.signal_loss_response.kind

        if kind == SignalLossKind.ASCEND:
            point_above = self.real_position + Point3D(0.0, 0.0, 1.0)
            self.movement_system.set_direction(point_above)
            self.task = Task.reconnect(point_above)
        elif kind == SignalLossKind.HOVER:
            self.task = Task.reconnect(self.real_position)
            self._process_task()
        elif kind == SignalLossKind.IGNORE:
            self._process_task()
        elif kind == SignalLossKind.RETURN_TO_HOME:
            self.task = Task.reconnect(self.signal_loss_response.home)
            self._process_task()
        elif kind == SignalLossKind.SHUTDOWN:
            self.selfdestruct()

    def _update_real_position(self):
        if self.movement_system.is_disabled():
            return

        self._consume_power(MOVEMENT_POWER_CONSUMPTION)
        self.real_position = equation_of_motion(
            self.real_position,
            self.movement_system.velocity,
            millis_to_secs(TICK_DURATION_MS),
        )

    def _log_control_signal_quality(self):
        if not logger.isEnabledFor(logging.DEBUG):
            return
        received = self.trx_system.received_signal_on(Frequency.CONTROL)
        quality = received[1].quality.strength if received else 0.0
        logger.debug(
            "Current time: %d, Id: %d, Control signal quality: %s",
            self.current_time, self._id, quality,
        )

    # --- Snapshot ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self._id,
            'current_time': self.current_time,
            'real_position': self.real_position.to_list(),
            'task': self.task.to_dict(),
            'power_system': self.power_system.to_dict(),
            'movement_system': self.movement_system.to_dict(),
            'trx_system': self.trx_system.to_dict(),
            'infection_map': [
                [malware.to_dict(), state.status.value, state.infection_time]
                for malware, state in self.infection_map.items()
            ],
            'signal_loss_response': self.signal_loss_response.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Device':
        infection_map = {
            Malware.from_dict(malware): InfectionState(InfectionStatus(status), infection_time)
            for malware, status, infection_time in data.get('infection_map', [])
        }
        return cls(
            device_id=int(data['id']),
            real_position=Point3D.from_list(data['real_position']),
            task=Task.from_dict(data['task']),
            power_system=PowerSystem.from_dict(data['power_system']),
            movement_system=MovementSystem.from_dict(data['movement_system']),
            trx_system=TRXSystem.from_dict(data['trx_system']),
            infection_map=infection_map,
            signal_loss_response=SignalLossResponse.from_dict(data['signal_loss_response']),
            current_time=int(data['current_time']),
        )

    def __repr__(self) -> str:
        return f"Device(id={self._id}, position={self.real_position}, power={self.power_system.power})"


class DeviceBuilder:
    """
    Fluent device construction with defaults.

    Every build() draws a fresh id from the id generator and seeds the RX
    capture RNG from (id, seed).
    """

    def __init__(self, id_generator: Optional[DeviceIdGenerator] = None):
        self.id_generator = id_generator or default_id_generator
        self._real_position = Point3D()
        self._task = Task.undefined()
        self._power_system: Optional[PowerSystem] = None
        self._movement_system: Optional[MovementSystem] = None
        self._trx_system: Optional[TRXSystem] = None
        self._infection_map: Dict[Malware, InfectionState] = {}
        self._signal_loss_response = SignalLossResponse.ignore()
        self._seed = 0

    def set_real_position(self, position: Point3D) -> 'DeviceBuilder':
        self._real_position = position
        return self

    def set_task(self, task: Task) -> 'DeviceBuilder':
        self._task = task
        return self

    def set_power_system(self, power_system: PowerSystem) -> 'DeviceBuilder':
        self._power_system = power_system
        return self

    def set_movement_system(self, movement_system: MovementSystem) -> 'DeviceBuilder':
        self._movement_system = movement_system
        return self

    def set_trx_system(self, trx_system: TRXSystem) -> 'DeviceBuilder':
        self._trx_system = trx_system
        return self

    def set_patches(self, malware_list: List[Malware]) -> 'DeviceBuilder':
        for malware in malware_list:
            self._infection_map[malware] = InfectionState.patched()
        return self

    def set_infections(self, infections: Dict[Malware, int]) -> 'DeviceBuilder':
        """Pre-infect the device: malware -> infection time in ms."""
        for malware, infection_time in infections.items():
            self._infection_map[malware] = InfectionState.infected(infection_time)
        return self

    def set_signal_loss_response(self, response: SignalLossResponse) -> 'DeviceBuilder':
        self._signal_loss_response = response
        return self

    def set_seed(self, seed: int) -> 'DeviceBuilder':
        self._seed = seed
        return self

    def build(self) -> Device:
        device_id = self.id_generator.next_id()

        # Systems are mutable; copy them so one builder can build many devices
        power = self._power_system or PowerSystem()
        movement = self._movement_system or MovementSystem()
        trx = TRXSystem.from_dict(self._trx_system.to_dict()) if self._trx_system else TRXSystem()
        trx.rx_module.reseed(device_seed(device_id, self._seed))

        return Device(
            device_id=device_id,
            real_position=self._real_position,
            task=self._task,
            power_system=PowerSystem(power.max_power, power.power),
            movement_system=MovementSystem(movement.max_speed, movement.position, movement.velocity),
            trx_system=trx,
            infection_map=self._infection_map,
            signal_loss_response=self._signal_loss_response,
        )
