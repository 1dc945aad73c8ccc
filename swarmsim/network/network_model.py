"""
network_model.py - Tick orchestrator

NetworkModel owns the whole simulation state and advances it one tick per
update() call:

  a. opportunistic malware spread between infected devices and reachable neighbors
  b. attacker devices and the GPS source advance their own state
  c. for each device (by id): attacks against it, due signals, device.update()
  d. shut-down devices are removed
  e. connection graph rebuilt
  f. expired queue entries pruned
  g. clock advanced
  h. next tick's scenario task signals and GPS fixes enqueued

DESIGN PHILOSOPHY:
- Deterministic: every iteration over devices is in id order
- Failures of one device or one signal never stop the tick; they are logged
  and counted
- Single-threaded, one tick at a time
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from swarmsim.device.device import Device
from swarmsim.device.power import PowerSystemError
from swarmsim.device.trx import RXModuleError, TRXSystemError
from swarmsim.ids import BROADCAST_ID, DeviceIdGenerator
from swarmsim.network.attack import AttackError, AttackerDevice, add_malware_signals_to_queue
from swarmsim.network.connections import ConnectionGraph, Topology
from swarmsim.network.gps import GPS
from swarmsim.network.metrics import SimulationMetrics
from swarmsim.physics.propagation import Frequency, TICK_DURATION_MS
from swarmsim.signal.queue import SignalQueue
from swarmsim.task import Scenario


logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT_VERSION = 1


def idle_gps_after(device_ids: List[int], id_generator: Optional[DeviceIdGenerator] = None) -> GPS:
    """
    GPS source that transmits nothing, numbered after every id in device_ids.

    Args:
        device_ids: Ids already in use
        id_generator: Generator to draw the id from (default: a fresh one)
    """
    generator = id_generator or DeviceIdGenerator()
    generator.skip_past(max(device_ids, default=BROADCAST_ID))
    return GPS.idle(generator)


class NetworkModel:
    """
    Simulation state and per-tick orchestration.

    Use NetworkModelBuilder to create a model ready to run; the constructor
    only stores state (it is also used to restore snapshots).
    """

    def __init__(
        self,
        command_device_id: int,
        devices: Mapping[int, Device],
        attacker_devices: Optional[List[AttackerDevice]] = None,
        gps: Optional[GPS] = None,
        scenario: Optional[Scenario] = None,
        connections: Optional[ConnectionGraph] = None,
        delay_multiplier: float = 0.0,
        signal_queue: Optional[SignalQueue] = None,
        current_time: int = 0,
    ):
        if delay_multiplier < 0:
            raise ValueError(f"delay_multiplier must be non-negative, got {delay_multiplier}")

        self.current_time = current_time
        self.command_device_id = command_device_id
        self.devices: Dict[int, Device] = dict(devices)
        self.attacker_devices: List[AttackerDevice] = list(attacker_devices or [])
        self.gps = gps or idle_gps_after(
            list(self.devices) + [attacker.device.id for attacker in self.attacker_devices]
        )
        self.scenario = scenario or Scenario()
        self.connections = connections or ConnectionGraph()
        self.delay_multiplier = delay_multiplier
        self.signal_queue = signal_queue or SignalQueue()
        self.metrics = SimulationMetrics()

    @property
    def device_map(self) -> Dict[int, Device]:
        return self.devices

    def command_device(self) -> Optional[Device]:
        return self.devices.get(self.command_device_id)

    def device_count(self) -> int:
        return len(self.devices)

    def infected_count(self) -> int:
        return sum(1 for device in self.devices.values() if device.is_infected())

    def set_initial_state(self):
        """Build the first graph and enqueue the signals for the first tick."""
        self._update_connections_graph()
        self._add_gps_signals_to_queue()
        self._add_scenario_signals_to_queue()

    def update(self):
        """Advance the simulation by one tick."""
        self._spread_malware()
        self._update_devices()
        self._remove_shut_down_devices()
        self._update_connections_graph()
        self.signal_queue.remove_old_signals(self.current_time)

        self.current_time += TICK_DURATION_MS

        self._add_scenario_signals_to_queue()
        self._add_gps_signals_to_queue()

        self.metrics.record_tick(self.device_count(), self.infected_count())

    def _spread_malware(self):
        for device_id in sorted(self.devices):
            device = self.devices[device_id]
            malware_list = device.infections()
            if not malware_list:
                continue

            for neighbor_id in sorted(self.devices):
                if neighbor_id == device_id:
                    continue

                add_malware_signals_to_queue(
                    device,
                    self.devices[neighbor_id],
                    malware_list,
                    self.signal_queue,
                    self.current_time,
                    self.delay_multiplier,
                )

    def _update_devices(self):
        for attacker_device in self.attacker_devices:
            self._update_device(attacker_device.device)

        self._update_device(self.gps.device)

        for device_id in sorted(self.devices):
            device = self.devices[device_id]

            for attacker_device in self.attacker_devices:
                try:
                    attacker_device.execute_attack(
                        device, self.signal_queue, self.current_time, self.delay_multiplier
                    )
                except AttackError as e:
                    self.metrics.record_attack_failed()
                    logger.debug(
                        "Attack by %d on %d failed: %s",
                        attacker_device.device.id, device_id, type(e).__name__,
                    )

            for signal in self.signal_queue.get_current_signals_for(device_id, self.current_time):
                self._deliver(device, signal)

            self._update_device(device)

    def _deliver(self, device: Device, signal):
        try:
            device.receive_signal(signal, self.current_time)
        except RXModuleError as e:
            self.metrics.record_rejected(type(e.rx_error).__name__)
            logger.debug("Device %d rejected signal: %s", device.id, type(e.rx_error).__name__)
        except TRXSystemError as e:
            self.metrics.record_rejected(type(e).__name__)
            logger.debug("Device %d rejected signal: %s", device.id, type(e).__name__)
        else:
            self.metrics.record_delivered()

    def _update_device(self, device: Device):
        try:
            device.update()
        except PowerSystemError as e:
            logger.debug("Device %d failed to update: %s", device.id, type(e).__name__)

    def _remove_shut_down_devices(self):
        shut_down = [device_id for device_id in sorted(self.devices) if self.devices[device_id].is_shut_down()]

        for device_id in shut_down:
            del self.devices[device_id]
            logger.debug("Time %d: removed shut down device %d", self.current_time, device_id)

        if shut_down:
            self.metrics.record_removed(len(shut_down))

    def _update_connections_graph(self):
        self.connections.update(self.command_device_id, self.devices, Frequency.CONTROL)

    def _add_scenario_signals_to_queue(self):
        command_device = self.command_device()
        if command_device is None:
            return

        for device_id in sorted(self.devices):
            if device_id == self.command_device_id:
                continue

            last_task = self.scenario.get_last_task(self.current_time, device_id)
            if last_task is None:
                continue

            device = self.devices[device_id]
            try:
                task_signal = command_device.create_signal_for(device, last_task, Frequency.CONTROL)
            except TRXSystemError:
                continue

            delay_map = self.connections.delay_map(
                command_device, device_id, self.devices, self.delay_multiplier
            )
            self.signal_queue.add_entry(self.current_time, task_signal, delay_map)

    def _add_gps_signals_to_queue(self):
        self.gps.add_gps_signals_to_queue(
            self.signal_queue, self.devices, self.current_time, self.delay_multiplier
        )

    # --- Snapshot ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': SNAPSHOT_FORMAT_VERSION,
            'current_time': self.current_time,
            'command_device_id': self.command_device_id,
            'devices': [self.devices[device_id].to_dict() for device_id in sorted(self.devices)],
            'attacker_devices': [attacker.to_dict() for attacker in self.attacker_devices],
            'gps': self.gps.to_dict(),
            'connections': self.connections.to_dict(),
            'delay_multiplier': self.delay_multiplier,
            'scenario': self.scenario.to_dict(),
            'signal_queue': self.signal_queue.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        id_generator: Optional[DeviceIdGenerator] = None,
    ) -> 'NetworkModel':
        """
        Restore a model from a snapshot dict.

        Args:
            data: Output of to_dict()
            id_generator: Generator to advance past every restored id, so that
                devices built later cannot collide (default: a fresh one)

        Raises:
            ValueError: If the snapshot version is not supported
            KeyError: If a required field is missing
        """
        version = data.get('version', SNAPSHOT_FORMAT_VERSION)
        if version != SNAPSHOT_FORMAT_VERSION:
            raise ValueError(f"Unsupported snapshot version {version}")

        devices = [Device.from_dict(device) for device in data['devices']]
        attacker_devices = [AttackerDevice.from_dict(attacker) for attacker in data.get('attacker_devices', [])]
        gps = GPS.from_dict(data['gps'])

        generator = id_generator or DeviceIdGenerator()
        all_ids = [device.id for device in devices]
        all_ids += [attacker.device.id for attacker in attacker_devices]
        all_ids.append(gps.device.id)
        generator.skip_past(max(all_ids))

        return cls(
            command_device_id=int(data.get('command_device_id', BROADCAST_ID)),
            devices={device.id: device for device in devices},
            attacker_devices=attacker_devices,
            gps=gps,
            scenario=Scenario.from_dict(data.get('scenario', {})),
            connections=ConnectionGraph.from_dict(data['connections']),
            delay_multiplier=float(data.get('delay_multiplier', 0.0)),
            signal_queue=SignalQueue.from_dict(data.get('signal_queue', {})),
            current_time=int(data['current_time']),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json_string(cls, text: str, id_generator: Optional[DeviceIdGenerator] = None) -> 'NetworkModel':
        return cls.from_dict(json.loads(text), id_generator)

    @classmethod
    def from_json(cls, path, id_generator: Optional[DeviceIdGenerator] = None) -> 'NetworkModel':
        """
        Load a snapshot file.

        Raises:
            FileNotFoundError: If the file does not exist
            json.JSONDecodeError: If the file is not valid JSON
        """
        return cls.from_json_string(Path(path).read_text(), id_generator)

    def save(self, path):
        """Write a snapshot file."""
        Path(path).write_text(self.to_json())


class NetworkModelBuilder:
    """
    Fluent NetworkModel construction.

    Defaults: no command device, no devices, no attackers, a GPS source that
    transmits nothing, empty scenario, mesh topology, no delays.

    Args:
        id_generator: Generator the devices were built from; the default GPS
            source takes its id from it, after every device and attacker id
    """

    def __init__(self, id_generator: Optional[DeviceIdGenerator] = None):
        self._id_generator = id_generator
        self._command_device_id = BROADCAST_ID
        self._devices: Dict[int, Device] = {}
        self._attacker_devices: List[AttackerDevice] = []
        self._gps: Optional[GPS] = None
        self._scenario: Optional[Scenario] = None
        self._topology = Topology.MESH
        self._delay_multiplier = 0.0

    def set_command_device_id(self, command_device_id: int) -> 'NetworkModelBuilder':
        self._command_device_id = command_device_id
        return self

    def set_devices(self, devices: List[Device]) -> 'NetworkModelBuilder':
        ids = [device.id for device in devices]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate device ids: {sorted(ids)}")
        self._devices = {device.id: device for device in devices}
        return self

    def set_attacker_devices(self, attacker_devices: List[AttackerDevice]) -> 'NetworkModelBuilder':
        self._attacker_devices = list(attacker_devices)
        return self

    def set_gps(self, gps: GPS) -> 'NetworkModelBuilder':
        self._gps = gps
        return self

    def set_scenario(self, scenario: Scenario) -> 'NetworkModelBuilder':
        self._scenario = scenario
        return self

    def set_topology(self, topology: Topology) -> 'NetworkModelBuilder':
        self._topology = topology
        return self

    def set_delay_multiplier(self, delay_multiplier: float) -> 'NetworkModelBuilder':
        self._delay_multiplier = delay_multiplier
        return self

    def build(self) -> NetworkModel:
        gps = self._gps
        if gps is None:
            device_ids = list(self._devices) + [attacker.device.id for attacker in self._attacker_devices]
            gps = idle_gps_after(device_ids, self._id_generator)

        network_model = NetworkModel(
            command_device_id=self._command_device_id,
            devices=self._devices,
            attacker_devices=self._attacker_devices,
            gps=gps,
            scenario=self._scenario,
            connections=ConnectionGraph(self._topology),
            delay_multiplier=self._delay_multiplier,
        )
        network_model.set_initial_state()
        return network_model
