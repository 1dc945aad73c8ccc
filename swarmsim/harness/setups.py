"""
setups.py - Prepared network setups

Assembles a ready-to-run NetworkModel for each example named in the config:

- reposition: drones follow a scripted sequence of reposition tasks
- attack: drones fly an attack run while a jammer suppresses GPS near the target
- electronic_warfare: same jammer, but on the control frequency
- gps_spoofing: drones fly an attack run while a spoofer forges GPS fixes
- malware: an attacker seeds malware that spreads through the swarm

Every setup has one command device, drone_count drones scattered around the
network origin, and a GPS source above the origin. Drone placement uses a
random.Random seeded from the config, so a seed always gives the same swarm.
"""

import logging
import random
from typing import List, Optional

from swarmsim.config.scenario import SimulationConfig
from swarmsim.device.device import Device, DeviceBuilder, SignalLossResponse
from swarmsim.device.movement import MovementSystem, MAX_DRONE_SPEED
from swarmsim.device.power import PowerSystem
from swarmsim.device.trx import RXModule, TRXSystem, TXModule, TXModuleType
from swarmsim.ids import BROADCAST_ID, DeviceIdGenerator
from swarmsim.network.attack import AttackerDevice, AttackType
from swarmsim.network.gps import GPS
from swarmsim.network.network_model import NetworkModel, NetworkModelBuilder
from swarmsim.physics.geometry import Point3D
from swarmsim.physics.propagation import Frequency
from swarmsim.signal.quality import SignalQuality, GREEN_QUALITY, RED_QUALITY
from swarmsim.task import Scenario, Task


logger = logging.getLogger(__name__)

DEVICE_MAX_POWER = 100_000
NETWORK_ORIGIN = Point3D(150.3, 90.6, 25.5)
COMMAND_CENTER_POSITION = Point3D(200.0, 100.0, 0.0)
DRONE_POSITION_SPREAD = Point3D(40.0, 40.0, 20.0)
DRONE_DESTINATION = Point3D(0.0, 0.0, 0.0)

GPS_POSITION = Point3D(NETWORK_ORIGIN.x, NETWORK_ORIGIN.y, 200.0)
GPS_TX_RADIUS = 350.0

COMMAND_TX_RADIUS = 300.0
DRONE_TX_RADIUS = 50.0
MAX_CONTROL_RX_QUALITY = SignalQuality(10_000.0)

ATTACKER_POSITION = Point3D(0.0, 5.0, 2.0)
JAMMER_TX_RADIUS = 50.0
SPOOFER_TX_RADIUS = 100.0
SPOOFED_POSITION = Point3D(-200.0, -100.0, -200.0)

MALWARE_COMMAND_CENTER_POSITION = Point3D(100.0, 50.0, 0.0)
MALWARE_COMMAND_TX_RADIUS = 200.0
MALWARE_DRONE_TX_RADIUS = 15.0
MALWARE_ATTACKER_POSITION = Point3D(-10.0, 2.0, 0.0)
MALWARE_ATTACKER_TX_RADIUS = 50.0


def attack_scenario() -> Scenario:
    """Every drone attacks the destination from the start."""
    scenario = Scenario()
    scenario.add_entry(0, BROADCAST_ID, Task.attack(DRONE_DESTINATION))
    return scenario


def reposition_scenario() -> Scenario:
    scenario = Scenario()
    scenario.add_entry(0, BROADCAST_ID, Task.reposition(DRONE_DESTINATION))
    scenario.add_entry(250, BROADCAST_ID, Task.reposition(Point3D(0.0, 0.0, 150.0)))
    scenario.add_entry(4000, BROADCAST_ID, Task.reposition(Point3D(0.0, 150.0, 150.0)))
    scenario.add_entry(6000, BROADCAST_ID, Task.reposition(DRONE_DESTINATION))
    return scenario


def malware_scenario() -> Scenario:
    """Every drone repositions towards the malware attacker."""
    scenario = Scenario()
    scenario.add_entry(0, BROADCAST_ID, Task.reposition(DRONE_DESTINATION))
    return scenario


def tx_module(frequency: int, radius_m: float, module_type: TXModuleType) -> TXModule:
    return TXModule({frequency: SignalQuality.from_area(radius_m, frequency)}, module_type)


def rx_module(max_gps_quality: SignalQuality) -> RXModule:
    return RXModule({
        Frequency.CONTROL: MAX_CONTROL_RX_QUALITY,
        Frequency.GPS: max_gps_quality,
    })


def device_power_system() -> PowerSystem:
    return PowerSystem(DEVICE_MAX_POWER, DEVICE_MAX_POWER)


def random_drone_position(rng: random.Random, origin: Point3D = NETWORK_ORIGIN) -> Point3D:
    """Uniform position in the box origin +- DRONE_POSITION_SPREAD."""
    spread = DRONE_POSITION_SPREAD
    return origin + Point3D(
        rng.uniform(-spread.x, spread.x),
        rng.uniform(-spread.y, spread.y),
        rng.uniform(-spread.z, spread.z),
    )


class SetupFactory:
    """
    Builds the example network models described by a SimulationConfig.

    Args:
        config: Simulation configuration
        id_generator: Id source for every built device (default: a fresh one)
    """

    def __init__(self, config: SimulationConfig, id_generator: Optional[DeviceIdGenerator] = None):
        self.config = config
        self.model_config = config.model
        self.id_generator = id_generator or DeviceIdGenerator()
        self.rng = random.Random(config.seed)

    def build(self) -> NetworkModel:
        """
        Build the model for config.model.example.

        Raises:
            ValueError: If the example is unknown
        """
        builders = {
            'reposition': self.reposition,
            'attack': self.attack,
            'electronic_warfare': self.electronic_warfare,
            'gps_spoofing': self.gps_spoofing,
            'malware': self.malware,
        }

        example = self.model_config.example
        if example not in builders:
            raise ValueError(f"Unknown example '{example}'")

        logger.info(
            "Building '%s' example: %d drones, %s topology, %s TRX",
            example, self.model_config.drone_count,
            self.model_config.topology, self.model_config.trx_mode,
        )
        return builders[example]()

    # --- Examples ---

    def reposition(self) -> NetworkModel:
        command_center = self._command_center(COMMAND_CENTER_POSITION, COMMAND_TX_RADIUS)
        drones = self._drones(DRONE_TX_RADIUS, MAX_CONTROL_RX_QUALITY)

        return (
            self._network_builder(command_center, drones)
            .set_scenario(reposition_scenario())
            .build()
        )

    def attack(self) -> NetworkModel:
        return self._jammed_attack_run(Frequency.GPS)

    def electronic_warfare(self) -> NetworkModel:
        return self._jammed_attack_run(Frequency.CONTROL)

    def gps_spoofing(self) -> NetworkModel:
        command_center = self._command_center(COMMAND_CENTER_POSITION, COMMAND_TX_RADIUS)
        drones = self._drones(DRONE_TX_RADIUS, RED_QUALITY)

        spoofer = self._attacker_device(ATTACKER_POSITION, Frequency.GPS, SPOOFER_TX_RADIUS)
        attacker_devices = [AttackerDevice(spoofer, AttackType.gps_spoofing(SPOOFED_POSITION))]

        return (
            self._network_builder(command_center, drones)
            .set_attacker_devices(attacker_devices)
            .set_scenario(attack_scenario())
            .build()
        )

    def malware(self) -> NetworkModel:
        malware = self.model_config.malware.to_malware()

        command_center = self._command_center(MALWARE_COMMAND_CENTER_POSITION, MALWARE_COMMAND_TX_RADIUS)
        drones = self._drones(MALWARE_DRONE_TX_RADIUS, GREEN_QUALITY)

        attacker = self._attacker_device(
            MALWARE_ATTACKER_POSITION, Frequency.CONTROL, MALWARE_ATTACKER_TX_RADIUS
        )
        attacker_devices = [AttackerDevice(attacker, AttackType.malware_distribution(malware))]

        return (
            self._network_builder(command_center, drones)
            .set_attacker_devices(attacker_devices)
            .set_scenario(malware_scenario())
            .build()
        )

    def _jammed_attack_run(self, jammed_frequency: Frequency) -> NetworkModel:
        command_center = self._command_center(COMMAND_CENTER_POSITION, COMMAND_TX_RADIUS)
        drones = self._drones(DRONE_TX_RADIUS, RED_QUALITY)

        jammer = self._attacker_device(ATTACKER_POSITION, jammed_frequency, JAMMER_TX_RADIUS)
        attacker_devices = [AttackerDevice(jammer, AttackType.electronic_warfare())]

        return (
            self._network_builder(command_center, drones)
            .set_attacker_devices(attacker_devices)
            .set_scenario(attack_scenario())
            .build()
        )

    # --- Devices ---

    def _device_builder(self) -> DeviceBuilder:
        return (
            DeviceBuilder(self.id_generator)
            .set_power_system(device_power_system())
            .set_seed(self.config.seed)
        )

    def _command_center(self, position: Point3D, tx_radius: float) -> Device:
        trx_system = TRXSystem(
            tx_module(Frequency.CONTROL, tx_radius, self.model_config.trx_mode_enum),
            rx_module(GREEN_QUALITY),
        )
        return (
            self._device_builder()
            .set_real_position(position)
            .set_trx_system(trx_system)
            .set_signal_loss_response(SignalLossResponse.ignore())
            .build()
        )

    def _drones(self, tx_radius: float, max_gps_quality: SignalQuality) -> List[Device]:
        trx_system = TRXSystem(
            tx_module(Frequency.CONTROL, tx_radius, self.model_config.trx_mode_enum),
            rx_module(max_gps_quality),
        )
        builder = (
            self._device_builder()
            .set_trx_system(trx_system)
            .set_signal_loss_response(self.model_config.loss_response())
        )

        drones = []
        for _ in range(self.model_config.drone_count):
            position = random_drone_position(self.rng)
            drones.append(
                builder
                .set_real_position(position)
                .set_movement_system(MovementSystem(MAX_DRONE_SPEED, position))
                .build()
            )
        return drones

    def _attacker_device(self, position: Point3D, frequency: int, tx_radius: float) -> Device:
        trx_system = TRXSystem(tx_module(frequency, tx_radius, self.model_config.trx_mode_enum))
        return (
            self._device_builder()
            .set_real_position(position)
            .set_trx_system(trx_system)
            .build()
        )

    def _gps(self) -> GPS:
        trx_system = TRXSystem(tx_module(Frequency.GPS, GPS_TX_RADIUS, self.model_config.trx_mode_enum))
        device = (
            self._device_builder()
            .set_real_position(GPS_POSITION)
            .set_trx_system(trx_system)
            .build()
        )
        return GPS(device)

    def _network_builder(self, command_center: Device, drones: List[Device]) -> NetworkModelBuilder:
        return (
            NetworkModelBuilder(self.id_generator)
            .set_command_device_id(command_center.id)
            .set_devices([command_center] + drones)
            .set_gps(self._gps())
            .set_topology(self.model_config.topology_enum)
            .set_delay_multiplier(self.model_config.delay_multiplier)
        )


def build_network_model(config: SimulationConfig, id_generator: Optional[DeviceIdGenerator] = None) -> NetworkModel:
    """Build the example network model named by config.model.example."""
    return SetupFactory(config, id_generator).build()
