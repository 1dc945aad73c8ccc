#!/usr/bin/env python3
"""
test_device.py - Unit tests for the device state machine

Each test drives Device.update() directly, delivering GPS fixes and control
signals by hand the way the network model would.
"""

import random
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from swarmsim.device.device import (
    DESTINATION_RADIUS,
    Device,
    DeviceBuilder,
    SignalLossResponse,
    device_seed,
)
from swarmsim.device.movement import MovementSystem, MaxSpeedTooHigh, MAX_DRONE_SPEED
from swarmsim.device.power import NoPowerLeft, PowerSystem, PowerIsGreaterThanMax
from swarmsim.device.trx import (
    IDEAL_CAPTURE_PROBABILITIES,
    RXModule,
    RXModuleError,
    RXOutOfRange,
    TRXSystem,
    TXModule,
    WrongSignalDestination,
    WrongSignalSource,
)
from swarmsim.ids import BROADCAST_ID, DeviceIdGenerator
from swarmsim.malware import InfectionStatus, Malware
from swarmsim.physics.geometry import Point3D
from swarmsim.physics.propagation import Frequency
from swarmsim.signal.quality import SignalQuality, GREEN_QUALITY, RED_QUALITY
from swarmsim.signal.signal import Signal
from swarmsim.task import Task, TaskType


SENDER_ID = 1000


def drone_trx(tx_radius=None):
    tx_module = TXModule()
    if tx_radius is not None:
        tx_module = TXModule({Frequency.CONTROL: SignalQuality.from_area(tx_radius, Frequency.CONTROL)})
    rx_module = RXModule(
        {Frequency.CONTROL: GREEN_QUALITY, Frequency.GPS: GREEN_QUALITY},
        IDEAL_CAPTURE_PROBABILITIES,
    )
    return TRXSystem(tx_module, rx_module)


def drone_builder(position=Point3D(), power=10_000, max_speed=MAX_DRONE_SPEED):
    return (
        DeviceBuilder(DeviceIdGenerator())
        .set_real_position(position)
        .set_power_system(PowerSystem(power, power))
        .set_movement_system(MovementSystem(max_speed, position))
        .set_trx_system(drone_trx())
    )


def gps_fix(device):
    return Signal(SENDER_ID, device.id, device.position, Frequency.GPS, RED_QUALITY)


def control(device, data, destination_id=None):
    destination = device.id if destination_id is None else destination_id
    return Signal(SENDER_ID, destination, data, Frequency.CONTROL, RED_QUALITY)


class TestBuilder:
    """Tests for DeviceBuilder."""

    def test_ids_are_unique_and_increasing(self):
        """Test that every build draws a new id from the generator."""
        builder = DeviceBuilder(DeviceIdGenerator())
        ids = [builder.build().id for _ in range(5)]

        assert ids == [1, 2, 3, 4, 5]

    def test_built_devices_do_not_share_systems(self):
        """Test that one builder can build independent devices."""
        builder = drone_builder()
        first = builder.build()
        second = builder.build()

        first.power_system.consume_power(10)
        first.trx_system.receive_signal(control(first, Task.undefined()), 0)

        assert second.power_system.power == 10_000
        assert second.trx_system.received_signals() == []

    def test_rng_seeded_from_id_and_seed(self):
        """Test that the capture RNG depends on the device id and run seed."""
        device = DeviceBuilder(DeviceIdGenerator()).set_seed(7).build()

        assert device_seed(1, 7) == device_seed(1, 7)
        assert device_seed(1, 7) != device_seed(2, 7)
        assert device_seed(1, 7) != device_seed(1, 8)

        assert device.trx_system.rx_module.rng.random() == random.Random(device_seed(1, 7)).random()

    def test_broadcast_id_is_reserved(self):
        with pytest.raises(ValueError):
            Device(BROADCAST_ID)


class TestSystems:
    """Tests for power and movement system validation."""

    def test_power_greater_than_max(self):
        with pytest.raises(PowerIsGreaterThanMax):
            PowerSystem(10, 11)

    def test_power_saturates_at_zero(self):
        power_system = PowerSystem(10, 3)

        with pytest.raises(NoPowerLeft):
            power_system.consume_power(5)

        assert power_system.power == 0

    def test_max_speed_too_high(self):
        with pytest.raises(MaxSpeedTooHigh):
            MovementSystem(MAX_DRONE_SPEED + 1)

        with pytest.raises(MaxSpeedTooHigh):
            MovementSystem(-1.0)

    def test_set_direction_never_overshoots(self):
        """Test that speed is capped so one tick ends at the destination."""
        movement = MovementSystem(MAX_DRONE_SPEED)
        movement.set_direction(Point3D(0.5, 0.0, 0.0))

        assert movement.velocity.x == pytest.approx(10.0)

        movement.set_direction(Point3D(100.0, 0.0, 0.0))
        assert movement.velocity.norm() == pytest.approx(MAX_DRONE_SPEED)


class TestSignals:
    """Tests for creating and receiving signals."""

    def test_create_signal_for_device_in_range(self):
        builder = DeviceBuilder(DeviceIdGenerator())
        sender = builder.set_trx_system(drone_trx(tx_radius=10.0)).build()
        receiver = builder.set_real_position(Point3D(5.0, 0.0, 0.0)).build()

        signal = sender.create_signal_for(receiver, Task.undefined(), Frequency.CONTROL)

        assert signal.source_id == sender.id
        assert signal.destination_id == receiver.id
        assert signal.quality.strength == pytest.approx(4.0)

    def test_create_signal_out_of_range(self):
        builder = DeviceBuilder(DeviceIdGenerator())
        sender = builder.set_trx_system(drone_trx(tx_radius=10.0)).build()
        receiver = builder.set_real_position(Point3D(50.0, 0.0, 0.0)).build()

        with pytest.raises(RXOutOfRange):
            sender.create_signal_for(receiver, Task.undefined(), Frequency.CONTROL)

        with pytest.raises(RXOutOfRange):
            sender.create_signal_for(receiver, Point3D(), Frequency.GPS)

    def test_wrong_destination(self):
        """Test that a signal for another device is rejected."""
        device = drone_builder().build()

        with pytest.raises(WrongSignalDestination):
            device.receive_signal(control(device, Task.undefined(), destination_id=device.id + 1), 0)

    def test_own_signal_rejected(self):
        device = drone_builder().build()
        own = Signal(device.id, BROADCAST_ID, Task.undefined(), Frequency.CONTROL, RED_QUALITY)

        with pytest.raises(WrongSignalSource):
            device.receive_signal(own, 0)

    def test_broadcast_accepted(self):
        device = drone_builder().build()
        device.receive_signal(control(device, Task.undefined(), destination_id=BROADCAST_ID), 0)

        assert device.receives_signal_on(Frequency.CONTROL)

    def test_not_listening_is_wrapped(self):
        device = DeviceBuilder(DeviceIdGenerator()).build()

        with pytest.raises(RXModuleError):
            device.receive_signal(control(device, Task.undefined()), 0)

    def test_set_task_signal(self):
        """Test that a task signal replaces the current task."""
        device = drone_builder().build()
        task = Task.reposition(Point3D(100.0, 0.0, 0.0))

        device.receive_signal(control(device, task), 0)
        device.update()

        assert device.task == task

    def test_gps_signal_updates_believed_position(self):
        device = drone_builder(position=Point3D(3.0, 4.0, 5.0)).build()
        device.movement_system.position = Point3D()

        device.receive_signal(gps_fix(device), 0)
        device.update()

        assert device.gps_position == Point3D(3.0, 4.0, 5.0)

    def test_processing_costs_power(self):
        """Test passive and processing costs (movement disabled)."""
        device = drone_builder(max_speed=0.0).build()

        device.receive_signal(control(device, Task.undefined()), 0)
        device.receive_signal(gps_fix(device), 0)
        device.update()

        assert device.power_system.power == 10_000 - 1 - 5 - 5

    def test_buffer_cleared_after_update(self):
        device = drone_builder().build()
        device.receive_signal(control(device, Task.undefined()), 0)

        device.update()

        assert device.trx_system.received_signals() == []
        assert device.current_time == 50


class TestMovement:
    """Tests for task processing and signal-loss responses."""

    def test_no_movement_without_destination(self):
        device = drone_builder(position=Point3D(1.0, 2.0, 3.0)).build()

        device.receive_signal(control(device, Task.undefined()), 0)
        device.receive_signal(gps_fix(device), 0)
        device.update()

        assert device.position == Point3D(1.0, 2.0, 3.0)

    def test_no_movement_without_gps(self):
        """Test that a task without a GPS fix keeps the (zero) velocity."""
        device = drone_builder().build()

        device.receive_signal(control(device, Task.reposition(Point3D(100.0, 0.0, 0.0))), 0)
        device.update()

        assert device.position == Point3D()

    def test_reposition_reaches_destination(self):
        """Test that a reposition task completes at the destination."""
        destination = Point3D(30.0, 0.0, 0.0)
        device = drone_builder().build()
        task = Task.reposition(destination)

        for _ in range(40):
            device.receive_signal(control(device, task), 0)
            device.receive_signal(gps_fix(device), 0)
            device.update()
            if device.task == Task.undefined():
                break

        assert device.task == Task.undefined()
        assert device.distance_to(destination) <= DESTINATION_RADIUS

    def test_attack_selfdestructs_at_destination(self):
        destination = Point3D(3.0, 0.0, 0.0)
        device = drone_builder().set_task(Task.attack(destination)).build()

        device.receive_signal(control(device, Task.attack(destination)), 0)
        device.receive_signal(gps_fix(device), 0)
        device.update()

        assert device.is_shut_down()

    def test_ascend_on_signal_loss(self):
        device = (
            drone_builder(position=Point3D(5.0, 6.0, 0.0))
            .set_signal_loss_response(SignalLossResponse.ascend())
            .build()
        )

        device.update()

        assert device.position.z > 0.0
        assert device.position.x == 5.0
        assert device.position.y == 6.0
        assert device.task.task_type == TaskType.RECONNECT

    def test_hover_on_signal_loss(self):
        device = (
            drone_builder(position=Point3D(5.0, 6.0, 7.0))
            .set_signal_loss_response(SignalLossResponse.hover())
            .build()
        )

        device.receive_signal(gps_fix(device), 0)
        device.update()

        assert device.position == Point3D(5.0, 6.0, 7.0)
        assert device.task == Task.reconnect(Point3D(5.0, 6.0, 7.0))

    def test_return_to_home_on_signal_loss(self):
        home = Point3D(0.0, 0.0, 0.0)
        device = (
            drone_builder(position=Point3D(10.0, 0.0, 0.0))
            .set_signal_loss_response(SignalLossResponse.return_to_home(home))
            .build()
        )

        for _ in range(20):
            device.receive_signal(gps_fix(device), 0)
            device.update()

        assert device.distance_to(home) < 1e-6
        assert device.task == Task.reconnect(home)

    def test_shutdown_on_signal_loss(self):
        device = (
            drone_builder()
            .set_signal_loss_response(SignalLossResponse.shutdown())
            .build()
        )

        device.update()

        assert device.is_shut_down()

    def test_noise_is_signal_loss(self):
        """Test that a jammed control channel counts as no control signal."""
        device = (
            drone_builder()
            .set_signal_loss_response(SignalLossResponse.shutdown())
            .build()
        )

        device.receive_signal(control(device, None), 0)
        device.update()

        assert device.is_shut_down()


class TestPower:
    """Tests for running out of power."""

    def test_exact_budget_for_one_tick(self):
        """Test that passive + movement cost equal to the budget shuts the device down."""
        device = drone_builder(power=6).build()

        with pytest.raises(NoPowerLeft):
            device.update()

        assert device.is_shut_down()

    def test_selfdestruct_resets_systems(self):
        device = drone_builder().build()

        device.selfdestruct()

        assert device.is_shut_down()
        assert device.movement_system.is_disabled()
        assert device.trx_system == TRXSystem()


class TestInfection:
    """Tests for malware infection and payloads."""

    def test_vulnerable_device_infected(self):
        malware = Malware.indicator()
        device = drone_builder().build()

        device.receive_signal(control(device, malware), 0)
        device.update()

        assert device.is_infected_with(malware)
        assert device.infection_state(malware).infection_time == 0
        assert device.infections() == [malware]

    def test_patched_device_not_infected(self):
        malware = Malware.indicator()
        device = drone_builder().set_patches([malware]).build()

        device.receive_signal(control(device, malware), 0)
        device.update()

        assert not device.is_infected()
        assert device.infection_state(malware).status == InfectionStatus.PATCHED

    def test_pre_infected_device(self):
        malware = Malware.indicator(spread_delay=0)
        device = drone_builder().set_infections({malware: 0}).build()

        assert device.is_infected_with(malware)

    def test_dos_payload_drains_power(self):
        """Test that a DoS payload runs exactly infection_delay after infection."""
        malware = Malware.dos(power_loss=50, infection_delay=50)
        device = drone_builder(power=1000, max_speed=0.0).build()

        device.receive_signal(control(device, malware), 0)
        device.update()
        assert device.power_system.power == 1000 - 1 - 5

        device.update()
        assert device.power_system.power == 1000 - 1 - 5 - 1 - 50

        device.update()
        assert device.power_system.power == 1000 - 1 - 5 - 1 - 50 - 1

    def test_dos_payload_can_shut_down(self):
        malware = Malware.dos(power_loss=100_000, infection_delay=50)
        device = drone_builder(max_speed=0.0).set_infections({malware: 0}).build()

        device.update()

        with pytest.raises(NoPowerLeft):
            device.update()

        assert device.is_shut_down()


def test_serialization():
    """Test that to_dict/from_dict preserves the device state."""
    malware = Malware.dos(power_loss=10, infection_delay=100, spread_delay=50)
    device = (
        drone_builder(position=Point3D(1.0, 2.0, 3.0))
        .set_task(Task.reposition(Point3D(9.0, 9.0, 9.0)))
        .set_infections({malware: 0})
        .set_patches([Malware.indicator()])
        .set_signal_loss_response(SignalLossResponse.return_to_home(Point3D(1.0, 1.0, 0.0)))
        .build()
    )
    device.receive_signal(gps_fix(device), 0)

    restored = Device.from_dict(device.to_dict())

    assert restored.to_dict() == device.to_dict()
    assert restored.id == device.id
    assert restored.position == device.position
    assert restored.infection_map == device.infection_map
