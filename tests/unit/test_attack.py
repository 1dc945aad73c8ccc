#!/usr/bin/env python3
"""
test_attack.py - Unit tests for attacker devices, malware spread and the GPS source
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from swarmsim.device.device import DeviceBuilder
from swarmsim.device.power import PowerSystem
from swarmsim.device.trx import IDEAL_CAPTURE_PROBABILITIES, RXModule, TRXSystem, TXModule
from swarmsim.ids import DeviceIdGenerator
from swarmsim.malware import Malware
from swarmsim.network.attack import (
    AttackerDevice,
    AttackKind,
    AttackType,
    TargetOutOfRange,
    WrongAttackType,
    add_malware_signals_to_queue,
)
from swarmsim.network.gps import GPS
from swarmsim.physics.geometry import Point3D
from swarmsim.physics.propagation import Frequency
from swarmsim.signal.quality import SignalQuality
from swarmsim.signal.queue import SignalQueue


SPOOFED_POSITION = Point3D(-200, -100, -200)


@pytest.fixture
def id_generator():
    return DeviceIdGenerator()


def transmitter(id_generator, position, radius_by_frequency):
    tx_module = TXModule({
        frequency: SignalQuality.from_area(radius, frequency)
        for frequency, radius in radius_by_frequency.items()
    })
    return (
        DeviceBuilder(id_generator)
        .set_real_position(position)
        .set_power_system(PowerSystem(1000, 1000))
        .set_trx_system(TRXSystem(tx_module=tx_module))
        .build()
    )


def target(id_generator, position):
    rx_module = RXModule(
        {Frequency.CONTROL: SignalQuality(10_000), Frequency.GPS: SignalQuality(10_000)},
        IDEAL_CAPTURE_PROBABILITIES,
    )
    return (
        DeviceBuilder(id_generator)
        .set_real_position(position)
        .set_power_system(PowerSystem(1000, 1000))
        .set_trx_system(TRXSystem(TXModule({Frequency.CONTROL: SignalQuality.from_area(20, Frequency.CONTROL)}), rx_module))
        .build()
    )


class TestAttackType:
    """Tests for AttackType validation."""

    def test_payload_must_match_kind(self):
        with pytest.raises(ValueError):
            AttackType(AttackKind.GPS_SPOOFING)

        with pytest.raises(ValueError):
            AttackType(AttackKind.ELECTRONIC_WARFARE, malware=Malware.indicator())

    def test_serialization(self):
        for attack_type in [
            AttackType.electronic_warfare(),
            AttackType.gps_spoofing(SPOOFED_POSITION),
            AttackType.malware_distribution(Malware.dos(10, 0, 50)),
        ]:
            assert AttackType.from_dict(attack_type.to_dict()) == attack_type


class TestElectronicWarfare:
    """Tests for jamming."""

    def test_jams_every_reachable_frequency(self, id_generator):
        """Test that one noise signal is queued per frequency that reaches the target."""
        jammer = transmitter(id_generator, Point3D(), {Frequency.CONTROL: 50, Frequency.GPS: 50})
        victim = target(id_generator, Point3D(10, 0, 0))
        queue = SignalQueue()

        AttackerDevice(jammer, AttackType.electronic_warfare()).execute_attack(victim, queue, 100, 0.0)

        signals = queue.get_current_signals_for(victim.id, 100)
        assert len(signals) == 2
        assert all(signal.is_noise() for signal in signals)
        assert {signal.frequency for signal in signals} == {Frequency.CONTROL, Frequency.GPS}

    def test_partial_reach(self, id_generator):
        jammer = transmitter(id_generator, Point3D(), {Frequency.CONTROL: 50, Frequency.GPS: 5})
        victim = target(id_generator, Point3D(10, 0, 0))
        queue = SignalQueue()

        AttackerDevice(jammer, AttackType.electronic_warfare()).execute_attack(victim, queue, 0, 0.0)

        assert len(queue) == 1

    def test_target_out_of_range(self, id_generator):
        jammer = transmitter(id_generator, Point3D(), {Frequency.CONTROL: 50})
        victim = target(id_generator, Point3D(100, 0, 0))
        queue = SignalQueue()

        with pytest.raises(TargetOutOfRange):
            AttackerDevice(jammer, AttackType.electronic_warfare()).execute_attack(victim, queue, 0, 0.0)

        assert queue.is_empty()


class TestSpoofingAndMalware:
    """Tests for payload-carrying attacks."""

    def test_spoofed_fix(self, id_generator):
        spoofer = transmitter(id_generator, Point3D(), {Frequency.GPS: 100})
        victim = target(id_generator, Point3D(30, 0, 0))
        queue = SignalQueue()

        AttackerDevice(spoofer, AttackType.gps_spoofing(SPOOFED_POSITION)).execute_attack(victim, queue, 0, 0.0)

        (signal,) = queue.get_current_signals_for(victim.id, 0)
        assert signal.frequency == Frequency.GPS
        assert signal.gps == SPOOFED_POSITION
        assert signal.source_id == spoofer.id

    def test_spoofer_without_gps_transmitter(self, id_generator):
        spoofer = transmitter(id_generator, Point3D(), {Frequency.CONTROL: 100})
        victim = target(id_generator, Point3D(30, 0, 0))

        with pytest.raises(TargetOutOfRange):
            AttackerDevice(spoofer, AttackType.gps_spoofing(SPOOFED_POSITION)).execute_attack(
                victim, SignalQueue(), 0, 0.0
            )

    def test_malware_distribution(self, id_generator):
        malware = Malware.indicator()
        attacker = transmitter(id_generator, Point3D(), {Frequency.CONTROL: 50})
        victim = target(id_generator, Point3D(30, 0, 0))
        queue = SignalQueue()

        AttackerDevice(attacker, AttackType.malware_distribution(malware)).execute_attack(victim, queue, 0, 0.0)

        (signal,) = queue.get_current_signals_for(victim.id, 0)
        assert signal.malware == malware
        assert signal.frequency == Frequency.CONTROL

    def test_wrong_attack_type(self, id_generator):
        jammer = AttackerDevice(
            transmitter(id_generator, Point3D(), {Frequency.GPS: 50}),
            AttackType.electronic_warfare(),
        )
        victim = target(id_generator, Point3D(10, 0, 0))

        with pytest.raises(WrongAttackType):
            jammer.spoof_gps(victim, SignalQueue(), 0, 0.0)

        with pytest.raises(WrongAttackType):
            jammer.spread_malware(victim, SignalQueue(), 0, 0.0)

    def test_attacker_serialization(self, id_generator):
        attacker = AttackerDevice(
            transmitter(id_generator, Point3D(1, 2, 3), {Frequency.GPS: 50}),
            AttackType.gps_spoofing(SPOOFED_POSITION),
        )

        restored = AttackerDevice.from_dict(attacker.to_dict())

        assert restored.to_dict() == attacker.to_dict()


class TestMalwareSpread:
    """Tests for add_malware_signals_to_queue."""

    def test_spread_delay(self, id_generator):
        """Test that malware enters the queue spread_delay after emission."""
        source = target(id_generator, Point3D())
        neighbor = target(id_generator, Point3D(10, 0, 0))
        queue = SignalQueue()

        add_malware_signals_to_queue(source, neighbor, [Malware.indicator(0, 500)], queue, 100, 0.0)

        assert len(queue) == 1
        assert queue.entries[0].time == 600
        assert queue.get_current_signals_for(neighbor.id, 600)[0].malware == Malware.indicator(0, 500)

    def test_no_spread_delay_means_no_spread(self, id_generator):
        source = target(id_generator, Point3D())
        neighbor = target(id_generator, Point3D(10, 0, 0))
        queue = SignalQueue()

        add_malware_signals_to_queue(source, neighbor, [Malware.indicator(0, None)], queue, 0, 0.0)

        assert queue.is_empty()

    def test_out_of_reach_neighbor(self, id_generator):
        source = target(id_generator, Point3D())
        neighbor = target(id_generator, Point3D(25, 0, 0))
        queue = SignalQueue()

        add_malware_signals_to_queue(source, neighbor, [Malware.indicator(0, 0)], queue, 0, 0.0)

        assert queue.is_empty()


class TestGPS:
    """Tests for the GPS source."""

    def test_fix_for_devices_in_reach(self, id_generator):
        """Test that each reachable device gets a fix with its own position."""
        gps = GPS(transmitter(id_generator, Point3D(0, 0, 200), {Frequency.GPS: 350}))
        near = target(id_generator, Point3D(0, 0, 0))
        far = target(id_generator, Point3D(1000, 0, 0))
        devices = {near.id: near, far.id: far}
        queue = SignalQueue()

        gps.add_gps_signals_to_queue(queue, devices, 0, 0.0)

        (signal,) = queue.get_current_signals_for(near.id, 0)
        assert signal.gps == near.position
        assert queue.get_current_signals_for(far.id, 0) == []

    def test_idle_source_sends_nothing(self, id_generator):
        near = target(id_generator, Point3D())
        queue = SignalQueue()
        gps = GPS.idle(id_generator)

        assert gps.device.id == near.id + 1

        gps.add_gps_signals_to_queue(queue, {near.id: near}, 0, 0.0)

        assert queue.is_empty()
