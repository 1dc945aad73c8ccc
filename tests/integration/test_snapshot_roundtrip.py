#!/usr/bin/env python3
"""
test_snapshot_roundtrip.py - Integration tests for JSON snapshots

A snapshot taken mid-run must restore a model that continues exactly like
the original, including receiver random state and in-flight signals.
"""

import json
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from swarmsim.config import MalwareConfig, ModelConfig, SimulationConfig
from swarmsim.harness.setups import build_network_model
from swarmsim.ids import DeviceIdGenerator, default_id_generator
from swarmsim.network.network_model import NetworkModel, SNAPSHOT_FORMAT_VERSION


def malware_model(seed=3):
    config = SimulationConfig(
        duration_ms=1000,
        seed=seed,
        model=ModelConfig(
            drone_count=6,
            delay_multiplier=1e6,
            example='malware',
            malware=MalwareConfig(infection_delay=100, spread_delay=50),
        ),
    )
    return build_network_model(config, DeviceIdGenerator())


def test_to_dict_round_trip():
    """Test that from_dict(to_dict()) reproduces the same snapshot."""
    model = malware_model()
    for _ in range(5):
        model.update()

    restored = NetworkModel.from_dict(model.to_dict(), DeviceIdGenerator())

    assert restored.to_dict() == model.to_dict()


def test_json_round_trip():
    model = malware_model()
    for _ in range(3):
        model.update()

    restored = NetworkModel.from_json_string(model.to_json(), DeviceIdGenerator())

    assert restored.to_dict() == model.to_dict()
    assert restored.current_time == model.current_time
    assert len(restored.signal_queue) == len(model.signal_queue)


def test_restored_model_continues_identically():
    """Test that original and restored models stay in lockstep."""
    model = malware_model()
    for _ in range(5):
        model.update()

    restored = NetworkModel.from_json_string(model.to_json(), DeviceIdGenerator())

    for _ in range(20):
        model.update()
        restored.update()

    assert restored.to_dict() == model.to_dict()
    assert restored.infected_count() == model.infected_count()


def test_save_and_load(tmp_path):
    model = malware_model()
    model.update()

    path = tmp_path / "snapshot.json"
    model.save(path)

    data = json.loads(path.read_text())
    assert data['version'] == SNAPSHOT_FORMAT_VERSION
    assert data['current_time'] == 50

    assert NetworkModel.from_json(path, DeviceIdGenerator()).to_dict() == model.to_dict()


def test_id_generator_skips_restored_ids():
    """Test that devices built after a restore get fresh ids."""
    model = malware_model()
    generator = DeviceIdGenerator()

    NetworkModel.from_dict(model.to_dict(), generator)

    restored_ids = set(model.devices)
    restored_ids.update(attacker.device.id for attacker in model.attacker_devices)
    restored_ids.add(model.gps.device.id)
    assert generator.next_id() > max(restored_ids)


def test_restore_without_generator_leaves_shared_one_alone():
    """Test that restoring with no generator does not advance the process-wide one."""
    model = malware_model()
    last_id = default_id_generator.last_id

    restored = NetworkModel.from_dict(model.to_dict())

    assert default_id_generator.last_id == last_id
    assert restored.to_dict() == model.to_dict()


def test_version_mismatch():
    data = malware_model().to_dict()
    data['version'] = SNAPSHOT_FORMAT_VERSION + 1

    with pytest.raises(ValueError, match="version"):
        NetworkModel.from_dict(data, DeviceIdGenerator())


def test_missing_field():
    data = malware_model().to_dict()
    del data['devices']

    with pytest.raises(KeyError):
        NetworkModel.from_dict(data, DeviceIdGenerator())


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        NetworkModel.from_json(tmp_path / "missing.json")
