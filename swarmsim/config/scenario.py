"""
scenario.py - YAML Simulation Config Parser

Parses simulation run configurations from YAML files.

Design philosophy:
- Keep it simple: minimal validation, no schema framework
- Fail fast: raise clear exceptions on errors
- No magic: explicit field names, no dynamic configuration

Example YAML:
    simulation:
      duration_ms: 5000
      seed: 42
      output_dir: out/reposition   # optional, one JSON snapshot per tick

    model:
      topology: mesh               # "star" or "mesh"
      trx_mode: strength           # "strength" (continuous) or "level" (zoned)
      drone_count: 10
      delay_multiplier: 0.0
      signal_loss_response: hover  # ascend | hover | ignore | shutdown
                                   # or {return_to_home: [x, y, z]}
      example: malware             # reposition | attack | electronic_warfare | gps_spoofing | malware
      malware:                     # used by the malware example
        type: indicator            # "indicator" or "dos"
        power_loss: 0
        infection_delay: 1000
        spread_delay: 500          # null: no device-to-device spread
"""

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from swarmsim.device.device import SignalLossResponse
from swarmsim.device.trx import TXModuleType
from swarmsim.malware import Malware, MalwareType
from swarmsim.network.connections import Topology
from swarmsim.physics.geometry import Point3D
from swarmsim.physics.propagation import TICK_DURATION_MS


EXAMPLES = ['reposition', 'attack', 'electronic_warfare', 'gps_spoofing', 'malware']
SIGNAL_LOSS_RESPONSES = ['ascend', 'hover', 'ignore', 'shutdown']

DEFAULT_INFECTION_DELAY_MS = 1000
DEFAULT_SPREAD_DELAY_MS = 500


def parse_signal_loss_response(value: Any) -> SignalLossResponse:
    """
    Parse a signal-loss response from its YAML form.

    Args:
        value: One of SIGNAL_LOSS_RESPONSES, or {'return_to_home': [x, y, z]}

    Raises:
        ValueError: If the value is not recognized
    """
    if isinstance(value, dict):
        if list(value) != ['return_to_home']:
            raise ValueError(f"signal_loss_response dict must only contain 'return_to_home', got {value}")
        home = value['return_to_home']
        if not isinstance(home, list):
            raise ValueError(f"return_to_home must be a list [x, y, z], got {home!r}")
        return SignalLossResponse.return_to_home(Point3D.from_list(home))

    if value == 'ascend':
        return SignalLossResponse.ascend()
    if value == 'hover':
        return SignalLossResponse.hover()
    if value == 'ignore':
        return SignalLossResponse.ignore()
    if value == 'shutdown':
        return SignalLossResponse.shutdown()

    raise ValueError(
        f"signal_loss_response must be one of {SIGNAL_LOSS_RESPONSES} "
        f"or {{return_to_home: [x, y, z]}}, got {value!r}"
    )


@dataclass
class MalwareConfig:
    """
    Malware configuration.

    Attributes:
        type: "indicator" or "dos"
        power_loss: Power drained by a DoS payload
        infection_delay: ms from infection to payload execution
        spread_delay: ms before a spreading copy enters the queue, None to disable spread
    """
    type: str = 'indicator'
    power_loss: int = 0
    infection_delay: int = DEFAULT_INFECTION_DELAY_MS
    spread_delay: Optional[int] = DEFAULT_SPREAD_DELAY_MS

    def __post_init__(self):
        """Validate malware configuration."""
        if self.type not in ['indicator', 'dos']:
            raise ValueError(f"malware.type must be 'indicator' or 'dos', got '{self.type}'")

        if self.type == 'dos' and self.power_loss <= 0:
            raise ValueError(f"malware.power_loss must be positive for dos, got {self.power_loss}")

        if self.type == 'indicator' and self.power_loss != 0:
            raise ValueError("malware.power_loss is only valid for dos malware")

        if self.infection_delay < 0:
            raise ValueError(f"malware.infection_delay must be non-negative, got {self.infection_delay}")

        if self.spread_delay is not None and self.spread_delay < 0:
            raise ValueError(f"malware.spread_delay must be non-negative, got {self.spread_delay}")

        for name, delay in (('infection_delay', self.infection_delay), ('spread_delay', self.spread_delay)):
            if delay is not None and delay % TICK_DURATION_MS != 0:
                raise ValueError(
                    f"malware.{name} must be a multiple of the {TICK_DURATION_MS} ms tick, got {delay}"
                )

    def to_malware(self) -> Malware:
        return Malware(MalwareType(self.type), self.infection_delay, self.spread_delay, self.power_loss)


@dataclass
class ModelConfig:
    """
    Network model configuration.

    Attributes:
        topology: "star" or "mesh"
        trx_mode: "strength" (continuous attenuation) or "level" (zoned)
        drone_count: Number of drones besides the command device
        delay_multiplier: Propagation delay stretch factor (0 = no delay)
        signal_loss_response: Drone policy while the control signal is lost
        example: Which prepared setup to assemble
        malware: Malware for the malware example
    """
    topology: str = 'mesh'
    trx_mode: str = 'strength'
    drone_count: int = 10
    delay_multiplier: float = 0.0
    signal_loss_response: Any = 'hover'
    example: str = 'reposition'
    malware: Optional[MalwareConfig] = None

    def __post_init__(self):
        """Validate model configuration."""
        if self.topology not in [topology.value for topology in Topology]:
            raise ValueError(f"model.topology must be 'star' or 'mesh', got '{self.topology}'")

        if self.trx_mode not in [mode.value for mode in TXModuleType]:
            raise ValueError(f"model.trx_mode must be 'strength' or 'level', got '{self.trx_mode}'")

        if self.drone_count < 0:
            raise ValueError(f"model.drone_count must be non-negative, got {self.drone_count}")

        if self.delay_multiplier < 0:
            raise ValueError(f"model.delay_multiplier must be non-negative, got {self.delay_multiplier}")

        if self.example not in EXAMPLES:
            raise ValueError(f"model.example must be one of {EXAMPLES}, got '{self.example}'")

        # Fail fast on a bad policy
        parse_signal_loss_response(self.signal_loss_response)

        if self.example == 'malware' and self.malware is None:
            self.malware = MalwareConfig()

    @property
    def topology_enum(self) -> Topology:
        return Topology(self.topology)

    @property
    def trx_mode_enum(self) -> TXModuleType:
        return TXModuleType(self.trx_mode)

    def loss_response(self) -> SignalLossResponse:
        return parse_signal_loss_response(self.signal_loss_response)


@dataclass
class SimulationConfig:
    """
    Simulation run configuration.

    Attributes:
        duration_ms: Total simulated time in milliseconds
        seed: Seed for drone placement and receiver capture checks
        output_dir: Optional directory for per-tick JSON snapshots
        model: Network model configuration
    """
    duration_ms: int
    seed: int = 0
    output_dir: Optional[str] = None
    model: ModelConfig = field(default_factory=ModelConfig)

    def __post_init__(self):
        """Validate config after initialization."""
        if self.duration_ms <= 0:
            raise ValueError(f"duration_ms must be positive, got {self.duration_ms}")

    @property
    def tick_count(self) -> int:
        """Number of ticks that fit in the duration."""
        return self.duration_ms // TICK_DURATION_MS


def _parse_malware(data: Any) -> MalwareConfig:
    if not isinstance(data, dict):
        raise ValueError("'model.malware' section must be a dict")

    spread_delay = data.get('spread_delay', DEFAULT_SPREAD_DELAY_MS)
    return MalwareConfig(
        type=str(data.get('type', 'indicator')),
        power_loss=int(data.get('power_loss', 0)),
        infection_delay=int(data.get('infection_delay', DEFAULT_INFECTION_DELAY_MS)),
        spread_delay=int(spread_delay) if spread_delay is not None else None,
    )


def _parse_model(data: Dict[str, Any]) -> ModelConfig:
    malware = _parse_malware(data['malware']) if data.get('malware') is not None else None

    return ModelConfig(
        topology=str(data.get('topology', 'mesh')),
        trx_mode=str(data.get('trx_mode', 'strength')),
        drone_count=int(data.get('drone_count', 10)),
        delay_multiplier=float(data.get('delay_multiplier', 0.0)),
        signal_loss_response=data.get('signal_loss_response', 'hover'),
        example=str(data.get('example', 'reposition')),
        malware=malware,
    )


def load_config(yaml_path: str) -> SimulationConfig:
    """
    Load simulation config from YAML file.

    Args:
        yaml_path: Path to YAML config file

    Returns:
        SimulationConfig with parsed configuration

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If required fields are missing or invalid
        yaml.YAMLError: If YAML syntax is invalid
    """
    path = Path(yaml_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(path, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML syntax in {yaml_path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a YAML dict, got {type(data)}")

    if 'simulation' not in data:
        raise ValueError("Missing required section: 'simulation'")

    sim = data['simulation']
    if not isinstance(sim, dict):
        raise ValueError("'simulation' section must be a dict")

    duration_ms = sim.get('duration_ms')
    if duration_ms is None:
        raise ValueError("Missing required field: simulation.duration_ms")

    model = data.get('model', {})
    if not isinstance(model, dict):
        raise ValueError("'model' section must be a dict")

    output_dir = sim.get('output_dir')

    return SimulationConfig(
        duration_ms=int(duration_ms),
        seed=int(sim.get('seed', 0)),
        output_dir=str(output_dir) if output_dir is not None else None,
        model=_parse_model(model),
    )
