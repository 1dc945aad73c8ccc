"""
swarmsim.config - Simulation run configuration (YAML)
"""

from swarmsim.config.scenario import (
    SimulationConfig,
    ModelConfig,
    MalwareConfig,
    load_config,
    parse_signal_loss_response,
)

__all__ = [
    'SimulationConfig',
    'ModelConfig',
    'MalwareConfig',
    'load_config',
    'parse_signal_loss_response',
]
