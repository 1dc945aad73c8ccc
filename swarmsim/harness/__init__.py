"""
swarmsim.harness - Simulation assembly and execution

Builds the prepared example networks from a config and runs them tick by
tick, optionally writing per-tick snapshots.
"""

from .launcher import SimulationLauncher, SimulationResult, run_scenario
from .setups import SetupFactory, build_network_model

__all__ = [
    'SimulationLauncher',
    'SimulationResult',
    'run_scenario',
    'SetupFactory',
    'build_network_model',
]
