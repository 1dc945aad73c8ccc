"""
swarmsim.network - Connectivity, attacks and the tick orchestrator

NetworkModel ties devices, the connection graph, the signal queue, attackers
and the GPS source together and advances them one tick at a time.
"""

from swarmsim.network.connections import (
    ConnectionGraph,
    Topology,
    ShortestPathError,
    NoPathFound,
    PathTooShort,
)
from swarmsim.network.attack import (
    AttackerDevice,
    AttackType,
    AttackKind,
    AttackError,
    TargetOutOfRange,
    WrongAttackType,
    add_malware_signals_to_queue,
)
from swarmsim.network.gps import GPS
from swarmsim.network.metrics import SimulationMetrics
from swarmsim.network.network_model import NetworkModel, NetworkModelBuilder

__all__ = [
    'ConnectionGraph',
    'Topology',
    'ShortestPathError',
    'NoPathFound',
    'PathTooShort',
    'AttackerDevice',
    'AttackType',
    'AttackKind',
    'AttackError',
    'TargetOutOfRange',
    'WrongAttackType',
    'add_malware_signals_to_queue',
    'GPS',
    'SimulationMetrics',
    'NetworkModel',
    'NetworkModelBuilder',
]
