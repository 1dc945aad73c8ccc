"""
swarmsim - Time-stepped wireless drone swarm network simulation

Subpackages:
- physics: points, motion and propagation helpers
- signal: signal quality model, signals and the delayed signal queue
- device: device systems (power, movement, TRX) and the device state machine
- network: connectivity graph, attacks, GPS source and the tick orchestrator
- config: YAML configuration loading
- harness: launcher and command-line entry point
"""

__version__ = '0.1.0'
