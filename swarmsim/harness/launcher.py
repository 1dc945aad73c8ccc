"""
launcher.py - Simulation Launcher

Manages the lifecycle of one simulation run:
- validate the configuration
- build the network model (or restore it from a snapshot)
- tick it until the configured duration has been simulated
- optionally write a JSON snapshot after every tick

Design philosophy:
- Fail-fast during setup (validation before launch)
- Report failures as a SimulationResult instead of raising
- Deterministic: the seed fixes the swarm layout and every receiver's RNG
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from swarmsim.config.scenario import SimulationConfig
from swarmsim.harness.setups import build_network_model
from swarmsim.ids import DeviceIdGenerator
from swarmsim.network.network_model import NetworkModel
from swarmsim.physics.propagation import TICK_DURATION_MS


logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Results from simulation execution."""
    success: bool
    duration_sec: float
    simulated_time_ms: int
    tick_count: int = 0
    final_device_count: int = 0
    error_message: Optional[str] = None
    metrics: Dict[str, Any] = field(default_factory=dict)


class SimulationLauncher:
    """
    Runs one simulation from a SimulationConfig.

    Responsibilities:
    1. Validate config before launch
    2. Build the example network model, or restore a snapshot
    3. Advance the model tick by tick for the configured duration
    4. Write per-tick snapshots to the output directory (if configured)

    Args:
        config: Parsed simulation configuration
        resume_from: Optional snapshot file to continue from instead of
            building a fresh model
        id_generator: Id source for built devices (default: a fresh one)
    """

    def __init__(
        self,
        config: SimulationConfig,
        resume_from: Optional[str] = None,
        id_generator: Optional[DeviceIdGenerator] = None,
    ):
        self.config = config
        self.resume_from = Path(resume_from) if resume_from else None
        self.id_generator = id_generator or DeviceIdGenerator()
        self.network_model: Optional[NetworkModel] = None
        self.start_wall_time = None

    def validate_config(self) -> List[str]:
        """
        Validate config before launch.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.config.duration_ms < TICK_DURATION_MS:
            errors.append(
                f"duration_ms ({self.config.duration_ms}) is shorter than one tick ({TICK_DURATION_MS} ms)"
            )

        if self.config.output_dir:
            output_dir = Path(self.config.output_dir)
            if output_dir.exists() and not output_dir.is_dir():
                errors.append(f"output_dir is not a directory: {output_dir}")

        if self.resume_from is not None and not self.resume_from.is_file():
            errors.append(f"Snapshot not found: {self.resume_from}")

        model = self.config.model
        if model.example == 'malware' and model.malware is None:
            errors.append("The malware example requires a 'malware' section")

        return errors

    def build_network_model(self) -> NetworkModel:
        """
        Build the model to run.

        Raises:
            FileNotFoundError: If the resume snapshot does not exist
            ValueError: If the snapshot is malformed or of another version
        """
        if self.resume_from is not None:
            logger.info("Restoring snapshot %s", self.resume_from)
            try:
                return NetworkModel.from_json(self.resume_from, self.id_generator)
            except KeyError as e:
                raise ValueError(f"Malformed snapshot {self.resume_from}: missing field {e}") from e

        return build_network_model(self.config, self.id_generator)

    def launch(self) -> NetworkModel:
        """
        Validate the config and prepare the model.

        Raises:
            ValueError: If validation fails
        """
        errors = self.validate_config()
        if errors:
            error_msg = "Config validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)

        self.network_model = self.build_network_model()

        if self.config.output_dir:
            Path(self.config.output_dir).mkdir(parents=True, exist_ok=True)
            self._write_snapshot()

        logger.info(
            "Simulation ready: %d devices at t=%d ms, duration %d ms, seed %d",
            self.network_model.device_count(), self.network_model.current_time,
            self.config.duration_ms, self.config.seed,
        )
        return self.network_model

    def run(self) -> SimulationResult:
        """
        Launch and run the complete simulation.

        Returns:
            SimulationResult with execution details
        """
        tick_count = 0
        self.start_wall_time = None

        try:
            network_model = self.launch()

            self.start_wall_time = time.time()
            end_time = network_model.current_time + self.config.duration_ms

            while network_model.current_time + TICK_DURATION_MS <= end_time:
                network_model.update()
                tick_count += 1

                logger.info(
                    "Time %d ms: %d devices, %d infected",
                    network_model.current_time,
                    network_model.device_count(),
                    network_model.infected_count(),
                )

                if self.config.output_dir:
                    self._write_snapshot()

            elapsed = time.time() - self.start_wall_time
            return SimulationResult(
                success=True,
                duration_sec=elapsed,
                simulated_time_ms=tick_count * TICK_DURATION_MS,
                tick_count=tick_count,
                final_device_count=network_model.device_count(),
                metrics=network_model.metrics.to_dict(),
            )

        except Exception as e:
            logger.error("Simulation failed: %s: %s", type(e).__name__, e)
            elapsed = time.time() - self.start_wall_time if self.start_wall_time else 0
            return SimulationResult(
                success=False,
                duration_sec=elapsed,
                simulated_time_ms=tick_count * TICK_DURATION_MS,
                tick_count=tick_count,
                final_device_count=self.network_model.device_count() if self.network_model else 0,
                error_message=str(e),
            )

    def _write_snapshot(self):
        tick = self.network_model.current_time // TICK_DURATION_MS
        path = Path(self.config.output_dir) / f"{tick}.json"
        self.network_model.save(path)
        logger.debug("Snapshot written: %s", path)


def run_scenario(
    config_path: str,
    seed: Optional[int] = None,
    resume_from: Optional[str] = None,
) -> SimulationResult:
    """
    Convenience function to run a simulation from a YAML file.

    Args:
        config_path: Path to YAML config file
        seed: Optional override for the config seed
        resume_from: Optional snapshot to continue from

    Returns:
        SimulationResult
    """
    from swarmsim.config.scenario import load_config

    config = load_config(config_path)

    if seed is not None:
        config.seed = seed

    launcher = SimulationLauncher(config, resume_from=resume_from)
    return launcher.run()
