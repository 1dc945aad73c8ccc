#!/usr/bin/env python3
"""
run_scenario.py - Drone swarm simulation from a YAML config

Usage:
    swarmsim-run scenarios/reposition.yaml
    swarmsim-run scenarios/malware.yaml --seed 123
    swarmsim-run scenarios/attack.yaml --output-dir out/attack --verbose
    swarmsim-run scenarios/attack.yaml --resume out/attack/40.json

The script will:
1. Load config from YAML
2. Validate configuration
3. Build the example network (or restore a snapshot)
4. Tick the model for the configured duration
5. Report results
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from swarmsim.config.scenario import load_config
from swarmsim.harness.launcher import SimulationLauncher


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Run a drone swarm simulation from YAML configuration.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with the seed from the config
  swarmsim-run scenarios/reposition.yaml

  # Override seed for a different swarm layout
  swarmsim-run scenarios/reposition.yaml --seed 123

  # Write one JSON snapshot per tick
  swarmsim-run scenarios/malware.yaml --output-dir out/malware

  # Continue from a snapshot
  swarmsim-run scenarios/malware.yaml --resume out/malware/20.json
        """
    )

    parser.add_argument(
        "config",
        type=Path,
        help="Path to simulation YAML file"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override random seed (default: use seed from YAML)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output (per-device debug logging)"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate config without executing (validate only)"
    )

    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for per-tick JSON snapshots (overrides YAML)"
    )

    parser.add_argument(
        "--resume",
        type=Path,
        default=None,
        metavar="SNAPSHOT",
        help="Continue from a JSON snapshot instead of building a new network"
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        0 on success, 1 on failure
    """
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.config.exists():
        print(f"ERROR: Config file not found: {args.config}", file=sys.stderr)
        return 1

    try:
        print(f"Loading config from: {args.config}")
        config = load_config(str(args.config))

        if args.seed is not None:
            print(f"Overriding seed: {config.seed} -> {args.seed}")
            config.seed = args.seed

        if args.output_dir is not None:
            config.output_dir = str(args.output_dir)

        launcher = SimulationLauncher(
            config,
            resume_from=str(args.resume) if args.resume else None,
        )

        if args.dry_run:
            print("\n" + "="*60)
            print("DRY RUN MODE - Validation Only")
            print("="*60)

            errors = launcher.validate_config()

            if errors:
                print("\nConfig validation FAILED:")
                for error in errors:
                    print(f"  - {error}")
                return 1

            print("\nConfig validation PASSED")
            print("\nConfig summary:")
            print(f"  Duration: {config.duration_ms}ms ({config.tick_count} ticks)")
            print(f"  Seed: {config.seed}")
            print(f"  Example: {config.model.example}")
            print(f"  Drones: {config.model.drone_count}")
            print(f"  Topology: {config.model.topology}")
            print(f"  TRX mode: {config.model.trx_mode}")
            if args.resume:
                print(f"  Resume from: {args.resume}")
            print("\n(Use without --dry-run to execute)")
            return 0

        print("\n" + "="*60)
        print("Executing Simulation")
        print("="*60)

        result = launcher.run()

        print("\n" + "="*60)
        print("Execution Complete")
        print("="*60)

        if not result.success:
            print("\nFAILED")
            print(f"\nError: {result.error_message}", file=sys.stderr)
            return 1

        print("\nSUCCESS")
        print("\nResults:")
        print(f"  Simulated time: {result.simulated_time_ms}ms ({result.tick_count} ticks)")
        print(f"  Wall time: {result.duration_sec:.2f}s")
        print(f"  Devices left: {result.final_device_count}")
        print(f"  Signals delivered: {result.metrics.get('signals_delivered', 0)}")
        print(f"  Signals rejected: {result.metrics.get('signals_rejected_total', 0)}")
        if config.output_dir:
            print(f"\nSnapshots written to {config.output_dir}")
        return 0

    except FileNotFoundError as e:
        print(f"\nERROR: File not found: {e}", file=sys.stderr)
        return 1

    except yaml.YAMLError as e:
        print(f"\nERROR: Invalid YAML:", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        return 1

    except json.JSONDecodeError as e:
        print(f"\nERROR: Invalid snapshot JSON: {e}", file=sys.stderr)
        return 1

    except ValueError as e:
        print(f"\nERROR: Invalid configuration:", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
