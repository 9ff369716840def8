"""Command-line runner for dronenet.

Usage:
    dronenet --steps 100 --dt 0.1
    python -m dronenet --drones 5 --seed 42 --log-path run.csv
"""

from __future__ import annotations

import argparse
import sys

from dronenet import __version__
from dronenet.config import get_settings
from dronenet.engine.simulation import Simulator
from dronenet.logging_config import configure_logging
from dronenet.model.agent import AgentParams
from dronenet.model.vector import Vector2
from dronenet.network.delivery import DeliveryNetwork

DEFAULT_PARAMS = AgentParams(mass=1.0, max_thrust=15.0, max_speed=20.0)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="dronenet",
        description="Run a headless drone telemetry simulation.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--steps", type=int, default=100, help="Number of steps to run")
    parser.add_argument("--dt", type=float, default=0.1, help="Step length in seconds")
    parser.add_argument("--drones", type=int, default=3, help="Number of drones")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Network random seed (overrides DRONENET_SEED)",
    )
    parser.add_argument(
        "--log-path",
        default=None,
        help="CSV comms log path (overrides DRONENET_COMMS_LOG_PATH)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress the per-message console trace",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def build_scenario(sim: Simulator, drone_count: int) -> None:
    """Spread drones across the world and give each a thrust command.

    Even drones climb at full thrust; odd drones push sideways with a force
    that roughly cancels gravity.
    """
    world = sim.world
    spacing = world.width / (drone_count + 1)
    for i in range(drone_count):
        drone = sim.add_agent(DEFAULT_PARAMS, Vector2(spacing * (i + 1), world.height / 2))
        if drone % 2 == 0:
            sim.set_thrust_direction(drone, Vector2(0.0, 1.0))
        else:
            sim.set_thrust_force(drone, Vector2(5.0, -world.gravity.y * DEFAULT_PARAMS.mass))


def main(argv: list[str] | None = None) -> int:
    """Run the simulation and print the comms summary."""
    args = parse_args(argv)

    configure_logging()

    settings = get_settings()
    seed = args.seed if args.seed is not None else settings.seed
    log_path = args.log_path if args.log_path is not None else settings.comms_log_path

    network = DeliveryNetwork(
        settings.base_latency,
        settings.jitter,
        settings.drop_probability,
        seed=seed,
        log_path=log_path,
        echo=not args.quiet,
    )

    with Simulator(settings.world_config(), network, settings=settings) as sim:
        build_scenario(sim, args.drones)

        print(f"Running {args.drones} drones for {args.steps} steps (dt={args.dt})")
        print("=" * 70)
        for _ in range(args.steps):
            sim.step(args.dt)

        sim.print_comms_summary()

        print()
        print("Final drone states:")
        for drone in sim.agents:
            pos, vel = drone.position, drone.velocity
            print(
                f"  {sim.node_name(drone.id)}: pos=({pos.x:.2f},{pos.y:.2f})"
                f" vel=({vel.x:.2f},{vel.y:.2f})"
            )

    return 0


if __name__ == "__main__":
    sys.exit(main())
