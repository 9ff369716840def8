"""Simulation driver: clock, drone physics, telemetry and network delivery.

Step sequence:
1. Advance the clock by dt
2. Advance every drone's physics against the world
3. If a report is due, send one telemetry message per drone to the collector
4. Advance the network to the new clock value

Telemetry sent in step 3 can be delivered by the same step's network advance
when its sampled latency is small enough.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from dronenet.config import SimulationSettings, get_settings
from dronenet.model.agent import AgentParams, PhysicalAgent
from dronenet.network.delivery import DeliveryNetwork, NetworkSummary

if TYPE_CHECKING:
    from dronenet.model.vector import Vector2
    from dronenet.model.world import WorldConfig

logger = logging.getLogger(__name__)

# Debug-log a progress line every N steps
PROGRESS_LOG_INTERVAL = 100


def format_telemetry(agent: PhysicalAgent) -> str:
    """Status line reported by a drone: position and velocity to 2 decimals."""
    pos, vel = agent.position, agent.velocity
    return f"STATUS pos=({pos.x:.2f},{pos.y:.2f}) vel=({vel.x:.2f},{vel.y:.2f})"


class Simulator:
    """Owns the world, the drones, the network and the simulation clock.

    Drones are addressed by their integer id, which is also their index.
    Commands naming an unknown id are ignored.

    Example:
        >>> with Simulator(WorldConfig()) as sim:
        ...     drone = sim.add_agent(AgentParams(1.0, 10.0), Vector2(50, 50))
        ...     sim.set_thrust_direction(drone, Vector2(0, 1))
        ...     for _ in range(20):
        ...         sim.step(0.1)
        ...     sim.print_comms_summary()
    """

    def __init__(
        self,
        world: WorldConfig,
        network: DeliveryNetwork | None = None,
        *,
        report_interval: float | None = None,
        settings: SimulationSettings | None = None,
    ) -> None:
        """Set up the simulation and register the collector node.

        Args:
            world: Gravity and extents.
            network: Network to send telemetry over. Built from ``settings``
                when omitted.
            report_interval: Seconds between telemetry batches. Defaults to
                ``settings.report_interval``.
            settings: Source of defaults. The shared instance from
                :func:`~dronenet.config.get_settings` is used when omitted.
        """
        if settings is None:
            settings = get_settings()
        if network is None:
            network = DeliveryNetwork(
                settings.base_latency,
                settings.jitter,
                settings.drop_probability,
                seed=settings.seed,
                log_path=settings.comms_log_path,
            )

        self._world = world
        self._network = network
        self._agents: list[PhysicalAgent] = []
        self._collector = settings.collector_name
        self._node_prefix = settings.node_prefix

        self._report_interval = (
            report_interval if report_interval is not None else settings.report_interval
        )
        self._current_time = 0.0
        self._next_report_time = self._report_interval
        self._step_count = 0

        self._network.register_node(self._collector)

    # -- accessors --------------------------------------------------------

    @property
    def world(self) -> WorldConfig:
        return self._world

    @property
    def network(self) -> DeliveryNetwork:
        return self._network

    @property
    def agents(self) -> tuple[PhysicalAgent, ...]:
        return tuple(self._agents)

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def next_report_time(self) -> float:
        return self._next_report_time

    @property
    def report_interval(self) -> float:
        return self._report_interval

    @property
    def collector_name(self) -> str:
        return self._collector

    def node_name(self, agent_id: int) -> str:
        """Network node name used by the drone with ``agent_id``."""
        return f"{self._node_prefix}{agent_id}"

    # -- drones -----------------------------------------------------------

    def add_agent(self, params: AgentParams, start_pos: Vector2) -> int:
        """Create a drone at ``start_pos`` and register its network node.

        Returns:
            The new drone's id (its zero-based index).
        """
        agent_id = len(self._agents)
        self._agents.append(PhysicalAgent(id=agent_id, params=params, position=start_pos))
        self._network.register_node(self.node_name(agent_id))
        logger.debug("Added drone %d at (%.2f, %.2f)", agent_id, start_pos.x, start_pos.y)
        return agent_id

    def _lookup(self, agent_id: int) -> PhysicalAgent | None:
        if 0 <= agent_id < len(self._agents):
            return self._agents[agent_id]
        logger.debug("Ignoring command for unknown drone %d", agent_id)
        return None

    def set_thrust_direction(self, agent_id: int, direction: Vector2) -> None:
        agent = self._lookup(agent_id)
        if agent is not None:
            agent.set_thrust_direction(direction)

    def set_thrust_force(self, agent_id: int, force: Vector2) -> None:
        agent = self._lookup(agent_id)
        if agent is not None:
            agent.set_thrust_force(force)

    def clear_thrust(self, agent_id: int) -> None:
        agent = self._lookup(agent_id)
        if agent is not None:
            agent.clear_thrust()

    # -- stepping ---------------------------------------------------------

    def step(self, dt: float) -> None:
        """Advance the whole simulation by ``dt`` seconds.

        Raises:
            CommsLogError: If the network's comms log was closed by an earlier
                :meth:`close`. Stepping a closed simulation is caller misuse.
        """
        self._current_time += dt

        for agent in self._agents:
            agent.advance(dt, self._world)

        # One batch per step at most, even if dt spans several intervals.
        if self._current_time >= self._next_report_time:
            self._send_telemetry()
            self._next_report_time += self._report_interval

        self._network.advance(self._current_time)

        self._step_count += 1
        if self._step_count % PROGRESS_LOG_INTERVAL == 0:
            logger.debug(
                "Simulation step %d: drones=%d, in_transit=%d, delivered=%d",
                self._step_count,
                len(self._agents),
                self._network.in_transit_count,
                self._network.delivered_count,
                extra={"sim_time": self._current_time},
            )

    def _send_telemetry(self) -> None:
        for agent in self._agents:
            self._network.send(
                self.node_name(agent.id),
                self._collector,
                format_telemetry(agent),
                self._current_time,
            )

    # -- reporting --------------------------------------------------------

    def comms_summary(self) -> NetworkSummary:
        """Network summary at the current clock."""
        return self._network.summary(self._current_time)

    def print_comms_summary(self) -> None:
        print()
        print(self.comms_summary().render())

    # -- lifecycle --------------------------------------------------------

    def close(self) -> None:
        """Close the network and its comms log."""
        self._network.close()

    def __enter__(self) -> Simulator:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
