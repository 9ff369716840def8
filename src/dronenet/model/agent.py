"""PhysicalAgent: a drone integrated under Newtonian dynamics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dronenet.model.vector import Vector2

if TYPE_CHECKING:
    from dronenet.model.world import WorldConfig


@dataclass(frozen=True)
class AgentParams:
    """Physical limits of a drone.

    mass must be positive. A max_speed of 0 disables the speed clamp.
    """

    mass: float  # kg
    max_thrust: float  # N
    max_speed: float = 0.0  # m/s, 0 = unlimited


@dataclass
class PhysicalAgent:
    """A single drone with position, velocity and an applied thrust force.

    Thrust is set by command and persists across steps until replaced or
    cleared. Gravity is applied on every step from the world config.
    """

    id: int
    params: AgentParams
    position: Vector2 = field(default_factory=Vector2.zero)
    velocity: Vector2 = field(default_factory=Vector2.zero)
    thrust: Vector2 = field(default_factory=Vector2.zero)

    def set_thrust_direction(self, direction: Vector2) -> None:
        """Thrust at full power along ``direction``.

        The previous thrust is always replaced. A zero direction yields zero
        thrust.
        """
        self.thrust = direction.normalized() * self.params.max_thrust

    def set_thrust_force(self, force: Vector2) -> None:
        """Apply ``force`` directly, clamped to max_thrust in magnitude."""
        magnitude = force.length()
        if magnitude <= self.params.max_thrust:
            self.thrust = force
        else:
            self.thrust = force * (self.params.max_thrust / magnitude)

    def clear_thrust(self) -> None:
        """Remove thrust so only gravity acts."""
        self.thrust = Vector2.zero()

    def advance(self, dt: float, world: WorldConfig) -> None:
        """Integrate one step of semi-implicit Euler and clamp to the world.

        Args:
            dt: Step length in seconds.
            world: Gravity and extents to integrate against.
        """
        mass = self.params.mass
        total_force = self.thrust + world.gravity * mass
        acceleration = total_force / mass

        velocity = self.velocity + acceleration * dt
        max_speed = self.params.max_speed
        if max_speed > 0.0:
            speed = velocity.length()
            if speed > max_speed:
                velocity = velocity * (max_speed / speed)

        position = self.position + velocity * dt

        # Each axis clamps independently; hitting a wall stops motion on that axis.
        x, vx = _clamp_axis(position.x, velocity.x, world.width)
        y, vy = _clamp_axis(position.y, velocity.y, world.height)

        self.position = Vector2(x, y)
        self.velocity = Vector2(vx, vy)


def _clamp_axis(coord: float, speed: float, extent: float) -> tuple[float, float]:
    if coord < 0.0:
        return 0.0, 0.0
    if coord > extent:
        return extent, 0.0
    return coord, speed
