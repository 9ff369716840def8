"""WorldConfig: gravity and extents of the simulated world."""

from __future__ import annotations

from dataclasses import dataclass, field

from dronenet.model.vector import Vector2


@dataclass(frozen=True)
class WorldConfig:
    """Static world settings shared by every agent.

    The world spans ``[0, width] x [0, height]``; agents are clamped to it.
    """

    gravity: Vector2 = field(default_factory=lambda: Vector2(0.0, -9.8))
    width: float = 100.0
    height: float = 100.0
