"""Simulation settings loaded from the environment.

Pydantic-based settings read from ``DRONENET_*`` environment variables and an
optional ``.env`` file. Validation happens here, at the configuration edge;
the simulation classes themselves trust their callers.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dronenet.model.vector import Vector2
from dronenet.model.world import WorldConfig

logger = logging.getLogger(__name__)


class SimulationSettings(BaseSettings):
    """Network, telemetry and world settings.

    Environment Variables:
        DRONENET_BASE_LATENCY: Mean message travel time in seconds (default: 0.5)
        DRONENET_JITTER: Half-width of uniform latency jitter (default: 0.2)
        DRONENET_DROP_PROBABILITY: Chance a message is dropped (default: 0.15)
        DRONENET_REPORT_INTERVAL: Seconds between telemetry batches (default: 0.5)
        DRONENET_COLLECTOR_NAME: Node receiving telemetry (default: HQ)
        DRONENET_NODE_PREFIX: Prefix for per-drone node names (default: Drone)
        DRONENET_COMMS_LOG_PATH: CSV comms log path (default: comms_log.csv)
        DRONENET_SEED: Seed for the network random source (default: unset)
        DRONENET_GRAVITY_X / DRONENET_GRAVITY_Y: Gravity (default: 0, -9.8)
        DRONENET_WORLD_WIDTH / DRONENET_WORLD_HEIGHT: Extents (default: 100)

    Example:
        >>> settings = SimulationSettings(drop_probability=0.0, seed=7)
        >>> settings.world_config().height
        100.0
    """

    model_config = SettingsConfigDict(
        env_prefix="DRONENET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_latency: float = Field(default=0.5, ge=0.0, description="Mean travel time (s)")
    jitter: float = Field(default=0.2, ge=0.0, description="Uniform jitter half-width (s)")
    drop_probability: float = Field(
        default=0.15,
        ge=0.0,
        le=1.0,
        description="Probability that a message is dropped",
    )
    report_interval: float = Field(
        default=0.5,
        gt=0.0,
        description="Seconds between telemetry batches",
    )
    collector_name: str = Field(default="HQ", min_length=1, description="Telemetry sink")
    node_prefix: str = Field(default="Drone", description="Prefix for drone node names")
    comms_log_path: Path | None = Field(
        default=Path("comms_log.csv"),
        description="CSV comms log location, None to disable",
    )
    seed: int | None = Field(default=None, description="Network random seed")

    gravity_x: float = Field(default=0.0, description="Gravity x component")
    gravity_y: float = Field(default=-9.8, description="Gravity y component")
    world_width: float = Field(default=100.0, gt=0.0, description="World width")
    world_height: float = Field(default=100.0, gt=0.0, description="World height")

    def world_config(self) -> WorldConfig:
        """Build the world config described by these settings."""
        return WorldConfig(
            gravity=Vector2(self.gravity_x, self.gravity_y),
            width=self.world_width,
            height=self.world_height,
        )


@lru_cache
def get_settings() -> SimulationSettings:
    """Load settings once and cache them.

    Call ``get_settings.cache_clear()`` to reload.
    """
    settings = SimulationSettings()
    logger.info("Loaded simulation settings: %r", settings)
    return settings
