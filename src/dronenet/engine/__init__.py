"""Simulation engine: the step loop tying physics, telemetry and network together."""

from dronenet.engine.simulation import Simulator, format_telemetry

__all__ = ["Simulator", "format_telemetry"]
