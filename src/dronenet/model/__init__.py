"""Domain model: Vector2, WorldConfig, PhysicalAgent, messages and endpoints."""

from dronenet.model.agent import AgentParams, PhysicalAgent
from dronenet.model.message import EndpointNode, MessageRecord, ReceivedRecord
from dronenet.model.vector import Vector2
from dronenet.model.world import WorldConfig

__all__ = [
    "AgentParams",
    "EndpointNode",
    "MessageRecord",
    "PhysicalAgent",
    "ReceivedRecord",
    "Vector2",
    "WorldConfig",
]
