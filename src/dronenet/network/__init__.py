"""Simulated network: delivery engine, comms log and payload obfuscation."""

from dronenet.network.comms_log import CommsEvent, CommsLog, CommsLogError
from dronenet.network.delivery import DeliveryNetwork, NetworkSummary
from dronenet.network.obfuscation import SHARED_KEY, deobfuscate, obfuscate

__all__ = [
    "SHARED_KEY",
    "CommsEvent",
    "CommsLog",
    "CommsLogError",
    "DeliveryNetwork",
    "NetworkSummary",
    "deobfuscate",
    "obfuscate",
]
