"""Reversible XOR obfuscation for payloads on the simulated wire.

This only keeps payloads from being plain text in transit. It is not
encryption and provides no confidentiality.
"""

from __future__ import annotations

from itertools import cycle

SHARED_KEY = b"USMC-COMMS-KEY"


def obfuscate(data: bytes, key: bytes = SHARED_KEY) -> bytes:
    """XOR ``data`` with ``key`` repeated to the data length.

    The operation is its own inverse: ``obfuscate(obfuscate(d, k), k) == d``.

    Raises:
        ValueError: If ``key`` is empty.
    """
    if not key:
        raise ValueError("obfuscation key must not be empty")
    return bytes(b ^ k for b, k in zip(data, cycle(key)))


deobfuscate = obfuscate


def obfuscate_text(text: str, key: bytes = SHARED_KEY) -> bytes:
    """UTF-8 encode ``text`` and obfuscate it."""
    return obfuscate(text.encode("utf-8"), key)


def deobfuscate_text(wire: bytes, key: bytes = SHARED_KEY) -> str:
    """Reverse :func:`obfuscate_text`."""
    return deobfuscate(wire, key).decode("utf-8")
