"""Single-hop delivery network with latency, jitter and packet drop.

Messages are scheduled at send time: the drop decision and the delivery time
are drawn once from the network's own random source and never revisited.
In-transit messages are handed to their recipient by the first
:meth:`DeliveryNetwork.advance` call whose clock has reached the scheduled
delivery time.

Every send, scheduled drop, delivery and failed delivery is traced to the
console (``[SEND]``, ``[DROP SCHEDULED]``, ``[DELIVER]``,
``[DELIVERY FAILED]``) and, except for failures, written to the CSV comms log.

Delivery statistics (delivered and dropped counts, latency sum and mailboxes)
are left untouched by a failed delivery. Failures are tallied separately in
``failed_count``, a diagnostic counter that sits outside those statistics.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, TextIO

from dronenet.model.message import EndpointNode, MessageRecord, ReceivedRecord
from dronenet.network.comms_log import CommsEvent, CommsLog
from dronenet.network.obfuscation import SHARED_KEY, deobfuscate_text, obfuscate_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkSummary:
    """End-of-run statistics and mailbox contents.

    Attributes:
        final_time: Clock value the summary was taken at.
        delivered_count: Messages handed to a registered recipient.
        dropped_count: Messages dropped at send time.
        failed_count: Messages discarded because the recipient was unknown.
        average_latency: Mean realised latency, None when nothing was delivered.
        mailboxes: Per-node received records, in node registration order.
    """

    final_time: float
    delivered_count: int
    dropped_count: int
    failed_count: int
    average_latency: float | None
    mailboxes: dict[str, tuple[ReceivedRecord, ...]] = field(default_factory=dict)

    def render(self) -> str:
        """Format the summary as a multi-line text report."""
        lines = [
            f"=== Simulation Summary (t={self.final_time:.3f}) ===",
            f"Delivered messages: {self.delivered_count}",
            f"Dropped messages:   {self.dropped_count}",
        ]
        if self.failed_count:
            lines.append(f"Failed deliveries:  {self.failed_count}")
        if self.average_latency is not None:
            lines.append(f"Average latency:    {self.average_latency:.3f} s")
        lines.append("")
        lines.append("Per-node inbox contents:")
        for name, mailbox in self.mailboxes.items():
            lines.append(f"Node {name}:")
            for rec in mailbox:
                lines.append(
                    f"  at t={rec.received_time:.3f}"
                    f"  from={rec.sender}"
                    f"  id={rec.message_id}"
                    f"  latency={rec.latency:.3f}"
                    f'  payload="{rec.payload}"'
                )
        return "\n".join(lines)


class DeliveryNetwork:
    """Simulated unreliable network between named endpoints.

    The network owns its random source and its comms log file. Use it as a
    context manager, or call :meth:`close`, so the log is released.

    Example:
        >>> with DeliveryNetwork(1.0, 0.0, 0.0, log_path=None, seed=1) as net:
        ...     net.register_node("B")
        ...     net.send("A", "B", "hi", now=0.0)
        ...     net.advance(1.0)
    """

    def __init__(
        self,
        base_latency: float,
        jitter: float,
        drop_probability: float,
        *,
        seed: int | None = None,
        log_path: str | Path | None = "comms_log.csv",
        echo: bool = True,
        console: TextIO | None = None,
        key: bytes = SHARED_KEY,
    ) -> None:
        """Create the network and open its comms log.

        Args:
            base_latency: Mean travel time in seconds.
            jitter: Half-width of the uniform latency perturbation.
            drop_probability: Chance in [0, 1] that a message is dropped.
            seed: Seed for the network's random source. None seeds from the OS.
            log_path: CSV comms log location, truncated on open. None disables it.
            echo: Whether to print the console trace.
            console: Stream for the console trace. None means stdout.
            key: Obfuscation key applied to payloads in transit.

        Raises:
            CommsLogError: If the comms log cannot be opened.
        """
        self.base_latency = base_latency
        self.jitter = jitter
        self.drop_probability = drop_probability

        self._rng = random.Random(seed)
        self._key = key
        self._echo = echo
        self._console = console
        self._log = CommsLog(log_path) if log_path is not None else None

        self._nodes: dict[str, EndpointNode] = {}
        self._in_transit: list[MessageRecord] = []
        self._dropped: list[MessageRecord] = []

        self._next_message_id = 1
        self._delivered_count = 0
        self._failed_count = 0
        self._total_latency = 0.0

        logger.info(
            "Network created: base_latency=%.3f, jitter=%.3f, drop_probability=%.3f",
            base_latency,
            jitter,
            drop_probability,
        )

    # -- nodes ------------------------------------------------------------

    def register_node(self, name: str) -> EndpointNode:
        """Register an endpoint and return it.

        A name that is already registered keeps its original node; the
        existing node is returned and nothing is rebound.
        """
        existing = self._nodes.get(name)
        if existing is not None:
            logger.warning("Node %s already registered, keeping existing mailbox", name)
            return existing
        node = EndpointNode(name)
        self._nodes[name] = node
        logger.debug("Registered node %s", name)
        return node

    def get_node(self, name: str) -> EndpointNode | None:
        return self._nodes.get(name)

    @property
    def nodes(self) -> Mapping[str, EndpointNode]:
        """Registered nodes by name, in registration order."""
        return MappingProxyType(self._nodes)

    # -- traffic ----------------------------------------------------------

    def send(self, sender: str, recipient: str, payload: str, now: float) -> MessageRecord:
        """Put a message on the wire at time ``now``.

        The drop decision is drawn first, then the latency. Both drops and
        regular sends get a delivery time; only regular sends are ever
        delivered.

        Returns:
            The scheduled message record.

        Raises:
            CommsLogError: If the comms log has been closed.
        """
        wire = obfuscate_text(payload, self._key)
        dropped = self._rng.random() < self.drop_probability
        latency = self._sample_latency()

        msg = MessageRecord(
            id=self._next_message_id,
            sender=sender,
            recipient=recipient,
            plaintext=payload,
            wire_payload=wire,
            send_time=now,
            deliver_time=now + latency,
            dropped=dropped,
        )
        self._next_message_id += 1

        if dropped:
            self._dropped.append(msg)
            tag, event = "DROP SCHEDULED", CommsEvent.DROP_SCHEDULED
        else:
            self._in_transit.append(msg)
            tag, event = "SEND", CommsEvent.SEND

        self._trace(
            now,
            f"[{tag}] {sender} -> {recipient}  msgId={msg.id}"
            f"  payload=<OBFUSCATED len={len(wire)}>",
        )
        # Latency is not known to the log until delivery.
        self._write(event, now, msg, 0.0, payload)
        logger.debug(
            "%s msg %d %s -> %s due at %.3f",
            event,
            msg.id,
            sender,
            recipient,
            msg.deliver_time,
            extra={"sim_time": now},
        )
        return msg

    def advance(self, now: float) -> list[ReceivedRecord]:
        """Deliver every in-transit message due at or before ``now``.

        Messages are processed in send order. A message addressed to an
        unregistered node is discarded with a ``[DELIVERY FAILED]`` trace. It
        leaves the delivery statistics unchanged and only bumps
        ``failed_count``.

        Returns:
            The records appended to mailboxes during this call.

        Raises:
            CommsLogError: If the comms log has been closed and a message
                comes due.
        """
        delivered: list[ReceivedRecord] = []
        remaining: list[MessageRecord] = []
        for msg in self._in_transit:
            if msg.deliver_time <= now:
                record = self._deliver(msg, now)
                if record is not None:
                    delivered.append(record)
            else:
                remaining.append(msg)
        self._in_transit = remaining
        return delivered

    def _deliver(self, msg: MessageRecord, now: float) -> ReceivedRecord | None:
        dest = self._nodes.get(msg.recipient)
        if dest is None:
            self._failed_count += 1
            self._trace(now, f"[DELIVERY FAILED] unknown node {msg.recipient} for msgId={msg.id}")
            logger.warning(
                "Discarding msg %d: unknown recipient %s",
                msg.id,
                msg.recipient,
                extra={"sim_time": now},
            )
            return None

        latency = msg.latency
        self._delivered_count += 1
        self._total_latency += latency

        plaintext = deobfuscate_text(msg.wire_payload, self._key)
        record = ReceivedRecord(
            message_id=msg.id,
            sender=msg.sender,
            payload=plaintext,
            received_time=msg.deliver_time,
            latency=latency,
        )
        dest.receive(record)

        self._trace(
            now,
            f"[DELIVER] {msg.sender} -> {msg.recipient}  msgId={msg.id}"
            f"  latency={latency:.3f}"
            f'  payload="{plaintext}"',
        )
        self._write(CommsEvent.DELIVER, now, msg, latency, plaintext)
        return record

    def _sample_latency(self) -> float:
        return self.base_latency + self._rng.uniform(-self.jitter, self.jitter)

    def _trace(self, now: float, line: str) -> None:
        if self._echo:
            print(f"[t={now:.3f}] {line}", file=self._console)

    def _write(
        self, event: CommsEvent, now: float, msg: MessageRecord, latency: float, payload: str
    ) -> None:
        if self._log is not None:
            self._log.record(
                event,
                now,
                msg.id,
                msg.sender,
                msg.recipient,
                latency,
                event is CommsEvent.DROP_SCHEDULED,
                payload,
            )

    # -- statistics -------------------------------------------------------

    @property
    def sent_count(self) -> int:
        return self._next_message_id - 1

    @property
    def delivered_count(self) -> int:
        return self._delivered_count

    @property
    def dropped_count(self) -> int:
        return len(self._dropped)

    @property
    def failed_count(self) -> int:
        return self._failed_count

    @property
    def in_transit_count(self) -> int:
        return len(self._in_transit)

    @property
    def in_transit(self) -> tuple[MessageRecord, ...]:
        return tuple(self._in_transit)

    @property
    def dropped(self) -> tuple[MessageRecord, ...]:
        return tuple(self._dropped)

    @property
    def average_latency(self) -> float | None:
        if self._delivered_count == 0:
            return None
        return self._total_latency / self._delivered_count

    def summary(self, final_time: float) -> NetworkSummary:
        """Collect counts, mean latency and every mailbox."""
        return NetworkSummary(
            final_time=final_time,
            delivered_count=self._delivered_count,
            dropped_count=self.dropped_count,
            failed_count=self._failed_count,
            average_latency=self.average_latency,
            mailboxes={name: node.mailbox for name, node in self._nodes.items()},
        )

    # -- lifecycle --------------------------------------------------------

    def close(self) -> None:
        """Release the comms log. Safe to call more than once."""
        if self._log is not None:
            self._log.close()

    def __enter__(self) -> DeliveryNetwork:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
