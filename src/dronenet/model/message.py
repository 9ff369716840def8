"""Message records and endpoint mailboxes."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class MessageRecord:
    """A message handed to the network.

    ``wire_payload`` is the obfuscated form carried while in transit.
    ``deliver_time`` is fixed at send time, even for dropped messages.
    """

    id: int
    sender: str
    recipient: str
    plaintext: str
    wire_payload: bytes
    send_time: float
    deliver_time: float
    dropped: bool = False

    @property
    def latency(self) -> float:
        """Scheduled travel time."""
        return self.deliver_time - self.send_time


@dataclass(frozen=True)
class ReceivedRecord:
    """A message as seen by the endpoint that received it."""

    message_id: int
    sender: str
    payload: str
    received_time: float
    latency: float


@dataclass
class EndpointNode:
    """A named network endpoint with an append-only mailbox."""

    name: str
    _mailbox: list[ReceivedRecord] = field(default_factory=list, init=False, repr=False)

    @property
    def mailbox(self) -> tuple[ReceivedRecord, ...]:
        """Received records in arrival order."""
        return tuple(self._mailbox)

    def receive(self, record: ReceivedRecord) -> None:
        self._mailbox.append(record)

    def __len__(self) -> int:
        return len(self._mailbox)
