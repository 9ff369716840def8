"""CSV event log for network traffic.

One row per send, scheduled drop and delivery:

    event,time,id,from,to,latency,dropped,payload

The payload column always holds the double-quoted plaintext so the log can be
audited; the obfuscated form never reaches the file. Node names are quoted
only when they contain a comma, quote or line break.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path
from typing import Any, TextIO

logger = logging.getLogger(__name__)

HEADER = "event,time,id,from,to,latency,dropped,payload"
_SPECIAL_CHARS = frozenset(',"\r\n')


class CommsEvent(StrEnum):
    """Event types written to the comms log."""

    SEND = "send"
    DROP_SCHEDULED = "drop_scheduled"
    DELIVER = "deliver"


class CommsLogError(Exception):
    """Raised when the comms log cannot be opened or written."""

    pass


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def _escape(text: str) -> str:
    """Quote a field only when it holds a delimiter, quote or line break."""
    if any(ch in text for ch in _SPECIAL_CHARS):
        return _quote(text)
    return text


class CommsLog:
    """Append-only CSV writer owning its file handle.

    The file is created fresh (truncating any previous run) when the log is
    constructed and stays open until :meth:`close`. Each row is flushed as it
    is written.

    Example:
        >>> with CommsLog("comms_log.csv") as log:
        ...     log.record(CommsEvent.SEND, 0.5, 1, "Drone0", "HQ", 0.0, False, "hi")
    """

    def __init__(self, path: str | Path) -> None:
        """Open ``path`` for writing and emit the header.

        Raises:
            CommsLogError: If the file cannot be opened.
        """
        self._path = Path(path)
        try:
            self._file: TextIO | None = self._path.open("w", encoding="utf-8", newline="")
        except OSError as e:
            raise CommsLogError(f"Cannot open comms log {self._path}: {e}") from e
        self._file.write(HEADER + "\n")
        self._file.flush()
        logger.debug("Opened comms log at %s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._file is None

    def record(
        self,
        event: CommsEvent,
        time: float,
        message_id: int,
        sender: str,
        recipient: str,
        latency: float,
        dropped: bool,
        payload: str,
    ) -> None:
        """Write one event row.

        Raises:
            CommsLogError: If the log has been closed.
        """
        if self._file is None:
            raise CommsLogError(f"Comms log {self._path} is closed")
        row = ",".join(
            [
                str(event),
                repr(float(time)),
                str(message_id),
                _escape(sender),
                _escape(recipient),
                repr(float(latency)),
                "1" if dropped else "0",
                _quote(payload),
            ]
        )
        self._file.write(row + "\n")
        self._file.flush()

    def close(self) -> None:
        """Flush and release the file. Calling it again does nothing."""
        if self._file is None:
            return
        self._file.close()
        self._file = None
        logger.debug("Closed comms log at %s", self._path)

    def __enter__(self) -> CommsLog:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
