"""Lifecycle event names and a recording sink.

Events are observational only; nothing in the installer or lock file depends on
a sink being present.
"""

import logging
from typing import Any

from .protocols import EventSinkProtocol

logger = logging.getLogger(__name__)

INSTALL_START = "install:start"
INSTALL_SYMLINK = "install:symlink"
INSTALL_COPY = "install:copy"
INSTALL_COMPLETE = "install:complete"
INSTALL_ERROR = "install:error"
INSTALL_ROLLBACK = "install:rollback"
REMOVE_COMPLETE = "remove:complete"
LOCK_READ = "lock:read"
LOCK_WRITE = "lock:write"
LOCK_MIGRATE = "lock:migrate"


class RecordingEventSink:
    """Event sink that keeps every emitted event in memory."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        self.events.append((event, payload))

    def named(self, event: str) -> list[dict[str, Any]]:
        """Payloads of all events with the given name."""
        return [payload for name, payload in self.events if name == event]


def emit(sink: EventSinkProtocol | None, event: str, **payload: Any) -> None:
    """Emit to an optional sink. Sink failures never affect the caller."""
    if sink is None:
        return
    try:
        sink.emit(event, payload)
    except Exception as e:
        logger.debug(f"Event sink failed for {event}: {e}")
