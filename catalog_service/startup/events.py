"""
Startup Events
Structured sink for startup progress, injected into the checks, sync engine,
orchestrator and coordinator.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class EventSink(ABC):
    """Receives named events with structured fields."""

    @abstractmethod
    def emit(self, event: str, **fields: Any) -> None:
        raise NotImplementedError

    def snapshot(self) -> Dict[str, int]:
        """Per-event counts, if the sink keeps them."""
        return {}


class LoggingEventSink(EventSink):
    """
    Event sink backed by the logging module.

    Each event becomes one log record carrying the event name and fields in
    `extra`, and bumps a per-event counter.
    """

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.log = log or logger
        self.level = level
        self.counts: Counter = Counter()

    def emit(self, event: str, **fields: Any) -> None:
        self.counts[event] += 1
        self.log.log(
            self.level,
            f"{event} {fields}" if fields else event,
            extra={"event": event, "event_fields": fields},
        )

    def snapshot(self) -> Dict[str, int]:
        """Event counts so far."""
        return dict(self.counts)
