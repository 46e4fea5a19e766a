"""Progress sinks — optional side channel for crawl events.

Events are informational only ("testing member X"); nothing in the crawl
result depends on them.
"""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

# Events at these names are routed to DEBUG, everything else to INFO
_DEBUG_EVENTS = frozenset({"invocation"})


class Sink(Protocol):
    """Receiver of structured crawl events — injectable for testing."""

    def emit(self, event: str, **fields) -> None:
        ...


class LoggingSink:
    """Default sink: forwards events to the ``smokecrawl.sink`` logger."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def emit(self, event: str, **fields) -> None:
        level = logging.DEBUG if event in _DEBUG_EVENTS else logging.INFO
        if not self.log.isEnabledFor(level):
            return
        detail = " ".join(f"{k}={v}" for k, v in fields.items())
        self.log.log(level, "%s %s", event, detail)


class NullSink:
    """Discards all events."""

    def emit(self, event: str, **fields) -> None:
        return None
