"""
Event dispatcher for save/delete completion signals.

Lane operations emit an event once their collaborator call has succeeded.
Callers that own aggregate views (lane counts, lane lists per account or
lane mapping) subscribe and invalidate those views themselves.

Usage:
    from laneops.services.event_dispatcher import subscribe, EventType

    async def refresh_counts(event):
        ...

    subscribe(EventType.LANES_SAVED, refresh_counts)
"""
import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Completion signals emitted by the lane services."""
    LANES_SAVED = "lanes.saved"
    LANE_SAVED = "lane.saved"
    LANE_DELETED = "lane.deleted"
    LANE_VALIDATED = "lane.validated"
    LANE_TAT_COMPUTED = "lane.tat_computed"


@dataclass
class Event:
    """Represents an event to be dispatched."""
    type: EventType
    data: Dict[str, Any]
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())
    scope: Optional[str] = None


# Type for event handlers
EventHandler = Callable[[Event], Any]


class EventDispatcher:
    """
    In-process pub/sub for completion signals.

    Handler failures are logged and never propagate to the operation that
    emitted the event.
    """

    def __init__(self) -> None:
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to a specific event type."""
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)
        logger.debug(f"Handler subscribed to {event_type.value}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Global handler subscribed")

    def clear(self) -> None:
        self._handlers = {}
        self._global_handlers = []

    async def emit(self, event: Event) -> None:
        """Emit an event to all subscribers."""
        handlers = self._handlers.get(event.type, []) + self._global_handlers

        if not handlers:
            logger.debug(f"No handlers for event {event.type.value}")
            return

        # Run handlers concurrently
        tasks = []
        for handler in handlers:
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    tasks.append(result)
            except Exception as e:
                logger.error(f"Error in event handler for {event.type.value}: {e}")

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Error in async event handler for {event.type.value}: {result}")

        logger.debug(f"Event {event.type.value} dispatched to {len(handlers)} handlers")


# Global dispatcher instance
_dispatcher = EventDispatcher()


def get_dispatcher() -> EventDispatcher:
    """Get the global event dispatcher."""
    return _dispatcher


async def emit_event(
    event_type: EventType,
    data: Dict[str, Any],
    scope: Optional[str] = None,
    dispatcher: Optional[EventDispatcher] = None,
) -> None:
    """
    Emit an event to all subscribers.

    Args:
        event_type: Type of event
        data: Event data payload
        scope: Lane scope the event belongs to (e.g. "account:12")
        dispatcher: Dispatcher to use instead of the global one
    """
    event = Event(type=event_type, data=data, scope=scope)
    await (dispatcher or _dispatcher).emit(event)


def subscribe(event_type: EventType, handler: EventHandler) -> None:
    """Subscribe a handler to an event type."""
    _dispatcher.subscribe(event_type, handler)
