# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory event bus for real-time fan-out.

Grade publication raises an event here after the durable write. The bus
is in-process: only handlers registered in the same process receive the
event, so a websocket push endpoint must run in this service and
subscribe at startup. Publishing is fire-and-forget from the publisher's
point of view: handler failures are logged and never propagate.

Example:
    from src.infrastructure.events import get_event_bus, EventTypes

    event_bus = get_event_bus()

    async def push_to_sockets(event):
        ...

    event_bus.subscribe(EventTypes.Grades.PUBLISHED, push_to_sockets)
    event_bus.subscribe("grades.*", audit_handler)

    await event_bus.publish(
        EventTypes.Grades.PUBLISHED,
        {"class_id": "...", "recipient_ids": [...]},
        tenant_code="institution-id",
    )
"""

import asyncio
import fnmatch
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable
from uuid import uuid4

from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

# Type alias for event handlers
EventHandler = Callable[["EventData"], Awaitable[None]]


@dataclass
class EventData:
    """Container for event data with metadata.

    Attributes:
        event_type: The event type string.
        payload: The event payload data.
        event_id: Unique event identifier.
        timestamp: When the event was published.
        tenant_code: Institution the event belongs to.
    """

    event_type: str
    payload: dict[str, Any]
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utc_now)
    tenant_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
            "tenant_code": self.tenant_code,
        }


class EventBus:
    """In-memory async event bus with wildcard subscriptions.

    Designed for single-process async use; cross-process delivery is the
    subscriber's responsibility.
    """

    def __init__(self) -> None:
        """Initialize the event bus."""
        self._handlers: dict[str, list[EventHandler]] = {}
        self._pattern_handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type or wildcard pattern.

        Args:
            event_type: Event type string or pattern with wildcards.
            handler: Async function called with the EventData.
        """
        if "*" in event_type or "?" in event_type:
            self._pattern_handlers.setdefault(event_type, []).append(handler)
        else:
            self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to: %s", event_type)

    async def publish(
        self,
        event_type: str,
        payload: dict[str, Any],
        tenant_code: str | None = None,
    ) -> EventData:
        """Publish an event to all matching subscribers.

        Handlers run concurrently. A failing handler is logged and does
        not affect the others or the publisher.

        Args:
            event_type: The event type string.
            payload: Event data dictionary.
            tenant_code: Institution the event belongs to.

        Returns:
            EventData object with event metadata.
        """
        event = EventData(event_type=event_type, payload=payload, tenant_code=tenant_code)

        handlers_to_call: list[EventHandler] = list(self._handlers.get(event_type, []))
        for pattern, pattern_handlers in self._pattern_handlers.items():
            if fnmatch.fnmatch(event_type, pattern):
                handlers_to_call.extend(pattern_handlers)

        if not handlers_to_call:
            logger.debug("No handlers for event: %s", event_type)
            return event

        async def safe_call(handler: EventHandler) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "Handler error for event %s: %s",
                    event_type,
                    str(e),
                    exc_info=True,
                )

        await asyncio.gather(*[safe_call(handler) for handler in handlers_to_call])
        return event

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._handlers.clear()
        self._pattern_handlers.clear()


# Singleton instance
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the singleton event bus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the event bus singleton. Used by tests."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
