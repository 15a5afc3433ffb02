# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event infrastructure for real-time fan-out.

Components:
- EventBus: In-memory pub/sub with pattern matching
- EventTypes: Centralized event type constants
"""

from src.infrastructure.events.bus import (
    EventBus,
    EventData,
    EventHandler,
    get_event_bus,
    reset_event_bus,
)
from src.infrastructure.events.types import EventTypes

__all__ = [
    "EventBus",
    "EventData",
    "EventHandler",
    "get_event_bus",
    "reset_event_bus",
    "EventTypes",
]
