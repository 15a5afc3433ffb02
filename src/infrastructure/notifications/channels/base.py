# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base classes for notification channels.

This module defines the abstract base class and shared types
for all notification channels. Each channel handles delivery
through a specific medium.

Channel implementations must be async and report failures through
ChannelResult instead of raising.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from src.utils.datetime import utc_now


class ChannelType(str, Enum):
    """Available notification channel types."""

    IN_APP = "in_app"


class DeliveryStatus(str, Enum):
    """Delivery status for a channel."""

    SENT = "sent"
    FAILED = "failed"


@dataclass
class NotificationPayload:
    """Payload for sending a notification.

    Attributes:
        notification_type: Type of notification (e.g. "grades_published").
        title: Notification title.
        message: Notification message body.
        recipient_id: User ID of the recipient.
        data: Additional data for the notification.
    """

    notification_type: str
    title: str
    message: str
    recipient_id: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChannelResult:
    """Result of a channel send operation.

    Attributes:
        channel: Which channel was used.
        status: Delivery status.
        recipient_id: Who the notification was addressed to.
        message_id: Identifier of the stored message (if available).
        error_message: Error message if failed.
        sent_at: When the message was sent.
    """

    channel: ChannelType
    status: DeliveryStatus
    recipient_id: str
    message_id: str | None = None
    error_message: str | None = None
    sent_at: datetime | None = None

    @property
    def ok(self) -> bool:
        """Whether the send succeeded."""
        return self.status == DeliveryStatus.SENT

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging or API responses."""
        return {
            "channel": self.channel.value,
            "status": self.status.value,
            "recipient_id": self.recipient_id,
            "message_id": self.message_id,
            "error_message": self.error_message,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }


class BaseChannel(ABC):
    """Abstract base class for notification channels."""

    def __init__(self) -> None:
        """Initialize the channel."""
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        ...

    @abstractmethod
    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Send a notification through this channel.

        Args:
            payload: The notification payload to send.

        Returns:
            ChannelResult with delivery status.
        """
        ...

    def create_success_result(
        self,
        payload: NotificationPayload,
        message_id: str | None = None,
    ) -> ChannelResult:
        """Create a successful channel result."""
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.SENT,
            recipient_id=payload.recipient_id,
            message_id=message_id,
            sent_at=utc_now(),
        )

    def create_failure_result(
        self,
        payload: NotificationPayload,
        error_message: str,
    ) -> ChannelResult:
        """Create a failed channel result."""
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.FAILED,
            recipient_id=payload.recipient_id,
            error_message=error_message,
            sent_at=utc_now(),
        )
