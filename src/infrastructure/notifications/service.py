# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification service for orchestrating notification delivery.

The grade publication workflow calls notify_users() after the grades
are committed, which stores one in-app notification per recipient in
a single transaction.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.notifications.channels import (
    ChannelResult,
    InAppChannel,
    NotificationPayload,
)

logger = logging.getLogger(__name__)


class NotificationDeliveryError(Exception):
    """Raised when notifications could not be stored."""


@dataclass
class NotificationResult:
    """Result of a notification batch.

    Attributes:
        recipients_count: Number of recipients notified.
        channel_results: Results per recipient.
    """

    recipients_count: int
    channel_results: list[ChannelResult] = field(default_factory=list)


class NotificationService:
    """Service for sending notifications to users.

    Attributes:
        in_app: The in-app channel used for delivery.
    """

    def __init__(self, expiration_days: int = InAppChannel.DEFAULT_EXPIRATION_DAYS) -> None:
        """Initialize the notification service.

        Args:
            expiration_days: Lifetime of created in-app notifications.
        """
        self.in_app = InAppChannel(expiration_days=expiration_days)

    async def notify_users(
        self,
        session: AsyncSession,
        user_ids: list[str],
        notification_type: str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> NotificationResult:
        """Create an in-app notification for each user and commit them.

        The batch is all-or-nothing: if any record fails, the pending
        notifications are rolled back and NotificationDeliveryError is
        raised.

        Args:
            session: Database session owned by the caller.
            user_ids: Recipient user IDs.
            notification_type: Type of notification.
            title: Notification title.
            message: Notification message.
            data: Additional data stored with each notification.

        Returns:
            NotificationResult with per-recipient results.

        Raises:
            NotificationDeliveryError: If any notification failed.
        """
        if not user_ids:
            return NotificationResult(recipients_count=0)

        self.in_app.set_session(session)
        results: list[ChannelResult] = []
        for user_id in user_ids:
            payload = NotificationPayload(
                notification_type=notification_type,
                title=title,
                message=message,
                recipient_id=user_id,
                data=data or {},
            )
            result = await self.in_app.send(payload)
            results.append(result)
            if not result.ok:
                await session.rollback()
                raise NotificationDeliveryError(
                    f"Notification for user {user_id} failed: {result.error_message}"
                )

        await session.commit()
        logger.info(
            "Stored %d %s notifications",
            len(results),
            notification_type,
        )
        return NotificationResult(recipients_count=len(results), channel_results=results)


# Singleton instance management
_service_instance: NotificationService | None = None


def get_notification_service(
    expiration_days: int = InAppChannel.DEFAULT_EXPIRATION_DAYS,
) -> NotificationService:
    """Get or create the notification service singleton.

    Args:
        expiration_days: Lifetime of created in-app notifications.

    Returns:
        NotificationService instance.
    """
    global _service_instance
    if _service_instance is None:
        _service_instance = NotificationService(expiration_days=expiration_days)
    return _service_instance
