# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification channel.

This channel creates notification records in the database that are
displayed in the recipient's inbox.
"""

from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models.notification import Notification
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)
from src.utils.datetime import days_from_now


class InAppChannel(BaseChannel):
    """In-app notification channel.

    Requires a database session to be set via set_session() before
    sending. Records are flushed but not committed; the caller owns
    the transaction.
    """

    DEFAULT_EXPIRATION_DAYS = 30

    def __init__(self, expiration_days: int = DEFAULT_EXPIRATION_DAYS) -> None:
        """Initialize the in-app channel.

        Args:
            expiration_days: Days until a notification expires.
        """
        super().__init__()
        self._session: AsyncSession | None = None
        self._expiration_days = expiration_days

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.IN_APP

    def set_session(self, session: AsyncSession) -> None:
        """Set the database session for this channel.

        Args:
            session: Async database session.
        """
        self._session = session

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Create an in-app notification record.

        Args:
            payload: The notification payload.

        Returns:
            ChannelResult with delivery status.
        """
        if self._session is None:
            return self.create_failure_result(
                payload, "Database session not set. Call set_session() first."
            )

        try:
            notification = Notification(
                id=str(uuid4()),
                user_id=payload.recipient_id,
                notification_type=payload.notification_type,
                title=payload.title,
                message=payload.message,
                data=dict(payload.data),
                expires_at=days_from_now(self._expiration_days),
            )
            self._session.add(notification)
            await self._session.flush()
        except Exception as e:
            self.logger.error(
                "Failed to create in-app notification for user %s: %s",
                payload.recipient_id,
                str(e),
                exc_info=True,
            )
            return self.create_failure_result(payload, f"Database error: {str(e)}")

        self.logger.debug(
            "Created in-app notification %s for user %s",
            notification.id,
            payload.recipient_id,
        )
        return self.create_success_result(payload, message_id=notification.id)
