# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification system.

Delivers in-app notifications (database records) to users. Grade
publication uses it to tell enrolled students their grades are visible.

Usage:
    from src.infrastructure.notifications import get_notification_service

    service = get_notification_service()
    result = await service.notify_users(
        session,
        user_ids=["..."],
        notification_type="grades_published",
        title="Calificaciones publicadas",
        message="Tus calificaciones de Matemática ya están disponibles.",
    )
"""

from src.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    DeliveryStatus,
    InAppChannel,
    NotificationPayload,
)
from src.infrastructure.notifications.service import (
    NotificationDeliveryError,
    NotificationResult,
    NotificationService,
    get_notification_service,
)

__all__ = [
    # Service
    "NotificationService",
    "NotificationResult",
    "NotificationDeliveryError",
    "get_notification_service",
    # Channel types
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "DeliveryStatus",
    "NotificationPayload",
    # Channels
    "InAppChannel",
]
