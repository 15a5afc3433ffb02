# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the grade sheet engine.

All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ) and every
Python datetime produced here is timezone-aware, so publication
timestamps and notification expiries never mix naive and aware values.

Usage:
------
    from src.utils.datetime import utc_now

    published_at = utc_now()
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def days_from_now(days: int) -> datetime:
    """Get a datetime N days from now.

    Args:
        days: Number of days to add.

    Returns:
        Timezone-aware UTC datetime.
    """
    return utc_now() + timedelta(days=days)
