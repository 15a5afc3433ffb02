# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event type constants.

Using constants instead of string literals keeps publishers and
subscribers agreeing on event names.
"""


class EventTypes:
    """All event types organized by domain."""

    class Grades:
        """Grade sheet events."""

        PUBLISHED = "grades.published"
