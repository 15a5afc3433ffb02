# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grading domain exceptions.

NotFoundError is raised both for missing records and for records that
belong to another institution, so callers cannot probe for the existence
of other tenants' data.
"""


class GradingError(Exception):
    """Base exception for grade sheet operations."""

    def __init__(
        self,
        message: str,
        code: str = "grading_error",
        original_error: Exception | None = None,
    ):
        self.message = message
        self.code = code
        self.original_error = original_error
        super().__init__(self.message)


class NotFoundError(GradingError):
    """Raised when a level, cycle, class or student is absent or outside the tenant."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            code="not_found",
        )
        self.resource = resource
        self.resource_id = resource_id


class ForbiddenError(GradingError):
    """Raised when the actor lacks the ownership or role required."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message=message, code="forbidden")


class ValidationFailure(GradingError):
    """Raised for out-of-range scores and malformed field routing."""

    def __init__(self, message: str, code: str = "validation_failed"):
        super().__init__(message=message, code=code)


class CycleLockedError(ValidationFailure):
    """Raised when writing to or publishing into a closed or inactive cycle."""

    def __init__(self, cycle_id: str, reason: str):
        super().__init__(
            message=f"Cannot modify grades: academic cycle is {reason}",
            code="cycle_locked",
        )
        self.cycle_id = cycle_id
        self.reason = reason
