# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL connections.

This package provides the SQLAlchemy async connection to the school
database and the ORM models for the records the grade sheet engine reads
(levels, cycles, classes, enrollments) and owns (grades, notifications).

Example:
    from src.infrastructure.database import get_session

    async with get_session() as session:
        result = await session.execute(select(GradeLevel))
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    get_session,
    get_sessionmaker,
    init_database,
)

__all__ = [
    "DatabaseError",
    "check_database_connection",
    "close_database",
    "get_session",
    "get_sessionmaker",
    "init_database",
]
