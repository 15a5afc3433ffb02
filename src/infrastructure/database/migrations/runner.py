# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migration runner.

Applies the grade table migrations programmatically with alembic
operations, tracking the applied revision in alembic_version.

Example:
    from src.infrastructure.database.migrations.runner import run_migrations

    applied = await run_migrations()
"""

import importlib
import logging
from typing import Any, Callable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from src.core.config import get_settings

logger = logging.getLogger(__name__)

# Applied in this order
MIGRATIONS = [
    "001_grade_tables",
]

_VERSIONS_PACKAGE = "src.infrastructure.database.migrations.versions"


def pending_migrations(
    current_version: str | None,
    target_revision: str | None = None,
) -> list[str]:
    """List the migrations still to apply.

    Args:
        current_version: Revision recorded in the database, if any.
        target_revision: Stop after this revision. None means the latest.

    Returns:
        Revision IDs in application order. Empty if the recorded or
        target revision is unknown.
    """
    if current_version is None:
        start = 0
    elif current_version in MIGRATIONS:
        start = MIGRATIONS.index(current_version) + 1
    else:
        logger.warning("Database revision %s is not a known migration", current_version)
        return []

    if target_revision is None:
        end = len(MIGRATIONS)
    elif target_revision in MIGRATIONS:
        end = MIGRATIONS.index(target_revision) + 1
    else:
        logger.warning("Target revision %s not found", target_revision)
        return []

    return MIGRATIONS[start:end]


async def run_migrations(
    db_url: str | None = None,
    target_revision: str | None = None,
) -> list[str]:
    """Apply pending migrations.

    Args:
        db_url: Database URL (asyncpg). Defaults to the configured database.
        target_revision: Optional revision to stop at.

    Returns:
        Revision IDs applied by this call.
    """
    engine = create_async_engine(db_url or get_settings().database.url, echo=False)
    try:
        await _ensure_version_table(engine)
        current = await _get_current_version(engine)
        logger.info("Current migration version: %s", current or "None")

        to_apply = pending_migrations(current, target_revision)
        if not to_apply:
            logger.info("No pending migrations")
            return []

        for revision in to_apply:
            await _apply_migration(engine, revision)
            logger.info("Applied migration: %s", revision)
        return to_apply
    finally:
        await engine.dispose()


async def get_migration_status(db_url: str | None = None) -> dict[str, Any]:
    """Report the database revision and pending migrations."""
    engine = create_async_engine(db_url or get_settings().database.url, echo=False)
    try:
        await _ensure_version_table(engine)
        current = await _get_current_version(engine)
        pending = pending_migrations(current)
        return {
            "current_version": current,
            "latest_version": MIGRATIONS[-1],
            "pending_migrations": pending,
            "is_up_to_date": not pending,
        }
    finally:
        await engine.dispose()


async def _ensure_version_table(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.execute(
            text("""
                CREATE TABLE IF NOT EXISTS alembic_version (
                    version_num VARCHAR(128) NOT NULL,
                    CONSTRAINT alembic_version_pkc PRIMARY KEY (version_num)
                )
            """)
        )


async def _get_current_version(engine: AsyncEngine) -> str | None:
    async with engine.connect() as conn:
        result = await conn.execute(text("SELECT version_num FROM alembic_version LIMIT 1"))
        row = result.fetchone()
        return row[0] if row else None


def load_upgrade(revision: str) -> Callable[[], None]:
    """Import a migration module and return its upgrade function.

    Raises:
        ImportError: If the migration module cannot be imported.
        ValueError: If the module has no upgrade().
    """
    try:
        module = importlib.import_module(f"{_VERSIONS_PACKAGE}.{revision}")
    except ImportError as e:
        raise ImportError(f"Cannot import migration {revision}: {e}") from e

    upgrade = getattr(module, "upgrade", None)
    if upgrade is None:
        raise ValueError(f"Migration {revision} has no upgrade() function")
    return upgrade


async def _apply_migration(engine: AsyncEngine, revision: str) -> None:
    """Run one migration and record it, in a single transaction."""
    upgrade = load_upgrade(revision)
    async with engine.begin() as conn:
        await conn.run_sync(_run_upgrade_sync, upgrade)
        await conn.execute(text("DELETE FROM alembic_version"))
        await conn.execute(
            text("INSERT INTO alembic_version (version_num) VALUES (:version)"),
            {"version": revision},
        )


def _run_upgrade_sync(connection, upgrade: Callable[[], None]) -> None:
    """Run an upgrade with alembic's operation proxy bound to the connection."""
    from alembic.operations import Operations
    from alembic.runtime.migration import MigrationContext

    context = MigrationContext.configure(connection)
    with Operations.context(context):
        upgrade()
