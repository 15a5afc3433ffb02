# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Create grade and notification tables.

Adds the three grade tables (general, competency, technical) with the
uniqueness constraints their upserts conflict on, and the in-app
notifications inbox.

Revision ID: 001_grade_tables
Revises:
Create Date: 2025-09-01
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_grade_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _period_columns() -> list[sa.Column]:
    names = ["p1", "p2", "p3", "p4", "rp1", "rp2", "rp3", "rp4"]
    return [sa.Column(name, sa.Float, nullable=True) for name in names]


def _publication_columns() -> list[sa.Column]:
    return [
        sa.Column("published", sa.Boolean, server_default="false", nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_by", postgresql.UUID(as_uuid=False), nullable=True),
    ]


def _grade_keys(with_cycle: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column("student_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("class_id", postgresql.UUID(as_uuid=False), nullable=False),
    ]
    if with_cycle:
        columns.append(
            sa.Column("academic_cycle_id", postgresql.UUID(as_uuid=False), nullable=False)
        )
    return columns


def upgrade() -> None:
    """Create grade and notification tables."""

    op.create_table(
        "general_grades",
        _id_column(),
        *_grade_keys(),
        *_period_columns(),
        # Makeup exams (DO only)
        sa.Column("cpc_score", sa.Float, nullable=True),
        sa.Column("cpex_score", sa.Float, nullable=True),
        # Frozen by administrative finalization
        sa.Column("promoted_grade", sa.Float, nullable=True),
        sa.Column("situation", sa.String(20), nullable=True),
        sa.Column("observations", sa.Text, nullable=True),
        *_publication_columns(),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["class_id"], ["class_sections.id"]),
        sa.ForeignKeyConstraint(["academic_cycle_id"], ["academic_cycles.id"]),
        sa.UniqueConstraint(
            "student_id",
            "class_id",
            "academic_cycle_id",
            name="uq_general_grades_student_class_cycle",
        ),
    )
    op.create_index("ix_general_grades_student_id", "general_grades", ["student_id"])
    op.create_index("ix_general_grades_class_id", "general_grades", ["class_id"])

    op.create_table(
        "competency_grades",
        _id_column(),
        *_grade_keys(),
        sa.Column("competency", sa.String(30), nullable=False),
        *_period_columns(),
        *_publication_columns(),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["class_id"], ["class_sections.id"]),
        sa.ForeignKeyConstraint(["academic_cycle_id"], ["academic_cycles.id"]),
        sa.UniqueConstraint(
            "student_id",
            "class_id",
            "academic_cycle_id",
            "competency",
            name="uq_competency_grades_student_class_cycle_competency",
        ),
    )
    op.create_index("ix_competency_grades_student_id", "competency_grades", ["student_id"])
    op.create_index("ix_competency_grades_class_id", "competency_grades", ["class_id"])

    op.create_table(
        "technical_grades",
        _id_column(),
        *_grade_keys(with_cycle=False),
        sa.Column("outcome_code", sa.String(10), nullable=False),
        sa.Column("score", sa.Float, nullable=True),
        sa.Column("rp1", sa.Float, nullable=True),
        sa.Column("rp2", sa.Float, nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["class_id"], ["class_sections.id"]),
        sa.UniqueConstraint(
            "student_id",
            "class_id",
            "outcome_code",
            name="uq_technical_grades_student_class_outcome",
        ),
    )
    op.create_index("ix_technical_grades_student_id", "technical_grades", ["student_id"])
    op.create_index("ix_technical_grades_class_id", "technical_grades", ["class_id"])

    op.create_table(
        "notifications",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("notification_type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("data", postgresql.JSONB, server_default="{}", nullable=False),
        sa.Column("is_read", sa.Boolean, server_default="false", nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    """Drop grade and notification tables."""
    op.drop_table("notifications")
    op.drop_table("technical_grades")
    op.drop_table("competency_grades")
    op.drop_table("general_grades")
