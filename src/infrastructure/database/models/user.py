# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User model (students, teachers, staff) as read by the grade engine."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, uuid_pk


class User(Base, TimestampMixin):
    """A person in an institution.

    Names follow the Hispanic convention of two given names and two
    family names; sheets sort students by the first family name.
    """

    __tablename__ = "users"

    id: Mapped[str] = uuid_pk()
    institution_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("institutions.id"), nullable=False, index=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    second_last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="student")

    @property
    def display_name(self) -> str:
        """Return "first last" for display."""
        return f"{self.first_name} {self.last_name}"
