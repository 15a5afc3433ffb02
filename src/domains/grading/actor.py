# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authenticated actor as supplied by the upstream auth layer.

Roles are coarse claims. Resource-level checks (teacher of record,
coordinator of a level) are re-derived by the grading services.
"""

from dataclasses import dataclass, field

DIRECTOR_ROLES = frozenset({"director"})
COORDINATOR_ROLES = frozenset({"coordinator", "academic_coordinator"})
TEACHER_ROLES = frozenset({"teacher"})


@dataclass(frozen=True)
class Actor:
    """The user performing an operation.

    Attributes:
        id: User ID.
        tenant_id: Institution ID the user belongs to.
        roles: Role names, lower-cased.
    """

    id: str
    tenant_id: str
    roles: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(cls, id: str, tenant_id: str, roles: list[str] | tuple[str, ...]) -> "Actor":
        """Create an actor normalizing role names."""
        return cls(id=id, tenant_id=tenant_id, roles=frozenset(r.lower() for r in roles))

    @property
    def is_director(self) -> bool:
        return bool(self.roles & DIRECTOR_ROLES)

    @property
    def is_coordinator(self) -> bool:
        return bool(self.roles & COORDINATOR_ROLES)

    @property
    def is_teacher(self) -> bool:
        return bool(self.roles & TEACHER_ROLES)

    @property
    def is_staff(self) -> bool:
        """Whether the actor may view full grade sheets."""
        return self.is_director or self.is_coordinator or self.is_teacher
