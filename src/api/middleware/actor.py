# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Actor context middleware.

Authentication happens upstream (API gateway / session service). The
gateway forwards the verified identity in trusted headers, which this
middleware turns into an Actor stored in request.state.actor and binds
the actor to the structured logging context for the request.

Example:
    GET /api/v1/grade-sheets/levels
    X-User-Id: 7f0c...
    X-Institution-Id: 91ab...
    X-User-Roles: teacher,coordinator
"""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.domains.grading.actor import Actor
from src.utils.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)

USER_HEADER = "X-User-Id"
INSTITUTION_HEADER = "X-Institution-Id"
ROLES_HEADER = "X-User-Roles"


def actor_from_headers(request: Request) -> Actor | None:
    """Build an Actor from the trusted identity headers, if present."""
    user_id = request.headers.get(USER_HEADER)
    institution_id = request.headers.get(INSTITUTION_HEADER)
    if not user_id or not institution_id:
        return None
    roles = [r.strip() for r in request.headers.get(ROLES_HEADER, "").split(",") if r.strip()]
    return Actor.build(id=user_id, tenant_id=institution_id, roles=roles)


class ActorMiddleware(BaseHTTPMiddleware):
    """Populates request.state.actor from gateway headers."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        """Process the request and resolve the actor.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler.

        Returns:
            HTTP response.
        """
        actor = actor_from_headers(request)
        request.state.actor = actor
        if actor is None:
            return await call_next(request)

        bind_context(actor_id=actor.id, institution_id=actor.tenant_id)
        logger.debug("Actor resolved", roles=sorted(actor.roles))
        try:
            return await call_next(request)
        finally:
            clear_context()


def get_actor_from_request(request: Request) -> Actor | None:
    """Get the actor stored on the request, if any."""
    return getattr(request.state, "actor", None)
