# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware."""

from src.api.middleware.actor import ActorMiddleware, get_actor_from_request

__all__ = ["ActorMiddleware", "get_actor_from_request"]
