# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    grade_sheets: Grade sheet viewing, cell writes and publication.
"""

from fastapi import APIRouter

from src.api.v1 import grade_sheets

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(grade_sheets.router, prefix="/grade-sheets", tags=["Grade Sheets"])

__all__ = ["router"]
