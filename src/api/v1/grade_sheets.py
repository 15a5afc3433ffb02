# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade sheet API endpoints.

This module provides endpoints for the grade sheet (sábana):
- GET /levels - Levels the actor can open a sheet for
- GET /cycles - Academic cycles of the institution
- GET /{level_id}/{cycle_id} - Full grade sheet of a level
- PATCH /grades - Write a single grade cell
- POST /classes/{class_id}/publish - Publish a class's draft grades
"""

import logging
from typing import NoReturn

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from src.api.dependencies import CurrentActor, GradeSheets
from src.domains.grading import (
    CycleSummary,
    ForbiddenError,
    GradeWriteResult,
    GradingError,
    LevelSummary,
    NotFoundError,
    PublicationSummary,
    Sheet,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class GradeWriteRequest(BaseModel):
    """Request to write one grade cell."""

    class_id: str = Field(description="Class section ID")
    student_id: str = Field(description="Student user ID")
    field: str = Field(
        description="p1..p4, rp1..rp4, cpc_nota, cpex_nota, RA1..RA10, RAn_RP1, RAn_RP2 or observations",
    )
    value: float | str | None = Field(
        default=None,
        description="Score in [0, 100], remarks text, or null to clear",
    )
    competency_code: str | None = Field(
        default=None,
        description="Competency the score belongs to (COMUNICATIVA, LOGICO, ...)",
    )


class PublishRequest(BaseModel):
    """Request to publish a class's grades."""

    cycle_id: str = Field(description="Academic cycle ID")


def _raise_http(error: GradingError) -> NoReturn:
    """Translate a grading error into an HTTP error."""
    if isinstance(error, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, ForbiddenError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error.message)
    if isinstance(error, ValidationFailure):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": error.code, "message": error.message},
        )
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)


@router.get(
    "/levels",
    response_model=list[LevelSummary],
    summary="List levels",
    description="Grade levels available for the sheet, filtered by the actor's role.",
)
async def list_levels(actor: CurrentActor, service: GradeSheets) -> list[LevelSummary]:
    try:
        return await service.list_levels(actor.tenant_id, actor)
    except GradingError as e:
        _raise_http(e)


@router.get(
    "/cycles",
    response_model=list[CycleSummary],
    summary="List academic cycles",
)
async def list_cycles(actor: CurrentActor, service: GradeSheets) -> list[CycleSummary]:
    return await service.list_cycles(actor.tenant_id)


@router.get(
    "/{level_id}/{cycle_id}",
    response_model=Sheet,
    summary="Get grade sheet",
    description="Full grade matrix of a level for an academic cycle.",
)
async def get_sheet(
    level_id: str,
    cycle_id: str,
    actor: CurrentActor,
    service: GradeSheets,
) -> Sheet:
    """Get the grade sheet of a level.

    Args:
        level_id: Grade level ID.
        cycle_id: Academic cycle ID.
        actor: Authenticated actor.
        service: Grade sheet service.

    Returns:
        The assembled (or cached) sheet.

    Raises:
        HTTPException: 404 if not visible to the institution, 403 for non-staff.
    """
    try:
        return await service.get_sheet(level_id, cycle_id, actor.tenant_id, actor)
    except GradingError as e:
        _raise_http(e)


@router.patch(
    "/grades",
    response_model=GradeWriteResult,
    summary="Write a grade cell",
)
async def write_grade(
    data: GradeWriteRequest,
    actor: CurrentActor,
    service: GradeSheets,
) -> GradeWriteResult:
    """Write one grade cell.

    Raises:
        HTTPException: 404, 403, or 422 for closed cycles and invalid values.
    """
    try:
        return await service.write_grade(
            data.class_id,
            data.student_id,
            data.field,
            data.value,
            actor,
            competency_code=data.competency_code,
        )
    except GradingError as e:
        _raise_http(e)


@router.post(
    "/classes/{class_id}/publish",
    response_model=PublicationSummary,
    summary="Publish class grades",
)
async def publish_class(
    class_id: str,
    data: PublishRequest,
    actor: CurrentActor,
    service: GradeSheets,
) -> PublicationSummary:
    """Publish all draft grades of a class in a cycle.

    Raises:
        HTTPException: 404, 403, or 422 for a closed cycle.
    """
    logger.info("Publishing class %s cycle %s by %s", class_id, data.cycle_id, actor.id)
    try:
        return await service.publish_class(class_id, data.cycle_id, actor)
    except GradingError as e:
        _raise_http(e)
