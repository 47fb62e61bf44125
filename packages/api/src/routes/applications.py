# This project was developed with assistance from AI tools.
"""Application routes: deal lifecycle, step saves and section progress."""

import uuid
from typing import Any

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.errors import NotFoundError
from ..middleware.auth import CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.application import (
    ApplicationCreate,
    ApplicationCreated,
    ApplicationListResponse,
    ApplicationSnapshot,
)
from ..schemas.auth import UserContext
from ..schemas.intake import SaveStepResult
from ..schemas.progress import ProgressNotesRequest, ProgressResponse, SectionCompleteRequest
from ..services import application as app_service
from ..services import intake as intake_service
from ..services import progress as progress_service
from ..services.scope import deal_in_scope

router = APIRouter()

_ANY_ROLE = Depends(require_roles(UserRole.BORROWER, UserRole.EMPLOYEE))


async def _ensure_visible(session: AsyncSession, user: UserContext, deal_id: uuid.UUID) -> None:
    """404 for deals that do not exist or sit outside the caller's scope."""
    if not await deal_in_scope(session, user.data_scope, deal_id):
        raise NotFoundError("deal not found")


@router.post(
    "/",
    response_model=ApplicationCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[_ANY_ROLE],
)
async def create_application(
    body: ApplicationCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationCreated:
    """Start a deal. The caller becomes its employee or primary borrower."""
    deal = await app_service.create_application(
        session, user, body.loan_purpose, body.loan_amount,
    )
    return ApplicationCreated(deal_id=deal.id, current_form_step=deal.current_form_step)


@router.get("/", response_model=ApplicationListResponse, dependencies=[_ANY_ROLE])
async def list_applications(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
) -> ApplicationListResponse:
    """List deals visible to the caller, most recently updated first."""
    items, total = await app_service.list_applications(
        session, user, offset=offset, limit=limit,
    )
    return ApplicationListResponse(
        data=items,
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )


@router.get("/{deal_id}", response_model=ApplicationSnapshot, dependencies=[_ANY_ROLE])
async def get_application(
    deal_id: uuid.UUID,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationSnapshot:
    """Deal snapshot with borrower and co-borrower details."""
    await _ensure_visible(session, user, deal_id)
    return await app_service.get_application(session, deal_id)


@router.put("/{deal_id}/steps", response_model=SaveStepResult, dependencies=[_ANY_ROLE])
async def save_step(
    deal_id: uuid.UUID,
    user: CurrentUser,
    payload: dict[str, Any] = Body(...),
    next_step: str | None = Query(default=None, max_length=64),
    session: AsyncSession = Depends(get_db),
) -> SaveStepResult:
    """Save one wizard step and optionally move the form-step cursor.

    The body is loosely typed: ``borrower``, ``coBorrower`` and ``loan``
    carry data, ``step`` names the step and ``nextStep`` the cursor target.
    """
    await _ensure_visible(session, user, deal_id)
    return await intake_service.save_step(session, deal_id, payload, next_step)


@router.get("/{deal_id}/progress", response_model=ProgressResponse, dependencies=[_ANY_ROLE])
async def get_progress(
    deal_id: uuid.UUID,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ProgressResponse:
    await _ensure_visible(session, user, deal_id)
    return await progress_service.get_progress(session, deal_id)


@router.put(
    "/{deal_id}/progress/sections/{section}",
    response_model=ProgressResponse,
    dependencies=[_ANY_ROLE],
)
async def set_section_complete(
    deal_id: uuid.UUID,
    section: str,
    user: CurrentUser,
    body: SectionCompleteRequest | None = None,
    session: AsyncSession = Depends(get_db),
) -> ProgressResponse:
    """Mark one URLA section complete or incomplete."""
    await _ensure_visible(session, user, deal_id)
    complete = body.complete if body is not None else True
    return await progress_service.set_section_complete(session, deal_id, section, complete)


@router.put(
    "/{deal_id}/progress/notes",
    response_model=ProgressResponse,
    dependencies=[Depends(require_roles(UserRole.EMPLOYEE))],
)
async def update_progress_notes(
    deal_id: uuid.UUID,
    body: ProgressNotesRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ProgressResponse:
    """Replace the progress notes. Employees only."""
    await _ensure_visible(session, user, deal_id)
    return await progress_service.update_notes(session, deal_id, body.notes)
