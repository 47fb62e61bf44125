# This project was developed with assistance from AI tools.
"""Public API routes -- no authentication required."""

from db import get_db
from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.application import BorrowerRegistration, RegistrationResult
from ..services.application import register_borrower

router = APIRouter()


@router.post(
    "/register",
    response_model=RegistrationResult,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: BorrowerRegistration,
    session: AsyncSession = Depends(get_db),
    x_contact_verified: bool = Header(default=False),
) -> RegistrationResult:
    """Self-service sign-up: creates the borrower and their first deal.

    ``X-Contact-Verified`` is set by the gateway once the applicant has
    confirmed a one-time code sent to their email or phone.
    """
    return await register_borrower(session, body, contact_verified=x_contact_verified)
