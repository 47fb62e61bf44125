# This project was developed with assistance from AI tools.
"""Deal lifecycle: creation, self-service registration, snapshots and listings.

Listings are filtered through the caller's DataScope so that borrowers see
only their own deals and employees see the deals they manage.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal

from db import Borrower, Deal, DealProgress, Employee, Loan
from db.enums import ApplicationType, LoanPurpose, PhoneType, ResidenceType, UserRole
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.errors import ConflictError, NotFoundError, StepValidationError
from ..schemas.application import (
    ApplicationSnapshot,
    ApplicationSummary,
    BorrowerRegistration,
    CoBorrowerSnapshot,
    LoanSnapshot,
    PartySnapshot,
    RegistrationResult,
    SubjectPropertySnapshot,
)
from ..schemas.auth import UserContext
from ..schemas.steps import FormStep
from . import party as party_service
from .intake_validation import ParsedAddress, parse_address
from .loan import derive_loan_amount, get_subject_property, upsert_subject_property
from .scope import apply_data_scope

logger = logging.getLogger(__name__)

_PHONE_PREFERENCE = (PhoneType.MOBILE, PhoneType.HOME, PhoneType.WORK)


def _new_deal(**kwargs) -> Deal:
    return Deal(
        id=uuid.uuid4(),
        application_type=ApplicationType.INDIVIDUAL_CREDIT,
        total_borrowers=ApplicationType.INDIVIDUAL_CREDIT.borrower_count,
        application_date=date.today(),
        **kwargs,
    )


async def create_application(
    session: AsyncSession,
    user: UserContext,
    loan_purpose: LoanPurpose,
    loan_amount: Decimal,
) -> Deal:
    """Start a deal with its loan and progress record in one transaction.

    Employees become the managing employee and the primary borrower is
    filled in by the first borrower step. Borrowers become the primary
    borrower themselves.

    Raises:
        StepValidationError: ``loan_amount`` is not positive.
        NotFoundError: the acting employee or borrower does not exist.
    """
    if loan_amount is None or loan_amount <= 0:
        raise StepValidationError("loan amount must be greater than zero")

    if user.role == UserRole.EMPLOYEE:
        if await session.get(Employee, user.user_id) is None:
            raise NotFoundError("employee not found")
        deal = _new_deal(employee_id=user.user_id, current_form_step=FormStep.BORROWER_INFO_1.value)
    else:
        if await session.get(Borrower, user.user_id) is None:
            raise NotFoundError("borrower not found")
        deal = _new_deal(
            primary_borrower_id=user.user_id, current_form_step=FormStep.BORROWER_INFO_1.value,
        )

    session.add(deal)
    session.add(Loan(deal_id=deal.id, purpose=loan_purpose, amount=loan_amount))
    session.add(DealProgress(deal_id=deal.id))
    await session.commit()

    logger.info(
        "Created deal %s (%s, %s) by %s %s",
        deal.id,
        loan_purpose.value,
        loan_amount,
        user.role.value,
        user.user_id,
    )
    return deal


async def register_borrower(
    session: AsyncSession,
    registration: BorrowerRegistration,
    *,
    contact_verified: bool = False,
) -> RegistrationResult:
    """Self-service sign-up: create the borrower and their first deal.

    Raises:
        StepValidationError: contact verification is required but missing.
        ConflictError: the email or phone already belongs to a party.
    """
    if settings.REQUIRE_CONTACT_VERIFICATION and not contact_verified:
        raise StepValidationError("contact verification required before registration")

    match, field = await party_service.find_party_by_contact(
        session, email=registration.email, phone=registration.phone,
    )
    if match is not None:
        raise ConflictError(f"An account with this {field} already exists", field=field)

    borrower = await party_service.create_party(
        session,
        {
            "first_name": registration.first_name,
            "last_name": registration.last_name,
            "email": registration.email,
            "phone": registration.phone,
            "phone_type": PhoneType.MOBILE,
        },
        role="borrower",
    )
    if registration.marital_status is not None:
        borrower.marital_status = registration.marital_status

    if registration.current_address:
        address = parse_address(registration.current_address)
        if address is None:
            logger.info("Registration address for %s could not be parsed; skipped", borrower.id)
        else:
            await party_service.upsert_residence(
                session, borrower.id, ResidenceType.CURRENT, address,
            )

    amount = derive_loan_amount(
        registration.loan_purpose,
        loan_amount=registration.loan_amount,
        purchase_price=registration.purchase_price,
        down_payment=registration.down_payment,
        estimated_price=registration.estimated_price,
        outstanding_balance=registration.outstanding_balance,
    )
    deal = _new_deal(
        primary_borrower_id=borrower.id, current_form_step=FormStep.BORROWER_INFO_2.value,
    )
    session.add(deal)
    session.add(
        Loan(
            deal_id=deal.id,
            purpose=registration.loan_purpose,
            amount=amount,
            purchase_price=registration.purchase_price,
            down_payment=registration.down_payment,
            outstanding_balance=registration.outstanding_balance,
        )
    )
    session.add(DealProgress(deal_id=deal.id))
    await session.flush()

    property_address = parse_address(registration.property_address)
    property_value = registration.estimated_price or registration.purchase_price
    if property_address is not None or (property_value is not None and property_value > 0):
        await upsert_subject_property(
            session, deal.id, address=property_address, estimated_value=property_value,
        )

    await session.commit()
    logger.info("Registered borrower %s with deal %s", borrower.id, deal.id)
    return RegistrationResult(
        deal_id=deal.id, borrower_id=borrower.id, current_form_step=deal.current_form_step,
    )


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


def preferred_phone(party: Borrower) -> tuple[str | None, PhoneType | None]:
    """Primary phone if set, otherwise mobile, home, work in that order."""
    if party.primary_phone_type is not None and party.phone_for(party.primary_phone_type):
        return party.phone_for(party.primary_phone_type), party.primary_phone_type
    for phone_type in _PHONE_PREFERENCE:
        if party.phone_for(phone_type):
            return party.phone_for(phone_type), phone_type
    return None, None


def _same_address(a, b) -> bool:
    if a is None or b is None:
        return False
    return (a.address_line, a.city, a.state, a.zip_code) == (
        b.address_line,
        b.city,
        b.state,
        b.zip_code,
    )


def _format_residence(residence) -> str | None:
    if residence is None:
        return None
    return str(
        ParsedAddress(
            street=residence.address_line,
            city=residence.city,
            state=residence.state,
            zip_code=residence.zip_code,
        )
    )


async def build_party_snapshot(
    session: AsyncSession,
    party: Borrower,
    snapshot_cls: type[PartySnapshot] = PartySnapshot,
    **extra,
) -> PartySnapshot:
    current = await party_service.get_residence(session, party.id, ResidenceType.CURRENT)
    former = await party_service.get_residence(session, party.id, ResidenceType.FORMER)
    phone, phone_type = preferred_phone(party)
    return snapshot_cls(
        id=party.id,
        first_name=party.first_name,
        middle_name=party.middle_name,
        last_name=party.last_name,
        suffix=party.suffix,
        email=party.email,
        phone=phone,
        phone_type=phone_type,
        date_of_birth=party.birth_date,
        marital_status=party.marital_status,
        dependents_count=party.dependent_count,
        citizenship_status=party.citizenship_type,
        is_veteran=bool(party.military_service),
        accept_terms=bool(party.consent_to_credit_check),
        consent_to_contact=bool(party.consent_to_contact),
        current_address=_format_residence(current),
        address=current.address_line if current else None,
        city=current.city if current else None,
        state=current.state if current else None,
        zip_code=current.zip_code if current else None,
        former_address=_format_residence(former),
        **extra,
    )


async def get_application(session: AsyncSession, deal_id: uuid.UUID) -> ApplicationSnapshot:
    """Deal fields plus borrower and co-borrower snapshots.

    Raises:
        NotFoundError: the deal does not exist.
    """
    deal = await session.get(Deal, deal_id)
    if deal is None:
        raise NotFoundError("deal not found")

    loan = (await session.execute(select(Loan).where(Loan.deal_id == deal_id))).scalar_one_or_none()
    subject_property = await get_subject_property(session, deal_id)

    borrower_snapshot = None
    primary = await party_service.get_primary_borrower(session, deal)
    if primary is not None:
        borrower_snapshot = await build_party_snapshot(session, primary)

    co_borrower_snapshot = None
    co_borrower = await party_service.get_co_borrower(session, deal_id)
    if co_borrower is not None:
        co_home = await party_service.get_residence(session, co_borrower.id, ResidenceType.CURRENT)
        primary_home = None
        if primary is not None:
            primary_home = await party_service.get_residence(
                session, primary.id, ResidenceType.CURRENT,
            )
        co_borrower_snapshot = await build_party_snapshot(
            session,
            co_borrower,
            CoBorrowerSnapshot,
            live_together=co_home is None or _same_address(co_home, primary_home),
        )

    return ApplicationSnapshot(
        id=deal.id,
        application_type=deal.application_type,
        total_borrowers=deal.total_borrowers,
        current_form_step=deal.current_form_step,
        application_date=deal.application_date,
        employee_id=deal.employee_id,
        created_at=deal.created_at,
        updated_at=deal.updated_at,
        loan=_loan_snapshot(loan),
        subject_property=(
            SubjectPropertySnapshot.model_validate(subject_property) if subject_property else None
        ),
        borrower=borrower_snapshot,
        co_borrower=co_borrower_snapshot,
    )


def _loan_snapshot(loan: Loan | None) -> LoanSnapshot | None:
    if loan is None:
        return None
    return LoanSnapshot(
        purpose=loan.purpose,
        amount=loan.amount,
        term_months=loan.term_months,
        interest_rate=loan.interest_rate,
        property_type=loan.property_type,
        purchase_price=loan.purchase_price,
        down_payment=loan.down_payment,
        outstanding_balance=loan.outstanding_balance,
        is_applying_for_other_loans=bool(loan.is_applying_for_other_loans),
        is_down_payment_part_gift=bool(loan.is_down_payment_part_gift),
    )


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


async def list_applications(
    session: AsyncSession,
    user: UserContext,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[ApplicationSummary], int]:
    """Deals visible to the caller, most recently updated first."""
    count_stmt = apply_data_scope(select(func.count(Deal.id)), user.data_scope)
    total = (await session.execute(count_stmt)).scalar() or 0

    last_activity = func.coalesce(Deal.updated_at, Deal.created_at)
    stmt = (
        select(Deal, Loan, DealProgress, Borrower)
        .outerjoin(Loan, Loan.deal_id == Deal.id)
        .outerjoin(DealProgress, DealProgress.deal_id == Deal.id)
        .outerjoin(Borrower, Borrower.id == Deal.primary_borrower_id)
        .order_by(last_activity.desc(), Deal.created_at.desc(), Deal.id)
        .offset(offset)
        .limit(limit)
    )
    stmt = apply_data_scope(stmt, user.data_scope)
    rows = (await session.execute(stmt)).all()

    summaries = [
        ApplicationSummary(
            id=deal.id,
            application_type=deal.application_type,
            loan_purpose=loan.purpose if loan else None,
            loan_amount=loan.amount if loan else None,
            current_form_step=deal.current_form_step,
            borrower_name=f"{borrower.first_name} {borrower.last_name}" if borrower else None,
            progress_percentage=progress.progress_percentage if progress else 0,
            last_updated_section=progress.last_updated_section if progress else None,
            created_at=deal.created_at,
            updated_at=deal.updated_at,
        )
        for deal, loan, progress, borrower in rows
    ]
    return summaries, total
