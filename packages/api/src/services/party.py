# This project was developed with assistance from AI tools.
"""Party resolution for borrowers and co-borrowers.

Resolution order is fixed:

1. Deal-scoped: the deal's primary borrower, or its oldest co-borrower link,
   is authoritative. Payload identity fields never re-resolve who the party is.
2. Global: only when the deal has no such party yet, look up by email and
   then by normalized phone. Borrower creation treats a match as a conflict;
   co-borrower attachment adopts the matched party.
3. Create: first name, last name and phone are required.

The unique constraints on ``borrowers.email`` and ``borrowers.primary_phone``
back the lookup; an IntegrityError on flush is reported as a conflict.
"""

import logging
import uuid
from typing import Any

from db import Borrower, Deal, DealCoBorrower, Residence
from db.enums import ApplicationType, PhoneType, ResidenceType
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ConflictError, LinkageError, NotFoundError, StepValidationError
from .intake_validation import ParsedAddress, normalize_email, normalize_phone

logger = logging.getLogger(__name__)

_REQUIRED_FOR_CREATE = ("first_name", "last_name", "phone")

_IDENTITY_COLUMNS = {
    "first_name": "first_name",
    "middle_name": "middle_name",
    "last_name": "last_name",
    "suffix": "suffix",
    "date_of_birth": "birth_date",
}


def _conflict_field(exc: IntegrityError) -> str:
    return "email" if "email" in str(exc.orig).lower() else "phone"


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def find_party_by_contact(
    session: AsyncSession,
    *,
    email: str | None = None,
    phone: str | None = None,
) -> tuple[Borrower | None, str | None]:
    """Global uniqueness lookup: email first, then normalized phone.

    Returns:
        ``(party, matched_field)`` or ``(None, None)``.
    """
    email = normalize_email(email)
    if email:
        result = await session.execute(select(Borrower).where(Borrower.email == email))
        party = result.scalar_one_or_none()
        if party is not None:
            return party, "email"

    phone = normalize_phone(phone)
    if phone:
        result = await session.execute(select(Borrower).where(Borrower.primary_phone == phone))
        party = result.scalar_one_or_none()
        if party is not None:
            return party, "phone"

    return None, None


async def get_primary_borrower(session: AsyncSession, deal: Deal) -> Borrower | None:
    if deal.primary_borrower_id is None:
        return None
    return await session.get(Borrower, deal.primary_borrower_id)


async def get_co_borrower(session: AsyncSession, deal_id: uuid.UUID) -> Borrower | None:
    """The deal's co-borrower. With several links the oldest one wins."""
    stmt = (
        select(Borrower)
        .join(DealCoBorrower, DealCoBorrower.borrower_id == Borrower.id)
        .where(DealCoBorrower.deal_id == deal_id)
        .order_by(DealCoBorrower.created_at, DealCoBorrower.id)
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def ensure_contact_available(
    session: AsyncSession,
    party_id: uuid.UUID | None,
    *,
    email: str | None = None,
    phone: str | None = None,
) -> None:
    """Raise ConflictError if ``email`` or ``phone`` belongs to a different party."""
    if email:
        result = await session.execute(
            select(Borrower.id).where(Borrower.email == normalize_email(email))
        )
        owner = result.scalar_one_or_none()
        if owner is not None and owner != party_id:
            raise ConflictError("party identity conflict: email is already in use", field="email")
    if phone:
        result = await session.execute(
            select(Borrower.id).where(Borrower.primary_phone == normalize_phone(phone))
        )
        owner = result.scalar_one_or_none()
        if owner is not None and owner != party_id:
            raise ConflictError("party identity conflict: phone is already in use", field="phone")


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def apply_identity(party: Borrower, fields: dict[str, Any]) -> None:
    """Copy name, birth date, email and phone from validated step fields."""
    for key, column in _IDENTITY_COLUMNS.items():
        if key in fields:
            setattr(party, column, fields[key])
    if "email" in fields:
        party.email = normalize_email(fields["email"])
    if "phone" in fields or "phone_type" in fields:
        phone_type = fields.get("phone_type") or party.primary_phone_type or PhoneType.MOBILE
        phone = normalize_phone(fields.get("phone")) or party.primary_phone
        previous_type = party.primary_phone_type
        if (
            previous_type is not None
            and previous_type != phone_type
            and party.primary_phone
            and party.phone_for(previous_type) == party.primary_phone
        ):
            # The primary number moves slots
            party.set_phone(previous_type, None)
        if phone:
            party.set_phone(phone_type, phone)
            party.primary_phone = phone
        party.primary_phone_type = phone_type


async def create_party(session: AsyncSession, fields: dict[str, Any], *, role: str) -> Borrower:
    """Insert a new party.

    Raises:
        StepValidationError: first name, last name or phone is missing.
        ConflictError: the insert hit the email/phone unique constraint.
    """
    missing = [name.replace("_", " ") for name in _REQUIRED_FOR_CREATE if not fields.get(name)]
    if missing:
        raise StepValidationError(f"{', '.join(missing)} required to create a new {role}")

    party = Borrower(first_name=fields["first_name"], last_name=fields["last_name"])
    apply_identity(party, fields)
    try:
        async with session.begin_nested():
            session.add(party)
            await session.flush()
    except IntegrityError as exc:
        field = _conflict_field(exc)
        logger.info("Create %s rejected: %s already exists", role, field)
        raise ConflictError(f"A party with this {field} already exists", field=field) from exc

    logger.info("Created %s %s", role, party.id)
    return party


async def update_identity(session: AsyncSession, party: Borrower, fields: dict[str, Any]) -> None:
    """Apply identity changes to a resolved party.

    Raises:
        ConflictError: the new email or phone belongs to another party.
    """
    party_id = party.id
    await ensure_contact_available(
        session, party_id, email=fields.get("email"), phone=fields.get("phone"),
    )
    try:
        async with session.begin_nested():
            apply_identity(party, fields)
            await session.flush()
    except IntegrityError as exc:
        field = _conflict_field(exc)
        logger.info("Identity update for party %s rejected: %s already in use", party_id, field)
        raise ConflictError(
            f"party identity conflict: {field} is already in use", field=field,
        ) from exc


async def upsert_residence(
    session: AsyncSession,
    party_id: uuid.UUID,
    residence_type: ResidenceType,
    address: ParsedAddress,
) -> Residence:
    """Replace the party's current or former residence in place."""
    result = await session.execute(
        select(Residence).where(
            Residence.borrower_id == party_id,
            Residence.residence_type == residence_type,
        )
    )
    residence = result.scalar_one_or_none()
    if residence is None:
        residence = Residence(borrower_id=party_id, residence_type=residence_type)
        session.add(residence)
    residence.address_line = address.street
    residence.city = address.city
    residence.state = address.state
    residence.zip_code = address.zip_code
    await session.flush()
    return residence


async def get_residence(
    session: AsyncSession,
    party_id: uuid.UUID,
    residence_type: ResidenceType,
) -> Residence | None:
    result = await session.execute(
        select(Residence).where(
            Residence.borrower_id == party_id,
            Residence.residence_type == residence_type,
        )
    )
    return result.scalar_one_or_none()


async def link_co_borrower(session: AsyncSession, deal: Deal, party: Borrower) -> DealCoBorrower:
    """Write the deal/co-borrower link and flip the deal to joint credit.

    Raises:
        LinkageError: the link row could not be written.
    """
    link = DealCoBorrower(deal_id=deal.id, borrower_id=party.id)
    try:
        async with session.begin_nested():
            session.add(link)
            await session.flush()
    except SQLAlchemyError as exc:
        logger.error("Failed to link co-borrower %s to deal %s", party.id, deal.id, exc_info=True)
        raise LinkageError("co-borrower could not be linked to this deal") from exc

    mark_joint(deal)
    logger.info("Linked co-borrower %s to deal %s", party.id, deal.id)
    return link


def mark_joint(deal: Deal) -> None:
    """Joint credit is one-way: nothing sets a deal back to individual."""
    deal.application_type = ApplicationType.JOINT_CREDIT
    deal.total_borrowers = ApplicationType.JOINT_CREDIT.borrower_count


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


async def resolve_borrower(
    session: AsyncSession,
    deal: Deal,
    fields: dict[str, Any],
    *,
    can_create: bool,
) -> tuple[Borrower, bool]:
    """Find or create the deal's primary borrower.

    Returns:
        ``(party, created)``.

    Raises:
        NotFoundError: no primary borrower and this step cannot create one.
        ConflictError: a new borrower's email or phone already exists.
        StepValidationError: required fields for creation are missing.
    """
    if deal.primary_borrower_id is not None:
        party = await get_primary_borrower(session, deal)
        if party is None:
            raise NotFoundError("no borrower associated with this deal")
        return party, False

    if not can_create:
        raise NotFoundError("no borrower associated with this deal")

    match, field = await find_party_by_contact(
        session, email=fields.get("email"), phone=fields.get("phone"),
    )
    if match is not None:
        raise ConflictError(f"A borrower with this {field} already exists", field=field)

    party = await create_party(session, fields, role="borrower")
    deal.primary_borrower_id = party.id
    await session.flush()
    return party, True


async def resolve_co_borrower(
    session: AsyncSession,
    deal: Deal,
    fields: dict[str, Any],
    *,
    can_create: bool,
) -> tuple[Borrower, str]:
    """Find, adopt or create the deal's co-borrower and make sure it is linked.

    Returns:
        ``(party, how)`` where ``how`` is ``"existing"``, ``"adopted"`` or
        ``"created"``.

    Raises:
        NotFoundError: the deal has no primary borrower yet, or has no
            co-borrower and this step cannot create one.
        ConflictError: the contact details belong to the primary borrower, or
            a concurrent insert claimed them first.
        StepValidationError: required fields for creation are missing.
        LinkageError: the link row could not be written.
    """
    if deal.primary_borrower_id is None:
        raise NotFoundError("no borrower associated with this deal")

    existing = await get_co_borrower(session, deal.id)
    if existing is not None:
        return existing, "existing"

    if not can_create:
        raise NotFoundError("no co-borrower associated with this deal")

    match, field = await find_party_by_contact(
        session, email=fields.get("email"), phone=fields.get("phone"),
    )
    if match is not None:
        if match.id == deal.primary_borrower_id:
            raise ConflictError(
                f"The co-borrower {field} matches the primary borrower", field=field,
            )
        party, how = match, "adopted"
        logger.info("Adopting existing party %s as co-borrower on deal %s", match.id, deal.id)
    else:
        party, how = await create_party(session, fields, role="co-borrower"), "created"

    await link_co_borrower(session, deal, party)
    return party, how
