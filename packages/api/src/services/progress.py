# This project was developed with assistance from AI tools.
"""Section progress tracking for deals.

Completion flags change only through ``set_section_complete``; saving step
data never marks a section complete. The "next incomplete section" used to
resume a returning applicant is derived on read from the canonical section
order and is not stored.
"""

import logging
import uuid

from db import Deal, DealProgress
from db.enums import FormSection
from db.models import utcnow
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError, StepValidationError
from ..schemas.progress import ProgressResponse, SectionStatus

logger = logging.getLogger(__name__)

SECTION_LABELS: dict[FormSection, str] = {
    FormSection.SECTION_1A: "Personal Information",
    FormSection.SECTION_1B: "Current Employment",
    FormSection.SECTION_1C: "Additional Employment",
    FormSection.SECTION_1D: "Previous Employment",
    FormSection.SECTION_1E: "Other Income",
    FormSection.SECTION_2A: "Assets",
    FormSection.SECTION_2B: "Other Assets and Credits",
    FormSection.SECTION_2C: "Liabilities",
    FormSection.SECTION_2D: "Other Liabilities and Expenses",
    FormSection.SECTION_3: "Real Estate Owned",
    FormSection.SECTION_4: "Loan and Property Information",
    FormSection.SECTION_5: "Declarations",
    FormSection.SECTION_6: "Acknowledgments and Agreements",
    FormSection.SECTION_7: "Military Service",
    FormSection.SECTION_8: "Demographic Information",
    FormSection.SECTION_9: "Loan Originator Information",
    FormSection.LENDER_L1: "Property and Loan Information",
    FormSection.LENDER_L2: "Title Information",
    FormSection.LENDER_L3: "Mortgage Loan Information",
    FormSection.LENDER_L4: "Qualifying the Borrower",
    FormSection.CONTINUATION: "Continuation Sheet",
    FormSection.UNMARRIED_ADDENDUM: "Unmarried Addendum",
}


# Long-form names sent by older clients
SECTION_ALIASES: dict[str, FormSection] = {
    "Section1a_PersonalInfo": FormSection.SECTION_1A,
    "Section1b_CurrentEmployment": FormSection.SECTION_1B,
    "Section1c_AdditionalEmployment": FormSection.SECTION_1C,
    "Section1d_PreviousEmployment": FormSection.SECTION_1D,
    "Section1e_OtherIncome": FormSection.SECTION_1E,
    "Section2a_Assets": FormSection.SECTION_2A,
    "Section2b_OtherAssetsCredits": FormSection.SECTION_2B,
    "Section2c_Liabilities": FormSection.SECTION_2C,
    "Section2d_Expenses": FormSection.SECTION_2D,
    "Section3_RealEstateOwned": FormSection.SECTION_3,
    "Section4_LoanPropertyInfo": FormSection.SECTION_4,
    "Section5_Declarations": FormSection.SECTION_5,
    "Section6_Acknowledgments": FormSection.SECTION_6,
    "Section7_MilitaryService": FormSection.SECTION_7,
    "Section8_Demographics": FormSection.SECTION_8,
    "Section9_OriginatorInfo": FormSection.SECTION_9,
    "Lender_L1_PropertyLoanInfo": FormSection.LENDER_L1,
    "Lender_L2_TitleInfo": FormSection.LENDER_L2,
    "Lender_L3_MortgageLoanInfo": FormSection.LENDER_L3,
    "Lender_L4_Qualification": FormSection.LENDER_L4,
    "ContinuationSheet": FormSection.CONTINUATION,
    "UnmarriedAddendum": FormSection.UNMARRIED_ADDENDUM,
}


def next_incomplete_section(flags: dict[FormSection, bool]) -> FormSection | None:
    """First section in canonical order whose flag is not set, or None when all are."""
    for section in FormSection.canonical_order():
        if not flags.get(section, False):
            return section
    return None


def compute_percentage(flags: dict[FormSection, bool]) -> int:
    """Unweighted share of completed sections, floored to a whole percent."""
    total = len(FormSection.canonical_order())
    completed = sum(1 for section in FormSection.canonical_order() if flags.get(section, False))
    return completed * 100 // total


def parse_section(name: str) -> FormSection:
    """Resolve a section name or one of its long-form aliases; unknown names are rejected."""
    if name in SECTION_ALIASES:
        return SECTION_ALIASES[name]
    try:
        return FormSection(name)
    except ValueError:
        raise StepValidationError(f"Unknown section '{name}'") from None


async def _get_deal(session: AsyncSession, deal_id: uuid.UUID) -> Deal:
    deal = await session.get(Deal, deal_id)
    if deal is None:
        raise NotFoundError("deal not found")
    return deal


async def get_or_create_progress(session: AsyncSession, deal_id: uuid.UUID) -> DealProgress:
    """Return the deal's progress row, creating an empty one if it is missing.

    Does not check that the deal exists -- callers do.
    """
    result = await session.execute(select(DealProgress).where(DealProgress.deal_id == deal_id))
    progress = result.scalar_one_or_none()
    if progress is None:
        progress = DealProgress(deal_id=deal_id)
        session.add(progress)
        await session.flush()
        logger.info("Created progress record for deal %s", deal_id)
    return progress


def build_progress_response(deal_id: uuid.UUID, progress: DealProgress) -> ProgressResponse:
    flags = progress.flags()
    sections = [
        SectionStatus(section=section, label=SECTION_LABELS[section], complete=complete)
        for section, complete in flags.items()
    ]
    return ProgressResponse(
        deal_id=deal_id,
        sections=sections,
        completed_count=sum(1 for s in sections if s.complete),
        total_sections=len(sections),
        percentage=compute_percentage(flags),
        next_incomplete_section=next_incomplete_section(flags),
        last_updated_section=progress.last_updated_section,
        last_updated_at=progress.last_updated_at,
        notes=progress.notes,
    )


async def get_progress(session: AsyncSession, deal_id: uuid.UUID) -> ProgressResponse:
    """Progress summary for a deal.

    Raises:
        NotFoundError: The deal does not exist.
    """
    await _get_deal(session, deal_id)
    progress = await get_or_create_progress(session, deal_id)
    await session.commit()
    return build_progress_response(deal_id, progress)


async def set_section_complete(
    session: AsyncSession,
    deal_id: uuid.UUID,
    section: str,
    complete: bool,
) -> ProgressResponse:
    """Set exactly one section flag and recompute the stored percentage.

    Raises:
        StepValidationError: ``section`` is not a known section name.
        NotFoundError: The deal does not exist.
    """
    target = parse_section(section)
    deal = await _get_deal(session, deal_id)
    progress = await get_or_create_progress(session, deal_id)

    now = utcnow()
    setattr(progress, target.column_name, complete)
    progress.progress_percentage = compute_percentage(progress.flags())
    progress.last_updated_section = target.value
    progress.last_updated_at = now
    deal.updated_at = now
    await session.commit()

    logger.info(
        "Deal %s section %s marked %s (%d%%)",
        deal_id,
        target.value,
        "complete" if complete else "incomplete",
        progress.progress_percentage,
    )
    return build_progress_response(deal_id, progress)


async def update_notes(
    session: AsyncSession,
    deal_id: uuid.UUID,
    notes: str | None,
) -> ProgressResponse:
    """Replace the free-text progress notes for a deal."""
    deal = await _get_deal(session, deal_id)
    progress = await get_or_create_progress(session, deal_id)
    progress.notes = notes
    deal.updated_at = utcnow()
    await session.commit()
    return build_progress_response(deal_id, progress)
