# This project was developed with assistance from AI tools.
"""Loan and subject-property writers for a deal.

The loan purpose is set when the deal is created and never changes here.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any

from db import Loan, SubjectProperty
from db.enums import LoanPurpose
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError
from .intake_validation import ParsedAddress

logger = logging.getLogger(__name__)

# Step field -> Loan column. ``loan_purpose`` is deliberately absent.
LOAN_COLUMNS: dict[str, str] = {
    "loan_amount": "amount",
    "purchase_price": "purchase_price",
    "down_payment": "down_payment",
    "outstanding_balance": "outstanding_balance",
    "loan_term_months": "term_months",
    "interest_rate": "interest_rate",
    "property_type": "property_type",
    "is_applying_for_other_loans": "is_applying_for_other_loans",
    "is_down_payment_part_gift": "is_down_payment_part_gift",
}


def derive_loan_amount(
    purpose: LoanPurpose,
    *,
    loan_amount: Decimal | None = None,
    purchase_price: Decimal | None = None,
    down_payment: Decimal | None = None,
    estimated_price: Decimal | None = None,
    outstanding_balance: Decimal | None = None,
) -> Decimal | None:
    """Requested amount from whatever the applicant told us.

    Precedence: explicit amount; for refinances the outstanding balance;
    purchase price minus down payment; estimated price minus down payment.
    A difference that is not positive falls back to the price itself.
    """
    if loan_amount is not None and loan_amount > 0:
        return loan_amount
    if purpose == LoanPurpose.REFINANCE and outstanding_balance is not None and outstanding_balance > 0:
        return outstanding_balance
    down = down_payment or Decimal("0")
    for price in (purchase_price, estimated_price):
        if price is not None and price > 0:
            amount = price - down
            return amount if amount > 0 else price
    return None


async def get_loan(session: AsyncSession, deal_id: uuid.UUID) -> Loan:
    result = await session.execute(select(Loan).where(Loan.deal_id == deal_id))
    loan = result.scalar_one_or_none()
    if loan is None:
        raise NotFoundError("loan not found for this deal")
    return loan


async def get_subject_property(session: AsyncSession, deal_id: uuid.UUID) -> SubjectProperty | None:
    result = await session.execute(
        select(SubjectProperty).where(SubjectProperty.deal_id == deal_id)
    )
    return result.scalar_one_or_none()


async def update_loan(session: AsyncSession, deal_id: uuid.UUID, fields: dict[str, Any]) -> Loan:
    """Apply loan-step fields. Derives the amount when only prices were sent."""
    loan = await get_loan(session, deal_id)
    for key, column in LOAN_COLUMNS.items():
        if key in fields:
            setattr(loan, column, fields[key])

    if "loan_amount" not in fields:
        derived = derive_loan_amount(
            loan.purpose,
            purchase_price=fields.get("purchase_price"),
            down_payment=fields.get("down_payment", loan.down_payment),
            estimated_price=fields.get("estimated_price"),
            outstanding_balance=fields.get("outstanding_balance"),
        )
        if derived is not None:
            loan.amount = derived

    await session.flush()
    return loan


async def upsert_subject_property(
    session: AsyncSession,
    deal_id: uuid.UUID,
    *,
    address: ParsedAddress | None = None,
    estimated_value: Decimal | None = None,
) -> SubjectProperty:
    """Create the subject property on first use; afterwards update in place."""
    prop = await get_subject_property(session, deal_id)
    if prop is None:
        prop = SubjectProperty(deal_id=deal_id)
        session.add(prop)
        logger.info("Created subject property for deal %s", deal_id)
    if address is not None:
        prop.address_line = address.street
        prop.city = address.city
        prop.state = address.state
        prop.zip_code = address.zip_code
    if estimated_value is not None:
        prop.estimated_value = estimated_value
    await session.flush()
    return prop
