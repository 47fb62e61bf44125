# This project was developed with assistance from AI tools.
"""Shared data scope filtering for deal queries.

Borrowers see deals where they are the primary borrower or a linked
co-borrower; employees see the deals they manage plus unassigned ones,
such as self-registered applications waiting for a loan officer.
"""

import uuid

from db import Deal, DealCoBorrower
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import DataScope


def apply_data_scope(stmt, scope: DataScope):
    """Apply data scope filtering to a select over ``Deal``.

    Args:
        stmt: A SQLAlchemy select statement that includes ``Deal``.
        scope: The caller's DataScope.

    Returns:
        The filtered statement.
    """
    if scope.own_data_only and scope.party_id is not None:
        co_borrower_deals = select(DealCoBorrower.deal_id).where(
            DealCoBorrower.borrower_id == scope.party_id
        )
        stmt = stmt.where(
            or_(
                Deal.primary_borrower_id == scope.party_id,
                Deal.id.in_(co_borrower_deals),
            )
        )
    elif scope.managed_by is not None:
        stmt = stmt.where(
            or_(Deal.employee_id == scope.managed_by, Deal.employee_id.is_(None))
        )
    return stmt


async def deal_in_scope(session: AsyncSession, scope: DataScope, deal_id: uuid.UUID) -> bool:
    """True when the deal exists and the scope may see it."""
    stmt = apply_data_scope(select(Deal.id).where(Deal.id == deal_id), scope)
    result = await session.execute(stmt)
    return result.scalar_one_or_none() is not None
