# This project was developed with assistance from AI tools.
"""Intake flows against migrated PostgreSQL with real unique constraints."""

import asyncio

import pytest
from db import Borrower, Deal, DealCoBorrower
from db.enums import ApplicationType
from sqlalchemy import func, select, text

from src.core.errors import ConflictError
from src.services import party as party_service
from src.services.intake import save_step

pytestmark = pytest.mark.integration


async def test_tables_exist_after_migration(db_session):
    result = await db_session.execute(
        text("SELECT tablename FROM pg_tables WHERE schemaname = 'public'")
    )
    tables = {row[0] for row in result.fetchall()}
    assert {
        "employees",
        "borrowers",
        "residences",
        "deals",
        "loans",
        "subject_properties",
        "deal_co_borrowers",
        "deal_progress",
    } <= tables


async def test_wizard_over_http(client_factory, db_session, seed, personas):
    employee = await seed.employee(db_session)
    client = await client_factory(personas.employee(employee.id))

    resp = await client.post(
        "/api/applications/", json={"loan_purpose": "Purchase", "loan_amount": "420000"},
    )
    deal_id = resp.json()["deal_id"]
    for payload in (
        {
            "step": "borrower-info-1",
            "borrower": {
                "firstName": "Sarah",
                "lastName": "Mitchell",
                "email": "sarah@example.com",
                "phone": "5551234567",
            },
        },
        {
            "step": "borrower-info-2",
            "borrower": {"currentAddress": "123 Main St, Springfield, IL 62701"},
        },
        {
            "step": "co-borrower-info-1",
            "coBorrower": {"firstName": "Jordan", "lastName": "Reyes", "phone": "5559876543"},
        },
        {"step": "co-borrower-info-2", "coBorrower": {"liveTogether": True}},
    ):
        resp = await client.put(f"/api/applications/{deal_id}/steps", json=payload)
        assert resp.status_code == 200, resp.text
        assert resp.json()["warnings"] == []

    snapshot = (await client.get(f"/api/applications/{deal_id}")).json()
    assert snapshot["application_type"] == ApplicationType.JOINT_CREDIT.value
    assert snapshot["co_borrower"]["live_together"] is True


async def test_racing_co_borrower_saves_create_one_party(db_service, db_session, seed):
    """Two sessions attach the same new co-borrower at once; one wins, one conflicts."""
    sarah = await seed.borrower(db_session)
    deal_a = await seed.deal(db_session, primary_borrower_id=sarah.id)
    other = await seed.borrower(db_session, email="other@example.com", phone="5550001111")
    deal_b = await seed.deal(db_session, primary_borrower_id=other.id)

    fields = {"first_name": "Jordan", "last_name": "Reyes", "phone": "5559876543"}

    async def attach(deal_id):
        async with db_service.session() as session:
            deal = await session.get(Deal, deal_id)
            try:
                await party_service.resolve_co_borrower(session, deal, fields, can_create=True)
            except ConflictError:
                await session.rollback()
                return "conflict"
            await session.commit()
            return "ok"

    outcomes = await asyncio.gather(attach(deal_a.id), attach(deal_b.id))

    count = await db_session.scalar(
        select(func.count(Borrower.id)).where(Borrower.primary_phone == "5559876543")
    )
    assert count == 1
    links = await db_session.scalar(select(func.count(DealCoBorrower.id)))
    # The loser either adopted the committed party or was told to retry
    assert links == outcomes.count("ok")
    assert "ok" in outcomes


async def test_duplicate_primary_phone_rejected(db_session, seed):
    await seed.borrower(db_session)
    deal = await seed.deal(db_session)
    with pytest.raises(ConflictError):
        await save_step(
            db_session,
            deal.id,
            {
                "step": "borrower-info-1",
                "borrower": {"firstName": "S", "lastName": "M", "phone": "555-123-4567"},
            },
        )
