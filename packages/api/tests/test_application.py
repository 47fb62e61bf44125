# This project was developed with assistance from AI tools.
"""Tests for deal creation, snapshots, listings and self-service registration."""

import uuid
from decimal import Decimal

import pytest
from db import Borrower, Deal, DealCoBorrower, DealProgress, Loan
from db.enums import ApplicationType, LoanPurpose, PhoneType, ResidenceType
from sqlalchemy import func, select

from src.core.config import settings
from src.core.errors import ConflictError, NotFoundError, StepValidationError
from src.schemas.application import BorrowerRegistration
from src.services import party as party_service
from src.services.application import (
    create_application,
    get_application,
    list_applications,
    preferred_phone,
    register_borrower,
)
from src.services.intake import save_step
from src.services.loan import derive_loan_amount
from src.services.scope import deal_in_scope

# ---------------------------------------------------------------------------
# Loan amount derivation
# ---------------------------------------------------------------------------


class TestDeriveLoanAmount:
    def test_explicit_amount_wins(self):
        assert derive_loan_amount(
            LoanPurpose.PURCHASE,
            loan_amount=Decimal("200000"),
            purchase_price=Decimal("500000"),
        ) == Decimal("200000")

    def test_refinance_uses_outstanding_balance(self):
        assert derive_loan_amount(
            LoanPurpose.REFINANCE,
            outstanding_balance=Decimal("180000"),
            estimated_price=Decimal("400000"),
        ) == Decimal("180000")

    def test_purchase_ignores_outstanding_balance(self):
        assert derive_loan_amount(
            LoanPurpose.PURCHASE,
            outstanding_balance=Decimal("180000"),
            purchase_price=Decimal("400000"),
            down_payment=Decimal("40000"),
        ) == Decimal("360000")

    def test_estimated_price_when_no_purchase_price(self):
        assert derive_loan_amount(
            LoanPurpose.PURCHASE,
            estimated_price=Decimal("300000"),
            down_payment=Decimal("60000"),
        ) == Decimal("240000")

    def test_down_payment_covering_price_falls_back_to_price(self):
        assert derive_loan_amount(
            LoanPurpose.PURCHASE,
            purchase_price=Decimal("100000"),
            down_payment=Decimal("150000"),
        ) == Decimal("100000")

    def test_nothing_known(self):
        assert derive_loan_amount(LoanPurpose.PURCHASE) is None


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


async def test_employee_creates_deal(db_session, seed, personas):
    employee = await seed.employee(db_session)
    deal = await create_application(
        db_session, personas.employee(employee.id), LoanPurpose.PURCHASE, Decimal("350000"),
    )
    assert deal.employee_id == employee.id
    assert deal.primary_borrower_id is None
    assert deal.application_type == ApplicationType.INDIVIDUAL_CREDIT
    assert deal.total_borrowers == 1
    assert deal.current_form_step == "borrower-info-1"
    assert deal.application_date is not None

    loan = await db_session.scalar(select(Loan).where(Loan.deal_id == deal.id))
    assert loan.purpose == LoanPurpose.PURCHASE
    progress = await db_session.scalar(select(DealProgress).where(DealProgress.deal_id == deal.id))
    assert progress.progress_percentage == 0


async def test_borrower_creates_own_deal(db_session, seed, personas):
    sarah = await seed.borrower(db_session)
    deal = await create_application(
        db_session, personas.borrower(sarah.id), LoanPurpose.REFINANCE, Decimal("150000"),
    )
    assert deal.primary_borrower_id == sarah.id
    assert deal.employee_id is None


async def test_unknown_employee_creates_nothing(db_session, personas):
    with pytest.raises(NotFoundError, match="employee not found"):
        await create_application(
            db_session, personas.employee(uuid.uuid4()), LoanPurpose.PURCHASE, Decimal("1"),
        )
    assert await db_session.scalar(select(func.count(Deal.id))) == 0


async def test_non_positive_amount_rejected(db_session, seed, personas):
    employee = await seed.employee(db_session)
    with pytest.raises(StepValidationError):
        await create_application(
            db_session, personas.employee(employee.id), LoanPurpose.PURCHASE, Decimal("0"),
        )


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


def test_preferred_phone_order():
    party = Borrower(home_phone="5550000001", work_phone="5550000002")
    assert preferred_phone(party) == ("5550000001", PhoneType.HOME)
    party.mobile_phone = "5550000003"
    assert preferred_phone(party) == ("5550000003", PhoneType.MOBILE)
    party.primary_phone_type = PhoneType.WORK
    assert preferred_phone(party) == ("5550000002", PhoneType.WORK)


async def test_snapshot_unanswered_flags_are_false(db_session, seed):
    sarah = await seed.borrower(db_session)
    deal = await seed.deal(db_session, primary_borrower_id=sarah.id)

    snapshot = await get_application(db_session, deal.id)
    assert snapshot.borrower.first_name == "Sarah"
    assert snapshot.borrower.phone == "5551234567"
    assert snapshot.borrower.phone_type == PhoneType.MOBILE
    assert snapshot.borrower.is_veteran is False
    assert snapshot.borrower.accept_terms is False
    assert snapshot.borrower.current_address is None
    assert snapshot.co_borrower is None
    assert snapshot.loan.amount == Decimal("350000.00")


async def test_snapshot_co_borrower_living_elsewhere(db_session, seed):
    sarah = await seed.borrower(db_session)
    deal = await seed.deal(db_session, primary_borrower_id=sarah.id)
    await save_step(
        db_session,
        deal.id,
        {"step": "borrower-info-2", "borrower": {"currentAddress": "1 Elm St, Austin, TX 78701"}},
    )
    await save_step(
        db_session,
        deal.id,
        {
            "step": "co-borrower-info-1",
            "coBorrower": {"firstName": "Jordan", "lastName": "Reyes", "phone": "5559876543"},
        },
    )
    await save_step(
        db_session,
        deal.id,
        {"step": "co-borrower-info-2", "coBorrower": {"currentAddress": "8 Ash Ct, Austin, TX 78702"}},
    )

    snapshot = await get_application(db_session, deal.id)
    assert snapshot.application_type == ApplicationType.JOINT_CREDIT
    assert snapshot.co_borrower.live_together is False
    assert snapshot.co_borrower.current_address == "8 Ash Ct, Austin, TX 78702"
    assert snapshot.co_borrower.zip_code == "78702"


async def test_snapshot_unknown_deal(db_session):
    with pytest.raises(NotFoundError):
        await get_application(db_session, uuid.uuid4())


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


async def test_list_most_recently_updated_first(db_session, seed, personas):
    employee = await seed.employee(db_session)
    older = await seed.deal(db_session, employee_id=employee.id)
    newer = await seed.deal(db_session, employee_id=employee.id)

    items, total = await list_applications(db_session, personas.employee(employee.id))
    assert total == 2
    assert [i.id for i in items] == [newer.id, older.id]

    await save_step(db_session, older.id, {"nextStep": "marital-status"})
    items, _ = await list_applications(db_session, personas.employee(employee.id))
    assert [i.id for i in items] == [older.id, newer.id]
    assert items[0].current_form_step == "marital-status"


async def test_list_summary_fields(db_session, seed, personas):
    employee = await seed.employee(db_session)
    sarah = await seed.borrower(db_session)
    await seed.deal(db_session, employee_id=employee.id, primary_borrower_id=sarah.id)

    items, _ = await list_applications(db_session, personas.employee(employee.id))
    assert items[0].borrower_name == "Sarah Mitchell"
    assert items[0].loan_purpose == LoanPurpose.PURCHASE
    assert items[0].progress_percentage == 0


async def test_list_scoped_to_actor(db_session, seed, personas):
    employee = await seed.employee(db_session)
    other_employee = await seed.employee(db_session, email="other@example.com")
    sarah = await seed.borrower(db_session)
    jordan = await seed.borrower(db_session, email="jordan@example.com", phone="5559876543")

    own = await seed.deal(db_session, employee_id=employee.id, primary_borrower_id=sarah.id)
    co = await seed.deal(db_session, employee_id=other_employee.id, primary_borrower_id=jordan.id)
    db_session.add(DealCoBorrower(deal_id=co.id, borrower_id=sarah.id))
    await db_session.commit()
    await seed.deal(db_session, employee_id=other_employee.id)

    items, total = await list_applications(db_session, personas.borrower(sarah.id))
    assert total == 2
    assert {i.id for i in items} == {own.id, co.id}

    items, total = await list_applications(db_session, personas.employee(employee.id))
    assert total == 1
    assert items[0].id == own.id


async def test_employee_sees_self_registered_deal(db_session, seed, personas):
    employee = await seed.employee(db_session)
    other_employee = await seed.employee(db_session, email="other@example.com")
    await seed.deal(db_session, employee_id=other_employee.id)
    result = await register_borrower(db_session, _registration())

    items, total = await list_applications(db_session, personas.employee(employee.id))
    assert total == 1
    assert items[0].id == result.deal_id
    assert items[0].borrower_name == "Riley Nguyen"

    scope = personas.employee(employee.id).data_scope
    assert await deal_in_scope(db_session, scope, result.deal_id) is True


async def test_list_pagination(db_session, seed, personas):
    employee = await seed.employee(db_session)
    for _ in range(3):
        await seed.deal(db_session, employee_id=employee.id)

    items, total = await list_applications(
        db_session, personas.employee(employee.id), offset=2, limit=2,
    )
    assert total == 3
    assert len(items) == 1


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def _registration(**overrides) -> BorrowerRegistration:
    data = {
        "firstName": "Riley",
        "lastName": "Nguyen",
        "email": "Riley@Example.com",
        "phone": "555-222-3333",
        "maritalStatus": "married",
        "currentAddress": "12 Birch Ln, Boise, ID 83702",
        "loanPurpose": "Purchase",
        "purchasePrice": "$500,000",
        "downPayment": "100,000",
        "propertyAddress": "40 Cedar Way, Boise, ID 83706",
    }
    data.update(overrides)
    return BorrowerRegistration.model_validate(data)


async def test_register_creates_borrower_and_deal(db_session):
    result = await register_borrower(db_session, _registration())
    assert result.current_form_step == "borrower-info-2"

    riley = await db_session.get(Borrower, result.borrower_id)
    assert riley.email == "riley@example.com"
    assert riley.primary_phone == "5552223333"
    home = await party_service.get_residence(db_session, riley.id, ResidenceType.CURRENT)
    assert home.city == "Boise"

    snapshot = await get_application(db_session, result.deal_id)
    assert snapshot.borrower.id == riley.id
    assert snapshot.loan.amount == Decimal("400000.00")
    assert snapshot.subject_property.address_line == "40 Cedar Way"
    assert snapshot.subject_property.estimated_value == Decimal("500000.00")


async def test_register_with_bad_address_still_registers(db_session):
    result = await register_borrower(db_session, _registration(currentAddress="my house"))
    home = await party_service.get_residence(db_session, result.borrower_id, ResidenceType.CURRENT)
    assert home is None


async def test_register_duplicate_email_conflicts(db_session, seed):
    await seed.borrower(db_session, email="riley@example.com", phone="5550009999")
    with pytest.raises(ConflictError) as exc_info:
        await register_borrower(db_session, _registration())
    assert exc_info.value.field == "email"
    assert await db_session.scalar(select(func.count(Deal.id))) == 0


async def test_register_requires_verification_when_enabled(db_session, monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_CONTACT_VERIFICATION", True)
    with pytest.raises(StepValidationError, match="verification"):
        await register_borrower(db_session, _registration())
    result = await register_borrower(db_session, _registration(), contact_verified=True)
    assert result.deal_id is not None
