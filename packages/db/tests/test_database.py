# This project was developed with assistance from AI tools.
"""DatabaseService and model helper tests (in-memory SQLite)."""

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from db import Borrower, DatabaseService, DealProgress, Employee
from db.enums import ApplicationType, FormSection, PhoneType


@pytest_asyncio.fixture
async def service():
    svc = DatabaseService("sqlite+aiosqlite:///:memory:")
    await svc.create_all()
    yield svc
    await svc.dispose()


async def test_health_check(service):
    assert await service.health_check() is True


async def test_session_rolls_back_on_error(service):
    with pytest.raises(RuntimeError):
        async with service.session() as session:
            session.add(Employee(email="e@example.com", first_name="E", last_name="E"))
            await session.flush()
            raise RuntimeError("boom")

    async with service.session() as session:
        assert await session.scalar(select(func.count(Employee.id))) == 0


async def test_savepoint_rollback_keeps_outer_work(service):
    async with service.session() as session:
        session.add(Employee(email="keep@example.com", first_name="K", last_name="K"))
        await session.flush()
        with pytest.raises(RuntimeError):
            async with session.begin_nested():
                session.add(Employee(email="drop@example.com", first_name="D", last_name="D"))
                await session.flush()
                raise RuntimeError("inner")
        await session.commit()

    async with service.session() as session:
        emails = (await session.scalars(select(Employee.email))).all()
        assert emails == ["keep@example.com"]


def test_every_section_maps_to_a_progress_column():
    columns = set(DealProgress.__table__.columns.keys())
    for section in FormSection.canonical_order():
        assert section.column_name in columns


def test_progress_flags_default_false():
    progress = DealProgress()
    assert not any(progress.flags().values())
    assert len(progress.flags()) == 22


def test_borrower_count_by_application_type():
    assert ApplicationType.INDIVIDUAL_CREDIT.borrower_count == 1
    assert ApplicationType.JOINT_CREDIT.borrower_count == 2


def test_phone_slots():
    party = Borrower(first_name="A", last_name="B")
    party.set_phone(PhoneType.WORK, "5550001234")
    assert party.work_phone == "5550001234"
    assert party.phone_for(PhoneType.WORK) == "5550001234"
    assert party.phone_for(PhoneType.HOME) is None
