# This project was developed with assistance from AI tools.
"""Shared fixtures: in-memory SQLite database, seed helpers and an HTTP client.

The database is a single shared aiosqlite connection (StaticPool). Sessions
opened from ``db_service`` must not hold transactions open at the same time,
so seed data is committed before the code under test opens its own session.
"""

import uuid
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from db import Borrower, DatabaseService, Deal, DealProgress, Employee, Loan
from db.database import get_db
from db.enums import ApplicationType, LoanPurpose, PhoneType, UserRole

from src.core.auth import build_user_context
from src.main import app
from src.middleware.auth import get_current_user
from src.schemas.auth import UserContext

SQLITE_URL = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Personas
# ---------------------------------------------------------------------------


def employee_user(user_id: uuid.UUID) -> UserContext:
    return build_user_context(UserRole.EMPLOYEE, user_id)


def borrower_user(user_id: uuid.UUID) -> UserContext:
    return build_user_context(UserRole.BORROWER, user_id)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_service():
    service = DatabaseService(SQLITE_URL)
    await service.create_all()
    yield service
    await service.dispose()


@pytest_asyncio.fixture
async def db_session(db_service):
    async with db_service.session() as session:
        yield session


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------


async def seed_employee(session, *, email="officer@example.com") -> Employee:
    employee = Employee(first_name="Olivia", last_name="Officer", email=email)
    session.add(employee)
    await session.commit()
    return employee


async def seed_borrower(
    session,
    *,
    first_name="Sarah",
    last_name="Mitchell",
    email="sarah@example.com",
    phone="5551234567",
) -> Borrower:
    borrower = Borrower(
        first_name=first_name,
        last_name=last_name,
        email=email,
        mobile_phone=phone,
        primary_phone=phone,
        primary_phone_type=PhoneType.MOBILE,
    )
    session.add(borrower)
    await session.commit()
    return borrower


async def seed_deal(
    session,
    *,
    employee_id=None,
    primary_borrower_id=None,
    purpose=LoanPurpose.PURCHASE,
    amount=Decimal("350000.00"),
    current_form_step="borrower-info-1",
) -> Deal:
    deal = Deal(
        id=uuid.uuid4(),
        application_type=ApplicationType.INDIVIDUAL_CREDIT,
        total_borrowers=1,
        employee_id=employee_id,
        primary_borrower_id=primary_borrower_id,
        current_form_step=current_form_step,
    )
    session.add(deal)
    session.add(Loan(deal_id=deal.id, purpose=purpose, amount=amount))
    session.add(DealProgress(deal_id=deal.id))
    await session.commit()
    return deal


@pytest.fixture
def seed():
    """Seed helpers bundled for tests that want them without importing conftest."""

    class _Seed:
        employee = staticmethod(seed_employee)
        borrower = staticmethod(seed_borrower)
        deal = staticmethod(seed_deal)

    return _Seed


@pytest.fixture
def personas():
    class _Personas:
        employee = staticmethod(employee_user)
        borrower = staticmethod(borrower_user)

    return _Personas


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client_factory(db_service):
    """Factory returning an async httpx client acting as ``user``.

    Each request gets its own session from ``db_service``.
    """
    app.state.db_service = db_service
    clients: list[httpx.AsyncClient] = []

    async def _make(user: UserContext | None = None) -> httpx.AsyncClient:
        async def _get_db():
            async with db_service.session() as session:
                yield session

        app.dependency_overrides[get_db] = _get_db
        if user is not None:

            async def _get_current_user():
                return user

            app.dependency_overrides[get_current_user] = _get_current_user
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        client = httpx.AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()
    app.state.db_service = None
