# This project was developed with assistance from AI tools.
"""Application request/response schemas."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from db.enums import (
    ApplicationType,
    CitizenshipType,
    LoanPurpose,
    MaritalStatus,
    PhoneType,
    PropertyType,
)
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..services.intake_validation import (
    validate_currency,
    validate_email,
    validate_marital_status,
    validate_phone,
)
from . import Pagination


class ApplicationCreate(BaseModel):
    """Start a new deal."""

    loan_purpose: LoanPurpose
    loan_amount: Decimal = Field(gt=0)


class ApplicationCreated(BaseModel):
    deal_id: uuid.UUID
    current_form_step: str | None = None


class PartySnapshot(BaseModel):
    """Borrower or co-borrower as rendered to API consumers.

    Tri-state consent and military flags are rendered as plain booleans
    (unset -> false).
    """

    id: uuid.UUID
    first_name: str
    middle_name: str | None = None
    last_name: str
    suffix: str | None = None
    email: str | None = None
    phone: str | None = None
    phone_type: PhoneType | None = None
    date_of_birth: date | None = None
    marital_status: MaritalStatus | None = None
    dependents_count: int | None = None
    citizenship_status: CitizenshipType | None = None
    is_veteran: bool = False
    accept_terms: bool = False
    consent_to_contact: bool = False
    current_address: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    former_address: str | None = None


class CoBorrowerSnapshot(PartySnapshot):
    live_together: bool = False


class LoanSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    purpose: LoanPurpose
    amount: Decimal | None = None
    term_months: int | None = None
    interest_rate: Decimal | None = None
    property_type: PropertyType | None = None
    purchase_price: Decimal | None = None
    down_payment: Decimal | None = None
    outstanding_balance: Decimal | None = None
    is_applying_for_other_loans: bool = False
    is_down_payment_part_gift: bool = False


class SubjectPropertySnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    address_line: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    estimated_value: Decimal | None = None


class ApplicationSnapshot(BaseModel):
    """Deal fields plus borrower and co-borrower snapshots."""

    id: uuid.UUID
    application_type: ApplicationType
    total_borrowers: int
    current_form_step: str | None = None
    application_date: date | None = None
    employee_id: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    loan: LoanSnapshot | None = None
    subject_property: SubjectPropertySnapshot | None = None
    borrower: PartySnapshot | None = None
    co_borrower: CoBorrowerSnapshot | None = None


class ApplicationSummary(BaseModel):
    """One row of an applications listing."""

    id: uuid.UUID
    application_type: ApplicationType
    loan_purpose: LoanPurpose | None = None
    loan_amount: Decimal | None = None
    current_form_step: str | None = None
    borrower_name: str | None = None
    progress_percentage: int = 0
    last_updated_section: str | None = None
    created_at: datetime
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    data: list[ApplicationSummary]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Self-service registration
# ---------------------------------------------------------------------------


class BorrowerRegistration(BaseModel):
    """Sign-up form submitted before the first wizard step.

    Accepts the client's camelCase keys. Currency fields take numbers or
    ``"$1,234"`` strings.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str
    phone: str
    marital_status: MaritalStatus | None = None
    current_address: str | None = None
    loan_purpose: LoanPurpose
    loan_amount: Decimal | None = None
    purchase_price: Decimal | None = None
    down_payment: Decimal | None = None
    estimated_price: Decimal | None = None
    outstanding_balance: Decimal | None = None
    property_address: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, v):
        ok, msg, normalized = validate_email(str(v))
        if not ok:
            raise ValueError(msg)
        return normalized

    @field_validator("phone", mode="before")
    @classmethod
    def _phone(cls, v):
        ok, msg, normalized = validate_phone(str(v))
        if not ok:
            raise ValueError(msg)
        return normalized

    @field_validator("marital_status", mode="before")
    @classmethod
    def _marital(cls, v):
        if v in (None, ""):
            return None
        ok, msg, normalized = validate_marital_status(str(v))
        if not ok:
            raise ValueError(msg)
        return normalized

    @field_validator(
        "loan_amount",
        "purchase_price",
        "down_payment",
        "estimated_price",
        "outstanding_balance",
        mode="before",
    )
    @classmethod
    def _currency(cls, v):
        if v in (None, ""):
            return None
        ok, msg, normalized = validate_currency(v)
        if not ok:
            raise ValueError(msg)
        return normalized


class RegistrationResult(BaseModel):
    deal_id: uuid.UUID
    borrower_id: uuid.UUID
    current_form_step: str | None = None
