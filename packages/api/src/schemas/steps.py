# This project was developed with assistance from AI tools.
"""Typed step schemas for the intake wizard.

Each wizard step declares, per party role, a model holding exactly the
fields that step owns. Payload keys outside a step's models are dropped by
validation (``extra="ignore"``), so a later step cannot overwrite data an
earlier step captured.
"""

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from db.enums import CitizenshipType, MaritalStatus, PhoneType, PropertyType
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..services.intake_validation import (
    ParsedAddress,
    build_address,
    parse_address,
    validate_citizenship,
    validate_currency,
    validate_dob,
    validate_email,
    validate_interest_rate,
    validate_marital_status,
    validate_phone,
    validate_phone_type,
)


class FormStep(str, enum.Enum):
    BORROWER_INFO_1 = "borrower-info-1"
    MARITAL_STATUS = "marital-status"
    BORROWER_INFO_2 = "borrower-info-2"
    CO_BORROWER_QUESTION = "co-borrower-question"
    CO_BORROWER_INFO_1 = "co-borrower-info-1"
    CO_BORROWER_INFO_2 = "co-borrower-info-2"
    REVIEW = "review"
    GETTING_TO_KNOW_YOU_INTRO = "getting-to-know-you-intro"
    LOAN = "loan"
    LOAN_COMPLETED = "loan-completed"

    @classmethod
    def lookup(cls, value: str | None) -> "FormStep | None":
        try:
            return cls(value)
        except ValueError:
            return None


def _check(validator, value):
    ok, msg, normalized = validator(value)
    if not ok:
        raise ValueError(msg)
    return normalized


class StepFields(BaseModel):
    """Base for per-step field sets. Blank strings and nulls count as absent."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_blank(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: v
                for k, v in data.items()
                if v is not None and not (isinstance(v, str) and not v.strip())
            }
        return data

    def provided(self) -> dict[str, Any]:
        """Fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class AddressFields(StepFields):
    """Current address as structured parts or one ``currentAddress`` string."""

    current_address: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    def has_address_input(self) -> bool:
        return any(
            v is not None
            for v in (self.current_address, self.address, self.city, self.state, self.zip_code)
        )

    def resolved_address(self) -> ParsedAddress | None:
        """Structured parts win when all four are present; otherwise parse the string."""
        structured = build_address(self.address, self.city, self.state, self.zip_code)
        if structured is not None:
            return structured
        return parse_address(self.current_address)


class _PartyIdentity(StepFields):
    first_name: str | None = Field(default=None, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    suffix: str | None = Field(default=None, max_length=20)
    email: str | None = None
    phone: str | None = None
    phone_type: PhoneType | None = None

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, v):
        return _check(validate_email, str(v))

    @field_validator("phone", mode="before")
    @classmethod
    def _phone(cls, v):
        return _check(validate_phone, str(v))

    @field_validator("phone_type", mode="before")
    @classmethod
    def _phone_type(cls, v):
        return _check(validate_phone_type, str(v))


# ---------------------------------------------------------------------------
# Borrower steps
# ---------------------------------------------------------------------------


class BorrowerIdentityFields(_PartyIdentity):
    """borrower-info-1: who the primary borrower is."""

    date_of_birth: date | None = None

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _dob(cls, v):
        if isinstance(v, date):
            v = v.isoformat()
        return _check(validate_dob, str(v))


class BorrowerMaritalFields(StepFields):
    """marital-status: household composition."""

    marital_status: MaritalStatus | None = None
    dependents_count: int | None = Field(default=None, ge=0, le=20)

    @field_validator("marital_status", mode="before")
    @classmethod
    def _marital(cls, v):
        return _check(validate_marital_status, str(v))


class BorrowerDetailFields(AddressFields):
    """borrower-info-2: residence, citizenship, military and consent."""

    former_address: str | None = None
    citizenship_status: CitizenshipType | None = None
    is_veteran: bool | None = None
    accept_terms: bool | None = None
    consent_to_contact: bool | None = None

    @field_validator("citizenship_status", mode="before")
    @classmethod
    def _citizenship(cls, v):
        return _check(validate_citizenship, str(v))


# ---------------------------------------------------------------------------
# Co-borrower steps
# ---------------------------------------------------------------------------


class CoBorrowerIdentityFields(_PartyIdentity):
    """co-borrower-info-1: who the co-borrower is."""


class CoBorrowerDetailFields(AddressFields):
    """co-borrower-info-2: household, residence, military and consent."""

    marital_status: MaritalStatus | None = None
    is_veteran: bool | None = None
    live_together: bool | None = None
    accept_terms: bool | None = None
    consent_to_contact: bool | None = None

    @field_validator("marital_status", mode="before")
    @classmethod
    def _marital(cls, v):
        return _check(validate_marital_status, str(v))


# ---------------------------------------------------------------------------
# Loan step
# ---------------------------------------------------------------------------


class LoanFields(StepFields):
    """loan: requested amounts and property. Purpose is not editable."""

    loan_amount: Decimal | None = None
    purchase_price: Decimal | None = None
    down_payment: Decimal | None = None
    estimated_price: Decimal | None = None
    outstanding_balance: Decimal | None = None
    loan_term_months: int | None = Field(default=None, gt=0, le=480)
    interest_rate: Decimal | None = None
    property_type: PropertyType | None = None
    property_address: str | None = None
    is_applying_for_other_loans: bool | None = None
    is_down_payment_part_gift: bool | None = None

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
        return _check(validate_currency, v)

    @field_validator("interest_rate", mode="before")
    @classmethod
    def _rate(cls, v):
        return _check(validate_interest_rate, v)


# ---------------------------------------------------------------------------
# Step catalogue
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepSchema:
    """Which payload sections a step owns, and whether it may create a party."""

    step: FormStep
    borrower: type[StepFields] | None = None
    co_borrower: type[StepFields] | None = None
    loan: type[StepFields] | None = None
    creates_borrower: bool = False
    creates_co_borrower: bool = False


STEP_SCHEMAS: dict[FormStep, StepSchema] = {
    s.step: s
    for s in (
        StepSchema(FormStep.BORROWER_INFO_1, borrower=BorrowerIdentityFields, creates_borrower=True),
        StepSchema(FormStep.MARITAL_STATUS, borrower=BorrowerMaritalFields),
        StepSchema(FormStep.BORROWER_INFO_2, borrower=BorrowerDetailFields),
        StepSchema(FormStep.CO_BORROWER_QUESTION),
        StepSchema(
            FormStep.CO_BORROWER_INFO_1,
            co_borrower=CoBorrowerIdentityFields,
            creates_co_borrower=True,
        ),
        StepSchema(FormStep.CO_BORROWER_INFO_2, co_borrower=CoBorrowerDetailFields),
        StepSchema(FormStep.REVIEW),
        StepSchema(FormStep.GETTING_TO_KNOW_YOU_INTRO),
        StepSchema(FormStep.LOAN, loan=LoanFields),
        StepSchema(FormStep.LOAN_COMPLETED),
    )
}
