# This project was developed with assistance from AI tools.
"""
URLA intake -- domain models

Parties (borrowers, co-borrowers, employees), the deal envelope with its
nested loan and subject property, co-borrower linkage, and per-deal
section progress.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    ApplicationType,
    CitizenshipType,
    FormSection,
    LoanPurpose,
    MaritalStatus,
    PhoneType,
    PropertyType,
    PropertyUsage,
    ResidenceType,
)


def utcnow() -> datetime:
    return datetime.now(UTC)


def _created_at():
    return Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


def _updated_at():
    return Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


class Employee(Base):
    """Loan officer or processor who manages deals. Provisioned externally."""

    __tablename__ = "employees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    created_at = _created_at()

    deals = relationship("Deal", back_populates="employee")

    def __repr__(self):
        return f"<Employee(id={self.id}, email='{self.email}')>"


class Borrower(Base):
    """A party on one or more deals, either as primary borrower or co-borrower."""

    __tablename__ = "borrowers"
    __table_args__ = (
        UniqueConstraint("email", name="uq_borrowers_email"),
        UniqueConstraint("primary_phone", name="uq_borrowers_primary_phone"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False)
    suffix = Column(String(20), nullable=True)
    birth_date = Column(Date, nullable=True)
    marital_status = Column(
        Enum(MaritalStatus, name="marital_status", native_enum=False),
        nullable=True,
    )
    dependent_count = Column(Integer, nullable=True)
    citizenship_type = Column(
        Enum(CitizenshipType, name="citizenship_type", native_enum=False),
        nullable=True,
    )
    home_phone = Column(String(20), nullable=True)
    mobile_phone = Column(String(20), nullable=True)
    work_phone = Column(String(20), nullable=True)
    primary_phone_type = Column(
        Enum(PhoneType, name="phone_type", native_enum=False),
        nullable=True,
    )
    # Normalized 10-digit form of the primary phone; the lookup key for party resolution
    primary_phone = Column(String(20), nullable=True)
    # Tri-state: NULL means the applicant has not answered yet
    military_service = Column(Boolean, nullable=True)
    consent_to_credit_check = Column(Boolean, nullable=True)
    consent_to_contact = Column(Boolean, nullable=True)
    created_at = _created_at()
    updated_at = _updated_at()

    residences = relationship(
        "Residence", back_populates="borrower", cascade="all, delete-orphan",
    )
    deal_links = relationship(
        "DealCoBorrower", back_populates="borrower", cascade="all, delete-orphan",
    )

    def phone_for(self, phone_type: PhoneType) -> str | None:
        return getattr(self, f"{phone_type.value}_phone")

    def set_phone(self, phone_type: PhoneType, value: str | None) -> None:
        setattr(self, f"{phone_type.value}_phone", value)

    def __repr__(self):
        return f"<Borrower(id={self.id}, name='{self.first_name} {self.last_name}')>"


class Residence(Base):
    """Current or former address of a borrower. One row per type, replaced in place."""

    __tablename__ = "residences"
    __table_args__ = (
        UniqueConstraint("borrower_id", "residence_type", name="uq_residence_borrower_type"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    borrower_id = Column(
        Uuid, ForeignKey("borrowers.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    residence_type = Column(
        Enum(ResidenceType, name="residence_type", native_enum=False),
        nullable=False,
    )
    address_line = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(2), nullable=False)
    zip_code = Column(String(10), nullable=False)
    created_at = _created_at()
    updated_at = _updated_at()

    borrower = relationship("Borrower", back_populates="residences")

    def __repr__(self):
        return f"<Residence(borrower_id={self.borrower_id}, type='{self.residence_type}')>"


class Deal(Base):
    """Loan application envelope."""

    __tablename__ = "deals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_type = Column(
        Enum(ApplicationType, name="application_type", native_enum=False),
        nullable=False,
        default=ApplicationType.INDIVIDUAL_CREDIT,
    )
    total_borrowers = Column(Integer, nullable=False, default=1)
    primary_borrower_id = Column(
        Uuid, ForeignKey("borrowers.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    employee_id = Column(
        Uuid, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    current_form_step = Column(String(64), nullable=True)
    application_date = Column(Date, nullable=True)
    created_at = _created_at()
    updated_at = _updated_at()

    primary_borrower = relationship("Borrower", foreign_keys=[primary_borrower_id])
    employee = relationship("Employee", back_populates="deals")
    loan = relationship(
        "Loan", back_populates="deal", uselist=False, cascade="all, delete-orphan",
    )
    subject_property = relationship(
        "SubjectProperty", back_populates="deal", uselist=False, cascade="all, delete-orphan",
    )
    progress = relationship(
        "DealProgress", back_populates="deal", uselist=False, cascade="all, delete-orphan",
    )
    co_borrower_links = relationship(
        "DealCoBorrower",
        back_populates="deal",
        cascade="all, delete-orphan",
        order_by="DealCoBorrower.created_at",
    )

    def __repr__(self):
        return f"<Deal(id={self.id}, type='{self.application_type}', step='{self.current_form_step}')>"


class Loan(Base):
    """Requested loan terms. Purpose is fixed when the deal is created."""

    __tablename__ = "loans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    deal_id = Column(
        Uuid, ForeignKey("deals.id", ondelete="CASCADE"), nullable=False, unique=True,
    )
    purpose = Column(
        Enum(LoanPurpose, name="loan_purpose", native_enum=False),
        nullable=False,
    )
    amount = Column(Numeric(12, 2), nullable=True)
    term_months = Column(Integer, nullable=True)
    interest_rate = Column(Numeric(6, 3), nullable=True)
    property_type = Column(
        Enum(PropertyType, name="property_type", native_enum=False),
        nullable=True,
    )
    purchase_price = Column(Numeric(12, 2), nullable=True)
    down_payment = Column(Numeric(12, 2), nullable=True)
    outstanding_balance = Column(Numeric(12, 2), nullable=True)
    is_applying_for_other_loans = Column(Boolean, nullable=True)
    is_down_payment_part_gift = Column(Boolean, nullable=True)
    created_at = _created_at()
    updated_at = _updated_at()

    deal = relationship("Deal", back_populates="loan")

    def __repr__(self):
        return f"<Loan(deal_id={self.deal_id}, purpose='{self.purpose}', amount={self.amount})>"


class SubjectProperty(Base):
    """Property the loan is secured by. Created once an address or value is known."""

    __tablename__ = "subject_properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    deal_id = Column(
        Uuid, ForeignKey("deals.id", ondelete="CASCADE"), nullable=False, unique=True,
    )
    address_line = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(2), nullable=True)
    zip_code = Column(String(10), nullable=True)
    estimated_value = Column(Numeric(12, 2), nullable=True)
    usage = Column(
        Enum(PropertyUsage, name="property_usage", native_enum=False),
        nullable=True,
    )
    created_at = _created_at()
    updated_at = _updated_at()

    deal = relationship("Deal", back_populates="subject_property")

    def __repr__(self):
        return f"<SubjectProperty(deal_id={self.deal_id}, city='{self.city}')>"


class DealCoBorrower(Base):
    """Junction linking a co-borrower party to a deal. Oldest link wins."""

    __tablename__ = "deal_co_borrowers"
    __table_args__ = (
        UniqueConstraint("deal_id", "borrower_id", name="uq_deal_co_borrower"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    deal_id = Column(
        Uuid, ForeignKey("deals.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    borrower_id = Column(
        Uuid, ForeignKey("borrowers.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    created_at = _created_at()
    updated_at = _updated_at()

    deal = relationship("Deal", back_populates="co_borrower_links")
    borrower = relationship("Borrower", back_populates="deal_links")

    def __repr__(self):
        return f"<DealCoBorrower(deal_id={self.deal_id}, borrower_id={self.borrower_id})>"


class DealProgress(Base):
    """Per-section completion flags for a deal, one row per deal."""

    __tablename__ = "deal_progress"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    deal_id = Column(
        Uuid, ForeignKey("deals.id", ondelete="CASCADE"), nullable=False, unique=True,
    )
    section_1a_complete = Column(Boolean, nullable=False, default=False)
    section_1b_complete = Column(Boolean, nullable=False, default=False)
    section_1c_complete = Column(Boolean, nullable=False, default=False)
    section_1d_complete = Column(Boolean, nullable=False, default=False)
    section_1e_complete = Column(Boolean, nullable=False, default=False)
    section_2a_complete = Column(Boolean, nullable=False, default=False)
    section_2b_complete = Column(Boolean, nullable=False, default=False)
    section_2c_complete = Column(Boolean, nullable=False, default=False)
    section_2d_complete = Column(Boolean, nullable=False, default=False)
    section_3_complete = Column(Boolean, nullable=False, default=False)
    section_4_complete = Column(Boolean, nullable=False, default=False)
    section_5_complete = Column(Boolean, nullable=False, default=False)
    section_6_complete = Column(Boolean, nullable=False, default=False)
    section_7_complete = Column(Boolean, nullable=False, default=False)
    section_8_complete = Column(Boolean, nullable=False, default=False)
    section_9_complete = Column(Boolean, nullable=False, default=False)
    lender_l1_complete = Column(Boolean, nullable=False, default=False)
    lender_l2_complete = Column(Boolean, nullable=False, default=False)
    lender_l3_complete = Column(Boolean, nullable=False, default=False)
    lender_l4_complete = Column(Boolean, nullable=False, default=False)
    continuation_sheet_complete = Column(Boolean, nullable=False, default=False)
    unmarried_addendum_complete = Column(Boolean, nullable=False, default=False)
    progress_percentage = Column(Integer, nullable=False, default=0)
    last_updated_section = Column(String(64), nullable=True)
    last_updated_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = _created_at()
    updated_at = _updated_at()

    deal = relationship("Deal", back_populates="progress")

    def is_complete(self, section: FormSection) -> bool:
        return bool(getattr(self, section.column_name))

    def flags(self) -> dict[FormSection, bool]:
        """Completion flags in canonical section order."""
        return {section: self.is_complete(section) for section in FormSection.canonical_order()}

    def __repr__(self):
        return f"<DealProgress(deal_id={self.deal_id}, pct={self.progress_percentage})>"
