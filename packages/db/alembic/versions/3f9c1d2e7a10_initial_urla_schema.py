"""initial urla intake schema

Revision ID: 3f9c1d2e7a10
Revises:
Create Date: 2026-09-28 10:14:02.118204

"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3f9c1d2e7a10"
down_revision = None
branch_labels = None
depends_on = None

_SECTION_COLUMNS = (
    "section_1a_complete",
    "section_1b_complete",
    "section_1c_complete",
    "section_1d_complete",
    "section_1e_complete",
    "section_2a_complete",
    "section_2b_complete",
    "section_2c_complete",
    "section_2d_complete",
    "section_3_complete",
    "section_4_complete",
    "section_5_complete",
    "section_6_complete",
    "section_7_complete",
    "section_8_complete",
    "section_9_complete",
    "lender_l1_complete",
    "lender_l2_complete",
    "lender_l3_complete",
    "lender_l4_complete",
    "continuation_sheet_complete",
    "unmarried_addendum_complete",
)


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        )
    ]
    if updated:
        cols.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.text("now()"),
                nullable=False,
            )
        )
    return cols


def upgrade() -> None:
    op.create_table(
        "employees",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "borrowers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("middle_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("suffix", sa.String(length=20), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column(
            "marital_status",
            sa.Enum("MARRIED", "SEPARATED", "UNMARRIED", name="marital_status", native_enum=False),
            nullable=True,
        ),
        sa.Column("dependent_count", sa.Integer(), nullable=True),
        sa.Column(
            "citizenship_type",
            sa.Enum(
                "US_CITIZEN",
                "PERMANENT_RESIDENT_ALIEN",
                "NON_PERMANENT_RESIDENT_ALIEN",
                name="citizenship_type",
                native_enum=False,
            ),
            nullable=True,
        ),
        sa.Column("home_phone", sa.String(length=20), nullable=True),
        sa.Column("mobile_phone", sa.String(length=20), nullable=True),
        sa.Column("work_phone", sa.String(length=20), nullable=True),
        sa.Column(
            "primary_phone_type",
            sa.Enum("HOME", "MOBILE", "WORK", name="phone_type", native_enum=False),
            nullable=True,
        ),
        sa.Column("primary_phone", sa.String(length=20), nullable=True),
        sa.Column("military_service", sa.Boolean(), nullable=True),
        sa.Column("consent_to_credit_check", sa.Boolean(), nullable=True),
        sa.Column("consent_to_contact", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_borrowers_email"),
        sa.UniqueConstraint("primary_phone", name="uq_borrowers_primary_phone"),
    )

    op.create_table(
        "residences",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("borrower_id", sa.Uuid(), nullable=False),
        sa.Column(
            "residence_type",
            sa.Enum("CURRENT", "FORMER", name="residence_type", native_enum=False),
            nullable=False,
        ),
        sa.Column("address_line", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("zip_code", sa.String(length=10), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["borrower_id"], ["borrowers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("borrower_id", "residence_type", name="uq_residence_borrower_type"),
    )
    op.create_index(op.f("ix_residences_borrower_id"), "residences", ["borrower_id"], unique=False)

    op.create_table(
        "deals",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "application_type",
            sa.Enum(
                "INDIVIDUAL_CREDIT", "JOINT_CREDIT", name="application_type", native_enum=False
            ),
            nullable=False,
        ),
        sa.Column("total_borrowers", sa.Integer(), nullable=False),
        sa.Column("primary_borrower_id", sa.Uuid(), nullable=True),
        sa.Column("employee_id", sa.Uuid(), nullable=True),
        sa.Column("current_form_step", sa.String(length=64), nullable=True),
        sa.Column("application_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["primary_borrower_id"], ["borrowers.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_deals_primary_borrower_id"), "deals", ["primary_borrower_id"], unique=False
    )
    op.create_index(op.f("ix_deals_employee_id"), "deals", ["employee_id"], unique=False)

    op.create_table(
        "loans",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("deal_id", sa.Uuid(), nullable=False),
        sa.Column(
            "purpose",
            sa.Enum("PURCHASE", "REFINANCE", name="loan_purpose", native_enum=False),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("term_months", sa.Integer(), nullable=True),
        sa.Column("interest_rate", sa.Numeric(precision=6, scale=3), nullable=True),
        sa.Column(
            "property_type",
            sa.Enum(
                "SINGLE_FAMILY",
                "CONDO",
                "TOWNHOUSE",
                "MULTI_UNIT",
                "MANUFACTURED",
                name="property_type",
                native_enum=False,
            ),
            nullable=True,
        ),
        sa.Column("purchase_price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("down_payment", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("outstanding_balance", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("is_applying_for_other_loans", sa.Boolean(), nullable=True),
        sa.Column("is_down_payment_part_gift", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("deal_id"),
    )

    op.create_table(
        "subject_properties",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("deal_id", sa.Uuid(), nullable=False),
        sa.Column("address_line", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=2), nullable=True),
        sa.Column("zip_code", sa.String(length=10), nullable=True),
        sa.Column("estimated_value", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column(
            "usage",
            sa.Enum(
                "PRIMARY_RESIDENCE",
                "SECOND_HOME",
                "INVESTMENT",
                name="property_usage",
                native_enum=False,
            ),
            nullable=True,
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("deal_id"),
    )

    op.create_table(
        "deal_co_borrowers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("deal_id", sa.Uuid(), nullable=False),
        sa.Column("borrower_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["borrower_id"], ["borrowers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("deal_id", "borrower_id", name="uq_deal_co_borrower"),
    )
    op.create_index(
        op.f("ix_deal_co_borrowers_deal_id"), "deal_co_borrowers", ["deal_id"], unique=False
    )
    op.create_index(
        op.f("ix_deal_co_borrowers_borrower_id"),
        "deal_co_borrowers",
        ["borrower_id"],
        unique=False,
    )

    op.create_table(
        "deal_progress",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("deal_id", sa.Uuid(), nullable=False),
        *[
            sa.Column(name, sa.Boolean(), server_default=sa.false(), nullable=False)
            for name in _SECTION_COLUMNS
        ],
        sa.Column("progress_percentage", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_updated_section", sa.String(length=64), nullable=True),
        sa.Column("last_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("deal_id"),
    )


def downgrade() -> None:
    op.drop_table("deal_progress")
    op.drop_index(op.f("ix_deal_co_borrowers_borrower_id"), table_name="deal_co_borrowers")
    op.drop_index(op.f("ix_deal_co_borrowers_deal_id"), table_name="deal_co_borrowers")
    op.drop_table("deal_co_borrowers")
    op.drop_table("subject_properties")
    op.drop_table("loans")
    op.drop_index(op.f("ix_deals_employee_id"), table_name="deals")
    op.drop_index(op.f("ix_deals_primary_borrower_id"), table_name="deals")
    op.drop_table("deals")
    op.drop_index(op.f("ix_residences_borrower_id"), table_name="residences")
    op.drop_table("residences")
    op.drop_table("borrowers")
    op.drop_table("employees")
