# This project was developed with assistance from AI tools.
"""
Domain enums for URLA intake.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class UserRole(str, enum.Enum):
    BORROWER = "borrower"
    EMPLOYEE = "employee"


class ApplicationType(str, enum.Enum):
    INDIVIDUAL_CREDIT = "IndividualCredit"
    JOINT_CREDIT = "JointCredit"

    @property
    def borrower_count(self) -> int:
        """Number of borrowers implied by the application type."""
        return 2 if self is ApplicationType.JOINT_CREDIT else 1


class LoanPurpose(str, enum.Enum):
    PURCHASE = "Purchase"
    REFINANCE = "Refinance"


class MaritalStatus(str, enum.Enum):
    MARRIED = "Married"
    SEPARATED = "Separated"
    UNMARRIED = "Unmarried"


class CitizenshipType(str, enum.Enum):
    US_CITIZEN = "USCitizen"
    PERMANENT_RESIDENT_ALIEN = "PermanentResidentAlien"
    NON_PERMANENT_RESIDENT_ALIEN = "NonPermanentResidentAlien"


class PhoneType(str, enum.Enum):
    HOME = "home"
    MOBILE = "mobile"
    WORK = "work"


class ResidenceType(str, enum.Enum):
    CURRENT = "current"
    FORMER = "former"


class PropertyType(str, enum.Enum):
    SINGLE_FAMILY = "single_family"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    MULTI_UNIT = "multi_unit"
    MANUFACTURED = "manufactured"


class PropertyUsage(str, enum.Enum):
    PRIMARY_RESIDENCE = "primary_residence"
    SECOND_HOME = "second_home"
    INVESTMENT = "investment"


class FormSection(str, enum.Enum):
    """URLA sections tracked for completion. Definition order is canonical."""

    SECTION_1A = "section1a"
    SECTION_1B = "section1b"
    SECTION_1C = "section1c"
    SECTION_1D = "section1d"
    SECTION_1E = "section1e"
    SECTION_2A = "section2a"
    SECTION_2B = "section2b"
    SECTION_2C = "section2c"
    SECTION_2D = "section2d"
    SECTION_3 = "section3"
    SECTION_4 = "section4"
    SECTION_5 = "section5"
    SECTION_6 = "section6"
    SECTION_7 = "section7"
    SECTION_8 = "section8"
    SECTION_9 = "section9"
    LENDER_L1 = "lenderL1"
    LENDER_L2 = "lenderL2"
    LENDER_L3 = "lenderL3"
    LENDER_L4 = "lenderL4"
    CONTINUATION = "continuation"
    UNMARRIED_ADDENDUM = "unmarriedAddendum"

    @property
    def column_name(self) -> str:
        """Name of the DealProgress boolean column backing this section."""
        return _SECTION_COLUMNS[self]

    @classmethod
    def canonical_order(cls) -> tuple["FormSection", ...]:
        return tuple(cls)


_SECTION_COLUMNS: dict[FormSection, str] = {
    FormSection.SECTION_1A: "section_1a_complete",
    FormSection.SECTION_1B: "section_1b_complete",
    FormSection.SECTION_1C: "section_1c_complete",
    FormSection.SECTION_1D: "section_1d_complete",
    FormSection.SECTION_1E: "section_1e_complete",
    FormSection.SECTION_2A: "section_2a_complete",
    FormSection.SECTION_2B: "section_2b_complete",
    FormSection.SECTION_2C: "section_2c_complete",
    FormSection.SECTION_2D: "section_2d_complete",
    FormSection.SECTION_3: "section_3_complete",
    FormSection.SECTION_4: "section_4_complete",
    FormSection.SECTION_5: "section_5_complete",
    FormSection.SECTION_6: "section_6_complete",
    FormSection.SECTION_7: "section_7_complete",
    FormSection.SECTION_8: "section_8_complete",
    FormSection.SECTION_9: "section_9_complete",
    FormSection.LENDER_L1: "lender_l1_complete",
    FormSection.LENDER_L2: "lender_l2_complete",
    FormSection.LENDER_L3: "lender_l3_complete",
    FormSection.LENDER_L4: "lender_l4_complete",
    FormSection.CONTINUATION: "continuation_sheet_complete",
    FormSection.UNMARRIED_ADDENDUM: "unmarried_addendum_complete",
}
