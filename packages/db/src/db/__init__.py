# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, get_db, get_db_service
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
    UserRole,
)
from .models import (
    Borrower,
    Deal,
    DealCoBorrower,
    DealProgress,
    Employee,
    Loan,
    Residence,
    SubjectProperty,
)

__all__ = [
    "Base",
    "DatabaseService",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ApplicationType",
    "CitizenshipType",
    "FormSection",
    "LoanPurpose",
    "MaritalStatus",
    "PhoneType",
    "PropertyType",
    "PropertyUsage",
    "ResidenceType",
    "UserRole",
    # Models
    "Borrower",
    "Deal",
    "DealCoBorrower",
    "DealProgress",
    "Employee",
    "Loan",
    "Residence",
    "SubjectProperty",
]
