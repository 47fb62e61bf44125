# This project was developed with assistance from AI tools.
"""Field-level validation and normalization for step payloads.

Pure functions. Validators return ``(is_valid, error_msg, normalized)`` and
are wired into the step schemas as pydantic field validators.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from db.enums import CitizenshipType, MaritalStatus, PhoneType

_STATE_RE = re.compile(r"[A-Za-z]{2}")
_ZIP_RE = re.compile(r"\d{5}(-?\d{4})?")


def normalize_phone(value: str | None) -> str | None:
    """Strip punctuation and a leading US country code.

    ``"+1 (555) 123-4567"`` and ``"555.123.4567"`` both become ``"5551234567"``.
    """
    if value is None:
        return None
    digits = re.sub(r"\D", "", str(value))
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits or None


def normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip().lower() or None


def validate_phone(value: str) -> tuple[bool, str, str | None]:
    """Validate a US phone number and normalize it to 10 digits."""
    digits = normalize_phone(value)
    if digits is None or len(digits) != 10:
        return False, "Phone must be a 10-digit US number", None
    return True, "", digits


def validate_phone_type(value: str) -> tuple[bool, str, str | None]:
    normalized = value.strip().lower()
    try:
        PhoneType(normalized)
    except ValueError:
        valid = [p.value for p in PhoneType]
        return False, f"Unknown phone type. Valid: {', '.join(valid)}", None
    return True, "", normalized


def validate_dob(value: str) -> tuple[bool, str, str | None]:
    """Validate date of birth. Accepts multiple formats."""
    formats = ["%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y", "%B %d, %Y"]
    parsed: date | None = None
    for fmt in formats:
        try:
            parsed = datetime.strptime(value.strip(), fmt).date()
            break
        except ValueError:
            continue
    if parsed is None:
        return False, "Could not parse date. Try YYYY-MM-DD or MM/DD/YYYY.", None

    today = date.today()
    age = today.year - parsed.year - ((today.month, today.day) < (parsed.month, parsed.day))
    if age < 18:
        return False, "Applicant must be at least 18 years old", None
    if age > 120:
        return False, "Date of birth appears invalid", None
    return True, "", parsed.isoformat()


def validate_email(value: str) -> tuple[bool, str, str | None]:
    """Basic email format validation."""
    value = value.strip().lower()
    if not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", value):
        return False, "Invalid email format", None
    return True, "", value


def validate_marital_status(value: str) -> tuple[bool, str, str | None]:
    """Case-insensitive match against Married / Separated / Unmarried."""
    normalized = value.strip().capitalize()
    try:
        MaritalStatus(normalized)
    except ValueError:
        valid = [m.value for m in MaritalStatus]
        return False, f"Unknown marital status. Valid: {', '.join(valid)}", None
    return True, "", normalized


def validate_citizenship(value: str) -> tuple[bool, str, str | None]:
    compact = re.sub(r"[\s_\-]", "", value.strip()).lower()
    for member in CitizenshipType:
        if member.value.lower() == compact:
            return True, "", member.value
    valid = [c.value for c in CitizenshipType]
    return False, f"Unknown citizenship status. Valid: {', '.join(valid)}", None


def validate_currency(value: str | int | float | Decimal) -> tuple[bool, str, str | None]:
    """Accept numbers or strings like ``"$1,234.56"``; reject negatives."""
    cleaned = re.sub(r"[$,\s]", "", str(value).strip())
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return False, "Could not parse amount", None
    if not amount.is_finite():
        return False, "Could not parse amount", None
    if amount < 0:
        return False, "Amount cannot be negative", None
    if amount > 100_000_000:
        return False, "Amount exceeds maximum", None
    return True, "", f"{amount:.2f}"


def validate_interest_rate(value: str | int | float | Decimal) -> tuple[bool, str, str | None]:
    cleaned = str(value).strip().rstrip("%").strip()
    try:
        rate = Decimal(cleaned)
    except InvalidOperation:
        return False, "Could not parse interest rate", None
    if rate < 0 or rate > 25:
        return False, "Interest rate must be between 0 and 25", None
    return True, "", f"{rate:.3f}"


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedAddress:
    """A complete US street address."""

    street: str
    city: str
    state: str
    zip_code: str

    def __str__(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}"


def build_address(
    street: str | None,
    city: str | None,
    state: str | None,
    zip_code: str | None,
) -> ParsedAddress | None:
    """Return a ParsedAddress when all four parts are present and well-formed."""
    parts = [(p or "").strip() for p in (street, city, state, zip_code)]
    if not all(parts):
        return None
    street, city, state, zip_code = parts
    if not _STATE_RE.fullmatch(state) or not _ZIP_RE.fullmatch(zip_code):
        return None
    return ParsedAddress(street=street, city=city, state=state.upper(), zip_code=zip_code)


def parse_address(text: str | None) -> ParsedAddress | None:
    """Parse ``"street, city, STATE zip"``.

    Everything before the last two comma-separated segments is the street,
    so ``"1 Elm St, Apt 4, Austin, TX 78701"`` keeps ``Apt 4`` in the street.
    Returns None when the text does not have that shape.
    """
    if not text:
        return None
    segments = [s.strip() for s in text.split(",")]
    if len(segments) < 3:
        return None
    state_zip = segments[-1].split()
    if len(state_zip) < 2:
        return None
    return build_address(
        street=", ".join(segments[:-2]),
        city=segments[-2],
        state=state_zip[0],
        zip_code=" ".join(state_zip[1:]),
    )
