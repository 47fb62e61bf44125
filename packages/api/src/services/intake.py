# This project was developed with assistance from AI tools.
"""Incremental save orchestration for the intake wizard.

A save carries the fields of one wizard step plus an optional cursor value
for the step the client should render next. The orchestrator:

- resolves which step the payload belongs to (``step`` key, else the
  deal's current cursor) and validates each section against that step's
  schema before writing anything;
- applies party writes (borrower, co-borrower) and commits them;
- applies loan/property writes and advances the cursor in one commit.

Non-critical sub-writes (addresses, consent and military flags, the subject
property) run in savepoints. A failure there is logged and reported as a
``PartialWriteWarning``; the save still succeeds. Resolving the primary
borrower and linking a co-borrower are critical and abort the save.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from db import Borrower, Deal
from db.enums import ResidenceType
from db.models import utcnow
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError, StepValidationError
from ..schemas.intake import PartialWriteWarning, SaveStepResult
from ..schemas.steps import (
    STEP_SCHEMAS,
    AddressFields,
    BorrowerDetailFields,
    CoBorrowerDetailFields,
    FormStep,
    LoanFields,
    StepFields,
    StepSchema,
)
from . import party as party_service
from .intake_validation import ParsedAddress, parse_address
from .loan import update_loan, upsert_subject_property

logger = logging.getLogger(__name__)

# Payload key -> StepSchema attribute
DATA_KEYS: dict[str, str] = {
    "borrower": "borrower",
    "coBorrower": "co_borrower",
    "loan": "loan",
}
CONTROL_KEYS = frozenset({"step", "nextStep", "nextFormStep"})

_MAX_CURSOR_LENGTH = 64

# Step field -> Borrower column, written directly with the party
_PARTY_COLUMNS: dict[str, str] = {
    "marital_status": "marital_status",
    "dependents_count": "dependent_count",
    "citizenship_status": "citizenship_type",
}

# Step field -> tri-state Borrower column, written best-effort
_FLAG_COLUMNS: dict[str, str] = {
    "is_veteran": "military_service",
    "accept_terms": "consent_to_credit_check",
    "consent_to_contact": "consent_to_contact",
}


@dataclass
class ValidatedStep:
    """A payload after step resolution and per-section validation."""

    schema: StepSchema
    borrower: StepFields | None = None
    co_borrower: StepFields | None = None
    loan: StepFields | None = None


# ---------------------------------------------------------------------------
# Payload interpretation
# ---------------------------------------------------------------------------


def resolve_next_step(payload: dict[str, Any], next_step: str | None = None) -> str | None:
    """Cursor value requested by the client; the explicit argument wins."""
    value = next_step or payload.get("nextStep") or payload.get("nextFormStep")
    if value is None:
        return None
    if not isinstance(value, str):
        raise StepValidationError("nextStep must be a string")
    value = value.strip()
    if len(value) > _MAX_CURSOR_LENGTH:
        raise StepValidationError(f"nextStep must be at most {_MAX_CURSOR_LENGTH} characters")
    return value or None


def resolve_step(payload: dict[str, Any], current_form_step: str | None) -> FormStep:
    """Step whose fields the payload carries: the ``step`` key, else the cursor."""
    raw = payload.get("step")
    if raw:
        step = FormStep.lookup(raw)
        if step is None:
            raise StepValidationError(f"Unknown step '{raw}'")
        return step
    step = FormStep.lookup(current_form_step)
    if step is None:
        raise StepValidationError("Cannot tell which step this payload belongs to; send 'step'")
    return step


def _format_errors(key: str, exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in (key, *err["loc"]))
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def validate_step(step: FormStep, payload: dict[str, Any]) -> ValidatedStep:
    """Validate every section the step owns. Sections it does not own are dropped."""
    schema = STEP_SCHEMAS[step]
    validated = ValidatedStep(schema=schema)
    for key, attr in DATA_KEYS.items():
        raw = payload.get(key)
        if raw is None:
            continue
        model = getattr(schema, attr)
        if model is None:
            logger.debug("Step %s does not own '%s'; ignoring it", step.value, key)
            continue
        try:
            fields = model.model_validate(raw)
        except ValidationError as exc:
            raise StepValidationError(_format_errors(key, exc)) from exc
        if fields.provided():
            setattr(validated, attr, fields)
    return validated


def has_data(payload: dict[str, Any]) -> bool:
    return any(payload.get(key) is not None for key in DATA_KEYS)


# ---------------------------------------------------------------------------
# Best-effort writes
# ---------------------------------------------------------------------------


async def _best_effort(
    session: AsyncSession,
    result: SaveStepResult,
    field: str,
    write: Callable[[], Awaitable[Any]],
    *,
    refresh: Any = None,
) -> bool:
    """Run ``write`` in a savepoint; on a storage error record a warning and go on."""
    try:
        async with session.begin_nested():
            await write()
    except SQLAlchemyError as exc:
        logger.warning("Partial write skipped: %s on deal %s (%s)", field, result.deal_id, exc)
        result.warnings.append(
            PartialWriteWarning(field=field, reason="storage error; value not saved")
        )
        if refresh is not None:
            await session.refresh(refresh)
        return False
    result.updated.append(field)
    return True


def _skip(result: SaveStepResult, field: str, reason: str) -> None:
    logger.info("Partial write skipped: %s on deal %s (%s)", field, result.deal_id, reason)
    result.warnings.append(PartialWriteWarning(field=field, reason=reason))


# ---------------------------------------------------------------------------
# Party sections
# ---------------------------------------------------------------------------


async def _apply_party_details(
    session: AsyncSession,
    deal: Deal,
    party: Borrower,
    fields: StepFields,
    result: SaveStepResult,
    *,
    prefix: str,
) -> None:
    """Write household, residence and consent fields for an already-resolved party."""
    provided = fields.provided()

    columns = {k: v for k, v in provided.items() if k in _PARTY_COLUMNS}
    if columns:
        for key, value in columns.items():
            setattr(party, _PARTY_COLUMNS[key], value)
        await session.flush()
        result.updated.append(prefix)

    flags = {k: v for k, v in provided.items() if k in _FLAG_COLUMNS}
    if flags:

        async def _write_flags():
            for key, value in flags.items():
                setattr(party, _FLAG_COLUMNS[key], value)
            await session.flush()

        await _best_effort(session, result, f"{prefix}.consent", _write_flags, refresh=party)

    if isinstance(fields, CoBorrowerDetailFields) and fields.live_together:
        await _copy_primary_residence(session, deal, party, result, prefix=prefix)
    elif isinstance(fields, AddressFields) and fields.has_address_input():
        address = fields.resolved_address()
        if address is None:
            _skip(result, f"{prefix}.current_address", "address could not be parsed")
        else:
            await _best_effort(
                session,
                result,
                f"{prefix}.current_address",
                lambda: party_service.upsert_residence(
                    session, party.id, ResidenceType.CURRENT, address,
                ),
            )

    if isinstance(fields, BorrowerDetailFields) and fields.former_address:
        former = parse_address(fields.former_address)
        if former is None:
            _skip(result, f"{prefix}.former_address", "address could not be parsed")
        else:
            await _best_effort(
                session,
                result,
                f"{prefix}.former_address",
                lambda: party_service.upsert_residence(
                    session, party.id, ResidenceType.FORMER, former,
                ),
            )


async def _copy_primary_residence(
    session: AsyncSession,
    deal: Deal,
    party: Borrower,
    result: SaveStepResult,
    *,
    prefix: str,
) -> None:
    """Co-borrower lives with the primary borrower: mirror that current address."""
    if deal.primary_borrower_id is None:
        return
    home = await party_service.get_residence(
        session, deal.primary_borrower_id, ResidenceType.CURRENT,
    )
    if home is None:
        return
    address = ParsedAddress(
        street=home.address_line, city=home.city, state=home.state, zip_code=home.zip_code,
    )
    await _best_effort(
        session,
        result,
        f"{prefix}.current_address",
        lambda: party_service.upsert_residence(session, party.id, ResidenceType.CURRENT, address),
    )


async def _save_borrower(
    session: AsyncSession,
    deal: Deal,
    schema: StepSchema,
    fields: StepFields,
    result: SaveStepResult,
) -> None:
    provided = fields.provided()
    party, created = await party_service.resolve_borrower(
        session, deal, provided, can_create=schema.creates_borrower,
    )
    if created:
        result.updated.append("borrower")
        return
    if schema.creates_borrower:
        await party_service.update_identity(session, party, provided)
        result.updated.append("borrower")
        return
    await _apply_party_details(session, deal, party, fields, result, prefix="borrower")


async def _save_co_borrower(
    session: AsyncSession,
    deal: Deal,
    schema: StepSchema,
    fields: StepFields,
    result: SaveStepResult,
) -> None:
    provided = fields.provided()
    party, how = await party_service.resolve_co_borrower(
        session, deal, provided, can_create=schema.creates_co_borrower,
    )
    if how != "existing":
        result.updated.append("co_borrower_link")
    party_service.mark_joint(deal)
    await session.flush()

    if how == "created":
        result.updated.append("co_borrower")
    elif how == "existing" and schema.creates_co_borrower:
        await party_service.update_identity(session, party, provided)
        result.updated.append("co_borrower")
    elif not schema.creates_co_borrower:
        await _apply_party_details(session, deal, party, fields, result, prefix="co_borrower")


# ---------------------------------------------------------------------------
# Loan section
# ---------------------------------------------------------------------------


async def _save_loan(
    session: AsyncSession,
    deal: Deal,
    fields: LoanFields,
    result: SaveStepResult,
) -> None:
    provided = fields.provided()
    loan_fields = {k: v for k, v in provided.items() if k != "property_address"}
    if loan_fields:
        await update_loan(session, deal.id, provided)
        result.updated.append("loan")

    address = None
    if fields.property_address:
        address = parse_address(fields.property_address)
        if address is None:
            _skip(result, "subject_property.address", "address could not be parsed")
    value = fields.estimated_price or fields.purchase_price
    if address is not None or value is not None:
        await _best_effort(
            session,
            result,
            "subject_property",
            lambda: upsert_subject_property(
                session, deal.id, address=address, estimated_value=value,
            ),
        )


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------


def advance_cursor(deal: Deal, target: str | None, result: SaveStepResult) -> bool:
    """Move the deal's cursor. Returns False when there is nothing to change."""
    result.current_form_step = deal.current_form_step
    if target is None or target == deal.current_form_step:
        return False
    previous = deal.current_form_step
    deal.current_form_step = target
    result.current_form_step = target
    result.cursor_changed = True
    logger.info("Deal %s form step %s -> %s", deal.id, previous, target)
    return True


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def save_step(
    session: AsyncSession,
    deal_id: uuid.UUID,
    payload: dict[str, Any],
    next_step: str | None = None,
) -> SaveStepResult:
    """Persist one step's data and optionally advance the form-step cursor.

    Args:
        deal_id: Deal being filled in.
        payload: Loosely typed step body. Recognized keys are ``borrower``,
            ``coBorrower`` and ``loan`` (data) plus ``step`` and
            ``nextStep``/``nextFormStep`` (control). Anything else is ignored.
        next_step: Cursor value; overrides ``nextStep`` in the payload.

    Returns:
        SaveStepResult listing written sub-resources and partial-write warnings.

    Raises:
        NotFoundError: unknown deal, or a party the step needs does not exist.
        StepValidationError: invalid fields or step; nothing has been written.
        ConflictError: email/phone collision while creating or updating a party.
        LinkageError: the co-borrower link could not be written.
    """
    if not isinstance(payload, dict):
        raise StepValidationError("Step payload must be a JSON object")

    deal = await session.get(Deal, deal_id)
    if deal is None:
        raise NotFoundError("deal not found")

    target = resolve_next_step(payload, next_step)
    ignored = sorted(set(payload) - set(DATA_KEYS) - CONTROL_KEYS)
    if ignored:
        logger.debug("Deal %s save ignoring unrecognized keys %s", deal_id, ignored)

    result = SaveStepResult(deal_id=deal.id, current_form_step=deal.current_form_step)

    if not has_data(payload):
        # Navigation only
        if advance_cursor(deal, target, result):
            deal.updated_at = utcnow()
        await session.commit()
        return result

    step = resolve_step(payload, deal.current_form_step)
    validated = validate_step(step, payload)
    result.step = step.value

    # Party writes first, committed on their own
    if validated.borrower is not None:
        await _save_borrower(session, deal, validated.schema, validated.borrower, result)
    if validated.co_borrower is not None:
        await _save_co_borrower(session, deal, validated.schema, validated.co_borrower, result)
    if result.updated:
        deal.updated_at = utcnow()
        await session.commit()

    # Loan/property and the cursor share a transaction; the cursor moves last
    if validated.loan is not None:
        await _save_loan(session, deal, validated.loan, result)
    moved = advance_cursor(deal, target, result)
    if moved or result.updated:
        deal.updated_at = utcnow()
    await session.commit()

    logger.info(
        "Deal %s saved step %s (updated=%s, warnings=%d)",
        deal_id,
        step.value,
        result.updated,
        len(result.warnings),
    )
    return result
