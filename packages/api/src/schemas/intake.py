# This project was developed with assistance from AI tools.
"""Incremental save request/response schemas."""

import uuid

from pydantic import BaseModel, Field


class PartialWriteWarning(BaseModel):
    """A non-critical sub-write that was skipped or rolled back.

    The save itself still succeeded.
    """

    field: str = Field(description="Sub-resource that was not written, e.g. borrower.current_address.")
    reason: str


class SaveStepResult(BaseModel):
    """Outcome of one step save."""

    deal_id: uuid.UUID
    step: str | None = Field(default=None, description="Step whose fields were applied.")
    current_form_step: str | None = None
    cursor_changed: bool = False
    updated: list[str] = Field(default_factory=list)
    warnings: list[PartialWriteWarning] = Field(default_factory=list)
