# This project was developed with assistance from AI tools.
"""Section progress request/response schemas."""

import uuid
from datetime import datetime

from db.enums import FormSection
from pydantic import BaseModel, Field


class SectionStatus(BaseModel):
    """Completion state of one URLA section."""

    section: FormSection
    label: str
    complete: bool = False


class ProgressResponse(BaseModel):
    """Progress summary for a deal, sections in canonical order."""

    deal_id: uuid.UUID
    sections: list[SectionStatus]
    completed_count: int
    total_sections: int
    percentage: int
    next_incomplete_section: FormSection | None = Field(
        default=None,
        description="First incomplete section in canonical order; null when the form is complete.",
    )
    last_updated_section: str | None = None
    last_updated_at: datetime | None = None
    notes: str | None = None


class SectionCompleteRequest(BaseModel):
    complete: bool = True


class ProgressNotesRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=10_000)
