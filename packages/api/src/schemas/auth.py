# This project was developed with assistance from AI tools.
"""Authentication and authorization schemas."""

import uuid

from db.enums import UserRole
from pydantic import BaseModel, ConfigDict, Field


class DataScope(BaseModel):
    """Data visibility rules derived from the actor's role."""

    own_data_only: bool = False
    managed_by: uuid.UUID | None = None
    party_id: uuid.UUID | None = None


class UserContext(BaseModel):
    """Authenticated actor, injected into every request by the auth dependency."""

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    role: UserRole
    data_scope: DataScope = Field(default_factory=DataScope)
