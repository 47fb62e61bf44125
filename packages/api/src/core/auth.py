# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies."""

import uuid

from db.enums import UserRole

from ..schemas.auth import DataScope, UserContext


def build_data_scope(role: UserRole, user_id: uuid.UUID) -> DataScope:
    """Build data scope rules based on the actor's role."""
    if role == UserRole.BORROWER:
        return DataScope(own_data_only=True, party_id=user_id)
    if role == UserRole.EMPLOYEE:
        return DataScope(managed_by=user_id)
    return DataScope()


def build_user_context(role: UserRole, user_id: uuid.UUID) -> UserContext:
    return UserContext(user_id=user_id, role=role, data_scope=build_data_scope(role, user_id))
