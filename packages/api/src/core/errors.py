# This project was developed with assistance from AI tools.
"""Typed errors raised by the intake services.

Route handlers never build these into HTTP responses themselves; the
exception handler in ``main.py`` maps ``status_code`` and ``detail`` onto an
RFC 7807 body.
"""


class IntakeError(Exception):
    """Base class for errors the API surfaces to callers."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(IntakeError):
    """Deal, party, employee or progress record does not exist."""

    status_code = 404


class ConflictError(IntakeError):
    """Email or phone already belongs to another party.

    ``field`` names the colliding attribute so the UI can offer a login
    instead of a second sign-up.
    """

    status_code = 409

    def __init__(self, detail: str, *, field: str | None = None):
        super().__init__(detail)
        self.field = field


class StepValidationError(IntakeError):
    """A step payload is missing or carries an invalid field. Nothing was written."""

    status_code = 422


class LinkageError(IntakeError):
    """Co-borrower could not be linked to its deal."""

    status_code = 500
