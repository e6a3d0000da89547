"""
Error taxonomy shared by the API and the privileged functions.

Every error carries a short, non-technical message that is safe to show to
the user and the HTTP status it maps to.
"""

from __future__ import annotations

from typing import Optional


class EventDeskError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(EventDeskError):
    """Missing or invalid input, raised before any store call."""

    status_code = 400
    default_message = "Please fill in all required fields"


class AuthorizationError(EventDeskError):
    status_code = 403
    default_message = "Forbidden"


class UnauthorizedError(AuthorizationError):
    """No credential, or one the auth service does not recognize."""

    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(AuthorizationError):
    """Valid credential lacking the required role."""

    status_code = 403
    default_message = "You do not have permission to do this"


class NotFoundError(EventDeskError):
    status_code = 404
    default_message = "Not found"


class ConflictError(EventDeskError):
    """Uniqueness violation reported by a store."""

    status_code = 409
    default_message = "This record already exists"


class TransientError(EventDeskError):
    """Network or store failure with no further classification."""

    status_code = 503
    default_message = "The service is temporarily unavailable"


class UnknownError(EventDeskError):
    status_code = 500


class SubmissionError(EventDeskError):
    """
    A report submission failed after validation.

    `report_id` is set when the report row had already been created; the
    row is left in place (there is no compensating rollback).
    """

    status_code = 500
    default_message = "Could not save the report"

    def __init__(self, message: Optional[str] = None, report_id: Optional[str] = None):
        super().__init__(message)
        self.report_id = report_id
