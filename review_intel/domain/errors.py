"""
Domain Errors
=============

Every error the core raises derives from ReviewIntelError and carries the
HTTP status the web layer should answer with. The core itself never imports
FastAPI; the mapping happens in one exception handler.
"""

from typing import Optional


class ReviewIntelError(Exception):
    """Base exception for review intelligence errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(ReviewIntelError):
    """Missing or malformed input. Raised before any side effect."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.field:
            body["field"] = self.field
        return body


class NotFoundError(ReviewIntelError):
    """Unknown property, review or user id."""

    status_code = 404


class AuthenticationError(ReviewIntelError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class AuthorizationError(ReviewIntelError):
    """Ownership or role mismatch."""

    status_code = 403


class ConflictError(ReviewIntelError):
    """Duplicate unique key (username, email, property id)."""

    status_code = 409


class NotifierError(ReviewIntelError):
    """
    Guest alert could not be dispatched.

    Never fatal to a review submission: the pipeline logs it and reports
    alert_sent=False.
    """

    status_code = 502
