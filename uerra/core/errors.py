"""
Error taxonomy for report handling.

Every error carries a human-readable message that is shown to the user
as-is, plus the HTTP status the API layer answers with.
"""

from typing import List, Optional


class ReportingError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"type": self.error_type, "message": self.message}


class AuthenticationError(ReportingError):
    """No signed-in identity."""
    status_code = 401


class AuthorizationError(ReportingError):
    """Identity present but not allowed to perform the action."""
    status_code = 403


class ValidationError(ReportingError):
    """Payload fails one or more constraints."""
    status_code = 422

    def __init__(self, messages: List[str]):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["messages"] = self.messages
        return data


class AttachmentError(ReportingError):
    """Photo upload rejected or failed."""
    status_code = 400


class PersistenceError(ReportingError):
    """A remote write (or read) against the backend failed."""
    status_code = 502


class NotFoundError(ReportingError):
    status_code = 404


class InvalidTransitionError(ReportingError):
    """Requested status change is not part of the report lifecycle."""
    status_code = 409

    def __init__(self, message: str, allowed: Optional[List[str]] = None):
        super().__init__(message)
        self.allowed = allowed or []
