from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules.

    ``field`` names the form field the message belongs to, when there is one.
    """

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AttachmentTooLargeError(ValidationError):
    """Raised when an uploaded document exceeds the size limit."""


class UnsupportedAttachmentTypeError(ValidationError):
    """Raised when an uploaded document has a disallowed extension."""


class InvalidTransitionError(ValidationError):
    """Raised when strict transitions are on and a claim is no longer pending."""


class NotFoundError(DomainError):
    """Raised when an identifier does not resolve to a record."""


class ConcurrencyConflictError(DomainError):
    """Raised when a versioned write hits a record that changed underneath it."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a caller lacks the role an action requires."""
