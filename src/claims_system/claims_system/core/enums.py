from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role labels the application gates on.

    Labels are stored as plain strings by the identity store, so administrators
    may create others; only these four carry meaning in the routes.
    """

    LECTURER = "Lecturer"
    MANAGER = "Manager"
    COORDINATOR = "Coordinator"
    ADMINISTRATOR = "Administrator"


class ClaimStatus(str, Enum):
    """Claim lifecycle states as persisted in the claims table."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ClaimStatus.PENDING


REVIEWER_ROLES = (Role.MANAGER, Role.COORDINATOR)
HISTORY_STATUSES = (ClaimStatus.APPROVED, ClaimStatus.REJECTED)
