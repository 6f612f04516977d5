from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.exceptions import AuthenticationError, ValidationError
from ..roles.repository import RoleRepository
from .model import Caller
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    email: str
    full_name: str


class AuthService:
    """Use case: authenticate users and resolve the caller of a request."""

    def __init__(self, users: UserRepository, roles: RoleRepository):
        self._users = users
        self._roles = roles

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            logger.info("Failed login for %s", user.email)
            raise AuthenticationError("Invalid email or password")

        return SessionUser(user_id=user.user_id, email=user.email, full_name=user.full_name)

    def resolve_caller(self, user_id: int) -> Optional[Caller]:
        """Load the caller and its role labels; None if the account is gone or disabled."""
        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active:
            return None
        return Caller(
            user_id=user.user_id,
            identity=user.email,
            full_name=user.full_name,
            roles=frozenset(self._roles.roles_for_user(user.user_id)),
        )


class UserService:
    """Use case: self-service registration. New accounts carry no roles."""

    def __init__(self, users: UserRepository):
        self._users = users

    def register(self, *, first_name: str, last_name: str, email: str, password: str) -> int:
        first_name = require_non_empty(first_name, "First name", field="first_name")
        last_name = require_non_empty(last_name, "Last name", field="last_name")
        email = require_non_empty(email, "Email", field="email").lower()
        if "@" not in email:
            raise ValidationError("Email is not valid", field="email")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH, field="password")

        if self._users.get_by_email(email):
            raise ValidationError("An account with this email already exists", field="email")

        user_id = self._users.create_user(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=generate_password_hash(password),
        )
        logger.info("Registered user %s (%s)", user_id, email)
        return user_id
