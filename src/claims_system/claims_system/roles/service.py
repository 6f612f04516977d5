from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError
from ..users.model import User
from ..users.repository import UserRepository
from .repository import RoleRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRoles:
    user_id: int
    email: str
    full_name: str
    roles: tuple[str, ...]


class RoleService:
    """Use case: administrators manage role labels and who holds them."""

    def __init__(self, roles: RoleRepository, users: UserRepository):
        self._roles = roles
        self._users = users

    def list_roles(self) -> Sequence[str]:
        return sorted(self._roles.list_names())

    def create_role(self, name: str) -> bool:
        """Create ``name``; returns False when the role already exists."""
        name = require_non_empty(name, "Name")
        if self._roles.exists(name):
            logger.debug("Role %s already exists", name)
            return False

        self._roles.create(name)
        logger.info("Created role %s", name)
        return True

    def _require_user(self, email: str) -> User:
        email = require_non_empty(email, "Email", field="email").lower()
        user = self._users.get_by_email(email)
        if not user:
            raise NotFoundError(f"No user with email {email}")
        return user

    def _require_role(self, name: str) -> str:
        name = require_non_empty(name, "Role", field="role")
        if not self._roles.exists(name):
            raise NotFoundError(f"Role {name} does not exist")
        return name

    def assign_role(self, *, email: str, role_name: str) -> bool:
        user = self._require_user(email)
        name = self._require_role(role_name)
        assigned = self._roles.assign(user_id=user.user_id, name=name)
        if assigned:
            logger.info("Granted role %s to %s", name, user.email)
        return assigned

    def revoke_role(self, *, email: str, role_name: str) -> bool:
        user = self._require_user(email)
        name = self._require_role(role_name)
        revoked = self._roles.revoke(user_id=user.user_id, name=name)
        if revoked:
            logger.info("Revoked role %s from %s", name, user.email)
        return revoked

    def list_users_with_roles(self) -> Sequence[UserRoles]:
        by_user = self._roles.roles_by_user()
        return [
            UserRoles(
                user_id=u.user_id,
                email=u.email,
                full_name=u.full_name,
                roles=tuple(sorted(by_user.get(u.user_id, ()))),
            )
            for u in self._users.list_all()
        ]
