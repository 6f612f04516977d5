from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account known to the identity store.

    Note: plain data object, no DB access code here.
    """

    user_id: int
    first_name: str
    last_name: str
    email: str
    password_hash: str
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Caller:
    """The authenticated caller of one request: identity plus assigned role labels."""

    user_id: int
    identity: str
    full_name: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def has_any(self, *roles: Role | str) -> bool:
        wanted = {r.value if isinstance(r, Role) else str(r) for r in roles}
        return bool(self.roles & wanted)
