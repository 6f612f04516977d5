from __future__ import annotations

from typing import Mapping, Protocol, Sequence


class RoleRepository(Protocol):
    def list_names(self) -> Sequence[str]:
        raise NotImplementedError

    def exists(self, name: str) -> bool:
        raise NotImplementedError

    def create(self, name: str) -> int:
        raise NotImplementedError

    def roles_for_user(self, user_id: int) -> Sequence[str]:
        raise NotImplementedError

    def roles_by_user(self) -> Mapping[int, Sequence[str]]:
        """Return ``{user_id: [role names]}`` for every user holding at least one role."""

        raise NotImplementedError

    def assign(self, *, user_id: int, name: str) -> bool:
        raise NotImplementedError

    def revoke(self, *, user_id: int, name: str) -> bool:
        raise NotImplementedError
