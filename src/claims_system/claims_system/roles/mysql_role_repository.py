from __future__ import annotations

from typing import Mapping, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .repository import RoleRepository


class MySQLRoleRepository(RoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_names(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT name FROM roles ORDER BY name")
            return [r["name"] for r in fetchall(cur)]

    def exists(self, name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role_id FROM roles WHERE name=%s", (name,))
            return fetchone(cur) is not None

    def create(self, name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO roles(name) VALUES(%s)", (name,))
            return int(cur.lastrowid)

    def roles_for_user(self, user_id: int) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT r.name
                FROM user_roles ur
                JOIN roles r ON r.role_id = ur.role_id
                WHERE ur.user_id=%s
                ORDER BY r.name
                """,
                (int(user_id),),
            )
            return [r["name"] for r in fetchall(cur)]

    def roles_by_user(self) -> Mapping[int, Sequence[str]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ur.user_id, r.name
                FROM user_roles ur
                JOIN roles r ON r.role_id = ur.role_id
                ORDER BY ur.user_id, r.name
                """
            )
            out: dict[int, list[str]] = {}
            for r in fetchall(cur):
                out.setdefault(int(r["user_id"]), []).append(r["name"])
            return out

    def assign(self, *, user_id: int, name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO user_roles(user_id, role_id)
                SELECT %s, role_id FROM roles WHERE name=%s
                """,
                (int(user_id), name),
            )
            return cur.rowcount > 0

    def revoke(self, *, user_id: int, name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                DELETE ur FROM user_roles ur
                JOIN roles r ON r.role_id = ur.role_id
                WHERE ur.user_id=%s AND r.name=%s
                """,
                (int(user_id), name),
            )
            return cur.rowcount > 0
