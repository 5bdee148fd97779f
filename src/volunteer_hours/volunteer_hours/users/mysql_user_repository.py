from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User, UserFilter
from .repository import UserRepository

USER_SELECT = """
    SELECT user_id, full_name, email, role, department, academic_year, year_level, section, created_at
    FROM users
"""


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(USER_SELECT + " WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            if not row:
                return None
            return self._to_user(row)

    def query_users(self, user_filter: UserFilter) -> Sequence[User]:
        where, params = self._build_where(user_filter)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{USER_SELECT} {where} ORDER BY full_name ASC, user_id ASC", tuple(params))
            return [self._to_user(r) for r in fetchall(cur)]

    def count_users(self, user_filter: UserFilter) -> int:
        where, params = self._build_where(user_filter)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM users {where}", tuple(params))
            row = fetchone(cur)
            return int(row["total"]) if row else 0

    @staticmethod
    def _build_where(user_filter: UserFilter) -> tuple[str, list[object]]:
        clauses: list[str] = []
        params: list[object] = []

        if user_filter.role is not None:
            clauses.append("role=%s")
            params.append(user_filter.role.value)
        for column in ("department", "academic_year", "year_level", "section"):
            value = getattr(user_filter, column)
            if value is not None:
                clauses.append(f"{column}=%s")
                params.append(value)
        if user_filter.created_since is not None:
            clauses.append("created_at>=%s")
            params.append(user_filter.created_since)
        if user_filter.created_before is not None:
            clauses.append("created_at<%s")
            params.append(user_filter.created_before)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    @staticmethod
    def _to_user(row: dict) -> User:
        return User(
            user_id=int(row["user_id"]),
            full_name=row["full_name"],
            email=row["email"],
            role=Role(row["role"]),
            department=row.get("department"),
            academic_year=row.get("academic_year"),
            year_level=row.get("year_level"),
            section=row.get("section"),
            created_at=row.get("created_at"),
        )
