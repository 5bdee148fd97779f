from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Mapping, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import AttendanceStatus, EventStatus, RegistrationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    in_placeholders,
    normalize_mysql_time,
    where_clause,
)
from .model import AttendanceRecord, Event, EventFilter
from .repository import EventRepository

ATTENDANCE_COLUMNS = (
    "registration_status",
    "registration_decided_by",
    "registration_decided_at",
    "time_in",
    "time_out",
    "attendance_status",
    "attendance_decided_by",
    "attendance_decided_at",
    "disapproval_reason",
)

EVENT_SELECT = """
    SELECT e.event_id, e.title, e.description, e.event_date, e.start_time, e.end_time, e.location,
           e.hours_value, e.requires_approval, e.visible, e.status, e.all_departments,
           e.max_participants, e.created_by, e.created_at
    FROM events e
"""


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def ping(self) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS ok")
            fetchone(cur)

    def get_by_id(self, event_id: int) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(EVENT_SELECT + " WHERE e.event_id=%s", (int(event_id),))
            row = fetchone(cur)
            if not row:
                return None
            return self._load_children(cur, [row])[0]

    def query_events(self, event_filter: EventFilter) -> Sequence[Event]:
        built = self._build_where(event_filter)
        if built is None:
            return []
        where, params = built

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{EVENT_SELECT} {where} ORDER BY e.event_date DESC, e.event_id DESC", tuple(params))
            rows = fetchall(cur)
            if not rows:
                return []
            return self._load_children(cur, rows)

    def count_events(self, event_filter: EventFilter) -> int:
        built = self._build_where(event_filter)
        if built is None:
            return 0
        where, params = built

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM events e {where}", tuple(params))
            row = fetchone(cur)
            return int(row["total"]) if row else 0

    def count_attendance(self, *, attendance_status: Optional[AttendanceStatus] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            if attendance_status is None:
                cur.execute("SELECT COUNT(*) AS total FROM attendance_records")
            else:
                cur.execute(
                    "SELECT COUNT(*) AS total FROM attendance_records WHERE attendance_status=%s",
                    (attendance_status.value,),
                )
            row = fetchone(cur)
            return int(row["total"]) if row else 0

    def insert_attendance(self, record: AttendanceRecord) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        event_id, user_id, registered_at, registration_status,
                        registration_decided_by, registration_decided_at, attendance_status
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(record.event_id),
                        int(record.user_id),
                        record.registered_at,
                        record.registration_status.value,
                        record.registration_decided_by,
                        record.registration_decided_at,
                        record.attendance_status.value,
                    ),
                )
                return cur.rowcount == 1
        except mysql.connector.IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                return False
            raise

    def update_attendance(
        self,
        *,
        event_id: int,
        user_id: int,
        expected: Mapping[str, object],
        changes: Mapping[str, object],
    ) -> bool:
        if not changes:
            raise ValueError("changes must not be empty")

        set_parts: list[str] = []
        set_params: list[object] = []
        for column, value in changes.items():
            if column not in ATTENDANCE_COLUMNS:
                raise ValueError(f"Unsupported column: {column!r}")
            set_parts.append(f"{column}=%s")
            set_params.append(getattr(value, "value", value))

        clauses, where_params = where_clause(expected, ATTENDANCE_COLUMNS)
        clauses = ["event_id=%s", "user_id=%s", *clauses]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET {", ".join(set_parts)}
                WHERE {" AND ".join(clauses)}
                """,
                (*set_params, int(event_id), int(user_id), *where_params),
            )
            return cur.rowcount == 1

    def delete_attendance(self, *, event_id: int, user_id: int, expected: Mapping[str, object]) -> bool:
        clauses, params = where_clause(expected, ATTENDANCE_COLUMNS)
        clauses = ["event_id=%s", "user_id=%s", *clauses]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"DELETE FROM attendance_records WHERE {' AND '.join(clauses)}",
                (int(event_id), int(user_id), *params),
            )
            return cur.rowcount == 1

    def set_status(self, event_id: int, status: EventStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE events SET status=%s WHERE event_id=%s", (status.value, int(event_id)))
            return cur.rowcount > 0

    def set_visibility(self, event_id: int, visible: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE events SET visible=%s WHERE event_id=%s", (1 if visible else 0, int(event_id)))
            return cur.rowcount > 0

    def update_hours_value(self, event_id: int, hours_value: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE events e
                SET e.hours_value=%s
                WHERE e.event_id=%s
                  AND NOT EXISTS (
                      SELECT 1 FROM attendance_records ar
                      WHERE ar.event_id=e.event_id AND ar.attendance_status=%s
                  )
                """,
                (hours_value, int(event_id), AttendanceStatus.APPROVED.value),
            )
            return cur.rowcount > 0

    @staticmethod
    def _build_where(event_filter: EventFilter) -> Optional[tuple[str, list[object]]]:
        """Translate a filter into a WHERE clause; None when it cannot match anything."""

        clauses: list[str] = []
        params: list[object] = []

        if event_filter.statuses is not None:
            if not event_filter.statuses:
                return None
            statuses = sorted(s.value for s in event_filter.statuses)
            clauses.append(f"e.status IN ({in_placeholders(statuses)})")
            params.extend(statuses)
        if event_filter.listed_only:
            clauses.append("e.visible=1 AND e.status<>%s")
            params.append(EventStatus.DISABLED.value)
        if event_filter.created_since is not None:
            clauses.append("e.created_at>=%s")
            params.append(event_filter.created_since)
        if event_filter.created_before is not None:
            clauses.append("e.created_at<%s")
            params.append(event_filter.created_before)

        if event_filter.attended_by is not None or event_filter.attendance_status is not None:
            sub = ["ar.event_id=e.event_id"]
            if event_filter.attended_by is not None:
                if not event_filter.attended_by:
                    return None
                user_ids = sorted(int(u) for u in event_filter.attended_by)
                sub.append(f"ar.user_id IN ({in_placeholders(user_ids)})")
                params.extend(user_ids)
            if event_filter.attendance_status is not None:
                sub.append("ar.attendance_status=%s")
                params.append(event_filter.attendance_status.value)
            clauses.append(f"EXISTS (SELECT 1 FROM attendance_records ar WHERE {' AND '.join(sub)})")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def _load_children(self, cur, rows: list[dict]) -> list[Event]:
        ids = [int(r["event_id"]) for r in rows]
        marks = in_placeholders(ids)

        cur.execute(f"SELECT event_id, department FROM event_departments WHERE event_id IN ({marks})", tuple(ids))
        departments: dict[int, set[str]] = defaultdict(set)
        for d in fetchall(cur):
            departments[int(d["event_id"])].add(d["department"])

        cur.execute(
            f"""
            SELECT event_id, user_id, registered_at, registration_status, registration_decided_by,
                   registration_decided_at, time_in, time_out, attendance_status,
                   attendance_decided_by, attendance_decided_at, disapproval_reason
            FROM attendance_records
            WHERE event_id IN ({marks})
            ORDER BY record_id ASC
            """,
            tuple(ids),
        )
        attendance: dict[int, list[AttendanceRecord]] = defaultdict(list)
        for a in fetchall(cur):
            attendance[int(a["event_id"])].append(self._to_record(a))

        return [
            self._to_event(r, departments.get(int(r["event_id"]), set()), attendance.get(int(r["event_id"]), []))
            for r in rows
        ]

    @staticmethod
    def _to_record(r: dict) -> AttendanceRecord:
        return AttendanceRecord(
            event_id=int(r["event_id"]),
            user_id=int(r["user_id"]),
            registered_at=r["registered_at"],
            registration_status=RegistrationStatus(r["registration_status"]),
            attendance_status=AttendanceStatus(r["attendance_status"]),
            time_in=r.get("time_in"),
            time_out=r.get("time_out"),
            registration_decided_by=r.get("registration_decided_by"),
            registration_decided_at=r.get("registration_decided_at"),
            attendance_decided_by=r.get("attendance_decided_by"),
            attendance_decided_at=r.get("attendance_decided_at"),
            disapproval_reason=r.get("disapproval_reason"),
        )

    @staticmethod
    def _to_event(r: dict, departments: set[str], attendance: list[AttendanceRecord]) -> Event:
        return Event(
            event_id=int(r["event_id"]),
            title=r["title"],
            description=r.get("description") or "",
            event_date=r["event_date"],
            start_time=normalize_mysql_time(r.get("start_time")),
            end_time=normalize_mysql_time(r.get("end_time")),
            location=r["location"],
            hours_value=Decimal(str(r.get("hours_value") or 0)),
            requires_approval=bool(r.get("requires_approval")),
            visible=bool(r.get("visible")),
            status=EventStatus(r["status"]),
            all_departments=bool(r.get("all_departments", True)),
            departments=frozenset(departments),
            max_participants=int(r.get("max_participants") or 0),
            created_by=r.get("created_by"),
            created_at=r.get("created_at"),
            attendance=tuple(attendance),
        )
