from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, EventStatus
from .model import AttendanceRecord, Event, EventFilter


class EventRepository(Protocol):
    """Record store interface for events and their embedded attendance.

    Every attendance mutation is a single-record conditional write: it only
    applies when the stored record still matches `expected`, and reports
    whether it did. `None` in `expected` means "column is unset".
    """

    def ping(self) -> None:
        raise NotImplementedError

    def get_by_id(self, event_id: int) -> Optional[Event]:
        raise NotImplementedError

    def query_events(self, event_filter: EventFilter) -> Sequence[Event]:
        raise NotImplementedError

    def count_events(self, event_filter: EventFilter) -> int:
        raise NotImplementedError

    def count_attendance(self, *, attendance_status: Optional[AttendanceStatus] = None) -> int:
        raise NotImplementedError

    def insert_attendance(self, record: AttendanceRecord) -> bool:
        """Insert a new record; False when (event_id, user_id) already exists."""

        raise NotImplementedError

    def update_attendance(
        self,
        *,
        event_id: int,
        user_id: int,
        expected: Mapping[str, object],
        changes: Mapping[str, object],
    ) -> bool:
        raise NotImplementedError

    def delete_attendance(self, *, event_id: int, user_id: int, expected: Mapping[str, object]) -> bool:
        raise NotImplementedError

    def set_status(self, event_id: int, status: EventStatus) -> bool:
        raise NotImplementedError

    def set_visibility(self, event_id: int, visible: bool) -> bool:
        raise NotImplementedError

    def update_hours_value(self, event_id: int, hours_value: Decimal) -> bool:
        """Change hours only while no record on the event is Approved."""

        raise NotImplementedError
