from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceStatus, EventStatus, RegistrationStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one participant's registration and attendance on an event.

    Owned by its Event; (event_id, user_id) is the identity. Hours are never
    stored here, they are derived from the parent event when approved.
    """

    event_id: int
    user_id: int
    registered_at: datetime
    registration_status: RegistrationStatus
    attendance_status: AttendanceStatus = AttendanceStatus.NOT_STARTED
    time_in: Optional[datetime] = None
    time_out: Optional[datetime] = None
    registration_decided_by: Optional[int] = None
    registration_decided_at: Optional[datetime] = None
    attendance_decided_by: Optional[int] = None
    attendance_decided_at: Optional[datetime] = None
    disapproval_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if self.attendance_status == AttendanceStatus.PENDING and (self.time_in is None or self.time_out is None):
            raise ValueError("attendance cannot be pending before both time in and time out")
        if (
            self.attendance_status == AttendanceStatus.APPROVED
            and self.registration_status != RegistrationStatus.APPROVED
        ):
            raise ValueError("approved attendance requires an approved registration")
        if self.time_out is not None and self.time_in is None:
            raise ValueError("time out recorded without time in")

    @property
    def is_approved(self) -> bool:
        return self.attendance_status == AttendanceStatus.APPROVED

    @property
    def holds_seat(self) -> bool:
        """Disapproved registrations do not count toward the participant limit."""
        return self.registration_status != RegistrationStatus.DISAPPROVED


@dataclass(frozen=True)
class Event:
    """Domain entity: a scheduled activity with its embedded attendance records."""

    event_id: int
    title: str
    event_date: date
    location: str
    hours_value: Decimal
    requires_approval: bool
    visible: bool
    status: EventStatus
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    description: str = ""
    all_departments: bool = True
    departments: frozenset[str] = frozenset()
    max_participants: int = 0
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    attendance: tuple[AttendanceRecord, ...] = field(default=())

    def find_record(self, user_id: int) -> Optional[AttendanceRecord]:
        for record in self.attendance:
            if record.user_id == user_id:
                return record
        return None

    def is_open_to(self, department: Optional[str]) -> bool:
        if self.all_departments:
            return True
        return bool(department) and department in self.departments

    @property
    def seats_taken(self) -> int:
        return sum(1 for r in self.attendance if r.holds_seat)

    @property
    def is_full(self) -> bool:
        return self.max_participants > 0 and self.seats_taken >= self.max_participants

    @property
    def has_approved_attendance(self) -> bool:
        return any(r.is_approved for r in self.attendance)

    @property
    def is_listed(self) -> bool:
        """Counted in dashboards: visible to students and not disabled."""
        return self.visible and self.status != EventStatus.DISABLED


@dataclass(frozen=True)
class EventFilter:
    """Query filter for events. Unset fields do not constrain the query."""

    statuses: Optional[frozenset[EventStatus]] = None
    listed_only: bool = False
    created_since: Optional[datetime] = None
    created_before: Optional[datetime] = None
    attended_by: Optional[frozenset[int]] = None
    attendance_status: Optional[AttendanceStatus] = None
