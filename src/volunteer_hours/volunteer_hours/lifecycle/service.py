from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import EventStatus, NotificationKind, RegistrationStatus
from ..core.exceptions import (
    AlreadyProcessed,
    AlreadyRegistered,
    EventFull,
    EventNotOpen,
    NotEligible,
    NotFound,
)
from ..events.model import AttendanceRecord, Event
from ..events.repository import EventRepository
from ..notifications.sink import LoggingNotificationSink, NotificationSink
from ..users.repository import UserRepository
from . import transitions
from .transitions import Transition

logger = logging.getLogger(__name__)


class LifecycleService:
    """Applies attendance record transitions.

    All errors propagate to the caller. Notifications are best-effort and
    never undo a transition that was already written.
    """

    def __init__(
        self,
        events: EventRepository,
        users: UserRepository,
        notifications: Optional[NotificationSink] = None,
    ):
        self._events = events
        self._users = users
        self._notifications = notifications or LoggingNotificationSink()

    def register(self, event_id: int, user_id: int, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()

        event = self._get_event(event_id)
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFound("User not found")

        if event.status != EventStatus.ACTIVE:
            raise EventNotOpen(f"Event is not open for registration ({event.status.value})")
        if event.find_record(user.user_id):
            raise AlreadyRegistered("Already registered for this event")
        if not event.is_open_to(user.department):
            raise NotEligible("Event is not open to your department")
        if event.is_full:
            raise EventFull("Event is full")

        auto_approved = not event.requires_approval
        record = AttendanceRecord(
            event_id=event.event_id,
            user_id=user.user_id,
            registered_at=now,
            registration_status=RegistrationStatus.APPROVED if auto_approved else RegistrationStatus.PENDING,
            registration_decided_at=now if auto_approved else None,
        )
        if not self._events.insert_attendance(record):
            raise AlreadyRegistered("Already registered for this event")

        logger.info(
            "User %s registered for event %s (%s)",
            user.user_id,
            event.event_id,
            record.registration_status.value,
        )
        return record

    def approve_registration(
        self, event_id: int, user_id: int, actor_id: int, *, now: datetime | None = None
    ) -> AttendanceRecord:
        event, record = self._get_record(event_id, user_id)
        t = transitions.decide_registration(record, approve=True, actor_id=actor_id, at=now or now_local())
        updated = self._apply(record, t)
        self._notify(NotificationKind.REGISTRATION_APPROVED, event, updated)
        return updated

    def disapprove_registration(
        self,
        event_id: int,
        user_id: int,
        actor_id: int,
        *,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        event, record = self._get_record(event_id, user_id)
        reason = (reason or "").strip() or None
        t = transitions.decide_registration(
            record, approve=False, actor_id=actor_id, at=now or now_local(), reason=reason
        )
        updated = self._apply(record, t)
        self._notify(NotificationKind.REGISTRATION_DISAPPROVED, event, updated)
        return updated

    def unregister(self, event_id: int, user_id: int) -> None:
        _, record = self._get_record(event_id, user_id)
        t = transitions.withdraw(record)
        deleted = self._events.delete_attendance(event_id=record.event_id, user_id=record.user_id, expected=t.expected)
        if not deleted:
            logger.warning("Unregister lost a race: event=%s user=%s", record.event_id, record.user_id)
            raise AlreadyProcessed("Attendance record was changed by another request")
        logger.info("User %s unregistered from event %s", record.user_id, record.event_id)

    def time_in(self, event_id: int, user_id: int, timestamp: datetime) -> AttendanceRecord:
        _, record = self._get_record(event_id, user_id)
        return self._apply(record, transitions.start_attendance(record, at=timestamp))

    def time_out(self, event_id: int, user_id: int, timestamp: datetime) -> AttendanceRecord:
        _, record = self._get_record(event_id, user_id)
        return self._apply(record, transitions.finish_attendance(record, at=timestamp))

    def approve_attendance(
        self, event_id: int, user_id: int, actor_id: int, *, now: datetime | None = None
    ) -> AttendanceRecord:
        event, record = self._get_record(event_id, user_id)
        t = transitions.decide_attendance(record, approve=True, actor_id=actor_id, at=now or now_local())
        updated = self._apply(record, t)
        self._notify(NotificationKind.ATTENDANCE_APPROVED, event, updated, hours=str(event.hours_value))
        return updated

    def disapprove_attendance(
        self,
        event_id: int,
        user_id: int,
        actor_id: int,
        *,
        reason: str,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        reason = require_non_empty(reason, "Reason for disapproval")
        event, record = self._get_record(event_id, user_id)
        t = transitions.decide_attendance(
            record, approve=False, actor_id=actor_id, at=now or now_local(), reason=reason
        )
        updated = self._apply(record, t)
        self._notify(NotificationKind.ATTENDANCE_DISAPPROVED, event, updated)
        return updated

    def _get_event(self, event_id: int) -> Event:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFound("Event not found")
        return event

    def _get_record(self, event_id: int, user_id: int) -> tuple[Event, AttendanceRecord]:
        event = self._get_event(event_id)
        record = event.find_record(int(user_id))
        if not record:
            raise NotFound("Attendance record not found")
        return event, record

    def _apply(self, record: AttendanceRecord, t: Transition) -> AttendanceRecord:
        ok = self._events.update_attendance(
            event_id=record.event_id,
            user_id=record.user_id,
            expected=t.expected,
            changes=t.changes,
        )
        if not ok:
            logger.warning("%s lost a race: event=%s user=%s", t.name, record.event_id, record.user_id)
            raise AlreadyProcessed("Attendance record was changed by another request")

        logger.info("%s applied: event=%s user=%s", t.name, record.event_id, record.user_id)
        return replace(record, **t.changes)

    def _notify(self, kind: NotificationKind, event: Event, record: AttendanceRecord, **extra: Any) -> None:
        context: Mapping[str, Any] = {
            "event_id": event.event_id,
            "event_title": event.title,
            "decided_by": record.attendance_decided_by
            if kind in (NotificationKind.ATTENDANCE_APPROVED, NotificationKind.ATTENDANCE_DISAPPROVED)
            else record.registration_decided_by,
            "reason": record.disapproval_reason,
            **extra,
        }
        try:
            self._notifications.notify(kind, record.user_id, context)
        except Exception:
            # State change already committed; delivery is best-effort.
            logger.exception("Notification %s for user %s failed", kind.value, record.user_id)
