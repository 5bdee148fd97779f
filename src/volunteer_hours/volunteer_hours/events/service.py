from __future__ import annotations

import logging
from typing import Sequence

from ..common.validators import require_hours
from ..core.enums import EventStatus
from ..core.exceptions import InvalidTransition, NotFound
from ..users.repository import UserRepository
from .model import AttendanceRecord, Event, EventFilter
from .repository import EventRepository

logger = logging.getLogger(__name__)


class EventService:
    """Operator-side event administration and the eligibility query.

    Status and visibility changes never touch attendance records, so hours
    already credited through an event survive it being disabled.
    """

    def __init__(self, events: EventRepository, users: UserRepository):
        self._events = events
        self._users = users

    def _get(self, event_id: int) -> Event:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFound("Event not found")
        return event

    def set_status(self, event_id: int, status: EventStatus) -> Event:
        event = self._get(event_id)
        if event.status != status:
            self._events.set_status(event.event_id, status)
            logger.info("Event %s status %s -> %s", event.event_id, event.status.value, status.value)
        return self._get(event_id)

    def toggle_availability(self, event_id: int) -> Event:
        event = self._get(event_id)
        new_status = EventStatus.COMPLETED if event.status == EventStatus.ACTIVE else EventStatus.ACTIVE
        return self.set_status(event.event_id, new_status)

    def set_visibility(self, event_id: int, visible: bool) -> Event:
        event = self._get(event_id)
        if event.visible != bool(visible):
            self._events.set_visibility(event.event_id, bool(visible))
        return self._get(event_id)

    def update_hours_value(self, event_id: int, hours_value: object) -> Event:
        hours = require_hours(hours_value)
        event = self._get(event_id)
        if event.hours_value == hours:
            return event
        if event.has_approved_attendance or not self._events.update_hours_value(event.event_id, hours):
            raise InvalidTransition("Hours cannot change after attendance on this event was approved")

        logger.info("Event %s hours %s -> %s", event.event_id, event.hours_value, hours)
        return self._get(event_id)

    def list_open_events(self, user_id: int) -> list[Event]:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFound("User not found")

        events = self._events.query_events(
            EventFilter(statuses=frozenset({EventStatus.ACTIVE}), listed_only=True)
        )
        return [e for e in events if e.is_open_to(user.department)]

    def get_participants(self, event_id: int) -> Sequence[AttendanceRecord]:
        return self._get(event_id).attendance
