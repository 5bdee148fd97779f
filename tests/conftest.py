"""Shared test fixtures: in-memory record store fakes and builders."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest

from volunteer_hours.core.enums import EventStatus, Role
from volunteer_hours.core.exceptions import StoreUnavailable
from volunteer_hours.events.model import Event, EventFilter
from volunteer_hours.users.model import User, UserFilter


class InMemoryEvents:
    """Event store with atomic single-record conditional writes."""

    def __init__(self):
        self._events: dict[int, Event] = {}
        self._lock = threading.Lock()
        self.available = True

    def add(self, event: Event) -> Event:
        self._events[event.event_id] = event
        return event

    def ping(self) -> None:
        if not self.available:
            raise StoreUnavailable("store is down")

    def get_by_id(self, event_id: int) -> Optional[Event]:
        return self._events.get(event_id)

    def query_events(self, event_filter: EventFilter):
        return [e for e in self._events.values() if self._matches(e, event_filter)]

    def count_events(self, event_filter: EventFilter) -> int:
        return len(self.query_events(event_filter))

    def count_attendance(self, *, attendance_status=None) -> int:
        return sum(
            1
            for e in self._events.values()
            for r in e.attendance
            if attendance_status is None or r.attendance_status == attendance_status
        )

    def insert_attendance(self, record) -> bool:
        with self._lock:
            event = self._events[record.event_id]
            if event.find_record(record.user_id):
                return False
            self._events[event.event_id] = replace(event, attendance=event.attendance + (record,))
            return True

    def update_attendance(self, *, event_id, user_id, expected, changes) -> bool:
        with self._lock:
            event = self._events.get(event_id)
            record = event.find_record(user_id) if event else None
            if not record or any(getattr(record, k) != v for k, v in expected.items()):
                return False
            updated = replace(record, **changes)
            self._events[event_id] = replace(
                event,
                attendance=tuple(updated if r.user_id == user_id else r for r in event.attendance),
            )
            return True

    def delete_attendance(self, *, event_id, user_id, expected) -> bool:
        with self._lock:
            event = self._events.get(event_id)
            record = event.find_record(user_id) if event else None
            if not record or any(getattr(record, k) != v for k, v in expected.items()):
                return False
            self._events[event_id] = replace(
                event,
                attendance=tuple(r for r in event.attendance if r.user_id != user_id),
            )
            return True

    def set_status(self, event_id: int, status: EventStatus) -> bool:
        self._events[event_id] = replace(self._events[event_id], status=status)
        return True

    def set_visibility(self, event_id: int, visible: bool) -> bool:
        self._events[event_id] = replace(self._events[event_id], visible=visible)
        return True

    def update_hours_value(self, event_id: int, hours_value: Decimal) -> bool:
        with self._lock:
            event = self._events[event_id]
            if event.has_approved_attendance:
                return False
            self._events[event_id] = replace(event, hours_value=hours_value)
            return True

    @staticmethod
    def _matches(event: Event, f: EventFilter) -> bool:
        if f.statuses is not None and event.status not in f.statuses:
            return False
        if f.listed_only and not event.is_listed:
            return False
        if f.created_since is not None and (event.created_at is None or event.created_at < f.created_since):
            return False
        if f.created_before is not None and (event.created_at is None or event.created_at >= f.created_before):
            return False
        if f.attended_by is not None or f.attendance_status is not None:
            return any(
                (f.attended_by is None or r.user_id in f.attended_by)
                and (f.attendance_status is None or r.attendance_status == f.attendance_status)
                for r in event.attendance
            )
        return True


class InMemoryUsers:
    def __init__(self):
        self._users: dict[int, User] = {}

    def add(self, user: User) -> User:
        self._users[user.user_id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    def query_users(self, user_filter: UserFilter):
        f = user_filter
        out = []
        for u in self._users.values():
            if f.role is not None and u.role != f.role:
                continue
            if any(
                getattr(f, col) is not None and getattr(u, col) != getattr(f, col)
                for col in ("department", "academic_year", "year_level", "section")
            ):
                continue
            if f.created_since is not None and (u.created_at is None or u.created_at < f.created_since):
                continue
            if f.created_before is not None and (u.created_at is None or u.created_at >= f.created_before):
                continue
            out.append(u)
        out.sort(key=lambda u: (u.full_name, u.user_id))
        return out

    def count_users(self, user_filter: UserFilter) -> int:
        return len(self.query_users(user_filter))


class InMemoryMessages:
    def __init__(self, total: int = 0):
        self.total = total

    def count_all(self) -> int:
        return self.total


class RecordingSink:
    def __init__(self, *, fail: bool = False):
        self.sent = []
        self._fail = fail

    def notify(self, kind, recipient_id, context) -> None:
        if self._fail:
            raise ConnectionError("smtp down")
        self.sent.append((kind, recipient_id, dict(context)))


@pytest.fixture
def events_repo() -> InMemoryEvents:
    return InMemoryEvents()


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def messages_repo() -> InMemoryMessages:
    return InMemoryMessages(total=3)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def failing_sink() -> RecordingSink:
    return RecordingSink(fail=True)


@pytest.fixture
def make_event(events_repo):
    def _make(event_id: int = 1, **overrides) -> Event:
        fields = dict(
            event_id=event_id,
            title=f"Event {event_id}",
            event_date=date(2026, 3, 1),
            location="Main Hall",
            hours_value=Decimal("5"),
            requires_approval=True,
            visible=True,
            status=EventStatus.ACTIVE,
            created_at=datetime(2026, 2, 1, 9, 0),
        )
        fields.update(overrides)
        return events_repo.add(Event(**fields))

    return _make


@pytest.fixture
def make_user(users_repo):
    def _make(user_id: int = 100, **overrides) -> User:
        fields = dict(
            user_id=user_id,
            full_name=f"User {user_id}",
            email=f"user{user_id}@school.test",
            role=Role.STUDENT,
            department="CCS",
            academic_year="2025-2026",
            year_level="2nd Year",
            section="A",
            created_at=datetime(2026, 1, 10, 8, 0),
        )
        fields.update(overrides)
        return users_repo.add(User(**fields))

    return _make
