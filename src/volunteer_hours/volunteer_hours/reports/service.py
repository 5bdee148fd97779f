from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional, Sequence

from ..accrual.service import AccrualService
from ..common.datetime_utils import now_local, start_of_day, trailing_days
from ..common.validators import or_not_available
from ..core.constants import RECENT_ACTIVITY_DAYS, REPORT_QUERY_TIMEOUT_SECONDS, TREND_DAYS
from ..core.enums import AttendanceStatus, EventStatus, Role
from ..core.exceptions import StoreUnavailable
from ..events.model import Event, EventFilter
from ..events.repository import EventRepository
from ..messages.repository import MessageRepository
from ..users.model import User, UserFilter
from ..users.repository import UserRepository
from .best_effort import MetricUnit, run_best_effort
from .model import CohortAnalytics, CohortRollup, DailyTrendPoint, Report, RosterEntry

logger = logging.getLogger(__name__)

_LISTED = EventFilter(listed_only=True)


class AggregationService:
    """Read-only dashboard rollups.

    `build_report` degrades metric by metric: a failing or slow query leaves
    its field at the default and the rest of the report intact. Only an
    unreachable record store fails the whole call.
    """

    def __init__(
        self,
        events: EventRepository,
        users: UserRepository,
        messages: MessageRepository,
        accrual: AccrualService,
        *,
        query_timeout: float = REPORT_QUERY_TIMEOUT_SECONDS,
    ):
        self._events = events
        self._users = users
        self._messages = messages
        self._accrual = accrual
        self._query_timeout = float(query_timeout)

    def build_report(self, *, now: datetime | None = None) -> Report:
        now = now or now_local()
        try:
            self._events.ping()
        except Exception as e:
            logger.error("Report aborted, record store unreachable: %s", e)
            raise StoreUnavailable("Record store is unavailable") from e

        units = [MetricUnit(name, compute) for name, compute in self._metrics(now)]
        results = run_best_effort(units, timeout=self._query_timeout)

        values = {name: r.value for name, r in results.items() if r.ok}
        failed = sorted(name for name, r in results.items() if not r.ok)
        if failed:
            logger.warning("Report degraded, defaults used for: %s", ", ".join(failed))
        return Report(**values, failed_metrics=failed, generated_at=now)

    def _metrics(self, now: datetime) -> list[tuple[str, Callable[[], object]]]:
        return [
            ("total_users", lambda: self._users.count_users(UserFilter())),
            ("total_events", lambda: self._events.count_events(_LISTED)),
            ("total_attendance", lambda: self._events.count_attendance()),
            ("total_messages", self._messages.count_all),
            ("role_counts", self._role_counts),
            ("active_events", lambda: self._count_listed(EventStatus.ACTIVE)),
            ("completed_events", lambda: self._count_listed(EventStatus.COMPLETED)),
            (
                "approved_attendance",
                lambda: self._events.count_attendance(attendance_status=AttendanceStatus.APPROVED),
            ),
            ("total_hours", self._total_hours),
            ("recent_events", lambda: self._recent_events(now)),
            ("recent_users", lambda: self._recent_users(now)),
            ("daily_trend", lambda: self._daily_trend(now)),
            ("department_rollups", self._department_rollups),
            ("year_rollups", self._year_rollups),
            ("completion_roster", self._completion_roster),
        ]

    def _role_counts(self) -> dict[str, int]:
        return {role.value: self._users.count_users(UserFilter(role=role)) for role in Role}

    def _count_listed(self, status: EventStatus) -> int:
        return self._events.count_events(EventFilter(statuses=frozenset({status}), listed_only=True))

    def _total_hours(self) -> Decimal:
        return sum(self._accrual.approved_hours_by_user().values(), Decimal("0"))

    def _recent_events(self, now: datetime) -> int:
        since = now - timedelta(days=RECENT_ACTIVITY_DAYS)
        return self._events.count_events(EventFilter(listed_only=True, created_since=since))

    def _recent_users(self, now: datetime) -> int:
        since = now - timedelta(days=RECENT_ACTIVITY_DAYS)
        return self._users.count_users(UserFilter(created_since=since))

    def _daily_trend(self, now: datetime) -> list[DailyTrendPoint]:
        days = trailing_days(now.date(), TREND_DAYS)
        since = start_of_day(days[0])
        until = start_of_day(days[-1] + timedelta(days=1))

        events = self._events.query_events(EventFilter(listed_only=True, created_since=since, created_before=until))
        users = self._users.query_users(UserFilter(created_since=since, created_before=until))

        event_counts = _count_by_day(e.created_at for e in events)
        user_counts = _count_by_day(u.created_at for u in users)
        return [
            DailyTrendPoint(day=d, new_events=event_counts.get(d, 0), new_users=user_counts.get(d, 0))
            for d in days
        ]

    def _department_rollups(self) -> list[CohortRollup]:
        users = self._users.query_users(UserFilter())
        return _cohort_rollups(
            users,
            self._events.query_events(_LISTED),
            key=lambda u: or_not_available(u.department),
        )

    def _year_rollups(self) -> list[CohortRollup]:
        users = self._users.query_users(UserFilter())
        return _cohort_rollups(
            users,
            self._events.query_events(EventFilter()),
            key=lambda u: or_not_available(u.academic_year),
        )

    def _completion_roster(self) -> list[RosterEntry]:
        totals = self._accrual.approved_hours_by_user()
        threshold = self._accrual.threshold

        roster = []
        for u in self._users.query_users(UserFilter()):
            hours = totals.get(u.user_id, Decimal("0"))
            if hours < threshold:
                continue
            roster.append(
                RosterEntry(
                    user_id=u.user_id,
                    full_name=or_not_available(u.full_name),
                    role=u.role.value,
                    department=or_not_available(u.department),
                    academic_year=or_not_available(u.academic_year),
                    year_level=or_not_available(u.year_level),
                    section=or_not_available(u.section),
                    total_hours=hours,
                )
            )
        roster.sort(key=lambda r: (-r.total_hours, r.full_name))
        return roster

    def department_analytics(self, department: str) -> CohortAnalytics:
        students = self._users.query_users(UserFilter(role=Role.STUDENT, department=department))
        return self._cohort_analytics(department, students)

    def yearly_analytics(self, academic_year: str) -> CohortAnalytics:
        students = self._users.query_users(UserFilter(role=Role.STUDENT, academic_year=academic_year))
        return self._cohort_analytics(academic_year, students)

    def students_by_year(self) -> dict[str, list[dict]]:
        totals = self._accrual.approved_hours_by_user()
        grouped: dict[str, list[dict]] = defaultdict(list)
        for s in self._users.query_users(UserFilter(role=Role.STUDENT)):
            grouped[or_not_available(s.academic_year)].append(
                {
                    "user_id": s.user_id,
                    "full_name": s.full_name,
                    "department": or_not_available(s.department),
                    "year_level": or_not_available(s.year_level),
                    "section": or_not_available(s.section),
                    "total_hours": totals.get(s.user_id, Decimal("0")),
                }
            )
        return dict(grouped)

    def _cohort_analytics(self, name: str, students: Sequence[User]) -> CohortAnalytics:
        ids = frozenset(s.user_id for s in students)
        events = self._events.query_events(EventFilter(attended_by=ids)) if ids else []

        approved = 0
        total = Decimal("0")
        for event in events:
            for record in event.attendance:
                if record.user_id in ids and record.is_approved:
                    approved += 1
                    total += event.hours_value

        average = (total / len(ids)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP) if ids else Decimal("0")
        return CohortAnalytics(
            name=name,
            student_count=len(ids),
            event_count=len(events),
            approved_attendance=approved,
            total_hours=total,
            average_hours=average,
        )


def _count_by_day(stamps: Iterable[Optional[datetime]]) -> dict:
    counts: dict = defaultdict(int)
    for stamp in stamps:
        if stamp is not None:
            counts[stamp.date()] += 1
    return counts


def _cohort_rollups(
    users: Sequence[User],
    events: Sequence[Event],
    *,
    key: Callable[[User], str],
) -> list[CohortRollup]:
    """One row per distinct key over all users; students and events counted per cohort."""

    cohorts: dict[str, set[int]] = {key(u): set() for u in users}
    for u in users:
        if u.role == Role.STUDENT:
            cohorts[key(u)].add(u.user_id)

    attendees = [{r.user_id for r in e.attendance} for e in events]
    return [
        CohortRollup(
            name=name,
            students=len(ids),
            events=sum(1 for who in attendees if who & ids),
        )
        for name, ids in sorted(cohorts.items())
    ]
