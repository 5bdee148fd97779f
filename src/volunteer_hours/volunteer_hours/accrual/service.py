from __future__ import annotations

import logging
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..common.validators import or_not_available
from ..core.constants import COMPLETION_THRESHOLD_HOURS
from ..core.enums import AttendanceStatus, Role
from ..events.model import EventFilter
from ..events.repository import EventRepository
from ..users.model import UserFilter
from ..users.repository import UserRepository
from .calculator.base import HoursCalculator
from .calculator.standard_calculator import StandardHoursCalculator
from .model import HoursFilter, HoursReport

logger = logging.getLogger(__name__)

_APPROVED_ANYWHERE = EventFilter(attendance_status=AttendanceStatus.APPROVED)


class AccrualService:
    """Derives credited hours from approved attendance. Nothing is cached."""

    def __init__(
        self,
        events: EventRepository,
        users: Optional[UserRepository] = None,
        *,
        calculator: Optional[HoursCalculator] = None,
        threshold: Decimal | int = COMPLETION_THRESHOLD_HOURS,
    ):
        self._events = events
        self._users = users
        self._calculator = calculator or StandardHoursCalculator()
        self._threshold = Decimal(str(threshold))

    @property
    def threshold(self) -> Decimal:
        return self._threshold

    def total_hours(self, user_id: int) -> Decimal:
        user_id = int(user_id)
        events = self._events.query_events(
            EventFilter(attended_by=frozenset({user_id}), attendance_status=AttendanceStatus.APPROVED)
        )

        total = Decimal("0")
        for event in events:
            record = event.find_record(user_id)
            if record:
                total += self._calculator.credited_hours(event, record)
        return total

    def is_complete(self, user_id: int, threshold: Decimal | int | None = None) -> bool:
        limit = self._threshold if threshold is None else Decimal(str(threshold))
        return self.total_hours(user_id) >= limit

    def approved_hours_by_user(self) -> dict[int, Decimal]:
        """Credited hours of every user with approved attendance, in one pass."""

        totals: dict[int, Decimal] = defaultdict(lambda: Decimal("0"))
        for event in self._events.query_events(_APPROVED_ANYWHERE):
            for record in event.attendance:
                if record.is_approved:
                    totals[record.user_id] += self._calculator.credited_hours(event, record)
        return dict(totals)

    def build_hours_report(self, hours_filter: HoursFilter | None = None) -> HoursReport:
        if self._users is None:
            raise RuntimeError("AccrualService needs a UserRepository for reports")
        f = hours_filter or HoursFilter()

        students = self._users.query_users(
            UserFilter(
                role=Role.STUDENT,
                department=f.department,
                academic_year=f.academic_year,
                year_level=f.year_level,
                section=f.section,
            )
        )
        totals = self.approved_hours_by_user()

        rows: list[dict] = []
        for s in students:
            hours = totals.get(s.user_id, Decimal("0"))
            if f.hours_min is not None and hours < f.hours_min:
                continue
            if f.hours_max is not None and hours > f.hours_max:
                continue
            if f.only_complete and hours < self._threshold:
                continue
            rows.append(
                {
                    "user_id": s.user_id,
                    "full_name": or_not_available(s.full_name),
                    "email": or_not_available(s.email),
                    "department": or_not_available(s.department),
                    "academic_year": or_not_available(s.academic_year),
                    "year_level": or_not_available(s.year_level),
                    "section": or_not_available(s.section),
                    "total_hours": hours,
                }
            )

        total_hours = sum((r["total_hours"] for r in rows), Decimal("0"))
        average = (total_hours / len(rows)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP) if rows else Decimal("0")
        summary = {
            "total_students": len(rows),
            "complete_students": sum(1 for r in rows if r["total_hours"] >= self._threshold),
            "total_hours": total_hours,
            "average_hours": average,
        }
        logger.debug("Hours report built: %s", summary)
        return HoursReport(rows=rows, summary=summary)
