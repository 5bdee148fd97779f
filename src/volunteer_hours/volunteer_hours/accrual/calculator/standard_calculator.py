from __future__ import annotations

from decimal import Decimal

from ...events.model import AttendanceRecord, Event
from .base import HoursCalculator


class StandardHoursCalculator(HoursCalculator):
    """Standard rule: the event's hours iff attendance is approved.

    The event's current status is irrelevant: disabling an event after
    approval keeps the credit.
    """

    def credited_hours(self, event: Event, record: AttendanceRecord) -> Decimal:
        if not record.is_approved:
            return Decimal("0")
        return event.hours_value
