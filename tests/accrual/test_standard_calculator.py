from datetime import date, datetime
from decimal import Decimal

from volunteer_hours.accrual.calculator.standard_calculator import StandardHoursCalculator
from volunteer_hours.core.enums import AttendanceStatus, EventStatus, RegistrationStatus
from volunteer_hours.events.model import AttendanceRecord, Event


def _event(status=EventStatus.ACTIVE) -> Event:
    return Event(
        event_id=1,
        title="Coastal cleanup",
        event_date=date(2026, 3, 1),
        location="Beach",
        hours_value=Decimal("2.5"),
        requires_approval=True,
        visible=True,
        status=status,
    )


def _record(status: AttendanceStatus) -> AttendanceRecord:
    return AttendanceRecord(
        event_id=1,
        user_id=7,
        registered_at=datetime(2026, 3, 1, 8, 0),
        registration_status=RegistrationStatus.APPROVED,
        time_in=datetime(2026, 3, 1, 9, 0),
        time_out=datetime(2026, 3, 1, 11, 30),
        attendance_status=status,
    )


def test_standard_calculator_credits_only_approved():
    calc = StandardHoursCalculator()

    assert calc.credited_hours(_event(), _record(AttendanceStatus.APPROVED)) == Decimal("2.5")
    assert calc.credited_hours(_event(), _record(AttendanceStatus.PENDING)) == Decimal("0")
    assert calc.credited_hours(_event(), _record(AttendanceStatus.DISAPPROVED)) == Decimal("0")


def test_standard_calculator_ignores_event_status():
    calc = StandardHoursCalculator()

    assert calc.credited_hours(_event(EventStatus.DISABLED), _record(AttendanceStatus.APPROVED)) == Decimal("2.5")
