from __future__ import annotations

import threading
from datetime import date, datetime
from decimal import Decimal

import pytest

from volunteer_hours.accrual.service import AccrualService
from volunteer_hours.core.enums import AttendanceStatus, EventStatus, RegistrationStatus, Role
from volunteer_hours.core.exceptions import StoreUnavailable
from volunteer_hours.events.model import AttendanceRecord
from volunteer_hours.reports.model import CohortRollup, DailyTrendPoint
from volunteer_hours.reports.service import AggregationService

NOW = datetime(2026, 3, 10, 12, 0)


def _rec(event_id, user_id, status=AttendanceStatus.APPROVED):
    timed = status != AttendanceStatus.NOT_STARTED
    return AttendanceRecord(
        event_id=event_id,
        user_id=user_id,
        registered_at=datetime(2026, 3, 1, 8, 0),
        registration_status=RegistrationStatus.APPROVED,
        time_in=datetime(2026, 3, 1, 9, 0) if timed else None,
        time_out=datetime(2026, 3, 1, 12, 0) if timed else None,
        attendance_status=status,
    )


@pytest.fixture
def svc(events_repo, users_repo, messages_repo, make_event, make_user):
    make_user(100, full_name="Ana", department="CCS", academic_year="2025-2026", created_at=datetime(2026, 3, 9, 10))
    make_user(101, full_name="Ben", department="CBA", academic_year="2024-2025", created_at=datetime(2026, 3, 4, 7))
    make_user(102, full_name="Cy", role=Role.STAFF, department="CCS", created_at=datetime(2026, 1, 1))
    make_user(
        103, full_name="Dee", role=Role.ADMIN, department=None, academic_year=None, created_at=datetime(2026, 3, 10, 8)
    )
    make_user(104, full_name="Eve", department=None, academic_year=None, created_at=datetime(2025, 12, 1))

    make_event(
        1,
        hours_value=Decimal("20"),
        created_at=datetime(2026, 3, 9, 9),
        attendance=(_rec(1, 100), _rec(1, 101, AttendanceStatus.PENDING)),
    )
    make_event(
        2,
        hours_value=Decimal("25"),
        status=EventStatus.DISABLED,
        created_at=datetime(2026, 3, 8, 9),
        attendance=(_rec(2, 100),),
    )
    make_event(
        3,
        hours_value=Decimal("5"),
        status=EventStatus.COMPLETED,
        created_at=datetime(2026, 1, 5, 9),
        attendance=(_rec(3, 101), _rec(3, 104, AttendanceStatus.NOT_STARTED)),
    )
    make_event(4, hours_value=Decimal("1"), visible=False, created_at=datetime(2026, 3, 10, 9))

    accrual = AccrualService(events_repo, users_repo)
    return AggregationService(events_repo, users_repo, messages_repo, accrual, query_timeout=2)


def test_report_global_counts(svc):
    report = svc.build_report(now=NOW)

    assert report.failed_metrics == []
    assert report.total_users == 5
    assert report.total_events == 2
    assert report.total_attendance == 5
    assert report.total_messages == 3
    assert report.role_counts == {"Student": 3, "Staff": 1, "Admin": 1}
    assert report.generated_at == NOW


def test_report_status_breakdown_keeps_disabled_event_hours(svc):
    report = svc.build_report(now=NOW)

    assert report.active_events == 1
    assert report.completed_events == 1
    assert report.approved_attendance == 3
    assert report.total_hours == Decimal("50")


def test_report_recency_and_daily_trend(svc):
    report = svc.build_report(now=NOW)

    assert report.recent_events == 1
    assert report.recent_users == 3
    assert [p.day for p in report.daily_trend] == [date(2026, 3, d) for d in range(4, 11)]
    assert report.daily_trend[0] == DailyTrendPoint(day=date(2026, 3, 4), new_events=0, new_users=1)
    assert report.daily_trend[1] == DailyTrendPoint(day=date(2026, 3, 5), new_events=0, new_users=0)
    assert report.daily_trend[5] == DailyTrendPoint(day=date(2026, 3, 9), new_events=1, new_users=1)
    assert report.daily_trend[6] == DailyTrendPoint(day=date(2026, 3, 10), new_events=0, new_users=1)


def test_report_cohort_rollups_use_na_for_missing(svc):
    report = svc.build_report(now=NOW)

    assert report.department_rollups == [
        CohortRollup(name="CBA", students=1, events=2),
        CohortRollup(name="CCS", students=1, events=1),
        CohortRollup(name="N/A", students=1, events=1),
    ]
    assert report.year_rollups == [
        CohortRollup(name="2024-2025", students=1, events=2),
        CohortRollup(name="2025-2026", students=1, events=2),
        CohortRollup(name="N/A", students=1, events=1),
    ]


def test_report_completion_roster(svc):
    report = svc.build_report(now=NOW)

    assert [(r.user_id, r.total_hours) for r in report.completion_roster] == [(100, Decimal("45"))]
    entry = report.completion_roster[0]
    assert (entry.department, entry.academic_year, entry.section) == ("CCS", "2025-2026", "A")


def test_zero_threshold_roster_includes_users_without_hours(events_repo, users_repo, messages_repo, make_user):
    make_user(100, full_name="Ana")
    make_user(101, full_name="Ben", role=Role.STAFF)
    accrual = AccrualService(events_repo, users_repo, threshold=0)
    svc = AggregationService(events_repo, users_repo, messages_repo, accrual, query_timeout=2)

    report = svc.build_report(now=NOW)

    assert report.failed_metrics == []
    assert [(r.user_id, r.total_hours) for r in report.completion_roster] == [
        (100, Decimal("0")),
        (101, Decimal("0")),
    ]


def test_failing_department_rollup_degrades_only_that_field(svc, monkeypatch):
    def boom():
        raise RuntimeError("aggregation pipeline failed")

    monkeypatch.setattr(svc, "_department_rollups", boom)

    report = svc.build_report(now=NOW)

    assert report.department_rollups == []
    assert report.failed_metrics == ["department_rollups"]
    assert report.total_users == 5
    assert report.total_events == 2
    assert len(report.year_rollups) == 3


def test_slow_metric_times_out_to_default(events_repo, users_repo, messages_repo, svc, monkeypatch):
    release = threading.Event()
    fast = AggregationService(
        events_repo, users_repo, messages_repo, AccrualService(events_repo, users_repo), query_timeout=0.2
    )

    def stuck():
        release.wait(5)
        return [CohortRollup(name="late")]

    monkeypatch.setattr(fast, "_year_rollups", stuck)
    try:
        report = fast.build_report(now=NOW)
    finally:
        release.set()

    assert report.year_rollups == []
    assert "year_rollups" in report.failed_metrics
    assert report.total_users == 5


def test_store_outage_fails_the_whole_report(svc, events_repo):
    events_repo.available = False

    with pytest.raises(StoreUnavailable):
        svc.build_report(now=NOW)


def test_department_and_yearly_analytics(svc):
    ccs = svc.department_analytics("CCS")
    assert (ccs.student_count, ccs.event_count, ccs.approved_attendance) == (1, 2, 2)
    assert ccs.total_hours == Decimal("45")
    assert ccs.average_hours == Decimal("45.0")

    year = svc.yearly_analytics("2024-2025")
    assert (year.student_count, year.event_count, year.approved_attendance) == (1, 2, 1)
    assert year.total_hours == Decimal("5")

    nobody = svc.department_analytics("Nursing")
    assert (nobody.student_count, nobody.event_count, nobody.total_hours) == (0, 0, Decimal("0"))


def test_students_by_year(svc):
    grouped = svc.students_by_year()

    assert set(grouped) == {"2025-2026", "2024-2025", "N/A"}
    assert grouped["2025-2026"][0]["total_hours"] == Decimal("45")
    assert grouped["N/A"][0]["full_name"] == "Eve"
    assert grouped["N/A"][0]["department"] == "N/A"
