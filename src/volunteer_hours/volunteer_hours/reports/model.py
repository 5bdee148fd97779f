from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import Role


def _zero_roles() -> dict[str, int]:
    return {role.value: 0 for role in Role}


@dataclass(frozen=True)
class DailyTrendPoint:
    day: date
    new_events: int = 0
    new_users: int = 0


@dataclass(frozen=True)
class CohortRollup:
    """Students and distinct events attended for one department or academic year."""

    name: str
    students: int = 0
    events: int = 0


@dataclass(frozen=True)
class RosterEntry:
    user_id: int
    full_name: str
    role: str
    department: str
    academic_year: str
    year_level: str
    section: str
    total_hours: Decimal


@dataclass(frozen=True)
class CohortAnalytics:
    name: str
    student_count: int
    event_count: int
    approved_attendance: int
    total_hours: Decimal
    average_hours: Decimal


@dataclass(frozen=True)
class Report:
    """Dashboard rollups. Never persisted; every field has its own default."""

    total_users: int = 0
    total_events: int = 0
    total_attendance: int = 0
    total_messages: int = 0
    role_counts: dict[str, int] = field(default_factory=_zero_roles)
    active_events: int = 0
    completed_events: int = 0
    approved_attendance: int = 0
    total_hours: Decimal = Decimal("0")
    recent_events: int = 0
    recent_users: int = 0
    daily_trend: list[DailyTrendPoint] = field(default_factory=list)
    department_rollups: list[CohortRollup] = field(default_factory=list)
    year_rollups: list[CohortRollup] = field(default_factory=list)
    completion_roster: list[RosterEntry] = field(default_factory=list)
    failed_metrics: list[str] = field(default_factory=list)
    generated_at: Optional[datetime] = None
